"""
Technology keyword frequency analysis.

Keywords come from a fixed vocabulary and are matched case-insensitively on
word boundaries in the title and excerpt. Title hits count double.
"""

import re
from collections import Counter, defaultdict
from functools import lru_cache

from pydantic import BaseModel

from src.collectors.normalization.schema import Article

TECH_KEYWORDS: tuple[str, ...] = (
    # Frontend
    "React", "Vue.js", "Angular", "JavaScript", "TypeScript", "Next.js", "Svelte", "HTML", "CSS", "Tailwind",
    # Backend
    "Node.js", "Python", "Java", "Spring", "Express", "FastAPI", "Django", "Flask", "Go", "Rust", "PHP", "Laravel",
    # Database
    "MySQL", "PostgreSQL", "MongoDB", "Redis", "SQLite", "GraphQL", "Prisma", "Sequelize",
    # Cloud & DevOps
    "AWS", "Azure", "GCP", "Docker", "Kubernetes", "CI/CD", "Jenkins", "GitHub Actions", "Terraform",
    # AI/ML
    "머신러닝", "딥러닝", "TensorFlow", "PyTorch", "AI", "ChatGPT", "LLM", "OpenAI", "BERT", "GPT",
    # Mobile
    "iOS", "Android", "React Native", "Flutter", "Swift", "Kotlin", "Xamarin",
    # Architecture
    "마이크로서비스", "API", "REST", "MSA", "아키텍처", "설계", "패턴", "DDD", "TDD", "클린코드",
    # Data
    "데이터", "분석", "시각화", "빅데이터", "ETL", "Apache Spark", "Kafka", "Elasticsearch",
    # Security
    "보안", "OAuth", "JWT", "HTTPS", "암호화", "인증", "인가",
    # General
    "성능", "최적화", "배포", "모니터링", "테스트", "리팩토링", "개발자", "개발", "기술", "트렌드",
)

TRENDING_KEYWORDS = ("AI", "ChatGPT", "React", "Next.js", "TypeScript", "Kubernetes", "Docker")
EMERGING_KEYWORDS = ("Bun", "Deno", "WebAssembly", "Solid.js", "Astro")

KEYWORD_AREAS: dict[str, tuple[str, ...]] = {
    "AI/ML": ("AI", "ChatGPT", "머신러닝", "딥러닝", "TensorFlow", "PyTorch", "LLM", "OpenAI"),
    "Frontend": ("React", "Vue", "Angular", "JavaScript", "TypeScript", "Next.js", "HTML", "CSS"),
    "Backend": ("Node.js", "Python", "Java", "Spring", "API", "Express", "Django"),
    "Cloud/DevOps": ("AWS", "Docker", "Kubernetes", "Azure", "CI/CD", "DevOps"),
}

MIN_MENTIONS = 2
MAX_KEYWORDS = 50


class PlatformMention(BaseModel):
    platform: str
    count: int


class KeywordStat(BaseModel):
    keyword: str
    frequency: int
    market_score: int
    platforms: list[PlatformMention]


class KeywordReport(BaseModel):
    total_articles: int
    total_keywords: int
    top_keywords: list[KeywordStat]
    areas: dict[str, list[KeywordStat]]
    high_market_score: list[KeywordStat]


@lru_cache(maxsize=None)
def _keyword_pattern(keyword: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE)


def count_keywords(text: str) -> Counter:
    counts: Counter = Counter()
    if not text:
        return counts
    for keyword in TECH_KEYWORDS:
        hits = len(_keyword_pattern(keyword).findall(text))
        if hits:
            counts[keyword] = hits
    return counts


def _contains_any(keyword: str, terms: tuple[str, ...]) -> bool:
    lowered = keyword.lower()
    return any(term.lower() in lowered for term in terms)


def market_score(keyword: str, frequency: int, total_articles: int) -> int:
    base = frequency / total_articles * 100 if total_articles else 0.0
    bonus = 0
    if _contains_any(keyword, TRENDING_KEYWORDS):
        bonus += 20
    if _contains_any(keyword, EMERGING_KEYWORDS):
        bonus += 15
    return min(100, round(base + bonus))


def analyze_keywords(articles: list[Article]) -> KeywordReport:
    """Keyword frequencies, market scores and top platforms per keyword."""
    frequency: Counter = Counter()
    by_platform: dict[str, Counter] = defaultdict(Counter)

    for article in articles:
        counts = count_keywords(article.excerpt)
        for keyword, hits in count_keywords(article.title).items():
            counts[keyword] += hits * 2
        for keyword, hits in counts.items():
            frequency[keyword] += hits
            by_platform[keyword][article.platform.name] += hits

    stats = [
        KeywordStat(
            keyword=keyword,
            frequency=freq,
            market_score=market_score(keyword, freq, len(articles)),
            platforms=[PlatformMention(platform=p, count=c) for p, c in by_platform[keyword].most_common(3)],
        )
        for keyword, freq in frequency.most_common()
        if freq >= MIN_MENTIONS
    ][:MAX_KEYWORDS]

    areas = {
        area: [s for s in stats if _contains_any(s.keyword, terms)]
        for area, terms in KEYWORD_AREAS.items()
    }

    return KeywordReport(
        total_articles=len(articles),
        total_keywords=len(stats),
        top_keywords=stats[:20],
        areas=areas,
        high_market_score=[s for s in stats if s.market_score >= 70][:10],
    )
