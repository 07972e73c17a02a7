"""
Author influence analysis.

Authors are identified by (name, platform id). Only authors with at least two
articles in the corpus are scored.

    influence = min(100, round(min(50, 2 * count) + min(30, avg_engagement / 10) + platform_weight))
    potential = min(100, round(article_fit + specialty_score + recent_activity + 0.3 * influence))
"""

from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel

from src.analytics.engagement import engagement
from src.collectors.normalization.schema import Article

SPECIALTY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "AI/ML": ("AI", "ChatGPT", "머신러닝", "딥러닝", "TensorFlow", "PyTorch", "LLM", "OpenAI", "BERT", "GPT"),
    "Frontend": ("React", "Vue", "Angular", "JavaScript", "TypeScript", "Next.js", "HTML", "CSS", "Svelte"),
    "Backend": ("Node.js", "Python", "Java", "Spring", "API", "Express", "Django", "Flask", "Go", "Rust"),
    "Mobile": ("iOS", "Android", "React Native", "Flutter", "Swift", "Kotlin", "Xamarin"),
    "Cloud/DevOps": ("AWS", "Docker", "Kubernetes", "Azure", "CI/CD", "DevOps", "GCP", "Jenkins"),
    "Data": ("데이터", "분석", "빅데이터", "ETL", "Spark", "Kafka", "Elasticsearch", "시각화"),
    "Architecture": ("마이크로서비스", "MSA", "아키텍처", "설계", "DDD", "클린코드", "패턴"),
}
GENERAL_SPECIALTY = "General"

# Keyed by platform id
PLATFORM_WEIGHTS: dict[str, int] = {
    "toss": 20,
    "kakao": 18,
    "naver": 17,
    "woowahan": 16,
    "daangn": 15,
    "medium": 10,
}
DEFAULT_PLATFORM_WEIGHT = 5

MIN_ARTICLES = 2
RECENT_ACTIVITY_DAYS = 30


class AuthorProfile(BaseModel):
    name: str
    platform_id: str
    platform_name: str
    article_count: int
    total_engagement: int
    average_engagement: float
    specialties: list[str]
    recent_activity: int
    influence_score: int
    potential_score: int


class AuthorReport(BaseModel):
    total_authors: int
    total_articles: int
    top_influencers: list[AuthorProfile]
    potential_authors: list[AuthorProfile]
    platform_leaders: dict[str, list[AuthorProfile]]
    specialty_leaders: dict[str, list[AuthorProfile]]
    avg_influence_score: int
    avg_potential_score: int


def detect_specialties(text: str) -> list[str]:
    """Areas with at least two distinct keyword hits, at most three."""
    lowered = text.lower()
    found = [
        area
        for area, keywords in SPECIALTY_KEYWORDS.items()
        if sum(1 for k in keywords if k.lower() in lowered) >= 2
    ]
    return found[:3] or [GENERAL_SPECIALTY]


def influence_score(article_count: int, avg_engagement: float, platform_id: str) -> int:
    base = min(50, article_count * 2)
    engagement_score = min(30.0, avg_engagement / 10)
    weight = PLATFORM_WEIGHTS.get(platform_id, DEFAULT_PLATFORM_WEIGHT)
    return min(100, round(base + engagement_score + weight))


def potential_score(article_count: int, specialties: list[str], recent_activity: int, influence: int) -> int:
    if 5 <= article_count <= 20:
        article_fit = 25
    else:
        article_fit = max(0, 25 - abs(article_count - 12))
    specialty_score = min(20, len(specialties) * 10)
    activity_score = min(25, recent_activity)
    return min(100, round(article_fit + specialty_score + activity_score + influence * 0.3))


def analyze_authors(
    articles: list[Article],
    now: Optional[datetime] = None,
    include_synthetic: bool = False,
) -> AuthorReport:
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=RECENT_ACTIVITY_DAYS)

    grouped: dict[tuple[str, str], list[Article]] = defaultdict(list)
    for article in articles:
        grouped[article.author.identity].append(article)

    profiles: list[AuthorProfile] = []
    for (name, platform_id), items in grouped.items():
        if len(items) < MIN_ARTICLES:
            continue
        total = sum(engagement(a, include_synthetic) for a in items)
        average = total / len(items)
        specialties = detect_specialties(" ".join(f"{a.title} {a.excerpt}" for a in items))
        recent = min(25, 5 * sum(1 for a in items if a.published_at >= cutoff))
        influence = influence_score(len(items), average, platform_id)
        profiles.append(
            AuthorProfile(
                name=name,
                platform_id=platform_id,
                platform_name=items[0].platform.name,
                article_count=len(items),
                total_engagement=total,
                average_engagement=round(average, 1),
                specialties=specialties,
                recent_activity=recent,
                influence_score=influence,
                potential_score=potential_score(len(items), specialties, recent, influence),
            )
        )

    by_influence = sorted(profiles, key=lambda p: p.influence_score, reverse=True)

    platform_leaders: dict[str, list[AuthorProfile]] = defaultdict(list)
    for profile in by_influence:
        if len(platform_leaders[profile.platform_id]) < 5:
            platform_leaders[profile.platform_id].append(profile)

    specialty_leaders = {
        area: [p for p in by_influence if area in p.specialties][:10]
        for area in SPECIALTY_KEYWORDS
    }

    count = len(profiles)
    return AuthorReport(
        total_authors=count,
        total_articles=len(articles),
        top_influencers=by_influence[:20],
        potential_authors=sorted(profiles, key=lambda p: p.potential_score, reverse=True)[:15],
        platform_leaders=dict(platform_leaders),
        specialty_leaders=specialty_leaders,
        avg_influence_score=round(sum(p.influence_score for p in profiles) / count) if count else 0,
        avg_potential_score=round(sum(p.potential_score for p in profiles) / count) if count else 0,
    )
