"""Category assignment for normalized articles."""

import re

from src.collectors.normalization.schema import ArticleCategory

# Weighted keyword scoring: every whole-word hit adds one point, the best
# scoring category wins, ties go to the earlier entry.
CATEGORY_KEYWORDS: dict[ArticleCategory, list[str]] = {
    ArticleCategory.FRONTEND: [
        "react", "vue", "angular", "javascript", "typescript", "css", "html",
        "frontend", "ui", "ux", "design system", "component", "jsx", "dom",
        "browser", "프론트엔드", "리액트", "자바스크립트",
    ],
    ArticleCategory.BACKEND: [
        "backend", "server", "api", "database", "sql", "nosql", "node.js",
        "python", "java", "spring", "express", "fastapi", "django", "mysql",
        "postgresql", "mongodb", "백엔드", "서버", "데이터베이스",
    ],
    ArticleCategory.AI_ML: [
        "ai", "artificial intelligence", "machine learning", "deep learning",
        "ml", "tensorflow", "pytorch", "chatgpt", "gpt", "llm",
        "neural network", "data science", "인공지능", "머신러닝", "딥러닝",
    ],
    ArticleCategory.CLOUD_INFRA: [
        "devops", "docker", "kubernetes", "k8s", "aws", "azure", "gcp",
        "cloud", "deploy", "deployment", "ci/cd", "jenkins", "github actions",
        "infrastructure", "monitoring", "배포", "인프라", "클라우드",
    ],
    ArticleCategory.MOBILE: [
        "mobile", "react native", "flutter", "ios", "android", "swift",
        "kotlin", "app", "application", "모바일", "앱",
    ],
    ArticleCategory.DESIGN: [
        "design", "ux", "ui design", "figma", "sketch", "prototype",
        "user experience", "user interface", "graphic", "디자인",
        "사용자경험", "프로토타입",
    ],
    ArticleCategory.DATA: [
        "data", "analytics", "big data", "data engineering", "etl",
        "data warehouse", "spark", "hadoop", "kafka", "데이터", "분석", "빅데이터",
    ],
    ArticleCategory.SECURITY: [
        "security", "cybersecurity", "authentication", "authorization",
        "encryption", "jwt", "oauth", "vulnerability", "penetration", "보안",
        "인증", "암호화",
    ],
}

# Checked in order against course category and title; first hit wins.
COURSE_CATEGORY_KEYWORDS: list[tuple[str, ArticleCategory]] = [
    ("프로그래밍", ArticleCategory.FRONTEND),
    ("개발", ArticleCategory.BACKEND),
    ("데이터", ArticleCategory.DATA),
    ("AI", ArticleCategory.AI_ML),
    ("머신러닝", ArticleCategory.AI_ML),
    ("딥러닝", ArticleCategory.AI_ML),
    ("디자인", ArticleCategory.DESIGN),
    ("UX", ArticleCategory.DESIGN),
    ("UI", ArticleCategory.DESIGN),
    ("게임", ArticleCategory.GAME),
    ("3D", ArticleCategory.GRAPHICS),
    ("영상", ArticleCategory.GRAPHICS),
    ("모바일", ArticleCategory.MOBILE),
    ("클라우드", ArticleCategory.CLOUD_INFRA),
    ("프로덕트", ArticleCategory.PRODUCT),
]

_PATTERNS: dict[ArticleCategory, list[re.Pattern]] = {
    category: [re.compile(rf"\b{re.escape(k)}\b", re.IGNORECASE) for k in keywords]
    for category, keywords in CATEGORY_KEYWORDS.items()
}


def score_categories(text: str) -> dict[ArticleCategory, int]:
    """Keyword hit count per category."""
    return {
        category: sum(len(p.findall(text)) for p in patterns)
        for category, patterns in _PATTERNS.items()
    }


def categorize_article(title: str, content: str, tags: list[str]) -> ArticleCategory:
    """Pick the best scoring category, or GENERAL when nothing matches."""
    text = f"{title} {content} {' '.join(tags)}"
    scores = score_categories(text)

    best = max(scores.items(), key=lambda item: item[1])
    if best[1] == 0:
        return ArticleCategory.GENERAL
    return best[0]


def categorize_course(category: str, title: str) -> ArticleCategory:
    for keyword, mapped in COURSE_CATEGORY_KEYWORDS:
        if keyword in category or keyword in title:
            return mapped
    return ArticleCategory.GENERAL
