"""
Corpus analytics.

Pure functions over the article list returned by the orchestrator's read
operation: trending, platform activity, keyword frequency, author influence
and search.
"""

from src.analytics.authors import AuthorReport, analyze_authors
from src.analytics.keywords import KeywordReport, analyze_keywords
from src.analytics.platforms import PlatformStatsReport, analyze_platforms
from src.analytics.search import SearchFilters, SearchResult, SortBy, search_articles
from src.analytics.trending import TrendingReport, analyze_trending

__all__ = [
    "AuthorReport",
    "KeywordReport",
    "PlatformStatsReport",
    "SearchFilters",
    "SearchResult",
    "SortBy",
    "TrendingReport",
    "analyze_authors",
    "analyze_keywords",
    "analyze_platforms",
    "analyze_trending",
    "search_articles",
]
