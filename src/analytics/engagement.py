"""Engagement counters as seen by analytics.

Synthetic counters are placeholders, not observations; they are ignored
unless a caller explicitly opts in.
"""

from src.collectors.normalization.schema import Article, MetricsSource


def counts_engagement(article: Article, include_synthetic: bool = False) -> bool:
    if article.metrics_source == MetricsSource.SOURCE:
        return True
    return include_synthetic and article.metrics_source == MetricsSource.SYNTHETIC


def views(article: Article, include_synthetic: bool = False) -> int:
    if not counts_engagement(article, include_synthetic):
        return 0
    return article.view_count or 0


def engagement(article: Article, include_synthetic: bool = False) -> int:
    """Views + likes + comments, or 0 when the counters are not trusted."""
    if not counts_engagement(article, include_synthetic):
        return 0
    return (article.view_count or 0) + (article.like_count or 0) + (article.comment_count or 0)
