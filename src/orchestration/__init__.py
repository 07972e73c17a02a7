"""Collection orchestration: runs adapters and maintains the cached corpus."""

from src.orchestration.aggregator import (
    CollectionOrchestrator,
    CollectionReport,
    CorpusSnapshot,
    SourceResult,
    merge_articles,
    needs_update,
)

__all__ = [
    "CollectionOrchestrator",
    "CollectionReport",
    "CorpusSnapshot",
    "SourceResult",
    "merge_articles",
    "needs_update",
]
