"""Browser-rendered site collection."""
