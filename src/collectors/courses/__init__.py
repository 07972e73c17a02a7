"""Course listing collection."""
