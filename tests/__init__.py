"""
HoneyBee Test Suite.

- unit/: adapters, normalization, browser pool, cache store, orchestrator,
  monitoring, analytics, scheduler and configuration
- integration/: collection pipeline over in-memory feeds, HTTP API
- conftest.py: Shared fixtures and test configuration

Run tests with: pytest
Run one layer: pytest tests/unit
"""
