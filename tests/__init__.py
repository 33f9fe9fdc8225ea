"""
StateDB agent test suite.

This package contains:
- unit/: Unit tests (no external dependencies, initctl and pymongo faked)
- integration/: ensure_server end to end with in-memory supervisor and cluster
"""
