"""
Index versioning test suite.

This package contains:
- unit/: Unit tests (in-memory settings store, no external dependencies)
- integration/: Integration tests (full request cycle through replication)
"""
