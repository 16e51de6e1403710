"""
Flowkit Test Suite.

This package contains:
- unit/: Unit tests (pure compile and validation logic, no I/O)
- integration/: Integration tests (repositories, AtomicStore, HTTP API, CLI)
"""
