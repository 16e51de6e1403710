"""
Command-line tools for Flowkit.

- flow_cli: compile and validate design files, drive the version store

Invariants:
    - compile and validate work offline (no store, no server)
    - Store commands use the SQLite repository under the configured data_dir
"""

from .flow_cli import FlowCLI

__all__ = ["FlowCLI"]
