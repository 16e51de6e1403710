"""
Flowkit - compiler and versioned store for conversational flow designs.

An operator edits a bot's flow as a graph (nodes are conversational steps,
edges are transitions). Flowkit turns that mutable design into an immutable,
channel-specific execution plan and governs the version history of the
design itself.

Architecture:
    ┌─────────────┐     ┌─────────────┐     ┌──────────────────┐
    │ JSON Patch  │────▶│ AtomicStore │────▶│ DesignRepository │
    │  (caller)   │     │             │     │ (memory/SQLite)  │
    └─────────────┘     └──────┬──────┘     └──────────────────┘
                               │
                               ▼
                        ┌─────────────┐
                        │  Compiler   │
                        └──────┬──────┘
              ┌────────────────┼────────────────┐
              ▼                ▼                ▼
        ┌───────────┐    ┌───────────┐    ┌────────────┐
        │ Component │    │  Adapter  │    │ Validation │
        │ Registry  │    │ (channel) │    │  Pipeline  │
        └───────────┘    └───────────┘    └────────────┘

Invariants:
    - Exactly one draft (development) record per bot at any time
    - A draft only advances when the patched design compiles with no
      error-severity issue
    - The production pointer references a committed record, never a copy
    - Compilation and validation are pure; only the repository has side effects

How to change safely:
    - New component kinds are registered in component.registry.default_registry()
    - New channels subclass adapter.Adapter and register in the AdapterRegistry
    - Validation steps keep the canonical order (template, topology, size, adapter)
"""

from ._version import __version__

__all__ = ["__version__"]
