"""
Design model for Flowkit.

The design document is the operator-editable definition of a flow:
entries, declared profile variables, a graph of nodes and edges, and a
table of shared component configurations.
"""

from .codec import (
    canonical_bytes,
    canonical_json,
    decode_design,
    design_checksum,
    encode_design,
    load_design_file,
    load_document,
    normalize_document,
)
from .types import (
    DESIGN_SCHEMA,
    BotInfo,
    DesignDoc,
    Edge,
    Entry,
    EntryKind,
    Graph,
    Guard,
    Node,
    Profile,
    ProfileVariable,
    VersionInfo,
)

__all__ = [
    "DESIGN_SCHEMA",
    "BotInfo",
    "DesignDoc",
    "Edge",
    "Entry",
    "EntryKind",
    "Graph",
    "Guard",
    "Node",
    "Profile",
    "ProfileVariable",
    "VersionInfo",
    "canonical_bytes",
    "canonical_json",
    "decode_design",
    "design_checksum",
    "encode_design",
    "load_design_file",
    "load_document",
    "normalize_document",
]
