"""
Serialization helpers for design documents.

Provides:
- decode_design(): bytes/str/dict -> DesignDoc
- encode_design(): DesignDoc -> canonical bytes
- canonical_json(): deterministic JSON (sorted keys, compact separators)
- canonical_bytes(): UTF-8 form of canonical_json(), DecodeError if not encodable
- normalize_document(): re-encode raw document bytes canonically
- design_checksum(): 'sha256:<hex>' over the canonical form
- load_design_file(): read a JSON or YAML authoring file

Invariants:
    - Two documents that differ only in key order have the same canonical
      bytes and the same checksum
    - normalize_document() keeps unknown keys; it never drops data
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any, Union

import yaml

from ..errors import DecodeError
from .types import DesignDoc

DocumentInput = Union[bytes, str, dict]


def canonical_json(obj: Any) -> str:
    """Serialize obj with sorted keys and no insignificant whitespace."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def canonical_bytes(obj: Any) -> bytes:
    """UTF-8 bytes of canonical_json(obj).

    Raises:
        DecodeError: If obj holds values JSON cannot carry (dates from YAML,
            lone surrogate escapes)
    """
    try:
        return canonical_json(obj).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise DecodeError(f"document is not representable as JSON: {e}", path="$") from e


def load_document(data: DocumentInput) -> dict[str, Any]:
    """Parse raw JSON into a plain mapping.

    Raises:
        DecodeError: If data is not valid JSON or not a JSON object
    """
    if isinstance(data, dict):
        return data
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"document is not valid UTF-8: {e}", path="$") from e
    try:
        parsed = json.loads(data)
    except json.JSONDecodeError as e:
        raise DecodeError(f"document is not valid JSON: {e.msg} (line {e.lineno})", path="$") from e
    if not isinstance(parsed, dict):
        raise DecodeError("design document must be a JSON object", path="$")
    return parsed


def decode_design(data: DocumentInput) -> DesignDoc:
    """Decode raw bytes, text or a mapping into a DesignDoc.

    Raises:
        DecodeError: If the input is not a well-formed design document
    """
    return DesignDoc.from_dict(load_document(data))


def encode_design(design: DesignDoc) -> bytes:
    return canonical_bytes(design.to_dict())


def normalize_document(data: DocumentInput) -> bytes:
    """Return the canonical byte form of a raw document."""
    return canonical_bytes(load_document(data))


def design_checksum(data: Union[DocumentInput, DesignDoc]) -> str:
    """Compute the checksum of a design document.

    The hash covers the canonical serialization of the input, so key order
    and whitespace never affect it.

    Returns:
        Checksum string in format 'sha256:<hash>'
    """
    if isinstance(data, DesignDoc):
        canonical = canonical_bytes(data.to_dict())
    else:
        canonical = canonical_bytes(load_document(data))
    hash_bytes = hashlib.sha256(canonical).hexdigest()
    return f"sha256:{hash_bytes}"


def load_design_file(path: Union[str, Path]) -> dict[str, Any]:
    """Load a design authoring file (.json, .yaml or .yml) into a mapping.

    YAML values without a JSON form (timestamps, binary) are rejected at load
    time so that every loaded design can be checksummed and stored.

    Raises:
        DecodeError: If the file is not UTF-8, not parseable or not a mapping
        OSError: If the file cannot be read
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"{path} is not valid UTF-8: {e}", path="$") from e
    if path.suffix.lower() in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise DecodeError(f"invalid YAML in {path}: {e}", path="$") from e
        if not isinstance(data, dict):
            raise DecodeError(f"{path} does not contain a mapping", path="$")
        canonical_bytes(data)
        return data
    return load_document(text)
