"""
RFC 6902 JSON Patch application.

Wraps the jsonpatch library and maps its failures to PatchError. An input
document that is not a JSON object is a DecodeError; a patch that replaces
the root with a non-object is a PatchError. The input document is never
mutated.
"""

from __future__ import annotations

import copy
import json
from typing import Any, Dict, List, Union

import jsonpatch
import jsonpointer

from ..design.codec import load_document
from ..errors import PatchError

PatchInput = Union[bytes, str, List[Dict[str, Any]]]


def parse_patch(patch: PatchInput) -> List[Dict[str, Any]]:
    """Parse patch bytes/text into a list of operations.

    Raises:
        PatchError: If the patch is not a JSON array of operation objects
    """
    if isinstance(patch, (bytes, str)):
        try:
            ops = json.loads(patch)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise PatchError(f"patch is not valid JSON: {e}") from e
    else:
        ops = patch
    if not isinstance(ops, list):
        raise PatchError("patch must be a JSON array of operations")
    for op in ops:
        if not isinstance(op, dict):
            raise PatchError("patch operations must be JSON objects", operation=None)
    return ops


class JsonPatcher:
    """Applies RFC 6902 patches to design documents."""

    def apply(self, document: Union[bytes, str, Dict[str, Any]], patch: PatchInput) -> Dict[str, Any]:
        """Apply a patch and return the patched document.

        An empty patch returns an equal copy of the document.

        Raises:
            PatchError: If the patch is malformed, cannot be applied, or
                replaces the root with a non-object
            DecodeError: If the input document is not a JSON object
        """
        ops = parse_patch(patch)
        doc = load_document(document)
        if not ops:
            return copy.deepcopy(doc)

        for op in ops:
            try:
                jsonpatch.JsonPatch([op])
            except jsonpatch.InvalidJsonPatch as e:
                raise PatchError(f"invalid patch operation: {e}", operation=op) from e

        current = doc
        for op in ops:
            try:
                current = jsonpatch.JsonPatch([op]).apply(current, in_place=False)
            except (jsonpatch.JsonPatchException, jsonpointer.JsonPointerException) as e:
                raise PatchError(f"cannot apply '{op.get('op')}' at '{op.get('path')}': {e}", operation=op) from e
        if not isinstance(current, dict):
            raise PatchError("patch replaced the document root with a non-object")
        return current
