"""
Unit tests for JSON Patch application.

Tests cover:
- RFC 6902 operations on design documents
- Empty patch round trip
- Malformed patches and inapplicable operations
- Input immutability
"""

import json

import pytest

from flowkit.design import normalize_document
from flowkit.errors import DecodeError, PatchError
from flowkit.store import JsonPatcher, parse_patch
from tests.factories import make_design


class TestParsePatch:
    """Tests for parse_patch."""

    def test_bytes(self):
        assert parse_patch(b'[{"op": "remove", "path": "/a"}]') == [{"op": "remove", "path": "/a"}]

    def test_invalid_json(self):
        with pytest.raises(PatchError):
            parse_patch(b"[{")

    def test_not_array(self):
        with pytest.raises(PatchError):
            parse_patch('{"op": "add"}')

    def test_non_object_operation(self):
        with pytest.raises(PatchError):
            parse_patch('["add"]')


class TestJsonPatcher:
    """Tests for JsonPatcher.apply."""

    @pytest.fixture
    def patcher(self):
        return JsonPatcher()

    def test_replace(self, patcher):
        doc = make_design()
        patched = patcher.apply(doc, [{"op": "replace", "path": "/graph/nodes/1/props/text", "value": "See you"}])

        assert patched["graph"]["nodes"][1]["props"]["text"] == "See you"
        assert doc["graph"]["nodes"][1]["props"]["text"] == "Goodbye"

    def test_add_node_and_edge(self, patcher):
        patched = patcher.apply(json.dumps(make_design()).encode(), [
            {"op": "add", "path": "/graph/nodes/-", "value": {"id": "extra", "kind": "message", "props": {"text": "x"}}},
            {"op": "add", "path": "/graph/edges/-", "value": {"from": "welcome", "to": "extra"}},
        ])

        assert patched["graph"]["nodes"][-1]["id"] == "extra"
        assert patched["graph"]["edges"][-1] == {"from": "welcome", "to": "extra"}

    def test_empty_patch_roundtrip(self, patcher):
        doc = make_design()
        patched = patcher.apply(doc, b"[]")

        assert patched == doc
        assert patched is not doc
        assert normalize_document(patched) == normalize_document(doc)

    def test_failed_test_op(self, patcher):
        with pytest.raises(PatchError) as exc_info:
            patcher.apply(make_design(), [{"op": "test", "path": "/bot/id", "value": "other"}])
        assert exc_info.value.operation == {"op": "test", "path": "/bot/id", "value": "other"}

    def test_missing_path(self, patcher):
        with pytest.raises(PatchError):
            patcher.apply(make_design(), [{"op": "remove", "path": "/graph/nodes/9"}])

    def test_unknown_op(self, patcher):
        with pytest.raises(PatchError):
            patcher.apply(make_design(), [{"op": "explode", "path": "/bot"}])

    def test_missing_value(self, patcher):
        with pytest.raises(PatchError):
            patcher.apply(make_design(), [{"op": "add", "path": "/bot/name"}])

    def test_atomic_on_failure(self, patcher):
        doc = make_design()
        before = json.dumps(doc, sort_keys=True)
        with pytest.raises(PatchError):
            patcher.apply(doc, [
                {"op": "replace", "path": "/bot/id", "value": "changed"},
                {"op": "remove", "path": "/does/not/exist"},
            ])
        assert json.dumps(doc, sort_keys=True) == before

    def test_root_must_stay_object(self, patcher):
        with pytest.raises(PatchError):
            patcher.apply(make_design(), [{"op": "replace", "path": "", "value": [1, 2]}])

    def test_document_not_object(self, patcher):
        with pytest.raises(DecodeError):
            patcher.apply(b"[1]", [{"op": "add", "path": "/x", "value": 1}])
