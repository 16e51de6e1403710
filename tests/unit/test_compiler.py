"""
Unit tests for the Compiler.

Tests cover:
- Route building in document order with adapter transforms
- props_ref resolution
- Fatal errors located at the failing node
- Checksum determinism over key order
- Plan identity and constraints snapshot
"""

import json

import pytest

from flowkit.adapter import Capabilities, GenericAdapter, WhatsAppAdapter
from flowkit.compile import Compiler, RuntimeContext
from flowkit.component import default_registry
from flowkit.design import DesignDoc
from flowkit.errors import AdapterTransformError, CompileError, PropsError, TemplateParseError, UnknownKindError
from flowkit.template import TemplatePolicy
from tests.factories import make_design, message_node


class TestCompiler:
    """Tests for Compiler.compile."""

    @pytest.fixture
    def compiler(self):
        return Compiler()

    @pytest.fixture
    def registry(self):
        registry = default_registry()
        registry.freeze()
        return registry

    def test_compile_valid(self, compiler, registry):
        result = compiler.compile(make_design(), registry, WhatsAppAdapter())

        assert not result.has_errors
        assert [r.node for r in result.plan.routes] == ["welcome", "bye"]
        assert result.plan.adapter == "whatsapp"
        assert result.plan.plan_id == "v1-whatsapp"
        assert result.plan.design_checksum == result.checksum
        assert result.plan.constraints == {"max_text_len": 1024, "max_buttons": 3}
        assert result.plan.schema == "flowkit/1.0/plan"
        assert [i.code for i in result.issues] == ["text.length.deferred"]

    def test_version_id_overrides_plan_id(self, compiler, registry):
        result = compiler.compile(make_design(), registry, WhatsAppAdapter(), version_id="01HVXYZ")
        assert result.plan.plan_id == "01HVXYZ-whatsapp"

    def test_accepts_bytes_and_designdoc(self, compiler, registry):
        raw = make_design()
        from_bytes = compiler.compile(json.dumps(raw).encode(), registry, WhatsAppAdapter())
        from_doc = compiler.compile(DesignDoc.from_dict(raw), registry, WhatsAppAdapter())

        assert from_bytes.plan.routes == from_doc.plan.routes
        assert from_doc.checksum.startswith("sha256:")

    def test_checksum_key_order(self, compiler, registry):
        raw = make_design()
        shuffled = json.loads(json.dumps(raw, sort_keys=True))
        shuffled["graph"] = {"edges": raw["graph"]["edges"], "nodes": raw["graph"]["nodes"]}

        a = compiler.compile(json.dumps(raw), registry, WhatsAppAdapter())
        b = compiler.compile(json.dumps(shuffled), registry, WhatsAppAdapter())
        assert a.checksum == b.checksum

    def test_props_ref(self, compiler, registry):
        raw = make_design(
            nodes=[{"id": "greet", "kind": "message", "props": {"text": "inline"}, "props_ref": "greeting"}],
            props={"greeting": {"text": "shared text"}},
        )
        plan = compiler.compile(raw, registry, WhatsAppAdapter()).plan

        assert plan.route("greet").view.text.raw == "shared text"

    def test_missing_props_ref(self, compiler, registry):
        raw = make_design(nodes=[{"id": "greet", "kind": "message", "props_ref": "missing"}])
        with pytest.raises(CompileError) as exc_info:
            compiler.compile(raw, registry, WhatsAppAdapter())

        assert exc_info.value.code == "PROPS_REF_NOT_FOUND"
        assert exc_info.value.path == "graph.nodes[0].props_ref"

    def test_unknown_kind_located(self, compiler, registry):
        raw = make_design(nodes=[message_node("a", "Hi"), {"id": "b", "kind": "hologram"}])
        with pytest.raises(UnknownKindError) as exc_info:
            compiler.compile(raw, registry, WhatsAppAdapter())

        assert exc_info.value.node_id == "b"
        assert exc_info.value.path == "graph.nodes[1]"

    def test_props_error_located(self, compiler, registry):
        raw = make_design(nodes=[{"id": "ask", "kind": "confirm", "props": {}}])
        with pytest.raises(PropsError) as exc_info:
            compiler.compile(raw, registry, WhatsAppAdapter())

        assert exc_info.value.node_id == "ask"
        assert exc_info.value.path == "graph.nodes[0].props.title"

    def test_template_parse_fatal(self, compiler, registry):
        raw = make_design(nodes=[message_node("a", "Hi {{ user.name")])
        with pytest.raises(TemplateParseError) as exc_info:
            compiler.compile(raw, registry, WhatsAppAdapter())
        assert exc_info.value.node_id == "a"

    def test_adapter_transform_fatal(self, compiler, registry):
        raw = make_design(nodes=[{"id": "promo", "kind": "message", "props": {"hsm": {"name": "promo"}}}])
        with pytest.raises(AdapterTransformError):
            compiler.compile(raw, registry, GenericAdapter("sms"))

    def test_buttons_clamped_and_reported(self, compiler, registry):
        raw = make_design(nodes=[{
            "id": "menu",
            "kind": "buttons",
            "props": {"text": "Menu", "buttons": [{"label": f"Option {i}"} for i in range(5)]},
        }])
        result = compiler.compile(raw, registry, WhatsAppAdapter())

        assert len(result.plan.route("menu").view.buttons) == 3
        assert "adapter.buttons.exceeded" in [i.code for i in result.issues]
        assert not result.has_errors

    def test_text_too_long_for_channel(self, compiler, registry):
        raw = make_design(nodes=[message_node("hello", "Hello {{user.name}}")], channels=["tiny"])
        adapter = GenericAdapter("tiny", Capabilities(max_text_len=10))
        result = compiler.compile(raw, registry, adapter)

        assert result.has_errors
        error = [i for i in result.issues if i.blocking][0]
        assert error.code == "text.length.exceeded"
        assert error.path == "routes[0].view.text"

    def test_strict_policy(self, registry):
        raw = make_design(nodes=[message_node("a", "{{ user.name | explode }}")])
        lax = Compiler().compile(raw, registry, WhatsAppAdapter())
        strict = Compiler(policy=TemplatePolicy.strict_policy()).compile(raw, registry, WhatsAppAdapter())

        assert not lax.has_errors
        assert strict.has_errors

    def test_runtime_context_defaults(self):
        doc = DesignDoc.from_dict(make_design(profile={"context": {
            "lang": {"type": "string", "default": "en"},
            "zip": {"type": "string"},
        }}))
        ctx = RuntimeContext.from_design(doc)

        assert ctx.context == {"lang": "en"}
        assert ctx.template_scope() == {"context": {"lang": "en"}, "profile": {}}

    def test_plan_to_dict(self, compiler, registry):
        data = compiler.compile(make_design(), registry, WhatsAppAdapter()).plan.to_dict()

        assert set(data) == {"schema", "plan_id", "design_checksum", "adapter", "routes", "constraints"}
        assert data["routes"][1] == {
            "node": "bye",
            "view": {
                "kind": "message",
                "text": {
                    "raw": "Goodbye",
                    "template": False,
                    "meta": {
                        "is_template": False,
                        "vars": [],
                        "filters": [],
                        "tags": [],
                        "estimated_static_length": 7,
                    },
                },
            },
        }

    def test_does_not_mutate_input(self, compiler, registry):
        raw = make_design()
        before = json.dumps(raw, sort_keys=True)
        compiler.compile(raw, registry, WhatsAppAdapter())
        assert json.dumps(raw, sort_keys=True) == before

    def test_invalid_behavior_blocks(self, compiler, registry):
        raw = make_design(nodes=[{
            "id": "ask",
            "kind": "message",
            "props": {
                "text": "Your order number?",
                "timeout": {"duration": -5, "action": "explode", "max_attempts": -1},
                "delay": {"before": -100},
            },
        }])
        result = compiler.compile(raw, registry, WhatsAppAdapter())

        assert result.has_errors
        assert {i.code for i in result.issues if i.blocking} == {
            "behavior.timeout.invalid_duration",
            "behavior.timeout.invalid_action",
            "behavior.timeout.invalid_max_attempts",
            "behavior.delay.invalid_before",
        }
