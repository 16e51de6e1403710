"""
Unit tests for capabilities and channel adapters.

Tests cover:
- Conservative Capabilities defaults
- Button clamping and kind filtering in transform(), zero limit meaning none
- HSM rejection on channels without HSM support
- WhatsApp list structure checks
- AdapterRegistry lookup
"""

import pytest

from flowkit.adapter import (
    DROPPED_BUTTONS_KEY,
    WHATSAPP_CAPABILITIES,
    AdapterRegistry,
    Capabilities,
    GenericAdapter,
    WhatsAppAdapter,
    default_adapters,
)
from flowkit.component.spec import Button, ComponentSpec, TextValue
from flowkit.errors import AdapterNotFoundError, AdapterTransformError, DuplicateRegistrationError
from flowkit.validate import SizeStep
from flowkit.validate.issues import Severity


def _buttons(*kinds):
    return tuple(Button(label=TextValue(f"b{i}"), payload=f"p{i}", kind=k) for i, k in enumerate(kinds))


class TestCapabilities:
    """Tests for Capabilities."""

    def test_conservative_defaults(self):
        caps = Capabilities()

        assert caps.supports_rich_text is False
        assert caps.supports_hsm is False
        assert caps.supports_carousel is False
        assert caps.button_kinds == frozenset({"reply"})

    def test_constraints_snapshot(self):
        assert WHATSAPP_CAPABILITIES.constraints() == {"max_text_len": 1024, "max_buttons": 3}

    def test_to_dict_sorts_kinds(self):
        assert WHATSAPP_CAPABILITIES.to_dict()["button_kinds"] == ["call", "reply", "url"]


class TestAdapterTransform:
    """Tests for Adapter.transform."""

    def test_passthrough(self):
        adapter = WhatsAppAdapter()
        spec = ComponentSpec(kind="buttons", text=TextValue("Pick"), buttons=_buttons("reply", "reply"))

        assert adapter.transform(spec) is spec

    def test_clamps_buttons(self):
        adapter = WhatsAppAdapter()
        spec = ComponentSpec(kind="buttons", text=TextValue("Pick"), buttons=_buttons(*["reply"] * 5))

        out = adapter.transform(spec)

        assert [b.payload for b in out.buttons] == ["p0", "p1", "p2"]
        assert out.meta[DROPPED_BUTTONS_KEY] == 2
        assert len(spec.buttons) == 5
        assert DROPPED_BUTTONS_KEY not in spec.meta

    def test_zero_max_buttons_is_unlimited(self):
        adapter = GenericAdapter("open", Capabilities(max_buttons=0))
        spec = ComponentSpec(kind="buttons", text=TextValue("Pick"), buttons=_buttons(*["reply"] * 5))

        assert adapter.transform(spec) is spec
        assert SizeStep().check(spec, adapter.capabilities(), "routes[0]") == []

    def test_drops_unsupported_kinds(self):
        adapter = GenericAdapter("sms")
        spec = ComponentSpec(kind="buttons", buttons=_buttons("reply", "url", "call"))

        out = adapter.transform(spec)

        assert [b.kind for b in out.buttons] == ["reply"]
        assert out.meta[DROPPED_BUTTONS_KEY] == 2

    def test_rejects_hsm_without_support(self):
        adapter = GenericAdapter("sms")
        with pytest.raises(AdapterTransformError) as exc_info:
            adapter.transform(ComponentSpec(kind="message", hsm={"name": "promo"}))
        assert exc_info.value.adapter == "sms"

    def test_hsm_on_whatsapp(self):
        spec = ComponentSpec(kind="message", hsm={"name": "promo"})
        assert WhatsAppAdapter().transform(spec) is spec


class TestWhatsAppCheck:
    """Tests for WhatsAppAdapter.check."""

    def _list(self, sections):
        return ComponentSpec(kind="listpicker", text=TextValue("Pick"), meta={"sections": sections})

    def test_valid_list(self):
        spec = self._list([{"title": "Plans", "items": [{"id": "a", "title": "Basic"}]}])
        assert WhatsAppAdapter().check(spec, "routes[0]") == []

    def test_total_rows_across_sections(self):
        sections = [
            {"title": "A", "items": [{"id": f"a{i}", "title": "x"} for i in range(6)]},
            {"title": "B", "items": [{"id": f"b{i}", "title": "y"} for i in range(5)]},
        ]
        issues = WhatsAppAdapter().check(self._list(sections), "routes[2]")

        assert [i.code for i in issues] == ["whatsapp.list.total_items.max_count"]
        assert issues[0].path == "routes[2].view.meta.sections"
        assert issues[0].severity == Severity.ERROR

    def test_title_lengths(self):
        sections = [{"title": "S" * 25, "items": [{"id": "a", "title": "T" * 25}]}]
        issues = WhatsAppAdapter().check(self._list(sections), "routes[0]")

        assert [i.code for i in issues] == ["whatsapp.section.title.max_length", "whatsapp.item.title.max_length"]
        assert issues[1].path == "routes[0].view.meta.sections[0].items[0].title"

    def test_other_kinds_ignored(self):
        assert WhatsAppAdapter().check(ComponentSpec(kind="message", text=TextValue("x" * 5000)), "r") == []


class TestAdapterRegistry:
    """Tests for AdapterRegistry."""

    def test_default_adapters(self):
        registry = default_adapters()

        assert registry.names() == ["whatsapp"]
        assert registry.get("whatsapp").name == "whatsapp"

    def test_multiple_channels(self):
        registry = default_adapters()
        registry.register(GenericAdapter("sms", Capabilities(max_text_len=160)))

        assert registry.names() == ["sms", "whatsapp"]
        assert registry.get("sms").capabilities().max_text_len == 160
        assert "sms" in registry

    def test_not_found(self):
        registry = AdapterRegistry()
        assert registry.find("telegram") is None
        with pytest.raises(AdapterNotFoundError):
            registry.get("telegram")

    def test_duplicate(self):
        registry = default_adapters()
        with pytest.raises(DuplicateRegistrationError):
            registry.register(WhatsAppAdapter())
