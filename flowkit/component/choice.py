"""
Choice components: buttons, listpicker and carousel.

Structured content (list sections, carousel cards) is carried in
ComponentSpec.meta as plain JSON values; labels that the user sees are
still parsed so template syntax errors surface at compile time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Tuple

from ..errors import PropsError
from ..template.detect import PatternDetector, TemplateDetector
from .base import PropsReader, parse_text
from .spec import Button, ComponentSpec

if TYPE_CHECKING:
    from ..compile.context import RuntimeContext

BUTTON_KINDS = ("reply", "url", "call")


@dataclass(frozen=True)
class ButtonDef:
    label: str
    payload: str = ""
    kind: str = "reply"
    url: str = ""


def _read_buttons(reader: PropsReader, name: str = "buttons") -> Tuple[ButtonDef, ...]:
    buttons: List[ButtonDef] = []
    for i, item in enumerate(reader.optional_list(name)):
        b = reader.child(item, f"{name}[{i}]")
        kind = b.optional_str("kind", "reply")
        if kind not in BUTTON_KINDS:
            raise PropsError(
                f"{reader.kind}: button kind must be one of {', '.join(BUTTON_KINDS)}, got '{kind}'",
                field_name="kind",
                path=f"{b.prefix}.kind",
            )
        label = b.require_str("label")
        url = b.optional_str("url")
        if kind == "url" and not url:
            raise PropsError(f"{reader.kind}: url button requires 'url'", field_name="url", path=f"{b.prefix}.url")
        buttons.append(ButtonDef(label=label, payload=b.optional_str("payload", label), kind=kind, url=url))
    return tuple(buttons)


def _to_buttons(defs: Tuple[ButtonDef, ...], detector: TemplateDetector, context: RuntimeContext) -> Tuple[Button, ...]:
    return tuple(
        Button(label=parse_text(detector, d.label, context), payload=d.payload, kind=d.kind, url=d.url)
        for d in defs
    )


@dataclass(frozen=True)
class ButtonsComponent:
    """Text with a list of interactive buttons.

    Props:
        text: Body text (required)
        buttons: [{label, payload?, kind?, url?}] (at least one)
    """

    text: str
    buttons: Tuple[ButtonDef, ...]
    detector: TemplateDetector = field(default_factory=PatternDetector, compare=False, repr=False)

    def kind(self) -> str:
        return "buttons"

    def spec(self, context: RuntimeContext) -> ComponentSpec:
        return ComponentSpec(
            kind="buttons",
            text=parse_text(self.detector, self.text, context),
            buttons=_to_buttons(self.buttons, self.detector, context),
        )

    @classmethod
    def from_props(cls, props: Dict[str, Any], detector: TemplateDetector) -> ButtonsComponent:
        reader = PropsReader(props, "buttons")
        text = reader.require_str("text")
        buttons = _read_buttons(reader)
        if not buttons:
            raise PropsError("buttons: at least one button is required", field_name="buttons", path="props.buttons")
        return cls(text=text, buttons=buttons, detector=detector)


@dataclass(frozen=True)
class ListPickerComponent:
    """Single-choice list grouped in sections.

    Props:
        text: Body text (required)
        button_text: Label of the button that opens the list
        header, footer: Optional framing text
        sections: [{title, items: [{id, title, description?}]}] (at least one item)
    """

    text: str
    sections: Tuple[Dict[str, Any], ...]
    button_text: str = "View options"
    header: str = ""
    footer: str = ""
    detector: TemplateDetector = field(default_factory=PatternDetector, compare=False, repr=False)

    def kind(self) -> str:
        return "listpicker"

    def spec(self, context: RuntimeContext) -> ComponentSpec:
        text = parse_text(self.detector, self.text, context)
        parse_text(self.detector, self.button_text, context)
        meta: Dict[str, Any] = {
            "output_mode": "single",
            "button_text": self.button_text,
            "sections": [dict(s) for s in self.sections],
        }
        if self.header:
            meta["header"] = self.header
        if self.footer:
            meta["footer"] = self.footer
        return ComponentSpec(kind="listpicker", text=text, meta=meta)

    @classmethod
    def from_props(cls, props: Dict[str, Any], detector: TemplateDetector) -> ListPickerComponent:
        reader = PropsReader(props, "listpicker")
        text = reader.require_str("text")
        sections = []
        item_count = 0
        for i, raw in enumerate(reader.optional_list("sections")):
            s = reader.child(raw, f"sections[{i}]")
            items = []
            for j, raw_item in enumerate(s.optional_list("items")):
                it = s.child(raw_item, f"items[{j}]")
                item = {"id": it.require_str("id"), "title": it.require_str("title")}
                description = it.optional_str("description")
                if description:
                    item["description"] = description
                items.append(item)
            item_count += len(items)
            sections.append({"title": s.optional_str("title"), "items": items})
        if item_count == 0:
            raise PropsError("listpicker: at least one item is required", field_name="sections", path="props.sections")
        return cls(
            text=text,
            sections=tuple(sections),
            button_text=reader.optional_str("button_text") or "View options",
            header=reader.optional_str("header"),
            footer=reader.optional_str("footer"),
            detector=detector,
        )


@dataclass(frozen=True)
class CarouselComponent:
    """Horizontally scrolling cards.

    Props:
        text: Optional intro text
        cards: [{id?, title, description?, media_url?, price?, buttons?}] (at least one)

    A carousel whose cards all carry a price is a product carousel.
    """

    cards: Tuple[Dict[str, Any], ...]
    text: str = ""
    detector: TemplateDetector = field(default_factory=PatternDetector, compare=False, repr=False)

    def kind(self) -> str:
        return "carousel"

    def spec(self, context: RuntimeContext) -> ComponentSpec:
        text = parse_text(self.detector, self.text, context) if self.text else None
        for card in self.cards:
            parse_text(self.detector, card["title"], context)
        product = all(card.get("price") for card in self.cards)
        return ComponentSpec(
            kind="carousel",
            text=text,
            meta={
                "cards": [dict(c) for c in self.cards],
                "carousel_type": "product" if product else "generic",
            },
        )

    @classmethod
    def from_props(cls, props: Dict[str, Any], detector: TemplateDetector) -> CarouselComponent:
        reader = PropsReader(props, "carousel")
        cards = []
        for i, raw in enumerate(reader.optional_list("cards")):
            c = reader.child(raw, f"cards[{i}]")
            card: Dict[str, Any] = {"id": c.optional_str("id", f"card_{i}"), "title": c.require_str("title")}
            for key in ("description", "media_url", "price"):
                value = c.optional_str(key)
                if value:
                    card[key] = value
            buttons = _read_buttons(c)
            if buttons:
                card["buttons"] = [
                    {"label": b.label, "payload": b.payload, "kind": b.kind, **({"url": b.url} if b.url else {})}
                    for b in buttons
                ]
            cards.append(card)
        if not cards:
            raise PropsError("carousel: at least one card is required", field_name="cards", path="props.cards")
        return cls(cards=tuple(cards), text=reader.optional_str("text"), detector=detector)
