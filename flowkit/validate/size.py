"""
Size step: lengths and counts against Capabilities.

Templated text cannot be measured before rendering. Its
estimated_static_length (text with template delimiters removed) is a lower
bound of the rendered length, so exceeding the limit with it is still an
error; otherwise the final check is deferred to the sender and reported as
info.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List

from .issues import Issue, Severity
from .pipeline import SpecStep

if TYPE_CHECKING:
    from ..adapter.base import Capabilities
    from ..component.spec import ComponentSpec


def _too_long(value: Any, limit: int) -> bool:
    return limit > 0 and isinstance(value, str) and len(value) > limit


class SizeStep(SpecStep):
    name = "size"

    def check(self, spec: ComponentSpec, caps: Capabilities, path: str) -> List[Issue]:
        issues: List[Issue] = []

        if spec.text is not None:
            length = spec.text.meta.estimated_static_length
            if caps.max_text_len > 0 and length > caps.max_text_len:
                issues.append(Issue(
                    Severity.ERROR,
                    "text.length.exceeded",
                    f"text length {length} exceeds channel limit {caps.max_text_len}",
                    f"{path}.view.text",
                ))
            elif spec.text.template:
                issues.append(Issue(
                    Severity.INFO,
                    "text.length.deferred",
                    "length check deferred to runtime (post-render)",
                    f"{path}.view.text",
                ))

        if caps.max_buttons > 0 and len(spec.buttons) > caps.max_buttons:
            issues.append(Issue(
                Severity.ERROR,
                "buttons.count.exceeded",
                f"{len(spec.buttons)} buttons exceed channel limit {caps.max_buttons}",
                f"{path}.view.buttons",
            ))
        for i, button in enumerate(spec.buttons):
            length = button.label.meta.estimated_static_length
            if caps.max_button_title_len > 0 and length > caps.max_button_title_len:
                issues.append(Issue(
                    Severity.ERROR,
                    "button.title.length.exceeded",
                    f"button title length {length} exceeds limit {caps.max_button_title_len}",
                    f"{path}.view.buttons[{i}].label",
                ))

        if spec.kind == "listpicker":
            issues.extend(self._list(spec.meta, caps, path))
        elif spec.kind == "carousel":
            for i, card in enumerate(spec.meta.get("cards") or []):
                if _too_long(card.get("description"), caps.max_description_len):
                    issues.append(Issue(
                        Severity.ERROR,
                        "carousel.description.length.exceeded",
                        f"card description exceeds limit {caps.max_description_len}",
                        f"{path}.view.meta.cards[{i}].description",
                    ))
        return issues

    def _list(self, meta: Dict[str, Any], caps: Capabilities, path: str) -> List[Issue]:
        issues: List[Issue] = []
        base = f"{path}.view.meta"
        sections = meta.get("sections") or []

        if caps.max_list_sections > 0 and len(sections) > caps.max_list_sections:
            issues.append(Issue(
                Severity.ERROR,
                "list.sections.exceeded",
                f"{len(sections)} sections exceed limit {caps.max_list_sections}",
                f"{base}.sections",
            ))
        for i, section in enumerate(sections):
            items = section.get("items") or []
            if caps.max_list_items > 0 and len(items) > caps.max_list_items:
                issues.append(Issue(
                    Severity.ERROR,
                    "list.items.exceeded",
                    f"{len(items)} items exceed limit {caps.max_list_items}",
                    f"{base}.sections[{i}].items",
                ))
            for j, item in enumerate(items):
                if _too_long(item.get("description"), caps.max_description_len):
                    issues.append(Issue(
                        Severity.ERROR,
                        "list.description.length.exceeded",
                        f"item description exceeds limit {caps.max_description_len}",
                        f"{base}.sections[{i}].items[{j}].description",
                    ))

        if _too_long(meta.get("header"), caps.max_header_len):
            issues.append(Issue(
                Severity.ERROR,
                "list.header.length.exceeded",
                f"header exceeds limit {caps.max_header_len}",
                f"{base}.header",
            ))
        if _too_long(meta.get("footer"), caps.max_footer_len):
            issues.append(Issue(
                Severity.ERROR,
                "list.footer.length.exceeded",
                f"footer exceeds limit {caps.max_footer_len}",
                f"{base}.footer",
            ))
        if _too_long(meta.get("button_text"), caps.max_button_title_len):
            issues.append(Issue(
                Severity.ERROR,
                "list.button_text.length.exceeded",
                f"list button text exceeds limit {caps.max_button_title_len}",
                f"{base}.button_text",
            ))
        return issues
