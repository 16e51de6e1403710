"""
WhatsApp Business adapter.

Per-field limits expressible as Capabilities live in WHATSAPP_CAPABILITIES
and are enforced by the size check. check() covers what Capabilities
cannot express: the total row count of a list across sections and the
title limits of sections and rows.
"""

from __future__ import annotations

from typing import List

from ..component.spec import ComponentSpec
from ..validate.issues import Issue, Severity
from .base import Adapter, Capabilities

WHATSAPP_CAPABILITIES = Capabilities(
    supports_hsm=True,
    supports_rich_text=False,
    max_text_len=1024,
    max_buttons=3,
    button_kinds=frozenset({"reply", "url", "call"}),
    supports_carousel=False,
    supports_list_picker=True,
    max_list_items=10,
    max_list_sections=10,
    max_button_title_len=20,
    max_description_len=72,
    max_footer_len=60,
    max_header_len=60,
)

MAX_LIST_ROWS = 10
MAX_ROW_TITLE_LEN = 24
MAX_SECTION_TITLE_LEN = 24


class WhatsAppAdapter(Adapter):
    """Adapter for the WhatsApp Business API."""

    name = "whatsapp"

    def __init__(self) -> None:
        super().__init__(WHATSAPP_CAPABILITIES)

    def check(self, spec: ComponentSpec, path: str) -> List[Issue]:
        if spec.kind != "listpicker":
            return []

        issues: List[Issue] = []
        sections = spec.meta.get("sections") or []
        total_rows = 0
        for i, section in enumerate(sections):
            section_path = f"{path}.view.meta.sections[{i}]"
            title = section.get("title") or ""
            if len(title) > MAX_SECTION_TITLE_LEN:
                issues.append(Issue(
                    Severity.ERROR,
                    "whatsapp.section.title.max_length",
                    f"section title has {len(title)} characters, maximum is {MAX_SECTION_TITLE_LEN}",
                    f"{section_path}.title",
                ))
            items = section.get("items") or []
            total_rows += len(items)
            for j, item in enumerate(items):
                item_title = item.get("title") or ""
                if len(item_title) > MAX_ROW_TITLE_LEN:
                    issues.append(Issue(
                        Severity.ERROR,
                        "whatsapp.item.title.max_length",
                        f"row title has {len(item_title)} characters, maximum is {MAX_ROW_TITLE_LEN}",
                        f"{section_path}.items[{j}].title",
                    ))

        if total_rows > MAX_LIST_ROWS:
            issues.append(Issue(
                Severity.ERROR,
                "whatsapp.list.total_items.max_count",
                f"list has {total_rows} rows, maximum is {MAX_LIST_ROWS} across all sections",
                f"{path}.view.meta.sections",
            ))
        return issues
