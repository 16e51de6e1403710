"""
Channel capabilities and adapters.

Capabilities describe one channel's structural limits and are the source
of truth for the size check and for adapter transforms. An Adapter names a
channel, exposes its capabilities, and localizes a channel-neutral
ComponentSpec to that channel.

Transform rules (base Adapter):
    - HSM specs on a channel without HSM support are rejected
      (AdapterTransformError); nothing else is rejected
    - Buttons of unsupported kinds are dropped
    - Buttons beyond max_buttons are dropped (0 means no limit)
    - The number of dropped buttons is recorded in
      meta["adapter.dropped_buttons"] so validation can report it

Invariants:
    - transform() never mutates its input; it returns a new spec
    - Capabilities defaults are conservative (no rich text, small limits)

How to change safely:
    - Channel specific rules go in a subclass's check(); keep transform()
      to clamping so the compile stays predictable
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, List, Optional

from ..component.spec import ComponentSpec
from ..errors import AdapterNotFoundError, AdapterTransformError, DuplicateRegistrationError

if TYPE_CHECKING:
    from ..compile.context import RuntimeContext
    from ..validate.issues import Issue

logger = logging.getLogger(__name__)

DROPPED_BUTTONS_KEY = "adapter.dropped_buttons"


@dataclass(frozen=True)
class Capabilities:
    """Structural limits of a messaging channel.

    Attributes:
        supports_hsm: Pre-approved template messages
        supports_rich_text: Markdown or similar formatting
        max_text_len: Maximum characters in a text body
        max_buttons: Maximum buttons per message (0 means no limit)
        button_kinds: Supported button kinds
        supports_carousel: Card carousels
        supports_list_picker: Sectioned selection lists
        max_list_items: Items per list section
        max_list_sections: Sections per list
        max_button_title_len: Characters in a button title
        max_description_len: Characters in a list item description
        max_footer_len: Characters in a footer
        max_header_len: Characters in a header
    """

    supports_hsm: bool = False
    supports_rich_text: bool = False
    max_text_len: int = 1000
    max_buttons: int = 3
    button_kinds: FrozenSet[str] = frozenset({"reply"})
    supports_carousel: bool = False
    supports_list_picker: bool = False
    max_list_items: int = 5
    max_list_sections: int = 3
    max_button_title_len: int = 20
    max_description_len: int = 50
    max_footer_len: int = 40
    max_header_len: int = 40

    def constraints(self) -> Dict[str, int]:
        """Snapshot embedded in execution plans."""
        return {"max_text_len": self.max_text_len, "max_buttons": self.max_buttons}

    def to_dict(self) -> Dict[str, Any]:
        result = dataclasses.asdict(self)
        result["button_kinds"] = sorted(self.button_kinds)
        return result


class Adapter:
    """Base channel adapter.

    Subclasses set name and capabilities, and may override check() with
    channel-only structural rules.
    """

    name: str = "generic"

    def __init__(self, caps: Optional[Capabilities] = None) -> None:
        self._caps = caps or Capabilities()

    def capabilities(self) -> Capabilities:
        return self._caps

    def transform(self, spec: ComponentSpec, context: Optional[RuntimeContext] = None) -> ComponentSpec:
        """Adapt a spec to this channel.

        Raises:
            AdapterTransformError: If the spec cannot structurally fit
        """
        caps = self._caps
        if spec.hsm is not None and not caps.supports_hsm:
            raise AdapterTransformError(f"{self.name}: HSM messages are not supported", adapter=self.name)

        if not spec.buttons:
            return spec

        kept = [b for b in spec.buttons if b.kind in caps.button_kinds]
        if caps.max_buttons > 0:
            kept = kept[: caps.max_buttons]
        dropped = len(spec.buttons) - len(kept)
        if dropped == 0:
            return spec

        logger.debug(f"{self.name}: dropped {dropped} button(s) from {spec.kind} spec")
        meta = dict(spec.meta)
        meta[DROPPED_BUTTONS_KEY] = dropped
        return dataclasses.replace(spec, buttons=tuple(kept), meta=meta)

    def check(self, spec: ComponentSpec, path: str) -> List[Issue]:
        """Channel-only structural checks. The base adapter has none."""
        return []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class GenericAdapter(Adapter):
    """Adapter for a named channel defined only by its capabilities."""

    def __init__(self, name: str, caps: Optional[Capabilities] = None) -> None:
        super().__init__(caps)
        self.name = name


class AdapterRegistry:
    """Adapters by channel name, several channels side by side."""

    def __init__(self) -> None:
        self._adapters: Dict[str, Adapter] = {}
        self._lock = threading.Lock()

    def register(self, adapter: Adapter) -> None:
        """Register an adapter under its name.

        Raises:
            DuplicateRegistrationError: If the name is already taken
        """
        with self._lock:
            if adapter.name in self._adapters:
                raise DuplicateRegistrationError(f"adapter '{adapter.name}' already registered")
            self._adapters[adapter.name] = adapter

    def get(self, name: str) -> Adapter:
        """Look up an adapter.

        Raises:
            AdapterNotFoundError: If no adapter has that name
        """
        adapter = self._adapters.get(name)
        if adapter is None:
            raise AdapterNotFoundError(name)
        return adapter

    def find(self, name: str) -> Optional[Adapter]:
        return self._adapters.get(name)

    def names(self) -> List[str]:
        return sorted(self._adapters)

    def __contains__(self, name: str) -> bool:
        return name in self._adapters
