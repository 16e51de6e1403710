"""
Text components: message and confirm.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional

from ..errors import PropsError
from ..template.detect import PatternDetector, TemplateDetector
from .base import PropsReader, parse_text
from .spec import Button, ComponentSpec

if TYPE_CHECKING:
    from ..compile.context import RuntimeContext


@dataclass(frozen=True)
class MessageComponent:
    """Plain text message, or a pre-approved template message (HSM).

    Props:
        text: Message text (required unless hsm is given)
        hsm: {"name": str} reference to an approved template
    """

    text: str = ""
    hsm: Optional[Dict[str, Any]] = None
    detector: TemplateDetector = field(default_factory=PatternDetector, compare=False, repr=False)

    def kind(self) -> str:
        return "message"

    def spec(self, context: RuntimeContext) -> ComponentSpec:
        if self.hsm is not None:
            return ComponentSpec(kind="message", hsm=dict(self.hsm))
        return ComponentSpec(kind="message", text=parse_text(self.detector, self.text, context))

    @classmethod
    def from_props(cls, props: Dict[str, Any], detector: TemplateDetector) -> MessageComponent:
        reader = PropsReader(props, "message")
        hsm = reader.optional_dict("hsm")
        if hsm is not None:
            name = reader.child(hsm, "hsm").require_str("name")
            return cls(hsm={"name": name}, detector=detector)
        if not reader.has("text"):
            raise PropsError("message: field 'text' is required", field_name="text", path="props.text")
        return cls(text=reader.require_str("text"), detector=detector)


@dataclass(frozen=True)
class ConfirmComponent:
    """Yes/no question rendered as two reply buttons.

    Props:
        title: Question text (required)
        yes / positive: Label of the affirmative button
        no / negative: Label of the negative button
    """

    title: str
    yes: str = "Yes"
    no: str = "No"
    detector: TemplateDetector = field(default_factory=PatternDetector, compare=False, repr=False)

    def kind(self) -> str:
        return "confirm"

    def spec(self, context: RuntimeContext) -> ComponentSpec:
        return ComponentSpec(
            kind="confirm",
            text=parse_text(self.detector, self.title, context),
            buttons=(
                Button(label=parse_text(self.detector, self.yes, context), payload="yes", kind="reply"),
                Button(label=parse_text(self.detector, self.no, context), payload="no", kind="reply"),
            ),
        )

    @classmethod
    def from_props(cls, props: Dict[str, Any], detector: TemplateDetector) -> ConfirmComponent:
        reader = PropsReader(props, "confirm")
        return cls(
            title=reader.require_str("title"),
            yes=reader.optional_str("yes") or reader.optional_str("positive") or "Yes",
            no=reader.optional_str("no") or reader.optional_str("negative") or "No",
            detector=detector,
        )
