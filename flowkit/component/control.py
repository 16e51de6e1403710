"""
Flow control components: delay and terms_gate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict

from ..errors import PropsError
from ..template.detect import PatternDetector, TemplateDetector
from .base import PropsReader, parse_text
from .spec import ComponentSpec

if TYPE_CHECKING:
    from ..compile.context import RuntimeContext

DELAY_UNITS = ("milliseconds", "seconds", "minutes")


@dataclass(frozen=True)
class DelayComponent:
    """Pause before moving on, optionally showing a typing indicator."""

    duration: int
    unit: str = "milliseconds"
    reason: str = ""
    show_typing: bool = False
    message: str = ""
    detector: TemplateDetector = field(default_factory=PatternDetector, compare=False, repr=False)

    def kind(self) -> str:
        return "delay"

    def spec(self, context: RuntimeContext) -> ComponentSpec:
        text = parse_text(self.detector, self.message, context) if self.message else None
        return ComponentSpec(
            kind="delay",
            text=text,
            meta={
                "duration": self.duration,
                "unit": self.unit,
                "reason": self.reason,
                "show_typing": self.show_typing,
            },
        )

    @classmethod
    def from_props(cls, props: Dict[str, Any], detector: TemplateDetector) -> DelayComponent:
        reader = PropsReader(props, "delay")
        if not reader.has("duration"):
            raise PropsError("delay: field 'duration' is required", field_name="duration", path="props.duration")
        duration = reader.optional_int("duration")
        if duration < 0:
            raise PropsError("delay: duration must not be negative", field_name="duration", path="props.duration")
        unit = reader.optional_str("unit", "milliseconds")
        if unit not in DELAY_UNITS:
            raise PropsError(
                f"delay: unit must be one of {', '.join(DELAY_UNITS)}",
                field_name="unit",
                path="props.unit",
            )
        return cls(
            duration=duration,
            unit=unit,
            reason=reader.optional_str("reason"),
            show_typing=reader.optional_bool("show_typing"),
            message=reader.optional_str("message"),
            detector=detector,
        )


@dataclass(frozen=True)
class TermsGateComponent:
    """Terms acceptance gate; the backend decides whether to show it."""

    version_id: str
    text: str = ""
    remind_after_s: int = 0
    detector: TemplateDetector = field(default_factory=PatternDetector, compare=False, repr=False)

    def kind(self) -> str:
        return "terms_gate"

    def spec(self, context: RuntimeContext) -> ComponentSpec:
        text = parse_text(self.detector, self.text, context) if self.text else None
        return ComponentSpec(
            kind="terms_gate",
            text=text,
            meta={
                "version_id": self.version_id,
                "server_driven": True,
                "remind_after_s": self.remind_after_s,
            },
        )

    @classmethod
    def from_props(cls, props: Dict[str, Any], detector: TemplateDetector) -> TermsGateComponent:
        reader = PropsReader(props, "terms_gate")
        return cls(
            version_id=reader.require_str("version_id"),
            text=reader.optional_str("text"),
            remind_after_s=reader.optional_int("remind_after_s"),
            detector=detector,
        )
