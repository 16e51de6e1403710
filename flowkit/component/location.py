"""
Location components: location_capture and geo_resolve.

Neither carries user-facing text; their configuration goes to meta and the
runtime exposes the outcomes as output labels (captured/invalid/timeout and
resolved/no_match/error).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Tuple

from ..errors import PropsError
from ..template.detect import TemplateDetector
from .base import PropsReader
from .spec import ComponentSpec

if TYPE_CHECKING:
    from ..compile.context import RuntimeContext

CAPTURE_MODES = ("use_last", "share_location", "type_address")


@dataclass(frozen=True)
class LocationCaptureComponent:
    modes: Tuple[str, ...] = CAPTURE_MODES
    require_confirm: bool = False

    def kind(self) -> str:
        return "location_capture"

    def spec(self, context: RuntimeContext) -> ComponentSpec:
        return ComponentSpec(
            kind="location_capture",
            meta={"modes": list(self.modes), "require_confirm": self.require_confirm},
        )

    @classmethod
    def from_props(cls, props: Dict[str, Any], detector: TemplateDetector) -> LocationCaptureComponent:
        reader = PropsReader(props, "location_capture")
        modes = reader.optional_list("modes") or list(CAPTURE_MODES)
        for mode in modes:
            if mode not in CAPTURE_MODES:
                raise PropsError(
                    f"location_capture: unknown mode '{mode}'",
                    field_name="modes",
                    path="props.modes",
                )
        return cls(modes=tuple(modes), require_confirm=reader.optional_bool("require_confirm"))


@dataclass(frozen=True)
class GeoResolveComponent:
    quality_min: float = 0.6
    use_cache: bool = True

    def kind(self) -> str:
        return "geo_resolve"

    def spec(self, context: RuntimeContext) -> ComponentSpec:
        return ComponentSpec(
            kind="geo_resolve",
            meta={"quality_min": self.quality_min, "use_cache": self.use_cache},
        )

    @classmethod
    def from_props(cls, props: Dict[str, Any], detector: TemplateDetector) -> GeoResolveComponent:
        reader = PropsReader(props, "geo_resolve")
        quality_min = reader.optional_float("quality_min", 0.6)
        if not 0.0 <= quality_min <= 1.0:
            raise PropsError(
                "geo_resolve: quality_min must be between 0 and 1",
                field_name="quality_min",
                path="props.quality_min",
            )
        return cls(quality_min=quality_min, use_cache=reader.optional_bool("use_cache", True))
