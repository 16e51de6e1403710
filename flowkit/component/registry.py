"""
Component registry: the kind -> factory dispatch table.

The registry is populated at startup (default_registry() registers every
built-in kind) and may be frozen before serving. new() builds the base
component through the factory and then attaches behavior and persistence
rules parsed from the same props.

Invariants:
    - Each kind is registered at most once
    - Once frozen, no new kinds can be registered
    - new() raises UnknownKindError for unregistered kinds; it never guesses

How to change safely:
    - Add a new kind by writing a class with kind()/spec()/from_props() and
      registering it in default_registry()
    - Never re-register a kind with different semantics; stored designs
      depend on it
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from ..errors import DuplicateRegistrationError, RegistryFrozenError, UnknownKindError
from ..template.detect import PatternDetector, TemplateDetector
from .base import Attached, Component, parse_behavior, parse_persistence
from .choice import ButtonsComponent, CarouselComponent, ListPickerComponent
from .control import DelayComponent, TermsGateComponent
from .location import GeoResolveComponent, LocationCaptureComponent
from .message import ConfirmComponent, MessageComponent

logger = logging.getLogger(__name__)

Factory = Callable[[Dict[str, Any], TemplateDetector], Component]


class ComponentRegistry:
    """Maps component kinds to factories.

    Thread-safety:
        - Registration is thread-safe (uses internal lock)
        - Lookups after freeze are lock-free

    Example:
        >>> registry = ComponentRegistry()
        >>> registry.register("message", MessageComponent.from_props)
        >>> registry.new("message", {"text": "Hi"}).kind()
        'message'
    """

    def __init__(self, detector: Optional[TemplateDetector] = None) -> None:
        self._factories: Dict[str, Factory] = {}
        self._frozen = False
        self._lock = threading.Lock()
        self.detector: TemplateDetector = detector or PatternDetector()

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, kind: str, factory: Factory) -> None:
        """Register a factory for a kind.

        Raises:
            RegistryFrozenError: If registry is frozen
            DuplicateRegistrationError: If kind is already registered
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(f"Cannot register kind '{kind}': registry is frozen")
            if kind in self._factories:
                raise DuplicateRegistrationError(f"component kind '{kind}' already registered")
            self._factories[kind] = factory
            logger.debug(f"Registered component kind: {kind}")

    def new(self, kind: str, props: Optional[Dict[str, Any]] = None) -> Component:
        """Build a component of the given kind from node props.

        Raises:
            UnknownKindError: If no factory is registered for kind
            PropsError: If props are missing a required field or malformed
            TemplateParseError: If attachment text has malformed templates
        """
        factory = self._factories.get(kind)
        if factory is None:
            raise UnknownKindError(kind)
        props = props or {}
        component = factory(props, self.detector)

        behavior = parse_behavior(props, kind, self.detector)
        persistence = parse_persistence(props, kind)
        if behavior is None and persistence is None:
            return component
        return Attached(base=component, behavior=behavior, persistence=persistence)

    def kinds(self) -> List[str]:
        return sorted(self._factories)

    def __contains__(self, kind: str) -> bool:
        return kind in self._factories

    def freeze(self) -> None:
        """Freeze the registry. Idempotent."""
        with self._lock:
            if not self._frozen:
                self._frozen = True
                logger.info(f"Component registry frozen with {len(self._factories)} kinds")


def default_registry(detector: Optional[TemplateDetector] = None) -> ComponentRegistry:
    """Registry with every built-in component kind."""
    registry = ComponentRegistry(detector)
    registry.register("message", MessageComponent.from_props)
    registry.register("confirm", ConfirmComponent.from_props)
    registry.register("buttons", ButtonsComponent.from_props)
    registry.register("listpicker", ListPickerComponent.from_props)
    registry.register("carousel", CarouselComponent.from_props)
    registry.register("delay", DelayComponent.from_props)
    registry.register("terms_gate", TermsGateComponent.from_props)
    registry.register("location_capture", LocationCaptureComponent.from_props)
    registry.register("geo_resolve", GeoResolveComponent.from_props)
    return registry
