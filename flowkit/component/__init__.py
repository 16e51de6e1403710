"""
Conversational components for Flowkit.

Each component kind turns a node's props into a channel-neutral
ComponentSpec. Kinds are dispatched through a ComponentRegistry.
"""

from .base import Attached, Component, PropsReader, parse_behavior, parse_persistence, parse_text
from .choice import ButtonsComponent, CarouselComponent, ListPickerComponent
from .control import DelayComponent, TermsGateComponent
from .location import GeoResolveComponent, LocationCaptureComponent
from .message import ConfirmComponent, MessageComponent
from .registry import ComponentRegistry, default_registry
from .spec import (
    Behavior,
    Button,
    ComponentSpec,
    DelayBehavior,
    Escalation,
    ExperimentBehavior,
    ExperimentVariant,
    PersistenceRule,
    TextValue,
    TimeoutBehavior,
    ValidationBehavior,
)

__all__ = [
    "Attached",
    "Behavior",
    "Button",
    "ButtonsComponent",
    "CarouselComponent",
    "Component",
    "ComponentRegistry",
    "ComponentSpec",
    "ConfirmComponent",
    "DelayBehavior",
    "DelayComponent",
    "Escalation",
    "ExperimentBehavior",
    "ExperimentVariant",
    "GeoResolveComponent",
    "ListPickerComponent",
    "LocationCaptureComponent",
    "MessageComponent",
    "PersistenceRule",
    "PropsReader",
    "TermsGateComponent",
    "TextValue",
    "TimeoutBehavior",
    "ValidationBehavior",
    "default_registry",
    "parse_behavior",
    "parse_persistence",
    "parse_text",
]
