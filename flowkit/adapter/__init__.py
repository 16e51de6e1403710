"""
Channel adapters for Flowkit.
"""

from .base import DROPPED_BUTTONS_KEY, Adapter, AdapterRegistry, Capabilities, GenericAdapter
from .whatsapp import WHATSAPP_CAPABILITIES, WhatsAppAdapter


def default_adapters() -> AdapterRegistry:
    """Registry with the built-in channel adapters."""
    registry = AdapterRegistry()
    registry.register(WhatsAppAdapter())
    return registry


__all__ = [
    "DROPPED_BUTTONS_KEY",
    "WHATSAPP_CAPABILITIES",
    "Adapter",
    "AdapterRegistry",
    "Capabilities",
    "GenericAdapter",
    "WhatsAppAdapter",
    "default_adapters",
]
