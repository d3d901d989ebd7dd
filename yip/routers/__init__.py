"""
Router backends.

Backends expose the MAC filter operations of a network router.
"""

from yip.routers.base import Device, RouterBackend, RouterError, canonical_mac
from yip.routers.registry import RouterRegistry, default_registry

__all__ = [
    "Device",
    "RouterBackend",
    "RouterError",
    "RouterRegistry",
    "canonical_mac",
    "default_registry",
]
