"""
Base interface for router backends.

A backend talks to the actual network device and exposes the MAC filter
operations the bot needs.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Any, List, Optional
import logging
import re

_MAC_RE = re.compile(r"^[0-9A-F]{2}([-:]?)[0-9A-F]{2}(\1[0-9A-F]{2}){4}$")


def canonical_mac(raw: str) -> Optional[str]:
    """
    Canonical form of a MAC address: uppercase octets separated by colons.

    Accepts ":" or "-" separators, or none at all. Returns None for anything
    that is not six octets.
    """
    mac = str(raw).strip().upper()
    if not _MAC_RE.match(mac):
        return None
    digits = mac.replace(":", "").replace("-", "")
    return ":".join(digits[i:i + 2] for i in range(0, 12, 2))


@dataclass(frozen=True)
class Device:
    """A device as reported by the router."""

    mac_address: str
    name: str = ""


class RouterError(RuntimeError):
    """Raised when a router operation fails, whatever the underlying cause."""


class RouterBackend(ABC):
    """
    Base class for all router backends.

    Backends share a plugin-style lifecycle:
    - start(): open connections, authenticate if needed
    - stop(): release resources
    - health(): report backend health

    and the MAC filter operations. Every operation raises RouterError on
    failure. Operations may be called from several threads at once.
    """

    def __init__(self, name: str, config: Dict[str, Any]):
        """
        Initialize backend with name and configuration.

        Args:
            name: Registered backend identifier
            config: Backend-specific configuration dict
        """
        self.name = name
        self.config = config
        self._started = False
        self._logger = logging.getLogger(f"yip.router.{name}")

    def start(self) -> None:
        """Start the backend. Must be idempotent."""
        self._mark_started()

    def stop(self) -> None:
        """Stop the backend. Must be idempotent."""
        self._mark_stopped()

    @abstractmethod
    def health(self) -> Dict[str, Any]:
        """
        Report backend health status.

        Returns:
            {
                "status": "healthy" | "degraded" | "unhealthy",
                "message": str,
                "details": dict
            }
        """

    @abstractmethod
    def refresh_token(self) -> None:
        """Re-authenticate against the router."""

    @abstractmethod
    def list_devices(self) -> List[Device]:
        """Devices currently allowed on the network."""

    @abstractmethod
    def get_filtered_devices(self) -> List[Device]:
        """Devices currently denied by the MAC filter."""

    @abstractmethod
    def filter_device_by_mac(self, mac: str) -> None:
        """Deny a device. Denying an already denied device is not an error."""

    @abstractmethod
    def unfilter_device_by_mac(self, mac: str) -> None:
        """Allow a device again."""

    @abstractmethod
    def clear_mac_filters(self) -> None:
        """Remove every MAC filter entry."""

    def _mark_started(self) -> None:
        self._started = True
        self._logger.info(f"Router backend {self.name} started")

    def _mark_stopped(self) -> None:
        self._started = False
        self._logger.info(f"Router backend {self.name} stopped")

    @property
    def is_started(self) -> bool:
        """Check if backend is currently started."""
        return self._started
