"""
In-memory router backend.

Keeps a device table in process memory. Useful for trying the bot without
real hardware and as a test double.
"""

import threading
from typing import Dict, Any, List

from yip.routers.base import Device, RouterBackend, RouterError, canonical_mac


def _canonical(mac: str) -> str:
    key = canonical_mac(mac)
    if key is None:
        raise RouterError(f"Invalid MAC address: {mac!r}")
    return key


class MemoryRouter(RouterBackend):
    """
    Router backend backed by a dict.

    Config:
        {
            "devices": [{"mac": "AA:BB:CC:DD:EE:FF", "name": "phone"}, ...],
            "blocked": ["11:22:33:44:55:66", ...]
        }

    Like many consumer routers, the filtered list does not keep device
    names: get_filtered_devices() returns bare MAC addresses.
    """

    def __init__(self, name: str, config: Dict[str, Any]):
        super().__init__(name, config)

        self._lock = threading.Lock()
        # mac -> name, in insertion order
        self._devices: Dict[str, str] = {}
        self._blocked: Dict[str, None] = {}
        self._refresh_count = 0

        for entry in config.get("devices", []):
            if isinstance(entry, str):
                mac, label = canonical_mac(entry), ""
            elif isinstance(entry, dict) and entry.get("mac"):
                mac, label = canonical_mac(entry["mac"]), str(entry.get("name") or "")
            else:
                mac = None
            if mac is None:
                raise ValueError(f"Invalid device entry: {entry!r}")
            self._devices[mac] = label

        for raw in config.get("blocked", []):
            mac = canonical_mac(raw)
            if mac is None:
                raise ValueError(f"Invalid blocked entry: {raw!r}")
            self._blocked[mac] = None

    def health(self) -> Dict[str, Any]:
        with self._lock:
            known = len(self._devices)
            blocked = len(self._blocked)
        return {
            "status": "healthy",
            "message": f"{known} devices, {blocked} blocked",
            "details": {"devices": known, "blocked": blocked, "refreshes": self._refresh_count},
        }

    def refresh_token(self) -> None:
        with self._lock:
            self._refresh_count += 1

    def list_devices(self) -> List[Device]:
        with self._lock:
            return [
                Device(mac_address=mac, name=label)
                for mac, label in self._devices.items()
                if mac not in self._blocked
            ]

    def get_filtered_devices(self) -> List[Device]:
        with self._lock:
            return [Device(mac_address=mac) for mac in self._blocked]

    def filter_device_by_mac(self, mac: str) -> None:
        key = _canonical(mac)
        with self._lock:
            self._blocked[key] = None

    def unfilter_device_by_mac(self, mac: str) -> None:
        key = _canonical(mac)
        with self._lock:
            self._blocked.pop(key, None)

    def clear_mac_filters(self) -> None:
        with self._lock:
            self._blocked.clear()
