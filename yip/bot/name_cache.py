from __future__ import annotations

import threading


def normalize_mac(mac: str) -> str:
    return mac.strip().upper()


class NameCache:
    """Last known display name per MAC address.

    The router's filtered-device listing usually has no names, so names seen
    while a device was still allowed are kept here. Empty names never
    replace a known one.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._names: dict[str, str] = {}

    def remember(self, mac: str, name: str) -> None:
        if not name or not name.strip():
            return
        key = normalize_mac(mac)
        with self._lock:
            self._names[key] = name

    def lookup(self, mac: str) -> str:
        key = normalize_mac(mac)
        with self._lock:
            return self._names.get(key, "")

    def __len__(self) -> int:
        with self._lock:
            return len(self._names)
