from __future__ import annotations

from typing import Any, Dict, List

import pytest

from yip.bot.auth import CredentialGate
from yip.bot.dispatcher import CommandDispatcher
from yip.bot.events import Menu
from yip.bot.name_cache import NameCache
from yip.bot.workflow import DeviceWorkflow
from yip.routers.base import Device, RouterBackend, RouterError

SECRET = "hunter2"


class FakeRouter(RouterBackend):
    """Scriptable router: set the device lists, make operations fail."""

    def __init__(self, name: str = "fake", config: Dict[str, Any] | None = None):
        super().__init__(name, config or {})
        self.allowed: List[Device] = []
        self.denied: List[Device] = []
        self.failing: set[str] = set()
        self.calls: List[tuple] = []

    def _record(self, op: str, *args: Any) -> None:
        self.calls.append((op, *args))
        if op in self.failing:
            raise RouterError(f"{op} exploded: secret internals")

    def health(self) -> Dict[str, Any]:
        return {"status": "healthy", "message": "fake", "details": {}}

    def refresh_token(self) -> None:
        self._record("refresh_token")

    def list_devices(self) -> List[Device]:
        self._record("list_devices")
        return list(self.allowed)

    def get_filtered_devices(self) -> List[Device]:
        self._record("get_filtered_devices")
        return list(self.denied)

    def filter_device_by_mac(self, mac: str) -> None:
        self._record("filter_device_by_mac", mac)

    def unfilter_device_by_mac(self, mac: str) -> None:
        self._record("unfilter_device_by_mac", mac)

    def clear_mac_filters(self) -> None:
        self._record("clear_mac_filters")


class RecordingTransport:
    def __init__(self) -> None:
        self.sent: List[tuple] = []
        self.acks: List[str] = []

    def send_text(self, chat_id: int, text: str) -> None:
        self.sent.append((chat_id, text, None))

    def send_menu(self, chat_id: int, text: str, menu: Menu) -> None:
        self.sent.append((chat_id, text, menu))

    def acknowledge(self, callback_id: str) -> None:
        self.acks.append(callback_id)

    @property
    def texts(self) -> List[str]:
        return [text for _chat, text, _menu in self.sent]


@pytest.fixture
def router() -> FakeRouter:
    return FakeRouter()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def gate() -> CredentialGate:
    return CredentialGate(SECRET)


@pytest.fixture
def name_cache() -> NameCache:
    return NameCache()


@pytest.fixture
def workflow(router: FakeRouter, name_cache: NameCache) -> DeviceWorkflow:
    return DeviceWorkflow(router, name_cache)


@pytest.fixture
def dispatcher(gate: CredentialGate, workflow: DeviceWorkflow, transport: RecordingTransport) -> CommandDispatcher:
    return CommandDispatcher(gate, workflow, transport)
