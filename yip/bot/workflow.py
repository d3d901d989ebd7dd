"""
Device workflows: render a device menu, then act on the selected entry.

Every public method returns a Reply and never raises; router failures are
logged and turned into a fixed message.
"""

from __future__ import annotations

from typing import Callable, Sequence, TypeVar

from yip.bot.callbacks import Action, CallbackToken
from yip.bot.events import Menu, MenuItem, Reply
from yip.bot.name_cache import NameCache
from yip.errors import ProtocolError
from yip.routers.base import Device, RouterBackend
from yip.yip_logging import get_logger

log = get_logger("YIP.Workflow")

INVALID_COMMAND = "Invalid command"
NOTHING_TO_UNBLOCK = "No devices are blocked"
NOTHING_TO_BLOCK = "No devices are connected"

T = TypeVar("T")

_ACTION_MESSAGES = {
    Action.BLOCK: ("Device {mac} blocked successfully", "Failed to block the device"),
    Action.UNBLOCK: ("Device {mac} unblocked successfully", "Failed to unblock the device"),
}


def device_label(device: Device) -> str:
    return f"{device.mac_address} ({device.name})"


class DeviceWorkflow:
    def __init__(self, router: RouterBackend, name_cache: NameCache) -> None:
        self.router = router
        self.name_cache = name_cache

    def render_blacklist(self) -> Reply:
        """Menu of allowed devices; selecting one blocks it."""
        ok, devices = self._call("list_devices", self.router.list_devices)
        if not ok:
            return Reply("Failed to list devices")

        for d in devices:
            self.name_cache.remember(d.mac_address, d.name)
        if not devices:
            return Reply(NOTHING_TO_BLOCK)

        return Reply("Choose the device to block:", self._menu(devices, Action.BLOCK))

    def render_whitelist(self) -> Reply:
        """Menu of blocked devices, named from the cache; selecting one unblocks it."""
        ok, devices = self._call("get_filtered_devices", self.router.get_filtered_devices)
        if not ok:
            return Reply("Failed to show blacklist")
        if not devices:
            return Reply(NOTHING_TO_UNBLOCK)

        named: list[Device] = []
        for d in devices:
            cached = self.name_cache.lookup(d.mac_address)
            named.append(Device(mac_address=d.mac_address, name=cached) if cached else d)

        return Reply("Choose the device to unblock:", self._menu(named, Action.UNBLOCK))

    def execute(self, args: Sequence[str]) -> Reply:
        try:
            token = CallbackToken.from_args(args)
        except ProtocolError as exc:
            log.warning("YIP.Workflow.InvalidCallback", extra={"fields": {"error": str(exc)}})
            return Reply(INVALID_COMMAND)

        if token.action is Action.BLOCK:
            op_name, op = "filter_device_by_mac", self.router.filter_device_by_mac
        else:
            op_name, op = "unfilter_device_by_mac", self.router.unfilter_device_by_mac

        ok, _ = self._call(op_name, lambda: op(token.mac), mac=token.mac)
        success, failure = _ACTION_MESSAGES[token.action]
        if not ok:
            return Reply(failure)
        log.info("YIP.Workflow.Applied", extra={"fields": {"action": token.action.value, "mac": token.mac}})
        return Reply(success.format(mac=token.mac))

    def reauthenticate_router(self) -> Reply:
        ok, _ = self._call("refresh_token", self.router.refresh_token)
        if not ok:
            return Reply("Failed to reauthenticate the router")
        return Reply("Router reauthenticated successfully")

    def clear_blacklist(self) -> Reply:
        ok, _ = self._call("clear_mac_filters", self.router.clear_mac_filters)
        if not ok:
            return Reply("Failed to clear MAC filters")
        return Reply("All devices are allowed now")

    def _menu(self, devices: Sequence[Device], action: Action) -> Menu:
        rows = tuple(
            (MenuItem(device_label(d), CallbackToken(action=action, mac=d.mac_address)),)
            for d in devices
        )
        return Menu(rows=rows, inline=True)

    def _call(self, op: str, fn: Callable[[], T], **fields: str) -> tuple[bool, T | None]:
        try:
            return True, fn()
        except Exception as exc:
            log.error(
                "YIP.Router.Failed",
                extra={"fields": {"op": op, "backend": self.router.name, "error": repr(exc), **fields}},
            )
            return False, None
