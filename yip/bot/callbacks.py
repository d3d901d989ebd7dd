from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from yip.errors import ProtocolError

SEPARATOR = "|"

_MAC_RE = re.compile(r"^[0-9A-Fa-f]{2}(:[0-9A-Fa-f]{2}){5}$")


class Action(str, Enum):
    BLOCK = "block"
    UNBLOCK = "unblock"


@dataclass(frozen=True)
class CallbackToken:
    """Action and MAC address bound to an inline menu item.

    Encoded as ``"<action>|<mac>"`` so it fits in Telegram's 64 byte
    callback data.
    """

    action: Action
    mac: str

    def encode(self) -> str:
        return f"{self.action.value}{SEPARATOR}{self.mac}"

    @classmethod
    def parse(cls, data: str) -> "CallbackToken":
        return cls.from_args(data.split(SEPARATOR))

    @classmethod
    def from_args(cls, args: Sequence[str]) -> "CallbackToken":
        """Decode ``[action, mac]``.

        The action may carry a leading slash (``/block``). Raises
        ProtocolError for anything that is not exactly a known action
        followed by a MAC address.
        """
        if len(args) != 2:
            raise ProtocolError(f"expected 2 callback fields, got {len(args)}")

        raw_action, raw_mac = (str(a).strip() for a in args)
        try:
            action = Action(raw_action.removeprefix("/"))
        except ValueError:
            raise ProtocolError(f"unknown action {raw_action!r}") from None

        if not _MAC_RE.match(raw_mac):
            raise ProtocolError(f"invalid MAC address {raw_mac!r}")
        return cls(action=action, mac=raw_mac)
