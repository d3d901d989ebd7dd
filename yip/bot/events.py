"""
Inbound events and outbound replies exchanged with the chat transport.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol, Union

from yip.bot.callbacks import CallbackToken


@dataclass(frozen=True)
class Command:
    """A typed ``/command`` with whitespace separated arguments."""

    identity: int
    chat_id: int
    name: str
    args: tuple[str, ...] = ()


@dataclass(frozen=True)
class Selection:
    """A press on the main (reply) keyboard, carried as the button text."""

    identity: int
    chat_id: int
    text: str


@dataclass(frozen=True)
class CallbackSelection:
    """A press on an inline menu item."""

    identity: int
    chat_id: int
    callback_id: str
    args: tuple[str, ...] = ()


InboundEvent = Union[Command, Selection, CallbackSelection]


class Button(str, Enum):
    """Main keyboard buttons; the value is the label shown to the user."""

    REAUTH_ROUTER = "🔐 Reauth Router"
    BLACKLIST_MAC = "👎 Deny MAC"
    WHITELIST_MAC = "👍 Allow MAC"
    CLEAR_BLACKLIST = "🧹 Clear Blacklist"


@dataclass(frozen=True)
class MenuItem:
    """One menu entry. Items without a token are plain reply buttons."""

    label: str
    token: Optional[CallbackToken] = None


@dataclass(frozen=True)
class Menu:
    rows: tuple[tuple[MenuItem, ...], ...]
    inline: bool = False

    @property
    def items(self) -> list[MenuItem]:
        return [item for row in self.rows for item in row]


@dataclass(frozen=True)
class Reply:
    text: str
    menu: Optional[Menu] = field(default=None)


MAIN_KEYBOARD = Menu(
    rows=(
        (MenuItem(Button.REAUTH_ROUTER.value),),
        (MenuItem(Button.BLACKLIST_MAC.value), MenuItem(Button.WHITELIST_MAC.value)),
        (MenuItem(Button.CLEAR_BLACKLIST.value),),
    ),
    inline=False,
)


class Transport(Protocol):
    def send_text(self, chat_id: int, text: str) -> None:
        ...

    def send_menu(self, chat_id: int, text: str, menu: Menu) -> None:
        ...

    def acknowledge(self, callback_id: str) -> None:
        ...
