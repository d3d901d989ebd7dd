"""
Telegram Bot API transport.
"""

from yip.telegram.client import TelegramClient, TelegramError
from yip.telegram.poller import UpdatePoller
from yip.telegram.updates import parse_update

__all__ = ["TelegramClient", "TelegramError", "UpdatePoller", "parse_update"]
