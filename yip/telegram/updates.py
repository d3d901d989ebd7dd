from __future__ import annotations

from typing import Any, Optional

from yip.bot.callbacks import SEPARATOR
from yip.bot.events import CallbackSelection, Command, InboundEvent, Selection


def _sender_id(obj: dict[str, Any]) -> Optional[int]:
    sender = obj.get("from")
    if not isinstance(sender, dict) or sender.get("is_bot"):
        return None
    try:
        return int(sender["id"])
    except (KeyError, TypeError, ValueError):
        return None


def _chat_id(message: Any, fallback: int) -> int:
    if isinstance(message, dict):
        chat = message.get("chat")
        if isinstance(chat, dict) and "id" in chat:
            try:
                return int(chat["id"])
            except (TypeError, ValueError):
                pass
    return fallback


def parse_command(text: str) -> tuple[str, tuple[str, ...]]:
    """Split ``/name@bot arg1 arg2`` into ``("name", ("arg1", "arg2"))``."""
    head, *args = text.split()
    name = head[1:].split("@", 1)[0].lower()
    return name, tuple(args)


def parse_update(update: dict[str, Any]) -> Optional[InboundEvent]:
    """Translate a Bot API update into a bot event.

    Returns None for updates the bot does not act on (edits, non-text
    messages, other bots).
    """
    callback = update.get("callback_query")
    if isinstance(callback, dict):
        identity = _sender_id(callback)
        if identity is None:
            return None
        data = callback.get("data")
        args = tuple(data.split(SEPARATOR)) if isinstance(data, str) else ()
        return CallbackSelection(
            identity=identity,
            chat_id=_chat_id(callback.get("message"), identity),
            callback_id=str(callback.get("id") or ""),
            args=args,
        )

    message = update.get("message")
    if not isinstance(message, dict):
        return None
    identity = _sender_id(message)
    text = message.get("text")
    if identity is None or not isinstance(text, str) or not text.strip():
        return None

    chat_id = _chat_id(message, identity)
    text = text.strip()
    if text.startswith("/"):
        name, args = parse_command(text)
        return Command(identity=identity, chat_id=chat_id, name=name, args=args)
    return Selection(identity=identity, chat_id=chat_id, text=text)
