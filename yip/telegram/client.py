from __future__ import annotations

from typing import Any

import httpx

from yip.bot.events import Menu
from yip.yip_logging import get_logger

log = get_logger("YIP.Telegram")


class TelegramError(RuntimeError):
    """Raised when a Bot API call fails or answers ``ok: false``."""


def reply_markup(menu: Menu) -> dict[str, Any]:
    if menu.inline:
        return {
            "inline_keyboard": [
                [
                    {"text": item.label, "callback_data": item.token.encode()}
                    if item.token is not None
                    else {"text": item.label, "callback_data": item.label}
                    for item in row
                ]
                for row in menu.rows
            ]
        }
    return {
        "keyboard": [[{"text": item.label} for item in row] for row in menu.rows],
        "resize_keyboard": True,
    }


class TelegramClient:
    """Minimal synchronous Telegram Bot API client.

    Also serves as the bot's outbound transport (send_text / send_menu /
    acknowledge).
    """

    def __init__(
        self,
        token: str,
        *,
        api_url: str = "https://api.telegram.org",
        timeout_s: float = 15.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._base = f"{api_url.rstrip('/')}/bot{token}"
        self._timeout_s = timeout_s
        self._client = client or httpx.Client(timeout=timeout_s)
        self._owns_client = client is None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def call(self, method: str, payload: dict[str, Any] | None = None, *, timeout: float | None = None) -> Any:
        try:
            resp = self._client.post(
                f"{self._base}/{method}",
                json=payload or {},
                timeout=timeout if timeout is not None else self._timeout_s,
            )
            data = resp.json()
        except httpx.HTTPError as exc:
            # The URL holds the bot token; keep it out of the message.
            raise TelegramError(f"{method}: {type(exc).__name__}") from None
        except ValueError as exc:
            raise TelegramError(f"{method}: response is not JSON") from exc

        if not isinstance(data, dict) or not data.get("ok"):
            description = data.get("description") if isinstance(data, dict) else None
            raise TelegramError(f"{method}: {description or f'HTTP {resp.status_code}'}")
        return data.get("result")

    def send_message(self, chat_id: int, text: str, markup: dict[str, Any] | None = None) -> Any:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if markup is not None:
            payload["reply_markup"] = markup
        return self.call("sendMessage", payload)

    def answer_callback_query(self, callback_query_id: str, text: str | None = None) -> Any:
        payload: dict[str, Any] = {"callback_query_id": callback_query_id}
        if text:
            payload["text"] = text
        return self.call("answerCallbackQuery", payload)

    def get_updates(self, offset: int | None = None, timeout: int = 10) -> list[dict[str, Any]]:
        payload: dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message", "callback_query"]}
        if offset is not None:
            payload["offset"] = offset
        # Leave headroom over the server-side long-poll timeout.
        result = self.call("getUpdates", payload, timeout=timeout + self._timeout_s)
        return result if isinstance(result, list) else []

    def set_webhook(self, url: str, secret_token: str = "") -> Any:
        payload: dict[str, Any] = {"url": url, "allowed_updates": ["message", "callback_query"]}
        if secret_token:
            payload["secret_token"] = secret_token
        return self.call("setWebhook", payload)

    def delete_webhook(self) -> Any:
        return self.call("deleteWebhook", {})

    # Transport

    def send_text(self, chat_id: int, text: str) -> None:
        self.send_message(chat_id, text)

    def send_menu(self, chat_id: int, text: str, menu: Menu) -> None:
        self.send_message(chat_id, text, reply_markup(menu))

    def acknowledge(self, callback_id: str) -> None:
        if not callback_id:
            return
        try:
            self.answer_callback_query(callback_id)
        except TelegramError as exc:
            # Expired callback queries cannot be answered; nothing to retry.
            log.warning("YIP.Telegram.AckFailed", extra={"fields": {"callback_id": callback_id, "error": str(exc)}})
