from __future__ import annotations

import json

import httpx
import pytest

from yip.bot.callbacks import Action, CallbackToken
from yip.bot.events import MAIN_KEYBOARD, Menu, MenuItem
from yip.telegram.client import TelegramClient, TelegramError, reply_markup

TOKEN = "123:abc"


class Recorder:
    def __init__(self, response: dict | None = None, status: int = 200) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.response = response if response is not None else {"ok": True, "result": True}
        self.status = status

    def __call__(self, request: httpx.Request) -> httpx.Response:
        method = request.url.path.rsplit("/", 1)[-1]
        self.calls.append((method, json.loads(request.content)))
        return httpx.Response(self.status, json=self.response)


def make_client(recorder: Recorder) -> TelegramClient:
    http = httpx.Client(transport=httpx.MockTransport(recorder))
    return TelegramClient(TOKEN, api_url="https://tg.test", client=http)


def test_main_keyboard_markup() -> None:
    markup = reply_markup(MAIN_KEYBOARD)
    assert markup["resize_keyboard"] is True
    assert [[b["text"] for b in row] for row in markup["keyboard"]] == [
        ["🔐 Reauth Router"],
        ["👎 Deny MAC", "👍 Allow MAC"],
        ["🧹 Clear Blacklist"],
    ]


def test_inline_markup_carries_encoded_token() -> None:
    menu = Menu(rows=((MenuItem("11:22:33:44:55:66 (phone)", CallbackToken(Action.BLOCK, "11:22:33:44:55:66")),),), inline=True)
    assert reply_markup(menu) == {
        "inline_keyboard": [[{"text": "11:22:33:44:55:66 (phone)", "callback_data": "block|11:22:33:44:55:66"}]]
    }


def test_send_text_and_menu() -> None:
    recorder = Recorder()
    client = make_client(recorder)

    client.send_text(70, "hi")
    client.send_menu(70, "pick", MAIN_KEYBOARD)

    assert recorder.calls[0] == ("sendMessage", {"chat_id": 70, "text": "hi"})
    method, payload = recorder.calls[1]
    assert method == "sendMessage"
    assert payload["reply_markup"]["keyboard"][0] == [{"text": "🔐 Reauth Router"}]


def test_requests_go_to_bot_url() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json={"ok": True, "result": []})

    client = TelegramClient(TOKEN, api_url="https://tg.test/", client=httpx.Client(transport=httpx.MockTransport(handler)))
    assert client.get_updates(offset=5, timeout=1) == []
    assert seen == [f"https://tg.test/bot{TOKEN}/getUpdates"]


def test_get_updates_payload() -> None:
    recorder = Recorder({"ok": True, "result": [{"update_id": 1}]})
    client = make_client(recorder)

    assert client.get_updates(offset=10, timeout=3) == [{"update_id": 1}]
    assert recorder.calls == [
        ("getUpdates", {"timeout": 3, "allowed_updates": ["message", "callback_query"], "offset": 10})
    ]


def test_api_error_raises() -> None:
    recorder = Recorder({"ok": False, "description": "Bad Request: chat not found"}, status=400)
    client = make_client(recorder)

    with pytest.raises(TelegramError, match="chat not found"):
        client.send_text(1, "x")


def test_transport_error_hides_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = TelegramClient(TOKEN, api_url="https://tg.test", client=httpx.Client(transport=httpx.MockTransport(handler)))

    with pytest.raises(TelegramError) as excinfo:
        client.send_text(1, "x")
    assert TOKEN not in str(excinfo.value)
    assert "ConnectError" in str(excinfo.value)


def test_acknowledge() -> None:
    recorder = Recorder()
    client = make_client(recorder)

    client.acknowledge("cbq-1")
    client.acknowledge("")

    assert recorder.calls == [("answerCallbackQuery", {"callback_query_id": "cbq-1"})]


def test_acknowledge_failure_is_logged_not_raised() -> None:
    recorder = Recorder({"ok": False, "description": "query is too old"}, status=400)
    client = make_client(recorder)

    client.acknowledge("cbq-1")


def test_set_webhook_with_secret() -> None:
    recorder = Recorder()
    client = make_client(recorder)

    client.set_webhook("https://bot.example/telegram/webhook", secret_token="s")

    assert recorder.calls == [
        (
            "setWebhook",
            {
                "url": "https://bot.example/telegram/webhook",
                "allowed_updates": ["message", "callback_query"],
                "secret_token": "s",
            },
        )
    ]
