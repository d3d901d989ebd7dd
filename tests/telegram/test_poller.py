from __future__ import annotations

import threading

from yip.bot.events import Command, Selection
from yip.telegram.client import TelegramError
from yip.telegram.poller import UpdatePoller


def message(update_id: int, text: str, sender: int = 7) -> dict:
    return {
        "update_id": update_id,
        "message": {"from": {"id": sender}, "chat": {"id": sender}, "text": text},
    }


class ScriptedClient:
    """Returns the scripted batches, then stops the poller."""

    def __init__(self, batches: list) -> None:
        self.batches = list(batches)
        self.offsets: list[int | None] = []
        self.poller: UpdatePoller | None = None

    def get_updates(self, offset=None, timeout=10):
        self.offsets.append(offset)
        if not self.batches:
            self.poller.stop()
            return []
        batch = self.batches.pop(0)
        if isinstance(batch, Exception):
            raise batch
        return batch


def make_poller(client: ScriptedClient, handle) -> UpdatePoller:
    poller = UpdatePoller(client, handle, poll_timeout_s=1, workers=2, retry_delay_s=0)
    client.poller = poller
    return poller


def test_updates_are_dispatched_and_offset_advances() -> None:
    client = ScriptedClient([
        [message(10, "/start"), message(11, "👍 Allow MAC")],
        [message(12, "/login pw")],
    ])
    handled: list = []
    lock = threading.Lock()

    def handle(event) -> None:
        with lock:
            handled.append(event)

    make_poller(client, handle).run()

    assert client.offsets == [None, 12, 13]
    assert len(handled) == 3
    assert Command(identity=7, chat_id=7, name="start") in handled
    assert Selection(identity=7, chat_id=7, text="👍 Allow MAC") in handled


def test_poll_errors_are_retried() -> None:
    client = ScriptedClient([TelegramError("getUpdates: Conflict"), [message(1, "/start")]])
    handled: list = []

    make_poller(client, handled.append).run()

    assert client.offsets == [None, None, 2]
    assert len(handled) == 1


def test_handler_errors_do_not_stop_the_loop() -> None:
    client = ScriptedClient([[message(1, "/start"), message(2, "/start")]])
    calls: list = []

    def handle(event) -> None:
        calls.append(event)
        raise RuntimeError("send failed")

    make_poller(client, handle).run()

    assert len(calls) == 2


def test_ignored_updates_are_skipped_but_acknowledged_by_offset() -> None:
    client = ScriptedClient([[{"update_id": 5, "edited_message": {"text": "x"}}]])
    handled: list = []

    make_poller(client, handled.append).run()

    assert handled == []
    assert client.offsets == [None, 6]


def test_unexpected_poll_errors_are_retried() -> None:
    client = ScriptedClient([ValueError("bad payload"), [message(1, "/start")]])
    handled: list = []

    make_poller(client, handled.append).run()

    assert client.offsets == [None, None, 2]
    assert len(handled) == 1


def test_malformed_entries_are_skipped() -> None:
    client = ScriptedClient([["garbage", None, message(3, "/start")]])
    handled: list = []

    make_poller(client, handled.append).run()

    assert handled == [Command(identity=7, chat_id=7, name="start")]
    assert client.offsets == [None, 4]


def test_in_flight_work_is_bounded() -> None:
    client = ScriptedClient([[message(i, "/start") for i in range(1, 6)]])
    handled: list = []
    poller = UpdatePoller(client, handled.append, poll_timeout_s=1, workers=1, retry_delay_s=0, max_pending_factor=1)
    client.poller = poller

    poller.run()

    assert len(handled) == 5
    assert client.offsets == [None, 6]
