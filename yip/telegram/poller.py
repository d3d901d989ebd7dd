"""
Long-polling update loop.

Fetches updates with getUpdates and hands each one to a worker pool, so
events from different chats are handled concurrently.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

from yip.bot.events import InboundEvent
from yip.telegram.client import TelegramClient, TelegramError
from yip.telegram.updates import parse_update
from yip.yip_logging import get_logger

log = get_logger("YIP.Poller")


class UpdatePoller:
    def __init__(
        self,
        client: TelegramClient,
        handle: Callable[[InboundEvent], None],
        *,
        poll_timeout_s: int = 10,
        workers: int = 4,
        retry_delay_s: float = 3.0,
        max_pending_factor: int = 4,
    ) -> None:
        self.client = client
        self.handle = handle
        self.poll_timeout_s = poll_timeout_s
        self.retry_delay_s = retry_delay_s
        self._offset: int | None = None
        self._stop = threading.Event()
        self._pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="yip-worker")
        # Caps queued plus running updates; poll_once blocks when it is full.
        self._slots = threading.BoundedSemaphore(workers * max_pending_factor)

    @property
    def offset(self) -> int | None:
        return self._offset

    def stop(self) -> None:
        self._stop.set()

    def poll_once(self) -> int:
        """Fetch one batch of updates and submit them. Returns the batch size."""
        updates = self.client.get_updates(offset=self._offset, timeout=self.poll_timeout_s)
        for update in updates:
            if not isinstance(update, dict):
                log.warning("YIP.Poller.BadUpdate", extra={"fields": {"update": repr(update)}})
                continue
            update_id = update.get("update_id")
            if isinstance(update_id, int):
                self._offset = max(self._offset or 0, update_id + 1)
            self._slots.acquire()
            try:
                self._pool.submit(self._process, update)
            except Exception:
                self._slots.release()
                raise
        return len(updates)

    def run(self) -> None:
        log.info("YIP.Poller.Started", extra={"fields": {"timeout": self.poll_timeout_s}})
        try:
            while not self._stop.is_set():
                try:
                    self.poll_once()
                except TelegramError as exc:
                    log.warning("YIP.Poller.PollFailed", extra={"fields": {"error": str(exc)}})
                    self._stop.wait(self.retry_delay_s)
                except Exception as exc:
                    log.error("YIP.Poller.PollCrashed", extra={"fields": {"error": repr(exc)}})
                    self._stop.wait(self.retry_delay_s)
        finally:
            self._pool.shutdown(wait=True)
            log.info("YIP.Poller.Stopped")

    def _process(self, update: dict[str, Any]) -> None:
        try:
            event = parse_update(update)
            if event is None:
                return
            self.handle(event)
        except Exception as exc:
            log.error("YIP.Poller.UpdateFailed", extra={"fields": {
                "update_id": update.get("update_id"),
                "error": repr(exc),
            }})
        finally:
            self._slots.release()
