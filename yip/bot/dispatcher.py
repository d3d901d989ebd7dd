"""
Command dispatcher.

Routes inbound events to their handler through an explicit registry and
applies the credential gate to everything except /start and /login.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Callable, Dict, Tuple

from yip.bot.auth import CredentialGate
from yip.bot.events import (
    MAIN_KEYBOARD,
    Button,
    CallbackSelection,
    Command,
    InboundEvent,
    Reply,
    Selection,
    Transport,
)
from yip.bot.workflow import INVALID_COMMAND, DeviceWorkflow
from yip.errors import AuthorizationDenied
from yip.yip_logging import get_logger

log = get_logger("YIP.Bot")

GREETING = "Hello!\nUse: \n\n/login PASSWORD\n\nto authenticate before using it"
LOGIN_USAGE = "Please use\n\n/login PASSWORD\n\nto authenticate"
LOGIN_OK = "Login successful"
LOGIN_WRONG = "Wrong password"
UNEXPECTED_ERROR = "Something went wrong"

Handler = Callable[[InboundEvent], Reply]


class CommandDispatcher:
    """
    Resolve and run the handler for each inbound event.

    Every event gets exactly one reply. Callback events are acknowledged
    exactly once, whatever happens in the handler. A callback id seen
    before is only acknowledged, so a transport redelivery does not hit the
    router twice.
    """

    def __init__(
        self,
        gate: CredentialGate,
        workflow: DeviceWorkflow,
        transport: Transport,
        *,
        dedup_size: int = 256,
    ):
        self.gate = gate
        self.workflow = workflow
        self.transport = transport

        self._commands: Dict[str, Tuple[Handler, bool]] = {}
        self._buttons: Dict[Button, Handler] = {}

        self._dedup_size = dedup_size
        self._seen_callbacks: OrderedDict[str, None] = OrderedDict()
        self._seen_lock = threading.Lock()

        self.register_command("start", self._start, guarded=False)
        self.register_command("login", self._login, guarded=False)

        self.register_button(Button.REAUTH_ROUTER, lambda _e: workflow.reauthenticate_router())
        self.register_button(Button.BLACKLIST_MAC, lambda _e: workflow.render_blacklist())
        self.register_button(Button.WHITELIST_MAC, lambda _e: workflow.render_whitelist())
        self.register_button(Button.CLEAR_BLACKLIST, lambda _e: workflow.clear_blacklist())

        # Typed equivalents of the keyboard buttons
        self.register_command("reauth", self._buttons[Button.REAUTH_ROUTER])
        self.register_command("deny", self._buttons[Button.BLACKLIST_MAC])
        self.register_command("allow", self._buttons[Button.WHITELIST_MAC])
        self.register_command("clear", self._buttons[Button.CLEAR_BLACKLIST])

    def register_command(self, name: str, handler: Handler, *, guarded: bool = True) -> None:
        key = name.lower().lstrip("/")
        if key in self._commands:
            raise ValueError(f"Command '/{key}' already registered")
        self._commands[key] = (handler, guarded)

    def register_button(self, button: Button, handler: Handler) -> None:
        if button in self._buttons:
            raise ValueError(f"Button '{button.value}' already registered")
        self._buttons[button] = handler

    @property
    def command_names(self) -> list[str]:
        return list(self._commands)

    def dispatch(self, event: InboundEvent) -> None:
        if isinstance(event, CallbackSelection):
            self._dispatch_callback(event)
            return

        handler, guarded = self._resolve(event)
        reply = self._run(event, handler, guarded)
        self._send(event.chat_id, reply)

    def _resolve(self, event: InboundEvent) -> Tuple[Handler, bool]:
        if isinstance(event, Command):
            entry = self._commands.get(event.name.lower())
            if entry is not None:
                return entry
        elif isinstance(event, Selection):
            try:
                return self._buttons[Button(event.text.strip())], True
            except (ValueError, KeyError):
                pass
        return self._unknown, True

    def _dispatch_callback(self, event: CallbackSelection) -> None:
        try:
            try:
                self.gate.require_authenticated(event.identity)
            except AuthorizationDenied as exc:
                self._send(event.chat_id, Reply(str(exc)))
                return

            if self._seen_before(event.callback_id):
                log.info("YIP.Bot.DuplicateCallback", extra={"fields": {
                    "identity": event.identity,
                    "callback_id": event.callback_id,
                }})
                return

            reply = self._run(event, lambda e: self.workflow.execute(e.args), guarded=False)
            self._send(event.chat_id, reply)
        finally:
            self.transport.acknowledge(event.callback_id)

    def _run(self, event: InboundEvent, handler: Handler, guarded: bool) -> Reply:
        try:
            if guarded:
                self.gate.require_authenticated(event.identity)
            return handler(event)
        except AuthorizationDenied as exc:
            log.info("YIP.Bot.Unauthenticated", extra={"fields": {"identity": event.identity}})
            return Reply(str(exc))
        except Exception as exc:
            log.error("YIP.Bot.HandlerError", extra={"fields": {
                "identity": event.identity,
                "event": type(event).__name__,
                "error": repr(exc),
            }})
            return Reply(UNEXPECTED_ERROR)

    def _send(self, chat_id: int, reply: Reply) -> None:
        if reply.menu is not None:
            self.transport.send_menu(chat_id, reply.text, reply.menu)
        else:
            self.transport.send_text(chat_id, reply.text)

    def _seen_before(self, callback_id: str) -> bool:
        if not callback_id:
            return False
        with self._seen_lock:
            if callback_id in self._seen_callbacks:
                return True
            self._seen_callbacks[callback_id] = None
            while len(self._seen_callbacks) > self._dedup_size:
                self._seen_callbacks.popitem(last=False)
        return False

    def _start(self, event: InboundEvent) -> Reply:
        return Reply(GREETING, MAIN_KEYBOARD)

    def _login(self, event: InboundEvent) -> Reply:
        args = event.args if isinstance(event, Command) else ()
        if not args or not args[0]:
            return Reply(LOGIN_USAGE)

        if self.gate.authenticate(event.identity, args[0]):
            log.info("YIP.Bot.LoginSucceeded", extra={"fields": {"identity": event.identity}})
            return Reply(LOGIN_OK)

        log.warning("YIP.Bot.LoginFailed", extra={"fields": {"identity": event.identity}})
        return Reply(LOGIN_WRONG)

    def _unknown(self, event: InboundEvent) -> Reply:
        return Reply(INVALID_COMMAND)
