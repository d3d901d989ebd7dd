from __future__ import annotations

from dataclasses import dataclass

from yip.bot.auth import CredentialGate
from yip.bot.dispatcher import CommandDispatcher
from yip.bot.events import Transport
from yip.bot.name_cache import NameCache
from yip.bot.workflow import DeviceWorkflow
from yip.config import BotConfig
from yip.routers.registry import RouterRegistry, default_registry
from yip.telegram.client import TelegramClient
from yip.yip_logging import get_logger

log = get_logger("YIP")


@dataclass
class BotRuntime:
    config: BotConfig
    registry: RouterRegistry
    gate: CredentialGate
    name_cache: NameCache
    dispatcher: CommandDispatcher
    telegram: TelegramClient | None = None

    def close(self) -> None:
        self.registry.stop()
        if self.telegram is not None:
            self.telegram.close()
        log.info("YIP.Runtime.Closed")


def build_runtime(
    config: BotConfig,
    *,
    registry: RouterRegistry | None = None,
    transport: Transport | None = None,
) -> BotRuntime:
    """Wire router backend, gate, cache, workflow and dispatcher together.

    Without an explicit transport a TelegramClient is created from the
    config.
    """
    registry = registry or default_registry()
    router = registry.create_backend(config.router.backend, config.router.options)
    registry.start()

    telegram: TelegramClient | None = None
    if transport is None:
        telegram = TelegramClient(
            config.telegram.token,
            api_url=config.telegram.api_url,
            timeout_s=config.telegram.timeout_s,
        )
        transport = telegram

    gate = CredentialGate(config.telegram.password)
    name_cache = NameCache()
    workflow = DeviceWorkflow(router, name_cache)
    dispatcher = CommandDispatcher(gate, workflow, transport)

    log.info("YIP.Runtime.Ready", extra={"fields": {
        "backend": router.name,
        "commands": dispatcher.command_names,
    }})
    return BotRuntime(
        config=config,
        registry=registry,
        gate=gate,
        name_cache=name_cache,
        dispatcher=dispatcher,
        telegram=telegram,
    )
