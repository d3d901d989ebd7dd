from __future__ import annotations

import argparse
import os
import signal
import sys

import uvicorn

from yip.config import load_config
from yip.errors import ConfigError
from yip.runtime import build_runtime
from yip.telegram.client import TelegramClient, TelegramError
from yip.telegram.poller import UpdatePoller
from yip.yip_logging import get_logger, set_level

log = get_logger("YIP")


def _serve(args: argparse.Namespace) -> int:
    # Note: keep import string so uvicorn can manage lifespan correctly.
    uvicorn.run(
        "yip.server:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level,
    )
    return 0


def _poll(args: argparse.Namespace) -> int:
    config = load_config()
    runtime = build_runtime(config)
    try:
        client = runtime.telegram
        if client is None:
            raise ConfigError("Polling needs a Telegram client")

        poller = UpdatePoller(
            client,
            runtime.dispatcher.dispatch,
            poll_timeout_s=config.telegram.poll_timeout_s,
            workers=config.workers,
        )
        signal.signal(signal.SIGTERM, lambda *_: poller.stop())
        # getUpdates is refused while a webhook is set.
        client.delete_webhook()
        poller.run()
    except KeyboardInterrupt:
        log.info("YIP.Poller.Interrupted")
    finally:
        runtime.close()
    return 0


def _set_webhook(args: argparse.Namespace) -> int:
    config = load_config()
    client = TelegramClient(config.telegram.token, api_url=config.telegram.api_url, timeout_s=config.telegram.timeout_s)
    try:
        client.set_webhook(args.url, secret_token=config.telegram.webhook_secret)
    finally:
        client.close()
    log.info("YIP.Webhook.Set", extra={"fields": {"url": args.url}})
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="yip-bot", description="Manage a router's MAC filter from Telegram")
    parser.add_argument("--log-level", default=os.environ.get("YIP_LOG_LEVEL", "info"))
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the webhook server")
    serve.add_argument("--host", default=os.environ.get("YIP_HOST", "0.0.0.0"))
    serve.add_argument("--port", type=int, default=int(os.environ.get("YIP_PORT", "8080")))
    serve.set_defaults(func=_serve)

    poll = sub.add_parser("poll", help="Receive updates by long polling")
    poll.set_defaults(func=_poll)

    webhook = sub.add_parser("set-webhook", help="Register the webhook URL with Telegram")
    webhook.add_argument("url")
    webhook.set_defaults(func=_set_webhook)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    set_level(args.log_level)
    try:
        return args.func(args)
    except ConfigError as exc:
        log.error("YIP.Config.Invalid", extra={"fields": {"error": str(exc)}})
        return 2
    except TelegramError as exc:
        log.error("YIP.Telegram.Failed", extra={"fields": {"error": str(exc)}})
        return 1


if __name__ == "__main__":
    sys.exit(main())
