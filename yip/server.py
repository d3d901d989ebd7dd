from __future__ import annotations

import hmac
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, FastAPI, Header, HTTPException, Request

from yip.config import load_config
from yip.runtime import BotRuntime, build_runtime
from yip.telegram.client import TelegramError
from yip.telegram.updates import parse_update
from yip.yip_logging import get_logger

log = get_logger("YIP.Server")


def create_app(runtime: BotRuntime | None = None) -> FastAPI:
    """Build the webhook app.

    With no runtime given, one is built from the environment at startup and
    closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = runtime is None
        app.state.runtime = build_runtime(load_config()) if owned else runtime
        log.info("YIP.Server.Started", extra={"fields": {"backend": app.state.runtime.config.router.backend}})
        try:
            yield
        finally:
            if owned:
                app.state.runtime.close()

    app = FastAPI(title="yip", lifespan=lifespan)

    # Sync handlers run in FastAPI's threadpool, so updates are processed concurrently.
    @app.post("/telegram/webhook")
    def telegram_webhook(
        request: Request,
        update: dict[str, Any] = Body(...),
        x_telegram_bot_api_secret_token: str | None = Header(default=None),
    ) -> dict[str, bool]:
        rt: BotRuntime = request.app.state.runtime
        expected = rt.config.telegram.webhook_secret
        if expected and not hmac.compare_digest(x_telegram_bot_api_secret_token or "", expected):
            raise HTTPException(status_code=403, detail="invalid secret token")

        event = parse_update(update)
        if event is None:
            return {"ok": True}

        try:
            rt.dispatcher.dispatch(event)
        except TelegramError as exc:
            # Answer 200 anyway; a redelivery would not fix a failed send.
            log.error("YIP.Server.SendFailed", extra={"fields": {
                "update_id": update.get("update_id"),
                "error": str(exc),
            }})
        return {"ok": True}

    @app.get("/health")
    def health(request: Request) -> dict[str, Any]:
        rt: BotRuntime = request.app.state.runtime
        return rt.registry.health()

    return app


app = create_app()
