from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from yip.errors import ConfigError


DEFAULT_API_URL = "https://api.telegram.org"


@dataclass(frozen=True, slots=True)
class TelegramConfig:
    token: str
    password: str
    webhook_secret: str = ""
    api_url: str = DEFAULT_API_URL
    poll_timeout_s: int = 10
    timeout_s: float = 15.0


@dataclass(frozen=True, slots=True)
class RouterConfig:
    backend: str = "memory"
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class BotConfig:
    telegram: TelegramConfig
    router: RouterConfig
    workers: int = 4


def _env(environ: Mapping[str, str], name: str) -> str | None:
    v = environ.get(name)
    if v is None or v.strip() == "":
        return None
    return v.strip()


def _as_int(name: str, raw: Any, fallback: int) -> int:
    if raw is None:
        return fallback
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _as_float(name: str, raw: Any, fallback: float) -> float:
    if raw is None:
        return fallback
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


def _load_file(path: str) -> dict[str, Any]:
    p = Path(path).expanduser()
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"config file not found: {p}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"config file is not valid JSON: {p}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"config file must hold a JSON object: {p}")
    return data


def _router_options(raw: str | None, file_section: dict[str, Any]) -> dict[str, Any]:
    options = {k: v for k, v in file_section.items() if k != "backend"}
    if raw is None:
        return options
    try:
        env_options = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"YIP_ROUTER_CONFIG is not valid JSON: {exc}") from exc
    if not isinstance(env_options, dict):
        raise ConfigError("YIP_ROUTER_CONFIG must be a JSON object")
    options.update(env_options)
    return options


def load_config(environ: Mapping[str, str] | None = None) -> BotConfig:
    """Build the bot configuration from the environment.

    An optional JSON file named by ``YIP_CONFIG`` provides defaults; any
    environment variable that is set wins over the file.
    """
    env = os.environ if environ is None else environ

    file_data: dict[str, Any] = {}
    config_path = _env(env, "YIP_CONFIG")
    if config_path:
        file_data = _load_file(config_path)

    tg_file = file_data.get("telegram") or {}
    router_file = file_data.get("router") or {}
    if not isinstance(tg_file, dict) or not isinstance(router_file, dict):
        raise ConfigError("'telegram' and 'router' config sections must be objects")

    token = _env(env, "YIP_TELEGRAM_TOKEN") or str(tg_file.get("token") or "").strip()
    password = _env(env, "YIP_TELEGRAM_PASSWORD") or str(tg_file.get("password") or "")
    if not token:
        raise ConfigError("YIP_TELEGRAM_TOKEN is required")
    if not password:
        raise ConfigError("YIP_TELEGRAM_PASSWORD is required")

    telegram = TelegramConfig(
        token=token,
        password=password,
        webhook_secret=_env(env, "YIP_TELEGRAM_WEBHOOK_SECRET") or str(tg_file.get("webhook_secret") or ""),
        api_url=(_env(env, "YIP_TELEGRAM_API_URL") or str(tg_file.get("api_url") or DEFAULT_API_URL)).rstrip("/"),
        poll_timeout_s=_as_int(
            "YIP_TELEGRAM_POLL_TIMEOUT", _env(env, "YIP_TELEGRAM_POLL_TIMEOUT") or tg_file.get("poll_timeout"), 10
        ),
        timeout_s=_as_float("YIP_TELEGRAM_TIMEOUT_S", _env(env, "YIP_TELEGRAM_TIMEOUT_S") or tg_file.get("timeout_s"), 15.0),
    )

    backend = (_env(env, "YIP_ROUTER_BACKEND") or str(router_file.get("backend") or "memory")).lower()
    router = RouterConfig(
        backend=backend,
        options=_router_options(_env(env, "YIP_ROUTER_CONFIG"), router_file),
    )

    workers = _as_int("YIP_WORKERS", _env(env, "YIP_WORKERS") or file_data.get("workers"), 4)
    if workers < 1:
        raise ConfigError("YIP_WORKERS must be at least 1")

    return BotConfig(telegram=telegram, router=router, workers=workers)
