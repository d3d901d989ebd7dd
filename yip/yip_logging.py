from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

_level = logging.INFO


def get_logger(name: str = "YIP") -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(_level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def set_level(level: str) -> None:
    """Apply a textual level ("debug", "info", ...) to current and future YIP loggers."""
    global _level
    resolved = logging.getLevelName(level.strip().upper())
    _level = resolved if isinstance(resolved, int) else logging.INFO
    for name in list(logging.root.manager.loggerDict):
        if name == "YIP" or name.startswith("YIP."):
            logging.getLogger(name).setLevel(_level)


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        # Structured fields via logger.info("...", extra={"fields": {...}})
        fields = getattr(record, "fields", None)
        if isinstance(fields, dict):
            payload.update(fields)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)
