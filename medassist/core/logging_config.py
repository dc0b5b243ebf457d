"""JSON-lines logging for the service and its request handlers."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from medassist.core.config import Config, get_config

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RESERVED_ATTRS = set(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime"}

# Libraries that are chatty at INFO/DEBUG outside development.
_QUIET_LOGGERS = ("sqlalchemy.engine", "urllib3", "PIL")


class JsonFormatter(logging.Formatter):
    """One JSON object per record, carrying every ``extra`` field."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _handlers(config: Config) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.LOG_FILE:
        handlers.append(logging.FileHandler(config.LOG_FILE, encoding="utf-8"))
    return handlers


def configure_logging() -> None:
    """Install JSON handlers on the root logger unless something already did."""
    root = logging.getLogger()
    if root.handlers:
        return

    config = get_config()
    root.setLevel(config.LOG_LEVEL)
    formatter = JsonFormatter()
    for handler in _handlers(config):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    if config.ENV != "development":
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
