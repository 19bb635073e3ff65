"""Logging setup: one JSON object per line, credentials masked."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Iterable

from app.core.config import AppSettings

REDACTED = "[redacted]"

# Attributes every LogRecord carries; anything else arrived through `extra`.
_RECORD_ATTRS = frozenset(logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__) | {
    "message",
    "asctime",
    "taskName",
}

_FRAMEWORK_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "fastapi")


class JsonFormatter(logging.Formatter):
    def __init__(
        self,
        service_name: str,
        environment: str = "local",
        secret_keys: Iterable[str] = ("token", "authorization"),
    ) -> None:
        super().__init__()
        self.service_name = service_name
        self.environment = environment
        self.secret_keys = frozenset(key.lower().replace("-", "_") for key in secret_keys)

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "environment": self.environment,
        }
        extra = {
            key: REDACTED if key.lower() in self.secret_keys else value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
        }
        if extra:
            entry["extra"] = extra
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(settings: AppSettings) -> None:
    """Install a single stdout handler on the root logger.

    Framework loggers lose their own handlers and propagate to the root, so
    request logs share the service format.
    """

    handler = logging.StreamHandler(stream=sys.stdout)
    if settings.log_json:
        handler.setFormatter(
            JsonFormatter(
                settings.service_name,
                environment=settings.environment,
                secret_keys=("token", "authorization", settings.token_header),
            )
        )
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level, logging.INFO))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in _FRAMEWORK_LOGGERS:
        framework_logger = logging.getLogger(name)
        framework_logger.handlers = []
        framework_logger.propagate = True
