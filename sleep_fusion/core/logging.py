from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sleep_fusion.constants import ENGINE_VERSION

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _render(value: Any) -> Any:
    # Stage and LookbackRange extras log as their wire values.
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class JsonFormatter(logging.Formatter):
    _RESERVED_FIELDS = {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
        "asctime",
    }

    def __init__(self, app_name: str | None = None) -> None:
        super().__init__()
        self._app_name = app_name

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "engine_version": ENGINE_VERSION,
        }
        if self._app_name is not None:
            payload["app"] = self._app_name
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key in self._RESERVED_FIELDS or key.startswith("_"):
                continue
            payload[key] = value
        return json.dumps(payload, default=_render)


def configure_logging(level: str, app_name: str | None = None) -> None:
    """Install the JSON formatter on the root handlers.

    ``level`` is matched case-insensitively against ``LOG_LEVELS``; anything
    else raises ``ValueError`` before the root logger is touched.
    """
    level = level.upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"unknown log level: {level}")
    logging.basicConfig(level=level)
    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers:
        handler.setFormatter(JsonFormatter(app_name))
