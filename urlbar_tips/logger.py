from __future__ import annotations

import enum
import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

STANDARD_ATTRS = {
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
}


def _json_default(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    return str(value)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        data = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key in STANDARD_ATTRS or key in data:
                continue
            data[key] = value
        return json.dumps(data, ensure_ascii=True, default=_json_default)


def setup_logging(level: str, stream: Optional[TextIO] = None) -> logging.Logger:
    logger = logging.getLogger("urlbar_tips")
    logger.setLevel(level)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter())
    logger.handlers = [handler]
    logger.propagate = False

    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    return logger
