"""
Structured JSON logging for the service.

Every module logs through ``logging.getLogger(__name__)``; this module installs a
single console handler on the root logger that renders records as one JSON
object per line. Fields passed through ``extra={...}`` end up under ``"extra"``.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

_STANDARD_ATTRS = {
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "taskName", "message", "asctime",
}


class JsonFormatter(logging.Formatter):
    """
    Formatter producing one JSON document per record.

    Keys: timestamp (ISO 8601, UTC), level, logger, module, message, and
    optionally exc_info and extra.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_record: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        if extra_fields:
            log_record["extra"] = extra_fields

        return json.dumps(log_record, ensure_ascii=False, default=str)


# PUBLIC_INTERFACE
def configure_logging(level_name: str = "INFO") -> None:
    """
    Install the JSON console handler on the root logger.

    Safe to call more than once (tests build many apps): the handler is only
    added the first time, later calls just adjust the level.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if not getattr(root_logger, "_todo_json_logging_configured", False):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(JsonFormatter())
        root_logger.addHandler(console_handler)
        root_logger._todo_json_logging_configured = True  # type: ignore[attr-defined]

    for handler in root_logger.handlers:
        handler.setLevel(level)
