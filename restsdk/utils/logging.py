"""Logging setup shared by the CLI and library callers."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

HANDLER_NAME = "restsdk"
_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
# Attributes every LogRecord has; anything else arrived through ``extra=``.
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def record_extras(record: logging.LogRecord) -> dict[str, Any]:
    return {key: value for key, value in vars(record).items() if key not in _STANDARD_ATTRS}


class JsonFormatter(logging.Formatter):
    """One JSON object per line with a UTC timestamp and the record's extras."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "ts": created.isoformat(timespec="milliseconds"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
            **record_extras(record),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(
    *,
    level: int | str = logging.INFO,
    structured: bool = True,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Install (or refresh) the package's root handler and return it.

    Repeated calls reuse the handler named ``HANDLER_NAME``; handlers owned by
    other code are left alone.
    """

    root = logging.getLogger()
    root.setLevel(level)

    handler = next((h for h in root.handlers if h.get_name() == HANDLER_NAME), None)
    target = stream or sys.stdout
    if isinstance(handler, logging.StreamHandler):
        handler.setStream(target)
    else:
        handler = logging.StreamHandler(target)
        handler.set_name(HANDLER_NAME)
        root.addHandler(handler)

    handler.setFormatter(JsonFormatter() if structured else logging.Formatter(_PLAIN_FORMAT))
    return handler


def remove_logging_handler() -> None:
    root = logging.getLogger()
    for handler in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(handler)
        handler.close()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = [
    "HANDLER_NAME",
    "JsonFormatter",
    "configure_logging",
    "get_logger",
    "record_extras",
    "remove_logging_handler",
]
