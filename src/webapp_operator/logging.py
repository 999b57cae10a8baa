from __future__ import annotations

import json
import logging
import sys
from typing import Any

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

STRUCTURED_FIELDS = ("controller", "resource", "uid", "event", "reason")


class StructuredJSONFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.default_time_format),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in STRUCTURED_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS and key not in log_entry:
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_structured_logging(level: str | int = logging.INFO) -> None:
    """Route the root logger (and kopf's) through the JSON formatter on stdout."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredJSONFormatter())
    root_logger.addHandler(handler)

    # kopf propagates to the root logger
    logging.getLogger("kopf").setLevel(level)


class StructuredLogger:
    """Logger that attaches structured fields to every record.

    ``bind`` returns a child carrying default fields, so a reconcile pass can
    bind ``controller``/``resource`` once and log events with only ``reason``.
    """

    def __init__(self, name: str, **fields: Any):
        self._logger = logging.getLogger(name)
        self._fields = {k: v for k, v in fields.items() if v is not None}

    def bind(self, **fields: Any) -> StructuredLogger:
        child = StructuredLogger(self._logger.name)
        child._fields = {**self._fields, **{k: v for k, v in fields.items() if v is not None}}
        return child

    def _log(self, level: int, message: str, exc_info: Any = None, **fields: Any) -> None:
        extra = dict(self._fields)
        extra.update({k: v for k, v in fields.items() if v is not None})
        self._logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **fields: Any) -> None:
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, exc_info: Any = None, **fields: Any) -> None:
        self._log(logging.ERROR, message, exc_info=exc_info, **fields)


logger = StructuredLogger("webapp-operator")
