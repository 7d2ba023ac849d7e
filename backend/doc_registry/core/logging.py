"""Logging utilities for the document registry.

Log lines are single JSON objects on stdout. Structured values travel as
``extra={"ctx_<name>": value}`` and are grouped under ``context`` without the
prefix, e.g. ``{"context": {"doc_id": "doc_1", "action": "create"}}``.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import orjson

from doc_registry.utils.time import iso_timestamp

_DEFAULT_LEVEL = os.environ.get("DOCREG_LOG_LEVEL", "INFO")
_DEFAULT_FORMAT = os.environ.get("DOCREG_LOG_FORMAT", "json")
CONTEXT_PREFIX = "ctx_"

# HTTP and LLM client libraries log every request at INFO.
_CHATTY_LOGGERS = ("urllib3", "httpx", "httpcore", "openai")


class JsonFormatter(logging.Formatter):
    """JSON formatter using the same UTC millisecond timestamps as documents."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": iso_timestamp(datetime.fromtimestamp(record.created, tz=timezone.utc)),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        context = {
            key[len(CONTEXT_PREFIX):]: value
            for key, value in record.__dict__.items()
            if key.startswith(CONTEXT_PREFIX)
        }
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        # Document fields can hold arbitrary cell values from the sheet.
        return orjson.dumps(payload, default=str).decode("utf-8")


def configure_logging(level: str | int = _DEFAULT_LEVEL, fmt: str = _DEFAULT_FORMAT) -> None:
    """Install one stdout handler on the root logger; ``fmt`` is ``json`` or ``plain``."""
    logging.captureWarnings(True)
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    if fmt == "plain":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    else:
        handler.setFormatter(JsonFormatter())
    root.handlers = [handler]
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = "doc_registry") -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


__all__ = ["CONTEXT_PREFIX", "JsonFormatter", "configure_logging", "get_logger"]
