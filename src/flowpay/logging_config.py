"""Structured logging configuration helpers for the FlowPay gateway.

Every line is one JSON object. Besides the fixed fields, anything passed
through ``extra=`` is copied into the object, which is how routes and the
Polymarket facade attach ``event``, ``request_id``, ``token_id`` and
``order_id``.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict

DEFAULT_ENV = os.getenv("FLOWPAY_ENV", os.getenv("ENV", "dev"))

# Attributes every LogRecord carries; only the rest came from ``extra``.
_RESERVED_RECORD_KEYS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    def __init__(self, env: str | None = None) -> None:
        super().__init__()
        self.env = env or DEFAULT_ENV

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "event": getattr(record, "event", None),
            "env": getattr(record, "env", self.env),
            "request_id": getattr(record, "request_id", None),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        extras = {k: v for k, v in vars(record).items() if k not in _RESERVED_RECORD_KEYS}
        for key, value in extras.items():
            payload.setdefault(key, value)

        return json.dumps(payload, default=str)


def configure_logging(level: int = logging.INFO, env: str | None = None) -> None:
    """Send all logging to stdout as JSON, replacing existing root handlers."""

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter(env=env))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)


def structured_log_extra(
    *,
    env: str | None = None,
    request_id: str | None = None,
    event: str | None = None,
    token_id: str | None = None,
    order_id: str | None = None,
    **kwargs: Any,
) -> Dict[str, Any]:
    """Return an ``extra`` dict with ``event``, ``env`` and ``request_id`` always set.

    ``token_id`` and ``order_id`` appear only when given; any other keyword is
    passed through unchanged.
    """

    extra: Dict[str, Any] = {"event": event, "env": env or DEFAULT_ENV, "request_id": request_id}
    if token_id is not None:
        extra["token_id"] = token_id
    if order_id is not None:
        extra["order_id"] = order_id
    extra.update(kwargs)
    return extra


def get_log_environment() -> str:
    return DEFAULT_ENV


__all__ = [
    "JsonFormatter",
    "configure_logging",
    "structured_log_extra",
    "get_log_environment",
]
