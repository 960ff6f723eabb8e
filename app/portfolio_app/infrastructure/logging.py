from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from portfolio_app.core.env import (
    PORTFOLIO_LOG_CAPTURE_ROOT,
    PORTFOLIO_LOG_JSON,
    PORTFOLIO_LOG_LEVEL,
    get_env,
    get_env_bool,
)

_LOGGING_CONFIGURED = False
_RESERVED_LOG_RECORD_FIELDS = set(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}

# Record fields that identify what the service touched, rendered ahead of any other extras.
CONTEXT_FIELDS = ("event", "storage_key", "project_id", "contact_id")


def _context_of(record: logging.LogRecord) -> dict[str, Any]:
    return {name: getattr(record, name) for name in CONTEXT_FIELDS if getattr(record, name, None) is not None}


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_context_of(record))
        for key, value in record.__dict__.items():
            if key in _RESERVED_LOG_RECORD_FIELDS or key in payload:
                continue
            if key.startswith("_"):
                continue
            payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=True)


class _ContextTextFormatter(logging.Formatter):
    """Plain-text lines with the record's context fields appended as key=value."""

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        context = _context_of(record)
        if not context:
            return line
        suffix = " ".join(f"{name}={value}" for name, value in context.items())
        return f"{line} [{suffix}]"


def setup_app_logging() -> None:
    global _LOGGING_CONFIGURED  # pylint: disable=global-statement
    if _LOGGING_CONFIGURED:
        return

    level_name = get_env(PORTFOLIO_LOG_LEVEL, "INFO").upper() or "INFO"
    level = getattr(logging, level_name, logging.INFO)
    use_json = get_env_bool(PORTFOLIO_LOG_JSON, default=False)
    capture_root = get_env_bool(PORTFOLIO_LOG_CAPTURE_ROOT, default=False)

    formatter: logging.Formatter
    if use_json:
        formatter = _JsonFormatter()
    else:
        formatter = _ContextTextFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter)

    app_logger = logging.getLogger("portfolio_app")
    app_logger.handlers.clear()
    app_logger.addHandler(handler)
    app_logger.setLevel(level)
    app_logger.propagate = False

    if capture_root:
        root = logging.getLogger()
        root.handlers.clear()
        root.addHandler(handler)
        root.setLevel(level)

    logging.getLogger(__name__).info(
        "Application logging configured. level=%s json=%s capture_root=%s",
        level_name,
        str(use_json).lower(),
        str(capture_root).lower(),
    )
    _LOGGING_CONFIGURED = True
