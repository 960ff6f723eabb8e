from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

LOGGER = logging.getLogger(__name__)

TRUE_LIKE_VALUES = {"1", "true", "yes", "y", "on"}


def as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() in TRUE_LIKE_VALUES


def as_int(
    value: str | None,
    *,
    default: int,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    try:
        parsed = int(str(value or "").strip())
    except Exception:
        parsed = int(default)
    if min_value is not None:
        parsed = max(int(min_value), parsed)
    if max_value is not None:
        parsed = min(int(max_value), parsed)
    return parsed


def as_float(
    value: str | None,
    *,
    default: float,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    try:
        parsed = float(str(value or "").strip())
    except Exception:
        parsed = float(default)
    if min_value is not None:
        parsed = max(float(min_value), parsed)
    if max_value is not None:
        parsed = min(float(max_value), parsed)
    return parsed


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string (or datetime) into an aware UTC datetime.

    Date-only strings resolve to midnight. Naive values are read as UTC.
    Raises ValueError when the value cannot be parsed.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        raw = str(value or "").strip()
        if not raw:
            raise ValueError("timestamp is empty")
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _coerce_display_timestamp(value: Any) -> datetime | None:
    try:
        return parse_timestamp(value)
    except (TypeError, ValueError):
        LOGGER.debug("Could not format date value %r.", value)
        return None


def format_date(value: Any) -> str:
    if value is None or value == "":
        return "Unknown date"
    parsed = _coerce_display_timestamp(value)
    if parsed is None:
        return "Invalid date"
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def format_datetime(value: Any) -> str:
    if value is None or value == "":
        return "Unknown date"
    parsed = _coerce_display_timestamp(value)
    if parsed is None:
        return "Invalid date"
    return f"{parsed:%b} {parsed.day}, {parsed.year}, {parsed:%I:%M %p}"
