from __future__ import annotations

import os

from portfolio_app.core.util import as_bool, as_float, as_int

# Runtime mode
PORTFOLIO_ENV = "PORTFOLIO_ENV"

# Durable storage
PORTFOLIO_STORAGE_BACKEND = "PORTFOLIO_STORAGE_BACKEND"
PORTFOLIO_STORAGE_PATH = "PORTFOLIO_STORAGE_PATH"
PORTFOLIO_STORAGE_QUOTA_BYTES = "PORTFOLIO_STORAGE_QUOTA_BYTES"
PORTFOLIO_STORAGE_FAULTS = "PORTFOLIO_STORAGE_FAULTS"
PORTFOLIO_SEED_PROJECTS = "PORTFOLIO_SEED_PROJECTS"

# Simulated API latency
PORTFOLIO_SIMULATE_LATENCY = "PORTFOLIO_SIMULATE_LATENCY"
PORTFOLIO_API_DELAY_FETCH_MS = "PORTFOLIO_API_DELAY_FETCH_MS"
PORTFOLIO_API_DELAY_SAVE_MS = "PORTFOLIO_API_DELAY_SAVE_MS"
PORTFOLIO_API_DELAY_DELETE_MS = "PORTFOLIO_API_DELAY_DELETE_MS"
PORTFOLIO_API_DELAY_CONTACT_MS = "PORTFOLIO_API_DELAY_CONTACT_MS"
PORTFOLIO_API_DELAY_STATUS_MS = "PORTFOLIO_API_DELAY_STATUS_MS"

# Notifications and search
PORTFOLIO_NOTIFY_POLL_INTERVAL_SEC = "PORTFOLIO_NOTIFY_POLL_INTERVAL_SEC"
PORTFOLIO_NOTIFY_PERMISSION = "PORTFOLIO_NOTIFY_PERMISSION"
PORTFOLIO_SEARCH_DEBOUNCE_MS = "PORTFOLIO_SEARCH_DEBOUNCE_MS"

# Logging
PORTFOLIO_LOG_LEVEL = "PORTFOLIO_LOG_LEVEL"
PORTFOLIO_LOG_JSON = "PORTFOLIO_LOG_JSON"
PORTFOLIO_LOG_CAPTURE_ROOT = "PORTFOLIO_LOG_CAPTURE_ROOT"


def get_env(name: str, default: str = "") -> str:
    return str(os.getenv(name, default) or "").strip()


def get_env_bool(name: str, *, default: bool = False) -> bool:
    return as_bool(os.getenv(name), default=default)


def get_env_int(
    name: str,
    *,
    default: int,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    return as_int(os.getenv(name), default=default, min_value=min_value, max_value=max_value)


def get_env_float(
    name: str,
    *,
    default: float,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    return as_float(os.getenv(name), default=default, min_value=min_value, max_value=max_value)
