from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from portfolio_app.core.defaults import (
    DEFAULT_API_DELAY_CONTACT_MS,
    DEFAULT_API_DELAY_DELETE_MS,
    DEFAULT_API_DELAY_FETCH_MS,
    DEFAULT_API_DELAY_SAVE_MS,
    DEFAULT_API_DELAY_STATUS_MS,
    DEFAULT_DEV_ENV_NAMES,
    DEFAULT_ENV_NAME,
    DEFAULT_NOTIFY_PERMISSION,
    DEFAULT_NOTIFY_POLL_INTERVAL_SEC,
    DEFAULT_SEARCH_DEBOUNCE_MS,
    DEFAULT_STORAGE_BACKEND,
    DEFAULT_STORAGE_BACKENDS,
    DEFAULT_STORAGE_FAULT_MODE,
    DEFAULT_STORAGE_FAULT_MODES,
    DEFAULT_STORAGE_PATH,
    DEFAULT_STORAGE_QUOTA_BYTES,
)
from portfolio_app.core.env import (
    PORTFOLIO_API_DELAY_CONTACT_MS,
    PORTFOLIO_API_DELAY_DELETE_MS,
    PORTFOLIO_API_DELAY_FETCH_MS,
    PORTFOLIO_API_DELAY_SAVE_MS,
    PORTFOLIO_API_DELAY_STATUS_MS,
    PORTFOLIO_ENV,
    PORTFOLIO_NOTIFY_PERMISSION,
    PORTFOLIO_NOTIFY_POLL_INTERVAL_SEC,
    PORTFOLIO_SEARCH_DEBOUNCE_MS,
    PORTFOLIO_SEED_PROJECTS,
    PORTFOLIO_SIMULATE_LATENCY,
    PORTFOLIO_STORAGE_BACKEND,
    PORTFOLIO_STORAGE_FAULTS,
    PORTFOLIO_STORAGE_PATH,
    PORTFOLIO_STORAGE_QUOTA_BYTES,
    get_env,
    get_env_bool,
    get_env_float,
    get_env_int,
)


DEV_ENV_NAMES = set(DEFAULT_DEV_ENV_NAMES)
NOTIFY_PERMISSION_CHOICES = {"granted", "denied", "default"}


def _repo_root() -> Path:
    # parents[0]=core, [1]=portfolio_app, [2]=app, [3]=repo root
    return Path(__file__).resolve().parents[3]


def _resolve_repo_relative_path(raw_path: str) -> str:
    value = str(raw_path or "").strip()
    if not value:
        return value
    path = Path(value)
    if path.is_absolute():
        return str(path)
    return str((_repo_root() / path).resolve())


def _resolve_choice(name: str, default: str, allowed: tuple[str, ...] | set[str]) -> str:
    value = get_env(name, default).lower() or default
    if value not in allowed:
        allowed_text = ", ".join(sorted(allowed))
        raise RuntimeError(f"{name} must be one of: {allowed_text}.")
    return value


def _resolve_api_delays(simulate: bool) -> dict[str, int]:
    if not simulate:
        return {kind: 0 for kind in ("fetch", "save", "delete", "contact", "status")}
    return {
        "fetch": get_env_int(PORTFOLIO_API_DELAY_FETCH_MS, default=DEFAULT_API_DELAY_FETCH_MS, min_value=0),
        "save": get_env_int(PORTFOLIO_API_DELAY_SAVE_MS, default=DEFAULT_API_DELAY_SAVE_MS, min_value=0),
        "delete": get_env_int(PORTFOLIO_API_DELAY_DELETE_MS, default=DEFAULT_API_DELAY_DELETE_MS, min_value=0),
        "contact": get_env_int(PORTFOLIO_API_DELAY_CONTACT_MS, default=DEFAULT_API_DELAY_CONTACT_MS, min_value=0),
        "status": get_env_int(PORTFOLIO_API_DELAY_STATUS_MS, default=DEFAULT_API_DELAY_STATUS_MS, min_value=0),
    }


def _default_api_delays() -> Mapping[str, int]:
    return MappingProxyType({
        "fetch": DEFAULT_API_DELAY_FETCH_MS,
        "save": DEFAULT_API_DELAY_SAVE_MS,
        "delete": DEFAULT_API_DELAY_DELETE_MS,
        "contact": DEFAULT_API_DELAY_CONTACT_MS,
        "status": DEFAULT_API_DELAY_STATUS_MS,
    })


@dataclass(frozen=True)
class AppConfig:
    env: str = DEFAULT_ENV_NAME
    storage_backend: str = DEFAULT_STORAGE_BACKEND
    storage_path: str = DEFAULT_STORAGE_PATH
    storage_quota_bytes: int = DEFAULT_STORAGE_QUOTA_BYTES
    storage_faults: str = DEFAULT_STORAGE_FAULT_MODE
    seed_projects: bool = True
    api_delays_ms: Mapping[str, int] = field(default_factory=_default_api_delays)
    notify_poll_interval_sec: float = DEFAULT_NOTIFY_POLL_INTERVAL_SEC
    notify_permission: str = DEFAULT_NOTIFY_PERMISSION
    search_debounce_ms: int = DEFAULT_SEARCH_DEBOUNCE_MS

    def __post_init__(self) -> None:
        # read-only copy so the delays cannot change behind a frozen config
        object.__setattr__(self, "api_delays_ms", MappingProxyType(dict(self.api_delays_ms)))

    @property
    def is_dev_env(self) -> bool:
        return self.env in DEV_ENV_NAMES

    @property
    def raise_storage_faults(self) -> bool:
        return self.storage_faults == "raise"

    @property
    def search_debounce_seconds(self) -> float:
        return max(0, int(self.search_debounce_ms)) / 1000.0

    @staticmethod
    def for_tests(**overrides) -> "AppConfig":
        """In-memory, zero-latency configuration for isolated test instances."""
        values = {
            "env": "test",
            "storage_backend": "memory",
            "storage_path": "",
            "storage_quota_bytes": 0,
            "seed_projects": False,
            "api_delays_ms": {kind: 0 for kind in _default_api_delays()},
        }
        values.update(overrides)
        return AppConfig(**values)

    @staticmethod
    def from_env() -> "AppConfig":
        env_name = get_env(PORTFOLIO_ENV, DEFAULT_ENV_NAME).lower() or DEFAULT_ENV_NAME
        storage_backend = _resolve_choice(
            PORTFOLIO_STORAGE_BACKEND,
            DEFAULT_STORAGE_BACKEND,
            DEFAULT_STORAGE_BACKENDS,
        )
        if storage_backend == "memory" and env_name not in DEV_ENV_NAMES:
            raise RuntimeError(
                "PORTFOLIO_STORAGE_BACKEND=memory is allowed only for dev/local/test environments. "
                "Set PORTFOLIO_ENV=dev (or local), or use the sqlite backend."
            )
        simulate_latency = get_env_bool(PORTFOLIO_SIMULATE_LATENCY, default=True)
        return AppConfig(
            env=env_name,
            storage_backend=storage_backend,
            storage_path=_resolve_repo_relative_path(get_env(PORTFOLIO_STORAGE_PATH, DEFAULT_STORAGE_PATH)),
            storage_quota_bytes=get_env_int(
                PORTFOLIO_STORAGE_QUOTA_BYTES,
                default=DEFAULT_STORAGE_QUOTA_BYTES,
                min_value=0,
            ),
            storage_faults=_resolve_choice(
                PORTFOLIO_STORAGE_FAULTS,
                DEFAULT_STORAGE_FAULT_MODE,
                DEFAULT_STORAGE_FAULT_MODES,
            ),
            seed_projects=get_env_bool(PORTFOLIO_SEED_PROJECTS, default=True),
            api_delays_ms=_resolve_api_delays(simulate_latency),
            notify_poll_interval_sec=get_env_float(
                PORTFOLIO_NOTIFY_POLL_INTERVAL_SEC,
                default=DEFAULT_NOTIFY_POLL_INTERVAL_SEC,
                min_value=0.01,
            ),
            notify_permission=_resolve_choice(
                PORTFOLIO_NOTIFY_PERMISSION,
                DEFAULT_NOTIFY_PERMISSION,
                NOTIFY_PERMISSION_CHOICES,
            ),
            search_debounce_ms=get_env_int(
                PORTFOLIO_SEARCH_DEBOUNCE_MS,
                default=DEFAULT_SEARCH_DEBOUNCE_MS,
                min_value=0,
            ),
        )
