from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

APP_ROOT = Path(__file__).resolve().parents[1] / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from portfolio_app.core.config import AppConfig  # noqa: E402
from portfolio_app.infrastructure.latency import LatencySimulator  # noqa: E402
from portfolio_app.infrastructure.storage import DurableStore, MemoryKeyValueStore  # noqa: E402
from portfolio_app.repository import RecordService  # noqa: E402


class TickingClock:
    """Deterministic clock that advances one second per reading."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2025, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current = self.current + timedelta(seconds=1)
        return self.current


@pytest.fixture()
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture()
def backend() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture()
def test_config() -> AppConfig:
    return AppConfig.for_tests()


@pytest.fixture()
def service(test_config: AppConfig, backend: MemoryKeyValueStore, clock: TickingClock) -> RecordService:
    return RecordService(
        test_config,
        store=DurableStore(backend),
        latency=LatencySimulator.disabled(),
        clock=clock,
    )


@pytest.fixture()
def isolated_storage_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    db_path = tmp_path / "portfolio_store.db"
    monkeypatch.setenv("PORTFOLIO_ENV", "dev")
    monkeypatch.setenv("PORTFOLIO_STORAGE_BACKEND", "sqlite")
    monkeypatch.setenv("PORTFOLIO_STORAGE_PATH", str(db_path))
    monkeypatch.setenv("PORTFOLIO_SIMULATE_LATENCY", "false")
    return db_path
