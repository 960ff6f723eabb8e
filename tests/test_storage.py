from __future__ import annotations

import asyncio
import json
import logging
import sys
import threading
from pathlib import Path

import pytest

APP_ROOT = Path(__file__).resolve().parents[1] / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from portfolio_app.core.config import AppConfig  # noqa: E402
from portfolio_app.core.defaults import (  # noqa: E402
    CONTACTS_STORAGE_KEY,
    PROFILE_IMAGE_STORAGE_KEY,
    PROJECTS_STORAGE_KEY,
)
from portfolio_app.infrastructure.latency import LatencySimulator  # noqa: E402
from portfolio_app.infrastructure.storage import (  # noqa: E402
    DurableStore,
    MemoryKeyValueStore,
    SqliteKeyValueStore,
    StorageFault,
    StorageQuotaExceededError,
    StorageWriteError,
    build_key_value_store,
)
from portfolio_app.repository import RecordService  # noqa: E402


class _BrokenBackend(MemoryKeyValueStore):
    def get_item(self, key: str) -> str | None:
        raise OSError("disk unavailable")

    def set_item(self, key: str, value: str) -> None:
        raise OSError("disk unavailable")


def test_load_returns_fallback_for_missing_key() -> None:
    store = DurableStore(MemoryKeyValueStore())

    assert store.load("nothing-here", ["fallback"]) == ["fallback"]


def test_load_returns_fallback_for_malformed_json(caplog: pytest.LogCaptureFixture) -> None:
    store = DurableStore(MemoryKeyValueStore(initial={"k": "[1, 2"}))

    with caplog.at_level(logging.WARNING):
        assert store.load("k", []) == []

    assert "not valid JSON" in caplog.text


def test_load_returns_fallback_for_wrong_document_type() -> None:
    store = DurableStore(MemoryKeyValueStore(initial={"k": json.dumps({"not": "a list"})}))

    assert store.load("k", []) == []
    assert store.load("k", None, expect=dict) == {"not": "a list"}


def test_load_absorbs_backend_read_errors() -> None:
    store = DurableStore(_BrokenBackend())

    assert store.load("k", []) == []


def test_save_failure_raises_and_keeps_previous_value() -> None:
    backend = MemoryKeyValueStore(quota_bytes=64)
    store = DurableStore(backend)
    store.save("k", ["small"])

    with pytest.raises(StorageQuotaExceededError):
        store.save("k", ["x" * 200])

    assert store.load("k", []) == ["small"]


def test_save_wraps_unexpected_backend_errors() -> None:
    store = DurableStore(_BrokenBackend())

    with pytest.raises(StorageWriteError):
        store.save("k", [1])


def test_quota_counts_other_keys() -> None:
    backend = MemoryKeyValueStore(quota_bytes=40)
    backend.set_item("a", "x" * 20)

    with pytest.raises(StorageQuotaExceededError):
        backend.set_item("b", "y" * 30)

    backend.set_item("a", "x" * 30)
    assert backend.get_item("a") == "x" * 30


def test_sqlite_store_round_trips_documents(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "store.db"
    backend = SqliteKeyValueStore(str(db_path))
    store = DurableStore(backend)

    store.save(PROJECTS_STORAGE_KEY, [{"id": "p1"}])
    store.save(PROJECTS_STORAGE_KEY, [{"id": "p2"}])
    store.save(PROFILE_IMAGE_STORAGE_KEY, "blob:profile")
    store.remove(PROFILE_IMAGE_STORAGE_KEY)
    backend.close()

    reopened = DurableStore(SqliteKeyValueStore(str(db_path)))
    assert reopened.load(PROJECTS_STORAGE_KEY, []) == [{"id": "p2"}]
    assert reopened.load(PROFILE_IMAGE_STORAGE_KEY, None, expect=None) is None
    reopened.close()


def test_sqlite_store_enforces_quota(tmp_path: Path) -> None:
    backend = SqliteKeyValueStore(str(tmp_path / "store.db"), quota_bytes=50)

    with pytest.raises(StorageQuotaExceededError):
        backend.set_item("k", "z" * 100)

    assert backend.get_item("k") is None
    backend.close()


def test_build_key_value_store_follows_config(tmp_path: Path) -> None:
    memory = build_key_value_store(AppConfig.for_tests())
    sqlite = build_key_value_store(
        AppConfig.for_tests(storage_backend="sqlite", storage_path=str(tmp_path / "s.db"))
    )

    assert isinstance(memory, MemoryKeyValueStore)
    assert isinstance(sqlite, SqliteKeyValueStore)
    sqlite.close()


def _quota_service(storage_faults: str) -> tuple[RecordService, MemoryKeyValueStore]:
    backend = MemoryKeyValueStore(quota_bytes=400)
    service = RecordService(
        AppConfig.for_tests(storage_faults=storage_faults),
        store=DurableStore(backend),
        latency=LatencySimulator.disabled(),
    )
    return service, backend


def test_service_surfaces_storage_faults_by_default() -> None:
    service, backend = _quota_service("raise")

    with pytest.raises(StorageFault):
        asyncio.run(service.submit_contact({"name": "A", "email": "a@example.com", "message": "m" * 500}))

    assert backend.get_item(CONTACTS_STORAGE_KEY) is None
    assert service.unread_count() == 1


def test_service_can_absorb_storage_faults() -> None:
    service, backend = _quota_service("absorb")

    receipt = asyncio.run(
        service.submit_contact({"name": "A", "email": "a@example.com", "message": "m" * 500})
    )

    assert receipt.success is True
    assert backend.get_item(CONTACTS_STORAGE_KEY) is None
    contacts = asyncio.run(service.fetch_all_contacts())
    assert [contact.id for contact in contacts] == [receipt.contact_id]


def test_profile_image_is_an_independent_document(service: RecordService, backend: MemoryKeyValueStore) -> None:
    assert service.get_profile_image() is None

    service.set_profile_image("blob:profile-1")

    assert service.get_profile_image() == "blob:profile-1"
    assert backend.get_item(PROJECTS_STORAGE_KEY) is None

    service.set_profile_image(None)

    assert service.get_profile_image() is None
    assert PROFILE_IMAGE_STORAGE_KEY not in backend.keys()


def _project_payload(**overrides):
    payload = {"title": "Shop", "description": "An online shop.", "technologies": "React"}
    payload.update(overrides)
    return payload


def test_uncopyable_image_reference_is_absorbed_as_write_fault() -> None:
    service, backend = _quota_service("absorb")

    saved = asyncio.run(service.save_project(_project_payload(project_image=threading.Lock())))

    assert saved is not None
    assert backend.get_item(PROJECTS_STORAGE_KEY) is None
    assert [project.id for project in asyncio.run(service.fetch_all_projects())] == [saved.id]


def test_uncopyable_image_reference_raises_write_fault() -> None:
    service, backend = _quota_service("raise")

    with pytest.raises(StorageWriteError):
        asyncio.run(service.save_project(_project_payload(banner_image=threading.Lock())))

    assert backend.get_item(PROJECTS_STORAGE_KEY) is None
    assert len(asyncio.run(service.fetch_all_projects())) == 1


def test_bytes_image_references_survive_a_reload(backend: MemoryKeyValueStore) -> None:
    config = AppConfig.for_tests()
    first = RecordService(config, store=DurableStore(backend), latency=LatencySimulator.disabled())
    saved = asyncio.run(
        first.save_project(_project_payload(project_image=b"\x89PNG", banner_image=bytearray(b"GIF89a")))
    )
    first.set_profile_image(b"\xff\xd8\xff")

    second = RecordService(config, store=DurableStore(backend), latency=LatencySimulator.disabled())
    reloaded = asyncio.run(second.fetch_all_projects())

    assert reloaded[0].id == saved.id
    assert reloaded[0].project_image == b"\x89PNG"
    assert reloaded[0].banner_image == b"GIF89a"
    assert second.get_profile_image() == b"\xff\xd8\xff"


def test_non_json_values_are_refused_not_stringified() -> None:
    backend = MemoryKeyValueStore()
    store = DurableStore(backend)

    with pytest.raises(StorageWriteError):
        store.save("k", [object()])

    assert backend.get_item("k") is None


def test_sqlite_quota_counts_bytes_like_memory_store(tmp_path: Path) -> None:
    sqlite = SqliteKeyValueStore(str(tmp_path / "store.db"), quota_bytes=20)
    memory = MemoryKeyValueStore(quota_bytes=20)

    for backend in (sqlite, memory):
        backend.set_item("a", "é" * 8)
        backend.set_item("b", "xy")
        with pytest.raises(StorageQuotaExceededError):
            backend.set_item("b", "xyz")

    sqlite.close()


def test_failure_after_caller_cancels_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    service, _ = _quota_service("raise")
    service.latency = LatencySimulator({"contact": 30})

    async def _run():
        pending = asyncio.ensure_future(
            service.submit_contact({"name": "A", "email": "a@example.com", "message": "m" * 500})
        )
        await asyncio.sleep(0.005)
        pending.cancel()
        await asyncio.sleep(0.1)

    with caplog.at_level(logging.ERROR):
        asyncio.run(_run())

    assert "Service call failed after its caller stopped waiting." in caplog.text
    assert service.unread_count() == 1
