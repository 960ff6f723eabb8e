from __future__ import annotations

import asyncio
import logging
import threading
import time
import uuid
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any, TypeVar

from portfolio_app.core.config import AppConfig
from portfolio_app.core.defaults import CONTACTS_STORAGE_KEY, PROJECTS_STORAGE_KEY
from portfolio_app.core.util import utc_now
from portfolio_app.infrastructure.latency import LatencySimulator, OperationKind
from portfolio_app.infrastructure.storage import (
    DurableStore,
    StorageFault,
    StorageWriteError,
    build_key_value_store,
)
from portfolio_app.repository_contact import RepositoryContactMixin
from portfolio_app.repository_profile import RepositoryProfileMixin
from portfolio_app.repository_project import RepositoryProjectMixin

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def _log_abandoned_failure(task: asyncio.Future) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        LOGGER.error(
            "Service call failed after its caller stopped waiting.",
            exc_info=(type(exc), exc, exc.__traceback__),
            extra={"event": "abandoned_call_failed"},
        )


class RecordService(
    RepositoryProjectMixin,
    RepositoryContactMixin,
    RepositoryProfileMixin,
):
    """In-process stand-in for the portfolio API.

    Owns the project and contact collections, writes them through the durable
    store after every mutation and delays every coroutine call by the
    configured simulated latency.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        store: DurableStore | None = None,
        latency: LatencySimulator | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.store = store if store is not None else DurableStore(build_key_value_store(config))
        self.latency = latency if latency is not None else LatencySimulator.from_config(config)
        self._clock = clock or utc_now
        self._locks = {
            PROJECTS_STORAGE_KEY: threading.Lock(),
            CONTACTS_STORAGE_KEY: threading.Lock(),
        }
        self._issued_ids: set[str] = set()
        self._projects = self._load_projects()
        self._contacts = self._load_contacts()
        LOGGER.info(
            "Record service ready. projects=%s contacts=%s backend=%s",
            len(self._projects),
            len(self._contacts),
            config.storage_backend,
            extra={"event": "record_service_ready"},
        )

    def _now(self) -> datetime:
        return self._clock()

    async def _call(self, kind: OperationKind, operation: Callable[[], T]) -> T:
        # The inner task completes and persists even if the awaiting caller is cancelled.
        async def _run() -> T:
            await self.latency.wait_for(kind)
            return operation()

        task = asyncio.ensure_future(_run())
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            task.add_done_callback(_log_abandoned_failure)
            raise

    def _new_id(self, prefix: str) -> str:
        while True:
            candidate = f"{prefix}{int(time.time() * 1000)}{uuid.uuid4().hex[:9]}"
            if candidate not in self._issued_ids:
                self._issued_ids.add(candidate)
                return candidate

    def _decode_records(
        self,
        documents: Iterable[Any],
        decoder: Callable[[Mapping[str, Any]], R],
        label: str,
    ) -> list[R]:
        records: list[R] = []
        seen: set[str] = set()
        for document in documents:
            if not isinstance(document, Mapping):
                LOGGER.warning("Skipping stored %s that is not an object.", label)
                continue
            try:
                record = decoder(document)
            except (TypeError, ValueError, KeyError):
                LOGGER.warning("Skipping unreadable stored %s %r.", label, document.get("id"), exc_info=True)
                continue
            record_id = getattr(record, "id")
            if record_id in seen:
                LOGGER.warning("Skipping duplicate stored %s id=%s.", label, record_id)
                continue
            seen.add(record_id)
            records.append(record)
        self._issued_ids.update(seen)
        return records

    @staticmethod
    def _index_of(records: list[Any], record_id: str) -> int | None:
        for index, record in enumerate(records):
            if record.id == record_id:
                return index
        return None

    @staticmethod
    def _newest_first(records: list[R]) -> list[R]:
        return sorted(records, key=lambda record: getattr(record, "created_at"), reverse=True)

    def _persist(self, key: str, build: Callable[[], Any]) -> None:
        """Write the document produced by ``build``, honouring the fault mode."""
        try:
            try:
                value = build()
            except (TypeError, ValueError) as exc:
                LOGGER.error("Failed to build document for '%s'.", key, exc_info=True)
                raise StorageWriteError(f"Could not encode '{key}': {exc}") from exc
            self.store.save(key, value)
        except StorageFault:
            if self.config.raise_storage_faults:
                raise
            LOGGER.warning(
                "Keeping in-memory state for '%s' after storage write failure.",
                key,
                extra={"event": "storage_fault_absorbed", "storage_key": key},
            )

    def _forget(self, key: str) -> None:
        try:
            self.store.remove(key)
        except StorageFault:
            if self.config.raise_storage_faults:
                raise
            LOGGER.warning(
                "Could not remove '%s' from storage; continuing.",
                key,
                extra={"event": "storage_fault_absorbed", "storage_key": key},
            )

    def close(self) -> None:
        self.store.close()
