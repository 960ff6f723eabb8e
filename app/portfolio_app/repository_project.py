from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from portfolio_app.core.defaults import PROJECTS_STORAGE_KEY
from portfolio_app.core.models import PROJECT_INPUT_FIELDS, Project, normalize_technologies
from portfolio_app.infrastructure.latency import OperationKind
from portfolio_app.mock_data import initial_projects

LOGGER = logging.getLogger(__name__)

_IGNORED_PROJECT_FIELDS = {"id", "created_at", "updated_at"}
_OPTIONAL_PROJECT_FIELDS = ("live_url", "github_url", "project_image", "banner_image")


def _coerce_project_changes(payload: Mapping[str, Any]) -> dict[str, Any]:
    changes = {key: payload[key] for key in PROJECT_INPUT_FIELDS if key in payload}
    if "technologies" in changes:
        changes["technologies"] = normalize_technologies(changes["technologies"])
    for key in ("title", "description"):
        if key in changes:
            changes[key] = str(changes[key] or "")
    for key in _OPTIONAL_PROJECT_FIELDS:
        if key in changes:
            changes[key] = changes[key] or None
    return changes


class RepositoryProjectMixin:
    def _load_projects(self) -> list[Project]:
        documents = self.store.load(PROJECTS_STORAGE_KEY, None)
        if documents is None:
            if not self.config.seed_projects:
                return []
            seeded = initial_projects()
            self._issued_ids.update(project.id for project in seeded)
            return seeded
        return self._decode_records(documents, Project.from_document, "project")

    def _persist_projects(self) -> None:
        self._persist(PROJECTS_STORAGE_KEY, lambda: [project.to_document() for project in self._projects])

    async def fetch_all_projects(self) -> list[Project]:
        return await self._call(OperationKind.FETCH, lambda: self._newest_first(self._projects))

    async def save_project(self, data: Mapping[str, Any]) -> Project | None:
        """Create a project (no ``id``) or shallow-merge fields onto an existing one.

        Technologies may be a sequence or a comma-separated string. Returns the
        stored record, or ``None`` when an update names an id that does not exist.
        """
        payload = dict(data or {})
        return await self._call(OperationKind.SAVE, lambda: self._save_project_now(payload))

    def _save_project_now(self, payload: dict[str, Any]) -> Project | None:
        record_id = str(payload.get("id") or "").strip()
        unsupported = sorted(set(payload) - set(PROJECT_INPUT_FIELDS) - _IGNORED_PROJECT_FIELDS)
        if unsupported:
            LOGGER.debug("Ignoring unsupported project fields: %s", ", ".join(map(str, unsupported)))
        changes = _coerce_project_changes(payload)
        now = self._now()

        with self._locks[PROJECTS_STORAGE_KEY]:
            if record_id:
                index = self._index_of(self._projects, record_id)
                if index is None:
                    LOGGER.warning(
                        "Project update ignored; no project with id=%s.",
                        record_id,
                        extra={"event": "project_update_missing", "project_id": record_id},
                    )
                    return None
                saved = replace(self._projects[index], **changes, updated_at=now)
                self._projects[index] = saved
                event = "project_updated"
            else:
                saved = Project(
                    id=self._new_id("p"),
                    title=changes.get("title", ""),
                    description=changes.get("description", ""),
                    technologies=changes.get("technologies", ()),
                    live_url=changes.get("live_url"),
                    github_url=changes.get("github_url"),
                    project_image=changes.get("project_image"),
                    banner_image=changes.get("banner_image"),
                    created_at=now,
                    updated_at=now,
                )
                self._projects.insert(0, saved)
                event = "project_created"
            self._persist_projects()

        LOGGER.info("Saved project id=%s.", saved.id, extra={"event": event, "project_id": saved.id})
        return saved

    async def delete_project(self, project_id: str) -> None:
        await self._call(OperationKind.DELETE, lambda: self._delete_project_now(project_id))

    def _delete_project_now(self, project_id: str) -> None:
        with self._locks[PROJECTS_STORAGE_KEY]:
            index = self._index_of(self._projects, str(project_id or ""))
            if index is None:
                LOGGER.debug("Project delete skipped; no project with id=%s.", project_id)
                return
            del self._projects[index]
            self._persist_projects()
        LOGGER.info("Deleted project id=%s.", project_id, extra={"event": "project_deleted", "project_id": project_id})
