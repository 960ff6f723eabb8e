from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any

import pandas as pd

from portfolio_app.core.defaults import CONTACT_FILTER_OPTIONS, DEFAULT_SEARCH_DEBOUNCE_MS, FACET_ALL
from portfolio_app.core.models import ContactMessage, ContactStatus, Project
from portfolio_app.debounce import Debouncer


def _projects_frame(projects: Sequence[Project]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "title": [project.title or "" for project in projects],
            "description": [project.description or "" for project in projects],
            "technologies": [list(project.technologies or ()) for project in projects],
        }
    )


def _contacts_frame(contacts: Sequence[ContactMessage]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "read": pd.Series([bool(contact.read) for contact in contacts], dtype=bool),
            "status": pd.Series([ContactStatus(contact.status).value for contact in contacts], dtype=object),
        }
    )


def technology_facets(projects: Iterable[Project]) -> list[str]:
    projects = list(projects)
    if not projects:
        return [FACET_ALL]
    technologies = _projects_frame(projects)["technologies"].explode().dropna()
    return [FACET_ALL, *sorted(set(technologies.astype(str)))]


def filter_projects(
    projects: Iterable[Project],
    technology: str = FACET_ALL,
    search_term: str = "",
) -> list[Project]:
    """Projects carrying ``technology`` (unless All) and matching ``search_term``.

    The search is a case-insensitive substring match on title, description or
    any technology. Both filters must hold.
    """
    projects = list(projects)
    if not projects:
        return []
    frame = _projects_frame(projects)
    mask = pd.Series(True, index=frame.index)

    if technology and technology != FACET_ALL:
        mask &= frame["technologies"].map(lambda techs: technology in techs).astype(bool)

    term = str(search_term or "").lower()
    if term:
        title_hit = frame["title"].str.lower().str.contains(term, regex=False, na=False)
        description_hit = frame["description"].str.lower().str.contains(term, regex=False, na=False)
        technology_hit = frame["technologies"].map(
            lambda techs: any(term in str(tech).lower() for tech in techs)
        ).astype(bool)
        mask &= title_hit | description_hit | technology_hit

    return [projects[position] for position in frame.index[mask.to_numpy(dtype=bool)]]


def _normalize_contact_filter(status_filter: str | None) -> str:
    normalized = (status_filter or "").strip().lower()
    if not normalized:
        return "all"
    if normalized not in CONTACT_FILTER_OPTIONS:
        allowed_text = ", ".join(CONTACT_FILTER_OPTIONS)
        raise ValueError(f"status_filter must be one of: {allowed_text}.")
    return normalized


def _contact_masks(frame: pd.DataFrame) -> dict[str, pd.Series]:
    replied = frame["status"] == ContactStatus.REPLIED.value
    return {
        "all": pd.Series(True, index=frame.index),
        "new": ~frame["read"],
        "read": frame["read"] & ~replied,
        "replied": replied,
    }


def filter_contacts(contacts: Iterable[ContactMessage], status_filter: str = "all") -> list[ContactMessage]:
    selector = _normalize_contact_filter(status_filter)
    contacts = list(contacts)
    if not contacts:
        return []
    frame = _contacts_frame(contacts)
    mask = _contact_masks(frame)[selector]
    return [contacts[position] for position in frame.index[mask.to_numpy(dtype=bool)]]


def contact_status_counts(contacts: Iterable[ContactMessage]) -> dict[str, int]:
    contacts = list(contacts)
    if not contacts:
        return {option: 0 for option in CONTACT_FILTER_OPTIONS}
    masks = _contact_masks(_contacts_frame(contacts))
    return {option: int(masks[option].sum()) for option in CONTACT_FILTER_OPTIONS}


def unread_badge(count: int) -> str:
    if count <= 0:
        return ""
    return "9+" if count > 9 else str(count)


def unread_summary(count: int) -> str:
    return f"{count} unread message{'s' if count != 1 else ''}"


class ProjectBrowser:
    """Public project list state: a snapshot, a facet and a debounced search box."""

    def __init__(
        self,
        projects: Iterable[Project] = (),
        *,
        quiet_seconds: float = DEFAULT_SEARCH_DEBOUNCE_MS / 1000.0,
        on_change: Callable[[list[Project]], Any] | None = None,
    ) -> None:
        self._projects = list(projects)
        self.selected_technology = FACET_ALL
        self.search_term = ""
        self.on_change = on_change
        self._search = Debouncer(self._search_settled, quiet_seconds=quiet_seconds, initial="")

    @property
    def projects(self) -> list[Project]:
        return list(self._projects)

    @property
    def facets(self) -> list[str]:
        return technology_facets(self._projects)

    @property
    def settled_search(self) -> str:
        return self._search.value or ""

    @property
    def visible(self) -> list[Project]:
        return filter_projects(self._projects, self.selected_technology, self.settled_search)

    def set_projects(self, projects: Iterable[Project]) -> None:
        self._projects = list(projects)
        self._changed()

    def select_technology(self, technology: str) -> None:
        self.selected_technology = technology or FACET_ALL
        self._changed()

    def set_search(self, term: str) -> None:
        self.search_term = term
        self._search.push(term)

    async def refresh(self, service) -> list[Project]:
        self.set_projects(await service.fetch_all_projects())
        return self.visible

    def close(self) -> None:
        self._search.cancel()

    def _search_settled(self, _term: str) -> None:
        self._changed()

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self.visible)
