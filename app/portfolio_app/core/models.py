from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from portfolio_app.core.util import parse_timestamp


class ContactStatus(str, Enum):
    NEW = "new"
    READ = "read"
    REPLIED = "replied"


PROJECT_INPUT_FIELDS = (
    "title",
    "description",
    "technologies",
    "live_url",
    "github_url",
    "project_image",
    "banner_image",
)


def normalize_technologies(value: Any) -> tuple[str, ...]:
    """Accept a sequence of names or one comma-separated string.

    Entries are trimmed and empty entries dropped; order and duplicates are kept.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        parts: Iterable[Any] = value.split(",")
    else:
        parts = value
    return tuple(
        cleaned
        for cleaned in (str(part or "").strip() for part in parts)
        if cleaned
    )


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _timestamp_or_none(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    return parse_timestamp(value)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class Project:
    id: str
    title: str
    description: str
    technologies: tuple[str, ...]
    created_at: datetime
    updated_at: datetime | None = None
    live_url: str | None = None
    github_url: str | None = None
    project_image: Any = None
    banner_image: Any = None

    def to_document(self) -> dict[str, Any]:
        # image references are passed through untouched; DurableStore encodes them
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "technologies": list(self.technologies),
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
            "live_url": self.live_url,
            "github_url": self.github_url,
            "project_image": self.project_image,
            "banner_image": self.banner_image,
        }

    @staticmethod
    def from_document(document: Mapping[str, Any]) -> "Project":
        record_id = str(document.get("id") or "").strip()
        if not record_id:
            raise ValueError("project document has no id")
        return Project(
            id=record_id,
            title=str(document.get("title") or ""),
            description=str(document.get("description") or ""),
            technologies=normalize_technologies(document.get("technologies")),
            created_at=parse_timestamp(document.get("created_at")),
            updated_at=_timestamp_or_none(document.get("updated_at")),
            live_url=_optional_text(document.get("live_url")),
            github_url=_optional_text(document.get("github_url")),
            project_image=document.get("project_image") or None,
            banner_image=document.get("banner_image") or None,
        )


@dataclass(frozen=True)
class ContactMessage:
    id: str
    name: str
    email: str
    message: str
    created_at: datetime
    read: bool = False
    status: ContactStatus = ContactStatus.NEW

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "message": self.message,
            "created_at": _isoformat(self.created_at),
            "read": bool(self.read),
            "status": self.status.value,
        }

    @staticmethod
    def from_document(document: Mapping[str, Any]) -> "ContactMessage":
        record_id = str(document.get("id") or "").strip()
        if not record_id:
            raise ValueError("contact document has no id")
        return ContactMessage(
            id=record_id,
            name=str(document.get("name") or ""),
            email=str(document.get("email") or ""),
            message=str(document.get("message") or ""),
            created_at=parse_timestamp(document.get("created_at")),
            read=bool(document.get("read", False)),
            status=ContactStatus(str(document.get("status") or ContactStatus.NEW.value)),
        )


@dataclass(frozen=True)
class ContactReceipt:
    success: bool
    message: str
    contact_id: str
