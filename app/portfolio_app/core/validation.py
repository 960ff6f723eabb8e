"""Input rules applied by the project and contact forms before they call the service.

The service itself stores whatever it is given; these helpers let the UI layer
reject malformed input first.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlparse

from portfolio_app.core.defaults import (
    ALLOWED_IMAGE_TYPES,
    MAX_IMAGE_SIZE_BYTES,
    MIN_CONTACT_MESSAGE_LENGTH,
    MIN_PROJECT_DESCRIPTION_LENGTH,
    MIN_PROJECT_TITLE_LENGTH,
)

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")


class ValidationError(ValueError):
    """Raised when caller-supplied input breaks a form rule."""


class ImageValidationError(ValidationError):
    """Raised when a selected image has an unsupported type or size."""


def validate_image_file(content_type: str, size: int) -> bool:
    if str(content_type or "").strip().lower() not in ALLOWED_IMAGE_TYPES:
        raise ImageValidationError("Please select a valid image file (JPEG, PNG, GIF)")
    if int(size) > MAX_IMAGE_SIZE_BYTES:
        raise ImageValidationError("Please select an image smaller than 5MB")
    return True


def is_valid_url(value: str) -> bool:
    try:
        parsed = urlparse(str(value or "").strip())
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc)


def _text(data: Mapping[str, Any], key: str) -> str:
    return str(data.get(key) or "")


def validate_project_form(data: Mapping[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}

    title = _text(data, "title")
    if not title.strip():
        errors["title"] = "Title is required"
    elif len(title) < MIN_PROJECT_TITLE_LENGTH:
        errors["title"] = f"Title must be at least {MIN_PROJECT_TITLE_LENGTH} characters"

    description = _text(data, "description")
    if not description.strip():
        errors["description"] = "Description is required"
    elif len(description) < MIN_PROJECT_DESCRIPTION_LENGTH:
        errors["description"] = f"Description must be at least {MIN_PROJECT_DESCRIPTION_LENGTH} characters"

    for key in ("live_url", "github_url"):
        value = _text(data, key)
        if value and not is_valid_url(value):
            errors[key] = "Please enter a valid URL"

    return errors


def validate_contact_form(data: Mapping[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}

    if not _text(data, "name").strip():
        errors["name"] = "Name is required"

    email = _text(data, "email")
    if not email.strip():
        errors["email"] = "Email is required"
    elif not EMAIL_PATTERN.search(email):
        errors["email"] = "Please enter a valid email address"

    message = _text(data, "message")
    if not message.strip():
        errors["message"] = "Message is required"
    elif len(message) < MIN_CONTACT_MESSAGE_LENGTH:
        errors["message"] = f"Message must be at least {MIN_CONTACT_MESSAGE_LENGTH} characters"

    return errors
