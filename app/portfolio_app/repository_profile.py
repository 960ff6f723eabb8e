from __future__ import annotations

import logging
from typing import Any

from portfolio_app.core.defaults import PROFILE_IMAGE_STORAGE_KEY

LOGGER = logging.getLogger(__name__)


class RepositoryProfileMixin:
    """Standalone profile-image reference, kept under its own storage key.

    These calls are synchronous and skip the simulated latency.
    """

    def get_profile_image(self) -> Any | None:
        return self.store.load(PROFILE_IMAGE_STORAGE_KEY, None, expect=None)

    def set_profile_image(self, reference: Any | None) -> None:
        if not reference:
            self.clear_profile_image()
            return
        self._persist(PROFILE_IMAGE_STORAGE_KEY, lambda: reference)
        LOGGER.info("Profile image updated.", extra={"event": "profile_image_updated"})

    def clear_profile_image(self) -> None:
        self._forget(PROFILE_IMAGE_STORAGE_KEY)
        LOGGER.info("Profile image removed.", extra={"event": "profile_image_removed"})
