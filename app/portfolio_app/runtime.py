from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from portfolio_app.core.config import AppConfig
from portfolio_app.debounce import Debouncer
from portfolio_app.infrastructure.logging import setup_app_logging
from portfolio_app.notifications import LoggingNotificationHost, NotificationHost, NotificationPoller
from portfolio_app.repository import RecordService
from portfolio_app.views import ProjectBrowser

LOGGER = logging.getLogger(__name__)


@dataclass
class AppRuntime:
    """One session's shared handles, passed explicitly to every consumer."""

    config: AppConfig
    service: RecordService
    notification_host: NotificationHost = field(default_factory=LoggingNotificationHost)

    def new_poller(self) -> NotificationPoller:
        return NotificationPoller(
            self.service,
            self.notification_host,
            interval_seconds=self.config.notify_poll_interval_sec,
        )

    def new_search_debouncer(self, callback: Callable[[str], Any] | None = None) -> Debouncer[str]:
        return Debouncer(callback, quiet_seconds=self.config.search_debounce_seconds, initial="")

    def new_project_browser(self, **kwargs: Any) -> ProjectBrowser:
        return ProjectBrowser(quiet_seconds=self.config.search_debounce_seconds, **kwargs)

    def close(self) -> None:
        try:
            self.service.close()
        except Exception:
            LOGGER.warning("Failed to close record service cleanly.", exc_info=True)


def create_runtime(
    config: AppConfig | None = None,
    *,
    notification_host: NotificationHost | None = None,
    configure_logging: bool = True,
) -> AppRuntime:
    if configure_logging:
        setup_app_logging()
    runtime_config = config if config is not None else AppConfig.from_env()
    host = notification_host
    if host is None:
        host = LoggingNotificationHost(permission=runtime_config.notify_permission)
    runtime = AppRuntime(
        config=runtime_config,
        service=RecordService(runtime_config),
        notification_host=host,
    )
    LOGGER.info(
        "Portfolio runtime created. env=%s storage=%s",
        runtime_config.env,
        runtime_config.storage_backend,
        extra={"event": "runtime_created"},
    )
    return runtime
