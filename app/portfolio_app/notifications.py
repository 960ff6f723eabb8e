from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from portfolio_app.core.defaults import (
    DEFAULT_NOTIFY_POLL_INTERVAL_SEC,
    NOTIFICATION_ICON,
    NOTIFICATION_TITLE,
)

LOGGER = logging.getLogger(__name__)


class NotificationPermission(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    DEFAULT = "default"


@dataclass(frozen=True)
class Notification:
    title: str
    body: str
    icon: str = NOTIFICATION_ICON


class NotificationHost(Protocol):
    def permission(self) -> NotificationPermission:
        ...

    async def request_permission(self) -> NotificationPermission:
        ...

    def show(self, notification: Notification) -> None:
        ...

    def has_focus(self) -> bool:
        ...


class UnreadCounter(Protocol):
    def unread_count(self) -> int:
        ...


class LoggingNotificationHost:
    """Headless host: notifications are logged and kept in ``shown``.

    ``answer`` is the decision returned when permission is requested while
    still undecided.
    """

    def __init__(
        self,
        *,
        permission: NotificationPermission | str = NotificationPermission.DEFAULT,
        answer: NotificationPermission | str = NotificationPermission.GRANTED,
        focused: bool = False,
    ) -> None:
        self._permission = NotificationPermission(permission)
        self._answer = NotificationPermission(answer)
        self.focused = focused
        self.permission_requests = 0
        self.shown: list[Notification] = []

    def permission(self) -> NotificationPermission:
        return self._permission

    async def request_permission(self) -> NotificationPermission:
        self.permission_requests += 1
        if self._permission is NotificationPermission.DEFAULT:
            self._permission = self._answer
        LOGGER.info("Notification permission resolved to %s.", self._permission.value)
        return self._permission

    def show(self, notification: Notification) -> None:
        self.shown.append(notification)
        LOGGER.info(
            "%s: %s",
            notification.title,
            notification.body,
            extra={"event": "notification_shown"},
        )

    def has_focus(self) -> bool:
        return self.focused


def unread_message_body(count: int) -> str:
    return f"You have {count} unread message{'s' if count != 1 else ''}"


class NotificationPoller:
    """Background check of the unread-message count.

    ``start()`` evaluates once immediately, then every ``interval_seconds`` until
    ``stop()``. The latest count is exposed as ``unread_count`` and pushed to
    subscribers whenever it changes.
    """

    def __init__(
        self,
        counter: UnreadCounter,
        host: NotificationHost,
        *,
        interval_seconds: float = DEFAULT_NOTIFY_POLL_INTERVAL_SEC,
    ) -> None:
        self.counter = counter
        self.host = host
        self.interval_seconds = max(0.001, float(interval_seconds))
        self.unread_count = 0
        self._subscribers: list[Callable[[int], None]] = []
        self._task: asyncio.Task | None = None
        self._permission_task: asyncio.Task | None = None
        self._permission_requested = False
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def subscribe(self, callback: Callable[[int], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def start(self) -> None:
        if self._active:
            return
        self._active = True
        self.check_now()
        self._task = asyncio.get_running_loop().create_task(self._run())
        if not self._permission_requested:
            self._permission_requested = True
            if self.host.permission() is NotificationPermission.DEFAULT:
                self._permission_task = asyncio.get_running_loop().create_task(self._request_permission())
        LOGGER.debug("Notification poller started. interval=%ss", self.interval_seconds)

    async def stop(self) -> None:
        if not self._active:
            return
        self._active = False
        pending = [task for task in (self._task, self._permission_task) if task is not None]
        for task in pending:
            task.cancel()
        for task in pending:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._permission_task = None
        LOGGER.debug("Notification poller stopped.")

    async def __aenter__(self) -> "NotificationPoller":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    def check_now(self) -> int:
        count = int(self.counter.unread_count())
        if count != self.unread_count:
            self.unread_count = count
            for callback in list(self._subscribers):
                callback(count)
        if not self._active:
            return count
        if count > 0 and not self.host.has_focus():
            if self.host.permission() is NotificationPermission.GRANTED:
                self.host.show(Notification(title=NOTIFICATION_TITLE, body=unread_message_body(count)))
        return count

    async def _run(self) -> None:
        while self._active:
            await asyncio.sleep(self.interval_seconds)
            if not self._active:
                return
            try:
                self.check_now()
            except Exception:
                LOGGER.exception("Unread-message check failed.")

    async def _request_permission(self) -> None:
        try:
            permission = await self.host.request_permission()
        except Exception:
            LOGGER.warning("Notification permission request failed.", exc_info=True)
            return
        LOGGER.info("Notification permission is %s.", NotificationPermission(permission).value)
