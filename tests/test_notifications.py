from __future__ import annotations

import asyncio
import sys
from pathlib import Path

APP_ROOT = Path(__file__).resolve().parents[1] / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from portfolio_app.core.defaults import NOTIFICATION_TITLE  # noqa: E402
from portfolio_app.notifications import (  # noqa: E402
    LoggingNotificationHost,
    NotificationPermission,
    NotificationPoller,
    unread_message_body,
)


class _Counter:
    def __init__(self, value: int = 0) -> None:
        self.value = value
        self.reads = 0

    def unread_count(self) -> int:
        self.reads += 1
        return self.value


def test_message_body_pluralizes() -> None:
    assert unread_message_body(1) == "You have 1 unread message"
    assert unread_message_body(3) == "You have 3 unread messages"


def test_start_checks_immediately_and_notifies_when_unfocused() -> None:
    counter = _Counter(2)
    host = LoggingNotificationHost(permission="granted")
    poller = NotificationPoller(counter, host, interval_seconds=60)

    async def _run():
        poller.start()
        await poller.stop()

    asyncio.run(_run())

    assert poller.unread_count == 2
    assert len(host.shown) == 1
    assert host.shown[0].title == NOTIFICATION_TITLE
    assert host.shown[0].body == "You have 2 unread messages"


def test_no_notification_when_focused_or_empty_or_not_granted() -> None:
    cases = [
        (_Counter(2), LoggingNotificationHost(permission="granted", focused=True)),
        (_Counter(0), LoggingNotificationHost(permission="granted")),
        (_Counter(2), LoggingNotificationHost(permission="denied")),
    ]

    async def _run(counter, host):
        poller = NotificationPoller(counter, host, interval_seconds=60)
        poller.start()
        await poller.stop()

    for counter, host in cases:
        asyncio.run(_run(counter, host))
        assert host.shown == []


def test_repeats_on_the_interval() -> None:
    counter = _Counter(1)
    host = LoggingNotificationHost(permission="granted")

    async def _run():
        async with NotificationPoller(counter, host, interval_seconds=0.02):
            await asyncio.sleep(0.11)

    asyncio.run(_run())

    assert counter.reads >= 4
    assert len(host.shown) == counter.reads


def test_no_evaluation_after_stop() -> None:
    counter = _Counter(1)
    host = LoggingNotificationHost(permission="granted")
    poller = NotificationPoller(counter, host, interval_seconds=0.01)

    async def _run():
        poller.start()
        await asyncio.sleep(0.035)
        await poller.stop()
        reads_at_stop = counter.reads
        shown_at_stop = len(host.shown)
        await asyncio.sleep(0.05)
        return reads_at_stop, shown_at_stop

    reads_at_stop, shown_at_stop = asyncio.run(_run())

    assert counter.reads == reads_at_stop
    assert len(host.shown) == shown_at_stop
    assert poller.active is False


def test_check_after_stop_updates_count_but_never_notifies() -> None:
    counter = _Counter(1)
    host = LoggingNotificationHost(permission="granted", focused=True)
    poller = NotificationPoller(counter, host, interval_seconds=60)

    async def _run():
        poller.start()
        await poller.stop()

    asyncio.run(_run())
    host.focused = False
    counter.value = 5

    assert poller.check_now() == 5
    assert host.shown == []


def test_permission_requested_once_when_undecided() -> None:
    host = LoggingNotificationHost(permission="default", answer="granted")
    poller = NotificationPoller(_Counter(0), host, interval_seconds=60)

    async def _run():
        poller.start()
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        await poller.stop()
        poller.start()
        await asyncio.sleep(0)
        await poller.stop()

    asyncio.run(_run())

    assert host.permission_requests == 1
    assert host.permission() is NotificationPermission.GRANTED


def test_permission_not_requested_when_already_decided() -> None:
    host = LoggingNotificationHost(permission="denied")
    poller = NotificationPoller(_Counter(0), host, interval_seconds=60)

    async def _run():
        poller.start()
        await asyncio.sleep(0)
        await poller.stop()

    asyncio.run(_run())

    assert host.permission_requests == 0


def test_subscribers_receive_count_changes() -> None:
    counter = _Counter(1)
    seen: list[int] = []
    poller = NotificationPoller(counter, LoggingNotificationHost(permission="denied"), interval_seconds=0.01)
    unsubscribe = poller.subscribe(seen.append)

    async def _run():
        poller.start()
        await asyncio.sleep(0.025)
        counter.value = 3
        await asyncio.sleep(0.025)
        unsubscribe()
        counter.value = 0
        await asyncio.sleep(0.025)
        await poller.stop()

    asyncio.run(_run())

    assert seen == [1, 3]
    assert poller.unread_count == 0


def test_poller_reads_service_unread_count(service) -> None:
    host = LoggingNotificationHost(permission="granted")

    async def _run():
        await service.submit_contact({"name": "A", "email": "a@example.com", "message": "hello there"})
        await service.submit_contact({"name": "B", "email": "b@example.com", "message": "hello again"})
        async with NotificationPoller(service, host, interval_seconds=60) as poller:
            return poller.unread_count

    assert asyncio.run(_run()) == 2
    assert host.shown[0].body == "You have 2 unread messages"
