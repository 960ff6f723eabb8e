from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable
from typing import Any, Generic, TypeVar


T = TypeVar("T")

_MISSING = object()


class Debouncer(Generic[T]):
    """Emit a value only after it has stayed unchanged for ``quiet_seconds``.

    Every ``push`` restarts the quiet period and supersedes the pending value.
    The settled value is kept in ``value`` and handed to ``callback``, which may
    be a plain function or a coroutine function. Must be used from inside a
    running event loop.
    """

    def __init__(
        self,
        callback: Callable[[T], Any] | None = None,
        *,
        quiet_seconds: float = 0.3,
        initial: T | None = None,
    ) -> None:
        self.callback = callback
        self.quiet_seconds = max(0.0, float(quiet_seconds))
        self.value: T | None = initial
        self._pending: Any = _MISSING
        self._handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def push(self, value: T) -> None:
        self._cancel_timer()
        self._pending = value
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.quiet_seconds, self._emit)

    def cancel(self) -> None:
        self._cancel_timer()
        self._pending = _MISSING

    def flush(self) -> None:
        if self._handle is None:
            return
        self._cancel_timer()
        self._emit()

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _emit(self) -> None:
        self._handle = None
        if self._pending is _MISSING:
            return
        value = self._pending
        self._pending = _MISSING
        self.value = value
        if self.callback is None:
            return
        result = self.callback(value)
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
