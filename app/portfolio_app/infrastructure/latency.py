from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from enum import Enum

from portfolio_app.core.config import AppConfig

LOGGER = logging.getLogger(__name__)


class OperationKind(str, Enum):
    FETCH = "fetch"
    SAVE = "save"
    DELETE = "delete"
    CONTACT = "contact"
    STATUS = "status"


class LatencySimulator:
    """Artificial round-trip delay applied before every service call.

    Delays are configured per operation kind in milliseconds. A kind with no
    configured delay does not wait.
    """

    def __init__(self, delays_ms: Mapping[str, int] | None = None) -> None:
        self._delays_ms = {
            OperationKind(kind).value: max(0, int(value))
            for kind, value in dict(delays_ms or {}).items()
        }

    @classmethod
    def from_config(cls, config: AppConfig) -> "LatencySimulator":
        return cls(config.api_delays_ms)

    @classmethod
    def disabled(cls) -> "LatencySimulator":
        return cls({kind.value: 0 for kind in OperationKind})

    def delay_ms(self, kind: OperationKind | str) -> int:
        return self._delays_ms.get(OperationKind(kind).value, 0)

    async def wait(self, duration_ms: float) -> None:
        duration = max(0.0, float(duration_ms))
        if duration <= 0:
            # Still yield so callers always suspend at the same point.
            await asyncio.sleep(0)
            return
        await asyncio.sleep(duration / 1000.0)

    async def wait_for(self, kind: OperationKind | str) -> None:
        duration = self.delay_ms(kind)
        LOGGER.debug("Simulating %s latency of %sms.", OperationKind(kind).value, duration)
        await self.wait(duration)
