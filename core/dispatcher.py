"""
Notification fan-out.

dispatch() returns immediately; every recipient gets its own delivery task
so one slow or broken DM never delays the others. Unreachable recipients
are pruned from the subscriber store, every other failure is logged and
dropped (no retries).
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Iterable, Optional, Set

from shared.logging.logger import get_logger

log = get_logger("core.dispatcher")


class DeliveryFailure(Enum):
    UNREACHABLE = "unreachable"
    OTHER = "other"


@dataclass(frozen=True)
class DeliveryResult:
    ok: bool
    failure: Optional[DeliveryFailure] = None
    detail: str = ""

    @classmethod
    def delivered(cls) -> "DeliveryResult":
        return cls(ok=True)

    @classmethod
    def unreachable(cls, detail: str = "") -> "DeliveryResult":
        return cls(ok=False, failure=DeliveryFailure.UNREACHABLE, detail=detail)

    @classmethod
    def failed(cls, detail: str = "") -> "DeliveryResult":
        return cls(ok=False, failure=DeliveryFailure.OTHER, detail=detail)


DeliverFn = Callable[[int, str], Awaitable[DeliveryResult]]
RemoveFn = Callable[[int], object]


class Dispatcher:
    def __init__(self, deliver: DeliverFn, remove_subscriber: RemoveFn):
        self._deliver = deliver
        self._remove_subscriber = remove_subscriber
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(self, recipients: Iterable[int], message: str, category: str) -> None:
        recipients = list(recipients)
        if not recipients:
            log.debug(f"No {category} subscribers to notify")
            return

        log.info(f"Dispatching {category} notification to {len(recipients)} subscriber(s)")

        for user_id in recipients:
            task = asyncio.create_task(
                self._deliver_one(user_id, message, category),
                name=f"deliver-{category}-{user_id}",
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for every outstanding delivery to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _deliver_one(self, user_id: int, message: str, category: str) -> None:
        try:
            result = await self._deliver(user_id, message)
        except Exception as e:
            log.error(f"Failed to send {category} notification to {user_id}: {e}")
            return

        if result.ok:
            log.debug(f"Delivered {category} notification to {user_id}")
            return

        if result.failure is DeliveryFailure.UNREACHABLE:
            log.info(f"Removing unreachable subscriber {user_id} ({result.detail or 'unreachable'})")
            try:
                self._remove_subscriber(user_id)
            except Exception as e:
                log.error(f"Failed to remove subscriber {user_id}: {e}")
            return

        log.error(f"Failed to send {category} notification to {user_id}: {result.detail}")
