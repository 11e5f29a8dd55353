"""
Typed status-change events and the channel that carries them.

The live checker only publishes; whoever consumes the channel (notification
router, tests, diagnostics) decides what an event means for users.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional, Protocol, Union

from core.detector import Transitions
from services.whenplane.models.status import (
    LiveStatus,
    NotablePeopleStatus,
    NotablePerson,
)


@dataclass(frozen=True)
class EventStatusChanged:
    current: LiveStatus
    previous: Optional[LiveStatus]
    transitions: Transitions


@dataclass(frozen=True)
class ThumbnailUploaded:
    current: LiveStatus
    previous: Optional[LiveStatus]


@dataclass(frozen=True)
class EventOnPlatform:
    platform: str
    current: LiveStatus
    previous: Optional[LiveStatus]


@dataclass(frozen=True)
class EntityWentLive:
    entity_id: str
    person: NotablePerson
    current: NotablePeopleStatus
    previous: Optional[NotablePeopleStatus]


StatusEvent = Union[EventStatusChanged, ThumbnailUploaded, EventOnPlatform, EntityWentLive]


class EventSink(Protocol):
    def publish(self, event: StatusEvent) -> None:
        ...


class EventChannel:
    """Unbounded FIFO of status events between the checker and its consumer."""

    def __init__(self):
        self._queue: "asyncio.Queue[StatusEvent]" = asyncio.Queue()

    def publish(self, event: StatusEvent) -> None:
        self._queue.put_nowait(event)

    async def get(self) -> StatusEvent:
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()
