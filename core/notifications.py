"""
Notification router.

Consumes the status event channel and turns each event into a rendered
message for the right subscriber category:

- EventStatusChanged (went live as the show) -> "event" subscribers
- EventOnPlatform                            -> "event" subscribers
- EntityWentLive                             -> "notable" subscribers
- ThumbnailUploaded                          -> log only
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable

from core.dispatcher import Dispatcher
from core.events import (
    EntityWentLive,
    EventChannel,
    EventOnPlatform,
    EventStatusChanged,
    StatusEvent,
    ThumbnailUploaded,
)
from core.messages import (
    render_entity_live,
    render_event_live,
    render_event_on_platform,
    truncate_message,
)
from shared.logging.logger import get_logger
from shared.schedule.nominal import DEFAULT_SCHEDULE, ShowSchedule, lateness
from shared.storage.subscriptions import SubscriptionStore

log = get_logger("core.notifications")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class NotificationRouter:
    def __init__(
        self,
        *,
        store: SubscriptionStore,
        dispatcher: Dispatcher,
        schedule: ShowSchedule = DEFAULT_SCHEDULE,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._store = store
        self._dispatcher = dispatcher
        self._schedule = schedule
        self._clock = clock

    async def run(self, channel: EventChannel) -> None:
        log.info("Notification router started")
        try:
            while True:
                event = await channel.get()
                try:
                    self.handle(event)
                except Exception:
                    log.exception(f"Failed to route {type(event).__name__}")
                finally:
                    channel.task_done()
        except asyncio.CancelledError:
            log.info("Notification router stopped")
            raise

    def handle(self, event: StatusEvent) -> None:
        if isinstance(event, EventStatusChanged):
            self._on_status_changed(event)
        elif isinstance(event, EventOnPlatform):
            self._on_platform(event)
        elif isinstance(event, EntityWentLive):
            self._on_entity_live(event)
        elif isinstance(event, ThumbnailUploaded):
            log.info("New thumbnail uploaded - show is probably starting soon")
        else:
            log.warning(f"Unhandled event type: {type(event).__name__}")

    # ------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------

    def _lateness(self) -> str:
        return lateness(self._clock(), schedule=self._schedule)

    def _on_status_changed(self, event: EventStatusChanged) -> None:
        current = event.current
        if not (event.transitions.went_live and current.is_live and current.is_event):
            log.debug("Status change is not the show going live - nothing to send")
            return

        log.info("WAN Show is LIVE! Notifying subscribers...")
        message = truncate_message(render_event_live(current, self._lateness()))
        self._dispatcher.dispatch(self._store.list_subscribers("event"), message, "event")

    def _on_platform(self, event: EventOnPlatform) -> None:
        log.info(f"WAN Show is now on {event.platform}! Sending follow-up notification...")
        message = truncate_message(
            render_event_on_platform(event.platform, event.current, self._lateness())
        )
        self._dispatcher.dispatch(
            self._store.list_subscribers("event"),
            message,
            f"event-{event.platform}",
        )

    def _on_entity_live(self, event: EntityWentLive) -> None:
        name = event.person.display_name(event.entity_id)
        log.info(f"{name} went live")
        message = truncate_message(render_entity_live(event.entity_id, event.person))
        self._dispatcher.dispatch(self._store.list_subscribers("notable"), message, "notable")
