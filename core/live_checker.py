"""
Adaptive live checker (poll loop).

Owns the single polling timeline:

    wait(interval) -> fetch -> normalize -> detect -> publish -> remember

Lifecycle contract:
- start() is awaitable and a no-op when already running
- the first observation is a baseline and never publishes events
- stop() is idempotent, wakes a pending wait immediately and lets an
  in-flight fetch finish on its own timeout
- PollState is only ever mutated by this class
- a platform follow-up is never published in the cycle the show goes live
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import partial
from typing import Any, Callable, Dict, Optional

from core.detector import EventPlatformTracker, detect, detect_notable
from core.events import (
    EntityWentLive,
    EventOnPlatform,
    EventSink,
    EventStatusChanged,
    StatusEvent,
    ThumbnailUploaded,
)
from core.intervals import DEFAULT_INTERVALS, Intervals, select_interval
from services.whenplane.api.aggregate import AggregateAPI
from services.whenplane.models.status import LiveStatus, NotablePeopleStatus
from services.whenplane.normalizer import normalize, normalize_notable
from shared.logging.logger import get_logger
from shared.schedule.nominal import next_occurrence

log = get_logger("core.live_checker")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PollState:
    running: bool = False
    last_status: Optional[LiveStatus] = None
    last_notable_status: Optional[NotablePeopleStatus] = None
    last_thumbnail_fresh: bool = False

    def reset(self) -> None:
        self.running = False
        self.last_status = None
        self.last_notable_status = None
        self.last_thumbnail_fresh = False


class LiveChecker:
    def __init__(
        self,
        *,
        fetcher: AggregateAPI,
        schedule: Optional[Callable[..., datetime]] = None,
        intervals: Intervals = DEFAULT_INTERVALS,
        platform_tracker: Optional[EventPlatformTracker] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._fetcher = fetcher
        self._schedule = schedule or partial(next_occurrence, buffer=True)
        self._intervals = intervals
        self._tracker = platform_tracker or EventPlatformTracker()
        self._clock = clock

        self._state = PollState()
        self._sink: Optional[EventSink] = None
        self._task: Optional[asyncio.Task] = None
        self._wake: Optional[asyncio.Event] = None

    # --------------------------------------------------
    # Lifecycle
    # --------------------------------------------------

    @property
    def running(self) -> bool:
        return self._state.running

    async def start(self, sink: EventSink) -> None:
        if self._state.running:
            log.debug("Live checker already running - start ignored")
            return

        self._state.running = True
        self._sink = sink
        self._wake = asyncio.Event()

        log.info("Starting adaptive live checker...")
        log.info(f"Strategy: {self._intervals.describe()}")
        log.info("Notable people: checked on every poll")

        status, notable = await asyncio.gather(
            self.get_current_event_status(),
            self.get_current_notable_status(),
        )

        if not self._state.running:
            log.info("Live checker stopped during initial check")
            return

        self._state.last_status = status
        self._state.last_notable_status = notable
        self._state.last_thumbnail_fresh = status.is_thumbnail_fresh
        self._tracker.prime(status)

        log.info(
            f"Initial status: show={'LIVE' if status.is_live else 'Offline'}, "
            f"notable={'LIVE' if notable.has_any_live else 'Offline'}"
        )

        self._task = asyncio.create_task(self._run(), name="live-checker")

    async def stop(self) -> None:
        if not self._state.running and self._task is None:
            return

        self._state.running = False
        self._sink = None
        if self._wake is not None:
            self._wake.set()

        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            await asyncio.gather(task, return_exceptions=True)

        self._state.reset()
        self._tracker.reset()
        log.info("Stopped live checker")

    # --------------------------------------------------
    # On-demand accessors (never touch PollState)
    # --------------------------------------------------

    async def get_current_event_status(self, force_fresh: bool = False) -> LiveStatus:
        return normalize(await self._fetcher.fetch(force_fresh))

    async def get_current_notable_status(
        self,
        force_fresh: bool = False,
    ) -> NotablePeopleStatus:
        return normalize_notable(await self._fetcher.fetch(force_fresh))

    # --------------------------------------------------
    # Poll loop
    # --------------------------------------------------

    def next_delay(self) -> timedelta:
        now = self._clock()
        last = self._state.last_status
        # Hold on to this week's slot until WhenPlane reports the show done
        nominal = self._schedule(now, has_done=last.has_done if last else None)
        return select_interval(
            last,
            nominal,
            now=now,
            intervals=self._intervals,
        )

    async def _wait(self, delay: timedelta) -> None:
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=delay.total_seconds())
        except asyncio.TimeoutError:
            pass

    async def _run(self) -> None:
        try:
            while self._state.running:
                try:
                    delay = self.next_delay()
                except Exception:
                    log.exception("Poll interval selection failed; using the default interval")
                    delay = self._intervals.default

                await self._wait(delay)
                if not self._state.running:
                    break

                try:
                    await self.poll_once()
                except Exception:
                    log.exception("Live check cycle failed")
        except asyncio.CancelledError:
            log.debug("Live checker task cancelled")
            raise

    async def poll_once(self) -> None:
        """Run one fetch/detect/publish cycle against the held state."""
        snapshot = await self._fetcher.fetch()
        if not self._state.running:
            return

        # ------------------------------
        # Show status
        # ------------------------------
        current = normalize(snapshot)
        previous = self._state.last_status
        transitions = detect(previous, current)

        if transitions.any_status_change:
            log.info(
                f"Show status change: went_live={transitions.went_live}, "
                f"event_started={transitions.event_started}"
            )
            self._publish(EventStatusChanged(current, previous, transitions))

        if transitions.thumbnail_newly_fresh:
            log.info("Thumbnail uploaded - the show might start soon")
            self._publish(ThumbnailUploaded(current, previous))

        # Observed every cycle so the sticky flag tracks the platforms
        followed_up = self._tracker.observe(previous, current)
        if followed_up and transitions.went_live and current.is_event:
            # Already covered by the go-live notification
            log.debug(f"Follow-up for {', '.join(followed_up)} folded into go-live")
            followed_up = []

        for platform in followed_up:
            log.info(f"Show is now live on {platform}")
            self._publish(EventOnPlatform(platform, current, previous))

        self._state.last_status = current
        self._state.last_thumbnail_fresh = current.is_thumbnail_fresh

        # ------------------------------
        # Notable people
        # ------------------------------
        current_notable = normalize_notable(snapshot)
        previous_notable = self._state.last_notable_status

        newly_live = detect_notable(previous_notable, current_notable)
        if newly_live:
            log.info(f"Notable people went live: {', '.join(newly_live)}")

        for entity_id in newly_live:
            self._publish(
                EntityWentLive(
                    entity_id=entity_id,
                    person=current_notable.people[entity_id],
                    current=current_notable,
                    previous=previous_notable,
                )
            )

        self._state.last_notable_status = current_notable

    def _publish(self, event: StatusEvent) -> None:
        if self._sink is None:
            return
        try:
            self._sink.publish(event)
        except Exception as e:
            log.error(f"Failed to publish {type(event).__name__}: {e}")

    # --------------------------------------------------
    # Read-only introspection
    # --------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        state = self._state
        return {
            "running": state.running,
            "last_status": state.last_status.to_dict() if state.last_status else None,
            "last_notable_status": (
                state.last_notable_status.to_dict()
                if state.last_notable_status
                else None
            ),
            "last_thumbnail_fresh": state.last_thumbnail_fresh,
            "platform_follow_up_sticky": self._tracker.sticky,
        }
