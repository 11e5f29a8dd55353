"""
Adaptive poll interval selection.

Polling tightens as the nominal slot approaches and on any "imminent" signal,
and relaxes once the show is confirmed live:

- live and confirmed as the show  -> 5 minutes (re-verify only)
- fresh thumbnail uploaded        -> 10 seconds
- running late vs. nominal slot   -> 30 seconds
- < 10 minutes to nominal slot    -> 30 seconds
- otherwise                       -> 1 minute
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from services.whenplane.models.status import LiveStatus
from shared.logging.logger import get_logger

log = get_logger("core.intervals")


@dataclass(frozen=True)
class Intervals:
    default: timedelta = timedelta(minutes=1)
    close: timedelta = timedelta(seconds=30)
    very_close: timedelta = timedelta(seconds=10)
    live: timedelta = timedelta(minutes=5)
    close_threshold: timedelta = timedelta(minutes=10)

    @classmethod
    def from_seconds(
        cls,
        *,
        default: float,
        close: float,
        very_close: float,
        live: float,
        close_threshold: float,
    ) -> "Intervals":
        return cls(
            default=timedelta(seconds=default),
            close=timedelta(seconds=close),
            very_close=timedelta(seconds=very_close),
            live=timedelta(seconds=live),
            close_threshold=timedelta(seconds=close_threshold),
        )

    def describe(self) -> str:
        def _fmt(value: timedelta) -> str:
            seconds = int(value.total_seconds())
            if seconds % 60 == 0:
                return f"{seconds // 60}min"
            return f"{seconds}sec"

        return (
            f"{_fmt(self.default)} (default) -> {_fmt(self.close)} "
            f"(<{_fmt(self.close_threshold)}) -> {_fmt(self.very_close)} "
            f"(thumbnail) -> {_fmt(self.live)} (live)"
        )


DEFAULT_INTERVALS = Intervals()


def select_interval(
    last_status: Optional[LiveStatus],
    nominal: datetime,
    now: Optional[datetime] = None,
    intervals: Intervals = DEFAULT_INTERVALS,
) -> timedelta:
    if last_status is not None and last_status.is_live and last_status.is_event:
        log.debug("Show is live - re-verifying on the live interval")
        return intervals.live

    if last_status is not None and last_status.is_thumbnail_fresh:
        log.debug("New thumbnail detected - polling on the very-close interval")
        return intervals.very_close

    now = now or datetime.now(timezone.utc)
    remaining = nominal.timestamp() - now.timestamp()

    if remaining < 0:
        log.debug("Show is late - polling on the close interval")
        return intervals.close

    if remaining < intervals.close_threshold.total_seconds():
        log.debug("Nominal slot is close - polling on the close interval")
        return intervals.close

    log.debug("Polling on the default interval")
    return intervals.default
