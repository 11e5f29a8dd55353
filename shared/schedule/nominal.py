"""
Nominal schedule estimation for the weekly show.

The show is announced for a fixed weekly slot (Friday 16:30 in Vancouver by
default) but routinely starts hours early or late. Everything here answers
"when is it *supposed* to happen", never "is it live".

Design rules:
- Pure functions of (now, schedule); no I/O, no logging
- All returned datetimes are timezone-aware in the show's timezone
- Distances are computed on UTC instants, never on wall-clock values
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

_HOUR = 60 * 60
_DAY = 24 * _HOUR

# Buffer window after the slot during which the current week is still "next"
_BUFFER_SECONDS = 5 * _HOUR


@dataclass(frozen=True)
class AlternateTime:
    """One-off override for a specific show date (YYYY/MM/DD)."""

    date: str
    days: int = 0
    hour: Optional[int] = None
    minute: Optional[int] = None


@dataclass(frozen=True)
class ShowSchedule:
    timezone: str = "America/Vancouver"
    weekday: int = 4  # Monday == 0
    hour: int = 16
    minute: int = 30
    alternate_times: Tuple[AlternateTime, ...] = ()

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


DEFAULT_SCHEDULE = ShowSchedule()


@dataclass(frozen=True)
class TimeUntil:
    distance: timedelta
    late: bool
    text: str


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def _aware(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def _seconds_between(later: datetime, earlier: datetime) -> float:
    return later.timestamp() - earlier.timestamp()


def _loose_occurrence(now: datetime, schedule: ShowSchedule) -> datetime:
    # The show runs past midnight UTC; early UTC hours still belong to the
    # previous calendar day.
    utc = now.astimezone(timezone.utc)
    day = utc.date()
    if utc.hour <= 3:
        day -= timedelta(days=1)

    return datetime.combine(
        day,
        time(schedule.hour, schedule.minute),
        tzinfo=schedule.zone,
    )


def _apply_alternate_time(
    candidate: datetime,
    schedule: ShowSchedule,
) -> datetime:
    key = f"{candidate.year}/{candidate.month:02d}/{candidate.day:02d}"

    for alternate in schedule.alternate_times:
        if alternate.date != key:
            continue

        if alternate.days:
            candidate += timedelta(days=alternate.days)

        return candidate.replace(
            hour=candidate.hour if alternate.hour is None else alternate.hour,
            minute=candidate.minute if alternate.minute is None else alternate.minute,
        )

    return candidate


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def next_occurrence(
    now: Optional[datetime] = None,
    buffer: bool = True,
    has_done: Optional[bool] = None,
    schedule: ShowSchedule = DEFAULT_SCHEDULE,
) -> datetime:
    """
    Estimate the next nominal occurrence of the show.

    `buffer` keeps the current week's slot after it passes: until the show
    is reported done when `has_done` is known, otherwise by a fixed heuristic.
    The poller relies on this to notice that the show is running late.
    With `buffer=False` a passed slot immediately rolls over to next week.
    """
    now = _aware(now)
    candidate = _loose_occurrence(now, schedule)

    while candidate.weekday() != schedule.weekday:
        candidate += timedelta(days=1)

    if buffer:
        if has_done is not None:
            should_stay = not has_done
        else:
            should_stay = _seconds_between(now, candidate) > _BUFFER_SECONDS
    else:
        should_stay = False

    if _seconds_between(now, candidate) > 0 and not should_stay:
        candidate += timedelta(days=7)

    # Never count down to next week while this week's show is still pending
    if _seconds_between(candidate, now) > 6 * _DAY and should_stay:
        candidate -= timedelta(days=7)

    # Show already finished ahead of its slot
    if has_done and _seconds_between(candidate, now) < _DAY:
        candidate += timedelta(days=7)

    return _apply_alternate_time(candidate, schedule)


def previous_occurrence(
    now: Optional[datetime] = None,
    schedule: ShowSchedule = DEFAULT_SCHEDULE,
) -> datetime:
    now = _aware(now)
    candidate = _loose_occurrence(now, schedule)

    while candidate.weekday() != schedule.weekday:
        candidate -= timedelta(days=1)

    if _seconds_between(candidate, now) > 0:
        candidate -= timedelta(days=7)

    return _apply_alternate_time(candidate, schedule)


def closest_occurrence(
    now: Optional[datetime] = None,
    schedule: ShowSchedule = DEFAULT_SCHEDULE,
) -> datetime:
    now = _aware(now)
    upcoming = next_occurrence(now, buffer=False, schedule=schedule)
    previous = previous_occurrence(now, schedule=schedule)

    if abs(_seconds_between(upcoming, now)) > abs(_seconds_between(previous, now)):
        return previous
    return upcoming


def time_string(
    seconds: float,
    long: bool = False,
    show_seconds: bool = True,
) -> str:
    """Render a non-negative duration, e.g. "2d 3h 4m 5s"."""
    total = int(max(seconds, 0))

    days = total // _DAY
    hours = (total % _DAY) // _HOUR
    minutes = (total % _HOUR) // 60
    secs = total % 60

    d = (" days " if days != 1 else " day ") if long else "d "
    h = (" hours " if hours != 1 else " hour ") if long else "h "
    m = (" minutes " if minutes != 1 else " minute ") if long else "m "
    s = (" seconds " if secs != 1 else " second ") if long else "s "

    days_s = f"{days}{d}" if days > 0 else ""
    hours_s = f"{hours}{h}" if hours > 0 else ""
    minutes_s = f"{minutes}{m}" if minutes > 0 else ""
    and_s = "and " if long and (days_s or hours_s or minutes_s) else ""

    if show_seconds:
        text = f"{days_s}{hours_s}{minutes_s}{and_s}{secs}{s}"
    else:
        text = f"{days_s}{hours_s}{minutes_s}" + ("" if minutes > 0 else "<1 minute")

    return text.strip()


def time_until(target: datetime, now: Optional[datetime] = None) -> TimeUntil:
    now = _aware(now)
    diff = _seconds_between(target, now)
    distance = abs(diff)

    return TimeUntil(
        distance=timedelta(seconds=distance),
        late=diff < 0,
        text=time_string(distance),
    )


def lateness(
    now: Optional[datetime] = None,
    schedule: ShowSchedule = DEFAULT_SCHEDULE,
) -> str:
    """How far from the closest nominal slot `now` is, e.g. "1h 5m late"."""
    now = _aware(now)
    diff = _seconds_between(now, closest_occurrence(now, schedule=schedule))
    distance = int(abs(diff))

    hours = distance // _HOUR
    minutes = (distance % _HOUR) // 60
    suffix = "early" if diff < 0 else "late"

    if hours > 0:
        return f"{hours}h {minutes}m {suffix}"
    return f"{minutes}m {suffix}"


__all__ = [
    "AlternateTime",
    "ShowSchedule",
    "DEFAULT_SCHEDULE",
    "TimeUntil",
    "next_occurrence",
    "previous_occurrence",
    "closest_occurrence",
    "time_string",
    "time_until",
    "lateness",
]
