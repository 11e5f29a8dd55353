from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.intervals import Intervals
from services.whenplane.api import aggregate
from services.whenplane.models.status import PLATFORM_ORDER
from shared.logging.logger import get_logger
from shared.schedule.nominal import AlternateTime, ShowSchedule

log = get_logger("shared.config.watcher")


@dataclass
class IntervalSettings:
    default: float = 60
    close: float = 30
    very_close: float = 10
    live: float = 300
    close_threshold: float = 600

    def to_intervals(self) -> Intervals:
        return Intervals.from_seconds(
            default=self.default,
            close=self.close,
            very_close=self.very_close,
            live=self.live,
            close_threshold=self.close_threshold,
        )


@dataclass
class RateLimitSettings:
    user_seconds: float = 5.0
    admin_seconds: float = 2.0


@dataclass
class WatcherConfig:
    aggregate_url: str = aggregate.AGGREGATE_URL
    is_there_wan_url: str = aggregate.IS_THERE_WAN_URL
    user_agent: str = aggregate.USER_AGENT
    fetch_timeout_seconds: float = aggregate.FETCH_TIMEOUT_SECONDS
    cache_seconds: float = aggregate.CACHE_SECONDS
    intervals: IntervalSettings = field(default_factory=IntervalSettings)
    schedule: ShowSchedule = field(default_factory=ShowSchedule)
    follow_up_platforms: Tuple[str, ...] = ("youtube",)
    subscriptions_path: str = "data/subscriptions.json"
    legacy_subscribers_path: str = "data/subscribers.json"
    rate_limits: RateLimitSettings = field(default_factory=RateLimitSettings)
    state_path: str = "shared/state/runtime.json"


# ----------------------------------------------------------------------
# Field coercion (invalid values warn and fall back)
# ----------------------------------------------------------------------

def _positive_number(raw: Dict[str, Any], key: str, default: float, scope: str) -> float:
    if key not in raw:
        return default

    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        log.warning(f"{scope}.{key} must be a positive number; defaulting to {default}")
        return default
    return float(value)


def _string(raw: Dict[str, Any], key: str, default: str) -> str:
    if key not in raw:
        return default

    value = raw.get(key)
    if not isinstance(value, str) or not value.strip():
        log.warning(f"{key} must be a non-empty string; defaulting to {default!r}")
        return default
    return value.strip()


def _int_in_range(
    raw: Dict[str, Any],
    key: str,
    default: int,
    low: int,
    high: int,
) -> int:
    if key not in raw:
        return default

    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        log.warning(f"schedule.{key} must be an integer in [{low}, {high}]; defaulting to {default}")
        return default
    return value


def _load_intervals(raw: Any) -> IntervalSettings:
    if not isinstance(raw, dict):
        return IntervalSettings()

    defaults = IntervalSettings()
    return IntervalSettings(
        default=_positive_number(raw, "default", defaults.default, "intervals"),
        close=_positive_number(raw, "close", defaults.close, "intervals"),
        very_close=_positive_number(raw, "very_close", defaults.very_close, "intervals"),
        live=_positive_number(raw, "live", defaults.live, "intervals"),
        close_threshold=_positive_number(
            raw, "close_threshold", defaults.close_threshold, "intervals"
        ),
    )


def _load_rate_limits(raw: Any) -> RateLimitSettings:
    if not isinstance(raw, dict):
        return RateLimitSettings()

    defaults = RateLimitSettings()
    return RateLimitSettings(
        user_seconds=_positive_number(raw, "user_seconds", defaults.user_seconds, "rate_limits"),
        admin_seconds=_positive_number(raw, "admin_seconds", defaults.admin_seconds, "rate_limits"),
    )


def _alternate_field(entry: Dict[str, Any], key: str, high: int) -> Optional[int]:
    value = entry.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= high:
        log.warning(
            f"alternate time {entry['date']}: {key} must be an integer in [0, {high}]; ignoring"
        )
        return None
    return value


def _load_alternate_times(raw: Any) -> Tuple[AlternateTime, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        log.warning("schedule.alternate_times must be an array; ignoring")
        return ()

    entries: List[AlternateTime] = []
    for entry in raw:
        if not isinstance(entry, dict) or not isinstance(entry.get("date"), str):
            log.warning("Skipping invalid alternate time entry (expected object with date)")
            continue

        days = entry.get("days", 0)
        if isinstance(days, bool) or not isinstance(days, int):
            log.warning(f"alternate time {entry['date']}: days must be an integer; using 0")
            days = 0

        entries.append(
            AlternateTime(
                date=entry["date"],
                days=days,
                hour=_alternate_field(entry, "hour", 23),
                minute=_alternate_field(entry, "minute", 59),
            )
        )

    return tuple(entries)


def _load_schedule(raw: Any) -> ShowSchedule:
    if not isinstance(raw, dict):
        return ShowSchedule()

    defaults = ShowSchedule()
    timezone_name = _string(raw, "timezone", defaults.timezone)
    try:
        ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError):
        log.warning(f"Unknown timezone {timezone_name!r}; defaulting to {defaults.timezone}")
        timezone_name = defaults.timezone

    return ShowSchedule(
        timezone=timezone_name,
        weekday=_int_in_range(raw, "weekday", defaults.weekday, 0, 6),
        hour=_int_in_range(raw, "hour", defaults.hour, 0, 23),
        minute=_int_in_range(raw, "minute", defaults.minute, 0, 59),
        alternate_times=_load_alternate_times(raw.get("alternate_times")),
    )


def _load_follow_up_platforms(raw: Any) -> Tuple[str, ...]:
    default = WatcherConfig.follow_up_platforms
    if raw is None:
        return default
    if not isinstance(raw, list):
        log.warning("follow_up_platforms must be an array; defaulting to youtube")
        return default

    platforms = []
    for entry in raw:
        if entry in PLATFORM_ORDER:
            platforms.append(entry)
        else:
            log.warning(f"Ignoring unknown follow-up platform: {entry!r}")
    return tuple(platforms)


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def load_watcher_config(raw: Optional[Dict[str, Any]]) -> WatcherConfig:
    if not isinstance(raw, dict):
        return WatcherConfig()

    defaults = WatcherConfig()
    return WatcherConfig(
        aggregate_url=_string(raw, "aggregate_url", defaults.aggregate_url),
        is_there_wan_url=_string(raw, "is_there_wan_url", defaults.is_there_wan_url),
        user_agent=_string(raw, "user_agent", defaults.user_agent),
        fetch_timeout_seconds=_positive_number(
            raw, "fetch_timeout_seconds", defaults.fetch_timeout_seconds, "watcher"
        ),
        cache_seconds=_positive_number(raw, "cache_seconds", defaults.cache_seconds, "watcher"),
        intervals=_load_intervals(raw.get("intervals")),
        schedule=_load_schedule(raw.get("schedule")),
        follow_up_platforms=_load_follow_up_platforms(raw.get("follow_up_platforms")),
        subscriptions_path=_string(raw, "subscriptions_path", defaults.subscriptions_path),
        legacy_subscribers_path=_string(
            raw, "legacy_subscribers_path", defaults.legacy_subscribers_path
        ),
        rate_limits=_load_rate_limits(raw.get("rate_limits")),
        state_path=_string(raw, "state_path", defaults.state_path),
    )


def parse_admin_ids(raw: Optional[str]) -> Tuple[int, ...]:
    """Parse a comma-separated list of Discord user ids, dropping junk."""
    if not raw:
        return ()

    ids: List[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            ids.append(int(part))
        except ValueError:
            log.warning(f"Ignoring invalid admin user id: {part!r}")
    return tuple(ids)
