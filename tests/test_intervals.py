from __future__ import annotations

from datetime import datetime, timedelta, timezone

from core.intervals import DEFAULT_INTERVALS, Intervals, select_interval
from services.whenplane.models.status import LiveStatus, PlatformFlags

NOW = datetime(2026, 10, 16, 20, 0, tzinfo=timezone.utc)

LIVE_SHOW = LiveStatus(is_live=True, is_event=True, platforms=PlatformFlags(youtube=True))
THUMBNAIL = LiveStatus(is_thumbnail_fresh=True)


def test_live_show_relaxes_even_when_late_or_close():
    late = NOW - timedelta(hours=2)
    close = NOW + timedelta(minutes=3)

    assert select_interval(LIVE_SHOW, late, now=NOW) == timedelta(minutes=5)
    assert select_interval(LIVE_SHOW, close, now=NOW) == timedelta(minutes=5)


def test_live_but_not_the_show_keeps_polling_normally():
    other = LiveStatus(is_live=True, is_event=False)
    far = NOW + timedelta(days=2)

    assert select_interval(other, far, now=NOW) == timedelta(minutes=1)


def test_fresh_thumbnail_polls_fastest():
    far = NOW + timedelta(days=2)
    assert select_interval(THUMBNAIL, far, now=NOW) == timedelta(seconds=10)


def test_late_and_close_use_close_interval():
    assert select_interval(None, NOW - timedelta(seconds=1), now=NOW) == timedelta(seconds=30)
    assert select_interval(None, NOW + timedelta(minutes=9), now=NOW) == timedelta(seconds=30)


def test_default_interval_when_far_away():
    assert select_interval(None, NOW + timedelta(minutes=10), now=NOW) == timedelta(minutes=1)
    assert select_interval(LiveStatus.offline(), NOW + timedelta(days=6), now=NOW) == timedelta(minutes=1)


def test_configured_intervals_are_respected():
    intervals = Intervals.from_seconds(
        default=120, close=15, very_close=5, live=600, close_threshold=1800
    )

    assert select_interval(None, NOW + timedelta(minutes=20), now=NOW, intervals=intervals) == timedelta(seconds=15)
    assert select_interval(LIVE_SHOW, NOW, now=NOW, intervals=intervals) == timedelta(minutes=10)


def test_describe_mentions_every_tier():
    text = DEFAULT_INTERVALS.describe()
    assert "1min (default)" in text
    assert "30sec" in text
    assert "10sec (thumbnail)" in text
    assert "5min (live)" in text
