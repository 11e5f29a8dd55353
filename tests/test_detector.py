from __future__ import annotations

from core.detector import EventPlatformTracker, detect, detect_notable
from services.whenplane.models.status import (
    LiveStatus,
    NotablePeopleStatus,
    NotablePerson,
    PlatformFlags,
)

OFFLINE = LiveStatus.offline()


def _live(youtube=False, floatplane=False, twitch=False, event=True) -> LiveStatus:
    platforms = PlatformFlags(youtube=youtube, floatplane=floatplane, twitch=twitch)
    return LiveStatus(is_live=platforms.any(), platforms=platforms, is_event=event)


def _notable(**live) -> NotablePeopleStatus:
    people = {name: NotablePerson(is_live=flag) for name, flag in live.items()}
    return NotablePeopleStatus(people=people, has_any_live=any(live.values()))


def test_went_live_fires_once_per_session():
    first = detect(OFFLINE, _live(floatplane=True))
    again = detect(_live(floatplane=True), _live(floatplane=True, youtube=True))

    assert first.went_live and first.event_started
    assert first.any_status_change
    assert not again.went_live
    assert not again.any_status_change


def test_first_observation_counts_as_transition():
    result = detect(None, _live(twitch=True, event=False))

    assert result.went_live
    assert not result.event_started


def test_event_flag_can_start_while_already_live():
    result = detect(_live(youtube=True, event=False), _live(youtube=True, event=True))

    assert not result.went_live
    assert result.event_started


def test_thumbnail_only_signals_before_live():
    fresh = LiveStatus(is_thumbnail_fresh=True)
    live_fresh = LiveStatus(is_live=True, is_thumbnail_fresh=True)

    assert detect(OFFLINE, fresh).thumbnail_newly_fresh
    assert not detect(fresh, fresh).thumbnail_newly_fresh
    assert not detect(OFFLINE, live_fresh).thumbnail_newly_fresh


def test_notable_entities_are_independent():
    before = _notable(luke=True, linus=False)
    after = _notable(luke=True, linus=True, guest=True)

    assert detect_notable(before, after) == ["linus", "guest"]
    assert detect_notable(after, after) == []


def test_notable_without_previous_reports_all_live():
    assert detect_notable(None, _notable(a=True, b=False)) == ["a"]


def test_platform_follow_up_fires_when_youtube_joins():
    tracker = EventPlatformTracker()

    assert tracker.observe(OFFLINE, _live(floatplane=True)) == []
    assert not tracker.sticky

    fired = tracker.observe(_live(floatplane=True), _live(floatplane=True, youtube=True))
    assert fired == ["youtube"]
    assert tracker.sticky


def test_platform_follow_up_is_sticky_until_platform_drops():
    tracker = EventPlatformTracker()
    on = _live(youtube=True)
    off = _live(floatplane=True)

    assert tracker.observe(OFFLINE, on) == ["youtube"]
    assert tracker.observe(on, on) == []

    # YouTube drops, sticky clears on this very observation
    assert tracker.observe(on, off) == []
    assert not tracker.sticky

    assert tracker.observe(off, on) == ["youtube"]


def test_platform_follow_up_requires_the_show():
    tracker = EventPlatformTracker()
    not_show = _live(youtube=True, event=False)

    assert tracker.observe(OFFLINE, not_show) == []
    # Still sticky: YouTube is carrying *something*
    assert tracker.sticky
    assert tracker.observe(not_show, _live(youtube=True)) == []


def test_prime_adopts_baseline_without_firing():
    tracker = EventPlatformTracker()
    tracker.prime(_live(youtube=True))

    assert tracker.sticky
    assert tracker.observe(_live(youtube=True), _live(youtube=True)) == []

    tracker.reset()
    assert not tracker.sticky


def test_going_offline_is_not_a_transition():
    result = detect(_live(youtube=True), OFFLINE)

    assert not result.went_live
    assert not result.event_started
    assert not result.any_status_change
