from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import anyio

from conftest import ListSink, ScriptedFetcher, build_snapshot
from core.events import EntityWentLive, EventOnPlatform, EventStatusChanged, ThumbnailUploaded
from core.intervals import Intervals
from core.live_checker import LiveChecker

LONG = Intervals.from_seconds(default=3600, close=3600, very_close=3600, live=3600, close_threshold=1)
FAST = Intervals.from_seconds(default=0.01, close=0.01, very_close=0.01, live=0.01, close_threshold=1)

LUKE_OFF = {"luke": {"isLive": False, "name": "Luke", "channel": "lukelafr"}}
LUKE_ON = {"luke": {"isLive": True, "name": "Luke", "channel": "lukelafr", "title": "Chat"}}


SLOT = datetime(2026, 10, 16, 23, 30, tzinfo=timezone.utc)


def _checker(fetcher, intervals=LONG, **kwargs) -> LiveChecker:
    return LiveChecker(fetcher=fetcher, intervals=intervals, **kwargs)


def test_initial_observation_is_a_baseline():
    fetcher = ScriptedFetcher(build_snapshot(youtube=True, is_wan=True, notable=LUKE_ON))
    checker = _checker(fetcher)
    sink = ListSink()

    async def scenario():
        await checker.start(sink)
        try:
            assert checker.running
            await checker.poll_once()
        finally:
            await checker.stop()

    anyio.run(scenario)
    assert sink.events == []


def test_show_going_live_publishes_a_single_status_event():
    live = build_snapshot(youtube=True, is_wan=True, notable=LUKE_OFF)
    fetcher = ScriptedFetcher(build_snapshot(notable=LUKE_OFF))
    checker = _checker(fetcher)
    sink = ListSink()

    async def scenario():
        await checker.start(sink)
        fetcher.push(live)
        fetcher.push(live)
        try:
            await checker.poll_once()
            await checker.poll_once()
        finally:
            await checker.stop()

    anyio.run(scenario)

    kinds = [type(e) for e in sink.events]
    assert kinds == [EventStatusChanged]

    changed = sink.events[0]
    assert changed.transitions.went_live and changed.transitions.event_started
    assert changed.previous is not None and not changed.previous.is_live


def test_live_session_notifies_once_across_polls():
    live = build_snapshot(youtube=True, is_wan=True)
    fetcher = ScriptedFetcher(build_snapshot())
    checker = _checker(fetcher)
    sink = ListSink()

    async def scenario():
        await checker.start(sink)
        fetcher.push(live)
        fetcher.push(live)
        fetcher.push(build_snapshot())
        try:
            await checker.poll_once()
            assert len(sink.events) == 1
            await checker.poll_once()
            assert len(sink.events) == 1
            await checker.poll_once()
        finally:
            await checker.stop()

    anyio.run(scenario)

    assert [type(e) for e in sink.events] == [EventStatusChanged]


def test_platform_joining_a_running_show_is_followed_up():
    fetcher = ScriptedFetcher(build_snapshot())
    checker = _checker(fetcher)
    sink = ListSink()

    async def scenario():
        await checker.start(sink)
        fetcher.push(build_snapshot(floatplane=True, is_wan=True))
        fetcher.push(build_snapshot(floatplane=True, youtube=True, is_wan=True))
        try:
            await checker.poll_once()
            await checker.poll_once()
        finally:
            await checker.stop()

    anyio.run(scenario)

    assert [type(e) for e in sink.events] == [EventStatusChanged, EventOnPlatform]
    assert sink.events[1].platform == "youtube"


def test_next_delay_notices_a_late_show():
    fetcher = ScriptedFetcher(build_snapshot())
    checker = _checker(
        fetcher,
        intervals=Intervals(),
        clock=lambda: SLOT + timedelta(hours=1),
    )

    async def scenario():
        await checker.start(ListSink())
        try:
            return checker.next_delay()
        finally:
            await checker.stop()

    assert anyio.run(scenario) == timedelta(seconds=30)


def test_next_delay_rolls_over_once_the_show_is_done():
    fetcher = ScriptedFetcher({**build_snapshot(), "hasDone": True})
    checker = _checker(
        fetcher,
        intervals=Intervals(),
        clock=lambda: SLOT + timedelta(hours=1),
    )

    async def scenario():
        await checker.start(ListSink())
        try:
            return checker.next_delay()
        finally:
            await checker.stop()

    assert anyio.run(scenario) == timedelta(minutes=1)


def _broken_schedule(now, has_done=None):
    raise ValueError("no slot")


def test_loop_survives_a_failing_schedule():
    fetcher = ScriptedFetcher(build_snapshot())
    checker = _checker(fetcher, intervals=FAST, schedule=_broken_schedule)
    sink = ListSink()

    async def scenario():
        await checker.start(sink)
        fetcher.push(build_snapshot(floatplane=True, is_wan=True))
        try:
            with anyio.fail_after(2):
                while not sink.events:
                    await asyncio.sleep(0.01)
        finally:
            await checker.stop()

    anyio.run(scenario)
    assert isinstance(sink.events[0], EventStatusChanged)


def test_thumbnail_and_notable_events():
    fetcher = ScriptedFetcher(build_snapshot(notable=LUKE_OFF))
    checker = _checker(fetcher)
    sink = ListSink()

    async def scenario():
        await checker.start(sink)
        fetcher.push(build_snapshot(thumbnail_new=True, notable=LUKE_ON))
        try:
            await checker.poll_once()
        finally:
            await checker.stop()

    anyio.run(scenario)

    thumbnail = [e for e in sink.events if isinstance(e, ThumbnailUploaded)]
    entity = [e for e in sink.events if isinstance(e, EntityWentLive)]

    assert len(thumbnail) == 1
    assert len(entity) == 1
    assert entity[0].entity_id == "luke"
    assert entity[0].person.title == "Chat"
    assert not any(isinstance(e, EventStatusChanged) for e in sink.events)


def test_held_state_is_overwritten_after_each_cycle():
    fetcher = ScriptedFetcher(build_snapshot())
    checker = _checker(fetcher)

    async def scenario():
        await checker.start(ListSink())
        fetcher.push(build_snapshot(twitch=True, is_wan=False))
        try:
            await checker.poll_once()
            snap = checker.snapshot()
            assert snap["running"]
            assert snap["last_status"]["is_live"]
            assert snap["last_status"]["platforms"]["twitch"]
            assert not snap["last_status"]["is_event"]
        finally:
            await checker.stop()

    anyio.run(scenario)


def test_start_twice_is_a_noop_and_stop_is_idempotent():
    fetcher = ScriptedFetcher(build_snapshot())
    checker = _checker(fetcher)

    async def scenario():
        await checker.start(ListSink())
        calls_after_start = fetcher.calls
        await checker.start(ListSink())
        assert fetcher.calls == calls_after_start

        with anyio.fail_after(2):
            await checker.stop()
            await checker.stop()

    anyio.run(scenario)

    assert not checker.running
    assert checker.snapshot()["last_status"] is None


def test_loop_survives_a_failing_cycle():
    fetcher = ScriptedFetcher(build_snapshot())
    checker = _checker(fetcher, intervals=FAST)
    sink = ListSink()

    async def scenario():
        await checker.start(sink)
        fetcher.push(RuntimeError("boom"))
        fetcher.push(build_snapshot(floatplane=True, is_wan=True))
        try:
            with anyio.fail_after(2):
                while not sink.events:
                    await asyncio.sleep(0.01)
        finally:
            await checker.stop()

    anyio.run(scenario)
    assert isinstance(sink.events[0], EventStatusChanged)


def test_on_demand_accessors_do_not_touch_held_state():
    fetcher = ScriptedFetcher(build_snapshot(youtube=True, is_wan=True, notable=LUKE_ON))
    checker = _checker(fetcher)

    async def scenario():
        status = await checker.get_current_event_status(force_fresh=True)
        notable = await checker.get_current_notable_status()
        return status, notable

    status, notable = anyio.run(scenario)

    assert status.is_live and status.is_event
    assert notable.has_any_live
    assert checker.snapshot()["last_status"] is None
