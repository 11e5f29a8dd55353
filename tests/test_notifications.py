from __future__ import annotations

from datetime import datetime, timezone

import anyio
import pytest

from core.detector import Transitions, detect
from core.events import (
    EntityWentLive,
    EventChannel,
    EventOnPlatform,
    EventStatusChanged,
    ThumbnailUploaded,
)
from core.notifications import NotificationRouter
from services.whenplane.models.status import (
    LiveStatus,
    NotablePeopleStatus,
    NotablePerson,
    PlatformFlags,
)
from shared.storage.subscriptions import SubscriptionStore

NOW = datetime(2026, 10, 16, 23, 42, tzinfo=timezone.utc)

OFFLINE = LiveStatus.offline()
SHOW = LiveStatus(is_live=True, is_event=True, platforms=PlatformFlags(youtube=True), title="WAN")
OTHER = LiveStatus(is_live=True, is_event=False, platforms=PlatformFlags(twitch=True))


class FakeDispatcher:
    def __init__(self):
        self.calls = []

    def dispatch(self, recipients, message, category):
        self.calls.append((list(recipients), message, category))


@pytest.fixture
def store(tmp_path):
    store = SubscriptionStore(tmp_path / "subs.json")
    store.subscribe(1)
    store.subscribe(2)
    store.toggle(2, "notable")
    store.subscribe(3)
    store.toggle(3, "event")
    store.toggle(3, "notable")
    return store


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def router(store, dispatcher):
    return NotificationRouter(store=store, dispatcher=dispatcher, clock=lambda: NOW)


def test_show_going_live_notifies_event_subscribers(router, dispatcher):
    router.handle(EventStatusChanged(SHOW, OFFLINE, detect(OFFLINE, SHOW)))

    assert len(dispatcher.calls) == 1
    recipients, message, category = dispatcher.calls[0]
    assert sorted(recipients) == [1, 2]
    assert category == "event"
    assert "NOW LIVE" in message
    assert "Started 12m late" in message


def test_live_with_something_else_sends_nothing(router, dispatcher):
    router.handle(EventStatusChanged(OTHER, OFFLINE, detect(OFFLINE, OTHER)))
    assert dispatcher.calls == []


def test_event_flag_without_went_live_sends_nothing(router, dispatcher):
    previous = LiveStatus(is_live=True, platforms=PlatformFlags(youtube=True))
    router.handle(EventStatusChanged(SHOW, previous, Transitions(event_started=True)))
    assert dispatcher.calls == []


def test_platform_follow_up_goes_to_event_subscribers(router, dispatcher):
    router.handle(EventOnPlatform("youtube", SHOW, OFFLINE))

    recipients, message, category = dispatcher.calls[0]
    assert sorted(recipients) == [1, 2]
    assert category == "event-youtube"
    assert "WAN Show is on YouTube!" in message


def test_entity_live_goes_to_notable_subscribers(router, dispatcher):
    person = NotablePerson(is_live=True, name="Luke", channel="lukelafr")
    notable = NotablePeopleStatus(people={"luke": person}, has_any_live=True)

    router.handle(EntityWentLive("luke", person, notable, None))

    recipients, message, category = dispatcher.calls[0]
    assert sorted(recipients) == [2, 3]
    assert category == "notable"
    assert "Luke is LIVE!" in message


def test_thumbnail_is_log_only(router, dispatcher):
    router.handle(ThumbnailUploaded(LiveStatus(is_thumbnail_fresh=True), OFFLINE))
    assert dispatcher.calls == []


def test_run_consumes_channel_until_cancelled(router, dispatcher):
    async def scenario():
        channel = EventChannel()
        async with anyio.create_task_group() as tg:
            tg.start_soon(router.run, channel)
            channel.publish(EventOnPlatform("youtube", SHOW, OFFLINE))
            channel.publish(ThumbnailUploaded(SHOW, OFFLINE))
            with anyio.fail_after(2):
                await channel.join()
            tg.cancel_scope.cancel()

    anyio.run(scenario)
    assert [call[2] for call in dispatcher.calls] == ["event-youtube"]
