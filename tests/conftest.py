from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest


def build_snapshot(
    *,
    youtube: bool = False,
    floatplane: bool = False,
    twitch: bool = False,
    is_wan: bool = False,
    thumbnail_new: bool = False,
    title: Optional[str] = "WAN Show",
    notable: Optional[Dict[str, Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    def _platform(live: bool) -> Dict[str, Any]:
        section: Dict[str, Any] = {"isLive": live, "isWAN": live and is_wan}
        if live:
            section["title"] = title
        return section

    snapshot = {
        "youtube": {**_platform(youtube), "started": "2026-10-16T23:31:00Z" if youtube else None},
        "floatplane": {**_platform(floatplane), "isThumbnailNew": thumbnail_new},
        "twitch": _platform(twitch),
        "notablePeople": notable or {},
        "hasDone": False,
    }
    return snapshot


class ListSink:
    def __init__(self):
        self.events: List[Any] = []

    def publish(self, event) -> None:
        self.events.append(event)


class ScriptedFetcher:
    """
    Serves the first snapshot until more are queued, then one queued item
    per call. Exceptions in the queue are raised once.
    """

    def __init__(self, initial, *queued):
        self._last = initial
        self._queue = list(queued)
        self.calls = 0
        self.is_there_wan = None

    def push(self, item) -> None:
        self._queue.append(item)

    async def fetch(self, force_fresh: bool = False):
        self.calls += 1
        if not self._queue:
            return self._last
        item = self._queue.pop(0)
        if isinstance(item, Exception):
            raise item
        self._last = item
        return item

    async def fetch_is_there_wan(self):
        return self.is_there_wan


@pytest.fixture
def snapshot():
    return build_snapshot


@pytest.fixture
def sink():
    return ListSink()
