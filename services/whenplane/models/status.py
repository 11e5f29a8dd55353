from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

PLATFORM_ORDER = ("youtube", "floatplane", "twitch")


@dataclass(frozen=True)
class PlatformFlags:
    youtube: bool = False
    floatplane: bool = False
    twitch: bool = False

    def get(self, platform: str) -> bool:
        return bool(getattr(self, platform, False))

    def any(self) -> bool:
        return self.youtube or self.floatplane or self.twitch

    def first_live(self) -> Optional[str]:
        for platform in PLATFORM_ORDER:
            if self.get(platform):
                return platform
        return None

    def to_dict(self) -> Dict[str, bool]:
        return {platform: self.get(platform) for platform in PLATFORM_ORDER}


@dataclass(frozen=True)
class LiveStatus:
    """
    Canonical, platform-agnostic view of the show's state at one poll.

    `is_event` means some platform reports that its live content is the
    tracked show; a channel can be live with something else.
    """

    is_live: bool = False
    platforms: PlatformFlags = field(default_factory=PlatformFlags)
    is_event: bool = False
    is_thumbnail_fresh: bool = False
    title: Optional[str] = None
    thumbnail: Optional[str] = None
    started_at: Optional[str] = None
    has_done: bool = False

    @classmethod
    def offline(cls) -> "LiveStatus":
        return cls()

    def to_dict(self) -> Dict[str, object]:
        return {
            "is_live": self.is_live,
            "platforms": self.platforms.to_dict(),
            "is_event": self.is_event,
            "is_thumbnail_fresh": self.is_thumbnail_fresh,
            "title": self.title,
            "thumbnail": self.thumbnail,
            "started_at": self.started_at,
            "has_done": self.has_done,
        }


@dataclass(frozen=True)
class NotablePerson:
    is_live: bool = False
    title: Optional[str] = None
    name: Optional[str] = None
    channel: Optional[str] = None
    game: Optional[str] = None
    started_at: Optional[str] = None

    def display_name(self, entity_id: str) -> str:
        return self.name or entity_id

    def channel_name(self, entity_id: str) -> str:
        return self.channel or entity_id


@dataclass(frozen=True)
class NotablePeopleStatus:
    people: Mapping[str, NotablePerson] = field(default_factory=dict)
    has_any_live: bool = False

    @classmethod
    def empty(cls) -> "NotablePeopleStatus":
        return cls()

    def live_people(self) -> Dict[str, NotablePerson]:
        return {
            entity_id: person
            for entity_id, person in self.people.items()
            if person.is_live
        }

    def to_dict(self) -> Dict[str, object]:
        return {
            "has_any_live": self.has_any_live,
            "live": sorted(self.live_people().keys()),
            "tracked": len(self.people),
        }


@dataclass(frozen=True)
class IsThereWan:
    """Manual announcement published by WhenPlane (e.g. "no show this week")."""

    text: Optional[str] = None
    image: Optional[str] = None
    timestamp: Optional[int] = None
