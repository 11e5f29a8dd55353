"""Reduce a raw aggregate snapshot to the canonical status views."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from services.whenplane.models.status import (
    PLATFORM_ORDER,
    LiveStatus,
    NotablePeopleStatus,
    NotablePerson,
    PlatformFlags,
)
from shared.logging.logger import get_logger

log = get_logger("whenplane.normalizer")

# Which detail fields each platform actually publishes
_DETAIL_FIELDS = {
    "youtube": ("title", "thumbnail", "started"),
    "floatplane": ("title", "thumbnail"),
    "twitch": ("title", "started"),
}


def _section(snapshot: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = snapshot.get(key)
    return value if isinstance(value, dict) else {}


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def normalize(snapshot: Optional[Mapping[str, Any]]) -> LiveStatus:
    if not snapshot:
        return LiveStatus.offline()

    sections = {platform: _section(snapshot, platform) for platform in PLATFORM_ORDER}

    platforms = PlatformFlags(
        **{platform: bool(sections[platform].get("isLive")) for platform in PLATFORM_ORDER}
    )
    is_event = any(bool(sections[platform].get("isWAN")) for platform in PLATFORM_ORDER)

    details: Dict[str, Optional[str]] = {"title": None, "thumbnail": None, "started": None}
    for platform in PLATFORM_ORDER:
        section = sections[platform]
        if section.get("isLive") and section.get("isWAN"):
            for name in _DETAIL_FIELDS[platform]:
                details[name] = _optional_str(section.get(name))
            break

    return LiveStatus(
        is_live=platforms.any(),
        platforms=platforms,
        is_event=is_event,
        is_thumbnail_fresh=bool(sections["floatplane"].get("isThumbnailNew")),
        title=details["title"],
        thumbnail=details["thumbnail"],
        started_at=details["started"],
        has_done=bool(snapshot.get("hasDone")),
    )


def normalize_notable(snapshot: Optional[Mapping[str, Any]]) -> NotablePeopleStatus:
    if not snapshot:
        return NotablePeopleStatus.empty()

    people: Dict[str, NotablePerson] = {}
    for entity_id, raw in _section(snapshot, "notablePeople").items():
        if not isinstance(raw, dict):
            log.debug(f"Skipping malformed notable person entry: {entity_id!r}")
            continue

        people[str(entity_id)] = NotablePerson(
            is_live=bool(raw.get("isLive")),
            title=_optional_str(raw.get("title")),
            name=_optional_str(raw.get("name")),
            channel=_optional_str(raw.get("channel")),
            game=_optional_str(raw.get("game")),
            started_at=_optional_str(raw.get("started")),
        )

    return NotablePeopleStatus(
        people=people,
        has_any_live=any(person.is_live for person in people.values()),
    )
