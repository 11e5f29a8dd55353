"""
Edge-triggered change detection between consecutive canonical statuses.

Every transition here fires on false -> true only. A condition that persists
across polls never fires again, which is what limits subscribers to one
notification per live session.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from services.whenplane.models.status import LiveStatus, NotablePeopleStatus
from shared.logging.logger import get_logger

log = get_logger("core.detector")


@dataclass(frozen=True)
class Transitions:
    went_live: bool = False
    event_started: bool = False
    thumbnail_newly_fresh: bool = False

    @property
    def any_status_change(self) -> bool:
        return self.went_live or self.event_started


def detect(previous: Optional[LiveStatus], current: LiveStatus) -> Transitions:
    went_live = current.is_live and (previous is None or not previous.is_live)
    event_started = current.is_event and (previous is None or not previous.is_event)

    # Thumbnail freshness only signals an imminent start; ignore it once live
    thumbnail_newly_fresh = (
        current.is_thumbnail_fresh
        and (previous is None or not previous.is_thumbnail_fresh)
        and not current.is_live
    )

    return Transitions(
        went_live=went_live,
        event_started=event_started,
        thumbnail_newly_fresh=thumbnail_newly_fresh,
    )


def detect_notable(
    previous: Optional[NotablePeopleStatus],
    current: NotablePeopleStatus,
) -> List[str]:
    """Entity ids that are live now and were not live (or absent) before."""
    newly_live: List[str] = []

    for entity_id, person in current.people.items():
        if not person.is_live:
            continue

        before = previous.people.get(entity_id) if previous is not None else None
        if before is None or not before.is_live:
            newly_live.append(entity_id)

    return newly_live


class EventPlatformTracker:
    """
    Detects "the show is now on platform X" follow-ups.

    A followed platform fires when it flips to live while the show is live,
    unless the sticky flag is set. The flag is refreshed on every observation
    to whether any followed platform is live, so it only clears once none of
    them carries the stream.
    """

    def __init__(self, platforms: Sequence[str] = ("youtube",)):
        self.platforms = tuple(platforms)
        self._sticky = False

    @property
    def sticky(self) -> bool:
        return self._sticky

    def reset(self) -> None:
        self._sticky = False

    def prime(self, baseline: LiveStatus) -> None:
        """Adopt a baseline status without firing anything."""
        self._sticky = any(baseline.platforms.get(p) for p in self.platforms)

    def observe(
        self,
        previous: Optional[LiveStatus],
        current: LiveStatus,
    ) -> List[str]:
        fired: List[str] = []

        if current.is_live and current.is_event and not self._sticky:
            for platform in self.platforms:
                now_on = current.platforms.get(platform)
                was_on = previous is not None and previous.platforms.get(platform)
                if now_on and not was_on:
                    fired.append(platform)

        self._sticky = any(current.platforms.get(p) for p in self.platforms)

        if fired:
            log.debug(f"Show newly carried on: {', '.join(fired)}")

        return fired
