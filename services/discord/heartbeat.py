"""
Gateway liveness tracking for the Discord side of WANWatch.

DMs can only go out while the gateway session is up, so the runtime snapshot
records how the connection has behaved: when the bot last connected, how
often it dropped, and whether the supervisor loop is still ticking.

IMPORTANT CONSTRAINTS:
- This module MUST NOT create asyncio tasks
- All scheduling is performed by DiscordSupervisor
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from shared.logging.logger import get_logger

log = get_logger("discord.heartbeat", runtime="discord")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class GatewayHealth:
    started_at: Optional[datetime] = None
    last_tick_at: Optional[datetime] = None
    connected: bool = False
    connected_since: Optional[datetime] = None
    last_disconnect_at: Optional[datetime] = None
    disconnects: int = 0

    def session_seconds(self, now: datetime) -> Optional[int]:
        if not self.connected or self.connected_since is None:
            return None
        return int((now - self.connected_since).total_seconds())

    def is_stale(self, now: datetime, max_age_seconds: float) -> bool:
        """True when the supervisor loop has not ticked recently."""
        if self.last_tick_at is None:
            return self.started_at is not None
        return (now - self.last_tick_at).total_seconds() > max_age_seconds

    def snapshot(self, now: datetime) -> Dict[str, Any]:
        return {
            "started_at": _iso(self.started_at),
            "last_tick_at": _iso(self.last_tick_at),
            "connected": self.connected,
            "connected_since": _iso(self.connected_since),
            "session_seconds": self.session_seconds(now),
            "last_disconnect_at": _iso(self.last_disconnect_at),
            "disconnects": self.disconnects,
        }


class DiscordHeartbeat:
    def __init__(self, *, clock: Callable[[], datetime] = _utc_now):
        self._clock = clock
        self._health = GatewayHealth()

    @property
    def clock(self) -> Callable[[], datetime]:
        return self._clock

    def start(self) -> None:
        if self._health.started_at is None:
            self._update(started_at=self._clock())

    def tick(self) -> None:
        self._update(last_tick_at=self._clock())

    def set_connected(self, connected: bool) -> None:
        health = self._health
        if connected == health.connected:
            return

        now = self._clock()
        if connected:
            self._update(connected=True, connected_since=now)
            log.info(f"Gateway connected (after {health.disconnects} drop(s))")
        else:
            self._update(
                connected=False,
                connected_since=None,
                last_disconnect_at=now,
                disconnects=health.disconnects + 1,
            )
            log.warning(f"Gateway disconnected (drop #{health.disconnects + 1})")

    def state(self) -> GatewayHealth:
        return self._health

    def _update(self, **changes: Any) -> None:
        self._health = replace(self._health, **changes)
