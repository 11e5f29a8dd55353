"""
Discord Public Commands

Handlers for the informational commands anyone may run. Each handler
returns rendered message text; Discord I/O happens in public_commands.

IMPORTANT CONSTRAINTS:
- This module MUST NOT register commands on import
- This module MUST NOT own a Discord client
- This module MUST NOT perform permission checks directly
- This module MUST NOT mutate watcher state (on-demand reads only)
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable

from core.live_checker import LiveChecker
from core.messages import (
    render_help,
    render_live_check,
    render_next,
    render_notable_status,
    render_status,
)
from services.whenplane.api.aggregate import AggregateAPI
from shared.logging.logger import get_logger
from shared.schedule.nominal import (
    DEFAULT_SCHEDULE,
    ShowSchedule,
    next_occurrence,
    time_until,
)
from shared.storage.subscriptions import SubscriptionStore

log = get_logger("discord.commands.public", runtime="discord")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PublicCommandHandler:
    """
    Declarative handler for public Discord commands.

    This class does NOT register commands.
    """

    def __init__(
        self,
        *,
        checker: LiveChecker,
        fetcher: AggregateAPI,
        store: SubscriptionStore,
        schedule: ShowSchedule = DEFAULT_SCHEDULE,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._checker = checker
        self._fetcher = fetcher
        self._store = store
        self._schedule = schedule
        self._clock = clock

    def _nominal(self):
        now = self._clock()
        nominal = next_occurrence(now, buffer=False, schedule=self._schedule)
        return nominal, time_until(nominal, now)

    # --------------------------------------------------
    # Schedule
    # --------------------------------------------------

    async def cmd_next(self, *, user_id: int) -> str:
        nominal, until = self._nominal()
        log.debug(f"/next for {user_id}: {nominal.isoformat()} (late={until.late})")
        return render_next(nominal, until)

    # --------------------------------------------------
    # Live status
    # --------------------------------------------------

    async def cmd_status(self, *, user_id: int) -> str:
        status, announcement = await asyncio.gather(
            self._checker.get_current_event_status(),
            self._fetcher.fetch_is_there_wan(),
        )
        _, until = self._nominal()
        return render_status(status, until, announcement)

    async def cmd_live(self, *, user_id: int) -> str:
        status = await self._checker.get_current_event_status()
        _, until = self._nominal()
        return render_live_check(status, until)

    async def cmd_notable(self, *, user_id: int) -> str:
        notable = await self._checker.get_current_notable_status()
        return render_notable_status(notable)

    # --------------------------------------------------
    # Help
    # --------------------------------------------------

    async def cmd_help(self, *, user_id: int) -> str:
        record = self._store.get(user_id)
        return render_help(record.preferences if record else None)
