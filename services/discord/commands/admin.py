"""
Discord Admin Commands

Administrator-only diagnostics:
- /testnotif  preview of the live notification
- /debug      checker state, platform flags, notable people

IMPORTANT CONSTRAINTS:
- This module MUST NOT register commands on import
- This module MUST NOT perform permission checks directly
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable

from core.live_checker import LiveChecker
from core.messages import (
    render_debug,
    render_notable_status,
    render_test_notification,
)
from shared.logging.logger import get_logger
from shared.schedule.nominal import DEFAULT_SCHEDULE, ShowSchedule, lateness
from shared.storage.subscriptions import SubscriptionStore

log = get_logger("discord.commands.admin", runtime="discord")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AdminCommandHandler:
    """
    Declarative handler for admin-level Discord commands.

    This class does NOT register commands.
    """

    def __init__(
        self,
        *,
        checker: LiveChecker,
        store: SubscriptionStore,
        schedule: ShowSchedule = DEFAULT_SCHEDULE,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._checker = checker
        self._store = store
        self._schedule = schedule
        self._clock = clock

    async def cmd_testnotif(self, *, user_id: int) -> str:
        log.info(f"Test notification requested by {user_id}")
        return render_test_notification(lateness(self._clock(), schedule=self._schedule))

    async def cmd_debug(self, *, user_id: int) -> str:
        status, notable = await asyncio.gather(
            self._checker.get_current_event_status(),
            self._checker.get_current_notable_status(),
        )

        return render_debug(
            subscriber_count=self._store.count(),
            checker_running=self._checker.running,
            status=status,
            notable_text=render_notable_status(notable),
        )

