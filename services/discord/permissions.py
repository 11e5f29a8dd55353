"""
Discord Permissions Module

Centralizes who may run what, and how often.

Responsibilities:
- Resolve whether a user is a bot administrator (ADMIN_USER_IDS)
- Per-user command cooldowns (public and admin tiers)

IMPORTANT CONSTRAINTS:
- This module MUST NOT register Discord commands
- This module MUST NOT own a Discord client
- This module MUST NOT perform Discord API calls directly
"""

from __future__ import annotations

import math
import time
from typing import Any, Callable, Dict, Iterable, Optional

from shared.logging.logger import get_logger

log = get_logger("discord.permissions", runtime="discord")


class PermissionResult:
    """
    Structured permission check result.

    This allows commands to handle permissions consistently
    without duplicating messaging or logic.
    """

    def __init__(
        self,
        allowed: bool,
        *,
        reason: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        self.allowed = allowed
        self.reason = reason
        self.metadata = metadata or {}

    def __bool__(self) -> bool:
        return self.allowed


class CooldownTracker:
    """Fixed per-user cooldown; a denied attempt does not extend the window."""

    def __init__(self, seconds: float, *, clock: Callable[[], float] = time.monotonic):
        self.seconds = seconds
        self._clock = clock
        self._last_use: Dict[int, float] = {}

    def check(self, user_id: int) -> bool:
        now = self._clock()
        last = self._last_use.get(user_id)
        if last is not None and now - last < self.seconds:
            return False
        self._last_use[user_id] = now
        return True

    def remaining(self, user_id: int) -> int:
        last = self._last_use.get(user_id)
        if last is None:
            return 0
        return max(0, math.ceil(self.seconds - (self._clock() - last)))


class DiscordPermissionResolver:
    """
    Central permission resolver for bot commands.

    This class is intentionally passive:
    - No Discord API calls
    - Accepts raw IDs only
    """

    def __init__(
        self,
        admin_user_ids: Iterable[int] = (),
        *,
        user_cooldown_seconds: float = 5.0,
        admin_cooldown_seconds: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._admin_ids = frozenset(admin_user_ids)
        self.user_cooldown = CooldownTracker(user_cooldown_seconds, clock=clock)
        self.admin_cooldown = CooldownTracker(admin_cooldown_seconds, clock=clock)

    @property
    def admin_count(self) -> int:
        return len(self._admin_ids)

    def is_admin(self, user_id: int) -> bool:
        return user_id in self._admin_ids

    def check_public(self, user_id: int) -> PermissionResult:
        if self.user_cooldown.check(user_id):
            return PermissionResult(True)

        wait = self.user_cooldown.remaining(user_id)
        return PermissionResult(
            False,
            reason=f"⏱️ Please wait {wait}s before checking again.",
            metadata={"cooldown": wait},
        )

    def require_admin(self, user_id: int) -> PermissionResult:
        if not self.is_admin(user_id):
            log.warning(f"Non-admin user {user_id} attempted an admin command")
            return PermissionResult(
                False,
                reason="❌ This command is restricted to bot administrators.",
            )

        if not self.admin_cooldown.check(user_id):
            return PermissionResult(
                False,
                reason="⏱️ Admin commands are rate limited. Please wait.",
            )

        return PermissionResult(True)
