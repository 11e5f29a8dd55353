"""
Direct-message transport for notifications.

Maps Discord API outcomes onto delivery results:
- Forbidden (DMs closed / bot blocked) and NotFound (account gone)
  -> unreachable, the dispatcher prunes the subscriber
- anything else -> plain failure, logged and dropped
"""

from __future__ import annotations

from typing import Callable, Optional

import discord

from core.dispatcher import DeliveryResult
from shared.logging.logger import get_logger

log = get_logger("discord.delivery", runtime="discord")


class DiscordDelivery:
    def __init__(self, bot_provider: Callable[[], Optional[discord.Client]]):
        self._bot_provider = bot_provider

    async def deliver(self, user_id: int, message: str) -> DeliveryResult:
        bot = self._bot_provider()
        if bot is None or not bot.is_ready():
            return DeliveryResult.failed("Discord client not connected")

        try:
            user = bot.get_user(user_id) or await bot.fetch_user(user_id)
            await user.send(message)
        except (discord.Forbidden, discord.NotFound) as e:
            return DeliveryResult.unreachable(f"{type(e).__name__}: {e.text or e.status}")
        except discord.HTTPException as e:
            return DeliveryResult.failed(f"HTTP {e.status}: {e.text}")

        return DeliveryResult.delivered()
