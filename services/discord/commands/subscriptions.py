"""
Discord Subscription Commands

Handlers for /subscribe, /unsubscribe and /settings plus the toggle buttons
shown under the settings message.
"""

from __future__ import annotations

from typing import Optional, Tuple

import discord

from core.messages import (
    render_settings,
    render_subscribed,
    render_unsubscribed,
)
from shared.logging.logger import get_logger
from shared.storage.subscriptions import Preferences, SubscriptionStore

log = get_logger("discord.commands.subscriptions", runtime="discord")

CATEGORY_LABELS = {
    "event": "WAN",
    "notable": "Notable People",
}


class SubscriptionCommandHandler:
    def __init__(self, *, store: SubscriptionStore):
        self._store = store

    async def cmd_subscribe(self, *, user_id: int) -> Tuple[str, Preferences]:
        record, created = self._store.subscribe(user_id)
        if created:
            log.info(f"Subscribe: {user_id} (total: {self._store.count()})")
        return render_subscribed(record.preferences, is_new=created), record.preferences

    async def cmd_unsubscribe(self, *, user_id: int) -> str:
        self._store.unsubscribe(user_id)
        return render_unsubscribed()

    async def cmd_settings(self, *, user_id: int) -> Tuple[str, Preferences]:
        record, _ = self._store.ensure(user_id)
        return render_settings(record.preferences), record.preferences

    async def cmd_toggle(
        self,
        *,
        user_id: int,
        category: str,
    ) -> Tuple[str, Optional[Preferences]]:
        prefs = self._store.toggle(user_id, category)
        if prefs is None:
            return "❌ Not subscribed. Use /subscribe first.", None

        state = "enabled" if prefs.wants(category) else "disabled"
        note = f"{CATEGORY_LABELS[category]} notifications are now **{state}**."
        if category == "notable" and prefs.notable:
            note += "\n\n📋 You'll now get notified when LTT-related creators go live!"

        return render_settings(prefs, note=note), prefs


# ------------------------------------------------------------
# Toggle buttons
# ------------------------------------------------------------

class ToggleButton(discord.ui.Button):
    def __init__(self, handler: SubscriptionCommandHandler, category: str, enabled: bool):
        label = CATEGORY_LABELS[category]
        super().__init__(
            label=f"{label}: {'ON' if enabled else 'OFF'}",
            emoji="🔔" if enabled else "🔕",
            style=discord.ButtonStyle.success if enabled else discord.ButtonStyle.secondary,
            custom_id=f"wanwatch:toggle:{category}",
        )
        self._handler = handler
        self.category = category

    async def callback(self, interaction: discord.Interaction):
        try:
            content, prefs = await self._handler.cmd_toggle(
                user_id=interaction.user.id,
                category=self.category,
            )
        except Exception:
            log.exception(f"Failed to toggle {self.category} for {interaction.user.id}")
            await interaction.response.send_message(
                "❌ Could not update your settings. Try again?",
                ephemeral=True,
            )
            return

        if prefs is None:
            await interaction.response.send_message(content, ephemeral=True)
            return

        await interaction.response.edit_message(
            content=content,
            view=SettingsView(self._handler, prefs),
        )


class SettingsView(discord.ui.View):
    def __init__(self, handler: SubscriptionCommandHandler, prefs: Preferences):
        super().__init__(timeout=300)
        self.add_item(ToggleButton(handler, "event", prefs.event))
        self.add_item(ToggleButton(handler, "notable", prefs.notable))
