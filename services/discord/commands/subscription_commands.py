"""
Discord Subscription Slash Command Registration

Thin registration layer for /subscribe, /unsubscribe and /settings.
All replies are ephemeral; preferences are private to the user.
"""

from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from services.discord.commands.subscriptions import (
    SettingsView,
    SubscriptionCommandHandler,
)
from shared.logging.logger import get_logger

log = get_logger("discord.commands.subscriptions.register", runtime="discord")

FAILURE = "❌ Could not update your subscription. Try again?"


def setup(
    bot: commands.Bot,
    *,
    handler: SubscriptionCommandHandler,
):
    # --------------------------------------------------
    # /subscribe
    # --------------------------------------------------

    @app_commands.command(name="subscribe", description="Get a DM when WAN goes live")
    async def subscribe(interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)

        try:
            content, prefs = await handler.cmd_subscribe(user_id=interaction.user.id)
        except Exception:
            log.exception("Error in /subscribe command")
            await interaction.followup.send(content=FAILURE, ephemeral=True)
            return

        await interaction.followup.send(
            content=content,
            view=SettingsView(handler, prefs),
            ephemeral=True,
        )

    # --------------------------------------------------
    # /unsubscribe
    # --------------------------------------------------

    @app_commands.command(name="unsubscribe", description="Stop all notifications")
    async def unsubscribe(interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)

        try:
            content = await handler.cmd_unsubscribe(user_id=interaction.user.id)
        except Exception:
            log.exception("Error in /unsubscribe command")
            content = FAILURE

        await interaction.followup.send(content=content, ephemeral=True)

    # --------------------------------------------------
    # /settings
    # --------------------------------------------------

    @app_commands.command(name="settings", description="Manage your notifications")
    async def settings(interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)

        try:
            content, prefs = await handler.cmd_settings(user_id=interaction.user.id)
        except Exception:
            log.exception("Error in /settings command")
            await interaction.followup.send(content=FAILURE, ephemeral=True)
            return

        await interaction.followup.send(
            content=content,
            view=SettingsView(handler, prefs),
            ephemeral=True,
        )

    # --------------------------------------------------
    # Register Commands
    # --------------------------------------------------

    for command in (subscribe, unsubscribe, settings):
        bot.tree.add_command(command)

    log.info("Discord subscription slash commands registered")
