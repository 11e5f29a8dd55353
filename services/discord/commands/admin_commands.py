"""
Discord Admin Slash Command Registration

This module is the thin registration layer that exposes administrator-only
slash commands to Discord and delegates ALL logic to AdminCommandHandler.

Responsibilities:
- Register admin-only slash commands
- Perform permission gating (admin ids + admin cooldown)
- Delegate execution to handler methods
- Perform Discord I/O (responses) ONLY at the boundary
"""

from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from core.messages import truncate_message
from services.discord.commands.admin import AdminCommandHandler
from services.discord.permissions import DiscordPermissionResolver
from shared.logging.logger import get_logger

# NOTE: routed to Discord runtime log file
log = get_logger("discord.commands.admin.register", runtime="discord")


async def _gate(
    interaction: discord.Interaction,
    permissions: DiscordPermissionResolver,
) -> bool:
    result = permissions.require_admin(interaction.user.id)
    if not result:
        await interaction.response.send_message(result.reason, ephemeral=True)
    return bool(result)


# ==================================================
# Registration Entry Point
# ==================================================

def setup(
    bot: commands.Bot,
    *,
    handler: AdminCommandHandler,
    permissions: DiscordPermissionResolver,
):
    # --------------------------------------------------
    # /testnotif
    # --------------------------------------------------

    @app_commands.command(
        name="testnotif",
        description="Preview the live notification (admin only)",
    )
    async def testnotif(interaction: discord.Interaction):
        if not await _gate(interaction, permissions):
            return

        await interaction.response.defer(ephemeral=True)
        content = await handler.cmd_testnotif(user_id=interaction.user.id)
        await interaction.followup.send(content=truncate_message(content), ephemeral=True)

    # --------------------------------------------------
    # /debug
    # --------------------------------------------------

    @app_commands.command(
        name="debug",
        description="Inspect live checker state (admin only)",
    )
    async def debug(interaction: discord.Interaction):
        if not await _gate(interaction, permissions):
            return

        await interaction.response.defer(ephemeral=True)

        try:
            content = await handler.cmd_debug(user_id=interaction.user.id)
        except Exception:
            log.exception("Error in /debug command")
            content = "❌ Could not collect debug info."

        await interaction.followup.send(content=truncate_message(content), ephemeral=True)

    # --------------------------------------------------
    # Register Commands
    # --------------------------------------------------

    bot.tree.add_command(testnotif)
    bot.tree.add_command(debug)

    log.info("Discord admin slash commands registered")
