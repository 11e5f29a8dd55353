"""
Discord Public Slash Command Registration

Thin registration layer: cooldown gating, deferral and replies only.
All logic lives in PublicCommandHandler.
"""

from __future__ import annotations

from typing import Awaitable, Callable

import discord
from discord import app_commands
from discord.ext import commands

from core.messages import truncate_message
from services.discord.commands.public import PublicCommandHandler
from services.discord.permissions import DiscordPermissionResolver
from shared.logging.logger import get_logger

log = get_logger("discord.commands.public.register", runtime="discord")


async def _run_public(
    interaction: discord.Interaction,
    *,
    name: str,
    permissions: DiscordPermissionResolver,
    action: Callable[[], Awaitable[str]],
    failure: str,
    rate_limited: bool = True,
) -> None:
    if rate_limited:
        allowed = permissions.check_public(interaction.user.id)
        if not allowed:
            await interaction.response.send_message(allowed.reason, ephemeral=True)
            return

    await interaction.response.defer(thinking=True)

    try:
        content = await action()
    except Exception:
        log.exception(f"Error in /{name} command")
        content = failure

    await interaction.followup.send(content=truncate_message(content))


def setup(
    bot: commands.Bot,
    *,
    handler: PublicCommandHandler,
    permissions: DiscordPermissionResolver,
):
    # --------------------------------------------------
    # /next
    # --------------------------------------------------

    @app_commands.command(name="next", description="When is WAN supposed to be?")
    async def next_show(interaction: discord.Interaction):
        await _run_public(
            interaction,
            name="next",
            permissions=permissions,
            action=lambda: handler.cmd_next(user_id=interaction.user.id),
            failure="❌ Could not calculate next WAN time. Try again?",
            rate_limited=False,
        )

    # --------------------------------------------------
    # /status
    # --------------------------------------------------

    @app_commands.command(name="status", description="Are they live right now?")
    async def status(interaction: discord.Interaction):
        await _run_public(
            interaction,
            name="status",
            permissions=permissions,
            action=lambda: handler.cmd_status(user_id=interaction.user.id),
            failure="❌ Could not check status. Try again?",
        )

    # --------------------------------------------------
    # /live
    # --------------------------------------------------

    @app_commands.command(name="live", description="Quick yes/no live check")
    async def live(interaction: discord.Interaction):
        await _run_public(
            interaction,
            name="live",
            permissions=permissions,
            action=lambda: handler.cmd_live(user_id=interaction.user.id),
            failure="❌ Could not check. Try again?",
        )

    # --------------------------------------------------
    # /notable
    # --------------------------------------------------

    @app_commands.command(name="notable", description="Check notable people")
    async def notable(interaction: discord.Interaction):
        await _run_public(
            interaction,
            name="notable",
            permissions=permissions,
            action=lambda: handler.cmd_notable(user_id=interaction.user.id),
            failure="❌ Could not check notable people. Try again?",
        )

    # --------------------------------------------------
    # /help
    # --------------------------------------------------

    @app_commands.command(name="help", description="Show available commands")
    async def help_command(interaction: discord.Interaction):
        await _run_public(
            interaction,
            name="help",
            permissions=permissions,
            action=lambda: handler.cmd_help(user_id=interaction.user.id),
            failure="❌ Something went wrong. Try again?",
            rate_limited=False,
        )

    # --------------------------------------------------
    # Register Commands
    # --------------------------------------------------

    for command in (next_show, status, live, notable, help_command):
        bot.tree.add_command(command)

    log.info("Discord public slash commands registered")
