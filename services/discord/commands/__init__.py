"""
Discord Command Package

This package centralizes registration for all slash command surfaces.

Command categories:
- public         → schedule / live status / notable people / help
- subscriptions  → subscribe, unsubscribe, notification settings
- admin          → administrator-only diagnostics

IMPORTANT DESIGN RULES:
- No command registration on import
- No Discord client ownership
- Explicit setup() calls only
"""

from __future__ import annotations

from discord.ext import commands

from shared.logging.logger import get_logger

# Sub-command modules (registration-only)
from services.discord.commands import admin_commands
from services.discord.commands import public_commands
from services.discord.commands import subscription_commands
from services.discord.commands.admin import AdminCommandHandler
from services.discord.commands.public import PublicCommandHandler
from services.discord.commands.subscriptions import SubscriptionCommandHandler
from services.discord.permissions import DiscordPermissionResolver

log = get_logger("discord.commands", runtime="discord")


def setup(
    bot: commands.Bot,
    *,
    public: PublicCommandHandler,
    subscriptions: SubscriptionCommandHandler,
    admin: AdminCommandHandler,
    permissions: DiscordPermissionResolver,
):
    """
    Register all Discord command surfaces.

    This function is called exactly once by the Discord client
    during startup.
    """

    public_commands.setup(bot, handler=public, permissions=permissions)
    subscription_commands.setup(bot, handler=subscriptions)
    admin_commands.setup(bot, handler=admin, permissions=permissions)

    log.info("Discord command surfaces initialized")
