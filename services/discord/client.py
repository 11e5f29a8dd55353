"""
Discord Client

This module owns the Discord connection itself.
It is intentionally minimal and lifecycle-focused.

Responsibilities:
- connect to Discord
- handle ready / resume / disconnect events
- register command surfaces and sync the command tree
- expose a clean async run() / shutdown() contract

IMPORTANT:
- This client MUST be controlled by DiscordSupervisor
- This client MUST NOT create its own event loop
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

import discord
from discord.ext import commands

from shared.logging.logger import get_logger

# NOTE: routed to Discord runtime log file
log = get_logger("discord.client", runtime="discord")

CommandRegistrar = Callable[[commands.Bot], None]


class DiscordClient:
    """
    Thin wrapper around discord.py Bot.

    This class provides:
    - async run() entrypoint
    - async shutdown()
    - lifecycle event logging
    - command surface wiring
    """

    def __init__(
        self,
        token: str,
        *,
        register_commands: CommandRegistrar,
        supervisor=None,
    ):
        if not token:
            raise RuntimeError("Discord bot token is required")

        self._token: str = token
        self._register_commands = register_commands
        self._bot: Optional[commands.Bot] = None
        self._supervisor = supervisor

    # --------------------------------------------------

    def _build_bot(self) -> commands.Bot:
        """
        Construct the discord.py Bot instance.

        Commands are registered here; the tree is synced on ready.
        """

        intents = discord.Intents.default()
        intents.members = False
        intents.message_content = False  # slash-command focused

        bot = commands.Bot(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None,
        )

        self._register_commands(bot)

        # --------------------------------------------------
        # Lifecycle Events
        # --------------------------------------------------

        @bot.event
        async def on_ready():
            log.info(
                f"Discord connected as {bot.user} "
                f"(id={bot.user.id}) "
                f"guilds={len(bot.guilds)}"
            )

            try:
                await bot.tree.sync()
                log.info("Discord command tree synced")
            except Exception as e:
                log.error(f"Failed to sync Discord commands: {e}")

            if self._supervisor:
                self._supervisor.notify_connected()

        @bot.event
        async def on_resumed():
            log.info("Discord connection resumed")
            if self._supervisor:
                self._supervisor.notify_connected()

        @bot.event
        async def on_disconnect():
            log.warning("Discord connection lost")
            if self._supervisor:
                self._supervisor.notify_disconnected()

        @bot.tree.error
        async def on_app_command_error(
            interaction: discord.Interaction,
            error: discord.app_commands.AppCommandError,
        ):
            log.error(f"Error in /{interaction.command.name if interaction.command else '?'}: {error}")
            if not interaction.response.is_done():
                await interaction.response.send_message(
                    "❌ Something went wrong. Try again?",
                    ephemeral=True,
                )

        return bot

    # --------------------------------------------------

    async def run(self):
        """
        Start the Discord client and block until shutdown.
        """
        if self._bot is not None:
            raise RuntimeError("Discord client already running")

        log.info("Initializing Discord client")

        self._bot = self._build_bot()

        try:
            await self._bot.start(self._token)
        except discord.LoginFailure:
            log.error("Discord rejected the bot token (check DISCORD_BOT_TOKEN)")
            raise
        except discord.PrivilegedIntentsRequired as e:
            log.error(f"Missing privileged intents for shard {e.shard_id}")
            raise
        except asyncio.CancelledError:
            log.info("Discord client task cancelled")
            raise
        except Exception as e:
            log.error(f"Discord client crashed: {e}")
            raise
        finally:
            log.info("Discord client stopped")

    # --------------------------------------------------

    async def shutdown(self):
        """
        Gracefully close the Discord connection.
        """
        if not self._bot:
            return

        log.info("Closing Discord connection")

        try:
            await self._bot.close()
        except Exception as e:
            log.warning(f"Discord close error ignored: {e}")

        self._bot = None

    # --------------------------------------------------

    @property
    def bot(self) -> Optional[commands.Bot]:
        return self._bot
