"""
Discord Runtime Supervisor

Owns the lifecycle of the Discord runtime.

Responsibilities:
- start Discord client
- manage background Discord tasks (heartbeat)
- write the runtime snapshot (Discord + watcher state) for diagnostics
- perform graceful shutdown

IMPORTANT:
- MUST be started by core.app
- MUST NOT create its own event loop
- MUST NOT install signal handlers
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from discord.ext import commands

from services.discord.client import CommandRegistrar, DiscordClient
from services.discord.heartbeat import DiscordHeartbeat, GatewayHealth
from shared.logging.logger import get_logger
from shared.storage.paths import write_json_atomic

# NOTE: routed to Discord runtime log file
log = get_logger("discord.supervisor", runtime="discord")

HEARTBEAT_SECONDS = 30


class DiscordSnapshotWriter:
    """
    Atomic JSON snapshot writer for runtime state.

    Owned exclusively by the DiscordSupervisor to guarantee a single
    authoritative output.
    """

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path else Path("shared/state/runtime.json")

    @property
    def path(self) -> Path:
        return self._path

    def write(self, payload: Dict[str, Any]) -> None:
        try:
            write_json_atomic(self._path, payload)
        except Exception as e:
            log.error(f"Failed to write runtime snapshot: {e}")


class DiscordSupervisor:
    """
    Owns the Discord runtime lifecycle.

    Contract:
    - start() is awaitable
    - shutdown() is idempotent
    """

    def __init__(
        self,
        token: str,
        *,
        register_commands: CommandRegistrar,
        snapshot_path: Optional[Path] = None,
        extra_snapshot: Optional[Callable[[], Dict[str, Any]]] = None,
    ):
        self._token = token
        self._register_commands = register_commands
        self._extra_snapshot = extra_snapshot

        self._client: Optional[DiscordClient] = None
        self._tasks: List[asyncio.Task] = []
        self._running: bool = False
        self._guild_count: Optional[int] = None

        self._heartbeat = DiscordHeartbeat()
        self._snapshot_writer = DiscordSnapshotWriter(snapshot_path)

    # --------------------------------------------------
    # Snapshot helpers (supervisor-owned)
    # --------------------------------------------------

    def _refresh_guild_count(self):
        bot = self.bot
        self._guild_count = len(bot.guilds) if bot else None

    def _build_snapshot_payload(self) -> Dict[str, Any]:
        self._refresh_guild_count()
        health = self.heartbeat
        now = self._heartbeat.clock()

        payload: Dict[str, Any] = {
            "running": self._running,
            "connected": self.connected,
            "heartbeat_stale": self._running and health.is_stale(now, HEARTBEAT_SECONDS * 2),
            "task_count": self.task_count,
            "guild_count": self._guild_count if self.connected else None,
            "gateway": health.snapshot(now),
        }

        if self._extra_snapshot:
            try:
                payload.update(self._extra_snapshot())
            except Exception as e:
                log.warning(f"Failed to collect watcher snapshot: {e}")

        return payload

    def _write_snapshot(self):
        self._snapshot_writer.write(self._build_snapshot_payload())

    def notify_connected(self):
        self._heartbeat.set_connected(True)
        self._write_snapshot()

    def notify_disconnected(self):
        self._heartbeat.set_connected(False)
        self._write_snapshot()

    # --------------------------------------------------
    # Lifecycle
    # --------------------------------------------------

    async def start(self):
        """
        Start the Discord runtime.
        """
        if self._running:
            log.warning("Discord supervisor already running")
            return

        log.info("Starting Discord supervisor")

        self._client = DiscordClient(
            self._token,
            register_commands=self._register_commands,
            supervisor=self,
        )

        self._heartbeat.start()

        # --------------------------------------------------
        # Discord client main loop
        # --------------------------------------------------
        self._tasks.append(asyncio.create_task(self._client.run(), name="discord-client"))

        # --------------------------------------------------
        # Heartbeat tick loop (supervisor-owned)
        # --------------------------------------------------
        async def _heartbeat_loop():
            while True:
                self._heartbeat.tick()
                self._write_snapshot()
                await asyncio.sleep(HEARTBEAT_SECONDS)

        self._tasks.append(asyncio.create_task(_heartbeat_loop(), name="discord-heartbeat"))

        self._running = True
        log.info("Discord supervisor started")
        self._write_snapshot()

    # --------------------------------------------------
    # Shutdown
    # --------------------------------------------------

    async def shutdown(self):
        """
        Gracefully shut down the Discord runtime.
        """
        if not self._running:
            return

        log.info("Shutting down Discord supervisor")

        self._heartbeat.set_connected(False)

        # --------------------------------------------------
        # Stop Discord client first
        # --------------------------------------------------
        try:
            if self._client:
                await self._client.shutdown()
        except Exception as e:
            log.warning(f"Discord client shutdown error ignored: {e}")

        # --------------------------------------------------
        # Cancel remaining tasks
        # --------------------------------------------------
        for task in self._tasks:
            if not task.done():
                task.cancel()

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

        self._tasks.clear()
        self._client = None
        self._running = False

        self._write_snapshot()

        log.info("Discord supervisor shutdown complete")

    # --------------------------------------------------
    # Read-only Introspection
    # --------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def bot(self) -> Optional[commands.Bot]:
        return self._client.bot if self._client else None

    @property
    def heartbeat(self) -> GatewayHealth:
        return self._heartbeat.state()

    @property
    def connected(self) -> bool:
        return self.heartbeat.connected

    @property
    def task_count(self) -> int:
        return len(self._tasks)

    @property
    def client_task(self) -> Optional[asyncio.Task]:
        return self._tasks[0] if self._tasks else None

    def snapshot(self) -> Dict[str, Any]:
        """
        Full supervisor state snapshot for diagnostics.
        """
        return self._build_snapshot_payload()
