import argparse
import asyncio
import signal
import sys
from functools import partial
from typing import List, Optional

from core.config_loader import ConfigLoader, MissingTokenError
from core.detector import EventPlatformTracker
from core.dispatcher import Dispatcher
from core.events import EventChannel
from core.live_checker import LiveChecker
from core.notifications import NotificationRouter
from runtime import version
from services.discord import commands as discord_commands
from services.discord.commands.admin import AdminCommandHandler
from services.discord.commands.public import PublicCommandHandler
from services.discord.commands.subscriptions import SubscriptionCommandHandler
from services.discord.delivery import DiscordDelivery
from services.discord.permissions import DiscordPermissionResolver
from services.discord.runtime import DiscordSupervisor
from services.whenplane.api.aggregate import AggregateAPI
from shared.logging.logger import get_logger, set_verbose
from shared.schedule.nominal import next_occurrence
from shared.storage.paths import resolve_path
from shared.storage.subscriptions import SubscriptionStore

log = get_logger("core.app")

SHUTDOWN_GRACE_SECONDS = 10


async def main(stop_event: asyncio.Event, config_path: Optional[str] = None) -> int:
    log.info(f"{version.as_string()} booting")

    # --------------------------------------------------
    # CONFIG + ENV
    # --------------------------------------------------
    loader = ConfigLoader(config_path)

    try:
        env = loader.load_environment()
    except MissingTokenError as e:
        log.error(f"Error: {e}")
        return 1

    log.info("Environment variables loaded")
    config = loader.load_watcher_config()

    # --------------------------------------------------
    # SUBSCRIBERS
    # --------------------------------------------------
    store = SubscriptionStore(resolve_path(config.subscriptions_path))
    store.load()
    store.migrate_legacy(resolve_path(config.legacy_subscribers_path))

    # --------------------------------------------------
    # WATCHER CORE
    # --------------------------------------------------
    fetcher = AggregateAPI(
        url=config.aggregate_url,
        is_there_wan_url=config.is_there_wan_url,
        user_agent=config.user_agent,
        timeout=config.fetch_timeout_seconds,
        cache_seconds=config.cache_seconds,
    )

    checker = LiveChecker(
        fetcher=fetcher,
        schedule=partial(next_occurrence, buffer=True, schedule=config.schedule),
        intervals=config.intervals.to_intervals(),
        platform_tracker=EventPlatformTracker(config.follow_up_platforms),
    )

    # --------------------------------------------------
    # DISCORD FRONT-END
    # --------------------------------------------------
    permissions = DiscordPermissionResolver(
        env.admin_user_ids,
        user_cooldown_seconds=config.rate_limits.user_seconds,
        admin_cooldown_seconds=config.rate_limits.admin_seconds,
    )

    register_commands = partial(
        discord_commands.setup,
        public=PublicCommandHandler(
            checker=checker,
            fetcher=fetcher,
            store=store,
            schedule=config.schedule,
        ),
        subscriptions=SubscriptionCommandHandler(store=store),
        admin=AdminCommandHandler(checker=checker, store=store, schedule=config.schedule),
        permissions=permissions,
    )

    dispatcher: Optional[Dispatcher] = None

    def _watcher_snapshot():
        return {
            "version": version.as_dict(),
            "subscribers": store.count(),
            "pending_deliveries": dispatcher.pending if dispatcher else 0,
            "checker": checker.snapshot(),
        }

    supervisor = DiscordSupervisor(
        env.bot_token,
        register_commands=register_commands,
        snapshot_path=resolve_path(config.state_path),
        extra_snapshot=_watcher_snapshot,
    )

    delivery = DiscordDelivery(lambda: supervisor.bot)
    dispatcher = Dispatcher(delivery.deliver, store.remove_subscriber)
    router = NotificationRouter(store=store, dispatcher=dispatcher, schedule=config.schedule)
    channel = EventChannel()

    # --------------------------------------------------
    # START
    # --------------------------------------------------
    await supervisor.start()

    client_task = supervisor.client_task
    if client_task is not None:
        # A dead Discord client (bad token, fatal gateway error) ends the run
        client_task.add_done_callback(lambda _: stop_event.set())

    router_task = asyncio.create_task(router.run(channel), name="notification-router")
    await checker.start(channel)

    log.info("Bot is running!")
    log.info("Adaptive polling active")
    log.info(f"Subscribers: {store.count()}")

    # --------------------------------------------------
    # BLOCK UNTIL SHUTDOWN SIGNAL
    # --------------------------------------------------
    await stop_event.wait()

    log.info("Shutting down...")

    # --------------------------------------------------
    # ORDERLY SHUTDOWN (PRODUCER FIRST, DISCORD LAST)
    # --------------------------------------------------
    try:
        await checker.stop()
    except Exception as e:
        log.warning(f"Live checker shutdown error ignored: {e}")

    try:
        await asyncio.wait_for(channel.join(), timeout=SHUTDOWN_GRACE_SECONDS)
    except asyncio.TimeoutError:
        log.warning("Notification router did not drain in time")

    router_task.cancel()
    await asyncio.gather(router_task, return_exceptions=True)

    try:
        await asyncio.wait_for(dispatcher.drain(), timeout=SHUTDOWN_GRACE_SECONDS)
    except asyncio.TimeoutError:
        log.warning(f"Abandoning {dispatcher.pending} pending deliveries")

    try:
        await supervisor.shutdown()
    except Exception as e:
        log.warning(f"Discord supervisor shutdown error ignored: {e}")

    log.info("WANWatch stopped")
    return 0


# ----------------------------------------------------------------------
# SIGNAL HANDLING (WINDOWS-SAFE)
# ----------------------------------------------------------------------

def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop,
    stop_event: asyncio.Event,
):
    """
    Windows-safe Ctrl+C handler.
    Uses signal.signal + asyncio.Event to unwind cleanly.
    """

    def _handler(signum, frame):
        try:
            loop.call_soon_threadsafe(stop_event.set)
        except RuntimeError:
            stop_event.set()

    try:
        signal.signal(signal.SIGINT, _handler)
        signal.signal(signal.SIGTERM, _handler)
    except ValueError:
        log.warning("Signal handlers unavailable outside the main thread")


# ----------------------------------------------------------------------
# ENTRYPOINT
# ----------------------------------------------------------------------

def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="wanwatch",
        description="Discord bot that DMs subscribers when the WAN Show actually goes live.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="log debug output (interval decisions, deliveries) to the console",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="path to the watcher config JSON (overrides WANWATCH_CONFIG)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=version.as_string(),
    )
    return parser.parse_args(argv)


def run(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    set_verbose(args.verbose)

    stop_event = asyncio.Event()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    _install_signal_handlers(loop, stop_event)

    exit_code = 0
    try:
        exit_code = loop.run_until_complete(main(stop_event, args.config))

    except KeyboardInterrupt:
        log.info("KeyboardInterrupt received, shutdown initiated")
        stop_event.set()

    except Exception:
        log.exception("Failed to start")
        exit_code = 1

    finally:
        # --------------------------------------------------
        # CANCEL REMAINING TASKS (CLEANLY)
        # --------------------------------------------------
        pending = [t for t in asyncio.all_tasks(loop) if not t.done()]
        for task in pending:
            task.cancel()

        if pending:
            loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))

        # --------------------------------------------------
        # FINAL LOOP CLEANUP
        # --------------------------------------------------
        loop.run_until_complete(loop.shutdown_asyncgens())

        asyncio.set_event_loop(None)
        loop.close()

    return exit_code


if __name__ == "__main__":
    sys.exit(run())
