"""SlashCaster: live beacon chain slashing notifier.

Runs three long-lived tasks on one event loop:

1. The slot streamer follows the chain slot by slot and queues a
   notification for every block that carries slashings.
2. The send queue dispatcher delivers queued messages at the configured
   rate limit.
3. The Telegram command poller (when a bot token is configured) answers
   /start, /stats, /subscribe and /unsubscribe.

On SIGINT/SIGTERM the tasks are cancelled, queued messages are abandoned and
the state file is written once before exit.

Usage:
    python -m src.live [--debug]
"""

from argparse import ArgumentParser
import signal
import sys

import asyncio

from src.beacon.client import BeaconClient
from src.bot.antispam import AntiSpam
from src.bot.commands import CommandRouter
from src.bot.poller import TelegramPoller
from src.delivery.queue import SendQueue
from src.delivery.transports import DiscordTransport, TelegramTransport, Transport
from src.helpers.config import Settings, load_settings
from src.helpers.constants import BEACON_TIMEOUT, VERSION
from src.helpers.errors import ConfigError
from src.helpers.http import create_http_client
from src.helpers.logging import configure_logging, get_logger
from src.state.store import StateStore
from src.streamer import SlotStreamer


logger = get_logger(__name__)


class SlashCaster:
    """Wires the streamer, the send queue and the command poller together."""

    def __init__(self, settings: Settings, store: StateStore) -> None:
        """Initialize all components from settings.

        Args:
            settings: Runtime settings
            store: Loaded state store
        """
        self.settings = settings
        self.store = store

        # HTTP clients: the beacon node and the messaging providers
        self.beacon_http = create_http_client(timeout=BEACON_TIMEOUT)
        self.outbound_http = create_http_client()

        self.beacon = BeaconClient(settings.beacon_api_url, self.beacon_http)

        transports: list[Transport] = []
        self.telegram: TelegramTransport | None = None
        if settings.telegram_token:
            self.telegram = TelegramTransport(settings.telegram_token, self.outbound_http)
            transports.append(self.telegram)
        if settings.discord_webhook_url:
            transports.append(
                DiscordTransport(settings.discord_webhook_url, self.outbound_http)
            )
        if not transports:
            logger.warning("No transport configured, slashings will only be logged")

        self.queue = SendQueue(
            transports,
            settings.rate_limit,
            on_sent=lambda _message: store.message_sent(),
        )

        self.streamer = SlotStreamer(
            self.beacon,
            self.queue,
            store,
            telegram_channel=settings.telegram_channel,
            discord_webhook=settings.discord_webhook_url is not None,
        )

        self.poller: TelegramPoller | None = None
        if self.telegram is not None:
            router = CommandRouter(
                self.queue,
                store,
                AntiSpam(settings.command_cooldown),
                owner_id=settings.telegram_owner,
            )
            self.poller = TelegramPoller(self.telegram, router)

        self.should_shutdown = False
        self._tasks: list[asyncio.Task[None]] = []

    def shutdown(self) -> None:
        """Stop all components and cancel their tasks."""
        if self.should_shutdown:
            return

        logger.info("Shutdown signal received, stopping...")
        self.should_shutdown = True

        self.streamer.stop()
        self.queue.stop()
        if self.poller is not None:
            self.poller.stop()

        pending = len(self.queue)
        if pending:
            logger.warning("Abandoning %d queued messages", pending)

        for task in self._tasks:
            task.cancel()

    async def cleanup(self) -> None:
        """Persist state and close HTTP clients."""
        logger.info("Dumping state to %s", self.store.path)
        self.store.save()

        await self.beacon_http.aclose()
        await self.outbound_http.aclose()

    async def run(self) -> None:
        """Run until a shutdown signal or a fatal error.

        Raises:
            ConfigError: If the streamer cannot determine its starting slot
        """
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.shutdown)

        try:
            self._tasks = [
                asyncio.create_task(self.streamer.run(), name="streamer"),
                asyncio.create_task(self.queue.dispatch_forever(), name="dispatcher"),
            ]
            if self.poller is not None:
                self._tasks.append(
                    asyncio.create_task(self.poller.run(), name="poller")
                )

            logger.info("🔪 SlashCaster %s started", VERSION)

            # Any task finishing on its own means shutdown or a fatal error
            done, _ = await asyncio.wait(
                self._tasks, return_when=asyncio.FIRST_COMPLETED
            )
            self.shutdown()
            await asyncio.gather(*self._tasks, return_exceptions=True)

            for task in done:
                exc = None if task.cancelled() else task.exception()
                if exc is not None:
                    raise exc

        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
            await self.cleanup()

        logger.info("SlashCaster stopped")


async def main(debug: bool = False) -> int:
    """Main entry point.

    Args:
        debug: Log at DEBUG level regardless of LOG_LEVEL

    Returns:
        Process exit code
    """
    try:
        settings = load_settings()
        log_file = configure_logging(
            settings.log_path, "DEBUG" if debug else settings.log_level
        )
        logger.info("Logging to %s", log_file)

        store = StateStore.load(settings.state_path, version=VERSION)
        app = SlashCaster(settings, store)
        await app.run()
    except ConfigError as e:
        logger.error("Fatal configuration error: %s", e)
        return 1
    except Exception:
        logger.exception("Fatal error")
        return 1

    return 0


def cli() -> None:
    """Command-line interface entry point."""
    parser = ArgumentParser(description="Broadcast beacon chain slashings")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args()

    sys.exit(asyncio.run(main(debug=args.debug)))


if __name__ == "__main__":
    cli()
