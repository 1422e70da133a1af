"""Telegram long-polling loop feeding chat commands to the router."""

from collections.abc import Awaitable, Callable

import asyncio

from pydantic import ValidationError

from src.bot.commands import CommandRouter
from src.bot.models import TelegramUpdate
from src.delivery.transports import TelegramTransport
from src.helpers.constants import TELEGRAM_POLL_TIMEOUT
from src.helpers.errors import SendError
from src.helpers.http import backoff_delay
from src.helpers.logging import get_logger


logger = get_logger(__name__)


class TelegramPoller:
    """Pulls updates with `getUpdates` and routes command messages."""

    def __init__(
        self,
        transport: TelegramTransport,
        router: CommandRouter,
        *,
        poll_timeout: int = TELEGRAM_POLL_TIMEOUT,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.transport = transport
        self.router = router
        self.poll_timeout = poll_timeout
        self.sleep = sleep
        self.offset: int | None = None
        self._stopped = False

    async def poll_once(self) -> int:
        """Fetch one batch of updates and route them.

        Returns:
            Number of commands handled

        Raises:
            SendError: If the Bot API call failed
        """
        payload: dict[str, object] = {
            "timeout": self.poll_timeout,
            "allowed_updates": ["message"],
        }
        if self.offset is not None:
            payload["offset"] = self.offset

        result = await self.transport.call("getUpdates", payload)

        handled = 0
        for raw in result or []:
            try:
                update = TelegramUpdate.model_validate(raw)
            except ValidationError as e:
                logger.warning("Skipping malformed update: %s", e)
                if isinstance(raw, dict) and isinstance(raw.get("update_id"), int):
                    self.offset = raw["update_id"] + 1
                continue

            self.offset = update.update_id + 1

            message = update.message
            if message is None or not message.text:
                continue

            try:
                if self.router.handle(message.chat.id, message.text, message.date):
                    handled += 1
            except Exception:
                logger.exception(
                    "Error handling update %s from chat %s",
                    update.update_id,
                    message.chat.id,
                )

        return handled

    async def run(self) -> None:
        """Poll until `stop()` is called, backing off on API errors."""
        logger.info("Telegram command poller started")
        failures = 0

        while not self._stopped:
            try:
                await self.poll_once()
                failures = 0
            except SendError as e:
                delay = backoff_delay(failures)
                failures += 1
                logger.warning("Polling Telegram failed, retrying in %ss: %s", delay, e)
                await self.sleep(delay)

        logger.info("Telegram command poller stopped")

    def stop(self) -> None:
        self._stopped = True


__all__ = ["TelegramPoller"]
