"""Rate-limited send queue.

Producers call `enqueue()` synchronously and never wait on the rate limit.
A single dispatcher task drains the whole queue on every poll and sends the
batch in FIFO order, spacing consecutive sends by `1 / messages_per_second`.
Failed sends are logged and dropped.

Growth is unbounded: sustained overproduction only lengthens the queue.
"""

import threading

from collections.abc import Callable, Iterable

import asyncio

from src.delivery.models import Message, TransportKind
from src.delivery.transports import Transport
from src.helpers.constants import DEFAULT_RATE_LIMIT, DISPATCH_POLL_INTERVAL
from src.helpers.errors import SendError
from src.helpers.logging import get_logger


logger = get_logger(__name__)


class SendQueue:
    """FIFO of outbound messages with a messages-per-second ceiling."""

    def __init__(
        self,
        transports: Iterable[Transport] = (),
        messages_per_second: int = DEFAULT_RATE_LIMIT,
        *,
        poll_interval: float = DISPATCH_POLL_INTERVAL,
        on_sent: Callable[[Message], None] | None = None,
    ) -> None:
        """Initialize the queue.

        Args:
            transports: One transport per kind; later entries replace earlier ones
            messages_per_second: Send rate ceiling
            poll_interval: Seconds between queue polls when idle
            on_sent: Called after every successful send

        Raises:
            ValueError: If messages_per_second is not positive
        """
        if messages_per_second <= 0:
            msg = f"messages_per_second must be positive, got {messages_per_second}"
            raise ValueError(msg)

        self.messages_per_second = messages_per_second
        self.poll_interval = poll_interval
        self.transports: dict[TransportKind, Transport] = {
            transport.kind: transport for transport in transports
        }
        self.on_sent = on_sent

        self._messages: list[Message] = []
        self._lock = threading.Lock()
        self._stopped = False

        # Stats
        self.messages_sent = 0
        self.messages_failed = 0

    @property
    def send_interval(self) -> float:
        """Seconds between two consecutive sends within a batch."""
        return 1.0 / self.messages_per_second

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    def enqueue(self, message: Message) -> None:
        """Append a message. Never blocks on the rate limit."""
        with self._lock:
            self._messages.append(message)

    def drain(self) -> list[Message]:
        """Take every queued message, leaving the queue empty."""
        with self._lock:
            batch, self._messages = self._messages, []
        return batch

    async def _send(self, message: Message) -> bool:
        transport = self.transports.get(message.kind)
        if transport is None:
            logger.error(
                "No transport configured for %s, dropping message to %s",
                message.kind,
                message.recipient,
            )
            return False

        try:
            await transport.send(message.recipient, message.text, message.options)
        except SendError as e:
            logger.warning(
                "Error sending %s message to %s: %s",
                message.kind,
                message.recipient,
                e,
            )
            return False
        except Exception:
            logger.exception(
                "Unexpected error sending %s message to %s",
                message.kind,
                message.recipient,
            )
            return False

        return True

    async def dispatch_batch(self, batch: list[Message]) -> int:
        """Send a batch in order, pacing sends to the rate limit.

        Args:
            batch: Messages to send, oldest first

        Returns:
            Number of messages delivered successfully
        """
        delivered = 0
        for i, message in enumerate(batch):
            if await self._send(message):
                delivered += 1
                self.messages_sent += 1
                if self.on_sent is not None:
                    self.on_sent(message)
            else:
                self.messages_failed += 1

            if i < len(batch) - 1:
                await asyncio.sleep(self.send_interval)

        return delivered

    async def dispatch_forever(self) -> None:
        """Drain and send the queue until `stop()` is called."""
        logger.info(
            "Send queue dispatcher started (%d messages/second)",
            self.messages_per_second,
        )

        while not self._stopped:
            batch = self.drain()
            if batch:
                delivered = await self.dispatch_batch(batch)
                logger.debug("Dispatched %d/%d queued messages", delivered, len(batch))

            await asyncio.sleep(self.poll_interval)

        logger.info("Send queue dispatcher stopped")

    def stop(self) -> None:
        """Stop the dispatcher after its current batch."""
        self._stopped = True


__all__ = ["SendQueue"]
