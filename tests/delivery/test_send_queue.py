"""Tests for the rate-limited send queue."""

import time
from typing import Any

import asyncio
import pytest

from src.delivery.models import Message, SendOptions, TransportKind
from src.delivery.queue import SendQueue


# asyncio may fire a timer up to one clock tick early
CLOCK_EPSILON = 0.001


def telegram(recipient: str, text: str = "hello") -> Message:
    return Message(kind=TransportKind.TELEGRAM, recipient=recipient, text=text)


class BlockingTransport:
    """Telegram transport whose sends wait until `release` is set."""

    kind = TransportKind.TELEGRAM

    def __init__(self) -> None:
        self.release = asyncio.Event()
        self.started: list[str] = []

    async def send(self, recipient: str, text: str, options: SendOptions) -> None:
        self.started.append(recipient)
        await self.release.wait()


class BrokenTransport:
    """Telegram transport failing with an error outside the SendError family."""

    kind = TransportKind.TELEGRAM

    def __init__(self, broken_recipient: str) -> None:
        self.broken_recipient = broken_recipient
        self.sent: list[str] = []

    async def send(self, recipient: str, text: str, options: SendOptions) -> None:
        if recipient == self.broken_recipient:
            msg = "Cannot send a request, as the client has been closed."
            raise RuntimeError(msg)
        self.sent.append(recipient)


class TestSendQueue:
    """Tests for SendQueue bookkeeping."""

    @pytest.mark.parametrize("rate", [0, -1])
    def test_rejects_non_positive_rate(self, rate: int) -> None:
        """Test the rate limit must be positive."""
        with pytest.raises(ValueError, match="must be positive"):
            SendQueue(messages_per_second=rate)

    def test_send_interval(self) -> None:
        """Test interval is the inverse of the rate."""
        assert SendQueue(messages_per_second=4).send_interval == 0.25

    def test_enqueue_and_drain_fifo(self) -> None:
        """Test drain returns messages oldest first and empties the queue."""
        queue = SendQueue()
        for recipient in ("1", "2", "3"):
            queue.enqueue(telegram(recipient))

        assert len(queue) == 3
        assert [m.recipient for m in queue.drain()] == ["1", "2", "3"]
        assert len(queue) == 0
        assert queue.drain() == []


class TestDispatchBatch:
    """Tests for SendQueue.dispatch_batch."""

    @pytest.mark.asyncio
    async def test_delivers_in_order(self, telegram_transport: Any) -> None:
        """Test messages reach the transport in FIFO order with their options."""
        queue = SendQueue([telegram_transport], messages_per_second=100)
        options = SendOptions(parse_mode="MarkdownV2")
        queue.enqueue(telegram("1", "first"))
        queue.enqueue(
            Message(
                kind=TransportKind.TELEGRAM, recipient="2", text="second", options=options
            )
        )

        delivered = await queue.dispatch_batch(queue.drain())

        assert delivered == 2
        assert telegram_transport.sent == [
            ("1", "first", SendOptions()),
            ("2", "second", options),
        ]
        assert queue.messages_sent == 2

    @pytest.mark.asyncio
    async def test_paces_sends(self, telegram_transport: Any) -> None:
        """Test consecutive sends are at least one interval apart."""
        queue = SendQueue([telegram_transport], messages_per_second=20)
        batch = [telegram(str(i)) for i in range(4)]

        await queue.dispatch_batch(batch)

        times = telegram_transport.send_times
        gaps = [later - earlier for earlier, later in zip(times, times[1:])]
        assert len(gaps) == 3
        assert all(gap >= queue.send_interval - CLOCK_EPSILON for gap in gaps)

    @pytest.mark.asyncio
    async def test_failed_send_is_dropped(self, transport_factory: Any) -> None:
        """Test a failing recipient does not block the rest of the batch."""
        transport = transport_factory(fail_recipients={"2"})
        queue = SendQueue([transport], messages_per_second=100)
        batch = [telegram("1"), telegram("2"), telegram("3")]

        delivered = await queue.dispatch_batch(batch)

        assert delivered == 2
        assert [recipient for recipient, _, _ in transport.sent] == ["1", "3"]
        assert queue.messages_failed == 1
        assert len(transport.send_times) == 3

    @pytest.mark.asyncio
    async def test_unexpected_transport_error_is_dropped(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test any transport exception only fails its own message."""
        transport = BrokenTransport(broken_recipient="2")
        queue = SendQueue([transport], messages_per_second=100)

        delivered = await queue.dispatch_batch(
            [telegram("1"), telegram("2"), telegram("3")]
        )

        assert delivered == 2
        assert transport.sent == ["1", "3"]
        assert queue.messages_failed == 1
        assert "Unexpected error sending telegram message to 2" in caplog.text

    @pytest.mark.asyncio
    async def test_enqueue_does_not_wait_for_dispatch(self) -> None:
        """Test producers enqueue while a send is in flight."""
        transport = BlockingTransport()
        queue = SendQueue([transport], messages_per_second=100)
        queue.enqueue(telegram("1"))

        dispatch = asyncio.create_task(queue.dispatch_batch(queue.drain()))
        while not transport.started:
            await asyncio.sleep(0)

        started = time.monotonic()
        queue.enqueue(telegram("2"))
        assert time.monotonic() - started < 0.1
        assert len(queue) == 1

        transport.release.set()
        assert await dispatch == 1
        assert transport.started == ["1"]
        assert [m.recipient for m in queue.drain()] == ["2"]

    @pytest.mark.asyncio
    async def test_missing_transport(
        self, telegram_transport: Any, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test messages for an unconfigured transport are dropped."""
        queue = SendQueue([telegram_transport], messages_per_second=100)
        discord = Message(kind=TransportKind.DISCORD, recipient="webhook", text="x")

        delivered = await queue.dispatch_batch([discord, telegram("1")])

        assert delivered == 1
        assert queue.messages_failed == 1
        assert "No transport configured for discord" in caplog.text

    @pytest.mark.asyncio
    async def test_routes_by_kind(
        self, telegram_transport: Any, discord_transport: Any
    ) -> None:
        """Test each message goes to the transport of its kind."""
        queue = SendQueue([telegram_transport, discord_transport], messages_per_second=100)
        discord = Message(kind=TransportKind.DISCORD, recipient="webhook", text="d")

        await queue.dispatch_batch([telegram("1", "t"), discord])

        assert [text for _, text, _ in telegram_transport.sent] == ["t"]
        assert [text for _, text, _ in discord_transport.sent] == ["d"]

    @pytest.mark.asyncio
    async def test_on_sent_callback(self, telegram_transport: Any) -> None:
        """Test on_sent is called once per delivered message."""
        sent: list[Message] = []
        queue = SendQueue(
            [telegram_transport], messages_per_second=100, on_sent=sent.append
        )
        message = telegram("1")

        await queue.dispatch_batch([message])

        assert sent == [message]


class TestDispatchForever:
    """Tests for SendQueue.dispatch_forever."""

    @pytest.mark.asyncio
    async def test_stops_after_batch(self, telegram_transport: Any) -> None:
        """Test the dispatcher sends queued messages and honors stop()."""
        queue = SendQueue(
            [telegram_transport],
            messages_per_second=100,
            poll_interval=0.01,
            on_sent=lambda _message: queue.stop(),
        )
        queue.enqueue(telegram("1"))

        await queue.dispatch_forever()

        assert len(telegram_transport.sent) == 1
        assert len(queue) == 0
