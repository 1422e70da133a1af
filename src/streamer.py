"""Slot streamer: follows the beacon chain one slot at a time.

Lifecycle: IDLE -> SYNCING -> STREAMING <-> BACKOFF.

1. SYNCING fetches the head. If the state store remembers a last processed
   slot behind the head, streaming resumes right after it so no slot is
   skipped; otherwise it starts at the head.
2. Each slot is fetched, scanned for slashings and, if any are found,
   broadcast through the send queue. Statistics are persisted by a
   fire-and-forget task, and the state file is rewritten every
   `save_interval` processed slots so a restart resumes close to where it
   stopped.
3. The streamer then sleeps until the next slot's block is due plus a
   propagation grace period. When behind, it sleeps only a short floor so
   it catches up at the API's rate limit.
4. A failed fetch (after the client's own bounded retries) keeps the same
   slot and retries it after a fixed delay.
"""

from enum import StrEnum
import time

from collections.abc import Awaitable, Callable

import asyncio

from src.beacon.client import BeaconClient
from src.beacon.slots import expected_block_time
from src.delivery.queue import SendQueue
from src.helpers.constants import (
    FETCH_ERROR_DELAY,
    MIN_SLOT_SLEEP,
    PROPAGATION_DELAY,
    STATE_SAVE_INTERVAL,
)
from src.helpers.errors import ConfigError, NetworkError, ParseError
from src.helpers.logging import get_logger
from src.slashings.extract import find_slashings
from src.slashings.models import SlashingEvent
from src.slashings.notify import broadcast_slashing
from src.state.store import StateStore


logger = get_logger(__name__)


class StreamerState(StrEnum):
    IDLE = "idle"
    SYNCING = "syncing"
    STREAMING = "streaming"
    BACKOFF = "backoff"


class SlotStreamer:
    """Paces block fetches to the slot clock and reports slashings."""

    def __init__(
        self,
        beacon: BeaconClient,
        queue: SendQueue,
        store: StateStore,
        *,
        telegram_channel: int | None = None,
        discord_webhook: bool = False,
        error_delay: float = FETCH_ERROR_DELAY,
        propagation_delay: float = PROPAGATION_DELAY,
        min_sleep: float = MIN_SLOT_SLEEP,
        save_interval: int = STATE_SAVE_INTERVAL,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the streamer.

        Args:
            beacon: Beacon node client
            queue: Send queue notifications are enqueued into
            store: State store holding the last processed slot and statistics
            telegram_channel: Telegram channel to broadcast to, if any
            discord_webhook: Whether to broadcast to the Discord webhook
            error_delay: Seconds before retrying a slot whose fetch failed
            propagation_delay: Grace period after a slot's expected time
            min_sleep: Sleep floor between slots while catching up
            save_interval: Processed slots between two state file writes
            clock: Returns the current unix time
            sleep: Coroutine used for every wait
        """
        self.beacon = beacon
        self.queue = queue
        self.store = store
        self.telegram_channel = telegram_channel
        self.discord_webhook = discord_webhook
        self.error_delay = error_delay
        self.propagation_delay = propagation_delay
        self.min_sleep = min_sleep
        self.save_interval = save_interval
        self.clock = clock
        self.sleep = sleep

        self.state = StreamerState.IDLE
        self.current_slot: int | None = None
        self.should_shutdown = False

        # Stats
        self.slots_processed = 0
        self.fetch_failures = 0
        self.slashing_events = 0

        self._background_tasks: set[asyncio.Task[None]] = set()

    async def sync(self) -> int:
        """Determine the first slot to stream.

        Returns:
            Starting slot

        Raises:
            ConfigError: If the chain head cannot be fetched
        """
        self.state = StreamerState.SYNCING

        try:
            head = await self.beacon.get_head()
        except (NetworkError, ParseError) as e:
            msg = f"Cannot fetch chain head: {e}"
            raise ConfigError(msg) from e

        logger.info("Got chain head, slot=%s", head)

        last_processed = self.store.last_processed_slot
        if last_processed is not None and last_processed < head:
            start = last_processed + 1
            logger.info(
                "Resuming from slot %s, %d slots behind head", start, head - start
            )
        else:
            start = head

        self.current_slot = start
        return start

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[None]) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("State update failed: %s", exc)

    async def process_slot(self, slot: int) -> SlashingEvent:
        """Fetch one slot, scan it and notify if it carries slashings.

        Raises:
            NetworkError: If the block could not be fetched
            ParseError: If the block could not be decoded
        """
        block = await self.beacon.get_slot(slot)
        event = find_slashings(block, slot)
        block_time = expected_block_time(slot)

        self.store.slot_processed(slot, block_time)
        self.slots_processed += 1
        if self.slots_processed % self.save_interval == 0:
            self._spawn(asyncio.to_thread(self.store.save))

        if event.found:
            self.slashing_events += 1
            logger.info("Found %d slashing(s) in slot=%s", len(event.slashings), slot)

            broadcast_slashing(
                self.queue,
                event,
                self.store.stats.last_slashing,
                telegram_channel=self.telegram_channel,
                telegram_subscribers=self.store.subscribers(),
                discord_webhook=self.discord_webhook,
                now=self.clock(),
            )

            self._spawn(
                asyncio.to_thread(
                    self.store.slashing_observed,
                    event.att_slashings,
                    event.prop_slashings,
                    block_time,
                )
            )

        return event

    def sleep_duration(self, slot: int) -> float:
        """Seconds to wait after processing `slot` before fetching the next one."""
        next_block_due = expected_block_time(slot + 1) + self.propagation_delay
        return max(next_block_due - self.clock(), self.min_sleep)

    async def step(self) -> bool:
        """Process the current slot and wait for the next one.

        Returns:
            True if the slot was processed and the streamer advanced
        """
        if self.current_slot is None:
            msg = "Streamer has not been synced"
            raise RuntimeError(msg)

        slot = self.current_slot

        try:
            await self.process_slot(slot)
        except (NetworkError, ParseError) as e:
            self.state = StreamerState.BACKOFF
            self.fetch_failures += 1
            logger.warning(
                "Error getting block at slot %s, retrying in %ss: %s",
                slot,
                self.error_delay,
                e,
            )
            await self.sleep(self.error_delay)
            return False

        self.state = StreamerState.STREAMING
        await self.sleep(self.sleep_duration(slot))
        self.current_slot = slot + 1
        return True

    async def run(self) -> None:
        """Sync, then stream until `stop()` is called.

        Raises:
            ConfigError: If the initial head cannot be fetched
        """
        await self.sync()
        logger.info("Slot streamer started at slot %s", self.current_slot)

        while not self.should_shutdown:
            await self.step()

        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)

        logger.info("Slot streamer stopped at slot %s", self.current_slot)

    def stop(self) -> None:
        self.should_shutdown = True


__all__ = ["SlotStreamer", "StreamerState"]
