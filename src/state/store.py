"""Owner of the persisted state: statistics and subscribers.

All mutations go through one lock. Slashings and subscriber changes are
written back to disk immediately; per-slot progress is written by the
streamer every few slots. The send queue has its own lock; the two never
nest.
"""

import threading
import time
from pathlib import Path

from pydantic import ValidationError

from src.helpers.errors import ConfigError
from src.helpers.logging import get_logger
from src.state.models import PersistedState, Stats


logger = get_logger(__name__)


class StateStore:
    """Thread-safe owner of a `PersistedState` backed by a JSON file."""

    def __init__(self, path: Path, state: PersistedState | None = None) -> None:
        self.path = path
        self._state = state or PersistedState()
        self._lock = threading.Lock()

    @classmethod
    def load(cls, path: str | Path, version: str = "") -> "StateStore":
        """Load state from disk, or start fresh if the file does not exist.

        The start time is always reset to now.

        Raises:
            ConfigError: If the file exists but cannot be read or parsed
        """
        path = Path(path)

        if path.exists():
            try:
                state = PersistedState.model_validate_json(path.read_bytes())
            except (OSError, ValidationError) as e:
                msg = f"Cannot load state from {path}: {e}"
                raise ConfigError(msg) from e
            logger.info(
                "Loaded state from %s (%d subscribers, last slot %s)",
                path,
                len(state.broadcast.telegram_subscribers),
                state.stats.current_slot,
            )
        else:
            state = PersistedState()
            logger.info("No state at %s, starting fresh", path)

        state.stats.start_time = int(time.time())
        if version:
            state.version = version

        return cls(path, state)

    def _write(self) -> None:
        # Caller holds the lock
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(self._state.model_dump_json(indent=2), encoding="utf-8")
        tmp_path.replace(self.path)

    def save(self) -> None:
        """Write the current state to disk."""
        with self._lock:
            self._write()

    def snapshot(self) -> PersistedState:
        """Deep copy of the current state, safe to read without the lock."""
        with self._lock:
            return self._state.model_copy(deep=True)

    @property
    def stats(self) -> Stats:
        return self.snapshot().stats

    @property
    def last_processed_slot(self) -> int | None:
        with self._lock:
            return self._state.stats.current_slot

    def subscribers(self) -> list[int]:
        with self._lock:
            return list(self._state.broadcast.telegram_subscribers)

    def slot_processed(self, slot: int, block_time: int) -> None:
        """Record a successfully processed slot. In memory only."""
        with self._lock:
            stats = self._state.stats
            stats.current_slot = slot
            stats.block_time = block_time
            stats.blocks_parsed += 1

    def slashing_observed(self, att_count: int, prop_count: int, block_time: int) -> None:
        """Add a block's slashing counts and persist immediately."""
        with self._lock:
            stats = self._state.stats
            stats.att_slashings += att_count
            stats.prop_slashings += prop_count
            stats.last_slashing = block_time
            self._write()

    def message_sent(self) -> None:
        with self._lock:
            self._state.stats.messages_sent += 1

    def add_subscriber(self, chat_id: int) -> bool:
        """Subscribe a chat. Returns False if it was already subscribed.

        Raises:
            OSError: If the state file cannot be written; the change is undone
        """
        with self._lock:
            subscribers = self._state.broadcast.telegram_subscribers
            if chat_id in subscribers:
                return False
            subscribers.append(chat_id)
            try:
                self._write()
            except OSError:
                subscribers.remove(chat_id)
                raise

        logger.info("Chat %s subscribed", chat_id)
        return True

    def remove_subscriber(self, chat_id: int) -> bool:
        """Unsubscribe a chat. Returns False if it was not subscribed.

        Raises:
            OSError: If the state file cannot be written; the change is undone
        """
        with self._lock:
            subscribers = self._state.broadcast.telegram_subscribers
            if chat_id not in subscribers:
                return False
            position = subscribers.index(chat_id)
            subscribers.pop(position)
            try:
                self._write()
            except OSError:
                subscribers.insert(position, chat_id)
                raise

        logger.info("Chat %s unsubscribed", chat_id)
        return True


__all__ = ["StateStore"]
