"""Per-chat command throttling."""

import threading
import time

from pydantic import BaseModel

from src.helpers.constants import DEFAULT_COMMAND_COOLDOWN
from src.helpers.logging import get_logger


logger = get_logger(__name__)


class ChatLog(BaseModel):
    """Command activity of one chat."""

    next_allowed_command: float = 0.0
    spam_offenses: int = 0


class AntiSpam:
    """Allows each chat one command per cooldown period."""

    def __init__(self, cooldown: float = DEFAULT_COMMAND_COOLDOWN) -> None:
        self.cooldown = cooldown
        self.chat_logs: dict[int, ChatLog] = {}
        self._lock = threading.Lock()

    def allow(self, chat_id: int, sent_at: float, now: float | None = None) -> bool:
        """Whether a command sent at `sent_at` by `chat_id` should be handled.

        A rejected command counts as a spam offense for the chat.
        """
        now = time.time() if now is None else now

        with self._lock:
            chat_log = self.chat_logs.setdefault(chat_id, ChatLog())

            if chat_log.next_allowed_command > sent_at:
                chat_log.spam_offenses += 1
                offenses = chat_log.spam_offenses
                allowed = False
            else:
                chat_log.next_allowed_command = now + self.cooldown
                allowed = True

        if not allowed:
            logger.info("Chat %s now has %d spam offenses", chat_id, offenses)
        return allowed


__all__ = ["AntiSpam", "ChatLog"]
