"""Chat command handlers.

Commands are looked up in an explicit name-to-handler table. Handlers only
read or update the state store and reply through the send queue, so they
work unchanged for any transport kind.
"""

import time

from collections.abc import Callable
from typing import TypeAlias

from src.bot.antispam import AntiSpam
from src.delivery.models import Message, SendOptions, TransportKind
from src.delivery.queue import SendQueue
from src.helpers.formatting import plural, relative_time
from src.helpers.logging import get_logger
from src.state.store import StateStore


logger = get_logger(__name__)

REPLY_OPTIONS = SendOptions(parse_mode="Markdown")

CommandHandler: TypeAlias = Callable[[int], str]

START_TEXT = (
    "🔪 Welcome to SlashCaster! "
    "This bot broadcasts slashing events occurring on the Ethereum beacon chain.\n\n"
    "To receive slashing notifications here, use /subscribe."
)


class CommandRouter:
    """Dispatches `/command` messages to their handlers.

    Commands from `owner_id` bypass the anti-spam cooldown and are not logged.
    """

    def __init__(
        self,
        queue: SendQueue,
        store: StateStore,
        antispam: AntiSpam | None = None,
        *,
        owner_id: int | None = None,
        kind: TransportKind = TransportKind.TELEGRAM,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.queue = queue
        self.store = store
        self.antispam = antispam or AntiSpam()
        self.owner_id = owner_id
        self.kind = kind
        self.clock = clock

        self.handlers: dict[str, CommandHandler] = {
            "/start": self.start,
            "/stats": self.stats,
            "/subscribe": self.subscribe,
            "/unsubscribe": self.unsubscribe,
        }

    @staticmethod
    def parse_command(text: str) -> str | None:
        """Command name of a message, without any `@botname` suffix.

        Example:
            >>> CommandRouter.parse_command("/stats@SlashCasterBot now")
            '/stats'
        """
        if not text.startswith("/"):
            return None
        return text.split(maxsplit=1)[0].split("@", 1)[0].lower()

    def handle(self, chat_id: int, text: str, sent_at: float) -> bool:
        """Route one incoming message.

        Args:
            chat_id: Chat the message came from (and the reply goes to)
            text: Message text
            sent_at: Unix time the message was sent

        Returns:
            True if a handler ran and a reply was queued
        """
        command = self.parse_command(text)
        if command is None:
            return False

        handler = self.handlers.get(command)
        if handler is None:
            logger.debug("Ignoring unknown command %s from %s", command, chat_id)
            return False

        is_owner = chat_id == self.owner_id
        if not is_owner and not self.antispam.allow(chat_id, sent_at, now=self.clock()):
            return False

        reply = handler(chat_id)
        self.queue.enqueue(
            Message(
                kind=self.kind,
                recipient=str(chat_id),
                text=reply,
                options=REPLY_OPTIONS,
            )
        )
        if not is_owner:
            logger.debug("Handled %s from %s", command, chat_id)
        return True

    def start(self, chat_id: int) -> str:
        return START_TEXT

    def stats(self, chat_id: int) -> str:
        stats = self.store.stats
        now = self.clock()

        slot = f"{stats.current_slot:,}" if stats.current_slot is not None else "unknown"
        last_block = (
            f"Last block {relative_time(now - stats.block_time)} ago\n"
            if stats.block_time
            else "No block processed yet\n"
        )

        return (
            "🔪 *SlashCaster statistics*\n"
            f"Current slot: {slot}\n"
            f"Blocks parsed: {stats.blocks_parsed:,}\n"
            f"Slashings seen: {plural(stats.att_slashings, 'attester slashing')}, "
            f"{plural(stats.prop_slashings, 'proposer slashing')}\n"
            f"{last_block}\n"
            f"_Bot started {relative_time(now - stats.start_time, parts=2)} ago_"
        )

    def subscribe(self, chat_id: int) -> str:
        if self.store.add_subscriber(chat_id):
            return "✅ Successfully subscribed! You will now be notified of slashings."
        return (
            "ℹ️ You are already subscribed to notifications!\n\n"
            "_To unsubscribe, use /unsubscribe._"
        )

    def unsubscribe(self, chat_id: int) -> str:
        if self.store.remove_subscriber(chat_id):
            return "✅ Successfully unsubscribed! No notifications will be sent to you."
        return (
            "ℹ️ Nothing to do, you will not receive notifications!\n\n"
            "_To receive notifications, use /subscribe._"
        )


__all__ = ["CommandRouter", "REPLY_OPTIONS", "START_TEXT"]
