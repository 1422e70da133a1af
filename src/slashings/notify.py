"""Notification text for slashing events and fan-out into the send queue."""

import time

from collections.abc import Callable, Iterable

from src.delivery.models import Message, SendOptions, TransportKind
from src.delivery.queue import SendQueue
from src.helpers.constants import BEACONCHAIN_SLOT_URL, BEACONCHAIN_VALIDATOR_URL
from src.helpers.formatting import (
    escape_markdown_v2,
    escape_markdown_v2_url,
    plural,
    relative_time,
)
from src.helpers.logging import get_logger
from src.slashings.models import Slashing, SlashingEvent


logger = get_logger(__name__)

CHANNEL_OPTIONS = SendOptions(parse_mode="MarkdownV2", disable_web_page_preview=True)


def violation_label(slashing: Slashing) -> str:
    if slashing.attestation_violation and slashing.proposer_violation:
        return "attestor & proposer violation"
    if slashing.proposer_violation:
        return "proposer violation"
    return "attestor violation"


def slashing_message(
    event: SlashingEvent,
    last_slashing: int,
    now: float | None = None,
    *,
    markdown_v2: bool = True,
) -> str:
    """Render a slashing event as a chat message.

    Args:
        event: Slashings found in one block
        last_slashing: Unix time of the previous slashing, 0 if none was seen
        now: Current unix time (defaults to time.time())
        markdown_v2: Escape for Telegram MarkdownV2; plain Markdown otherwise

    Returns:
        Message text with a header, one line per validator and a footer
    """
    escape: Callable[[str], str] = escape_markdown_v2 if markdown_v2 else str
    escape_url: Callable[[str], str] = escape_markdown_v2_url if markdown_v2 else str
    now = time.time() if now is None else now

    slot_link = escape_url(f"{BEACONCHAIN_SLOT_URL}{event.slot}")
    header = escape(f"🔪 {plural(len(event.slashings), 'validator')} slashed in slot ")
    lines = [f"{header}[{escape(f'{event.slot:,}')}]({slot_link})", ""]
    lines.append(escape("Validators slashed"))

    for slashing in event.slashings:
        validator_link = escape_url(
            f"{BEACONCHAIN_VALIDATOR_URL}{slashing.validator_index}"
        )
        lines.append(
            f"[{escape(slashing.validator_index)}]({validator_link})"
            f"{escape(': ' + violation_label(slashing))}"
        )

    if last_slashing > 0:
        footer = f"{relative_time(now - last_slashing)} since last slashing."
    else:
        footer = "First slashing observed by this bot."

    lines.append("")
    lines.append(f"_{escape(footer)}_")
    return "\n".join(lines)


def broadcast_slashing(
    queue: SendQueue,
    event: SlashingEvent,
    last_slashing: int,
    *,
    telegram_channel: int | None = None,
    telegram_subscribers: Iterable[int] = (),
    discord_webhook: bool = False,
    now: float | None = None,
) -> int:
    """Queue a slashing notification for every configured destination.

    The Telegram channel is queued first, then each subscriber, then Discord.

    Returns:
        Number of messages queued
    """
    queued = 0
    telegram_text = slashing_message(event, last_slashing, now)

    if telegram_channel:
        queue.enqueue(
            Message(
                kind=TransportKind.TELEGRAM,
                recipient=str(telegram_channel),
                text=telegram_text,
                options=CHANNEL_OPTIONS,
            )
        )
        queued += 1
        logger.debug("Broadcast slashing to configured channel")

    for chat_id in telegram_subscribers:
        queue.enqueue(
            Message(
                kind=TransportKind.TELEGRAM,
                recipient=str(chat_id),
                text=telegram_text,
                options=CHANNEL_OPTIONS,
            )
        )
        queued += 1

    if discord_webhook:
        queue.enqueue(
            Message(
                kind=TransportKind.DISCORD,
                recipient="webhook",
                text=slashing_message(event, last_slashing, now, markdown_v2=False),
            )
        )
        queued += 1

    logger.info("Broadcast slashing in slot %s to %d chats", event.slot, queued)
    return queued


__all__ = [
    "CHANNEL_OPTIONS",
    "broadcast_slashing",
    "slashing_message",
    "violation_label",
]
