"""Slot arithmetic: fork boundary and expected block times."""

from src.helpers.constants import ALTAIR_FORK_SLOT, ALTAIR_FORK_TIME, SECONDS_PER_SLOT

BLOCK_ENDPOINT_V1 = "/eth/v1/beacon/blocks/"
BLOCK_ENDPOINT_V2 = "/eth/v2/beacon/blocks/"
SYNCING_ENDPOINT = "/eth/v1/node/syncing"


def is_post_altair(slot: int) -> bool:
    """Whether the slot is served by the post-fork (v2) block schema."""
    return slot >= ALTAIR_FORK_SLOT


def block_endpoint(slot: int) -> str:
    """Path of the block endpoint for a slot.

    Example:
        >>> block_endpoint(2371679)
        '/eth/v1/beacon/blocks/2371679'
        >>> block_endpoint(2371680)
        '/eth/v2/beacon/blocks/2371680'
    """
    if slot < 0:
        msg = f"Slot must be non-negative, got {slot}"
        raise ValueError(msg)

    prefix = BLOCK_ENDPOINT_V2 if is_post_altair(slot) else BLOCK_ENDPOINT_V1
    return f"{prefix}{slot}"


def expected_block_time(slot: int) -> int:
    """Unix time at which the block for a slot is due.

    Linear in the slot on both sides of the fork boundary.

    Example:
        >>> expected_block_time(2371680)
        1635332183
    """
    return ALTAIR_FORK_TIME + (slot - ALTAIR_FORK_SLOT) * SECONDS_PER_SLOT


__all__ = [
    "BLOCK_ENDPOINT_V1",
    "BLOCK_ENDPOINT_V2",
    "SYNCING_ENDPOINT",
    "block_endpoint",
    "expected_block_time",
    "is_post_altair",
]
