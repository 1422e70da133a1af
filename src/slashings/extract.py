"""Extraction of slashed validators from a beacon block body.

Entries are keyed by validator index, so a validator appears at most once
per block. A validator slashed through both mechanisms in the same block
carries both violation flags on its single entry.
"""

from src.beacon.models import AttesterSlashing, BlockResponse, ProposerSlashing
from src.helpers.logging import get_logger
from src.slashings.models import Slashing, SlashingEvent


logger = get_logger(__name__)


def attester_violations(attester_slashing: AttesterSlashing) -> list[str]:
    """Validator indices present in both conflicting attestations.

    Set intersection of the two attesting index lists, ordered by first
    appearance in the first attestation. Repeated indices within one list
    are counted once.

    Example:
        >>> slashing = AttesterSlashing.model_validate({
        ...     "attestation_1": {"attesting_indices": ["7", "3", "3"]},
        ...     "attestation_2": {"attesting_indices": ["3", "9"]},
        ... })
        >>> attester_violations(slashing)
        ['3']
    """
    second = set(attester_slashing.attestation_2.attesting_indices)
    shared = dict.fromkeys(
        index
        for index in attester_slashing.attestation_1.attesting_indices
        if index in second
    )
    return list(shared)


def proposer_violations(proposer_slashing: ProposerSlashing) -> list[str]:
    """Distinct proposer indices named by the two conflicting headers.

    Both headers normally name the same proposer, which yields one index.
    """
    return list(
        dict.fromkeys(
            (
                proposer_slashing.signed_header_1.message.proposer_index,
                proposer_slashing.signed_header_2.message.proposer_index,
            )
        )
    )


def find_slashings(block: BlockResponse, slot: int) -> SlashingEvent:
    """Collect every slashed validator in a block.

    Args:
        block: Block as returned by the beacon node (or an empty placeholder)
        slot: Slot the block was requested for

    Returns:
        SlashingEvent whose entries all carry the block's slot
    """
    body = block.block.body
    att_slashings = body.attester_slashings
    prop_slashings = body.proposer_slashings

    if not att_slashings and not prop_slashings:
        return SlashingEvent(slot=slot)

    canonical_slot = block.block.slot
    if canonical_slot != slot:
        logger.warning(
            "Block requested for slot %s reports slot %s, using the latter",
            slot,
            canonical_slot,
        )

    found: dict[str, Slashing] = {}

    for attester_slashing in att_slashings:
        for index in attester_violations(attester_slashing):
            if index not in found:
                found[index] = Slashing(validator_index=index, slot=canonical_slot)
            found[index].attestation_violation = True

    for proposer_slashing in prop_slashings:
        for index in proposer_violations(proposer_slashing):
            if index not in found:
                found[index] = Slashing(validator_index=index, slot=canonical_slot)
            found[index].proposer_violation = True

    slashings = list(found.values())
    for slashing in slashings:
        slashing.slot = canonical_slot

    return SlashingEvent(
        slot=canonical_slot,
        slashings=slashings,
        att_slashings=len(att_slashings),
        prop_slashings=len(prop_slashings),
    )


__all__ = ["attester_violations", "find_slashings", "proposer_violations"]
