"""Pydantic models for slashings found in a block."""

from pydantic import BaseModel, Field


class Slashing(BaseModel):
    """One slashed validator within a block."""

    validator_index: str = Field(..., description="Index of the slashed validator")
    attestation_violation: bool = Field(default=False)
    proposer_violation: bool = Field(default=False)
    slot: int = Field(..., description="Slot of the block carrying the evidence")


class SlashingEvent(BaseModel):
    """All slashings included in one block."""

    slot: int
    slashings: list[Slashing] = Field(default_factory=list)
    att_slashings: int = Field(default=0, description="Attester slashing records seen")
    prop_slashings: int = Field(default=0, description="Proposer slashing records seen")

    @property
    def found(self) -> bool:
        return bool(self.slashings)


__all__ = ["Slashing", "SlashingEvent"]
