"""Pydantic models for beacon node REST API responses."""

from pydantic import BaseModel, ConfigDict, Field


class ChainHead(BaseModel):
    """Sync status of the beacon node (`/eth/v1/node/syncing`)."""

    head_slot: int = Field(..., description="Head slot, string-encoded on the wire")
    sync_distance: int | None = None
    is_syncing: bool | None = None


class SyncingResponse(BaseModel):
    """Envelope of the syncing endpoint."""

    data: ChainHead


class Attestation(BaseModel):
    """Indexed attestation, reduced to the attesting validator indices."""

    attesting_indices: list[str] = Field(default_factory=list)


class AttesterSlashing(BaseModel):
    """Two conflicting attestations; every shared index is a slashed validator."""

    attestation_1: Attestation
    attestation_2: Attestation


class BeaconBlockHeader(BaseModel):
    """Header message signed by a proposer."""

    slot: int
    proposer_index: str


class SignedBeaconBlockHeader(BaseModel):
    message: BeaconBlockHeader


class ProposerSlashing(BaseModel):
    """One proposer signing two conflicting headers for the same slot."""

    signed_header_1: SignedBeaconBlockHeader
    signed_header_2: SignedBeaconBlockHeader


class BeaconBlockBody(BaseModel):
    """Block body, reduced to the slashing operations."""

    proposer_slashings: list[ProposerSlashing] = Field(default_factory=list)
    attester_slashings: list[AttesterSlashing] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class BeaconBlock(BaseModel):
    slot: int
    proposer_index: str
    body: BeaconBlockBody = Field(default_factory=BeaconBlockBody)


class SignedBeaconBlock(BaseModel):
    message: BeaconBlock
    signature: str | None = None


class BlockResponse(BaseModel):
    """Envelope of `/eth/v1/beacon/blocks/{slot}` and `/eth/v2/beacon/blocks/{slot}`.

    The v2 endpoint adds `version` and related fields; v1 has only `data`.
    """

    data: SignedBeaconBlock
    version: str | None = None

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def empty(cls, slot: int) -> "BlockResponse":
        """Placeholder for a slot without a block (missed proposal)."""
        return cls(
            data=SignedBeaconBlock(message=BeaconBlock(slot=slot, proposer_index=""))
        )

    @property
    def block(self) -> BeaconBlock:
        return self.data.message


__all__ = [
    "Attestation",
    "AttesterSlashing",
    "BeaconBlock",
    "BeaconBlockBody",
    "BeaconBlockHeader",
    "BlockResponse",
    "ChainHead",
    "ProposerSlashing",
    "SignedBeaconBlock",
    "SignedBeaconBlockHeader",
    "SyncingResponse",
]
