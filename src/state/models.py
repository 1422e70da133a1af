"""Pydantic models for the persisted bot state."""

from pydantic import BaseModel, Field


class Stats(BaseModel):
    """Counters and positions kept across restarts."""

    messages_sent: int = 0
    start_time: int = Field(default=0, description="Unix time the process started")
    att_slashings: int = Field(default=0, description="Attester slashing records seen")
    prop_slashings: int = Field(default=0, description="Proposer slashing records seen")
    last_slashing: int = Field(default=0, description="Block time of the last slashing")
    current_slot: int | None = Field(default=None, description="Last processed slot")
    block_time: int = Field(default=0, description="Block time of the last processed slot")
    blocks_parsed: int = 0


class Broadcast(BaseModel):
    """Recipients of slashing notifications besides the configured channel."""

    telegram_subscribers: list[int] = Field(default_factory=list)


class PersistedState(BaseModel):
    version: str = ""
    stats: Stats = Field(default_factory=Stats)
    broadcast: Broadcast = Field(default_factory=Broadcast)


__all__ = ["Broadcast", "PersistedState", "Stats"]
