"""Pydantic models for outbound messages."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class TransportKind(StrEnum):
    """Outbound channel a message is delivered through."""

    TELEGRAM = "telegram"
    DISCORD = "discord"


class SendOptions(BaseModel):
    """Per-message rendering options, passed through to the transport."""

    parse_mode: str | None = Field(default=None, description="Markdown, MarkdownV2, HTML")
    disable_web_page_preview: bool = False

    model_config = ConfigDict(frozen=True)


class Message(BaseModel):
    """A queued outbound message. Immutable once created."""

    kind: TransportKind
    recipient: str = Field(..., description="Chat id, channel id or webhook name")
    text: str
    options: SendOptions = Field(default_factory=SendOptions)

    model_config = ConfigDict(frozen=True)


__all__ = ["Message", "SendOptions", "TransportKind"]
