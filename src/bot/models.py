"""Pydantic models for Telegram `getUpdates` results."""

from pydantic import BaseModel, ConfigDict, Field


class TelegramChat(BaseModel):
    id: int
    type: str | None = None


class TelegramMessage(BaseModel):
    """Incoming message, reduced to what command routing needs."""

    message_id: int
    date: int = Field(..., description="Unix time the message was sent")
    chat: TelegramChat
    text: str | None = None

    model_config = ConfigDict(extra="ignore")


class TelegramUpdate(BaseModel):
    update_id: int
    message: TelegramMessage | None = None

    model_config = ConfigDict(extra="ignore")


__all__ = ["TelegramChat", "TelegramMessage", "TelegramUpdate"]
