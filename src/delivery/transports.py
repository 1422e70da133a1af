"""Outbound transports: the only code that talks to messaging providers."""

from typing import Any, Protocol

import httpx

from src.delivery.models import SendOptions, TransportKind
from src.helpers.constants import DEFAULT_TIMEOUT
from src.helpers.errors import NetworkError, ParseError, SendError
from src.helpers.http import create_http_client, post_json
from src.helpers.logging import get_logger


logger = get_logger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"
DISCORD_MAX_LENGTH = 2000


class Transport(Protocol):
    """Capability to deliver one message to one recipient."""

    kind: TransportKind

    async def send(self, recipient: str, text: str, options: SendOptions) -> None:
        """Deliver a message.

        Raises:
            SendError: If the provider rejected or never received the message
        """
        ...


class TelegramTransport:
    """Telegram Bot API `sendMessage`."""

    kind = TransportKind.TELEGRAM

    def __init__(
        self,
        token: str,
        client: httpx.AsyncClient | None = None,
        *,
        api_url: str = TELEGRAM_API_URL,
    ) -> None:
        if not token:
            msg = "Telegram bot token cannot be empty"
            raise ValueError(msg)

        self.client = client or create_http_client(timeout=DEFAULT_TIMEOUT)
        self._owns_client = client is None
        self.api_url = api_url.rstrip("/")
        self._token = token

    @property
    def bot_url(self) -> str:
        return f"{self.api_url}/bot{self._token}"

    def _redact(self, text: str) -> str:
        return text.replace(self._token, "<token>")

    async def call(self, method: str, payload: dict[str, Any]) -> Any:
        """Call a Bot API method and return its `result`.

        Raises:
            SendError: On transport failure or an `ok: false` answer
        """
        try:
            data = await post_json(self.client, f"{self.bot_url}/{method}", payload)
        except (NetworkError, ParseError) as e:
            raise SendError(self._redact(f"Telegram {method} failed: {e}")) from None

        if not isinstance(data, dict) or not data.get("ok"):
            description = data.get("description") if isinstance(data, dict) else data
            msg = f"Telegram {method} rejected: {description}"
            raise SendError(msg)

        return data.get("result")

    async def send(self, recipient: str, text: str, options: SendOptions) -> None:
        payload: dict[str, Any] = {
            "chat_id": recipient,
            "text": text,
            "disable_web_page_preview": options.disable_web_page_preview,
        }
        if options.parse_mode:
            payload["parse_mode"] = options.parse_mode

        await self.call("sendMessage", payload)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()


class DiscordTransport:
    """Discord incoming webhook. The recipient is ignored: a webhook is bound to one channel."""

    kind = TransportKind.DISCORD

    def __init__(self, webhook_url: str, client: httpx.AsyncClient | None = None) -> None:
        if not webhook_url:
            msg = "Discord webhook URL cannot be empty"
            raise ValueError(msg)

        self.webhook_url = webhook_url
        self.client = client or create_http_client(timeout=DEFAULT_TIMEOUT)
        self._owns_client = client is None

    async def send(self, recipient: str, text: str, options: SendOptions) -> None:
        payload: dict[str, Any] = {"content": text[:DISCORD_MAX_LENGTH]}
        if options.disable_web_page_preview:
            # SUPPRESS_EMBEDS
            payload["flags"] = 1 << 2

        try:
            await post_json(self.client, self.webhook_url, payload)
        except (NetworkError, ParseError) as e:
            # Webhook URLs embed their secret
            msg = f"Discord webhook failed: {type(e).__name__}"
            if isinstance(e, NetworkError) and e.status_code:
                msg += f" (HTTP {e.status_code})"
            raise SendError(msg) from None

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()


__all__ = [
    "DiscordTransport",
    "TelegramTransport",
    "Transport",
]
