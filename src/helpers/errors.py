"""Exception hierarchy shared by the fetch, scheduling and delivery layers."""


class SlashCasterError(Exception):
    """Base class for all application errors."""


class NetworkError(SlashCasterError):
    """The beacon node could not be reached or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ParseError(SlashCasterError):
    """A response body could not be decoded into the expected schema."""


class ConfigError(SlashCasterError):
    """Required startup data is missing or invalid. Fatal."""


class SendError(SlashCasterError):
    """An outbound transport failed to deliver a single message."""


__all__ = [
    "ConfigError",
    "NetworkError",
    "ParseError",
    "SendError",
    "SlashCasterError",
]
