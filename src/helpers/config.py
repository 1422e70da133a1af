"""Configuration management and environment variable utilities."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from src.helpers.constants import DEFAULT_COMMAND_COOLDOWN, DEFAULT_RATE_LIMIT
from src.helpers.errors import ConfigError


# Load environment variables from .env file
load_dotenv()


class Settings(BaseModel):
    """Runtime settings collected from the environment."""

    beacon_api_url: str = Field(..., description="Beacon node REST API base URL")
    telegram_token: str | None = Field(default=None, description="Telegram bot token")
    telegram_channel: int | None = Field(
        default=None, description="Telegram channel id slashings are broadcast to"
    )
    telegram_owner: int | None = Field(default=None, description="Bot owner chat id")
    discord_webhook_url: str | None = Field(
        default=None, description="Discord webhook slashings are broadcast to"
    )
    rate_limit: int = Field(default=DEFAULT_RATE_LIMIT, gt=0)
    state_path: Path = Field(default=Path("config") / "bot-config.json")
    log_path: Path = Field(default=Path("logs"))
    log_level: str = Field(default="INFO")
    command_cooldown: int = Field(default=DEFAULT_COMMAND_COOLDOWN, ge=0)


def get_required_env(key: str) -> str:
    """Get a required environment variable.

    Args:
        key: Environment variable name

    Returns:
        Environment variable value

    Raises:
        ConfigError: If the environment variable is not set

    Example:
        ```python
        from src.helpers.config import get_required_env

        beacon_url = get_required_env("BEACON_API_URL")
        ```
    """
    value = os.getenv(key)
    if not value:
        msg = f"{key} environment variable is not set"
        raise ConfigError(msg)
    return value


def get_optional_env(key: str, default: str | None = None) -> str | None:
    """Get an optional environment variable with a default value.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value or default

    Example:
        ```python
        from src.helpers.config import get_optional_env

        rate_limit = int(get_optional_env("RATE_LIMIT", "5"))
        ```
    """
    value = os.getenv(key)
    return value if value else default


def get_optional_int_env(key: str, default: int | None = None) -> int | None:
    """Get an optional integer environment variable.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Parsed integer or default

    Raises:
        ConfigError: If the variable is set but not an integer
    """
    value = get_optional_env(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as e:
        msg = f"{key} must be an integer, got {value!r}"
        raise ConfigError(msg) from e


def get_beacon_api_url(beacon_url: str | None = None) -> str:
    """Get the beacon node URL from parameter or environment.

    Args:
        beacon_url: Optional URL to use directly

    Returns:
        Beacon node base URL without a trailing slash

    Raises:
        ConfigError: If not provided and BEACON_API_URL is not set
    """
    if beacon_url:
        return beacon_url.rstrip("/")

    env_url = os.getenv("BEACON_API_URL")
    if not env_url:
        msg = "BEACON_API_URL must be provided or set in environment variables"
        raise ConfigError(msg)

    return env_url.rstrip("/")


def load_settings() -> Settings:
    """Collect all settings from the environment.

    Returns:
        Validated Settings instance

    Raises:
        ConfigError: If a required variable is missing or a value is invalid
    """
    rate_limit = get_optional_int_env("RATE_LIMIT", DEFAULT_RATE_LIMIT)
    cooldown = get_optional_int_env("COMMAND_COOLDOWN", DEFAULT_COMMAND_COOLDOWN)
    if rate_limit is None or rate_limit <= 0:
        msg = f"RATE_LIMIT must be a positive integer, got {rate_limit}"
        raise ConfigError(msg)

    state_path = get_optional_env("STATE_PATH") or str(Path("config") / "bot-config.json")
    log_path = get_optional_env("LOG_PATH") or "logs"

    try:
        return Settings(
            beacon_api_url=get_beacon_api_url(),
            telegram_token=get_optional_env("TELEGRAM_BOT_TOKEN"),
            telegram_channel=get_optional_int_env("TELEGRAM_CHANNEL_ID"),
            telegram_owner=get_optional_int_env("TELEGRAM_OWNER_ID"),
            discord_webhook_url=get_optional_env("DISCORD_WEBHOOK_URL"),
            rate_limit=rate_limit,
            state_path=Path(state_path),
            log_path=Path(log_path),
            log_level=(get_optional_env("LOG_LEVEL") or "INFO").upper(),
            command_cooldown=cooldown,
        )
    except ValidationError as e:
        msg = f"Invalid settings: {e}"
        raise ConfigError(msg) from e


__all__ = [
    "Settings",
    "get_beacon_api_url",
    "get_optional_env",
    "get_optional_int_env",
    "get_required_env",
    "load_settings",
]
