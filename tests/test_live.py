"""Tests for application wiring and the process entry point."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from src.delivery.models import TransportKind
from src.helpers.config import Settings
from src.helpers.errors import ConfigError
from src.live import SlashCaster, main
from src.state.store import StateStore


def make_settings(tmp_path: Path, **overrides: object) -> Settings:
    values: dict[str, object] = {
        "beacon_api_url": "https://beacon.example",
        "state_path": tmp_path / "bot-config.json",
        "log_path": tmp_path / "logs",
    }
    values.update(overrides)
    return Settings(**values)


class TestSlashCaster:
    """Tests for SlashCaster wiring."""

    @pytest.mark.asyncio
    async def test_without_transports(self, tmp_path: Path, store: StateStore) -> None:
        """Test a beacon URL alone is enough to run."""
        app = SlashCaster(make_settings(tmp_path), store)
        try:
            assert app.queue.transports == {}
            assert app.poller is None
            assert app.telegram is None
        finally:
            await app.cleanup()

    @pytest.mark.asyncio
    async def test_with_all_transports(self, tmp_path: Path, store: StateStore) -> None:
        """Test Telegram and Discord are wired when configured."""
        settings = make_settings(
            tmp_path,
            telegram_token="123:abc",
            telegram_channel=-1001,
            discord_webhook_url="https://discord.example/hook",
            rate_limit=2,
        )
        app = SlashCaster(settings, store)
        try:
            assert set(app.queue.transports) == {
                TransportKind.TELEGRAM,
                TransportKind.DISCORD,
            }
            assert app.queue.messages_per_second == 2
            assert app.poller is not None
            assert app.streamer.telegram_channel == -1001
            assert app.streamer.discord_webhook
        finally:
            await app.cleanup()

    @pytest.mark.asyncio
    async def test_fatal_streamer_error_saves_state(
        self, tmp_path: Path, store: StateStore
    ) -> None:
        """Test a failing streamer stops the app and the state is still written."""
        app = SlashCaster(make_settings(tmp_path), store)
        app.streamer.sync = AsyncMock(side_effect=ConfigError("Cannot fetch chain head"))

        with pytest.raises(ConfigError):
            await app.run()

        assert app.should_shutdown
        assert store.path.exists()
        assert app.beacon_http.is_closed

    @pytest.mark.asyncio
    async def test_shutdown_is_idempotent(
        self, tmp_path: Path, store: StateStore
    ) -> None:
        """Test a second shutdown signal is ignored."""
        app = SlashCaster(make_settings(tmp_path), store)
        try:
            app.shutdown()
            app.shutdown()
            assert app.should_shutdown
            assert app.streamer.should_shutdown
        finally:
            await app.cleanup()


class TestMain:
    """Tests for the main entry point."""

    @pytest.mark.asyncio
    async def test_missing_beacon_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test startup fails cleanly without a beacon URL."""
        monkeypatch.delenv("BEACON_API_URL", raising=False)

        assert await main() == 1
