"""Pytest configuration and shared fixtures."""

import logging
import os
import time
from pathlib import Path

import pytest

from typing import TYPE_CHECKING, Any

from src.delivery.models import SendOptions, TransportKind
from src.helpers import logging as app_logging
from src.helpers.errors import SendError
from src.state.store import StateStore


if TYPE_CHECKING:
    from collections.abc import Iterator


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Skip live-chain tests unless a beacon node is configured."""
    if os.getenv("BEACON_API_URL"):
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(pytest.mark.timeout(300))
        return

    skip_integration = pytest.mark.skip(reason="BEACON_API_URL not set")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


def make_block(
    slot: int,
    *,
    attester_slashings: list[tuple[list[str], list[str]]] | None = None,
    proposer_slashings: list[tuple[str, str]] | None = None,
    proposer_index: str = "1234",
) -> dict[str, Any]:
    """Beacon API block JSON with the given slashing operations.

    Args:
        slot: Block slot
        attester_slashings: (attestation_1 indices, attestation_2 indices) pairs
        proposer_slashings: (header_1 proposer, header_2 proposer) pairs
        proposer_index: Proposer of the block itself
    """
    return {
        "version": "phase0",
        "execution_optimistic": False,
        "data": {
            "message": {
                "slot": str(slot),
                "proposer_index": proposer_index,
                "parent_root": "0x" + "00" * 32,
                "state_root": "0x" + "11" * 32,
                "body": {
                    "randao_reveal": "0x" + "22" * 96,
                    "graffiti": "0x" + "00" * 32,
                    "attestations": [],
                    "deposits": [],
                    "voluntary_exits": [],
                    "attester_slashings": [
                        {
                            "attestation_1": {
                                "attesting_indices": first,
                                "data": {"slot": str(slot - 1)},
                                "signature": "0x" + "33" * 96,
                            },
                            "attestation_2": {
                                "attesting_indices": second,
                                "data": {"slot": str(slot - 1)},
                                "signature": "0x" + "44" * 96,
                            },
                        }
                        for first, second in attester_slashings or []
                    ],
                    "proposer_slashings": [
                        {
                            "signed_header_1": {
                                "message": {
                                    "slot": str(slot - 2),
                                    "proposer_index": first,
                                    "parent_root": "0x" + "55" * 32,
                                },
                                "signature": "0x" + "66" * 96,
                            },
                            "signed_header_2": {
                                "message": {
                                    "slot": str(slot - 2),
                                    "proposer_index": second,
                                    "parent_root": "0x" + "77" * 32,
                                },
                                "signature": "0x" + "88" * 96,
                            },
                        }
                        for first, second in proposer_slashings or []
                    ],
                },
            },
            "signature": "0x" + "99" * 96,
        },
    }


class RecordingTransport:
    """Transport double that records every send with its monotonic time."""

    def __init__(
        self,
        kind: TransportKind = TransportKind.TELEGRAM,
        fail_recipients: set[str] | None = None,
    ) -> None:
        self.kind = kind
        self.fail_recipients = fail_recipients or set()
        self.sent: list[tuple[str, str, SendOptions]] = []
        self.send_times: list[float] = []

    async def send(self, recipient: str, text: str, options: SendOptions) -> None:
        self.send_times.append(time.monotonic())
        if recipient in self.fail_recipients:
            msg = f"cannot deliver to {recipient}"
            raise SendError(msg)
        self.sent.append((recipient, text, options))


@pytest.fixture
def block_factory() -> Any:
    """Provide the make_block helper to tests."""
    return make_block


@pytest.fixture
def state_path(tmp_path: Path) -> Path:
    """Path of a not yet existing state file."""
    return tmp_path / "config" / "bot-config.json"


@pytest.fixture
def store(state_path: Path) -> StateStore:
    """Fresh state store backed by a temporary file."""
    return StateStore.load(state_path)


@pytest.fixture
def telegram_transport() -> RecordingTransport:
    return RecordingTransport(TransportKind.TELEGRAM)


@pytest.fixture
def discord_transport() -> RecordingTransport:
    return RecordingTransport(TransportKind.DISCORD)


@pytest.fixture
def transport_factory() -> type[RecordingTransport]:
    """Provide the RecordingTransport class for tests needing custom doubles."""
    return RecordingTransport


@pytest.fixture
def reset_file_logging() -> "Iterator[None]":
    """Detach and close the shared log file handler after the test."""
    yield

    handler = app_logging._file_handler
    if handler is None:
        return
    for logger in app_logging.loggers.values():
        logger.removeHandler(handler)
        logger.setLevel(logging.INFO)
        for other in logger.handlers:
            other.setLevel(logging.INFO)
    handler.close()
    app_logging._file_handler = None
