"""Beacon node REST client: chain head and blocks by slot."""

from typing import Any

import httpx
from pydantic import ValidationError

from src.beacon.models import BlockResponse, SyncingResponse
from src.beacon.slots import SYNCING_ENDPOINT, block_endpoint
from src.helpers.constants import (
    BEACON_TIMEOUT,
    FETCH_MAX_RETRIES,
    RETRY_BASE_DELAY,
    RETRY_MAX_DELAY,
)
from src.helpers.errors import NetworkError, ParseError
from src.helpers.http import create_http_client, fetch_json, retry_with_backoff
from src.helpers.logging import get_logger


logger = get_logger(__name__)


class BeaconClient:
    """Read-only client for the beacon node API.

    Block fetches are retried with bounded exponential backoff on
    `NetworkError`. A `ParseError` is raised immediately: a malformed
    block must never be mistaken for a block without slashings.
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float = BEACON_TIMEOUT,
        max_retries: int = FETCH_MAX_RETRIES,
        base_delay: float = RETRY_BASE_DELAY,
        max_delay: float = RETRY_MAX_DELAY,
    ) -> None:
        """Initialize the beacon client.

        Args:
            base_url: Beacon node base URL (e.g. an Infura eth2 endpoint)
            client: Optional shared HTTP client; one is created if omitted
            timeout: Per-request timeout in seconds
            max_retries: Attempts per block fetch before surfacing the error
            base_delay: First backoff delay in seconds
            max_delay: Backoff cap in seconds

        Raises:
            ValueError: If base_url is empty or None
        """
        if not base_url:
            msg = "Beacon API URL cannot be empty"
            raise ValueError(msg)

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay

        self._owns_client = client is None
        self.client = client or create_http_client(timeout=timeout)

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()

    async def _get(self, path: str) -> Any:
        return await fetch_json(self.client, self.base_url + path, timeout=self.timeout)

    async def get_head(self) -> int:
        """Current head slot of the chain.

        Returns:
            Head slot

        Raises:
            NetworkError: If the node is unreachable or answers non-2xx
            ParseError: If the response does not match the syncing schema
        """
        data = await self._get(SYNCING_ENDPOINT)

        try:
            syncing = SyncingResponse.model_validate(data)
        except ValidationError as e:
            msg = f"Unexpected syncing response: {e}"
            raise ParseError(msg) from e

        return syncing.data.head_slot

    async def _fetch_block(self, slot: int) -> BlockResponse:
        try:
            data = await self._get(block_endpoint(slot))
        except NetworkError as e:
            if e.status_code != 404:
                raise

            # Until the head passes the slot, a 404 means the block is in flight
            head = await self.get_head()
            if head <= slot:
                msg = f"Block at slot {slot} not available yet (head {head})"
                raise NetworkError(msg, status_code=404) from e

            logger.debug("No block at slot %s", slot)
            return BlockResponse.empty(slot)

        try:
            return BlockResponse.model_validate(data)
        except ValidationError as e:
            msg = f"Unexpected block response at slot {slot}: {e}"
            raise ParseError(msg) from e

    async def get_slot(self, slot: int) -> BlockResponse:
        """Block at a slot, using the endpoint shape for its side of the fork.

        A 404 is only read as a skipped slot once the node's head is past
        `slot`; before that the block may still be propagating and the fetch
        counts as failed.

        Args:
            slot: Slot to fetch

        Returns:
            The block, or an empty block if the slot was skipped

        Raises:
            NetworkError: If every attempt failed
            ParseError: If the block could not be decoded
        """
        fetch = retry_with_backoff(
            self.max_retries,
            self.base_delay,
            self.max_delay,
            retry_on=(NetworkError,),
        )(self._fetch_block)
        return await fetch(slot)


__all__ = ["BeaconClient"]
