"""HTTP client utilities and helpers."""

from asyncio import sleep
from collections.abc import Awaitable, Callable
from functools import wraps

from typing import Any, ParamSpec, TypeVar

import httpx

from src.helpers.constants import (
    DEFAULT_TIMEOUT,
    MAX_RETRIES,
    RETRY_BASE_DELAY,
    RETRY_MAX_DELAY,
)
from src.helpers.errors import NetworkError, ParseError
from src.helpers.logging import get_logger


logger = get_logger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def backoff_delay(
    attempt: int,
    base_delay: float = RETRY_BASE_DELAY,
    max_delay: float = RETRY_MAX_DELAY,
) -> float:
    """Delay before retry number ``attempt + 1`` (0-indexed), capped at max_delay."""
    return min(base_delay * (2**attempt), max_delay)


def retry_with_backoff(
    max_retries: int = MAX_RETRIES,
    base_delay: float = RETRY_BASE_DELAY,
    max_delay: float = RETRY_MAX_DELAY,
    *,
    retry_on: tuple[type[Exception], ...] = (NetworkError, httpx.HTTPError),
    log_errors: bool = True,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorator to retry async functions with exponential backoff.

    Only exceptions listed in ``retry_on`` are retried. Anything else
    propagates on the first occurrence.

    Args:
        max_retries: Maximum number of attempts (default: 5)
        base_delay: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay between retries (default: 16.0)
        retry_on: Exception types that trigger a retry
        log_errors: Whether to log retry attempts (default: True)

    Returns:
        Decorated function that retries on the given exception types

    Example:
        ```python
        from src.helpers.http import retry_with_backoff

        @retry_with_backoff(max_retries=3, base_delay=2.0)
        async def fetch_head(client: httpx.AsyncClient, url: str) -> dict:
            return await fetch_json(client, url)

        # Will try 3 times with delays of 2s, 4s between attempts
        ```
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            last_exception: Exception | None = None

            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except retry_on as e:
                    last_exception = e
                    if log_errors and attempt < max_retries - 1:
                        logger.warning(
                            "%s failed (attempt %d/%d): %s",
                            func.__name__,
                            attempt + 1,
                            max_retries,
                            e,
                        )

                # Don't sleep after the last attempt
                if attempt < max_retries - 1:
                    await sleep(backoff_delay(attempt, base_delay, max_delay))

            if last_exception:
                if log_errors:
                    logger.error(
                        "%s failed after %d attempts", func.__name__, max_retries
                    )
                raise last_exception

            msg = f"{func.__name__} failed without exception"
            raise RuntimeError(msg)

        return wrapper

    return decorator


def create_http_client(
    timeout: float = DEFAULT_TIMEOUT, **kwargs: Any
) -> httpx.AsyncClient:
    """Create a configured httpx AsyncClient.

    Args:
        timeout: Default timeout in seconds (default: DEFAULT_TIMEOUT)
        **kwargs: Additional httpx.AsyncClient kwargs

    Returns:
        Configured AsyncClient instance
    """
    return httpx.AsyncClient(timeout=timeout, **kwargs)


def _decode(response: httpx.Response, url: str) -> Any:
    try:
        return response.json()
    except ValueError as e:
        msg = f"Invalid JSON from {url}: {e}"
        raise ParseError(msg) from e


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    timeout: float | None = None,
) -> Any:
    """Fetch JSON data from a URL.

    Args:
        client: HTTP client instance
        url: URL to fetch
        params: Optional query parameters
        timeout: Optional timeout override

    Returns:
        Parsed JSON data

    Raises:
        NetworkError: On transport failure or a non-2xx status
        ParseError: If the body is not valid JSON
    """
    try:
        response = await client.get(
            url,
            params=params,
            timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        msg = f"HTTP {e.response.status_code} fetching {url}"
        raise NetworkError(msg, status_code=e.response.status_code) from e
    except httpx.HTTPError as e:
        msg = f"HTTP error fetching {url}: {e}"
        raise NetworkError(msg) from e

    return _decode(response, url)


async def post_json(
    client: httpx.AsyncClient,
    url: str,
    data: dict[str, Any],
    *,
    timeout: float | None = None,
) -> Any:
    """Post JSON data to a URL and return the JSON response.

    Empty response bodies (e.g. 204 No Content) decode to None.

    Raises:
        NetworkError: On transport failure or a non-2xx status
        ParseError: If a non-empty body is not valid JSON
    """
    try:
        response = await client.post(
            url,
            json=data,
            timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        msg = (
            f"HTTP {e.response.status_code} posting to {url}: "
            f"{e.response.text[:100] if e.response.text else ''}"
        )
        raise NetworkError(msg, status_code=e.response.status_code) from e
    except httpx.HTTPError as e:
        msg = f"HTTP error posting to {url}: {e}"
        raise NetworkError(msg) from e

    if not response.content:
        return None
    return _decode(response, url)


__all__ = [
    "backoff_delay",
    "create_http_client",
    "fetch_json",
    "post_json",
    "retry_with_backoff",
]
