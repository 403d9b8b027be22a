"""Shared retry utilities using tenacity."""

from collections.abc import Callable
from dataclasses import dataclass

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_incrementing,
)

from ordering.config import settings


@dataclass
class RequestRetryConfig:
    """Configuration for HTTP request retries with exponential backoff."""

    max_attempts: int = 3
    min_wait: float = 1.0
    max_wait: float = 10.0
    multiplier: float = 1.0

    @classmethod
    def from_settings(cls) -> "RequestRetryConfig":
        return cls(
            max_attempts=settings.request_max_attempts,
            min_wait=settings.request_min_wait,
            max_wait=settings.request_max_wait,
        )


def get_request_retrying(config: RequestRetryConfig | None = None) -> AsyncRetrying:
    """Get configured AsyncRetrying for httpx.RequestError (network errors).

    Usage:
        async for attempt in get_request_retrying():
            with attempt:
                response = await client.get(url)

    Args:
        config: Optional retry configuration. Uses defaults if not provided.

    Returns:
        AsyncRetrying instance configured for httpx.RequestError retries.
    """
    cfg = config or RequestRetryConfig()
    return AsyncRetrying(
        retry=retry_if_exception_type(httpx.RequestError),
        stop=stop_after_attempt(cfg.max_attempts),
        wait=wait_exponential(
            multiplier=cfg.multiplier,
            min=cfg.min_wait,
            max=cfg.max_wait,
        ),
        reraise=True,
    )


def get_linear_retrying(
    should_retry: Callable[[BaseException], bool],
    *,
    max_attempts: int,
    base_delay: float,
) -> AsyncRetrying:
    """Get AsyncRetrying with linear backoff for errors matched by a predicate.

    The wait before attempt N+1 is ``N * base_delay``. Errors rejected by
    ``should_retry`` are re-raised immediately, and the last matching error
    is re-raised unchanged once ``max_attempts`` is exhausted.

    Usage:
        async for attempt in get_linear_retrying(is_conflict, max_attempts=3, base_delay=0.1):
            with attempt:
                return await submit()
    """
    return AsyncRetrying(
        retry=retry_if_exception(should_retry),
        stop=stop_after_attempt(max_attempts),
        wait=wait_incrementing(start=base_delay, increment=base_delay),
        reraise=True,
    )
