"""Concurrency-capped, rate-limited, retrying HTTP sender."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
)

from game_vault.core.config import RetryPolicy
from game_vault.core.exceptions import InvalidConfigurationError
from game_vault.core.ratelimit import RateLimiter

if TYPE_CHECKING:
    from game_vault.core.config import CatalogConfig

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS = 429


def _is_rate_limited(response: httpx.Response) -> bool:
    return response.status_code == TOO_MANY_REQUESTS


def backoff_delay(
    attempt: int,
    policy: RetryPolicy | None = None,
    rng: random.Random | None = None,
) -> float:
    """Compute the exponential backoff delay for an attempt.

    The delay is ``base * 2 ** min(attempt, max_exponent)`` plus a random
    jitter in ``[0, policy.jitter)``.

    Args:
        attempt: Zero-based attempt number that just failed
        policy: Retry policy (uses defaults if None)
        rng: Random source (uses the module generator if None)

    Returns:
        Delay in seconds
    """
    policy = policy or RetryPolicy()
    rng = rng or random
    base = policy.backoff_base * 2 ** min(attempt, policy.max_exponent)
    return base + rng.random() * policy.jitter


def retry_after_delay(headers: httpx.Headers, now: datetime | None = None) -> float | None:
    """Read a Retry-After header as a delay in seconds.

    Both the delta-seconds form (ASCII digits only) and the HTTP-date form
    are understood. Dates in the past are clamped to zero.

    Args:
        headers: Response headers
        now: Current time, for the HTTP-date form (defaults to utcnow)

    Returns:
        Delay in seconds, or None if the header is missing or unparseable
    """
    value = headers.get("retry-after")
    if not value:
        return None
    value = value.strip()

    if value.isascii() and value.isdigit():
        return float(value)

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)

    now = now or datetime.now(timezone.utc)
    return max((when - now).total_seconds(), 0.0)


class ResilientHttpClient:
    """HTTP sender that survives a quota-constrained upstream.

    Every attempt takes a concurrency permit and a rate-limiter slot before
    it is sent. 429 responses and transport failures are retried with
    backoff; everything else is handed back to the caller untouched.

    Args:
        rate_limit: Requests admitted per rate window
        rate_window: Length of the rate window in seconds
        max_concurrent_requests: Requests allowed in flight at once
        retry: Retry policy (uses defaults if None)
        timeout: Request timeout in seconds
        user_agent: User agent sent with every request
        client: Existing httpx client to use instead of creating one

    Example:
        async with ResilientHttpClient(rate_limit=4, rate_window=1.0) as http:
            response = await http.send_limited(
                lambda: http.build_request("POST", url, content=body)
            )
    """

    def __init__(
        self,
        rate_limit: int = 4,
        rate_window: float = 1.0,
        max_concurrent_requests: int = 8,
        retry: RetryPolicy | None = None,
        timeout: float = 30.0,
        user_agent: str = "game-vault/1.0",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if max_concurrent_requests < 1:
            raise InvalidConfigurationError(
                f"max_concurrent_requests must be at least 1, got {max_concurrent_requests}"
            )

        self.retry = retry or RetryPolicy()
        self.rate_limiter = RateLimiter(rate_limit, rate_window)
        self._semaphore = asyncio.Semaphore(max_concurrent_requests)
        self._timeout = timeout
        self._user_agent = user_agent
        self._client = client
        self._owns_client = False

    @classmethod
    def from_config(
        cls,
        config: CatalogConfig,
        client: httpx.AsyncClient | None = None,
    ) -> ResilientHttpClient:
        """Create a client from a CatalogConfig."""
        return cls(
            rate_limit=config.rate_limit,
            rate_window=config.rate_window,
            max_concurrent_requests=config.max_concurrent_requests,
            retry=config.retry,
            timeout=config.timeout,
            user_agent=config.user_agent,
            client=client,
        )

    async def __aenter__(self) -> ResilientHttpClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the underlying httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                headers={"User-Agent": self._user_agent},
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    def build_request(self, method: str, url: str, **kwargs) -> httpx.Request:
        """Build a request bound to the underlying httpx client."""
        return self._get_client().build_request(method, url, **kwargs)

    async def send_limited(
        self,
        request_factory: Callable[[], httpx.Request],
        max_retries: int | None = None,
    ) -> httpx.Response:
        """Send a request, retrying rate limits and transport failures.

        Args:
            request_factory: Builds a fresh request for each attempt
            max_retries: Retries allowed after the first attempt
                (uses the retry policy if None)

        Returns:
            The first non-429 response, or the last 429 response once
            retries are exhausted

        Raises:
            httpx.TransportError: If the request still fails after all retries
        """
        if max_retries is None:
            max_retries = self.retry.max_retries

        retrying = AsyncRetrying(
            retry=(
                retry_if_exception_type(httpx.TransportError)
                | retry_if_result(_is_rate_limited)
            ),
            stop=stop_after_attempt(max_retries + 1),
            wait=self._retry_wait,
            before_sleep=self._log_retry_attempt,
            retry_error_callback=self._give_up,
        )
        return await retrying(self._send_once, self._get_client(), request_factory)

    async def _send_once(
        self,
        client: httpx.AsyncClient,
        request_factory: Callable[[], httpx.Request],
    ) -> httpx.Response:
        request = request_factory()
        async with self._semaphore:
            await self.rate_limiter.wait()
            return await client.send(request)

    def _retry_wait(self, retry_state: RetryCallState) -> float:
        """Honour Retry-After on a 429, otherwise back off exponentially."""
        outcome = retry_state.outcome
        if outcome is not None and not outcome.failed:
            delay = retry_after_delay(outcome.result().headers)
            if delay is not None:
                return delay
        return backoff_delay(retry_state.attempt_number - 1, self.retry)

    def _log_retry_attempt(self, retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        if outcome is not None and outcome.failed:
            reason = type(outcome.exception()).__name__
        else:
            reason = "rate limited"
        logger.debug(
            "HTTP attempt %d failed (%s), retrying in %.2fs",
            retry_state.attempt_number,
            reason,
            retry_state.next_action.sleep if retry_state.next_action else 0,
        )

    def _give_up(self, retry_state: RetryCallState) -> httpx.Response:
        """Hand back the last 429 response, or re-raise the last transport error."""
        logger.debug("HTTP request gave up after %d attempts", retry_state.attempt_number)
        return retry_state.outcome.result()

    async def close(self) -> None:
        """Close the underlying httpx client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            self._owns_client = False
