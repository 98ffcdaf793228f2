"""Pytest configuration and fixtures."""

from __future__ import annotations

import httpx
import pytest
import respx

from game_vault import CatalogConfig, RetryPolicy

TOKEN_URL = "https://id.twitch.tv/oauth2/token"
API_URL = "https://api.igdb.com/v4"


@pytest.fixture
def fast_retry() -> RetryPolicy:
    """A retry policy with millisecond backoff."""
    return RetryPolicy(max_retries=3, backoff_base=0.001, jitter=0.001)


@pytest.fixture
def catalog_config(fast_retry: RetryPolicy) -> CatalogConfig:
    """Create a test catalog configuration."""
    return CatalogConfig(
        client_id="test_client_id",
        client_secret="test_client_secret",
        rate_limit=1000,
        rate_window=1.0,
        max_concurrent_requests=8,
        retry=fast_retry,
    )


@pytest.fixture
def oauth_response() -> dict:
    """Return the OAuth token response."""
    return {
        "access_token": "test_token",
        "expires_in": 3600,
        "token_type": "bearer",
    }


@pytest.fixture
def igdb_mock(oauth_response):
    """Mock the Twitch token endpoint; tests add IGDB routes on the router."""
    with respx.mock(assert_all_called=False) as router:
        router.post(url__startswith=TOKEN_URL, name="token").mock(
            return_value=httpx.Response(200, json=oauth_response)
        )
        yield router
