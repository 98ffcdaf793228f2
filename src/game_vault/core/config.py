"""Configuration classes for the game-vault library."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from typing import Any

from game_vault.core.exceptions import InvalidConfigurationError

IGDB_API_URL = "https://api.igdb.com/v4"
TWITCH_TOKEN_URL = "https://id.twitch.tv/oauth2/token"


@dataclass
class RetryPolicy:
    """Retry behaviour for transient upstream failures.

    Attributes:
        max_retries: Retries allowed after the first attempt
        backoff_base: Base delay in seconds, doubled on every attempt
        jitter: Upper bound in seconds of the random delay added to each backoff
        max_exponent: Attempt number after which the delay stops growing
    """

    max_retries: int = 5
    backoff_base: float = 0.25
    jitter: float = 0.15
    max_exponent: int = 6


@dataclass
class CatalogConfig:
    """Configuration for the IGDB catalog client.

    IGDB allows 4 requests per second and 8 open requests per client id,
    which is what the defaults reflect.

    Attributes:
        client_id: Twitch application client id
        client_secret: Twitch application client secret
        base_url: IGDB API root
        token_url: Twitch OAuth token endpoint
        timeout: Request timeout in seconds
        rate_limit: Requests admitted per rate window
        rate_window: Length of the rate window in seconds
        max_concurrent_requests: Requests allowed in flight at once
        user_agent: User agent string for HTTP requests
        screenshot_limit: Default number of screenshots fetched per game
        retry: Retry policy for transient failures
    """

    client_id: str = ""
    client_secret: str = ""
    base_url: str = IGDB_API_URL
    token_url: str = TWITCH_TOKEN_URL
    timeout: float = 30.0
    rate_limit: int = 4
    rate_window: float = 1.0
    max_concurrent_requests: int = 8
    user_agent: str = "game-vault/1.0"
    screenshot_limit: int = 10
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    @property
    def is_configured(self) -> bool:
        """Check if credentials are present."""
        return bool(self.client_id and self.client_secret)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CatalogConfig:
        """Create a CatalogConfig from a dictionary."""
        kwargs = {key: value for key, value in data.items() if key != "retry"}
        if "retry" in data:
            kwargs["retry"] = RetryPolicy(**data["retry"])
        try:
            return cls(**kwargs)
        except TypeError as e:
            raise InvalidConfigurationError(str(e)) from e

    @classmethod
    def from_env(cls, **overrides: Any) -> CatalogConfig:
        """Create a CatalogConfig from IGDB_CLIENT_ID and IGDB_CLIENT_SECRET."""
        client_id = os.getenv("IGDB_CLIENT_ID", "").strip()
        if not client_id:
            raise InvalidConfigurationError("Missing IGDB_CLIENT_ID environment variable")

        client_secret = os.getenv("IGDB_CLIENT_SECRET", "").strip()
        if not client_secret:
            raise InvalidConfigurationError("Missing IGDB_CLIENT_SECRET environment variable")

        return cls(client_id=client_id, client_secret=client_secret, **overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert the configuration to a dictionary."""
        return asdict(self)


@dataclass
class BatchConfig:
    """Configuration for batch runs.

    Attributes:
        max_concurrency: Maximum number of jobs running at once
    """

    max_concurrency: int = 100
