"""
game-vault: concurrent metadata enrichment for a retro game library.

This library drives per-game jobs over a library with bounded concurrency
and weighted progress, and talks to the IGDB catalog through a rate-limited,
retrying HTTP layer with per-client memoization.

Example usage:
    from game_vault import BatchRunner, CatalogClient, CatalogConfig, WorkItem

    async with CatalogClient(CatalogConfig.from_env()) as catalog:

        async def job(item, progress):
            game = await catalog.search_game(item.display_name, "snes")
            progress.advance(1)
            return game

        result = await BatchRunner().run(items, job, max_concurrency=20)
        for error in result.errors:
            print(error.display_name, error.message)
"""

from game_vault.cache.singleflight import SingleFlightCache
from game_vault.core.batch import BatchRunner
from game_vault.core.config import BatchConfig, CatalogConfig, RetryPolicy
from game_vault.core.exceptions import (
    InvalidConfigurationError,
    ProviderAuthenticationError,
    ProviderConnectionError,
    ProviderError,
    ProviderRateLimitError,
    ProviderResponseError,
    VaultError,
)
from game_vault.core.http import ResilientHttpClient
from game_vault.core.progress import ProgressLedger, ProgressReporter
from game_vault.core.ratelimit import RateLimiter
from game_vault.providers.igdb import CatalogClient
from game_vault.types.batch import BatchResult, BatchStatus, ItemError, WorkItem
from game_vault.types.igdb import Game, GameMedia, Platform
from game_vault.utils.game_code import decode_game_code, encode_game_code

__version__ = "1.0.0"

__all__ = [
    # Core
    "BatchConfig",
    "BatchRunner",
    "CatalogClient",
    "CatalogConfig",
    "ProgressLedger",
    "ProgressReporter",
    "RateLimiter",
    "ResilientHttpClient",
    "RetryPolicy",
    "SingleFlightCache",
    # Exceptions
    "VaultError",
    "InvalidConfigurationError",
    "ProviderError",
    "ProviderAuthenticationError",
    "ProviderConnectionError",
    "ProviderRateLimitError",
    "ProviderResponseError",
    # Utilities
    "decode_game_code",
    "encode_game_code",
    # Types
    "BatchResult",
    "BatchStatus",
    "Game",
    "GameMedia",
    "ItemError",
    "Platform",
    "WorkItem",
]
