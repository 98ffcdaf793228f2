"""Core functionality for the game-vault library."""

from game_vault.core.batch import BatchRunner
from game_vault.core.config import BatchConfig, CatalogConfig, RetryPolicy
from game_vault.core.http import ResilientHttpClient, backoff_delay, retry_after_delay
from game_vault.core.progress import ProgressLedger, ProgressReporter
from game_vault.core.ratelimit import RateLimiter

__all__ = [
    "BatchConfig",
    "BatchRunner",
    "CatalogConfig",
    "ProgressLedger",
    "ProgressReporter",
    "RateLimiter",
    "ResilientHttpClient",
    "RetryPolicy",
    "backoff_delay",
    "retry_after_delay",
]
