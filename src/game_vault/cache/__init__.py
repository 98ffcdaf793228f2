"""Caches for the game-vault library."""

from game_vault.cache.singleflight import CacheEntry, SingleFlightCache

__all__ = [
    "CacheEntry",
    "SingleFlightCache",
]
