"""Catalog providers for game-vault."""

from game_vault.providers.igdb import CatalogClient

__all__ = [
    "CatalogClient",
]
