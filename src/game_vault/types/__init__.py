"""Type definitions for the game-vault library."""

from game_vault.types.batch import (
    BatchResult,
    BatchStatus,
    ItemError,
    ItemOutcome,
    ItemState,
    WorkItem,
)
from game_vault.types.igdb import Game, GameMedia, Platform

__all__ = [
    "BatchResult",
    "BatchStatus",
    "Game",
    "GameMedia",
    "ItemError",
    "ItemOutcome",
    "ItemState",
    "Platform",
    "WorkItem",
]
