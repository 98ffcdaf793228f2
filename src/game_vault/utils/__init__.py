"""Utility functions for game-vault."""

from game_vault.utils.game_code import (
    decode_game_code,
    encode_game_code,
    game_folder_name,
    split_game_folder_name,
)

__all__ = [
    "decode_game_code",
    "encode_game_code",
    "game_folder_name",
    "split_game_folder_name",
]
