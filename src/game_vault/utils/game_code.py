"""Base-36 game codes used to name library folders.

A game folder is named ``<CODE> - <name>``, where the code is the IGDB game
id in base 36, zero-padded to eight characters.
"""

from __future__ import annotations

import re
from typing import Final

ALPHABET: Final = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
CODE_LENGTH: Final = 8
FOLDER_SEPARATOR: Final = " - "

CODE_PATTERN: Final = re.compile(r"^[0-9A-Za-z]+$")


def encode_game_code(game_id: int, length: int = CODE_LENGTH) -> str:
    """Encode a game id as a zero-padded base-36 code.

    Args:
        game_id: Non-negative IGDB game id
        length: Minimum code length

    Returns:
        The upper-case code

    Examples:
        >>> encode_game_code(1074)
        '000000TU'
    """
    if game_id < 0:
        raise ValueError("game id must be non-negative")

    digits = []
    value = game_id
    while value > 0:
        value, remainder = divmod(value, 36)
        digits.append(ALPHABET[remainder])

    return "".join(reversed(digits)).rjust(length, "0")


def decode_game_code(code: str) -> int:
    """Decode a base-36 game code back into the game id.

    Raises:
        ValueError: If the code contains characters outside 0-9 and A-Z
    """
    if not CODE_PATTERN.match(code):
        raise ValueError(f"invalid game code: {code!r}")
    return int(code, 36)


def game_folder_name(game_id: int, name: str) -> str:
    """Build the ``<CODE> - <name>`` folder name of a game."""
    return f"{encode_game_code(game_id)}{FOLDER_SEPARATOR}{name}"


def split_game_folder_name(folder_name: str) -> tuple[str, str] | None:
    """Split a ``<CODE> - <name>`` folder name into code and name.

    Returns:
        ``(code, name)``, or None if the folder does not follow the pattern
    """
    index = folder_name.find(FOLDER_SEPARATOR)
    if index <= 0 or index + len(FOLDER_SEPARATOR) >= len(folder_name):
        return None
    return folder_name[:index], folder_name[index + len(FOLDER_SEPARATOR):]
