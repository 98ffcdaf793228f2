"""Text normalization for catalog queries and media URLs."""

from __future__ import annotations

import re
from typing import Final

from unidecode import unidecode

THUMBNAIL_SIZE: Final = "t_thumb"
COVER_SIZE: Final = "t_cover_big"

QUOTE_PATTERN: Final = re.compile(r'(["\\])')


def normalize_cover_url(url: str) -> str:
    """Normalize an image URL to ensure it carries an https: prefix.

    IGDB returns protocol-relative URLs such as
    ``//images.igdb.com/igdb/image/upload/t_thumb/abc.jpg``.

    Args:
        url: The image URL to normalize

    Returns:
        The normalized URL with https:// prefix
    """
    if not url:
        return url
    if url.startswith("//"):
        return f"https:{url}"
    return url


def upgrade_image_size(url: str, size: str = COVER_SIZE) -> str:
    """Swap the thumbnail size token in an IGDB image URL for a larger one.

    Args:
        url: IGDB image URL
        size: Replacement size token

    Returns:
        The URL pointing at the larger variant

    Examples:
        >>> upgrade_image_size("https://images.igdb.com/igdb/image/upload/t_thumb/co1.jpg")
        'https://images.igdb.com/igdb/image/upload/t_cover_big/co1.jpg'
    """
    return url.replace(THUMBNAIL_SIZE, size)


def escape_query_string(value: str) -> str:
    """Escape a value for use inside a double-quoted IGDB query string."""
    return QUOTE_PATTERN.sub(r"\\\1", value)


def to_search_term(title: str) -> str:
    """Prepare a game title for an IGDB ``search`` clause.

    The title is transliterated to ASCII and quoted characters are escaped,
    so "Pokémon" is searched as "Pokemon".
    """
    return escape_query_string(unidecode(title).strip())
