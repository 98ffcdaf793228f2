"""IGDB entity types returned by the catalog client.

Based on the IGDB API documentation: https://api-docs.igdb.com/
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NamedTuple


@dataclass
class Platform:
    """A gaming platform as known to IGDB.

    Attributes:
        id: IGDB platform ID
        name: Human-readable platform name
        slug: IGDB platform slug (e.g., "snes", "ps2")
    """

    id: int
    name: str = ""
    slug: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Platform:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            slug=data.get("slug", ""),
        )


@dataclass
class Game:
    """A game search result.

    Attributes:
        id: IGDB game ID
        name: Game title
        summary: Game description
        raw_response: Untouched API payload
    """

    id: int
    name: str = ""
    summary: str = ""
    raw_response: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Game:
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            summary=data.get("summary") or "",
            raw_response=data,
        )


class GameMedia(NamedTuple):
    """Cover and screenshot URLs for a game."""

    cover_url: str | None
    screenshot_urls: list[str]

    @classmethod
    def empty(cls) -> GameMedia:
        return cls(None, [])
