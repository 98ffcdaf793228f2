"""Ranking of catalog search candidates against a requested title."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

T = TypeVar("T")


def rank_candidates(
    title: str,
    candidates: Sequence[T],
    name_of: Callable[[T], str] = str,
) -> list[T]:
    """Order search candidates from best to worst match for a title.

    Candidates are ordered by:

    1. exact case-insensitive name match
    2. case-insensitive prefix match
    3. shortest name

    Candidates that tie on all three keep their upstream order.

    Args:
        title: The requested title
        candidates: Search results to rank
        name_of: Extracts the name from a candidate

    Returns:
        A new list with the best match first
    """
    wanted = title.casefold()

    def sort_key(candidate: T) -> tuple[bool, bool, int]:
        name = (name_of(candidate) or "").casefold()
        return (name != wanted, not name.startswith(wanted), len(name))

    return sorted(candidates, key=sort_key)


def best_candidate(
    title: str,
    candidates: Sequence[T],
    name_of: Callable[[T], str] = str,
) -> T | None:
    """Return the best-ranked candidate for a title, or None if there are none."""
    ranked = rank_candidates(title, candidates, name_of)
    return ranked[0] if ranked else None
