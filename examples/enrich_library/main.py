#!/usr/bin/env python3
"""Example: Enrich a Library

This example walks a library folder of ``<CODE> - <name>`` game directories,
looks each game up on IGDB and writes a ``metadata.yaml`` next to it. Games
are processed concurrently; failures are collected and printed at the end.

To run:
    export IGDB_CLIENT_ID="your_client_id"
    export IGDB_CLIENT_SECRET="your_client_secret"
    python main.py /path/to/library snes
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import yaml

from game_vault import (
    BatchRunner,
    BatchStatus,
    CatalogClient,
    CatalogConfig,
    InvalidConfigurationError,
    ProgressReporter,
    WorkItem,
    encode_game_code,
)
from game_vault.utils import split_game_folder_name

# search, media, write
UNITS_PER_GAME = 3


def find_games(library: Path, name_filter: str | None) -> list[WorkItem]:
    """Collect the game folders of a library as work items."""
    items = []
    for game_dir in sorted(p for p in library.iterdir() if p.is_dir()):
        parts = split_game_folder_name(game_dir.name)
        if parts is None:
            continue
        _, name = parts
        if name_filter and name.casefold() != name_filter.casefold():
            continue
        items.append(WorkItem(
            identity=str(game_dir),
            display_name=name.replace("_", ":"),
            weight=UNITS_PER_GAME,
            payload=game_dir,
        ))
    return items


def write_metadata(path: Path, metadata: dict) -> None:
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(metadata, f, sort_keys=False, allow_unicode=True)


def print_status(status: BatchStatus, item: WorkItem) -> None:
    print(
        f"[{status.completed_items}/{status.total_items}] "
        f"{status.unit_fraction:6.1%} {item.display_name}"
    )


async def main() -> int:
    parser = argparse.ArgumentParser(description="Write IGDB metadata for a game library")
    parser.add_argument("library", type=Path, help="Library folder")
    parser.add_argument("platform", help="IGDB platform slug, e.g. snes, ps2")
    parser.add_argument("-n", "--name", help="Only process this game")
    parser.add_argument("-j", "--jobs", type=int, default=100, help="Concurrent games")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        config = CatalogConfig.from_env()
    except InvalidConfigurationError as e:
        print(e)
        return 1

    if not args.library.is_dir():
        print(f"Path does not exist: {args.library}")
        return 1

    items = find_games(args.library, args.name)
    if not items:
        print(f"No game folders found in: {args.library}")
        return 1

    async with CatalogClient(config) as catalog:

        async def enrich(item: WorkItem, progress: ProgressReporter) -> dict | None:
            game = await catalog.search_game(item.display_name, args.platform)
            if game is None:
                print(f"No IGDB match for: {item.display_name}")
                return None
            progress.advance(1)

            cover, screenshots = await catalog.fetch_media(game.id)
            progress.advance(1)

            metadata = {
                "title": game.name,
                "gameId": game.id,
                "gameCode": encode_game_code(game.id),
                "platform": args.platform,
                "summary": game.summary,
                "media": {"cover": cover, "screenshots": screenshots},
            }
            await asyncio.to_thread(write_metadata, item.payload / "metadata.yaml", metadata)
            return metadata

        runner: BatchRunner[dict | None] = BatchRunner(progress_callback=print_status)
        result = await runner.run(
            items,
            enrich,
            total_work_units=len(items) * UNITS_PER_GAME,
            max_concurrency=args.jobs,
            finalize=lambda results: sum(1 for r in results if r is not None),
        )

    print(f"\nWrote metadata for {result.finalized} of {result.total} games")
    if result.errors:
        print(f"{result.failed} games failed:")
        for error in result.errors:
            print(f"  {error.display_name}: {error.message}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
