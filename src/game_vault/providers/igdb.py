"""IGDB catalog client."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any, Final

import httpx

from game_vault.cache.singleflight import SingleFlightCache
from game_vault.core.config import CatalogConfig
from game_vault.core.exceptions import (
    ProviderAuthenticationError,
    ProviderConnectionError,
    ProviderRateLimitError,
    ProviderResponseError,
)
from game_vault.core.http import ResilientHttpClient, retry_after_delay
from game_vault.core.matching import best_candidate
from game_vault.core.normalization import (
    escape_query_string,
    normalize_cover_url,
    to_search_term,
    upgrade_image_size,
)
from game_vault.types.igdb import Game, GameMedia, Platform

logger = logging.getLogger(__name__)

PLATFORM_FIELDS: Final = ("id", "name", "slug")
GAME_FIELDS: Final = ("id", "name", "summary")
MEDIA_FIELDS: Final = ("url",)

COVER_QUERY_NAME: Final = "cover"
SCREENSHOTS_QUERY_NAME: Final = "screenshots"


class CatalogClient:
    """Client for the IGDB catalog API.

    Every request goes through a ResilientHttpClient, so calls made from many
    concurrent jobs share one rate limit and one concurrency cap. The bearer
    token and platform lookups are cached on the instance and live as long
    as it does.

    Requires client_id and client_secret credentials from Twitch.

    Example:
        config = CatalogConfig.from_env()
        async with CatalogClient(config) as catalog:
            game = await catalog.search_game("Mega Man", "nes")
            if game:
                cover, screenshots = await catalog.fetch_media(game.id)
    """

    name = "igdb"

    def __init__(
        self,
        config: CatalogConfig,
        http: ResilientHttpClient | None = None,
    ) -> None:
        self.config = config
        self._http = http or ResilientHttpClient.from_config(config)
        self._token: str | None = None
        self._token_lock = asyncio.Lock()
        self._platforms: SingleFlightCache[str, Platform | None] = SingleFlightCache(
            key_func=str.casefold
        )

    async def __aenter__(self) -> CatalogClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def client_id(self) -> str:
        return self.config.client_id

    @property
    def client_secret(self) -> str:
        return self.config.client_secret

    async def _get_token(self) -> str:
        """Get the OAuth token from Twitch, requesting it on first use."""
        if self._token:
            return self._token

        async with self._token_lock:
            if self._token:
                return self._token

            if not self.config.is_configured:
                raise ProviderAuthenticationError(self.name, "Missing client_id or client_secret")

            params = {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "client_credentials",
            }

            logger.debug("IGDB API: requesting OAuth token")
            try:
                response = await self._http.send_limited(
                    lambda: self._http.build_request("POST", self.config.token_url, params=params)
                )
            except httpx.TransportError as e:
                raise ProviderConnectionError(self.name, str(e)) from e

            if response.status_code in (400, 401, 403):
                raise ProviderAuthenticationError(self.name, "Invalid client_id or client_secret")
            self._raise_for_status(response)

            token = response.json().get("access_token", "")
            if not token:
                raise ProviderAuthenticationError(self.name, "Failed to obtain OAuth token")

            self._token = token
            return token

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Map an error response to a provider exception."""
        status = response.status_code
        if status < 400:
            return
        if status == 401:
            raise ProviderAuthenticationError(self.name, "Token rejected")
        if status == 429:
            raise ProviderRateLimitError(
                self.name, retry_after=retry_after_delay(response.headers)
            )
        raise ProviderResponseError(self.name, status, response.text[:200] or None)

    def _request_factory(self, endpoint: str, body: str, token: str) -> Callable[[], httpx.Request]:
        url = f"{self.config.base_url.rstrip('/')}/{endpoint}"
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {token}",
            "Client-ID": self.client_id,
            "Content-Type": "text/plain",
        }
        return lambda: self._http.build_request(
            "POST", url, content=body.encode("utf-8"), headers=headers
        )

    async def _request(self, endpoint: str, body: str) -> Any:
        """Make an API request to IGDB."""
        token = await self._get_token()

        logger.debug("IGDB API: POST %s", endpoint)
        logger.debug("IGDB API query: %s", body)

        try:
            response = await self._http.send_limited(self._request_factory(endpoint, body, token))
        except httpx.TransportError as e:
            logger.debug("IGDB API error: %s", e)
            raise ProviderConnectionError(self.name, str(e)) from e

        self._raise_for_status(response)
        data = response.json()

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("IGDB API response:\n%s", json.dumps(data, indent=2, ensure_ascii=False))

        return data

    async def resolve_platform(self, name: str) -> Platform | None:
        """Look up a platform by slug.

        Lookups are memoized per name, case-insensitively. Concurrent callers
        asking for the same name share one upstream request.

        Args:
            name: Platform slug (e.g., "snes", "ps2")

        Returns:
            The platform, or None if IGDB does not know it
        """
        if not name or not name.strip():
            return None

        name = name.strip()
        return await self._platforms.get_or_compute(name, lambda: self._fetch_platform(name))

    async def _fetch_platform(self, name: str) -> Platform | None:
        slug = escape_query_string(name.lower())
        body = (
            f"fields {', '.join(PLATFORM_FIELDS)}; "
            f'where slug = "{slug}"; '
            "limit 1;"
        )
        results = await self._request("platforms", body)

        for entry in results or []:
            if isinstance(entry, dict) and "id" in entry:
                return Platform.from_api(entry)

        logger.debug("No IGDB platform for: %s", name)
        return None

    async def search_game(self, title: str, platform_name: str) -> Game | None:
        """Search a game title on one platform and pick the best match.

        Args:
            title: Game title to search for
            platform_name: Platform slug the search is scoped to

        Returns:
            The best matching game, or None if the platform or the game is
            unknown
        """
        platform = await self.resolve_platform(platform_name)
        if platform is None:
            logger.debug("Platform not resolved, skipping search for: %s", title)
            return None

        if not title or not title.strip():
            return None

        body = (
            f"fields {', '.join(GAME_FIELDS)}; "
            f'search "{to_search_term(title)}"; '
            f"where platforms = [{platform.id}];"
        )
        results = await self._request("games", body)

        candidates = [
            Game.from_api(entry)
            for entry in results or []
            if isinstance(entry, dict) and "id" in entry
        ]
        game = best_candidate(title.strip(), candidates, lambda g: g.name)

        if game is None:
            logger.debug("No IGDB match for: %s", title)
        return game

    async def fetch_media(self, game_id: int, screenshot_limit: int | None = None) -> GameMedia:
        """Fetch the cover and screenshot URLs of a game in one request.

        Args:
            game_id: IGDB game ID
            screenshot_limit: Maximum screenshots to fetch (uses config if None)

        Returns:
            GameMedia with the cover URL (or None) and screenshot URLs
        """
        if screenshot_limit is None:
            screenshot_limit = self.config.screenshot_limit

        fields = ", ".join(MEDIA_FIELDS)
        body = (
            f'query covers "{COVER_QUERY_NAME}" {{\n'
            f"  fields {fields};\n"
            f"  where game = {int(game_id)};\n"
            "  limit 1;\n"
            "};\n\n"
            f'query screenshots "{SCREENSHOTS_QUERY_NAME}" {{\n'
            f"  fields {fields};\n"
            f"  where game = {int(game_id)};\n"
            f"  limit {int(screenshot_limit)};\n"
            "};\n"
        )
        results = await self._request("multiquery", body)
        if not results:
            return GameMedia.empty()

        cover_url: str | None = None
        screenshots: list[str] = []

        for item in results:
            if not isinstance(item, dict) or not isinstance(item.get("result"), list):
                continue

            query_name = str(item.get("name", "")).casefold()
            if query_name == COVER_QUERY_NAME:
                urls = self._image_urls(item["result"])
                if urls:
                    cover_url = urls[0]
            elif query_name == SCREENSHOTS_QUERY_NAME:
                screenshots.extend(self._image_urls(item["result"]))

        return GameMedia(cover_url, screenshots)

    async def fetch_cover_url(self, game_id: int) -> str | None:
        """Fetch only the cover URL of a game.

        Args:
            game_id: IGDB game ID

        Returns:
            The cover URL, or None if the game has no cover
        """
        body = f"fields {', '.join(MEDIA_FIELDS)}; where game = {int(game_id)};"
        urls = self._image_urls(await self._request("covers", body))
        return urls[0] if urls else None

    async def fetch_screenshot_urls(self, game_id: int, limit: int | None = None) -> list[str]:
        """Fetch only the screenshot URLs of a game.

        Args:
            game_id: IGDB game ID
            limit: Maximum screenshots to fetch (uses config if None)

        Returns:
            List of screenshot URLs
        """
        if limit is None:
            limit = self.config.screenshot_limit
        body = (
            f"fields {', '.join(MEDIA_FIELDS)}; "
            f"where game = {int(game_id)}; "
            f"limit {int(limit)};"
        )
        return self._image_urls(await self._request("screenshots", body))

    def _image_urls(self, entries: Any) -> list[str]:
        """Extract sized image URLs from a list of image records."""
        if not isinstance(entries, list):
            return []

        urls = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            url = entry.get("url")
            if isinstance(url, str) and url.strip():
                urls.append(upgrade_image_size(normalize_cover_url(url.strip())))
        return urls

    def platform_cache_stats(self) -> dict[str, int]:
        """Get platform cache statistics."""
        return self._platforms.get_stats()

    async def close(self) -> None:
        """Cancel pending lookups and close the HTTP client."""
        await self._platforms.clear()
        await self._http.close()
