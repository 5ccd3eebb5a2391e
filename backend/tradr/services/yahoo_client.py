"""Yahoo Fantasy Sports API client with rate limiting.

All requests ask for JSON (``format=json``) and carry the caller's OAuth
bearer token. Token acquisition and refresh happen elsewhere.
"""

import asyncio
import json
import logging
import re
import time
from typing import Any, Protocol

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from tradr.config import get_settings
from tradr.services.errors import YahooApiError

logger = logging.getLogger(__name__)

YAHOO_BASE_URL = "https://fantasysports.yahooapis.com/fantasy/v2"

# Excerpt lengths used in error messages
ERROR_EXCERPT_CHARS = 300
PREVIEW_EXCERPT_CHARS = 500

_XML_ERROR_PATTERNS = (
    re.compile(r"<description>(.*?)</description>", re.IGNORECASE | re.DOTALL),
    re.compile(r"<error>(.*?)</error>", re.IGNORECASE | re.DOTALL),
    re.compile(r"<message>(.*?)</message>", re.IGNORECASE | re.DOTALL),
)


class YahooClientProtocol(Protocol):
    """Protocol for Yahoo API client dependency injection."""

    async def get_game(self, game_key: str) -> dict[str, Any]: ...
    async def get_stat_categories(self, game_key: str) -> dict[str, Any]: ...
    async def get_league_teams(self, league_key: str) -> dict[str, Any]: ...
    async def get_league_standings(self, league_key: str) -> dict[str, Any]: ...
    async def get_team_roster(self, team_key: str) -> dict[str, Any]: ...
    async def get_player_stats(
        self, player_keys: list[str], season: str
    ) -> dict[str, Any]: ...


def _is_retryable_error(exception: BaseException) -> bool:
    """Only connection-level failures are retried; HTTP status errors surface immediately."""
    return isinstance(exception, (httpx.TimeoutException, httpx.NetworkError))


def _xml_error_message(body: str) -> str | None:
    for pattern in _XML_ERROR_PATTERNS:
        match = pattern.search(body)
        if match:
            return match.group(1).strip()
    return None


def _looks_like_xml(body: str, content_type: str) -> bool:
    return body.lstrip().startswith("<?xml") or "xml" in content_type


def parse_response(response: httpx.Response) -> dict[str, Any]:
    """Validate a Yahoo response and decode its JSON body.

    Raises:
        YahooApiError: On a non-2xx status, an XML body, or a body that is not JSON.
    """
    body = response.text or ""
    content_type = response.headers.get("content-type", "")
    status = response.status_code

    if not response.is_success:
        if body and _looks_like_xml(body, content_type):
            message = _xml_error_message(body) or body[:ERROR_EXCERPT_CHARS]
        else:
            message = body[:ERROR_EXCERPT_CHARS] if body else "No response body"
        raise YahooApiError(
            status,
            f"{response.reason_phrase} - {message}",
            body[:ERROR_EXCERPT_CHARS],
        )

    stripped = body.lstrip()
    if stripped.startswith("<?xml"):
        message = _xml_error_message(body) or "Received XML response instead of JSON"
        raise YahooApiError(
            status,
            f"Yahoo API returned XML instead of JSON: {message}",
            body[:PREVIEW_EXCERPT_CHARS],
        )

    if not stripped.startswith(("{", "[")):
        raise YahooApiError(
            status,
            "Unexpected response format, expected JSON",
            body[:ERROR_EXCERPT_CHARS] if body else "No response body",
        )

    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise YahooApiError(
            status,
            f"Failed to parse JSON response: {e}",
            body[:PREVIEW_EXCERPT_CHARS],
        ) from e


class YahooApiClient:
    """
    Yahoo Fantasy API client with rate limiting.

    Yahoo does not publish exact limits; bursts of roster and stats calls
    during a league sync are the usual trigger for 999/429 throttling, so
    requests are paced and concurrency is bounded.
    """

    def __init__(
        self,
        access_token: str,
        requests_per_second: float | None = None,
        max_concurrent: int | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize the client.

        Args:
            access_token: OAuth bearer token supplied by the auth layer
            requests_per_second: Target rate (defaults to settings)
            max_concurrent: Maximum concurrent requests (defaults to settings)
            base_url: API root (defaults to settings)
            timeout: Per-request timeout in seconds (defaults to settings)
        """
        settings = get_settings()
        rate = requests_per_second or settings.requests_per_second
        self.access_token = access_token
        self.base_url = (base_url or settings.yahoo_api_base_url).rstrip("/")
        self.timeout = timeout or settings.request_timeout
        self.delay = 1.0 / rate
        self.semaphore = asyncio.Semaphore(max_concurrent or settings.max_concurrent_requests)
        self._last_request_time = 0.0
        self._lock = asyncio.Lock()
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client (lazy initialization, coroutine-safe)."""
        if self._client is None:
            async with self._lock:
                if self._client is None:  # Double-check after acquiring lock
                    self._client = httpx.AsyncClient(
                        timeout=self.timeout,
                        headers={
                            "Authorization": f"Bearer {self.access_token}",
                            "Accept": "application/json",
                        },
                    )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources (coroutine-safe)."""
        async with self._lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None

    async def __aenter__(self) -> "YahooApiClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Exit async context manager and close client."""
        await self.close()

    async def _rate_limit(self) -> None:
        """Apply rate limiting between requests."""
        async with self._lock:
            now = time.monotonic()
            elapsed = now - self._last_request_time
            if elapsed < self.delay:
                await asyncio.sleep(self.delay - elapsed)
            self._last_request_time = time.monotonic()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception(_is_retryable_error),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
    async def _get(self, endpoint: str) -> dict[str, Any]:
        """Make a rate-limited GET request, retrying connection failures only."""
        async with self.semaphore:
            await self._rate_limit()

            client = await self._get_client()
            response = await client.get(
                f"{self.base_url}/{endpoint}", params={"format": "json"}
            )
            return parse_response(response)

    async def get_game(self, game_key: str) -> dict[str, Any]:
        """Fetch the game resource (carries the canonical season)."""
        return await self._get(f"game/{game_key}")

    async def get_stat_categories(self, game_key: str) -> dict[str, Any]:
        """Fetch the stat_id -> name taxonomy for a game."""
        return await self._get(f"game/{game_key}/stat_categories")

    async def get_league_teams(self, league_key: str) -> dict[str, Any]:
        """Fetch every team in a league, including team standings when Yahoo provides them."""
        return await self._get(f"league/{league_key}/teams")

    async def get_league_standings(self, league_key: str) -> dict[str, Any]:
        """Fetch the dedicated league standings resource."""
        return await self._get(f"league/{league_key}/standings")

    async def get_team_roster(self, team_key: str) -> dict[str, Any]:
        """Fetch a team's current roster."""
        return await self._get(f"team/{team_key}/roster")

    async def get_player_stats(self, player_keys: list[str], season: str) -> dict[str, Any]:
        """
        Fetch season statistics for a batch of players.

        Args:
            player_keys: Yahoo player keys (at most 25 per Yahoo request)
            season: Four-digit season year

        Returns:
            Raw players collection with per-player stats blocks
        """
        keys = ",".join(player_keys)
        return await self._get(f"players;player_keys={keys}/stats;type=season;season={season}")
