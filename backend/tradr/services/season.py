"""Season resolution from the Yahoo game resource.

The game resource is the only source of truth for a game's season. It is
never guessed from a league key or a game-key lookup table.
"""

import asyncio
import logging
import math
import re
from typing import Any

from cachetools import Cache

from tradr.services.errors import SeasonUnavailableError
from tradr.services.normalize import find_first_path, normalize_node
from tradr.services.yahoo_client import YahooClientProtocol

logger = logging.getLogger(__name__)

_SEASON_YEAR = re.compile(r"^\d{4}$")


def game_key_from_league_key(league_key: str) -> str:
    """Extract the game key from a league key, e.g. "465.l.9080" -> "465".

    Raises:
        ValueError: If the key has no ``.l.`` separator.
    """
    game_key, sep, league_id = league_key.partition(".l.")
    if not sep or not game_key or not league_id:
        raise ValueError(f"Invalid league key: {league_key!r}")
    return game_key


def parse_season(raw: dict[str, Any], game_key: str) -> str:
    """Read the four-digit season year from a ``game/{key}`` response.

    "2025-26" and "2025" both resolve to "2025".

    Raises:
        SeasonUnavailableError: If the game node or its season field is missing
            or malformed.
    """
    game_node = find_first_path(raw, ["fantasy_content.game.0", "fantasy_content.game"])
    game = normalize_node(game_node)
    if game is None:
        raise SeasonUnavailableError(
            f"Invalid game response for game {game_key}, cannot determine season"
        )

    season = game.get("season")
    if season is None or season == "":
        raise SeasonUnavailableError(f"Game {game_key} has no season field")

    season_year = str(season)[:4]
    if not _SEASON_YEAR.match(season_year):
        raise SeasonUnavailableError(
            f"Invalid season format for game {game_key}: {season!r}"
        )
    return season_year


class SeasonCache:
    """Process-wide season cache keyed by game key; a resolved season never changes."""

    def __init__(self) -> None:
        # Never evicts: a resolved season is fixed for the process lifetime
        self._cache: Cache[str, str] = Cache(maxsize=math.inf)
        self._lock = asyncio.Lock()

    async def get_season(self, client: YahooClientProtocol, game_key: str) -> str:
        """Return the game's season year, fetching the game resource on a cache miss.

        Raises:
            SeasonUnavailableError: If the season cannot be read.
            YahooApiError: If the game resource is unreachable.
        """
        cached = self._cache.get(game_key)
        if cached is not None:
            logger.debug(f"Season cache hit for game {game_key}")
            return cached

        async with self._lock:
            cached = self._cache.get(game_key)
            if cached is not None:
                return cached

            raw = await client.get_game(game_key)
            season = parse_season(raw, game_key)
            self._cache[game_key] = season
            logger.info(f"Determined season {season} for game {game_key}")
            return season

    def clear(self) -> None:
        """Drop all cached seasons. Used by tests to ensure isolation."""
        self._cache.clear()
