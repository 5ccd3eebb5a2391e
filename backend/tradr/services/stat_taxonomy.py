"""Per-game stat taxonomy: maps Yahoo's opaque stat_ids to stat names.

Stat ids differ between games and league settings, so nothing downstream
hardcodes them. A game's taxonomy is fetched once and cached for the
process lifetime; callers must resolve it before assigning stat values.
"""

import asyncio
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any

from cachetools import Cache

from tradr.services.errors import StatDefinitionsUnavailableError
from tradr.services.models import AthleteRole
from tradr.services.normalize import find_first_path, indexed_values, normalize_node
from tradr.services.yahoo_client import YahooClientProtocol

logger = logging.getLogger(__name__)

# Substring fallback ignores very short names ("a", "g") that would match anything
MIN_FUZZY_NAME_LENGTH = 3

# =============================================================================
# Semantic Stat Names
# =============================================================================

# Candidate names per semantic stat, most specific first. Abbreviations match
# exactly against Yahoo display names; full names also match fuzzily.
SKATER_STAT_CANDIDATES: dict[str, list[str]] = {
    "goals": ["goals", "g"],
    "assists": ["assists", "a"],
    "points": ["points", "p"],
    "plus_minus": ["plus/minus", "plus minus", "+/-"],
    "pim": ["penalty minutes", "pim"],
    "ppp": ["power play points", "powerplay points", "ppp"],
    "shp": ["short handed points", "shorthanded points", "shp"],
    "gwg": ["game winning goals", "game-winning goals", "gwg"],
    "sog": ["shots on goal", "sog"],
    "fw": ["faceoffs won", "faceoff wins", "fw"],
    "hits": ["hits", "hit"],
    "blocks": ["blocks", "blocked shots", "blk"],
}

GOALIE_STAT_CANDIDATES: dict[str, list[str]] = {
    "games_started": ["games started", "gs"],
    "wins": ["wins", "w"],
    "losses": ["losses", "l"],
    "goals_against": ["goals against", "ga"],
    "gaa": ["goals against average", "gaa"],
    "saves": ["saves", "sv"],
    "shots_against": ["shots against", "sa"],
    "save_pct": ["save percentage", "sv%"],
    "shutouts": ["shutouts", "sho"],
}


def _fuzzy(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.lower())


# =============================================================================
# Taxonomy
# =============================================================================


@dataclass(slots=True)
class StatTaxonomy:
    """Resolved stat definitions for one game."""

    game_key: str
    by_id: dict[str, str]  # stat_id -> stat name
    by_name: dict[str, str] = field(default_factory=dict)  # lowercase name -> stat_id

    def name_for(self, stat_id: str) -> str | None:
        return self.by_id.get(stat_id)

    def stat_id_for(self, candidate_names: list[str]) -> str | None:
        """Find a stat id by name.

        Exact case-insensitive matches are tried for every candidate first,
        then indexed names containing the candidate once non-alphanumerics
        are stripped. The containment only runs one way so that "short handed
        points" never resolves to plain "points".
        """
        for name in candidate_names:
            stat_id = self.by_name.get(name.lower())
            if stat_id is not None:
                return stat_id

        for name in candidate_names:
            wanted = _fuzzy(name)
            if len(wanted) < MIN_FUZZY_NAME_LENGTH:
                continue
            for indexed_name, stat_id in self.by_name.items():
                if wanted in _fuzzy(indexed_name):
                    return stat_id
        return None


def parse_stat_categories(raw: dict[str, Any], game_key: str) -> StatTaxonomy:
    """Build a taxonomy from a ``game/{key}/stat_categories`` response.

    Raises:
        StatDefinitionsUnavailableError: If no definition can be parsed.
    """
    stats = find_first_path(
        raw,
        [
            "fantasy_content.game.1.stat_categories.stats",
            "fantasy_content.game.0.stat_categories.stats",
            "fantasy_content.game.stat_categories.stats",
        ],
    )
    if stats is None:
        raise StatDefinitionsUnavailableError(
            f"Failed to read stat definitions for game {game_key}: "
            "stat_categories not found in response"
        )

    by_id: dict[str, str] = {}
    by_name: dict[str, str] = {}
    abbreviations: dict[str, str] = {}
    for item in indexed_values(stats):
        entry = normalize_node(item.get("stat")) if isinstance(item, dict) else None
        if not entry:
            continue
        stat_id = entry.get("stat_id")
        name = entry.get("name")
        if stat_id is None or not name:
            continue
        stat_id = str(stat_id)
        by_id[stat_id] = str(name)
        by_name[str(name).lower()] = stat_id
        display_name = entry.get("display_name")
        if display_name:
            abbreviations[str(display_name).lower()] = stat_id

    # Abbreviations never override a full name
    for abbreviation, stat_id in abbreviations.items():
        by_name.setdefault(abbreviation, stat_id)

    if not by_id:
        raise StatDefinitionsUnavailableError(
            f"Stat definitions returned empty for game {game_key}"
        )
    return StatTaxonomy(game_key=game_key, by_id=by_id, by_name=by_name)


# =============================================================================
# Stat Line Mapping
# =============================================================================


def _pick(
    stats: dict[str, float], taxonomy: StatTaxonomy, candidates: dict[str, list[str]]
) -> dict[str, float]:
    line: dict[str, float] = {}
    for semantic, names in candidates.items():
        stat_id = taxonomy.stat_id_for(names)
        if stat_id is not None and stat_id in stats:
            line[semantic] = stats[stat_id]
    return line


def map_stat_line(
    stats: dict[str, float], taxonomy: StatTaxonomy, role: AthleteRole | None = None
) -> dict[str, float]:
    """Translate a stat_id -> value map into semantic names for valuation.

    Args:
        stats: Raw season totals keyed by stat_id.
        taxonomy: The game's resolved taxonomy.
        role: Restricts the mapping to one role's stats; None maps both.

    Returns:
        Semantic stat line, e.g. {"goals": 14, "assists": 20, "points": 34}.
    """
    line: dict[str, float] = {}
    if role in (AthleteRole.SKATER, None):
        line.update(_pick(stats, taxonomy, SKATER_STAT_CANDIDATES))
        if "goals" in line and "assists" in line:
            line["points"] = line["goals"] + line["assists"]
    if role in (AthleteRole.GOALIE, None):
        line.update(_pick(stats, taxonomy, GOALIE_STAT_CANDIDATES))
    return line


# =============================================================================
# Cache
# =============================================================================


class StatDefinitionCache:
    """Process-wide taxonomy cache keyed by game key.

    The first successful resolution for a game wins and is never evicted;
    failed resolutions are never cached. ``clear()`` exists for test isolation.
    """

    def __init__(self) -> None:
        self._cache: Cache[str, StatTaxonomy] = Cache(maxsize=math.inf)
        self._lock = asyncio.Lock()

    async def get_stat_definitions(
        self, client: YahooClientProtocol, game_key: str
    ) -> StatTaxonomy:
        """Return the game's taxonomy, fetching it on a cache miss.

        Raises:
            StatDefinitionsUnavailableError: If the response holds no definitions.
            YahooApiError: If the request fails.
        """
        cached = self._cache.get(game_key)
        if cached is not None:
            logger.debug(f"Stat definitions cache hit for game {game_key}")
            return cached

        async with self._lock:
            # Double-check after acquiring lock (another request may have populated)
            cached = self._cache.get(game_key)
            if cached is not None:
                return cached

            raw = await client.get_stat_categories(game_key)
            taxonomy = parse_stat_categories(raw, game_key)
            self._cache[game_key] = taxonomy
            logger.info(
                f"Loaded {len(taxonomy.by_id)} stat definitions for game {game_key}"
            )
            return taxonomy

    def get_stat_id_by_name(self, game_key: str, candidate_names: list[str]) -> str | None:
        """Look up a stat id in an already-resolved taxonomy; None if unresolved."""
        taxonomy = self._cache.get(game_key)
        if taxonomy is None:
            return None
        return taxonomy.stat_id_for(candidate_names)

    def has(self, game_key: str) -> bool:
        return game_key in self._cache

    def clear(self) -> None:
        """Drop all cached taxonomies. Used by tests to ensure isolation."""
        self._cache.clear()
