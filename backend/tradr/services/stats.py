"""Batched season statistics retrieval.

Player keys are fetched in batches of 25 (Yahoo's per-request limit) with
bounded concurrency. Only a stats block whose coverage_type is exactly
"season" is ever attached; projected, average and date-scoped blocks are
rejected even when nothing else is available. A failing batch is logged and
its athletes are left stat-less; sibling batches carry on.
"""

import asyncio
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

import httpx
from tenacity import RetryError

from tradr.services.errors import StructureMismatchError, YahooApiError
from tradr.services.models import Athlete
from tradr.services.normalize import (
    find_fragment,
    get_path,
    indexed_values,
    normalize_node,
    safe_float,
)
from tradr.services.yahoo_client import YahooClientProtocol

logger = logging.getLogger(__name__)

STATS_BATCH_SIZE = 25
SEASON_COVERAGE = "season"
DEFAULT_MAX_CONCURRENT_BATCHES = 3

# Errors that fail one batch without aborting the others
BATCH_ERRORS = (YahooApiError, StructureMismatchError, httpx.HTTPError, RetryError)


@dataclass(slots=True)
class StatsAttachReport:
    """Outcome of one attach run."""

    attached: int
    stat_less: int
    failed_batches: int
    total_batches: int


def chunk_keys(keys: list[str], size: int = STATS_BATCH_SIZE) -> list[list[str]]:
    """Split keys into consecutive batches of at most ``size``."""
    if size < 1:
        raise ValueError(f"Batch size must be positive, got {size}")
    return [keys[i : i + size] for i in range(0, len(keys), size)]


# =============================================================================
# Stats Block Parsing
# =============================================================================


def _stat_blocks(fragments: list[Any]) -> Iterator[dict[str, Any]]:
    """Yield every candidate stats block found after a player's identity fragment."""
    for item in fragments[1:]:
        candidates = item if isinstance(item, list) else [item]
        for candidate in candidates:
            if not isinstance(candidate, dict):
                continue
            if isinstance(candidate.get("player_stats"), dict):
                yield candidate["player_stats"]
            elif "coverage_type" in candidate and "stats" in candidate:
                yield candidate


def _coverage(block: dict[str, Any]) -> tuple[str | None, str | None]:
    """Return (coverage_type, season) for a block; coverage may sit under key "0"."""
    info = block.get("0") if isinstance(block.get("0"), dict) else block
    coverage_type = info.get("coverage_type", block.get("coverage_type"))
    season = info.get("season", info.get("coverage_value"))
    return (
        str(coverage_type) if coverage_type is not None else None,
        str(season) if season is not None else None,
    )


def _stat_values(block: dict[str, Any]) -> dict[str, float]:
    """Read (stat_id, value) pairs from a block; unparsable values ("-") are skipped."""
    stats = block.get("stats")
    if stats is None:
        stats = next(
            (value for key, value in block.items() if key.isdigit() and key != "0"),
            None,
        )

    values: dict[str, float] = {}
    for item in indexed_values(stats):
        stat = normalize_node(item.get("stat")) if isinstance(item, dict) and "stat" in item else item
        if not isinstance(stat, dict):
            continue
        stat_id = stat.get("stat_id")
        value = safe_float(stat.get("value"))
        if stat_id is not None and value is not None:
            values[str(stat_id)] = value
    return values


def find_season_block(
    fragments: list[Any], season: str, player_key: str = ""
) -> dict[str, float] | None:
    """Return the validated season totals for one player, or None.

    A block is accepted only when its coverage_type is "season" and, if it
    states a season, that season equals the requested one.
    """
    rejected: list[str] = []
    for block in _stat_blocks(fragments):
        coverage_type, block_season = _coverage(block)
        if coverage_type != SEASON_COVERAGE:
            rejected.append(coverage_type or "unknown")
            continue
        if block_season is not None and block_season != season:
            rejected.append(f"season {block_season}")
            continue
        values = _stat_values(block)
        if values:
            return values

    if rejected:
        logger.warning(
            f"Rejected non-season stats for {player_key or 'player'}: {', '.join(rejected)}"
        )
    return None


def parse_stats_response(raw: dict[str, Any], season: str) -> dict[str, dict[str, float]]:
    """Parse a players/stats response into player_key -> validated season stats.

    Players without a valid season block are absent from the result.

    Raises:
        StructureMismatchError: If the players collection is missing or a player
            entry has no player_key.
    """
    players = get_path(raw, "fantasy_content.players")
    if players is None:
        raise StructureMismatchError("Stats response has no players collection")

    result: dict[str, dict[str, float]] = {}
    for entry in indexed_values(players):
        fragments = entry.get("player") if isinstance(entry, dict) else entry
        if not isinstance(fragments, list):
            continue
        data = normalize_node(fragments) or {}
        player_key = data.get("player_key") or find_fragment(fragments[:1], "player_key")
        if not player_key:
            raise StructureMismatchError(
                f"Stats entry has no player_key: {str(fragments)[:200]}"
            )
        values = find_season_block(fragments, season, str(player_key))
        if values is not None:
            result[str(player_key)] = values
    return result


# =============================================================================
# Attaching
# =============================================================================


async def attach_season_stats(
    client: YahooClientProtocol,
    athletes: list[Athlete],
    season: str,
    max_concurrent: int = DEFAULT_MAX_CONCURRENT_BATCHES,
) -> StatsAttachReport:
    """Fetch season stats for athletes and attach validated totals in place.

    Args:
        client: Yahoo API client
        athletes: Athletes from the roster parser
        season: Four-digit season year from the season resolver
        max_concurrent: Maximum batches in flight

    Returns:
        StatsAttachReport with attach and failure counts
    """
    keys = list(dict.fromkeys(athlete.key for athlete in athletes))
    batches = chunk_keys(keys)
    semaphore = asyncio.Semaphore(max_concurrent)

    async def fetch_batch(index: int, batch: list[str]) -> dict[str, dict[str, float]] | None:
        async with semaphore:
            try:
                raw = await client.get_player_stats(batch, season)
                return parse_stats_response(raw, season)
            except BATCH_ERRORS as e:
                logger.warning(
                    f"Stats batch {index + 1}/{len(batches)} failed ({len(batch)} players): "
                    f"{type(e).__name__}: {e}"
                )
                return None

    results = await asyncio.gather(*[fetch_batch(i, b) for i, b in enumerate(batches)])

    stats_by_key: dict[str, dict[str, float]] = {}
    failed_batches = 0
    for batch_stats in results:
        if batch_stats is None:
            failed_batches += 1
            continue
        stats_by_key.update(batch_stats)

    stat_less: list[str] = []
    for athlete in athletes:
        stats = stats_by_key.get(athlete.key)
        if stats:
            athlete.stats = dict(stats)
            athlete.stat_less = False
        else:
            athlete.stats = None
            athlete.stat_less = True
            stat_less.append(athlete.name)

    if stat_less:
        logger.warning(
            f"{len(stat_less)} athlete(s) have no season stats: {', '.join(stat_less)}"
        )
    if failed_batches > len(batches) * 0.5:
        logger.warning(
            f"High failure rate fetching stats: {failed_batches}/{len(batches)} batches failed"
        )

    return StatsAttachReport(
        attached=len(athletes) - len(stat_less),
        stat_less=len(stat_less),
        failed_batches=failed_batches,
        total_batches=len(batches),
    )
