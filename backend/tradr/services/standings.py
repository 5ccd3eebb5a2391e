"""League teams and win/loss/tie standings.

Standings resolution is fail-fast: every team ends with a complete record
or the whole sync fails. A team showing 0-0-0 because parsing missed its
record would be indistinguishable from a team that has not played yet.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from tenacity import RetryError

from tradr.services.errors import (
    NoTeamsError,
    StandingsUnresolvedError,
    StructureMismatchError,
    YahooApiError,
)
from tradr.services.models import TeamRecord
from tradr.services.normalize import (
    find_first_path,
    find_fragment,
    indexed_values,
    normalize_node,
    safe_int,
)
from tradr.services.yahoo_client import YahooClientProtocol

logger = logging.getLogger(__name__)

TEAMS_PATHS = [
    "fantasy_content.league.1.teams",
    "fantasy_content.league.0.teams",
    "fantasy_content.league.teams",
]

STANDINGS_PATHS = [
    "fantasy_content.league.1.standings.0.teams",
    "fantasy_content.league.1.standings.teams",
    "fantasy_content.league.1.standings",
    "fantasy_content.league.standings",
]

# Locations of the outcome totals inside one team's fragment array
OUTCOME_PATHS = [
    "2.team_standings.outcome_totals",
    "1.team_standings.outcome_totals",
    "0.team_standings.outcome_totals",
]


@dataclass(slots=True)
class TeamEntry:
    """A league team as listed by the league resource, before rosters are loaded."""

    key: str
    name: str
    owner: str | None = None
    record: TeamRecord | None = None
    rank: int | None = None


# =============================================================================
# Record Extraction
# =============================================================================


def _outcome_count(totals: dict[str, Any], plural: str, singular: str) -> int | None:
    value = totals.get(plural, totals.get(singular))
    count = safe_int(value)
    if count is None or count < 0:
        return None
    return count


def record_from_outcome_totals(totals: Any) -> TeamRecord | None:
    """Build a record only when wins, losses and ties are all present."""
    if not isinstance(totals, dict):
        return None
    wins = _outcome_count(totals, "wins", "win")
    losses = _outcome_count(totals, "losses", "loss")
    ties = _outcome_count(totals, "ties", "tie")
    if wins is None or losses is None or ties is None:
        return None
    return TeamRecord(wins=wins, losses=losses, ties=ties)


def extract_record(team_fragments: Any) -> TeamRecord | None:
    """Read a team's record from its own fragment array, or None if absent or partial."""
    totals = find_first_path(team_fragments, OUTCOME_PATHS)
    if totals is None:
        standings = find_fragment(team_fragments, "team_standings")
        if isinstance(standings, dict):
            totals = standings.get("outcome_totals")
        else:
            totals = find_fragment(team_fragments, "outcome_totals")
    return record_from_outcome_totals(totals)


def _extract_rank(team_fragments: Any) -> int | None:
    standings = find_fragment(team_fragments, "team_standings")
    if isinstance(standings, dict):
        rank = safe_int(standings.get("rank"))
        if rank is not None and rank > 0:
            return rank
    return None


def _extract_owner(data: dict[str, Any]) -> str | None:
    for manager_entry in indexed_values(data.get("managers")):
        manager = manager_entry.get("manager") if isinstance(manager_entry, dict) else None
        if isinstance(manager, dict) and manager.get("nickname"):
            return str(manager["nickname"])
    return None


def _team_fragments(entry: Any) -> list[Any] | None:
    if isinstance(entry, dict) and "team" in entry:
        team = entry["team"]
        return team if isinstance(team, list) else [team]
    if isinstance(entry, list):
        return entry
    return None


# =============================================================================
# Response Parsing
# =============================================================================


def parse_league_teams(raw: dict[str, Any]) -> list[TeamEntry]:
    """Parse a ``league/{key}/teams`` response.

    Raises:
        StructureMismatchError: If a team has no team_key.
        NoTeamsError: If the response yields zero teams.
    """
    teams_node = find_first_path(raw, TEAMS_PATHS)
    entries: list[TeamEntry] = []
    for item in indexed_values(teams_node):
        fragments = _team_fragments(item)
        if fragments is None:
            continue
        data = normalize_node(fragments) or {}
        team_key = data.get("team_key")
        if not team_key:
            raise StructureMismatchError(
                f"League team entry has no team_key: {str(fragments)[:200]}"
            )
        entries.append(
            TeamEntry(
                key=str(team_key),
                name=str(data.get("name") or team_key),
                owner=_extract_owner(data),
                record=extract_record(fragments),
                rank=_extract_rank(fragments),
            )
        )

    if not entries:
        raise NoTeamsError("League response contained no teams")
    return entries


def parse_standings_response(raw: dict[str, Any]) -> dict[str, TeamRecord]:
    """Parse a ``league/{key}/standings`` response into team_key -> record.

    Teams whose record is missing or partial are left out.
    """
    records: dict[str, TeamRecord] = {}
    standings = find_first_path(raw, STANDINGS_PATHS)
    for item in indexed_values(standings):
        fragments = _team_fragments(item)
        if fragments is None:
            continue
        data = normalize_node(fragments) or {}
        team_key = data.get("team_key")
        record = extract_record(fragments)
        if team_key and record is not None:
            records[str(team_key)] = record
    return records


# =============================================================================
# Resolution
# =============================================================================


async def resolve_standings(
    client: YahooClientProtocol,
    league_key: str,
    entries: list[TeamEntry],
) -> dict[str, TeamRecord]:
    """Resolve a complete record for every team in the league.

    Records found in the teams response are used first. If any team is
    missing one, a single standings request fills the gaps.

    Returns:
        team_key -> TeamRecord for every entry.

    Raises:
        StandingsUnresolvedError: If any team still lacks a record.
    """
    records = {entry.key: entry.record for entry in entries if entry.record is not None}
    missing = [entry for entry in entries if entry.key not in records]
    if not missing:
        return records

    logger.info(
        f"{len(missing)} team(s) in {league_key} have no record in the teams response, "
        "querying league standings"
    )
    try:
        fallback = parse_standings_response(await client.get_league_standings(league_key))
    except (YahooApiError, httpx.HTTPError, RetryError) as e:
        logger.error(f"League standings request failed for {league_key}: {e}")
        raise StandingsUnresolvedError([entry.name for entry in missing]) from e

    for entry in missing:
        record = fallback.get(entry.key)
        if record is not None:
            records[entry.key] = record

    unresolved = [entry.name for entry in entries if entry.key not in records]
    if unresolved:
        logger.error(f"Standings unresolved in {league_key}: {', '.join(unresolved)}")
        raise StandingsUnresolvedError(unresolved)
    return records
