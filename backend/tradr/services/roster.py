"""Roster parsing: turns a ``team/{key}/roster`` response into athletes.

Athletes come out with identity, positions, status, ownership and rank.
Statistics are attached later by the stats attacher.
"""

import logging
from typing import Any

from tradr.services.errors import EmptyRosterError, StructureMismatchError
from tradr.services.models import Athlete, AthleteRole, AthleteStatus
from tradr.services.normalize import (
    find_first_path,
    find_fragment,
    indexed_values,
    merge_fragments,
    normalize_node,
    safe_float,
    safe_int,
)

logger = logging.getLogger(__name__)

# Roster locations seen across Yahoo response versions
ROSTER_PATHS = [
    "fantasy_content.team.1.roster",
    "fantasy_content.team.0.roster",
    "fantasy_content.team.roster",
]

# Player collection locations relative to the roster node
PLAYERS_PATHS = ["0.players", "players"]
SINGLE_PLAYER_PATHS = ["0.player", "player"]

# Roster slots that are not playing positions
NON_PLAYING_SLOTS = {"Util", "BN", "IR", "IR+", "IR-LT", "NA"}

GOALIE_POSITION = "G"

# =============================================================================
# Status and Positions
# =============================================================================

_STATUS_CODES: dict[str, AthleteStatus] = {
    "IR-LT": AthleteStatus.LONG_TERM_IR,
    "LTIR": AthleteStatus.LONG_TERM_IR,
    "IR": AthleteStatus.INJURED_RESERVE,
    "IR+": AthleteStatus.INJURED_RESERVE,
    "DTD": AthleteStatus.DAY_TO_DAY,
    "GTD": AthleteStatus.DAY_TO_DAY,
    "O": AthleteStatus.OUT,
    "OUT": AthleteStatus.OUT,
    "SUSP": AthleteStatus.OUT,
    "NA": AthleteStatus.OUT,
    "INJ": AthleteStatus.OUT,
}


def parse_status(
    status: str | None, status_full: str | None = None, injury_note: str | None = None
) -> AthleteStatus:
    """Map Yahoo's status strings to an AthleteStatus.

    An injury note without a recognized status means day-to-day.
    """
    if status:
        code = status.strip().upper()
        if code in _STATUS_CODES:
            return _STATUS_CODES[code]
    if status_full:
        text = status_full.lower()
        if "long-term" in text or "long term" in text:
            return AthleteStatus.LONG_TERM_IR
        if "injured reserve" in text:
            return AthleteStatus.INJURED_RESERVE
        if "day-to-day" in text or "day to day" in text:
            return AthleteStatus.DAY_TO_DAY
        if "out" in text or "suspended" in text:
            return AthleteStatus.OUT
    if injury_note:
        return AthleteStatus.DAY_TO_DAY
    return AthleteStatus.HEALTHY


def parse_positions(data: dict[str, Any]) -> tuple[str, ...]:
    """Eligible playing positions in Yahoo order, without duplicates or roster slots."""
    positions: list[str] = []
    raw = data.get("eligible_positions")
    for item in raw if isinstance(raw, list) else [raw]:
        code = item.get("position") if isinstance(item, dict) else item
        if isinstance(code, str):
            code = code.strip()
            if code and code not in NON_PLAYING_SLOTS and code not in positions:
                positions.append(code)

    if not positions:
        display = data.get("display_position")
        if isinstance(display, str):
            for code in display.split(","):
                code = code.strip()
                if code and code not in NON_PLAYING_SLOTS and code not in positions:
                    positions.append(code)
    return tuple(positions)


def role_from_positions(positions: tuple[str, ...]) -> AthleteRole | None:
    """Goalie if eligible at G, skater for any other position, None when unknown."""
    if not positions:
        return None
    if GOALIE_POSITION in positions:
        return AthleteRole.GOALIE
    return AthleteRole.SKATER


# =============================================================================
# Ownership and Rank
# =============================================================================


def _percent(node: Any) -> float | None:
    """Read a percent value from a scalar or a ``percent_owned`` style sub-resource."""
    if node is None:
        return None
    if isinstance(node, (int, float, str)):
        return safe_float(node)
    value = find_fragment(node, "value")
    return safe_float(value)


def _rank(fragments: list[Any], data: dict[str, Any], ownership: Any) -> int | None:
    ranks = find_fragment(fragments, "player_ranks")
    for entry in indexed_values(ranks):
        rank_node = find_fragment(entry, "player_rank")
        rank = safe_int(find_fragment(rank_node, "rank_value"))
        if rank is not None and rank > 0:
            return rank

    rank = safe_int(data.get("rank"))
    if rank is None and isinstance(ownership, dict):
        rank = safe_int(ownership.get("value"))
    return rank if rank is not None and rank > 0 else None


# =============================================================================
# Player Extraction
# =============================================================================


def _player_fragments(entry: Any) -> list[Any] | None:
    """Return the fragment array describing one player, whatever wrapper it came in."""
    if isinstance(entry, dict):
        if "player" in entry:
            player = entry["player"]
            return player if isinstance(player, list) else [player]
        if "player_key" in entry:
            return [entry]
        return None
    if isinstance(entry, list):
        return entry
    return None


def _collection_entries(players: Any) -> list[Any]:
    if isinstance(players, dict) and "player" in players:
        return [players]
    return list(indexed_values(players))


def flatten_player_entries(roster: Any) -> list[list[Any]]:
    """Collect the fragment arrays of every player in a roster node.

    Tolerates ``players`` as a list, as a dict keyed by index, and a single
    nested ``player`` object, either directly on the roster or under one of
    its indexed entries.
    """
    players = find_first_path(roster, PLAYERS_PATHS)
    if players is not None:
        candidates = _collection_entries(players)
    else:
        single = find_first_path(roster, SINGLE_PLAYER_PATHS)
        if single is not None:
            candidates = [{"player": single}]
        else:
            candidates = []
            for entry in indexed_values(roster):
                nested = find_first_path(entry, PLAYERS_PATHS)
                if nested is not None:
                    candidates.extend(_collection_entries(nested))

    entries: list[list[Any]] = []
    for candidate in candidates:
        fragments = _player_fragments(candidate)
        if fragments:
            entries.append(fragments)
    return entries


def parse_player(fragments: list[Any]) -> Athlete:
    """Build an Athlete from one player's fragment array.

    Raises:
        StructureMismatchError: If the player has no player_key.
    """
    data = normalize_node(fragments) or {}
    if fragments and isinstance(fragments[0], dict):
        # Identity fragments can also sit flat in the top-level array
        data = merge_fragments(fragments)
    player_key = data.get("player_key")
    if not player_key:
        raise StructureMismatchError(
            f"Roster player entry has no player_key: {str(fragments)[:200]}"
        )

    name_node = data.get("name")
    if isinstance(name_node, dict):
        name = name_node.get("full") or "Unknown Player"
    else:
        name = str(name_node) if name_node else "Unknown Player"

    positions = parse_positions(data)
    ownership = find_fragment(fragments, "ownership")
    percent_owned = _percent(find_fragment(fragments, "percent_owned"))
    percent_start = _percent(find_fragment(fragments, "percent_started"))
    if isinstance(ownership, dict):
        if percent_owned is None:
            percent_owned = safe_float(ownership.get("percent_owned"))
        if percent_start is None:
            percent_start = safe_float(ownership.get("percent_start"))

    injury_note = data.get("injury_note") or None
    return Athlete(
        key=str(player_key),
        name=name,
        positions=positions,
        team_abbr=str(data.get("editorial_team_abbr") or data.get("team_abbr") or ""),
        status=parse_status(data.get("status"), data.get("status_full"), injury_note),
        role=role_from_positions(positions),
        injury_note=injury_note,
        rank=_rank(fragments, data, ownership),
        percent_start=percent_start,
        percent_owned=percent_owned,
    )


def parse_roster(raw: dict[str, Any]) -> list[Athlete]:
    """Parse a team roster response into athletes without statistics.

    Raises:
        EmptyRosterError: If the roster cannot be located or yields no athletes.
        StructureMismatchError: If a player entry lacks a player_key.
    """
    roster = find_first_path(raw, ROSTER_PATHS)
    if roster is None:
        raise EmptyRosterError(
            "No roster found in team response after trying every known shape"
        )

    athletes = [parse_player(fragments) for fragments in flatten_player_entries(roster)]
    if not athletes:
        raise EmptyRosterError(
            "Roster parsed to 0 athletes; treating as a parsing failure, not an empty team"
        )
    logger.debug(f"Parsed {len(athletes)} athletes from roster")
    return athletes
