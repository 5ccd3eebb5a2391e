"""Roster import from text copied out of a Yahoo team page.

The page is pasted as plain text, one athlete per line, under a
"Forwards/Defensemen roster" or "Goaltenders roster" heading. A row reads
roughly:

    C   Macklin Celebrini Player Note  SJ - C  @ANA 7:00 pm  25  12  85%  90%  10 15 25 3 4 ...

That is: roster slot, name, "TEAM - POSITIONS", opponent and game time,
pre-season and current rank, % started, % rostered, then stat columns in
the order Yahoo shows them. Rows that cannot be read are skipped; the
paste is user input, so nothing here raises on malformed text.
"""

import logging
import re
from enum import Enum

from tradr.services.models import Athlete, AthleteRole
from tradr.services.normalize import safe_float, safe_int
from tradr.services.roster import NON_PLAYING_SLOTS, parse_status, role_from_positions
from tradr.services.valuation import compute_value

logger = logging.getLogger(__name__)

SKATER_SECTION_HEADING = "Forwards/Defensemen roster"
GOALIE_SECTION_HEADING = "Goaltenders roster"

# Page furniture copied along with the roster rows
NOISE_MARKERS = (
    "Rankings",
    "Fantasy",
    "Starting Lineup Totals",
    "Details",
    "Goaltender Appearances",
    "Team analysis",
    "Yahoo Sports",
)

# Stat columns in page order; "-" marks an empty cell and keeps its column
SKATER_COLUMNS = (
    "goals", "assists", "points", "plus_minus", "pim", "ppp",
    "shp", "gwg", "sog", "fw", "hits", "blocks",
)
GOALIE_COLUMNS = (
    "games_started", "wins", "losses", "goals_against", "gaa",
    "saves", "shots_against", "save_pct", "shutouts",
)

KEY_PREFIX = "text"

_SLOT = re.compile(r"^(IR-LT|IR\+|IR|Util|BN|NA|LW|RW|C|D|G)\s+")
_COLUMN_HEADER = re.compile(r"^Pos\s+")
# A name word starts upper case and holds a lower-case letter ("McDavid", "O'Reilly")
_NAME_WORD = r"[A-Z][A-Za-z'.-]*[a-z][A-Za-z'.-]*"
_NAME = re.compile(rf"{_NAME_WORD}(?:\s+{_NAME_WORD})+")
_PLAYER_NOTE = re.compile(r"(No new player Notes|New Player Note|Player Note)", re.IGNORECASE)
_TEAM_AND_POSITIONS = re.compile(r"\b([A-Z]{2,3})\s+-\s+([A-Z]{1,2}(?:\s*,\s*[A-Z]{1,2})*)\b")
_TEAM_ONLY = re.compile(r"^\s*([A-Z]{2,3})\b")
_STATUS = re.compile(r"(?<![\w-])(IR-LT|IR\+|IR|DTD|GTD|OUT|SUSP)(?![\w+-])")


class _Section(str, Enum):
    SKATERS = "skaters"
    GOALIES = "goalies"


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def _split_columns(tokens: list[str]) -> tuple[int | None, list[str], list[str]]:
    """Split the tokens after the team into (rank, percent tokens, stat tokens).

    The first run of "NN%" tokens separates the rank columns from the stats.
    The current rank is the last whole number before that run.
    """
    start = next((i for i, token in enumerate(tokens) if token.endswith("%")), None)
    if start is None:
        return None, [], []

    end = start
    while end < len(tokens) and tokens[end].endswith("%") and end - start < 2:
        end += 1

    rank = None
    for token in reversed(tokens[:start]):
        if token.isdigit():
            rank = safe_int(token)
            break
    return rank, tokens[start:end], tokens[end:]


def _stat_line(tokens: list[str], role: AthleteRole | None) -> dict[str, float]:
    columns = GOALIE_COLUMNS if role is AthleteRole.GOALIE else SKATER_COLUMNS
    line: dict[str, float] = {}
    for name, token in zip(columns, tokens):
        value = safe_float(token.rstrip("%"))
        if value is not None:
            line[name] = value
    return line


def parse_roster_line(line: str, section: _Section, index: int) -> Athlete | None:
    """Read one roster row, or return None if it is not an athlete row."""
    slot_match = _SLOT.match(line)
    if not slot_match:
        return None
    slot = slot_match.group(1)
    rest = _PLAYER_NOTE.sub(" ", line[slot_match.end():])

    name_match = _NAME.search(rest)
    if not name_match:
        return None
    name = name_match.group(0)
    after_name = rest[name_match.end():]

    team_match = _TEAM_AND_POSITIONS.search(after_name)
    if team_match:
        team = team_match.group(1)
        codes = [code.strip() for code in team_match.group(2).split(",")]
        tail = after_name[team_match.end():]
    else:
        team_only = _TEAM_ONLY.match(after_name)
        if not team_only:
            return None
        team = team_only.group(1)
        codes = [slot]
        tail = after_name[team_only.end():]

    positions = tuple(
        dict.fromkeys(code for code in codes if code and code not in NON_PLAYING_SLOTS)
    )
    role = role_from_positions(positions)
    if role is None and section is _Section.GOALIES:
        role = AthleteRole.GOALIE

    # A status printed in the row wins over an IR or NA roster slot
    status_match = _STATUS.search(rest)
    status = parse_status(status_match.group(1) if status_match else slot)

    rank, percents, stat_tokens = _split_columns(tail.split())
    percent_start = safe_float(percents[0].rstrip("%")) if percents else None
    percent_owned = safe_float(percents[1].rstrip("%")) if len(percents) > 1 else None
    stat_line = _stat_line(stat_tokens, role)

    athlete = Athlete(
        key=f"{KEY_PREFIX}.{team.lower()}.{_slug(name)}.{index}",
        name=name,
        positions=positions,
        team_abbr=team,
        status=status,
        role=role,
        rank=rank if rank is not None and rank > 0 else None,
        percent_start=percent_start,
        percent_owned=percent_owned,
        stat_line=stat_line or None,
        stat_less=not stat_line,
    )
    athlete.value = compute_value(athlete)
    return athlete


def parse_roster_text(text: str) -> list[Athlete]:
    """Parse a pasted Yahoo roster page into valued athletes.

    Rows before the first section heading are ignored, as are headings,
    column headers, totals and other page text. Athletes come back in page
    order with a stat line read from the visible columns and a value.
    """
    athletes: list[Athlete] = []
    section: _Section | None = None
    skipped = 0

    for index, raw_line in enumerate(text.splitlines()):
        line = raw_line.strip()
        if not line:
            continue
        if SKATER_SECTION_HEADING in line:
            section = _Section.SKATERS
            continue
        if GOALIE_SECTION_HEADING in line:
            section = _Section.GOALIES
            continue
        if section is None or _COLUMN_HEADER.match(line):
            continue
        if any(marker in line for marker in NOISE_MARKERS):
            continue

        athlete = parse_roster_line(line, section, index)
        if athlete is None:
            skipped += 1
            logger.debug(f"Skipped unreadable roster line: {line!r}")
            continue
        athletes.append(athlete)

    logger.info(f"Parsed {len(athletes)} athletes from roster text ({skipped} lines skipped)")
    return athletes
