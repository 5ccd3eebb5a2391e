"""Athlete valuation on a 10-99.9 scale.

Pure functions, no I/O. Season totals are turned into a weighted score per
role (skater or goalie), normalized onto the value scale, then blended with
Yahoo's rank (market perception) or, without a rank, with ownership.

Value scale:
- 90+: elite, top-25 by rank
- 75-90: strong starters
- 50-75: rosterable depth
- below 30: replacement level
"""

import logging
import math

from tradr.services.models import Athlete, AthleteRole

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

MIN_VALUE = 10.0
MAX_VALUE = 99.9
NEUTRAL_VALUE = 50.0

SKATER_WEIGHTS: dict[str, float] = {
    "ppp": 1.5,
    "shp": 2.0,
    "gwg": 1.0,
    "plus_minus": 0.8,
    "sog": 0.15,
    "hits": 0.25,
    "blocks": 0.3,
    "pim": -0.05,
}
GOALS_WEIGHT = 4.0
ASSISTS_WEIGHT = 3.0
POINTS_WEIGHT = 3.4  # only when goals and assists are both unavailable
FACEOFF_WINS_WEIGHT = 0.1  # centers only
CENTER_POSITION = "C"
DUAL_POSITION_BONUS = 2.0
MULTI_POSITION_BONUS = 3.5

GOALIE_WEIGHTS: dict[str, float] = {
    "wins": 3.5,
    "shutouts": 4.0,
    "games_started": 0.3,
    "saves": 0.02,
    "goals_against": -0.1,
}
SAVE_PCT_BASELINE = 85.0
SAVE_PCT_WEIGHT = 2.0
GAA_BASELINE = 3.0
GAA_WEIGHT = 8.0

# Normalization: value = raw / divisor + offset
SKATER_DIVISOR, SKATER_OFFSET = 2.5, 20.0
GOALIE_DIVISOR, GOALIE_OFFSET = 2.0, 15.0

# Blend weights (stat share, rank share)
SKATER_RANK_BLEND = (0.60, 0.40)
GOALIE_RANK_BLEND = (0.65, 0.35)
OWNERSHIP_BLEND = (0.80, 0.20)

PERCENT_START_FACTOR = 0.8
PERCENT_OWNED_FACTOR = 0.6
PERCENT_OWNED_CAP = 80.0

# Rank tiers: (last rank in tier, value at first rank in tier, drop per rank)
RANK_TIERS: list[tuple[int, float, float]] = [
    (5, 99.9, 0.35),  # ranks 1-5
    (10, 98.0, 0.30),  # ranks 6-10
    (25, 96.0, 0.33),  # ranks 11-25
    (50, 90.5, 0.34),  # ranks 26-50
    (100, 81.5, 0.35),  # ranks 51-100
    (200, 63.5, 0.255),  # ranks 101-200
    (500, 37.5, 0.092),  # ranks 201-500
]

SKATER_STAT_KEYS = frozenset(
    {"goals", "assists", "points", "ppp", "shp", "gwg", "plus_minus", "sog", "fw", "hits", "blocks", "pim"}
)
GOALIE_STAT_KEYS = frozenset(
    {"wins", "losses", "shutouts", "saves", "shots_against", "save_pct", "gaa", "goals_against", "games_started"}
)


# =============================================================================
# Helpers
# =============================================================================


def clamp_value(value: float) -> float:
    """Clamp to the value scale; non-finite input falls to the floor."""
    if not math.isfinite(value):
        return MIN_VALUE
    return max(MIN_VALUE, min(MAX_VALUE, value))


def _stat(line: dict[str, float], key: str) -> float | None:
    value = line.get(key)
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


# =============================================================================
# Stat-based Values
# =============================================================================


def skater_stat_value(stat_line: dict[str, float], positions: tuple[str, ...] = ()) -> float:
    """Weighted skater score normalized onto the value scale.

    Args:
        stat_line: Semantic season totals (goals, assists, ppp, ...).
        positions: Eligible position codes; drive the faceoff and flexibility terms.

    Returns:
        Stat-only value in [10, 99.9].
    """
    goals = _stat(stat_line, "goals")
    assists = _stat(stat_line, "assists")

    raw = 0.0
    if goals is not None:
        raw += goals * GOALS_WEIGHT
    if assists is not None:
        raw += assists * ASSISTS_WEIGHT
    if goals is None and assists is None:
        points = _stat(stat_line, "points")
        if points is not None:
            raw += points * POINTS_WEIGHT

    for key, weight in SKATER_WEIGHTS.items():
        value = _stat(stat_line, key)
        if value is not None:
            raw += value * weight

    if CENTER_POSITION in positions:
        faceoff_wins = _stat(stat_line, "fw")
        if faceoff_wins is not None:
            raw += faceoff_wins * FACEOFF_WINS_WEIGHT

    position_count = len(set(positions))
    if position_count >= 3:
        raw += MULTI_POSITION_BONUS
    elif position_count == 2:
        raw += DUAL_POSITION_BONUS

    return clamp_value(raw / SKATER_DIVISOR + SKATER_OFFSET)


def save_percentage(stat_line: dict[str, float]) -> float | None:
    """Save percentage as a fraction.

    Recomputed from saves / shots against whenever both counts exist; the
    provider's (pre-rounded) percentage is used only otherwise, and values
    given as percentages (e.g. 91.5) are converted to fractions.
    """
    saves = _stat(stat_line, "saves")
    shots_against = _stat(stat_line, "shots_against")
    if saves is not None and shots_against is not None and shots_against > 0:
        return saves / shots_against

    provided = _stat(stat_line, "save_pct")
    if provided is None:
        return None
    return provided / 100 if provided > 1 else provided


def goalie_stat_value(stat_line: dict[str, float]) -> float:
    """Weighted goalie score normalized onto the value scale."""
    raw = 0.0
    for key, weight in GOALIE_WEIGHTS.items():
        value = _stat(stat_line, key)
        if value is not None:
            raw += value * weight

    svp = save_percentage(stat_line)
    if svp is not None and svp > 0:
        raw += max(0.0, (svp * 100 - SAVE_PCT_BASELINE) * SAVE_PCT_WEIGHT)

    gaa = _stat(stat_line, "gaa")
    if gaa is not None and gaa > 0:
        # Negative when GAA is above the baseline
        raw += (GAA_BASELINE - gaa) * GAA_WEIGHT

    return clamp_value(raw / GOALIE_DIVISOR + GOALIE_OFFSET)


# =============================================================================
# Market Signals
# =============================================================================


def rank_calibrated_value(rank: int) -> float:
    """Map a Yahoo rank onto the value scale.

    Piecewise linear and non-increasing: rank 1 is 99.9, ranks past 500
    sit at the 10.0 floor.
    """
    if rank <= 1:
        return MAX_VALUE
    first_rank = 1
    for last_rank, start_value, step in RANK_TIERS:
        if rank <= last_rank:
            return clamp_value(start_value - (rank - first_rank) * step)
        first_rank = last_rank + 1
    return MIN_VALUE


def ownership_value(
    percent_start: float | None, percent_owned: float | None
) -> float | None:
    """Value implied by ownership: percent started preferred, percent owned capped at 80."""
    if percent_start is not None and percent_start > 0:
        return min(MAX_VALUE, percent_start * PERCENT_START_FACTOR)
    if percent_owned is not None and percent_owned > 0:
        return min(PERCENT_OWNED_CAP, percent_owned * PERCENT_OWNED_FACTOR)
    return None


# =============================================================================
# Role Resolution
# =============================================================================


def resolve_role(athlete: Athlete) -> AthleteRole:
    """Role used for valuation.

    Position (resolved at parse time) is authoritative. Stat presence is
    only consulted when no position is known, and any disagreement with
    position is logged rather than acted on.
    """
    line = athlete.stat_line or {}
    has_goalie_stats = any(key in line for key in GOALIE_STAT_KEYS)
    has_skater_stats = any(key in line for key in SKATER_STAT_KEYS)

    if athlete.role is not None:
        if athlete.role is AthleteRole.SKATER and has_goalie_stats and not has_skater_stats:
            logger.warning(
                f"{athlete.name} is listed at {athlete.position} but has only goalie stats; "
                "valuing as skater"
            )
        elif athlete.role is AthleteRole.GOALIE and has_skater_stats and not has_goalie_stats:
            logger.warning(
                f"{athlete.name} is listed at {athlete.position} but has only skater stats; "
                "valuing as goalie"
            )
        return athlete.role

    inferred = (
        AthleteRole.GOALIE if has_goalie_stats and not has_skater_stats else AthleteRole.SKATER
    )
    logger.warning(
        f"{athlete.name} has no eligible position; role inferred as {inferred.value} from stats"
    )
    return inferred


# =============================================================================
# Final Value
# =============================================================================


def compute_value(athlete: Athlete) -> float:
    """Compute an athlete's value in [10, 99.9], rounded to one decimal.

    With a stat line: stat value blended with rank (60/40 skaters, 65/35
    goalies), or 80/20 with ownership when unranked, or stat value alone.
    Without stats: rank curve, else ownership, else a neutral 50.
    """
    rank = athlete.rank if athlete.rank is not None and athlete.rank > 0 else None
    market = ownership_value(athlete.percent_start, athlete.percent_owned)

    if not athlete.stat_line:
        if rank is not None:
            value = rank_calibrated_value(rank)
        elif market is not None:
            value = market
        else:
            value = NEUTRAL_VALUE
        return round(clamp_value(value), 1)

    role = resolve_role(athlete)
    if role is AthleteRole.GOALIE:
        stat_value = goalie_stat_value(athlete.stat_line)
        stat_share, rank_share = GOALIE_RANK_BLEND
    else:
        stat_value = skater_stat_value(athlete.stat_line, athlete.positions)
        stat_share, rank_share = SKATER_RANK_BLEND

    if rank is not None:
        value = stat_share * stat_value + rank_share * rank_calibrated_value(rank)
    elif market is not None:
        own_share, market_share = OWNERSHIP_BLEND
        value = own_share * stat_value + market_share * market
    else:
        value = stat_value
    return round(clamp_value(value), 1)
