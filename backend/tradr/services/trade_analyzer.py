"""Trade analysis: compares two sides of valued athletes and draft picks.

Side A is what the user gives up, side B what they receive. Pure functions;
athletes must already carry values from the value calculator.
"""

import math
from collections import Counter

from tradr.services.models import Athlete, SideAnalysis, Trade, TradeAnalysis, TradeSide

# =============================================================================
# Thresholds
# =============================================================================

ELITE_VALUE = 75.0
MID_TIER_VALUE = 50.0
HIGH_AVERAGE_VALUE = 60.0
LOW_AVERAGE_VALUE = 40.0
LOW_VALUE = 30.0
VERY_LOW_VALUE = 15.0
MIN_MID_TIER_COUNT = 2
DIVERSE_POSITION_COUNT = 3
CONCENTRATION_SHARE = 0.6
MIN_NEEDS_ROSTER = 3

ACCEPT_PCT = 5.0
DECLINE_PCT = 15.0
EQUAL_VALUE_GAP = 1.0
EQUAL_POINTS_GAP = 1.0

MIN_CONFIDENCE = 50
MAX_CONFIDENCE = 95
PROJECTION_CONFIDENCE_BONUS = 5

FORWARD_POSITIONS = {"C", "LW", "RW", "F"}
DEFENSE_POSITIONS = {"D"}
GOALIE_POSITIONS = {"G"}

ACCEPT = "accept"
COUNTER = "counter"
DECLINE = "decline"


# =============================================================================
# Side Analysis
# =============================================================================


def _value(athlete: Athlete) -> float:
    return athlete.value or 0.0


def _primary_position(athlete: Athlete) -> str:
    return athlete.positions[0] if athlete.positions else "N/A"


def positional_value(athletes: list[Athlete]) -> dict[str, float]:
    """Sum athlete values per primary position."""
    buckets: dict[str, float] = {}
    for athlete in athletes:
        position = _primary_position(athlete)
        buckets[position] = buckets.get(position, 0.0) + _value(athlete)
    return buckets


def projected_points(athletes: list[Athlete]) -> float | None:
    """Season points proxy: points (or goals + assists) over athletes with a stat line.

    None when no athlete on the side has a stat line.
    """
    total = 0.0
    seen = False
    for athlete in athletes:
        line = athlete.stat_line
        if not line:
            continue
        seen = True
        if "points" in line:
            total += line["points"]
        else:
            total += line.get("goals", 0.0) + line.get("assists", 0.0)
    return total if seen else None


def identify_needs(athletes: list[Athlete]) -> list[str]:
    """Position groups with no coverage on a side of three or more athletes."""
    if len(athletes) < MIN_NEEDS_ROSTER:
        return []
    covered = {code for athlete in athletes for code in athlete.positions}
    needs = []
    if not covered & FORWARD_POSITIONS:
        needs.append("Forward depth")
    if not covered & DEFENSE_POSITIONS:
        needs.append("Defensive depth")
    if not covered & GOALIE_POSITIONS:
        needs.append("Goaltending")
    return needs


def identify_strengths(athletes: list[Athlete]) -> list[str]:
    strengths: list[str] = []
    values = [_value(a) for a in athletes if _value(a) > 0]
    if not values:
        return strengths

    average = sum(values) / len(values)
    elite = [a for a in athletes if _value(a) > ELITE_VALUE]
    mid_tier = [a for a in athletes if MID_TIER_VALUE < _value(a) <= ELITE_VALUE]

    if elite:
        strengths.append(f"Elite players: {', '.join(a.name for a in elite)}")
    if len(mid_tier) >= MIN_MID_TIER_COUNT:
        strengths.append(f"Solid depth with {len(mid_tier)} quality players")
    if average > HIGH_AVERAGE_VALUE:
        strengths.append(f"High average player value ({average:.1f})")

    positions = {_primary_position(a) for a in athletes}
    if len(positions) >= DIVERSE_POSITION_COUNT:
        strengths.append(f"Good positional diversity across {len(positions)} positions")
    return strengths


def identify_weaknesses(athletes: list[Athlete]) -> list[str]:
    if not athletes:
        return ["No players in this side"]

    values = [_value(a) for a in athletes if _value(a) > 0]
    if not values:
        return ["No player values available"]

    weaknesses: list[str] = []
    average = sum(values) / len(values)
    very_low = [a for a in athletes if _value(a) < VERY_LOW_VALUE]
    low = [a for a in athletes if _value(a) < LOW_VALUE]

    if very_low:
        weaknesses.append(f"Very low-value players: {', '.join(a.name for a in very_low)}")
    elif low:
        weaknesses.append(f"{len(low)} players with below-average value")

    if average < LOW_AVERAGE_VALUE and len(athletes) > 1:
        weaknesses.append(f"Low average player value ({average:.1f})")

    if len(athletes) > 1 and not any(_value(a) > ELITE_VALUE for a in athletes):
        weaknesses.append("Lacks elite/top-tier players")

    if len(athletes) > 2:
        counts = Counter(_primary_position(a) for a in athletes)
        if max(counts.values()) >= len(athletes) * CONCENTRATION_SHARE:
            weaknesses.append("Heavy concentration at single position")
    return weaknesses


def analyze_side(side: TradeSide) -> SideAnalysis:
    """Summarize one trade side. Pick values count toward total value only."""
    athletes = side.athletes
    total = sum(_value(a) for a in athletes) + sum(pick.value for pick in side.picks)
    return SideAnalysis(
        total_value=total,
        positional_value=positional_value(athletes),
        projected_points=projected_points(athletes),
        needs=identify_needs(athletes),
        strengths=identify_strengths(athletes),
        weaknesses=identify_weaknesses(athletes),
    )


# =============================================================================
# Recommendation and Confidence
# =============================================================================


def value_gap(side_a: SideAnalysis, side_b: SideAnalysis) -> tuple[float, float, float]:
    """Return (diff, larger total floored at 1, percentage differential)."""
    diff = side_a.total_value - side_b.total_value
    larger = max(side_a.total_value, side_b.total_value, 1.0)
    return diff, larger, abs(diff) * 100 / larger


def determine_recommendation(side_a: SideAnalysis, side_b: SideAnalysis) -> str:
    """Accept within 5%, decline beyond 15% either way, counter in between."""
    diff, larger, _pct = value_gap(side_a, side_b)
    # Cross-multiplied so the 5% and 15% boundaries compare exactly
    if abs(diff) * 100 <= ACCEPT_PCT * larger:
        return ACCEPT
    if abs(diff) * 100 > DECLINE_PCT * larger:
        return DECLINE
    return COUNTER


def calculate_confidence(side_a: SideAnalysis, side_b: SideAnalysis) -> int:
    """Confidence in [50, 95]; larger value gaps give more confident calls."""
    larger = max(side_a.total_value, side_b.total_value)
    if larger <= 0:
        return MIN_CONFIDENCE

    pct = abs(side_a.total_value - side_b.total_value) * 100 / larger
    if pct > 15:
        confidence = 85 + min(10.0, (pct - 15) / 2)
    elif pct > 10:
        confidence = 75 + (pct - 10) * 2
    elif pct > 5:
        confidence = 60 + (pct - 5) * 3
    else:
        confidence = 50 + pct * 2

    if side_a.projected_points is not None and side_b.projected_points is not None:
        confidence += PROJECTION_CONFIDENCE_BONUS

    # Round half up
    return int(min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, math.floor(confidence + 0.5))))


# =============================================================================
# Reasoning
# =============================================================================


def generate_reasoning(
    side_a: SideAnalysis, side_b: SideAnalysis, recommendation: str
) -> list[str]:
    """Ordered statements: value gap, projected points, positions, quality, verdict."""
    reasoning: list[str] = []
    diff, _larger, pct = value_gap(side_a, side_b)

    if abs(diff) < EQUAL_VALUE_GAP:
        reasoning.append("Trade is essentially equal in total value")
    else:
        leader = "A" if diff > 0 else "B"
        reasoning.append(f"Side {leader} has {abs(diff):.1f} more value ({pct:.1f}% advantage)")

    if side_a.projected_points is not None and side_b.projected_points is not None:
        points_diff = side_a.projected_points - side_b.projected_points
        if abs(points_diff) > EQUAL_POINTS_GAP:
            leader = "A" if points_diff > 0 else "B"
            reasoning.append(
                f"Projected points: Side {leader} favored by {abs(points_diff):.1f} points"
            )
        else:
            reasoning.append("Projected points are nearly identical between sides")

    positions_a = len(side_a.positional_value)
    positions_b = len(side_b.positional_value)
    if positions_a != positions_b:
        reasoning.append(
            f"Positional diversity differs: Side A has {positions_a} positions, "
            f"Side B has {positions_b}"
        )
    else:
        reasoning.append(f"Both sides cover {positions_a} positions")

    strengths_a, strengths_b = len(side_a.strengths), len(side_b.strengths)
    if strengths_a > strengths_b:
        reasoning.append("Side A shows stronger overall roster quality")
    elif strengths_b > strengths_a:
        reasoning.append("Side B shows stronger overall roster quality")

    weaknesses_a, weaknesses_b = len(side_a.weaknesses), len(side_b.weaknesses)
    if weaknesses_a > weaknesses_b:
        reasoning.append("Side A has more identified weaknesses to consider")
    elif weaknesses_b > weaknesses_a:
        reasoning.append("Side B has more identified weaknesses to consider")

    if recommendation == ACCEPT:
        reasoning.append("Recommendation: ACCEPT - Trade is fair and balanced")
    elif recommendation == DECLINE:
        if diff > 0:
            reasoning.append("Recommendation: DECLINE - You would be giving up too much value")
        else:
            reasoning.append(
                "Recommendation: DECLINE - You would be receiving insufficient value"
            )
    else:
        reasoning.append("Recommendation: COUNTER - Consider negotiating for better value balance")
    return reasoning


def analyze_trade(trade: Trade) -> TradeAnalysis:
    """Analyze both sides of a trade and produce a recommendation."""
    side_a = analyze_side(trade.side_a)
    side_b = analyze_side(trade.side_b)
    recommendation = determine_recommendation(side_a, side_b)
    return TradeAnalysis(
        side_a_analysis=side_a,
        side_b_analysis=side_b,
        recommendation=recommendation,
        confidence=calculate_confidence(side_a, side_b),
        reasoning=generate_reasoning(side_a, side_b, recommendation),
    )
