"""Draft pick valuation.

Picks are valued on the same 10-99.9 scale as athletes: a straight line from
95.0 for a first-round pick to 10.0 for a sixteenth-round pick.
"""

from tradr.services.errors import InvalidDraftPickError

MIN_PICK_ROUND = 1
MAX_PICK_ROUND = 16
FIRST_ROUND_VALUE = 95.0
LAST_ROUND_VALUE = 10.0


def pick_value(round_number: int) -> float:
    """Value of a draft pick for the given round, rounded to one decimal.

    Raises:
        InvalidDraftPickError: If the round is outside 1..16.
    """
    if not MIN_PICK_ROUND <= round_number <= MAX_PICK_ROUND:
        raise InvalidDraftPickError(
            f"Draft pick round must be between {MIN_PICK_ROUND} and {MAX_PICK_ROUND}, "
            f"got {round_number}"
        )
    step = (FIRST_ROUND_VALUE - LAST_ROUND_VALUE) / (MAX_PICK_ROUND - MIN_PICK_ROUND)
    return round(FIRST_ROUND_VALUE - (round_number - MIN_PICK_ROUND) * step, 1)


def _ordinal(number: int) -> str:
    if 10 <= number % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")
    return f"{number}{suffix}"


def pick_description(year: int, round_number: int) -> str:
    """Human-readable pick label, e.g. "2026 Round 1st"."""
    return f"{year} Round {_ordinal(round_number)}"
