"""Domain entities built during a league sync and consumed by the trade analyzer."""

from dataclasses import dataclass, field
from enum import Enum

from tradr.services.draft_picks import pick_description, pick_value

# =============================================================================
# Enums
# =============================================================================


class AthleteRole(str, Enum):
    """Which valuation formula applies to an athlete."""

    SKATER = "skater"
    GOALIE = "goalie"


class AthleteStatus(str, Enum):
    """Availability status normalized from Yahoo status strings."""

    HEALTHY = "healthy"
    DAY_TO_DAY = "DTD"
    INJURED_RESERVE = "IR"
    LONG_TERM_IR = "IR-LT"
    OUT = "OUT"


# =============================================================================
# League Entities
# =============================================================================


@dataclass(slots=True)
class Athlete:
    """An athlete on a fantasy roster.

    Created by the roster parser without statistics. The stats attacher sets
    ``stats`` (only from a validated season block) or flags ``stat_less``;
    the value calculator sets ``value``.
    """

    key: str
    name: str
    positions: tuple[str, ...] = ()
    team_abbr: str = ""
    status: AthleteStatus = AthleteStatus.HEALTHY
    role: AthleteRole | None = None
    injury_note: str | None = None
    rank: int | None = None
    percent_start: float | None = None
    percent_owned: float | None = None
    stats: dict[str, float] | None = None  # stat_id -> season total
    stat_line: dict[str, float] | None = None  # semantic name -> season total
    stat_less: bool = False
    value: float | None = None

    @property
    def position(self) -> str:
        """Eligible positions joined for display, e.g. "C,LW"."""
        return ",".join(self.positions) if self.positions else "N/A"


@dataclass(slots=True, frozen=True)
class TeamRecord:
    """Win/loss/tie aggregate. Always fully populated."""

    wins: int
    losses: int
    ties: int

    def as_string(self) -> str:
        return f"{self.wins}-{self.losses}-{self.ties}"


@dataclass(slots=True)
class Team:
    """A fantasy team, built once per sync and replaced wholesale on resync."""

    id: str  # Yahoo team key
    name: str
    record: TeamRecord
    athletes: list[Athlete] = field(default_factory=list)
    owner: str | None = None
    rank: int | None = None


# =============================================================================
# Draft Picks
# =============================================================================


@dataclass(slots=True)
class DraftPick:
    """A future draft pick; its value is a pure function of the round."""

    year: int
    round: int
    owner_team_id: str
    value: float = field(init=False)

    def __post_init__(self) -> None:
        self.value = pick_value(self.round)

    @property
    def description(self) -> str:
        return pick_description(self.year, self.round)


# =============================================================================
# Trade Entities
# =============================================================================


@dataclass(slots=True)
class TradeSide:
    """One side of a proposed trade."""

    athletes: list[Athlete] = field(default_factory=list)
    picks: list[DraftPick] = field(default_factory=list)


@dataclass(slots=True)
class Trade:
    """A proposed trade. Side A is what the user gives, side B what they receive."""

    side_a: TradeSide
    side_b: TradeSide


@dataclass(slots=True)
class SideAnalysis:
    """Read-only summary of one trade side."""

    total_value: float
    positional_value: dict[str, float]
    projected_points: float | None
    needs: list[str] = field(default_factory=list)
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)


@dataclass(slots=True)
class TradeAnalysis:
    """Outcome of comparing two trade sides."""

    side_a_analysis: SideAnalysis
    side_b_analysis: SideAnalysis
    recommendation: str  # "accept" | "counter" | "decline"
    confidence: int
    reasoning: list[str] = field(default_factory=list)
