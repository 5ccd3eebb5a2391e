"""Trade and valuation API schemas.

Request models convert into service dataclasses; response models are
populated from them with model_validate(obj, from_attributes=True).
"""

from pydantic import BaseModel, ConfigDict, Field

from tradr.services.models import (
    Athlete,
    AthleteRole,
    AthleteStatus,
    DraftPick,
    Trade,
    TradeSide,
)
from tradr.services.roster import role_from_positions
from tradr.services.valuation import compute_value

# =============================================================================
# Requests
# =============================================================================


class AthleteInput(BaseModel):
    """An athlete on one side of a trade, or submitted for valuation."""

    key: str
    name: str
    positions: list[str] = Field(default_factory=list)
    team_abbr: str = ""
    status: AthleteStatus = AthleteStatus.HEALTHY
    role: AthleteRole | None = None
    rank: int | None = Field(default=None, ge=1)
    percent_start: float | None = Field(default=None, ge=0, le=100)
    percent_owned: float | None = Field(default=None, ge=0, le=100)
    stat_line: dict[str, float] | None = None
    value: float | None = Field(default=None, ge=10, le=99.9)

    def to_athlete(self) -> Athlete:
        positions = tuple(dict.fromkeys(p.strip() for p in self.positions if p.strip()))
        return Athlete(
            key=self.key,
            name=self.name,
            positions=positions,
            team_abbr=self.team_abbr,
            status=self.status,
            role=self.role or role_from_positions(positions),
            rank=self.rank,
            percent_start=self.percent_start,
            percent_owned=self.percent_owned,
            stat_line=dict(self.stat_line) if self.stat_line else None,
            stat_less=not self.stat_line,
            value=self.value,
        )


class DraftPickInput(BaseModel):
    """A future draft pick included in a trade."""

    year: int = Field(ge=2000, le=2100)
    round: int = Field(ge=1, le=16)
    owner_team_id: str = ""


class TradeSideInput(BaseModel):
    athletes: list[AthleteInput] = Field(default_factory=list)
    picks: list[DraftPickInput] = Field(default_factory=list)

    def to_side(self) -> TradeSide:
        athletes = [a.to_athlete() for a in self.athletes]
        for athlete in athletes:
            if athlete.value is None:
                athlete.value = compute_value(athlete)
        return TradeSide(
            athletes=athletes,
            picks=[DraftPick(p.year, p.round, p.owner_team_id) for p in self.picks],
        )


class TradeAnalyzeRequest(BaseModel):
    """Request body for POST /trades/analyze. Side A is given up, side B received."""

    side_a: TradeSideInput
    side_b: TradeSideInput

    def to_trade(self) -> Trade:
        return Trade(side_a=self.side_a.to_side(), side_b=self.side_b.to_side())


# =============================================================================
# Responses
# =============================================================================


class SideAnalysisResponse(BaseModel):
    """Summary of one trade side."""

    model_config = ConfigDict(from_attributes=True)

    total_value: float
    positional_value: dict[str, float]
    projected_points: float | None
    needs: list[str]
    strengths: list[str]
    weaknesses: list[str]


class TradeAnalysisResponse(BaseModel):
    """Response for POST /trades/analyze."""

    model_config = ConfigDict(from_attributes=True)

    side_a_analysis: SideAnalysisResponse
    side_b_analysis: SideAnalysisResponse
    recommendation: str = Field(description="accept, counter or decline")
    confidence: int = Field(ge=50, le=95)
    reasoning: list[str]


class AthleteValueResponse(BaseModel):
    """Response for POST /athletes/value."""

    value: float = Field(ge=10, le=99.9)
