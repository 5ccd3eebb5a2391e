"""League sync API response schemas."""

from pydantic import BaseModel, ConfigDict, Field

from tradr.services.models import AthleteRole, AthleteStatus


class AthleteResponse(BaseModel):
    """A valued athlete on a synced roster."""

    model_config = ConfigDict(from_attributes=True)

    key: str
    name: str
    position: str
    positions: list[str]
    team_abbr: str
    status: AthleteStatus
    role: AthleteRole | None
    injury_note: str | None
    rank: int | None
    percent_start: float | None
    percent_owned: float | None
    stat_line: dict[str, float] | None
    stat_less: bool
    value: float | None = Field(default=None, ge=10, le=99.9)


class TeamRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    wins: int = Field(ge=0)
    losses: int = Field(ge=0)
    ties: int = Field(ge=0)


class TeamResponse(BaseModel):
    """A synced fantasy team."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    owner: str | None
    rank: int | None
    record: TeamRecordResponse
    athletes: list[AthleteResponse]


class LeagueSyncResponse(BaseModel):
    """Response for POST /leagues/{league_key}/sync."""

    model_config = ConfigDict(from_attributes=True)

    league_key: str
    game_key: str
    season: str
    teams: list[TeamResponse]


class RosterTextRequest(BaseModel):
    """Request body for POST /rosters/import: a roster page pasted as text."""

    text: str = Field(min_length=1, max_length=200_000)


class RosterTextResponse(BaseModel):
    """Athletes read from pasted roster text, valued."""

    model_config = ConfigDict(from_attributes=True)

    athletes: list[AthleteResponse]
