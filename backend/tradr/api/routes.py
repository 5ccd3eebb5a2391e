"""API route definitions: league sync, roster text import, trade analysis and athlete valuation."""

import logging
from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, HTTPException, Path
from tenacity import RetryError

from tradr.dependencies import get_sync_context, require_bearer_token
from tradr.schemas.league import (
    AthleteResponse,
    LeagueSyncResponse,
    RosterTextRequest,
    RosterTextResponse,
)
from tradr.schemas.trade import (
    AthleteInput,
    AthleteValueResponse,
    TradeAnalysisResponse,
    TradeAnalyzeRequest,
)
from tradr.services.errors import SyncError, YahooApiError
from tradr.services.league_sync import LeagueSyncService, SyncContext
from tradr.services.roster_text import parse_roster_text
from tradr.services.trade_analyzer import analyze_trade
from tradr.services.valuation import compute_value
from tradr.services.yahoo_client import YahooApiClient

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["tradr"])

# Upstream statuses passed through to the caller; anything else becomes 502
PASSTHROUGH_STATUSES = {401, 403, 404, 429}


# =============================================================================
# League Sync
# =============================================================================


@router.post("/leagues/{league_key}/sync", response_model=LeagueSyncResponse)
async def sync_league(
    league_key: Annotated[
        str, Path(pattern=r"^\w+\.l\.\d+$", description="Yahoo league key, e.g. 465.l.9080")
    ],
    access_token: Annotated[str, Depends(require_bearer_token)],
    context: Annotated[SyncContext, Depends(get_sync_context)],
) -> LeagueSyncResponse:
    """Sync a league from Yahoo and return fully valued teams.

    The whole sync fails (502) on a missing season or stat taxonomy, zero
    teams, unresolved standings, or an empty roster; partially valid teams
    are never returned.
    """
    try:
        async with YahooApiClient(access_token) as client:
            result = await LeagueSyncService(client, context).sync_league(league_key)
    except YahooApiError as e:
        status = e.status_code if e.status_code in PASSTHROUGH_STATUSES else 502
        logger.warning(f"Yahoo request failed during sync of {league_key}: {e}")
        raise HTTPException(status_code=status, detail=str(e)) from e
    except SyncError as e:
        logger.error(f"Sync of {league_key} failed: {e}")
        raise HTTPException(status_code=502, detail=str(e)) from e
    except RetryError as e:
        logger.error(f"Yahoo API unreachable during sync of {league_key}: {e}")
        raise HTTPException(status_code=504, detail="Yahoo API unreachable") from e
    except httpx.HTTPError as e:
        logger.error(f"Yahoo request error during sync of {league_key}: {e}")
        raise HTTPException(status_code=502, detail="Yahoo API request failed") from e

    return LeagueSyncResponse.model_validate(result, from_attributes=True)


# =============================================================================
# Trade Analysis
# =============================================================================


@router.post("/trades/analyze", response_model=TradeAnalysisResponse)
async def analyze(request: TradeAnalyzeRequest) -> TradeAnalysisResponse:
    """Compare two trade sides. Athletes without a value are valued first."""
    analysis = analyze_trade(request.to_trade())
    return TradeAnalysisResponse.model_validate(analysis, from_attributes=True)


@router.post("/athletes/value", response_model=AthleteValueResponse)
async def value_athlete(athlete: AthleteInput) -> AthleteValueResponse:
    """Value a single athlete from its stat line, rank and ownership."""
    return AthleteValueResponse(value=compute_value(athlete.to_athlete()))


# =============================================================================
# Roster Text Import
# =============================================================================


@router.post("/rosters/import", response_model=RosterTextResponse)
async def import_roster_text(request: RosterTextRequest) -> RosterTextResponse:
    """Read a Yahoo roster page pasted as text into valued athletes.

    Unreadable lines are skipped; 422 if no athlete could be read at all.
    """
    athletes = parse_roster_text(request.text)
    if not athletes:
        raise HTTPException(status_code=422, detail="No athletes found in roster text")
    return RosterTextResponse(
        athletes=[AthleteResponse.model_validate(a, from_attributes=True) for a in athletes]
    )
