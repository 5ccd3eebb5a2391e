"""API request and response schemas."""

from tradr.schemas.league import (
    AthleteResponse,
    LeagueSyncResponse,
    TeamRecordResponse,
    TeamResponse,
)
from tradr.schemas.trade import (
    AthleteInput,
    AthleteValueResponse,
    DraftPickInput,
    SideAnalysisResponse,
    TradeAnalysisResponse,
    TradeAnalyzeRequest,
    TradeSideInput,
)

__all__ = [
    "AthleteInput",
    "AthleteResponse",
    "AthleteValueResponse",
    "DraftPickInput",
    "LeagueSyncResponse",
    "SideAnalysisResponse",
    "TeamRecordResponse",
    "TeamResponse",
    "TradeAnalysisResponse",
    "TradeAnalyzeRequest",
    "TradeSideInput",
]
