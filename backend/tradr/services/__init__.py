"""Service layer for business logic."""

from tradr.services.league_sync import LeagueSyncService, SyncContext, sync_league
from tradr.services.trade_analyzer import analyze_trade
from tradr.services.valuation import compute_value
from tradr.services.yahoo_client import YahooApiClient

__all__ = [
    "LeagueSyncService",
    "SyncContext",
    "YahooApiClient",
    "analyze_trade",
    "compute_value",
    "sync_league",
]
