"""Shared pytest fixtures for backend tests."""

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from payloads import (
    LEAGUE_ROSTERS,
    LEAGUE_STATS,
    SEASON,
    game_response,
    league_teams,
    league_teams_response,
    roster_response,
    stat_categories_response,
    stats_player,
    stats_response,
)
from tradr.dependencies import get_sync_context
from tradr.main import app
from tradr.services.league_sync import SyncContext


@pytest.fixture(autouse=True)
def clear_resolver_caches():
    """Give every test empty season and stat definition caches."""
    get_sync_context().clear()
    yield
    get_sync_context().clear()


@pytest.fixture
def sync_context() -> SyncContext:
    """Fresh resolver caches for service-level tests."""
    return SyncContext()


@pytest.fixture
def yahoo_client() -> AsyncMock:
    """Yahoo client double serving the two-team league from payloads."""
    client = AsyncMock()
    client.get_game.return_value = game_response(SEASON)
    client.get_stat_categories.return_value = stat_categories_response()
    client.get_league_teams.return_value = league_teams_response(league_teams())
    client.get_team_roster.side_effect = lambda team_key: roster_response(LEAGUE_ROSTERS[team_key])
    client.get_player_stats.side_effect = lambda keys, season: stats_response(
        [stats_player(key, LEAGUE_STATS[key]) for key in keys]
    )
    return client


@pytest.fixture
async def async_client():
    """Async HTTP client for testing the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
