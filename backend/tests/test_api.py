"""Integration tests for API endpoints."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from httpx import AsyncClient
from tenacity import Future, RetryError

from payloads import LEAGUE_KEY, ROSTER_TEXT, TEAM_1, TEAM_2
from tradr.services.errors import YahooApiError

SYNC_URL = f"/api/v1/leagues/{LEAGUE_KEY}/sync"
AUTH = {"Authorization": "Bearer test-token"}


@pytest.fixture
def patched_client(yahoo_client: AsyncMock):
    """Route the sync endpoint's Yahoo client to the mocked league."""
    with patch("tradr.api.routes.YahooApiClient") as mock_cls:
        mock_cls.return_value.__aenter__.return_value = yahoo_client
        yield mock_cls


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    async def test_health_returns_healthy(self, async_client: AsyncClient):
        """Health endpoint should return healthy status."""
        response = await async_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestLeagueSyncEndpoint:
    """Tests for POST /api/v1/leagues/{league_key}/sync."""

    async def test_requires_bearer_token(self, async_client: AsyncClient):
        response = await async_client.post(SYNC_URL)

        assert response.status_code == 401
        assert "Bearer" in response.json()["detail"]

    async def test_rejects_malformed_league_key(self, async_client: AsyncClient):
        response = await async_client.post("/api/v1/leagues/9080/sync", headers=AUTH)

        assert response.status_code == 422

    async def test_returns_valued_teams(self, async_client: AsyncClient, patched_client):
        response = await async_client.post(SYNC_URL, headers=AUTH)

        assert response.status_code == 200
        data = response.json()
        assert data["season"] == "2025"
        assert [t["id"] for t in data["teams"]] == [TEAM_1, TEAM_2]
        assert data["teams"][0]["record"] == {"wins": 10, "losses": 5, "ties": 1}
        center = data["teams"][0]["athletes"][0]
        assert center["position"] == "C,LW"
        assert center["positions"] == ["C", "LW"]
        assert center["status"] == "healthy"
        assert center["role"] == "skater"
        assert 10 <= center["value"] <= 99.9
        patched_client.assert_called_once_with("test-token")

    async def test_sync_error_is_502(
        self, async_client: AsyncClient, patched_client, yahoo_client: AsyncMock
    ):
        """Fatal sync failures never return partial teams."""
        yahoo_client.get_league_teams.return_value = {"fantasy_content": {"league": [{}]}}

        response = await async_client.post(SYNC_URL, headers=AUTH)

        assert response.status_code == 502
        assert "no teams" in response.json()["detail"]

    @pytest.mark.parametrize(("upstream", "expected"), [(401, 401), (429, 429), (500, 502), (999, 502)])
    async def test_yahoo_error_statuses(
        self,
        async_client: AsyncClient,
        patched_client,
        yahoo_client: AsyncMock,
        upstream: int,
        expected: int,
    ):
        yahoo_client.get_game.side_effect = YahooApiError(upstream, "Upstream failure")

        response = await async_client.post(SYNC_URL, headers=AUTH)

        assert response.status_code == expected
        assert "Upstream failure" in response.json()["detail"]

    async def test_unreachable_yahoo_is_504(
        self, async_client: AsyncClient, patched_client, yahoo_client: AsyncMock
    ):
        attempt = Future(3)
        attempt.set_exception(httpx.ConnectError("refused"))
        yahoo_client.get_game.side_effect = RetryError(attempt)

        response = await async_client.post(SYNC_URL, headers=AUTH)

        assert response.status_code == 504
        assert response.json()["detail"] == "Yahoo API unreachable"

    async def test_unretried_transport_error_is_502(
        self, async_client: AsyncClient, patched_client, yahoo_client: AsyncMock
    ):
        """Protocol errors are not retried and still map to a gateway error."""
        yahoo_client.get_game.side_effect = httpx.RemoteProtocolError("connection dropped")

        response = await async_client.post(SYNC_URL, headers=AUTH)

        assert response.status_code == 502
        assert response.json()["detail"] == "Yahoo API request failed"


class TestTradeAnalyzeEndpoint:
    """Tests for POST /api/v1/trades/analyze."""

    async def test_analyzes_valued_sides(self, async_client: AsyncClient):
        payload = {
            "side_a": {"athletes": [{"key": "465.p.1", "name": "Star", "positions": ["C"], "value": 90}]},
            "side_b": {
                "athletes": [{"key": "465.p.2", "name": "Depth", "positions": ["D"], "value": 40}],
                "picks": [{"year": 2026, "round": 1, "owner_team_id": TEAM_2}],
            },
        }

        response = await async_client.post("/api/v1/trades/analyze", json=payload)

        assert response.status_code == 200
        data = response.json()
        assert data["side_b_analysis"]["total_value"] == pytest.approx(135.0)
        assert data["recommendation"] == "decline"
        assert 50 <= data["confidence"] <= 95
        assert data["reasoning"][-1].startswith("Recommendation: DECLINE")

    async def test_values_athletes_without_value(self, async_client: AsyncClient):
        """Athletes submitted without a value are valued from rank and stats."""
        payload = {
            "side_a": {"athletes": [{"key": "465.p.1", "name": "Ranked", "positions": ["C"], "rank": 5}]},
            "side_b": {"athletes": [{"key": "465.p.2", "name": "Unranked", "positions": ["C"]}]},
        }

        response = await async_client.post("/api/v1/trades/analyze", json=payload)

        assert response.status_code == 200
        data = response.json()
        assert data["side_a_analysis"]["total_value"] == pytest.approx(98.5)
        assert data["side_b_analysis"]["total_value"] == pytest.approx(50.0)

    async def test_rejects_out_of_range_pick(self, async_client: AsyncClient):
        payload = {"side_a": {"picks": [{"year": 2026, "round": 17}]}, "side_b": {}}

        response = await async_client.post("/api/v1/trades/analyze", json=payload)

        assert response.status_code == 422


class TestAthleteValueEndpoint:
    """Tests for POST /api/v1/athletes/value."""

    async def test_values_skater(self, async_client: AsyncClient):
        payload = {
            "key": "465.p.1",
            "name": "Scorer",
            "positions": ["RW"],
            "stat_line": {"goals": 20, "assists": 30},
        }

        response = await async_client.post("/api/v1/athletes/value", json=payload)

        assert response.status_code == 200
        assert response.json() == {"value": 88.0}

    async def test_rejects_invalid_percentages(self, async_client: AsyncClient):
        payload = {"key": "465.p.1", "name": "Bad", "percent_owned": 140}

        response = await async_client.post("/api/v1/athletes/value", json=payload)

        assert response.status_code == 422


class TestRosterImportEndpoint:
    """Tests for POST /api/v1/rosters/import."""

    async def test_returns_valued_athletes(self, async_client: AsyncClient):
        response = await async_client.post("/api/v1/rosters/import", json={"text": ROSTER_TEXT})

        assert response.status_code == 200
        athletes = response.json()["athletes"]
        assert len(athletes) == 6
        mcdavid = next(a for a in athletes if a["name"] == "Connor McDavid")
        assert mcdavid["status"] == "IR-LT"
        assert mcdavid["team_abbr"] == "EDM"
        assert mcdavid["value"] == 99.9

    async def test_text_without_athletes_is_422(self, async_client: AsyncClient):
        response = await async_client.post("/api/v1/rosters/import", json={"text": "Yahoo Sports"})

        assert response.status_code == 422
        assert response.json()["detail"] == "No athletes found in roster text"

    async def test_empty_text_is_rejected(self, async_client: AsyncClient):
        response = await async_client.post("/api/v1/rosters/import", json={"text": ""})

        assert response.status_code == 422
