"""Tests for batched season stats retrieval and coverage validation."""

import logging
from unittest.mock import AsyncMock

import pytest

from payloads import SEASON, stats_block, stats_player, stats_response
from tradr.services.errors import StructureMismatchError, YahooApiError
from tradr.services.models import Athlete
from tradr.services.stats import (
    STATS_BATCH_SIZE,
    attach_season_stats,
    chunk_keys,
    find_season_block,
    parse_stats_response,
)


def _athletes(count: int) -> list[Athlete]:
    return [Athlete(key=f"465.p.{i}", name=f"Player {i}") for i in range(count)]


def _season_response(player_keys: list[str]) -> dict:
    return stats_response([stats_player(key, stats_block({"1": "10", "2": "5"})) for key in player_keys])


class TestChunkKeys:
    """Tests for batch splitting."""

    def test_batches_of_25(self):
        batches = chunk_keys([str(i) for i in range(60)])

        assert [len(b) for b in batches] == [25, 25, 10]
        assert batches[1][0] == "25"

    def test_empty_and_invalid_size(self):
        assert chunk_keys([]) == []
        with pytest.raises(ValueError):
            chunk_keys(["a"], size=0)


class TestFindSeasonBlock:
    """Tests for accepting only validated season coverage."""

    def test_accepts_matching_season(self):
        fragments = stats_player("465.p.1", stats_block({"1": "12", "14": "-"}))["player"]

        assert find_season_block(fragments, SEASON) == {"1": 12.0}

    def test_skips_projection_for_later_season_block(self):
        """A season block after a projected one is still found."""
        fragments = stats_player(
            "465.p.1",
            stats_block({"1": "40"}, coverage_type="projected_season"),
            stats_block({"1": "12"}),
        )["player"]

        assert find_season_block(fragments, SEASON) == {"1": 12.0}

    @pytest.mark.parametrize(
        "block",
        [
            stats_block({"1": "40"}, coverage_type="projected_season"),
            stats_block({"1": "0.5"}, coverage_type="average_season"),
            stats_block({"1": "1"}, coverage_type="date", season=None),
            stats_block({"1": "30"}, season="2024"),
        ],
    )
    def test_rejects_non_season_coverage(self, block, caplog: pytest.LogCaptureFixture):
        """Projected, average, date and prior-season blocks are never attached."""
        fragments = stats_player("465.p.1", block)["player"]

        with caplog.at_level(logging.WARNING):
            assert find_season_block(fragments, SEASON, "465.p.1") is None

        assert "Rejected non-season stats for 465.p.1" in caplog.text

    def test_flat_coverage_block(self):
        """Coverage fields alongside the stats list are also read."""
        fragments = [
            [{"player_key": "465.p.1"}],
            {"coverage_type": "season", "season": SEASON, "stats": [{"stat": {"stat_id": "2", "value": "7"}}]},
        ]

        assert find_season_block(fragments, SEASON) == {"2": 7.0}


class TestParseStatsResponse:
    """Tests for parsing a batch response."""

    def test_players_keyed_by_player_key(self):
        raw = stats_response(
            [
                stats_player("465.p.1", stats_block({"1": "10"})),
                stats_player("465.p.2", stats_block({"1": "3"}, coverage_type="projected_season")),
            ]
        )

        assert parse_stats_response(raw, SEASON) == {"465.p.1": {"1": 10.0}}

    def test_missing_collection_raises(self):
        with pytest.raises(StructureMismatchError):
            parse_stats_response({"fantasy_content": {}}, SEASON)


class TestAttachSeasonStats:
    """Tests for attaching stats to athletes."""

    async def test_attaches_stats_in_batches(self):
        """Athletes are requested 25 at a time with the resolved season."""
        athletes = _athletes(30)
        client = AsyncMock()
        client.get_player_stats.side_effect = lambda keys, season: _season_response(keys)

        report = await attach_season_stats(client, athletes, SEASON)

        assert client.get_player_stats.await_count == 2
        batch_sizes = sorted(len(call.args[0]) for call in client.get_player_stats.await_args_list)
        assert batch_sizes == [5, STATS_BATCH_SIZE]
        assert all(call.args[1] == SEASON for call in client.get_player_stats.await_args_list)
        assert report.attached == 30
        assert report.failed_batches == 0
        assert athletes[0].stats == {"1": 10.0, "2": 5.0}
        assert not athletes[0].stat_less

    async def test_failed_batch_leaves_only_its_athletes_stat_less(self):
        """One failing batch must not abort the others."""
        athletes = _athletes(30)

        async def get_player_stats(keys, season):
            if "465.p.0" in keys:
                raise YahooApiError(500, "Internal Server Error - boom")
            return _season_response(keys)

        client = AsyncMock()
        client.get_player_stats.side_effect = get_player_stats

        report = await attach_season_stats(client, athletes, SEASON)

        assert report.failed_batches == 1
        assert report.total_batches == 2
        assert report.stat_less == 25
        assert athletes[0].stat_less and athletes[0].stats is None
        assert athletes[29].stats == {"1": 10.0, "2": 5.0}

    async def test_athlete_without_season_block_is_flagged(self, caplog: pytest.LogCaptureFixture):
        """Athletes absent from the response are stat-less and logged."""
        athletes = _athletes(2)
        client = AsyncMock()
        client.get_player_stats.return_value = _season_response(["465.p.0"])

        with caplog.at_level(logging.WARNING):
            report = await attach_season_stats(client, athletes, SEASON)

        assert report.attached == 1
        assert athletes[1].stat_less
        assert "1 athlete(s) have no season stats: Player 1" in caplog.text

    async def test_high_failure_rate_is_logged(self, caplog: pytest.LogCaptureFixture):
        client = AsyncMock()
        client.get_player_stats.side_effect = YahooApiError(999, "Request denied")

        with caplog.at_level(logging.WARNING):
            report = await attach_season_stats(client, _athletes(3), SEASON)

        assert report.failed_batches == 1
        assert "High failure rate fetching stats: 1/1" in caplog.text
