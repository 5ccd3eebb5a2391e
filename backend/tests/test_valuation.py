"""Tests for athlete valuation."""

import logging
import math
from itertools import combinations

import pytest

from tradr.services.models import Athlete, AthleteRole
from tradr.services.valuation import (
    GOALIE_STAT_KEYS,
    MAX_VALUE,
    MIN_VALUE,
    SKATER_STAT_KEYS,
    clamp_value,
    compute_value,
    goalie_stat_value,
    ownership_value,
    rank_calibrated_value,
    save_percentage,
    skater_stat_value,
)


def skater(**kwargs) -> Athlete:
    defaults = {"key": "465.p.1", "name": "Skater", "positions": ("C",), "role": AthleteRole.SKATER}
    return Athlete(**{**defaults, **kwargs})


def goalie(**kwargs) -> Athlete:
    defaults = {"key": "465.p.2", "name": "Goalie", "positions": ("G",), "role": AthleteRole.GOALIE}
    return Athlete(**{**defaults, **kwargs})


def stat_subsets(keys: frozenset[str]) -> list[tuple[str, ...]]:
    """Every single key and pair of keys, plus the full set."""
    ordered = sorted(keys)
    return [*combinations(ordered, 1), *combinations(ordered, 2), tuple(ordered)]


class TestRankCalibration:
    """Tests for the rank-to-value curve."""

    @pytest.mark.parametrize(
        ("rank", "expected"),
        [(1, 99.9), (5, 98.5), (6, 98.0), (11, 96.0), (26, 90.5), (51, 81.5), (101, 63.5), (201, 37.5)],
    )
    def test_tier_anchors(self, rank: int, expected: float):
        assert rank_calibrated_value(rank) == pytest.approx(expected)

    def test_non_increasing(self):
        """A better rank is never worth less."""
        values = [rank_calibrated_value(rank) for rank in range(1, 700)]

        assert all(a >= b for a, b in zip(values, values[1:]))

    def test_deep_ranks_hit_floor(self):
        assert rank_calibrated_value(500) == MIN_VALUE
        assert rank_calibrated_value(10_000) == MIN_VALUE


class TestSkaterStatValue:
    """Tests for the skater formula."""

    def test_goals_and_assists(self):
        """20 goals and 30 assists: (80 + 90) / 2.5 + 20."""
        assert skater_stat_value({"goals": 20, "assists": 30}, ("RW",)) == pytest.approx(88.0)

    def test_points_only_when_goals_and_assists_missing(self):
        assert skater_stat_value({"goals": 20, "assists": 30, "points": 99}, ("RW",)) == pytest.approx(88.0)
        assert skater_stat_value({"points": 25}, ("RW",)) == pytest.approx(25 * 3.4 / 2.5 + 20)

    def test_faceoffs_count_for_centers_only(self):
        assert skater_stat_value({"fw": 500}, ("C",)) == pytest.approx(40.0)
        assert skater_stat_value({"fw": 500}, ("LW",)) == pytest.approx(20.0)

    def test_positional_flexibility_bonus(self):
        single = skater_stat_value({"goals": 10}, ("C",))
        dual = skater_stat_value({"goals": 10}, ("C", "LW"))
        multi = skater_stat_value({"goals": 10}, ("C", "LW", "RW"))

        assert dual - single == pytest.approx(2.0 / 2.5)
        assert multi - single == pytest.approx(3.5 / 2.5)

    def test_more_production_is_worth_more(self):
        better = skater_stat_value({"goals": 30, "assists": 40, "ppp": 20}, ("C",))
        worse = skater_stat_value({"goals": 10, "assists": 15, "ppp": 5}, ("C",))

        assert better > worse


class TestGoalieStatValue:
    """Tests for the goalie formula."""

    def test_wins_and_gaa(self):
        """20 wins and a 2.50 GAA: (70 + 4) / 2 + 15."""
        assert goalie_stat_value({"wins": 20, "gaa": 2.5}) == pytest.approx(52.0)

    def test_save_percentage_recomputed_from_counts(self):
        """Saves over shots against wins over the provider's rounded percentage."""
        line = {"saves": 1400, "shots_against": 1520}

        assert save_percentage({**line, "save_pct": 0.9}) == pytest.approx(1400 / 1520)
        assert goalie_stat_value({**line, "save_pct": 0.9}) == goalie_stat_value({**line, "save_pct": 0.95})

    def test_provided_percentage_in_either_scale(self):
        assert save_percentage({"save_pct": 91.5}) == pytest.approx(0.915)
        assert save_percentage({"save_pct": 0.915}) == pytest.approx(0.915)
        assert save_percentage({}) is None

    def test_high_gaa_lowers_value(self):
        assert goalie_stat_value({"wins": 20, "gaa": 3.5}) < goalie_stat_value({"wins": 20, "gaa": 2.5})


class TestMarketSignals:
    """Tests for clamping and ownership."""

    def test_clamp(self):
        assert clamp_value(150.0) == MAX_VALUE
        assert clamp_value(-5.0) == MIN_VALUE
        assert clamp_value(math.nan) == MIN_VALUE
        assert clamp_value(math.inf) == MIN_VALUE

    def test_ownership_prefers_percent_start(self):
        assert ownership_value(50.0, 90.0) == pytest.approx(40.0)
        assert ownership_value(None, 90.0) == pytest.approx(54.0)
        assert ownership_value(None, 100.0) == pytest.approx(60.0)
        assert ownership_value(0.0, None) is None


class TestComputeValue:
    """Tests for the final blended value."""

    def test_stat_value_alone(self):
        assert compute_value(skater(positions=("RW",), stat_line={"goals": 20, "assists": 30})) == 88.0

    def test_rank_blend_for_skaters(self):
        """60% stats, 40% rank for skaters."""
        athlete = skater(positions=("RW",), stat_line={"goals": 20, "assists": 30}, rank=1)

        assert compute_value(athlete) == pytest.approx(92.8)

    def test_rank_blend_for_goalies(self):
        """65% stats, 35% rank for goalies."""
        athlete = goalie(stat_line={"wins": 20, "gaa": 2.5}, rank=1)

        assert compute_value(athlete) == pytest.approx(round(0.65 * 52.0 + 0.35 * 99.9, 1))

    def test_ownership_blend_without_rank(self):
        athlete = skater(positions=("RW",), stat_line={"goals": 20, "assists": 30}, percent_start=50.0)

        assert compute_value(athlete) == pytest.approx(78.4)

    def test_stat_less_falls_back_to_rank_then_ownership(self):
        assert compute_value(skater(rank=5, stat_less=True)) == pytest.approx(98.5)
        assert compute_value(skater(percent_owned=90.0, stat_less=True)) == pytest.approx(54.0)
        assert compute_value(skater(stat_less=True)) == 50.0

    def test_always_within_bounds(self):
        huge = skater(stat_line={"goals": 500, "assists": 500}, rank=1)
        awful = skater(stat_line={"pim": 5000, "plus_minus": -80})

        assert compute_value(huge) == MAX_VALUE
        assert compute_value(awful) == MIN_VALUE

    @pytest.mark.parametrize("keys", stat_subsets(SKATER_STAT_KEYS))
    @pytest.mark.parametrize("magnitude", [-10_000.0, 0.0, 0.5, 10_000.0])
    def test_skater_value_bounded_for_any_stat_subset(self, keys: tuple[str, ...], magnitude: float):
        athlete = skater(positions=("C", "LW", "RW"), stat_line=dict.fromkeys(keys, magnitude), rank=40)

        assert MIN_VALUE <= compute_value(athlete) <= MAX_VALUE

    @pytest.mark.parametrize("keys", stat_subsets(GOALIE_STAT_KEYS))
    @pytest.mark.parametrize("magnitude", [-10_000.0, 0.0, 0.5, 10_000.0])
    def test_goalie_value_bounded_for_any_stat_subset(self, keys: tuple[str, ...], magnitude: float):
        athlete = goalie(stat_line=dict.fromkeys(keys, magnitude), percent_owned=60.0)

        assert MIN_VALUE <= compute_value(athlete) <= MAX_VALUE

    def test_ranked_scorer_beats_weaker_depth_skater(self):
        """A 34-point skater ranked 12th outvalues a weaker one ranked 150th."""
        a = skater(stat_line={"goals": 14, "assists": 20, "ppp": 12, "sog": 70}, rank=12)
        b = skater(stat_line={"goals": 5, "assists": 8, "ppp": 2, "sog": 40}, rank=150)

        assert compute_value(a) > compute_value(b)

    def test_better_athlete_scores_higher(self):
        """Better stats and a better rank give a strictly higher value."""
        a = skater(stat_line={"goals": 35, "assists": 45, "ppp": 25}, rank=12)
        b = skater(stat_line={"goals": 15, "assists": 20, "ppp": 6}, rank=150)

        assert compute_value(a) > compute_value(b)

    def test_position_wins_over_stats_for_role(self, caplog: pytest.LogCaptureFixture):
        """A skater with only goalie stats is still valued as a skater, with a warning."""
        athlete = skater(name="Odd One", positions=("D",), stat_line={"wins": 20, "gaa": 2.5})

        with caplog.at_level(logging.WARNING):
            value = compute_value(athlete)

        assert value == 20.0
        assert "Odd One is listed at D but has only goalie stats" in caplog.text

    def test_role_inferred_from_stats_without_position(self, caplog: pytest.LogCaptureFixture):
        athlete = Athlete(key="465.p.3", name="Unknown", stat_line={"wins": 20, "gaa": 2.5})

        with caplog.at_level(logging.WARNING):
            value = compute_value(athlete)

        assert value == pytest.approx(52.0)
        assert "role inferred as goalie" in caplog.text
