"""Unit tests for team statistics."""

import polars as pl
import pytest

from fieldscout.models import TeamStats
from fieldscout.schemas import ScoutingEntry
from fieldscout.statistics import (
    calculate_all_team_stats,
    calculate_team_stats,
    match_results_frame,
    start_position_histogram,
    summarize_frame,
)
from fieldscout.transformation import empty_record


def entry(team=254, match=1, auto_fuel=0, teleop_fuel=0, climb=None, start=None, **toggles):
    record = empty_record()
    record['auto']['fuelScoredCount'] = auto_fuel
    record['teleop']['fuelScoredCount'] = teleop_fuel
    record['auto']['startPosition'] = start
    if climb:
        record['endgame'][f'climb{climb}'] = True
    for key, value in toggles.items():
        section = 'endgame' if key in ('brokeDown', 'climbFailed') else 'teleop' if key in ('playedDefense', 'stealCount') else 'auto'
        record[section][key] = value
    return ScoutingEntry(
        team_number=team,
        match_number=match,
        alliance='red',
        event_key='2026casj',
        game_data=record,
    )


class TestEmptyStats:
    """Tests for teams with no data."""

    def test_no_matches_is_all_zero(self, point_table):
        """Test that an empty match set gives a well-defined zero result."""
        stats = calculate_team_stats([], point_table)

        assert stats == TeamStats()
        assert stats.match_count == 0
        assert stats.avg_total_points == 0
        assert stats.climb_l2_rate == 0
        assert stats.start_positions == {}
        assert stats.raw_values == {}

    def test_all_teams_empty(self, point_table):
        assert calculate_all_team_stats([], point_table) == {}


class TestAverages:
    """Tests for mean values."""

    def test_auto_points_average(self, point_table):
        """Test that auto points of 10, 20 and 30 average to 20."""
        entries = [entry(match=1, auto_fuel=10), entry(match=2, auto_fuel=20), entry(match=3, auto_fuel=30)]
        stats = calculate_team_stats(entries, point_table)

        assert stats.match_count == 3
        assert stats.avg_auto_points == 20
        assert stats.avg_auto_fuel == 20

    def test_mean_rounds_half_up(self, point_table):
        entries = [entry(match=1, teleop_fuel=1), entry(match=2, teleop_fuel=0)] * 2
        entries.append(entry(match=5, teleop_fuel=0))
        entries.append(entry(match=6, teleop_fuel=0))
        entries.append(entry(match=7, teleop_fuel=0))
        entries.append(entry(match=8, teleop_fuel=1))
        # 3 fuel over 8 matches = 0.375 -> 0.4
        stats = calculate_team_stats(entries, point_table)
        assert stats.avg_teleop_fuel == 0.4

    def test_passed_fuel_per_phase(self, point_table):
        """Test that auto and teleop passes are averaged separately."""
        first, second = entry(match=1), entry(match=2)
        first.game_data['auto']['fuelPassedCount'] = 3
        first.game_data['teleop']['fuelPassedCount'] = 10
        second.game_data['teleop']['fuelPassedCount'] = 4

        stats = calculate_team_stats([first, second], point_table)

        assert stats.avg_auto_fuel_passed == 1.5
        assert stats.avg_teleop_fuel_passed == 7

    def test_total_points(self, point_table):
        entries = [
            entry(match=1, auto_fuel=4, teleop_fuel=20, climb='L3'),
            entry(match=2, auto_fuel=2, teleop_fuel=10, climb='L1'),
        ]
        stats = calculate_team_stats(entries, point_table)

        assert stats.avg_total_points == 38
        assert stats.avg_endgame_points == 20
        assert stats.avg_total_fuel == 18


class TestRates:
    """Tests for percentage rates."""

    def test_climb_rates(self, point_table):
        entries = [
            entry(match=1, climb='L2'),
            entry(match=2, climb='L2'),
            entry(match=3, climb='L3'),
            entry(match=4, climbFailed=True),
        ]
        stats = calculate_team_stats(entries, point_table)

        assert stats.climb_l2_rate == 50
        assert stats.climb_l3_rate == 25
        assert stats.climb_l1_rate == 0
        assert stats.climb_success_rate == 75
        assert stats.climb_failed_rate == 25

    def test_rates_round_to_whole_percent(self, point_table):
        entries = [entry(match=1, playedDefense=True), entry(match=2), entry(match=3)]
        stats = calculate_team_stats(entries, point_table)
        assert stats.defense_rate == 33

    def test_toggle_rates(self, point_table):
        entries = [
            entry(match=1, leftStartZone=True, brokeDown=True),
            entry(match=2, leftStartZone=True, autoClimbL1=True),
        ]
        stats = calculate_team_stats(entries, point_table)

        assert stats.mobility_rate == 100
        assert stats.auto_climb_rate == 50
        assert stats.broke_down_rate == 50


class TestStartPositions:
    """Tests for the start-position histogram."""

    def test_histogram_with_labels(self, point_table):
        entries = [entry(match=1, start=0), entry(match=2, start=0), entry(match=3, start=2), entry(match=4)]
        stats = calculate_team_stats(entries, point_table, ['Left', 'Center', 'Right'])

        assert stats.start_positions == {'Left': 50, 'Right': 25}

    def test_histogram_never_exceeds_100(self):
        histogram = start_position_histogram([0, 1, 2], 3, ['A', 'B', 'C'])
        assert histogram == {'A': 33, 'B': 33, 'C': 33}
        assert sum(histogram.values()) <= 100

    def test_positions_outside_labels_skipped(self):
        assert start_position_histogram([5, -1], 2, ['Left']) == {}


class TestMatchResults:
    """Tests for per-match rows and raw values."""

    def test_raw_values_in_entry_order(self, point_table):
        entries = [entry(match=2, auto_fuel=5), entry(match=1, auto_fuel=1)]
        stats = calculate_team_stats(entries, point_table)

        assert stats.raw_values['autoPoints'] == [5, 1]
        assert [r.match_number for r in stats.match_results] == [1, 2]

    def test_match_result_fields(self, point_table):
        stats = calculate_team_stats([entry(match=4, climb='L3', start=1, brokeDown=True)], point_table)
        result = stats.match_results[0]

        assert result.climb_level == 3
        assert result.endgame_success is True
        assert result.broke_down is True
        assert result.start_position == 1
        assert result.team_number == 254

    def test_bare_records_accepted(self, point_table):
        record = empty_record()
        record['teleop']['fuelScoredCount'] = 7
        stats = calculate_team_stats([record], point_table)

        assert stats.match_count == 1
        assert stats.avg_teleop_points == 7


class TestAllTeams:
    """Tests for grouping by team."""

    def test_grouped_by_team(self, point_table):
        entries = [
            entry(team=1678, match=1, teleop_fuel=10),
            entry(team=254, match=1, teleop_fuel=20),
            entry(team=1678, match=2, teleop_fuel=30),
        ]
        stats = calculate_all_team_stats(entries, point_table)

        assert list(stats) == [254, 1678]
        assert stats[1678].match_count == 2
        assert stats[1678].avg_teleop_points == 20


class TestFrames:
    """Tests for polars distribution frames."""

    def test_match_results_frame(self, point_table):
        entries = [
            entry(team=1678, match=2, teleop_fuel=10),
            entry(team=254, match=1, teleop_fuel=20),
            entry(team=1678, match=1, teleop_fuel=30),
        ]
        df = match_results_frame(entries, point_table)

        assert df.height == 3
        assert df['team_number'].to_list() == [254, 1678, 1678]
        assert df['match_number'].to_list() == [1, 1, 2]

    def test_empty_frame(self, point_table):
        df = match_results_frame([], point_table)
        assert df.height == 0
        assert 'total_points' in df.columns

    def test_summarize_frame(self, point_table):
        entries = [entry(team=254, match=1, teleop_fuel=10), entry(team=254, match=2, teleop_fuel=30)]
        summary = summarize_frame(match_results_frame(entries, point_table))

        row = summary.row(0, named=True)
        assert row['matches'] == 2
        assert row['mean_points'] == pytest.approx(20)
        assert row['max_points'] == pytest.approx(30)

    def test_summarize_empty(self):
        summary = summarize_frame(pl.DataFrame())
        assert summary.height == 0
