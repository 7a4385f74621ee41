"""Unit tests for scoring functions."""

import pytest

from fieldscout.action_log import ActionLog
from fieldscout.constants import ActionType
from fieldscout.models import Action
from fieldscout.schemas import PointTable
from fieldscout.scoring import (
    calculate_scores,
    calculate_total_points,
    score_live_phase,
    score_phase,
)
from fieldscout.transformation import empty_record


class TestScorePhase:
    """Tests for single-section scoring."""

    def test_count_times_value(self):
        """Test that numeric counters score count x point value."""
        points, breakdown = score_phase({'fuelScoredCount': 12}, {'fuelScored': 2})
        assert points == 24
        assert breakdown == {'fuelScored': 24}

    def test_exact_key_match(self):
        points, _ = score_phase({'cycles': 3}, {'cycles': 4})
        assert points == 12

    def test_flag_scores_flat_value(self):
        """Test that a True toggle scores its flat value and False scores nothing."""
        assert score_phase({'climbL2': True}, {'climbL2': 20})[0] == 20
        assert score_phase({'climbL2': False}, {'climbL2': 20})[0] == 0

    def test_missing_counter_scores_zero(self):
        points, breakdown = score_phase({}, {'fuelScored': 1, 'climbL1': 10})
        assert points == 0
        assert breakdown == {}

    def test_unpriced_counter_ignored(self):
        points, _ = score_phase({'stealCount': 4}, {'fuelScored': 1})
        assert points == 0

    def test_non_numeric_value_scores_zero(self):
        points, _ = score_phase({'fuelScoredCount': 'many'}, {'fuelScored': 1})
        assert points == 0

    def test_none_inputs(self):
        assert score_phase(None, None) == (0.0, {})


class TestCalculateScores:
    """Tests for full-record scoring."""

    def test_endgame_climb_points(self, point_table):
        """Test that a successful L2 climb scores 20 endgame points."""
        record = empty_record()
        record['endgame']['climbL2'] = True

        result = calculate_scores(record, point_table)

        assert result.endgame_points == 20
        assert result.auto_points == 0
        assert result.teleop_points == 0
        assert result.breakdown['endgame'] == {'climbL2': 20}

    def test_total_is_sum_of_phases(self, point_table):
        record = empty_record()
        record['auto']['fuelScoredCount'] = 6
        record['auto']['autoClimbL1'] = True
        record['teleop']['fuelScoredCount'] = 30
        record['endgame']['climbL3'] = True

        result = calculate_scores(record, point_table)

        assert result.auto_points == 21
        assert result.teleop_points == 30
        assert result.endgame_points == 30
        assert result.total_points == result.auto_points + result.teleop_points + result.endgame_points
        assert calculate_total_points(record, point_table) == 81

    def test_empty_record(self, point_table):
        result = calculate_scores({}, point_table)
        assert result.total_points == 0

    def test_malformed_record_degrades_to_zero(self, point_table):
        record = {'auto': {'fuelScoredCount': None}, 'teleop': None}
        assert calculate_scores(record, point_table).total_points == 0

    @pytest.mark.parametrize('level,expected', [('L1', 10), ('L2', 20), ('L3', 30)])
    def test_climb_levels(self, point_table, level, expected):
        record = {'endgame': {f'climb{level}': True}}
        assert calculate_scores(record, point_table).endgame_points == expected

    def test_custom_point_table(self):
        table = PointTable(teleop={'fuelScored': 0.5})
        record = {'teleop': {'fuelScoredCount': 9}}
        assert calculate_scores(record, table).teleop_points == 4.5


class TestLivePhase:
    """Tests for live header scoring."""

    def test_live_teleop_includes_climb(self, point_table):
        log = ActionLog('teleop')
        log.append(Action(id='a', type=ActionType.SCORE, phase='teleop', timestamp=0, fuel_delta=-5))
        log.append(Action(
            id='b', type=ActionType.CLIMB, phase='teleop', timestamp=1,
            climb_level='L1', climb_result='success',
        ))
        assert score_live_phase(log, point_table) == 15

    def test_live_auto(self, point_table):
        log = ActionLog('auto')
        log.append(Action(id='a', type=ActionType.SCORE, phase='auto', timestamp=0, fuel_delta=-8))
        log.append(Action(id='b', type=ActionType.SCORE, phase='auto', timestamp=1, fuel_delta=-8))
        assert score_live_phase(log, point_table) == 16
