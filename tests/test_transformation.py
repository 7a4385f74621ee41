"""Unit tests for action log -> counter record transformation."""

from fieldscout.constants import ActionType
from fieldscout.models import Action, PhaseResult
from fieldscout.schemas import CounterSchema
from fieldscout.transformation import (
    empty_record,
    transform_actions_to_counters,
    transform_phase,
    transform_phase_results,
)


def act(action_id, action_type, phase='teleop', **fields):
    return Action(id=action_id, type=action_type, phase=phase, timestamp=0, **fields)


class TestEmptyRecord:
    """Tests for record initialisation."""

    def test_all_counters_zeroed(self):
        record = empty_record()

        assert record['auto']['fuelScoredCount'] == 0
        assert record['teleop']['stealCount'] == 0
        assert record['auto']['autoClimbL1'] is False
        assert record['endgame']['climbL3'] is False
        assert record['auto']['startPosition'] is None

    def test_schema_keys_added(self):
        """Test that season-declared counters appear with their zero value."""
        schema = CounterSchema(auto={'leftStartZone': 'flag'}, teleop={'cycles': 'count'})
        record = empty_record(schema)

        assert record['auto']['leftStartZone'] is False
        assert record['teleop']['cycles'] == 0


class TestFuel:
    """Tests for fuel bucketing."""

    def test_two_scores_sum_absolute(self):
        """Test that two -8 score actions give 16 scored fuel."""
        actions = [
            act('a', ActionType.SCORE, phase='auto', fuel_delta=-8, action='shot_hub'),
            act('b', ActionType.SCORE, phase='auto', fuel_delta=-8, action='shot_depot_far'),
        ]
        record = transform_actions_to_counters(auto_actions=actions)

        assert record['auto']['fuelScoredCount'] == 16
        assert record['teleop']['fuelScoredCount'] == 0

    def test_pass_and_collect_buckets(self):
        """Test that passes and collects never count as scored fuel."""
        actions = [
            act('a', ActionType.PASS, fuel_delta=-3, action='pass'),
            act('b', ActionType.COLLECT, fuel_delta=8, action='depot'),
            act('c', ActionType.COLLECT, fuel_delta=8, action='outpost'),
            act('d', ActionType.COLLECT, fuel_delta=5, action='field'),
        ]
        record = transform_actions_to_counters(teleop_actions=actions)
        teleop = record['teleop']

        assert teleop['fuelScoredCount'] == 0
        assert teleop['fuelPassedCount'] == 3
        assert teleop['fuelCollectedCount'] == 21
        assert teleop['depotCollectCount'] == 1
        assert teleop['outpostCollectCount'] == 1

    def test_scored_count_matches_score_actions(self):
        """Test that scored fuel is the absolute sum over score actions only."""
        actions = [
            act('a', ActionType.SCORE, fuel_delta=-5, action='shot_hub'),
            act('b', ActionType.COLLECT, fuel_delta=8, action='depot'),
            act('c', ActionType.PASS, fuel_delta=-4, action='pass_alliance'),
            act('d', ActionType.SCORE, fuel_delta=3, action='shot_outpost_far'),
            act('e', ActionType.COLLECT, fuel_delta=6, action='field'),
            act('f', ActionType.SCORE, fuel_delta=-12, action='shot_depot_close'),
            act('g', ActionType.DEFENSE, action='neutral'),
        ]
        expected = sum(abs(a.fuel_delta) for a in actions if a.type == ActionType.SCORE)

        teleop = transform_actions_to_counters(teleop_actions=actions)['teleop']

        assert teleop['fuelScoredCount'] == expected == 20
        assert teleop['fuelPassedCount'] == 4
        assert teleop['fuelCollectedCount'] == 14


class TestUnknownActions:
    """Tests for actions the transformer does not recognise."""

    def test_unknown_type_ignored(self):
        """Test that an unrecognised action type leaves every counter at zero."""
        actions = [
            act('a', 'dance', fuel_delta=-8, action='shot_hub'),
            act('b', 'dance', phase='auto', duration_ms=500),
        ]
        record = transform_actions_to_counters(auto_actions=actions[1:], teleop_actions=actions[:1])

        assert record == empty_record()

    def test_unknown_type_between_known_actions(self):
        actions = [
            act('a', ActionType.SCORE, fuel_delta=-2, action='shot_hub'),
            act('b', 'wheelie'),
            act('c', ActionType.STEAL, action='steal'),
        ]
        teleop = transform_actions_to_counters(teleop_actions=actions)['teleop']

        assert teleop['fuelScoredCount'] == 2
        assert teleop['stealCount'] == 1


class TestTraversalAndStuck:
    """Tests for traversal counters."""

    def test_traversal_and_stuck_counts(self):
        actions = [
            act('a', ActionType.TRAVERSAL, action='trench'),
            act('b', ActionType.TRAVERSAL, action='trench-stuck', duration_ms=3000),
            act('c', ActionType.TRAVERSAL, action='bump'),
            act('d', ActionType.TRAVERSAL, action='bump-stuck', duration_ms=1200),
            act('e', ActionType.TRAVERSAL, action='bump-stuck', duration_ms=800),
        ]
        teleop = transform_actions_to_counters(teleop_actions=actions)['teleop']

        assert teleop['trenchTraversalCount'] == 1
        assert teleop['trenchStuckCount'] == 1
        assert teleop['trenchStuckDuration'] == 3000
        assert teleop['bumpTraversalCount'] == 1
        assert teleop['bumpStuckCount'] == 2
        assert teleop['bumpStuckDuration'] == 2000

    def test_unknown_traversal_ignored(self):
        record = transform_phase('teleop', [act('a', ActionType.TRAVERSAL, action='ramp')])
        assert record['teleop']['trenchTraversalCount'] == 0
        assert record['teleop']['bumpTraversalCount'] == 0


class TestClimb:
    """Tests for climb flags."""

    def test_endgame_climb_level(self):
        actions = [act('a', ActionType.CLIMB, climb_level='L2', climb_result='success', action='L2')]
        endgame = transform_actions_to_counters(teleop_actions=actions)['endgame']

        assert endgame['climbL2'] is True
        assert endgame['climbL1'] is False
        assert endgame['climbFailed'] is False

    def test_failed_climb(self):
        actions = [act('a', ActionType.CLIMB, climb_level='L3', climb_result='fail', action='L3')]
        endgame = transform_actions_to_counters(teleop_actions=actions)['endgame']

        assert endgame['climbFailed'] is True
        assert endgame['climbL3'] is False

    def test_auto_climb(self):
        actions = [act('a', ActionType.CLIMB, phase='auto', climb_level='L1', climb_result='success')]
        record = transform_actions_to_counters(auto_actions=actions)

        assert record['auto']['autoClimbL1'] is True
        assert record['endgame']['climbL1'] is False


class TestTeleopCounters:
    """Tests for defense, steals and fouls."""

    def test_defense_by_zone(self):
        actions = [
            act('a', ActionType.DEFENSE, action='alliance'),
            act('b', ActionType.DEFENSE, action='neutral'),
            act('c', ActionType.DEFENSE, action='neutral'),
            act('d', ActionType.STEAL, action='steal'),
            act('e', ActionType.FOUL, action='mid-line-penalty'),
        ]
        teleop = transform_actions_to_counters(teleop_actions=actions)['teleop']

        assert teleop['defenseAllianceCount'] == 1
        assert teleop['defenseNeutralCount'] == 2
        assert teleop['defenseOpponentCount'] == 0
        assert teleop['stealCount'] == 1
        assert teleop['foulCount'] == 1

    def test_start_action_counts_nothing(self):
        record = transform_actions_to_counters(
            auto_actions=[act('a', ActionType.START, phase='auto', action='trench1')]
        )
        assert record == transform_actions_to_counters()


class TestRecordAssembly:
    """Tests for toggles, start position and broken-down time."""

    def test_start_position_index(self):
        assert transform_actions_to_counters(start_position=2)['auto']['startPosition'] == 2

    def test_start_position_one_hot(self):
        record = transform_actions_to_counters(start_position=[False, True, False])
        assert record['auto']['startPosition'] == 1

    def test_no_start_position(self):
        assert transform_actions_to_counters(start_position=[False, False])['auto']['startPosition'] is None

    def test_status_toggles_overlay(self):
        """Test that raw toggles are carried into the record and win over folded values."""
        record = transform_actions_to_counters(
            status={'auto': {'leftStartZone': True}, 'endgame': {'climbL1': True}},
        )
        assert record['auto']['leftStartZone'] is True
        assert record['endgame']['climbL1'] is True

    def test_unknown_status_section_ignored(self):
        record = transform_actions_to_counters(status={'pregame': {'ready': True}})
        assert 'pregame' not in record

    def test_broken_down_time(self):
        record = transform_actions_to_counters(broken_down_ms={'teleop': 4200})

        assert record['teleop']['brokenDownDuration'] == 4200
        assert record['auto']['brokenDownDuration'] == 0
        assert record['endgame']['brokeDown'] is True

    def test_counters_never_negative(self):
        record = transform_actions_to_counters(status={'teleop': {'stealCount': -2}})
        assert record['teleop']['stealCount'] == 0

    def test_idempotent(self):
        """Test that transforming the same log twice gives the same record."""
        actions = [
            act('a', ActionType.SCORE, fuel_delta=-8),
            act('b', ActionType.STEAL),
        ]
        first = transform_actions_to_counters(teleop_actions=actions)
        second = transform_actions_to_counters(teleop_actions=actions)

        assert first == second
        assert second['teleop']['fuelScoredCount'] == 8

    def test_phase_results(self):
        results = [
            PhaseResult('auto', [act('a', ActionType.SCORE, phase='auto', fuel_delta=-3)], 0),
            PhaseResult('teleop', [act('b', ActionType.SCORE, fuel_delta=-5)], 1000),
        ]
        record = transform_phase_results(results, start_position=0)

        assert record['auto']['fuelScoredCount'] == 3
        assert record['teleop']['fuelScoredCount'] == 5
        assert record['teleop']['brokenDownDuration'] == 1000
        assert record['auto']['startPosition'] == 0
