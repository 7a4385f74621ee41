"""
Action log -> counter record transformation.

The counter record is the only thing persisted for a match. It is rebuilt from
scratch on every call, so running the transformation twice on the same input
gives an identical record and never double-counts.
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence

from .constants import RECORD_SECTIONS, ActionType
from .models import Action

logger = logging.getLogger('fieldscout.transformation')

# Built-in 2026 counters, initialised to zero/False on every record
PHASE_COUNTERS = (
    'fuelScoredCount',
    'fuelPassedCount',
    'fuelCollectedCount',
    'depotCollectCount',
    'outpostCollectCount',
    'trenchTraversalCount',
    'bumpTraversalCount',
    'trenchStuckCount',
    'bumpStuckCount',
    'trenchStuckDuration',
    'bumpStuckDuration',
    'foulCount',
    'brokenDownDuration',
)
AUTO_FLAGS = ('autoClimbL1', 'autoClimbFailed')
TELEOP_COUNTERS = (
    'defenseAllianceCount',
    'defenseNeutralCount',
    'defenseOpponentCount',
    'stealCount',
)
ENDGAME_FLAGS = ('climbL1', 'climbL2', 'climbL3', 'climbFailed', 'brokeDown')

FUEL_BUCKETS = {
    ActionType.SCORE: 'fuelScoredCount',
    ActionType.PASS: 'fuelPassedCount',
    ActionType.COLLECT: 'fuelCollectedCount',
}


def empty_record(schema=None) -> dict[str, dict[str, Any]]:
    """
    Build a counter record with every known counter at zero/False.

    Args:
        schema: Optional CounterSchema declaring extra season keys
    """
    record: dict[str, dict[str, Any]] = {
        'auto': {'startPosition': None},
        'teleop': {},
        'endgame': {},
    }
    for key in PHASE_COUNTERS:
        record['auto'][key] = 0
        record['teleop'][key] = 0
    for key in AUTO_FLAGS:
        record['auto'][key] = False
    for key in TELEOP_COUNTERS:
        record['teleop'][key] = 0
    for key in ENDGAME_FLAGS:
        record['endgame'][key] = False

    if schema is not None:
        for section in RECORD_SECTIONS:
            for key, kind in getattr(schema, section).items():
                record[section].setdefault(key, False if kind == 'flag' else 0)
    return record


def _action_type(action: Action) -> Optional[ActionType]:
    try:
        return ActionType(action.type)
    except ValueError:
        return None


def _fold_action(record: dict, phase: str, action: Action) -> None:
    """Route one action into its counter bucket."""
    counters = record[phase]
    action_type = _action_type(action)

    if action_type in FUEL_BUCKETS:
        amount = abs(int(action.fuel_delta or 0))
        counters[FUEL_BUCKETS[action_type]] += amount
        if action_type == ActionType.COLLECT and action.action in ('depot', 'outpost'):
            counters[f'{action.action}CollectCount'] += 1

    elif action_type == ActionType.TRAVERSAL:
        kind, _, modifier = (action.action or '').partition('-')
        if kind not in ('trench', 'bump'):
            logger.debug(f'Ignoring traversal with unknown element: {action.action!r}')
            return
        if modifier == 'stuck':
            counters[f'{kind}StuckCount'] += 1
            counters[f'{kind}StuckDuration'] += max(int(action.duration_ms or 0), 0)
        else:
            counters[f'{kind}TraversalCount'] += 1

    elif action_type == ActionType.CLIMB:
        succeeded = action.climb_result == 'success'
        if phase == 'auto':
            if succeeded:
                counters['autoClimbL1'] = True
            else:
                counters['autoClimbFailed'] = True
        elif succeeded and action.climb_level in ('L1', 'L2', 'L3'):
            record['endgame'][f'climb{action.climb_level}'] = True
        else:
            record['endgame']['climbFailed'] = True

    elif action_type == ActionType.DEFENSE:
        zone = (action.action or '').capitalize()
        key = f'defense{zone}Count'
        counters[key] = counters.get(key, 0) + 1

    elif action_type == ActionType.STEAL:
        counters['stealCount'] = counters.get('stealCount', 0) + 1

    elif action_type == ActionType.FOUL:
        counters['foulCount'] += 1

    elif action_type == ActionType.START:
        pass

    else:
        logger.debug(f'Ignoring unknown action type: {action.type!r}')


def transform_phase(phase: str, actions: Iterable[Action], record: Optional[dict] = None) -> dict:
    """
    Fold one phase's actions left to right into a counter record.

    Args:
        phase: 'auto' or 'teleop'
        actions: Committed actions in commit order
        record: Record to fold into (default: a fresh empty record)

    Returns:
        The counter record
    """
    if record is None:
        record = empty_record()
    for action in actions:
        _fold_action(record, phase, action)
    return record


def _start_position_index(start_position) -> Optional[int]:
    """Accept an index or a one-hot list of booleans."""
    if start_position is None:
        return None
    if isinstance(start_position, bool):
        return None
    if isinstance(start_position, int):
        return start_position if start_position >= 0 else None
    for index, selected in enumerate(start_position):
        if selected is True:
            return index
    return None


def _sanitize(record: dict) -> None:
    """Counters are non-negative integers; flags stay booleans."""
    for section in RECORD_SECTIONS:
        for key, value in record[section].items():
            if key == 'startPosition' or isinstance(value, bool) or value is None:
                continue
            if isinstance(value, (int, float)):
                record[section][key] = max(int(value), 0)


def transform_actions_to_counters(
    auto_actions: Iterable[Action] = (),
    teleop_actions: Iterable[Action] = (),
    status: Optional[Mapping[str, Mapping[str, Any]]] = None,
    start_position: Optional[int | Sequence[bool]] = None,
    broken_down_ms: Optional[Mapping[str, int]] = None,
    schema=None,
) -> dict[str, dict[str, Any]]:
    """
    Transform a match's action logs into a persisted counter record.

    Args:
        auto_actions: Committed auto-phase actions
        teleop_actions: Committed teleop-phase actions
        status: Raw status toggles per section, e.g.
            {'auto': {'leftStartZone': True}, 'endgame': {'climbL2': True}}.
            Toggles are overlaid last and win over folded values.
        start_position: Start position index or one-hot list of booleans
        broken_down_ms: Total broken-down time per phase
        schema: Optional CounterSchema declaring extra season keys

    Returns:
        Counter record {'auto': {...}, 'teleop': {...}, 'endgame': {...}}
    """
    record = empty_record(schema)
    record['auto']['startPosition'] = _start_position_index(start_position)

    transform_phase('auto', auto_actions, record)
    transform_phase('teleop', teleop_actions, record)

    broken_down_ms = broken_down_ms or {}
    for phase in ('auto', 'teleop'):
        record[phase]['brokenDownDuration'] = max(int(broken_down_ms.get(phase, 0) or 0), 0)
    record['endgame']['brokeDown'] = any(
        record[phase]['brokenDownDuration'] > 0 for phase in ('auto', 'teleop')
    )

    for section, toggles in (status or {}).items():
        if section not in RECORD_SECTIONS:
            logger.debug(f'Ignoring toggles for unknown section: {section}')
            continue
        for key, value in (toggles or {}).items():
            record[section][key] = value

    _sanitize(record)
    return record


def transform_phase_results(results, status=None, start_position=None, schema=None) -> dict:
    """
    Transform finished PhaseTracker results into a counter record.

    Args:
        results: Iterable of PhaseResult (one per phase)
    """
    actions = {'auto': [], 'teleop': []}
    broken_down = {}
    for result in results:
        actions[result.phase] = list(result.actions)
        broken_down[result.phase] = result.broken_down_ms
    return transform_actions_to_counters(
        actions['auto'],
        actions['teleop'],
        status=status,
        start_position=start_position,
        broken_down_ms=broken_down,
        schema=schema,
    )
