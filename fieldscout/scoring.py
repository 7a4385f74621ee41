"""Scoring functions for counter records."""

from typing import Dict, Mapping, Optional, Tuple

from .models import ScoringResult
from .schemas import PointTable
from .transformation import transform_phase


def _counter_for(counters: Mapping, key: str):
    """
    Find the counter a point-table key refers to.

    A key matches a counter of the same name, or its 'Count' form
    ('fuelScored' -> 'fuelScoredCount').
    """
    if key in counters:
        return counters[key]
    return counters.get(f'{key}Count')


def score_phase(counters: Optional[Mapping], phase_points: Optional[Mapping[str, float]]) -> Tuple[float, Dict[str, float]]:
    """
    Score one section of a counter record.

    Scoring:
        - Boolean toggle set to True: flat point value
        - Numeric counter: count x point value
        - Keys with no counter in the record, or no entry in the point table: 0

    Args:
        counters: One section of a counter record (auto, teleop or endgame)
        phase_points: Point table entries for the same section

    Returns:
        Tuple of (points, breakdown by point-table key)
    """
    points = 0.0
    breakdown = {}
    counters = counters or {}

    for key, value in (phase_points or {}).items():
        counter = _counter_for(counters, key)

        # bool before int: True is an int
        if isinstance(counter, bool):
            key_pts = value if counter else 0
        elif isinstance(counter, (int, float)):
            key_pts = counter * value
        else:
            key_pts = 0

        if key_pts:
            breakdown[key] = key_pts
        points += key_pts

    return points, breakdown


def calculate_scores(record: Optional[Mapping], point_table: PointTable) -> ScoringResult:
    """
    Score a full counter record.

    Args:
        record: Counter record {'auto': {...}, 'teleop': {...}, 'endgame': {...}}
        point_table: Season point table

    Returns:
        ScoringResult; total_points is always auto + teleop + endgame
    """
    record = record or {}
    result = ScoringResult()

    result.auto_points, auto_breakdown = score_phase(record.get('auto'), point_table.auto)
    result.teleop_points, teleop_breakdown = score_phase(record.get('teleop'), point_table.teleop)
    result.endgame_points, endgame_breakdown = score_phase(record.get('endgame'), point_table.endgame)

    result.breakdown = {
        'auto': auto_breakdown,
        'teleop': teleop_breakdown,
        'endgame': endgame_breakdown,
    }
    return result


def calculate_total_points(record: Optional[Mapping], point_table: PointTable) -> float:
    """Total points for a counter record."""
    return calculate_scores(record, point_table).total_points


def score_live_phase(log, point_table: PointTable) -> float:
    """
    Points for an in-progress phase, for the live header display.

    Folds the log into a throwaway record; nothing is persisted.
    """
    record = transform_phase(log.phase, log)
    section = 'auto' if log.phase == 'auto' else 'teleop'
    points, _ = score_phase(record[section], point_table.for_phase(section))
    # Teleop climbs land in the endgame section
    if log.phase == 'teleop':
        endgame_points, _ = score_phase(record['endgame'], point_table.endgame)
        points += endgame_points
    return points
