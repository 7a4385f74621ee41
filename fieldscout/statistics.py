"""Per-team statistics over scouted counter records."""

import logging
import math
from collections import defaultdict
from typing import Iterable, Mapping, Optional, Sequence

import polars as pl

from .constants import CLIMB_LEVELS, DEFAULT_START_POSITION_LABELS
from .models import MatchResult, TeamStats
from .schemas import PointTable, ScoutingEntry
from .scoring import calculate_scores
from .utils import counter_value, flag_value, percent, round_half_up

logger = logging.getLogger('fieldscout.statistics')


def _as_entry(item, index: int = 0) -> ScoutingEntry:
    """
    Accept a ScoutingEntry, an entry dict, or a bare counter record.

    Bare records carry no metadata; they are numbered by position.
    """
    if isinstance(item, ScoutingEntry):
        return item
    if isinstance(item, Mapping) and 'game_data' in item:
        return ScoutingEntry.model_validate(item)
    return ScoutingEntry.model_construct(
        team_number=0,
        match_number=index + 1,
        alliance='',
        game_data=dict(item or {}),
    )


def _mean(total: float, count: int, decimals: int = 1) -> float:
    if count == 0:
        return 0.0
    return round_half_up(total / count, decimals)


def _climb_level(record: Mapping) -> int:
    for number, level in reversed(list(enumerate(CLIMB_LEVELS, start=1))):
        if flag_value(record, 'endgame', f'climb{level}'):
            return number
    return 0


def _start_position(record: Mapping) -> int:
    position = (record.get('auto') or {}).get('startPosition')
    if isinstance(position, int) and not isinstance(position, bool) and position >= 0:
        return position
    return -1


def _defense_actions(record: Mapping) -> int:
    return sum(
        counter_value(record, 'teleop', f'defense{zone}Count')
        for zone in ('Alliance', 'Neutral', 'Opponent')
    )


def build_match_result(entry: ScoutingEntry, point_table: PointTable) -> MatchResult:
    """Per-match row for one scouting entry."""
    record = entry.game_data
    scores = calculate_scores(record, point_table)
    climb_level = _climb_level(record)
    return MatchResult(
        match_number=entry.match_number,
        alliance=entry.alliance,
        event_key=entry.event_key,
        team_number=entry.team_number,
        scout_name=entry.scout_name,
        total_points=scores.total_points,
        auto_points=scores.auto_points,
        teleop_points=scores.teleop_points,
        endgame_points=scores.endgame_points,
        endgame_success=climb_level > 0,
        climb_level=climb_level,
        broke_down=flag_value(record, 'endgame', 'brokeDown'),
        start_position=_start_position(record),
        auto_fuel=counter_value(record, 'auto', 'fuelScoredCount'),
        teleop_fuel=counter_value(record, 'teleop', 'fuelScoredCount'),
        fuel_passed=(
            counter_value(record, 'auto', 'fuelPassedCount')
            + counter_value(record, 'teleop', 'fuelPassedCount')
        ),
        comment=entry.comments,
    )


def start_position_histogram(
    positions: Iterable[int],
    match_count: int,
    labels: Optional[Sequence[str]] = None,
) -> dict[str, int]:
    """
    Percentage of matches started from each position.

    Buckets are floored so the histogram never sums past 100. Positions
    outside the label list and buckets at 0% are left out.
    """
    labels = list(labels or DEFAULT_START_POSITION_LABELS)
    counts: dict[int, int] = defaultdict(int)
    for position in positions:
        if 0 <= position < len(labels):
            counts[position] += 1

    histogram = {}
    if match_count == 0:
        return histogram
    for index, label in enumerate(labels):
        share = math.floor(counts[index] / match_count * 100)
        if share > 0:
            histogram[label] = share
    return histogram


def calculate_team_stats(
    entries: Iterable,
    point_table: PointTable,
    start_position_labels: Optional[Sequence[str]] = None,
) -> TeamStats:
    """
    Calculate aggregate statistics for one team.

    Means are rounded half-up to one decimal, rates are whole percentages
    of matches played. A team with no matches gets an all-zero TeamStats.

    Args:
        entries: ScoutingEntry objects (or entry dicts / bare counter records)
        point_table: Season point table used to score each record
        start_position_labels: Labels for start-position buckets

    Returns:
        TeamStats
    """
    entries = [_as_entry(item, index) for index, item in enumerate(entries)]
    match_count = len(entries)
    if match_count == 0:
        return TeamStats()

    stats = TeamStats(
        team_number=entries[0].team_number,
        event_key=entries[0].event_key,
        match_count=match_count,
    )

    results = [build_match_result(entry, point_table) for entry in entries]
    records = [entry.game_data for entry in entries]

    def total(section: str, key: str) -> float:
        return sum(counter_value(record, section, key) for record in records)

    def occurrences(section: str, key: str) -> int:
        return sum(1 for record in records if flag_value(record, section, key))

    # Points
    stats.avg_total_points = _mean(sum(r.total_points for r in results), match_count)
    stats.avg_auto_points = _mean(sum(r.auto_points for r in results), match_count)
    stats.avg_teleop_points = _mean(sum(r.teleop_points for r in results), match_count)
    stats.avg_endgame_points = _mean(sum(r.endgame_points for r in results), match_count)

    # Fuel
    auto_fuel = total('auto', 'fuelScoredCount')
    teleop_fuel = total('teleop', 'fuelScoredCount')
    stats.avg_auto_fuel = _mean(auto_fuel, match_count)
    stats.avg_teleop_fuel = _mean(teleop_fuel, match_count)
    stats.avg_total_fuel = _mean(auto_fuel + teleop_fuel, match_count)
    stats.avg_auto_fuel_passed = _mean(total('auto', 'fuelPassedCount'), match_count)
    stats.avg_teleop_fuel_passed = _mean(total('teleop', 'fuelPassedCount'), match_count)
    stats.avg_fuel_collected = _mean(
        total('auto', 'fuelCollectedCount') + total('teleop', 'fuelCollectedCount'), match_count
    )

    # Rates
    stats.mobility_rate = percent(occurrences('auto', 'leftStartZone'), match_count)
    stats.auto_climb_rate = percent(occurrences('auto', 'autoClimbL1'), match_count)
    level_counts = {level: occurrences('endgame', f'climb{level}') for level in CLIMB_LEVELS}
    stats.climb_l1_rate = percent(level_counts['L1'], match_count)
    stats.climb_l2_rate = percent(level_counts['L2'], match_count)
    stats.climb_l3_rate = percent(level_counts['L3'], match_count)
    stats.climb_success_rate = percent(sum(1 for r in results if r.endgame_success), match_count)
    stats.climb_failed_rate = percent(occurrences('endgame', 'climbFailed'), match_count)
    stats.defense_rate = percent(occurrences('teleop', 'playedDefense'), match_count)
    stats.broke_down_rate = percent(sum(1 for r in results if r.broke_down), match_count)

    # Teleop play style
    stats.avg_defense_actions = _mean(sum(_defense_actions(record) for record in records), match_count)
    stats.avg_steals = _mean(total('teleop', 'stealCount'), match_count)

    # Stuck and downtime (durations recorded in ms, reported in seconds)
    stats.avg_auto_trench_stuck = _mean(total('auto', 'trenchStuckCount'), match_count)
    stats.avg_auto_bump_stuck = _mean(total('auto', 'bumpStuckCount'), match_count)
    stats.avg_auto_trench_stuck_duration = _mean(total('auto', 'trenchStuckDuration') / 1000, match_count)
    stats.avg_auto_bump_stuck_duration = _mean(total('auto', 'bumpStuckDuration') / 1000, match_count)
    stats.avg_trench_stuck = _mean(total('teleop', 'trenchStuckCount'), match_count)
    stats.avg_bump_stuck = _mean(total('teleop', 'bumpStuckCount'), match_count)
    stats.avg_trench_stuck_duration = _mean(total('teleop', 'trenchStuckDuration') / 1000, match_count)
    stats.avg_bump_stuck_duration = _mean(total('teleop', 'bumpStuckDuration') / 1000, match_count)
    stats.avg_broken_down_duration = _mean(
        (total('auto', 'brokenDownDuration') + total('teleop', 'brokenDownDuration')) / 1000, match_count
    )

    stats.start_positions = start_position_histogram(
        (r.start_position for r in results), match_count, start_position_labels
    )

    stats.raw_values = {
        'totalPoints': [r.total_points for r in results],
        'autoPoints': [r.auto_points for r in results],
        'teleopPoints': [r.teleop_points for r in results],
        'endgamePoints': [r.endgame_points for r in results],
        'autoFuel': [r.auto_fuel for r in results],
        'teleopFuel': [r.teleop_fuel for r in results],
    }
    stats.match_results = sorted(results, key=lambda r: r.match_number)
    return stats


def calculate_all_team_stats(
    entries: Iterable,
    point_table: PointTable,
    start_position_labels: Optional[Sequence[str]] = None,
) -> dict[int, TeamStats]:
    """
    Group entries by team and calculate stats for each.

    Returns:
        Dict of team number -> TeamStats, in ascending team order
    """
    by_team: dict[int, list[ScoutingEntry]] = defaultdict(list)
    for index, item in enumerate(entries):
        entry = _as_entry(item, index)
        by_team[entry.team_number].append(entry)

    logger.info(f'Calculating stats for {len(by_team)} teams')
    return {
        team: calculate_team_stats(team_entries, point_table, start_position_labels)
        for team, team_entries in sorted(by_team.items())
    }


def match_results_frame(entries: Iterable, point_table: PointTable) -> pl.DataFrame:
    """Per-match rows as a polars DataFrame, sorted by team then match."""
    rows = [build_match_result(_as_entry(item, index), point_table) for index, item in enumerate(entries)]
    schema = {
        'team_number': pl.Int64,
        'match_number': pl.Int64,
        'alliance': pl.Utf8,
        'total_points': pl.Float64,
        'auto_points': pl.Float64,
        'teleop_points': pl.Float64,
        'endgame_points': pl.Float64,
        'climb_level': pl.Int64,
        'broke_down': pl.Boolean,
        'start_position': pl.Int64,
        'auto_fuel': pl.Int64,
        'teleop_fuel': pl.Int64,
        'fuel_passed': pl.Int64,
    }
    df = pl.DataFrame(
        {name: [getattr(row, name) for row in rows] for name in schema},
        schema=schema,
    )
    return df.sort(['team_number', 'match_number'])


def summarize_frame(df: pl.DataFrame) -> pl.DataFrame:
    """Per-team distribution summary (mean, spread, best) of total points."""
    if df.height == 0:
        return pl.DataFrame(schema={
            'team_number': pl.Int64,
            'matches': pl.UInt32,
            'mean_points': pl.Float64,
            'std_points': pl.Float64,
            'max_points': pl.Float64,
        })
    return (
        df.group_by('team_number')
        .agg(
            pl.len().alias('matches'),
            pl.col('total_points').mean().alias('mean_points'),
            pl.col('total_points').std().alias('std_points'),
            pl.col('total_points').max().alias('max_points'),
        )
        .sort('team_number')
    )
