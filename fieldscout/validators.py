"""Validation of scouted data against authoritative match results."""

import logging
import re
from collections import defaultdict
from typing import Callable, Iterable, Mapping, Optional, Sequence

from .constants import ALLIANCES, CLIMB_LEVELS, RECORD_SECTIONS, SEVERITY_RANK, SEVERITY_TIERS
from .models import AllianceValidation, FieldComparison, TeamValidationResult
from .schemas import FieldSpec, ScoutingEntry, SeverityThresholds, ThresholdConfig
from .utils import resolve_path

logger = logging.getLogger('fieldscout.validators')

# (alliance aggregate, authoritative breakdown) -> comparisons
FieldMapping = Callable[[Mapping, Mapping], list[FieldComparison]]

TEAM_KEY_PATTERN = re.compile(r'(?:frc)?(\d+)', re.IGNORECASE)


def aggregate_alliance(records: Iterable[Mapping]) -> dict[str, dict[str, float]]:
    """
    Sum scouted counter records field by field.

    The authoritative breakdown only reports alliance totals, so the three
    robots' records are combined before comparison. Numbers are summed,
    booleans count the robots they are True for, and startPosition and
    non-numeric values are skipped.

    Args:
        records: Counter records for the robots of one alliance

    Returns:
        Aggregate record with the same section layout
    """
    aggregate: dict[str, dict[str, float]] = {section: defaultdict(int) for section in RECORD_SECTIONS}

    for record in records:
        for section in RECORD_SECTIONS:
            for key, value in ((record or {}).get(section) or {}).items():
                if key == 'startPosition':
                    continue
                if isinstance(value, bool):
                    aggregate[section][key] += int(value)
                elif isinstance(value, (int, float)):
                    aggregate[section][key] += value

    return {section: dict(values) for section, values in aggregate.items()}


def mapping_from_specs(specs: Sequence[FieldSpec]) -> FieldMapping:
    """
    Build a season field-mapping function from declarative field specs.

    Every path in a spec is summed; paths missing from either side resolve to
    0 and are still compared.
    """
    specs = list(specs)

    def mapping(aggregate: Mapping, breakdown: Mapping) -> list[FieldComparison]:
        comparisons = []
        for spec in specs:
            scouted = sum(resolve_path(aggregate, path) for path in spec.scouted)
            tba = sum(resolve_path(breakdown, path) for path in spec.tba)
            comparisons.append(
                FieldComparison(
                    category=spec.category,
                    field=spec.field,
                    scouted_value=scouted,
                    tba_value=tba,
                    unit=spec.unit,
                )
            )
        return comparisons

    return mapping


def get_field_mapping(season_config) -> FieldMapping:
    """Field mapping declared by a SeasonConfig."""
    return mapping_from_specs(season_config.fields)


def _tier_reached(value: float, thresholds: SeverityThresholds, suffix: str = '') -> Optional[str]:
    """Highest tier whose threshold value reaches; None if no threshold is configured."""
    tier = 'none'
    configured = False
    for name in ('minor', 'warning', 'critical'):
        limit = getattr(thresholds, f'{name}{suffix}')
        if limit is None:
            continue
        configured = True
        if value >= limit:
            tier = name
    return tier if configured else None


def classify_severity(comparison: FieldComparison, thresholds: SeverityThresholds) -> str:
    """
    Classify a discrepancy as none, minor, warning or critical.

    The absolute difference picks a tier. When percent thresholds are also
    configured the discrepancy must reach a tier in both terms, so the lower
    of the two tiers is used.

    Args:
        comparison: Scouted vs. authoritative value
        thresholds: Thresholds for the comparison's category

    Returns:
        Severity tier name
    """
    difference = abs(comparison.difference)
    if difference == 0:
        return 'none'

    tier = _tier_reached(difference, thresholds)
    percent_tier = _tier_reached(comparison.percent_difference, thresholds, '_percent')
    if percent_tier is not None and SEVERITY_RANK[percent_tier] < SEVERITY_RANK[tier]:
        tier = percent_tier
    return tier


def max_severity(severities: Iterable[str]) -> str:
    """Highest severity tier in a collection ('none' when empty)."""
    highest = 'none'
    for severity in severities:
        if SEVERITY_RANK[severity] > SEVERITY_RANK[highest]:
            highest = severity
    return highest


def validate_alliance(
    records: Sequence[Mapping],
    breakdown: Optional[Mapping],
    mapping: FieldMapping,
    thresholds: Optional[ThresholdConfig] = None,
    alliance: str = '',
    match_key: str = '',
) -> AllianceValidation:
    """
    Compare an alliance's scouted records against its authoritative breakdown.

    Args:
        records: Counter records for the alliance's robots
        breakdown: Authoritative score breakdown for the alliance (may be empty)
        mapping: Season field-mapping function
        thresholds: Severity thresholds (default: ThresholdConfig())
        alliance: Alliance color, for reporting
        match_key: Match key, for reporting

    Returns:
        AllianceValidation with per-field severities and summaries
    """
    thresholds = thresholds or ThresholdConfig()
    if len(records) != 3:
        logger.warning(
            f'{match_key} {alliance}: validating {len(records)} scouted robots (expected 3)'
        )
    if not breakdown:
        logger.warning(f'{match_key} {alliance}: no authoritative breakdown, comparing against zeros')

    aggregate = aggregate_alliance(records)
    comparisons = []
    for comparison in mapping(aggregate, breakdown or {}):
        comparison.severity = classify_severity(comparison, thresholds.for_category(comparison.category))
        comparisons.append(comparison)

    severity_counts = {tier: 0 for tier in SEVERITY_TIERS}
    category_severity: dict[str, str] = {}
    for comparison in comparisons:
        severity_counts[comparison.severity] += 1
        category_severity[comparison.category] = max_severity(
            [category_severity.get(comparison.category, 'none'), comparison.severity]
        )

    result = AllianceValidation(
        alliance=alliance,
        match_key=match_key,
        comparisons=comparisons,
        overall_severity=max_severity(c.severity for c in comparisons),
        severity_counts=severity_counts,
        category_severity=category_severity,
    )
    if result.overall_severity != 'none':
        logger.info(
            f'{match_key} {alliance}: {result.overall_severity} discrepancies '
            f'({len(comparisons) - severity_counts["none"]} of {len(comparisons)} fields)'
        )
    return result


def parse_team_key(team_key) -> Optional[int]:
    """
    'frc254' or 254 -> 254.

    Offseason B/C robots ('frc1678B') resolve to their parent team number.
    Returns None for keys with no team number.
    """
    if isinstance(team_key, int):
        return team_key
    match = TEAM_KEY_PATTERN.match(str(team_key).strip())
    if match is None:
        return None
    return int(match.group(1))


def _roster_numbers(team_keys: Sequence) -> set[int]:
    numbers = set()
    for team_key in team_keys or []:
        number = parse_team_key(team_key)
        if number is None:
            logger.warning(f'Skipping unrecognised team key in roster: {team_key!r}')
            continue
        numbers.add(number)
    return numbers


def validate_team_membership(
    team_number: int,
    expected_alliance: str,
    alliances: Mapping[str, Sequence],
) -> TeamValidationResult:
    """
    Check that a scouted team actually played on the scouted alliance.

    Never raises; problems are reported in the result's error field.

    Args:
        team_number: Scouted team number
        expected_alliance: Alliance the scout recorded ('red' or 'blue')
        alliances: Authoritative rosters, e.g. {'red': ['frc254', ...], 'blue': [...]}
    """
    rosters = {color: _roster_numbers(alliances.get(color)) for color in ALLIANCES}

    if team_number in rosters.get(expected_alliance, set()):
        return TeamValidationResult(
            team_number=team_number,
            was_in_match=True,
            expected_alliance=expected_alliance,
            actual_alliance=expected_alliance,
        )

    for color in ALLIANCES:
        if color != expected_alliance and team_number in rosters[color]:
            return TeamValidationResult(
                team_number=team_number,
                was_in_match=True,
                expected_alliance=expected_alliance,
                actual_alliance=color,
                error=f'Team {team_number} was on the {color} alliance, not {expected_alliance}',
            )

    return TeamValidationResult(
        team_number=team_number,
        was_in_match=False,
        expected_alliance=expected_alliance,
        error=f'Team {team_number} was not in this match',
    )


def validate_alliance_teams(
    entries: Iterable[ScoutingEntry],
    alliances: Mapping[str, Sequence],
) -> list[TeamValidationResult]:
    """Roster check for every scouted entry; advisory only."""
    results = []
    for entry in entries:
        result = validate_team_membership(entry.team_number, entry.alliance, alliances)
        if result.error:
            logger.warning(f'Match {entry.match_number}: {result.error}')
        results.append(result)
    return results


def validate_match(
    entries: Sequence[ScoutingEntry],
    match: Mapping,
    season_config,
    match_key: str = '',
) -> dict[str, AllianceValidation]:
    """
    Validate every scouted alliance of one match.

    Args:
        entries: Scouting entries for the match (either alliance)
        match: {'alliances': {color: [team keys]}, 'score_breakdown': {color: {...}}}
        season_config: SeasonConfig providing the field mapping and thresholds
        match_key: Match key, for reporting

    Returns:
        Dict of alliance color -> AllianceValidation (only scouted alliances)
    """
    mapping = get_field_mapping(season_config)
    alliances = match.get('alliances') or {}
    breakdowns = match.get('score_breakdown') or {}

    by_alliance: dict[str, list[ScoutingEntry]] = defaultdict(list)
    for entry in entries:
        by_alliance[entry.alliance].append(entry)

    results = {}
    for color in ALLIANCES:
        alliance_entries = by_alliance.get(color)
        if not alliance_entries:
            continue
        result = validate_alliance(
            [entry.game_data for entry in alliance_entries],
            breakdowns.get(color),
            mapping,
            season_config.thresholds,
            alliance=color,
            match_key=match_key,
        )
        result.teams = validate_alliance_teams(alliance_entries, alliances)
        results[color] = result
    return results


def validate_counter_record(record: Mapping) -> list[str]:
    """
    Sanity-check a counter record before it is trusted for analysis.

    Checks:
    - Counters are non-negative integers
    - At most one endgame climb level is set
    - A failed climb is not also recorded as a successful one

    Returns:
        List of warning messages (empty if no issues)
    """
    warnings = []

    for section in RECORD_SECTIONS:
        for key, value in ((record or {}).get(section) or {}).items():
            if key == 'startPosition' or isinstance(value, bool) or value is None:
                continue
            if not isinstance(value, int):
                warnings.append(f'{section}.{key} is not an integer: {value!r}')
            elif value < 0:
                warnings.append(f'{section}.{key} is negative: {value}')

    endgame = (record or {}).get('endgame') or {}
    levels = [level for level in CLIMB_LEVELS if endgame.get(f'climb{level}') is True]
    if len(levels) > 1:
        warnings.append(f'Multiple climb levels recorded: {", ".join(levels)}')
    if levels and endgame.get('climbFailed') is True:
        warnings.append(f'Climb recorded as both {levels[0]} and failed')

    return warnings
