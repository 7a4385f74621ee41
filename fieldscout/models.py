"""Data models for fieldscout."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .constants import ActionType, OUTGOING_ACTIONS, QUANTITY_ACTIONS


@dataclass(frozen=True)
class Action:
    """One committed scouting event. Never mutated after it enters a log."""
    id: str
    type: ActionType
    phase: str
    timestamp: int
    action: str = ''  # subtype, e.g. 'trench-stuck', 'shot_hub', 'depot'
    position: Optional[Tuple[float, float]] = None
    fuel_delta: Optional[int] = None
    amount_label: Optional[str] = None
    climb_level: Optional[str] = None
    climb_result: Optional[str] = None
    duration_ms: Optional[int] = None
    sequence: int = -1  # commit position, assigned by ActionLog
    extra: Dict[str, Any] = field(default_factory=dict, hash=False, compare=True)


@dataclass
class PendingAction:
    """Draft action awaiting quantity or outcome confirmation."""
    type: ActionType
    phase: str
    action: str = ''
    position: Optional[Tuple[float, float]] = None
    created_at: int = 0
    accumulated: int = 0
    history: List[int] = field(default_factory=list)
    climb_level: Optional[str] = None
    climb_result: Optional[str] = None

    @property
    def needs_quantity(self) -> bool:
        return self.type in QUANTITY_ACTIONS

    def signed_delta(self) -> int:
        """Accumulated quantity with the sign convention for its type."""
        if self.type in OUTGOING_ACTIONS:
            return -self.accumulated
        return self.accumulated


@dataclass
class StuckInterval:
    """Span during which a robot was stuck on a field element."""
    element_key: str
    start: int
    end: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.end is None

    @property
    def duration_ms(self) -> int:
        if self.end is None:
            return 0
        return self.end - self.start


@dataclass
class BrokenDownInterval:
    """Phase-level broken-down tracking: one open start plus accumulated downtime."""
    start: Optional[int] = None
    total_ms: int = 0

    @property
    def is_open(self) -> bool:
        return self.start is not None


@dataclass
class PhaseResult:
    """Everything a finished phase hands to the transformer."""
    phase: str
    actions: List[Action] = field(default_factory=list)
    broken_down_ms: int = 0


@dataclass
class ScoringResult:
    """Point totals derived from one counter record."""
    auto_points: float = 0.0
    teleop_points: float = 0.0
    endgame_points: float = 0.0
    breakdown: Dict[str, Dict[str, float]] = field(default_factory=dict)

    @property
    def total_points(self) -> float:
        return self.auto_points + self.teleop_points + self.endgame_points


@dataclass
class FieldComparison:
    """Scouted alliance aggregate vs. authoritative value for one metric."""
    category: str
    field: str
    scouted_value: float
    tba_value: float
    unit: Optional[str] = None
    severity: str = 'none'

    @property
    def difference(self) -> float:
        return self.scouted_value - self.tba_value

    @property
    def percent_difference(self) -> float:
        if self.tba_value == 0:
            return 0.0 if self.scouted_value == 0 else 100.0
        return abs(self.difference) / abs(self.tba_value) * 100


@dataclass
class TeamValidationResult:
    """Advisory roster check for one scouted entry."""
    team_number: int
    was_in_match: bool
    expected_alliance: str
    actual_alliance: Optional[str] = None
    error: Optional[str] = None


@dataclass
class AllianceValidation:
    """Full cross-check of one alliance in one match."""
    alliance: str
    match_key: str = ''
    comparisons: List[FieldComparison] = field(default_factory=list)
    teams: List[TeamValidationResult] = field(default_factory=list)
    overall_severity: str = 'none'
    severity_counts: Dict[str, int] = field(default_factory=dict)
    category_severity: Dict[str, str] = field(default_factory=dict)


@dataclass
class MatchResult:
    """Per-match row used by the performance view."""
    match_number: int
    alliance: str = ''
    event_key: str = ''
    team_number: int = 0
    scout_name: str = ''
    total_points: float = 0.0
    auto_points: float = 0.0
    teleop_points: float = 0.0
    endgame_points: float = 0.0
    endgame_success: bool = False
    climb_level: int = 0  # 0 = none, 1-3 = level
    broke_down: bool = False
    start_position: int = -1
    auto_fuel: int = 0
    teleop_fuel: int = 0
    fuel_passed: int = 0
    comment: str = ''


@dataclass
class TeamStats:
    """Aggregate statistics over all counter records for one team."""
    team_number: int = 0
    event_key: str = ''
    match_count: int = 0

    # Point averages
    avg_total_points: float = 0.0
    avg_auto_points: float = 0.0
    avg_teleop_points: float = 0.0
    avg_endgame_points: float = 0.0

    # Fuel averages
    avg_auto_fuel: float = 0.0
    avg_teleop_fuel: float = 0.0
    avg_auto_fuel_passed: float = 0.0
    avg_teleop_fuel_passed: float = 0.0
    avg_fuel_collected: float = 0.0
    avg_total_fuel: float = 0.0

    # Rates (0-100)
    mobility_rate: int = 0
    auto_climb_rate: int = 0
    climb_l1_rate: int = 0
    climb_l2_rate: int = 0
    climb_l3_rate: int = 0
    climb_success_rate: int = 0
    climb_failed_rate: int = 0
    defense_rate: int = 0
    broke_down_rate: int = 0

    # Teleop play style
    avg_defense_actions: float = 0.0
    avg_steals: float = 0.0

    # Stuck tracking (durations in seconds)
    avg_auto_trench_stuck: float = 0.0
    avg_auto_bump_stuck: float = 0.0
    avg_auto_trench_stuck_duration: float = 0.0
    avg_auto_bump_stuck_duration: float = 0.0
    avg_trench_stuck: float = 0.0
    avg_bump_stuck: float = 0.0
    avg_trench_stuck_duration: float = 0.0
    avg_bump_stuck_duration: float = 0.0
    avg_broken_down_duration: float = 0.0

    start_positions: Dict[str, int] = field(default_factory=dict)
    raw_values: Dict[str, List[float]] = field(default_factory=dict)
    match_results: List[MatchResult] = field(default_factory=list)
