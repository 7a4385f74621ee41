from .models import (
    Action,
    PendingAction,
    PhaseResult,
    ScoringResult,
    FieldComparison,
    TeamValidationResult,
    AllianceValidation,
    MatchResult,
    TeamStats,
)
from .action_log import ActionLog
from .tracker import (
    PhaseTracker,
    TrackerState,
    TrackerEvent,
    TrackerInvariantError,
    replay_events,
)
from .transformation import (
    empty_record,
    transform_phase,
    transform_actions_to_counters,
    transform_phase_results,
)
from .scoring import (
    score_phase,
    calculate_scores,
    calculate_total_points,
    score_live_phase,
)
from .validators import (
    aggregate_alliance,
    mapping_from_specs,
    get_field_mapping,
    classify_severity,
    validate_alliance,
    validate_team_membership,
    validate_alliance_teams,
    validate_match,
    validate_counter_record,
)
from .statistics import (
    calculate_team_stats,
    calculate_all_team_stats,
    match_results_frame,
    summarize_frame,
)
from .data_fetcher import TBADataFetcher, build_match_key
from .config import get_config, get_season_config, get_point_table

__all__ = [
    # Models
    'Action',
    'PendingAction',
    'PhaseResult',
    'ScoringResult',
    'FieldComparison',
    'TeamValidationResult',
    'AllianceValidation',
    'MatchResult',
    'TeamStats',
    # Live capture
    'ActionLog',
    'PhaseTracker',
    'TrackerState',
    'TrackerEvent',
    'TrackerInvariantError',
    'replay_events',
    # Transformation
    'empty_record',
    'transform_phase',
    'transform_actions_to_counters',
    'transform_phase_results',
    # Scoring
    'score_phase',
    'calculate_scores',
    'calculate_total_points',
    'score_live_phase',
    # Validation
    'aggregate_alliance',
    'mapping_from_specs',
    'get_field_mapping',
    'classify_severity',
    'validate_alliance',
    'validate_team_membership',
    'validate_alliance_teams',
    'validate_match',
    'validate_counter_record',
    # Statistics
    'calculate_team_stats',
    'calculate_all_team_stats',
    'match_results_frame',
    'summarize_frame',
    # Data fetching
    'TBADataFetcher',
    'build_match_key',
    # Config
    'get_config',
    'get_season_config',
    'get_point_table',
]
