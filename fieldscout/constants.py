"""Constants and key mappings for fieldscout."""

from enum import Enum

# Match phases that produce an action log
PHASES = ('auto', 'teleop')

# Sections of a persisted counter record
RECORD_SECTIONS = ('auto', 'teleop', 'endgame')


class ActionType(str, Enum):
    """Tag for a committed scouting action."""

    START = 'start'
    TRAVERSAL = 'traversal'
    SCORE = 'score'
    PASS = 'pass'
    COLLECT = 'collect'
    CLIMB = 'climb'
    DEFENSE = 'defense'
    STEAL = 'steal'
    FOUL = 'foul'


# Action types whose quantity is entered before confirmation
QUANTITY_ACTIONS = {ActionType.SCORE, ActionType.PASS, ActionType.COLLECT}

# Quantity actions that move fuel away from the robot (stored as negative deltas)
OUTGOING_ACTIONS = {ActionType.SCORE, ActionType.PASS}

# Categories that need a follow-up target tap
SELECTION_KINDS = ('score', 'pass', 'collect')

CLIMB_LEVELS = ('L1', 'L2', 'L3')
CLIMB_RESULTS = ('success', 'fail')

# Field element keys (2026 field). Geometry lives in the UI layer.
TRAVERSAL_KEYS = ('trench1', 'trench2', 'bump1', 'bump2')
AUTO_START_KEYS = ('trench1', 'bump1', 'hub', 'bump2', 'trench2')
SHOT_KEYS = (
    'shot_hub',
    'shot_outpost_close',
    'shot_outpost_medium',
    'shot_outpost_far',
    'shot_depot_close',
    'shot_depot_medium',
    'shot_depot_far',
)
PASS_KEYS = ('pass', 'pass_alliance', 'pass_opponent')
FIELD_COLLECT_KEYS = ('collect_neutral', 'collect_alliance')
STATION_COLLECT_KEYS = ('depot', 'outpost')
DEFENSE_KEYS = {
    'defense_alliance': 'alliance',
    'defense_neutral': 'neutral',
    'defense_opponent': 'opponent',
}
HUB_KEY = 'hub'
TOWER_KEY = 'tower'
STEAL_KEY = 'steal'
FOUL_KEY = 'opponent_foul'

# Defaults used when a season config does not override them
DEFAULT_COLLECT_AMOUNT = 8
DEFAULT_STUCK_WINDOW_MS = 5000
DEFAULT_FUEL_OPTIONS = [1, 3, 5, 8, 10]

# Discrepancy severity tiers, lowest first
SEVERITY_TIERS = ('none', 'minor', 'warning', 'critical')
SEVERITY_RANK = {tier: rank for rank, tier in enumerate(SEVERITY_TIERS)}

ALLIANCES = ('red', 'blue')

# Fallback labels for start position buckets
DEFAULT_START_POSITION_LABELS = ['Left', 'Center', 'Right', 'Pos 3', 'Pos 4', 'Pos 5']
