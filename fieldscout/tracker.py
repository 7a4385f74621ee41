"""
Live action-capture state machine for one match phase.

A PhaseTracker turns raw field taps into committed actions. It owns the
phase's ActionLog, the single Pending Action (if any), open stuck intervals
and the broken-down interval. All state lives on the tracker instance; a new
tracker is created on phase entry, so nothing leaks between phases or matches.

Disallowed inputs (a tap while broken down, confirm with nothing entered,
undo on an empty log) are ignored and logged at DEBUG. Only broken internal
invariants raise, and only when running with __debug__.
"""

import functools
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Tuple

from .action_log import ActionLog
from .constants import (
    AUTO_START_KEYS,
    CLIMB_LEVELS,
    CLIMB_RESULTS,
    DEFAULT_COLLECT_AMOUNT,
    DEFAULT_STUCK_WINDOW_MS,
    DEFENSE_KEYS,
    FIELD_COLLECT_KEYS,
    FOUL_KEY,
    HUB_KEY,
    PASS_KEYS,
    PHASES,
    SELECTION_KINDS,
    SHOT_KEYS,
    STATION_COLLECT_KEYS,
    STEAL_KEY,
    TOWER_KEY,
    TRAVERSAL_KEYS,
    ActionType,
)
from .models import Action, BrokenDownInterval, PendingAction, PhaseResult, StuckInterval
from .utils import round_half_up

logger = logging.getLogger('fieldscout.tracker')

Position = Optional[Tuple[float, float]]


class TrackerState(str, Enum):
    """Observable state of a phase tracker."""

    IDLE = 'idle'
    SELECTING_TARGET = 'selecting_target'
    AWAITING_CONFIRMATION = 'awaiting_confirmation'
    STUCK_OPEN = 'stuck_open'
    BROKEN_DOWN = 'broken_down'


class TrackerInvariantError(RuntimeError):
    """The tracker reached a state that the transitions should make impossible."""


@dataclass
class TrackerEvent:
    """A recorded user interaction, replayable through PhaseTracker.dispatch."""
    name: str
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)


# Interactions that may be dispatched by name
EVENT_NAMES = frozenset({
    'tap',
    'mark_stuck',
    'begin_selection',
    'select_target',
    'cancel_selection',
    'add_quantity',
    'undo_quantity',
    'select_climb_level',
    'select_climb_result',
    'confirm',
    'cancel',
    'toggle_broken_down',
    'undo_last',
})

# Elements that can resolve each kind of target selection
SELECTION_TARGETS = {
    'score': SHOT_KEYS,
    'pass': PASS_KEYS,
    'collect': FIELD_COLLECT_KEYS,
}


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_id() -> str:
    return uuid.uuid4().hex


def _traversal_kind(element_key: str) -> str:
    return 'trench' if 'trench' in element_key else 'bump'


def _checked(method):
    """Run the invariant check after every state-changing interaction."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        result = method(self, *args, **kwargs)
        self._check_invariants()
        return result

    return wrapper


class PhaseTracker:
    """
    Pending-action and interval tracker for one phase (auto or teleop).

    Args:
        phase: 'auto' or 'teleop'
        collect_amount: Fuel added by a depot/outpost collect tap
        stuck_window_ms: A second tap on the same trench/bump within this
            window of its traversal marks the robot as stuck there
        clock: Returns the current time in ms (injectable for tests)
        id_factory: Returns a fresh unique action id
    """

    def __init__(
        self,
        phase: str,
        collect_amount: int = DEFAULT_COLLECT_AMOUNT,
        stuck_window_ms: int = DEFAULT_STUCK_WINDOW_MS,
        clock: Optional[Callable[[], int]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        if phase not in PHASES:
            raise ValueError(f'Unknown phase: {phase}')
        self.phase = phase
        self.collect_amount = collect_amount
        self.stuck_window_ms = stuck_window_ms
        self._clock = clock or _now_ms
        self._id_factory = id_factory or _new_id

        self.log = ActionLog(phase)
        self.pending: Optional[PendingAction] = None
        self.selecting: Optional[str] = None
        self.open_stuck: dict[str, StuckInterval] = {}
        self.closed_stuck: List[StuckInterval] = []
        self.broken_down = BrokenDownInterval()
        self._stuck_candidate: Optional[Tuple[str, int]] = None

    @classmethod
    def from_season(cls, phase: str, season_config, **kwargs) -> 'PhaseTracker':
        """Create a tracker using a SeasonConfig's collect amount and stuck window."""
        kwargs.setdefault('collect_amount', season_config.collect_amount)
        kwargs.setdefault('stuck_window_ms', season_config.stuck_window_ms)
        return cls(phase, **kwargs)

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def state(self) -> TrackerState:
        if self.broken_down.is_open:
            return TrackerState.BROKEN_DOWN
        if self.pending is not None:
            return TrackerState.AWAITING_CONFIRMATION
        if self.selecting is not None:
            return TrackerState.SELECTING_TARGET
        if self.open_stuck:
            return TrackerState.STUCK_OPEN
        return TrackerState.IDLE

    @property
    def stuck_element(self) -> Optional[str]:
        return next(iter(self.open_stuck), None)

    @property
    def is_broken_down(self) -> bool:
        return self.broken_down.is_open

    @property
    def can_confirm(self) -> bool:
        """Whether confirm() would commit the Pending Action right now."""
        pending = self.pending
        if pending is None or self.broken_down.is_open:
            return False
        if pending.type == ActionType.CLIMB:
            if pending.climb_result is None:
                return False
            return self.phase == 'auto' or pending.climb_level is not None
        if pending.needs_quantity:
            return pending.accumulated > 0
        return True

    @property
    def can_undo(self) -> bool:
        return self.broken_down.is_open or bool(self.open_stuck) or bool(self.log)

    def _check_invariants(self) -> None:
        if not __debug__:
            return
        active = [
            name
            for name, is_active in (
                ('pending action', self.pending is not None),
                ('target selection', self.selecting is not None),
                ('stuck interval', bool(self.open_stuck)),
            )
            if is_active
        ]
        if len(active) > 1:
            raise TrackerInvariantError(f'{self.phase}: simultaneously active {", ".join(active)}')
        if len(self.open_stuck) > 1:
            raise TrackerInvariantError(
                f'{self.phase}: multiple open stuck intervals {sorted(self.open_stuck)}'
            )
        if self.pending is not None and self.pending.accumulated != sum(self.pending.history):
            raise TrackerInvariantError(f'{self.phase}: pending quantity out of sync with history')

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ignore(self, what: str, reason: str) -> None:
        logger.debug(f'{self.phase}: ignored {what} ({reason})')

    def _commit(
        self,
        action_type: ActionType,
        subtype: str = '',
        position: Position = None,
        **fields: Any,
    ) -> Action:
        action = Action(
            id=self._id_factory(),
            type=action_type,
            phase=self.phase,
            timestamp=self._clock(),
            action=subtype,
            position=position,
            **fields,
        )
        return self.log.append(action)

    def _open_pending(self, action_type: ActionType, subtype: str, position: Position, **fields: Any) -> None:
        self.pending = PendingAction(
            type=action_type,
            phase=self.phase,
            action=subtype,
            position=position,
            created_at=self._clock(),
            **fields,
        )
        logger.debug(f'{self.phase}: awaiting confirmation of {action_type.value} ({subtype})')

    def _discard_draft(self, reason: str) -> None:
        if self.pending is not None:
            logger.info(f'{self.phase}: discarded pending {self.pending.type.value} ({reason})')
            self.pending = None
        if self.selecting is not None:
            logger.info(f'{self.phase}: dropped {self.selecting} target selection ({reason})')
            self.selecting = None

    def _open_stuck(self, element_key: str, now: int) -> None:
        self.open_stuck[element_key] = StuckInterval(element_key=element_key, start=now)
        logger.info(f'{self.phase}: robot stuck on {element_key}')

    def _resolve_stuck(self, element_key: str, position: Position) -> Action:
        interval = self.open_stuck.pop(element_key)
        interval.end = max(self._clock(), interval.start)
        self.closed_stuck.append(interval)
        duration = interval.duration_ms
        seconds = int(round_half_up(duration / 1000, 0))
        logger.info(f'{self.phase}: robot freed from {element_key} after {seconds}s')
        return self._commit(
            ActionType.TRAVERSAL,
            f'{_traversal_kind(element_key)}-stuck',
            position,
            amount_label=f'{seconds}s',
            duration_ms=duration,
        )

    # ------------------------------------------------------------------
    # Interactions
    # ------------------------------------------------------------------

    @_checked
    def tap(self, element_key: str, position: Position = None) -> Optional[Action]:
        """
        Handle a tap on a field element.

        Returns:
            The committed action when the tap commits one immediately, else None
        """
        if self.broken_down.is_open:
            self._ignore(f'tap on {element_key}', 'broken down')
            return None

        candidate, self._stuck_candidate = self._stuck_candidate, None

        if element_key in self.open_stuck:
            return self._resolve_stuck(element_key, position)
        if self.open_stuck:
            self._ignore(f'tap on {element_key}', f'stuck on {self.stuck_element}')
            return None

        now = self._clock()
        if (
            candidate is not None
            and candidate[0] == element_key
            and self.state == TrackerState.IDLE
            and now - candidate[1] <= self.stuck_window_ms
        ):
            self._open_stuck(element_key, now)
            return None

        if self.selecting is not None:
            self.select_target(element_key, position)
            return None
        if self.pending is not None:
            self._ignore(f'tap on {element_key}', 'awaiting confirmation')
            return None

        if self.phase == 'auto' and not self.log:
            if element_key in AUTO_START_KEYS:
                self._open_pending(ActionType.START, element_key, position)
            else:
                self._ignore(f'tap on {element_key}', 'start position not set')
            return None

        if element_key == HUB_KEY:
            self.begin_selection('score')
        elif element_key in PASS_KEYS:
            self.begin_selection('pass')
            self.select_target(element_key, position)
        elif element_key in FIELD_COLLECT_KEYS:
            self.begin_selection('collect')
            self.select_target(element_key, position)
        elif element_key in STATION_COLLECT_KEYS:
            return self._commit(
                ActionType.COLLECT,
                element_key,
                position,
                fuel_delta=self.collect_amount,
                amount_label=str(self.collect_amount),
            )
        elif element_key == TOWER_KEY:
            self._open_pending(
                ActionType.CLIMB,
                'attempt',
                position,
                climb_result='success',
                climb_level='L1' if self.phase == 'auto' else None,
            )
        elif element_key in TRAVERSAL_KEYS:
            committed = self._commit(ActionType.TRAVERSAL, _traversal_kind(element_key), position)
            self._stuck_candidate = (element_key, committed.timestamp)
            return committed
        elif element_key in DEFENSE_KEYS:
            return self._commit(ActionType.DEFENSE, DEFENSE_KEYS[element_key], position)
        elif element_key == STEAL_KEY:
            return self._commit(ActionType.STEAL, 'steal', position)
        elif element_key == FOUL_KEY:
            return self._commit(ActionType.FOUL, 'mid-line-penalty', position)
        else:
            self._ignore(f'tap on {element_key}', 'unknown element')
        return None

    @_checked
    def mark_stuck(self, element_key: str) -> bool:
        """
        Explicitly mark the robot as stuck on a trench/bump.

        Any in-progress selection or Pending Action is discarded.
        """
        if self.broken_down.is_open:
            self._ignore(f'stuck on {element_key}', 'broken down')
            return False
        if element_key not in TRAVERSAL_KEYS:
            self._ignore(f'stuck on {element_key}', 'not a traversal element')
            return False
        if self.open_stuck:
            self._ignore(f'stuck on {element_key}', f'already stuck on {self.stuck_element}')
            return False
        self._discard_draft(f'stuck on {element_key}')
        self._stuck_candidate = None
        self._open_stuck(element_key, self._clock())
        return True

    @_checked
    def begin_selection(self, kind: str) -> bool:
        """Enter target selection for 'score', 'pass' or 'collect'."""
        if kind not in SELECTION_KINDS:
            raise ValueError(f'Unknown selection kind: {kind}')
        if self.state != TrackerState.IDLE:
            self._ignore(f'{kind} selection', self.state.value)
            return False
        self._stuck_candidate = None
        self.selecting = kind
        return True

    @_checked
    def select_target(self, target_key: str, position: Position = None) -> bool:
        """Resolve the active selection into a Pending Action with zero quantity."""
        kind = self.selecting
        if kind is None or self.broken_down.is_open:
            self._ignore(f'target {target_key}', 'not selecting')
            return False
        if target_key not in SELECTION_TARGETS[kind]:
            self._ignore(f'target {target_key}', f'not a {kind} target')
            return False

        self.selecting = None
        subtype = 'field' if kind == 'collect' else target_key
        self._open_pending(ActionType(kind), subtype, position)
        return True

    @_checked
    def cancel_selection(self) -> bool:
        if self.selecting is None:
            return False
        self.selecting = None
        return True

    @_checked
    def add_quantity(self, amount: int) -> bool:
        """Add to the pending quantity. Each call can be undone with undo_quantity()."""
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValueError(f'Quantity must be a positive integer, got {amount!r}')
        if self.pending is None or not self.pending.needs_quantity or self.broken_down.is_open:
            self._ignore(f'quantity {amount}', 'no quantity action pending')
            return False
        self.pending.accumulated += amount
        self.pending.history.append(amount)
        return True

    @_checked
    def undo_quantity(self) -> bool:
        """Pop the last quantity tap; no-op when there is nothing to undo."""
        if self.pending is None or not self.pending.history:
            return False
        self.pending.accumulated -= self.pending.history.pop()
        return True

    @_checked
    def select_climb_level(self, level: str) -> bool:
        if level not in CLIMB_LEVELS:
            raise ValueError(f'Unknown climb level: {level}')
        if self.pending is None or self.pending.type != ActionType.CLIMB:
            self._ignore(f'climb level {level}', 'no climb pending')
            return False
        self.pending.climb_level = level
        return True

    @_checked
    def select_climb_result(self, result: str) -> bool:
        if result not in CLIMB_RESULTS:
            raise ValueError(f'Unknown climb result: {result}')
        if self.pending is None or self.pending.type != ActionType.CLIMB:
            self._ignore(f'climb result {result}', 'no climb pending')
            return False
        self.pending.climb_result = result
        return True

    @_checked
    def confirm(self) -> Optional[Action]:
        """Commit the Pending Action. Returns None when confirmation is unavailable."""
        if not self.can_confirm:
            self._ignore('confirm', 'nothing to confirm')
            return None

        pending = self.pending
        self.pending = None

        if pending.type == ActionType.CLIMB:
            return self._commit(
                ActionType.CLIMB,
                pending.climb_level,
                pending.position,
                amount_label=f'{pending.climb_level} {pending.climb_result}',
                climb_level=pending.climb_level,
                climb_result=pending.climb_result,
            )
        if pending.needs_quantity:
            return self._commit(
                pending.type,
                pending.action,
                pending.position,
                fuel_delta=pending.signed_delta(),
                amount_label=str(pending.accumulated),
            )
        return self._commit(pending.type, pending.action, pending.position)

    @_checked
    def cancel(self) -> bool:
        """Discard the Pending Action (or the target selection). Nothing is appended."""
        if self.pending is None and self.selecting is None:
            return False
        self.pending = None
        self.selecting = None
        return True

    @_checked
    def toggle_broken_down(self) -> Optional[int]:
        """
        Start or stop broken-down tracking.

        Returns:
            The closed interval's duration in ms when stopping, None when starting
        """
        now = self._clock()
        if self.broken_down.is_open:
            duration = max(now - self.broken_down.start, 0)
            self.broken_down.total_ms += duration
            self.broken_down.start = None
            logger.info(f'{self.phase}: robot recovered after {duration} ms')
            return duration

        self._discard_draft('broken down')
        self._stuck_candidate = None
        self.broken_down.start = now
        logger.info(f'{self.phase}: robot broken down')
        return None

    @_checked
    def undo_last(self) -> Optional[Action]:
        """
        Undo the most recent interaction.

        While broken down this discards the open broken-down interval without
        counting its time. While stuck it discards the open stuck interval and
        keeps the traversal that led to it. Otherwise it removes the last
        committed action.
        """
        self._stuck_candidate = None
        if self.broken_down.is_open:
            self.broken_down.start = None
            logger.info(f'{self.phase}: broken-down mark undone')
            return None
        if self.open_stuck:
            logger.info(f'{self.phase}: stuck mark on {self.stuck_element} undone')
            self.open_stuck.clear()
            return None
        return self.log.undo_last()

    @_checked
    def finish(self) -> PhaseResult:
        """
        End the phase.

        Closes broken-down time, converts open stuck intervals into traversal
        actions and drops any unconfirmed draft.
        """
        now = self._clock()
        if self.broken_down.is_open:
            self.broken_down.total_ms += max(now - self.broken_down.start, 0)
            self.broken_down.start = None
        for element_key in list(self.open_stuck):
            self._resolve_stuck(element_key, None)
        self._discard_draft('phase finished')
        self._stuck_candidate = None
        return PhaseResult(
            phase=self.phase,
            actions=self.log.actions,
            broken_down_ms=self.broken_down.total_ms,
        )

    def dispatch(self, event: TrackerEvent) -> Any:
        """Apply one recorded interaction."""
        if event.name not in EVENT_NAMES:
            raise ValueError(f'Unknown tracker event: {event.name}')
        return getattr(self, event.name)(*event.args, **event.kwargs)


def replay_events(tracker: PhaseTracker, events: Iterable[TrackerEvent]) -> List[Action]:
    """
    Replay a stream of interactions against a tracker.

    Returns:
        The actions committed directly by the replayed events, in order
    """
    committed = []
    for event in events:
        result = tracker.dispatch(event)
        if isinstance(result, Action):
            committed.append(result)
    return committed
