"""Append-only, undo-capable log of committed actions for one match phase."""

import dataclasses
import logging
from typing import Iterator, List, Optional

from .constants import ActionType
from .models import Action

logger = logging.getLogger('fieldscout.action_log')


class ActionLog:
    """
    Ordered sequence of committed actions.

    The log only grows at the tail and only shrinks by removing the tail, so
    iteration order is always commit order. Timestamps never decrease: an
    action stamped earlier than the current tail takes the tail's timestamp.
    """

    def __init__(self, phase: str):
        self.phase = phase
        self._actions: List[Action] = []
        self._ids: set[str] = set()
        self._next_sequence = 0

    def __len__(self) -> int:
        return len(self._actions)

    def __iter__(self) -> Iterator[Action]:
        return iter(self._actions)

    def __getitem__(self, index: int) -> Action:
        return self._actions[index]

    def __bool__(self) -> bool:
        return bool(self._actions)

    @property
    def last(self) -> Optional[Action]:
        return self._actions[-1] if self._actions else None

    @property
    def actions(self) -> List[Action]:
        """Snapshot copy of the committed actions."""
        return list(self._actions)

    def append(self, action: Action) -> Action:
        """
        Add an action at the tail.

        Returns:
            The stored action (with its commit sequence assigned)

        Raises:
            ValueError: If an action with the same id is already in the log
        """
        if action.id in self._ids:
            raise ValueError(f'Duplicate action id in {self.phase} log: {action.id}')

        timestamp = action.timestamp
        if self._actions and timestamp < self._actions[-1].timestamp:
            logger.debug(
                f'Clamping {action.type.value} timestamp {timestamp} to {self._actions[-1].timestamp}'
            )
            timestamp = self._actions[-1].timestamp

        stored = dataclasses.replace(action, timestamp=timestamp, sequence=self._next_sequence)
        self._next_sequence += 1
        self._actions.append(stored)
        self._ids.add(stored.id)
        logger.debug(f'{self.phase}: appended {stored.type.value} ({stored.action}) #{stored.sequence}')
        return stored

    def undo_last(self) -> Optional[Action]:
        """Remove and return the tail action; no-op returning None on an empty log."""
        if not self._actions:
            return None
        removed = self._actions.pop()
        self._ids.discard(removed.id)
        # Keep sequences contiguous after undo
        self._next_sequence = removed.sequence
        logger.debug(f'{self.phase}: undid {removed.type.value} #{removed.sequence}')
        return removed

    def clear(self) -> None:
        self._actions = []
        self._ids = set()
        self._next_sequence = 0

    def totals(self) -> dict[str, int]:
        """Live header totals for the phase."""
        totals = {'scored': 0, 'passed': 0, 'collected': 0, 'defense': 0, 'steals': 0}
        for action in self._actions:
            if action.type == ActionType.SCORE:
                totals['scored'] += abs(action.fuel_delta or 0)
            elif action.type == ActionType.PASS:
                totals['passed'] += abs(action.fuel_delta or 0)
            elif action.type == ActionType.COLLECT:
                totals['collected'] += abs(action.fuel_delta or 0)
            elif action.type == ActionType.DEFENSE:
                totals['defense'] += 1
            elif action.type == ActionType.STEAL:
                totals['steals'] += 1
        return totals
