"""Shared fixtures."""

import itertools

import pytest

from fieldscout.schemas import PointTable
from fieldscout.tracker import PhaseTracker


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = 1_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ids():
    counter = itertools.count(1)
    return lambda: f'a{next(counter)}'


@pytest.fixture
def make_tracker(clock, ids):
    """Factory for trackers driven by the fake clock."""

    def factory(phase='teleop', **kwargs):
        return PhaseTracker(phase, clock=clock, id_factory=ids, **kwargs)

    return factory


@pytest.fixture
def point_table():
    return PointTable(
        auto={'fuelScored': 1, 'autoClimbL1': 15},
        teleop={'fuelScored': 1},
        endgame={'climbL1': 10, 'climbL2': 20, 'climbL3': 30},
    )
