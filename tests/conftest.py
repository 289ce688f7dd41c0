"""
Shared fixtures for the skirmish test suite.

Worlds are built with a fake clock and a scripted random source so battle
outcomes are deterministic. With the default scripted draw of 0.999, fuzzy
rounding always rounds down and chance effects take their alternative branch.
"""

import sys
import os
import pytest

import numpy as np

# Add the project root to the Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from src.core.data.data_structures import Vector2
from src.core.events.event_manager import EventManager
from src.game.catalog import load_default_catalog
from src.game.entities.entity import PlayerEntity
from src.game.entities.player_record import PlayerRecord
from src.game.world import World


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedRng:
    """Random source returning fixed draws.

    integers() returns integer_value clamped into the requested range.
    """

    def __init__(self, random_value: float = 0.999, integer_value: int = 10):
        self.random_value = random_value
        self.integer_value = integer_value

    def random(self) -> float:
        return self.random_value

    def integers(self, low, high=None, size=None):
        if high is None:
            low, high = 0, low
        value = max(low, min(self.integer_value, high - 1))
        if size is not None:
            return np.full(size, value)
        return value


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return ScriptedRng()


@pytest.fixture
def event_manager():
    """Create an event manager for testing."""
    return EventManager(enable_debug_logging=False)


@pytest.fixture(scope="session")
def catalog():
    """The packaged catalog, loaded once."""
    return load_default_catalog()


@pytest.fixture
def world(catalog, clock, rng, event_manager):
    return World(catalog, rng=rng, clock=clock, event_manager=event_manager)


@pytest.fixture
def make_player(world):
    """Factory for players at a given level and spawn position."""
    def _make_player(username, level=5, pos=Vector2(0, 0), species=None):
        record = PlayerRecord(username, level=level, spawn_pos_x=pos.x, spawn_pos_y=pos.y)
        return PlayerEntity(world, record, species)
    return _make_player


@pytest.fixture
def alice(make_player):
    return make_player("alice", pos=Vector2(0, 0))


@pytest.fixture
def bob(make_player):
    return make_player("bob", pos=Vector2(0, 1))


@pytest.fixture
def battle(world, alice, bob):
    """A battle where alice holds the first turn."""
    return world.start_battle(alice, bob)


@pytest.fixture
def do_nothing(catalog):
    return catalog.get_action(1)


@pytest.fixture
def punch(catalog):
    return catalog.get_action(2)
