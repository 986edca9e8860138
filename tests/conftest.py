"""Pytest configuration and fixtures for Car Thief tests."""

import random
import pytest
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add the repo root to path for imports
root_path = Path(__file__).parent.parent
sys.path.insert(0, str(root_path))

from carthief.config.settings import EngineConfig
from carthief.entities.crew import CrewMember
from carthief.entities.player import Player
from carthief.entities.vehicle import Vehicle
from carthief.game.state import GameState
from carthief.missions.engine import MissionSystem
from carthief.missions.models import ContractTemplate


FIXED_TIME = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class ScriptedRandom:
    """Random source that replays a fixed list of draws."""

    def __init__(self, values):
        self._values = list(values)

    def random(self):
        if not self._values:
            raise AssertionError("ScriptedRandom ran out of values")
        return self._values.pop(0)


@pytest.fixture
def clock():
    """Deterministic timestamp source."""
    return lambda: FIXED_TIME


@pytest.fixture
def neutral_player():
    """Player whose skills and gear add nothing."""
    return Player(name="Tester")


def make_member(name="Ace", crew_id=None, **kwargs):
    """Crew member with baseline traits unless overridden."""
    member = CrewMember(name=name, **kwargs)
    if crew_id:
        member.id = crew_id
    return member


@pytest.fixture
def state(neutral_player):
    """Empty state: no crew, no garage, default city."""
    return GameState(funds=10000, player=neutral_player)


@pytest.fixture
def simple_template():
    """A plain difficulty-1 contract."""
    return ContractTemplate(
        id="test-job",
        name="Test Job",
        difficulty=1,
        payout=10000,
        heat=1.0,
        duration=30,
        success_chance=0.7,
    )


@pytest.fixture
def make_engine(state, clock):
    """Factory for a MissionSystem with no event deck."""

    def _make(rng=None, config=None, deck=None, **kwargs):
        return MissionSystem(
            state,
            config=config or EngineConfig(),
            rng=rng or random.Random(1),
            clock=clock,
            event_deck_builder=deck or (lambda mission: []),
            **kwargs,
        )

    return _make


@pytest.fixture
def board_mission(make_engine, state, simple_template):
    """Engine with one mission on the board and one baseline crew member."""

    def _make(template=None, crew=None, vehicles=None, **engine_kwargs):
        engine = make_engine(**engine_kwargs)
        state.crew = crew if crew is not None else [make_member("Ace", crew_id="crew-ace")]
        state.garage = vehicles if vehicles is not None else []
        mission = engine.create_mission_from_template(template or simple_template)
        state.available_missions = [mission]
        return engine, mission

    return _make


@pytest.fixture
def vehicle():
    """A reference car: every stat at the neutral point."""
    return Vehicle(model="Test Coupe", top_speed=120, acceleration=5, handling=5)
