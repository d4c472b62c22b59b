"""Pytest configuration and fixtures for engine tests"""
import pytest

from fantasy_zoo.core.config import default_config
from fantasy_zoo.core.models import Animal, EggType, Rarity
from fantasy_zoo.game.engine import ZooEngine, new_game_state
from fantasy_zoo.game.telemetry import Telemetry

T0 = 1_000_000


class FakeClock:
    """Manually advanced millisecond clock"""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def config():
    """Default tunables with random events switched off"""
    return default_config().with_overrides(EVENT_CHANCE_PER_STEP=0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def telemetry():
    return Telemetry()


@pytest.fixture
def engine(config, clock, telemetry):
    """Fresh zoo at T0 with a fixed seed"""
    state = new_game_state(config, clock(), seed=12345)
    return ZooEngine(state=state, config=config, clock=clock, telemetry=telemetry)


@pytest.fixture
def make_animal(engine):
    """Add an animal straight into the engine's state"""
    counter = {"n": 0}

    def _make(base_income=2.0, egg_type=EggType.COMMON, rarity=Rarity.COMMON, **fields):
        counter["n"] += 1
        animal = Animal(
            id=f"animal-test{counter['n']}",
            name=f"Test Critter {counter['n']}",
            icon="",
            rarity=rarity,
            from_egg_type=egg_type,
            base_income=base_income,
            effective_income=base_income,
            created_at=engine.clock(),
        )
        for key, value in fields.items():
            setattr(animal, key, value)
        engine.state.animals.append(animal)
        return animal

    return _make
