"""Pytest configuration and fixtures for backend tests"""
import os
import tempfile

import pytest
from fastapi.testclient import TestClient

from fantasy_zoo.backend.database import Database, get_db
from fantasy_zoo.backend.main import app
from fantasy_zoo.backend.routers import game
from fantasy_zoo.core.config import default_config

T0 = 1_000_000


class FakeClock:
    """Manually advanced millisecond clock shared with the API"""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def temp_db():
    """Create a temporary database for testing"""
    fd, temp_path = tempfile.mkstemp(suffix='.db')
    os.close(fd)

    db = Database(temp_path)

    yield db

    db.close()
    if os.path.exists(temp_path):
        os.unlink(temp_path)


@pytest.fixture
def db_connection(temp_db):
    """Get database connection from temp database"""
    return temp_db.connect()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def use_config():
    """Swap the tunables the API runs with for the rest of the test"""
    def _use(**overrides):
        config = default_config().with_overrides(EVENT_CHANCE_PER_STEP=0, **overrides)
        app.dependency_overrides[game.get_zoo_config] = lambda: config
        return config
    return _use


@pytest.fixture
def client(temp_db, clock, use_config):
    """FastAPI test client with temporary database, fake clock and no random events"""
    app.dependency_overrides[get_db] = lambda: temp_db.connect()
    app.dependency_overrides[game.get_clock] = lambda: clock
    use_config()
    game._rate_limit_store.clear()

    test_client = TestClient(app)
    yield test_client
    test_client.close()

    app.dependency_overrides.clear()
    game._rate_limit_store.clear()


@pytest.fixture
def zoo_with_animal(client, clock):
    """Session whose common egg has already hatched; returns the animal id"""
    response = client.post("/api/game/eggs/common")
    assert response.status_code == 200

    clock.advance(8000)
    state = client.get("/api/game/state").json()["state"]
    assert len(state["animals"]) == 1
    return state["animals"][0]["id"]
