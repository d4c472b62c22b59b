"""Tests for care decay, neglect and feeding"""
import pytest

from fantasy_zoo.core.models import HealthStatus, ServiceSlot


class TestDecay:

    def test_hunger_and_cleanliness_decay(self, engine, make_animal):
        animal = make_animal()
        engine.care.step(engine.state, engine.clock())

        assert animal.hunger == pytest.approx(100 - engine.config["HUNGER_DECAY_PER_STEP"])
        assert animal.cleanliness == pytest.approx(100 - engine.config["CLEANLINESS_DECAY_PER_STEP"])

    def test_decay_floors_at_zero(self, engine, make_animal):
        animal = make_animal(hunger=0.1, cleanliness=0.0)
        engine.care.step(engine.state, engine.clock())
        assert animal.hunger == 0
        assert animal.cleanliness == 0

    def test_bathing_animal_does_not_decay(self, engine, make_animal):
        animal = make_animal()
        engine.state.bath.active = ServiceSlot(animal_id=animal.id, started_at=engine.clock(), duration_ms=7000)

        engine.care.step(engine.state, engine.clock())

        assert animal.hunger == 100
        assert animal.cleanliness == 100


class TestNeglect:

    def test_sick_exactly_at_threshold(self, engine, make_animal):
        """Neglected for 20 consecutive steps with threshold 20 -> sick on the 20th"""
        threshold = engine.config["NEGLECT_TICKS_BEFORE_SICK"]
        animal = make_animal(hunger=10, cleanliness=10, happiness=70)

        for _ in range(threshold - 1):
            engine.care.step(engine.state, engine.clock())
        assert animal.health == HealthStatus.HEALTHY
        assert animal.neglect_ticks == threshold - 1

        engine.care.step(engine.state, engine.clock())
        assert animal.health == HealthStatus.SICK
        assert animal.happiness == 70 - engine.config["SICK_HAPPINESS_PENALTY"]

    def test_only_one_low_stat_is_not_neglect(self, engine, make_animal):
        animal = make_animal(hunger=10, cleanliness=90)
        for _ in range(50):
            engine.care.step(engine.state, engine.clock())
        assert animal.neglect_ticks == 0
        assert animal.health == HealthStatus.HEALTHY

    def test_counter_recovers_when_cared_for(self, engine, make_animal):
        animal = make_animal(hunger=10, cleanliness=10)
        for _ in range(5):
            engine.care.step(engine.state, engine.clock())
        assert animal.neglect_ticks == 5

        animal.hunger = 100
        engine.care.step(engine.state, engine.clock())
        assert animal.neglect_ticks == 4

    def test_counter_saturates(self, engine, make_animal):
        animal = make_animal(hunger=0, cleanliness=0)
        for _ in range(engine.config["NEGLECT_TICKS_CAP"] + 30):
            engine.care.step(engine.state, engine.clock())
        assert animal.neglect_ticks == engine.config["NEGLECT_TICKS_CAP"]

    def test_sickness_penalty_applied_once(self, engine, make_animal, telemetry):
        animal = make_animal(hunger=0, cleanliness=0, happiness=70)
        for _ in range(engine.config["NEGLECT_TICKS_BEFORE_SICK"] + 10):
            engine.care.step(engine.state, engine.clock())
        assert animal.happiness == 70 - engine.config["SICK_HAPPINESS_PENALTY"]
        assert telemetry.metrics["animals_fell_sick"] == 1


class TestFeed:

    def test_feed_fills_hunger(self, engine, make_animal):
        animal = make_animal(base_income=2, hunger=20, happiness=50)
        result = engine.feed(animal.id)

        cost = 2 * engine.config["FEED_COST_MULTIPLIER"]
        assert result.success is True
        assert result.data["cost"] == cost
        assert engine.state.coins == 100 - cost
        assert animal.hunger == 100
        assert animal.happiness == 50 + engine.config["FEED_HAPPINESS_BOOST"]

    def test_feed_unknown_animal(self, engine):
        result = engine.feed("animal-missing")
        assert not result
        assert engine.state.coins == 100

    def test_feed_without_coins(self, engine, make_animal):
        animal = make_animal(base_income=6, hunger=20)
        engine.state.coins = 5
        result = engine.feed(animal.id)
        assert not result
        assert animal.hunger == 20
        assert engine.state.coins == 5
