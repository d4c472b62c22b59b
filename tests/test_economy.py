"""Tests for happiness multipliers, income and selling"""
import pytest

from fantasy_zoo.core.game_logic import happiness_multiplier
from fantasy_zoo.core.models import HealthStatus, ServiceSlot


class TestHappiness:

    @pytest.mark.parametrize("happiness,expected", [
        (95, 1.3), (90, 1.3), (85, 1.2), (70, 1.1), (45, 1.0), (25, 0.75), (5, 0.5),
    ])
    def test_multiplier_table(self, engine, happiness, expected):
        table = engine.config["HAPPINESS_MULTIPLIER_TABLE"]
        floor = engine.config["HAPPINESS_MULTIPLIER_FLOOR"]
        assert happiness_multiplier(happiness, table, floor) == expected

    def test_well_cared_animal_gains(self, engine, make_animal):
        animal = make_animal(happiness=50)
        engine.happiness.update_animal(animal)
        cfg = engine.config
        assert animal.happiness == pytest.approx(50 - cfg["HAPPINESS_DRIFT"] + cfg["WELL_CARED_BONUS"])

    def test_neglected_sick_animal_loses(self, engine, make_animal):
        animal = make_animal(happiness=50, hunger=10, cleanliness=10, health=HealthStatus.SICK)
        engine.happiness.update_animal(animal)
        cfg = engine.config
        expected = 50 - cfg["HAPPINESS_DRIFT"] - cfg["HUNGRY_PENALTY"] - cfg["DIRTY_PENALTY"] - cfg["SICK_PENALTY"]
        assert animal.happiness == pytest.approx(expected)

    def test_multiplier_follows_happiness(self, engine, make_animal):
        animal = make_animal(happiness=85)
        engine.happiness.update_animal(animal)
        assert animal.happiness_multiplier == 1.2


class TestIncome:

    def test_contribution_is_product_of_multipliers(self, engine, make_animal):
        """Base 2 x happiness 1.1 with everything else neutral -> 2.2"""
        make_animal(base_income=2, hunger=50, cleanliness=50, happiness_multiplier=1.1)

        engine.economy.step(engine.state, engine.clock())

        assert engine.state.income_per_step == pytest.approx(2.2)
        assert engine.state.coins == pytest.approx(102.2)

    def test_all_multipliers_apply(self, engine, make_animal):
        animal = make_animal(base_income=3, happiness_multiplier=1.2, habitat_multiplier=1.2)
        engine.state.modifiers.global_prestige_multiplier = 1.1
        engine.state.modifiers.income_boost_multiplier = 2.0

        engine.economy.step(engine.state, engine.clock())

        assert animal.effective_income == pytest.approx(3 * 1.2 * 1.2 * 1.1 * 2.0)
        assert engine.state.income_per_step == pytest.approx(animal.effective_income)

    @pytest.mark.parametrize("fields", [
        {"hunger": 0},
        {"cleanliness": 0},
        {"health": HealthStatus.SICK},
    ])
    def test_gated_animals_earn_nothing(self, engine, make_animal, fields):
        make_animal(base_income=5, happiness_multiplier=1.3, **fields)
        engine.economy.step(engine.state, engine.clock())
        assert engine.state.income_per_step == 0
        assert engine.state.coins == 100

    def test_bathing_animal_earns_nothing(self, engine, make_animal):
        animal = make_animal(base_income=5)
        engine.state.bath.active = ServiceSlot(animal_id=animal.id, started_at=0, duration_ms=7000)
        engine.economy.step(engine.state, engine.clock())
        assert engine.state.income_per_step == 0

    def test_max_coins_tracked(self, engine, make_animal):
        make_animal(base_income=10)
        engine.economy.step(engine.state, engine.clock())
        assert engine.state.max_coins == pytest.approx(110)

    def test_income_reaches_telemetry(self, engine, make_animal, telemetry):
        make_animal(base_income=4)
        engine.economy.step(engine.state, engine.clock())
        assert telemetry.metrics["coins_earned"] == pytest.approx(4)


class TestSell:

    def test_sell_animal(self, engine, make_animal):
        animal = make_animal(base_income=3)
        engine.assign_habitat(animal.id, "forest")

        result = engine.sell(animal.id)

        assert result.success is True
        assert result.data["value"] == 3 * engine.config["SELL_MULTIPLIER"]
        assert engine.state.coins == 100 + 45
        assert engine.state.animals == []
        assert all(not h.animal_ids for h in engine.state.habitats.values())

    def test_sell_unknown(self, engine):
        result = engine.sell("animal-missing")
        assert not result
        assert engine.state.coins == 100
