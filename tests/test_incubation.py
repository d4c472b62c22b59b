"""Tests for buying and hatching eggs"""
from fantasy_zoo.core.models import EggType, HealthStatus

START = 1_000_000  # engine fixture clock


class TestBuyEgg:

    def test_buy_common_egg(self, engine):
        """Buying deducts the price and starts one incubating egg"""
        price = engine.config.egg_types[EggType.COMMON].price
        result = engine.buy_egg("common")

        assert result.success is True
        assert engine.state.coins == 100 - price
        assert len(engine.state.eggs) == 1
        assert engine.state.eggs[0].egg_type == EggType.COMMON
        assert result.data["hatches_at"] == START + engine.config.egg_types[EggType.COMMON].hatch_time_ms

    def test_unknown_egg_type_fails(self, engine):
        result = engine.buy_egg("golden")
        assert result.success is False
        assert "Unknown egg type" in result.reason
        assert engine.state.coins == 100
        assert engine.state.eggs == []

    def test_insufficient_coins(self, engine):
        engine.state.coins = 10
        result = engine.buy_egg(EggType.MYSTIC)
        assert not result
        assert "Not enough coins" in result.reason
        assert engine.state.coins == 10
        assert engine.state.eggs == []

    def test_telemetry_counts_purchases(self, engine, telemetry):
        engine.buy_egg("common")
        engine.buy_egg("rare")
        assert telemetry.metrics["eggs_bought"] == {"common": 1, "rare": 1}


class TestHatching:

    def test_egg_hatches_into_one_animal(self, engine):
        """An egg stepped at start + hatch time becomes exactly one fresh animal"""
        engine.buy_egg("common")
        hatch_ms = engine.config.egg_types[EggType.COMMON].hatch_time_ms

        engine.incubation.step(engine.state, START + hatch_ms)

        assert engine.state.eggs == []
        assert len(engine.state.animals) == 1
        animal = engine.state.animals[0]
        assert animal.hunger == 100
        assert animal.cleanliness == 100
        assert animal.happiness == 70
        assert animal.health == HealthStatus.HEALTHY
        assert animal.from_egg_type == EggType.COMMON
        assert engine.state.pets_hatched == 1

    def test_egg_not_ready_before_duration(self, engine):
        engine.buy_egg("common")
        hatch_ms = engine.config.egg_types[EggType.COMMON].hatch_time_ms

        engine.incubation.step(engine.state, START + hatch_ms - 1)

        assert len(engine.state.eggs) == 1
        assert engine.state.animals == []

    def test_late_step_still_hatches_once(self, engine):
        engine.buy_egg("common")
        engine.incubation.step(engine.state, START + 10 * 60 * 1000)
        engine.incubation.step(engine.state, START + 20 * 60 * 1000)
        assert len(engine.state.animals) == 1

    def test_hatched_creature_comes_from_pool(self, engine):
        engine.buy_egg("rare")
        engine.incubation.step(engine.state, START + 60_000)
        pool_names = {c.name for c in engine.config.egg_types[EggType.RARE].pool}
        assert engine.state.animals[0].name in pool_names

    def test_only_due_eggs_hatch(self, engine):
        engine.state.coins = 500
        engine.buy_egg("common")
        engine.buy_egg("mystic")
        common_ms = engine.config.egg_types[EggType.COMMON].hatch_time_ms

        engine.incubation.step(engine.state, START + common_ms)

        assert len(engine.state.animals) == 1
        assert [egg.egg_type for egg in engine.state.eggs] == [EggType.MYSTIC]

    def test_empty_pool_resolves_egg_without_animal(self, engine):
        """A misconfigured pool consumes the egg but produces nothing"""
        from dataclasses import replace

        egg_types = dict(engine.config.egg_types)
        egg_types[EggType.COMMON] = replace(egg_types[EggType.COMMON], pool=())
        engine.incubation.config = replace(engine.config, egg_types=egg_types)

        engine.buy_egg("common")
        engine.incubation.step(engine.state, START + 60_000)

        assert engine.state.eggs == []
        assert engine.state.animals == []
