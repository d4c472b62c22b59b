"""
Incubation: buying eggs and hatching them into animals.
"""
import logging
from typing import Optional, Union

from fantasy_zoo.core.game_logic import new_id, pick_creature
from fantasy_zoo.core.models import ActionResult, Animal, Egg, EggType
from fantasy_zoo.game.state import GameState
from fantasy_zoo.game.tickable import System

logger = logging.getLogger(__name__)


def parse_egg_type(value: Union[EggType, str]) -> Optional[EggType]:
    """EggType for a member or raw key, None if unknown"""
    if isinstance(value, EggType):
        return value
    try:
        return EggType(str(value).strip().lower())
    except ValueError:
        return None


class IncubationSystem(System):
    """Tracks incubating eggs and turns expired ones into animals"""
    name = "incubation"

    def purchase_egg(self, state: GameState, egg_type: Union[EggType, str], now: int) -> ActionResult:
        """
        Buy an egg and start incubating it.

        Fails on an unknown egg type or when the balance is below the price.
        """
        key = parse_egg_type(egg_type)
        egg_config = self.config.egg_types.get(key) if key else None
        if egg_config is None:
            logger.warning(f"Cannot buy egg: unknown egg type '{egg_type}'")
            return ActionResult.fail(f"Unknown egg type '{egg_type}'")

        if state.coins < egg_config.price:
            return ActionResult.fail(
                f"Not enough coins for {egg_config.name}: needs {egg_config.price:g}, has {state.coins:g}",
                price=egg_config.price,
            )

        state.coins -= egg_config.price
        egg = Egg(
            id=new_id("egg"),
            egg_type=key,
            started_at=now,
            duration_ms=egg_config.hatch_time_ms,
        )
        state.eggs.append(egg)

        logger.info(f"Bought {egg_config.name} for {egg_config.price:g} coins (balance {state.coins:g})")
        self.record("egg_bought", egg_type=key.value, price=egg_config.price)
        return ActionResult.ok(egg_id=egg.id, egg_type=key.value, price=egg_config.price,
                               hatches_at=now + egg.duration_ms)

    def step(self, state: GameState, now: int) -> None:
        """Hatch every egg whose incubation time has elapsed"""
        if not state.eggs:
            return

        due = [egg for egg in state.eggs if egg.is_ready(now)]
        if not due:
            return
        state.eggs = [egg for egg in state.eggs if not egg.is_ready(now)]

        for egg in due:
            animal = self.hatch(state, egg, now)
            if animal is not None:
                state.animals.append(animal)
                state.pets_hatched += 1

    def hatch(self, state: GameState, egg: Egg, now: int) -> Optional[Animal]:
        """
        Create the animal for a finished egg.

        The creature is drawn from the egg type's pool at hatch time. Returns
        None (and logs an error) when the pool is missing or empty; the egg is
        considered resolved either way.
        """
        egg_config = self.config.egg_types.get(egg.egg_type)
        if egg_config is None:
            logger.error(f"Egg {egg.id} has no configuration for type '{egg.egg_type.value}'; no animal hatched")
            return None

        template = pick_creature(state.rng, egg_config.pool)
        if template is None:
            logger.error(f"Creature pool for '{egg.egg_type.value}' is empty; egg {egg.id} hatched nothing")
            return None

        animal = Animal(
            id=new_id("animal"),
            name=template.name,
            icon=template.icon,
            rarity=template.rarity,
            from_egg_type=egg.egg_type,
            base_income=template.income,
            effective_income=template.income,
            created_at=now,
        )
        logger.info(f"{egg_config.name} hatched into {animal.name} ({animal.rarity.value})")
        self.record("animal_hatched", egg_type=egg.egg_type.value, rarity=animal.rarity.value)
        return animal
