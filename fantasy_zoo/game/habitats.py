"""Habitat assignment, upgrades and per-step habitat effects"""
import logging
from typing import Optional, Union

from fantasy_zoo.core.game_logic import clamp
from fantasy_zoo.core.models import ActionResult, Animal, HabitatKey, HabitatState
from fantasy_zoo.game.state import GameState
from fantasy_zoo.game.tickable import System

logger = logging.getLogger(__name__)


def parse_habitat_key(value: Union[HabitatKey, str]) -> Optional[HabitatKey]:
    if isinstance(value, HabitatKey):
        return value
    try:
        return HabitatKey(str(value).strip().lower())
    except ValueError:
        return None


class HabitatSystem(System):
    """Capacity-bounded habitats giving a fit bonus or misfit penalty"""
    name = "habitats"

    def capacity(self, state: GameState, key: HabitatKey) -> int:
        habitat_config = self.config.habitats.get(key)
        habitat = state.habitats.get(key)
        if habitat_config is None or habitat is None:
            return 0
        return habitat_config.capacity_at(habitat.level)

    def _habitat_state(self, state: GameState, key: HabitatKey) -> HabitatState:
        habitat = state.habitats.get(key)
        if habitat is None:
            habitat = HabitatState(key=key)
            state.habitats[key] = habitat
        return habitat

    def assign(self, state: GameState, animal_id: str, habitat_key: Union[HabitatKey, str]) -> ActionResult:
        """Move an animal into a habitat, leaving any habitat it was in before"""
        animal = state.find_animal(animal_id)
        if animal is None:
            return ActionResult.fail(f"No animal with id '{animal_id}'")

        key = parse_habitat_key(habitat_key)
        habitat_config = self.config.habitats.get(key) if key else None
        if habitat_config is None:
            return ActionResult.fail(f"Unknown habitat '{habitat_key}'")

        habitat = self._habitat_state(state, key)
        if animal.id in habitat.animal_ids:
            return ActionResult.fail(f"{animal.name} already lives in {habitat_config.name}")

        capacity = habitat_config.capacity_at(habitat.level)
        if len(habitat.animal_ids) >= capacity:
            return ActionResult.fail(f"{habitat_config.name} is full ({capacity}/{capacity})")

        self._unassign(state, animal)
        habitat.animal_ids.append(animal.id)
        animal.habitat = key
        logger.info(f"Assigned {animal.name} to {habitat_config.name}")
        return ActionResult.ok(animal_id=animal.id, habitat=key.value,
                               occupancy=len(habitat.animal_ids), capacity=capacity)

    def upgrade(self, state: GameState, habitat_key: Union[HabitatKey, str]) -> ActionResult:
        """Raise a habitat's level, paying HABITAT_UPGRADE_BASE_COST x current level"""
        key = parse_habitat_key(habitat_key)
        habitat_config = self.config.habitats.get(key) if key else None
        if habitat_config is None:
            return ActionResult.fail(f"Unknown habitat '{habitat_key}'")

        habitat = self._habitat_state(state, key)
        cost = self.config["HABITAT_UPGRADE_BASE_COST"] * habitat.level
        if state.coins < cost:
            return ActionResult.fail(
                f"Not enough coins to upgrade {habitat_config.name}: needs {cost:g}, has {state.coins:g}",
                cost=cost,
            )

        state.coins -= cost
        habitat.level += 1
        capacity = habitat_config.capacity_at(habitat.level)
        logger.info(f"Upgraded {habitat_config.name} to level {habitat.level} (capacity {capacity})")
        self.record("habitat_upgraded", habitat=key.value, level=habitat.level)
        return ActionResult.ok(habitat=key.value, level=habitat.level, capacity=capacity, cost=cost)

    def _unassign(self, state: GameState, animal: Animal):
        if animal.habitat is None:
            return
        previous = state.habitats.get(animal.habitat)
        if previous is not None and animal.id in previous.animal_ids:
            previous.animal_ids.remove(animal.id)
        animal.habitat = None

    def remove_animal(self, state: GameState, animal_id: str):
        """Drop an animal id from every habitat"""
        for habitat in state.habitats.values():
            if animal_id in habitat.animal_ids:
                habitat.animal_ids.remove(animal_id)

    def step(self, state: GameState, now: int) -> None:
        self._prune(state)
        for animal in state.animals:
            self._apply_effect(animal)

    def _prune(self, state: GameState):
        live_ids = state.animal_ids()
        for habitat in state.habitats.values():
            stale = [aid for aid in habitat.animal_ids if aid not in live_ids]
            for aid in stale:
                habitat.animal_ids.remove(aid)
            if stale:
                logger.debug(f"Pruned {len(stale)} stale ids from {habitat.key.value}")

    def _apply_effect(self, animal: Animal):
        if animal.habitat is None:
            animal.habitat_multiplier = 1.0
            animal.happiness = clamp(animal.happiness - self.config["HABITAT_HOMELESS_DRAIN"])
            return

        habitat_config = self.config.habitats.get(animal.habitat)
        if habitat_config is None:
            logger.warning(f"{animal.name} lives in unconfigured habitat '{animal.habitat.value}'; treated as neutral")
            animal.habitat_multiplier = 1.0
            return

        if habitat_config.supports(animal.from_egg_type):
            animal.habitat_multiplier = habitat_config.bonus_multiplier
            animal.happiness = clamp(animal.happiness + self.config["HABITAT_FIT_GAIN"])
        else:
            animal.habitat_multiplier = habitat_config.penalty_multiplier
            animal.happiness = clamp(animal.happiness - self.config["HABITAT_MISFIT_LOSS"])
