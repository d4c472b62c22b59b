"""Income aggregation and selling animals"""
import logging
from typing import Optional, Sequence

from fantasy_zoo.core.config import GameConfig
from fantasy_zoo.core.models import ActionResult, Animal, HealthStatus
from fantasy_zoo.game.habitats import HabitatSystem
from fantasy_zoo.game.services import ServiceQueue
from fantasy_zoo.game.state import GameState
from fantasy_zoo.game.telemetry import Telemetry
from fantasy_zoo.game.tickable import System

logger = logging.getLogger(__name__)


class EconomySystem(System):
    """
    Sums effective income into the balance each step.

    effective income = base x happiness x habitat x prestige x event multipliers.
    Only healthy animals outside an active treatment with hunger and
    cleanliness above zero earn it.
    """
    name = "economy"

    def __init__(self, config: Optional[GameConfig] = None, telemetry: Optional[Telemetry] = None,
                 stations: Sequence[ServiceQueue] = (), habitats: Optional[HabitatSystem] = None):
        super().__init__(config, telemetry)
        self.stations = list(stations)
        self.habitats = habitats

    def effective_income(self, state: GameState, animal: Animal) -> float:
        return (animal.base_income
                * animal.happiness_multiplier
                * animal.habitat_multiplier
                * state.modifiers.global_prestige_multiplier
                * state.modifiers.income_boost_multiplier)

    def can_earn(self, state: GameState, animal: Animal) -> bool:
        return (animal.health == HealthStatus.HEALTHY
                and not state.bath.is_active(animal.id)
                and not state.clinic.is_active(animal.id)
                and animal.hunger > 0
                and animal.cleanliness > 0)

    def step(self, state: GameState, now: int) -> None:
        total = 0.0
        for animal in state.animals:
            animal.effective_income = self.effective_income(state, animal)
            if self.can_earn(state, animal):
                total += animal.effective_income

        state.coins += total
        state.income_per_step = total
        state.max_coins = max(state.max_coins, state.coins)
        if total and self.telemetry is not None:
            self.telemetry.record_income(total)

    def sell(self, state: GameState, animal_id: str) -> ActionResult:
        """
        Sell an animal for base income x SELL_MULTIPLIER coins.

        The animal also leaves its habitat and any station line; stations
        that refund on removal pay back the cost recorded for it.
        """
        animal = state.find_animal(animal_id)
        if animal is None:
            return ActionResult.fail(f"No animal with id '{animal_id}'")

        value = animal.base_income * self.config["SELL_MULTIPLIER"]
        refund = 0.0
        for station in self.stations:
            refund += station.remove_animal(state, animal_id)
        if self.habitats is not None:
            self.habitats.remove_animal(state, animal_id)

        state.animals = [a for a in state.animals if a.id != animal_id]
        state.coins += value
        state.max_coins = max(state.max_coins, state.coins)

        logger.info(f"Sold {animal.name} for {value:g} coins (refund {refund:g}, balance {state.coins:g})")
        self.record("animal_sold", rarity=animal.rarity.value, value=value)
        return ActionResult.ok(animal_id=animal_id, value=value, refund=refund)
