"""Happiness drift and the happiness-derived income multiplier"""
from fantasy_zoo.core.game_logic import clamp, happiness_multiplier
from fantasy_zoo.core.models import Animal, HealthStatus
from fantasy_zoo.game.state import GameState
from fantasy_zoo.game.tickable import System


class HappinessSystem(System):
    name = "happiness"

    def step(self, state: GameState, now: int) -> None:
        for animal in state.animals:
            self.update_animal(animal)

    def update_animal(self, animal: Animal):
        cfg = self.config
        well_fed = animal.hunger >= cfg["WELL_FED_THRESHOLD"]
        clean = animal.cleanliness >= cfg["CLEAN_THRESHOLD"]
        healthy = animal.health == HealthStatus.HEALTHY

        delta = -cfg["HAPPINESS_DRIFT"]
        if not well_fed:
            delta -= cfg["HUNGRY_PENALTY"]
        if not clean:
            delta -= cfg["DIRTY_PENALTY"]
        if not healthy:
            delta -= cfg["SICK_PENALTY"]
        if well_fed and clean and healthy:
            delta += cfg["WELL_CARED_BONUS"]

        animal.happiness = clamp(animal.happiness + delta)
        animal.happiness_multiplier = happiness_multiplier(
            animal.happiness, cfg["HAPPINESS_MULTIPLIER_TABLE"], cfg["HAPPINESS_MULTIPLIER_FLOOR"]
        )
        animal.effective_income = animal.base_income * animal.happiness_multiplier
