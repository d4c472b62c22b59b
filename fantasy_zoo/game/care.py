"""Care decay, neglect tracking, sickness and feeding"""
import logging

from fantasy_zoo.core.game_logic import clamp, service_cost
from fantasy_zoo.core.models import ActionResult, Animal, HealthStatus
from fantasy_zoo.game.state import GameState
from fantasy_zoo.game.tickable import System

logger = logging.getLogger(__name__)


class CareSystem(System):
    """
    Hunger/cleanliness decay and the healthy -> sick transition.

    An animal is neglected on a step when both hunger and cleanliness are
    below their neglect thresholds. Neglected steps raise a saturating
    counter, cared-for steps lower it. Reaching the threshold makes a healthy
    animal sick; only the clinic makes it healthy again.
    """
    name = "care"

    def step(self, state: GameState, now: int) -> None:
        bathing_id = state.bath.active.animal_id if state.bath.active else None
        for animal in state.animals:
            if animal.id == bathing_id:
                continue
            self._decay(animal)
            self._track_neglect(animal)

    def _decay(self, animal: Animal):
        animal.hunger = clamp(animal.hunger - self.config["HUNGER_DECAY_PER_STEP"])
        animal.cleanliness = clamp(animal.cleanliness - self.config["CLEANLINESS_DECAY_PER_STEP"])

    def is_neglected(self, animal: Animal) -> bool:
        return (animal.hunger < self.config["NEGLECT_HUNGER_THRESHOLD"]
                and animal.cleanliness < self.config["NEGLECT_CLEANLINESS_THRESHOLD"])

    def _track_neglect(self, animal: Animal):
        if self.is_neglected(animal):
            animal.neglect_ticks = min(self.config["NEGLECT_TICKS_CAP"], animal.neglect_ticks + 1)
        else:
            animal.neglect_ticks = max(0, animal.neglect_ticks - 1)

        if animal.health == HealthStatus.HEALTHY and animal.neglect_ticks >= self.config["NEGLECT_TICKS_BEFORE_SICK"]:
            animal.health = HealthStatus.SICK
            animal.happiness = clamp(animal.happiness - self.config["SICK_HAPPINESS_PENALTY"])
            logger.info(f"{animal.name} became sick from neglect (neglect ticks {animal.neglect_ticks})")
            self.record("animal_sick", animal_id=animal.id)

    def feed(self, state: GameState, animal_id: str) -> ActionResult:
        """Fill an animal's hunger bar for base income x FEED_COST_MULTIPLIER coins"""
        animal = state.find_animal(animal_id)
        if animal is None:
            return ActionResult.fail(f"No animal with id '{animal_id}'")

        cost = service_cost(animal.base_income, self.config["FEED_COST_MULTIPLIER"])
        if state.coins < cost:
            return ActionResult.fail(
                f"Not enough coins to feed {animal.name}: needs {cost:g}, has {state.coins:g}", cost=cost
            )

        state.coins -= cost
        animal.hunger = 100.0
        animal.happiness = clamp(animal.happiness + self.config["FEED_HAPPINESS_BOOST"])
        self.record("animal_fed", animal_id=animal.id, cost=cost)
        return ActionResult.ok(animal_id=animal.id, cost=cost)
