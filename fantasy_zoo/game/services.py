"""
Service stations: the Bath House and the Clinic.

Both are single-server FIFO queues. An animal pays on enqueue, waits in
line, is promoted to the active slot when the station is free and gets the
station's completion effect once the treatment duration has elapsed.
"""
import logging
from typing import Optional

from fantasy_zoo.core.game_logic import clamp, service_cost
from fantasy_zoo.core.models import ActionResult, Animal, HealthStatus, ServiceQueueState, ServiceSlot
from fantasy_zoo.game.state import GameState
from fantasy_zoo.game.tickable import System

logger = logging.getLogger(__name__)


class ServiceQueue(System):
    """Shared queue mechanics; subclasses pick the state slot, costs and effect"""
    name = "service"
    label = "Service"
    cost_multiplier_key = ""
    duration_key = ""
    happiness_boost_key = ""
    # Refund the recorded cost (waiting or in treatment) when the animal is sold
    refund_on_removal = False

    def queue(self, state: GameState) -> ServiceQueueState:
        raise NotImplementedError

    def other_queue(self, state: GameState) -> ServiceQueueState:
        raise NotImplementedError

    def check_eligible(self, animal: Animal) -> Optional[str]:
        """Return a failure reason if the animal cannot use this station"""
        return None

    def apply_completion(self, animal: Animal):
        raise NotImplementedError

    def cost_for(self, animal: Animal) -> float:
        return service_cost(animal.base_income, self.config[self.cost_multiplier_key])

    def enqueue(self, state: GameState, animal_id: str) -> ActionResult:
        """Charge the station cost and append the animal to the waiting line"""
        animal = state.find_animal(animal_id)
        if animal is None:
            return ActionResult.fail(f"No animal with id '{animal_id}'")

        queue = self.queue(state)
        if animal_id in queue.waiting:
            return ActionResult.fail(f"{animal.name} is already waiting for the {self.label}")
        if queue.is_active(animal_id):
            return ActionResult.fail(f"{animal.name} is already in the {self.label}")
        if self.other_queue(state).contains(animal_id):
            return ActionResult.fail(f"{animal.name} is busy at another station")

        reason = self.check_eligible(animal)
        if reason:
            return ActionResult.fail(reason)

        cost = self.cost_for(animal)
        if state.coins < cost:
            return ActionResult.fail(
                f"Not enough coins for the {self.label}: needs {cost:g}, has {state.coins:g}", cost=cost
            )

        state.coins -= cost
        queue.paid[animal_id] = cost
        queue.waiting.append(animal_id)
        logger.info(f"{animal.name} queued for the {self.label} (cost {cost:g}, position {len(queue.waiting)})")
        return ActionResult.ok(animal_id=animal_id, cost=cost, position=len(queue.waiting))

    def cancel(self, state: GameState, animal_id: str) -> ActionResult:
        """
        Take an animal out of the station.

        A waiting animal is refunded the cost recorded at enqueue time. An
        active treatment is forfeited without refund.
        """
        queue = self.queue(state)
        if animal_id in queue.waiting:
            queue.waiting.remove(animal_id)
            refund = queue.paid.pop(animal_id, 0.0)
            state.coins += refund
            return ActionResult.ok(animal_id=animal_id, refund=refund)
        if queue.is_active(animal_id):
            queue.active = None
            logger.info(f"{self.label} treatment for {animal_id} cancelled; cost forfeited")
            return ActionResult.ok(animal_id=animal_id, refund=0.0, forfeited=True)
        return ActionResult.fail(f"Animal '{animal_id}' is not at the {self.label}")

    def remove_animal(self, state: GameState, animal_id: str) -> float:
        """Drop every trace of an animal (used when it is sold); returns the refund"""
        queue = self.queue(state)
        refund = 0.0
        if animal_id in queue.waiting:
            queue.waiting.remove(animal_id)
            paid = queue.paid.pop(animal_id, 0.0)
            if self.refund_on_removal:
                refund = paid
                state.coins += refund
        if queue.is_active(animal_id):
            if self.refund_on_removal:
                refund += queue.active.cost_paid
                state.coins += queue.active.cost_paid
            queue.active = None
        return refund

    def step(self, state: GameState, now: int) -> None:
        """
        Finish the active treatment if it is due, otherwise promote the head
        of the line. Completion and promotion never happen in the same step,
        so a freed slot is refilled on the following step.
        """
        queue = self.queue(state)
        if queue.active is not None:
            if queue.active.is_complete(now):
                self._complete(state, queue.active)
                queue.active = None
            return
        self._promote_next(state, queue, now)

    def _complete(self, state: GameState, slot: ServiceSlot):
        animal = state.find_animal(slot.animal_id)
        if animal is None:
            logger.warning(f"{self.label} finished for missing animal '{slot.animal_id}'; slot cleared")
            return
        self.apply_completion(animal)
        logger.info(f"{animal.name} finished at the {self.label}")
        self.record("treatment_finished", station=self.name, animal_id=animal.id)

    def _promote_next(self, state: GameState, queue: ServiceQueueState, now: int):
        while queue.waiting:
            animal_id = queue.waiting.pop(0)
            cost_paid = queue.paid.pop(animal_id, 0.0)
            if state.find_animal(animal_id) is None:
                logger.warning(f"Skipping missing animal '{animal_id}' at the head of the {self.label} line")
                continue
            queue.active = ServiceSlot(
                animal_id=animal_id,
                started_at=now,
                duration_ms=self.config[self.duration_key],
                cost_paid=cost_paid,
            )
            return


class BathHouse(ServiceQueue):
    """Restores cleanliness to full"""
    name = "bath"
    label = "Bath House"
    cost_multiplier_key = "BATH_COST_MULTIPLIER"
    duration_key = "BATH_DURATION_MS"
    happiness_boost_key = "BATH_HAPPINESS_BOOST"

    def queue(self, state: GameState) -> ServiceQueueState:
        return state.bath

    def other_queue(self, state: GameState) -> ServiceQueueState:
        return state.clinic

    def apply_completion(self, animal: Animal):
        animal.cleanliness = 100.0
        animal.happiness = clamp(animal.happiness + self.config[self.happiness_boost_key])


class Clinic(ServiceQueue):
    """Cures sick animals"""
    name = "clinic"
    label = "Clinic"
    cost_multiplier_key = "CLINIC_COST_MULTIPLIER"
    duration_key = "CLINIC_DURATION_MS"
    happiness_boost_key = "CLINIC_HAPPINESS_BOOST"
    refund_on_removal = True

    def queue(self, state: GameState) -> ServiceQueueState:
        return state.clinic

    def other_queue(self, state: GameState) -> ServiceQueueState:
        return state.bath

    def check_eligible(self, animal: Animal) -> Optional[str]:
        if animal.health != HealthStatus.SICK:
            return f"{animal.name} is not sick"
        return None

    def apply_completion(self, animal: Animal):
        animal.health = HealthStatus.HEALTHY
        animal.neglect_ticks = 0
        animal.happiness = clamp(animal.happiness + self.config[self.happiness_boost_key])
