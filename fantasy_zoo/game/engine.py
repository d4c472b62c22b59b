"""
Zoo engine: the ordered step pipeline and the user action entry points.

The host owns one ZooEngine per zoo. `step(now)` advances every component
once, in a fixed order, and never raises. User actions return ActionResult
and are rejected while the run is over (except `restart`).
"""
import functools
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from fantasy_zoo.core.config import GameConfig, default_config
from fantasy_zoo.core.models import ActionResult
from fantasy_zoo.game import leaderboard
from fantasy_zoo.game.care import CareSystem
from fantasy_zoo.game.economy import EconomySystem
from fantasy_zoo.game.events import EventSystem
from fantasy_zoo.game.habitats import HabitatSystem
from fantasy_zoo.game.happiness import HappinessSystem
from fantasy_zoo.game.hatching import IncubationSystem
from fantasy_zoo.game.lose import LoseConditionSystem
from fantasy_zoo.game.prestige import PrestigeManager
from fantasy_zoo.game.services import BathHouse, Clinic
from fantasy_zoo.game.state import GameState
from fantasy_zoo.game.telemetry import Telemetry
from fantasy_zoo.game.tickable import Tickable

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Wall clock in milliseconds"""
    return int(time.time() * 1000)


@dataclass
class StepReport:
    """What happened during one pipeline step"""
    now: int
    phases: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    frozen: bool = False
    income: float = 0.0
    game_over: bool = False

    @property
    def ok(self) -> bool:
        return not self.errors


def new_game_state(config: Optional[GameConfig] = None, now: Optional[int] = None,
                   seed: Optional[int] = None) -> GameState:
    """Fresh run state for a new player"""
    config = config or default_config()
    now = now_ms() if now is None else now
    state = GameState(rng_seed=seed)
    state.reset_run(now, config["START_COINS"], config.habitats.keys())
    return state


def _action(func):
    """Reject actions during game over and turn unexpected errors into failures"""
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        if self.state.is_game_over:
            return ActionResult.fail(f"Game over ({self.state.game_over_reason}); restart to keep playing")
        try:
            return func(self, *args, **kwargs)
        except Exception:
            logger.exception(f"Action {func.__name__} failed")
            return ActionResult.fail(f"Internal error during {func.__name__}")
    return wrapper


class ZooEngine:
    """Composes the simulation components around one GameState"""

    def __init__(self, state: Optional[GameState] = None, config: Optional[GameConfig] = None,
                 clock: Callable[[], int] = now_ms, telemetry: Optional[Telemetry] = None):
        self.config = config or default_config()
        self.clock = clock
        self.telemetry = telemetry
        self.state = state if state is not None else new_game_state(self.config, clock())

        self.incubation = IncubationSystem(self.config, telemetry)
        self.bath = BathHouse(self.config, telemetry)
        self.clinic = Clinic(self.config, telemetry)
        self.care = CareSystem(self.config, telemetry)
        self.habitats = HabitatSystem(self.config, telemetry)
        self.happiness = HappinessSystem(self.config, telemetry)
        self.events = EventSystem(self.config, telemetry)
        self.economy = EconomySystem(self.config, telemetry,
                                     stations=(self.bath, self.clinic), habitats=self.habitats)
        self.lose = LoseConditionSystem(self.config, telemetry)
        self.prestige_manager = PrestigeManager(self.config, telemetry)

        # Producers run before their consumers within a step
        self.phases: List[Tickable] = [
            self.incubation,
            self.bath,
            self.clinic,
            self.care,
            self.habitats,
            self.happiness,
            self.events,
            self.economy,
            self.lose,
        ]

    def _now(self, now: Optional[int]) -> int:
        return self.clock() if now is None else now

    # ------------------------------------------------------------------ steps

    def step(self, now: Optional[int] = None) -> StepReport:
        """
        Advance the zoo by one step.

        Each phase runs inside its own error boundary: a failing phase is
        logged and reported, and the remaining phases still run. Once the run
        is over the pipeline is frozen until `restart`.
        """
        now = self._now(now)
        report = StepReport(now=now)
        state = self.state

        if state.is_game_over:
            state.last_step_at = now
            report.frozen = True
            report.game_over = True
            return report

        for phase in self.phases:
            try:
                phase.step(state, now)
                report.phases.append(phase.name)
            except Exception as e:
                logger.exception(f"Phase '{phase.name}' failed at {now}")
                report.errors[phase.name] = f"{type(e).__name__}: {e}"

        state.last_step_at = now
        report.income = state.income_per_step
        report.game_over = state.is_game_over
        return report

    def advance_to(self, now: Optional[int] = None) -> int:
        """
        Run every whole step that is due between the last step and `now`.

        Used to catch up after the zoo was not being ticked (e.g. between web
        requests). At most MAX_CATCHUP_STEPS steps run; older ones are dropped.
        Returns the number of steps run.
        """
        now = self._now(now)
        tick = self.config["TICK_MS"]
        last = self.state.last_step_at
        if last is None:
            self.state.last_step_at = now
            return 0

        due = (now - last) // tick
        if due <= 0:
            return 0

        cap = self.config["MAX_CATCHUP_STEPS"]
        if due > cap:
            logger.warning(f"Catch-up of {due} steps capped at {cap}")
            last = now - cap * tick
            due = cap

        ran = 0
        for i in range(1, due + 1):
            if self.state.is_game_over:
                self.state.last_step_at = now
                break
            self.step(last + i * tick)
            ran += 1
        return ran

    # ---------------------------------------------------------------- actions

    @_action
    def buy_egg(self, egg_type, now: Optional[int] = None) -> ActionResult:
        return self.incubation.purchase_egg(self.state, egg_type, self._now(now))

    @_action
    def feed(self, animal_id: str) -> ActionResult:
        return self.care.feed(self.state, animal_id)

    @_action
    def clean(self, animal_id: str) -> ActionResult:
        """Send an animal to the Bath House"""
        return self.bath.enqueue(self.state, animal_id)

    @_action
    def cancel_bath(self, animal_id: str) -> ActionResult:
        return self.bath.cancel(self.state, animal_id)

    @_action
    def send_to_clinic(self, animal_id: str) -> ActionResult:
        return self.clinic.enqueue(self.state, animal_id)

    @_action
    def cancel_clinic(self, animal_id: str) -> ActionResult:
        return self.clinic.cancel(self.state, animal_id)

    @_action
    def sell(self, animal_id: str) -> ActionResult:
        return self.economy.sell(self.state, animal_id)

    @_action
    def assign_habitat(self, animal_id: str, habitat_key) -> ActionResult:
        return self.habitats.assign(self.state, animal_id, habitat_key)

    @_action
    def upgrade_habitat(self, habitat_key) -> ActionResult:
        return self.habitats.upgrade(self.state, habitat_key)

    def can_prestige(self) -> bool:
        return not self.state.is_game_over and self.prestige_manager.can_prestige(self.state)

    @_action
    def prestige(self, now: Optional[int] = None) -> ActionResult:
        return self.prestige_manager.prestige(self.state, self._now(now))

    def restart(self, now: Optional[int] = None) -> ActionResult:
        """Start a fresh run; allowed at any time, including after game over"""
        try:
            return self.lose.restart(self.state, self._now(now))
        except Exception:
            logger.exception("Restart failed")
            return ActionResult.fail("Internal error during restart")

    # ------------------------------------------------------------------ views

    def ranked_runs(self, limit: Optional[int] = None):
        return leaderboard.ranked_runs(self.state, limit)

    def snapshot(self) -> dict:
        """Serialized state plus derived values a UI needs"""
        data = self.state.to_dict()
        data.pop("rng_state", None)
        data["can_prestige"] = self.can_prestige()
        data["habitat_capacity"] = {
            key.value: self.habitats.capacity(self.state, key) for key in self.state.habitats
        }
        return data
