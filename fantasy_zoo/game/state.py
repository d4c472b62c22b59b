"""Zoo run state with RNG integration"""
import copy
import logging
import random
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

from fantasy_zoo.core.config import CONFIG, HABITATS
from fantasy_zoo.core.models import (
    Animal, Egg, ServiceQueueState, HabitatState, HabitatKey, EventRecord,
    EventsState, Modifiers, PrestigeRecord, RunSummary,
)

logger = logging.getLogger(__name__)

STATE_VERSION = 1


def fresh_habitats(keys=None) -> Dict[HabitatKey, HabitatState]:
    """Level-1, empty habitat table for the given (or configured) keys"""
    if keys is None:
        keys = HABITATS.keys()
    return {key: HabitatState(key=key) for key in keys}


@dataclass
class GameState:
    """
    The single mutable run-state object.

    Transient fields (coins, animals, eggs, queues, habitats, events, game
    over flag) are wiped on restart and prestige. Permanent fields (prestige,
    global prestige multiplier, leaderboard) survive both.

    The RNG is seeded from `rng_seed` and its position is saved with the
    state so reloading does not replay the same rolls.
    """
    version: int = STATE_VERSION
    rng_seed: Optional[int] = None
    # Transient
    coins: float = CONFIG["START_COINS"]
    income_per_step: float = 0.0
    animals: List[Animal] = field(default_factory=list)
    eggs: List[Egg] = field(default_factory=list)
    bath: ServiceQueueState = field(default_factory=ServiceQueueState)
    clinic: ServiceQueueState = field(default_factory=ServiceQueueState)
    habitats: Dict[HabitatKey, HabitatState] = field(default_factory=fresh_habitats)
    events: EventsState = field(default_factory=EventsState)
    is_game_over: bool = False
    game_over_reason: Optional[str] = None
    run_started_at: int = 0
    last_step_at: Optional[int] = None
    max_coins: float = CONFIG["START_COINS"]
    pets_hatched: int = 0
    # Permanent
    modifiers: Modifiers = field(default_factory=Modifiers)
    prestige: PrestigeRecord = field(default_factory=PrestigeRecord)
    leaderboard: List[RunSummary] = field(default_factory=list)
    _rng_instance: Optional[random.Random] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        """Initialize RNG if seed is set"""
        if self.rng_seed is None:
            self.rng_seed = random.randint(0, 2**31 - 1)
        self._rng_instance = random.Random(self.rng_seed)

    @property
    def rng(self) -> random.Random:
        """Get RNG instance for this state"""
        if self._rng_instance is None:
            self._rng_instance = random.Random(self.rng_seed)
        return self._rng_instance

    def find_animal(self, animal_id: str) -> Optional[Animal]:
        for animal in self.animals:
            if animal.id == animal_id:
                return animal
        return None

    def animal_ids(self) -> set:
        return {animal.id for animal in self.animals}

    def reset_run(self, now: int, start_coins: float, habitat_keys=None):
        """Reset every transient field to fresh-run defaults"""
        self.coins = start_coins
        self.income_per_step = 0.0
        self.animals = []
        self.eggs = []
        self.bath = ServiceQueueState()
        self.clinic = ServiceQueueState()
        self.habitats = fresh_habitats(habitat_keys)
        self.events = EventsState()
        self.modifiers.income_boost_multiplier = 1.0
        self.is_game_over = False
        self.game_over_reason = None
        self.run_started_at = now
        self.last_step_at = now
        self.max_coins = start_coins
        self.pets_hatched = 0

    def copy(self) -> 'GameState':
        """Create a deep copy of this state (the RNG position is copied too)"""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary"""
        rng_version, rng_internal, rng_gauss = self.rng.getstate()
        return {
            "version": self.version,
            "rng_seed": self.rng_seed,
            "rng_state": [rng_version, list(rng_internal), rng_gauss],
            "coins": self.coins,
            "income_per_step": self.income_per_step,
            "animals": [a.to_dict() for a in self.animals],
            "eggs": [e.to_dict() for e in self.eggs],
            "bath": self.bath.to_dict(),
            "clinic": self.clinic.to_dict(),
            "habitats": {key.value: h.to_dict() for key, h in self.habitats.items()},
            "events": {
                "active": [r.to_dict() for r in self.events.active],
                "history": [r.to_dict() for r in self.events.history],
                "last_event_time": self.events.last_event_time,
            },
            "is_game_over": self.is_game_over,
            "game_over_reason": self.game_over_reason,
            "run_started_at": self.run_started_at,
            "last_step_at": self.last_step_at,
            "max_coins": self.max_coins,
            "pets_hatched": self.pets_hatched,
            "modifiers": {
                "global_prestige_multiplier": self.modifiers.global_prestige_multiplier,
                "income_boost_multiplier": self.modifiers.income_boost_multiplier,
            },
            "prestige": {"count": self.prestige.count, "points": self.prestige.points},
            "leaderboard": [run.to_dict() for run in self.leaderboard],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GameState':
        """Rebuild a state from `to_dict` output (already migrated)"""
        habitats = fresh_habitats()
        for key, h_data in data.get("habitats", {}).items():
            try:
                habitat = HabitatState.from_dict({**h_data, "key": key})
            except ValueError:
                logger.warning(f"Dropping saved habitat with unknown key: {key}")
                continue
            habitats[habitat.key] = habitat

        events_data = data.get("events", {})
        modifiers_data = data.get("modifiers", {})
        prestige_data = data.get("prestige", {})
        start_coins = CONFIG["START_COINS"]

        state = cls(
            version=data.get("version", STATE_VERSION),
            rng_seed=data.get("rng_seed"),
            coins=float(data.get("coins", start_coins)),
            income_per_step=float(data.get("income_per_step", 0.0)),
            animals=[Animal.from_dict(a) for a in data.get("animals", [])],
            eggs=[Egg.from_dict(e) for e in data.get("eggs", [])],
            bath=ServiceQueueState.from_dict(data.get("bath")),
            clinic=ServiceQueueState.from_dict(data.get("clinic")),
            habitats=habitats,
            events=EventsState(
                active=[EventRecord.from_dict(r) for r in events_data.get("active", [])],
                history=[EventRecord.from_dict(r) for r in events_data.get("history", [])],
                last_event_time=int(events_data.get("last_event_time", 0)),
            ),
            is_game_over=bool(data.get("is_game_over", False)),
            game_over_reason=data.get("game_over_reason"),
            run_started_at=int(data.get("run_started_at", 0)),
            last_step_at=data.get("last_step_at"),
            max_coins=float(data.get("max_coins", start_coins)),
            pets_hatched=int(data.get("pets_hatched", 0)),
            modifiers=Modifiers(
                global_prestige_multiplier=float(modifiers_data.get("global_prestige_multiplier", 1.0)),
                income_boost_multiplier=float(modifiers_data.get("income_boost_multiplier", 1.0)),
            ),
            prestige=PrestigeRecord(
                count=int(prestige_data.get("count", 0)),
                points=int(prestige_data.get("points", 0)),
            ),
            leaderboard=[RunSummary.from_dict(r) for r in data.get("leaderboard", [])],
        )

        rng_state = data.get("rng_state")
        if rng_state:
            rng_version, rng_internal, rng_gauss = rng_state
            state.rng.setstate((rng_version, tuple(rng_internal), rng_gauss))
        return state
