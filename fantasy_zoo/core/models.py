"""Zoo data models"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, List, Any, FrozenSet


class EggType(str, Enum):
    """Egg types sold in the shop"""
    COMMON = "common"
    RARE = "rare"
    MYSTIC = "mystic"


class HabitatKey(str, Enum):
    """Habitat zones an animal can live in"""
    FOREST = "forest"
    DESERT = "desert"
    OCEAN = "ocean"
    ARCTIC = "arctic"
    MYSTIC = "mystic"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    SICK = "sick"


class EventKind(str, Enum):
    INSTANT = "instant"
    TIMED = "timed"


class Rarity(str, Enum):
    """Creature rarity tiers, lowest first"""
    COMMON = "Common"
    UNCOMMON = "Uncommon"
    RARE = "Rare"
    EPIC = "Epic"
    LEGENDARY = "Legendary"


RARITY_RANK = {
    Rarity.COMMON: 1,
    Rarity.UNCOMMON: 2,
    Rarity.RARE: 3,
    Rarity.EPIC: 4,
    Rarity.LEGENDARY: 5,
}


class GameOverReason(str, Enum):
    BANKRUPT = "bankrupt"
    NO_ANIMALS = "no_animals"
    ALL_UNHAPPY = "all_unhappy"


@dataclass(frozen=True)
class CreatureTemplate:
    """A creature that can hatch from an egg"""
    name: str
    icon: str
    rarity: Rarity
    income: float


@dataclass(frozen=True)
class EggTypeConfig:
    """Static egg definition (price, hatch time and creature pool)"""
    key: EggType
    name: str
    price: float
    hatch_time_ms: int
    icon: str = ""
    description: str = ""
    pool: tuple = ()


@dataclass(frozen=True)
class HabitatConfig:
    """Static habitat definition"""
    key: HabitatKey
    name: str
    base_capacity: int
    capacity_per_level: int
    supported_egg_types: FrozenSet[EggType]
    bonus_multiplier: float
    penalty_multiplier: float

    def capacity_at(self, level: int) -> int:
        """Capacity for a given level (level 1 is the base capacity)"""
        return self.base_capacity + max(0, level - 1) * self.capacity_per_level

    def supports(self, egg_type: EggType) -> bool:
        return egg_type in self.supported_egg_types


@dataclass
class Animal:
    """A creature owned by the player"""
    id: str
    name: str
    icon: str
    rarity: Rarity
    from_egg_type: EggType
    base_income: float
    hunger: float = 100.0
    cleanliness: float = 100.0
    happiness: float = 70.0
    health: HealthStatus = HealthStatus.HEALTHY
    neglect_ticks: int = 0
    habitat: Optional[HabitatKey] = None
    habitat_multiplier: float = 1.0
    happiness_multiplier: float = 1.0
    effective_income: float = 0.0
    created_at: int = 0

    @property
    def is_sick(self) -> bool:
        return self.health == HealthStatus.SICK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "rarity": self.rarity.value,
            "from_egg_type": self.from_egg_type.value,
            "base_income": self.base_income,
            "hunger": self.hunger,
            "cleanliness": self.cleanliness,
            "happiness": self.happiness,
            "health": self.health.value,
            "neglect_ticks": self.neglect_ticks,
            "habitat": self.habitat.value if self.habitat else None,
            "habitat_multiplier": self.habitat_multiplier,
            "happiness_multiplier": self.happiness_multiplier,
            "effective_income": self.effective_income,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Animal':
        habitat = d.get("habitat")
        return cls(
            id=str(d["id"]),
            name=d.get("name", "Unknown"),
            icon=d.get("icon", ""),
            rarity=Rarity(d.get("rarity", Rarity.COMMON.value)),
            from_egg_type=EggType(d.get("from_egg_type", EggType.COMMON.value)),
            base_income=float(d.get("base_income", 0)),
            hunger=float(d.get("hunger", 100.0)),
            cleanliness=float(d.get("cleanliness", 100.0)),
            happiness=float(d.get("happiness", 70.0)),
            health=HealthStatus(d.get("health", HealthStatus.HEALTHY.value)),
            neglect_ticks=int(d.get("neglect_ticks", 0)),
            habitat=HabitatKey(habitat) if habitat else None,
            habitat_multiplier=float(d.get("habitat_multiplier", 1.0)),
            happiness_multiplier=float(d.get("happiness_multiplier", 1.0)),
            effective_income=float(d.get("effective_income", 0.0)),
            created_at=int(d.get("created_at", 0)),
        )


@dataclass
class Egg:
    """An egg that is incubating"""
    id: str
    egg_type: EggType
    started_at: int
    duration_ms: int

    def is_ready(self, now: int) -> bool:
        return now - self.started_at >= self.duration_ms

    def remaining_ms(self, now: int) -> int:
        return max(0, self.duration_ms - (now - self.started_at))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "egg_type": self.egg_type.value,
            "started_at": self.started_at,
            "duration_ms": self.duration_ms,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Egg':
        return cls(
            id=str(d["id"]),
            egg_type=EggType(d["egg_type"]),
            started_at=int(d["started_at"]),
            duration_ms=int(d["duration_ms"]),
        )


@dataclass
class ServiceSlot:
    """The animal currently being treated at a service station"""
    animal_id: str
    started_at: int
    duration_ms: int
    cost_paid: float = 0.0

    def is_complete(self, now: int) -> bool:
        return now - self.started_at >= self.duration_ms


@dataclass
class ServiceQueueState:
    """
    Waiting line plus active slot for one service station.

    `paid` maps waiting animal ids to the cost charged at enqueue time so a
    cancellation can refund exactly that amount.
    """
    waiting: List[str] = field(default_factory=list)
    active: Optional[ServiceSlot] = None
    paid: Dict[str, float] = field(default_factory=dict)

    def contains(self, animal_id: str) -> bool:
        return animal_id in self.waiting or self.is_active(animal_id)

    def is_active(self, animal_id: str) -> bool:
        return self.active is not None and self.active.animal_id == animal_id

    def clear(self):
        self.waiting.clear()
        self.paid.clear()
        self.active = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "waiting": list(self.waiting),
            "active": {
                "animal_id": self.active.animal_id,
                "started_at": self.active.started_at,
                "duration_ms": self.active.duration_ms,
                "cost_paid": self.active.cost_paid,
            } if self.active else None,
            "paid": dict(self.paid),
        }

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> 'ServiceQueueState':
        if not d:
            return cls()
        active = d.get("active")
        return cls(
            waiting=[str(x) for x in d.get("waiting", [])],
            active=ServiceSlot(
                animal_id=str(active["animal_id"]),
                started_at=int(active["started_at"]),
                duration_ms=int(active["duration_ms"]),
                cost_paid=float(active.get("cost_paid", 0.0)),
            ) if active else None,
            paid={str(k): float(v) for k, v in d.get("paid", {}).items()},
        )


@dataclass
class HabitatState:
    """Mutable level and occupants of a habitat"""
    key: HabitatKey
    level: int = 1
    animal_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key.value, "level": self.level, "animal_ids": list(self.animal_ids)}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'HabitatState':
        return cls(
            key=HabitatKey(d["key"]),
            level=max(1, int(d.get("level", 1))),
            animal_ids=[str(x) for x in d.get("animal_ids", [])],
        )


@dataclass
class EventRecord:
    """A triggered random event"""
    template_id: str
    name: str
    kind: EventKind
    started_at: int
    duration_ms: int = 0
    description: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)

    def is_expired(self, now: int) -> bool:
        return self.duration_ms > 0 and now - self.started_at >= self.duration_ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "template_id": self.template_id,
            "name": self.name,
            "kind": self.kind.value,
            "started_at": self.started_at,
            "duration_ms": self.duration_ms,
            "description": self.description,
            "payload": dict(self.payload),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'EventRecord':
        return cls(
            template_id=d["template_id"],
            name=d.get("name", d["template_id"]),
            kind=EventKind(d.get("kind", EventKind.INSTANT.value)),
            started_at=int(d.get("started_at", 0)),
            duration_ms=int(d.get("duration_ms", 0)),
            description=d.get("description", ""),
            payload=dict(d.get("payload", {})),
        )


@dataclass
class EventsState:
    active: List[EventRecord] = field(default_factory=list)
    history: List[EventRecord] = field(default_factory=list)
    last_event_time: int = 0


@dataclass
class Modifiers:
    """Global income multipliers"""
    global_prestige_multiplier: float = 1.0
    income_boost_multiplier: float = 1.0


@dataclass
class PrestigeRecord:
    """Permanent prestige progress (survives resets)"""
    count: int = 0
    points: int = 0


@dataclass
class RunSummary:
    """Summary of a finished run, ranked on the leaderboard"""
    coins: float
    max_coins: float
    pets_hatched: int
    highest_rarity: str
    prestiges_before: int
    prestiges_after: int
    time_played_ms: int
    created_at: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "coins": self.coins,
            "max_coins": self.max_coins,
            "pets_hatched": self.pets_hatched,
            "highest_rarity": self.highest_rarity,
            "prestiges_before": self.prestiges_before,
            "prestiges_after": self.prestiges_after,
            "time_played_ms": self.time_played_ms,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any], now: int = 0) -> 'RunSummary':
        """Build a summary, filling missing fields with neutral values"""
        coins = float(d.get("coins") or 0)
        prestiges_before = int(d.get("prestiges_before") or 0)
        created_at = d.get("created_at")
        return cls(
            coins=coins,
            max_coins=float(d.get("max_coins", coins) or 0),
            pets_hatched=int(d.get("pets_hatched") or 0),
            highest_rarity=d.get("highest_rarity") or "Unknown",
            prestiges_before=prestiges_before,
            prestiges_after=int(d.get("prestiges_after", prestiges_before) or 0),
            time_played_ms=int(d.get("time_played_ms") or 0),
            created_at=int(created_at) if isinstance(created_at, (int, float)) else now,
        )


@dataclass
class ActionResult:
    """
    Outcome of a user-initiated action.

    Truthy on success. `reason` carries a human-readable explanation for
    failures; `data` carries action-specific details (cost, refund, ids).
    """
    success: bool
    reason: str = ""
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, **data) -> 'ActionResult':
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, reason: str, **data) -> 'ActionResult':
        return cls(success=False, reason=reason, data=data)

    def __bool__(self) -> bool:
        return self.success

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "reason": self.reason, "data": self.data}
