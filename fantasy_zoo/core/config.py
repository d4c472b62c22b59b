"""Zoo configuration constants"""
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Any, Optional

from fantasy_zoo.data.loader import load_data
from .models import (
    EggType, HabitatKey, Rarity, CreatureTemplate, EggTypeConfig, HabitatConfig,
)

logger = logging.getLogger(__name__)

# Load data from JSON files (with fallback to hardcoded CONFIG)
_loaded_data = load_data()

_eggs_data = _loaded_data.get("eggs", {}).get("egg_types", {})
_habitats_data = _loaded_data.get("habitats", {}).get("habitats", {})
_events_data = _loaded_data.get("events", {}).get("events", {})
_tunables = _loaded_data.get("gameplay", {}).get("tunables", {})

DEFAULTS: Dict[str, Any] = {
    "SEED": None,
    "START_COINS": 100,
    "TICK_MS": 1000,
    "MAX_CATCHUP_STEPS": 3600,
    # Care decay and sickness
    "HUNGER_DECAY_PER_STEP": 0.5,
    "CLEANLINESS_DECAY_PER_STEP": 0.3,
    "NEGLECT_HUNGER_THRESHOLD": 30,
    "NEGLECT_CLEANLINESS_THRESHOLD": 30,
    "NEGLECT_TICKS_BEFORE_SICK": 20,
    "NEGLECT_TICKS_CAP": 40,
    "SICK_HAPPINESS_PENALTY": 15,
    # Feeding
    "FEED_COST_MULTIPLIER": 5,
    "FEED_HAPPINESS_BOOST": 5,
    # Service stations
    "BATH_COST_MULTIPLIER": 6,
    "BATH_DURATION_MS": 7000,
    "BATH_HAPPINESS_BOOST": 5,
    "CLINIC_COST_MULTIPLIER": 25,
    "CLINIC_DURATION_MS": 10000,
    "CLINIC_HAPPINESS_BOOST": 10,
    # Happiness
    "HAPPINESS_DRIFT": 0.05,
    "WELL_FED_THRESHOLD": 70,
    "CLEAN_THRESHOLD": 70,
    "HUNGRY_PENALTY": 0.7,
    "DIRTY_PENALTY": 0.7,
    "SICK_PENALTY": 1.0,
    "WELL_CARED_BONUS": 0.5,
    "HAPPINESS_MULTIPLIER_TABLE": [[90, 1.3], [80, 1.2], [60, 1.1], [40, 1.0], [20, 0.75]],
    "HAPPINESS_MULTIPLIER_FLOOR": 0.5,
    # Habitats
    "HABITAT_HOMELESS_DRAIN": 0.5,
    "HABITAT_FIT_GAIN": 1.0,
    "HABITAT_MISFIT_LOSS": 1.0,
    "HABITAT_UPGRADE_BASE_COST": 50,
    # Events
    "EVENT_CHANCE_PER_STEP": 0.05,
    "EVENT_COOLDOWN_MS": 15000,
    "EVENT_HISTORY_LIMIT": 50,
    # Economy
    "SELL_MULTIPLIER": 15,
    # Prestige
    "PRESTIGE_MIN_COINS": 200,
    "PRESTIGE_MIN_ANIMALS": 3,
    "PRESTIGE_MULTIPLIER_INCREMENT": 0.10,
    "PRESTIGE_POINTS_PER_RESET": 1,
    "LEADERBOARD_MAX_RUNS": 50,
}

_unknown_tunables = set(_tunables) - set(DEFAULTS)
if _unknown_tunables:
    logger.warning(f"Ignoring unknown tunables in gameplay.json: {sorted(_unknown_tunables)}")

CONFIG: Dict[str, Any] = {
    **DEFAULTS,
    **{k: v for k, v in _tunables.items() if k in DEFAULTS},
}


_FALLBACK_EGG_TYPES = {
    "common": {
        "name": "Common Egg", "price": 20, "hatch_time_ms": 7000, "icon": "🥚",
        "pool": [
            {"name": "Cloudy Chick", "icon": "🐤", "rarity": "Common", "income": 1},
            {"name": "Leafy Bun", "icon": "🐰", "rarity": "Common", "income": 1},
            {"name": "Moss Turtle", "icon": "🐢", "rarity": "Uncommon", "income": 2},
            {"name": "Pebble Frog", "icon": "🐸", "rarity": "Uncommon", "income": 2},
        ],
    },
    "rare": {
        "name": "Rare Egg", "price": 45, "hatch_time_ms": 11000, "icon": "🐣",
        "pool": [
            {"name": "Spark Fox", "icon": "🦊", "rarity": "Rare", "income": 3},
            {"name": "Crystal Wolf", "icon": "🐺", "rarity": "Epic", "income": 4},
        ],
    },
    "mystic": {
        "name": "Mystic Egg", "price": 90, "hatch_time_ms": 15000, "icon": "🐉",
        "pool": [
            {"name": "Aurora Serpent", "icon": "🐍", "rarity": "Epic", "income": 5},
            {"name": "Nebula Dragon", "icon": "🐲", "rarity": "Legendary", "income": 6},
        ],
    },
}

_FALLBACK_HABITATS = {
    "forest": {"name": "Forest Habitat", "base_capacity": 6, "capacity_per_level": 2,
               "supported_egg_types": ["common", "rare"], "bonus_multiplier": 1.2, "penalty_multiplier": 0.9},
    "desert": {"name": "Desert Habitat", "base_capacity": 4, "capacity_per_level": 1,
               "supported_egg_types": ["rare"], "bonus_multiplier": 1.2, "penalty_multiplier": 0.9},
    "ocean": {"name": "Ocean Habitat", "base_capacity": 5, "capacity_per_level": 2,
              "supported_egg_types": ["common", "rare"], "bonus_multiplier": 1.2, "penalty_multiplier": 0.9},
    "arctic": {"name": "Arctic Habitat", "base_capacity": 4, "capacity_per_level": 1,
               "supported_egg_types": ["rare"], "bonus_multiplier": 1.2, "penalty_multiplier": 0.9},
    "mystic": {"name": "Mystic Sanctuary", "base_capacity": 3, "capacity_per_level": 1,
               "supported_egg_types": ["mystic"], "bonus_multiplier": 1.3, "penalty_multiplier": 0.85},
}

_FALLBACK_EVENTS = {
    "visitor_donation": {"name": "Generous Visitor", "kind": "instant", "coins_range": [20, 49]},
    "lost_tickets": {"name": "Lost Tickets", "kind": "instant", "coins_range": [10, 29]},
    "happy_parade": {"name": "Happy Parade", "kind": "instant", "happiness_delta": 10},
    "muddy_rain": {"name": "Muddy Rain", "kind": "instant", "cleanliness_delta": -15},
    "double_tips": {"name": "Double Tips Hour", "kind": "timed", "duration_ms": 20000,
                    "coins_range": [30, 79], "income_factor": 2},
}


def parse_egg_types(raw: Dict[str, Any]) -> Dict[EggType, EggTypeConfig]:
    """Build egg configs from their JSON shape, skipping keys outside EggType"""
    egg_types = {}
    for key, info in raw.items():
        try:
            egg_key = EggType(key)
        except ValueError:
            logger.warning(f"Skipping unknown egg type '{key}' in egg configuration")
            continue
        pool = []
        for creature in info.get("pool", []):
            try:
                pool.append(CreatureTemplate(
                    name=creature["name"],
                    icon=creature.get("icon", ""),
                    rarity=Rarity(creature.get("rarity", "Common")),
                    income=float(creature.get("income", 0)),
                ))
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed creature in '{key}' pool: {e}")
        egg_types[egg_key] = EggTypeConfig(
            key=egg_key,
            name=info.get("name", key),
            price=float(info.get("price", 0)),
            hatch_time_ms=int(info.get("hatch_time_ms", 0)),
            icon=info.get("icon", ""),
            description=info.get("description", ""),
            pool=tuple(pool),
        )
    return egg_types


def parse_habitats(raw: Dict[str, Any]) -> Dict[HabitatKey, HabitatConfig]:
    """Build habitat configs from their JSON shape, skipping keys outside HabitatKey"""
    habitats = {}
    for key, info in raw.items():
        try:
            habitat_key = HabitatKey(key)
        except ValueError:
            logger.warning(f"Skipping unknown habitat '{key}' in habitat configuration")
            continue
        supported = set()
        for egg_key in info.get("supported_egg_types", []):
            try:
                supported.add(EggType(egg_key))
            except ValueError:
                logger.warning(f"Habitat '{key}' lists unknown egg type '{egg_key}'")
        habitats[habitat_key] = HabitatConfig(
            key=habitat_key,
            name=info.get("name", key),
            base_capacity=int(info.get("base_capacity", 0)),
            capacity_per_level=int(info.get("capacity_per_level", 0)),
            supported_egg_types=frozenset(supported),
            bonus_multiplier=float(info.get("bonus_multiplier", 1.0)),
            penalty_multiplier=float(info.get("penalty_multiplier", 1.0)),
        )
    return habitats


EGG_TYPES = parse_egg_types(_eggs_data if _eggs_data else _FALLBACK_EGG_TYPES)
HABITATS = parse_habitats(_habitats_data if _habitats_data else _FALLBACK_HABITATS)
EVENT_DEFINITIONS: Dict[str, Dict[str, Any]] = _events_data if _events_data else _FALLBACK_EVENTS


@dataclass(frozen=True)
class GameConfig:
    """
    Everything the simulation reads that is not run state.

    Engines take one of these instead of reading module globals so tests and
    hosts can run with tuned copies (see `with_overrides`).
    """
    tunables: Dict[str, Any] = field(default_factory=lambda: dict(CONFIG))
    egg_types: Dict[EggType, EggTypeConfig] = field(default_factory=lambda: dict(EGG_TYPES))
    habitats: Dict[HabitatKey, HabitatConfig] = field(default_factory=lambda: dict(HABITATS))
    events: Dict[str, Dict[str, Any]] = field(default_factory=lambda: dict(EVENT_DEFINITIONS))

    def __getitem__(self, key: str) -> Any:
        return self.tunables[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.tunables.get(key, default)

    def with_overrides(self, **overrides) -> 'GameConfig':
        """Copy with some tunables replaced; unknown keys raise KeyError"""
        unknown = set(overrides) - set(self.tunables)
        if unknown:
            raise KeyError(f"Unknown tunables: {sorted(unknown)}")
        return replace(self, tunables={**self.tunables, **overrides})

    def cheapest_egg_price(self) -> Optional[float]:
        if not self.egg_types:
            return None
        return min(egg.price for egg in self.egg_types.values())


def default_config() -> GameConfig:
    return GameConfig()
