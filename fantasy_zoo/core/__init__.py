"""Core models and configuration for Fantasy Zoo"""
from .models import (
    EggType, HabitatKey, HealthStatus, EventKind, Rarity, GameOverReason,
    Animal, Egg, ServiceSlot, ServiceQueueState, HabitatState, EventRecord,
    Modifiers, PrestigeRecord, RunSummary, ActionResult,
)
from .config import CONFIG, EGG_TYPES, HABITATS, GameConfig, default_config

__all__ = [
    'EggType', 'HabitatKey', 'HealthStatus', 'EventKind', 'Rarity', 'GameOverReason',
    'Animal', 'Egg', 'ServiceSlot', 'ServiceQueueState', 'HabitatState', 'EventRecord',
    'Modifiers', 'PrestigeRecord', 'RunSummary', 'ActionResult',
    'CONFIG', 'EGG_TYPES', 'HABITATS', 'GameConfig', 'default_config',
]
