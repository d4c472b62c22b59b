"""Core game logic functions"""
import random
import uuid
from typing import List, Optional, Sequence, Any

from .models import Rarity, RARITY_RANK, CreatureTemplate, RunSummary

STAT_MIN = 0.0
STAT_MAX = 100.0


def clamp(value: float, low: float = STAT_MIN, high: float = STAT_MAX) -> float:
    """Clamp a stat into [low, high]"""
    return max(low, min(high, value))


def new_id(prefix: str) -> str:
    """Generate a unique entity id such as 'animal-3f2a...'"""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def rarity_rank(rarity: Any) -> int:
    """
    Numeric rank for a rarity label (Common 1 ... Legendary 5).

    Accepts Rarity members or raw labels in any case; unknown labels rank 0.
    """
    if isinstance(rarity, Rarity):
        return RARITY_RANK[rarity]
    if not rarity:
        return 0
    label = str(rarity).strip().capitalize()
    try:
        return RARITY_RANK[Rarity(label)]
    except ValueError:
        return 0


def highest_rarity(rarities: Sequence[Rarity]) -> Optional[Rarity]:
    """Highest rarity in a collection, or None when empty"""
    if not rarities:
        return None
    return max(rarities, key=rarity_rank)


def happiness_multiplier(happiness: float, table: List[List[float]], floor: float) -> float:
    """
    Income multiplier for a happiness value.

    `table` is a list of [threshold, multiplier] pairs; the first pair whose
    threshold is <= happiness wins after sorting by threshold descending.
    """
    for threshold, multiplier in sorted(table, key=lambda row: row[0], reverse=True):
        if happiness >= threshold:
            return multiplier
    return floor


def service_cost(base_income: float, multiplier: float) -> float:
    """Price of a feed/bath/clinic visit for an animal"""
    return max(0.0, base_income * multiplier)


def pick_creature(rng: random.Random, pool: Sequence[CreatureTemplate]) -> Optional[CreatureTemplate]:
    """Uniform draw from a creature pool (None if the pool is empty)"""
    if not pool:
        return None
    return rng.choice(list(pool))


def compute_run_score(run: RunSummary) -> float:
    """
    Leaderboard score for a run.

    coins + 20 per pet + 1000 per rarity rank, minus one point per minute played.
    """
    time_penalty = run.time_played_ms / 60000.0
    return run.coins + run.pets_hatched * 20 + rarity_rank(run.highest_rarity) * 1000 - time_penalty
