"""Local leaderboard of past runs kept in the permanent run state"""
import logging
from typing import List, Optional, Union, Dict, Any

from fantasy_zoo.core.game_logic import compute_run_score
from fantasy_zoo.core.models import RunSummary
from fantasy_zoo.game.state import GameState

logger = logging.getLogger(__name__)


def sort_runs(runs: List[RunSummary]) -> List[RunSummary]:
    """Best first: score, then coins, then newest"""
    return sorted(
        runs,
        key=lambda run: (compute_run_score(run), run.coins, run.created_at),
        reverse=True,
    )


def record_run(state: GameState, summary: Union[RunSummary, Dict[str, Any]], now: int,
               max_runs: int = 50) -> RunSummary:
    """
    Store a run summary, keeping only the best `max_runs` entries.

    Dict summaries are normalized first so missing fields never break ranking.
    """
    run = summary if isinstance(summary, RunSummary) else RunSummary.from_dict(summary, now=now)
    if not run.created_at:
        run.created_at = now
    state.leaderboard.append(run)
    if len(state.leaderboard) > max_runs:
        state.leaderboard = sort_runs(state.leaderboard)[:max_runs]

    logger.info(f"Recorded run: coins={run.coins:g}, pets={run.pets_hatched}, rarity={run.highest_rarity}")
    return run


def ranked_runs(state: GameState, limit: Optional[int] = None) -> List[RunSummary]:
    ranked = sort_runs(state.leaderboard)
    if limit is not None and limit > 0:
        return ranked[:limit]
    return ranked


def clear_runs(state: GameState):
    state.leaderboard = []
