"""
Prestige: trade the current run for a permanent income multiplier.
"""
import logging
from typing import Optional

from fantasy_zoo.core.game_logic import highest_rarity
from fantasy_zoo.core.models import ActionResult, RunSummary
from fantasy_zoo.game import leaderboard
from fantasy_zoo.game.state import GameState
from fantasy_zoo.game.tickable import System

logger = logging.getLogger(__name__)


class PrestigeManager(System):
    name = "prestige"

    def blocking_reason(self, state: GameState) -> Optional[str]:
        """Why prestige is not allowed right now, or None if it is"""
        min_coins = self.config["PRESTIGE_MIN_COINS"]
        min_animals = self.config["PRESTIGE_MIN_ANIMALS"]
        if state.coins < min_coins:
            return f"Need at least {min_coins:g} coins to prestige (have {state.coins:g})"
        if len(state.animals) < min_animals:
            return f"Need at least {min_animals} animals to prestige (have {len(state.animals)})"
        return None

    def can_prestige(self, state: GameState) -> bool:
        return self.blocking_reason(state) is None

    def build_summary(self, state: GameState, now: int) -> RunSummary:
        """Snapshot of the current run; the animal count stands in for pets hatched"""
        best = highest_rarity([animal.rarity for animal in state.animals])
        return RunSummary(
            coins=state.coins,
            max_coins=max(state.max_coins, state.coins),
            pets_hatched=len(state.animals),
            highest_rarity=best.value if best else "Unknown",
            prestiges_before=state.prestige.count,
            prestiges_after=state.prestige.count + 1,
            time_played_ms=max(0, now - state.run_started_at),
            created_at=now,
        )

    def prestige(self, state: GameState, now: int) -> ActionResult:
        """
        Reset the run for a permanent bonus.

        Increments the prestige count and points, raises the global income
        multiplier, wipes transient state back to a fresh run and records the
        run summary on the leaderboard. Returns the summary in `data`.
        """
        reason = self.blocking_reason(state)
        if reason:
            return ActionResult.fail(reason)

        summary = self.build_summary(state, now)

        state.prestige.count += 1
        state.prestige.points += self.config["PRESTIGE_POINTS_PER_RESET"]
        state.modifiers.global_prestige_multiplier += self.config["PRESTIGE_MULTIPLIER_INCREMENT"]
        state.reset_run(now, self.config["START_COINS"], self.config.habitats.keys())
        leaderboard.record_run(state, summary, now, self.config["LEADERBOARD_MAX_RUNS"])

        logger.info(
            f"Prestige #{state.prestige.count}: multiplier now "
            f"{state.modifiers.global_prestige_multiplier:.2f}"
        )
        self.record("prestige", count=state.prestige.count, coins=summary.coins)
        return ActionResult.ok(
            summary=summary.to_dict(),
            prestige_count=state.prestige.count,
            prestige_points=state.prestige.points,
            global_prestige_multiplier=state.modifiers.global_prestige_multiplier,
        )
