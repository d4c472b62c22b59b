"""Lose-condition evaluation and run restart"""
import logging
from typing import Optional

from fantasy_zoo.core.models import ActionResult, GameOverReason
from fantasy_zoo.game.state import GameState
from fantasy_zoo.game.tickable import System

logger = logging.getLogger(__name__)


class LoseConditionSystem(System):
    name = "lose"

    def evaluate(self, state: GameState) -> Optional[GameOverReason]:
        """First matching lose condition, in priority order"""
        if state.coins < 0:
            return GameOverReason.BANKRUPT

        cheapest = self.config.cheapest_egg_price()
        if not state.animals and not state.eggs and cheapest is not None and state.coins < cheapest:
            return GameOverReason.NO_ANIMALS

        if state.animals and all(animal.happiness <= 0 for animal in state.animals):
            return GameOverReason.ALL_UNHAPPY

        return None

    def step(self, state: GameState, now: int) -> None:
        if state.is_game_over:
            return
        reason = self.evaluate(state)
        if reason is None:
            return
        state.is_game_over = True
        state.game_over_reason = reason.value
        logger.info(f"Game over: {reason.value} (balance {state.coins:g}, animals {len(state.animals)})")
        self.record("game_over", reason=reason.value)

    def restart(self, state: GameState, now: int) -> ActionResult:
        """Start a fresh run; permanent prestige progress and the leaderboard are kept"""
        previous_reason = state.game_over_reason
        state.reset_run(now, self.config["START_COINS"], self.config.habitats.keys())
        logger.info("Run restarted")
        self.record("restart", previous_reason=previous_reason)
        return ActionResult.ok(coins=state.coins, previous_reason=previous_reason)
