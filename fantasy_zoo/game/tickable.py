"""Common interface for the per-step simulation components"""
from typing import Optional, Any, Protocol

from fantasy_zoo.core.config import GameConfig, default_config
from fantasy_zoo.game.state import GameState
from fantasy_zoo.game.telemetry import Telemetry


class Tickable(Protocol):
    """Anything the engine can advance by one step"""
    name: str

    def step(self, state: GameState, now: int) -> None:
        ...


class System:
    """Base class for simulation components: config access plus telemetry hook"""
    name = "system"

    def __init__(self, config: Optional[GameConfig] = None, telemetry: Optional[Telemetry] = None):
        self.config = config or default_config()
        self.telemetry = telemetry

    def record(self, event_type: str, **data: Any):
        """Forward a gameplay event to telemetry, if attached"""
        if self.telemetry is not None:
            self.telemetry.log_event(event_type, **data)

    def step(self, state: GameState, now: int) -> None:
        raise NotImplementedError
