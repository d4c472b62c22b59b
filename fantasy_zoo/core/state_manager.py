"""Save and load zoo state"""
import json
import logging
import os
from typing import Any, Dict, Optional

from fantasy_zoo.game.migrations.migrate import migrate, get_latest_version
from fantasy_zoo.game.state import GameState

logger = logging.getLogger(__name__)

SAVE_FILE = "fantasy_zoo_save.json"


def state_to_save_dict(state: GameState) -> Dict[str, Any]:
    """Serialize a state, stamped with the current schema version"""
    data = state.to_dict()
    data["version"] = get_latest_version()
    return data


def state_from_save_dict(data: Dict[str, Any]) -> GameState:
    """Rebuild a state from saved data, migrating older schemas first"""
    saved_version = data.get("version", 0)  # 0 means pre-versioned save
    latest_version = get_latest_version()

    if saved_version < latest_version:
        data = migrate(data, saved_version, latest_version)

    return GameState.from_dict(data)


def save_state(state: GameState, path: Optional[str] = None):
    """Write the state to a JSON save file"""
    path = path or SAVE_FILE
    with open(path, "w", encoding="utf-8") as f:
        json.dump(state_to_save_dict(state), f, indent=2)
    logger.debug(f"Saved zoo state to {path}")


def load_state(path: Optional[str] = None) -> Optional[GameState]:
    """Load state from a save file, or None if there is no save yet"""
    path = path or SAVE_FILE
    if not os.path.exists(path):
        return None

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    return state_from_save_dict(data)
