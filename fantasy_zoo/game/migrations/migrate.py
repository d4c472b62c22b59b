"""Migration system for saved zoo state

Each schema change ships as `NNNN_migration.py` next to this file, exposing
`migrate(state_dict) -> state_dict` that upgrades a save from version
NNNN-1 to NNNN.
"""
import importlib
import logging
from pathlib import Path
from typing import Dict, Any, Callable

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent
MIGRATIONS_PACKAGE = __name__.rsplit(".", 1)[0]
SUFFIX = "_migration"


def _discover() -> Dict[int, str]:
    """Map schema version -> migration module name"""
    found = {}
    for path in MIGRATIONS_DIR.glob(f"*{SUFFIX}.py"):
        prefix = path.stem[:-len(SUFFIX)]
        if prefix.isdigit():
            found[int(prefix)] = path.stem
    return found


def _load_step(version: int, module_stem: str) -> Callable[[Dict[str, Any]], Dict[str, Any]]:
    module = importlib.import_module(f"{MIGRATIONS_PACKAGE}.{module_stem}")
    step = getattr(module, "migrate", None)
    if not callable(step):
        raise ValueError(f"{module_stem}.py has no migrate() function")
    return step


def migrate(state_dict: Dict[str, Any], from_version: int, to_version: int) -> Dict[str, Any]:
    """
    Upgrade a saved zoo from `from_version` to `to_version`.

    Versions without a migration module are plain version bumps.
    Raises ValueError when asked to go backwards and RuntimeError when a
    migration module fails.
    """
    if from_version > to_version:
        raise ValueError(f"Cannot migrate backwards from version {from_version} to {to_version}")
    if from_version == to_version:
        return state_dict

    available = _discover()
    current = state_dict
    for version in range(from_version + 1, to_version + 1):
        module_stem = available.get(version)
        if module_stem is None:
            current["version"] = version
            continue
        try:
            current = _load_step(version, module_stem)(current)
        except Exception as e:
            raise RuntimeError(f"Failed to run migration {module_stem}.py: {e}") from e
        logger.info(f"Save migrated to version {version}")

    current["version"] = to_version
    return current


def get_latest_version() -> int:
    """Newest schema version (1 when no migrations exist)"""
    return max(_discover(), default=1)
