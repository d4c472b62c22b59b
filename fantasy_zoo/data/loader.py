"""Data loader for JSON content tables"""
import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# Get data directory
DATA_DIR = Path(__file__).parent


def load_json_file(filename: str, data_dir: Optional[Path] = None) -> Optional[Dict[str, Any]]:
    """Load a JSON file from the data directory"""
    filepath = (data_dir or DATA_DIR) / filename
    if not filepath.exists():
        logger.warning(f"Data file {filename} not found in {filepath.parent}")
        return None

    try:
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error loading {filename} from {filepath}: {e}")
        return None


def load_data(data_dir: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load all zoo content from JSON files.

    Returns a dictionary with keys:
    - eggs: Egg type definitions and their creature pools
    - habitats: Habitat capacities, compatibility and multipliers
    - events: Random event templates
    - gameplay: Tunable overrides for the simulation constants

    Falls back to empty dicts if files are missing.
    """
    data = {
        "eggs": load_json_file("eggs.json", data_dir) or {},
        "habitats": load_json_file("habitats.json", data_dir) or {},
        "events": load_json_file("events.json", data_dir) or {},
        "gameplay": load_json_file("gameplay.json", data_dir) or {},
    }

    return data
