#!/usr/bin/env python3
"""Tests for migration system and save files"""
import unittest
import json
import tempfile
import os
import shutil

from fantasy_zoo.game.migrations.migrate import migrate, get_latest_version
from fantasy_zoo.core.state_manager import save_state, load_state, state_from_save_dict
from fantasy_zoo.core.models import HabitatKey
from fantasy_zoo.game.engine import new_game_state, ZooEngine
from fantasy_zoo.game.state import GameState


class TestMigrations(unittest.TestCase):
    """Test migration system"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.save_path = os.path.join(self.temp_dir, "fantasy_zoo_save.json")

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_get_latest_version(self):
        version = get_latest_version()
        self.assertIsInstance(version, int)
        self.assertGreaterEqual(version, 1)

    def test_migrate_same_version(self):
        state = {"version": 1, "coins": 42.0}
        result = migrate(state, 1, 1)
        self.assertEqual(result["version"], 1)
        self.assertEqual(result["coins"], 42.0)

    def test_migrate_backwards_rejected(self):
        with self.assertRaises(ValueError):
            migrate({"version": 2}, 2, 1)

    def test_migrate_pre_versioned_save(self):
        """Old saves with a flat clinic line are folded into the clinic queue"""
        old_state = {
            "coins": 75.5,
            "animals": [],
            "clinic_queue": ["animal-a", "animal-b"],
            "current_patient": {"id": "animal-c", "start": 500, "durationMs": 10000},
        }

        latest = get_latest_version()
        migrated = migrate(old_state, 0, latest)

        self.assertEqual(migrated["version"], latest)
        self.assertEqual(migrated["coins"], 75.5)
        self.assertEqual(migrated["clinic"]["waiting"], ["animal-a", "animal-b"])
        self.assertEqual(migrated["clinic"]["active"]["animal_id"], "animal-c")
        self.assertNotIn("clinic_queue", migrated)
        self.assertIn("prestige", migrated)

    def test_unversioned_save_loads(self):
        state = state_from_save_dict({"coins": 12})
        self.assertIsInstance(state, GameState)
        self.assertEqual(state.coins, 12)
        self.assertEqual(set(state.habitats), set(HabitatKey))

    def test_load_missing_file_returns_none(self):
        self.assertIsNone(load_state(self.save_path))

    def test_save_load_round_trip(self):
        """Saving keeps version, permanent progress and the RNG position"""
        state = new_game_state(now=1000, seed=99)
        engine = ZooEngine(state=state, clock=lambda: 1000)
        engine.buy_egg("common")
        state.prestige.count = 2
        state.modifiers.global_prestige_multiplier = 1.2
        state.rng.random()

        save_state(state, self.save_path)
        with open(self.save_path, "r", encoding="utf-8") as f:
            self.assertEqual(json.load(f)["version"], get_latest_version())

        loaded = load_state(self.save_path)
        self.assertEqual(loaded.coins, state.coins)
        self.assertEqual(len(loaded.eggs), 1)
        self.assertEqual(loaded.prestige.count, 2)
        self.assertAlmostEqual(loaded.modifiers.global_prestige_multiplier, 1.2)
        self.assertEqual(loaded.rng.random(), state.rng.random())


if __name__ == "__main__":
    unittest.main()
