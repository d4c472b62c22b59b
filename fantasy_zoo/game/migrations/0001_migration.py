"""
Migration 0001: Initial schema version
Saves written before the version field existed are brought to version 1.
"""


def migrate(state_dict: dict) -> dict:
    """
    Migrate to version 1 (initial schema).

    Adds the version field and any missing top-level fields with fresh-run
    defaults. Older saves stored the clinic's waiting line and patient as
    `clinic_queue` / `current_patient`; those are folded into `clinic`.
    """
    if 'version' not in state_dict:
        state_dict['version'] = 1

    state_dict.setdefault('coins', 100)
    state_dict.setdefault('income_per_step', 0.0)
    state_dict.setdefault('animals', [])
    state_dict.setdefault('eggs', [])
    state_dict.setdefault('bath', {"waiting": [], "active": None, "paid": {}})

    if 'clinic' not in state_dict:
        waiting = state_dict.pop('clinic_queue', [])
        patient = state_dict.pop('current_patient', None)
        active = None
        if patient:
            active = {
                "animal_id": patient.get("id"),
                "started_at": patient.get("start", 0),
                "duration_ms": patient.get("durationMs", 10000),
                "cost_paid": 0.0,
            }
        state_dict['clinic'] = {"waiting": list(waiting), "active": active, "paid": {}}

    state_dict.setdefault('habitats', {})
    state_dict.setdefault('events', {"active": [], "history": [], "last_event_time": 0})
    state_dict.setdefault('is_game_over', False)
    state_dict.setdefault('game_over_reason', None)
    state_dict.setdefault('max_coins', state_dict['coins'])
    state_dict.setdefault('pets_hatched', len(state_dict['animals']))
    state_dict.setdefault('modifiers', {"global_prestige_multiplier": 1.0, "income_boost_multiplier": 1.0})
    state_dict.setdefault('prestige', {"count": 0, "points": 0})
    state_dict.setdefault('leaderboard', [])

    # None means the seed is generated on load
    state_dict.setdefault('rng_seed', None)

    return state_dict
