"""
Random zoo events.

Templates come from events.json; each known template id maps to an effect
builder parameterized by its JSON entry. Timed templates also carry a revert
that undoes their effect on global modifiers exactly.
"""
import logging
import random
from dataclasses import dataclass
from typing import Callable, Dict, Any, List, Optional

from fantasy_zoo.core.config import GameConfig
from fantasy_zoo.core.game_logic import clamp
from fantasy_zoo.core.models import EventKind, EventRecord
from fantasy_zoo.game.state import GameState
from fantasy_zoo.game.telemetry import Telemetry
from fantasy_zoo.game.tickable import System

logger = logging.getLogger(__name__)

Effect = Callable[[GameState, random.Random], Dict[str, Any]]
Revert = Callable[[GameState, EventRecord], None]


@dataclass(frozen=True)
class EventTemplate:
    id: str
    name: str
    kind: EventKind
    description: str = ""
    duration_ms: int = 0
    apply: Optional[Effect] = None
    revert: Optional[Revert] = None


def _coin_range(definition: Dict[str, Any], default) -> tuple:
    low, high = definition.get("coins_range", default)
    return int(low), int(high)


def _donation(definition: Dict[str, Any]):
    low, high = _coin_range(definition, (20, 49))

    def apply(state: GameState, rng: random.Random) -> Dict[str, Any]:
        bonus = rng.randint(low, high)
        state.coins += bonus
        return {"coins_delta": bonus}
    return apply, None


def _lost_tickets(definition: Dict[str, Any]):
    low, high = _coin_range(definition, (10, 29))

    def apply(state: GameState, rng: random.Random) -> Dict[str, Any]:
        loss = rng.randint(low, high)
        actual = max(0.0, min(state.coins, loss))
        state.coins -= actual
        return {"coins_delta": -actual}
    return apply, None


def _stat_shift(stat: str, key: str, default: float):
    def build(definition: Dict[str, Any]):
        delta = float(definition.get(key, default))

        def apply(state: GameState, rng: random.Random) -> Dict[str, Any]:
            for animal in state.animals:
                setattr(animal, stat, clamp(getattr(animal, stat) + delta))
            return {"affected": len(state.animals), f"{stat}_delta": delta}
        return apply, None
    return build


def _double_tips(definition: Dict[str, Any]):
    low, high = _coin_range(definition, (30, 79))
    factor = float(definition.get("income_factor", 2))

    def apply(state: GameState, rng: random.Random) -> Dict[str, Any]:
        bonus = rng.randint(low, high)
        state.coins += bonus
        state.modifiers.income_boost_multiplier *= factor
        return {"coins_delta": bonus, "income_factor": factor}

    def revert(state: GameState, record: EventRecord):
        state.modifiers.income_boost_multiplier /= record.payload.get("income_factor", factor)
    return apply, revert


EFFECT_BUILDERS = {
    "visitor_donation": _donation,
    "lost_tickets": _lost_tickets,
    "happy_parade": _stat_shift("happiness", "happiness_delta", 10),
    "muddy_rain": _stat_shift("cleanliness", "cleanliness_delta", -15),
    "double_tips": _double_tips,
}


def build_event_templates(definitions: Dict[str, Dict[str, Any]]) -> List[EventTemplate]:
    """Turn event definitions into templates, skipping ids without an effect"""
    templates = []
    for template_id, definition in definitions.items():
        builder = EFFECT_BUILDERS.get(template_id)
        if builder is None:
            logger.warning(f"No effect registered for event '{template_id}'; skipping")
            continue
        try:
            kind = EventKind(definition.get("kind", EventKind.INSTANT.value))
        except ValueError:
            logger.warning(f"Event '{template_id}' has unknown kind '{definition.get('kind')}'; skipping")
            continue
        duration_ms = int(definition.get("duration_ms", 0)) if kind == EventKind.TIMED else 0
        if kind == EventKind.TIMED and duration_ms <= 0:
            logger.warning(f"Timed event '{template_id}' has no duration; skipping")
            continue
        apply, revert = builder(definition)
        templates.append(EventTemplate(
            id=template_id,
            name=definition.get("name", template_id),
            kind=kind,
            description=definition.get("description", ""),
            duration_ms=duration_ms,
            apply=apply,
            revert=revert,
        ))
    return templates


class EventSystem(System):
    """Cooldown-gated random events with timed expiry"""
    name = "events"

    def __init__(self, config: Optional[GameConfig] = None, telemetry: Optional[Telemetry] = None):
        super().__init__(config, telemetry)
        self.templates = build_event_templates(self.config.events)
        self._by_id = {t.id: t for t in self.templates}

    def step(self, state: GameState, now: int) -> None:
        self.expire(state, now)
        events = state.events
        if now - events.last_event_time < self.config["EVENT_COOLDOWN_MS"]:
            return
        if state.rng.random() >= self.config["EVENT_CHANCE_PER_STEP"]:
            return
        if not self.templates:
            logger.warning("Event roll succeeded but no event templates are configured")
            return
        self.trigger(state, now, state.rng.choice(self.templates))

    def expire(self, state: GameState, now: int):
        """Revert and drop timed events whose duration has elapsed"""
        still_active = []
        for record in state.events.active:
            if not record.is_expired(now):
                still_active.append(record)
                continue
            template = self._by_id.get(record.template_id)
            if template is None:
                logger.warning(f"Timed event '{record.template_id}' expired but its template is gone; nothing reverted")
            elif template.revert is not None:
                template.revert(state, record)
            logger.info(f"Timed event ended: {record.name}")
        state.events.active = still_active

    def trigger(self, state: GameState, now: int, template: EventTemplate) -> EventRecord:
        """Apply a template's effect and record it"""
        payload = template.apply(state, state.rng) if template.apply else {}
        record = EventRecord(
            template_id=template.id,
            name=template.name,
            kind=template.kind,
            started_at=now,
            duration_ms=template.duration_ms,
            description=template.description,
            payload=payload,
        )
        history = state.events.history
        history.append(record)
        limit = self.config["EVENT_HISTORY_LIMIT"]
        if limit and len(history) > limit:
            del history[:len(history) - limit]

        if template.kind == EventKind.TIMED:
            state.events.active.append(record)
        state.events.last_event_time = now

        logger.info(f"Event triggered: {template.name} {payload}")
        self.record("event_triggered", template_id=template.id)
        return record

    def template(self, template_id: str) -> Optional[EventTemplate]:
        return self._by_id.get(template_id)
