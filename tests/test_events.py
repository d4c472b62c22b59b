"""Tests for random zoo events"""
import pytest

from fantasy_zoo.core.models import EventKind
from fantasy_zoo.game.events import EventSystem, build_event_templates

START = 1_000_000


@pytest.fixture
def always_events(config):
    return EventSystem(config.with_overrides(EVENT_CHANCE_PER_STEP=1.0))


class TestTemplates:

    def test_all_configured_events_have_effects(self, config):
        templates = build_event_templates(config.events)
        assert {t.id for t in templates} == {
            "visitor_donation", "lost_tickets", "happy_parade", "muddy_rain", "double_tips",
        }

    def test_unknown_event_skipped(self):
        templates = build_event_templates({"meteor": {"name": "Meteor", "kind": "instant"}})
        assert templates == []

    def test_timed_event_needs_duration(self):
        templates = build_event_templates({"double_tips": {"kind": "timed", "duration_ms": 0}})
        assert templates == []


class TestTrigger:

    def test_no_event_when_chance_is_zero(self, engine):
        for i in range(50):
            engine.events.step(engine.state, START + i * 60_000)
        assert engine.state.events.history == []

    def test_cooldown_blocks_second_event(self, engine, always_events):
        always_events.step(engine.state, START)
        always_events.step(engine.state, START + 1000)
        assert len(engine.state.events.history) == 1
        assert engine.state.events.last_event_time == START

        always_events.step(engine.state, START + engine.config["EVENT_COOLDOWN_MS"])
        assert len(engine.state.events.history) == 2

    def test_double_tips_boosts_and_reverts(self, engine, always_events):
        template = always_events.template("double_tips")
        record = always_events.trigger(engine.state, START, template)

        assert record.kind == EventKind.TIMED
        assert engine.state.modifiers.income_boost_multiplier == 2.0
        assert engine.state.events.active == [record]
        assert 30 <= record.payload["coins_delta"] <= 79

        always_events.expire(engine.state, START + template.duration_ms - 1)
        assert engine.state.modifiers.income_boost_multiplier == 2.0

        always_events.expire(engine.state, START + template.duration_ms)
        assert engine.state.modifiers.income_boost_multiplier == 1.0
        assert engine.state.events.active == []

    def test_overlapping_boosts_revert_cleanly(self, engine, always_events):
        template = always_events.template("double_tips")
        always_events.trigger(engine.state, START, template)
        always_events.trigger(engine.state, START + 5000, template)
        assert engine.state.modifiers.income_boost_multiplier == 4.0

        always_events.expire(engine.state, START + 60_000)
        assert engine.state.modifiers.income_boost_multiplier == pytest.approx(1.0)

    def test_lost_tickets_never_bankrupts(self, engine, always_events):
        engine.state.coins = 5
        record = always_events.trigger(engine.state, START, always_events.template("lost_tickets"))
        assert engine.state.coins == 0
        assert record.payload["coins_delta"] == -5

    def test_stat_events_clamp(self, engine, always_events, make_animal):
        animal = make_animal(happiness=95, cleanliness=10)
        always_events.trigger(engine.state, START, always_events.template("happy_parade"))
        always_events.trigger(engine.state, START, always_events.template("muddy_rain"))
        assert animal.happiness == 100
        assert animal.cleanliness == 0

    def test_history_is_capped(self, engine, config):
        events = EventSystem(config.with_overrides(EVENT_HISTORY_LIMIT=3))
        template = events.template("visitor_donation")
        for i in range(5):
            events.trigger(engine.state, START + i, template)
        assert len(engine.state.events.history) == 3
        assert engine.state.events.history[-1].started_at == START + 4

    def test_instant_events_not_active(self, engine, always_events):
        always_events.trigger(engine.state, START, always_events.template("visitor_donation"))
        assert engine.state.events.active == []
        assert len(engine.state.events.history) == 1
