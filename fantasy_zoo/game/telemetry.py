"""Telemetry system for zoo gameplay analytics"""
import json
import time
from pathlib import Path
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field, asdict
from datetime import datetime


@dataclass
class TelemetryEvent:
    """Represents a single telemetry event"""
    timestamp: float
    event_type: str
    data: Dict[str, Any] = field(default_factory=dict)


def _empty_metrics() -> Dict[str, Any]:
    return {
        "actions": {},
        "eggs_bought": {},
        "animals_hatched": 0,
        "treatments": {"bath": 0, "clinic": 0},
        "animals_fell_sick": 0,
        "events_triggered": {},
        "coins_earned": 0.0,
        "game_overs": {},
        "prestiges": 0,
        "time_to_first_hatch": None,
    }


class Telemetry:
    """Collects gameplay events and aggregates them into metrics"""

    def __init__(self, enabled: bool = True, max_events: int = 10000):
        self.enabled = enabled
        self.max_events = max_events
        self.events: List[TelemetryEvent] = []
        self.session_start = time.time()
        self.metrics: Dict[str, Any] = _empty_metrics()

    def log_event(self, event_type: str, **data):
        """Log a telemetry event"""
        if not self.enabled:
            return

        event = TelemetryEvent(
            timestamp=time.time(),
            event_type=event_type,
            data=data
        )
        self.events.append(event)
        if len(self.events) > self.max_events:
            del self.events[0]

        self._update_metrics(event_type, data)

    def _update_metrics(self, event_type: str, data: Dict[str, Any]):
        """Update aggregated metrics based on event"""
        actions = self.metrics["actions"]
        actions[event_type] = actions.get(event_type, 0) + 1

        if event_type == "egg_bought":
            egg_type = data.get("egg_type", "unknown")
            self.metrics["eggs_bought"][egg_type] = self.metrics["eggs_bought"].get(egg_type, 0) + 1

        if event_type == "animal_hatched":
            self.metrics["animals_hatched"] += 1
            if self.metrics["time_to_first_hatch"] is None:
                self.metrics["time_to_first_hatch"] = time.time() - self.session_start

        if event_type == "treatment_finished":
            station = data.get("station", "bath")
            self.metrics["treatments"][station] = self.metrics["treatments"].get(station, 0) + 1

        if event_type == "animal_sick":
            self.metrics["animals_fell_sick"] += 1

        if event_type == "event_triggered":
            template_id = data.get("template_id", "unknown")
            triggered = self.metrics["events_triggered"]
            triggered[template_id] = triggered.get(template_id, 0) + 1

        if event_type == "game_over":
            reason = data.get("reason", "unknown")
            self.metrics["game_overs"][reason] = self.metrics["game_overs"].get(reason, 0) + 1

        if event_type == "prestige":
            self.metrics["prestiges"] += 1

    def record_income(self, amount: float):
        """Accumulate step income without storing a per-step event"""
        if self.enabled:
            self.metrics["coins_earned"] += amount

    def export(self, output_path: Optional[Path] = None) -> Dict[str, Any]:
        """
        Export telemetry data.

        Args:
            output_path: Optional path of a JSON file to write. Nothing is
                written when omitted.

        Returns:
            Dictionary containing telemetry data
        """
        session_duration = time.time() - self.session_start

        export_data = {
            "session_info": {
                "start_time": datetime.fromtimestamp(self.session_start).isoformat(),
                "duration_seconds": session_duration,
                "events_count": len(self.events),
            },
            "events": [asdict(event) for event in self.events],
            "metrics": self.metrics,
        }

        if output_path is not None:
            with open(output_path, "w", encoding="utf-8") as f:
                json.dump(export_data, f, indent=2)

        return export_data

    def clear(self):
        """Clear all telemetry data"""
        self.events.clear()
        self.session_start = time.time()
        self.metrics = _empty_metrics()
