"""News cycle tuning simulator."""

from __future__ import annotations

import argparse
import json
import logging
import random
from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import ConfigLoader, DEFAULT_TEMPORAL_CONFIG, TemporalConfig
from ..engine import NewsCycleEngine
from ..fatigue import EventFatigueTracker
from ..scheduler import NewsCycleScheduler
from ..similarity import same_source_similarity
from ..telemetry import TelemetryCollector
from ..time_scaler import TimeScaler
from ..time_source import ManualTimeSource

_DEFAULT_CATEGORIES = ["politics", "economy", "scandal", "foreign_affairs", "environment"]
_DEFAULT_ENTITIES = ["governor", "senate", "mayor", "union", "central_bank", "opposition"]


@dataclass
class SimulationConfig:
    turns: int = 14
    events_per_turn: int = 3
    hours_per_turn: float = 24.0
    seed: int = 42
    categories: List[str] = field(default_factory=lambda: list(_DEFAULT_CATEGORIES))
    entities: List[str] = field(default_factory=lambda: list(_DEFAULT_ENTITIES))
    interaction_chance: float = 0.3
    development_chance: float = 0.2
    escalation_chance: float = 0.1
    min_impact: float = 0.35
    settings: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, payload: Dict[str, Any]) -> "SimulationConfig":
        defaults = cls()
        return cls(
            turns=int(payload.get("turns", defaults.turns)),
            events_per_turn=int(payload.get("events_per_turn", defaults.events_per_turn)),
            hours_per_turn=float(payload.get("hours_per_turn", defaults.hours_per_turn)),
            seed=int(payload.get("seed", defaults.seed)),
            categories=list(payload.get("categories") or defaults.categories),
            entities=list(payload.get("entities") or defaults.entities),
            interaction_chance=float(
                payload.get("interaction_chance", defaults.interaction_chance)
            ),
            development_chance=float(
                payload.get("development_chance", defaults.development_chance)
            ),
            escalation_chance=float(
                payload.get("escalation_chance", defaults.escalation_chance)
            ),
            min_impact=float(payload.get("min_impact", defaults.min_impact)),
            settings=dict(payload.get("settings") or {}),
        )


def _apply_settings_overrides(
    temporal: TemporalConfig, overrides: Dict[str, Any]
) -> TemporalConfig:
    valid_overrides = {
        key: value for key, value in overrides.items() if hasattr(temporal, key)
    }
    if not valid_overrides:
        return temporal
    return replace(temporal, **valid_overrides)


def _stage_counts(engine: NewsCycleEngine) -> Dict[str, int]:
    counts = Counter(
        engine.get_event_stage(event_id).value
        for event_id in engine.get_all_active_events()
    )
    return dict(sorted(counts.items()))


def run_simulation(
    *,
    config: SimulationConfig,
    temporal: TemporalConfig | None = None,
    telemetry_path: Optional[Path] = None,
    output_dir: Optional[Path] = None,
) -> Dict[str, Any]:
    """Run a turn-by-turn news cycle simulation returning timeline + summary."""

    temporal = _apply_settings_overrides(temporal or DEFAULT_TEMPORAL_CONFIG, config.settings)
    rng = random.Random(config.seed)  # nosec B311 - simulation sampling only
    clock = ManualTimeSource(start=datetime(2024, 1, 1, tzinfo=timezone.utc))
    telemetry = TelemetryCollector(telemetry_path) if telemetry_path else None
    engine = NewsCycleEngine(
        clock,
        temporal,
        similarity=same_source_similarity,
        telemetry=telemetry,
    )
    scaler = TimeScaler(clock, temporal)
    tracker = EventFatigueTracker()
    scheduler = NewsCycleScheduler(engine, tracker, telemetry=telemetry)

    timeline: List[Dict[str, Any]] = []
    transition_totals: Counter = Counter()
    urgency_totals: Counter = Counter()
    serial = 0
    suppressed_total = 0

    for turn in range(config.turns):
        now = clock.current_simulation_time()
        registered: List[str] = []
        deadlines: Dict[str, Dict[str, Any]] = {}
        suppressed = 0
        for _ in range(config.events_per_turn):
            serial += 1
            category = rng.choice(config.categories)
            entities = rng.sample(config.entities, k=min(len(config.entities), rng.randint(1, 2)))
            impact = rng.uniform(0.5, 1.0) * tracker.get_fatigue_modifier(category, entities)
            if impact < config.min_impact:
                suppressed += 1
                continue
            event_id = f"evt-{serial:04d}"
            publish_time = now - timedelta(hours=rng.uniform(0, config.hours_per_turn))
            state = scheduler.run_exclusive(
                engine.register_event, event_id, f"feed:{category}", publish_time
            )
            if state is not None:
                deadline_turn = scaler.calculate_deadline_turn(publish_time, state.stage)
                urgency = scaler.get_urgency_factor(deadline_turn)
                deadlines[event_id] = {
                    "stage": state.stage.value,
                    "deadline_turn": deadline_turn,
                    "expiration_turn": scaler.calculate_expiration_turn(
                        publish_time, state.stage
                    ),
                    "urgency": urgency,
                }
                urgency_totals[urgency] += 1
            tracker.record_event(event_id, category, entities, now=now)
            registered.append(event_id)
        suppressed_total += suppressed

        for event_id in engine.get_all_active_events():
            roll = rng.random()
            if roll < config.escalation_chance:
                scheduler.run_exclusive(engine.record_development, event_id, True)
            elif roll < config.escalation_chance + config.development_chance:
                scheduler.run_exclusive(engine.record_development, event_id)
            elif rng.random() < config.interaction_chance:
                scheduler.run_exclusive(engine.record_player_interaction, event_id)

        clock.advance_turn(hours_per_turn=config.hours_per_turn)
        result = scheduler.advance_turn()
        for transition in result.stage_transitions:
            key = f"{transition.old_stage.value}->{transition.new_stage.value}"
            transition_totals[key] += 1

        timeline.append(
            {
                "turn": turn,
                "timestamp": now.isoformat(),
                "registered": registered,
                "deadlines": deadlines,
                "suppressed": suppressed,
                "transitions": result.transition_descriptions(),
                "archived": list(result.archived_events),
                "fatigue_alerts": list(result.fatigue_alerts),
                "interrupting": list(result.interrupting_events),
                "stage_counts": _stage_counts(engine),
            }
        )

    summary: Dict[str, Any] = {
        "events_generated": serial,
        "events_suppressed": suppressed_total,
        "active_at_end": engine.active_count(),
        "archived_retained": len(engine.archived_event_ids()),
        "transitions": dict(sorted(transition_totals.items())),
        "urgency": {str(level): count for level, count in sorted(urgency_totals.items())},
    }
    if telemetry is not None:
        summary["telemetry"] = telemetry.get_cycle_summary()

    result_payload: Dict[str, Any] = {
        "config": {
            "turns": config.turns,
            "events_per_turn": config.events_per_turn,
            "hours_per_turn": config.hours_per_turn,
            "seed": config.seed,
            "settings": config.settings,
        },
        "timeline": timeline,
        "summary": summary,
    }

    if output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        output_path = output_dir / f"news_cycle_simulation_{timestamp}.json"
        output_path.write_text(json.dumps(result_payload, indent=2), encoding="utf-8")
        result_payload["output_path"] = str(output_path)

    return result_payload


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run a news cycle tuning simulation."
    )
    parser.add_argument(
        "--config", type=Path, help="JSON file describing the simulation scenario."
    )
    parser.add_argument(
        "--settings", type=Path, help="YAML temporal settings (defaults to packaged settings)."
    )
    parser.add_argument("--turns", type=int, help="Number of turns to simulate.")
    parser.add_argument("--events-per-turn", type=int, help="Candidate events per turn.")
    parser.add_argument("--seed", type=int, help="Random seed.")
    parser.add_argument("--telemetry-db", type=Path, help="Optional telemetry database.")
    parser.add_argument("--output-dir", type=Path, default=Path("simulation_runs"))
    return parser.parse_args()


def main() -> None:  # pragma: no cover - CLI entry point
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = _parse_args()
    config_payload = json.loads(args.config.read_text()) if args.config else {}
    config = SimulationConfig.from_mapping(config_payload)
    if args.turns:
        config.turns = args.turns
    if args.events_per_turn:
        config.events_per_turn = args.events_per_turn
    if args.seed is not None:
        config.seed = args.seed
    temporal = ConfigLoader(args.settings).load()
    result = run_simulation(
        config=config,
        temporal=temporal,
        telemetry_path=args.telemetry_db,
        output_dir=args.output_dir,
    )
    print(json.dumps(result["summary"], indent=2))


if __name__ == "__main__":
    main()
