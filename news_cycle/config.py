"""Configuration loading utilities for the news cycle engine."""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .models import NewsCycleStage


DEFAULT_SETTINGS_PATH = Path(__file__).parent / "data" / "settings.yaml"
_SETTINGS_ENV = "NEWS_CYCLE_SETTINGS"


@dataclass(frozen=True)
class TemporalConfig:
    """Tunables for stage durations, fatigue, capacity limits and retention."""

    breaking_duration_hours: float = 2.0
    developing_duration_hours: float = 24.0
    ongoing_duration_days: float = 7.0
    fading_duration_days: float = 14.0
    real_minutes_to_game_minutes: float = 1.0
    turn_duration_game_hours: int = 24
    base_fatigue_per_turn: float = 0.1
    similar_story_fatigue_penalty: float = 0.15
    new_development_recovery: float = 0.3
    player_action_recovery: float = 0.2
    fatigue_alert_threshold: float = 0.8
    max_active_breaking_news: int = 2
    max_active_developing_news: int = 5
    max_total_active_events: int = 20
    cycle_update_interval_seconds: float = 60.0
    archive_retention_days: int = 30

    def __post_init__(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            if value < 0:
                raise ValueError(f"{item.name} must be non-negative, got {value!r}")
        if self.turn_duration_game_hours <= 0:
            raise ValueError("turn_duration_game_hours must be positive")
        cutoffs = [
            self.breaking_duration_hours,
            self.developing_duration_hours,
            self.ongoing_duration_days * 24,
            self.fading_duration_days * 24,
        ]
        if any(later <= earlier for earlier, later in zip(cutoffs, cutoffs[1:])):
            raise ValueError("stage durations must be strictly increasing")

    def stage_duration(self, stage: NewsCycleStage) -> Optional[timedelta]:
        """Time an event spends in ``stage`` before it advances."""

        if stage is NewsCycleStage.BREAKING:
            return timedelta(hours=self.breaking_duration_hours)
        if stage is NewsCycleStage.DEVELOPING:
            return timedelta(hours=self.developing_duration_hours)
        if stage is NewsCycleStage.ONGOING:
            return timedelta(days=self.ongoing_duration_days)
        if stage is NewsCycleStage.FADING:
            return timedelta(days=self.fading_duration_days)
        return None

    @property
    def archive_retention(self) -> timedelta:
        return timedelta(days=self.archive_retention_days)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "TemporalConfig":
        defaults = TemporalConfig()
        durations = data.get("cycle_durations", {}) or {}
        scaling = data.get("time_scaling", {}) or {}
        fatigue = data.get("fatigue", {}) or {}
        limits = data.get("limits", {}) or {}
        intervals = data.get("intervals", {}) or {}
        return TemporalConfig(
            breaking_duration_hours=float(
                durations.get("breaking_hours", defaults.breaking_duration_hours)
            ),
            developing_duration_hours=float(
                durations.get("developing_hours", defaults.developing_duration_hours)
            ),
            ongoing_duration_days=float(
                durations.get("ongoing_days", defaults.ongoing_duration_days)
            ),
            fading_duration_days=float(
                durations.get("fading_days", defaults.fading_duration_days)
            ),
            real_minutes_to_game_minutes=float(
                scaling.get(
                    "real_minutes_to_game_minutes",
                    defaults.real_minutes_to_game_minutes,
                )
            ),
            turn_duration_game_hours=int(
                scaling.get("turn_duration_game_hours", defaults.turn_duration_game_hours)
            ),
            base_fatigue_per_turn=float(
                fatigue.get("base_per_turn", defaults.base_fatigue_per_turn)
            ),
            similar_story_fatigue_penalty=float(
                fatigue.get("similar_story_penalty", defaults.similar_story_fatigue_penalty)
            ),
            new_development_recovery=float(
                fatigue.get("new_development_recovery", defaults.new_development_recovery)
            ),
            player_action_recovery=float(
                fatigue.get("player_action_recovery", defaults.player_action_recovery)
            ),
            fatigue_alert_threshold=float(
                fatigue.get("alert_threshold", defaults.fatigue_alert_threshold)
            ),
            max_active_breaking_news=int(
                limits.get("max_active_breaking", defaults.max_active_breaking_news)
            ),
            max_active_developing_news=int(
                limits.get("max_active_developing", defaults.max_active_developing_news)
            ),
            max_total_active_events=int(
                limits.get("max_total_active", defaults.max_total_active_events)
            ),
            cycle_update_interval_seconds=float(
                intervals.get(
                    "cycle_update_seconds", defaults.cycle_update_interval_seconds
                )
            ),
            archive_retention_days=int(
                intervals.get("archive_retention_days", defaults.archive_retention_days)
            ),
        )


DEFAULT_TEMPORAL_CONFIG = TemporalConfig()


class ConfigLoader:
    """Loads and caches temporal configuration from YAML files."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or DEFAULT_SETTINGS_PATH
        self._cache: TemporalConfig | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self, force: bool = False) -> TemporalConfig:
        if self._cache is not None and not force:
            return self._cache
        with self._path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        self._cache = TemporalConfig.from_dict(data)
        return self._cache


def get_config() -> TemporalConfig:
    """Load the configuration named by ``NEWS_CYCLE_SETTINGS`` or the packaged default."""

    override = os.getenv(_SETTINGS_ENV)
    return ConfigLoader(Path(override) if override else None).load()


__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "DEFAULT_TEMPORAL_CONFIG",
    "ConfigLoader",
    "TemporalConfig",
    "get_config",
]
