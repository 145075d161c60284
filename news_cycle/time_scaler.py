"""Conversions between real elapsed time and game turns."""
from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Dict

from .config import TemporalConfig
from .models import NewsCycleStage
from .time_source import TimeSource


class TimeScaler:
    """Turn arithmetic for deadlines, expirations and urgency."""

    _DEADLINE_OFFSETS: Dict[NewsCycleStage, int] = {
        NewsCycleStage.BREAKING: 2,
        NewsCycleStage.DEVELOPING: 5,
        NewsCycleStage.ONGOING: 10,
    }
    _DEFAULT_DEADLINE_OFFSET = 15
    _EXPIRATION_OFFSETS: Dict[NewsCycleStage, int] = {
        NewsCycleStage.BREAKING: 5,
        NewsCycleStage.DEVELOPING: 15,
        NewsCycleStage.ONGOING: 30,
        NewsCycleStage.FADING: 45,
        NewsCycleStage.ARCHIVED: 60,
    }
    # (max turns remaining, urgency) checked in order
    _URGENCY_STEPS = ((1, 1.0), (3, 0.8), (5, 0.6), (10, 0.4))
    _BASELINE_URGENCY = 0.2

    def __init__(self, time_source: TimeSource, config: TemporalConfig) -> None:
        self._time_source = time_source
        self._config = config

    def real_time_to_game_turns(self, span: timedelta) -> int:
        real_hours = span.total_seconds() / 3600.0
        game_hours = real_hours * self._config.real_minutes_to_game_minutes
        return math.floor(game_hours / self._config.turn_duration_game_hours)

    def calculate_deadline_turn(self, publish_time: datetime, stage: NewsCycleStage) -> int:
        """Turn by which an event published at ``publish_time`` needs a response.

        The stage offset is reduced by the number of turns the story has
        already been public.
        """

        current_turn = self._time_source.current_turn()
        age = self._time_source.current_simulation_time() - publish_time
        offset = self._DEADLINE_OFFSETS.get(stage, self._DEFAULT_DEADLINE_OFFSET)
        return current_turn + offset - self.real_time_to_game_turns(age)

    def calculate_expiration_turn(self, publish_time: datetime, stage: NewsCycleStage) -> int:
        """Forward-looking horizon from the current turn; publish age is not applied."""

        return self._time_source.current_turn() + self._EXPIRATION_OFFSETS[stage]

    def get_urgency_factor(self, deadline_turn: int) -> float:
        turns_remaining = deadline_turn - self._time_source.current_turn()
        for limit, urgency in self._URGENCY_STEPS:
            if turns_remaining <= limit:
                return urgency
        return self._BASELINE_URGENCY


__all__ = ["TimeScaler"]
