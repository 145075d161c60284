"""Tests for real-time to turn conversions."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from news_cycle.config import DEFAULT_TEMPORAL_CONFIG, TemporalConfig
from news_cycle.models import NewsCycleStage
from news_cycle.time_scaler import TimeScaler
from news_cycle.time_source import ManualTimeSource


NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return ManualTimeSource(start=NOW, turn=10)


@pytest.fixture
def scaler(clock):
    return TimeScaler(clock, DEFAULT_TEMPORAL_CONFIG)


def test_real_time_to_game_turns_floors(scaler):
    assert scaler.real_time_to_game_turns(timedelta(hours=48)) == 2
    assert scaler.real_time_to_game_turns(timedelta(hours=47)) == 1
    assert scaler.real_time_to_game_turns(timedelta(0)) == 0
    assert scaler.real_time_to_game_turns(timedelta(hours=-1)) <= 0


def test_real_time_scaling_factor(clock):
    config = TemporalConfig(real_minutes_to_game_minutes=2.0, turn_duration_game_hours=6)
    scaler = TimeScaler(clock, config)

    assert scaler.real_time_to_game_turns(timedelta(hours=12)) == 4


def test_deadline_subtracts_publish_age(scaler):
    """Three days of age eat three turns off the breaking deadline."""
    assert scaler.calculate_deadline_turn(NOW - timedelta(days=3), NewsCycleStage.BREAKING) == 9
    assert scaler.calculate_deadline_turn(NOW, NewsCycleStage.DEVELOPING) == 15
    assert scaler.calculate_deadline_turn(NOW, NewsCycleStage.ONGOING) == 20
    assert scaler.calculate_deadline_turn(NOW, NewsCycleStage.FADING) == 25
    assert scaler.calculate_deadline_turn(NOW, NewsCycleStage.ARCHIVED) == 25


def test_expiration_ignores_publish_age(scaler):
    old = NOW - timedelta(days=40)
    assert scaler.calculate_expiration_turn(old, NewsCycleStage.BREAKING) == 15
    assert scaler.calculate_expiration_turn(NOW, NewsCycleStage.BREAKING) == 15
    assert scaler.calculate_expiration_turn(NOW, NewsCycleStage.DEVELOPING) == 25
    assert scaler.calculate_expiration_turn(NOW, NewsCycleStage.ONGOING) == 40
    assert scaler.calculate_expiration_turn(NOW, NewsCycleStage.FADING) == 55
    assert scaler.calculate_expiration_turn(NOW, NewsCycleStage.ARCHIVED) == 70


@pytest.mark.parametrize(
    "deadline, expected",
    [
        (5, 1.0),
        (11, 1.0),
        (12, 0.8),
        (13, 0.8),
        (15, 0.6),
        (20, 0.4),
        (21, 0.2),
    ],
)
def test_urgency_steps(scaler, deadline, expected):
    assert scaler.get_urgency_factor(deadline) == expected


def test_urgency_tracks_current_turn(clock, scaler):
    deadline = 20
    assert scaler.get_urgency_factor(deadline) == 0.4
    clock.advance_turn(9)
    assert scaler.get_urgency_factor(deadline) == 1.0
