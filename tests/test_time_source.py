"""Tests for the clock and turn providers."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from news_cycle.time_source import ManualTimeSource, SystemTimeSource


def test_system_time_source_defaults():
    source = SystemTimeSource()

    assert source.current_turn() == 0
    assert source.time_scale() == 1.0


def test_system_time_source_reads_turn_provider_and_wall_clock():
    turns = iter([3, 4])
    source = SystemTimeSource(turn_provider=lambda: next(turns), time_scale=2.5)

    before = datetime.now(timezone.utc)
    now = source.current_simulation_time()
    after = datetime.now(timezone.utc)

    assert source.current_turn() == 3
    assert source.current_turn() == 4
    assert source.time_scale() == 2.5
    assert now.tzinfo is not None
    assert before <= now <= after


def test_manual_time_source_advances():
    start = datetime(2024, 5, 1, tzinfo=timezone.utc)
    source = ManualTimeSource(start=start, turn=2)

    assert source.advance(hours=3) == start + timedelta(hours=3)
    assert source.advance_turn(2, hours_per_turn=12) == 4
    assert source.current_simulation_time() == start + timedelta(hours=27)
    assert source.advance_turn() == 5
    assert source.current_simulation_time() == start + timedelta(hours=27)
