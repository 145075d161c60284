"""Tests for category and entity fatigue tracking."""
from __future__ import annotations

import pytest

from news_cycle.fatigue import EventFatigueTracker


def test_record_event_bumps_category_and_entities():
    tracker = EventFatigueTracker()
    tracker.record_event("e1", "politics", ["governor", "senate"])

    assert tracker.category_fatigue("politics") == pytest.approx(0.1)
    assert tracker.entity_fatigue("governor") == pytest.approx(0.15)
    assert tracker.entity_fatigue("senate") == pytest.approx(0.15)
    assert tracker.category_fatigue("economy") == 0.0


def test_fatigue_is_capped_at_one():
    tracker = EventFatigueTracker()
    for idx in range(12):
        tracker.record_event(f"e{idx}", "politics", ["governor"])

    assert tracker.category_fatigue("politics") == 1.0
    assert tracker.entity_fatigue("governor") == 1.0


def test_modifier_for_untracked_topic_is_neutral():
    tracker = EventFatigueTracker()
    tracker.record_event("e1", "politics", ["governor"])

    assert tracker.get_fatigue_modifier("economy", ["central_bank"]) == 1.0
    assert tracker.get_fatigue_modifier("economy") == 1.0


def test_modifier_combines_category_entity_and_recency():
    tracker = EventFatigueTracker()
    tracker.record_event("e1", "politics", ["governor"])

    modifier = tracker.get_fatigue_modifier("politics", ["governor", "unknown"])

    assert modifier == pytest.approx((1 - 0.1 * 0.3) * (1 - 0.15 * 0.2) * 0.95)


def test_recency_penalty_has_a_floor():
    tracker = EventFatigueTracker()
    for idx in range(20):
        tracker.record_event(f"e{idx}", "politics")

    assert tracker.get_fatigue_modifier("politics") == pytest.approx(0.7 * 0.5)


def test_recent_events_ring_is_bounded():
    tracker = EventFatigueTracker()
    for idx in range(105):
        tracker.record_event(f"e{idx}", "politics")

    recent = tracker.recent_events()
    assert len(recent) == 100
    assert recent[0].event_id == "e5"
    assert recent[-1].event_id == "e104"


def test_decay_removes_exhausted_entries():
    tracker = EventFatigueTracker()
    tracker.record_event("e1", "politics", ["governor"])

    tracker.decay_fatigue()
    assert tracker.category_fatigue("politics") == pytest.approx(0.05)
    assert tracker.entity_fatigue("governor") == pytest.approx(0.10)

    tracker.decay_fatigue()
    assert "politics" not in tracker._category_fatigue
    assert tracker.entity_fatigue("governor") == pytest.approx(0.05)

    tracker.decay_fatigue()
    assert "governor" not in tracker._entity_fatigue


def test_decay_does_not_touch_recent_events():
    tracker = EventFatigueTracker()
    tracker.record_event("e1", "politics")
    for _ in range(3):
        tracker.decay_fatigue()

    assert tracker.get_fatigue_modifier("politics") == pytest.approx(0.95)


def test_reset_clears_everything():
    tracker = EventFatigueTracker()
    tracker.record_event("e1", "politics", ["governor"])

    tracker.reset()

    assert tracker.recent_events() == []
    assert tracker.category_fatigue("politics") == 0.0
    assert tracker.get_fatigue_modifier("politics", ["governor"]) == 1.0
