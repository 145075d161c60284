"""Core data models for the news cycle engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Set


class NewsCycleStage(str, Enum):
    BREAKING = "breaking"
    DEVELOPING = "developing"
    ONGOING = "ongoing"
    FADING = "fading"
    ARCHIVED = "archived"

    @property
    def order(self) -> int:
        return _STAGE_ORDER.index(self)

    def next_stage(self) -> "NewsCycleStage":
        """Return the following stage; Archived is terminal."""

        if self is NewsCycleStage.ARCHIVED:
            return self
        return _STAGE_ORDER[self.order + 1]


_STAGE_ORDER = (
    NewsCycleStage.BREAKING,
    NewsCycleStage.DEVELOPING,
    NewsCycleStage.ONGOING,
    NewsCycleStage.FADING,
    NewsCycleStage.ARCHIVED,
)


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


@dataclass
class NewsEventState:
    """Temporal state for a single tracked news event."""

    event_id: str
    source_id: str
    stage: NewsCycleStage
    stage_entered_at: datetime
    original_publish_time: datetime
    turns_in_stage: int = 0
    media_fatigue: float = 0.0
    public_interest: float = 1.0
    player_interaction_count: int = 0
    last_player_interaction: Optional[datetime] = None
    last_development: Optional[datetime] = None
    related_event_ids: Set[str] = field(default_factory=set)
    similar_stories_this_cycle: int = 0
    has_player_responded: bool = False
    has_escalated: bool = False
    is_interrupting: bool = False
    marked_for_archive: bool = False
    archived_at: Optional[datetime] = None

    def set_fatigue(self, value: float) -> float:
        self.media_fatigue = clamp01(value)
        return self.media_fatigue

    def set_interest(self, value: float) -> float:
        self.public_interest = clamp01(value)
        return self.public_interest

    def enter_stage(self, stage: NewsCycleStage, now: datetime) -> None:
        """Move to ``stage`` resetting the per-stage bookkeeping."""

        self.stage = stage
        self.stage_entered_at = now
        self.turns_in_stage = 0

    def link(self, other: "NewsEventState") -> None:
        """Record a symmetric similarity link between two events."""

        if other.event_id == self.event_id or other.event_id in self.related_event_ids:
            return
        self.related_event_ids.add(other.event_id)
        other.related_event_ids.add(self.event_id)
        self.similar_stories_this_cycle += 1
        other.similar_stories_this_cycle += 1


@dataclass(frozen=True)
class StageTransition:
    event_id: str
    old_stage: NewsCycleStage
    new_stage: NewsCycleStage
    forced: bool = False

    def __str__(self) -> str:
        return f"{self.event_id}: {self.old_stage.value} -> {self.new_stage.value}"


@dataclass
class UpdateResult:
    """Summary of a single reconciliation pass."""

    stage_transitions: List[StageTransition] = field(default_factory=list)
    archived_events: List[str] = field(default_factory=list)
    fatigue_alerts: List[str] = field(default_factory=list)
    interrupting_events: List[str] = field(default_factory=list)
    updated_fatigue: Dict[str, float] = field(default_factory=dict)

    def transition_descriptions(self) -> List[str]:
        return [str(transition) for transition in self.stage_transitions]

    def has_changes(self) -> bool:
        return bool(self.stage_transitions or self.archived_events)


__all__ = [
    "NewsCycleStage",
    "NewsEventState",
    "StageTransition",
    "UpdateResult",
    "clamp01",
]
