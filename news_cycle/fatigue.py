"""Category and entity fatigue across the news ecosystem."""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Deque, Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FatigueRecord:
    event_id: str
    category: str
    entities: Tuple[str, ...] = ()
    recorded_at: Optional[datetime] = None


class EventFatigueTracker:
    """Decaying counters that suppress repeated coverage of a topic."""

    MAX_RECENT_EVENTS = 100
    CATEGORY_STEP = 0.1
    ENTITY_STEP = 0.15
    CATEGORY_WEIGHT = 0.3
    ENTITY_WEIGHT = 0.2
    SIMILAR_WEIGHT = 0.05
    SIMILAR_FLOOR = 0.5
    DECAY_STEP = 0.05
    # float residue from repeated 0.05 steps counts as zero
    _ZERO_TOLERANCE = 1e-9

    def __init__(self) -> None:
        self._category_fatigue: Dict[str, float] = {}
        self._entity_fatigue: Dict[str, float] = {}
        self._recent: Deque[FatigueRecord] = deque(maxlen=self.MAX_RECENT_EVENTS)

    def record_event(
        self,
        event_id: str,
        category: str,
        entities: Optional[Iterable[str]] = None,
        *,
        now: Optional[datetime] = None,
    ) -> None:
        entity_list = tuple(entities or ())
        self._recent.append(
            FatigueRecord(
                event_id=event_id,
                category=category,
                entities=entity_list,
                recorded_at=now or datetime.now(timezone.utc),
            )
        )

        self._category_fatigue[category] = min(
            1.0, self._category_fatigue.get(category, 0.0) + self.CATEGORY_STEP
        )
        for entity in entity_list:
            self._entity_fatigue[entity] = min(
                1.0, self._entity_fatigue.get(entity, 0.0) + self.ENTITY_STEP
            )
        logger.debug(
            "Recorded %s under %s (category fatigue %.2f)",
            event_id,
            category,
            self._category_fatigue[category],
        )

    def get_fatigue_modifier(
        self, category: str, entities: Optional[Iterable[str]] = None
    ) -> float:
        """Multiplicative suppression factor for a candidate event."""

        modifier = 1.0
        category_fatigue = self._category_fatigue.get(category)
        if category_fatigue is not None:
            modifier *= 1.0 - category_fatigue * self.CATEGORY_WEIGHT
        for entity in entities or ():
            entity_fatigue = self._entity_fatigue.get(entity)
            if entity_fatigue is not None:
                modifier *= 1.0 - entity_fatigue * self.ENTITY_WEIGHT
        similar = sum(1 for record in self._recent if record.category == category)
        modifier *= max(self.SIMILAR_FLOOR, 1.0 - similar * self.SIMILAR_WEIGHT)
        return modifier

    def decay_fatigue(self) -> None:
        """Reduce every counter by one step, forgetting those that reach zero."""

        for table in (self._category_fatigue, self._entity_fatigue):
            for key, value in list(table.items()):
                next_value = max(0.0, value - self.DECAY_STEP)
                if next_value <= self._ZERO_TOLERANCE:
                    del table[key]
                else:
                    table[key] = next_value

    def reset(self) -> None:
        self._category_fatigue.clear()
        self._entity_fatigue.clear()
        self._recent.clear()

    def category_fatigue(self, category: str) -> float:
        return self._category_fatigue.get(category, 0.0)

    def entity_fatigue(self, entity: str) -> float:
        return self._entity_fatigue.get(entity, 0.0)

    def recent_events(self) -> List[FatigueRecord]:
        return list(self._recent)


__all__ = ["EventFatigueTracker", "FatigueRecord"]
