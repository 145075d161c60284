"""Telemetry for news cycle reconciliation passes."""
from __future__ import annotations

import json
import logging
import os
import sqlite3
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

_TELEMETRY_DB_ENV = "NEWS_CYCLE_TELEMETRY_DB"


class MetricType(Enum):
    """Types of metrics tracked."""
    STAGE_TRANSITION = "stage_transition"
    ARCHIVE = "archive"
    INTERRUPT = "interrupt"
    FATIGUE_ALERT = "fatigue_alert"
    CYCLE_UPDATE = "cycle_update"
    PERFORMANCE = "performance"
    SYSTEM_EVENT = "system_event"


@dataclass
class MetricEvent:
    """Individual metric event."""
    timestamp: float
    metric_type: MetricType
    name: str
    value: float
    tags: Dict[str, str] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)


class TelemetryCollector:
    """Buffers news cycle metrics and persists them to SQLite."""

    def __init__(self, db_path: Optional[Path] = None, flush_interval: float = 60):
        self.db_path = db_path or Path("telemetry.db")
        self._init_database()
        self._metrics_buffer: List[MetricEvent] = []
        self._flush_interval = flush_interval
        self._last_flush = time.time()

    def _init_database(self):
        """Initialize telemetry database schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS metrics (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp REAL NOT NULL,
                    metric_type TEXT NOT NULL,
                    name TEXT NOT NULL,
                    value REAL NOT NULL,
                    tags TEXT,
                    metadata TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_metrics_type_name
                ON metrics(metric_type, name)
            """)
            conn.commit()

    def track_stage_transition(
        self,
        event_id: str,
        old_stage: str,
        new_stage: str,
        *,
        forced: bool = False,
    ) -> None:
        """Record a stage change, organic or capacity-forced."""

        self.record(
            MetricType.STAGE_TRANSITION,
            f"{old_stage}->{new_stage}",
            1.0,
            tags={"event_id": event_id, "forced": "true" if forced else "false"},
        )

    def track_archive(self, event_id: str, *, reason: str) -> None:
        self.record(
            MetricType.ARCHIVE,
            reason,
            1.0,
            tags={"event_id": event_id},
        )

    def track_interrupt(self, event_id: str) -> None:
        self.record(MetricType.INTERRUPT, "breaking_news", 1.0, tags={"event_id": event_id})

    def track_fatigue_alert(self, event_id: str, fatigue: float) -> None:
        self.record(
            MetricType.FATIGUE_ALERT,
            "media_fatigue",
            fatigue,
            tags={"event_id": event_id},
        )

    def track_cycle_update(
        self,
        *,
        active_events: int,
        transitions: int,
        archived: int,
        fatigue_alerts: int,
        interrupting: int,
        duration_ms: Optional[float] = None,
    ) -> None:
        """Summarise one reconciliation pass."""

        metadata: Dict[str, Any] = {
            "transitions": transitions,
            "archived": archived,
            "fatigue_alerts": fatigue_alerts,
            "interrupting": interrupting,
        }
        if duration_ms is not None:
            metadata["duration_ms"] = duration_ms
        self.record(
            MetricType.CYCLE_UPDATE,
            "reconciliation",
            float(active_events),
            metadata=metadata,
        )

    def track_performance(
        self,
        operation: str,
        duration_ms: float,
        tags: Optional[Dict[str, str]] = None
    ):
        """Track performance metrics."""
        self.record(
            MetricType.PERFORMANCE,
            operation,
            duration_ms,
            tags=tags or {},
            metadata={"unit": "milliseconds"}
        )

    def track_system_event(
        self,
        event: str,
        *,
        source: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> None:
        """Record scheduler lifecycle or health events."""

        tags = {}
        if source:
            tags["source"] = source

        metadata = {}
        if reason:
            metadata["reason"] = reason

        self.record(
            MetricType.SYSTEM_EVENT,
            event,
            1.0,
            tags=tags,
            metadata=metadata,
        )

    def record(
        self,
        metric_type: MetricType,
        name: str,
        value: float,
        tags: Optional[Dict[str, str]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ):
        """Record a metric event."""
        event = MetricEvent(
            timestamp=time.time(),
            metric_type=metric_type,
            name=name,
            value=value,
            tags=tags or {},
            metadata=metadata or {}
        )

        self._metrics_buffer.append(event)

        if len(self._metrics_buffer) >= 100 or \
           time.time() - self._last_flush > self._flush_interval:
            self.flush()

    def flush(self):
        """Flush buffered metrics to database."""
        if not self._metrics_buffer:
            return

        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.executemany("""
                    INSERT INTO metrics
                    (timestamp, metric_type, name, value, tags, metadata)
                    VALUES (?, ?, ?, ?, ?, ?)
                """, [
                    (
                        event.timestamp,
                        event.metric_type.value,
                        event.name,
                        event.value,
                        json.dumps(event.tags),
                        json.dumps(event.metadata),
                    )
                    for event in self._metrics_buffer
                ])
                conn.commit()

            logger.info("Flushed %d metrics to database", len(self._metrics_buffer))
            self._metrics_buffer.clear()
            self._last_flush = time.time()

        except sqlite3.Error as e:
            logger.error("Failed to flush metrics: %s", e)

    def get_metric_counts(
        self,
        metric_type: MetricType,
        start_time: Optional[float] = None,
    ) -> Dict[str, int]:
        """Count stored metrics of one type grouped by name."""
        self.flush()
        query = "SELECT name, COUNT(*) FROM metrics WHERE metric_type = ?"
        params: List[Any] = [metric_type.value]
        if start_time:
            query += " AND timestamp >= ?"
            params.append(start_time)
        query += " GROUP BY name ORDER BY name"

        with sqlite3.connect(self.db_path) as conn:
            return {name: count for name, count in conn.execute(query, params)}

    def get_cycle_summary(self) -> Dict[str, Any]:
        """Aggregate reconciliation pass metrics."""
        self.flush()
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                """
                SELECT
                    COUNT(*),
                    AVG(value),
                    MAX(value),
                    SUM(json_extract(metadata, '$.transitions')),
                    SUM(json_extract(metadata, '$.archived')),
                    SUM(json_extract(metadata, '$.fatigue_alerts'))
                FROM metrics
                WHERE metric_type = ?
                """,
                [MetricType.CYCLE_UPDATE.value],
            ).fetchone()
            forced = conn.execute(
                """
                SELECT COUNT(*) FROM metrics
                WHERE metric_type = ? AND json_extract(tags, '$.forced') = 'true'
                """,
                [MetricType.STAGE_TRANSITION.value],
            ).fetchone()[0]

        return {
            "passes": row[0] or 0,
            "avg_active_events": row[1] or 0.0,
            "peak_active_events": row[2] or 0.0,
            "transitions": row[3] or 0,
            "archived": row[4] or 0,
            "fatigue_alerts": row[5] or 0,
            "forced_transitions": forced,
        }


_telemetry: Optional[TelemetryCollector] = None


def get_telemetry() -> TelemetryCollector:
    """Get or create singleton telemetry collector."""
    global _telemetry
    if _telemetry is None:
        db_path = os.getenv(_TELEMETRY_DB_ENV)
        _telemetry = TelemetryCollector(Path(db_path) if db_path else None)
    return _telemetry


__all__ = ["MetricEvent", "MetricType", "TelemetryCollector", "get_telemetry"]
