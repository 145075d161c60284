"""News cycle stage machine with media fatigue and capacity enforcement."""
from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from .config import TemporalConfig
from .models import NewsCycleStage, NewsEventState, StageTransition, UpdateResult
from .notifications import CycleListener
from .similarity import SimilarityScorer, never_similar
from .telemetry import TelemetryCollector
from .time_source import TimeSource


logger = logging.getLogger(__name__)


class NewsCycleEngine:
    """Owns the authoritative set of active news events.

    Every reconciliation pass (``update`` or ``on_turn_advance``) reads the
    clock once, then runs strictly ordered phases: stage advancement, fatigue
    recomputation, archival of expired events, capacity enforcement and
    archive retention. Listener callbacks fire synchronously inside the call
    that produced the change; a listener that raises is logged and skipped so
    the pass still completes.
    """

    _FATIGUE_STAGE_FACTORS: Dict[NewsCycleStage, float] = {
        NewsCycleStage.BREAKING: 0.5,
        NewsCycleStage.DEVELOPING: 0.8,
        NewsCycleStage.ONGOING: 1.0,
        NewsCycleStage.FADING: 1.5,
        NewsCycleStage.ARCHIVED: 1.0,
    }
    _RECENT_DEVELOPMENT_WINDOW = timedelta(hours=6)
    _RECENT_DEVELOPMENT_DAMPING = 0.5
    _INTEREST_PER_FATIGUE = 0.7
    _INTERRUPT_INTEREST_THRESHOLD = 0.7
    _DEVELOPMENT_INTEREST_BOOST = 0.2
    _ESCALATION_STAGES = (NewsCycleStage.ONGOING, NewsCycleStage.FADING)

    def __init__(
        self,
        time_source: TimeSource,
        config: TemporalConfig,
        *,
        listener: CycleListener | None = None,
        similarity: SimilarityScorer | None = None,
        telemetry: TelemetryCollector | None = None,
    ) -> None:
        self.config = config
        self._time_source = time_source
        self._listener = listener or CycleListener()
        self._similarity = similarity or never_similar
        self._telemetry = telemetry
        self._active: Dict[str, NewsEventState] = {}
        self._archive: Dict[str, NewsEventState] = {}
        self._last_update: Optional[datetime] = None

    @property
    def last_update(self) -> Optional[datetime]:
        return self._last_update

    # Registration ---------------------------------------------------------

    def register_event(
        self, event_id: str, source_id: str, publish_time: datetime
    ) -> Optional[NewsEventState]:
        """Start tracking an event; returns None if the id is already known."""

        if not event_id:
            raise ValueError("event_id must be a non-empty string")
        if event_id in self._active or event_id in self._archive:
            logger.warning("Event %s already registered; ignoring", event_id)
            return None

        now = self._now()
        stage = self._initial_stage(now - publish_time)
        state = NewsEventState(
            event_id=event_id,
            source_id=source_id,
            stage=stage,
            stage_entered_at=now,
            original_publish_time=publish_time,
        )

        if stage is NewsCycleStage.ARCHIVED:
            logger.info("Event %s is too old to track; archiving on arrival", event_id)
            self._active[event_id] = state
            self._archive_state(state, now, reason="stale_on_arrival")
            return state

        self._link_similar(state)
        self._active[event_id] = state

        if stage is NewsCycleStage.BREAKING:
            state.is_interrupting = self.should_interrupt(state)
            if state.is_interrupting:
                self._notify("on_interrupt", event_id)
                self._track("track_interrupt", event_id)

        logger.info("Registered event %s at stage %s", event_id, stage.value)
        return state

    def archive_event(self, event_id: str) -> bool:
        state = self._active.get(event_id)
        if state is None:
            logger.warning("Archive requested for unknown event %s", event_id)
            return False
        self._archive_state(state, self._now(), reason="manual")
        return True

    def _initial_stage(self, age: timedelta) -> NewsCycleStage:
        hours = age.total_seconds() / 3600.0
        days = hours / 24.0
        if hours < self.config.breaking_duration_hours:
            return NewsCycleStage.BREAKING
        if hours < self.config.developing_duration_hours:
            return NewsCycleStage.DEVELOPING
        if days < self.config.ongoing_duration_days:
            return NewsCycleStage.ONGOING
        if days < self.config.fading_duration_days:
            return NewsCycleStage.FADING
        return NewsCycleStage.ARCHIVED

    def _link_similar(self, candidate: NewsEventState) -> None:
        for existing in self._active.values():
            if self._similarity(candidate, existing):
                candidate.link(existing)
                logger.debug(
                    "Linked %s with similar story %s", candidate.event_id, existing.event_id
                )

    # Reconciliation -------------------------------------------------------

    def update(self) -> UpdateResult:
        """Time-driven reconciliation pass."""

        return self._reconcile(self._now())

    def on_turn_advance(self) -> UpdateResult:
        """Turn-driven reconciliation pass; counts the turn before reconciling."""

        for state in self._active.values():
            state.turns_in_stage += 1
        return self._reconcile(self._now())

    def _reconcile(self, now: datetime) -> UpdateResult:
        started = time.perf_counter()
        result = UpdateResult()

        expired: List[NewsEventState] = []
        for state in list(self._active.values()):
            if self._should_advance(state, now):
                result.stage_transitions.append(self._advance_stage(state, now))
                if state.stage is NewsCycleStage.ARCHIVED:
                    expired.append(state)

        for state in list(self._active.values()):
            if state.stage is NewsCycleStage.ARCHIVED:
                continue
            self._update_fatigue(state, now)
            result.updated_fatigue[state.event_id] = state.media_fatigue
            if state.media_fatigue > self.config.fatigue_alert_threshold:
                result.fatigue_alerts.append(state.event_id)
                self._track("track_fatigue_alert", state.event_id, state.media_fatigue)
            if state.is_interrupting:
                result.interrupting_events.append(state.event_id)

        for state in expired:
            self._archive_state(state, now, reason="expired")
            result.archived_events.append(state.event_id)

        self._enforce_limits(now, result)
        self._purge_archive(now)
        self._last_update = now

        self._track(
            "track_cycle_update",
            active_events=len(self._active),
            transitions=len(result.stage_transitions),
            archived=len(result.archived_events),
            fatigue_alerts=len(result.fatigue_alerts),
            interrupting=len(result.interrupting_events),
            duration_ms=(time.perf_counter() - started) * 1000,
        )
        return result

    def _should_advance(self, state: NewsEventState, now: datetime) -> bool:
        duration = self.config.stage_duration(state.stage)
        if duration is None:
            return False
        return now - state.stage_entered_at >= duration

    def _advance_stage(
        self, state: NewsEventState, now: datetime, *, forced: bool = False
    ) -> StageTransition:
        old_stage = state.stage
        state.enter_stage(old_stage.next_stage(), now)
        state.is_interrupting = False
        transition = StageTransition(state.event_id, old_stage, state.stage, forced=forced)
        logger.debug("Event %s%s", transition, " (forced)" if forced else "")
        self._notify("on_stage_transition", state.event_id, old_stage, state.stage)
        self._track(
            "track_stage_transition",
            state.event_id,
            old_stage.value,
            state.stage.value,
            forced=forced,
        )
        return transition

    def _archive_state(self, state: NewsEventState, now: datetime, *, reason: str) -> None:
        if state.stage is not NewsCycleStage.ARCHIVED:
            state.enter_stage(NewsCycleStage.ARCHIVED, now)
        state.marked_for_archive = True
        state.is_interrupting = False
        state.archived_at = now
        del self._active[state.event_id]
        self._archive[state.event_id] = state
        logger.info("Archived event %s (%s)", state.event_id, reason)
        self._notify("on_archived", state.event_id)
        self._track("track_archive", state.event_id, reason=reason)

    def _enforce_limits(self, now: datetime, result: UpdateResult) -> None:
        stage_limits = (
            (NewsCycleStage.BREAKING, self.config.max_active_breaking_news),
            (NewsCycleStage.DEVELOPING, self.config.max_active_developing_news),
        )
        for stage, limit in stage_limits:
            candidates = self._states_in(stage)
            excess = len(candidates) - limit
            if excess <= 0:
                continue
            # least interesting stories make way first
            candidates.sort(key=lambda s: (s.public_interest, s.event_id))
            for state in candidates[:excess]:
                result.stage_transitions.append(
                    self._advance_stage(state, now, forced=True)
                )

        excess = len(self._active) - self.config.max_total_active_events
        if excess <= 0:
            return
        ongoing = sorted(
            self._states_in(NewsCycleStage.ONGOING),
            key=lambda s: (-s.media_fatigue, s.event_id),
        )
        for state in ongoing[:excess]:
            self._archive_state(state, now, reason="capacity")
            result.archived_events.append(state.event_id)

    def _purge_archive(self, now: datetime) -> None:
        cutoff = now - self.config.archive_retention
        expired = [
            event_id
            for event_id, state in self._archive.items()
            if state.archived_at is not None and state.archived_at < cutoff
        ]
        for event_id in expired:
            del self._archive[event_id]
        if expired:
            logger.debug("Purged %d archived events older than %s", len(expired), cutoff)

    def _update_fatigue(self, state: NewsEventState, now: datetime) -> None:
        delta = self.config.base_fatigue_per_turn
        delta += state.similar_stories_this_cycle * self.config.similar_story_fatigue_penalty
        delta *= self._FATIGUE_STAGE_FACTORS[state.stage]
        if (
            state.last_development is not None
            and now - state.last_development < self._RECENT_DEVELOPMENT_WINDOW
        ):
            delta *= self._RECENT_DEVELOPMENT_DAMPING
        state.set_fatigue(state.media_fatigue + delta)
        state.set_interest(1.0 - state.media_fatigue * self._INTEREST_PER_FATIGUE)

    # Interactions ---------------------------------------------------------

    def should_interrupt(self, state: NewsEventState) -> bool:
        """Breaking, still interesting, and below the concurrent interrupt cap."""

        if state.stage is not NewsCycleStage.BREAKING:
            return False
        if state.public_interest < self._INTERRUPT_INTEREST_THRESHOLD:
            return False
        interrupting = sum(1 for s in self._active.values() if s.is_interrupting)
        return interrupting < self.config.max_active_breaking_news

    def record_player_interaction(self, event_id: str) -> bool:
        state = self._active.get(event_id)
        if state is None:
            logger.warning("Interaction recorded for unknown event %s", event_id)
            return False
        state.player_interaction_count += 1
        state.last_player_interaction = self._now()
        state.has_player_responded = True
        state.is_interrupting = False
        state.set_fatigue(state.media_fatigue - self.config.player_action_recovery)
        return True

    def record_development(self, event_id: str, is_escalation: bool = False) -> bool:
        """Refresh an event with new information.

        An escalation on an Ongoing or Fading story pulls it back to
        Developing, the only backward move in the cycle.
        """

        state = self._active.get(event_id)
        if state is None:
            logger.warning("Development recorded for unknown event %s", event_id)
            return False
        now = self._now()
        state.last_development = now
        state.set_fatigue(state.media_fatigue - self.config.new_development_recovery)
        state.set_interest(state.public_interest + self._DEVELOPMENT_INTEREST_BOOST)

        if is_escalation:
            state.has_escalated = True
            if state.stage in self._ESCALATION_STAGES:
                old_stage = state.stage
                state.enter_stage(NewsCycleStage.DEVELOPING, now)
                logger.info(
                    "Event %s escalated: %s -> %s",
                    event_id,
                    old_stage.value,
                    state.stage.value,
                )
                self._notify("on_stage_transition", event_id, old_stage, state.stage)
                self._track(
                    "track_stage_transition",
                    event_id,
                    old_stage.value,
                    state.stage.value,
                )
        return True

    # Queries --------------------------------------------------------------

    def get_event_stage(self, event_id: str) -> NewsCycleStage:
        state = self._active.get(event_id)
        return state.stage if state is not None else NewsCycleStage.ARCHIVED

    def get_state(self, event_id: str) -> Optional[NewsEventState]:
        return self._active.get(event_id)

    def get_archived_state(self, event_id: str) -> Optional[NewsEventState]:
        return self._archive.get(event_id)

    def get_events_by_stage(self, stage: NewsCycleStage) -> List[str]:
        """Active ids in ``stage``, most publicly interesting first."""

        states = sorted(
            self._states_in(stage), key=lambda s: (-s.public_interest, s.event_id)
        )
        return [state.event_id for state in states]

    def get_all_active_events(self) -> List[str]:
        return list(self._active)

    def has_breaking_news(self) -> bool:
        return any(s.stage is NewsCycleStage.BREAKING for s in self._active.values())

    def get_interrupting_events(self) -> List[str]:
        return [s.event_id for s in self._active.values() if s.is_interrupting]

    def archived_event_ids(self) -> List[str]:
        return list(self._archive)

    def active_count(self) -> int:
        return len(self._active)

    # Helpers --------------------------------------------------------------

    def _states_in(self, stage: NewsCycleStage) -> List[NewsEventState]:
        return [s for s in self._active.values() if s.stage is stage]

    def _now(self) -> datetime:
        return self._time_source.current_simulation_time()

    def _notify(self, method: str, *args) -> None:
        try:
            getattr(self._listener, method)(*args)
        except Exception:
            logger.exception("Listener %s failed for %s", method, args[0])

    def _track(self, method: str, *args, **kwargs) -> None:
        if self._telemetry is None:
            return
        try:
            getattr(self._telemetry, method)(*args, **kwargs)
        except Exception:
            logger.debug("Telemetry tracking via %s failed", method, exc_info=True)


__all__ = ["NewsCycleEngine"]
