"""Listener sinks for news cycle notifications."""
from __future__ import annotations

import logging
from typing import Callable, List

from .models import NewsCycleStage

logger = logging.getLogger(__name__)

TransitionHandler = Callable[[str, NewsCycleStage, NewsCycleStage], None]
EventHandler = Callable[[str], None]


class CycleListener:
    """Receives engine notifications synchronously.

    Handlers run inside the engine call that produced the change and must not
    call back into mutating engine methods.
    """

    def on_stage_transition(
        self, event_id: str, old_stage: NewsCycleStage, new_stage: NewsCycleStage
    ) -> None:
        pass

    def on_archived(self, event_id: str) -> None:
        pass

    def on_interrupt(self, event_id: str) -> None:
        pass


class CallbackListener(CycleListener):
    """Fans notifications out to any number of subscribed callables."""

    def __init__(self) -> None:
        self._transition_handlers: List[TransitionHandler] = []
        self._archived_handlers: List[EventHandler] = []
        self._interrupt_handlers: List[EventHandler] = []

    def subscribe_transition(self, handler: TransitionHandler) -> None:
        self._transition_handlers.append(handler)

    def subscribe_archived(self, handler: EventHandler) -> None:
        self._archived_handlers.append(handler)

    def subscribe_interrupt(self, handler: EventHandler) -> None:
        self._interrupt_handlers.append(handler)

    def on_stage_transition(
        self, event_id: str, old_stage: NewsCycleStage, new_stage: NewsCycleStage
    ) -> None:
        for handler in list(self._transition_handlers):
            self._dispatch(handler, event_id, old_stage, new_stage)

    def on_archived(self, event_id: str) -> None:
        for handler in list(self._archived_handlers):
            self._dispatch(handler, event_id)

    def on_interrupt(self, event_id: str) -> None:
        logger.debug("Dispatching breaking news interrupt for %s", event_id)
        for handler in list(self._interrupt_handlers):
            self._dispatch(handler, event_id)

    @staticmethod
    def _dispatch(handler: Callable[..., None], *args) -> None:
        try:
            handler(*args)
        except Exception:
            logger.exception("Notification handler %r failed", handler)


__all__ = ["CallbackListener", "CycleListener", "EventHandler", "TransitionHandler"]
