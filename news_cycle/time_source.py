"""Turn and clock providers consumed by the news cycle engine."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol


class TimeSource(Protocol):
    """Read-only view of the simulation's turn counter and clock."""

    def current_turn(self) -> int:
        ...

    def current_simulation_time(self) -> datetime:
        ...

    def time_scale(self) -> float:
        ...


class SystemTimeSource:
    """Wall-clock UTC time with the turn number supplied by the host game loop."""

    def __init__(
        self,
        turn_provider: Optional[Callable[[], int]] = None,
        time_scale: float = 1.0,
    ) -> None:
        self._turn_provider = turn_provider
        self._time_scale = time_scale

    def current_turn(self) -> int:
        if self._turn_provider is None:
            return 0
        return int(self._turn_provider())

    def current_simulation_time(self) -> datetime:
        return datetime.now(timezone.utc)

    def time_scale(self) -> float:
        return self._time_scale


class ManualTimeSource:
    """Deterministic clock advanced explicitly by the caller."""

    def __init__(
        self,
        start: Optional[datetime] = None,
        turn: int = 0,
        time_scale: float = 1.0,
    ) -> None:
        self._now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._turn = turn
        self._time_scale = time_scale

    def current_turn(self) -> int:
        return self._turn

    def current_simulation_time(self) -> datetime:
        return self._now

    def time_scale(self) -> float:
        return self._time_scale

    def advance(self, *, days: float = 0, hours: float = 0, minutes: float = 0) -> datetime:
        self._now += timedelta(days=days, hours=hours, minutes=minutes)
        return self._now

    def advance_turn(self, turns: int = 1, hours_per_turn: Optional[float] = None) -> int:
        """Bump the turn counter, optionally moving the clock along with it."""

        self._turn += turns
        if hours_per_turn:
            self._now += timedelta(hours=hours_per_turn * turns)
        return self._turn


__all__ = ["ManualTimeSource", "SystemTimeSource", "TimeSource"]
