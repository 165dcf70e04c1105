"""Holder for the current dashboard state."""

from __future__ import annotations

from typing import Any, Callable

from models.state import DashboardState

Transition = Callable[..., DashboardState]


class DashboardStore:
    """Owns the one live ``DashboardState`` and swaps it on every transition.

    All readers and writers share the event loop, so replacing the reference
    is the only synchronisation needed.
    """

    def __init__(self, initial: DashboardState | None = None) -> None:
        self._state = initial if initial is not None else DashboardState()

    @property
    def state(self) -> DashboardState:
        return self._state

    def apply(self, transition: Transition, *args: Any) -> DashboardState:
        self._state = transition(self._state, *args)
        return self._state
