"""Dashboard session state and the pure transitions that produce new states.

Nothing here mutates: each transition takes a state and returns a new one, so
readers holding the previous state never observe a half-applied update.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from models.records import DetectionState, LevelTier, SensorRecord


class Theme(str, Enum):
    light = "light"
    dark = "dark"


class Page(str, Enum):
    overview = "overview"
    log = "log"


@dataclass(frozen=True)
class FilterCriteria:
    """Historical-log filters; ``None`` on any field matches everything."""

    start_date: Optional[str] = None
    end_date: Optional[str] = None
    detection: Optional[DetectionState] = None
    level: Optional[LevelTier] = None


@dataclass(frozen=True)
class DashboardState:
    history: tuple[SensorRecord, ...] = ()
    loading: bool = True
    refreshing: bool = False
    last_updated: Optional[datetime] = None
    selected_day: Optional[str] = None
    filters: FilterCriteria = field(default_factory=FilterCriteria)
    audio_enabled: bool = False
    audio_authorized: bool = False
    theme: Theme = Theme.light
    page: Page = Page.overview

    @property
    def latest(self) -> Optional[SensorRecord]:
        return self.history[-1] if self.history else None

    @property
    def sound_allowed(self) -> bool:
        return self.audio_enabled and self.audio_authorized


def begin_refresh(state: DashboardState) -> DashboardState:
    return replace(state, refreshing=True)


def history_loaded(
    state: DashboardState, records: tuple[SensorRecord, ...], at: datetime
) -> DashboardState:
    return replace(
        state,
        history=tuple(records),
        loading=False,
        refreshing=False,
        last_updated=at,
    )


def refresh_finished(state: DashboardState) -> DashboardState:
    """Clear the loading flags without touching history (retries exhausted)."""
    return replace(state, loading=False, refreshing=False)


def select_day(state: DashboardState, day: Optional[str]) -> DashboardState:
    if day is not None and (not day.strip() or day.strip().lower() == "all"):
        day = None
    return replace(state, selected_day=day.strip() if day else None)


def apply_filters(state: DashboardState, criteria: FilterCriteria) -> DashboardState:
    return replace(state, filters=criteria)


def reset_filters(state: DashboardState) -> DashboardState:
    return replace(state, filters=FilterCriteria())


def set_audio(state: DashboardState, enabled: bool) -> DashboardState:
    # Switching sound on is a user gesture, which is what authorizes playback.
    return replace(
        state,
        audio_enabled=enabled,
        audio_authorized=state.audio_authorized or enabled,
    )


def toggle_theme(state: DashboardState) -> DashboardState:
    theme = Theme.dark if state.theme is Theme.light else Theme.light
    return replace(state, theme=theme)


def switch_page(state: DashboardState, page: Page) -> DashboardState:
    return replace(state, page=page)
