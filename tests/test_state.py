from __future__ import annotations

from datetime import datetime, timezone

from models.records import LevelTier
from models.state import (
    DashboardState,
    FilterCriteria,
    Page,
    Theme,
    apply_filters,
    begin_refresh,
    history_loaded,
    refresh_finished,
    reset_filters,
    select_day,
    set_audio,
    switch_page,
    toggle_theme,
)
from services.parser import parse_row
from services.store import DashboardStore


def test_initial_state_is_loading_and_empty() -> None:
    state = DashboardState()

    assert state.loading is True
    assert state.history == ()
    assert state.latest is None
    assert state.selected_day is None
    assert state.sound_allowed is False


def test_history_loaded_replaces_history_and_clears_flags() -> None:
    record = parse_row("01-01-2024 10:00,CONNECTED,1200,HIGH,ALERT")
    at = datetime(2024, 1, 1, tzinfo=timezone.utc)
    before = begin_refresh(DashboardState())

    after = history_loaded(before, (record,), at)

    assert before.refreshing is True
    assert before.history == ()
    assert after.history == (record,)
    assert after.latest == record
    assert after.loading is False
    assert after.refreshing is False
    assert after.last_updated == at


def test_refresh_finished_keeps_history() -> None:
    record = parse_row("01-01-2024 10:00,CONNECTED,1200,HIGH,ALERT")
    state = history_loaded(DashboardState(), (record,), datetime.now(timezone.utc))

    after = refresh_finished(begin_refresh(state))

    assert after.history == (record,)
    assert after.refreshing is False


def test_select_day_treats_all_and_blank_as_unfiltered() -> None:
    state = select_day(DashboardState(), "01-01-2024")

    assert state.selected_day == "01-01-2024"
    assert select_day(state, "all").selected_day is None
    assert select_day(state, " ").selected_day is None
    assert select_day(state, None).selected_day is None


def test_filters_apply_and_reset() -> None:
    criteria = FilterCriteria(start_date="2024-01-01", level=LevelTier.high)

    state = apply_filters(DashboardState(), criteria)

    assert state.filters == criteria
    assert reset_filters(state).filters == FilterCriteria()


def test_enabling_audio_authorizes_playback() -> None:
    state = set_audio(DashboardState(), True)

    assert state.sound_allowed is True
    muted = set_audio(state, False)
    assert muted.sound_allowed is False
    assert muted.audio_authorized is True


def test_audio_enabled_by_default_still_needs_authorization() -> None:
    state = DashboardState(audio_enabled=True)

    assert state.sound_allowed is False


def test_theme_and_page_transitions() -> None:
    state = toggle_theme(DashboardState())

    assert state.theme is Theme.dark
    assert toggle_theme(state).theme is Theme.light
    assert switch_page(state, Page.log).page is Page.log


def test_store_swaps_state() -> None:
    store = DashboardStore()
    original = store.state

    updated = store.apply(switch_page, Page.log)

    assert store.state is updated
    assert original.page is Page.overview
    assert updated.page is Page.log
