"""HTTP route definitions for the service."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response

from app.schemas import (
    AudioSettingIn,
    ChartSeriesOut,
    DaySelectionIn,
    FiltersOut,
    OverviewOut,
    PageSettingIn,
    RecordOut,
    RefreshOut,
    StateOut,
)
from models.records import DetectionState, LevelTier
from models.state import (
    DashboardState,
    FilterCriteria,
    reset_filters,
    select_day,
    set_audio,
    switch_page,
    toggle_theme,
)
from services.aggregator import SeriesAggregator, summarize_latest
from services.filters import export_csv, export_filename, filter_records
from services.poller import FeedPoller, build_default_poller

router = APIRouter()

_ALL = "ALL"


def get_poller() -> FeedPoller:
    return build_default_poller()


def _state_out(state: DashboardState) -> StateOut:
    return StateOut(
        loading=state.loading,
        refreshing=state.refreshing,
        last_updated=state.last_updated,
        record_count=len(state.history),
        selected_day=state.selected_day,
        filters=FiltersOut.model_validate(state.filters),
        audio_enabled=state.audio_enabled,
        audio_authorized=state.audio_authorized,
        theme=state.theme,
        page=state.page,
    )


def _parse_date(name: str, value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"{name} must be a YYYY-MM-DD date.",
        ) from exc


def get_criteria(
    start_date: Optional[str] = Query(None, description="Earliest day, YYYY-MM-DD."),
    end_date: Optional[str] = Query(None, description="Latest day, YYYY-MM-DD."),
    trash: str = Query(_ALL, description="DETECTED, NOT DETECTED or ALL."),
    level: str = Query(_ALL, description="LOW, NORMAL, HIGH or ALL."),
) -> FilterCriteria:
    detection: Optional[DetectionState] = None
    tier: Optional[LevelTier] = None
    try:
        if trash.upper() != _ALL:
            detection = DetectionState(trash.upper())
        if level.upper() != _ALL:
            tier = LevelTier(level.upper())
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    return FilterCriteria(
        start_date=_parse_date("start_date", start_date),
        end_date=_parse_date("end_date", end_date),
        detection=detection,
        level=tier,
    )


@router.get(
    "/state",
    response_model=StateOut,
    summary="Current dashboard session state.",
)
async def get_state(poller: FeedPoller = Depends(get_poller)) -> StateOut:
    return _state_out(poller.store.state)


@router.get(
    "/overview",
    response_model=OverviewOut,
    summary="Headline values derived from the newest reading.",
)
async def get_overview(poller: FeedPoller = Depends(get_poller)) -> OverviewOut:
    snapshot = summarize_latest(poller.store.state.history)
    return OverviewOut.model_validate(snapshot)


@router.get(
    "/series",
    response_model=ChartSeriesOut,
    summary="Level trend, detection counts and depth history.",
)
async def get_series(
    day: Optional[str] = Query(
        None, description="DD-MM-YYYY to drill into one day, 'all' for the daily view."
    ),
    poller: FeedPoller = Depends(get_poller),
) -> ChartSeriesOut:
    state = poller.store.state
    selected = state.selected_day if day is None else select_day(state, day).selected_day
    series = SeriesAggregator().build(state.history, selected)
    return ChartSeriesOut.model_validate(series)


@router.get(
    "/records",
    response_model=list[RecordOut],
    summary="Filtered sensor log, newest first.",
)
async def list_records(
    criteria: FilterCriteria = Depends(get_criteria),
    poller: FeedPoller = Depends(get_poller),
) -> list[RecordOut]:
    records = filter_records(poller.store.state.history, criteria)
    return [RecordOut.model_validate(record) for record in records]


@router.get(
    "/records/export",
    summary="Download the filtered sensor log as CSV.",
    response_class=Response,
)
async def export_records(
    criteria: FilterCriteria = Depends(get_criteria),
    poller: FeedPoller = Depends(get_poller),
) -> Response:
    records = filter_records(poller.store.state.history, criteria)
    if not records:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No records match the current filters.",
        )
    filename = export_filename(datetime.now(timezone.utc))
    return Response(
        content=export_csv(records),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post(
    "/refresh",
    response_model=RefreshOut,
    summary="Fetch the feed now instead of waiting for the next poll.",
)
async def refresh(poller: FeedPoller = Depends(get_poller)) -> RefreshOut:
    outcome = await poller.refresh()
    return RefreshOut.model_validate(outcome)


@router.post("/settings/audio", response_model=StateOut, summary="Toggle the audible alarm.")
async def update_audio(
    body: AudioSettingIn, poller: FeedPoller = Depends(get_poller)
) -> StateOut:
    return _state_out(poller.store.apply(set_audio, body.enabled))


@router.post("/settings/theme", response_model=StateOut, summary="Switch light/dark theme.")
async def update_theme(poller: FeedPoller = Depends(get_poller)) -> StateOut:
    return _state_out(poller.store.apply(toggle_theme))


@router.post("/settings/page", response_model=StateOut, summary="Switch the active tab.")
async def update_page(
    body: PageSettingIn, poller: FeedPoller = Depends(get_poller)
) -> StateOut:
    return _state_out(poller.store.apply(switch_page, body.page))


@router.post(
    "/settings/day", response_model=StateOut, summary="Select the detection chart drill-down day."
)
async def update_day(
    body: DaySelectionIn, poller: FeedPoller = Depends(get_poller)
) -> StateOut:
    return _state_out(poller.store.apply(select_day, body.day))


@router.post(
    "/settings/filters/reset",
    response_model=StateOut,
    summary="Clear the historical-log filters.",
)
async def clear_filters(poller: FeedPoller = Depends(get_poller)) -> StateOut:
    return _state_out(poller.store.apply(reset_filters))


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /ui for the dashboard and /health for service status."}
