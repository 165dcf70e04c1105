from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from app.api import get_criteria, get_poller
from models.state import FilterCriteria, Page, apply_filters, reset_filters, switch_page
from services.aggregator import SeriesAggregator, summarize_latest
from services.filters import filter_records
from services.poller import FeedPoller


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_overview", response_class=HTMLResponse)
async def ui_overview(
    request: Request,
    poller: FeedPoller = Depends(get_poller),
) -> HTMLResponse:
    state = poller.store.apply(switch_page, Page.overview)
    series = SeriesAggregator().build(state.history, state.selected_day)
    return templates.TemplateResponse(
        request,
        "ui/overview.html",
        {
            "state": state,
            "snapshot": summarize_latest(state.history),
            "series": series,
        },
    )


@router.get("/ui/log", name="ui_log", response_class=HTMLResponse)
async def ui_log(
    request: Request,
    criteria: FilterCriteria = Depends(get_criteria),
    poller: FeedPoller = Depends(get_poller),
) -> HTMLResponse:
    poller.store.apply(switch_page, Page.log)
    state = poller.store.apply(apply_filters, criteria)
    return templates.TemplateResponse(
        request,
        "ui/log.html",
        {
            "state": state,
            "records": filter_records(state.history, criteria),
            "criteria": criteria,
            "query": request.url.query,
        },
    )


@router.get("/ui/log/reset", name="ui_log_reset")
async def ui_log_reset(poller: FeedPoller = Depends(get_poller)) -> RedirectResponse:
    poller.store.apply(reset_filters)
    return RedirectResponse(url="/ui/log", status_code=303)
