"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.records import DetectionState, LevelTier, OperationalStatus, RiskBand
from models.state import Page, Theme
from services.poller import RefreshStatus


class _FromAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class RecordOut(_FromAttributes):
    """One row of the sensor sheet as shown in the log table."""

    timestamp: str
    connectivity: str
    distance: float = Field(..., description="Time-of-flight reading in microseconds.")
    detection: DetectionState
    level: LevelTier
    status: OperationalStatus


class LevelPointOut(_FromAttributes):
    time: str
    value: int = Field(..., ge=1, le=3)
    label: LevelTier


class DetectionBarOut(_FromAttributes):
    label: str
    day: str
    count: int = Field(..., ge=0, le=1)
    actual_count: int = Field(..., ge=0)
    detected: bool


class DepthPointOut(_FromAttributes):
    timestamp: str
    depth: float
    risk: RiskBand


class ChartSeriesOut(_FromAttributes):
    """Every chart on the overview page, recomputed from the current history."""

    mode: str
    selected_day: Optional[str] = None
    is_empty: bool
    level_trend: List[LevelPointOut] = Field(default_factory=list)
    detections: List[DetectionBarOut] = Field(default_factory=list)
    detection_total: int = Field(..., ge=0)
    depth_history: List[DepthPointOut] = Field(default_factory=list)
    available_days: List[str] = Field(default_factory=list)


class OverviewOut(_FromAttributes):
    record: Optional[RecordOut] = None
    link_active: bool
    trash_status: Optional[DetectionState] = None
    level: Optional[LevelTier] = None
    status: Optional[OperationalStatus] = None
    flood_risk: str
    action: str
    recent: List[RecordOut] = Field(default_factory=list)


class FiltersOut(_FromAttributes):
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    detection: Optional[DetectionState] = None
    level: Optional[LevelTier] = None


class StateOut(BaseModel):
    loading: bool
    refreshing: bool
    last_updated: Optional[datetime] = None
    record_count: int = Field(..., ge=0)
    selected_day: Optional[str] = None
    filters: FiltersOut
    audio_enabled: bool
    audio_authorized: bool
    theme: Theme
    page: Page


class RefreshOut(_FromAttributes):
    status: RefreshStatus
    attempts: int = Field(..., ge=1)
    record_count: int = Field(..., ge=0)


class AudioSettingIn(BaseModel):
    enabled: bool


class PageSettingIn(BaseModel):
    page: Page


class DaySelectionIn(BaseModel):
    day: Optional[str] = Field(
        default=None, description="Day key as DD-MM-YYYY; null or 'all' clears the drill-down."
    )
