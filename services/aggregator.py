"""Chart series derived from the record history."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence

from models.records import (
    DetectionState,
    LevelTier,
    OperationalStatus,
    RiskBand,
    SensorRecord,
    parse_day,
)
from services.classifier import classify_risk

LEVEL_TREND_WINDOW = 50
DEPTH_HISTORY_WINDOW = 100
DETECTION_DAYS_WINDOW = 10
RECENT_LOG_WINDOW = 10

LEVEL_CODES: Dict[LevelTier, int] = {
    LevelTier.low: 1,
    LevelTier.normal: 2,
    LevelTier.high: 3,
}


@dataclass(frozen=True)
class LevelPoint:
    time: str
    value: int
    label: LevelTier


@dataclass(frozen=True)
class DetectionBar:
    """One bar of the detection chart.

    ``count`` is the bar height (0 or 1); ``actual_count`` keeps the number of
    detections behind it.
    """

    label: str
    day: str
    count: int
    actual_count: int

    @property
    def detected(self) -> bool:
        return self.count > 0


@dataclass(frozen=True)
class DepthPoint:
    timestamp: str
    depth: float
    risk: RiskBand


@dataclass(frozen=True)
class ChartSeries:
    mode: str = "all"
    selected_day: Optional[str] = None
    level_trend: List[LevelPoint] = field(default_factory=list)
    detections: List[DetectionBar] = field(default_factory=list)
    detection_total: int = 0
    depth_history: List[DepthPoint] = field(default_factory=list)
    available_days: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.level_trend


@dataclass(frozen=True)
class LatestSnapshot:
    """Headline values for the overview cards."""

    record: Optional[SensorRecord] = None
    link_active: bool = False
    flood_risk: str = "STABLE"
    action: str = "ALL CLEAR"
    recent: List[SensorRecord] = field(default_factory=list)

    @property
    def trash_status(self) -> Optional[DetectionState]:
        return self.record.detection if self.record else None

    @property
    def level(self) -> Optional[LevelTier]:
        return self.record.level if self.record else None

    @property
    def status(self) -> Optional[OperationalStatus]:
        return self.record.status if self.record else None


class SeriesAggregator:
    """Pure derivations that can be unit tested in isolation."""

    def build(
        self,
        history: Sequence[SensorRecord],
        selected_day: Optional[str] = None,
    ) -> ChartSeries:
        if not history:
            return ChartSeries(selected_day=selected_day, mode="day" if selected_day else "all")

        level_trend = self.level_trend(history)
        depth_history = self.depth_history(history)
        available_days = self.available_days(history)

        if selected_day:
            detections, total = self.detections_for_day(history, selected_day)
            mode = "day"
        else:
            detections, total = self.detections_by_day(history)
            mode = "all"

        return ChartSeries(
            mode=mode,
            selected_day=selected_day,
            level_trend=level_trend,
            detections=detections,
            detection_total=total,
            depth_history=depth_history,
            available_days=available_days,
        )

    def level_trend(self, history: Sequence[SensorRecord]) -> List[LevelPoint]:
        return [
            LevelPoint(time=record.timestamp, value=LEVEL_CODES[record.level], label=record.level)
            for record in history[-LEVEL_TREND_WINDOW:]
        ]

    def depth_history(self, history: Sequence[SensorRecord]) -> List[DepthPoint]:
        return [
            DepthPoint(
                timestamp=record.timestamp,
                depth=record.distance,
                risk=classify_risk(record.distance),
            )
            for record in history[-DEPTH_HISTORY_WINDOW:]
        ]

    def detections_by_day(
        self, history: Sequence[SensorRecord]
    ) -> tuple[List[DetectionBar], int]:
        per_day: Dict[str, int] = {}
        parsed: Dict[str, date] = {}
        for record in history:
            day = record.day
            if day not in parsed:
                when = parse_day(day)
                if when is None:
                    continue
                parsed[day] = when
                per_day[day] = 0
            if record.is_detected:
                per_day[day] += 1

        ordered = sorted(per_day, key=parsed.__getitem__)[-DETECTION_DAYS_WINDOW:]
        bars = [
            DetectionBar(
                label=parsed[day].strftime("%d/%m/%y"),
                day=day,
                count=1 if per_day[day] else 0,
                actual_count=per_day[day],
            )
            for day in ordered
        ]
        return bars, sum(per_day.values())

    def detections_for_day(
        self, history: Sequence[SensorRecord], day: str
    ) -> tuple[List[DetectionBar], int]:
        bars: List[DetectionBar] = []
        total = 0
        for record in history:
            if record.day != day:
                continue
            hit = 1 if record.is_detected else 0
            total += hit
            bars.append(
                DetectionBar(label=record.time_of_day, day=day, count=hit, actual_count=hit)
            )
        return bars, total

    def available_days(self, history: Sequence[SensorRecord]) -> List[str]:
        days = {record.day for record in history if parse_day(record.day) is not None}
        return sorted(days, key=lambda day: parse_day(day) or date.min)


def summarize_latest(history: Sequence[SensorRecord]) -> LatestSnapshot:
    if not history:
        return LatestSnapshot()
    latest = history[-1]
    high_water = latest.level is LevelTier.high
    return LatestSnapshot(
        record=latest,
        link_active=latest.is_connected,
        flood_risk="CRITICAL" if high_water else "STABLE",
        action="EVACUATE" if high_water else "ALL CLEAR",
        recent=list(reversed(history[-RECENT_LOG_WINDOW:])),
    )
