"""Historical-log filtering and CSV export of the filtered table."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Sequence

from models.records import SensorRecord
from models.state import FilterCriteria
from services.parser import EXPORT_HEADER

EXPORT_PREFIX = "IoT_TrashRake_Filtered_"


def matches(record: SensorRecord, criteria: FilterCriteria) -> bool:
    if criteria.start_date or criteria.end_date:
        key = record.date_key
        if key is None:
            return False
        if criteria.start_date and key < criteria.start_date:
            return False
        if criteria.end_date and key > criteria.end_date:
            return False
    if criteria.detection is not None and record.detection is not criteria.detection:
        return False
    if criteria.level is not None and record.level is not criteria.level:
        return False
    return True


def filter_records(
    history: Sequence[SensorRecord], criteria: FilterCriteria
) -> List[SensorRecord]:
    """Records that pass every filter, newest first."""
    return [record for record in reversed(history) if matches(record, criteria)]


def _quote(value: str) -> str:
    return f'"{value}"'


def _format_distance(distance: float) -> str:
    if distance.is_integer():
        return str(int(distance))
    return repr(distance)


def export_csv(records: Iterable[SensorRecord]) -> str:
    lines = [",".join(EXPORT_HEADER)]
    for record in records:
        lines.append(
            ",".join(
                [
                    _quote(record.timestamp),
                    _quote(record.connectivity),
                    _format_distance(record.distance),
                    _quote(record.detection.value),
                    _quote(record.level.value),
                    _quote(record.status.value),
                ]
            )
        )
    return "\n".join(lines)


def export_filename(now: datetime) -> str:
    return f"{EXPORT_PREFIX}{now.strftime('%Y-%m-%dT%H-%M-%S')}.csv"
