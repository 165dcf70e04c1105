"""Turn the published sheet's CSV text into classified sensor records.

The feed is split on commas only. The sheet never quotes its cells, so there
is no support for fields that themselves contain a comma: such a row would
silently shift every later column. The one concession to quoting is that a
single pair of surrounding double quotes is stripped from each field, which
is what the table exporter writes.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from models.records import SensorRecord
from services.classifier import classify_detection, classify_level, classify_status

logger = logging.getLogger(__name__)

# Case-sensitive words that only ever show up in a header row that leaked
# into the data range.
HEADER_MARKERS = ("DATE", "THE")

EXPORT_HEADER = (
    "Timestamp",
    "WiFi Status",
    "ToF Reading (us)",
    "Trash Status",
    "Hydro Level",
    "Operational Status",
)


@dataclass(frozen=True)
class ColumnLayout:
    """Zero-based column positions for each raw field."""

    timestamp: int
    connectivity: int
    distance: int
    level: int
    status: int


SOURCE_LAYOUT = ColumnLayout(timestamp=0, connectivity=1, distance=2, level=3, status=4)
EXPORT_LAYOUT = ColumnLayout(timestamp=0, connectivity=1, distance=2, level=4, status=5)


def _clean(value: str) -> str:
    candidate = value.strip()
    if len(candidate) >= 2 and candidate[0] == candidate[-1] == '"':
        candidate = candidate[1:-1].strip()
    return candidate


def _column(columns: list[str], index: int) -> str:
    if index < len(columns):
        return _clean(columns[index])
    return ""


def _parse_distance(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def reject_reason(timestamp: str) -> Optional[str]:
    """Explain why a timestamp cell does not belong to a data row, if it doesn't."""
    if not timestamp:
        return "missing timestamp"
    if any(marker in timestamp for marker in HEADER_MARKERS):
        return "header row"
    if not any(char.isdigit() for char in timestamp):
        return "timestamp has no digits"
    return None


def parse_row(line: str, layout: ColumnLayout = SOURCE_LAYOUT) -> Optional[SensorRecord]:
    """Parse one CSV line, returning ``None`` for rows that are not data."""
    columns = line.split(",")
    timestamp = _column(columns, layout.timestamp)
    if reject_reason(timestamp) is not None:
        return None

    distance = _parse_distance(_column(columns, layout.distance))
    return SensorRecord(
        timestamp=timestamp,
        connectivity=_column(columns, layout.connectivity) or "N/A",
        distance=distance,
        detection=classify_detection(distance),
        level=classify_level(_column(columns, layout.level)),
        status=classify_status(_column(columns, layout.status)),
    )


def detect_layout(header: str) -> ColumnLayout:
    """Pick the column layout from the first line of a file."""
    names = tuple(_clean(name) for name in header.split(","))
    if names == EXPORT_HEADER:
        return EXPORT_LAYOUT
    return SOURCE_LAYOUT


def parse_feed(text: str) -> tuple[SensorRecord, ...]:
    """Parse a whole CSV document, skipping its header line."""
    lines = text.splitlines()
    if not lines:
        return ()

    layout = detect_layout(lines[0])
    records: list[SensorRecord] = []
    for row_number, line in enumerate(lines[1:], start=2):
        record = parse_row(line, layout)
        if record is None:
            if line.strip():
                logger.debug(
                    "Skipping non-data row.",
                    extra={
                        "row_number": row_number,
                        "reason": reject_reason(_column(line.split(","), layout.timestamp)),
                    },
                )
            continue
        records.append(record)
    return tuple(records)
