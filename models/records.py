"""Domain models shared across services."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional

_DATE_TIME_SPLIT = re.compile(r"[ T]")


def parse_day(day: str) -> Optional[date]:
    """Parse a ``DD-MM-YYYY`` day key, or return ``None``."""
    try:
        return datetime.strptime(day, "%d-%m-%Y").date()
    except ValueError:
        return None


class DetectionState(str, Enum):
    """Whether the ToF sensor sees an obstruction on the rake."""

    detected = "DETECTED"
    not_detected = "NOT DETECTED"


class LevelTier(str, Enum):
    """Water-level classification reported by the hydro sensor."""

    low = "LOW"
    normal = "NORMAL"
    high = "HIGH"


class OperationalStatus(str, Enum):
    """Device health classification reported by the node."""

    normal = "NORMAL"
    warning = "WARNING"
    alert = "ALERT"


class RiskBand(str, Enum):
    """Depth-history band derived from the ToF reading."""

    high = "HIGH"
    warning = "WARNING"
    stable = "STABLE"


@dataclass(frozen=True, slots=True)
class SensorRecord:
    """A single row of the published sensor sheet, already classified."""

    timestamp: str
    connectivity: str
    distance: float
    detection: DetectionState
    level: LevelTier
    status: OperationalStatus

    @property
    def day(self) -> str:
        """Date portion of the timestamp, e.g. ``01-01-2024``."""
        return _DATE_TIME_SPLIT.split(self.timestamp, maxsplit=1)[0]

    @property
    def time_of_day(self) -> str:
        parts = _DATE_TIME_SPLIT.split(self.timestamp, maxsplit=1)
        if len(parts) > 1:
            return parts[1][:5]
        return "00:00"

    @property
    def date_key(self) -> Optional[str]:
        """The day as an ISO ``YYYY-MM-DD`` string so it sorts and compares as text."""
        parsed = parse_day(self.day)
        return parsed.isoformat() if parsed else None

    @property
    def is_detected(self) -> bool:
        return self.detection is DetectionState.detected

    @property
    def is_connected(self) -> bool:
        return self.connectivity.strip().upper() == "CONNECTED"
