"""Threshold and keyword rules that turn raw sheet values into categories."""

from __future__ import annotations

from models.records import DetectionState, LevelTier, OperationalStatus, RiskBand

TRASH_THRESHOLD = 1120.0
WARNING_DEPTH = 800.0


def classify_detection(distance: float) -> DetectionState:
    if distance >= TRASH_THRESHOLD:
        return DetectionState.detected
    return DetectionState.not_detected


def classify_level(raw: str | None) -> LevelTier:
    """Map the hydro column to a tier; anything unrecognised reads as LOW."""
    candidate = (raw or "").strip().upper()
    if "HIGH" in candidate or candidate == "3":
        return LevelTier.high
    if "NORMAL" in candidate or candidate == "2":
        return LevelTier.normal
    return LevelTier.low


def classify_status(raw: str | None) -> OperationalStatus:
    """Map the status column; NORMAL is the fallback for unknown values."""
    candidate = (raw or "").strip().upper()
    if "ALERT" in candidate or candidate == "3":
        return OperationalStatus.alert
    if "WARNING" in candidate or candidate == "2":
        return OperationalStatus.warning
    return OperationalStatus.normal


def classify_risk(distance: float) -> RiskBand:
    if distance >= TRASH_THRESHOLD:
        return RiskBand.high
    if distance >= WARNING_DEPTH:
        return RiskBand.warning
    return RiskBand.stable
