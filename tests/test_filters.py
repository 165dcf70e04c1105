from __future__ import annotations

from datetime import datetime

import pytest

from models.records import DetectionState, LevelTier
from models.state import FilterCriteria
from services.filters import export_csv, export_filename, filter_records
from services.parser import parse_feed

FEED = "\n".join(
    [
        "Date,WiFi,ToF,Level,Status",
        "30-12-2023 23:00,CONNECTED,100,LOW,NORMAL",
        "01-01-2024 10:00,CONNECTED,1200,HIGH,ALERT",
        "01-01-2024 10:05,DISCONNECTED,500,NORMAL,WARNING",
        "02-01-2024 07:30,CONNECTED,1130.5,NORMAL,2",
        "not-a-date 1,CONNECTED,0,LOW,NORMAL",
    ]
)


@pytest.fixture()
def history():
    return parse_feed(FEED)


def test_no_criteria_returns_everything_newest_first(history) -> None:
    result = filter_records(history, FilterCriteria())

    assert result == list(reversed(history))


def test_date_range_is_inclusive(history) -> None:
    criteria = FilterCriteria(start_date="2024-01-01", end_date="2024-01-01")

    result = filter_records(history, criteria)

    assert [record.timestamp for record in result] == ["01-01-2024 10:05", "01-01-2024 10:00"]


def test_date_range_spans_year_boundary(history) -> None:
    criteria = FilterCriteria(start_date="2023-12-31")

    result = filter_records(history, criteria)

    assert [record.day for record in result] == ["02-01-2024", "01-01-2024", "01-01-2024"]


def test_records_without_date_fail_bounds(history) -> None:
    result = filter_records(history, FilterCriteria(end_date="2099-01-01"))

    assert all(record.date_key is not None for record in result)
    assert len(result) == 4


def test_unpadded_days_match_date_bounds() -> None:
    history = parse_feed(
        "\n".join(
            [
                "Date,WiFi,ToF,Level,Status",
                "5-1-2024 10:00,CONNECTED,100,LOW,NORMAL",
                "15-1-2024 08:00,CONNECTED,100,LOW,NORMAL",
            ]
        )
    )
    criteria = FilterCriteria(start_date="2024-01-05", end_date="2024-01-05")

    result = filter_records(history, criteria)

    assert history[0].date_key == "2024-01-05"
    assert [record.timestamp for record in result] == ["5-1-2024 10:00"]


def test_category_filters(history) -> None:
    detected = filter_records(history, FilterCriteria(detection=DetectionState.detected))
    normal = filter_records(history, FilterCriteria(level=LevelTier.normal))
    both = filter_records(
        history,
        FilterCriteria(detection=DetectionState.detected, level=LevelTier.normal),
    )

    assert [record.timestamp for record in detected] == ["02-01-2024 07:30", "01-01-2024 10:00"]
    assert [record.timestamp for record in normal] == ["02-01-2024 07:30", "01-01-2024 10:05"]
    assert [record.timestamp for record in both] == ["02-01-2024 07:30"]


def test_filtering_does_not_mutate_history(history) -> None:
    snapshot = tuple(history)

    filter_records(history, FilterCriteria(level=LevelTier.high))

    assert history == snapshot


def test_export_format(history) -> None:
    rows = filter_records(history, FilterCriteria(start_date="2024-01-01"))

    lines = export_csv(rows).split("\n")

    assert lines[0] == (
        "Timestamp,WiFi Status,ToF Reading (us),Trash Status,Hydro Level,Operational Status"
    )
    assert lines[1] == '"02-01-2024 07:30","CONNECTED",1130.5,"DETECTED","NORMAL","WARNING"'
    assert lines[3] == '"01-01-2024 10:00","CONNECTED",1200,"DETECTED","HIGH","ALERT"'
    assert len(lines) == 4


def test_export_of_nothing_is_header_only() -> None:
    assert export_csv([]).count("\n") == 0


def test_export_then_parse_keeps_classification(history) -> None:
    rows = filter_records(history, FilterCriteria())

    reparsed = parse_feed(export_csv(rows))

    assert len(reparsed) == len(rows)
    for original, copy in zip(rows, reparsed):
        assert copy.timestamp == original.timestamp
        assert copy.connectivity == original.connectivity
        assert copy.distance == original.distance
        assert copy.detection is original.detection
        assert copy.level is original.level
        assert copy.status is original.status


def test_export_filename_is_stamped() -> None:
    name = export_filename(datetime(2024, 1, 2, 3, 4, 5))

    assert name == "IoT_TrashRake_Filtered_2024-01-02T03-04-05.csv"
