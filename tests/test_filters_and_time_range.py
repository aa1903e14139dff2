from __future__ import annotations

import logging
from datetime import date

import pandas as pd
import pytest

from posture_dashboard.config import ColumnsConfig
from posture_dashboard.io.schema import ensure_columns
from posture_dashboard.pipeline.filters import FilterEngine, FilterState, apply_filters
from posture_dashboard.pipeline.time_range import (
    TimeRange,
    TimeRangeSelector,
    filter_by_time_range,
    month_label,
    quick_range,
)
from posture_dashboard.preprocess.normalize import normalize_records

COLUMNS = ColumnsConfig()


def _records() -> pd.DataFrame:
    frame = pd.DataFrame(
        {
            "Severity": ["5", "3", "1", "4", "2"],
            "Vuln Status": ["Active", "Fixed", "Active", "Active", "Fixed"],
            "First Detected": ["2024-01-10", "2024-02-15", "bad-date", "2024-03-01", "2024-04-20"],
            "LT Owner": ["Platform", "Platform", "Web", "Web", "Platform"],
            "Application": ["Billing", "Billing", "Site", "SSO", "Reporting"],
        }
    )
    return normalize_records(ensure_columns(frame, COLUMNS), COLUMNS)


def test_combined_filters_equal_intersection_of_single_filters() -> None:
    records = _records()
    by_owner = apply_filters(records, FilterState(owner="Platform"), COLUMNS)
    by_status = apply_filters(records, FilterState(status="Active"), COLUMNS)

    combined = apply_filters(records, FilterState(owner="Platform", status="Active"), COLUMNS)

    assert set(combined.index) == set(by_owner.index) & set(by_status.index)
    assert list(combined.index) == [0]


def test_no_active_filters_returns_every_record() -> None:
    records = _records()

    assert apply_filters(records, FilterState(), COLUMNS) is records


def test_filter_engine_recomputes_subset_and_resets() -> None:
    engine = FilterEngine(_records(), COLUMNS)

    assert len(engine.set_filter("owner", "Web")) == 2
    assert len(engine.set_filter("application", "SSO")) == 1
    assert engine.filters.active() == {"owner": "Web", "application": "SSO"}
    assert len(engine.set_filter("application", None)) == 2
    assert len(engine.reset()) == 5


def test_filter_engine_options_come_from_initial_base() -> None:
    records = _records()
    engine = FilterEngine(records, COLUMNS)

    engine.set_base(records.iloc[:1])

    assert engine.unique_values("owner") == ["Platform", "Web"]
    assert engine.unique_values("status") == ["Active", "Fixed"]
    assert len(engine.subset) == 1


def test_unknown_filter_axis_is_rejected() -> None:
    engine = FilterEngine(_records(), COLUMNS)

    with pytest.raises(ValueError):
        engine.set_filter("severity", "5")  # type: ignore[arg-type]


def test_time_range_filter_is_inclusive_and_drops_undated_rows() -> None:
    records = _records()

    subset = filter_by_time_range(records, TimeRange(2024, 2, 2024, 3))

    assert list(subset.index) == [1, 3]
    assert len(filter_by_time_range(records, TimeRange.all())) == 5


def test_open_ended_time_range() -> None:
    subset = filter_by_time_range(_records(), TimeRange(from_year=2024, from_month=3))

    assert list(subset.index) == [3, 4]


def test_time_range_labels_and_validity() -> None:
    assert TimeRange.all().label() == "All time"
    assert TimeRange(2024, 1, 2024, 12).label() == "Jan 2024 - Dec 2024"
    assert month_label(2023, 9) == "Sep 2023"
    assert not TimeRange(2024, 5, 2024, 2).is_valid
    assert not TimeRange(2024, 13, 2025, 1).is_valid
    assert TimeRange(2024, 5, 2024, 5).is_valid


def test_quick_range_spans_trailing_months() -> None:
    assert quick_range(3, date(2024, 2, 10)) == TimeRange(2023, 12, 2024, 2)
    assert quick_range(12, date(2024, 12, 1)) == TimeRange(2024, 1, 2024, 12)
    assert quick_range("all", date(2024, 2, 10)).is_all


def test_selector_rejects_invalid_range_without_callback(caplog) -> None:
    seen: list[TimeRange] = []
    selector = TimeRangeSelector(on_change=seen.append)
    assert selector.set_range(TimeRange(2024, 1, 2024, 6))

    with caplog.at_level(logging.WARNING):
        accepted = selector.set_range(TimeRange(2024, 6, 2024, 1))

    assert not accepted
    assert selector.current == TimeRange(2024, 1, 2024, 6)
    assert seen == [TimeRange(2024, 1, 2024, 6)]
    assert "Rejected time range" in caplog.text


def test_selector_clear_reports_all_time() -> None:
    seen: list[TimeRange] = []
    selector = TimeRangeSelector(on_change=seen.append)
    selector.set_quick_range(6, date(2024, 6, 15))

    assert selector.clear()

    assert selector.current.is_all
    assert seen == [TimeRange(2024, 1, 2024, 6), TimeRange.all()]
