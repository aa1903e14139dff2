from __future__ import annotations

from datetime import date

from posture_dashboard.config import ColumnsConfig
from posture_dashboard.io.csv_text import parse_csv
from posture_dashboard.io.read import records_to_frame
from posture_dashboard.io.schema import ensure_columns
from posture_dashboard.pipeline.metrics import (
    compute_metrics,
    delta_tone,
    format_delta,
    format_number,
    metric_counts,
    metric_delta,
)
from posture_dashboard.preprocess.normalize import normalize_records

COLUMNS = ColumnsConfig()

SCENARIO_CSV = (
    "Severity,Vuln Status,First Detected\n"
    "5,Active,2024-01-10\n"
    "3,Fixed,2024-02-15\n"
    "1,Active,bad-date\n"
)


def _scenario():
    frame = ensure_columns(records_to_frame(parse_csv(SCENARIO_CSV)), COLUMNS)
    return normalize_records(frame, COLUMNS)


def test_metric_counts_for_three_row_scenario() -> None:
    counts = metric_counts(_scenario(), COLUMNS)

    assert counts == {"total": 3, "active": 2, "fixed": 1, "critical": 1}


def test_delta_boundaries() -> None:
    assert metric_delta(0, 0) == 0
    assert metric_delta(5, 0) == 100
    assert metric_delta(0, 4) == -100
    assert metric_delta(3, 2) == 50
    assert metric_delta(1, 3) == -67
    assert metric_delta(2, 8) == -75


def test_compute_metrics_uses_reference_month_over_month() -> None:
    records = _scenario()

    metrics = compute_metrics(records.iloc[:1], records, COLUMNS, now=date(2024, 2, 20))

    assert metrics["total"].value == 1
    assert metrics["total"].delta == 0
    assert metrics["critical"].delta == -100
    assert metrics["active"].delta == -100
    assert metrics["fixed"].delta == 100


def test_compute_metrics_on_empty_subset() -> None:
    records = _scenario()

    metrics = compute_metrics(records.iloc[0:0], records, COLUMNS, now=date(2024, 2, 20))

    assert {name: metric.value for name, metric in metrics.items()} == {
        "total": 0,
        "active": 0,
        "fixed": 0,
        "critical": 0,
    }


def test_formatting_helpers() -> None:
    assert format_number(12345) == "12,345"
    assert format_delta(5) == "↗ 5%"
    assert format_delta(-3) == "↘ 3%"
    assert format_delta(0) == " 0%"


def test_delta_tones() -> None:
    assert delta_tone("total", 10) == "positive"
    assert delta_tone("total", -10) == "negative"
    assert delta_tone("total", 0) == "neutral"
    assert delta_tone("active", 5) == "warning"
    assert delta_tone("fixed", 5) == "positive"
    assert delta_tone("critical", 5) == "critical"
    assert delta_tone("critical", 0) == "positive"
