from __future__ import annotations

import pandas as pd

from posture_dashboard.config import ColumnsConfig
from posture_dashboard.io.schema import DerivedColumns, ensure_columns
from posture_dashboard.preprocess.normalize import (
    normalize_records,
    parse_date,
    severity_label,
    status_label,
)


def _raw_frame() -> pd.DataFrame:
    columns = ColumnsConfig()
    frame = pd.DataFrame(
        {
            "Severity": ["5", "4", "3", "2", "1", "", "9"],
            "Vuln Status": ["Active", "fixed", "In progress", "Verified", "Risk Accepted", "", "x"],
            "First Detected": [
                "2024-01-10",
                "2024-02-15T08:00:00Z",
                "bad-date",
                "",
                "03/05/2024",
                "2023-12-31",
                "2024-01-01",
            ],
        }
    )
    return ensure_columns(frame, columns)


def test_severity_levels_map_to_exactly_one_bucket() -> None:
    assert [severity_label(level) for level in ("5", "4", "3", "2", "1")] == [
        "Critical",
        "High",
        "Medium",
        "Medium",
        "Low",
    ]
    assert severity_label("") == "Unknown"
    assert severity_label("7") == "Unknown"
    assert severity_label("5 - Urgent") == "Critical"


def test_status_labels() -> None:
    assert status_label("Active") == "Open"
    assert status_label(" FIXED ") == "Fixed"
    assert status_label("In Progress") == "In Progress"
    assert status_label("Verified") == "Verified"
    assert status_label("Risk Accepted") == "Risk Accepted"
    assert status_label("") == "Unknown"


def test_parse_date_returns_none_for_unparsable_values() -> None:
    assert parse_date("bad-date") is None
    assert parse_date("") is None
    parsed = parse_date("2024-02-15T08:00:00Z")
    assert parsed is not None
    assert parsed.tzinfo is None
    assert (parsed.year, parsed.month, parsed.day) == (2024, 2, 15)


def test_normalize_adds_derived_columns_without_touching_source() -> None:
    raw = _raw_frame()
    derived = DerivedColumns()

    normalized = normalize_records(raw, ColumnsConfig())

    assert derived.severity_label not in raw.columns
    assert normalized["Severity"].tolist() == raw["Severity"].tolist()
    assert normalized[derived.severity_label].tolist()[:3] == ["Critical", "High", "Medium"]
    assert normalized[derived.year].tolist()[:2] == [2024, 2024]
    assert normalized[derived.month].tolist()[:2] == [1, 2]
    assert pd.isna(normalized.loc[2, derived.first_detected])
    assert pd.isna(normalized.loc[2, derived.year])


def test_normalize_is_idempotent() -> None:
    columns = ColumnsConfig()
    once = normalize_records(_raw_frame(), columns)
    twice = normalize_records(once, columns)

    pd.testing.assert_frame_equal(once, twice)


def test_normalize_handles_empty_frames() -> None:
    columns = ColumnsConfig()
    empty = ensure_columns(pd.DataFrame(), columns)

    normalized = normalize_records(empty, columns)

    assert normalized.empty
    assert DerivedColumns().month in normalized.columns
