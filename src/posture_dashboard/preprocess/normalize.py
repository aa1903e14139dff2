from __future__ import annotations

import re

import pandas as pd

from posture_dashboard.config import ColumnsConfig
from posture_dashboard.io.schema import DerivedColumns

SEVERITY_LABELS = {5: "Critical", 4: "High", 3: "Medium", 2: "Medium", 1: "Low"}
SEVERITY_ORDER = ["Critical", "High", "Medium", "Low"]
UNKNOWN = "Unknown"

LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def severity_level(value: object) -> int | None:
    """Leading integer of a severity field, or None when there is none."""
    match = LEADING_INT_RE.match(str(value or ""))
    if match is None:
        return None
    return int(match.group(1))


def severity_label(value: object) -> str:
    level = severity_level(value)
    if level is None:
        return UNKNOWN
    return SEVERITY_LABELS.get(level, UNKNOWN)


def status_label(value: object) -> str:
    text = str(value or "").strip()
    if not text:
        return UNKNOWN
    lowered = text.lower()
    if lowered == "active":
        return "Open"
    if lowered == "fixed":
        return "Fixed"
    if "progress" in lowered:
        return "In Progress"
    if "verif" in lowered:
        return "Verified"
    return text


def parse_date(value: object) -> pd.Timestamp | None:
    text = str(value or "").strip()
    if not text:
        return None
    parsed = pd.to_datetime(text, errors="coerce")
    if parsed is None or pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_convert("UTC").tz_localize(None)
    return parsed


def _parse_date_column(values: pd.Series) -> pd.Series:
    parsed = values.map(parse_date)
    return pd.to_datetime(parsed, errors="coerce")


def normalize_records(df: pd.DataFrame, columns: ColumnsConfig) -> pd.DataFrame:
    """Return a copy of ``df`` with derived label, date and month columns.

    Derived values depend only on the corresponding source fields, so running
    this twice (or on any row order) yields the same values.
    """
    derived = DerivedColumns()
    working = df.copy()
    working[derived.severity_label] = working[columns.severity].map(severity_label).astype(object)
    working[derived.status_label] = working[columns.status].map(status_label).astype(object)
    working[derived.first_detected] = _parse_date_column(working[columns.first_detected])
    working[derived.last_detected] = _parse_date_column(working[columns.last_detected])
    first_detected = working[derived.first_detected]
    working[derived.year] = first_detected.dt.year.astype("Int64")
    working[derived.month] = first_detected.dt.month.astype("Int64")
    return working
