from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from posture_dashboard.config import ColumnsConfig


@dataclass(frozen=True)
class DerivedColumns:
    severity_label: str = "severity_label"
    status_label: str = "status_label"
    first_detected: str = "first_detected"
    last_detected: str = "last_detected"
    year: str = "year"
    month: str = "month"


def source_columns(columns: ColumnsConfig) -> list[str]:
    return [
        columns.severity,
        columns.status,
        columns.first_detected,
        columns.last_detected,
        columns.owner,
        columns.application,
        columns.title,
    ]


def ensure_columns(df: pd.DataFrame, columns: ColumnsConfig) -> pd.DataFrame:
    """Add any configured source column the header lacks, filled with empty strings."""
    missing = [name for name in source_columns(columns) if name not in df.columns]
    if not missing:
        return df
    working = df.copy()
    for name in missing:
        working[name] = pd.Series("", index=working.index, dtype=object)
    return working
