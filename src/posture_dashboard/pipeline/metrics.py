from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Literal

import pandas as pd

from posture_dashboard.config import ColumnsConfig
from posture_dashboard.io.schema import DerivedColumns
from posture_dashboard.pipeline.time_range import month_from_index, month_index

MetricName = Literal["total", "active", "fixed", "critical"]
METRIC_NAMES: tuple[MetricName, ...] = ("total", "active", "fixed", "critical")
DeltaTone = Literal["positive", "negative", "neutral", "warning", "critical"]


@dataclass(frozen=True, slots=True)
class Metric:
    value: int
    delta: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError(f"Metric value must be non-negative, got {self.value!r}.")

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def _status_equals(df: pd.DataFrame, columns: ColumnsConfig, value: str) -> pd.Series:
    return df[columns.status].astype(str).str.strip().str.lower() == value


def metric_masks(df: pd.DataFrame, columns: ColumnsConfig) -> dict[MetricName, pd.Series]:
    """Boolean row masks for each dashboard metric."""
    return {
        "total": pd.Series(True, index=df.index),
        "active": _status_equals(df, columns, "active"),
        "fixed": _status_equals(df, columns, "fixed"),
        "critical": df[columns.severity].astype(str).str.strip() == "5",
    }


def metric_counts(df: pd.DataFrame, columns: ColumnsConfig) -> dict[MetricName, int]:
    if df.empty:
        return {name: 0 for name in METRIC_NAMES}
    return {name: int(mask.sum()) for name, mask in metric_masks(df, columns).items()}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def metric_delta(current: int, previous: int) -> int:
    """Percentage change from the previous period to the current one."""
    if previous == 0:
        return 100 if current > 0 else 0
    return _round_half_up(100.0 * (current - previous) / previous)


def _rows_in_month(df: pd.DataFrame, year: int, month: int) -> pd.DataFrame:
    derived = DerivedColumns()
    if df.empty:
        return df
    mask = (df[derived.year] == year) & (df[derived.month] == month)
    return df.loc[mask.fillna(False).astype(bool)]


def compute_metrics(
    subset: pd.DataFrame,
    reference: pd.DataFrame,
    columns: ColumnsConfig,
    now: date | datetime,
) -> dict[MetricName, Metric]:
    """Metric values over ``subset`` with month-over-month deltas over ``reference``.

    ``reference`` is the full loaded record set so that deltas track the overall
    trend regardless of the active filters. Months are taken from ``now``.
    """
    values = metric_counts(subset, columns)
    previous_year, previous_month = month_from_index(month_index(now.year, now.month) - 1)
    current = metric_counts(_rows_in_month(reference, now.year, now.month), columns)
    previous = metric_counts(_rows_in_month(reference, previous_year, previous_month), columns)
    return {
        name: Metric(value=values[name], delta=metric_delta(current[name], previous[name]))
        for name in METRIC_NAMES
    }


def format_number(value: int) -> str:
    return f"{int(value):,}"


def format_delta(delta: int) -> str:
    arrow = "↗" if delta > 0 else "↘" if delta < 0 else ""
    return f"{arrow} {abs(int(delta))}%"


def delta_tone(metric: MetricName, delta: int) -> DeltaTone:
    """Card styling for a delta; rising active or critical counts are bad news."""
    if metric == "total":
        if delta > 0:
            return "positive"
        return "negative" if delta < 0 else "neutral"
    if metric == "active":
        return "warning" if delta > 0 else "positive"
    if metric == "fixed":
        return "positive" if delta > 0 else "neutral"
    if metric == "critical":
        return "critical" if delta > 0 else "positive"
    raise ValueError(f"Unknown metric: {metric!r}")
