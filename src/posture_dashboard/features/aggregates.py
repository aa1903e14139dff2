from __future__ import annotations

from datetime import date, datetime, timedelta

import pandas as pd

from posture_dashboard.config import AppConfig, ColumnsConfig
from posture_dashboard.features.datasets import (
    ApplicationStatusBreakdown,
    ApplicationStatusRow,
    CategoryDistribution,
    CategoryPoint,
    ChartDataset,
    MultiSeries,
    OwnershipCategory,
    OwnershipDistribution,
    Series,
    SparklineSeries,
    TimelineBucket,
    TimelineSeries,
)
from posture_dashboard.io.schema import DerivedColumns
from posture_dashboard.pipeline.metrics import METRIC_NAMES, MetricName, metric_masks
from posture_dashboard.pipeline.time_range import (
    TimeRange,
    month_from_index,
    month_index,
)
from posture_dashboard.preprocess.normalize import SEVERITY_ORDER, UNKNOWN

DERIVED = DerivedColumns()

SEVERITY_COLORS = {
    "Critical": "destructive",
    "High": "warning",
    "Medium": "chart-5",
    "Low": "info",
}
OWNERSHIP_COLORS = ("chart-1", "chart-2", "chart-3", "chart-4", "chart-5", "muted")
OTHERS_LABEL = "Others"
STATUS_TREND_SERIES = (
    ("Active", "Open", "destructive"),
    ("In Progress", "In Progress", "warning"),
    ("Fixed", "Fixed", "success"),
    ("Verified", "Verified", "primary"),
)


def _ranked_counts(values: pd.Series) -> pd.Series:
    """Counts per value, descending, ties kept in first-seen order."""
    if values.empty:
        return pd.Series(dtype="int64")
    counts = values.groupby(values, sort=False).size()
    return counts.sort_values(ascending=False, kind="mergesort")


def _month_key(index: int) -> str:
    year, month = month_from_index(index)
    return f"{year:04d}-{month:02d}"


def _dated_month_index(df: pd.DataFrame) -> pd.Series:
    dated = df.loc[df[DERIVED.first_detected].notna()]
    return (dated[DERIVED.year] * 12 + (dated[DERIVED.month] - 1)).astype("int64")


def severity_distribution(df: pd.DataFrame) -> CategoryDistribution:
    counts = {label: 0 for label in SEVERITY_ORDER}
    if not df.empty:
        observed = df[DERIVED.severity_label].value_counts()
        for label in SEVERITY_ORDER:
            counts[label] = int(observed.get(label, 0))
    return CategoryDistribution(
        kind="severity_distribution",
        points=tuple(
            CategoryPoint(label=label, value=counts[label], color=SEVERITY_COLORS[label])
            for label in SEVERITY_ORDER
        ),
    )


MONTHLY_TREND_SERIES = (
    ("Total", "total", "primary"),
    ("Active", "active", "destructive"),
    ("Fixed", "fixed", "success"),
)


def _monthly_series(
    kind: str,
    df: pd.DataFrame,
    flags: dict[str, pd.Series],
    colors: dict[str, str],
    months: int,
) -> MultiSeries:
    month_idx = _dated_month_index(df) if not df.empty else pd.Series(dtype="int64")
    if month_idx.empty:
        return MultiSeries(
            kind=kind,
            series=tuple(Series(name, (), colors[name]) for name in flags),
        )
    frame = pd.DataFrame(
        {name: mask.loc[month_idx.index].astype("int64") for name, mask in flags.items()}
    )
    frame["month_index"] = month_idx
    grouped = frame.groupby("month_index").sum().sort_index().tail(months)
    return MultiSeries(
        kind=kind,
        labels=tuple(_month_key(int(index)) for index in grouped.index),
        series=tuple(
            Series(name, tuple(int(value) for value in grouped[name]), colors[name])
            for name in flags
        ),
    )


def monthly_trends(df: pd.DataFrame, columns: ColumnsConfig, months: int = 12) -> MultiSeries:
    """Total/active/fixed counts for the most recent ``months`` months with data."""
    masks = metric_masks(df, columns)
    return _monthly_series(
        "monthly_trends",
        df,
        {name: masks[metric] for name, metric, _color in MONTHLY_TREND_SERIES},
        {name: color for name, _metric, color in MONTHLY_TREND_SERIES},
        months,
    )


def status_trends(df: pd.DataFrame, months: int = 12) -> MultiSeries:
    return _monthly_series(
        "status_trends",
        df,
        {name: df[DERIVED.status_label] == status for name, status, _color in STATUS_TREND_SERIES},
        {name: color for name, _status, color in STATUS_TREND_SERIES},
        months,
    )


def top_applications(
    df: pd.DataFrame,
    columns: ColumnsConfig,
    limit: int = 10,
) -> CategoryDistribution:
    if df.empty:
        return CategoryDistribution(kind="top_applications")
    applications = df[columns.application].astype(str).str.strip()
    ranked = _ranked_counts(applications.loc[applications != ""]).head(limit)
    return CategoryDistribution(
        kind="top_applications",
        points=tuple(
            CategoryPoint(label=str(label), value=int(count)) for label, count in ranked.items()
        ),
    )


def ownership_distribution(
    df: pd.DataFrame,
    columns: ColumnsConfig,
    top_n: int = 5,
) -> OwnershipDistribution:
    """Top owners plus an "Others" bucket, as a share of every record passed in."""
    total = len(df)
    if total == 0:
        return OwnershipDistribution()
    owners = df[columns.owner].astype(str).str.strip().replace("", UNKNOWN)
    ranked = _ranked_counts(owners)
    categories = [
        OwnershipCategory(
            label=str(owner),
            value=int(count),
            percentage=int(count) / total * 100.0,
            color=OWNERSHIP_COLORS[min(index, len(OWNERSHIP_COLORS) - 2)],
            ring_index=index,
        )
        for index, (owner, count) in enumerate(ranked.head(top_n).items())
    ]
    others_total = int(ranked.iloc[top_n:].sum())
    if others_total > 0:
        categories.append(
            OwnershipCategory(
                label=OTHERS_LABEL,
                value=others_total,
                percentage=others_total / total * 100.0,
                color=OWNERSHIP_COLORS[-1],
                ring_index=len(categories),
            )
        )
    return OwnershipDistribution(categories=tuple(categories), total=total)


def _sparkline_periods(
    points: int,
    period: str,
    now: date | datetime,
) -> list[tuple[str, object]]:
    if period == "month":
        end = month_index(now.year, now.month)
        return [(_month_key(index), index) for index in range(end - points + 1, end + 1)]
    if period == "day":
        today = now.date() if isinstance(now, datetime) else now
        days = [today - timedelta(days=offset) for offset in range(points - 1, -1, -1)]
        return [(day.isoformat(), day) for day in days]
    raise ValueError(f"Unsupported sparkline period: {period!r}")


def sparkline_series(
    df: pd.DataFrame,
    columns: ColumnsConfig,
    metric: MetricName,
    points: int = 7,
    period: str = "month",
    now: date | datetime | None = None,
) -> SparklineSeries:
    """Per-period counts of ``metric`` over a trailing window ending at ``now``."""
    if metric not in METRIC_NAMES:
        raise ValueError(f"Unknown metric: {metric!r}")
    now = now or datetime.now()
    periods = _sparkline_periods(points, period, now)
    counts: dict[object, int] = {}
    if not df.empty:
        dated = df.loc[df[DERIVED.first_detected].notna()]
        if not dated.empty:
            selected = dated.loc[metric_masks(dated, columns)[metric]]
            if period == "month":
                month_keys = selected[DERIVED.year] * 12 + (selected[DERIVED.month] - 1)
                counts = {
                    int(key): int(value)
                    for key, value in month_keys.astype("int64").value_counts().items()
                }
            else:
                day_keys = selected[DERIVED.first_detected].dt.date
                counts = {key: int(value) for key, value in day_keys.value_counts().items()}
    return SparklineSeries(
        metric=metric,
        labels=tuple(label for label, _key in periods),
        values=tuple(counts.get(key, 0) for _label, key in periods),
    )


def timeline_series(df: pd.DataFrame, time_range: TimeRange | None = None) -> TimelineSeries:
    """Zero-filled monthly counts between the range bounds or the data's extent."""
    month_idx = _dated_month_index(df) if not df.empty else pd.Series(dtype="int64")
    time_range = time_range or TimeRange.all()
    lower = time_range.lower
    upper = time_range.upper
    if lower is None and not month_idx.empty:
        lower = int(month_idx.min())
    if upper is None and not month_idx.empty:
        upper = int(month_idx.max())
    if lower is None or upper is None or upper < lower:
        return TimelineSeries()
    counts = month_idx.loc[(month_idx >= lower) & (month_idx <= upper)].value_counts()
    buckets = []
    for index in range(lower, upper + 1):
        year, month = month_from_index(index)
        buckets.append(TimelineBucket(year=year, month=month, count=int(counts.get(index, 0))))
    return TimelineSeries(buckets=tuple(buckets))


def application_status_breakdown(
    df: pd.DataFrame,
    columns: ColumnsConfig,
    limit: int = 15,
) -> ApplicationStatusBreakdown:
    """Per-application status counts for the applications with the most records."""
    if df.empty:
        return ApplicationStatusBreakdown()
    pairs = pd.DataFrame(
        {
            "application": df[columns.application].astype(str).str.strip().replace("", UNKNOWN),
            "status": df[columns.status].astype(str).str.strip().replace("", UNKNOWN),
        }
    )
    statuses_by_application: dict[str, list[tuple[str, int]]] = {}
    pair_counts = pairs.groupby(["application", "status"], sort=False).size()
    for (application, status), count in pair_counts.items():
        statuses_by_application.setdefault(application, []).append((str(status), int(count)))
    totals = _ranked_counts(pairs["application"]).head(limit)
    rows = [
        ApplicationStatusRow(
            application=str(application),
            statuses=tuple(statuses_by_application[application]),
            total=int(total),
        )
        for application, total in totals.items()
    ]
    return ApplicationStatusBreakdown(rows=tuple(rows))


def build_aggregates(
    subset: pd.DataFrame,
    config: AppConfig,
    time_range: TimeRange | None = None,
    now: date | datetime | None = None,
) -> dict[str, ChartDataset]:
    """Every chart dataset for the current subset, keyed by chart kind."""
    columns = config.columns
    charts = config.charts
    now = now or datetime.now()
    aggregates: dict[str, ChartDataset] = {
        "severity_distribution": severity_distribution(subset),
        "monthly_trends": monthly_trends(subset, columns, months=charts.trend_months),
        "status_trends": status_trends(subset, months=charts.trend_months),
        "top_applications": top_applications(subset, columns, limit=charts.top_applications),
        "ownership_distribution": ownership_distribution(
            subset, columns, top_n=charts.ownership_top_n
        ),
        "timeline": timeline_series(subset, time_range),
        "application_status": application_status_breakdown(
            subset, columns, limit=charts.application_status_limit
        ),
    }
    for metric in METRIC_NAMES:
        aggregates[f"sparkline_{metric}"] = sparkline_series(
            subset,
            columns,
            metric,
            points=charts.sparkline_points,
            period=charts.sparkline_period,
            now=now,
        )
    return aggregates


def aggregates_to_frames(aggregates: dict[str, ChartDataset]) -> dict[str, pd.DataFrame]:
    """Flatten chart datasets into tables for export."""
    frames: dict[str, pd.DataFrame] = {}
    for name, dataset in aggregates.items():
        if isinstance(dataset, CategoryDistribution):
            frames[name] = pd.DataFrame(
                [point.to_dict() for point in dataset.points],
                columns=["label", "value", "color"],
            )
        elif isinstance(dataset, MultiSeries):
            frame = pd.DataFrame({"month": list(dataset.labels)})
            for item in dataset.series:
                frame[item.label] = list(item.values)
            frames[name] = frame
        elif isinstance(dataset, OwnershipDistribution):
            frames[name] = pd.DataFrame(
                [category.to_dict() for category in dataset.categories],
                columns=["label", "value", "percentage", "color", "ring_index"],
            )
        elif isinstance(dataset, SparklineSeries):
            frames[name] = pd.DataFrame(
                {"period": list(dataset.labels), "value": list(dataset.values)}
            )
        elif isinstance(dataset, TimelineSeries):
            frames[name] = pd.DataFrame(
                [bucket.to_dict() for bucket in dataset.buckets],
                columns=["key", "year", "month", "label", "count"],
            )
        elif isinstance(dataset, ApplicationStatusBreakdown):
            frames[name] = pd.DataFrame(
                [
                    {"application": row.application, "status": status, "count": count}
                    for row in dataset.rows
                    for status, count in row.statuses
                ],
                columns=["application", "status", "count"],
            )
    return frames
