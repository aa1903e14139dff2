from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Literal, Union

from posture_dashboard.pipeline.time_range import month_label

CategoryKind = Literal["severity_distribution", "top_applications"]
SeriesKind = Literal["monthly_trends", "status_trends"]

ALLOWED_CATEGORY_KINDS = frozenset({"severity_distribution", "top_applications"})
ALLOWED_SERIES_KINDS = frozenset({"monthly_trends", "status_trends"})


def _ensure_count(name: str, value: int) -> None:
    if value < 0:
        raise ValueError(f"{name} must be a non-negative count, got {value!r}.")


@dataclass(slots=True, frozen=True)
class CategoryPoint:
    label: str
    value: int
    color: str | None = None

    def __post_init__(self) -> None:
        _ensure_count(f"value for {self.label!r}", self.value)

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "value": self.value, "color": self.color}


@dataclass(slots=True, frozen=True)
class CategoryDistribution:
    kind: CategoryKind
    points: tuple[CategoryPoint, ...] = ()

    def __post_init__(self) -> None:
        if self.kind not in ALLOWED_CATEGORY_KINDS:
            raise ValueError(f"Unsupported category dataset kind: {self.kind!r}.")

    @property
    def labels(self) -> list[str]:
        return [point.label for point in self.points]

    @property
    def values(self) -> list[int]:
        return [point.value for point in self.points]

    @property
    def total(self) -> int:
        return sum(self.values)

    @property
    def is_empty(self) -> bool:
        return not self.points

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "points": [point.to_dict() for point in self.points]}


@dataclass(slots=True, frozen=True)
class Series:
    label: str
    values: tuple[int, ...]
    color: str

    def __post_init__(self) -> None:
        for value in self.values:
            _ensure_count(f"{self.label} value", value)

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "values": list(self.values), "color": self.color}


@dataclass(slots=True, frozen=True)
class MultiSeries:
    """Parallel numeric series sharing one month axis (labels are ``YYYY-MM``)."""

    kind: SeriesKind
    labels: tuple[str, ...] = ()
    series: tuple[Series, ...] = ()

    def __post_init__(self) -> None:
        if self.kind not in ALLOWED_SERIES_KINDS:
            raise ValueError(f"Unsupported series dataset kind: {self.kind!r}.")
        for item in self.series:
            if len(item.values) != len(self.labels):
                raise ValueError(
                    f"Series {item.label!r} has {len(item.values)} values "
                    f"for {len(self.labels)} labels."
                )

    @property
    def is_empty(self) -> bool:
        return not self.labels

    @property
    def max_value(self) -> int:
        return max((max(item.values, default=0) for item in self.series), default=0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "labels": list(self.labels),
            "series": [item.to_dict() for item in self.series],
        }


@dataclass(slots=True, frozen=True)
class OwnershipCategory:
    label: str
    value: int
    percentage: float
    color: str
    ring_index: int

    def __post_init__(self) -> None:
        _ensure_count(f"value for {self.label!r}", self.value)
        if not math.isfinite(self.percentage) or not 0.0 <= self.percentage <= 100.0:
            raise ValueError(f"percentage must be in [0, 100], got {self.percentage!r}.")

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "value": self.value,
            "percentage": self.percentage,
            "color": self.color,
            "ring_index": self.ring_index,
        }


@dataclass(slots=True, frozen=True)
class OwnershipDistribution:
    categories: tuple[OwnershipCategory, ...] = ()
    total: int = 0
    kind: Literal["ownership_distribution"] = "ownership_distribution"

    def __post_init__(self) -> None:
        _ensure_count("total", self.total)
        counted = sum(category.value for category in self.categories)
        if counted > self.total:
            raise ValueError(f"Category counts ({counted}) exceed total ({self.total}).")

    @property
    def is_empty(self) -> bool:
        return not self.categories or self.total == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "total": self.total,
            "categories": [category.to_dict() for category in self.categories],
        }


@dataclass(slots=True, frozen=True)
class SparklineSeries:
    metric: str
    labels: tuple[str, ...] = ()
    values: tuple[int, ...] = ()
    kind: Literal["sparkline"] = "sparkline"

    def __post_init__(self) -> None:
        if len(self.labels) != len(self.values):
            raise ValueError("Sparkline labels and values must have the same length.")
        for value in self.values:
            _ensure_count(f"{self.metric} value", value)

    @property
    def is_empty(self) -> bool:
        return not self.values

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "metric": self.metric,
            "labels": list(self.labels),
            "values": list(self.values),
        }


@dataclass(slots=True, frozen=True)
class TimelineBucket:
    year: int
    month: int
    count: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be in [1, 12], got {self.month!r}.")
        _ensure_count("count", self.count)

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def label(self) -> str:
        return month_label(self.year, self.month)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "year": self.year,
            "month": self.month,
            "label": self.label,
            "count": self.count,
        }


@dataclass(slots=True, frozen=True)
class TimelineSeries:
    buckets: tuple[TimelineBucket, ...] = ()
    kind: Literal["timeline"] = "timeline"

    def __post_init__(self) -> None:
        keys = [bucket.key for bucket in self.buckets]
        if keys != sorted(keys):
            raise ValueError("Timeline buckets must be in ascending month order.")

    @property
    def is_empty(self) -> bool:
        return not self.buckets

    @property
    def max_count(self) -> int:
        return max((bucket.count for bucket in self.buckets), default=0)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "buckets": [bucket.to_dict() for bucket in self.buckets]}


@dataclass(slots=True, frozen=True)
class ApplicationStatusRow:
    application: str
    statuses: tuple[tuple[str, int], ...] = ()
    total: int = 0

    def __post_init__(self) -> None:
        counted = 0
        for status, count in self.statuses:
            _ensure_count(f"{self.application}/{status}", count)
            counted += count
        if counted != self.total:
            raise ValueError(
                f"Status counts for {self.application!r} sum to {counted}, expected {self.total}."
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "application": self.application,
            "statuses": [{"status": status, "count": count} for status, count in self.statuses],
            "total": self.total,
        }


@dataclass(slots=True, frozen=True)
class ApplicationStatusBreakdown:
    rows: tuple[ApplicationStatusRow, ...] = ()
    kind: Literal["application_status"] = "application_status"

    def __post_init__(self) -> None:
        totals = [row.total for row in self.rows]
        if totals != sorted(totals, reverse=True):
            raise ValueError("Application rows must be sorted by total, descending.")

    @property
    def is_empty(self) -> bool:
        return not self.rows

    @property
    def max_total(self) -> int:
        return max((row.total for row in self.rows), default=0)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "rows": [row.to_dict() for row in self.rows]}


ChartDataset = Union[
    CategoryDistribution,
    MultiSeries,
    OwnershipDistribution,
    SparklineSeries,
    TimelineSeries,
    ApplicationStatusBreakdown,
]
