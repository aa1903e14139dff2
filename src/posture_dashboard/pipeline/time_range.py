from __future__ import annotations

import calendar
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal

import pandas as pd

from posture_dashboard.io.schema import DerivedColumns

LOGGER = logging.getLogger(__name__)

QuickRange = Literal[3, 6, 12, "all"]
QUICK_RANGES: tuple[QuickRange, ...] = (3, 6, 12, "all")


def month_index(year: int, month: int) -> int:
    return year * 12 + (month - 1)


def month_from_index(index: int) -> tuple[int, int]:
    return index // 12, index % 12 + 1


def month_label(year: int, month: int) -> str:
    return f"{calendar.month_abbr[month]} {year}"


@dataclass(frozen=True, slots=True)
class TimeRange:
    """Inclusive month window on the first-detected date.

    A bound applies only when both its year and month are set; a range with
    no bounds at all means "all time".
    """

    from_year: int | None = None
    from_month: int | None = None
    to_year: int | None = None
    to_month: int | None = None

    @classmethod
    def all(cls) -> TimeRange:
        return cls()

    @property
    def lower(self) -> int | None:
        if self.from_year is None or self.from_month is None:
            return None
        return month_index(self.from_year, self.from_month)

    @property
    def upper(self) -> int | None:
        if self.to_year is None or self.to_month is None:
            return None
        return month_index(self.to_year, self.to_month)

    @property
    def is_all(self) -> bool:
        return self.lower is None and self.upper is None

    @property
    def is_valid(self) -> bool:
        for month in (self.from_month, self.to_month):
            if month is not None and not 1 <= month <= 12:
                return False
        lower, upper = self.lower, self.upper
        if lower is not None and upper is not None:
            return upper >= lower
        return True

    def label(self) -> str:
        if self.is_all:
            return "All time"
        start = month_label(self.from_year, self.from_month) if self.lower is not None else "…"
        end = month_label(self.to_year, self.to_month) if self.upper is not None else "…"
        return f"{start} - {end}"

    def to_dict(self) -> dict[str, int | bool | None]:
        return {
            "from_year": self.from_year,
            "from_month": self.from_month,
            "to_year": self.to_year,
            "to_month": self.to_month,
            "is_all": self.is_all,
        }


def quick_range(months: QuickRange, today: date | datetime) -> TimeRange:
    """Trailing window of ``months`` calendar months ending at ``today``'s month."""
    if months == "all":
        return TimeRange.all()
    if months not in QUICK_RANGES:
        raise ValueError(f"Unsupported quick range: {months!r}")
    end = month_index(today.year, today.month)
    from_year, from_month = month_from_index(end - int(months) + 1)
    return TimeRange(
        from_year=from_year,
        from_month=from_month,
        to_year=today.year,
        to_month=today.month,
    )


def filter_by_time_range(df: pd.DataFrame, time_range: TimeRange) -> pd.DataFrame:
    """Keep rows whose first-detected month lies inside the range.

    Rows without a parsable date are dropped unless the range is all time.
    """
    if time_range.is_all or df.empty:
        return df
    derived = DerivedColumns()
    months = df[derived.year] * 12 + (df[derived.month] - 1)
    mask = months.notna()
    if time_range.lower is not None:
        mask &= months >= time_range.lower
    if time_range.upper is not None:
        mask &= months <= time_range.upper
    return df.loc[mask.fillna(False).astype(bool)]


class TimeRangeSelector:
    """Holds the active time range and reports accepted changes."""

    def __init__(self, on_change: Callable[[TimeRange], None] | None = None) -> None:
        self._on_change = on_change
        self._current = TimeRange.all()

    @property
    def current(self) -> TimeRange:
        return self._current

    def set_range(self, time_range: TimeRange) -> bool:
        if not time_range.is_valid:
            LOGGER.warning(
                "Rejected time range %s; keeping %s",
                time_range.to_dict(),
                self._current.label(),
            )
            return False
        self._current = time_range
        if self._on_change is not None:
            self._on_change(time_range)
        return True

    def set_quick_range(self, months: QuickRange, today: date | datetime) -> bool:
        return self.set_range(quick_range(months, today))

    def clear(self) -> bool:
        return self.set_range(TimeRange.all())
