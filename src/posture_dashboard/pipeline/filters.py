from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

import pandas as pd

from posture_dashboard.config import ColumnsConfig

FilterAxis = Literal["owner", "application", "status"]
FILTER_AXES: tuple[FilterAxis, ...] = ("owner", "application", "status")


@dataclass(frozen=True, slots=True)
class FilterState:
    owner: str | None = None
    application: str | None = None
    status: str | None = None

    def active(self) -> dict[str, str]:
        return {
            axis: value
            for axis in FILTER_AXES
            if (value := getattr(self, axis)) is not None
        }


def axis_column(axis: str, columns: ColumnsConfig) -> str:
    if axis == "owner":
        return columns.owner
    if axis == "application":
        return columns.application
    if axis == "status":
        return columns.status
    raise ValueError(f"Unknown filter axis: {axis!r}")


def apply_filters(df: pd.DataFrame, state: FilterState, columns: ColumnsConfig) -> pd.DataFrame:
    """AND-combine every active equality predicate over ``df`` in one pass."""
    active = state.active()
    if not active or df.empty:
        return df
    mask = pd.Series(True, index=df.index)
    for axis, value in active.items():
        mask &= df[axis_column(axis, columns)].astype(str) == value
    return df.loc[mask]


class FilterEngine:
    """Current subset of a base record set under categorical equality filters.

    Setting a filter or replacing the base set recomputes the subset wholesale.
    Option lists come from the base set given at construction and are not
    refreshed by ``set_base``.
    """

    def __init__(self, base: pd.DataFrame, columns: ColumnsConfig) -> None:
        self.columns = columns
        self._base = base
        self._state = FilterState()
        self._options = {axis: self._unique(base, axis) for axis in FILTER_AXES}
        self._subset = base

    def _unique(self, frame: pd.DataFrame, axis: str) -> list[str]:
        column = axis_column(axis, self.columns)
        if frame.empty or column not in frame.columns:
            return []
        values = frame[column].astype(str).str.strip()
        return sorted(value for value in values.unique() if value)

    def _recompute(self) -> None:
        self._subset = apply_filters(self._base, self._state, self.columns)

    @property
    def base(self) -> pd.DataFrame:
        return self._base

    @property
    def subset(self) -> pd.DataFrame:
        return self._subset

    @property
    def filters(self) -> FilterState:
        return self._state

    def set_filter(self, axis: FilterAxis, value: str | None) -> pd.DataFrame:
        axis_column(axis, self.columns)
        self._state = replace(self._state, **{axis: value or None})
        self._recompute()
        return self._subset

    def reset(self) -> pd.DataFrame:
        self._state = FilterState()
        self._recompute()
        return self._subset

    def set_base(self, base: pd.DataFrame) -> pd.DataFrame:
        self._base = base
        self._recompute()
        return self._subset

    def unique_values(self, axis: FilterAxis) -> list[str]:
        return list(self._options[axis])
