from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Literal

import pandas as pd

from posture_dashboard.config import AppConfig
from posture_dashboard.features.aggregates import build_aggregates
from posture_dashboard.features.datasets import ChartDataset
from posture_dashboard.io.preferences import PreferenceStore
from posture_dashboard.io.read import load_navigation_fragment, load_records
from posture_dashboard.pipeline.filters import FILTER_AXES, FilterAxis, FilterEngine, FilterState
from posture_dashboard.pipeline.metrics import METRIC_NAMES, Metric, MetricName, compute_metrics
from posture_dashboard.pipeline.time_range import (
    QuickRange,
    TimeRange,
    TimeRangeSelector,
    filter_by_time_range,
)
from posture_dashboard.preprocess.normalize import normalize_records
from posture_dashboard.viz.bar import BarChart
from posture_dashboard.viz.base import ChartRenderer
from posture_dashboard.viz.commands import Frame
from posture_dashboard.viz.donut import DonutChart
from posture_dashboard.viz.line import LineChart
from posture_dashboard.viz.radial import OwnershipRadialChart
from posture_dashboard.viz.scheduling import Animation, Debouncer, FrameScheduler
from posture_dashboard.viz.sparkline import SparklineChart
from posture_dashboard.viz.stacked import ApplicationStatusChart
from posture_dashboard.viz.theme import Theme, toggled
from posture_dashboard.viz.timeline import TimelineChart

LOGGER = logging.getLogger(__name__)

Stage = Literal["metrics", "table", "charts", "sparklines"]
STAGES: tuple[Stage, ...] = ("metrics", "table", "charts", "sparklines")

CHART_BINDINGS: dict[str, tuple[type[ChartRenderer], str]] = {
    "severity-bar-chart": (BarChart, "severity_distribution"),
    "severity-pie-chart": (DonutChart, "severity_distribution"),
    "trends-line-chart": (LineChart, "monthly_trends"),
    "timeline-chart": (TimelineChart, "timeline"),
    "application-status-chart": (ApplicationStatusChart, "application_status"),
    "all-owners-radial-chart": (OwnershipRadialChart, "ownership_distribution"),
}
SPARKLINE_BINDINGS: dict[str, tuple[type[ChartRenderer], str]] = {
    f"sparkline-{metric}": (SparklineChart, f"sparkline_{metric}") for metric in METRIC_NAMES
}


def visible_table(df: pd.DataFrame, visible_columns: list[str]) -> pd.DataFrame:
    """Table rows restricted to the configured columns that exist in the data."""
    present = [column for column in visible_columns if column in df.columns]
    return df.loc[:, present].copy()


@dataclass(frozen=True)
class DashboardView:
    metrics: dict[MetricName, Metric]
    table: pd.DataFrame
    aggregates: dict[str, ChartDataset]
    frames: dict[str, Frame]
    filters: FilterState
    filter_options: dict[str, list[str]]
    time_range: TimeRange
    theme: Theme
    sidebar_collapsed: bool = False
    navigation: str | None = None
    record_count: int = 0
    generated_at: str = ""


class Dashboard:
    """Application state for one loaded record set.

    Every filter or time-range change recomputes the current subset and then
    refreshes metrics, table, charts and sparklines, always in that order.
    """

    def __init__(
        self,
        records: pd.DataFrame,
        config: AppConfig,
        *,
        now: date | datetime | None = None,
        preferences: PreferenceStore | None = None,
        navigation: str | None = None,
    ) -> None:
        self.config = config
        self.now = now
        self.preferences = preferences
        self.navigation = navigation
        self.records = normalize_records(records, columns=config.columns)
        self.theme: Theme = (
            preferences.theme(default=config.render.theme) if preferences else config.render.theme
        )
        self.filters = FilterEngine(self.records, columns=config.columns)
        self.time_range = TimeRangeSelector(on_change=self._apply_time_range)
        self._listeners: dict[Stage, list[Callable[[Dashboard], None]]] = {
            stage: [] for stage in STAGES
        }
        self.renderers = self._bind_renderers(CHART_BINDINGS)
        self.sparklines = self._bind_renderers(SPARKLINE_BINDINGS)
        self._pending_sizes: dict[str, tuple[float, float]] = {}
        self.metrics: dict[MetricName, Metric] = {}
        self.table = pd.DataFrame()
        self.aggregates: dict[str, ChartDataset] = {}
        self.refresh()

    def _bind_renderers(
        self,
        bindings: dict[str, tuple[type[ChartRenderer], str]],
    ) -> dict[str, ChartRenderer]:
        render = self.config.render
        renderers: dict[str, ChartRenderer] = {}
        for surface_id, (renderer_cls, _key) in bindings.items():
            surface = render.surfaces.get(surface_id)
            if surface is None:
                LOGGER.warning("Rendering surface %s not found; chart skipped", surface_id)
                continue
            renderers[surface_id] = renderer_cls(
                surface_id,
                surface.width,
                surface.height,
                theme=self.theme,
                device_pixel_ratio=render.device_pixel_ratio,
            )
        return renderers

    def current_time(self) -> date | datetime:
        """The pinned ``now`` when one was given, otherwise the wall clock."""
        return self.now if self.now is not None else datetime.now()

    @property
    def subset(self) -> pd.DataFrame:
        return self.filters.subset

    def subscribe(self, stage: Stage, callback: Callable[[Dashboard], None]) -> None:
        if stage not in self._listeners:
            raise ValueError(f"Unknown update stage: {stage!r}")
        self._listeners[stage].append(callback)

    def _notify(self, stage: Stage) -> None:
        for callback in self._listeners[stage]:
            callback(self)

    def refresh(self) -> None:
        subset = self.subset
        self.metrics = self.get_metrics(subset)
        self._notify("metrics")

        self.table = visible_table(subset, self.config.table.visible_columns)
        self._notify("table")

        self.aggregates = self.get_aggregates(subset)
        for surface_id, renderer in self.renderers.items():
            renderer.set_data(self.aggregates[CHART_BINDINGS[surface_id][1]])
        self._notify("charts")

        for surface_id, renderer in self.sparklines.items():
            renderer.set_data(self.aggregates[SPARKLINE_BINDINGS[surface_id][1]])
        self._notify("sparklines")

    def get_metrics(self, subset: pd.DataFrame | None = None) -> dict[MetricName, Metric]:
        return compute_metrics(
            self.subset if subset is None else subset,
            reference=self.records,
            columns=self.config.columns,
            now=self.current_time(),
        )

    def get_aggregates(self, subset: pd.DataFrame | None = None) -> dict[str, ChartDataset]:
        return build_aggregates(
            self.subset if subset is None else subset,
            self.config,
            time_range=self.time_range.current,
            now=self.current_time(),
        )

    def set_filter(self, axis: FilterAxis, value: str | None) -> pd.DataFrame:
        self.filters.set_filter(axis, value)
        self.refresh()
        return self.subset

    def reset_filters(self) -> pd.DataFrame:
        self.filters.reset()
        self.refresh()
        return self.subset

    def _apply_time_range(self, time_range: TimeRange) -> None:
        self.filters.set_base(filter_by_time_range(self.records, time_range))
        self.refresh()

    def set_time_range(self, time_range: TimeRange) -> bool:
        return self.time_range.set_range(time_range)

    def set_quick_range(self, months: QuickRange) -> bool:
        return self.time_range.set_quick_range(months, today=self.current_time())

    def clear_time_range(self) -> bool:
        return self.time_range.clear()

    def toggle_theme(self) -> Theme:
        self.theme = toggled(self.theme)
        if self.preferences is not None:
            self.preferences.set_theme(self.theme)
        for renderer in self.all_renderers():
            renderer.render(theme=self.theme)
        return self.theme

    def toggle_sidebar(self) -> bool:
        collapsed = not self.sidebar_collapsed
        if self.preferences is not None:
            self.preferences.set_sidebar_collapsed(collapsed)
        return collapsed

    @property
    def sidebar_collapsed(self) -> bool:
        return self.preferences.sidebar_collapsed() if self.preferences else False

    def all_renderers(self) -> list[ChartRenderer]:
        return [*self.renderers.values(), *self.sparklines.values()]

    def frames(self) -> dict[str, Frame]:
        return {
            renderer.surface_id: renderer.last_frame
            for renderer in self.all_renderers()
            if renderer.last_frame is not None
        }

    def animate(self, scheduler: FrameScheduler) -> list[Animation]:
        duration = self.config.render.animation_ms
        return [renderer.animate(scheduler, duration) for renderer in self.all_renderers()]

    def resize_handler(self, scheduler: FrameScheduler) -> Callable[[str, float, float], None]:
        """Record surface size changes and redraw once the burst has settled."""

        def apply() -> None:
            pending, self._pending_sizes = self._pending_sizes, {}
            for surface_id, (width, height) in pending.items():
                renderer = self.renderer(surface_id)
                if renderer is None:
                    continue
                renderer.width, renderer.height = width, height
                renderer.render()

        debouncer = Debouncer(scheduler, self.config.render.resize_debounce_ms, apply)

        def on_resize(surface_id: str, width: float, height: float) -> None:
            self._pending_sizes[surface_id] = (width, height)
            debouncer()

        return on_resize

    def renderer(self, surface_id: str) -> ChartRenderer | None:
        return self.renderers.get(surface_id) or self.sparklines.get(surface_id)

    def view(self) -> DashboardView:
        return DashboardView(
            metrics=self.metrics,
            table=self.table,
            aggregates=self.aggregates,
            frames=self.frames(),
            filters=self.filters.filters,
            filter_options={axis: self.filters.unique_values(axis) for axis in FILTER_AXES},
            time_range=self.time_range.current,
            theme=self.theme,
            sidebar_collapsed=self.sidebar_collapsed,
            navigation=self.navigation,
            record_count=len(self.records),
            generated_at=self.current_time().isoformat(),
        )


def initialize_dashboard(
    config: AppConfig,
    *,
    data_path: str | Path | None = None,
    now: date | datetime | None = None,
) -> Dashboard:
    """Load the navigation fragment (optional) and the record set (required).

    Raises ``DataLoadError`` when the record set cannot be fetched.
    """
    navigation = load_navigation_fragment(
        config.input.navigation_path,
        encoding=config.input.encoding,
    )
    records = load_records(data_path, config)
    return Dashboard(
        records,
        config,
        now=now,
        preferences=PreferenceStore(config.preferences.path),
        navigation=navigation,
    )
