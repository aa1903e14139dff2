from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path

from posture_dashboard.config import AppConfig
from posture_dashboard.features.aggregates import aggregates_to_frames
from posture_dashboard.io.write import write_summary, write_tables
from posture_dashboard.paths import OutputPaths, build_output_paths
from posture_dashboard.pipeline.dashboard import Dashboard, initialize_dashboard
from posture_dashboard.pipeline.filters import FilterState
from posture_dashboard.pipeline.time_range import TimeRange
from posture_dashboard.report.render import render_dashboard
from posture_dashboard.viz.figures import plot_frames

LOGGER = logging.getLogger(__name__)


def apply_selection(
    dashboard: Dashboard,
    *,
    filters: FilterState | None = None,
    time_range: TimeRange | None = None,
) -> None:
    """Apply a time range first, then categorical filters."""
    if time_range is not None and not dashboard.set_time_range(time_range):
        raise ValueError(f"Invalid time range: {time_range.to_dict()}")
    for axis, value in (filters or FilterState()).active().items():
        dashboard.set_filter(axis, value)


def export_aggregates(dashboard: Dashboard, paths: OutputPaths, fmt: str = "csv") -> list[Path]:
    tables = aggregates_to_frames(dashboard.aggregates)
    written = write_tables(tables, paths.tables, fmt=fmt)
    written.append(
        write_summary(
            {
                "metrics": {name: metric.to_dict() for name, metric in dashboard.metrics.items()},
                "filters": dashboard.filters.filters.active(),
                "time_range": dashboard.time_range.current.to_dict(),
                "record_count": len(dashboard.records),
                "subset_count": len(dashboard.subset),
            },
            paths.artifacts / "metrics.json",
        )
    )
    written.append(
        write_summary(
            {name: dataset.to_dict() for name, dataset in dashboard.aggregates.items()},
            paths.artifacts / "aggregates.json",
        )
    )
    return written


def export_figures(dashboard: Dashboard, paths: OutputPaths, fmt: str = "png") -> list[Path]:
    return plot_frames(dashboard.frames(), paths.figures, fmt=fmt)


def run_all(
    data_path: Path | str | None,
    out_dir: Path,
    config: AppConfig,
    *,
    now: date | datetime | None = None,
    filters: FilterState | None = None,
    time_range: TimeRange | None = None,
    figures: bool = True,
) -> Path:
    paths = build_output_paths(out_dir)
    dashboard = initialize_dashboard(config, data_path=data_path, now=now)
    apply_selection(dashboard, filters=filters, time_range=time_range)
    exported = export_aggregates(dashboard, paths, fmt=config.outputs.tables_format)
    if figures:
        exported += export_figures(dashboard, paths, fmt=config.outputs.figures_format)
    LOGGER.info("Exported %d artifacts to %s", len(exported), paths.root)
    return render_dashboard(
        dashboard.view(),
        paths.root,
        preview_rows=config.table.preview_rows,
    )
