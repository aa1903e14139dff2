from __future__ import annotations

import json
import math
from datetime import datetime, timezone
from pathlib import Path
from time import perf_counter
from typing import Any

import pandas as pd
from jinja2 import Environment, FileSystemLoader, select_autoescape

from posture_dashboard.pipeline.dashboard import DashboardView
from posture_dashboard.pipeline.metrics import (
    METRIC_NAMES,
    delta_tone,
    format_delta,
    format_number,
)
from posture_dashboard.pipeline.time_range import QUICK_RANGES
from posture_dashboard.viz.svg import render_svg
from posture_dashboard.viz.theme import chart_colors

METRIC_TITLES = {
    "total": "Total Vulnerabilities",
    "active": "Active",
    "fixed": "Fixed",
    "critical": "Critical",
}
CHART_PANELS = (
    ("severity-bar-chart", "Severity Distribution"),
    ("severity-pie-chart", "Severity Share"),
    ("trends-line-chart", "Monthly Trends"),
    ("timeline-chart", "Detection Timeline"),
    ("application-status-chart", "Status by Application"),
    ("all-owners-radial-chart", "Ownership"),
)
FILTER_LABELS = {"owner": "Owner", "application": "Application", "status": "Status"}


def _template_env() -> Environment:
    templates_path = Path(__file__).resolve().parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(templates_path)),
        autoescape=select_autoescape(enabled_extensions=("html", "xml", "html.j2")),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _serialize_value(value: Any) -> Any:
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    if value is None:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if hasattr(value, "item"):
        return value.item()
    return value


def _json_safe(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    if hasattr(value, "to_dict"):
        return _json_safe(value.to_dict())
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    if hasattr(value, "item"):
        value = value.item()
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, (int, str, bool)) or value is None:
        return value
    return str(value)


def _table_preview(df: pd.DataFrame, max_rows: int = 10) -> list[dict[str, Any]]:
    limited = df.head(max_rows).copy()
    for column in limited.columns:
        limited[column] = limited[column].map(_serialize_value)
    return _json_safe(limited.to_dict(orient="records"))


def _metric_cards(view: DashboardView) -> list[dict[str, Any]]:
    cards = []
    for name in METRIC_NAMES:
        metric = view.metrics[name]
        sparkline = view.frames.get(f"sparkline-{name}")
        cards.append(
            {
                "name": name,
                "title": METRIC_TITLES[name],
                "value": format_number(metric.value),
                "delta": format_delta(metric.delta),
                "tone": delta_tone(name, metric.delta),
                "sparkline": render_svg(sparkline) if sparkline is not None else None,
            }
        )
    return cards


def _chart_panels(view: DashboardView) -> list[dict[str, Any]]:
    return [
        {"surface_id": surface_id, "title": title, "svg": render_svg(view.frames[surface_id])}
        for surface_id, title in CHART_PANELS
        if surface_id in view.frames
    ]


def _filter_controls(view: DashboardView) -> list[dict[str, Any]]:
    active = view.filters.active()
    return [
        {
            "axis": axis,
            "label": FILTER_LABELS[axis],
            "options": options,
            "selected": active.get(axis),
        }
        for axis, options in view.filter_options.items()
    ]


def _write_runtime(out_dir: Path, runtime_metrics: dict[str, Any]) -> Path:
    runtime_path = out_dir / "artifacts" / "report_runtime.json"
    runtime_path.parent.mkdir(parents=True, exist_ok=True)
    runtime_path.write_text(
        json.dumps(_json_safe(runtime_metrics), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    return runtime_path


def render_dashboard(
    view: DashboardView,
    out_dir: Path,
    *,
    preview_rows: int = 10,
) -> Path:
    report_started = perf_counter()
    generated_at = datetime.now(timezone.utc).isoformat()
    template = _template_env().get_template("dashboard.html.j2")

    charts_started = perf_counter()
    metric_cards = _metric_cards(view)
    chart_panels = _chart_panels(view)
    chart_render_ms = round((perf_counter() - charts_started) * 1000.0, 3)

    template_started = perf_counter()
    rendered = template.render(
        generated_at=generated_at,
        data_as_of=view.generated_at,
        theme=view.theme,
        palette=chart_colors(view.theme),
        sidebar_collapsed=view.sidebar_collapsed,
        navigation=view.navigation,
        metric_cards=metric_cards,
        chart_panels=chart_panels,
        filter_controls=_filter_controls(view),
        time_range_label=view.time_range.label(),
        quick_ranges=[str(months) for months in QUICK_RANGES],
        table_columns=list(view.table.columns),
        table_rows=_table_preview(view.table, max_rows=preview_rows),
        table_total=len(view.table),
        record_count=view.record_count,
        aggregates_json=json.dumps(_json_safe(view.aggregates), ensure_ascii=False).replace(
            "</", "<\\/"
        ),
    )
    template_render_ms = round((perf_counter() - template_started) * 1000.0, 3)

    report_path = out_dir / "dashboard.html"
    report_path.parent.mkdir(parents=True, exist_ok=True)
    write_started = perf_counter()
    report_path.write_text(rendered, encoding="utf-8")
    report_write_ms = round((perf_counter() - write_started) * 1000.0, 3)

    _write_runtime(
        out_dir,
        {
            "generated_at": generated_at,
            "chart_render_ms": chart_render_ms,
            "template_render_ms": template_render_ms,
            "report_write_ms": report_write_ms,
            "report_total_ms": round((perf_counter() - report_started) * 1000.0, 3),
            "report_html_bytes": int(report_path.stat().st_size),
            "chart_count": len(chart_panels),
        },
    )
    return report_path


def render_error_page(message: str, out_dir: Path, *, source: str | None = None) -> Path:
    """Single error panel shown in place of the dashboard when loading fails."""
    template = _template_env().get_template("error.html.j2")
    rendered = template.render(
        generated_at=datetime.now(timezone.utc).isoformat(),
        message=message,
        source=source,
    )
    report_path = out_dir / "dashboard.html"
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(rendered, encoding="utf-8")
    return report_path
