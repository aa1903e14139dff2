from __future__ import annotations

import json
import re
from datetime import datetime
from pathlib import Path

import typer

from posture_dashboard.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from posture_dashboard.io.preferences import PreferenceStore
from posture_dashboard.io.read import DataLoadError
from posture_dashboard.logging import configure_logging
from posture_dashboard.paths import build_output_paths
from posture_dashboard.pipeline.dashboard import Dashboard, initialize_dashboard
from posture_dashboard.pipeline.filters import FilterState
from posture_dashboard.pipeline.metrics import METRIC_NAMES, format_delta, format_number
from posture_dashboard.pipeline.run_all import (
    apply_selection,
    export_aggregates,
    export_figures,
    run_all,
)
from posture_dashboard.pipeline.time_range import TimeRange, quick_range
from posture_dashboard.report.render import render_dashboard, render_error_page
from posture_dashboard.viz.theme import toggled

app = typer.Typer(no_args_is_help=True, add_completion=False)

MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})$")


def _load_app_config(config_path: Path) -> AppConfig:
    return load_config(config_path)


def _parse_month(value: str | None, option: str) -> tuple[int | None, int | None]:
    if not value:
        return None, None
    match = MONTH_RE.match(value.strip())
    if not match or not 1 <= int(match.group(2)) <= 12:
        raise typer.BadParameter(f"{option} must look like YYYY-MM, got {value!r}.")
    return int(match.group(1)), int(match.group(2))


def _time_range(
    from_month: str | None,
    to_month: str | None,
    quick: str | None,
) -> TimeRange | None:
    if quick:
        if from_month or to_month:
            raise typer.BadParameter("--quick-range cannot be combined with --from/--to.")
        if quick == "all":
            return TimeRange.all()
        if quick not in ("3", "6", "12"):
            raise typer.BadParameter("--quick-range must be one of 3, 6, 12 or all.")
        return quick_range(int(quick), today=datetime.now())
    if not from_month and not to_month:
        return None
    from_year, from_mon = _parse_month(from_month, "--from")
    to_year, to_mon = _parse_month(to_month, "--to")
    time_range = TimeRange(
        from_year=from_year,
        from_month=from_mon,
        to_year=to_year,
        to_month=to_mon,
    )
    if not time_range.is_valid:
        raise typer.BadParameter("--to must not be earlier than --from.")
    return time_range


def _open_dashboard(
    cfg: AppConfig,
    *,
    data: str | None,
    out: Path,
    owner: str | None,
    application: str | None,
    status: str | None,
    time_range: TimeRange | None,
) -> Dashboard:
    try:
        dashboard = initialize_dashboard(cfg, data_path=data)
    except DataLoadError as exc:
        error_page = render_error_page(str(exc), build_output_paths(out).root, source=exc.source)
        typer.echo(f"Error loading dashboard: {exc}", err=True)
        typer.echo(f"Error page: {error_page}", err=True)
        raise typer.Exit(code=1) from exc
    apply_selection(
        dashboard,
        filters=FilterState(owner=owner, application=application, status=status),
        time_range=time_range,
    )
    return dashboard


DATA_OPTION = typer.Option(None, help="Data file path or URL; defaults to input.data_path.")
OWNER_OPTION = typer.Option(None, help="Only records with this owner.")
APPLICATION_OPTION = typer.Option(None, help="Only records for this application.")
STATUS_OPTION = typer.Option(None, help="Only records with this status.")
FROM_OPTION = typer.Option(None, "--from", help="First month (YYYY-MM) of the time range.")
TO_OPTION = typer.Option(None, "--to", help="Last month (YYYY-MM) of the time range.")
QUICK_OPTION = typer.Option(None, "--quick-range", help="Trailing 3, 6 or 12 months, or all.")


@app.command()
def render(
    data: str | None = DATA_OPTION,
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    owner: str | None = OWNER_OPTION,
    application: str | None = APPLICATION_OPTION,
    status: str | None = STATUS_OPTION,
    from_month: str | None = FROM_OPTION,
    to_month: str | None = TO_OPTION,
    quick: str | None = QUICK_OPTION,
) -> None:
    """Render the dashboard HTML page."""
    configure_logging()
    cfg = _load_app_config(config)
    dashboard = _open_dashboard(
        cfg,
        data=data,
        out=out,
        owner=owner,
        application=application,
        status=status,
        time_range=_time_range(from_month, to_month, quick),
    )
    paths = build_output_paths(out)
    report_path = render_dashboard(
        dashboard.view(),
        paths.root,
        preview_rows=cfg.table.preview_rows,
    )
    typer.echo(f"Dashboard written: {report_path}")


@app.command()
def metrics(
    data: str | None = DATA_OPTION,
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    owner: str | None = OWNER_OPTION,
    application: str | None = APPLICATION_OPTION,
    status: str | None = STATUS_OPTION,
    from_month: str | None = FROM_OPTION,
    to_month: str | None = TO_OPTION,
    quick: str | None = QUICK_OPTION,
    as_json: bool = typer.Option(False, "--json", help="Print metrics as JSON."),
) -> None:
    """Print the four headline metrics for the current selection."""
    configure_logging()
    cfg = _load_app_config(config)
    dashboard = _open_dashboard(
        cfg,
        data=data,
        out=out,
        owner=owner,
        application=application,
        status=status,
        time_range=_time_range(from_month, to_month, quick),
    )
    if as_json:
        payload = {name: metric.to_dict() for name, metric in dashboard.metrics.items()}
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return
    for name in METRIC_NAMES:
        metric = dashboard.metrics[name]
        typer.echo(f"{name}: {format_number(metric.value)} ({format_delta(metric.delta).strip()})")


@app.command()
def aggregates(
    data: str | None = DATA_OPTION,
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    owner: str | None = OWNER_OPTION,
    application: str | None = APPLICATION_OPTION,
    status: str | None = STATUS_OPTION,
    from_month: str | None = FROM_OPTION,
    to_month: str | None = TO_OPTION,
    quick: str | None = QUICK_OPTION,
) -> None:
    """Export chart datasets as tables plus JSON summaries."""
    configure_logging()
    cfg = _load_app_config(config)
    dashboard = _open_dashboard(
        cfg,
        data=data,
        out=out,
        owner=owner,
        application=application,
        status=status,
        time_range=_time_range(from_month, to_month, quick),
    )
    written = export_aggregates(dashboard, build_output_paths(out), fmt=cfg.outputs.tables_format)
    typer.echo(f"Aggregates exported: {len(written)} files")


@app.command()
def figures(
    data: str | None = DATA_OPTION,
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    owner: str | None = OWNER_OPTION,
    application: str | None = APPLICATION_OPTION,
    status: str | None = STATUS_OPTION,
    from_month: str | None = FROM_OPTION,
    to_month: str | None = TO_OPTION,
    quick: str | None = QUICK_OPTION,
) -> None:
    """Draw every chart surface to an image file."""
    configure_logging()
    cfg = _load_app_config(config)
    dashboard = _open_dashboard(
        cfg,
        data=data,
        out=out,
        owner=owner,
        application=application,
        status=status,
        time_range=_time_range(from_month, to_month, quick),
    )
    written = export_figures(dashboard, build_output_paths(out), fmt=cfg.outputs.figures_format)
    typer.echo(f"Figures written: {len(written)}")


@app.command("run-all")
def run_all_command(
    data: str | None = DATA_OPTION,
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    owner: str | None = OWNER_OPTION,
    application: str | None = APPLICATION_OPTION,
    status: str | None = STATUS_OPTION,
    from_month: str | None = FROM_OPTION,
    to_month: str | None = TO_OPTION,
    quick: str | None = QUICK_OPTION,
    with_figures: bool = typer.Option(True, "--figures/--no-figures"),
) -> None:
    """Export aggregates and figures, then render the dashboard."""
    configure_logging()
    cfg = _load_app_config(config)
    time_range = _time_range(from_month, to_month, quick)
    try:
        report_path = run_all(
            data,
            out,
            cfg,
            filters=FilterState(owner=owner, application=application, status=status),
            time_range=time_range,
            figures=with_figures,
        )
    except DataLoadError as exc:
        error_page = render_error_page(str(exc), build_output_paths(out).root, source=exc.source)
        typer.echo(f"Error loading dashboard: {exc}", err=True)
        typer.echo(f"Error page: {error_page}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Run complete. Dashboard: {report_path}")


@app.command("toggle-theme")
def toggle_theme(
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
) -> None:
    """Switch the stored theme preference between light and dark."""
    configure_logging()
    cfg = _load_app_config(config)
    store = PreferenceStore(cfg.preferences.path)
    theme = toggled(store.theme(default=cfg.render.theme))
    store.set_theme(theme)
    typer.echo(f"Theme: {theme}")


@app.command("toggle-sidebar")
def toggle_sidebar(
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
) -> None:
    """Flip the stored sidebar-collapsed preference."""
    configure_logging()
    cfg = _load_app_config(config)
    store = PreferenceStore(cfg.preferences.path)
    collapsed = not store.sidebar_collapsed()
    store.set_sidebar_collapsed(collapsed)
    typer.echo(f"Sidebar collapsed: {'true' if collapsed else 'false'}")


if __name__ == "__main__":
    app()
