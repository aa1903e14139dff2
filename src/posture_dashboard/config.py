from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_VISIBLE_COLUMNS = ["Severity", "Title", "IP", "Owner", "Vuln Status", "First Detected"]


class ColumnsConfig(BaseModel):
    severity: str = "Severity"
    status: str = "Vuln Status"
    first_detected: str = "First Detected"
    last_detected: str = "Last Detected"
    owner: str = "LT Owner"
    application: str = "Application"
    title: str = "Title"


class InputConfig(BaseModel):
    data_path: str = "data/WIP Appsec.csv"
    navigation_path: str | None = "components/sidebar.html"
    encoding: str = "utf-8-sig"


class ChartsConfig(BaseModel):
    trend_months: int = Field(default=12, ge=1)
    top_applications: int = Field(default=10, ge=1)
    application_status_limit: int = Field(default=15, ge=1)
    ownership_top_n: int = Field(default=5, ge=1)
    sparkline_points: int = Field(default=7, ge=1)
    sparkline_period: Literal["month", "day"] = "month"


class SurfaceConfig(BaseModel):
    width: float = Field(default=600.0, gt=0.0)
    height: float = Field(default=300.0, gt=0.0)


def _default_surfaces() -> dict[str, SurfaceConfig]:
    return {
        "severity-bar-chart": SurfaceConfig(width=600, height=300),
        "severity-pie-chart": SurfaceConfig(width=300, height=300),
        "trends-line-chart": SurfaceConfig(width=700, height=350),
        "timeline-chart": SurfaceConfig(width=700, height=280),
        "application-status-chart": SurfaceConfig(width=700, height=400),
        "all-owners-radial-chart": SurfaceConfig(width=560, height=560),
        "sparkline-total": SurfaceConfig(width=200, height=40),
        "sparkline-active": SurfaceConfig(width=200, height=40),
        "sparkline-fixed": SurfaceConfig(width=200, height=40),
        "sparkline-critical": SurfaceConfig(width=200, height=40),
    }


class RenderConfig(BaseModel):
    theme: Literal["light", "dark"] = "light"
    device_pixel_ratio: float = Field(default=1.0, ge=1.0, le=4.0)
    animation_ms: int = Field(default=1000, ge=0)
    resize_debounce_ms: int = Field(default=250, ge=0)
    surfaces: dict[str, SurfaceConfig] = Field(default_factory=_default_surfaces)


class TableConfig(BaseModel):
    visible_columns: list[str] = Field(default_factory=lambda: list(DEFAULT_VISIBLE_COLUMNS))
    preview_rows: int = Field(default=10, ge=1)


class PreferencesConfig(BaseModel):
    path: str = ".posture_dashboard/preferences.json"


class OutputsConfig(BaseModel):
    tables_format: Literal["csv", "parquet"] = "csv"
    figures_format: str = "png"


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    columns: ColumnsConfig = Field(default_factory=ColumnsConfig)
    input: InputConfig = Field(default_factory=InputConfig)
    charts: ChartsConfig = Field(default_factory=ChartsConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    table: TableConfig = Field(default_factory=TableConfig)
    preferences: PreferencesConfig = Field(default_factory=PreferencesConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def _resolve_optional_path(path_value: str | None, base_dir: Path) -> str | None:
    if not path_value:
        return None
    if "://" in path_value:
        return path_value
    candidate = Path(path_value)
    if candidate.is_absolute():
        return str(candidate)
    return str((base_dir / candidate).resolve())


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    config = AppConfig.model_validate(data)
    base_dir = path.resolve().parent

    config.input.data_path = (
        os.getenv("POSTURE_DASHBOARD_DATA")
        or _resolve_optional_path(config.input.data_path, base_dir)
        or ""
    )
    config.input.navigation_path = _resolve_optional_path(
        config.input.navigation_path,
        base_dir,
    )
    config.preferences.path = (
        _resolve_optional_path(config.preferences.path, base_dir) or config.preferences.path
    )
    return config
