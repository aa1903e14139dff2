from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from posture_dashboard.config import DEFAULT_CONFIG_PATH, load_config


def test_load_config_resolves_relative_paths(tmp_path: Path) -> None:
    config_data = {
        "input": {"data_path": "data/export.csv", "navigation_path": "nav.html"},
        "preferences": {"path": "state/prefs.json"},
    }
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump(config_data), encoding="utf-8")

    cfg = load_config(config_path)

    assert Path(cfg.input.data_path) == (tmp_path / "data" / "export.csv").resolve()
    assert Path(cfg.input.navigation_path or "") == (tmp_path / "nav.html").resolve()
    assert Path(cfg.preferences.path).is_absolute()


def test_load_config_keeps_urls_and_uses_env_override(monkeypatch, tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        yaml.safe_dump({"input": {"navigation_path": "https://example.test/nav.html"}}),
        encoding="utf-8",
    )
    monkeypatch.setenv("POSTURE_DASHBOARD_DATA", "/srv/exports/appsec.csv")

    cfg = load_config(config_path)

    assert cfg.input.data_path == "/srv/exports/appsec.csv"
    assert cfg.input.navigation_path == "https://example.test/nav.html"


def test_load_config_rejects_unknown_sections(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump({"detectors": {}}), encoding="utf-8")

    with pytest.raises(ValidationError):
        load_config(config_path)


def test_empty_config_uses_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("", encoding="utf-8")

    cfg = load_config(config_path)

    assert cfg.columns.status == "Vuln Status"
    assert cfg.columns.owner == "LT Owner"
    assert cfg.charts.sparkline_points == 7
    assert cfg.render.surfaces["all-owners-radial-chart"].width == 560


def test_shipped_default_config_loads() -> None:
    repo_root = Path(__file__).resolve().parents[1]

    cfg = load_config(repo_root / DEFAULT_CONFIG_PATH)

    assert cfg.input.data_path.endswith("WIP Appsec.csv")
    assert len(cfg.render.surfaces) == 10
