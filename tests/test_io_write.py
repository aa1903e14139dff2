from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest

from posture_dashboard.io.write import write_summary, write_table, write_tables
from posture_dashboard.paths import build_output_paths


def test_write_table_supports_csv_and_parquet(tmp_path: Path) -> None:
    frame = pd.DataFrame({"label": ["Critical", "High"], "value": [3, 1]})

    csv_path = write_table(frame, tmp_path / "tables" / "severity.csv")
    parquet_path = write_table(frame, tmp_path / "tables" / "severity.parquet", fmt="parquet")

    pd.testing.assert_frame_equal(pd.read_csv(csv_path), frame)
    pd.testing.assert_frame_equal(pd.read_parquet(parquet_path), frame)
    with pytest.raises(ValueError):
        write_table(frame, tmp_path / "severity.xlsx", fmt="xlsx")


def test_write_tables_names_files_after_keys(tmp_path: Path) -> None:
    tables = {"b": pd.DataFrame({"x": [1]}), "a": pd.DataFrame({"x": [2]})}

    written = write_tables(tables, tmp_path)

    assert written == [tmp_path / "a.csv", tmp_path / "b.csv"]


def test_write_summary_and_output_layout(tmp_path: Path) -> None:
    paths = build_output_paths(tmp_path / "out")

    summary = write_summary({"total": 3, "owner": "Web"}, paths.artifacts / "metrics.json")

    assert json.loads(summary.read_text(encoding="utf-8")) == {"owner": "Web", "total": 3}
    assert paths.tables.is_dir()
    assert paths.figures.is_dir()
    assert paths.dashboard == tmp_path / "out" / "dashboard.html"
