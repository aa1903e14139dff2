from __future__ import annotations

import logging
from pathlib import Path

import pytest

from posture_dashboard.config import AppConfig
from posture_dashboard.io.read import (
    DataLoadError,
    load_navigation_fragment,
    load_records,
    load_text,
    records_to_frame,
)


def test_load_text_missing_file_raises_data_load_error(tmp_path: Path) -> None:
    missing = tmp_path / "nope.csv"

    with pytest.raises(DataLoadError) as excinfo:
        load_text(missing)

    assert excinfo.value.source == str(missing)
    assert excinfo.value.reason == "file not found"


def test_load_records_reads_bom_csv_and_adds_missing_columns(tmp_path: Path) -> None:
    data_path = tmp_path / "data.csv"
    data_path.write_text("\ufeffSeverity,Vuln Status\n5,Active\n", encoding="utf-8")

    frame = load_records(data_path, AppConfig())

    assert list(frame["Severity"]) == ["5"]
    assert "LT Owner" in frame.columns
    assert frame.loc[0, "LT Owner"] == ""


def test_load_records_without_a_source_fails() -> None:
    config = AppConfig()
    config.input.data_path = ""

    with pytest.raises(DataLoadError):
        load_records(None, config)


def test_records_to_frame_keeps_string_values() -> None:
    frame = records_to_frame([{"a": "1", "b": "x"}, {"a": "2", "b": "y"}])

    assert list(frame.columns) == ["a", "b"]
    assert frame["a"].tolist() == ["1", "2"]
    assert records_to_frame([]).empty


def test_navigation_fragment_failure_is_logged_not_raised(tmp_path: Path, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        fragment = load_navigation_fragment(tmp_path / "sidebar.html")

    assert fragment is None
    assert "Navigation fragment unavailable" in caplog.text
    assert load_navigation_fragment(None) is None


def test_navigation_fragment_is_read_when_present(tmp_path: Path) -> None:
    path = tmp_path / "sidebar.html"
    path.write_text("<ul><li>Home</li></ul>", encoding="utf-8")

    assert load_navigation_fragment(path) == "<ul><li>Home</li></ul>"


class _FakeResponse:
    def __init__(self, payload: bytes) -> None:
        self.payload = payload

    def __enter__(self) -> _FakeResponse:
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def read(self) -> bytes:
        return self.payload


def test_load_text_reads_url_sources(monkeypatch) -> None:
    monkeypatch.setattr(
        "urllib.request.urlopen",
        lambda url, timeout: _FakeResponse("\ufeffSeverity\n5\n".encode("utf-8")),
    )

    assert load_text("https://example.invalid/data.csv") == "Severity\n5\n"


def test_load_text_wraps_undecodable_url_payload(monkeypatch) -> None:
    monkeypatch.setattr(
        "urllib.request.urlopen",
        lambda url, timeout: _FakeResponse(b"Severity\n\xff\xfe5\n"),
    )

    with pytest.raises(DataLoadError) as excinfo:
        load_text("http://example.invalid/data.csv")

    assert excinfo.value.source == "http://example.invalid/data.csv"


def test_load_text_wraps_dropped_connections(monkeypatch) -> None:
    def _reset(url: str, timeout: int) -> _FakeResponse:
        raise ConnectionResetError("connection reset by peer")

    monkeypatch.setattr("urllib.request.urlopen", _reset)

    with pytest.raises(DataLoadError) as excinfo:
        load_text("https://example.invalid/data.csv")

    assert "connection reset" in excinfo.value.reason
