from __future__ import annotations

import logging
import urllib.request
from pathlib import Path

import pandas as pd

from posture_dashboard.config import AppConfig
from posture_dashboard.io.csv_text import parse_csv
from posture_dashboard.io.schema import ensure_columns

LOGGER = logging.getLogger(__name__)

FETCH_TIMEOUT_SECONDS = 30


class DataLoadError(RuntimeError):
    """Raised when the primary data file cannot be fetched."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Failed to load data from {source}: {reason}")
        self.source = source
        self.reason = reason


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def load_text(source: str | Path, encoding: str = "utf-8-sig") -> str:
    """Fetch raw text from a local path or an http(s) URL."""
    source_str = str(source)
    if _is_url(source_str):
        try:
            with urllib.request.urlopen(source_str, timeout=FETCH_TIMEOUT_SECONDS) as response:
                return response.read().decode(encoding)
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            raise DataLoadError(source_str, str(exc)) from exc

    path = Path(source_str)
    if not path.is_file():
        raise DataLoadError(source_str, "file not found")
    try:
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise DataLoadError(source_str, str(exc)) from exc


def records_to_frame(records: list[dict[str, str]]) -> pd.DataFrame:
    if not records:
        return pd.DataFrame()
    frame = pd.DataFrame.from_records(records, columns=list(records[0].keys()))
    return frame.fillna("").astype(object)


def load_records(data_path: str | Path | None, config: AppConfig) -> pd.DataFrame:
    """Load the record set as a frame of string columns."""
    source = data_path or config.input.data_path
    if not source:
        raise DataLoadError("<unset>", "input.data_path is not configured")
    LOGGER.info("Loading records from %s", source)
    text = load_text(source, encoding=config.input.encoding)
    frame = ensure_columns(records_to_frame(parse_csv(text)), columns=config.columns)
    LOGGER.info("Loaded %d records with %d columns", len(frame), len(frame.columns))
    return frame


def load_navigation_fragment(path: str | Path | None, encoding: str = "utf-8") -> str | None:
    """Fetch the navigation markup; failures are logged and yield None."""
    if not path:
        return None
    try:
        return load_text(path, encoding=encoding)
    except DataLoadError as exc:
        LOGGER.warning("Navigation fragment unavailable: %s", exc)
        return None
