from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Literal

LOGGER = logging.getLogger(__name__)

THEME_KEY = "theme"
SIDEBAR_COLLAPSED_KEY = "sidebar-collapsed"

Theme = Literal["light", "dark"]


class PreferenceStore:
    """Persistent string key-value store backed by a JSON file.

    Only two keys are read and written: ``theme`` ("light"/"dark") and
    ``sidebar-collapsed`` ("true"/"false"). Unknown keys already in the file
    are preserved on write.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._values: dict[str, str] = self._read()

    def _read(self) -> dict[str, str]:
        if not self.path.is_file():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.warning("Ignoring unreadable preferences file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(key): str(value) for key, value in data.items()}

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._values, indent=2, sort_keys=True), encoding="utf-8")

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._values.get(key, default)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
        self._write()

    def theme(self, default: Theme = "light") -> Theme:
        value = self.get(THEME_KEY)
        if value in ("light", "dark"):
            return value  # type: ignore[return-value]
        return default

    def set_theme(self, theme: Theme) -> None:
        if theme not in ("light", "dark"):
            raise ValueError(f"Unsupported theme: {theme!r}")
        self.set(THEME_KEY, theme)

    def sidebar_collapsed(self) -> bool:
        return self.get(SIDEBAR_COLLAPSED_KEY) == "true"

    def set_sidebar_collapsed(self, collapsed: bool) -> None:
        self.set(SIDEBAR_COLLAPSED_KEY, "true" if collapsed else "false")
