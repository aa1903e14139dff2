from __future__ import annotations

from copy import deepcopy
from typing import Any, Literal

Theme = Literal["light", "dark"]
THEMES: tuple[Theme, ...] = ("light", "dark")

SEMANTIC_KEYS = (
    "primary",
    "success",
    "warning",
    "destructive",
    "info",
    "chart-1",
    "chart-2",
    "chart-3",
    "chart-4",
    "chart-5",
    "muted",
    "text",
    "text-muted",
    "grid",
    "axis",
    "background",
    "tooltip",
    "tooltip-border",
)

_COLOR_SEMANTICS: dict[str, dict[str, Any]] = {
    "light": {
        "semantic": {
            "primary": "#171717",
            "success": "#16a34a",
            "warning": "#f59e0b",
            "destructive": "#dc2626",
            "info": "#2563eb",
            "chart-1": "#ef4444",
            "chart-2": "#3b82f6",
            "chart-3": "#8b5cf6",
            "chart-4": "#eab308",
            "chart-5": "#f97316",
            "muted": "#71717a",
            "text": "#171717",
            "text-muted": "#737373",
            "grid": "#e5e5e5",
            "axis": "#525252",
            "background": "#ffffff",
            "tooltip": "#ffffff",
            "tooltip-border": "#e5e5e5",
        },
        "severity_ramp": ["#171717", "#404040", "#737373", "#a1a1aa", "#d4d4d8"],
    },
    "dark": {
        "semantic": {
            "primary": "#fafafa",
            "success": "#22c55e",
            "warning": "#fbbf24",
            "destructive": "#ef4444",
            "info": "#60a5fa",
            "chart-1": "#ef4444",
            "chart-2": "#3b82f6",
            "chart-3": "#8b5cf6",
            "chart-4": "#eab308",
            "chart-5": "#f97316",
            "muted": "#71717a",
            "text": "#fafafa",
            "text-muted": "#a1a1aa",
            "grid": "#404040",
            "axis": "#737373",
            "background": "#0a0a0a",
            "tooltip": "#262626",
            "tooltip-border": "#404040",
        },
        "severity_ramp": ["#fafafa", "#d4d4d4", "#a1a1aa", "#737373", "#525252"],
    },
}

# Ring colors for the ownership chart are fixed hex values in both themes.
RADIAL_HEX = {
    "chart-1": "#ef4444",
    "chart-2": "#3b82f6",
    "chart-3": "#8b5cf6",
    "chart-4": "#eab308",
    "chart-5": "#f97316",
    "muted": "#71717a",
}
RADIAL_DEFAULT = "#3b82f6"

_SEVERITY_RAMP_INDEX = {"critical": 0, "high": 1, "medium": 2, "low": 3}


def default_color_semantics() -> dict[str, dict[str, Any]]:
    return deepcopy(_COLOR_SEMANTICS)


def _palette(theme: str) -> dict[str, Any]:
    try:
        return _COLOR_SEMANTICS[theme]
    except KeyError as exc:
        raise ValueError(f"Unknown theme: {theme!r}") from exc


def resolve_color(theme: str, key: str) -> str:
    """Concrete color for a semantic key; literal ``#rrggbb`` values pass through."""
    if key.startswith("#"):
        return key
    semantic = _palette(theme)["semantic"]
    if key not in semantic:
        raise ValueError(f"Unknown color key: {key!r}")
    return semantic[key]


def chart_colors(theme: str) -> dict[str, str]:
    return dict(_palette(theme)["semantic"])


def severity_ramp(theme: str) -> list[str]:
    return list(_palette(theme)["severity_ramp"])


def severity_index(label: str) -> int:
    return _SEVERITY_RAMP_INDEX.get(label.strip().lower(), 4)


def severity_color(theme: str, label: str) -> str:
    return severity_ramp(theme)[severity_index(label)]


def radial_color(key: str | None) -> str:
    if key and key.startswith("#"):
        return key
    return RADIAL_HEX.get(key or "", RADIAL_DEFAULT)


def toggled(theme: str) -> Theme:
    _palette(theme)
    return "light" if theme == "dark" else "dark"
