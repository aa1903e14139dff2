from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from posture_dashboard.viz.commands import (
    ArcTo,
    CircleShape,
    ClosePath,
    CubicTo,
    Frame,
    LineTo,
    MoveTo,
    PathCommand,
    PathShape,
    QuadTo,
    TextShape,
)

SVG_TEMPLATE = "frame.svg.j2"
_BASELINES = {"top": "hanging", "middle": "central", "bottom": "alphabetic"}


def _template_env() -> Environment:
    template_dir = Path(__file__).resolve().parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(enabled_extensions=("html", "xml", "svg.j2")),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _num(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def path_data(commands: Iterable[PathCommand]) -> str:
    """SVG ``d`` attribute for a sequence of path commands."""
    parts: list[str] = []
    for command in commands:
        if isinstance(command, MoveTo):
            parts.append(f"M {_num(command.x)} {_num(command.y)}")
        elif isinstance(command, LineTo):
            parts.append(f"L {_num(command.x)} {_num(command.y)}")
        elif isinstance(command, QuadTo):
            parts.append(
                f"Q {_num(command.cx)} {_num(command.cy)} {_num(command.x)} {_num(command.y)}"
            )
        elif isinstance(command, CubicTo):
            parts.append(
                f"C {_num(command.c1x)} {_num(command.c1y)} "
                f"{_num(command.c2x)} {_num(command.c2y)} "
                f"{_num(command.x)} {_num(command.y)}"
            )
        elif isinstance(command, ArcTo):
            radius = _num(command.radius)
            parts.append(
                f"A {radius} {radius} 0 {int(command.large_arc)} {int(command.clockwise)} "
                f"{_num(command.x)} {_num(command.y)}"
            )
        elif isinstance(command, ClosePath):
            parts.append("Z")
        else:
            raise TypeError(f"Unsupported path command: {command!r}")
    return " ".join(parts)


def _element(shape: Any) -> dict[str, Any]:
    if isinstance(shape, PathShape):
        return {
            "tag": "path",
            "d": path_data(shape.commands),
            "fill": shape.fill or "none",
            "stroke": shape.stroke or "none",
            "stroke_width": _num(shape.stroke_width),
            "opacity": _num(shape.opacity),
            "dash": " ".join(_num(value) for value in shape.dash),
            "segment_id": shape.segment_id,
        }
    if isinstance(shape, CircleShape):
        return {
            "tag": "circle",
            "cx": _num(shape.cx),
            "cy": _num(shape.cy),
            "r": _num(shape.radius),
            "fill": shape.fill or "none",
            "stroke": shape.stroke or "none",
            "stroke_width": _num(shape.stroke_width),
            "opacity": _num(shape.opacity),
        }
    if isinstance(shape, TextShape):
        transform = ""
        if shape.rotation:
            transform = f"rotate({_num(shape.rotation)} {_num(shape.x)} {_num(shape.y)})"
        return {
            "tag": "text",
            "x": _num(shape.x),
            "y": _num(shape.y),
            "text": shape.text,
            "fill": shape.color,
            "size": _num(shape.size),
            "anchor": shape.anchor,
            "baseline": _BASELINES[shape.baseline],
            "weight": shape.weight,
            "opacity": _num(shape.opacity),
            "transform": transform,
        }
    raise TypeError(f"Unsupported shape: {shape!r}")


def render_svg(frame: Frame, transparent: bool = True) -> str:
    template = _template_env().get_template(SVG_TEMPLATE)
    return template.render(
        frame=frame,
        width=_num(frame.width),
        height=_num(frame.height),
        background=None if transparent else frame.background,
        elements=[_element(shape) for shape in frame.shapes],
    )


def write_svg(frame: Frame, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_svg(frame, transparent=False), encoding="utf-8")
    return path
