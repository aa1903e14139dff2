from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Union

TextAnchor = Literal["start", "middle", "end"]
TextBaseline = Literal["top", "middle", "bottom"]


@dataclass(frozen=True, slots=True)
class MoveTo:
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class LineTo:
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class QuadTo:
    cx: float
    cy: float
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class CubicTo:
    c1x: float
    c1y: float
    c2x: float
    c2y: float
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class ArcTo:
    """Circular arc from the current point to ``(x, y)``.

    ``start_angle``/``end_angle`` use the dashboard convention (radians,
    0 = up, clockwise positive) so backends that cannot draw SVG arcs can
    sample the arc around ``(cx, cy)`` instead.
    """

    cx: float
    cy: float
    radius: float
    start_angle: float
    end_angle: float
    x: float
    y: float
    large_arc: bool
    clockwise: bool


@dataclass(frozen=True, slots=True)
class ClosePath:
    pass


PathCommand = Union[MoveTo, LineTo, QuadTo, CubicTo, ArcTo, ClosePath]


@dataclass(frozen=True, slots=True)
class PathShape:
    commands: tuple[PathCommand, ...]
    fill: str | None = None
    stroke: str | None = None
    stroke_width: float = 1.0
    opacity: float = 1.0
    dash: tuple[float, ...] = ()
    segment_id: int | None = None


@dataclass(frozen=True, slots=True)
class TextShape:
    x: float
    y: float
    text: str
    color: str
    size: float = 12.0
    anchor: TextAnchor = "middle"
    baseline: TextBaseline = "middle"
    weight: str = "normal"
    rotation: float = 0.0
    opacity: float = 1.0


@dataclass(frozen=True, slots=True)
class CircleShape:
    cx: float
    cy: float
    radius: float
    fill: str | None = None
    stroke: str | None = None
    stroke_width: float = 1.0
    opacity: float = 1.0


Shape = Union[PathShape, TextShape, CircleShape]


@dataclass(frozen=True, slots=True)
class Frame:
    """One complete drawing of a chart surface in logical units."""

    surface_id: str
    width: float
    height: float
    scale: float = 1.0
    shapes: tuple[Shape, ...] = ()
    background: str | None = None
    hovered: Any = None
    progress: float = 1.0
    placeholder: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    def texts(self) -> list[str]:
        return [shape.text for shape in self.shapes if isinstance(shape, TextShape)]

    def paths(self) -> list[PathShape]:
        return [shape for shape in self.shapes if isinstance(shape, PathShape)]
