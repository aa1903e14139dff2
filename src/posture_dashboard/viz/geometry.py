from __future__ import annotations

import math
from dataclasses import dataclass

from posture_dashboard.viz.commands import (
    ArcTo,
    ClosePath,
    LineTo,
    MoveTo,
    PathCommand,
    QuadTo,
)

Point = tuple[float, float]

TAU = 2.0 * math.pi
FULL_CIRCLE_EPSILON = 1e-3
TOOLTIP_OFFSET = (10.0, -10.0)


@dataclass(frozen=True, slots=True)
class LinearScale:
    """Affine map from a numeric domain onto a pixel range.

    A degenerate domain (d0 == d1) maps ``value`` to ``r0 + (value - d0)``.
    """

    domain: tuple[float, float]
    range: tuple[float, float]

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            return r0 + (value - d0)
        return r0 + (value - d0) / (d1 - d0) * (r1 - r0)

    def invert(self, pixel: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0 or r1 == r0:
            return d0 + (pixel - r0)
        return d0 + (pixel - r0) / (r1 - r0) * (d1 - d0)


@dataclass(frozen=True, slots=True)
class BandScale:
    """Equal-width categorical bands between ``start`` and ``end``.

    ``padding`` is the fraction of each band left empty, split evenly on both
    sides of the drawn bar.
    """

    count: int
    start: float
    end: float
    padding: float = 0.0

    @property
    def step(self) -> float:
        if self.count <= 0:
            return 0.0
        return (self.end - self.start) / self.count

    @property
    def bandwidth(self) -> float:
        return self.step * (1.0 - self.padding)

    def band_start(self, index: int) -> float:
        return self.start + index * self.step + self.step * self.padding / 2.0

    def center(self, index: int) -> float:
        return self.start + (index + 0.5) * self.step

    def index_at(self, position: float) -> int | None:
        if self.count <= 0 or self.step == 0:
            return None
        index = math.floor((position - self.start) / self.step)
        if 0 <= index < self.count:
            return int(index)
        return None


def normalize_angle(angle: float) -> float:
    wrapped = math.fmod(angle, TAU)
    if wrapped < 0:
        wrapped += TAU
    return wrapped


def polar_to_cartesian(center: Point, radius: float, angle: float) -> Point:
    """Angle 0 points up and grows clockwise; y grows downward."""
    cx, cy = center
    return (cx + radius * math.sin(angle), cy - radius * math.cos(angle))


def cartesian_to_polar(center: Point, point: Point) -> tuple[float, float]:
    """Inverse of :func:`polar_to_cartesian`; angle normalized to [0, 2π)."""
    dx = point[0] - center[0]
    dy = point[1] - center[1]
    return math.hypot(dx, dy), normalize_angle(math.atan2(dx, -dy))


def clamp_span(start: float, end: float) -> float:
    return max(0.0, min(end - start, TAU - FULL_CIRCLE_EPSILON))


def arc_band_path(
    center: Point,
    inner_radius: float,
    outer_radius: float,
    start_angle: float,
    end_angle: float,
) -> tuple[PathCommand, ...]:
    """Closed annular sector: outer arc, radial edge, reversed inner arc, radial edge."""
    span = clamp_span(start_angle, end_angle)
    end_angle = start_angle + span
    large_arc = span > math.pi
    outer_start = polar_to_cartesian(center, outer_radius, start_angle)
    outer_end = polar_to_cartesian(center, outer_radius, end_angle)
    commands: list[PathCommand] = [
        MoveTo(*outer_start),
        ArcTo(
            cx=center[0],
            cy=center[1],
            radius=outer_radius,
            start_angle=start_angle,
            end_angle=end_angle,
            x=outer_end[0],
            y=outer_end[1],
            large_arc=large_arc,
            clockwise=True,
        ),
    ]
    if inner_radius > 0:
        inner_end = polar_to_cartesian(center, inner_radius, end_angle)
        inner_start = polar_to_cartesian(center, inner_radius, start_angle)
        commands.append(LineTo(*inner_end))
        commands.append(
            ArcTo(
                cx=center[0],
                cy=center[1],
                radius=inner_radius,
                start_angle=end_angle,
                end_angle=start_angle,
                x=inner_start[0],
                y=inner_start[1],
                large_arc=large_arc,
                clockwise=False,
            )
        )
    else:
        commands.append(LineTo(*center))
    commands.append(ClosePath())
    return tuple(commands)


def rounded_rect_path(
    x: float,
    y: float,
    width: float,
    height: float,
    radius: float,
    top_only: bool = False,
) -> tuple[PathCommand, ...]:
    r = max(0.0, min(radius, width / 2.0, height / 2.0))
    commands: list[PathCommand] = [
        MoveTo(x + r, y),
        LineTo(x + width - r, y),
        QuadTo(x + width, y, x + width, y + r),
    ]
    if top_only:
        commands += [
            LineTo(x + width, y + height),
            LineTo(x, y + height),
        ]
    else:
        commands += [
            LineTo(x + width, y + height - r),
            QuadTo(x + width, y + height, x + width - r, y + height),
            LineTo(x + r, y + height),
            QuadTo(x, y + height, x, y + height - r),
        ]
    commands += [
        LineTo(x, y + r),
        QuadTo(x, y, x + r, y),
        ClosePath(),
    ]
    return tuple(commands)


def control_points(points: list[Point]) -> list[tuple[Point, Point]]:
    """Cubic control points for each segment of a smoothed polyline.

    Each segment p1 -> p2 uses its neighbours p0 and p3; at either end the
    missing neighbour is the end point itself.
    """
    segments: list[tuple[Point, Point]] = []
    last = len(points) - 1
    for index in range(last):
        p0 = points[index - 1] if index > 0 else points[index]
        p1 = points[index]
        p2 = points[index + 1]
        p3 = points[index + 2] if index < last - 1 else p2
        cp1 = (p1[0] + (p2[0] - p0[0]) / 6.0, p1[1] + (p2[1] - p0[1]) / 6.0)
        cp2 = (p2[0] - (p3[0] - p1[0]) / 6.0, p2[1] - (p3[1] - p1[1]) / 6.0)
        segments.append((cp1, cp2))
    return segments


@dataclass(frozen=True, slots=True)
class SurfaceSize:
    width: float
    height: float
    backing_width: int
    backing_height: int
    scale: float


def surface_size(width: float, height: float, device_pixel_ratio: float = 1.0) -> SurfaceSize:
    """Backing-store dimensions for a logical surface on a high-density display."""
    ratio = device_pixel_ratio if device_pixel_ratio and device_pixel_ratio > 0 else 1.0
    return SurfaceSize(
        width=width,
        height=height,
        backing_width=int(round(width * ratio)),
        backing_height=int(round(height * ratio)),
        scale=ratio,
    )


def place_tooltip(pointer: Point, size: tuple[float, float], bounds: tuple[float, float]) -> Point:
    """Offset the tooltip from the pointer, then keep it inside the surface."""
    width, height = size
    max_x = max(0.0, bounds[0] - width)
    max_y = max(0.0, bounds[1] - height)
    x = min(max(pointer[0] + TOOLTIP_OFFSET[0], 0.0), max_x)
    y = min(max(pointer[1] + TOOLTIP_OFFSET[1], 0.0), max_y)
    return (x, y)
