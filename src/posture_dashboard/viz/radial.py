from __future__ import annotations

import math

from posture_dashboard.features.datasets import ChartDataset, OwnershipDistribution
from posture_dashboard.viz.base import ChartRenderer, truncate
from posture_dashboard.viz.commands import (
    CircleShape,
    Frame,
    LineTo,
    MoveTo,
    PathShape,
    Shape,
    TextShape,
)
from posture_dashboard.viz.geometry import TAU, Point, arc_band_path, polar_to_cartesian
from posture_dashboard.viz.theme import radial_color

PADDING = 80.0
RING_WIDTH = 0.08
START_RADIUS = 0.4
GUIDE_RINGS = 6
RADIAL_LINES = 12
BASE_RING = (0.38, 0.92)
BASE_RING_FILL = "#e5e5e5"
LABEL_RADIUS = 1.05


class OwnershipRadialChart(ChartRenderer):
    """Concentric rings, one per owner, with the largest owner outermost.

    Rings are discrete shapes; hover is reported by the host through
    ``pointer_over``/``pointer_out`` rather than by inverse geometry.
    """

    kind = "radial"
    dataset_types = (OwnershipDistribution,)

    def has_data(self, dataset: ChartDataset) -> bool:
        return isinstance(dataset, OwnershipDistribution) and not dataset.is_empty

    @property
    def center(self) -> Point:
        return (self.width / 2.0, self.height / 2.0)

    @property
    def size(self) -> float:
        return max(min(self.width, self.height) - 2 * PADDING, 1.0)

    @property
    def max_radius(self) -> float:
        return self.size / 2.0

    def ring_radii(self, index: int) -> tuple[float, float]:
        position = len(self.dataset.categories) - 1 - index
        inner = (START_RADIUS + position * RING_WIDTH) * self.max_radius
        return inner, inner + RING_WIDTH * self.max_radius

    def label_anchor(self, index: int) -> Point:
        angle = index * TAU / len(self.dataset.categories)
        return polar_to_cartesian(self.center, LABEL_RADIUS * self.max_radius, angle)

    def _background(self) -> list[Shape]:
        center = self.center
        grid = self.color("grid")
        shapes: list[Shape] = []
        for index in range(GUIDE_RINGS):
            fraction = 0.35 + (0.95 - 0.35) * index / (GUIDE_RINGS - 1)
            shapes.append(
                CircleShape(
                    cx=center[0],
                    cy=center[1],
                    radius=fraction * self.max_radius,
                    stroke=grid,
                    opacity=0.2,
                )
            )
        for index in range(RADIAL_LINES):
            end = polar_to_cartesian(center, 0.95 * self.max_radius, index * TAU / RADIAL_LINES)
            shapes.append(
                PathShape(commands=(MoveTo(*center), LineTo(*end)), stroke=grid, opacity=0.15)
            )
        shapes.append(
            PathShape(
                commands=arc_band_path(
                    center,
                    BASE_RING[0] * self.max_radius,
                    BASE_RING[1] * self.max_radius,
                    0.0,
                    TAU,
                ),
                fill=BASE_RING_FILL,
                opacity=0.15,
            )
        )
        return shapes

    def draw(self, progress: float) -> list[Shape]:
        center = self.center
        shapes = self._background()
        categories = self.dataset.categories
        for index, category in enumerate(categories):
            inner, outer = self.ring_radii(index)
            span = category.percentage / 100.0 * TAU * progress
            if span > 0:
                shapes.append(
                    PathShape(
                        commands=arc_band_path(center, inner, outer, 0.0, span),
                        fill=radial_color(category.color),
                        stroke=self.color("background"),
                        stroke_width=3.0,
                        opacity=1.0 if self.hovered == index else 0.85,
                        segment_id=index,
                    )
                )

        for index, category in enumerate(categories):
            inner, outer = self.ring_radii(index)
            angle = index * TAU / len(categories)
            x, y = self.label_anchor(index)
            if math.isclose(x, center[0], abs_tol=1.0):
                anchor = "middle"
            else:
                anchor = "start" if x > center[0] else "end"
            shapes.append(
                PathShape(
                    commands=(
                        MoveTo(*polar_to_cartesian(center, (inner + outer) / 2.0, angle)),
                        LineTo(x, y),
                    ),
                    stroke=radial_color(category.color),
                    opacity=0.6,
                )
            )
            shapes.append(
                TextShape(
                    x=x,
                    y=y - 10.0,
                    text=truncate(category.label, 25, 22, "..."),
                    color=self.color("text"),
                    size=14.0,
                    anchor=anchor,
                )
            )
            shapes.append(
                TextShape(
                    x=x,
                    y=y + 14.0,
                    text=f"{category.percentage:.2f}%",
                    color=radial_color(category.color),
                    size=22.0,
                    anchor=anchor,
                    weight="bold",
                )
            )
        return shapes

    def pointer_over(self, index: int) -> Frame:
        if self.dataset is None or not self.has_data(self.dataset):
            return self.last_frame or self.render()
        if not 0 <= index < len(self.dataset.categories):
            raise IndexError(f"No ring at index {index}.")
        self.hovered = index
        self.pointer = self.label_anchor(index)
        return self.render()

    def pointer_out(self) -> Frame:
        return self.pointer_leave()

    def tooltip_lines(self, hovered: int) -> list[str]:
        category = self.dataset.categories[hovered]
        return [category.label, f"{category.value} findings ({category.percentage:.2f}%)"]
