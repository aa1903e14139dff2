from __future__ import annotations

from posture_dashboard.features.datasets import CategoryDistribution, ChartDataset
from posture_dashboard.viz.base import ChartRenderer
from posture_dashboard.viz.commands import PathShape, Shape, TextShape
from posture_dashboard.viz.geometry import (
    TAU,
    arc_band_path,
    cartesian_to_polar,
    polar_to_cartesian,
)
from posture_dashboard.viz.theme import severity_color

LABEL_MARGIN = 30.0
INNER_RATIO = 0.65
HOVER_GROWTH = 5.0
PERCENT_OFFSET = 15.0


class DonutChart(ChartRenderer):
    kind = "donut"
    dataset_types = (CategoryDistribution,)

    def has_data(self, dataset: ChartDataset) -> bool:
        return isinstance(dataset, CategoryDistribution) and dataset.total > 0

    @property
    def center(self) -> tuple[float, float]:
        return (self.width / 2.0, self.height / 2.0)

    @property
    def radius(self) -> float:
        return max(min(self.width, self.height) / 2.0 - LABEL_MARGIN, 1.0)

    @property
    def inner_radius(self) -> float:
        return self.radius * INNER_RATIO

    def _slices(self, progress: float) -> list[tuple[int, float, float]]:
        """(index, start, end) angles for every non-zero slice."""
        total = self.dataset.total
        slices = []
        angle = 0.0
        for index, value in enumerate(self.dataset.values):
            if value <= 0:
                continue
            span = value / total * TAU * progress
            slices.append((index, angle, angle + span))
            angle += span
        return slices

    def _slice_color(self, index: int) -> str:
        point = self.dataset.points[index]
        if self.dataset.kind == "severity_distribution":
            return severity_color(self.theme, point.label)
        return self.color(point.color or f"chart-{index % 5 + 1}")

    def draw(self, progress: float) -> list[Shape]:
        center = self.center
        shapes: list[Shape] = []
        for index, start, end in self._slices(progress):
            outer = self.radius + (HOVER_GROWTH if self.hovered == index else 0.0)
            shapes.append(
                PathShape(
                    commands=arc_band_path(center, self.inner_radius, outer, start, end),
                    fill=self._slice_color(index),
                    stroke=self.color("background"),
                    stroke_width=2.0,
                    segment_id=index,
                )
            )
            if progress >= 1.0:
                pct = self.dataset.values[index] / self.dataset.total * 100.0
                x, y = polar_to_cartesian(center, self.radius + PERCENT_OFFSET, (start + end) / 2)
                shapes.append(
                    TextShape(
                        x=x,
                        y=y,
                        text=f"{pct:.1f}%",
                        color=self.color("text"),
                        size=11.0,
                    )
                )
        shapes.append(
            TextShape(
                x=center[0],
                y=center[1] - 6.0,
                text=str(self.dataset.total),
                color=self.color("text"),
                size=28.0,
                weight="bold",
            )
        )
        shapes.append(
            TextShape(
                x=center[0],
                y=center[1] + 18.0,
                text="Total",
                color=self.color("text-muted"),
                size=12.0,
            )
        )
        return shapes

    def hit_test(self, x: float, y: float) -> int | None:
        distance, angle = cartesian_to_polar(self.center, (x, y))
        limit = self.radius + (HOVER_GROWTH if self.hovered is not None else 0.0)
        if distance < self.inner_radius or distance > limit:
            return None
        for index, start, end in self._slices(1.0):
            if start <= angle < end:
                if distance > self.radius and index != self.hovered:
                    return None
                return index
        return None

    def tooltip_lines(self, hovered: int) -> list[str]:
        point = self.dataset.points[hovered]
        pct = point.value / self.dataset.total * 100.0
        return [f"{point.label}: {point.value} ({pct:.1f}%)"]
