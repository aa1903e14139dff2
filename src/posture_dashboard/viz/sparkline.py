from __future__ import annotations

from posture_dashboard.features.datasets import ChartDataset, SparklineSeries
from posture_dashboard.viz.base import ChartRenderer
from posture_dashboard.viz.commands import CircleShape, ClosePath, LineTo, PathShape, Shape
from posture_dashboard.viz.geometry import LinearScale
from posture_dashboard.viz.line import smooth_path
from posture_dashboard.viz.theme import severity_ramp

PADDING = 4.0
DOT_RADIUS = 2.5


class SparklineChart(ChartRenderer):
    kind = "sparkline"
    dataset_types = (SparklineSeries,)

    def has_data(self, dataset: ChartDataset) -> bool:
        return isinstance(dataset, SparklineSeries) and not dataset.is_empty

    def points(self, progress: float = 1.0) -> list[tuple[float, float]]:
        values = self.dataset.values
        low, high = min(values), max(values)
        bottom = self.height - PADDING
        count = len(values)
        # A single point sits at the horizontal center.
        x_domain = (0.0, float(count - 1)) if count > 1 else (-1.0, 1.0)
        x_scale = LinearScale(x_domain, (PADDING, self.width - PADDING))
        y_scale = LinearScale(
            (float(low), float(low + ((high - low) or 1))),
            (bottom, bottom - (self.height - 2 * PADDING) * progress),
        )
        return [(x_scale(index), y_scale(value)) for index, value in enumerate(values)]

    def draw(self, progress: float) -> list[Shape]:
        color = severity_ramp(self.theme)[0]
        points = self.points(progress)
        bottom = self.height - PADDING
        line = smooth_path(points)
        area = [*line, LineTo(points[-1][0], bottom), LineTo(points[0][0], bottom), ClosePath()]
        shapes: list[Shape] = [
            PathShape(commands=tuple(area), fill=color, opacity=0.12),
            PathShape(commands=tuple(line), stroke=color, stroke_width=2.0),
        ]
        for x, y in dict.fromkeys((points[0], points[-1])):
            shapes.append(CircleShape(cx=x, cy=y, radius=DOT_RADIUS, fill=color))
        return shapes
