from __future__ import annotations

from posture_dashboard.features.datasets import ChartDataset, MultiSeries
from posture_dashboard.pipeline.time_range import month_label
from posture_dashboard.viz.base import ChartRenderer, grid_lines, round_half_up
from posture_dashboard.viz.commands import (
    CircleShape,
    ClosePath,
    CubicTo,
    LineTo,
    MoveTo,
    PathCommand,
    PathShape,
    Shape,
    TextShape,
)
from posture_dashboard.viz.geometry import LinearScale, Point, control_points

PADDING = {"top": 30.0, "right": 30.0, "bottom": 60.0, "left": 50.0}
MAX_X_LABELS = 6
POINT_RADIUS = 3.0
LEGEND_BOX = 12.0


def axis_label(key: str) -> str:
    """``2024-01`` -> ``Jan 2024``; other labels pass through."""
    year, _, month = key.partition("-")
    if year.isdigit() and month.isdigit() and 1 <= int(month) <= 12:
        return month_label(int(year), int(month))
    return key


def smooth_path(points: list[Point]) -> list[PathCommand]:
    commands: list[PathCommand] = [MoveTo(*points[0])]
    if len(points) <= 2:
        commands.extend(LineTo(*point) for point in points[1:])
        return commands
    for (cp1, cp2), point in zip(control_points(points), points[1:]):
        commands.append(CubicTo(cp1[0], cp1[1], cp2[0], cp2[1], point[0], point[1]))
    return commands


class LineChart(ChartRenderer):
    """Smoothed multi-series line chart over month buckets."""

    kind = "line"
    dataset_types = (MultiSeries,)

    def has_data(self, dataset: ChartDataset) -> bool:
        return isinstance(dataset, MultiSeries) and not dataset.is_empty

    @property
    def _plot(self) -> tuple[float, float, float, float]:
        return (
            PADDING["left"],
            self.width - PADDING["right"],
            PADDING["top"],
            self.height - PADDING["bottom"],
        )

    def _x(self) -> LinearScale:
        left, right, _top, _bottom = self._plot
        last = max(len(self.dataset.labels) - 1, 1)
        return LinearScale((0.0, float(last)), (left, right))

    def _y(self) -> LinearScale:
        _left, _right, top, bottom = self._plot
        return LinearScale((0.0, float(max(self.dataset.max_value, 1))), (bottom, top))

    def _legend(self) -> list[Shape]:
        shapes: list[Shape] = []
        x = PADDING["left"]
        y = PADDING["top"] - 20.0
        for item in self.dataset.series:
            shapes.append(
                PathShape(
                    commands=(
                        MoveTo(x, y - LEGEND_BOX / 2),
                        LineTo(x + LEGEND_BOX, y - LEGEND_BOX / 2),
                        LineTo(x + LEGEND_BOX, y + LEGEND_BOX / 2),
                        LineTo(x, y + LEGEND_BOX / 2),
                        ClosePath(),
                    ),
                    fill=self.color(item.color),
                )
            )
            shapes.append(
                TextShape(
                    x=x + LEGEND_BOX + 6.0,
                    y=y,
                    text=item.label,
                    color=self.color("text"),
                    size=12.0,
                    anchor="start",
                )
            )
            x += LEGEND_BOX + 6.0 + len(item.label) * 7.0 + 16.0
        return shapes

    def draw(self, progress: float) -> list[Shape]:
        dataset = self.dataset
        left, right, top, bottom = self._plot
        x_scale = self._x()
        y_scale = self._y()
        shapes = grid_lines(
            self,
            left=left,
            right=right,
            top=top,
            bottom=bottom,
            max_value=max(dataset.max_value, 1),
        )

        if self.hovered is not None:
            guide_x = x_scale(self.hovered)
            shapes.append(
                PathShape(
                    commands=(MoveTo(guide_x, top), LineTo(guide_x, bottom)),
                    stroke=self.color("axis"),
                    dash=(2.0, 2.0),
                )
            )

        for item in dataset.series:
            color = self.color(item.color)
            points = [
                (x_scale(index), bottom - (bottom - y_scale(value)) * progress)
                for index, value in enumerate(item.values)
            ]
            line = smooth_path(points)
            area = [*line, LineTo(points[-1][0], bottom), LineTo(points[0][0], bottom), ClosePath()]
            shapes.append(PathShape(commands=tuple(area), fill=color, opacity=0.1))
            shapes.append(PathShape(commands=tuple(line), stroke=color, stroke_width=2.0))
            for index, (x, y) in enumerate(points):
                shapes.append(
                    CircleShape(
                        cx=x,
                        cy=y,
                        radius=POINT_RADIUS + (2.0 if self.hovered == index else 0.0),
                        fill=color,
                        stroke=self.color("background"),
                    )
                )

        shapes.extend(self._legend())

        count = len(dataset.labels)
        step = max(1, count // min(MAX_X_LABELS, count))
        for index in range(0, count, step):
            shapes.append(
                TextShape(
                    x=x_scale(index),
                    y=bottom + 20.0,
                    text=axis_label(dataset.labels[index]),
                    color=self.color("text-muted"),
                    size=11.0,
                )
            )
        return shapes

    def hit_test(self, x: float, y: float) -> int | None:
        left, right, top, bottom = self._plot
        if not (left <= x <= right and top <= y <= bottom):
            return None
        count = len(self.dataset.labels)
        index = round_half_up(self._x().invert(x))
        return min(max(index, 0), count - 1)

    def tooltip_lines(self, hovered: int) -> list[str]:
        lines = [axis_label(self.dataset.labels[hovered])]
        lines.extend(f"{item.label}: {item.values[hovered]}" for item in self.dataset.series)
        return lines
