from __future__ import annotations

from posture_dashboard.features.datasets import ApplicationStatusBreakdown, ChartDataset
from posture_dashboard.viz.base import ChartRenderer, round_half_up, truncate
from posture_dashboard.viz.commands import LineTo, MoveTo, PathShape, Shape, TextShape
from posture_dashboard.viz.geometry import BandScale, LinearScale, Point, rounded_rect_path
from posture_dashboard.viz.theme import severity_ramp

PADDING = {"top": 40.0, "right": 20.0, "bottom": 80.0, "left": 120.0}
ROW_SPACING = 0.15
HEADROOM = 1.1
GRID_LINES = 6

Segment = tuple[int, int]


class ApplicationStatusChart(ChartRenderer):
    """Horizontal stacked bars: one row per application, one segment per status."""

    kind = "application_status"
    dataset_types = (ApplicationStatusBreakdown,)

    def has_data(self, dataset: ChartDataset) -> bool:
        return isinstance(dataset, ApplicationStatusBreakdown) and dataset.max_total > 0

    @property
    def _plot(self) -> tuple[float, float, float, float]:
        return (
            PADDING["left"],
            self.width - PADDING["right"],
            PADDING["top"],
            self.height - PADDING["bottom"],
        )

    def _rows(self) -> BandScale:
        _left, _right, top, bottom = self._plot
        return BandScale(len(self.dataset.rows), top, bottom, padding=ROW_SPACING)

    def _x(self) -> LinearScale:
        left, right, _top, _bottom = self._plot
        return LinearScale((0.0, self.dataset.max_total * HEADROOM), (left, right))

    def _segments(self, row_index: int, progress: float) -> list[tuple[int, float, float]]:
        """(segment index, x start, width) for each status in a row."""
        x_scale = self._x()
        left = self._plot[0]
        x = left
        spans = []
        for index, (_status, count) in enumerate(self.dataset.rows[row_index].statuses):
            width = (x_scale(count) - left) * progress
            spans.append((index, x, width))
            x += width
        return spans

    def draw(self, progress: float) -> list[Shape]:
        left, right, top, bottom = self._plot
        rows = self._rows()
        x_scale = self._x()
        ramp = severity_ramp(self.theme)
        shapes: list[Shape] = []

        axis_max = self.dataset.max_total * HEADROOM
        for index in range(GRID_LINES):
            value = axis_max * index / (GRID_LINES - 1)
            x = x_scale(value)
            shapes.append(
                PathShape(
                    commands=(MoveTo(x, top), LineTo(x, bottom)),
                    stroke=self.color("grid"),
                    dash=(4.0, 4.0),
                )
            )
            shapes.append(
                TextShape(
                    x=x,
                    y=bottom + 15.0,
                    text=str(round_half_up(value)),
                    color=self.color("text-muted"),
                    size=11.0,
                )
            )

        for row_index, row in enumerate(self.dataset.rows):
            y = rows.band_start(row_index)
            end = left
            for segment, x, width in self._segments(row_index, progress):
                end = x + width
                if width <= 0:
                    continue
                shapes.append(
                    PathShape(
                        commands=rounded_rect_path(x, y, width, rows.bandwidth, 0.0),
                        fill=ramp[segment % len(ramp)],
                        stroke=self.color("background"),
                        opacity=1.0 if self.hovered == (row_index, segment) else 0.85,
                        segment_id=row_index * 1000 + segment,
                    )
                )
            shapes.append(
                TextShape(
                    x=left - 8.0,
                    y=rows.center(row_index),
                    text=truncate(row.application, 18, 16, ".."),
                    color=self.color("text"),
                    size=12.0,
                    anchor="end",
                )
            )
            shapes.append(
                TextShape(
                    x=end + 4.0,
                    y=rows.center(row_index),
                    text=str(row.total),
                    color=self.color("text-muted"),
                    size=11.0,
                    anchor="start",
                )
            )
        return shapes

    def hit_test(self, x: float, y: float) -> Segment | None:
        rows = self._rows()
        row_index = rows.index_at(y)
        if row_index is None:
            return None
        band_top = rows.band_start(row_index)
        if not band_top <= y <= band_top + rows.bandwidth:
            return None
        for segment, start, width in self._segments(row_index, 1.0):
            if start <= x < start + width:
                return (row_index, segment)
        return None

    def tooltip_lines(self, hovered: Segment) -> list[str]:
        row_index, segment = hovered
        row = self.dataset.rows[row_index]
        status, count = row.statuses[segment]
        pct = count / row.total * 100.0 if row.total else 0.0
        return [f"{row.application} - {status}: {count} ({pct:.1f}%)"]

    def tooltip_origin(self, pointer: Point, size: tuple[float, float]) -> Point:
        return (max((self.width - size[0]) / 2.0, 0.0), 10.0)
