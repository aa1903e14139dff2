from __future__ import annotations

from posture_dashboard.features.datasets import CategoryDistribution, ChartDataset
from posture_dashboard.viz.base import ChartRenderer, grid_lines, truncate
from posture_dashboard.viz.commands import PathShape, Shape, TextShape
from posture_dashboard.viz.geometry import BandScale, LinearScale, rounded_rect_path
from posture_dashboard.viz.theme import severity_color

PADDING = {"top": 20.0, "right": 20.0, "bottom": 60.0, "left": 50.0}
BAR_FRACTION = 0.6
BAR_RADIUS = 6.0


class BarChart(ChartRenderer):
    """Vertical bars for a category distribution (severity or top applications)."""

    kind = "bar"
    dataset_types = (CategoryDistribution,)

    def has_data(self, dataset: ChartDataset) -> bool:
        return isinstance(dataset, CategoryDistribution) and dataset.total > 0

    @property
    def _plot(self) -> tuple[float, float, float, float]:
        return (
            PADDING["left"],
            self.width - PADDING["right"],
            PADDING["top"],
            self.height - PADDING["bottom"],
        )

    def _bands(self) -> BandScale:
        left, right, _top, _bottom = self._plot
        return BandScale(len(self.dataset.points), left, right, padding=1.0 - BAR_FRACTION)

    def _values(self) -> LinearScale:
        _left, _right, top, bottom = self._plot
        return LinearScale((0.0, float(max(self.dataset.values))), (bottom, top))

    def _bar_color(self, label: str, color: str | None) -> str:
        if self.dataset.kind == "severity_distribution":
            return severity_color(self.theme, label)
        return self.color(color or "primary")

    def draw(self, progress: float) -> list[Shape]:
        dataset = self.dataset
        left, right, top, bottom = self._plot
        bands = self._bands()
        values = self._values()
        shapes = grid_lines(
            self,
            left=left,
            right=right,
            top=top,
            bottom=bottom,
            max_value=max(dataset.values),
        )
        for index, point in enumerate(dataset.points):
            bar_height = (bottom - values(point.value)) * progress
            x = bands.band_start(index)
            y = bottom - bar_height
            if bar_height > 0:
                shapes.append(
                    PathShape(
                        commands=rounded_rect_path(
                            x, y, bands.bandwidth, bar_height, BAR_RADIUS, top_only=True
                        ),
                        fill=self._bar_color(point.label, point.color),
                        opacity=1.0 if self.hovered == index else 0.85,
                        segment_id=index,
                    )
                )
            shapes.append(
                TextShape(
                    x=bands.center(index),
                    y=y - 8.0,
                    text=str(point.value),
                    color=self.color("text"),
                    size=12.0,
                    baseline="bottom",
                    weight="bold",
                )
            )
            shapes.append(
                TextShape(
                    x=bands.center(index),
                    y=bottom + 20.0,
                    text=truncate(point.label, 14, 12, ".."),
                    color=self.color("text-muted"),
                    size=12.0,
                )
            )
        return shapes

    def hit_test(self, x: float, y: float) -> int | None:
        _left, _right, top, bottom = self._plot
        if not top <= y <= bottom:
            return None
        return self._bands().index_at(x)

    def tooltip_lines(self, hovered: int) -> list[str]:
        point = self.dataset.points[hovered]
        return [f"{point.label}: {point.value}"]
