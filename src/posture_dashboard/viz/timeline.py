from __future__ import annotations

from posture_dashboard.features.datasets import ChartDataset, TimelineSeries
from posture_dashboard.viz.base import ChartRenderer, grid_lines
from posture_dashboard.viz.commands import PathShape, Shape, TextShape
from posture_dashboard.viz.geometry import BandScale, LinearScale, rounded_rect_path
from posture_dashboard.viz.theme import severity_ramp

PADDING = {"top": 40.0, "right": 20.0, "bottom": 60.0, "left": 60.0}
BAR_SPACING = 0.2
BAR_RADIUS = 4.0
HEADROOM = 1.1
MAX_X_LABELS = 12


class TimelineChart(ChartRenderer):
    """Monthly detection counts as a bar per month."""

    kind = "timeline"
    dataset_types = (TimelineSeries,)

    def has_data(self, dataset: ChartDataset) -> bool:
        return isinstance(dataset, TimelineSeries) and dataset.max_count > 0

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
        return BandScale(len(self.dataset.buckets), left, right, padding=BAR_SPACING)

    def draw(self, progress: float) -> list[Shape]:
        buckets = self.dataset.buckets
        left, right, top, bottom = self._plot
        y_max = self.dataset.max_count * HEADROOM
        values = LinearScale((0.0, y_max), (bottom, top))
        bands = self._bands()
        fill = severity_ramp(self.theme)[0]

        shapes = grid_lines(self, left=left, right=right, top=top, bottom=bottom, max_value=y_max)
        label_every = max(1, len(buckets) // MAX_X_LABELS)
        for index, bucket in enumerate(buckets):
            bar_height = (bottom - values(bucket.count)) * progress
            if bar_height > 0:
                shapes.append(
                    PathShape(
                        commands=rounded_rect_path(
                            bands.band_start(index),
                            bottom - bar_height,
                            bands.bandwidth,
                            bar_height,
                            BAR_RADIUS,
                            top_only=True,
                        ),
                        fill=fill,
                        opacity=1.0 if self.hovered == index else 0.8,
                        segment_id=index,
                    )
                )
            if index % label_every == 0:
                shapes.append(
                    TextShape(
                        x=bands.center(index),
                        y=bottom + 15.0,
                        text=bucket.label,
                        color=self.color("text-muted"),
                        size=11.0,
                        anchor="end",
                        rotation=-45.0,
                    )
                )
        return shapes

    def hit_test(self, x: float, y: float) -> int | None:
        _left, _right, top, bottom = self._plot
        if not top <= y <= bottom:
            return None
        return self._bands().index_at(x)

    def tooltip_lines(self, hovered: int) -> list[str]:
        bucket = self.dataset.buckets[hovered]
        return [f"{bucket.label}: {bucket.count} vulnerabilities"]
