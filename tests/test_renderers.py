from __future__ import annotations

import pytest

from posture_dashboard.features.datasets import (
    ApplicationStatusBreakdown,
    ApplicationStatusRow,
    CategoryDistribution,
    CategoryPoint,
    MultiSeries,
    OwnershipCategory,
    OwnershipDistribution,
    Series,
    SparklineSeries,
    TimelineBucket,
    TimelineSeries,
)
from posture_dashboard.viz.bar import BarChart
from posture_dashboard.viz.base import PLACEHOLDER_TEXT
from posture_dashboard.viz.commands import CircleShape, CubicTo
from posture_dashboard.viz.donut import DonutChart
from posture_dashboard.viz.line import LineChart, axis_label, smooth_path
from posture_dashboard.viz.radial import OwnershipRadialChart
from posture_dashboard.viz.scheduling import FrameScheduler
from posture_dashboard.viz.sparkline import SparklineChart
from posture_dashboard.viz.stacked import ApplicationStatusChart
from posture_dashboard.viz.timeline import TimelineChart


def _severity(values: list[int]) -> CategoryDistribution:
    labels = ["Critical", "High", "Medium", "Low"]
    return CategoryDistribution(
        kind="severity_distribution",
        points=tuple(CategoryPoint(label, value) for label, value in zip(labels, values)),
    )


def _trends() -> MultiSeries:
    return MultiSeries(
        kind="monthly_trends",
        labels=("2024-01", "2024-02", "2024-03"),
        series=(
            Series("Total", (4, 6, 5), "primary"),
            Series("Active", (2, 3, 1), "destructive"),
        ),
    )


def _ownership() -> OwnershipDistribution:
    return OwnershipDistribution(
        categories=(
            OwnershipCategory("Platform", 6, 60.0, "chart-1", 0),
            OwnershipCategory("Web", 4, 40.0, "chart-2", 1),
        ),
        total=10,
    )


def test_new_renderer_is_constructed_until_first_render() -> None:
    chart = BarChart("severity-bar-chart", 600, 300)

    assert chart.state == "constructed"
    chart.set_data(_severity([1, 2, 3, 4]))
    assert chart.state == "rendered"


def test_empty_dataset_draws_placeholder() -> None:
    chart = BarChart("severity-bar-chart", 600, 300)

    frame = chart.set_data(_severity([0, 0, 0, 0]))

    assert frame.placeholder
    assert frame.texts() == [PLACEHOLDER_TEXT]
    assert chart.pointer_move(100, 100).hovered is None


def test_wrong_dataset_type_is_rejected() -> None:
    with pytest.raises(TypeError):
        BarChart("severity-bar-chart", 600, 300).set_data(_trends())


def test_bar_chart_hit_test_and_tooltip() -> None:
    chart = BarChart("severity-bar-chart", 600, 300)
    chart.set_data(_severity([3, 1, 0, 2]))

    frame = chart.pointer_move(116.25, 200)

    assert chart.state == "hovering"
    assert frame.hovered == 0
    assert "Critical: 3" in frame.texts()
    assert chart.hit_test(116.25, 250) is None
    assert chart.hit_test(590, 100) is None
    assert chart.pointer_leave().hovered is None
    assert chart.state == "rendered"


def test_bar_heights_follow_progress() -> None:
    chart = BarChart("severity-bar-chart", 600, 300)
    chart.set_data(_severity([3, 1, 0, 2]))

    start = chart.render(progress=0.0)
    done = chart.render(progress=1.0)

    assert not [path for path in start.paths() if path.segment_id is not None]
    assert [path.segment_id for path in done.paths() if path.segment_id is not None] == [0, 1, 3]


def test_donut_hit_test_by_angle_and_ring() -> None:
    chart = DonutChart("severity-pie-chart", 300, 300)
    frame = chart.set_data(_severity([1, 1, 0, 0]))

    assert chart.hit_test(250, 150) == 0
    assert chart.hit_test(50, 150) == 1
    assert chart.hit_test(150, 150) is None
    assert chart.hit_test(299, 150) is None
    assert "50.0%" in frame.texts()
    assert "2" in frame.texts()
    assert "Total" in frame.texts()


def test_donut_hover_tooltip() -> None:
    chart = DonutChart("severity-pie-chart", 300, 300)
    chart.set_data(_severity([3, 1, 0, 0]))

    frame = chart.pointer_move(250, 150)

    assert frame.hovered == 0
    assert "Critical: 3 (75.0%)" in frame.texts()


def test_donut_hovered_slice_keeps_hover_across_its_grown_rim() -> None:
    chart = DonutChart("severity-pie-chart", 300, 300)
    chart.set_data(_severity([1, 1, 0, 0]))

    assert chart.hit_test(273, 150) is None
    assert chart.pointer_move(269, 150).hovered == 0
    assert chart.pointer_move(273, 150).hovered == 0
    assert chart.hit_test(27, 150) is None
    assert chart.pointer_move(290, 150).hovered is None


def test_line_chart_hit_test_snaps_to_nearest_month() -> None:
    chart = LineChart("trends-line-chart", 700, 350)
    chart.set_data(_trends())

    assert chart.hit_test(670, 100) == 2
    assert chart.hit_test(360, 100) == 1
    assert chart.hit_test(40, 100) is None
    assert [chart.hit_test(chart._x()(index), 100) for index in range(3)] == [0, 1, 2]

    frame = chart.pointer_move(50, 100)
    assert frame.texts()[-3:] == ["Jan 2024", "Total: 4", "Active: 2"]


def test_line_helpers() -> None:
    assert axis_label("2024-01") == "Jan 2024"
    assert axis_label("Q1") == "Q1"
    assert all(isinstance(command, CubicTo) for command in smooth_path([(0, 0), (1, 1), (2, 0)])[1:])
    assert len(smooth_path([(0, 0), (1, 1)])) == 2


def test_timeline_chart_tooltip() -> None:
    chart = TimelineChart("timeline-chart", 700, 280)
    chart.set_data(
        TimelineSeries(
            buckets=(TimelineBucket(2024, 1, 3), TimelineBucket(2024, 2, 0), TimelineBucket(2024, 3, 5))
        )
    )

    frame = chart.pointer_move(100, 150)

    assert frame.hovered == 0
    assert "Jan 2024: 3 vulnerabilities" in frame.texts()
    assert chart.render(progress=1.0).paths()


def test_timeline_without_counts_is_empty() -> None:
    chart = TimelineChart("timeline-chart", 700, 280)

    frame = chart.set_data(TimelineSeries(buckets=(TimelineBucket(2024, 1, 0),)))

    assert frame.placeholder


def test_application_status_hit_test_returns_row_and_segment() -> None:
    chart = ApplicationStatusChart("application-status-chart", 700, 400)
    chart.set_data(
        ApplicationStatusBreakdown(
            rows=(ApplicationStatusRow("A", (("Active", 2), ("Fixed", 2)), 4),)
        )
    )

    assert chart.hit_test(200, 150) == (0, 0)
    assert chart.hit_test(400, 150) == (0, 1)
    assert chart.hit_test(670, 150) is None
    assert chart.hit_test(200, 50) is None

    frame = chart.pointer_move(400, 150)
    assert "A - Fixed: 2 (50.0%)" in frame.texts()
    segment_ids = [path.segment_id for path in frame.paths() if path.segment_id is not None]
    assert segment_ids == [0, 1]


def test_radial_chart_places_largest_owner_outermost() -> None:
    chart = OwnershipRadialChart("all-owners-radial-chart", 560, 560)
    frame = chart.set_data(_ownership())

    platform_inner, platform_outer = chart.ring_radii(0)
    web_inner, web_outer = chart.ring_radii(1)
    assert platform_inner == pytest.approx(web_outer)
    assert platform_outer > web_outer
    assert "60.00%" in frame.texts()
    assert "Platform" in frame.texts()


def test_radial_hover_is_driven_by_ring_events() -> None:
    chart = OwnershipRadialChart("all-owners-radial-chart", 560, 560)
    chart.set_data(_ownership())

    frame = chart.pointer_over(1)
    assert frame.hovered == 1
    assert "4 findings (40.00%)" in frame.texts()

    assert chart.pointer_move(280, 280).hovered is None
    chart.pointer_over(0)
    assert chart.pointer_out().hovered is None
    with pytest.raises(IndexError):
        chart.pointer_over(5)


def test_sparkline_with_flat_values_draws_a_level_line() -> None:
    chart = SparklineChart("sparkline-total", 200, 40)
    frame = chart.set_data(SparklineSeries("total", ("a", "b", "c"), (3, 3, 3)))

    points = chart.points()
    assert {y for _x, y in points} == {36.0}
    assert points[0][0] == 4.0
    assert points[-1][0] == 196.0
    assert len([shape for shape in frame.shapes if isinstance(shape, CircleShape)]) == 2


def test_single_point_sparkline_has_one_dot() -> None:
    chart = SparklineChart("sparkline-total", 200, 40)
    frame = chart.set_data(SparklineSeries("total", ("a",), (2,)))

    assert len([shape for shape in frame.shapes if isinstance(shape, CircleShape)]) == 1
    assert chart.points() == [(100.0, 36.0)]


def test_sparkline_points_scale_between_padding_and_follow_progress() -> None:
    chart = SparklineChart("sparkline-total", 200, 40)
    chart.set_data(SparklineSeries("total", ("a", "b", "c"), (0, 2, 4)))

    assert chart.points() == [(4.0, 36.0), (100.0, 20.0), (196.0, 4.0)]
    assert chart.points(progress=0.5)[-1] == (196.0, 20.0)
    assert {y for _x, y in chart.points(progress=0.0)} == {36.0}


def test_theme_change_redraws_with_new_colors() -> None:
    chart = DonutChart("severity-pie-chart", 300, 300)
    chart.set_data(_severity([1, 1, 0, 0]))

    frame = chart.render(theme="dark")

    assert frame.background == "#0a0a0a"
    assert frame.metadata["theme"] == "dark"
    with pytest.raises(ValueError):
        chart.render(theme="sepia")  # type: ignore[arg-type]


def test_animation_ends_on_a_complete_frame() -> None:
    scheduler = FrameScheduler()
    chart = LineChart("trends-line-chart", 700, 350, device_pixel_ratio=2.0)
    chart.set_data(_trends())

    animation = chart.animate(scheduler, 200)
    assert chart.last_frame.progress == 0.0
    scheduler.run_until_idle()

    assert animation.finished
    assert chart.last_frame.progress == 1.0
    assert chart.last_frame.metadata["backing_width"] == 1400
