from __future__ import annotations

import pytest

from posture_dashboard.viz.scheduling import Animation, Debouncer, FrameScheduler, ease_out_cubic
from posture_dashboard.viz.theme import (
    SEMANTIC_KEYS,
    chart_colors,
    THEMES,
    default_color_semantics,
    radial_color,
    resolve_color,
    severity_color,
    severity_index,
    toggled,
)


def test_every_semantic_key_resolves_in_both_themes() -> None:
    for theme in THEMES:
        for key in SEMANTIC_KEYS:
            assert resolve_color(theme, key).startswith("#")


def test_resolve_color_passes_literals_and_rejects_unknown_keys() -> None:
    assert resolve_color("dark", "#123456") == "#123456"
    assert resolve_color("light", "background") == "#ffffff"
    assert resolve_color("dark", "background") == "#0a0a0a"
    with pytest.raises(ValueError):
        resolve_color("light", "chart-9")
    with pytest.raises(ValueError):
        resolve_color("sepia", "text")


def test_default_color_semantics_is_a_copy() -> None:
    palette = default_color_semantics()
    palette["light"]["semantic"]["text"] = "#000000"

    assert resolve_color("light", "text") == "#171717"


def test_chart_colors_cover_every_key_and_are_a_copy() -> None:
    colors = chart_colors("dark")
    colors["text"] = "#000000"

    assert set(chart_colors("light")) == set(SEMANTIC_KEYS)
    assert chart_colors("dark")["text"] == resolve_color("dark", "text")
    with pytest.raises(ValueError):
        chart_colors("sepia")


def test_severity_colors_follow_the_ramp() -> None:
    assert severity_index("Critical") == 0
    assert severity_index(" low ") == 3
    assert severity_index("Unknown") == 4
    assert severity_color("light", "Critical") == "#171717"
    assert severity_color("dark", "Critical") == "#fafafa"


def test_radial_colors_are_theme_independent_hex() -> None:
    assert radial_color("chart-2") == "#3b82f6"
    assert radial_color("muted") == "#71717a"
    assert radial_color("#abcdef") == "#abcdef"
    assert radial_color(None) == "#3b82f6"


def test_toggled_flips_theme() -> None:
    assert toggled("light") == "dark"
    assert toggled("dark") == "light"
    with pytest.raises(ValueError):
        toggled("blue")


def test_scheduler_runs_callbacks_in_due_order() -> None:
    scheduler = FrameScheduler()
    calls: list[str] = []
    scheduler.schedule(20, lambda: calls.append("late"))
    scheduler.schedule(10, lambda: calls.append("first"))
    scheduler.schedule(10, lambda: calls.append("second"))
    cancelled = scheduler.schedule(5, lambda: calls.append("cancelled"))
    scheduler.cancel(cancelled)

    assert scheduler.pending == 3
    assert scheduler.advance(15) == 2
    assert calls == ["first", "second"]
    assert scheduler.now_ms == 15
    scheduler.run_until_idle()
    assert calls == ["first", "second", "late"]


def test_debouncer_fires_once_after_quiet_period() -> None:
    scheduler = FrameScheduler()
    fired: list[float] = []
    debounced = Debouncer(scheduler, 250, lambda: fired.append(scheduler.now_ms))

    debounced()
    scheduler.advance(100)
    debounced()
    scheduler.advance(100)
    debounced()
    scheduler.advance(249)
    assert fired == []

    scheduler.advance(1)
    assert fired == [450]
    scheduler.run_until_idle()
    assert fired == [450]


def test_animation_starts_at_zero_and_ends_at_one() -> None:
    scheduler = FrameScheduler()
    frames: list[float] = []

    animation = Animation(scheduler, 100, frames.append).start()
    scheduler.run_until_idle()

    assert frames[0] == 0.0
    assert frames[-1] == 1.0
    assert frames == sorted(frames)
    assert animation.finished


def test_zero_duration_animation_draws_final_frame_immediately() -> None:
    frames: list[float] = []

    Animation(FrameScheduler(), 0, frames.append).start()

    assert frames == [1.0]


def test_ease_out_cubic_is_clamped() -> None:
    assert ease_out_cubic(-1.0) == 0.0
    assert ease_out_cubic(0.5) == pytest.approx(0.875)
    assert ease_out_cubic(2.0) == 1.0
