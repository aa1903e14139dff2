from __future__ import annotations

import logging
import math
from typing import Any, ClassVar, Literal

from posture_dashboard.features.datasets import ChartDataset
from posture_dashboard.viz.commands import Frame, LineTo, MoveTo, PathShape, Shape, TextShape
from posture_dashboard.viz.geometry import Point, place_tooltip, rounded_rect_path, surface_size
from posture_dashboard.viz.scheduling import Animation, FrameScheduler
from posture_dashboard.viz.theme import THEMES, Theme, resolve_color

LOGGER = logging.getLogger(__name__)

RendererState = Literal["constructed", "rendered", "hovering"]

PLACEHOLDER_TEXT = "No data available"
TOOLTIP_LINE_HEIGHT = 18.0
TOOLTIP_CHAR_WIDTH = 7.0
TOOLTIP_PADDING = 8.0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def truncate(text: str, limit: int, keep: int, suffix: str) -> str:
    return text if len(text) <= limit else text[:keep] + suffix


class ChartRenderer:
    """Base state machine for one chart bound to one drawing surface.

    ``draw`` is a pure function of the dataset, the surface layout, the theme,
    the hovered segment and the animation progress. Every transition ends in a
    full redraw stored on ``last_frame``.
    """

    kind: ClassVar[str] = "chart"
    dataset_types: ClassVar[tuple[type, ...]] = ()

    def __init__(
        self,
        surface_id: str,
        width: float,
        height: float,
        theme: Theme = "light",
        device_pixel_ratio: float = 1.0,
    ) -> None:
        self.surface_id = surface_id
        self.width = float(width)
        self.height = float(height)
        self.theme: Theme = theme
        self.device_pixel_ratio = device_pixel_ratio
        self.dataset: ChartDataset | None = None
        self.hovered: Any = None
        self.pointer: Point | None = None
        self.progress = 1.0
        self.last_frame: Frame | None = None
        self._rendered = False

    @property
    def state(self) -> RendererState:
        if not self._rendered:
            return "constructed"
        return "hovering" if self.hovered is not None else "rendered"

    def color(self, key: str) -> str:
        return resolve_color(self.theme, key)

    def has_data(self, dataset: ChartDataset) -> bool:
        return not getattr(dataset, "is_empty", True)

    def set_data(self, dataset: ChartDataset) -> Frame:
        if self.dataset_types and not isinstance(dataset, self.dataset_types):
            raise TypeError(
                f"{type(self).__name__} cannot draw {type(dataset).__name__} datasets."
            )
        LOGGER.debug("Drawing %s dataset on %s", type(dataset).__name__, self.surface_id)
        self.dataset = dataset
        self.hovered = None
        self.pointer = None
        self._rendered = False
        return self.render()

    def render(self, theme: Theme | None = None, progress: float | None = None) -> Frame:
        if theme is not None:
            if theme not in THEMES:
                raise ValueError(f"Unknown theme: {theme!r}")
            self.theme = theme
        if progress is not None:
            self.progress = min(max(progress, 0.0), 1.0)

        size = surface_size(self.width, self.height, self.device_pixel_ratio)
        placeholder = self.dataset is None or not self.has_data(self.dataset)
        if placeholder:
            shapes: list[Shape] = [self._placeholder()]
        else:
            shapes = list(self.draw(self.progress))
            if self.hovered is not None:
                shapes.extend(self._tooltip())

        self._rendered = True
        self.last_frame = Frame(
            surface_id=self.surface_id,
            width=size.width,
            height=size.height,
            scale=size.scale,
            shapes=tuple(shapes),
            background=self.color("background"),
            hovered=self.hovered,
            progress=self.progress,
            placeholder=placeholder,
            metadata={
                "kind": self.kind,
                "theme": self.theme,
                "backing_width": size.backing_width,
                "backing_height": size.backing_height,
            },
        )
        return self.last_frame

    def draw(self, progress: float) -> list[Shape]:
        raise NotImplementedError

    def hit_test(self, x: float, y: float) -> Any:
        return None

    def tooltip_lines(self, hovered: Any) -> list[str]:
        return []

    def tooltip_origin(self, pointer: Point, size: tuple[float, float]) -> Point:
        return place_tooltip(pointer, size, (self.width, self.height))

    def pointer_move(self, x: float, y: float) -> Frame:
        if self.dataset is None or not self.has_data(self.dataset):
            return self.last_frame or self.render()
        self.pointer = (x, y)
        self.hovered = self.hit_test(x, y)
        return self.render()

    def pointer_leave(self) -> Frame:
        self.hovered = None
        self.pointer = None
        return self.render()

    def animate(self, scheduler: FrameScheduler, duration_ms: float) -> Animation:
        return Animation(
            scheduler,
            duration_ms,
            lambda progress: self.render(progress=progress),
        ).start()

    def _placeholder(self) -> TextShape:
        return TextShape(
            x=self.width / 2.0,
            y=self.height / 2.0,
            text=PLACEHOLDER_TEXT,
            color=self.color("text-muted"),
            size=14.0,
        )

    def _tooltip(self) -> list[Shape]:
        lines = self.tooltip_lines(self.hovered)
        if not lines:
            return []
        width = max(len(line) for line in lines) * TOOLTIP_CHAR_WIDTH + 2 * TOOLTIP_PADDING
        height = len(lines) * TOOLTIP_LINE_HEIGHT + TOOLTIP_PADDING
        pointer = self.pointer or (self.width / 2.0, self.height / 2.0)
        x, y = self.tooltip_origin(pointer, (width, height))
        shapes: list[Shape] = [
            PathShape(
                commands=rounded_rect_path(x, y, width, height, 4.0),
                fill=self.color("tooltip"),
                stroke=self.color("tooltip-border"),
                opacity=0.95,
            )
        ]
        for index, line in enumerate(lines):
            shapes.append(
                TextShape(
                    x=x + TOOLTIP_PADDING,
                    y=y + TOOLTIP_PADDING / 2.0 + (index + 0.5) * TOOLTIP_LINE_HEIGHT,
                    text=line,
                    color=self.color("text"),
                    size=12.0,
                    anchor="start",
                    weight="bold" if index == 0 and len(lines) > 1 else "normal",
                )
            )
        return shapes


def grid_lines(
    renderer: ChartRenderer,
    *,
    left: float,
    right: float,
    top: float,
    bottom: float,
    max_value: float,
    lines: int = 6,
) -> list[Shape]:
    """Dashed horizontal grid lines with rounded value labels on the left axis."""
    shapes: list[Shape] = []
    steps = lines - 1
    for index in range(lines):
        y = top + (bottom - top) * index / steps
        value = max_value - max_value * index / steps
        shapes.append(
            PathShape(
                commands=(MoveTo(left, y), LineTo(right, y)),
                stroke=renderer.color("grid"),
                dash=(4.0, 4.0),
            )
        )
        shapes.append(
            TextShape(
                x=left - 10.0,
                y=y,
                text=str(round_half_up(value)),
                color=renderer.color("text-muted"),
                size=11.0,
                anchor="end",
            )
        )
    return shapes
