from __future__ import annotations

import math
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import Circle, PathPatch
from matplotlib.path import Path as MplPath

from posture_dashboard.viz.commands import (
    ArcTo,
    CircleShape,
    ClosePath,
    CubicTo,
    Frame,
    LineTo,
    MoveTo,
    PathCommand,
    PathShape,
    QuadTo,
    TextShape,
)
from posture_dashboard.viz.common import save_figure
from posture_dashboard.viz.geometry import polar_to_cartesian

BASE_DPI = 100.0
ARC_STEP_RADIANS = math.pi / 90.0
PX_TO_PT = 0.75
_VERTICAL_ALIGN = {"top": "top", "middle": "center", "bottom": "bottom"}
_HORIZONTAL_ALIGN = {"start": "left", "middle": "center", "end": "right"}


def _arc_points(command: ArcTo) -> np.ndarray:
    span = command.end_angle - command.start_angle
    steps = max(2, int(math.ceil(abs(span) / ARC_STEP_RADIANS)) + 1)
    angles = np.linspace(command.start_angle, command.end_angle, steps)[1:]
    center = (command.cx, command.cy)
    return np.array([polar_to_cartesian(center, command.radius, angle) for angle in angles])


def to_mpl_path(commands: tuple[PathCommand, ...]) -> MplPath:
    """Translate draw commands into a matplotlib path; arcs are sampled."""
    vertices: list[tuple[float, float]] = []
    codes: list[int] = []
    start: tuple[float, float] | None = None
    for command in commands:
        if isinstance(command, MoveTo):
            start = (command.x, command.y)
            vertices.append(start)
            codes.append(MplPath.MOVETO)
        elif isinstance(command, LineTo):
            vertices.append((command.x, command.y))
            codes.append(MplPath.LINETO)
        elif isinstance(command, QuadTo):
            vertices += [(command.cx, command.cy), (command.x, command.y)]
            codes += [MplPath.CURVE3, MplPath.CURVE3]
        elif isinstance(command, CubicTo):
            vertices += [
                (command.c1x, command.c1y),
                (command.c2x, command.c2y),
                (command.x, command.y),
            ]
            codes += [MplPath.CURVE4] * 3
        elif isinstance(command, ArcTo):
            for x, y in _arc_points(command):
                vertices.append((float(x), float(y)))
                codes.append(MplPath.LINETO)
        elif isinstance(command, ClosePath):
            vertices.append(start or (0.0, 0.0))
            codes.append(MplPath.CLOSEPOLY)
    return MplPath(vertices, codes)


def plot_frame(frame: Frame, output_path: Path) -> Path:
    plt.figure(
        figsize=(frame.width / BASE_DPI, frame.height / BASE_DPI),
        dpi=BASE_DPI * frame.scale,
        facecolor=frame.background or "white",
    )
    ax = plt.axes((0.0, 0.0, 1.0, 1.0))
    ax.set_xlim(0, frame.width)
    ax.set_ylim(frame.height, 0)
    ax.set_axis_off()
    ax.set_facecolor(frame.background or "white")

    for shape in frame.shapes:
        if isinstance(shape, PathShape):
            if not shape.commands:
                continue
            ax.add_patch(
                PathPatch(
                    to_mpl_path(shape.commands),
                    facecolor=shape.fill or "none",
                    edgecolor=shape.stroke or "none",
                    linewidth=shape.stroke_width * PX_TO_PT if shape.stroke else 0.0,
                    linestyle=(0, shape.dash) if shape.dash else "solid",
                    alpha=shape.opacity,
                )
            )
        elif isinstance(shape, CircleShape):
            ax.add_patch(
                Circle(
                    (shape.cx, shape.cy),
                    shape.radius,
                    facecolor=shape.fill or "none",
                    edgecolor=shape.stroke or "none",
                    linewidth=shape.stroke_width * PX_TO_PT if shape.stroke else 0.0,
                    alpha=shape.opacity,
                )
            )
        elif isinstance(shape, TextShape):
            ax.text(
                shape.x,
                shape.y,
                shape.text,
                color=shape.color,
                fontsize=shape.size * PX_TO_PT,
                fontweight=shape.weight,
                ha=_HORIZONTAL_ALIGN[shape.anchor],
                va=_VERTICAL_ALIGN[shape.baseline],
                rotation=-shape.rotation,
                rotation_mode="anchor",
                alpha=shape.opacity,
            )
    return save_figure(output_path, tight=False, facecolor=frame.background or "white")


def plot_frames(frames: dict[str, Frame], figures_dir: Path, fmt: str = "png") -> list[Path]:
    return [
        plot_frame(frame, figures_dir / f"{surface_id}.{fmt}")
        for surface_id, frame in frames.items()
    ]
