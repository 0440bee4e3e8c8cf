"""Whole-frame rendering on top of the batched escape evaluator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .evaluator import escape_values
from .palette import colorize
from .viewport import FrameSnapshot, plane_axes


@dataclass(frozen=True)
class RenderResult:
    """Escape values and colored pixels for one frame."""

    escape: np.ndarray
    pixels: np.ndarray
    snapshot: FrameSnapshot

    @property
    def interior(self) -> np.ndarray:
        return self.escape >= self.snapshot.max_iterations


def escape_grid(snapshot: FrameSnapshot, width: int, height: int, *, device: Optional[str] = None) -> np.ndarray:
    """Escape value of every pixel, shaped ``(height, width)``."""

    xs, ys = plane_axes(snapshot.viewport, width, height)
    re, im = np.meshgrid(xs, ys)
    fractal = snapshot.fractal
    return escape_values(
        re,
        im,
        fractal.kind,
        fractal.julia_constant,
        snapshot.max_iterations,
        device=device,
    )


def render_frame(snapshot: FrameSnapshot, width: int, height: int, *, device: Optional[str] = None) -> RenderResult:
    """Render a frame of ``width`` x ``height`` pixels from a frozen snapshot."""

    width = int(width)
    height = int(height)
    if width < 1 or height < 1:
        raise ValueError(f"Frame size must be at least 1x1, got {width}x{height}.")
    escape = escape_grid(snapshot, width, height, device=device)
    return RenderResult(
        escape=escape,
        pixels=colorize(escape, snapshot.max_iterations),
        snapshot=snapshot,
    )
