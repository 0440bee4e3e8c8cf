"""Viewport state and the continuous zoom model."""

from __future__ import annotations

from dataclasses import dataclass, replace

import numpy as np

from .evaluator import FractalKind

MIN_ZOOM = 1.0
MAX_ZOOM = 1e15
MAX_ZOOM_RATE = 0.5


@dataclass(frozen=True)
class Viewport:
    """Base bounds of the plane at zoom 1 plus the current zoom state."""

    min_x: float
    max_x: float
    min_y: float
    max_y: float
    center_x: float
    center_y: float
    zoom: float = MIN_ZOOM
    zoom_rate: float = 0.01

    def __post_init__(self) -> None:
        if not self.max_x > self.min_x or not self.max_y > self.min_y:
            raise ValueError(
                f"Viewport bounds must have positive extent, got x=[{self.min_x}, {self.max_x}] "
                f"y=[{self.min_y}, {self.max_y}]."
            )

    @property
    def width(self) -> float:
        return (self.max_x - self.min_x) / self.zoom

    @property
    def height(self) -> float:
        return (self.max_y - self.min_y) / self.zoom

    @property
    def center(self) -> tuple[float, float]:
        return self.center_x, self.center_y


@dataclass(frozen=True)
class EffectiveBounds:
    """Rectangle of the plane that is visible at the current zoom."""

    min_x: float
    max_x: float
    min_y: float
    max_y: float


@dataclass(frozen=True)
class FractalSelection:
    """Active fractal kind and the Julia constant frozen when Julia was entered."""

    kind: FractalKind = FractalKind.MANDELBROT
    julia_x: float = 0.0
    julia_y: float = 0.0

    @property
    def julia_constant(self) -> tuple[float, float]:
        return self.julia_x, self.julia_y


@dataclass(frozen=True)
class SliderRange:
    """Vertical slider track that maps a pixel row onto a zoom rate."""

    y0: int
    y1: int

    def __post_init__(self) -> None:
        if self.y1 <= self.y0:
            raise ValueError(f"Slider range must satisfy y0 < y1, got [{self.y0}, {self.y1}].")

    def rate_for(self, pixel_y: int) -> float:
        """Linear map of ``pixel_y`` onto ``[0, MAX_ZOOM_RATE]``.

        The caller clamps ``pixel_y``; rows outside the track give rates outside the range.
        """
        return (pixel_y - self.y0) / (self.y1 - self.y0) * MAX_ZOOM_RATE

    def clamp(self, pixel_y: int) -> int:
        return max(self.y0, min(int(pixel_y), self.y1))

    def position_for(self, zoom_rate: float) -> int:
        return self.y0 + int((zoom_rate / MAX_ZOOM_RATE) * (self.y1 - self.y0))


@dataclass(frozen=True)
class FrameSnapshot:
    """Read-only state shared by every pixel of one frame."""

    viewport: Viewport
    fractal: FractalSelection
    max_iterations: int


def clamp_zoom(zoom: float) -> float:
    return max(MIN_ZOOM, min(zoom, MAX_ZOOM))


def advance(viewport: Viewport, elapsed_seconds: float) -> Viewport:
    """Compound the zoom by ``(1 + zoom_rate) ** elapsed_seconds`` and clamp it."""

    if elapsed_seconds < 0:
        raise ValueError(f"elapsed_seconds must be non-negative, got {elapsed_seconds}.")
    growth = 1.0 + viewport.zoom_rate
    if growth <= 0:
        # No real power of a non-positive base; fall to the zoom floor.
        return replace(viewport, zoom=MIN_ZOOM)
    zoom = viewport.zoom * growth ** elapsed_seconds
    return replace(viewport, zoom=clamp_zoom(zoom))


def effective_bounds(viewport: Viewport) -> EffectiveBounds:
    width = viewport.width
    height = viewport.height
    return EffectiveBounds(
        min_x=viewport.center_x - width / 2,
        max_x=viewport.center_x + width / 2,
        min_y=viewport.center_y - height / 2,
        max_y=viewport.center_y + height / 2,
    )


def pixel_to_plane(viewport: Viewport, px: int, py: int, screen_w: int, screen_h: int) -> tuple[float, float]:
    """Map a pixel onto the plane; pixel ``(screen_w, screen_h)`` lands on the far corner."""

    bounds = effective_bounds(viewport)
    x = bounds.min_x + (bounds.max_x - bounds.min_x) * px / screen_w
    y = bounds.min_y + (bounds.max_y - bounds.min_y) * py / screen_h
    return x, y


def plane_axes(viewport: Viewport, screen_w: int, screen_h: int) -> tuple[np.ndarray, np.ndarray]:
    """Plane coordinates of every pixel column and row, matching :func:`pixel_to_plane`."""

    bounds = effective_bounds(viewport)
    cols = np.arange(screen_w, dtype=np.float64)
    rows = np.arange(screen_h, dtype=np.float64)
    xs = np.float64(bounds.min_x) + np.float64(bounds.max_x - bounds.min_x) * cols / np.float64(screen_w)
    ys = np.float64(bounds.min_y) + np.float64(bounds.max_y - bounds.min_y) * rows / np.float64(screen_h)
    return xs, ys


def toggle_fractal(selection: FractalSelection, center_x: float, center_y: float) -> FractalSelection:
    """Cycle to the next fractal kind, capturing the Julia constant on entry."""

    kind = selection.kind.next()
    if kind is FractalKind.JULIA:
        return FractalSelection(kind=kind, julia_x=float(center_x), julia_y=float(center_y))
    return replace(selection, kind=kind)


class ViewportController:
    """Single writer of the viewport and fractal selection for an interactive session."""

    def __init__(self, viewport: Viewport, slider: SliderRange, fractal: FractalSelection | None = None) -> None:
        self._viewport = replace(viewport, zoom=clamp_zoom(viewport.zoom))
        self._slider = slider
        self._fractal = fractal if fractal is not None else FractalSelection()

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    @property
    def fractal(self) -> FractalSelection:
        return self._fractal

    @property
    def slider(self) -> SliderRange:
        return self._slider

    def set_zoom_rate(self, pixel_y: int) -> None:
        self._viewport = replace(self._viewport, zoom_rate=self._slider.rate_for(pixel_y))

    def advance(self, elapsed_seconds: float) -> None:
        self._viewport = advance(self._viewport, elapsed_seconds)

    def toggle_fractal(self) -> FractalKind:
        self._fractal = toggle_fractal(self._fractal, self._viewport.center_x, self._viewport.center_y)
        return self._fractal.kind

    def pixel_to_plane(self, px: int, py: int, screen_w: int, screen_h: int) -> tuple[float, float]:
        return pixel_to_plane(self._viewport, px, py, screen_w, screen_h)

    def snapshot(self, max_iterations: int) -> FrameSnapshot:
        return FrameSnapshot(viewport=self._viewport, fractal=self._fractal, max_iterations=max_iterations)
