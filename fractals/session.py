"""Interactive session: the per-frame interface a host drives."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .evaluator import FractalKind, evaluate
from .overlay import SidebarAction, SidebarLayout
from .palette import map_color
from .renderer import RenderResult, render_frame
from .viewport import FractalSelection, FrameSnapshot, Viewport, ViewportController, pixel_to_plane

DEFAULT_MAX_ITERATIONS = 200
DEFAULT_CENTER = (0.42884, -0.231345)


@dataclass(frozen=True)
class SessionConfig:
    """Startup configuration of a session."""

    min_x: float = -2.5
    max_x: float = 1.0
    min_y: float = -1.5
    max_y: float = 1.5
    center_x: float = DEFAULT_CENTER[0]
    center_y: float = DEFAULT_CENTER[1]
    zoom_rate: float = 0.01
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    kind: FractalKind = FractalKind.MANDELBROT
    layout: SidebarLayout = field(default_factory=SidebarLayout)

    def initial_viewport(self) -> Viewport:
        return Viewport(
            min_x=self.min_x,
            max_x=self.max_x,
            min_y=self.min_y,
            max_y=self.max_y,
            center_x=self.center_x,
            center_y=self.center_y,
            zoom=1.0,
            zoom_rate=self.zoom_rate,
        )

    def initial_fractal(self) -> FractalSelection:
        if self.kind is FractalKind.JULIA:
            return FractalSelection(kind=self.kind, julia_x=self.center_x, julia_y=self.center_y)
        return FractalSelection(kind=self.kind)


class FractalSession:
    """Owns the controller and serves ``update`` / ``render`` calls from a host loop."""

    def __init__(self, config: Optional[SessionConfig] = None) -> None:
        self.config = config if config is not None else SessionConfig()
        if self.config.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {self.config.max_iterations}.")
        self._controller = ViewportController(
            self.config.initial_viewport(),
            self.config.layout.slider,
            self.config.initial_fractal(),
        )
        self._snapshot = self._controller.snapshot(self.config.max_iterations)

    @property
    def viewport(self) -> Viewport:
        return self._controller.viewport

    @property
    def fractal(self) -> FractalKind:
        return self._controller.fractal.kind

    @property
    def fractal_name(self) -> str:
        return self.fractal.label

    @property
    def julia_constant(self) -> tuple[float, float]:
        return self._controller.fractal.julia_constant

    @property
    def zoom(self) -> float:
        return self.viewport.zoom

    @property
    def zoom_rate(self) -> float:
        return self.viewport.zoom_rate

    @property
    def center(self) -> tuple[float, float]:
        return self.viewport.center

    @property
    def snapshot(self) -> FrameSnapshot:
        return self._snapshot

    def handle_click(self, x: int, y: int) -> SidebarAction:
        return self.config.layout.hit_test(x, y)

    def update(
        self,
        elapsed_seconds: float,
        zoom_rate_input: Optional[int] = None,
        toggle_requested: bool = False,
    ) -> FrameSnapshot:
        """Apply this frame's input, advance the zoom, and freeze the result for rendering."""

        if zoom_rate_input is not None:
            self._controller.set_zoom_rate(zoom_rate_input)
        if toggle_requested:
            self._controller.toggle_fractal()
        self._controller.advance(elapsed_seconds)
        self._snapshot = self._controller.snapshot(self.config.max_iterations)
        return self._snapshot

    def render_pixel(self, px: int, py: int, screen_w: int, screen_h: int) -> tuple[int, int, int, int]:
        snapshot = self._snapshot
        point = pixel_to_plane(snapshot.viewport, px, py, screen_w, screen_h)
        value = evaluate(point, snapshot.fractal.julia_constant, snapshot.fractal.kind, snapshot.max_iterations)
        return map_color(value, snapshot.max_iterations)

    def render_frame(self, screen_w: int, screen_h: int, *, device: Optional[str] = None) -> RenderResult:
        return render_frame(self._snapshot, screen_w, screen_h, device=device)

    def render(self, screen_w: int, screen_h: int, *, device: Optional[str] = None) -> np.ndarray:
        """RGBA pixel buffer of shape ``(screen_h, screen_w, 4)``."""

        return self.render_frame(screen_w, screen_h, device=device).pixels
