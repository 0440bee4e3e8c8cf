"""Public API for escape-time fractal zoom rendering."""

from .evaluator import FractalKind, escape_values, evaluate, smooth_escape
from .overlay import SidebarAction, SidebarLayout, draw_overlay
from .palette import INTERIOR_COLOR, PALETTE, colorize, map_color
from .renderer import RenderResult, escape_grid, render_frame
from .session import FractalSession, SessionConfig
from .viewport import (
    FractalSelection,
    FrameSnapshot,
    SliderRange,
    Viewport,
    ViewportController,
    advance,
    effective_bounds,
    pixel_to_plane,
    plane_axes,
    toggle_fractal,
)

__all__ = [
    "FractalKind",
    "FractalSelection",
    "FractalSession",
    "FrameSnapshot",
    "INTERIOR_COLOR",
    "PALETTE",
    "RenderResult",
    "SessionConfig",
    "SidebarAction",
    "SidebarLayout",
    "SliderRange",
    "Viewport",
    "ViewportController",
    "advance",
    "colorize",
    "draw_overlay",
    "effective_bounds",
    "escape_grid",
    "escape_values",
    "evaluate",
    "map_color",
    "pixel_to_plane",
    "plane_axes",
    "render_frame",
    "smooth_escape",
    "toggle_fractal",
]
