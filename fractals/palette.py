"""Cyclic palette lookup for escape values."""

from __future__ import annotations

import math

import numpy as np

# Gradient popularised by the Wikipedia Mandelbrot renders.
PALETTE: tuple[tuple[int, int, int, int], ...] = (
    (66, 30, 15, 255),
    (25, 7, 26, 255),
    (9, 1, 47, 255),
    (4, 4, 73, 255),
    (0, 7, 100, 255),
    (12, 44, 138, 255),
    (24, 82, 177, 255),
    (57, 125, 209, 255),
    (134, 181, 229, 255),
    (211, 236, 248, 255),
    (241, 233, 191, 255),
    (248, 201, 95, 255),
    (255, 170, 0, 255),
    (204, 128, 0, 255),
    (153, 87, 0, 255),
    (106, 52, 3, 255),
)

INTERIOR_COLOR: tuple[int, int, int, int] = (0, 0, 0, 0)

_PALETTE_ARRAY = np.array(PALETTE, dtype=np.uint8)
_INTERIOR_ARRAY = np.array(INTERIOR_COLOR, dtype=np.uint8)


def palette_index(escape_value: float) -> int:
    return int(math.floor(escape_value)) % len(PALETTE)


def map_color(escape_value: float, max_iterations: int) -> tuple[int, int, int, int]:
    """Palette color for an escape value, or the interior color for interior and degenerate values."""

    if not math.isfinite(escape_value) or escape_value <= 0 or escape_value >= max_iterations:
        return INTERIOR_COLOR
    return PALETTE[palette_index(escape_value)]


def colorize(values: np.ndarray, max_iterations: int) -> np.ndarray:
    """Vectorized :func:`map_color`; returns an RGBA ``uint8`` array of shape ``values.shape + (4,)``."""

    values = np.asarray(values, dtype=np.float64)
    with np.errstate(invalid="ignore"):
        colored = np.isfinite(values) & (values > 0) & (values < max_iterations)
    safe = np.where(colored, values, 0.0)
    indices = np.floor(safe).astype(np.int64) % len(PALETTE)
    rgba = _PALETTE_ARRAY[indices]
    rgba[~colored] = _INTERIOR_ARRAY
    return rgba
