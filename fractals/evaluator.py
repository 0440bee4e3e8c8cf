"""Escape-time evaluation for Mandelbrot and Julia sets."""

from __future__ import annotations

import enum
import math
from typing import Optional

import numpy as np
import tensorflow as tf

BAILOUT = 4.0
LOG2 = math.log(2.0)


class FractalKind(enum.Enum):
    """Fractal families supported by the evaluator."""

    MANDELBROT = "Mandelbrot"
    JULIA = "Julia"

    @property
    def label(self) -> str:
        return self.value

    def next(self) -> "FractalKind":
        members = list(FractalKind)
        return members[(members.index(self) + 1) % len(members)]


def _escape_ceiling(max_iterations: int) -> float:
    # Largest float strictly below max_iterations.
    return math.nextafter(float(max_iterations), 0.0)


def smooth_escape(iterations: int, magnitude_sq: float, max_iterations: int) -> float:
    """Fractional escape count for a point that escaped after ``iterations`` steps.

    ``magnitude_sq`` is ``|z|^2`` at the moment of escape, always above the
    bailout for a genuine escape. Overflowed or NaN magnitudes fall back to the
    integer escape count. The result is clamped to ``[0, max_iterations)``.
    """

    value = math.nan
    if magnitude_sq > BAILOUT:
        value = iterations + 1 - math.log(math.log(magnitude_sq) / 2) / LOG2
    if not math.isfinite(value):
        value = float(iterations)
    return min(max(value, 0.0), _escape_ceiling(max_iterations))


def evaluate(
    point: tuple[float, float],
    aux: tuple[float, float],
    kind: FractalKind,
    max_iterations: int,
) -> float:
    """Return the smoothed escape value of ``point``.

    Mandelbrot iterates ``z <- z^2 + point`` from the origin and ignores
    ``aux``; Julia iterates ``z <- z^2 + aux`` starting at ``point``. A return
    value equal to ``max_iterations`` marks an interior point: one whose orbit
    is still inside the bailout radius once the budget is spent.
    """

    if kind is FractalKind.JULIA:
        x, y = float(point[0]), float(point[1])
        cx, cy = float(aux[0]), float(aux[1])
    else:
        x, y = 0.0, 0.0
        cx, cy = float(point[0]), float(point[1])

    iteration = 0
    magnitude_sq = x * x + y * y
    while magnitude_sq <= BAILOUT and iteration < max_iterations:
        x_temp = x * x - y * y + cx
        y = 2 * x * y + cy
        x = x_temp
        iteration += 1
        magnitude_sq = x * x + y * y

    if magnitude_sq <= BAILOUT:
        return float(max_iterations)
    return smooth_escape(iteration, magnitude_sq, max_iterations)


@tf.function
def _escape_step(
    zx: tf.Tensor,
    zy: tf.Tensor,
    cx: tf.Tensor,
    cy: tf.Tensor,
    ns: tf.Tensor,
    active: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Advance every still-bounded point by one iteration."""

    zx_new = zx * zx - zy * zy + cx
    zy_new = 2 * zx * zy + cy
    zx = tf.where(active, zx_new, zx)
    zy = tf.where(active, zy_new, zy)
    ns = ns + tf.cast(active, tf.int32)
    bailout = tf.constant(BAILOUT, dtype=zx.dtype)
    active = tf.logical_and(active, zx * zx + zy * zy <= bailout)
    return zx, zy, ns, active


@tf.function
def _escape_run(
    zx: tf.Tensor,
    zy: tf.Tensor,
    cx: tf.Tensor,
    cy: tf.Tensor,
    max_iterations: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Iterate until every point escaped or the iteration budget is spent."""

    i = tf.constant(0, dtype=tf.int32)
    ns = tf.zeros_like(zx, tf.int32)
    bailout = tf.constant(BAILOUT, dtype=zx.dtype)
    active = zx * zx + zy * zy <= bailout

    def cond(i, zx, zy, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zx, zy, ns, active):
        zx, zy, ns, active = _escape_step(zx, zy, cx, cy, ns, active)
        return i + 1, zx, zy, ns, active

    return tf.while_loop(cond, body, (i, zx, zy, ns, active))


def escape_values(
    re: np.ndarray,
    im: np.ndarray,
    kind: FractalKind,
    aux: tuple[float, float] = (0.0, 0.0),
    max_iterations: int = 200,
    *,
    device: Optional[str] = None,
) -> np.ndarray:
    """Evaluate many points at once; element-wise equivalent to :func:`evaluate`."""

    re = np.asarray(re, dtype=np.float64)
    im = np.asarray(im, dtype=np.float64)
    if re.shape != im.shape:
        raise ValueError(f"re and im must share a shape, got {re.shape} and {im.shape}")
    if re.size == 0:
        return np.zeros(re.shape, dtype=np.float64)

    with tf.device(device if device is not None else "/CPU:0"):
        points_x = tf.convert_to_tensor(re, dtype=tf.float64)
        points_y = tf.convert_to_tensor(im, dtype=tf.float64)
        if kind is FractalKind.JULIA:
            zx, zy = points_x, points_y
            cx = tf.fill(tf.shape(points_x), tf.constant(float(aux[0]), dtype=tf.float64))
            cy = tf.fill(tf.shape(points_y), tf.constant(float(aux[1]), dtype=tf.float64))
        else:
            zx = tf.zeros_like(points_x)
            zy = tf.zeros_like(points_y)
            cx, cy = points_x, points_y

        limit = tf.constant(max_iterations, dtype=tf.int32)
        _, zx, zy, ns, _ = _escape_run(zx, zy, cx, cy, limit)

        magnitude_sq = zx * zx + zy * zy
        ns_float = tf.cast(ns, tf.float64)
        bailout = tf.constant(BAILOUT, dtype=tf.float64)
        log2 = tf.constant(LOG2, dtype=tf.float64)
        # Non-escaped entries may feed log() a value <= 0; tf.where discards them below.
        smooth = ns_float + 1.0 - tf.math.log(tf.math.log(magnitude_sq) / 2.0) / log2
        usable = tf.logical_and(tf.math.is_finite(smooth), magnitude_sq > bailout)
        smooth = tf.where(usable, smooth, ns_float)
        smooth = tf.clip_by_value(
            smooth,
            tf.constant(0.0, dtype=tf.float64),
            tf.constant(_escape_ceiling(max_iterations), dtype=tf.float64),
        )
        escaped = tf.logical_not(magnitude_sq <= bailout)
        result = tf.where(escaped, smooth, tf.cast(limit, tf.float64))

    return result.numpy()
