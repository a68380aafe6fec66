"""Rendering primitives: per-row escape iteration and coloring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
import tensorflow as tf
from matplotlib.colors import hsv_to_rgb

from .kernels import ESCAPE_RADIUS_SQUARED, MAX_ITERATIONS, FractalKernel, IterationResult, get_kernel
from .viewport import ViewportRange, get_coord

HUE_OFFSET = np.float32(0.7)
HUE_SCALE = np.float32(200.0)
INTERIOR_COLOR = (0, 0, 0)


@dataclass(frozen=True)
class RowResult:
    """Escape counts and colors computed for one raster row."""

    row: int
    iterations: np.ndarray
    escaped: np.ndarray
    colors: np.ndarray


def hue_for(iterations) -> np.ndarray:
    """Single-precision hue for escape counts, before normalization."""

    return HUE_OFFSET + np.asarray(iterations).astype(np.float32) / HUE_SCALE


def colorize(iterations: np.ndarray, escaped: np.ndarray) -> np.ndarray:
    """Map escape counts to ``uint8`` RGB; points that never escaped are black."""

    iterations = np.asarray(iterations)
    escaped = np.asarray(escaped, dtype=bool)
    hue = np.mod(hue_for(iterations), np.float32(1.0))
    ones = np.ones_like(hue)
    rgb = hsv_to_rgb(np.stack((hue, ones, ones), axis=-1))
    rgb = np.floor(rgb * np.float32(255.0) + np.float32(0.5))
    rgb = np.clip(rgb, 0, 255).astype(np.uint8)
    rgb[~escaped] = INTERIOR_COLOR
    return rgb


def color_for(result: IterationResult) -> tuple[int, int, int]:
    rgb = colorize(np.array([result.iterations]), np.array([result.escaped]))
    return tuple(int(channel) for channel in rgb[0])


def _escape_step(zr, zi, ns, active, cr, ci, advance):
    """Advance every point that has not yet escaped by one iteration."""

    active = tf.logical_and(active, zr * zr + zi * zi <= ESCAPE_RADIUS_SQUARED)
    zr_new, zi_new = advance(zr, zi, cr, ci)
    zr = tf.where(active, zr_new, zr)
    zi = tf.where(active, zi_new, zi)
    ns = ns + tf.cast(active, tf.int32)
    return zr, zi, ns, active


@tf.function
def _escape_run(cr: tf.Tensor, ci: tf.Tensor, max_iterations: tf.Tensor, variant: str):
    """Iterate the variant's recurrence over a row using a TensorFlow while loop."""

    advance = get_kernel(variant).advance
    max_iterations = tf.cast(max_iterations, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    zr = tf.zeros_like(cr)
    zi = tf.zeros_like(ci)
    ns = tf.zeros_like(cr, tf.int32)
    active = tf.ones_like(cr, tf.bool)

    def cond(i, zr, zi, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zr, zi, ns, active):
        zr, zi, ns, active = _escape_step(zr, zi, ns, active, cr, ci, advance)
        return i + 1, zr, zi, ns, active

    _, _, _, ns, active = tf.while_loop(cond, body, (i, zr, zi, ns, active))
    return ns, tf.logical_not(active)


def row_coordinates(viewport: ViewportRange, size: int, row: int) -> tuple[np.ndarray, np.ndarray]:
    """Complex-plane coordinates of every pixel in ``row``."""

    columns = np.arange(size, dtype=np.int64)
    real = get_coord(viewport.min_real, viewport.max_real, size, columns).astype(np.float64)
    imag = np.full(size, get_coord(viewport.min_imag, viewport.max_imag, size, row), dtype=np.float64)
    return real, imag


def render_row(
    kernel: FractalKernel,
    viewport: ViewportRange,
    size: int,
    row: int,
    max_iterations: int = MAX_ITERATIONS,
    *,
    device: Optional[str] = None,
) -> RowResult:
    """Compute escape counts and colors for one row of a ``size`` x ``size`` raster."""

    if not 0 <= row < size:
        raise ValueError(f"Row {row} is outside a display of size {size}.")

    real, imag = row_coordinates(viewport, size, row)

    with tf.device(device if device is not None else "/CPU:0"):
        cr = tf.convert_to_tensor(real, dtype=tf.float64)
        ci = tf.convert_to_tensor(imag, dtype=tf.float64)
        ns, escaped = _escape_run(cr, ci, tf.constant(max_iterations, dtype=tf.int32), kernel.kind.value)

    iterations = ns.numpy()
    escaped = escaped.numpy()
    return RowResult(row=row, iterations=iterations, escaped=escaped, colors=colorize(iterations, escaped))


@dataclass(frozen=True)
class RowRenderTask:
    """One unit of parallel work: a row rendered against a fixed snapshot."""

    kernel: FractalKernel
    viewport: ViewportRange
    size: int
    row: int
    max_iterations: int = MAX_ITERATIONS
    device: Optional[str] = None

    def __call__(self) -> RowResult:
        return render_row(
            self.kernel,
            self.viewport,
            self.size,
            self.row,
            self.max_iterations,
            device=self.device,
        )
