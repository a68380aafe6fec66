"""Public API for escape-time fractal rendering."""

from .explorer import DISPLAY_SIZE, FractalExplorer
from .frame import FrameRenderer, InvalidStateError, RenderError, RenderJob
from .kernels import (
    ESCAPE_RADIUS_SQUARED,
    KERNELS,
    MAX_ITERATIONS,
    ZOOM_FACTOR,
    FractalKernel,
    FractalKind,
    IterationResult,
    get_kernel,
)
from .renderer import RowRenderTask, RowResult, color_for, colorize, hue_for, render_row
from .viewport import ViewportRange, get_coord, pixel_to_complex, recenter_and_zoom

__all__ = [
    "DISPLAY_SIZE",
    "ESCAPE_RADIUS_SQUARED",
    "FractalExplorer",
    "FractalKernel",
    "FractalKind",
    "FrameRenderer",
    "InvalidStateError",
    "IterationResult",
    "KERNELS",
    "MAX_ITERATIONS",
    "RenderError",
    "RenderJob",
    "RowRenderTask",
    "RowResult",
    "ViewportRange",
    "ZOOM_FACTOR",
    "color_for",
    "colorize",
    "get_coord",
    "get_kernel",
    "hue_for",
    "pixel_to_complex",
    "recenter_and_zoom",
    "render_row",
]
