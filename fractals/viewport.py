"""Complex-plane viewport and pixel coordinate mapping."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class ViewportRange:
    """Rectangle of the complex plane currently mapped onto the raster."""

    min_real: float
    min_imag: float
    width: float
    height: float

    def __post_init__(self) -> None:
        for name in ("min_real", "min_imag", "width", "height"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be finite.")
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Viewport width and height must be positive.")

    @property
    def max_real(self) -> float:
        return self.min_real + self.width

    @property
    def max_imag(self) -> float:
        return self.min_imag + self.height

    @property
    def center(self) -> tuple[float, float]:
        return self.min_real + self.width / 2.0, self.min_imag + self.height / 2.0


def get_coord(range_min, range_max, size, pixel):
    """Linearly map ``pixel`` in ``[0, size)`` onto ``[range_min, range_max)``.

    Works on Python scalars and on NumPy arrays of pixel indices alike, so a
    whole row can be mapped with the same arithmetic as a single pixel.
    """

    return range_min + (pixel / size) * (range_max - range_min)


def pixel_to_complex(viewport: ViewportRange, size: int, x: int, y: int) -> tuple[float, float]:
    if size <= 0:
        raise ValueError("Display size must be positive.")
    if not (0 <= x < size and 0 <= y < size):
        raise ValueError(f"Pixel ({x}, {y}) is outside a {size}x{size} display.")
    real = get_coord(viewport.min_real, viewport.max_real, size, x)
    imag = get_coord(viewport.min_imag, viewport.max_imag, size, y)
    return real, imag


def recenter_and_zoom(
    viewport: ViewportRange,
    target_real: float,
    target_imag: float,
    zoom_factor: float,
) -> ViewportRange:
    """Scale the viewport by ``zoom_factor`` and center it on the target.

    A factor below one zooms in. Both axes are scaled independently.
    """

    if not zoom_factor > 0:
        raise ValueError("zoom_factor must be positive.")
    width = zoom_factor * viewport.width
    height = zoom_factor * viewport.height
    return ViewportRange(
        min_real=target_real - width / 2,
        min_imag=target_imag - height / 2,
        width=width,
        height=height,
    )
