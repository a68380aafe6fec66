"""Escape-time recurrences for the supported fractal variants."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, NamedTuple

from .viewport import ViewportRange, recenter_and_zoom

MAX_ITERATIONS = 2000
ESCAPE_RADIUS_SQUARED = 4.0
ZOOM_FACTOR = 0.5


class FractalKind(str, Enum):
    MANDELBROT = "mandelbrot"
    TRICORN = "tricorn"
    BURNING_SHIP = "burning_ship"


class IterationResult(NamedTuple):
    """Outcome of the escape test for a single point."""

    escaped: bool
    iterations: int

    @property
    def count(self) -> int:
        # -1 marks a point that never escaped
        return self.iterations if self.escaped else -1


# Each step takes (z_real, z_imag, c_real, c_imag) and returns the next z.
# They only use +, -, * and abs so they run unchanged on floats and tensors.

def _mandelbrot_step(zr, zi, cr, ci):
    return zr * zr - zi * zi + cr, 2.0 * zr * zi + ci


def _tricorn_step(zr, zi, cr, ci):
    return zr * zr - zi * zi + cr, -2.0 * zr * zi + ci


def _burning_ship_step(zr, zi, cr, ci):
    return zr * zr - zi * zi + cr, 2.0 * abs(zr * zi) + ci


@dataclass(frozen=True)
class FractalKernel:
    """A fractal variant: its recurrence, starting window and zoom policy."""

    kind: FractalKind
    name: str
    initial_range: ViewportRange
    advance: Callable
    zoom_factor: float = ZOOM_FACTOR

    def default_range(self) -> ViewportRange:
        return self.initial_range

    def escape_iteration(self, c_real: float, c_imag: float, max_iterations: int = MAX_ITERATIONS) -> IterationResult:
        zr = zi = 0.0
        for i in range(max_iterations):
            if zr * zr + zi * zi > ESCAPE_RADIUS_SQUARED:
                return IterationResult(True, i)
            zr, zi = self.advance(zr, zi, c_real, c_imag)
        return IterationResult(False, max_iterations)

    def recenter_and_zoom(
        self,
        viewport: ViewportRange,
        target_real: float,
        target_imag: float,
        zoom_factor: float | None = None,
    ) -> ViewportRange:
        factor = self.zoom_factor if zoom_factor is None else zoom_factor
        return recenter_and_zoom(viewport, target_real, target_imag, factor)

    def __str__(self) -> str:
        return self.name


KERNELS = {
    FractalKind.MANDELBROT: FractalKernel(
        kind=FractalKind.MANDELBROT,
        name="Mandelbrot",
        initial_range=ViewportRange(-2.0, -1.5, 3.0, 3.0),
        advance=_mandelbrot_step,
    ),
    FractalKind.TRICORN: FractalKernel(
        kind=FractalKind.TRICORN,
        name="Tricorn",
        initial_range=ViewportRange(-2.0, -2.0, 4.0, 4.0),
        advance=_tricorn_step,
    ),
    FractalKind.BURNING_SHIP: FractalKernel(
        kind=FractalKind.BURNING_SHIP,
        name="Burning Ship",
        initial_range=ViewportRange(-2.0, -2.5, 4.0, 4.0),
        advance=_burning_ship_step,
    ),
}


def get_kernel(kind: FractalKind | str) -> FractalKernel:
    try:
        return KERNELS[FractalKind(kind)]
    except ValueError:
        valid = ", ".join(k.value for k in FractalKind)
        raise ValueError(f"Unknown fractal kind '{kind}'. Valid choices: {valid}.") from None
