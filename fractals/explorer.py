"""Interactive exploration session: active fractal, viewport and renderer."""

from __future__ import annotations

from concurrent.futures import Executor
from typing import Callable, Optional

import numpy as np

from .frame import FrameRenderer, InvalidStateError, RenderJob
from .kernels import MAX_ITERATIONS, FractalKernel, FractalKind, get_kernel
from .viewport import ViewportRange, pixel_to_complex

DISPLAY_SIZE = 600


class FractalExplorer:
    """Session state driven by the outside world's buttons and clicks.

    Switching kernels, resetting and zooming are refused with
    ``InvalidStateError`` while a frame is still rendering.
    """

    def __init__(
        self,
        display_size: int = DISPLAY_SIZE,
        *,
        kind: FractalKind | str = FractalKind.MANDELBROT,
        max_iterations: int = MAX_ITERATIONS,
        zoom_factor: Optional[float] = None,
        max_workers: Optional[int] = None,
        device: Optional[str] = None,
        executor: Optional[Executor] = None,
        on_frame: Optional[Callable[[RenderJob], None]] = None,
    ) -> None:
        self.renderer = FrameRenderer(
            display_size,
            max_iterations=max_iterations,
            max_workers=max_workers,
            device=device,
            executor=executor,
        )
        self.kernel: FractalKernel = get_kernel(kind)
        self.viewport: ViewportRange = self.kernel.default_range()
        self.zoom_factor = zoom_factor
        self.on_frame = on_frame

    @property
    def display_size(self) -> int:
        return self.renderer.display_size

    @property
    def is_rendering(self) -> bool:
        return self.renderer.is_rendering

    def _ensure_idle(self, action: str) -> None:
        if self.renderer.is_rendering:
            raise InvalidStateError(f"Cannot {action} while {self.renderer.rows_remaining} rows are pending.")

    def select_kernel(self, kind: FractalKind | str) -> FractalKernel:
        self._ensure_idle("switch fractal")
        self.kernel = get_kernel(kind)
        self.viewport = self.kernel.default_range()
        return self.kernel

    def reset_view(self) -> ViewportRange:
        self._ensure_idle("reset the view")
        self.viewport = self.kernel.default_range()
        return self.viewport

    def zoom_at(self, x: int, y: int) -> ViewportRange:
        """Recenter on the clicked pixel and zoom in by the kernel's factor."""

        self._ensure_idle("zoom")
        real, imag = pixel_to_complex(self.viewport, self.display_size, x, y)
        self.viewport = self.kernel.recenter_and_zoom(self.viewport, real, imag, self.zoom_factor)
        return self.viewport

    def render_frame(self, on_row: Optional[Callable[[RenderJob, int], None]] = None) -> RenderJob:
        return self.renderer.start_render(
            self.kernel,
            self.viewport,
            on_complete=self.on_frame,
            on_row=on_row,
        )

    def render_and_wait(self, timeout: Optional[float] = None) -> np.ndarray:
        return self.render_frame().wait(timeout)

    def close(self) -> None:
        self.renderer.close()

    def __enter__(self) -> "FractalExplorer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
