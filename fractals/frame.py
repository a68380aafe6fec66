"""Full-frame rendering: one parallel task per row with a shared progress count."""

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, Optional

import numpy as np

from .kernels import MAX_ITERATIONS, FractalKernel
from .renderer import RowRenderTask, RowResult
from .viewport import ViewportRange


class InvalidStateError(RuntimeError):
    """Raised when a render, zoom or kernel switch is requested mid-render."""


class RenderError(RuntimeError):
    """Raised when waiting on a render in which a row task failed."""


class RenderJob:
    """A single render generation: its snapshot, pixel buffer and progress."""

    def __init__(self, kernel: FractalKernel, viewport: ViewportRange, size: int, max_iterations: int) -> None:
        self.kernel = kernel
        self.viewport = viewport
        self.size = size
        self.max_iterations = max_iterations
        self.pixels = np.zeros((size, size, 3), dtype=np.uint8)
        self.iterations = np.zeros((size, size), dtype=np.int32)
        self.escaped = np.zeros((size, size), dtype=bool)
        self.row_writes = np.zeros(size, dtype=np.int32)
        self.rows_remaining = size
        self.error: Optional[BaseException] = None
        self._done = threading.Event()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: Optional[float] = None) -> np.ndarray:
        """Block until every row has landed and return the pixel buffer."""

        if not self._done.wait(timeout):
            raise TimeoutError(f"Render still has {self.rows_remaining} rows pending.")
        if self.error is not None:
            raise RenderError("A row task failed during rendering.") from self.error
        return self.pixels

    def _store(self, result: RowResult) -> None:
        # rows touch disjoint slices of the buffers, so no lock is needed here
        self.pixels[result.row] = result.colors
        self.iterations[result.row] = result.iterations
        self.escaped[result.row] = result.escaped
        self.row_writes[result.row] += 1


class FrameRenderer:
    """Render frames row by row on a worker pool, one render at a time."""

    def __init__(
        self,
        display_size: int,
        *,
        max_iterations: int = MAX_ITERATIONS,
        max_workers: Optional[int] = None,
        device: Optional[str] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        if display_size <= 0:
            raise ValueError("display_size must be positive.")
        if max_iterations <= 0:
            raise ValueError("max_iterations must be positive.")
        self.display_size = int(display_size)
        self.max_iterations = int(max_iterations)
        self.device = device
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="fractal-row")
        self._lock = threading.Lock()
        self._job: Optional[RenderJob] = None

    @property
    def rows_remaining(self) -> int:
        with self._lock:
            return self._job.rows_remaining if self._job is not None else 0

    @property
    def is_rendering(self) -> bool:
        return self.rows_remaining != 0

    @property
    def last_job(self) -> Optional[RenderJob]:
        return self._job

    def start_render(
        self,
        kernel: FractalKernel,
        viewport: ViewportRange,
        *,
        on_complete: Optional[Callable[[RenderJob], None]] = None,
        on_row: Optional[Callable[[RenderJob, int], None]] = None,
    ) -> RenderJob:
        """Dispatch one task per row and return the in-flight job.

        ``kernel`` and ``viewport`` are immutable, so the job keeps them as a
        snapshot; later changes to the caller's state do not reach its rows.
        ``on_row`` runs after each row lands and ``on_complete`` once the last
        one does, both on a worker thread. ``RenderJob.wait`` is already released
        when ``on_complete`` runs. ``on_complete`` is skipped when a row failed;
        ``RenderJob.wait`` reports the failure instead.
        """

        with self._lock:
            if self._job is not None and self._job.rows_remaining != 0:
                raise InvalidStateError(
                    f"A render is already in progress ({self._job.rows_remaining} rows pending)."
                )
            job = RenderJob(kernel, viewport, self.display_size, self.max_iterations)
            self._job = job

        submitted = 0
        try:
            for row in range(self.display_size):
                task = RowRenderTask(kernel, viewport, self.display_size, row, self.max_iterations, self.device)
                future = self._executor.submit(task)
                submitted += 1
                future.add_done_callback(
                    lambda f, row=row: self._row_finished(job, row, f, on_row, on_complete)
                )
        except Exception as exc:
            # rows that never reached the executor will never count down
            with self._lock:
                if job.error is None:
                    job.error = exc
                job.rows_remaining -= self.display_size - submitted
                finished = job.rows_remaining == 0
            if finished:
                job._done.set()
            raise
        return job

    def render(self, kernel: FractalKernel, viewport: ViewportRange, timeout: Optional[float] = None) -> np.ndarray:
        """Render a frame and block until it is complete."""

        return self.start_render(kernel, viewport).wait(timeout)

    def _row_finished(
        self,
        job: RenderJob,
        row: int,
        future: Future,
        on_row: Optional[Callable[[RenderJob, int], None]],
        on_complete: Optional[Callable[[RenderJob], None]],
    ) -> None:
        error = future.exception()
        if error is None:
            job._store(future.result())
        with self._lock:
            if error is not None and job.error is None:
                job.error = error
            job.rows_remaining -= 1
            finished = job.rows_remaining == 0
        try:
            if on_row is not None and error is None:
                on_row(job, row)
        finally:
            if finished:
                job._done.set()
        if finished and on_complete is not None and job.error is None:
            on_complete(job)

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def __enter__(self) -> "FrameRenderer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
