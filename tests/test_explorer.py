import pytest

from fractals import FractalExplorer, FractalKind, InvalidStateError, ViewportRange, get_kernel


@pytest.fixture
def explorer(deferred_executor):
    session = FractalExplorer(4, max_iterations=10, executor=deferred_executor)
    yield session
    session.close()


def test_starts_on_mandelbrot(explorer):
    assert explorer.kernel.kind is FractalKind.MANDELBROT
    assert explorer.viewport == ViewportRange(-2.0, -1.5, 3.0, 3.0)


def test_zoom_at_recenters_on_clicked_pixel(explorer):
    viewport = explorer.zoom_at(2, 2)
    assert viewport == ViewportRange(-1.25, -0.75, 1.5, 1.5)
    assert explorer.viewport is viewport


def test_zoom_factor_override(deferred_executor):
    explorer = FractalExplorer(4, zoom_factor=0.25, executor=deferred_executor)
    assert explorer.zoom_at(0, 0) == ViewportRange(-2.375, -1.875, 0.75, 0.75)


def test_zoom_outside_display(explorer):
    with pytest.raises(ValueError):
        explorer.zoom_at(4, 0)


def test_select_kernel_resets_view(explorer):
    explorer.zoom_at(1, 1)
    kernel = explorer.select_kernel("burning_ship")
    assert kernel is get_kernel(FractalKind.BURNING_SHIP)
    assert explorer.viewport == kernel.default_range()


def test_reset_view(explorer):
    explorer.select_kernel(FractalKind.TRICORN)
    explorer.zoom_at(3, 0)
    assert explorer.reset_view() == ViewportRange(-2.0, -2.0, 4.0, 4.0)


def test_actions_rejected_while_rendering(explorer, deferred_executor):
    job = explorer.render_frame()
    viewport = explorer.viewport
    assert explorer.is_rendering

    with pytest.raises(InvalidStateError):
        explorer.zoom_at(1, 1)
    with pytest.raises(InvalidStateError):
        explorer.select_kernel(FractalKind.TRICORN)
    with pytest.raises(InvalidStateError):
        explorer.reset_view()
    with pytest.raises(InvalidStateError):
        explorer.render_frame()
    assert explorer.viewport is viewport
    assert explorer.kernel.kind is FractalKind.MANDELBROT

    deferred_executor.run()
    assert job.done
    explorer.zoom_at(1, 1)
    assert explorer.viewport != viewport


def test_render_uses_snapshot_of_view(explorer, deferred_executor):
    job = explorer.render_frame()
    deferred_executor.run()
    explorer.zoom_at(0, 0)
    assert job.viewport == get_kernel(FractalKind.MANDELBROT).default_range()
    assert job.kernel is explorer.kernel


def test_on_frame_receives_completed_job(deferred_executor):
    frames = []
    explorer = FractalExplorer(3, max_iterations=5, executor=deferred_executor, on_frame=frames.append)
    job = explorer.render_frame()
    deferred_executor.run()
    assert frames == [job]
    assert job.wait(timeout=1).shape == (3, 3, 3)


def test_render_and_wait_with_threads():
    with FractalExplorer(8, max_iterations=50, max_workers=2) as explorer:
        pixels = explorer.render_and_wait(timeout=120)
    assert pixels.shape == (8, 8, 3)
