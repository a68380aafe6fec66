import numpy as np
import pytest

from fractals import ViewportRange, get_coord, pixel_to_complex, recenter_and_zoom


def test_get_coord_starts_at_range_min():
    assert get_coord(-2.0, 1.0, 600, 0) == -2.0


def test_get_coord_is_linear():
    assert get_coord(-2.0, 2.0, 4, 1) == -1.0
    assert get_coord(-2.0, 2.0, 4, 2) == 0.0


@pytest.mark.parametrize("size", [1, 7, 600])
def test_get_coord_monotonic(size):
    coords = [get_coord(-1.5, 1.5, size, i) for i in range(size)]
    assert coords[0] == -1.5
    assert all(a <= b for a, b in zip(coords, coords[1:]))
    assert coords[-1] < 1.5


def test_get_coord_accepts_arrays():
    pixels = np.arange(10)
    coords = get_coord(-2.0, 1.0, 10, pixels)
    expected = [get_coord(-2.0, 1.0, 10, i) for i in range(10)]
    assert coords.tolist() == expected


def test_recenter_and_zoom_halves_and_centers():
    result = recenter_and_zoom(ViewportRange(-2.0, -2.0, 4.0, 4.0), 0.0, 0.0, 0.5)
    assert result == ViewportRange(-1.0, -1.0, 2.0, 2.0)
    assert result.center == (0.0, 0.0)


def test_recenter_and_zoom_out():
    result = recenter_and_zoom(ViewportRange(0.0, 0.0, 1.0, 2.0), 1.0, 1.0, 2.0)
    assert result == ViewportRange(0.0, -1.0, 2.0, 4.0)


def test_recenter_and_zoom_rejects_non_positive_factor():
    with pytest.raises(ValueError):
        recenter_and_zoom(ViewportRange(-2.0, -2.0, 4.0, 4.0), 0.0, 0.0, 0.0)


@pytest.mark.parametrize("width,height", [(0.0, 1.0), (1.0, -1.0), (float("inf"), 1.0)])
def test_viewport_rejects_bad_dimensions(width, height):
    with pytest.raises(ValueError):
        ViewportRange(0.0, 0.0, width, height)


def test_viewport_bounds():
    viewport = ViewportRange(-2.0, -1.5, 3.0, 3.0)
    assert viewport.max_real == 1.0
    assert viewport.max_imag == 1.5


def test_pixel_to_complex():
    viewport = ViewportRange(-2.0, -2.0, 4.0, 4.0)
    assert pixel_to_complex(viewport, 4, 0, 0) == (-2.0, -2.0)
    assert pixel_to_complex(viewport, 4, 2, 1) == (0.0, -1.0)


@pytest.mark.parametrize("x,y", [(-1, 0), (0, 4), (4, 4)])
def test_pixel_to_complex_rejects_out_of_range(x, y):
    with pytest.raises(ValueError):
        pixel_to_complex(ViewportRange(-2.0, -2.0, 4.0, 4.0), 4, x, y)
