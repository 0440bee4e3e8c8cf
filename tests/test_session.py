import numpy as np
import pytest

from fractals import (
    FractalKind,
    FractalSession,
    INTERIOR_COLOR,
    SessionConfig,
    SidebarAction,
    colorize,
    evaluate,
    map_color,
    pixel_to_plane,
)
from fractals.session import DEFAULT_CENTER


@pytest.fixture
def session():
    return FractalSession(SessionConfig(max_iterations=40))


def test_initial_state(session):
    assert session.zoom == 1.0
    assert session.zoom_rate == pytest.approx(0.01)
    assert session.center == DEFAULT_CENTER
    assert session.fractal is FractalKind.MANDELBROT
    assert session.fractal_name == "Mandelbrot"


def test_update_applies_rate_before_advancing(session):
    session.update(1.0, zoom_rate_input=170)
    assert session.zoom_rate == pytest.approx(0.25)
    assert session.zoom == pytest.approx(1.25)


def test_update_toggle_captures_center(session):
    snapshot = session.update(0.0, toggle_requested=True)
    assert session.fractal_name == "Julia"
    assert session.julia_constant == DEFAULT_CENTER
    assert snapshot.fractal.julia_constant == DEFAULT_CENTER
    session.update(0.0, toggle_requested=True)
    assert session.fractal is FractalKind.MANDELBROT


def test_snapshot_is_frozen_across_updates(session):
    first = session.update(1.0)
    session.update(1.0, zoom_rate_input=270)
    assert first.viewport.zoom == pytest.approx(1.01)
    assert session.snapshot.viewport.zoom > first.viewport.zoom


def test_rejects_empty_iteration_budget():
    with pytest.raises(ValueError):
        FractalSession(SessionConfig(max_iterations=0))


def test_julia_start_uses_center_as_constant():
    session = FractalSession(SessionConfig(kind=FractalKind.JULIA, center_x=-0.8, center_y=0.156))
    assert session.julia_constant == (-0.8, 0.156)


def test_render_pixel_matches_scalar_pipeline(session):
    session.update(0.5)
    snapshot = session.snapshot
    for px, py in [(0, 0), (10, 7), (31, 23)]:
        point = pixel_to_plane(snapshot.viewport, px, py, 32, 24)
        value = evaluate(point, snapshot.fractal.julia_constant, snapshot.fractal.kind, 40)
        assert session.render_pixel(px, py, 32, 24) == map_color(value, 40)


def test_render_buffer_matches_escape_values(session):
    session.update(0.5)
    result = session.render_frame(32, 24)
    assert result.pixels.shape == (24, 32, 4)
    assert result.pixels.dtype == np.uint8
    np.testing.assert_array_equal(result.pixels, colorize(result.escape, 40))

    snapshot = session.snapshot
    for px, py in [(0, 0), (10, 7), (31, 23)]:
        point = pixel_to_plane(snapshot.viewport, px, py, 32, 24)
        expected = evaluate(point, (0.0, 0.0), FractalKind.MANDELBROT, 40)
        assert result.escape[py, px] == pytest.approx(expected, rel=1e-9, abs=1e-9)


def test_render_interior_pixels_are_transparent():
    session = FractalSession(SessionConfig(center_x=0.0, center_y=0.0, max_iterations=30))
    pixels = session.render(8, 8)
    # Pixel (4, 4) of an 8x8 frame centered on 0 is the origin.
    assert tuple(int(c) for c in pixels[4, 4]) == INTERIOR_COLOR
    assert session.render_frame(8, 8).interior[4, 4]


@pytest.mark.parametrize(
    "x, y, action",
    [
        (50, 170, SidebarAction(zoom_rate_input=170)),
        (15, 70, SidebarAction(zoom_rate_input=70)),
        (15, 320, SidebarAction(toggle_requested=True)),
        (200, 170, SidebarAction()),
        (50, 285, SidebarAction()),
    ],
)
def test_handle_click(session, x, y, action):
    assert session.handle_click(x, y) == action


def test_update_with_out_of_range_slider_row_keeps_zoom_clamped(session):
    snapshot = session.update(1 / 30, zoom_rate_input=-500)
    assert snapshot.viewport.zoom == 1.0
    assert session.zoom == 1.0


@pytest.mark.parametrize("width, height", [(0, 24), (32, 0), (-4, 8)])
def test_render_rejects_empty_frames(session, width, height):
    with pytest.raises(ValueError):
        session.render(width, height)
