import PIL.Image

from fractals import FractalSession, SessionConfig, SidebarLayout, draw_overlay
from fractals.overlay import (
    BUTTON_COLOR,
    KNOB_COLOR,
    SIDEBAR_COLOR,
    TRACK_COLOR,
    _load_hud_font,
    hud_lines,
)


def test_hud_lines_report_session_state():
    session = FractalSession()
    assert hud_lines(session.snapshot) == [
        "Zoom Speed: 0.010",
        "Zoom Level: 1.00",
        "Center: (0.428840, -0.231345)",
        "Fractal: Mandelbrot",
    ]
    session.update(0.0, toggle_requested=True)
    assert hud_lines(session.snapshot)[-1] == "Fractal: Julia"


def test_draw_overlay_paints_sidebar_controls():
    session = FractalSession(SessionConfig(zoom_rate=0.25))
    layout = SidebarLayout()
    image = PIL.Image.new("RGB", (640, 480), (0, 0, 0))

    painted = draw_overlay(image, session.snapshot, layout)

    assert painted.mode == "RGBA"
    assert painted.size == (640, 480)
    assert painted.getpixel((95, 450)) == SIDEBAR_COLOR
    assert painted.getpixel((12, 100)) == TRACK_COLOR
    assert painted.getpixel((12, layout.slider.position_for(0.25))) == KNOB_COLOR
    assert painted.getpixel((88, 338)) == BUTTON_COLOR
    assert painted.getpixel((400, 300)) == (0, 0, 0, 255)


def test_hit_test_ignores_clicks_outside_sidebar():
    layout = SidebarLayout()
    assert layout.hit_test(100, 170).zoom_rate_input is None
    assert layout.hit_test(99, 170).zoom_rate_input == 170
    assert layout.hit_test(99, 340).toggle_requested
    assert not layout.hit_test(99, 341).toggle_requested


def test_hud_font_is_loaded_once():
    _load_hud_font.cache_clear()
    session = FractalSession()
    image = PIL.Image.new("RGB", (160, 120), (0, 0, 0))
    draw_overlay(image, session.snapshot)
    draw_overlay(image, session.snapshot)
    info = _load_hud_font.cache_info()
    assert info.misses == 1
    assert info.hits >= 1
