"""Sidebar layout, click handling and the heads-up display drawn over frames."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import PIL.Image
import PIL.ImageDraw
import PIL.ImageFont

from .viewport import FrameSnapshot, SliderRange

SIDEBAR_COLOR = (50, 50, 50, 255)
TRACK_COLOR = (200, 200, 200, 255)
KNOB_COLOR = (255, 0, 0, 255)
BUTTON_COLOR = (100, 100, 100, 255)
TEXT_COLOR = (255, 255, 255, 255)

_FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationMono-Regular.ttf",
    "/usr/share/fonts/truetype/freefont/FreeMono.ttf",
)


@dataclass(frozen=True)
class SidebarAction:
    """Inputs for one ``update`` call derived from a click."""

    zoom_rate_input: Optional[int] = None
    toggle_requested: bool = False


@dataclass(frozen=True)
class SidebarLayout:
    """Geometry of the control sidebar, in screen pixels."""

    width: int = 100
    slider_x: int = 10
    slider_y: int = 70
    slider_height: int = 200
    slider_width: int = 10
    knob_size: int = 10
    button_x: int = 10
    button_y: int = 300
    button_width: int = 80
    button_height: int = 40
    button_label: str = "Toggle Fractal"

    @property
    def slider(self) -> SliderRange:
        return SliderRange(self.slider_y, self.slider_y + self.slider_height)

    def hit_test(self, x: int, y: int) -> SidebarAction:
        """Classify a click; only the sidebar column reacts."""

        if x >= self.width:
            return SidebarAction()
        slider = self.slider
        if slider.y0 <= y <= slider.y1:
            return SidebarAction(zoom_rate_input=int(y))
        if self.button_y <= y <= self.button_y + self.button_height:
            return SidebarAction(toggle_requested=True)
        return SidebarAction()


@functools.lru_cache(maxsize=None)
def _load_hud_font(size: int = 13) -> PIL.ImageFont.ImageFont:
    for path in _FONT_CANDIDATES:
        font_path = Path(path)
        if font_path.exists():
            try:
                return PIL.ImageFont.truetype(str(font_path), size)
            except OSError:
                continue
    return PIL.ImageFont.load_default()


def _draw_text_at_baseline(
    draw: PIL.ImageDraw.ImageDraw,
    x: int,
    baseline: int,
    text: str,
    font: PIL.ImageFont.ImageFont,
) -> None:
    bbox = draw.textbbox((0, 0), "Ag", font=font)
    draw.text((x, baseline - bbox[3]), text, font=font, fill=TEXT_COLOR)


def hud_lines(snapshot: FrameSnapshot) -> list[str]:
    viewport = snapshot.viewport
    return [
        f"Zoom Speed: {viewport.zoom_rate:.3f}",
        f"Zoom Level: {viewport.zoom:.2f}",
        f"Center: ({viewport.center_x:.6f}, {viewport.center_y:.6f})",
        f"Fractal: {snapshot.fractal.kind.label}",
    ]


def draw_overlay(
    image: PIL.Image.Image,
    snapshot: FrameSnapshot,
    layout: SidebarLayout = SidebarLayout(),
) -> PIL.Image.Image:
    """Paint the sidebar, slider, toggle button and status text onto ``image``."""

    if image.mode != "RGBA":
        image = image.convert("RGBA")

    draw = PIL.ImageDraw.Draw(image, "RGBA")
    font = _load_hud_font()

    draw.rectangle([(0, 0), (layout.width - 1, image.height - 1)], fill=SIDEBAR_COLOR)

    slider = layout.slider
    draw.rectangle(
        [(layout.slider_x, slider.y0), (layout.slider_x + layout.slider_width - 1, slider.y1 - 1)],
        fill=TRACK_COLOR,
    )
    knob_y = slider.position_for(snapshot.viewport.zoom_rate)
    half_knob = layout.knob_size // 2
    draw.rectangle(
        [
            (layout.slider_x, knob_y - half_knob),
            (layout.slider_x + layout.knob_size - 1, knob_y + half_knob - 1),
        ],
        fill=KNOB_COLOR,
    )

    draw.rectangle(
        [
            (layout.button_x, layout.button_y),
            (layout.button_x + layout.button_width - 1, layout.button_y + layout.button_height - 1),
        ],
        fill=BUTTON_COLOR,
    )
    _draw_text_at_baseline(draw, layout.button_x + 5, layout.button_y + 25, layout.button_label, font)

    speed, level, center, fractal = hud_lines(snapshot)
    _draw_text_at_baseline(draw, 10, 20, speed, font)
    _draw_text_at_baseline(draw, 10, 40, level, font)
    _draw_text_at_baseline(draw, 10, 60, center, font)
    _draw_text_at_baseline(draw, 10, layout.button_y + layout.button_height + 20, fractal, font)

    return image
