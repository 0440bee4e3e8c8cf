import os
import sys
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf
import numpy as np

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")

import PIL.Image
import imageio

from fractals import (
    FractalKind,
    FractalSession,
    SessionConfig,
    SidebarAction,
    SidebarLayout,
    draw_overlay,
)

from argparse import ArgumentParser


def select_device() -> str:
    """Place the escape pass on the first GPU when one is visible."""

    gpus = tf.config.list_physical_devices('GPU')
    if not gpus:
        log("No GPU found, using CPU")
        return '/CPU:0'
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError as e:
        log(e)
        return '/CPU:0'
    log("GPU found, using %s" % gpus[0].name)
    return '/GPU:0'


@dataclass
class OutputConfig:
    modes: tuple[str, ...]
    gif_path: Path | None
    image_path: Path | None
    frame_dir: Path | None
    save_color_frames: bool
    keep_frames: bool
    image_format: str


def build_parser():
    parser = ArgumentParser(description='Play back a continuously zooming Mandelbrot/Julia session.')

    parser.add_argument('--width', type=int, dest='width', metavar='WIDTH', default=640,
                        help='width of the rendered frames in pixels')

    parser.add_argument('--height', type=int, dest='height', metavar='HEIGHT', default=480,
                        help='height of the rendered frames in pixels')

    parser.add_argument('--max-iterations', type=int, dest='max_iterations', metavar='MAX_ITERATIONS', default=200,
                        help='maximum number of escape-time iterations per pixel')

    parser.add_argument('--center-x', type=float, dest='center_x', metavar='CENTER_X', default=0.42884,
                        help='real part of the point the session zooms into')

    parser.add_argument('--center-y', type=float, dest='center_y', metavar='CENTER_Y', default=-0.231345,
                        help='imaginary part of the point the session zooms into')

    parser.add_argument('--zoom-rate', type=float, dest='zoom_rate', metavar='ZOOM_RATE', default=0.01,
                        help='initial zoom rate; the zoom grows by (1 + rate) every second')

    parser.add_argument('--fractal', choices=['mandelbrot', 'julia'], default='mandelbrot',
                        help='fractal shown on the first frame')

    parser.add_argument('--slider-y', type=int, dest='slider_y', metavar='PIXEL_Y', default=None,
                        help='click the zoom-rate slider at this row on the first frame (clamped to the track)')

    parser.add_argument('--toggle-at', type=int, dest='toggle_at', action='append', metavar='FRAME',
                        help='click the toggle button on this frame. May be repeated.')

    parser.add_argument('--click', type=int, nargs=3, dest='clicks', action='append', metavar=('FRAME', 'X', 'Y'),
                        help='simulate a mouse click at screen position X, Y on FRAME. May be repeated.')

    parser.add_argument('--fps', type=float, dest='fps', metavar='FPS', default=30.0,
                        help='frame rate of the playback; each frame advances the zoom by 1/FPS seconds')

    parser.add_argument('--frames', type=int, dest='frames', metavar='FRAMES', default=100,
                        help='number of frames to generate')

    parser.add_argument('--mode', dest='modes', action='append', metavar='MODE',
                        help='Output modes to generate. May be repeated. Choices: gif, image, frames.')

    parser.add_argument('--output', dest='output', type=str,
                        help='Destination for single-file outputs (gif/image) or container directory when both are requested.')

    parser.add_argument('--frame-dir', dest='frame_dir', type=str,
                        help='Directory in which to store frame sequences.')

    parser.add_argument('--keep-frames', dest='keep_frames', action='store_true',
                        help='When generating a GIF, keep the individual frames in frame-dir in addition to the GIF file.')

    parser.add_argument('--format', type=str, dest='format', metavar='FORMAT', default='png',
                        help='file format for image-based outputs. Can be any extension supported by Pillow. Default: "png".')

    parser.add_argument('--no-overlay', dest='overlay', action='store_false',
                        help='render the fractal without the sidebar and status text')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def resolve_output_config(opt, parser: ArgumentParser) -> OutputConfig:
    valid_modes = {"gif", "image", "frames"}
    modes = list(opt.modes or []) or ["gif"]

    normalized_modes: list[str] = []
    for mode in modes:
        if mode not in valid_modes:
            parser.error(f"Unknown output mode '{mode}'. Valid choices: {', '.join(sorted(valid_modes))}.")
        if mode not in normalized_modes:
            normalized_modes.append(mode)

    modes_tuple = tuple(normalized_modes)
    modes_set = set(modes_tuple)

    keep_frames = bool(getattr(opt, "keep_frames", False))
    if keep_frames and "gif" not in modes_set:
        parser.error("--keep-frames requires the gif mode.")

    frame_dir_value = getattr(opt, "frame_dir", None)
    needs_frame_dir = "frames" in modes_set or ("gif" in modes_set and keep_frames)
    frame_dir_path: Path | None = None
    if needs_frame_dir:
        frame_dir_path = Path(frame_dir_value or "./frames").expanduser().resolve()
    elif frame_dir_value is not None:
        parser.error("--frame-dir is only valid with the frames mode or --keep-frames.")

    image_format = (getattr(opt, "format", "png") or "png").lower().lstrip(".") or "png"

    file_modes = [mode for mode in modes_tuple if mode in {"gif", "image"}]
    output_arg = getattr(opt, "output", None)
    gif_path: Path | None = None
    image_path: Path | None = None

    if not file_modes:
        if output_arg:
            parser.error("--output is only valid when gif or image modes are requested.")
    elif len(file_modes) == 1:
        mode = file_modes[0]
        if output_arg:
            output_path = Path(output_arg).expanduser()
            if str(output_arg).endswith(tuple(filter(None, {os.sep, os.altsep}))):
                parser.error("--output must be a file path when a single file-based mode is selected.")
            if output_path.exists() and output_path.is_dir():
                parser.error("--output must point to a file, not a directory, when a single file mode is active.")
            expected_suffix = ".gif" if mode == "gif" else f".{image_format}"
            if output_path.suffix:
                if output_path.suffix.lower() != expected_suffix.lower():
                    if mode == "gif":
                        parser.error("GIF outputs must end with .gif.")
                    parser.error(f"--output extension {output_path.suffix} does not match --format {image_format}.")
            else:
                output_path = output_path.with_suffix(expected_suffix)
            if mode == "gif":
                gif_path = output_path.resolve()
            else:
                image_path = output_path.resolve()
    else:
        base_dir = Path(output_arg).expanduser() if output_arg else Path.cwd()
        if base_dir.exists() and not base_dir.is_dir():
            parser.error("--output must be a directory when both gif and image modes are active.")
        gif_path = (base_dir / "movie.gif").resolve()
        image_path = (base_dir / f"frame_final.{image_format}").resolve()

    if gif_path is None and "gif" in modes_set:
        gif_path = Path("movie.gif").resolve()
    if image_path is None and "image" in modes_set:
        image_path = Path(f"frame_final.{image_format}").resolve()

    return OutputConfig(
        modes=modes_tuple,
        gif_path=gif_path,
        image_path=image_path,
        frame_dir=frame_dir_path,
        save_color_frames="frames" in modes_set or ("gif" in modes_set and keep_frames),
        keep_frames=keep_frames,
        image_format=image_format,
    )


def build_session_config(opt, parser: ArgumentParser) -> SessionConfig:
    if opt.width <= 0 or opt.height <= 0:
        parser.error("--width and --height must be positive.")
    if opt.max_iterations < 1:
        parser.error("--max-iterations must be at least 1.")
    if opt.fps <= 0:
        parser.error("--fps must be positive.")
    if not 0.0 <= opt.zoom_rate <= 0.5:
        parser.error("--zoom-rate must lie in [0, 0.5].")
    return SessionConfig(
        center_x=opt.center_x,
        center_y=opt.center_y,
        zoom_rate=opt.zoom_rate,
        max_iterations=opt.max_iterations,
        kind=FractalKind.JULIA if opt.fractal == 'julia' else FractalKind.MANDELBROT,
    )


def schedule_clicks(opt, layout: SidebarLayout, parser: ArgumentParser) -> dict[int, list[tuple[int, int]]]:
    """Group the simulated mouse clicks by the frame they land on."""

    clicks: dict[int, list[tuple[int, int]]] = {}
    if opt.slider_y is not None:
        clicks.setdefault(0, []).append((layout.slider_x, layout.slider.clamp(opt.slider_y)))
    for frame in opt.toggle_at or []:
        if not 0 <= frame < opt.frames:
            parser.error(f"--toggle-at frame {frame} is outside [0, {opt.frames}).")
        button_center = (
            layout.button_x + layout.button_width // 2,
            layout.button_y + layout.button_height // 2,
        )
        clicks.setdefault(frame, []).append(button_center)
    for frame, x, y in opt.clicks or []:
        if not 0 <= frame < opt.frames:
            parser.error(f"--click frame {frame} is outside [0, {opt.frames}).")
        clicks.setdefault(frame, []).append((x, y))
    return clicks


def combine_actions(actions: list[SidebarAction]) -> SidebarAction:
    zoom_rate_input = None
    toggles = 0
    for action in actions:
        if action.zoom_rate_input is not None:
            zoom_rate_input = action.zoom_rate_input
        toggles += int(action.toggle_requested)
    return SidebarAction(zoom_rate_input=zoom_rate_input, toggle_requested=toggles % 2 == 1)


def composite_frame(pixels: np.ndarray) -> PIL.Image.Image:
    """Flatten the transparent interior onto an opaque black background."""

    frame = PIL.Image.fromarray(pixels)
    background = PIL.Image.new("RGBA", frame.size, (0, 0, 0, 255))
    return PIL.Image.alpha_composite(background, frame)


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    pil_format = _pil_format_name(image_format)
    if pil_format == "JPEG":
        image = image.convert("RGB")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=pil_format)


def write_frame_sequence(
    image: PIL.Image.Image,
    frame_dir: Path,
    index: int,
    digits: int,
    image_format: str,
) -> Path:
    """Persist a frame in a numbered sequence inside ``frame_dir``."""

    frame_path = frame_dir / f"frame{index:0{digits}d}.{image_format}"
    write_single_image(image, frame_path, image_format)
    return frame_path


@dataclass
class OutputWriters:
    config: OutputConfig
    frame_digits: int
    fps: float

    def __post_init__(self) -> None:
        self._needs_color_frames = bool(self.config.save_color_frames and self.config.frame_dir is not None)
        self._needs_final_image = bool("image" in self.config.modes and self.config.image_path is not None)
        self._gif_writer: Any = None
        if "gif" in self.config.modes and self.config.gif_path is not None:
            self.config.gif_path.parent.mkdir(parents=True, exist_ok=True)
            # Pillow-backed GIF writer takes the frame duration in milliseconds.
            self._gif_writer = imageio.get_writer(
                str(self.config.gif_path), mode='I', duration=1000.0 / self.fps, loop=0
            )

    def requires_frame(self, frame_index: int, total_frames: int) -> bool:
        if self._needs_color_frames or self._gif_writer is not None:
            return True
        return self.should_store_final_image(frame_index, total_frames)

    def should_store_final_image(self, frame_index: int, total_frames: int) -> bool:
        return self._needs_final_image and frame_index == total_frames - 1

    def write_frame(self, frame_index: int, image: PIL.Image.Image) -> None:
        if self._gif_writer is not None:
            self._gif_writer.append_data(np.asarray(image.convert("RGB")))
        if self._needs_color_frames and self.config.frame_dir is not None:
            write_frame_sequence(
                image,
                self.config.frame_dir,
                frame_index,
                self.frame_digits,
                self.config.image_format,
            )

    def finalize(self, final_image: PIL.Image.Image | None) -> None:
        if self._needs_final_image and final_image is not None and self.config.image_path is not None:
            write_single_image(final_image, self.config.image_path, self.config.image_format)

    def close(self) -> None:
        if self._gif_writer is not None:
            self._gif_writer.close()
            self._gif_writer = None


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)
    log("TensorFlow version: %s" % tf.__version__)

    output_config = resolve_output_config(opt, parser)
    session = FractalSession(build_session_config(opt, parser))
    layout = session.config.layout
    clicks = schedule_clicks(opt, layout, parser)
    device = select_device()

    if output_config.frame_dir is not None:
        output_config.frame_dir.mkdir(parents=True, exist_ok=True)

    frame_digits = max(3, len(str(max(opt.frames - 1, 0))))
    writers = OutputWriters(output_config, frame_digits=frame_digits, fps=opt.fps)
    elapsed = 1.0 / opt.fps
    final_image: PIL.Image.Image | None = None

    try:
        for i in range(opt.frames):
            print("frame {0} out of {1}".format(i, opt.frames), end='\r')
            action = combine_actions([session.handle_click(x, y) for x, y in clicks.get(i, [])])
            snapshot = session.update(
                elapsed,
                zoom_rate_input=action.zoom_rate_input,
                toggle_requested=action.toggle_requested,
            )
            log("frame %d: %s zoom=%.4g rate=%.3f" % (i, session.fractal_name, snapshot.viewport.zoom, snapshot.viewport.zoom_rate))

            if not writers.requires_frame(i, opt.frames):
                continue

            result = session.render_frame(opt.width, opt.height, device=device)
            image = composite_frame(result.pixels)
            if opt.overlay:
                image = draw_overlay(image, snapshot, layout)

            writers.write_frame(i, image)
            if writers.should_store_final_image(i, opt.frames):
                final_image = image
    finally:
        writers.close()

    writers.finalize(final_image)


if __name__ == '__main__':
    main()
