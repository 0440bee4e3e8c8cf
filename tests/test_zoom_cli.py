from pathlib import Path

import PIL.Image
import pytest

import zoom
from fractals import SidebarAction, SidebarLayout


def _resolve(*argv):
    parser = zoom.build_parser()
    opt = parser.parse_args(list(argv))
    return zoom.resolve_output_config(opt, parser)


def test_default_output_is_gif(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = _resolve()
    assert config.modes == ("gif",)
    assert config.gif_path == (tmp_path / "movie.gif").resolve()
    assert config.image_path is None
    assert config.frame_dir is None


def test_image_output_gets_format_suffix(tmp_path):
    config = _resolve("--mode", "image", "--format", "jpg", "--output", str(tmp_path / "final"))
    assert config.image_path == (tmp_path / "final.jpg").resolve()


@pytest.mark.parametrize(
    "argv",
    [
        ["--mode", "movie"],
        ["--mode", "image", "--keep-frames"],
        ["--mode", "image", "--frame-dir", "somewhere"],
        ["--mode", "frames", "--output", "out.png"],
        ["--mode", "gif", "--output", "out.png"],
    ],
)
def test_invalid_output_combinations_exit(argv):
    with pytest.raises(SystemExit):
        _resolve(*argv)


def test_schedule_clicks_groups_by_frame():
    parser = zoom.build_parser()
    opt = parser.parse_args(["--frames", "5", "--slider-y", "900", "--toggle-at", "3", "--click", "3", "40", "100"])
    layout = SidebarLayout()
    clicks = zoom.schedule_clicks(opt, layout, parser)
    assert clicks[0] == [(layout.slider_x, 270)]
    assert clicks[3] == [(50, 320), (40, 100)]


def test_combine_actions_keeps_last_rate_and_toggle_parity():
    action = zoom.combine_actions(
        [
            SidebarAction(zoom_rate_input=100),
            SidebarAction(toggle_requested=True),
            SidebarAction(zoom_rate_input=200),
        ]
    )
    assert action == SidebarAction(zoom_rate_input=200, toggle_requested=True)
    assert not zoom.combine_actions([SidebarAction(toggle_requested=True)] * 2).toggle_requested


def test_main_writes_final_image(tmp_path):
    output = tmp_path / "final.png"
    zoom.main(["--frames", "2", "--width", "48", "--height", "36", "--max-iterations", "30",
               "--mode", "image", "--output", str(output)])
    with PIL.Image.open(output) as image:
        assert image.size == (48, 36)


def test_main_writes_frame_sequence_and_gif(tmp_path):
    frame_dir = tmp_path / "frames"
    gif = tmp_path / "movie.gif"
    zoom.main(["--frames", "3", "--width", "40", "--height", "30", "--max-iterations", "20",
               "--toggle-at", "1", "--no-overlay", "--mode", "gif", "--keep-frames",
               "--frame-dir", str(frame_dir), "--output", str(gif)])
    assert gif.is_file()
    assert sorted(p.name for p in frame_dir.iterdir()) == ["frame000.png", "frame001.png", "frame002.png"]


def test_main_rejects_bad_dimensions(tmp_path):
    with pytest.raises(SystemExit):
        zoom.main(["--width", "0", "--mode", "image", "--output", str(Path(tmp_path) / "x.png")])


@pytest.mark.parametrize(
    "argv",
    [
        ["--frames", "5", "--toggle-at", "5"],
        ["--frames", "5", "--toggle-at", "-1"],
        ["--frames", "5", "--click", "7", "15", "320"],
    ],
)
def test_schedule_clicks_rejects_frames_outside_playback(argv):
    parser = zoom.build_parser()
    opt = parser.parse_args(argv)
    with pytest.raises(SystemExit):
        zoom.schedule_clicks(opt, SidebarLayout(), parser)
