from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

EXAMPLES_ROOT = Path("examples/cli-options")
BASE_ARGS = ["--frames", "1", "--mode", "image", "--width", "160", "--height", "120"]


@dataclass
class Expected:
    path: Path
    is_dir: bool = False


@dataclass
class Example:
    name: str
    args: list[str]
    expected: list[Expected]

    def full_args(self) -> list[str]:
        return [sys.executable, "zoom.py", *self.args]

    @property
    def root(self) -> Path:
        return EXAMPLES_ROOT / self.name


def _image_example(name: str, filename: str, *extra: str) -> Example:
    output = EXAMPLES_ROOT / name / filename
    return Example(name=name, args=[*BASE_ARGS, *extra, "--output", str(output)], expected=[Expected(output)])


EXAMPLES: list[Example] = [
    _image_example("max-iterations", "shallow.png", "--max-iterations", "40"),
    _image_example("center", "period-two-bulb.png", "--center-x", "-1.0", "--center-y", "0.0"),
    _image_example("zoom-rate", "fast-zoom.png", "--frames", "30", "--zoom-rate", "0.5", "--fps", "2"),
    _image_example("slider-y", "slider-midpoint.png", "--frames", "10", "--slider-y", "170", "--fps", "1"),
    _image_example("fractal", "julia-start.png", "--fractal", "julia"),
    _image_example("toggle-at", "toggled.png", "--frames", "3", "--toggle-at", "1"),
    _image_example("click", "clicked.png", "--frames", "2", "--click", "0", "15", "320"),
    _image_example("no-overlay", "bare.png", "--no-overlay"),
    _image_example("format", "final.jpg", "--format", "jpg"),
    _image_example("verbose", "diagnostic.png", "--verbose"),
    Example(
        name="gif",
        args=["--frames", "4", "--width", "160", "--height", "120", "--output", str(EXAMPLES_ROOT / "gif" / "movie.gif")],
        expected=[Expected(EXAMPLES_ROOT / "gif" / "movie.gif")],
    ),
    Example(
        name="keep-frames",
        args=[
            "--frames",
            "3",
            "--width",
            "160",
            "--height",
            "120",
            "--mode",
            "gif",
            "--keep-frames",
            "--frame-dir",
            str(EXAMPLES_ROOT / "keep-frames" / "frames"),
            "--output",
            str(EXAMPLES_ROOT / "keep-frames" / "movie.gif"),
        ],
        expected=[
            Expected(EXAMPLES_ROOT / "keep-frames" / "movie.gif"),
            Expected(EXAMPLES_ROOT / "keep-frames" / "frames", is_dir=True),
        ],
    ),
    Example(
        name="frames",
        args=[
            "--frames",
            "3",
            "--width",
            "160",
            "--height",
            "120",
            "--mode",
            "frames",
            "--frame-dir",
            str(EXAMPLES_ROOT / "frames" / "sequence"),
        ],
        expected=[Expected(EXAMPLES_ROOT / "frames" / "sequence", is_dir=True)],
    ),
    Example(
        name="gif-and-image",
        args=[
            "--frames",
            "2",
            "--width",
            "160",
            "--height",
            "120",
            "--mode",
            "gif",
            "--mode",
            "image",
            "--output",
            str(EXAMPLES_ROOT / "gif-and-image"),
        ],
        expected=[
            Expected(EXAMPLES_ROOT / "gif-and-image" / "movie.gif"),
            Expected(EXAMPLES_ROOT / "gif-and-image" / "frame_final.png"),
        ],
    ),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()


def _prepare(example: Example) -> None:
    _ensure_clean([example.root])
    example.root.mkdir(parents=True, exist_ok=True)


def _verify(example: Example) -> None:
    for expected in example.expected:
        if expected.is_dir:
            if not expected.path.is_dir():
                raise RuntimeError(f"Expected directory {expected.path} was not created")
            if not any(expected.path.iterdir()):
                raise RuntimeError(f"Directory {expected.path} is empty")
        elif not expected.path.is_file():
            raise RuntimeError(f"Expected file {expected.path} was not created")


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[cli-example] {example.name}")
        _prepare(example)
        subprocess.run(example.full_args(), check=True)
        _verify(example)
    print("\nAll CLI examples generated successfully.")


if __name__ == "__main__":
    main()
