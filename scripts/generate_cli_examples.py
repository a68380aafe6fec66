from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

EXAMPLES_ROOT = Path("examples/cli-options")
BASE_ARGS = ["--size", "160"]


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
        return ["python", "explore.py", *self.args]


def _single_image(name: str, filename: str, *args: str) -> Example:
    output = EXAMPLES_ROOT / name / filename
    return Example(name=name, args=[*BASE_ARGS, *args, "--output", str(output)], expected=[Expected(output)])


EXAMPLES: list[Example] = [
    _single_image("mandelbrot", "mandelbrot.png"),
    _single_image("tricorn", "tricorn.png", "--fractal", "tricorn"),
    _single_image("burning-ship", "burning-ship.png", "--fractal", "burning_ship"),
    _single_image("size", "large.png", "--size", "400"),
    _single_image("max-iterations", "low-iterations.png", "--max-iterations", "40"),
    _single_image("zoom-at", "seahorse-valley.png", "--zoom-at", "56,70", "--zoom-at", "80,80"),
    _single_image("zoom-factor", "deep-click.png", "--zoom-at", "56,70", "--zoom-factor", "0.1"),
    _single_image("workers", "single-worker.png", "--workers", "1"),
    _single_image("format", "mandelbrot.jpg", "--format", "jpg"),
    _single_image("verbose", "diagnostic.png", "--verbose"),
    Example(
        name="gif",
        args=[
            *BASE_ARGS,
            "--mode", "gif",
            "--zoom-at", "56,70",
            "--zoom-at", "80,80",
            "--zoom-at", "80,80",
            "--output", str(EXAMPLES_ROOT / "gif" / "zoom.gif"),
        ],
        expected=[Expected(EXAMPLES_ROOT / "gif" / "zoom.gif")],
    ),
    Example(
        name="frames",
        args=[
            *BASE_ARGS,
            "--mode", "frames",
            "--zoom-at", "56,70",
            "--frame-dir", str(EXAMPLES_ROOT / "frames" / "sequence"),
        ],
        expected=[Expected(EXAMPLES_ROOT / "frames" / "sequence", is_dir=True)],
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
    _ensure_clean([EXAMPLES_ROOT / example.name])
    for expected in example.expected:
        expected.path.parent.mkdir(parents=True, exist_ok=True)


def _verify(example: Example) -> None:
    for expected in example.expected:
        if expected.is_dir:
            if not expected.path.is_dir():
                raise RuntimeError(f"Expected directory {expected.path} was not created")
            if not any(expected.path.iterdir()):
                raise RuntimeError(f"Directory {expected.path} is empty")
        else:
            if not expected.path.is_file():
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
