import os
import sys
import warnings
from dataclasses import dataclass
from pathlib import Path

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
    try:
        tf.get_logger().setLevel("ERROR")
        for handler in tf.get_logger().handlers:
            handler.setLevel("ERROR")
    except Exception:
        pass

import PIL.Image
import imageio

from fractals import (
    DISPLAY_SIZE,
    MAX_ITERATIONS,
    FractalExplorer,
    FractalKind,
    RenderJob,
)

from argparse import ArgumentParser


def select_device():
    """Use the first visible GPU when there is one, otherwise the CPU."""

    gpus = tf.config.list_physical_devices('GPU')
    if gpus:
        try:
            for gpu in gpus:
                tf.config.experimental.set_memory_growth(gpu, True)
            log("GPU found, using %s" % gpus[0].name)
            return '/GPU:0'
        except RuntimeError as e:
            log(e)
            return '/CPU:0'
    log("No GPU found, using CPU")
    return '/CPU:0'


@dataclass
class OutputConfig:
    modes: tuple[str, ...]
    gif_path: Path | None
    image_path: Path | None
    frame_dir: Path | None
    image_format: str


def build_parser():
    parser = ArgumentParser(description='Render and explore escape-time fractals.')

    parser.add_argument('--fractal', type=str, dest='fractal',
                        choices=[kind.value for kind in FractalKind], default=FractalKind.MANDELBROT.value,
                        help='fractal variant to render')

    parser.add_argument('--size', type=int,
                        dest='size', help='width and height of the square raster in pixels',
                        metavar='SIZE', default=DISPLAY_SIZE)

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='maximum number of iterations before a point counts as inside',
                        metavar='MAX_ITERATIONS', default=MAX_ITERATIONS)

    parser.add_argument('--zoom-at', dest='zoom_at', action='append', metavar='X,Y', default=[],
                        help='pixel to click on: recenter there, zoom in and render again. May be repeated.')

    parser.add_argument('--zoom-factor', type=float,
                        dest='zoom_factor', help='the factor by which to multiply the window size per click. Choose < 1 for zoom in, >1 for zoom out',
                        metavar='ZOOM_FACTOR', default=None)

    parser.add_argument('--workers', type=int, dest='workers', default=None,
                        help='number of worker threads rendering rows (default: executor default)')

    parser.add_argument('--device', type=str, dest='device', default=None,
                        help='TensorFlow device to render on, e.g. "/CPU:0". Default: first GPU if available.')

    parser.add_argument('--mode', dest='modes', action='append', metavar='MODE',
                        help='Output modes to generate. May be repeated. Choices: image, gif, frames.')

    parser.add_argument('--output', dest='output', type=str,
                        help='Destination for single-file outputs (image/gif) or container directory when both are requested.')

    parser.add_argument('--frame-dir', dest='frame_dir', type=str,
                        help='Directory in which to store the numbered frame sequence.')

    parser.add_argument('--format', type=str,
                        dest='format', help='file format for image-based outputs. Can be any extension supported by Pillow. Default: "png".',
                        metavar='FORMAT', default='png')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def parse_click(value: str, parser: ArgumentParser, size: int) -> tuple[int, int]:
    parts = value.split(',')
    if len(parts) != 2:
        parser.error(f"--zoom-at must be X,Y, got '{value}'.")
    try:
        x, y = int(parts[0]), int(parts[1])
    except ValueError:
        parser.error(f"--zoom-at coordinates must be integers, got '{value}'.")
    if not (0 <= x < size and 0 <= y < size):
        parser.error(f"--zoom-at {value} lies outside the {size}x{size} display.")
    return x, y


def resolve_output_config(opt, parser: ArgumentParser) -> OutputConfig:
    valid_modes = {"image", "gif", "frames"}
    modes = opt.modes or ["image"]

    normalized_modes: list[str] = []
    for mode in modes:
        if mode not in valid_modes:
            parser.error(f"Unknown output mode '{mode}'. Valid choices: {', '.join(sorted(valid_modes))}.")
        if mode not in normalized_modes:
            normalized_modes.append(mode)

    modes_tuple = tuple(normalized_modes)
    modes_set = set(modes_tuple)

    frame_dir_path: Path | None = None
    if "frames" in modes_set:
        frame_dir_path = Path(opt.frame_dir or "./frames").expanduser().resolve()
    elif opt.frame_dir is not None:
        parser.error("--frame-dir is only valid with the frames mode.")

    image_format = (getattr(opt, "format", "png") or "png").lower().lstrip(".")
    if not image_format:
        image_format = "png"

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
            if output_path.exists() and output_path.is_dir():
                parser.error("--output must point to a file, not a directory, when a single file mode is active.")
            expected_suffix = ".gif" if mode == "gif" else f".{image_format}"
            if output_path.suffix:
                if output_path.suffix.lower() != expected_suffix.lower():
                    parser.error(f"--output extension {output_path.suffix} does not match {expected_suffix}.")
            else:
                output_path = output_path.with_suffix(expected_suffix)
            if mode == "gif":
                gif_path = output_path.resolve()
            else:
                image_path = output_path.resolve()
        elif mode == "gif":
            gif_path = Path("fractal.gif").resolve()
        else:
            image_path = Path(f"fractal.{image_format}").resolve()
    else:
        base_dir = Path(output_arg).expanduser() if output_arg else Path.cwd()
        if base_dir.exists() and not base_dir.is_dir():
            parser.error("--output must be a directory when both gif and image modes are active.")
        gif_path = (base_dir / "fractal.gif").resolve()
        image_path = (base_dir / f"fractal.{image_format}").resolve()

    return OutputConfig(
        modes=modes_tuple,
        gif_path=gif_path,
        image_path=image_path,
        frame_dir=frame_dir_path,
        image_format=image_format,
    )


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

    pil_format = _pil_format_name(image_format)
    frame_path = frame_dir / f"frame{index:0{digits}d}.{image_format}"
    frame_dir.mkdir(parents=True, exist_ok=True)
    image.save(str(frame_path), format=pil_format)
    return frame_path


@dataclass
class OutputWriters:
    config: OutputConfig
    frame_digits: int

    def __post_init__(self) -> None:
        self._gif_writer = None
        if "gif" in self.config.modes and self.config.gif_path is not None:
            self.config.gif_path.parent.mkdir(parents=True, exist_ok=True)
            self._gif_writer = imageio.get_writer(str(self.config.gif_path), mode='I', duration=0.5, loop=0)

    def write_frame(self, frame_index: int, frame_array: np.ndarray) -> None:
        if self._gif_writer is not None:
            self._gif_writer.append_data(frame_array)
        if "frames" in self.config.modes and self.config.frame_dir is not None:
            write_frame_sequence(
                PIL.Image.fromarray(frame_array),
                self.config.frame_dir,
                frame_index,
                self.frame_digits,
                self.config.image_format,
            )

    def finalize(self, frame_array: np.ndarray | None) -> None:
        if "image" in self.config.modes and self.config.image_path is not None and frame_array is not None:
            write_single_image(PIL.Image.fromarray(frame_array), self.config.image_path, self.config.image_format)

    def close(self) -> None:
        if self._gif_writer is not None:
            self._gif_writer.close()
            self._gif_writer = None


def _report_row(job: RenderJob, row: int) -> None:
    done = job.size - job.rows_remaining
    print("row {0} out of {1}".format(done, job.size), end='\r')


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    if opt.size <= 0:
        parser.error("--size must be positive.")
    if opt.max_iterations <= 0:
        parser.error("--max-iterations must be positive.")
    if opt.zoom_factor is not None and opt.zoom_factor <= 0:
        parser.error("--zoom-factor must be positive.")

    output_config = resolve_output_config(opt, parser)
    clicks = [parse_click(value, parser, opt.size) for value in opt.zoom_at]

    log("TensorFlow version: %s" % tf.__version__)
    device = opt.device or select_device()

    total_frames = len(clicks) + 1
    frame_digits = max(3, len(str(total_frames - 1)))
    writers = OutputWriters(output_config, frame_digits=frame_digits)
    final_frame: np.ndarray | None = None

    explorer = FractalExplorer(
        opt.size,
        kind=opt.fractal,
        max_iterations=opt.max_iterations,
        zoom_factor=opt.zoom_factor,
        max_workers=opt.workers,
        device=device,
    )
    try:
        for i in range(total_frames):
            if i > 0:
                x, y = clicks[i - 1]
                viewport = explorer.zoom_at(x, y)
                log("Zoomed at pixel (%d, %d): %s" % (x, y, viewport))
            job = explorer.render_frame(on_row=_report_row if VERBOSE else None)
            final_frame = job.wait()
            if VERBOSE:
                # end the \r progress line
                print()
            log("frame {0} out of {1} complete".format(i + 1, total_frames))
            writers.write_frame(i, final_frame)
    finally:
        writers.close()
        explorer.close()

    writers.finalize(final_frame)
    for path in (output_config.image_path, output_config.gif_path):
        if path is not None:
            log("Wrote %s" % path)
    return final_frame


if __name__ == '__main__':
    main()
