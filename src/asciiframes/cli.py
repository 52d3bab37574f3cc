"""Command line entry points: preview, convert and animate."""

from __future__ import annotations
import argparse
import sys
import time
import warnings
from pathlib import Path
from typing import List, Optional
from . import utils
from .animation import animate, export_frames, stream
from .core import RenderOptions
from .grid import Grid
from .image import convert
from .layout import FitWithin, FixedColumns, FixedDimensions, FixedRows, LayoutPolicy
from .quantize import RAMP_PRESETS, SobelEdges, ramp_preset
from .typealiases import AsciiFramesException


RESET = '\033[0m'
CURSOR_HOME = '\033[H'
CLEAR_SCREEN = '\033[2J'
COLOR_CHOICES = ['monochrome', 'truecolor', 'palette8', 'palette16', 'palette256']


def _dimensions(value: str) -> tuple:
    try:
        columns, rows = value.lower().split('x')
        return int(columns), int(rows)
    except ValueError:
        raise argparse.ArgumentTypeError(f'expected COLUMNSxROWS, got \'{value}\'') from None


def _settings_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(add_help=False)
    size = parser.add_mutually_exclusive_group()
    size.add_argument('--height', type=int, help='Target row count; columns follow the image proportions')
    size.add_argument('--fit', type=_dimensions, metavar='COLSxROWS',
                      help='Largest proportional grid inside this box')
    size.add_argument('--size', type=_dimensions, metavar='COLSxROWS', help='Exact grid size, stretching the image')
    parser.add_argument('--ramp', default='standard',
                        help=f'Glyph ramp preset ({", ".join(RAMP_PRESETS)}) or literal characters, dark to bright')
    parser.add_argument('--color', choices=COLOR_CHOICES, default='monochrome')
    parser.add_argument('--gamma', type=float, default=1.0)
    parser.add_argument('--dither', action='store_true', help='Diffuse quantization error between cells')
    parser.add_argument('--invert', action='store_true', help='Invert luminance before mapping')
    parser.add_argument('--brightness', type=float, default=0.0, help='Brightness adjustment (-255..255)')
    parser.add_argument('--contrast', type=float, default=0.0, help='Contrast adjustment (-255..255)')
    parser.add_argument('--cell-aspect', type=float, default=0.5, help='Width / height of a terminal cell')
    parser.add_argument('--sobel', type=float, metavar='THRESHOLD', help='Draw Sobel edges above THRESHOLD (0-1)')
    parser.add_argument('-q', '--quiet', action='store_true')
    return parser


def build_parser() -> argparse.ArgumentParser:
    settings = _settings_parser()
    parser = argparse.ArgumentParser(prog='asciiframes', description='Convert images or animations to glyph grids')
    sub = parser.add_subparsers(dest='command', required=True)

    preview = sub.add_parser('preview', parents=[settings], help='Print ASCII art to the terminal')
    preview.add_argument('input', help='Image, animation or directory of frames')
    preview.add_argument('--width', type=int, default=100, help='Target column count')
    preview.add_argument('--fps', type=float, default=None, help='Playback rate for animations')

    convert_cmd = sub.add_parser('convert', parents=[settings], help='Write an image as ASCII text')
    convert_cmd.add_argument('input', help='Input image path')
    convert_cmd.add_argument('-o', '--output', help='Output text file. Defaults to the input name with .txt')
    convert_cmd.add_argument('--width', type=int, default=120, help='Target column count')

    animate_cmd = sub.add_parser('animate', parents=[settings], help='Write every frame of an animation as text')
    animate_cmd.add_argument('input', help='Animation path (GIF, APNG, WebP) or directory of frames')
    animate_cmd.add_argument('-o', '--out-dir', required=True, help='Output directory for frame files')
    animate_cmd.add_argument('--width', type=int, default=120, help='Target column count')
    animate_cmd.add_argument('--fps', type=float, default=None, help='Retime the output to this frame rate')
    animate_cmd.add_argument('--fallback-fps', type=float, default=12.0,
                             help='Frame rate assumed when the input lacks timing information')
    animate_cmd.add_argument('--workers', type=int, default=1, help='Rendering threads')
    return parser


def layout_from_args(args: argparse.Namespace) -> LayoutPolicy:
    if args.height is not None:
        return FixedRows(args.height)
    if args.fit is not None:
        return FitWithin(*args.fit)
    if args.size is not None:
        return FixedDimensions(*args.size)
    return FixedColumns(args.width)


def options_from_args(args: argparse.Namespace) -> RenderOptions:
    ramp = ramp_preset(args.ramp) if args.ramp.lower() in RAMP_PRESETS else args.ramp
    return RenderOptions(
        glyph_ramp=ramp, color_mode=args.color, gamma=args.gamma, dither=args.dither, cell_aspect=args.cell_aspect,
        invert=args.invert, brightness=args.brightness, contrast=args.contrast,
        edges=SobelEdges(args.sobel) if args.sobel is not None else None)


def ansi_lines(grid: Grid) -> List[str]:
    """The grid rows with ANSI foreground colors applied, or plain glyphs for a monochrome grid."""
    if not grid.has_color:
        return grid.lines()
    lines = []
    for row in grid:
        line = ''
        previous = None
        for cell in row:
            if cell.color != previous:
                if cell.palette_index is not None:
                    line += f'\033[38;5;{cell.palette_index}m'
                else:
                    line += '\033[38;2;{};{};{}m'.format(*cell.color)
                previous = cell.color
            line += cell.glyph
        lines.append(line + RESET)
    return lines


def cmd_preview(args: argparse.Namespace) -> int:
    outputs = stream(args.input, layout_from_args(args), options_from_args(args), target_fps=args.fps)
    previous = None
    for output in outputs:
        if previous is not None:
            time.sleep(previous.duration)
            sys.stdout.write(CLEAR_SCREEN + CURSOR_HOME)
        sys.stdout.write('\n'.join(ansi_lines(output.grid)) + '\n')
        sys.stdout.flush()
        previous = output
    return 0


def cmd_convert(args: argparse.Namespace) -> int:
    _print = utils.conditional_print(args.quiet)
    out_path = convert(args.input, layout_from_args(args), options_from_args(args), args.output)
    _print(f'ASCII art written to {out_path}')
    return 0


def cmd_animate(args: argparse.Namespace) -> int:
    _print = utils.conditional_print(args.quiet)
    out_dir = Path(args.out_dir)
    if out_dir.is_dir() and any(out_dir.glob('frame_*.txt')):
        warnings.warn(f'{out_dir} already holds frame files; they will be overwritten.', RuntimeWarning)

    _print('Generating ASCII Art...')
    start_time = time.perf_counter()
    result = animate(
        args.input, layout_from_args(args), options_from_args(args), target_fps=args.fps, workers=args.workers,
        fallback_fps=args.fallback_fps)
    _print(f'Rendered {len(result)} frames in {time.perf_counter() - start_time:.2f}s.')

    paths = export_frames(result, out_dir)
    fps = args.fps if args.fps is not None else len(result) / result.total_duration
    _print(f'Frames written to {out_dir} ({len(paths)} files, fps {fps:.2f})')
    return 0


COMMANDS = {'preview': cmd_preview, 'convert': cmd_convert, 'animate': cmd_animate}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return COMMANDS[args.command](args)
    except (AsciiFramesException, FileNotFoundError, NotADirectoryError) as e:
        print(f'asciiframes: {e}', file=sys.stderr)
        return 1
