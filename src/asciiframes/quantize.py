from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, NamedTuple, Optional, Union
import numpy as np
from .resample import Samples
from .typealiases import EmptyRamp, InvalidOptions

if TYPE_CHECKING:
    from .core import RenderOptions


__all__ = ['STANDARD', 'DETAILED', 'BLOCKS', 'BINARY', 'RAMP_PRESETS', 'ramp_preset',
           'Monochrome', 'Truecolor', 'Palette', 'ColorMode', 'parse_color_mode', 'SobelEdges',
           'ansi_palette', 'adjust_tone', 'sobel', 'glyph_indexes', 'ErrorDiffuser', 'dither_indexes',
           'snap_to_palette', 'Quantized', 'quantize']


# Ramps run from the darkest tone to the brightest, assuming light glyphs on a dark terminal.
STANDARD = ' .:-=+*$@#'
DETAILED = ' .\'`^",:;Il!i><~+_-?][}{1)(|/tfjrxnuvczXYUJCLQ0OZmwqpdbkhao*#MW&8%B@$'
BLOCKS = ' ░▒▓█'
BINARY = '01'

RAMP_PRESETS = {'standard': STANDARD, 'detailed': DETAILED, 'blocks': BLOCKS, 'binary': BINARY}


def ramp_preset(name: str) -> str:
    try:
        return RAMP_PRESETS[name.lower()]
    except KeyError:
        raise InvalidOptions(
            f'Unknown glyph ramp \'{name}\'. Choose one of: {", ".join(RAMP_PRESETS)}.') from None


@dataclass(frozen=True)
class Monochrome:
    """Glyphs only, no color."""


@dataclass(frozen=True)
class Truecolor:
    """Each cell carries its averaged 24-bit color."""


@dataclass(frozen=True)
class Palette:
    """Each cell carries the nearest of ``size`` terminal colors (8, 16 or 256)."""
    size: int = 256


ColorMode = Union[Monochrome, Truecolor, Palette]


def parse_color_mode(value: Union[str, ColorMode]) -> ColorMode:
    """Accept 'monochrome', 'truecolor', 'palette8', 'palette16' or 'palette256' (or a mode object)."""
    if isinstance(value, (Monochrome, Truecolor, Palette)):
        return value
    name = str(value).lower()
    if name in ('monochrome', 'mono', 'none'):
        return Monochrome()
    if name in ('truecolor', 'full', '24bit'):
        return Truecolor()
    if name.startswith('palette') and name[7:].isdigit():
        return Palette(int(name[7:]))
    raise InvalidOptions(f'Unknown color mode \'{value}\'.')


@dataclass(frozen=True)
class SobelEdges:
    """Replace tone with Sobel edge magnitude. Magnitudes below ``threshold`` (0-1) become black."""
    threshold: float = 0.2


_ANSI_16 = [
    (0, 0, 0), (205, 0, 0), (0, 205, 0), (205, 205, 0), (0, 0, 238), (205, 0, 205), (0, 205, 205), (229, 229, 229),
    (127, 127, 127), (255, 0, 0), (0, 255, 0), (255, 255, 0), (92, 92, 255), (255, 0, 255), (0, 255, 255),
    (255, 255, 255)]
_CUBE_LEVELS = (0, 95, 135, 175, 215, 255)


def ansi_palette(size: int) -> np.ndarray:
    """The xterm colors of an 8, 16 or 256 color terminal as a (size, 3) array. Index ``i`` is color code ``i``."""
    if size == 8:
        return np.array(_ANSI_16[:8], dtype=np.float64)
    if size == 16:
        return np.array(_ANSI_16, dtype=np.float64)
    if size == 256:
        cube = [(r, g, b) for r in _CUBE_LEVELS for g in _CUBE_LEVELS for b in _CUBE_LEVELS]
        grays = [(v, v, v) for v in range(8, 248, 10)]
        return np.array(_ANSI_16 + cube + grays, dtype=np.float64)
    raise InvalidOptions(f'Palettes of 8, 16 or 256 colors are supported, got {size}.')


def adjust_tone(values: np.ndarray, invert: bool = False, contrast: float = 0.0,
                brightness: float = 0.0) -> np.ndarray:
    """Invert, then apply contrast and brightness offsets (each in -255..255) to luminance in [0, 1]."""
    if invert:
        values = 1.0 - values
    if contrast == 0 and brightness == 0:
        return values
    contrast = min(max(contrast, -255.0), 255.0)
    factor = (259.0 * (contrast + 255.0)) / (255.0 * (259.0 - contrast))
    offset = min(max(brightness / 255.0, -1.0), 1.0)
    return np.clip(factor * (values - 0.5) + 0.5 + offset, 0.0, 1.0)


def sobel(values: np.ndarray, threshold: float) -> np.ndarray:
    """Edge magnitude of a luminance grid. The one-cell border has no full neighbourhood and stays at zero,
    as does any grid smaller than 3x3."""
    output = np.zeros_like(values)
    rows, columns = values.shape
    if rows < 3 or columns < 3:
        return output
    a, b, c = values[:-2, :-2], values[:-2, 1:-1], values[:-2, 2:]
    d, f = values[1:-1, :-2], values[1:-1, 2:]
    g, h, i = values[2:, :-2], values[2:, 1:-1], values[2:, 2:]
    gx = (c + 2 * f + i) - (a + 2 * d + g)
    gy = (g + 2 * h + i) - (a + 2 * b + c)
    magnitude = np.clip(np.hypot(gx, gy) / 4.0, 0.0, 1.0)
    threshold = min(max(threshold, 0.0), 1.0)
    output[1:-1, 1:-1] = np.where(magnitude >= threshold, magnitude, 0.0)
    return output


def glyph_indexes(values: np.ndarray, ramp_length: int) -> np.ndarray:
    """Nearest ramp position for each value in [0, 1], clamped to the ramp."""
    levels = ramp_length - 1
    return np.clip(np.floor(values * levels + 0.5), 0, levels).astype(np.intp)


class ErrorDiffuser:
    """The quantization error still owed to cells not yet visited in raster order (Floyd-Steinberg weights).

    One instance belongs to one frame. The array is padded by one column on each side and one row below so error
    pushed past an edge lands in the padding and is dropped.
    """

    def __init__(self, rows: int, columns: int) -> None:
        self.pending = np.zeros((rows + 1, columns + 2))

    def corrected(self, row: int, column: int, value: float) -> float:
        return value + self.pending[row, column + 1]

    def push(self, row: int, column: int, error: float) -> None:
        c = column + 1
        self.pending[row, c + 1] += error * 7 / 16
        self.pending[row + 1, c - 1] += error * 3 / 16
        self.pending[row + 1, c] += error * 5 / 16
        self.pending[row + 1, c + 1] += error * 1 / 16


def dither_indexes(values: np.ndarray, ramp_length: int) -> np.ndarray:
    """Like :func:`glyph_indexes`, but each cell's rounding error is carried to its right and lower neighbours."""
    rows, columns = values.shape
    levels = ramp_length - 1
    diffuser = ErrorDiffuser(rows, columns)
    indexes = np.empty((rows, columns), dtype=np.intp)
    for y in range(rows):
        for x in range(columns):
            value = diffuser.corrected(y, x, float(values[y, x]))
            index = min(max(int(np.floor(value * levels + 0.5)), 0), levels)
            indexes[y, x] = index
            diffuser.push(y, x, value - index / levels)
    return indexes


def snap_to_palette(colors: np.ndarray, palette: np.ndarray) -> np.ndarray:
    """Index of the palette entry at minimum Euclidean RGB distance from each color."""
    distances = ((colors[..., np.newaxis, :] - palette) ** 2).sum(axis=-1)
    return distances.argmin(axis=-1)


class Quantized(NamedTuple):
    glyphs: List[List[str]]
    colors: Optional[List[List[Any]]]
    palette_indexes: Optional[List[List[int]]]


def quantize(samples: Samples, options: RenderOptions) -> Quantized:
    """Turn averaged samples into glyphs and, unless the color mode is monochrome, cell colors.

    :param samples: Output of :func:`asciiframes.resample.resample`.
    :param options: A validated :class:`asciiframes.core.RenderOptions`.
    :return: Row-major glyphs, colors as ``(r, g, b)`` tuples, and palette indexes in palette mode.
    """
    ramp = options.glyph_ramp
    if len(ramp) < 2:
        raise EmptyRamp(f'The glyph ramp needs at least 2 characters, got {len(ramp)}.')

    tone = adjust_tone(samples.luminance, options.invert, options.contrast, options.brightness)
    if options.edges is not None:
        tone = sobel(tone, options.edges.threshold)
    if options.gamma != 1.0:
        tone = tone ** (1.0 / options.gamma)

    if options.dither:
        indexes = dither_indexes(tone, len(ramp))
    else:
        indexes = glyph_indexes(tone, len(ramp))
    transparent = samples.alpha <= options.alpha_threshold
    glyphs = [[options.transparent_glyph if clear else ramp[i] for i, clear in zip(index_row, clear_row)]
              for index_row, clear_row in zip(indexes.tolist(), transparent.tolist())]

    mode = options.color_mode
    if isinstance(mode, Monochrome):
        return Quantized(glyphs, None, None)
    if isinstance(mode, Truecolor):
        rounded = np.clip(np.floor(samples.color + 0.5), 0, 255).astype(int)
        return Quantized(glyphs, [[tuple(c) for c in row] for row in rounded.tolist()], None)
    palette = ansi_palette(mode.size)
    snapped = snap_to_palette(samples.color, palette)
    colors = [[tuple(int(v) for v in palette[i]) for i in row] for row in snapped.tolist()]
    return Quantized(glyphs, colors, snapped.tolist())
