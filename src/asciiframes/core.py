from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union
from .grid import Grid, assemble
from .layout import LayoutPolicy, resolve_layout, validate_layout
from .quantize import STANDARD, ColorMode, Monochrome, Palette, SobelEdges, parse_color_mode, quantize
from .resample import resample
from .source import PixelBuffer
from .typealiases import Size, EmptyRamp, InvalidOptions


__all__ = ['RenderOptions', 'RenderOutput', 'CoreRenderer']


@dataclass(frozen=True)
class RenderOptions:
    """**Settings shared by every frame of one render or animate call.**

    :param glyph_ramp: The characters to draw with, from darkest to brightest tone. At least two are required.
        Defaults to ``' .:-=+*$@#'``.
    :param color_mode: ``Monochrome()``, ``Truecolor()`` or ``Palette(8 | 16 | 256)``, or the equivalent string
        ('monochrome', 'truecolor', 'palette256'...). Defaults to monochrome.
    :param gamma: Tone curve exponent; values above 1 brighten midtones. Defaults to 1.0.
    :param dither: Diffuse rounding error to neighbouring cells. Makes a cell's glyph depend on the cells above and
        to its left. Defaults to False.
    :param cell_aspect: Width / height of a terminal character cell. Defaults to 0.5.
    :param invert: Swap dark and bright before mapping, for dark text on a light background. Defaults to False.
    :param brightness: Brightness offset between -255 and 255. Defaults to 0.
    :param contrast: Contrast offset between -255 and 255. Defaults to 0.
    :param edges: ``SobelEdges(threshold)`` to draw edge strength instead of tone. Defaults to None.
    :param alpha_threshold: Cells whose average opacity is at or below this value are drawn with
        ``transparent_glyph``. Defaults to 0.001.
    :param transparent_glyph: Defaults to a space.
    """

    glyph_ramp: Union[str, Sequence[str]] = STANDARD
    color_mode: ColorMode = field(default_factory=Monochrome)
    gamma: float = 1.0
    dither: bool = False
    cell_aspect: float = 0.5
    invert: bool = False
    brightness: float = 0.0
    contrast: float = 0.0
    edges: Optional[SobelEdges] = None
    alpha_threshold: float = 0.001
    transparent_glyph: str = ' '

    def __post_init__(self) -> None:
        if not isinstance(self.glyph_ramp, str):
            object.__setattr__(self, 'glyph_ramp', tuple(self.glyph_ramp))
        object.__setattr__(self, 'color_mode', parse_color_mode(self.color_mode))

    def validate(self) -> None:
        if len(self.glyph_ramp) < 2:
            raise EmptyRamp(f'The glyph ramp needs at least 2 characters, got {len(self.glyph_ramp)}.')
        if not self.gamma > 0:
            raise InvalidOptions(f'gamma must be positive, got {self.gamma!r}.')
        if not self.cell_aspect > 0:
            raise InvalidOptions(f'cell_aspect must be positive, got {self.cell_aspect!r}.')
        if isinstance(self.color_mode, Palette) and self.color_mode.size not in (8, 16, 256):
            raise InvalidOptions(f'Palettes of 8, 16 or 256 colors are supported, got {self.color_mode.size}.')


@dataclass(frozen=True)
class RenderOutput:
    """A rendered frame. ``timestamp`` is the presentation time in seconds, None for a still render."""

    grid: Grid
    source_size: Size
    target_size: Size
    timestamp: Optional[float] = None
    duration: float = 0.0
    source_index: int = 0

    def lines(self) -> List[str]:
        return self.grid.lines()


class CoreRenderer:
    """The class behind the ``render`` and ``animate`` functions. It validates the settings once, resolves the grid
    size on the first frame it sees, and from then on renders every frame to that same size.

        >>> core = CoreRenderer(FixedColumns(80))
        >>> core.render_output(first_buffer).target_size
        (80, 30)

    After the grid size is resolved, :meth:`render_grid` has no side effects and may run on several threads at once.
    """

    def __init__(self, layout: LayoutPolicy, options: Optional[RenderOptions] = None) -> None:
        self.layout = layout
        self.options = options if options is not None else RenderOptions()
        self.options.validate()
        validate_layout(layout)
        self.target_size: Optional[Size] = None

    def resolve(self, buffer: PixelBuffer) -> Size:
        """Resolve the grid size from ``buffer`` unless it is already known."""
        if self.target_size is None:
            self.target_size = resolve_layout(buffer.width, buffer.height, self.layout, self.options.cell_aspect)
        return self.target_size

    def render_grid(self, buffer: PixelBuffer) -> Grid:
        columns, rows = self.resolve(buffer)
        quantized = quantize(resample(buffer, columns, rows), self.options)
        return assemble(quantized.glyphs, columns, rows, quantized.colors, quantized.palette_indexes)

    def render_output(self, buffer: PixelBuffer, timestamp: Optional[float] = None, duration: float = 0.0,
                      source_index: int = 0) -> RenderOutput:
        grid = self.render_grid(buffer)
        return RenderOutput(grid, buffer.size, grid.size, timestamp, duration, source_index)
