from typing import Any, Optional
from pathlib import Path
from ..core import CoreRenderer, RenderOptions, RenderOutput
from ..layout import LayoutPolicy, FixedColumns
from ..source import open_source
from .. import utils
from ..typealiases import SomeSortOfPath, DecodeError


__all__ = ['render', 'convert']


def render(source: Any, layout: LayoutPolicy, options: Optional[RenderOptions] = None) -> RenderOutput:
    """**Render a still image to a glyph grid.**

        >>> out = render('foo.png', FixedColumns(100))
        >>> print('\\n'.join(out.lines()))
        [Prints the ascii art]

        >>> render('foo.png', FitWithin(80, 24), RenderOptions(color_mode='truecolor')).grid[0][0].color
        (12, 40, 33)

    Multi-frame sources render their first frame; use :func:`asciiframes.animation.animate` for the whole sequence.
    Rendering the same input twice without dithering gives equal grids.

    :param source: A path, bytes, a file object, a ``PIL.Image.Image``, a :class:`PixelBuffer`, a numpy array or
        any :class:`FrameSource`.
    :param layout: How to size the grid: ``FixedColumns``, ``FixedRows``, ``FixedDimensions`` or ``FitWithin``.
    :param options: The :class:`RenderOptions`. Defaults to ``RenderOptions()``.
    :return: The :class:`RenderOutput`. Its ``timestamp`` is None.
    """

    core = CoreRenderer(layout, options)
    frames = open_source(source)
    try:
        frame = next(frames)
    except StopIteration:
        raise DecodeError('The source contains no frames.') from None
    return core.render_output(frame.buffer)


def convert(
        path: SomeSortOfPath, layout: LayoutPolicy = FixedColumns(120), options: Optional[RenderOptions] = None,
        out_path: Optional[SomeSortOfPath] = None) -> str:

    """**Convert an image to ascii art and save it as text in the same directory.**

        >>> convert('foo.png')
        'foo.txt'

        >>> convert('foo.png', FixedColumns(80), out_path='art/foo80.txt')
        'art/foo80.txt'

    :param path: The path to the image file.
    :param layout: Defaults to 120 columns.
    :param options: The :class:`RenderOptions`. Defaults to ``RenderOptions()``.
    :param out_path: Where to write the text. Defaults to the input path with a ``.txt`` extension, numbered if
        that file already exists.
    :return: The path of the written file.
    """

    output = render(path, layout, options)
    if out_path is None:
        out_path = utils.safe_path(path, ext='txt', as_path_obj=True)
    out_path = Path(out_path)
    out_path.write_text(output.grid.text() + '\n', encoding='utf-8')
    return str(out_path)
