"""
:Version: 0.1.0

asciiframes
===========

Turn images and animations into grids of text glyphs sized for a terminal.

`asciiframes` renders a still **image** or every frame of an **animation** to a grid of characters. Each character
cell stands for the area-averaged tone (and, optionally, color) of the pixels it covers.

Basic Usage
-----------

- ``render()`` renders one image and returns a ``RenderOutput``. Its ``grid.lines()`` are ready to print.

- ``animate()`` renders every frame of a GIF, APNG, WebP or frame directory and returns an ``AnimationResult``.
  Pass ``target_fps`` to retime the sequence to a fixed frame rate.

- ``stream()`` does the same lazily, one frame at a time, for previews.

All three take the **source** first and a **layout policy** second:

    >>> import asciiframes as af
    >>> out = af.render('foo.png', af.FixedColumns(100))
    >>> print(out.grid.text())

The layout policy decides the grid size: ``FixedColumns(n)`` and ``FixedRows(n)`` keep the image proportions,
``FixedDimensions(cols, rows)`` stretches, and ``FitWithin(cols, rows)`` fits the largest proportional grid in a box,
such as the terminal window.

Everything else lives in ``RenderOptions``: the glyph ramp (darkest to brightest), the color mode, gamma, dithering
and the assumed width / height of a terminal cell, which defaults to 0.5.

Errors are raised, never printed: ``DecodeError``, ``UnsupportedFormat``, ``InvalidLayout``, ``EmptyRamp``, and
``AnimationFailed`` which tells which frame broke.
"""

from . import image, animation
from .core import *
from .grid import Cell, Grid
from .layout import FixedColumns, FixedRows, FixedDimensions, FitWithin, resolve_layout
from .quantize import STANDARD, DETAILED, BLOCKS, BINARY, Monochrome, Truecolor, Palette, SobelEdges, ramp_preset
from .source import PixelBuffer, Frame, FrameSource, ImageSource, DirectorySource, BufferSource, open_source
from .typealiases import (
    AsciiFramesException, DecodeError, UnsupportedFormat, InvalidLayout, EmptyRamp, InvalidOptions, AnimationFailed)
from .image import render, convert
from .animation import AnimationResult, AnimationState, Animator, animate, stream, export_frames


__version__ = '0.1.0'
