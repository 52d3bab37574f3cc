"""Area-average downsampling of a pixel buffer to one sample per glyph cell.

Every output cell covers an equal rectangle of the source plane. A source pixel that straddles a cell boundary
contributes to each cell in proportion to the area it overlaps, so no detail is skipped and nothing is counted twice.
Along an axis where the grid has at least as many cells as the source has pixels there is nothing to average, and
each cell simply takes the pixel under its center.
"""

from __future__ import annotations
from typing import NamedTuple
import numpy as np
from .source import PixelBuffer


__all__ = ['Samples', 'LUMA_WEIGHTS', 'luminance', 'axis_weights', 'resample']


# Rec. 601 luma, the weighting Pillow applies when converting to mode 'L'.
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


class Samples(NamedTuple):
    """Per-cell aggregates, each an array with ``rows`` x ``columns`` leading dimensions.

    ``luminance`` is in [0, 1], ``color`` holds the averaged RGB channels in [0, 255] as floats and ``alpha`` the
    averaged opacity in [0, 1].
    """
    luminance: np.ndarray
    color: np.ndarray
    alpha: np.ndarray

    @property
    def columns(self) -> int:
        return self.luminance.shape[1]

    @property
    def rows(self) -> int:
        return self.luminance.shape[0]


def luminance(rgb: np.ndarray) -> np.ndarray:
    """Perceptual brightness in [0, 1] of RGB values given in [0, 255] along the last axis."""
    return (rgb[..., :3] @ LUMA_WEIGHTS) / 255.0


def axis_weights(source: int, target: int) -> np.ndarray:
    """A (target, source) matrix whose row ``i`` holds the share of each source pixel in output cell ``i``.
    Rows sum to 1."""
    if target >= source:
        nearest = np.floor((np.arange(target) + 0.5) * source / target).astype(np.intp)
        weights = np.zeros((target, source))
        weights[np.arange(target), np.minimum(nearest, source - 1)] = 1.0
        return weights

    edges = np.arange(target + 1) * (source / target)
    lo = edges[:-1, np.newaxis]
    hi = edges[1:, np.newaxis]
    pixel = np.arange(source)[np.newaxis, :]
    overlap = np.clip(np.minimum(hi, pixel + 1) - np.maximum(lo, pixel), 0.0, None)
    return overlap / overlap.sum(axis=1, keepdims=True)


def resample(buffer: PixelBuffer, columns: int, rows: int) -> Samples:
    """Reduce ``buffer`` to ``columns`` x ``rows`` samples.

    :param buffer: The source frame. Frames whose size differs from the first frame of an animation are resampled
        to the same grid.
    :param columns: Number of output cells per row.
    :param rows: Number of output rows.
    :return: The averaged :class:`Samples`.
    """
    assert columns >= 1 and rows >= 1, 'the layout resolver guarantees at least one cell'
    row_weights = axis_weights(buffer.height, rows)
    column_weights = axis_weights(buffer.width, columns)
    pixels = buffer.pixels.astype(np.float64)
    averaged = np.einsum('ry,yxc,kx->rkc', row_weights, pixels, column_weights, optimize=True)
    color = averaged[..., :3]
    return Samples(luminance(color), color, averaged[..., 3] / 255.0)
