from __future__ import annotations
from dataclasses import dataclass
from math import floor
from numbers import Integral
from typing import Union
from .typealiases import Size, InvalidLayout
from .utils import round_half_up


__all__ = ['FixedColumns', 'FixedRows', 'FixedDimensions', 'FitWithin', 'LayoutPolicy',
           'resolve_layout', 'validate_layout']


@dataclass(frozen=True)
class FixedColumns:
    """Exactly ``columns`` glyphs per row; the row count follows the source aspect ratio."""
    columns: int


@dataclass(frozen=True)
class FixedRows:
    """Exactly ``rows`` rows; the column count follows the source aspect ratio."""
    rows: int


@dataclass(frozen=True)
class FixedDimensions:
    """Exactly ``columns`` x ``rows``. The source is stretched to fit."""
    columns: int
    rows: int


@dataclass(frozen=True)
class FitWithin:
    """The largest aspect-preserving grid that fits inside ``max_columns`` x ``max_rows``."""
    max_columns: int
    max_rows: int


LayoutPolicy = Union[FixedColumns, FixedRows, FixedDimensions, FitWithin]


def _positive(name: str, value: int) -> None:
    if not isinstance(value, Integral) or value <= 0:
        raise InvalidLayout(f'{name} must be a positive integer, got {value!r}.')


def validate_layout(policy: LayoutPolicy) -> None:
    """Raise :class:`InvalidLayout` if ``policy`` requests a non-positive dimension."""
    if isinstance(policy, FixedColumns):
        _positive('columns', policy.columns)
    elif isinstance(policy, FixedRows):
        _positive('rows', policy.rows)
    elif isinstance(policy, FixedDimensions):
        _positive('columns', policy.columns)
        _positive('rows', policy.rows)
    elif isinstance(policy, FitWithin):
        _positive('max_columns', policy.max_columns)
        _positive('max_rows', policy.max_rows)
    else:
        raise InvalidLayout(f'Unknown layout policy {policy!r}.')


def _fit_within(max_columns: int, max_rows: int, rows_per_column: float) -> Size:
    # Shrink whichever dimension overflows, rounding down so the grid stays inside the bound.
    ideal_rows = max_columns * rows_per_column
    if ideal_rows <= max_rows:
        columns, rows = max_columns, max(1, floor(ideal_rows))
    else:
        columns, rows = max(1, floor(max_rows / rows_per_column)), max_rows

    # Give back the space lost to flooring on the dimension furthest from its maximum.
    if (max_rows - rows) / max_rows >= (max_columns - columns) / max_columns:
        rows = max(1, min(max_rows, round_half_up(columns * rows_per_column)))
    else:
        columns = max(1, min(max_columns, round_half_up(rows / rows_per_column)))
    return columns, rows


def resolve_layout(source_width: int, source_height: int, policy: LayoutPolicy, cell_aspect: float = 0.5) -> Size:
    """Compute the (columns, rows) of the glyph grid for a source of the given pixel size.

    :param source_width: Width of the first frame, in pixels.
    :param source_height: Height of the first frame, in pixels.
    :param policy: One of :class:`FixedColumns`, :class:`FixedRows`, :class:`FixedDimensions`, :class:`FitWithin`.
    :param cell_aspect: Width / height of one terminal character cell. Defaults to 0.5, cells roughly twice as tall
        as they are wide.
    :return: ``(columns, rows)``, both at least 1.
    """
    validate_layout(policy)
    if source_width <= 0 or source_height <= 0:
        raise InvalidLayout(f'Cannot lay out a {source_width}x{source_height} source.')
    if cell_aspect <= 0:
        raise InvalidLayout(f'cell_aspect must be positive, got {cell_aspect!r}.')

    source_aspect = source_width / source_height
    # A cell is 1/cell_aspect times taller than wide, so a square of pixels needs fewer rows than columns.
    rows_per_column = cell_aspect / source_aspect

    if isinstance(policy, FixedColumns):
        return policy.columns, max(1, round_half_up(policy.columns * rows_per_column))
    if isinstance(policy, FixedRows):
        return max(1, round_half_up(policy.rows / rows_per_column)), policy.rows
    if isinstance(policy, FixedDimensions):
        return policy.columns, policy.rows
    return _fit_within(policy.max_columns, policy.max_rows, rows_per_column)
