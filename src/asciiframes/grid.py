from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple
from .typealiases import RGB


__all__ = ['Cell', 'Grid', 'assemble']


@dataclass(frozen=True)
class Cell:
    glyph: str
    color: Optional[RGB] = None
    # Terminal color code, set in palette mode only.
    palette_index: Optional[int] = None


@dataclass(frozen=True)
class Grid:
    """Rows of cells, top row first. Every row has the same number of cells."""

    cells: Tuple[Tuple[Cell, ...], ...]

    def __post_init__(self) -> None:
        assert self.cells and all(len(row) == len(self.cells[0]) for row in self.cells), 'ragged or empty grid'

    @property
    def columns(self) -> int:
        return len(self.cells[0])

    @property
    def row_count(self) -> int:
        return len(self.cells)

    @property
    def size(self) -> Tuple[int, int]:
        return self.columns, self.row_count

    def __iter__(self) -> Iterator[Tuple[Cell, ...]]:
        return iter(self.cells)

    def __getitem__(self, row: int) -> Tuple[Cell, ...]:
        return self.cells[row]

    def line(self, row: int) -> str:
        return ''.join(cell.glyph for cell in self.cells[row])

    def lines(self) -> List[str]:
        """Each row as a printable string of glyphs."""
        return [self.line(row) for row in range(self.row_count)]

    def row_colors(self, row: int) -> List[Optional[RGB]]:
        return [cell.color for cell in self.cells[row]]

    @property
    def has_color(self) -> bool:
        return self.cells[0][0].color is not None

    def text(self) -> str:
        return '\n'.join(self.lines())

    def __str__(self) -> str:
        return self.text()


def assemble(glyphs: Sequence[Sequence[str]], columns: int, rows: int,
             colors: Optional[Sequence[Sequence[Optional[RGB]]]] = None,
             palette_indexes: Optional[Sequence[Sequence[int]]] = None) -> Grid:
    """Pack row-major per-cell results into a :class:`Grid`. The counts must match ``columns`` x ``rows``."""
    assert len(glyphs) == rows and all(len(row) == columns for row in glyphs), \
        f'expected {columns}x{rows} glyphs'
    cells = []
    for y, glyph_row in enumerate(glyphs):
        color_row = colors[y] if colors is not None else [None] * columns
        index_row = palette_indexes[y] if palette_indexes is not None else [None] * columns
        assert len(color_row) == columns and len(index_row) == columns, 'color data does not match the glyphs'
        cells.append(tuple(Cell(g, c, i) for g, c, i in zip(glyph_row, color_row, index_row)))
    return Grid(tuple(cells))
