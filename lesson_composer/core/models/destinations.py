from __future__ import annotations

"""Addresses inside the lesson tree.

Two addressing schemes coexist: a position inside a Cell (reached through
Rows and Constructors) and a column of a Columns Block. Together with the
empty-canvas fallback they form the destination variants accepted by
:func:`lesson_composer.core.mutations.move_resource`.
"""

from dataclasses import dataclass
from typing import Optional, Union

__all__ = ["CellLocation", "ColumnSlot", "EmptyCanvas", "EMPTY_CANVAS", "Destination"]


@dataclass(frozen=True)
class CellLocation:
    """Position *index* inside Cell *cell_id* of Row *row_id*.

    *row_id* is the Row owning the Cell, which is a Constructor id when the
    Cell belongs to a nested layout.
    """
    row_id: str
    cell_id: str
    index: int


@dataclass(frozen=True)
class ColumnSlot:
    """Column *column_index* of Columns Block *columns_block_id*.

    *index* is only set when the slot describes where a Block currently sits;
    as a destination the Block is appended to the column.
    """
    columns_block_id: str
    column_index: int
    index: Optional[int] = None


@dataclass(frozen=True)
class EmptyCanvas:
    """The empty area of the canvas, outside every Row."""


EMPTY_CANVAS = EmptyCanvas()

Destination = Union[CellLocation, ColumnSlot, EmptyCanvas]
