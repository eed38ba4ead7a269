from __future__ import annotations

"""Read-only traversal of the lesson tree.

Every function here is pure and tolerant of unknown ids: a lookup that finds
nothing returns ``None`` (or an empty result) instead of raising.

Traversal is depth-first and pre-order: Rows, then their Cells, then each
Resource of a Cell in order, descending into a Constructor or a Columns Block
as soon as it is visited. The first match wins.
"""

from typing import Iterator, List, Optional, Sequence, Set, Tuple

from lesson_composer.core.models import Block, Cell, ColumnsBlock, Resource, Row
from lesson_composer.core.models.destinations import CellLocation, ColumnSlot

__all__ = [
    "find_block",
    "find_location",
    "find_resource_location",
    "find_resource",
    "find_column_location",
    "find_cell",
    "find_row",
    "find_path",
    "iter_blocks",
    "extract_blocks",
    "collect_ids",
]


def _walk(rows: Sequence[Row]) -> Iterator[Tuple[Row, Cell, int, Resource]]:
    """Yield ``(owner_row, cell, index, resource)`` for every Cell slot.

    Constructors are entered right after being yielded.
    """
    for row in rows:
        for cell in row.cells:
            for index, resource in enumerate(cell.resources):
                yield row, cell, index, resource
                if isinstance(resource, Row):
                    yield from _walk((resource,))


def _iter_cells(rows: Sequence[Row]) -> Iterator[Tuple[Row, Cell]]:
    """Yield ``(owner_row, cell)`` for every Cell, Constructors included."""
    for row in rows:
        for cell in row.cells:
            yield row, cell
            for resource in cell.resources:
                if isinstance(resource, Row):
                    yield from _iter_cells((resource,))


def _iter_column_slots(rows: Sequence[Row]) -> Iterator[Tuple[ColumnsBlock, int, Tuple[Block, ...]]]:
    """Yield ``(columns_block, column_index, blocks)`` for every column."""
    for block in iter_blocks(rows):
        if isinstance(block, ColumnsBlock):
            for column_index, column in enumerate(block.columns):
                yield block, column_index, column


def _iter_resource(resource: Resource) -> Iterator[Block]:
    if isinstance(resource, Row):
        yield from iter_blocks((resource,))
        return
    yield resource
    if isinstance(resource, ColumnsBlock):
        for column in resource.columns:
            for block in column:
                yield from _iter_resource(block)


def iter_blocks(rows: Sequence[Row]) -> Iterator[Block]:
    """Yield every Block of the tree in pre-order.

    Descends into Constructors and into the columns of Columns Blocks; a
    Columns Block is yielded before its children.
    """
    for row in rows:
        for cell in row.cells:
            for resource in cell.resources:
                yield from _iter_resource(resource)


def extract_blocks(rows: Sequence[Row]) -> List[Block]:
    """Return the flat list of all Blocks regardless of nesting depth."""
    return list(iter_blocks(rows))


def find_block(rows: Sequence[Row], block_id: str) -> Optional[Block]:
    """Find a Block by id anywhere in the tree, columns included."""
    for block in iter_blocks(rows):
        if block.id == block_id:
            return block
    return None


def find_location(rows: Sequence[Row], block_id: str) -> Optional[CellLocation]:
    """Return the Cell address of a Block.

    Blocks living inside a Columns Block are not reported: columns use their
    own addressing, see :func:`find_column_location`.
    """
    for row, cell, index, resource in _walk(rows):
        if isinstance(resource, Block) and resource.id == block_id:
            return CellLocation(row.id, cell.id, index)
    return None


def find_resource_location(rows: Sequence[Row], resource_id: str) -> Optional[CellLocation]:
    """Like :func:`find_location` but also matches Constructors."""
    for row, cell, index, resource in _walk(rows):
        if resource.id == resource_id:
            return CellLocation(row.id, cell.id, index)
    return None


def find_resource(rows: Sequence[Row], resource_id: str) -> Optional[Resource]:
    """Return the Block or Constructor with *resource_id*, columns included."""
    for _row, _cell, _index, resource in _walk(rows):
        if resource.id == resource_id:
            return resource
    return find_block(rows, resource_id)


def find_column_location(rows: Sequence[Row], block_id: str) -> Optional[ColumnSlot]:
    """Return the column address (with index) of a Block living in a column."""
    for columns_block, column_index, column in _iter_column_slots(rows):
        for index, block in enumerate(column):
            if block.id == block_id:
                return ColumnSlot(columns_block.id, column_index, index)
    return None


def find_cell(rows: Sequence[Row], cell_id: str) -> Optional[Tuple[Row, Cell]]:
    """Return ``(owner_row, cell)`` for *cell_id*."""
    for row, cell in _iter_cells(rows):
        if cell.id == cell_id:
            return row, cell
    return None


def find_row(rows: Sequence[Row], row_id: str) -> Optional[Row]:
    """Return a top-level Row or a Constructor by id."""
    for row in rows:
        if row.id == row_id:
            return row
    for _row, _cell, _index, resource in _walk(rows):
        if isinstance(resource, Row) and resource.id == row_id:
            return resource
    return None


def find_path(rows: Sequence[Row], node_id: str) -> Optional[Tuple[str, ...]]:
    """Return the container chain leading to *node_id*, ending with it.

    The chain lists the ids of the top-level Row, its Cell, then for each
    nesting level the Constructor and Cell (or the Columns Block) that
    contain the node.
    """
    for row in rows:
        path = _path_in_row(row, node_id)
        if path is not None:
            return path
    return None


def _path_in_row(row: Row, node_id: str) -> Optional[Tuple[str, ...]]:
    if row.id == node_id:
        return (row.id,)
    for cell in row.cells:
        if cell.id == node_id:
            return (row.id, cell.id)
        for resource in cell.resources:
            sub = _path_in_resource(resource, node_id)
            if sub is not None:
                return (row.id, cell.id) + sub
    return None


def _path_in_resource(resource: Resource, node_id: str) -> Optional[Tuple[str, ...]]:
    if isinstance(resource, Row):
        return _path_in_row(resource, node_id)
    if resource.id == node_id:
        return (resource.id,)
    if isinstance(resource, ColumnsBlock):
        for column in resource.columns:
            for block in column:
                sub = _path_in_resource(block, node_id)
                if sub is not None:
                    return (resource.id,) + sub
    return None


def collect_ids(rows: Sequence[Row]) -> Set[str]:
    """Return every id present in the tree: Rows, Cells and Blocks."""
    ids: Set[str] = {row.id for row in rows}
    for row, cell in _iter_cells(rows):
        ids.add(row.id)
        ids.add(cell.id)
    for block in iter_blocks(rows):
        ids.add(block.id)
    return ids
