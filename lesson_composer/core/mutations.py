from __future__ import annotations

"""Pure structural edits on the lesson tree.

Each function takes the current tree (a sequence of top-level Rows) and
returns a new tree. Only the containers on the path from the root to the
edited list are rebuilt; every other node is shared with the input. When an
edit cannot be applied (unknown id, out-of-range column, destination that
vanished) the input object itself is returned, so callers can detect a no-op
with ``result is tree``.

All edits go through one recursion, :func:`_rewrite`, which visits every
list of Resources in the tree, whether it belongs to a Cell (top-level or
inside a Constructor) or to a column of a Columns Block.
"""

from dataclasses import dataclass, replace
from typing import Callable, Collection, List, Mapping, Any, Optional, Sequence, Tuple

from lesson_composer.core import locator
from lesson_composer.core.models import (
    Block,
    ColumnsBlock,
    Resource,
    Row,
    clone_resource,
    create_row,
)
from lesson_composer.core.models.destinations import (
    CellLocation,
    ColumnSlot,
    Destination,
    EmptyCanvas,
)

__all__ = [
    "insert_at",
    "insert_after",
    "append_to_last_cell",
    "append_row",
    "insert_new_row_after",
    "insert_into_column",
    "delete_resource",
    "duplicate_resource",
    "duplicate_resource_with_id",
    "extract_resource",
    "move_resource",
    "reorder",
    "update_block",
    "update_row_props",
    "delete_row",
    "duplicate_row",
]

Tree = Sequence[Row]
Items = Tuple[Resource, ...]


@dataclass(frozen=True)
class _Slot:
    """One list of Resources: a Cell of *owner_id*, or one of its columns."""
    owner_id: str
    cell_id: Optional[str] = None
    column_index: Optional[int] = None

    def is_cell(self, row_id: str, cell_id: str) -> bool:
        return self.cell_id == cell_id and self.owner_id == row_id

    def is_column(self, columns_block_id: str, column_index: int) -> bool:
        return self.cell_id is None and self.owner_id == columns_block_id and self.column_index == column_index


# Returns the replacement list, or None to leave the list alone and descend into it
_Edit = Callable[[_Slot, Items], Optional[Items]]


def _never(_slot: _Slot, _items: Items) -> Optional[Items]:
    return None


# ---------------------------------------------------------------------------
# Generic recursion
# ---------------------------------------------------------------------------

def _rewrite(rows: Tree, edit: _Edit, vacate: Collection[str] = ()) -> Tree:
    """Apply *edit* to every Resource list of the tree.

    Constructors whose id is in *vacate* are dropped from their Cell once
    they hold no content. Lists are visited bottom-up for that check, so
    emptiness cascades outwards.
    """
    new_rows = tuple(_rewrite_children(row, edit, vacate) for row in rows)
    if all(new is old for new, old in zip(new_rows, rows)):
        return rows
    return new_rows


def _rewrite_children(resource: Resource, edit: _Edit, vacate: Collection[str]) -> Resource:
    if isinstance(resource, Row):
        cells = tuple(
            _replace_resources(cell, _rewrite_list(_Slot(resource.id, cell_id=cell.id), cell.resources, edit, vacate))
            for cell in resource.cells
        )
        if all(new is old for new, old in zip(cells, resource.cells)):
            return resource
        return replace(resource, cells=cells)
    if isinstance(resource, ColumnsBlock):
        columns = tuple(
            _rewrite_list(_Slot(resource.id, column_index=i), column, edit, vacate)
            for i, column in enumerate(resource.columns)
        )
        if all(new is old for new, old in zip(columns, resource.columns)):
            return resource
        return replace(resource, columns=columns)
    return resource


def _replace_resources(cell, resources: Items):
    return cell if resources is cell.resources else replace(cell, resources=resources)


def _rewrite_list(slot: _Slot, items: Items, edit: _Edit, vacate: Collection[str]) -> Items:
    edited = edit(slot, items)
    if edited is not None:
        return edited
    new_items: List[Resource] = []
    changed = False
    for item in items:
        new_item = _rewrite_children(item, edit, vacate)
        if new_item is not item:
            changed = True
        if isinstance(new_item, Row) and new_item.id in vacate and not new_item.has_content:
            changed = True
            continue
        new_items.append(new_item)
    return tuple(new_items) if changed else items


def _splice(items: Items, index: int, resource: Resource) -> Items:
    index = max(0, min(int(index), len(items)))
    return items[:index] + (resource,) + items[index:]


# ---------------------------------------------------------------------------
# Insertion
# ---------------------------------------------------------------------------

def insert_at(rows: Tree, location: CellLocation, resource: Resource) -> Tree:
    """Insert *resource* at ``location.index`` of the addressed Cell.

    The index is clamped into the Cell's bounds.
    """
    def edit(slot: _Slot, items: Items) -> Optional[Items]:
        if slot.is_cell(location.row_id, location.cell_id):
            return _splice(items, location.index, resource)
        return None

    return _rewrite(rows, edit)


def insert_after(rows: Tree, anchor_id: str, resource: Resource) -> Tree:
    """Insert *resource* immediately after the Resource *anchor_id*.

    The anchor may be a Block or a Constructor in a Cell, or a Block inside a
    column (then only Blocks can be inserted). Returns *rows* unchanged when
    the anchor cannot be located; callers fall back to
    :func:`append_to_last_cell`.
    """
    location = locator.find_resource_location(rows, anchor_id)
    if location is not None:
        return insert_at(rows, replace(location, index=location.index + 1), resource)
    column = locator.find_column_location(rows, anchor_id)
    if column is not None and isinstance(resource, Block):
        return _insert_in_column(rows, column.columns_block_id, column.column_index, resource, (column.index or 0) + 1)
    return rows


def append_to_last_cell(rows: Tree, resource: Resource) -> Tree:
    """Append *resource* to the first Cell of the last content Row.

    Empty-state placeholder rows are skipped. When the document has no
    content Row yet, a new Row holding *resource* is appended.
    """
    index = _last_content_row(rows)
    if index is None:
        return append_row(rows, create_row([resource]))
    return _append_to_first_cell(rows, index, resource)


def _last_content_row(rows: Tree, skip: Collection[str] = ()) -> Optional[int]:
    for index in range(len(rows) - 1, -1, -1):
        row = rows[index]
        if row.is_empty_state or not row.cells or row.id in skip:
            continue
        return index
    return None


def _append_to_first_cell(rows: Tree, index: int, resource: Resource) -> Tree:
    row = rows[index]
    first = row.cells[0]
    new_row = replace(row, cells=(replace(first, resources=first.resources + (resource,)),) + row.cells[1:])
    return tuple(rows[:index]) + (new_row,) + tuple(rows[index + 1:])


def append_row(rows: Tree, row: Row) -> Tree:
    """Append a top-level Row at the end of the document."""
    return tuple(rows) + (row,)


def insert_new_row_after(rows: Tree, anchor_row_id: str, resource: Resource) -> Tree:
    """Wrap *resource* in a brand-new Row placed right after *anchor_row_id*.

    For a top-level anchor the new Row becomes a new section of the lesson.
    For a Constructor anchor it becomes a sibling Constructor in the same
    Cell.
    """
    for index, row in enumerate(rows):
        if row.id == anchor_row_id:
            return tuple(rows[:index + 1]) + (create_row([resource]),) + tuple(rows[index + 1:])
    if locator.find_row(rows, anchor_row_id) is not None:
        return insert_after(rows, anchor_row_id, create_row([resource]))
    return rows


def _insert_in_column(
    rows: Tree, columns_block_id: str, column_index: int, block: Block, index: Optional[int] = None
) -> Tree:
    def edit(slot: _Slot, items: Items) -> Optional[Items]:
        if slot.is_column(columns_block_id, column_index):
            return items + (block,) if index is None else _splice(items, index, block)
        return None

    return _rewrite(rows, edit)


def insert_into_column(rows: Tree, columns_block_id: str, column_index: int, block: Resource) -> Tree:
    """Append *block* to column *column_index* of the Columns Block.

    The Columns Block is searched through every level of nesting. Columns
    hold Blocks only; a Constructor or an out-of-range column leaves the
    tree unchanged.
    """
    if not isinstance(block, Block):
        return rows
    return _insert_in_column(rows, columns_block_id, column_index, block)


def _insert(rows: Tree, destination: Destination, resource: Resource) -> Tree:
    """Place *resource* at *destination*; *rows* when it does not resolve."""
    if isinstance(destination, CellLocation):
        if locator.find_cell(rows, destination.cell_id) is None:
            return rows
        return insert_at(rows, destination, resource)
    if isinstance(destination, ColumnSlot):
        if not isinstance(resource, Block):
            return rows
        return _insert_in_column(
            rows, destination.columns_block_id, destination.column_index, resource, destination.index
        )
    if isinstance(destination, EmptyCanvas):
        return append_to_last_cell(rows, resource)
    return rows


# ---------------------------------------------------------------------------
# Removal, duplication, relocation
# ---------------------------------------------------------------------------

def extract_resource(rows: Tree, resource_id: str) -> Tuple[Tree, Optional[Resource]]:
    """Remove a Resource wherever it lives and return it alongside the tree.

    No emptiness cascade is applied; see :func:`delete_resource`.
    """
    removed: List[Resource] = []

    def edit(slot: _Slot, items: Items) -> Optional[Items]:
        for index, item in enumerate(items):
            if item.id == resource_id:
                removed.append(item)
                return items[:index] + items[index + 1:]
        return None

    new_rows = _rewrite(rows, edit)
    return new_rows, (removed[0] if removed else None)


def _drop_vacant(rows: Tree, constructor_ids: Collection[str]) -> Tree:
    return _rewrite(rows, _never, vacate=frozenset(constructor_ids))


def delete_resource(rows: Tree, resource_id: str) -> Tree:
    """Delete a Block or Constructor.

    Deleting a Constructor removes its whole content with it. Every
    Constructor on the path to the deleted node that is left without content
    is dropped from its own parent, cascading outwards. Top-level Cells and
    Rows are left to :func:`lesson_composer.core.cleanup.prune_empty`.
    """
    path = locator.find_path(rows, resource_id)
    if path is None:
        return rows
    new_rows, removed = extract_resource(rows, resource_id)
    if removed is None:
        return rows
    return _drop_vacant(new_rows, path[:-1])


def duplicate_resource_with_id(rows: Tree, resource_id: str) -> Tuple[Tree, Optional[str]]:
    """Duplicate a Resource and return the tree with the clone's id."""
    resource = locator.find_resource(rows, resource_id)
    if resource is None:
        return rows, None
    clone = clone_resource(resource)
    new_rows = insert_after(rows, resource_id, clone)
    if new_rows is rows:
        return rows, None
    return new_rows, clone.id


def duplicate_resource(rows: Tree, resource_id: str) -> Tree:
    """Place a deep copy with fresh ids right after the original Resource."""
    return duplicate_resource_with_id(rows, resource_id)[0]


def _lies_within(rows: Tree, container_id: str, resource_id: str) -> bool:
    path = locator.find_path(rows, container_id)
    return path is not None and resource_id in path


def move_resource(rows: Tree, resource_id: str, destination: Destination) -> Tree:
    """Relocate a Resource to *destination*.

    Removal and insertion are composed so that the node is present exactly
    once in the result. If the destination does not resolve once the node
    has been taken out, lies inside the moved subtree, or is a column while
    the node is a Constructor, the original tree is returned.

    A :class:`CellLocation` index refers to the Cell as it was before the
    move. On the :class:`EmptyCanvas` the node goes to the first Cell of the
    last Row that keeps content after the removal. Constructors emptied by
    the removal are dropped; top-level cleanup is left to the caller. A
    move that leaves the tree structurally unchanged returns the input.
    """
    resource = locator.find_resource(rows, resource_id)
    if resource is None:
        return rows

    if isinstance(destination, CellLocation):
        if destination.row_id == resource_id or _lies_within(rows, destination.cell_id, resource_id):
            return rows
        source = locator.find_resource_location(rows, resource_id)
        if source is not None and source.cell_id == destination.cell_id and source.index < destination.index:
            destination = replace(destination, index=destination.index - 1)
    elif isinstance(destination, ColumnSlot):
        if not isinstance(resource, Block):
            return rows
        if destination.columns_block_id == resource_id or _lies_within(rows, destination.columns_block_id, resource_id):
            return rows
        columns_block = locator.find_block(rows, destination.columns_block_id)
        if not isinstance(columns_block, ColumnsBlock) or not 0 <= destination.column_index < columns_block.column_count:
            return rows
        source = locator.find_column_location(rows, resource_id)
        if (
            source is not None
            and destination.index is not None
            and (source.columns_block_id, source.column_index) == (destination.columns_block_id, destination.column_index)
            and (source.index or 0) < destination.index
        ):
            destination = replace(destination, index=destination.index - 1)

    path = locator.find_path(rows, resource_id) or ()
    extracted, removed = extract_resource(rows, resource_id)
    if removed is None:
        return rows
    if isinstance(destination, EmptyCanvas):
        moved = _append_to_remaining_row(_drop_vacant(extracted, path[:-1]), path[0], removed)
    else:
        inserted = _insert(extracted, destination, removed)
        if inserted is extracted:
            return rows
        moved = _drop_vacant(inserted, path[:-1])
    if moved is None or moved == tuple(rows):
        return rows
    return moved


def _append_to_remaining_row(rows: Tree, source_row_id: str, resource: Resource) -> Optional[Tree]:
    """Append to the last content Row still standing once the source is vacated.

    The source Row is passed over when the removal left it without content.
    ``None`` when no Row qualifies.
    """
    source = next((row for row in rows if row.id == source_row_id), None)
    skip = (source_row_id,) if source is not None and not source.has_content else ()
    index = _last_content_row(rows, skip)
    if index is None:
        return None
    return _append_to_first_cell(rows, index, resource)


def reorder(rows: Tree, cell_id: str, from_index: int, to_index: int) -> Tree:
    """Move a Block within one Cell, leaving Constructors where they are.

    *from_index* and *to_index* are positions in the Cell (as reported by
    :func:`lesson_composer.core.locator.find_location`); both must hold
    Blocks. The Blocks are reordered among themselves and written back into
    the Block positions, so Constructors keep their slots.
    """
    def edit(slot: _Slot, items: Items) -> Optional[Items]:
        if slot.cell_id != cell_id:
            return None
        positions = [i for i, item in enumerate(items) if isinstance(item, Block)]
        if from_index not in positions or to_index not in positions or from_index == to_index:
            return items
        blocks = [items[i] for i in positions]
        moved = blocks.pop(positions.index(from_index))
        blocks.insert(positions.index(to_index), moved)
        new_items = list(items)
        for position, block in zip(positions, blocks):
            new_items[position] = block
        return tuple(new_items)

    return _rewrite(rows, edit)


# ---------------------------------------------------------------------------
# In-place content updates
# ---------------------------------------------------------------------------

def update_block(rows: Tree, block: Block) -> Tree:
    """Replace the Block carrying ``block.id``, wherever it lives."""
    def edit(slot: _Slot, items: Items) -> Optional[Items]:
        for index, item in enumerate(items):
            if isinstance(item, Block) and item.id == block.id:
                return items[:index] + (block,) + items[index + 1:]
        return None

    return _rewrite(rows, edit)


def update_row_props(rows: Tree, row_id: str, props: Mapping[str, Any]) -> Tree:
    """Replace the property bag of a top-level Row or a Constructor."""
    for index, row in enumerate(rows):
        if row.id == row_id:
            return tuple(rows[:index]) + (replace(row, props=dict(props)),) + tuple(rows[index + 1:])

    def edit(slot: _Slot, items: Items) -> Optional[Items]:
        for index, item in enumerate(items):
            if isinstance(item, Row) and item.id == row_id:
                return items[:index] + (replace(item, props=dict(props)),) + items[index + 1:]
        return None

    return _rewrite(rows, edit)


# ---------------------------------------------------------------------------
# Top-level rows
# ---------------------------------------------------------------------------

def delete_row(rows: Tree, row_id: str) -> Tree:
    """Remove a top-level Row, empty-state placeholders included."""
    for index, row in enumerate(rows):
        if row.id == row_id:
            return tuple(rows[:index]) + tuple(rows[index + 1:])
    return rows


def duplicate_row(rows: Tree, row_id: str) -> Tuple[Tree, Optional[str]]:
    """Place a deep copy of a top-level Row right after it.

    Returns the new tree and the copy's id (``None`` when *row_id* is not a
    top-level Row).
    """
    for index, row in enumerate(rows):
        if row.id == row_id:
            clone = clone_resource(row)
            return tuple(rows[:index + 1]) + (clone,) + tuple(rows[index + 1:]), clone.id
    return rows, None
