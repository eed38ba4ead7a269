from __future__ import annotations

"""Post-mutation normalisation of the lesson tree.

Removes structural debris left behind by a delete or a move: Cells without
Resources, Constructors without Cells, and top-level Rows without Cells.
"""

from dataclasses import replace
from typing import Callable, Collection, List, Optional, Sequence

from lesson_composer.core.models import Cell, Resource, Row

__all__ = ["prune_empty"]


def prune_empty(
    rows: Sequence[Row],
    protected_ids: Collection[str] = (),
    scope: Optional[Collection[str]] = None,
) -> Sequence[Row]:
    """Drop empty Cells and the Rows they leave without Cells.

    Works bottom-up through Constructors, so a Constructor emptied by the
    pruning of its own Cells disappears too, possibly emptying the Cell that
    held it.

    Parameters
    ----------
    rows
        The tree to normalise.
    protected_ids
        Ids of containers that must survive even when empty, typically the
        current selection and edit target. A protected Row keeps all its
        Cells.
    scope
        When given, only containers whose id is listed may be removed.

    Returns
    -------
    Sequence[Row]
        The normalised tree, or *rows* itself when nothing was removed.
        Empty-state Rows are never touched. Applying the function twice gives
        the same result as applying it once.
    """
    protected = frozenset(protected_ids)
    allowed = None if scope is None else frozenset(scope)

    def removable(node_id: str) -> bool:
        return node_id not in protected and (allowed is None or node_id in allowed)

    new_rows: List[Row] = []
    changed = False
    for row in rows:
        new_row = row if row.is_empty_state else _prune_row(row, removable)
        if new_row is not row:
            changed = True
        if new_row is not None:
            new_rows.append(new_row)
    return tuple(new_rows) if changed else rows


def _prune_row(row: Row, removable: Callable[[str], bool]) -> Optional[Row]:
    cells: List[Cell] = []
    changed = False
    for cell in row.cells:
        resources = _prune_resources(cell.resources, removable)
        new_cell = cell if resources is cell.resources else replace(cell, resources=resources)
        if new_cell is not cell:
            changed = True
        if not new_cell.resources and removable(cell.id) and removable(row.id):
            changed = True
            continue
        cells.append(new_cell)
    if not cells and removable(row.id):
        return None
    return replace(row, cells=tuple(cells)) if changed else row


def _prune_resources(items, removable: Callable[[str], bool]):
    new_items: List[Resource] = []
    changed = False
    for item in items:
        if isinstance(item, Row) and not item.is_empty_state:
            pruned = _prune_row(item, removable)
            if pruned is not item:
                changed = True
            if pruned is None:
                continue
            item = pruned
        new_items.append(item)
    return tuple(new_items) if changed else items
