from __future__ import annotations

"""Service layer for structural edits on the lesson tree.

This module provides a UI-agnostic, testable service that composes the pure
mutations of :mod:`lesson_composer.core.mutations` with the cleanup pass of
:mod:`lesson_composer.core.cleanup` and reports each outcome as an
:class:`OperationResult`.

Scope and guarantees:
- Operates purely in-memory on tree values; no file I/O nor UI imports.
- The input tree is never modified; the result carries the new tree.
- Unresolvable ids are expected (drag gestures race with state updates) and
  produce ``OperationResult(success=False, ...)`` holding the original tree,
  never an exception.

Examples
--------
Basic usage:

    service = DocumentEditingService()
    result = service.duplicate(tree, "block-id")
    if result.success:
        session.replace(result.tree, selection=result.selection)
    else:
        print(result.message)

"""

from dataclasses import dataclass, field
import logging
from typing import Any, Callable, Collection, Dict, Optional, Sequence

from lesson_composer.core import locator, mutations
from lesson_composer.core.cleanup import prune_empty
from lesson_composer.core.preview import render_outline
from lesson_composer.core.models import Block, Resource, Row, create_row
from lesson_composer.core.models.destinations import (
    CellLocation,
    ColumnSlot,
    Destination,
    EmptyCanvas,
)

__all__ = ["OperationResult", "DocumentEditingService"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationResult:
    """Result of a structural editing operation.

    Attributes
    ----------
    success
        Whether the operation changed the document.
    message
        Human-readable summary suitable for logs or UI display.
    tree
        The resulting tree; the input tree when the operation failed.
    selection
        Recommended selection after the operation.
    reselect
        Whether ``selection`` should replace the current selection. False for
        operations that leave the selection alone (reorder, content updates).
    details
        Optional structured details for diagnostics or caller logic.
    """
    success: bool
    message: str
    tree: Sequence[Row] = ()
    selection: Optional[str] = None
    reselect: bool = True
    details: Optional[Dict[str, Any]] = field(default=None)


class DocumentEditingService:
    """Encapsulates structural edit operations on a lesson tree.

    Design principles:
    - No UI dependencies, no disk I/O.
    - No exceptions for expected invalid actions; return OperationResult.
    - Cleanup runs after every delete and move, limited to the containers the
      removed node came from, and never removes protected containers.
    """

    def __init__(self) -> None:
        self._logger = logging.getLogger(f"{__name__}.DocumentEditingService")

    # -------------------------------------------------------------------------
    # Insertion
    # -------------------------------------------------------------------------

    def insert_resource(
        self,
        tree: Sequence[Row],
        resource: Resource,
        selected_id: Optional[str] = None,
    ) -> OperationResult:
        """Insert a new Resource using the toolbar policy.

        - selection is a top-level Row: the Resource opens a new Row after it;
        - selection is a Resource: the Resource goes right after it;
        - otherwise it is appended to the last Row (a first Row is created for
          an empty document).
        """
        def run() -> OperationResult:
            logger.info("Edit: insert_resource resource=%s selected=%s", resource.id, selected_id)
            if selected_id is not None and any(row.id == selected_id for row in tree):
                new_tree = mutations.insert_new_row_after(tree, selected_id, resource)
                return self._done("insert_resource", tree, new_tree, resource.id, {"policy": "new_row_after"})
            if selected_id is not None:
                new_tree = mutations.insert_after(tree, selected_id, resource)
                if new_tree is not tree:
                    return self._done("insert_resource", tree, new_tree, resource.id, {"policy": "after_selection"})
                logger.debug("insert_resource: selection %s not resolvable, appending", selected_id)
            new_tree = mutations.append_to_last_cell(tree, resource)
            return self._done("insert_resource", tree, new_tree, resource.id, {"policy": "append"})

        return self._guarded("insert_resource", tree, run)

    def insert_after(self, tree: Sequence[Row], anchor_id: str, resource: Resource) -> OperationResult:
        """Insert right after *anchor_id*, falling back to the last Row."""
        def run() -> OperationResult:
            logger.info("Edit: insert_after anchor=%s resource=%s", anchor_id, resource.id)
            new_tree = mutations.insert_after(tree, anchor_id, resource)
            if new_tree is tree:
                logger.info("Edit fallback: insert_after anchor_not_found anchor=%s", anchor_id)
                new_tree = mutations.append_to_last_cell(tree, resource)
            return self._done("insert_after", tree, new_tree, resource.id)

        return self._guarded("insert_after", tree, run)

    def append_to_last_cell(self, tree: Sequence[Row], resource: Resource) -> OperationResult:
        def run() -> OperationResult:
            logger.info("Edit: append_to_last_cell resource=%s", resource.id)
            return self._done("append_to_last_cell", tree, mutations.append_to_last_cell(tree, resource), resource.id)

        return self._guarded("append_to_last_cell", tree, run)

    def append_row(self, tree: Sequence[Row], resource: Resource) -> OperationResult:
        """Add a new top-level Row at the end of the document.

        A Row (Constructor built from the palette) is used as is; any other
        Resource is wrapped in a fresh one-Cell Row.
        """
        def run() -> OperationResult:
            logger.info("Edit: append_row resource=%s", resource.id)
            row = resource if isinstance(resource, Row) else create_row([resource])
            return self._done("append_row", tree, mutations.append_row(tree, row), resource.id)

        return self._guarded("append_row", tree, run)

    def insert_at(self, tree: Sequence[Row], destination: Destination, resource: Resource) -> OperationResult:
        """Place a new Resource at an explicit destination."""
        def run() -> OperationResult:
            logger.info("Edit: insert_at dest=%s resource=%s", destination, resource.id)
            if isinstance(destination, CellLocation):
                new_tree = mutations.insert_at(tree, destination, resource)
            elif isinstance(destination, ColumnSlot):
                new_tree = mutations.insert_into_column(
                    tree, destination.columns_block_id, destination.column_index, resource
                )
            elif isinstance(destination, EmptyCanvas):
                new_tree = mutations.append_to_last_cell(tree, resource)
            else:
                return self._fail("insert_at", tree, "Unsupported destination.", {"destination": repr(destination)})
            return self._done("insert_at", tree, new_tree, resource.id, {"destination": repr(destination)})

        return self._guarded("insert_at", tree, run)

    def insert_into_column(
        self, tree: Sequence[Row], columns_block_id: str, column_index: int, block: Block
    ) -> OperationResult:
        return self.insert_at(tree, ColumnSlot(columns_block_id, column_index), block)

    # -------------------------------------------------------------------------
    # Delete / duplicate / move
    # -------------------------------------------------------------------------

    def delete(self, tree: Sequence[Row], node_id: str, protected_ids: Collection[str] = ()) -> OperationResult:
        """Delete a Resource, or a whole top-level Row, then clean up.

        The selection recommended afterwards is always ``None``.
        """
        def run() -> OperationResult:
            logger.info("Edit: delete node=%s", node_id)
            if any(row.id == node_id for row in tree):
                return self._done("delete", tree, mutations.delete_row(tree, node_id), None, {"scope": "row"})
            path = locator.find_path(tree, node_id)
            new_tree = mutations.delete_resource(tree, node_id)
            if new_tree is tree or path is None:
                return self._fail("delete", tree, f"Node not found for id '{node_id}'.", {"node_id": node_id})
            keep = [i for i in protected_ids if i != node_id]
            new_tree = prune_empty(new_tree, protected_ids=keep, scope=_row_scope(tree, path[0]))
            return self._done("delete", tree, new_tree, None, {"scope": "resource"})

        return self._guarded("delete", tree, run)

    def duplicate(self, tree: Sequence[Row], node_id: str) -> OperationResult:
        """Clone a Resource (or top-level Row) right after the original."""
        def run() -> OperationResult:
            logger.info("Edit: duplicate node=%s", node_id)
            if any(row.id == node_id for row in tree):
                new_tree, clone_id = mutations.duplicate_row(tree, node_id)
            else:
                new_tree, clone_id = mutations.duplicate_resource_with_id(tree, node_id)
            if clone_id is None:
                return self._fail("duplicate", tree, f"Node not found for id '{node_id}'.", {"node_id": node_id})
            return self._done("duplicate", tree, new_tree, clone_id, {"source": node_id})

        return self._guarded("duplicate", tree, run)

    def move(
        self,
        tree: Sequence[Row],
        resource_id: str,
        destination: Destination,
        protected_ids: Collection[str] = (),
    ) -> OperationResult:
        """Move an existing Resource and prune what it left behind."""
        def run() -> OperationResult:
            logger.info("Edit: move resource=%s dest=%s", resource_id, destination)
            source_path = locator.find_path(tree, resource_id)
            new_tree = mutations.move_resource(tree, resource_id, destination)
            if new_tree is tree or source_path is None:
                return self._fail(
                    "move", tree, "Cannot move to that destination.",
                    {"resource_id": resource_id, "destination": repr(destination)},
                )
            new_tree = prune_empty(new_tree, protected_ids=protected_ids, scope=_row_scope(tree, source_path[0]))
            return self._done("move", tree, new_tree, resource_id, {"destination": repr(destination)})

        return self._guarded("move", tree, run)

    def reorder(self, tree: Sequence[Row], cell_id: str, from_index: int, to_index: int) -> OperationResult:
        """Reorder Blocks within one Cell; the selection is left alone."""
        def run() -> OperationResult:
            logger.debug("Edit: reorder cell=%s from=%d to=%d", cell_id, from_index, to_index)
            new_tree = mutations.reorder(tree, cell_id, from_index, to_index)
            return self._done("reorder", tree, new_tree, None, {"cell_id": cell_id}, reselect=False)

        return self._guarded("reorder", tree, run)

    # -------------------------------------------------------------------------
    # Content updates
    # -------------------------------------------------------------------------

    def update_block(self, tree: Sequence[Row], block: Block) -> OperationResult:
        def run() -> OperationResult:
            logger.debug("Edit: update_block block=%s", block.id)
            new_tree = mutations.update_block(tree, block)
            return self._done("update_block", tree, new_tree, None, reselect=False)

        return self._guarded("update_block", tree, run)

    def update_row_props(self, tree: Sequence[Row], row_id: str, props: Dict[str, Any]) -> OperationResult:
        def run() -> OperationResult:
            logger.debug("Edit: update_row_props row=%s", row_id)
            new_tree = mutations.update_row_props(tree, row_id, props)
            return self._done("update_row_props", tree, new_tree, None, reselect=False)

        return self._guarded("update_row_props", tree, run)

    def cleanup(self, tree: Sequence[Row], protected_ids: Collection[str] = ()) -> OperationResult:
        """Prune every empty container of the tree except protected ones."""
        def run() -> OperationResult:
            new_tree = prune_empty(tree, protected_ids=protected_ids)
            return self._done("cleanup", tree, new_tree, None, reselect=False)

        return self._guarded("cleanup", tree, run)

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _done(
        self,
        operation: str,
        old_tree: Sequence[Row],
        new_tree: Sequence[Row],
        selection: Optional[str],
        details: Optional[Dict[str, Any]] = None,
        *,
        reselect: bool = True,
    ) -> OperationResult:
        if new_tree is old_tree:
            logger.info("Edit noop: %s", operation)
            return OperationResult(False, f"Nothing to {operation.replace('_', ' ')}.", old_tree, None, False, details)
        logger.info("Edit OK: %s selection=%s", operation, selection)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Tree after %s:\n%s", operation, render_outline(new_tree))
        return OperationResult(True, f"{operation.replace('_', ' ').capitalize()} done.", new_tree, selection, reselect, details)

    def _fail(
        self, operation: str, tree: Sequence[Row], message: str, details: Optional[Dict[str, Any]] = None
    ) -> OperationResult:
        logger.warning("Edit FAIL: %s %s", operation, details or {})
        return OperationResult(False, message, tree, None, False, details)

    def _guarded(self, operation: str, tree: Sequence[Row], run: Callable[[], OperationResult]) -> OperationResult:
        """Run *run*, turning unexpected exceptions into a failed result."""
        try:
            return run()
        except Exception as e:
            # Never raise; encapsulate error
            logger.error("Edit FAIL: %s error=%s", operation, e, exc_info=True)
            return OperationResult(False, f"{operation} failed.", tree, None, False, {"error": str(e)})


def _row_scope(tree: Sequence[Row], row_id: str) -> Collection[str]:
    """Ids of every container under the top-level Row *row_id*, itself included."""
    row = next((r for r in tree if r.id == row_id), None)
    return locator.collect_ids((row,)) if row is not None else (row_id,)
