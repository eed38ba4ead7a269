from __future__ import annotations

"""Drag-and-drop gesture interpretation for the lesson canvas.

The presentation layer reports three notifications per gesture, always in
this order: one :meth:`DragSessionCoordinator.drag_start`, any number of
:meth:`~DragSessionCoordinator.drag_over`, exactly one
:meth:`~DragSessionCoordinator.drag_end`. The coordinator turns them into
editing service calls and installs the results in the session.

Drop targets are classified once into a destination variant:

- the empty-canvas sentinel id      -> :class:`EmptyCanvas`
- metadata ``containerId`` tagged ``columns:`` -> :class:`ColumnSlot`
- an existing Resource or Cell      -> :class:`CellLocation`
- anything else                     -> ``None`` (no destination)
"""

from enum import Enum
import logging
from typing import Any, Mapping, Optional

from lesson_composer.config import ConfigManager
from lesson_composer.core import locator
from lesson_composer.core.models import Row
from lesson_composer.core.models.destinations import (
    EMPTY_CANVAS,
    CellLocation,
    ColumnSlot,
    Destination,
    EmptyCanvas,
)
from lesson_composer.core.services.document_editing_service import (
    DocumentEditingService,
    OperationResult,
)
from lesson_composer.core.session import EditorSession
from lesson_composer.ui.controllers.canvas_controller import CanvasController

__all__ = ["DragState", "DragSessionCoordinator"]

logger = logging.getLogger(__name__)

PALETTE_SOURCE = "palette"


class DragState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


class DragSessionCoordinator:
    """Three-phase drag state machine: Idle -> Dragging -> Idle.

    Parameters
    ----------
    session : EditorSession
        Session owning the tree and selection.
    editing_service : DocumentEditingService
        Service performing the edits.
    empty_canvas_id, columns_prefix : str, optional
        Override the ``editor.yml`` settings ``empty_canvas_id`` and
        ``columns_container_prefix``.

    Notes
    -----
    A drop that cannot be resolved is absorbed: nothing changes and the state
    still returns to Idle.
    """

    def __init__(
        self,
        session: EditorSession,
        editing_service: DocumentEditingService,
        *,
        empty_canvas_id: Optional[str] = None,
        columns_prefix: Optional[str] = None,
    ) -> None:
        self.session = session
        self.editing_service = editing_service

        config = ConfigManager()
        self.empty_canvas_id: str = empty_canvas_id or config.get_editor_setting("empty_canvas_id", "empty-canvas")
        self.columns_prefix: str = columns_prefix or config.get_editor_setting("columns_container_prefix", "columns:")

        self._state = DragState.IDLE
        self._active_id: Optional[str] = None
        self._active_data: Mapping[str, Any] = {}

    # ------------------------------------------------------------------ state

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def active_id(self) -> Optional[str]:
        """Id of the dragged item, for overlay rendering."""
        return self._active_id

    @property
    def active_block(self):
        if self._active_id is None:
            return None
        return locator.find_block(self.session.tree, self._active_id)

    def _reset(self) -> None:
        self._state = DragState.IDLE
        self._active_id = None
        self._active_data = {}

    def _is_palette(self, data: Mapping[str, Any]) -> bool:
        return data.get("source") == PALETTE_SOURCE

    def _in_column(self, data: Mapping[str, Any]) -> bool:
        container = data.get("containerId")
        return isinstance(container, str) and container.startswith(self.columns_prefix)

    # ---------------------------------------------------------------- events

    def drag_start(self, source_id: str, source_data: Optional[Mapping[str, Any]] = None) -> None:
        """Enter Dragging and remember the source."""
        if self._state is DragState.DRAGGING:
            logger.debug("drag_start while dragging %s; restarting", self._active_id)
        self._state = DragState.DRAGGING
        self._active_id = source_id
        self._active_data = dict(source_data or {})
        logger.debug("Drag start: source=%s data=%s", source_id, self._active_data)

    def drag_over(
        self, active_id: str, over_id: Optional[str], over_data: Optional[Mapping[str, Any]] = None
    ) -> bool:
        """Reorder live when source and target Blocks share a Cell.

        Cross-container hovering changes nothing until the drop. Returns True
        if the tree was reordered.
        """
        if over_id is None or active_id == over_id:
            return False
        data = self._active_data if active_id == self._active_id else {}
        if self._is_palette(data) or self._in_column(data):
            return False

        tree = self.session.tree
        source = locator.find_location(tree, active_id)
        target = locator.find_location(tree, over_id)
        if source is None or target is None:
            return False
        if (source.row_id, source.cell_id) != (target.row_id, target.cell_id):
            return False

        result = self.editing_service.reorder(tree, source.cell_id, source.index, target.index)
        if not result.success:
            return False
        self.session.replace(result.tree)
        return True

    def drag_end(
        self,
        active_id: str,
        over_id: Optional[str],
        over_data: Optional[Mapping[str, Any]] = None,
        source_data: Optional[Mapping[str, Any]] = None,
    ) -> OperationResult:
        """Resolve the drop, then return to Idle whatever the outcome.

        *source_data* defaults to the metadata given to :meth:`drag_start`.
        """
        if source_data is None:
            source_data = self._active_data if active_id == self._active_id else {}
        try:
            result = self._drop(active_id, over_id, dict(over_data or {}), dict(source_data))
            if result.success:
                self.session.replace(result.tree, selection=result.selection)
            else:
                logger.debug("Drop absorbed: active=%s over=%s reason=%s", active_id, over_id, result.message)
            return result
        finally:
            self._reset()

    def cancel(self) -> None:
        """Abandon the gesture without touching the tree."""
        self._reset()

    # --------------------------------------------------------- classification

    def classify_target(
        self, over_id: Optional[str], over_data: Optional[Mapping[str, Any]] = None
    ) -> Optional[Destination]:
        """Map a drop target onto a destination variant.

        A target Resource yields its own position, so the dropped node lands
        before it. A target Cell yields the end of that Cell.
        """
        if over_id is None:
            return None
        if over_id == self.empty_canvas_id:
            return EMPTY_CANVAS

        data = over_data or {}
        if self._in_column(data):
            columns_block_id = data.get("columnsBlockId") or data["containerId"][len(self.columns_prefix):]
            try:
                column_index = int(data.get("columnIndex"))
            except (TypeError, ValueError):
                logger.debug("Column target without usable columnIndex: %s", data)
                return None
            return ColumnSlot(str(columns_block_id), column_index)

        tree = self.session.tree
        location = locator.find_resource_location(tree, over_id)
        if location is not None:
            return location
        column = locator.find_column_location(tree, over_id)
        if column is not None:
            return column
        found = locator.find_cell(tree, over_id)
        if found is not None:
            row, cell = found
            return CellLocation(row.id, cell.id, len(cell.resources))
        return None

    # ------------------------------------------------------------------ drop

    def _drop(
        self, active_id: str, over_id: Optional[str], over_data: Mapping[str, Any], source_data: Mapping[str, Any]
    ) -> OperationResult:
        tree = self.session.tree
        destination = self.classify_target(over_id, over_data)
        logger.info("Drop: active=%s over=%s dest=%s", active_id, over_id, destination)

        if self._is_palette(source_data):
            return self._drop_palette_item(str(source_data.get("type", "")), destination)

        if locator.find_resource(tree, active_id) is None:
            return OperationResult(False, "Dragged node no longer exists.", tree, details={"active_id": active_id})
        if destination is None:
            return OperationResult(False, "Drop target not resolvable.", tree, details={"over_id": over_id})

        if isinstance(destination, CellLocation) and over_id != destination.cell_id:
            source = locator.find_location(tree, active_id)
            target = locator.find_location(tree, over_id)
            if source is not None and target is not None and source.cell_id == target.cell_id:
                # Already reordered while hovering
                return OperationResult(True, "Reordered.", tree, active_id)

        protected = [i for i in self.session.protected_ids if i != active_id]
        return self.editing_service.move(tree, active_id, destination, protected_ids=protected)

    def _drop_palette_item(self, item_type: str, destination: Optional[Destination]) -> OperationResult:
        tree = self.session.tree
        resource = CanvasController.build_resource(item_type)
        if resource is None:
            return OperationResult(False, f"Unknown palette item '{item_type}'.", tree)

        if isinstance(destination, EmptyCanvas):
            return self.editing_service.append_row(tree, resource)
        if isinstance(destination, ColumnSlot):
            if isinstance(resource, Row):
                return OperationResult(False, "Layouts cannot be dropped into a column.", tree)
            return self.editing_service.insert_into_column(
                tree, destination.columns_block_id, destination.column_index, resource
            )
        if isinstance(destination, CellLocation):
            return self.editing_service.insert_at(tree, destination, resource)
        return self.editing_service.append_to_last_cell(tree, resource)
