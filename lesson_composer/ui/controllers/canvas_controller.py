from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from lesson_composer.core.models import Block, Resource, create_block, create_constructor, is_block_type
from lesson_composer.core.preview import render_outline
from lesson_composer.core.services.document_editing_service import (
    DocumentEditingService,
    OperationResult,
)
from lesson_composer.core.session import EditorSession

logger = logging.getLogger(__name__)

CONSTRUCTOR_ITEM = "constructor"
_DELETE_KEYS = ("Delete", "Backspace")


class CanvasController:
    """Controller for toolbar, keyboard and selection actions on the canvas.

    The controller translates presentation-level intents into
    :class:`DocumentEditingService` calls and installs successful results in
    the :class:`EditorSession`. Drag-and-drop gestures are handled by
    :class:`~lesson_composer.ui.controllers.drag_session_coordinator.DragSessionCoordinator`.

    Parameters
    ----------
    session : EditorSession
        The editing session owning the tree and the selection.
    editing_service : DocumentEditingService
        Service performing the structural edits.

    Notes
    -----
    - Non-raising for routine failures; methods return an
      :class:`OperationResult` or a boolean.
    - No UI toolkit code should appear in this module.
    """

    def __init__(self, session: EditorSession, editing_service: DocumentEditingService) -> None:
        self.session: EditorSession = session
        self.editing_service: DocumentEditingService = editing_service

    # ---------------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------------

    def _apply(self, result: OperationResult) -> OperationResult:
        """Install a successful result in the session; failures change nothing."""
        if not result.success:
            logger.debug("Canvas action not applied: %s", result.message)
            return result
        if result.reselect:
            self.session.replace(result.tree, selection=result.selection)
        else:
            self.session.replace(result.tree)
        return result

    def _target(self, node_id: Optional[str]) -> Optional[str]:
        return node_id if node_id is not None else self.session.selected_id

    @staticmethod
    def build_resource(item_type: str) -> Optional[Resource]:
        """Create a fresh node for a toolbar or palette item, or None if unknown."""
        if item_type == CONSTRUCTOR_ITEM:
            return create_constructor()
        if is_block_type(item_type):
            return create_block(item_type)
        return None

    # ---------------------------------------------------------------------------------
    # Toolbar actions
    # ---------------------------------------------------------------------------------

    def insert_block(self, block_type: str) -> OperationResult:
        """Insert a new Block (or Constructor) next to the current selection.

        The new node becomes the selection and edit mode is left.
        """
        resource = self.build_resource(block_type)
        if resource is None:
            return OperationResult(False, f"Unknown block type '{block_type}'.", self.session.tree)
        result = self.editing_service.insert_resource(self.session.tree, resource, self.session.selected_id)
        return self._apply(result)

    def delete_selected(self, node_id: Optional[str] = None) -> OperationResult:
        """Delete *node_id* (the selection by default); selection becomes None."""
        target = self._target(node_id)
        if target is None:
            return OperationResult(False, "Nothing selected.", self.session.tree)
        result = self.editing_service.delete(self.session.tree, target, self.session.protected_ids)
        return self._apply(result)

    def duplicate_selected(self, node_id: Optional[str] = None) -> OperationResult:
        """Duplicate *node_id* (the selection by default) and select the copy."""
        target = self._target(node_id)
        if target is None:
            return OperationResult(False, "Nothing selected.", self.session.tree)
        return self._apply(self.editing_service.duplicate(self.session.tree, target))

    # ---------------------------------------------------------------------------------
    # Selection and content editing
    # ---------------------------------------------------------------------------------

    def select_node(self, node_id: Optional[str]) -> bool:
        return self.session.select(node_id)

    def begin_edit(self, block_id: str) -> bool:
        return self.session.begin_edit(block_id)

    def end_edit(self) -> bool:
        return self.session.end_edit()

    def update_block(self, block: Block) -> OperationResult:
        return self._apply(self.editing_service.update_block(self.session.tree, block))

    def update_row_props(self, row_id: str, props: Dict[str, Any]) -> OperationResult:
        return self._apply(self.editing_service.update_row_props(self.session.tree, row_id, props))

    def handle_key(self, key: str) -> bool:
        """Apply canvas keyboard shortcuts.

        ``Escape`` leaves edit mode. ``Delete`` and ``Backspace`` delete the
        selection unless a Block is being edited (the keys then belong to
        the text editor). Returns True if the key was consumed.
        """
        if key == "Escape":
            return self.session.end_edit()
        if key in _DELETE_KEYS:
            if self.session.editing_id is not None or self.session.selected_id is None:
                return False
            return self.delete_selected().success
        return False

    # ---------------------------------------------------------------------------------
    # Derived views
    # ---------------------------------------------------------------------------------

    @property
    def blocks(self) -> List[Block]:
        return self.session.blocks

    def outline(self, pretty: bool = True) -> str:
        """Return the XML outline of the current tree."""
        return render_outline(self.session.tree, pretty=pretty)
