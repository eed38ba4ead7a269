from __future__ import annotations

"""Process-wide document state of an editing session.

The session owns the current tree and the selection. Every structural change
goes through :meth:`EditorSession.replace`, which swaps the whole tree value
in one step; services compute the new value from the old one without touching
it, so no caller ever observes a half-applied edit.
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from lesson_composer.core import locator
from lesson_composer.core.models import Block, Row

__all__ = ["EditorSession", "KEEP_SELECTION"]

logger = logging.getLogger(__name__)


class _KeepSelection:
    def __repr__(self) -> str:
        return "KEEP_SELECTION"


KEEP_SELECTION = _KeepSelection()

Listener = Callable[["EditorSession"], None]


class EditorSession:
    """Own the lesson tree, the selected node and the block being edited.

    Parameters
    ----------
    tree : Sequence[Row], optional
        Initial document, empty by default.

    Notes
    -----
    - ``selected_id`` always resolves in the current tree or is ``None``;
      :meth:`replace` clears it when the selected node disappeared.
    - ``editing_id`` names the Block whose content is being edited. It is
      cleared together with the selection and whenever another node is
      selected.
    - Listeners are called after each change with the session as argument.
    """

    def __init__(self, tree: Sequence[Row] = ()) -> None:
        self._tree: Tuple[Row, ...] = tuple(tree)
        self._selected_id: Optional[str] = None
        self._editing_id: Optional[str] = None
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------ state

    @property
    def tree(self) -> Tuple[Row, ...]:
        return self._tree

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def editing_id(self) -> Optional[str]:
        return self._editing_id

    @property
    def blocks(self) -> List[Block]:
        """Flat list of every Block, whatever its nesting depth."""
        return locator.extract_blocks(self._tree)

    @property
    def selected_block(self) -> Optional[Block]:
        if self._selected_id is None:
            return None
        return locator.find_block(self._tree, self._selected_id)

    @property
    def selected_row_id(self) -> Optional[str]:
        """Top-level Row holding the selection (or the selection itself)."""
        if self._selected_id is None:
            return None
        path = locator.find_path(self._tree, self._selected_id)
        return path[0] if path else None

    @property
    def protected_ids(self) -> Tuple[str, ...]:
        """Nodes cleanup must keep: the selection and the edit target."""
        return tuple(dict.fromkeys(i for i in (self._selected_id, self._editing_id) if i is not None))

    def is_top_level_row(self, node_id: Optional[str]) -> bool:
        return node_id is not None and any(row.id == node_id for row in self._tree)

    def contains(self, node_id: Optional[str]) -> bool:
        return node_id is not None and locator.find_path(self._tree, node_id) is not None

    # ------------------------------------------------------------ transitions

    def replace(self, tree: Sequence[Row], *, selection=KEEP_SELECTION) -> None:
        """Install *tree* as the current document.

        When *selection* is given it becomes the selected id; otherwise the
        current selection is kept if it still resolves.
        """
        self._tree = tuple(tree)
        if selection is not KEEP_SELECTION:
            if selection != self._selected_id:
                self._editing_id = None
            self._selected_id = selection
        if self._selected_id is not None and not self.contains(self._selected_id):
            logger.debug("Selection %s no longer in tree; cleared", self._selected_id)
            self._selected_id = None
        if self._editing_id is not None and not self.contains(self._editing_id):
            self._editing_id = None
        self._notify()

    def select(self, node_id: Optional[str]) -> bool:
        """Select *node_id* (or clear the selection with ``None``).

        Returns False, leaving the selection untouched, for unknown ids.
        """
        if node_id is not None and not self.contains(node_id):
            return False
        if node_id != self._selected_id:
            self._editing_id = None
        self._selected_id = node_id
        self._notify()
        return True

    def begin_edit(self, block_id: str) -> bool:
        """Enter edit mode on a Block, selecting it."""
        if locator.find_block(self._tree, block_id) is None:
            return False
        self._selected_id = block_id
        self._editing_id = block_id
        self._notify()
        return True

    def end_edit(self) -> bool:
        """Leave edit mode; returns True if a Block was being edited."""
        if self._editing_id is None:
            return False
        self._editing_id = None
        self._notify()
        return True

    # -------------------------------------------------------------- listeners

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                # A failing view must not break the edit that triggered it
                logger.error("Session listener %r failed", listener, exc_info=True)
