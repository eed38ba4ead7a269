"""Lesson composer UI package.

Holds the toolkit-independent controllers that translate user gestures
(toolbar clicks, keyboard shortcuts, drag-and-drop notifications) into
editing service calls. Rendering widgets live with the presentation layer.
"""

from . import controllers as _controllers  # noqa: F401

from .controllers.canvas_controller import CanvasController  # noqa: F401
from .controllers.drag_session_coordinator import DragSessionCoordinator, DragState  # noqa: F401

__all__ = [
    "CanvasController",
    "DragSessionCoordinator",
    "DragState",
]
