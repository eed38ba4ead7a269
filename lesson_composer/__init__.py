"""Top-level package of the lesson composer document engine.

This package hosts the GUI-agnostic implementation of the lesson editor:
the node model, the pure tree operations, the editing session and the
controllers that turn gestures into edits. Front-ends should only depend on
the public API exposed here rather than importing internal modules directly.
"""

from .core.models import Block, Cell, ColumnsBlock, Row, create_block, create_row  # re-export for convenience
from .core.session import EditorSession
from .core.services import DocumentEditingService, OperationResult

__all__: list[str] = [
    "Block",
    "Cell",
    "ColumnsBlock",
    "Row",
    "create_block",
    "create_row",
    "EditorSession",
    "DocumentEditingService",
    "OperationResult",
]
