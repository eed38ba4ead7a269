from __future__ import annotations

"""High-level editing services over the lesson tree.

Services are UI-agnostic and never raise for expected failures; they return
an :class:`OperationResult` carrying the new tree and recommended selection.
"""

from .document_editing_service import DocumentEditingService, OperationResult  # noqa: F401

__all__: list[str] = [
    "DocumentEditingService",
    "OperationResult",
]
