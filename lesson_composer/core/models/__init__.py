from __future__ import annotations

"""Node model of the lesson document.

A lesson is a tuple of top-level :class:`Row` values. A Row holds Cells
(horizontal flow), a Cell holds Resources (vertical flow), and a Resource is
either a :class:`Block` (opaque leaf content) or a nested Row, called a
*Constructor*. A :class:`ColumnsBlock` is a Block holding parallel lists of
Blocks, one per column.

All node types are frozen dataclasses holding tuples, so an edit can only be
expressed by building new containers; untouched siblings are shared between
the old and the new tree. Relationships are positional: nodes do not know
their parents.

The objects here are free of UI and I/O code so they can be reused by
services, controllers and tests alike.
"""

import copy
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

from lesson_composer.config import ConfigManager

__all__ = [
    "BLOCK_TYPES",
    "Block",
    "ColumnsBlock",
    "Cell",
    "Row",
    "Resource",
    "Document",
    "new_id",
    "is_block",
    "is_block_type",
    "is_columns_block",
    "is_constructor",
    "create_block",
    "create_cell",
    "create_row",
    "create_constructor",
    "create_empty_state_row",
    "clone_resource",
]

BLOCK_TYPES: Tuple[str, ...] = ("text", "header", "image", "quiz", "columns")


def new_id() -> str:
    """Return a fresh, globally unique node id."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Block:
    """Opaque leaf content.

    Attributes
    ----------
    id
        Unique node id.
    type
        Discriminant tag, one of :data:`BLOCK_TYPES`.
    title
        Display title.
    payload
        Type-specific fields (rich text HTML, image URL, quiz options...).
        Never inspected by the editing engine.
    """
    id: str
    type: str
    title: str = "Untitled"
    payload: Mapping[str, Any] = field(default_factory=dict)

    kind: ClassVar[str] = "block"


@dataclass(frozen=True)
class ColumnsBlock(Block):
    """Block holding ``len(columns)`` parallel lists of Blocks."""
    type: str = "columns"
    columns: Tuple[Tuple[Block, ...], ...] = ((), ())

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", tuple(tuple(col) for col in self.columns))

    @property
    def column_count(self) -> int:
        return len(self.columns)

    def with_column(self, index: int, blocks: Iterable[Block]) -> "ColumnsBlock":
        """Return a copy with column *index* replaced by *blocks*."""
        columns = list(self.columns)
        columns[index] = tuple(blocks)
        return replace(self, columns=tuple(columns))


@dataclass(frozen=True)
class Cell:
    """Vertical container of Resources, child of exactly one Row."""
    id: str
    resources: Tuple["Resource", ...] = ()

    kind: ClassVar[str] = "cell"

    def __post_init__(self) -> None:
        object.__setattr__(self, "resources", tuple(self.resources))

    @property
    def is_empty(self) -> bool:
        return not self.resources


@dataclass(frozen=True)
class Row:
    """Horizontal container of Cells.

    A Row at the top of the document is a section of the lesson; a Row
    placed inside a Cell is a Constructor (nested sub-layout).

    Attributes
    ----------
    props
        Layout hints (column count, gap, styling). Opaque to the engine.
    is_empty_state
        Marks a placeholder row offered as an insertion point. Cleanup never
        removes such rows.
    """
    id: str
    cells: Tuple[Cell, ...] = ()
    props: Mapping[str, Any] = field(default_factory=dict)
    is_empty_state: bool = False

    kind: ClassVar[str] = "row"

    def __post_init__(self) -> None:
        object.__setattr__(self, "cells", tuple(self.cells))

    @property
    def has_content(self) -> bool:
        """True if at least one Cell holds a Resource."""
        return any(cell.resources for cell in self.cells)


Resource = Union[Block, Row]
Document = Tuple[Row, ...]


def is_block(resource: Any) -> bool:
    return isinstance(resource, Block)


def is_columns_block(resource: Any) -> bool:
    return isinstance(resource, ColumnsBlock)


def is_constructor(resource: Any) -> bool:
    return isinstance(resource, Row)


def is_block_type(block_type: Any) -> bool:
    return block_type in BLOCK_TYPES


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def create_cell(resources: Sequence[Resource] = ()) -> Cell:
    return Cell(id=new_id(), resources=tuple(resources))


def create_row(resources: Sequence[Resource] = (), *, props: Optional[Mapping[str, Any]] = None) -> Row:
    """Create a Row with a single Cell holding *resources* (empty by default)."""
    return Row(id=new_id(), cells=(create_cell(resources),), props=dict(props or {}))


def create_constructor(cell_count: Optional[int] = None, *, props: Optional[Mapping[str, Any]] = None) -> Row:
    """Create a Row with *cell_count* empty Cells, for nesting inside a Cell.

    The default cell count comes from ``editor.yml``
    (``default_constructor_cells``).
    """
    if cell_count is None:
        cell_count = int(ConfigManager().get_editor_setting("default_constructor_cells", 2))
    cell_count = max(1, int(cell_count))
    return Row(
        id=new_id(),
        cells=tuple(create_cell() for _ in range(cell_count)),
        props=dict(props or {}),
    )


def create_empty_state_row() -> Row:
    """Create a placeholder row kept by cleanup as an insertion point."""
    return Row(id=new_id(), cells=(create_cell(),), is_empty_state=True)


def create_block(
    block_type: str,
    *,
    title: Optional[str] = None,
    column_count: Optional[int] = None,
    **payload: Any,
) -> Block:
    """Create a Block of *block_type* with a fresh id.

    Default title and payload come from ``block_defaults.yml``; keyword
    arguments override payload fields. ``columns`` blocks get
    *column_count* empty columns (``default_columns`` when omitted).

    Raises
    ------
    ValueError
        If *block_type* is not one of :data:`BLOCK_TYPES`.
    """
    if not is_block_type(block_type):
        raise ValueError(f"Unknown block type '{block_type}'")

    defaults = ConfigManager().get_block_defaults().get(block_type) or {}
    merged: Dict[str, Any] = copy.deepcopy(dict(defaults.get("payload") or {}))
    merged.update(payload)
    block_title = title if title is not None else str(defaults.get("title", "Untitled"))

    if block_type == "columns":
        if column_count is None:
            column_count = int(ConfigManager().get_editor_setting("default_columns", 2))
        column_count = max(1, int(column_count))
        return ColumnsBlock(
            id=new_id(),
            title=block_title,
            payload=merged,
            columns=tuple(() for _ in range(column_count)),
        )
    return Block(id=new_id(), type=block_type, title=block_title, payload=merged)


def clone_resource(resource: Resource) -> Resource:
    """Deep-copy *resource* giving every node of the subtree a fresh id.

    A copied Row is never an empty-state placeholder.
    """
    if isinstance(resource, Row):
        return replace(
            resource,
            id=new_id(),
            cells=tuple(
                Cell(id=new_id(), resources=tuple(clone_resource(r) for r in cell.resources))
                for cell in resource.cells
            ),
            props=copy.deepcopy(dict(resource.props)),
            is_empty_state=False,
        )
    if isinstance(resource, ColumnsBlock):
        return replace(
            resource,
            id=new_id(),
            payload=copy.deepcopy(dict(resource.payload)),
            columns=tuple(tuple(clone_resource(b) for b in col) for col in resource.columns),
        )
    return replace(resource, id=new_id(), payload=copy.deepcopy(dict(resource.payload)))
