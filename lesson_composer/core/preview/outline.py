from __future__ import annotations

"""XML outline of the lesson layout.

This module is **read-only** and has *no* GUI dependencies. It relies only on
``lxml`` and the node model so that it can be reused in tests, logging and the
presentation layer's export step. Block payloads are not rendered; the
outline only shows structure.

Shape::

    <lesson>
      <row id="..." [empty-state="true"]>
        <cell id="...">
          <block id="..." type="text" title="..."/>
          <constructor id="...">
            <cell id="...">...</cell>
          </constructor>
          <block id="..." type="columns" title="...">
            <column index="0">...</column>
          </block>
        </cell>
      </row>
    </lesson>
"""

from typing import Sequence

from lxml import etree as ET  # type: ignore

from lesson_composer.core.models import Block, Cell, ColumnsBlock, Resource, Row

__all__ = [
    "compile_outline",
    "render_outline",
]


def compile_outline(rows: Sequence[Row]) -> ET._Element:
    """Return the outline of *rows* as an lxml element rooted at ``<lesson>``."""
    root = ET.Element("lesson")
    for row in rows:
        _append_row(root, row, "row")
    return root


def render_outline(rows: Sequence[Row], *, pretty: bool = True) -> str:
    """Return the outline of *rows* serialized as a unicode string."""
    return ET.tostring(compile_outline(rows), pretty_print=pretty, encoding="unicode")


def _append_row(parent: ET._Element, row: Row, tag: str) -> None:
    row_el = ET.SubElement(parent, tag, id=row.id)
    if row.is_empty_state:
        row_el.set("empty-state", "true")
    for cell in row.cells:
        _append_cell(row_el, cell)


def _append_cell(parent: ET._Element, cell: Cell) -> None:
    cell_el = ET.SubElement(parent, "cell", id=cell.id)
    for resource in cell.resources:
        _append_resource(cell_el, resource)


def _append_resource(parent: ET._Element, resource: Resource) -> None:
    if isinstance(resource, Row):
        _append_row(parent, resource, "constructor")
        return
    _append_block(parent, resource)


def _append_block(parent: ET._Element, block: Block) -> None:
    block_el = ET.SubElement(parent, "block", id=block.id, type=block.type, title=block.title or "")
    if isinstance(block, ColumnsBlock):
        for index, column in enumerate(block.columns):
            column_el = ET.SubElement(block_el, "column", index=str(index))
            for child in column:
                _append_block(column_el, child)
