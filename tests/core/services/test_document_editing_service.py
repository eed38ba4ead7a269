import logging

import pytest

from lesson_composer.core import locator
from lesson_composer.core.models import Block, Cell, ColumnsBlock, Row, create_block
from lesson_composer.core.models.destinations import EMPTY_CANVAS, CellLocation, ColumnSlot
from lesson_composer.core.services.document_editing_service import (
    DocumentEditingService,
    OperationResult,
)


def _text(block_id):
    return Block(block_id, "text", title=block_id)


@pytest.fixture
def service():
    return DocumentEditingService()


@pytest.fixture
def tree():
    """A [ A1: a1, K[ K1: k1 ] ]  B [ B1: b1, cols{[], []} ]"""
    ctor = Row("K", (Cell("K1", (_text("k1"),)),))
    cols = ColumnsBlock("cols", columns=((), ()))
    return (
        Row("A", (Cell("A1", (_text("a1"), ctor)),)),
        Row("B", (Cell("B1", (_text("b1"), cols)),)),
    )


# ---------------------------------------------------------------------------
# Insertion policy
# ---------------------------------------------------------------------------

def test_insert_resource_into_empty_document(service):
    block = create_block("text")
    res = service.insert_resource((), block)
    assert isinstance(res, OperationResult)
    assert res.success
    assert len(res.tree) == 1
    assert len(res.tree[0].cells) == 1
    assert res.tree[0].cells[0].resources == (block,)
    assert res.selection == block.id
    assert res.details == {"policy": "append"}


def test_insert_resource_after_selected_row_opens_new_row(service, tree):
    block = _text("new")
    res = service.insert_resource(tree, block, selected_id="A")
    assert [r.id for r in res.tree][0] == "A"
    assert res.tree[1].cells[0].resources == (block,)
    assert res.tree[2].id == "B"
    assert res.details["policy"] == "new_row_after"


def test_insert_resource_after_selected_block(service, tree):
    res = service.insert_resource(tree, _text("new"), selected_id="k1")
    assert [r.id for r in locator.find_cell(res.tree, "K1")[1].resources] == ["k1", "new"]
    assert res.details["policy"] == "after_selection"


def test_insert_resource_with_stale_selection_appends(service, tree):
    res = service.insert_resource(tree, _text("new"), selected_id="ghost")
    assert res.success
    assert [r.id for r in res.tree[-1].cells[0].resources] == ["b1", "cols", "new"]


def test_insert_after_falls_back_to_append(service, tree):
    res = service.insert_after(tree, "ghost", _text("new"))
    assert res.success
    assert res.tree[-1].cells[0].resources[-1].id == "new"


def test_append_row_wraps_blocks_and_keeps_rows(service, tree):
    res = service.append_row(tree, _text("new"))
    assert res.tree[-1].cells[0].resources[0].id == "new"
    row = Row("X", (Cell("X1"), Cell("X2")))
    res = service.append_row(tree, row)
    assert res.tree[-1] is row
    assert res.selection == "X"


def test_insert_at_each_destination(service, tree):
    res = service.insert_at(tree, CellLocation("B", "B1", 0), _text("n1"))
    assert res.tree[1].cells[0].resources[0].id == "n1"
    res = service.insert_at(tree, ColumnSlot("cols", 1), _text("n2"))
    assert [b.id for b in locator.find_block(res.tree, "cols").columns[1]] == ["n2"]
    res = service.insert_at(tree, EMPTY_CANVAS, _text("n3"))
    assert res.tree[-1].cells[0].resources[-1].id == "n3"


def test_insert_at_unresolvable_destination_fails_softly(service, tree):
    res = service.insert_at(tree, CellLocation("Z", "Z1", 0), _text("n"))
    assert not res.success
    assert res.tree is tree
    assert res.selection is None


def test_insert_into_column(service, tree):
    res = service.insert_into_column(tree, "cols", 0, _text("n"))
    assert res.success
    assert [b.id for b in locator.find_block(res.tree, "cols").columns[0]] == ["n"]
    assert not service.insert_into_column(tree, "cols", 7, _text("n")).success


# ---------------------------------------------------------------------------
# Delete / duplicate / move
# ---------------------------------------------------------------------------

def test_delete_clears_selection_and_prunes_source(service):
    tree = (Row("A", (Cell("A1", (_text("a"),)),)), Row("B", (Cell("B1", (_text("b"),)),)))
    res = service.delete(tree, "a")
    assert res.success
    assert res.selection is None and res.reselect
    assert [r.id for r in res.tree] == ["B"]


def test_delete_does_not_prune_unrelated_empty_rows(service):
    tree = (Row("A", (Cell("A1", (_text("a"), _text("x"))),)), Row("B", (Cell("B1"),)))
    res = service.delete(tree, "a")
    assert [r.id for r in res.tree] == ["A", "B"]


def test_delete_keeps_protected_containers(service):
    tree = (Row("A", (Cell("A1", (_text("a"),)),)),)
    res = service.delete(tree, "a", protected_ids=["A"])
    assert [r.id for r in res.tree] == ["A"]
    assert res.tree[0].cells[0].resources == ()


def test_delete_last_block_removes_row_with_other_empty_cells(service):
    tree = (Row("A", (Cell("A1", (_text("a"),)), Cell("A2"))), Row("B", (Cell("B1", (_text("b"),)),)))
    res = service.delete(tree, "a")
    assert res.success
    assert [r.id for r in res.tree] == ["B"]


def test_delete_prunes_empty_cells_across_source_row(service):
    ctor = Row("K", (Cell("K1", (_text("k"),)), Cell("K2")))
    tree = (Row("A", (Cell("A1", (_text("a"), ctor)), Cell("A2"))),)
    res = service.delete(tree, "k")
    assert res.tree == (Row("A", (Cell("A1", (_text("a"),)),)),)


def test_delete_keeps_protected_sibling_cell(service):
    tree = (Row("A", (Cell("A1", (_text("a"), _text("x"))), Cell("A2"))),)
    res = service.delete(tree, "a", protected_ids=["A2"])
    assert [c.id for c in res.tree[0].cells] == ["A1", "A2"]


def test_delete_top_level_row(service, tree):
    res = service.delete(tree, "A")
    assert [r.id for r in res.tree] == ["B"]
    assert res.details == {"scope": "row"}


def test_delete_unknown_fails(service, tree):
    res = service.delete(tree, "ghost")
    assert not res.success
    assert res.tree is tree
    assert "ghost" in res.message


def test_duplicate_selects_clone(service, tree):
    res = service.duplicate(tree, "a1")
    ids = [r.id for r in res.tree[0].cells[0].resources]
    assert ids[0] == "a1" and ids[1] == res.selection
    assert res.selection not in locator.collect_ids(tree)


def test_duplicate_row(service, tree):
    res = service.duplicate(tree, "B")
    assert [r.id for r in res.tree][:2] == ["A", "B"]
    assert res.tree[2].id == res.selection


def test_move_then_cleanup_scenario(service):
    b = _text("b")
    tree = (Row("A", (Cell("A1", (b,)),)), Row("B", (Cell("B1"),)))
    res = service.move(tree, "b", CellLocation("B", "B1", 0))
    assert res.success
    assert [r.id for r in res.tree] == ["B"]
    assert res.tree[0].cells[0].resources == (b,)
    assert res.selection == "b"


def test_move_respects_protected_source_row(service):
    tree = (Row("A", (Cell("A1", (_text("b"),)),)), Row("B", (Cell("B1"),)))
    res = service.move(tree, "b", CellLocation("B", "B1", 0), protected_ids=["A"])
    assert [r.id for r in res.tree] == ["A", "B"]


def test_move_prunes_every_empty_cell_of_source_row(service):
    tree = (Row("A", (Cell("A1", (_text("a"),)), Cell("A2"))), Row("B", (Cell("B1", (_text("b"),)),)))
    res = service.move(tree, "a", CellLocation("B", "B1", 1))
    assert [r.id for r in res.tree] == ["B"]
    assert [x.id for x in res.tree[0].cells[0].resources] == ["b", "a"]


def test_move_to_empty_canvas_lands_in_last_remaining_row(service):
    tree = (Row("A", (Cell("A1", (_text("b1"),)),)), Row("B", (Cell("B1", (_text("b2"),)),)))
    res = service.move(tree, "b2", EMPTY_CANVAS)
    assert res.success
    assert res.tree == (Row("A", (Cell("A1", (_text("b1"), _text("b2"))),)),)
    assert res.selection == "b2"


def test_move_that_changes_nothing_is_not_reported_as_success(service):
    single = (Row("A", (Cell("A1", (_text("b1"),)),)),)
    res = service.move(single, "b1", EMPTY_CANVAS)
    assert not res.success
    assert res.tree is single
    tail = (Row("A", (Cell("A1", (_text("b1"), _text("b2"))),)),)
    assert not service.move(tail, "b2", EMPTY_CANVAS).success


def test_move_rejected_destination_keeps_tree(service, tree):
    res = service.move(tree, "K", ColumnSlot("cols", 0))
    assert not res.success
    assert res.tree is tree


def test_reorder_leaves_selection_alone(service, tree):
    res = service.reorder(tree, "B1", 1, 0)
    assert res.success
    assert not res.reselect
    assert [r.id for r in res.tree[1].cells[0].resources] == ["cols", "b1"]


def test_update_block_and_row_props(service, tree):
    res = service.update_block(tree, Block("k1", "text", title="Edited"))
    assert locator.find_block(res.tree, "k1").title == "Edited"
    res = service.update_row_props(tree, "K", {"gap": 12})
    assert locator.find_row(res.tree, "K").props == {"gap": 12}
    assert not service.update_row_props(tree, "ghost", {}).success


def test_cleanup_prunes_everything_but_protected(service):
    tree = (Row("A", (Cell("A1"),)), Row("B", (Cell("B1"),)), Row("C", (Cell("C1", (_text("c"),)),)))
    res = service.cleanup(tree, protected_ids=["B"])
    assert [r.id for r in res.tree] == ["B", "C"]
    assert not service.cleanup(res.tree, protected_ids=["B"]).success


# ---------------------------------------------------------------------------
# Error handling and logging
# ---------------------------------------------------------------------------

def test_unexpected_errors_become_failed_results(service, tree, monkeypatch, caplog):
    from lesson_composer.core import mutations

    def boom(*_args, **_kwargs):
        raise RuntimeError("corrupted tree")

    monkeypatch.setattr(mutations, "duplicate_resource_with_id", boom)
    with caplog.at_level(logging.ERROR):
        res = service.duplicate(tree, "a1")
    assert not res.success
    assert res.tree is tree
    assert res.details == {"error": "corrupted tree"}
    assert any("Edit FAIL: duplicate" in r.getMessage() for r in caplog.records)


def test_success_is_logged(service, tree, caplog):
    with caplog.at_level(logging.DEBUG, logger="lesson_composer.core.services.document_editing_service"):
        service.duplicate(tree, "a1")
    messages = [r.getMessage() for r in caplog.records]
    assert any(m.startswith("Edit: duplicate") for m in messages)
    assert any(m.startswith("Edit OK: duplicate") for m in messages)
    assert any("<lesson>" in m for m in messages)
