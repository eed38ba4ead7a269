import dataclasses

import pytest

from lesson_composer.core.models import (
    BLOCK_TYPES,
    Block,
    Cell,
    ColumnsBlock,
    Row,
    clone_resource,
    create_block,
    create_constructor,
    create_empty_state_row,
    create_row,
    is_block,
    is_columns_block,
    is_constructor,
)
from lesson_composer.core.locator import collect_ids


def test_create_row_has_one_empty_cell_and_fresh_ids():
    a = create_row()
    b = create_row()
    assert len(a.cells) == 1
    assert a.cells[0].resources == ()
    assert not a.is_empty_state
    assert len({a.id, a.cells[0].id, b.id, b.cells[0].id}) == 4


def test_create_row_wraps_resources():
    block = create_block("text")
    row = create_row([block], props={"gap": 8})
    assert row.cells[0].resources == (block,)
    assert row.props == {"gap": 8}


@pytest.mark.parametrize("block_type", [t for t in BLOCK_TYPES if t != "columns"])
def test_create_block_uses_packaged_defaults(block_type):
    block = create_block(block_type)
    assert type(block) is Block
    assert block.type == block_type
    assert block.title
    assert isinstance(block.payload, dict)


def test_create_block_payload_overrides_and_defaults_are_not_shared():
    first = create_block("quiz", question="2 + 2?")
    second = create_block("quiz")
    assert first.payload["question"] == "2 + 2?"
    assert second.payload["question"] != "2 + 2?"
    assert first.payload["options"] is not second.payload["options"]


def test_create_columns_block_defaults_to_two_empty_columns():
    block = create_block("columns")
    assert isinstance(block, ColumnsBlock)
    assert block.columns == ((), ())
    assert create_block("columns", column_count=3).column_count == 3


def test_create_block_rejects_unknown_type():
    with pytest.raises(ValueError):
        create_block("video")


def test_create_constructor_uses_configured_cell_count():
    ctor = create_constructor()
    assert len(ctor.cells) == 2
    assert len(create_constructor(3).cells) == 3
    assert len(create_constructor(0).cells) == 1


def test_create_empty_state_row_is_flagged():
    row = create_empty_state_row()
    assert row.is_empty_state
    assert len(row.cells) == 1


def test_nodes_are_frozen():
    block = Block("b1", "text")
    with pytest.raises(dataclasses.FrozenInstanceError):
        block.title = "changed"


def test_predicates_and_kind():
    block = Block("b1", "text")
    columns = ColumnsBlock("c1")
    row = Row("r1", (Cell("c"),))
    assert is_block(block) and is_block(columns)
    assert is_columns_block(columns) and not is_columns_block(block)
    assert is_constructor(row) and not is_constructor(block)
    assert (block.kind, row.kind, row.cells[0].kind) == ("block", "row", "cell")


def test_columns_block_with_column_replaces_only_that_column():
    columns = ColumnsBlock("c1", columns=[[Block("x", "text")], []])
    updated = columns.with_column(1, [Block("y", "text")])
    assert [b.id for b in updated.columns[0]] == ["x"]
    assert [b.id for b in updated.columns[1]] == ["y"]
    assert columns.columns[1] == ()


def test_clone_resource_gives_every_node_a_fresh_id():
    inner = ColumnsBlock("cols", columns=((Block("left", "text"),), ()))
    ctor = Row("ctor", (Cell("cc1", (Block("b1", "text"), inner)), Cell("cc2")), props={"gap": 4})
    tree = (Row("r", (Cell("c", (ctor,)),)),)

    clone = clone_resource(ctor)

    clone_ids = collect_ids((Row("wrap", (Cell("wrap-c", (clone,)),)),)) - {"wrap", "wrap-c"}
    assert len(clone_ids) == len(collect_ids(tree)) - 2
    assert clone_ids.isdisjoint(collect_ids(tree))
    assert clone.props == ctor.props and clone.props is not ctor.props
    assert clone.cells[0].resources[1].columns[0][0].type == "text"


def test_clone_of_empty_state_row_is_a_regular_row():
    placeholder = create_empty_state_row()
    clone = clone_resource(placeholder)
    assert placeholder.is_empty_state
    assert not clone.is_empty_state
    assert len(clone.cells) == len(placeholder.cells)
