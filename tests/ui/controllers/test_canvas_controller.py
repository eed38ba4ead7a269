import pytest

from lesson_composer.core import locator
from lesson_composer.core.models import Block, Cell, ColumnsBlock, Row
from lesson_composer.core.services.document_editing_service import (
    DocumentEditingService,
    OperationResult,
)
from lesson_composer.core.session import EditorSession
from lesson_composer.ui.controllers.canvas_controller import CanvasController


# ---------------------------
# Fakes
# ---------------------------

class FakeEditingService:
    """Records calls and returns canned results."""

    def __init__(self, result=None):
        self.calls = []
        self.result = result

    def _reply(self, tree):
        return self.result or OperationResult(False, "fake", tree)

    def insert_resource(self, tree, resource, selected_id=None):
        self.calls.append(("insert_resource", resource.id, selected_id))
        return self._reply(tree)

    def delete(self, tree, node_id, protected_ids=()):
        self.calls.append(("delete", node_id, tuple(protected_ids)))
        return self._reply(tree)

    def duplicate(self, tree, node_id):
        self.calls.append(("duplicate", node_id))
        return self._reply(tree)


def _tree():
    return (
        Row("R1", (Cell("C1", (Block("b1", "text"), Block("b2", "text"))),)),
        Row("R2", (Cell("C2", (ColumnsBlock("cols"),)),)),
    )


@pytest.fixture
def session():
    return EditorSession(_tree())


@pytest.fixture
def controller(session):
    return CanvasController(session, DocumentEditingService())


# ---------------------------
# Delegation
# ---------------------------

def test_insert_block_passes_selection_to_service(session):
    fake = FakeEditingService()
    ctrl = CanvasController(session, fake)
    session.select("b1")
    ctrl.insert_block("image")
    assert fake.calls[0][0] == "insert_resource"
    assert fake.calls[0][2] == "b1"


def test_unknown_block_type_never_reaches_service(session):
    fake = FakeEditingService()
    ctrl = CanvasController(session, fake)
    res = ctrl.insert_block("video")
    assert not res.success
    assert fake.calls == []


def test_delete_without_target_is_refused(session):
    fake = FakeEditingService()
    ctrl = CanvasController(session, fake)
    assert not ctrl.delete_selected().success
    assert not ctrl.duplicate_selected().success
    assert fake.calls == []


def test_delete_passes_protected_ids(session):
    fake = FakeEditingService()
    ctrl = CanvasController(session, fake)
    session.begin_edit("b2")
    ctrl.delete_selected("b1")
    assert fake.calls == [("delete", "b1", ("b2",))]


def test_failed_results_leave_session_untouched(session):
    fake = FakeEditingService(OperationResult(False, "nope", ()))
    ctrl = CanvasController(session, fake)
    session.select("b1")
    ctrl.duplicate_selected()
    assert session.tree == _tree()
    assert session.selected_id == "b1"


# ---------------------------
# Behaviour with the real service
# ---------------------------

def test_palette_insert_on_empty_canvas_scenario():
    session = EditorSession()
    ctrl = CanvasController(session, DocumentEditingService())

    res = ctrl.insert_block("text")

    assert res.success
    assert len(session.tree) == 1
    assert len(session.tree[0].cells) == 1
    resources = session.tree[0].cells[0].resources
    assert len(resources) == 1
    assert resources[0].type == "text"
    assert session.selected_id == resources[0].id


def test_insert_block_after_selection_and_selects_it(controller, session):
    session.begin_edit("b1")
    controller.insert_block("quiz")
    ids = [r.id for r in session.tree[0].cells[0].resources]
    assert ids[0] == "b1" and ids[2] == "b2"
    assert session.selected_id == ids[1]
    assert session.editing_id is None


def test_insert_constructor_from_toolbar(controller, session):
    session.select("R1")
    controller.insert_block("constructor")
    new_row = session.tree[1]
    assert isinstance(new_row.cells[0].resources[0], Row)
    assert session.selected_id == new_row.cells[0].resources[0].id


def test_delete_selected_clears_selection(controller, session):
    session.select("b1")
    res = controller.delete_selected()
    assert res.success
    assert session.selected_id is None
    assert locator.find_block(session.tree, "b1") is None


def test_duplicate_selected_selects_copy(controller, session):
    session.select("b2")
    controller.duplicate_selected()
    ids = [r.id for r in session.tree[0].cells[0].resources]
    assert ids[:2] == ["b1", "b2"]
    assert session.selected_id == ids[2]


def test_update_block_keeps_selection(controller, session):
    session.begin_edit("b1")
    controller.update_block(Block("b1", "text", title="Edited", payload={"body": "<p>x</p>"}))
    assert session.selected_block.title == "Edited"
    assert session.editing_id == "b1"


def test_update_row_props(controller, session):
    assert controller.update_row_props("R2", {"background": "#eee"}).success
    assert session.tree[1].props == {"background": "#eee"}


def test_keyboard_shortcuts(controller, session):
    controller.begin_edit("b1")
    # typing in the editor must not delete the block
    assert not controller.handle_key("Backspace")
    assert locator.find_block(session.tree, "b1") is not None
    assert controller.handle_key("Escape")
    assert controller.handle_key("Delete")
    assert locator.find_block(session.tree, "b1") is None
    assert not controller.handle_key("Delete")
    assert not controller.handle_key("a")


def test_select_node_and_blocks(controller, session):
    assert controller.select_node("cols")
    assert not controller.select_node("ghost")
    assert [b.id for b in controller.blocks] == ["b1", "b2", "cols"]


def test_outline(controller):
    text = controller.outline(pretty=False)
    assert text.startswith("<lesson><row id=\"R1\">")
