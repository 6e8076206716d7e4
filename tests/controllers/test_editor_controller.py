import pytest

from mjml_toolkit.controllers import EditorController
from mjml_toolkit.core import tree as ops
from mjml_toolkit.core.exceptions import MarkupSyntaxError
from mjml_toolkit.core.models import EmailBlock
from mjml_toolkit.core.registry import BlockType
from mjml_toolkit.core.services import TreeEditingService


@pytest.fixture
def controller(tree):
    return EditorController(tree, editing_service=TreeEditingService(width_precision=2))


@pytest.fixture
def seen(controller):
    trees = []
    controller.add_listener(trees.append)
    return trees


class TestRecordedEdits:

    def test_success_updates_tree_and_history(self, controller, tree, seen):
        result = controller.insert("c1", EmailBlock(id="sp", type=BlockType.SPACER))
        assert result.success
        assert controller.tree is result.tree
        assert controller.can_undo()
        assert seen == [result.tree]

    def test_refusal_changes_nothing(self, controller, tree, seen):
        result = controller.remove("root")
        assert not result.success
        assert controller.tree is tree
        assert not controller.can_undo()
        assert seen == []

    def test_noop_is_not_recorded(self, controller, tree, seen):
        result = controller.move("s1", "body", 0)
        assert result.success
        assert not controller.can_undo()
        assert seen == []

    def test_full_mutation_surface(self, controller):
        assert controller.clone("t2").success
        assert controller.move("t1", "c3").success
        assert controller.update_attributes("t1", {"color": "#000"}, content="<p>Hi</p>").success
        assert controller.update_attributes("c1", {"width": None}).success
        assert controller.remove("c2").success
        assert controller.validate() == []
        assert ops.find_block(controller.tree, "t1").content == "<p>Hi</p>"


class TestUndoRedo:

    def test_scenario(self, controller, tree, seen):
        controller.insert("body", EmailBlock(id="s9", type=BlockType.SECTION, children=()))
        t1 = controller.tree
        assert controller.undo()
        assert controller.tree is tree
        assert controller.redo()
        assert controller.tree is t1
        assert controller.undo()
        assert not controller.undo()
        assert controller.tree is tree
        assert len(seen) == 4

    def test_new_edit_drops_redo(self, controller):
        controller.remove("s1")
        controller.undo()
        controller.remove("s2")
        assert not controller.can_redo()

    def test_selection_follows_history(self, controller):
        result = controller.add_block("body", BlockType.SECTION)
        new_id = result.details["block_id"]
        assert controller.selected_block_id == new_id
        controller.undo()
        assert controller.selected_block_id is None


class TestImportExport:

    def test_load_and_export(self, controller, sample_mjml):
        result = controller.load_mjml(sample_mjml)
        assert result.success
        assert ops.find_blocks_by_type(controller.tree, BlockType.BUTTON)
        assert controller.export_mjml().startswith("<mjml>")
        assert controller.can_undo()

    def test_malformed_markup_raises(self, controller, tree):
        with pytest.raises(MarkupSyntaxError):
            controller.load_mjml("<mjml><mj-body></mjml>")
        assert controller.tree is tree

    def test_invalid_document_is_refused(self, controller, tree):
        result = controller.load_mjml("<mjml><mj-head /></mjml>")
        assert result.details["reason"] == "invalid_tree"
        assert controller.tree is tree

    def test_from_mjml(self, sample_mjml):
        controller = EditorController.from_mjml(sample_mjml)
        assert controller.tree.type is BlockType.MJML
        assert not controller.can_undo()

    def test_saved_block_and_replace(self, controller, tree):
        saved = ops.find_block(tree, "s2")
        assert controller.insert_saved_block("body", saved, 0).success
        assert len(ops.find_block(controller.tree, "body").children) == 3
        assert controller.replace_tree(tree).success
        assert controller.tree is tree


def test_remove_listener(controller, seen):
    controller.remove_listener(seen.append)
    controller.remove("s1")
    assert seen == []
