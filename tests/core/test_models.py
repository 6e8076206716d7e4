import json

import pytest

from mjml_toolkit.core.exceptions import BlockFormatError
from mjml_toolkit.core.models import EmailBlock, normalize_attribute_value
from mjml_toolkit.core.registry import BlockType

from tests.conftest import block_tree_dict


class TestEmailBlock:

    def test_type_is_coerced_from_tag_name(self):
        block = EmailBlock(id="x", type="mj-text", content="<p>Hi</p>")
        assert block.type is BlockType.TEXT

    def test_children_are_stored_as_tuple(self):
        child = EmailBlock(id="c", type=BlockType.COLUMN)
        block = EmailBlock(id="s", type=BlockType.SECTION, children=[child])
        assert block.children == (child,)
        assert block.has_children()

    def test_blocks_are_frozen(self):
        block = EmailBlock(id="x", type=BlockType.SPACER)
        with pytest.raises(Exception):
            block.id = "y"

    def test_caller_dict_is_not_shared(self):
        attributes = {"height": "20px"}
        block = EmailBlock(id="x", type=BlockType.SPACER, attributes=attributes)
        attributes["height"] = "99px"
        assert block.attributes == {"height": "20px"}
        assert block.evolve(attributes=attributes).attributes is not attributes

    def test_absent_and_empty_children_both_mean_no_children(self):
        assert EmailBlock(id="a", type=BlockType.BODY).child_list == ()
        assert not EmailBlock(id="b", type=BlockType.BODY, children=()).has_children()

    def test_depth_first_order(self, tree):
        ids = [block.id for block in tree.depth_first()]
        assert ids[:5] == ["root", "head", "font", "style", "body"]
        assert ids.index("c1") < ids.index("t1") < ids.index("c2")

    def test_evolve_leaves_original_untouched(self):
        block = EmailBlock(id="x", type=BlockType.TEXT, content="a")
        changed = block.evolve(content="b")
        assert block.content == "a"
        assert changed.content == "b"
        assert changed.id == "x"


class TestDictForm:

    def test_to_dict_round_trip(self, tree):
        data = tree.to_dict()
        assert data == block_tree_dict()
        assert EmailBlock.from_dict(data) == tree

    def test_absent_keys_are_omitted(self):
        data = EmailBlock(id="s", type=BlockType.SPACER).to_dict()
        assert data == {"id": "s", "type": "mj-spacer"}

    def test_json_round_trip(self, tree):
        text = tree.to_json(indent=2)
        assert json.loads(text)["type"] == "mjml"
        assert EmailBlock.from_json(text) == tree

    def test_missing_ids_are_generated(self):
        block = EmailBlock.from_dict({"type": "mj-section", "children": [{"type": "mj-column"}]})
        assert block.id
        assert block.children[0].id
        assert block.id != block.children[0].id

    def test_attribute_values_are_normalized(self):
        block = EmailBlock.from_dict({
            "type": "mj-image",
            "attributes": {"fluidOnMobile": True, "width": 300, "alt": None},
        })
        assert block.attributes == {"fluidOnMobile": "true", "width": "300"}

    @pytest.mark.parametrize("data, fragment", [
        ({"type": "mj-hero"}, "Unknown block type"),
        ({"type": "mj-text", "content": 3}, "content must be a string"),
        ({"type": "mj-body", "children": {}}, "children must be an array"),
        ({"type": "mj-text", "attributes": []}, "attributes must be an object"),
        ({"type": "mj-text", "attributes": ""}, "attributes must be an object"),
        ({"type": "mj-text", "attributes": {"color": ["red"]}}, "Unsupported attribute value"),
    ])
    def test_malformed_input_raises(self, data, fragment):
        with pytest.raises(BlockFormatError) as excinfo:
            EmailBlock.from_dict(data)
        assert fragment in str(excinfo.value)

    def test_error_reports_path(self):
        with pytest.raises(BlockFormatError) as excinfo:
            EmailBlock.from_dict({"type": "mjml", "children": [{"type": "mj-body"}, {"type": "nope"}]})
        assert excinfo.value.path == "$.children[1]"

    def test_invalid_json(self):
        with pytest.raises(BlockFormatError):
            EmailBlock.from_json("{not json")


def test_normalize_attribute_value():
    assert normalize_attribute_value(False) == "false"
    assert normalize_attribute_value(1.5) == "1.5"
    assert normalize_attribute_value("10px") == "10px"
    assert normalize_attribute_value(None) is None
