import logging

import pytest

from mjml_toolkit.core.exceptions import InvalidRootError, MarkupSyntaxError, MjmlImportError
from mjml_toolkit.core.parser import MjmlParser, normalize_text_content, parse_mjml
from mjml_toolkit.core.registry import BlockType
from mjml_toolkit.core.tree import collect_ids, find_blocks_by_type

BASIC = ("<mjml><mj-body><mj-section><mj-column><mj-text>Hello World</mj-text>"
         "</mj-column></mj-section></mj-body></mjml>")


def _first(tree, block_type):
    return find_blocks_by_type(tree, block_type)[0]


class TestBasicParse:

    def test_four_levels_and_wrapped_text(self):
        tree = parse_mjml(BASIC)
        assert tree.type is BlockType.MJML
        body = tree.children[0]
        section = body.children[0]
        column = section.children[0]
        text = column.children[0]
        assert [b.type for b in (body, section, column, text)] == [
            BlockType.BODY, BlockType.SECTION, BlockType.COLUMN, BlockType.TEXT,
        ]
        assert text.content == "<p>Hello World</p>"
        assert text.children is None

    def test_button_content_is_not_wrapped(self):
        tree = parse_mjml("<mjml><mj-body><mj-section><mj-column>"
                          "<mj-button href=\"#\">Click me</mj-button>"
                          "</mj-column></mj-section></mj-body></mjml>")
        assert _first(tree, BlockType.BUTTON).content == "Click me"

    def test_attributes_are_camel_cased(self):
        tree = parse_mjml('<mjml><mj-body background-color="#fff"><mj-section padding-top="4px" /></mj-body></mjml>')
        assert tree.children[0].attributes == {"backgroundColor": "#fff"}
        assert _first(tree, BlockType.SECTION).attributes == {"paddingTop": "4px"}

    def test_every_block_gets_a_unique_id(self, sample_mjml):
        tree = parse_mjml(sample_mjml)
        blocks = list(tree.depth_first())
        assert len(collect_ids(tree)) == len(blocks)

    def test_ids_differ_between_parses(self):
        assert collect_ids(parse_mjml(BASIC)).isdisjoint(collect_ids(parse_mjml(BASIC)))

    def test_empty_root_has_absent_children(self):
        assert parse_mjml("<mjml></mjml>").children is None
        assert parse_mjml("<mjml/>").children is None

    def test_self_closing_leaf(self):
        tree = parse_mjml('<mjml><mj-head><mj-font name="Roboto" href="https://f.test/r" /></mj-head></mjml>')
        font = _first(tree, BlockType.FONT)
        assert font.attributes == {"name": "Roboto", "href": "https://f.test/r"}
        assert font.children is None
        assert font.content is None


class TestContentHandling:

    def test_text_with_block_markup_is_kept(self):
        tree = parse_mjml("<mjml><mj-body><mj-section><mj-column>"
                          "<mj-text><h1>Title</h1><p>Body</p></mj-text>"
                          "</mj-column></mj-section></mj-body></mjml>")
        assert _first(tree, BlockType.TEXT).content == "<h1>Title</h1><p>Body</p>"

    def test_content_is_trimmed(self):
        tree = parse_mjml("<mjml><mj-head><mj-title>\n   Hi  \n</mj-title></mj-head></mjml>")
        assert _first(tree, BlockType.TITLE).content == "Hi"

    def test_empty_content_is_absent(self):
        tree = parse_mjml("<mjml><mj-body><mj-section><mj-column><mj-text>  </mj-text>"
                          "</mj-column></mj-section></mj-body></mjml>")
        assert _first(tree, BlockType.TEXT).content is None

    def test_html_entities_and_loose_html_survive(self):
        tree = parse_mjml("<mjml><mj-body><mj-section><mj-column>"
                          "<mj-text><p>A&nbsp;B<br></p></mj-text>"
                          "</mj-column></mj-section></mj-body></mjml>")
        assert _first(tree, BlockType.TEXT).content == "<p>A&nbsp;B<br></p>"

    def test_style_content_is_verbatim(self):
        css = ".a > .b { color: red; }"
        tree = parse_mjml(f"<mjml><mj-head><mj-style inline=\"inline\">{css}</mj-style></mj-head></mjml>")
        style = _first(tree, BlockType.STYLE)
        assert style.content == css
        assert style.attributes == {"inline": "inline"}

    def test_raw_is_opaque_at_any_depth(self):
        inner = "<table><tr><td>x</td></tr></table>"
        tree = parse_mjml(
            "<mjml><mj-body><mj-wrapper><mj-section><mj-column>"
            f"<mj-raw>{inner}</mj-raw>"
            "</mj-column></mj-section></mj-wrapper></mj-body></mjml>"
        )
        raw = _first(tree, BlockType.RAW)
        assert raw.content == inner
        assert raw.children is None

    def test_raw_with_comment_and_nested_raw_tag_name(self):
        inner = "<!-- </mj-raw> --><div>ok</div>"
        tree = parse_mjml(f"<mjml><mj-body><mj-raw>{inner}</mj-raw></mj-body></mjml>")
        assert _first(tree, BlockType.RAW).content == inner

    def test_attributes_block_is_kept_as_content(self):
        tree = parse_mjml('<mjml><mj-head><mj-attributes><mj-all font-family="Arial" />'
                          '<mj-text color="red" /></mj-attributes></mj-head></mjml>')
        holder = _first(tree, BlockType.ATTRIBUTES)
        assert holder.content == '<mj-all font-family="Arial" /><mj-text color="red" />'
        assert not find_blocks_by_type(tree, BlockType.TEXT)

    def test_ampersands_in_content_attributes_are_repaired(self):
        tree = parse_mjml('<mjml><mj-body><mj-section><mj-column>'
                          '<mj-button href="https://x.test/?a=1&b=2">Go</mj-button>'
                          '</mj-column></mj-section></mj-body></mjml>')
        assert _first(tree, BlockType.BUTTON).attributes["href"] == "https://x.test/?a=1&b=2"

    def test_duplicate_attributes_last_wins(self):
        tree = parse_mjml('<mjml><mj-body><mj-section padding="1px" padding="2px" /></mj-body></mjml>')
        assert _first(tree, BlockType.SECTION).attributes == {"padding": "2px"}


class TestNormalizeTextContent:

    @pytest.mark.parametrize("content, expected", [
        ("Hello", "<p>Hello</p>"),
        ("<strong>Bold</strong> text", "<p><strong>Bold</strong> text</p>"),
        ("<p>Already</p>", "<p>Already</p>"),
        ("Intro <div>block</div>", "Intro <div>block</div>"),
        ("<UL><li>a</li></UL>", "<UL><li>a</li></UL>"),
        ("<pre>x</pre>", "<pre>x</pre>"),
        ("<span>inline</span>", "<p><span>inline</span></p>"),
        ("<picture>x</picture>", "<p><picture>x</picture></p>"),
    ])
    def test_wrapping(self, content, expected):
        assert normalize_text_content(content) == expected

    def test_configured_block_tags(self):
        parser = MjmlParser(text_block_tags=["section"])
        tree = parser.parse("<mjml><mj-body><mj-section><mj-column><mj-text><section>s</section></mj-text>"
                            "</mj-column></mj-section></mj-body></mjml>")
        assert _first(tree, BlockType.TEXT).content == "<section>s</section>"


class TestErrors:

    def test_unclosed_tag(self):
        with pytest.raises(MarkupSyntaxError) as excinfo:
            parse_mjml("<mjml><mj-body><mj-section></mj-body></mjml>")
        assert str(excinfo.value).startswith("Invalid MJML syntax:")
        assert excinfo.value.cause is not None

    def test_unclosed_content_tag(self):
        with pytest.raises(MarkupSyntaxError):
            parse_mjml("<mjml><mj-body><mj-section><mj-column><mj-text>Hi</mj-column></mj-section></mj-body></mjml>")

    def test_empty_document(self):
        with pytest.raises(MarkupSyntaxError):
            parse_mjml("   ")

    def test_wrong_root(self):
        with pytest.raises(InvalidRootError) as excinfo:
            parse_mjml("<html><body /></html>")
        assert str(excinfo.value) == "Root element must be <mjml>, got <html>"
        assert excinfo.value.root_tag == "html"

    def test_errors_share_import_base(self):
        assert issubclass(MarkupSyntaxError, MjmlImportError)
        assert issubclass(InvalidRootError, MjmlImportError)

    def test_non_string_input(self):
        with pytest.raises(TypeError):
            parse_mjml(b"<mjml/>")


class TestUnknownElements:

    def test_unknown_elements_are_skipped_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="mjml_toolkit.core.parser.mjml_parser"):
            tree = parse_mjml("<mjml><mj-body><mj-hero><mj-text>x</mj-text></mj-hero>"
                              "<mj-section /></mj-body></mjml>")
        assert [child.type for child in tree.children[0].children] == [BlockType.SECTION]
        assert "mj-hero" in caplog.text

    def test_strict_mode_raises(self):
        with pytest.raises(MjmlImportError):
            MjmlParser(skip_unknown_elements=False).parse("<mjml><mj-hero /></mjml>")

    def test_comments_are_ignored(self):
        tree = parse_mjml("<mjml><!-- note --><mj-body><!-- x --></mj-body></mjml>")
        assert [child.type for child in tree.children] == [BlockType.BODY]
        assert tree.children[0].children is None
