from __future__ import annotations

"""Build an :class:`EmailBlock` tree from MJML markup.

The parser is lenient where hand-edited templates usually go wrong and strict
where the document is genuinely broken:

- ``preprocess_mjml`` repairs bare ampersands and duplicate attributes first.
- The inner markup of content-bearing blocks (``mj-text``, ``mj-button``,
  ``mj-raw``, ``mj-style`` ...) is lifted out of the source *before* XML
  parsing and kept verbatim. It therefore does not have to be well-formed
  XML and HTML entities such as ``&nbsp;`` survive untouched.
- Whatever remains must be well-formed XML with an ``<mjml>`` root, otherwise
  :class:`MarkupSyntaxError` or :class:`InvalidRootError` is raised.

Each block receives a fresh id; markup never carries ids.
"""

import logging
import re
from typing import Iterable, List, Optional, Tuple

from lxml import etree as ET  # type: ignore

from mjml_toolkit.config import ConfigManager
from mjml_toolkit.core.exceptions import InvalidRootError, MarkupSyntaxError, MjmlImportError
from mjml_toolkit.core.models import EmailBlock
from mjml_toolkit.core.parser.preprocessor import TAG_PATTERN, preprocess_mjml
from mjml_toolkit.core.registry import ROOT_TYPE, BlockType, is_content_type
from mjml_toolkit.core.utils import generate_block_id, kebab_to_camel

__all__ = ["MjmlParser", "parse_mjml", "normalize_text_content"]

logger = logging.getLogger(__name__)

_CONTENT_PI = "mjml-content"
_CONTENT_TAGS = frozenset(t.value for t in BlockType if is_content_type(t))

_DEFAULT_BLOCK_TAGS = ("p", "div", "h1", "h2", "h3", "h4", "h5", "h6",
                       "ul", "ol", "table", "blockquote", "pre")


def _block_tag_pattern(block_tags: Iterable[str]) -> "re.Pattern[str]":
    names = "|".join(re.escape(tag) for tag in block_tags)
    return re.compile(rf"<(?:{names})(?=[\s/>])", re.IGNORECASE)


def normalize_text_content(content: str, block_tags: Iterable[str] = _DEFAULT_BLOCK_TAGS) -> str:
    """Wrap bare ``mj-text`` content in a paragraph.

    Content that starts with, or anywhere contains, a block-level HTML tag is
    returned unchanged.
    """
    if _block_tag_pattern(block_tags).search(content):
        return content
    return f"<p>{content}</p>"


class MjmlParser:
    """Convert MJML source text into a block tree.

    Parameters
    ----------
    skip_unknown_elements
        Drop tags missing from the registry with a warning instead of failing.
        Defaults to ``parser.skip_unknown_elements`` from ``editor.yml``.
    text_block_tags
        Tags that exempt ``mj-text`` content from paragraph wrapping.
        Defaults to ``text.block_tags`` from ``editor.yml``.
    """

    def __init__(self, skip_unknown_elements: Optional[bool] = None,
                 text_block_tags: Optional[Iterable[str]] = None) -> None:
        config = ConfigManager()
        if skip_unknown_elements is None:
            skip_unknown_elements = bool(config.get("parser", "skip_unknown_elements", True))
        if text_block_tags is None:
            text_block_tags = config.get("text", "block_tags", None) or _DEFAULT_BLOCK_TAGS
        self.skip_unknown_elements = skip_unknown_elements
        self.text_block_tags: Tuple[str, ...] = tuple(text_block_tags)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def parse(self, markup: str) -> EmailBlock:
        """Parse *markup* and return the root ``mjml`` block.

        Raises
        ------
        MarkupSyntaxError
            The text is not well-formed even after preprocessing.
        InvalidRootError
            The root element is not ``<mjml>``.
        """
        if not isinstance(markup, str):
            raise TypeError(f"MJML markup must be a string, got {type(markup).__name__}")

        repaired = preprocess_mjml(markup).strip()
        if not repaired:
            raise MarkupSyntaxError("Invalid MJML syntax: document is empty", source=markup)
        lifted, contents = _lift_contents(repaired)

        parser = ET.XMLParser(resolve_entities=False, no_network=True)
        try:
            root = ET.fromstring(lifted.encode("utf-8"), parser)
        except ET.XMLSyntaxError as exc:
            line, column = (exc.position if exc.position else (None, None))
            raise MarkupSyntaxError(
                f"Invalid MJML syntax: {exc.msg or exc}", source=markup, cause=exc,
                line=line, column=column,
            ) from exc

        if root.tag != ROOT_TYPE.value:
            raise InvalidRootError(str(root.tag), source=markup)

        block = self._convert(root, contents, source=markup)
        logger.debug("Parsed MJML document: %d blocks", sum(1 for _ in block.depth_first()))
        return block

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _convert(self, element, contents: List[str], source: str) -> Optional[EmailBlock]:
        tag = element.tag
        if not isinstance(tag, str):
            return None  # comment or processing instruction
        try:
            block_type = BlockType(tag)
        except ValueError:
            if not self.skip_unknown_elements:
                raise MjmlImportError(f"Unknown MJML element <{tag}> (line {element.sourceline})",
                                      source=source) from None
            logger.warning("Skipping unknown MJML element <%s> (line %s)", tag, element.sourceline)
            return None

        attributes = {kebab_to_camel(name): value for name, value in element.attrib.items()}

        content: Optional[str] = None
        children: Optional[Tuple[EmailBlock, ...]] = None
        if is_content_type(block_type):
            content = _captured_content(element, contents)
            if content is not None and block_type is BlockType.TEXT:
                content = normalize_text_content(content, self.text_block_tags)
        else:
            converted = [self._convert(child, contents, source) for child in element]
            converted = [block for block in converted if block is not None]
            children = tuple(converted) if converted else None

        return EmailBlock(
            id=generate_block_id(),
            type=block_type,
            attributes=attributes,
            content=content,
            children=children,
        )


def _captured_content(element, contents: List[str]) -> Optional[str]:
    for child in element:
        if child.tag is ET.PI and child.target == _CONTENT_PI:
            text = contents[int(child.text)].strip()
            return text or None
    return None


def _closing_pattern(name: str) -> "re.Pattern[str]":
    escaped = re.escape(name)
    return re.compile(
        rf"(?P<comment><!--.*?-->)|<(?P<close>/)?{escaped}(?=[\s/>])[^>]*?(?P<self>/)?>",
        re.DOTALL,
    )


def _find_closing(text: str, name: str, start: int) -> Optional[Tuple[int, int]]:
    """Return ``(inner_end, close_end)`` for the tag opened just before *start*."""
    pattern = _closing_pattern(name)
    depth = 1
    pos = start
    while True:
        match = pattern.search(text, pos)
        if match is None:
            return None
        pos = match.end()
        if match.group("comment") or match.group("self"):
            continue
        depth += -1 if match.group("close") else 1
        if depth == 0:
            return match.start(), match.end()


def _lift_contents(text: str) -> Tuple[str, List[str]]:
    """Swap the inner markup of content blocks for numbered processing instructions."""
    parts: List[str] = []
    contents: List[str] = []
    pos = 0
    while True:
        match = TAG_PATTERN.search(text, pos)
        if match is None:
            break
        name = match.group("tag")
        self_closing = not match.group("comment") and match.group("tail").rstrip(">").strip() == "/"
        if match.group("comment") or self_closing or name not in _CONTENT_TAGS:
            parts.append(text[pos:match.end()])
            pos = match.end()
            continue
        span = _find_closing(text, name, match.end())
        if span is None:
            # Unclosed: leave it for the XML parser to report.
            parts.append(text[pos:match.end()])
            pos = match.end()
            continue
        inner_end, close_end = span
        parts.append(text[pos:match.end()])
        parts.append(f"<?{_CONTENT_PI} {len(contents)}?>")
        contents.append(text[match.end():inner_end])
        parts.append(text[inner_end:close_end])
        pos = close_end
    parts.append(text[pos:])
    return "".join(parts), contents


def parse_mjml(markup: str) -> EmailBlock:
    """Parse *markup* with a default-configured :class:`MjmlParser`."""
    return MjmlParser().parse(markup)
