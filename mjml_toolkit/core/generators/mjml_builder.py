from __future__ import annotations

"""Serialize an :class:`EmailBlock` tree back to MJML markup.

The output is text rather than an lxml tree because block content is kept
verbatim and is not required to be well-formed XML.
"""

import logging
import re
from typing import List

from mjml_toolkit.core.exceptions import StructureValidationError
from mjml_toolkit.core.models import EmailBlock
from mjml_toolkit.core.utils import camel_to_kebab
from mjml_toolkit.core.validator import validate_document

__all__ = ["build_mjml", "escape_attribute_value"]

logger = logging.getLogger(__name__)

_INDENT = "  "
_URL_ATTRIBUTES = frozenset({"href", "src", "action"})
_ABSOLUTE_URL = re.compile(r"^(?:https?:)?//", re.IGNORECASE)
_BARE_AMPERSAND = re.compile(r"&(?!(?:amp|lt|gt|quot|apos|#\d+|#x[0-9a-fA-F]+);)")


def escape_attribute_value(name: str, value: str) -> str:
    """Escape *value* for use inside a double-quoted attribute.

    Absolute URLs of ``href``/``src``/``action`` keep their ``&`` separators
    as authored; everywhere else bare ampersands become ``&amp;``.
    """
    if not (name in _URL_ATTRIBUTES and _ABSOLUTE_URL.match(value)):
        value = _BARE_AMPERSAND.sub("&amp;", value)
    return (value.replace("\"", "&quot;")
                 .replace("'", "&#39;")
                 .replace("<", "&lt;")
                 .replace(">", "&gt;"))


def _attributes(block: EmailBlock) -> str:
    parts = []
    for key, value in block.attributes.items():
        if value is None or value == "":
            continue
        name = camel_to_kebab(key)
        parts.append(f' {name}="{escape_attribute_value(name, str(value))}"')
    return "".join(parts)


def _render(block: EmailBlock, depth: int, pretty: bool, lines: List[str]) -> None:
    pad = _INDENT * depth if pretty else ""
    tag = block.type.value
    attrs = _attributes(block)

    if block.children:
        lines.append(f"{pad}<{tag}{attrs}>")
        for child in block.children:
            _render(child, depth + 1, pretty, lines)
        lines.append(f"{pad}</{tag}>")
    elif block.content:
        lines.append(f"{pad}<{tag}{attrs}>{block.content}</{tag}>")
    else:
        lines.append(f"{pad}<{tag}{attrs} />")


def build_mjml(tree: EmailBlock, *, pretty: bool = True,
               include_xml_declaration: bool = False, validate: bool = False) -> str:
    """Return MJML markup for *tree*.

    Parameters
    ----------
    tree
        Root block, normally of type ``mjml``.
    pretty
        Indent nested tags by two spaces, one tag per line.
    include_xml_declaration
        Prefix the output with ``<?xml version="1.0" encoding="UTF-8"?>``.
    validate
        Run :func:`validate_document` first and raise
        :class:`StructureValidationError` on any violation.
    """
    if validate:
        violations = validate_document(tree)
        if violations:
            raise StructureValidationError("Cannot build MJML from an invalid tree", violations)

    lines: List[str] = []
    if include_xml_declaration:
        lines.append('<?xml version="1.0" encoding="UTF-8"?>')
    _render(tree, 0, pretty, lines)
    markup = ("\n" if pretty else "").join(lines)
    logger.debug("Built MJML document: %d characters", len(markup))
    return markup
