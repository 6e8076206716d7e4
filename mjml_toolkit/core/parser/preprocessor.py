from __future__ import annotations

"""Text-level repairs applied to MJML markup before XML parsing.

Hand-edited MJML is frequently *almost* XML: query strings carry bare ``&``
characters and copy/paste leaves the same attribute twice on one tag. Both
make a strict XML parser reject the whole document. The helpers below rewrite
only the attribute portion of opening (and self-closing) tags, leaving text
nodes, comments and CDATA sections exactly as authored.

All passes are idempotent: ``preprocess_mjml(preprocess_mjml(x)) ==
preprocess_mjml(x)``.
"""

import re
from typing import Callable, List, Match

__all__ = [
    "TAG_PATTERN",
    "ATTRIBUTE_PATTERN",
    "preprocess_mjml",
    "repair_ampersands",
    "collapse_duplicate_attributes",
]

# One attribute with its leading whitespace. Values may be double quoted,
# single quoted or bare.
_ATTRIBUTE_SOURCE = (
    r"(?P<lead>\s+)(?P<name>[^\s=/>\"'<]+)"
    r"(?:(?P<eq>\s*=\s*)(?P<value>\"[^\"]*\"|'[^']*'|[^\s>\"'<]+))?"
)
ATTRIBUTE_PATTERN = re.compile(_ATTRIBUTE_SOURCE)

# Opening or self-closing tag. Comments and CDATA are matched first so that
# markup inside them is never rewritten.
TAG_PATTERN = re.compile(
    r"(?P<comment><!--.*?-->|<!\[CDATA\[.*?\]\]>)"
    r"|<(?P<tag>[A-Za-z][\w:.-]*)"
    r"(?P<attrs>(?:\s+[^\s=/>\"'<]+(?:\s*=\s*(?:\"[^\"]*\"|'[^']*'|[^\s>\"'<]+))?)*)"
    r"(?P<tail>\s*/?>)",
    re.DOTALL,
)

_BARE_AMPERSAND = re.compile(r"&(?!(?:amp|lt|gt|quot|apos|#\d+|#x[0-9a-fA-F]+);)")


def _rewrite_tags(markup: str, rewrite: Callable[[List[Match]], str]) -> str:
    def _replace(match: Match) -> str:
        if match.group("comment") or not match.group("attrs"):
            return match.group(0)
        tokens = list(ATTRIBUTE_PATTERN.finditer(match.group("attrs")))
        return f"<{match.group('tag')}{rewrite(tokens)}{match.group('tail')}"

    return TAG_PATTERN.sub(_replace, markup)


def _render(token: Match, value: str | None = None, eq: str | None = None) -> str:
    value = token.group("value") if value is None else value
    if value is None:
        return f"{token.group('lead')}{token.group('name')}"
    return f"{token.group('lead')}{token.group('name')}{eq or token.group('eq')}{value}"


def _escape_value(raw: str) -> str:
    """Escape bare ampersands inside a (possibly quoted) attribute value."""
    if raw[:1] in ("\"", "'"):
        quote = raw[0]
        return f"{quote}{_BARE_AMPERSAND.sub('&amp;', raw[1:-1])}{quote}"
    # Unquoted values are not legal XML; quote them while we are here.
    return f"\"{_BARE_AMPERSAND.sub('&amp;', raw)}\""


def _repair_tokens(tokens: List[Match]) -> str:
    parts = []
    for token in tokens:
        raw = token.group("value")
        parts.append(_render(token, _escape_value(raw) if raw is not None else None))
    return "".join(parts)


def _collapse_tokens(tokens: List[Match]) -> str:
    last_value = {}
    for token in tokens:
        last_value[token.group("name")] = token

    parts = []
    emitted = set()
    for token in tokens:
        name = token.group("name")
        if name in emitted:
            continue
        emitted.add(name)
        winner = last_value[name]
        if winner is token:
            parts.append(_render(token))
        elif winner.group("value") is None:
            parts.append(f"{token.group('lead')}{name}")
        else:
            parts.append(_render(token, winner.group("value"), winner.group("eq")))
    return "".join(parts)


def repair_ampersands(markup: str) -> str:
    """Rewrite bare ``&`` in attribute values to ``&amp;``.

    Well-formed entity references (``&amp;``, ``&lt;``, ``&gt;``, ``&quot;``,
    ``&apos;``, ``&#123;``, ``&#xAB;``) are left untouched, so the pass never
    double-escapes. Text outside tags is not modified.

    Examples
    --------
    >>> repair_ampersands('<a href="?a=1&b=2">')
    '<a href="?a=1&amp;b=2">'
    """
    return _rewrite_tags(markup, _repair_tokens)


def collapse_duplicate_attributes(markup: str) -> str:
    """Keep one occurrence of each attribute name per tag.

    The surviving attribute takes the value of the *last* occurrence and sits
    at the position of the *first* one, so unrelated attributes keep their
    relative order. Each tag is processed on its own.

    Examples
    --------
    >>> collapse_duplicate_attributes('<x a="1" b="0" a="2">')
    '<x a="2" b="0">'
    """
    return _rewrite_tags(markup, _collapse_tokens)


def preprocess_mjml(markup: str) -> str:
    """Run every repair pass over *markup* and return the result."""
    return repair_ampersands(collapse_duplicate_attributes(markup))
