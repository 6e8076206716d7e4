from __future__ import annotations

"""Simple reusable helper functions.

These helpers are side-effect-free and contain no I/O; they can be used
across all layers of the toolkit.
"""

import re
import uuid

__all__ = [
    "generate_block_id",
    "kebab_to_camel",
    "camel_to_kebab",
    "format_percentage",
]

_KEBAB_SEGMENT = re.compile(r"-([a-z0-9])")
_CAMEL_CAPITAL = re.compile(r"([A-Z])")


def generate_block_id() -> str:
    """Generate a globally unique block identifier (UUID4 string)."""
    return str(uuid.uuid4())


def kebab_to_camel(name: str) -> str:
    """Convert an MJML attribute name to its camelCase form.

    Examples:
        >>> kebab_to_camel("background-color")
        'backgroundColor'
        >>> kebab_to_camel("stroke-dasharray")
        'strokeDasharray'
        >>> kebab_to_camel("href")
        'href'
    """
    return _KEBAB_SEGMENT.sub(lambda m: m.group(1).upper(), name)


def camel_to_kebab(name: str) -> str:
    """Convert a camelCase attribute name back to MJML kebab-case."""
    return _CAMEL_CAPITAL.sub(lambda m: "-" + m.group(1).lower(), name)


def format_percentage(value) -> str:
    """Render a Decimal share as a CSS percentage without trailing zeros.

    ``Decimal("50.00")`` -> ``"50%"``; ``Decimal("33.30")`` -> ``"33.3%"``.
    """
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text}%"
