from __future__ import annotations

"""Shared data structures used across the MJML toolkit core.

This module is intentionally free of I/O so that the contained objects can be
reused in any context (unit-tests, CLI, editors, AI tool handlers).

A document is a tree of :class:`EmailBlock` values. Blocks are immutable:
editing operations build new blocks along the edited path and reuse every
untouched subtree, so a new root reference always means a real change.
"""

import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from mjml_toolkit.core.exceptions import BlockFormatError
from mjml_toolkit.core.registry import BlockType
from mjml_toolkit.core.utils import generate_block_id

__all__ = ["EmailBlock", "normalize_attribute_value"]


def normalize_attribute_value(value: Any) -> Optional[str]:
    """Coerce a JSON attribute value to the string form stored on blocks.

    ``None`` means "unset". Booleans use their lowercase MJML spelling.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value
    raise TypeError(f"Unsupported attribute value type: {type(value).__name__}")


@dataclass(frozen=True)
class EmailBlock:
    """A single node of the email document tree.

    Attributes
    ----------
    id
        Identifier unique within a tree; assigned at creation or clone time.
    type
        The MJML tag this block represents.
    attributes
        camelCase attribute name -> string value. Treat as read-only.
    content
        Inner markup for content-bearing leaf types, else None.
    children
        Ordered child blocks for container types, else None. ``None`` and an
        empty tuple both mean "no children".
    """

    id: str
    type: BlockType
    attributes: Dict[str, str] = field(default_factory=dict)
    content: Optional[str] = None
    children: Optional[Tuple["EmailBlock", ...]] = None

    def __post_init__(self) -> None:
        if not isinstance(self.type, BlockType):
            object.__setattr__(self, "type", BlockType(self.type))
        if self.children is not None and not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))
        object.__setattr__(self, "attributes", dict(self.attributes or {}))

    # ------------------------------------------------------------------ views

    @property
    def child_list(self) -> Tuple["EmailBlock", ...]:
        """Children as a tuple, empty when absent."""
        return self.children or ()

    def has_children(self) -> bool:
        return bool(self.children)

    def depth_first(self) -> Iterator["EmailBlock"]:
        """Traverse the subtree depth-first, yielding self then children."""
        yield self
        for child in self.child_list:
            yield from child.depth_first()

    def evolve(self, **changes: Any) -> "EmailBlock":
        """Return a copy of this block with *changes* applied."""
        return replace(self, **changes)

    # ---------------------------------------------------------- serialization

    def to_dict(self) -> Dict[str, Any]:
        """Return the canonical JSON-serializable form of this subtree."""
        data: Dict[str, Any] = {"id": self.id, "type": self.type.value}
        if self.attributes:
            data["attributes"] = dict(self.attributes)
        if self.content is not None:
            data["content"] = self.content
        if self.children is not None:
            data["children"] = [child.to_dict() for child in self.children]
        return data

    def to_json(self, *, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, _path: str = "$") -> "EmailBlock":
        """Build a block tree from its canonical dict form.

        Missing ids are generated. Attribute values that are ``None`` are
        dropped. Raises :class:`BlockFormatError` on unknown types or shapes.
        """
        if not isinstance(data, Mapping):
            raise BlockFormatError("Block must be an object", _path)

        raw_type = data.get("type")
        try:
            block_type = BlockType(raw_type)
        except ValueError:
            raise BlockFormatError(f"Unknown block type {raw_type!r}", _path) from None

        block_id = data.get("id") or generate_block_id()
        if not isinstance(block_id, str):
            raise BlockFormatError("Block id must be a string", _path)

        raw_attrs = data.get("attributes")
        if raw_attrs is None:
            raw_attrs = {}
        if not isinstance(raw_attrs, Mapping):
            raise BlockFormatError("Block attributes must be an object", _path)
        attributes: Dict[str, str] = {}
        for key, value in raw_attrs.items():
            try:
                normalized = normalize_attribute_value(value)
            except TypeError as exc:
                raise BlockFormatError(f"Attribute {key!r}: {exc}", _path) from None
            if normalized is not None:
                attributes[str(key)] = normalized

        content = data.get("content")
        if content is not None and not isinstance(content, str):
            raise BlockFormatError("Block content must be a string", _path)

        raw_children = data.get("children")
        children: Optional[List[EmailBlock]] = None
        if raw_children is not None:
            if not isinstance(raw_children, list):
                raise BlockFormatError("Block children must be an array", _path)
            children = [
                cls.from_dict(child, _path=f"{_path}.children[{index}]")
                for index, child in enumerate(raw_children)
            ]

        return cls(
            id=block_id,
            type=block_type,
            attributes=attributes,
            content=content,
            children=tuple(children) if children is not None else None,
        )

    @classmethod
    def from_json(cls, text: str) -> "EmailBlock":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise BlockFormatError(f"Invalid JSON: {exc}") from exc
        return cls.from_dict(data)

    def __repr__(self) -> str:
        return f"EmailBlock(type={self.type.value!r}, id={self.id!r}, children={len(self.child_list)})"
