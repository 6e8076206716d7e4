from __future__ import annotations

"""Static block type registry.

Single data-driven table describing the MJML vocabulary understood by the
toolkit: which block types may parent which, which types are leaves, which
carry a content string, and the default attribute values applied when a block
is created from scratch.

Lookups are pure and side-effect-free. Passing an unknown type is a caller
programming error and raises ``KeyError`` / ``ValueError`` like any mapping.
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional, Type

from mjml_toolkit.core import attributes as _attrs

__all__ = [
    "BlockType",
    "ROOT_TYPE",
    "COLUMN_CONTAINER_TYPES",
    "allowed_children",
    "can_drop",
    "is_leaf",
    "is_container",
    "is_content_type",
    "is_opaque_type",
    "default_attributes",
    "default_content",
    "attribute_schema",
    "display_name",
    "category",
    "coerce_block_type",
]


class BlockType(str, Enum):
    """MJML tag names supported by the block tree."""

    MJML = "mjml"
    HEAD = "mj-head"
    BODY = "mj-body"
    WRAPPER = "mj-wrapper"
    SECTION = "mj-section"
    COLUMN = "mj-column"
    GROUP = "mj-group"
    TEXT = "mj-text"
    BUTTON = "mj-button"
    IMAGE = "mj-image"
    DIVIDER = "mj-divider"
    SPACER = "mj-spacer"
    SOCIAL = "mj-social"
    SOCIAL_ELEMENT = "mj-social-element"
    TITLE = "mj-title"
    PREVIEW = "mj-preview"
    FONT = "mj-font"
    STYLE = "mj-style"
    BREAKPOINT = "mj-breakpoint"
    ATTRIBUTES = "mj-attributes"
    HTML_ATTRIBUTES = "mj-html-attributes"
    RAW = "mj-raw"

    def __str__(self) -> str:
        return self.value


ROOT_TYPE = BlockType.MJML

# Containers whose direct mj-column children share 100% of the width.
COLUMN_CONTAINER_TYPES: FrozenSet[BlockType] = frozenset({BlockType.SECTION, BlockType.GROUP})

_VALID_CHILDREN: Dict[BlockType, FrozenSet[BlockType]] = {
    BlockType.MJML: frozenset({BlockType.HEAD, BlockType.BODY}),
    BlockType.BODY: frozenset({BlockType.WRAPPER, BlockType.SECTION, BlockType.RAW}),
    BlockType.WRAPPER: frozenset({BlockType.SECTION, BlockType.RAW}),
    BlockType.SECTION: frozenset({BlockType.COLUMN, BlockType.GROUP, BlockType.RAW}),
    BlockType.GROUP: frozenset({BlockType.COLUMN}),
    BlockType.COLUMN: frozenset({
        BlockType.TEXT,
        BlockType.BUTTON,
        BlockType.IMAGE,
        BlockType.DIVIDER,
        BlockType.SPACER,
        BlockType.SOCIAL,
        BlockType.RAW,
    }),
    BlockType.SOCIAL: frozenset({BlockType.SOCIAL_ELEMENT}),
    BlockType.HEAD: frozenset({
        BlockType.ATTRIBUTES,
        BlockType.BREAKPOINT,
        BlockType.FONT,
        BlockType.HTML_ATTRIBUTES,
        BlockType.PREVIEW,
        BlockType.STYLE,
        BlockType.TITLE,
        BlockType.RAW,
    }),
    # Leaves
    BlockType.TEXT: frozenset(),
    BlockType.BUTTON: frozenset(),
    BlockType.IMAGE: frozenset(),
    BlockType.DIVIDER: frozenset(),
    BlockType.SPACER: frozenset(),
    BlockType.SOCIAL_ELEMENT: frozenset(),
    BlockType.TITLE: frozenset(),
    BlockType.PREVIEW: frozenset(),
    BlockType.FONT: frozenset(),
    BlockType.STYLE: frozenset(),
    BlockType.BREAKPOINT: frozenset(),
    BlockType.ATTRIBUTES: frozenset(),
    BlockType.HTML_ATTRIBUTES: frozenset(),
    BlockType.RAW: frozenset(),
}

# Leaf types holding a content string. Their inner markup is kept as an opaque
# string and never parsed into children.
_CONTENT_TYPES: FrozenSet[BlockType] = frozenset({
    BlockType.TEXT,
    BlockType.BUTTON,
    BlockType.SOCIAL_ELEMENT,
    BlockType.RAW,
    BlockType.TITLE,
    BlockType.PREVIEW,
    BlockType.STYLE,
    BlockType.ATTRIBUTES,
    BlockType.HTML_ATTRIBUTES,
})

_DEFAULT_ATTRIBUTES: Dict[BlockType, Dict[str, str]] = {
    BlockType.TEXT: {
        "fontSize": "14px",
        "lineHeight": "1.5",
        "color": "#000000",
    },
    BlockType.BUTTON: {
        "backgroundColor": "#414141",
        "color": "#ffffff",
        "fontSize": "13px",
        "fontWeight": "bold",
        "borderRadius": "3px",
        "paddingTop": "10px",
        "paddingRight": "25px",
        "paddingBottom": "10px",
        "paddingLeft": "25px",
    },
    BlockType.IMAGE: {
        "align": "center",
        "fluidOnMobile": "true",
    },
    BlockType.DIVIDER: {
        "borderColor": "#000000",
        "borderStyle": "solid",
        "borderWidth": "4px",
        "width": "100%",
    },
    BlockType.SPACER: {
        "height": "20px",
    },
    BlockType.SECTION: {
        "paddingTop": "20px",
        "paddingRight": "0px",
        "paddingBottom": "20px",
        "paddingLeft": "0px",
    },
    BlockType.COLUMN: {
        "paddingTop": "0px",
        "paddingRight": "0px",
        "paddingBottom": "0px",
        "paddingLeft": "0px",
    },
}

_DEFAULT_CONTENT: Dict[BlockType, str] = {
    BlockType.TEXT: "<p>New text</p>",
    BlockType.BUTTON: "New button",
    BlockType.SOCIAL_ELEMENT: "New social element",
    BlockType.TITLE: "New title",
    BlockType.PREVIEW: "New preview",
    BlockType.RAW: "<!-- raw HTML -->",
}

_ATTRIBUTE_SCHEMAS: Dict[BlockType, Type] = {
    BlockType.MJML: _attrs.NoAttributes,
    BlockType.HEAD: _attrs.NoAttributes,
    BlockType.BODY: _attrs.BodyAttributes,
    BlockType.WRAPPER: _attrs.WrapperAttributes,
    BlockType.SECTION: _attrs.SectionAttributes,
    BlockType.COLUMN: _attrs.ColumnAttributes,
    BlockType.GROUP: _attrs.GroupAttributes,
    BlockType.TEXT: _attrs.TextBlockAttributes,
    BlockType.BUTTON: _attrs.ButtonAttributes,
    BlockType.IMAGE: _attrs.ImageAttributes,
    BlockType.DIVIDER: _attrs.DividerAttributes,
    BlockType.SPACER: _attrs.SpacerAttributes,
    BlockType.SOCIAL: _attrs.SocialAttributes,
    BlockType.SOCIAL_ELEMENT: _attrs.SocialElementAttributes,
    BlockType.TITLE: _attrs.NoAttributes,
    BlockType.PREVIEW: _attrs.NoAttributes,
    BlockType.FONT: _attrs.FontAttributes,
    BlockType.STYLE: _attrs.StyleAttributes,
    BlockType.BREAKPOINT: _attrs.BreakpointAttributes,
    BlockType.ATTRIBUTES: _attrs.NoAttributes,
    BlockType.HTML_ATTRIBUTES: _attrs.NoAttributes,
    BlockType.RAW: _attrs.RawAttributes,
}

_DISPLAY_NAMES: Dict[BlockType, str] = {
    BlockType.MJML: "MJML Document",
    BlockType.HEAD: "Head",
    BlockType.BODY: "Body",
    BlockType.WRAPPER: "Wrapper",
    BlockType.SECTION: "Section",
    BlockType.COLUMN: "Column",
    BlockType.GROUP: "Group",
    BlockType.TEXT: "Text",
    BlockType.BUTTON: "Button",
    BlockType.IMAGE: "Image",
    BlockType.DIVIDER: "Divider",
    BlockType.SPACER: "Spacer",
    BlockType.SOCIAL: "Social",
    BlockType.SOCIAL_ELEMENT: "Social Element",
    BlockType.TITLE: "Title",
    BlockType.PREVIEW: "Preview",
    BlockType.FONT: "Font",
    BlockType.STYLE: "Style",
    BlockType.BREAKPOINT: "Breakpoint",
    BlockType.ATTRIBUTES: "Attributes",
    BlockType.HTML_ATTRIBUTES: "HTML Attributes",
    BlockType.RAW: "Raw HTML",
}

_CATEGORIES: Dict[BlockType, str] = {
    BlockType.MJML: "Document",
    BlockType.HEAD: "Document",
    BlockType.BODY: "Document",
    BlockType.WRAPPER: "Layout",
    BlockType.SECTION: "Layout",
    BlockType.COLUMN: "Layout",
    BlockType.GROUP: "Layout",
    BlockType.TEXT: "Content",
    BlockType.BUTTON: "Content",
    BlockType.IMAGE: "Content",
    BlockType.DIVIDER: "Spacing",
    BlockType.SPACER: "Spacing",
    BlockType.SOCIAL: "Social",
    BlockType.SOCIAL_ELEMENT: "Social",
    BlockType.TITLE: "Head",
    BlockType.PREVIEW: "Head",
    BlockType.FONT: "Head",
    BlockType.STYLE: "Head",
    BlockType.BREAKPOINT: "Head",
    BlockType.ATTRIBUTES: "Head",
    BlockType.HTML_ATTRIBUTES: "Head",
    BlockType.RAW: "Raw",
}


def coerce_block_type(value) -> BlockType:
    """Return *value* as a :class:`BlockType` (accepts enum members or tag names)."""
    if isinstance(value, BlockType):
        return value
    return BlockType(value)


def allowed_children(block_type) -> FrozenSet[BlockType]:
    """Block types permitted as direct children of *block_type*."""
    return _VALID_CHILDREN[coerce_block_type(block_type)]


def can_drop(child_type, parent_type) -> bool:
    """Return True if *child_type* may be placed directly under *parent_type*."""
    return coerce_block_type(child_type) in allowed_children(parent_type)


def is_leaf(block_type) -> bool:
    """Leaf types can never have children."""
    return not allowed_children(block_type)


def is_container(block_type) -> bool:
    return not is_leaf(block_type)


def is_content_type(block_type) -> bool:
    """Leaf types that carry a ``content`` string."""
    return coerce_block_type(block_type) in _CONTENT_TYPES


def is_opaque_type(block_type) -> bool:
    """Types whose inner markup is stored verbatim instead of parsed."""
    return is_content_type(block_type)


def default_attributes(block_type) -> Dict[str, str]:
    """Return a fresh copy of the default attributes for *block_type*."""
    return dict(_DEFAULT_ATTRIBUTES.get(coerce_block_type(block_type), {}))


def default_content(block_type) -> Optional[str]:
    return _DEFAULT_CONTENT.get(coerce_block_type(block_type))


def attribute_schema(block_type) -> Type:
    """``TypedDict`` schema describing the attributes of *block_type*."""
    return _ATTRIBUTE_SCHEMAS[coerce_block_type(block_type)]


def display_name(block_type) -> str:
    return _DISPLAY_NAMES[coerce_block_type(block_type)]


def category(block_type) -> str:
    return _CATEGORIES.get(coerce_block_type(block_type), "Other")
