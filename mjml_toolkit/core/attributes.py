from __future__ import annotations

"""Per-type attribute schemas.

Each MJML block type accepts a closed set of camelCase attributes. The schemas
are expressed as ``TypedDict`` classes (all keys optional, all values strings)
so callers and type checkers get a precise view of what a given block type
understands, while blocks themselves keep a plain ``dict`` at runtime.

The registry maps every :class:`~mjml_toolkit.core.registry.BlockType` to one
of these schemas (see ``registry.attribute_schema``).
"""

from typing import FrozenSet, Type, TypedDict

__all__ = [
    "NoAttributes",
    "BodyAttributes",
    "WrapperAttributes",
    "SectionAttributes",
    "ColumnAttributes",
    "GroupAttributes",
    "TextBlockAttributes",
    "ButtonAttributes",
    "ImageAttributes",
    "DividerAttributes",
    "SpacerAttributes",
    "SocialAttributes",
    "SocialElementAttributes",
    "RawAttributes",
    "BreakpointAttributes",
    "FontAttributes",
    "StyleAttributes",
    "schema_keys",
]


# Shared attribute groups -----------------------------------------------------

class PaddingAttributes(TypedDict, total=False):
    padding: str
    paddingTop: str
    paddingRight: str
    paddingBottom: str
    paddingLeft: str


class BorderAttributes(TypedDict, total=False):
    border: str
    borderTop: str
    borderRight: str
    borderBottom: str
    borderLeft: str
    borderRadius: str


class BackgroundAttributes(TypedDict, total=False):
    backgroundColor: str
    backgroundUrl: str
    backgroundRepeat: str
    backgroundSize: str
    backgroundPosition: str
    backgroundPositionX: str
    backgroundPositionY: str


class TextAttributes(TypedDict, total=False):
    align: str
    color: str
    fontFamily: str
    fontSize: str
    fontStyle: str
    fontWeight: str
    letterSpacing: str
    lineHeight: str
    textAlign: str
    textDecoration: str
    textTransform: str


class LayoutAttributes(TypedDict, total=False):
    height: str
    width: str
    verticalAlign: str


class CommonAttributes(TypedDict, total=False):
    cssClass: str
    mjClass: str


class LinkAttributes(TypedDict, total=False):
    href: str
    rel: str
    target: str


class ContainerAttributes(TypedDict, total=False):
    containerBackgroundColor: str


# Block schemas ---------------------------------------------------------------

class NoAttributes(TypedDict, total=False):
    """mjml, mj-head, mj-title, mj-preview, mj-attributes carry no attributes."""


class BodyAttributes(BackgroundAttributes, CommonAttributes, total=False):
    width: str


class WrapperAttributes(BackgroundAttributes, BorderAttributes, PaddingAttributes, CommonAttributes, total=False):
    fullWidth: str
    fullWidthBackgroundColor: str
    textAlign: str


class SectionAttributes(BackgroundAttributes, BorderAttributes, PaddingAttributes, CommonAttributes, total=False):
    direction: str
    fullWidth: str
    textAlign: str


class ColumnAttributes(
    BackgroundAttributes, BorderAttributes, PaddingAttributes, LayoutAttributes, CommonAttributes, total=False
):
    innerBackgroundColor: str
    innerBorderTop: str
    innerBorderRight: str
    innerBorderBottom: str
    innerBorderLeft: str
    innerBorderRadius: str


class GroupAttributes(BackgroundAttributes, LayoutAttributes, CommonAttributes, total=False):
    direction: str


class TextBlockAttributes(
    TextAttributes, PaddingAttributes, LayoutAttributes, ContainerAttributes, CommonAttributes, total=False
):
    pass


class ButtonAttributes(
    TextAttributes,
    BackgroundAttributes,
    BorderAttributes,
    PaddingAttributes,
    LayoutAttributes,
    LinkAttributes,
    ContainerAttributes,
    CommonAttributes,
    total=False,
):
    innerPadding: str


class ImageAttributes(
    BorderAttributes, PaddingAttributes, LayoutAttributes, LinkAttributes, ContainerAttributes, CommonAttributes,
    total=False,
):
    align: str
    alt: str
    fluidOnMobile: str
    name: str
    sizes: str
    src: str
    srcset: str
    title: str
    usemap: str


class DividerAttributes(BorderAttributes, PaddingAttributes, ContainerAttributes, CommonAttributes, total=False):
    align: str
    borderColor: str
    borderStyle: str
    borderWidth: str
    width: str


class SpacerAttributes(PaddingAttributes, ContainerAttributes, CommonAttributes, total=False):
    height: str


class SocialAttributes(PaddingAttributes, ContainerAttributes, CommonAttributes, total=False):
    align: str
    borderRadius: str
    color: str
    fontFamily: str
    fontSize: str
    iconHeight: str
    iconSize: str
    innerPadding: str
    lineHeight: str
    mode: str
    tableLayout: str
    textPadding: str


class SocialElementAttributes(PaddingAttributes, LinkAttributes, CommonAttributes, total=False):
    align: str
    alt: str
    backgroundColor: str
    borderRadius: str
    color: str
    fontFamily: str
    fontSize: str
    fontStyle: str
    fontWeight: str
    iconHeight: str
    iconPadding: str
    iconPosition: str
    iconSize: str
    lineHeight: str
    name: str
    sizes: str
    src: str
    srcset: str
    textDecoration: str
    textPadding: str
    title: str
    verticalAlign: str


class RawAttributes(CommonAttributes, total=False):
    position: str


class BreakpointAttributes(TypedDict, total=False):
    width: str


class FontAttributes(TypedDict, total=False):
    name: str
    href: str


class StyleAttributes(TypedDict, total=False):
    inline: str


def schema_keys(schema: Type) -> FrozenSet[str]:
    """Return every attribute name declared by *schema*, inherited groups included."""
    return frozenset(schema.__required_keys__ | schema.__optional_keys__)
