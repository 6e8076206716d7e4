from __future__ import annotations

"""Pure, structurally-shared operations on :class:`EmailBlock` trees.

Every edit returns a *new* root and never mutates its input. Only the blocks
on the path from the edited block up to the root are rebuilt; all other
subtrees are reused as-is. Consequently ``new_tree is tree`` holds exactly
when an operation changed nothing, which the history relies upon.

Operations whose preconditions fail (unknown id, illegal parent/child pair,
cycle, root removal, second breakpoint) return ``None``. They never raise for
such cases; see :class:`~mjml_toolkit.core.services.TreeEditingService` for
the reason codes reported to callers.
"""

import logging
from decimal import ROUND_DOWN, Decimal
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Set, Tuple

from lxml import etree as ET  # type: ignore

from mjml_toolkit.core.attributes import schema_keys
from mjml_toolkit.core.models import EmailBlock, normalize_attribute_value
from mjml_toolkit.core.registry import (
    COLUMN_CONTAINER_TYPES,
    BlockType,
    attribute_schema,
    can_drop,
    coerce_block_type,
    default_attributes,
    default_content,
    is_content_type,
    is_leaf,
)
from mjml_toolkit.core.utils import format_percentage, generate_block_id, kebab_to_camel

__all__ = [
    "DEFAULT_WIDTH_PRECISION",
    "iter_blocks",
    "iter_with_parents",
    "find_block",
    "find_parent",
    "find_path",
    "find_blocks_by_type",
    "collect_ids",
    "contains_block",
    "count_blocks",
    "breakpoint_conflict",
    "misplaced_blocks",
    "has_repeated_ids",
    "stray_content_blocks",
    "head_resources",
    "insert_block",
    "remove_block",
    "move_block",
    "clone_block",
    "duplicate_block",
    "update_block",
    "redistribute_column_widths",
    "column_width_shares",
    "cleanup_font_references",
    "font_family_references",
    "create_block",
    "inherited_attributes",
    "unknown_attributes",
]

logger = logging.getLogger(__name__)

DEFAULT_WIDTH_PRECISION = 2

_UNSET: Any = object()


# ---------------------------------------------------------------------------
# Read-only queries
# ---------------------------------------------------------------------------


def iter_blocks(tree: EmailBlock) -> Iterator[EmailBlock]:
    """Yield every block of *tree* depth-first, root first."""
    return tree.depth_first()


def iter_with_parents(tree: EmailBlock, parent: Optional[EmailBlock] = None
                      ) -> Iterator[Tuple[EmailBlock, Optional[EmailBlock]]]:
    """Yield ``(block, parent)`` pairs depth-first; the root's parent is None."""
    yield tree, parent
    for child in tree.child_list:
        yield from iter_with_parents(child, tree)


def find_path(tree: EmailBlock, block_id: str) -> Optional[List[EmailBlock]]:
    """Return the blocks from the root down to *block_id*, or None if absent."""
    if tree.id == block_id:
        return [tree]
    for child in tree.child_list:
        sub = find_path(child, block_id)
        if sub is not None:
            return [tree] + sub
    return None


def find_block(tree: EmailBlock, block_id: str) -> Optional[EmailBlock]:
    for block in iter_blocks(tree):
        if block.id == block_id:
            return block
    return None


def find_parent(tree: EmailBlock, block_id: str) -> Optional[EmailBlock]:
    path = find_path(tree, block_id)
    if path is None or len(path) < 2:
        return None
    return path[-2]


def find_blocks_by_type(tree: EmailBlock, block_type) -> List[EmailBlock]:
    wanted = coerce_block_type(block_type)
    return [block for block in iter_blocks(tree) if block.type is wanted]


def collect_ids(tree: EmailBlock) -> Set[str]:
    return {block.id for block in iter_blocks(tree)}


def contains_block(subtree: EmailBlock, block_id: str) -> bool:
    """True when *block_id* is *subtree* itself or one of its descendants."""
    return any(block.id == block_id for block in iter_blocks(subtree))


def count_blocks(tree: EmailBlock, block_type) -> int:
    return len(find_blocks_by_type(tree, block_type))


def misplaced_blocks(subtree: EmailBlock) -> List[Tuple[EmailBlock, EmailBlock]]:
    """``(block, parent)`` pairs inside *subtree* that break the nesting rules.

    Children of leaf kinds always show up here since leaves allow nothing.
    """
    return [(block, parent) for block, parent in iter_with_parents(subtree)
            if parent is not None and not can_drop(block.type, parent.type)]


def has_repeated_ids(subtree: EmailBlock) -> bool:
    return sum(1 for _ in iter_blocks(subtree)) != len(collect_ids(subtree))


def stray_content_blocks(subtree: EmailBlock) -> List[EmailBlock]:
    return [block for block in iter_blocks(subtree)
            if block.content is not None and not is_content_type(block.type)]


def head_resources(tree: EmailBlock) -> Dict[str, List[EmailBlock]]:
    """Font imports and custom styles a preview renderer needs to inject."""
    return {
        "fonts": find_blocks_by_type(tree, BlockType.FONT),
        "styles": find_blocks_by_type(tree, BlockType.STYLE),
    }


# ---------------------------------------------------------------------------
# Structural sharing helpers
# ---------------------------------------------------------------------------

def _index_of(parent: EmailBlock, child: EmailBlock) -> int:
    for index, candidate in enumerate(parent.child_list):
        if candidate is child:
            return index
    raise ValueError(f"Block {child.id} is not a child of {parent.id}")


def _rebuild(path: List[EmailBlock], replacement: EmailBlock) -> EmailBlock:
    """Replace ``path[-1]`` by *replacement* and copy its ancestors."""
    current = replacement
    for depth in range(len(path) - 1, 0, -1):
        parent = path[depth - 1]
        children = list(parent.child_list)
        children[_index_of(parent, path[depth])] = current
        current = parent.evolve(children=tuple(children))
    return current


def _map_tree(block: EmailBlock, fn: Callable[[EmailBlock], EmailBlock]) -> EmailBlock:
    """Apply *fn* bottom-up, reusing every subtree *fn* left unchanged."""
    if block.children:
        new_children = tuple(_map_tree(child, fn) for child in block.children)
        if any(new is not old for new, old in zip(new_children, block.children)):
            block = block.evolve(children=new_children)
    return fn(block)


def _clamp(position: Optional[int], size: int) -> int:
    if position is None:
        return size
    return max(0, min(int(position), size))


def breakpoint_conflict(tree: EmailBlock, incoming: EmailBlock) -> bool:
    incoming_count = count_blocks(incoming, BlockType.BREAKPOINT)
    return incoming_count > 0 and incoming_count + count_blocks(tree, BlockType.BREAKPOINT) > 1


# ---------------------------------------------------------------------------
# Column widths
# ---------------------------------------------------------------------------

def column_width_shares(count: int, precision: int = DEFAULT_WIDTH_PRECISION) -> List[str]:
    """Split 100% into *count* shares summing to exactly 100.

    Each share is ``100 / count`` truncated to *precision* decimals; the last
    share absorbs the remainder. ``column_width_shares(3)`` gives
    ``["33.33%", "33.33%", "33.34%"]``.
    """
    if count <= 0:
        return []
    quantum = Decimal(1).scaleb(-precision)
    share = (Decimal(100) / count).quantize(quantum, rounding=ROUND_DOWN)
    last = Decimal(100) - share * (count - 1)
    return [format_percentage(share)] * (count - 1) + [format_percentage(last)]


def _with_even_columns(container: EmailBlock, precision: int) -> EmailBlock:
    columns = [child for child in container.child_list if child.type is BlockType.COLUMN]
    if not columns:
        return container
    widths = iter(column_width_shares(len(columns), precision))
    changed = False
    children = []
    for child in container.child_list:
        if child.type is BlockType.COLUMN:
            width = next(widths)
            if child.attributes.get("width") != width:
                child = child.evolve(attributes={**child.attributes, "width": width})
                changed = True
        children.append(child)
    return container.evolve(children=tuple(children)) if changed else container


def redistribute_column_widths(tree: EmailBlock, container_id: str,
                               precision: int = DEFAULT_WIDTH_PRECISION) -> Optional[EmailBlock]:
    """Give every ``mj-column`` directly under *container_id* an equal width.

    Returns None when the id is unknown or does not name a section or group.
    """
    path = find_path(tree, container_id)
    if path is None or path[-1].type not in COLUMN_CONTAINER_TYPES:
        return None
    container = path[-1]
    updated = _with_even_columns(container, precision)
    if updated is container:
        return tree
    return _rebuild(path, updated)


# ---------------------------------------------------------------------------
# Font references
# ---------------------------------------------------------------------------

def font_family_references(font_family: str) -> List[str]:
    """Lower-cased family names listed in a CSS ``font-family`` value."""
    names = []
    for part in (font_family or "").split(","):
        name = part.strip().strip("\"'").strip().lower()
        if name:
            names.append(name)
    return names


def cleanup_font_references(tree: EmailBlock, font_name: Optional[str]) -> EmailBlock:
    """Drop ``fontFamily`` attributes that reference *font_name*."""
    if not font_name:
        return tree
    wanted = font_name.strip().strip("\"'").lower()

    def _clean(block: EmailBlock) -> EmailBlock:
        family = block.attributes.get("fontFamily")
        if family is None or wanted not in font_family_references(family):
            return block
        attributes = {k: v for k, v in block.attributes.items() if k != "fontFamily"}
        return block.evolve(attributes=attributes)

    return _map_tree(tree, _clean)


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------

def _splice(parent: EmailBlock, block: EmailBlock, position: Optional[int]) -> EmailBlock:
    children = list(parent.child_list)
    children.insert(_clamp(position, len(children)), block)
    return parent.evolve(children=tuple(children))


def _wrap_sections(body: EmailBlock, wrapper: EmailBlock, position: Optional[int]) -> EmailBlock:
    """Insert *wrapper* into *body* and move the body's sections inside it."""
    sections = tuple(child for child in body.child_list if child.type is BlockType.SECTION)
    remaining = [child for child in body.child_list if child.type is not BlockType.SECTION]
    wrapper = wrapper.evolve(children=wrapper.child_list + sections)
    remaining.insert(_clamp(position, len(remaining)), wrapper)
    return body.evolve(children=tuple(remaining))


def _absorbs_sections(parent: EmailBlock, block: EmailBlock) -> bool:
    if block.type is not BlockType.WRAPPER or parent.type is not BlockType.BODY:
        return False
    kinds = {child.type for child in parent.child_list}
    return BlockType.SECTION in kinds and BlockType.WRAPPER not in kinds


def insert_block(tree: EmailBlock, parent_id: str, block: EmailBlock,
                 position: Optional[int] = None,
                 precision: int = DEFAULT_WIDTH_PRECISION) -> Optional[EmailBlock]:
    """Insert *block* under *parent_id* at *position* (clamped; None appends).

    Inserting an ``mj-wrapper`` into an ``mj-body`` that holds sections but no
    wrapper moves those sections into the new wrapper. Inserting a column
    re-balances the widths of its siblings.
    """
    path = find_path(tree, parent_id)
    if path is None:
        return None
    parent = path[-1]
    if not can_drop(block.type, parent.type):
        return None
    if collect_ids(block) & collect_ids(tree):
        return None
    if misplaced_blocks(block) or has_repeated_ids(block) or stray_content_blocks(block):
        return None
    if breakpoint_conflict(tree, block):
        return None

    if _absorbs_sections(parent, block):
        new_parent = _wrap_sections(parent, block, position)
    else:
        new_parent = _splice(parent, block, position)
        if block.type is BlockType.COLUMN and parent.type in COLUMN_CONTAINER_TYPES:
            new_parent = _with_even_columns(new_parent, precision)
    return _rebuild(path, new_parent)


def remove_block(tree: EmailBlock, block_id: str,
                 precision: int = DEFAULT_WIDTH_PRECISION) -> Optional[EmailBlock]:
    """Remove the subtree rooted at *block_id*. The root cannot be removed."""
    if tree.id == block_id:
        return None
    path = find_path(tree, block_id)
    if path is None:
        return None
    target, parent = path[-1], path[-2]
    new_parent = parent.evolve(children=tuple(c for c in parent.child_list if c is not target))
    if target.type is BlockType.COLUMN and parent.type in COLUMN_CONTAINER_TYPES:
        new_parent = _with_even_columns(new_parent, precision)
    new_tree = _rebuild(path[:-1], new_parent)

    for font in find_blocks_by_type(target, BlockType.FONT):
        new_tree = cleanup_font_references(new_tree, font.attributes.get("name"))
    return new_tree


def move_block(tree: EmailBlock, block_id: str, new_parent_id: str,
               position: Optional[int] = None,
               precision: int = DEFAULT_WIDTH_PRECISION) -> Optional[EmailBlock]:
    """Move *block_id* under *new_parent_id* at *position*.

    *position* indexes the destination's children as they are once the block
    has been taken out of its current place. Columns moved between containers
    re-balance both the source and destination rows.
    """
    if tree.id == block_id:
        return None
    path = find_path(tree, block_id)
    destination = find_block(tree, new_parent_id)
    if path is None or destination is None:
        return None
    target, old_parent = path[-1], path[-2]
    if contains_block(target, new_parent_id):
        return None
    if not can_drop(target.type, destination.type):
        return None

    old_index = _index_of(old_parent, target)
    same_parent = old_parent.id == destination.id
    if same_parent:
        size = len(old_parent.child_list) - 1
        if _clamp(position, size) == old_index:
            return tree

    detached = old_parent.evolve(
        children=tuple(c for c in old_parent.child_list if c is not target)
    )
    new_tree = _rebuild(path[:-1], detached)
    dest_path = find_path(new_tree, new_parent_id)
    new_tree = _rebuild(dest_path, _splice(dest_path[-1], target, position))

    if target.type is BlockType.COLUMN and not same_parent:
        for container_id in (destination.id, old_parent.id):
            container = find_block(new_tree, container_id)
            if container is not None and container.type in COLUMN_CONTAINER_TYPES:
                new_tree = redistribute_column_widths(new_tree, container_id, precision)
    return new_tree


def clone_block(block: EmailBlock) -> EmailBlock:
    """Deep copy *block* giving it and every descendant a fresh id."""
    children = None
    if block.children is not None:
        children = tuple(clone_block(child) for child in block.children)
    return block.evolve(id=generate_block_id(), attributes=dict(block.attributes), children=children)


def duplicate_block(tree: EmailBlock, block_id: str,
                    precision: int = DEFAULT_WIDTH_PRECISION) -> Optional[EmailBlock]:
    """Insert a fresh-id clone of *block_id* right after the original."""
    if tree.id == block_id:
        return None
    path = find_path(tree, block_id)
    if path is None:
        return None
    target, parent = path[-1], path[-2]
    if count_blocks(target, BlockType.BREAKPOINT):
        return None
    copy = clone_block(target)
    new_parent = _splice(parent, copy, _index_of(parent, target) + 1)
    if target.type is BlockType.COLUMN and parent.type in COLUMN_CONTAINER_TYPES:
        new_parent = _with_even_columns(new_parent, precision)
    return _rebuild(path[:-1], new_parent)


def update_block(tree: EmailBlock, block_id: str,
                 attributes: Optional[Mapping[str, Any]] = None,
                 content: Any = _UNSET) -> Optional[EmailBlock]:
    """Shallow-merge *attributes* into a block and optionally set its content.

    A ``None`` attribute value removes that key. *content* is only accepted
    for content-bearing types; pass ``None`` to clear it.
    """
    path = find_path(tree, block_id)
    if path is None:
        return None
    target = path[-1]
    if content is not _UNSET and not is_content_type(target.type):
        return None

    merged = dict(target.attributes)
    for key, value in (attributes or {}).items():
        normalized = normalize_attribute_value(value)
        if normalized is None:
            merged.pop(key, None)
        else:
            merged[key] = normalized

    changes: Dict[str, Any] = {}
    if merged != target.attributes:
        changes["attributes"] = merged
    if content is not _UNSET and content != target.content:
        changes["content"] = content
    if not changes:
        return tree
    return _rebuild(path, target.evolve(**changes))


# ---------------------------------------------------------------------------
# Block creation
# ---------------------------------------------------------------------------

def inherited_attributes(tree: Optional[EmailBlock], block_type) -> Dict[str, str]:
    """Defaults declared for *block_type* in the tree's ``mj-attributes``.

    ``mj-all`` values apply first, type-specific values override them.
    """
    wanted = coerce_block_type(block_type).value
    common: Dict[str, str] = {}
    specific: Dict[str, str] = {}
    if tree is None:
        return common

    for holder in find_blocks_by_type(tree, BlockType.ATTRIBUTES):
        if not holder.content:
            continue
        try:
            fragment = ET.fromstring(f"<mj-attributes>{holder.content}</mj-attributes>")
        except ET.XMLSyntaxError as exc:
            logger.warning("Ignoring unreadable mj-attributes content (%s): %s", holder.id, exc)
            continue
        for element in fragment:
            if element.tag == "mj-all":
                target = common
            elif element.tag == wanted:
                target = specific
            else:
                continue
            for name, value in element.attrib.items():
                target[kebab_to_camel(name)] = value
    return {**common, **specific}


def create_block(block_type, attributes: Optional[Mapping[str, Any]] = None,
                 content: Optional[str] = None, tree: Optional[EmailBlock] = None) -> EmailBlock:
    """Create a new block with a fresh id.

    Parameters
    ----------
    block_type
        ``BlockType`` member or MJML tag name.
    attributes
        Explicit attributes; they win over every default. ``None`` values
        are dropped.
    content
        Inner markup for content-bearing types. Falls back to the registry's
        default content.
    tree
        Document whose ``mj-attributes`` defaults should be inherited.

    Returns
    -------
    EmailBlock
        Containers get an empty children tuple, leaves get ``None``.

    Raises
    ------
    ValueError
        *content* was given for a type that does not carry content.
    """
    block_type = coerce_block_type(block_type)
    if content is not None and not is_content_type(block_type):
        raise ValueError(f"{block_type.value} blocks do not carry content")

    resolved: Dict[str, str] = default_attributes(block_type)
    resolved.update(inherited_attributes(tree, block_type))
    for key, value in (attributes or {}).items():
        normalized = normalize_attribute_value(value)
        if normalized is None:
            resolved.pop(key, None)
        else:
            resolved[key] = normalized

    if is_content_type(block_type) and content is None:
        content = default_content(block_type)

    return EmailBlock(
        id=generate_block_id(),
        type=block_type,
        attributes=resolved,
        content=content,
        children=None if is_leaf(block_type) else (),
    )


def unknown_attributes(block: EmailBlock) -> List[str]:
    """Attribute names the block's type schema does not declare."""
    known = schema_keys(attribute_schema(block.type))
    return sorted(key for key in block.attributes if key not in known)
