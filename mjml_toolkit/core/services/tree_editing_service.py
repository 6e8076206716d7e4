from __future__ import annotations

"""Service layer for structural edits on an MJML block tree.

This module provides a UI-agnostic, testable service wrapping the pure
functions of :mod:`mjml_toolkit.core.tree`. It adds what callers such as an
editor canvas or an AI tool handler need on top of them: refusal reasons,
log lines and editor conveniences (scaffolded blocks, saved blocks, whole
tree replacement).

Scope and guarantees:
- Operates purely in-memory on immutable trees, no file I/O nor UI imports.
- Invalid operations return OperationResult(success=False, ...) with a
  machine-readable ``details["reason"]``; they never raise.
- A successful result carries the new tree. ``result.tree is tree`` means
  the request was valid but changed nothing.

Examples
--------
Basic usage:

    service = TreeEditingService()
    result = service.remove(tree, "5f0c...")
    if result.success:
        tree = result.tree
    else:
        print(result.message)

"""

from dataclasses import dataclass
import logging
from typing import Any, Dict, Mapping, Optional

from mjml_toolkit.config import ConfigManager
from mjml_toolkit.core import tree as ops
from mjml_toolkit.core.models import EmailBlock
from mjml_toolkit.core.registry import (
    COLUMN_CONTAINER_TYPES,
    BlockType,
    can_drop,
    coerce_block_type,
    is_content_type,
)
from mjml_toolkit.core.validator import validate_document


__all__ = [
    "OperationResult",
    "TreeEditingService",
    "REASON_NOT_FOUND",
    "REASON_NOT_ALLOWED",
    "REASON_CYCLE",
    "REASON_ROOT",
    "REASON_DUPLICATE_BREAKPOINT",
    "REASON_DUPLICATE_ID",
    "REASON_NOT_CONTAINER",
    "REASON_CONTENT_NOT_ALLOWED",
    "REASON_INVALID_TREE",
    "REASON_INVALID_VALUE",
]

logger = logging.getLogger(__name__)

REASON_NOT_FOUND = "not_found"
REASON_NOT_ALLOWED = "not_allowed"
REASON_CYCLE = "cycle"
REASON_ROOT = "root"
REASON_DUPLICATE_BREAKPOINT = "duplicate_breakpoint"
REASON_DUPLICATE_ID = "duplicate_id"
REASON_NOT_CONTAINER = "not_container"
REASON_CONTENT_NOT_ALLOWED = "content_not_allowed"
REASON_INVALID_TREE = "invalid_tree"
REASON_INVALID_VALUE = "invalid_value"

_UNSET: Any = object()


@dataclass(frozen=True)
class OperationResult:
    """Result of a structural editing operation.

    Attributes
    ----------
    success
        Whether the operation completed successfully.
    message
        Human-readable summary suitable for logs or UI display.
    details
        Optional structured details for diagnostics or caller logic. Refusals
        always carry a ``reason`` key.
    tree
        The resulting tree on success, None on refusal.
    """
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None
    tree: Optional[EmailBlock] = None

    @property
    def changed(self) -> bool:
        return bool(self.details and self.details.get("changed"))


def _refuse(operation: str, reason: str, message: str, **details: Any) -> OperationResult:
    logger.info("Edit noop: %s reason=%s %s", operation, reason,
                " ".join(f"{k}={v}" for k, v in details.items()))
    return OperationResult(False, message, {"reason": reason, **details})


def _ok(operation: str, message: str, before: EmailBlock, after: EmailBlock, **details: Any) -> OperationResult:
    changed = after is not before
    if changed:
        logger.info("Edit OK: %s %s", operation, " ".join(f"{k}={v}" for k, v in details.items()))
    else:
        logger.info("Edit noop: %s unchanged", operation)
    return OperationResult(True, message if changed else "No change.", {"changed": changed, **details}, after)


class TreeEditingService:
    """Encapsulates structural edit operations on an email block tree.

    Parameters
    ----------
    width_precision
        Decimal places kept when column widths are redistributed. Defaults to
        ``columns.width_precision`` from ``editor.yml``.

    Notes
    -----
    Every public method takes the current tree and returns an
    :class:`OperationResult`; the service itself holds no document state and
    can be shared between sessions.
    """

    def __init__(self, width_precision: Optional[int] = None) -> None:
        if width_precision is None:
            width_precision = int(ConfigManager().get("columns", "width_precision", ops.DEFAULT_WIDTH_PRECISION))
        self.width_precision = max(0, width_precision)

    # ------------------------------------------------------------------
    # Core mutation API
    # ------------------------------------------------------------------
    def insert(self, tree: EmailBlock, parent_id: str, block: EmailBlock,
               position: Optional[int] = None) -> OperationResult:
        """Insert *block* under *parent_id* at *position* (None appends)."""
        logger.info("Edit: insert type=%s parent=%s position=%s", block.type.value, parent_id, position)
        parent = ops.find_block(tree, parent_id)
        if parent is None:
            return _refuse("insert", REASON_NOT_FOUND, f"Parent block not found for id '{parent_id}'.",
                           block_id=parent_id)
        if not can_drop(block.type, parent.type):
            return _refuse("insert", REASON_NOT_ALLOWED,
                           f"<{block.type.value}> cannot be placed inside <{parent.type.value}>.",
                           block_type=block.type.value, parent_type=parent.type.value)
        misplaced = ops.misplaced_blocks(block)
        if misplaced:
            child, holder = misplaced[0]
            return _refuse("insert", REASON_NOT_ALLOWED,
                           f"<{child.type.value}> cannot be placed inside <{holder.type.value}>.",
                           block_id=child.id, block_type=child.type.value, parent_type=holder.type.value)
        if ops.has_repeated_ids(block):
            return _refuse("insert", REASON_DUPLICATE_ID, "Block ids repeat inside the inserted subtree.",
                           block_id=block.id)
        if ops.collect_ids(block) & ops.collect_ids(tree):
            return _refuse("insert", REASON_DUPLICATE_ID, "Block ids already exist in the tree.",
                           block_id=block.id)
        stray = ops.stray_content_blocks(block)
        if stray:
            return _refuse("insert", REASON_CONTENT_NOT_ALLOWED,
                           f"<{stray[0].type.value}> blocks cannot carry content.", block_id=stray[0].id)
        if ops.breakpoint_conflict(tree, block):
            return _refuse("insert", REASON_DUPLICATE_BREAKPOINT, "Document already has an <mj-breakpoint>.")

        new_tree = ops.insert_block(tree, parent_id, block, position, self.width_precision)
        return _ok("insert", f"Inserted {block.type.value}.", tree, new_tree,
                   block_id=block.id, parent_id=parent_id)

    def remove(self, tree: EmailBlock, block_id: str) -> OperationResult:
        """Remove the subtree rooted at *block_id*."""
        logger.info("Edit: remove block=%s", block_id)
        if tree.id == block_id:
            return _refuse("remove", REASON_ROOT, "The document root cannot be removed.", block_id=block_id)
        target = ops.find_block(tree, block_id)
        if target is None:
            return _refuse("remove", REASON_NOT_FOUND, f"Block not found for id '{block_id}'.", block_id=block_id)
        new_tree = ops.remove_block(tree, block_id, self.width_precision)
        return _ok("remove", f"Removed {target.type.value}.", tree, new_tree,
                   block_id=block_id, block_type=target.type.value)

    def move(self, tree: EmailBlock, block_id: str, new_parent_id: str,
             position: Optional[int] = None) -> OperationResult:
        """Move *block_id* under *new_parent_id* at *position*."""
        logger.info("Edit: move block=%s parent=%s position=%s", block_id, new_parent_id, position)
        if tree.id == block_id:
            return _refuse("move", REASON_ROOT, "The document root cannot be moved.", block_id=block_id)
        target = ops.find_block(tree, block_id)
        destination = ops.find_block(tree, new_parent_id)
        if target is None or destination is None:
            missing = block_id if target is None else new_parent_id
            return _refuse("move", REASON_NOT_FOUND, f"Block not found for id '{missing}'.", block_id=missing)
        if ops.contains_block(target, new_parent_id):
            return _refuse("move", REASON_CYCLE, "A block cannot be moved inside itself.",
                           block_id=block_id, parent_id=new_parent_id)
        if not can_drop(target.type, destination.type):
            return _refuse("move", REASON_NOT_ALLOWED,
                           f"<{target.type.value}> cannot be placed inside <{destination.type.value}>.",
                           block_type=target.type.value, parent_type=destination.type.value)
        new_tree = ops.move_block(tree, block_id, new_parent_id, position, self.width_precision)
        return _ok("move", f"Moved {target.type.value}.", tree, new_tree,
                   block_id=block_id, parent_id=new_parent_id)

    def clone(self, tree: EmailBlock, block_id: str) -> OperationResult:
        """Insert a copy of *block_id* (fresh ids) right after it."""
        logger.info("Edit: clone block=%s", block_id)
        if tree.id == block_id:
            return _refuse("clone", REASON_ROOT, "The document root cannot be cloned.", block_id=block_id)
        target = ops.find_block(tree, block_id)
        if target is None:
            return _refuse("clone", REASON_NOT_FOUND, f"Block not found for id '{block_id}'.", block_id=block_id)
        if ops.count_blocks(target, BlockType.BREAKPOINT):
            return _refuse("clone", REASON_DUPLICATE_BREAKPOINT, "Document already has an <mj-breakpoint>.",
                           block_id=block_id)
        new_tree = ops.duplicate_block(tree, block_id, self.width_precision)
        parent = ops.find_parent(new_tree, block_id)
        children = parent.child_list
        index = next(i for i, child in enumerate(children) if child.id == block_id)
        clone_id = children[index + 1].id
        return _ok("clone", f"Cloned {target.type.value}.", tree, new_tree,
                   block_id=block_id, clone_id=clone_id)

    def update_attributes(self, tree: EmailBlock, block_id: str,
                          attributes: Optional[Mapping[str, Any]] = None,
                          content: Any = _UNSET) -> OperationResult:
        """Merge *attributes* into a block; ``None`` values remove keys.

        Pass *content* to replace the inner markup of a content-bearing block.
        """
        logger.info("Edit: update_attributes block=%s keys=%s content=%s", block_id,
                    sorted(attributes or {}), content is not _UNSET)
        target = ops.find_block(tree, block_id)
        if target is None:
            return _refuse("update_attributes", REASON_NOT_FOUND, f"Block not found for id '{block_id}'.",
                           block_id=block_id)
        if content is not _UNSET and not is_content_type(target.type):
            return _refuse("update_attributes", REASON_CONTENT_NOT_ALLOWED,
                           f"<{target.type.value}> blocks do not carry content.", block_id=block_id)
        try:
            if content is _UNSET:
                new_tree = ops.update_block(tree, block_id, attributes)
            else:
                new_tree = ops.update_block(tree, block_id, attributes, content)
        except TypeError as exc:
            return _refuse("update_attributes", REASON_INVALID_VALUE, str(exc), block_id=block_id)
        return _ok("update_attributes", f"Updated {target.type.value}.", tree, new_tree, block_id=block_id)

    def redistribute_column_widths(self, tree: EmailBlock, container_id: str) -> OperationResult:
        """Even out the widths of the columns directly under *container_id*."""
        logger.info("Edit: redistribute_column_widths container=%s", container_id)
        container = ops.find_block(tree, container_id)
        if container is None:
            return _refuse("redistribute_column_widths", REASON_NOT_FOUND,
                           f"Block not found for id '{container_id}'.", block_id=container_id)
        if container.type not in COLUMN_CONTAINER_TYPES:
            return _refuse("redistribute_column_widths", REASON_NOT_CONTAINER,
                           f"<{container.type.value}> does not hold columns.", block_id=container_id)
        new_tree = ops.redistribute_column_widths(tree, container_id, self.width_precision)
        return _ok("redistribute_column_widths", "Redistributed column widths.", tree, new_tree,
                   block_id=container_id)

    # ------------------------------------------------------------------
    # Editor conveniences
    # ------------------------------------------------------------------
    def add_block(self, tree: EmailBlock, parent_id: str, block_type,
                  position: Optional[int] = None,
                  attributes: Optional[Mapping[str, Any]] = None) -> OperationResult:
        """Create a block of *block_type* and insert it, scaffolding layouts.

        A section added to a body comes with a full-width column holding a
        placeholder text; a column added to a section or group comes with a
        placeholder text. New blocks inherit ``mj-attributes`` defaults.
        """
        block_type = coerce_block_type(block_type)
        parent = ops.find_block(tree, parent_id)
        if parent is None:
            logger.info("Edit: add_block type=%s parent=%s", block_type.value, parent_id)
            return _refuse("add_block", REASON_NOT_FOUND, f"Parent block not found for id '{parent_id}'.",
                           block_id=parent_id)

        block = ops.create_block(block_type, attributes, tree=tree)
        if block_type is BlockType.SECTION and parent.type in (BlockType.BODY, BlockType.WRAPPER):
            number = len(ops.find_blocks_by_type(tree, BlockType.SECTION)) + 1
            column = ops.create_block(BlockType.COLUMN, {"width": "100%"}, tree=tree)
            text = ops.create_block(BlockType.TEXT, content=f"<p>Section {number}</p>", tree=tree)
            block = block.evolve(children=(column.evolve(children=(text,)),))
        elif block_type is BlockType.COLUMN and parent.type in COLUMN_CONTAINER_TYPES:
            number = sum(1 for child in parent.child_list if child.type is BlockType.COLUMN) + 1
            text = ops.create_block(BlockType.TEXT, content=f"<p>Column {number}</p>", tree=tree)
            block = block.evolve(children=(text,))
        return self.insert(tree, parent_id, block, position)

    def insert_saved_block(self, tree: EmailBlock, parent_id: str, saved_block: EmailBlock,
                           position: Optional[int] = None) -> OperationResult:
        """Insert a fresh-id copy of a stored block."""
        return self.insert(tree, parent_id, ops.clone_block(saved_block), position)

    def replace_tree(self, tree: EmailBlock, candidate: EmailBlock) -> OperationResult:
        """Accept *candidate* as the whole document only if it validates cleanly."""
        logger.info("Edit: replace_tree root=%s", candidate.type.value)
        violations = validate_document(candidate)
        if violations:
            return _refuse("replace_tree", REASON_INVALID_TREE,
                           f"Replacement tree has {len(violations)} structural violation(s).",
                           violations=violations)
        return _ok("replace_tree", "Replaced document.", tree, candidate)
