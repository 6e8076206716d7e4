from __future__ import annotations

"""Structural validation of block trees.

Violations are returned as data, never raised. An empty list means the tree
is structurally sound. Callers that must reject a bad tree outright (whole
tree replacement, ``build_mjml(validate=True)``) inspect the list themselves.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional

from mjml_toolkit.core.models import EmailBlock
from mjml_toolkit.core.registry import (
    ROOT_TYPE,
    BlockType,
    allowed_children,
    is_content_type,
)
from mjml_toolkit.core.tree import iter_with_parents, misplaced_blocks

__all__ = [
    "StructuralViolation",
    "validate_tree",
    "validate_document",
    "INVALID_PARENT",
    "INVALID_ROOT",
    "MISSING_BODY",
    "DUPLICATE_ID",
    "DUPLICATE_BREAKPOINT",
    "UNEXPECTED_CONTENT",
]

INVALID_PARENT = "invalid_parent"
INVALID_ROOT = "invalid_root"
MISSING_BODY = "missing_body"
DUPLICATE_ID = "duplicate_id"
DUPLICATE_BREAKPOINT = "duplicate_breakpoint"
UNEXPECTED_CONTENT = "unexpected_content"


@dataclass(frozen=True)
class StructuralViolation:
    """One structural problem found in a tree.

    Attributes
    ----------
    block_id
        Id of the offending block.
    block_type
        Its type.
    parent_type
        Type of its parent, None for the root.
    allowed
        Types the parent accepts (empty for non-parent violations).
    code
        Machine-readable category, e.g. ``invalid_parent``.
    message
        Human-readable description.
    """

    block_id: str
    block_type: BlockType
    parent_type: Optional[BlockType]
    allowed: FrozenSet[BlockType] = field(default_factory=frozenset)
    code: str = INVALID_PARENT
    message: str = ""


def _parent_violation(block: EmailBlock, parent: EmailBlock) -> StructuralViolation:
    allowed = allowed_children(parent.type)
    if allowed:
        expected = ", ".join(sorted(t.value for t in allowed))
        message = f"<{block.type.value}> is not allowed inside <{parent.type.value}> (expected one of: {expected})"
    else:
        message = f"<{block.type.value}> is not allowed inside <{parent.type.value}>, which cannot have children"
    return StructuralViolation(block.id, block.type, parent.type, allowed, INVALID_PARENT, message)


def validate_tree(tree: EmailBlock) -> List[StructuralViolation]:
    """Check every parent/child pair against the registry.

    Returns one violation per misplaced block and never stops at the first.
    """
    return [_parent_violation(block, parent) for block, parent in misplaced_blocks(tree)]


def validate_document(tree: EmailBlock) -> List[StructuralViolation]:
    """Full document check used before accepting an external tree.

    In addition to :func:`validate_tree` this reports a root that is not
    ``mjml``, a missing ``mj-body``, duplicate ids, more than one
    ``mj-breakpoint`` and content on types that do not carry content.
    """
    violations: List[StructuralViolation] = []

    if tree.type is not ROOT_TYPE:
        violations.append(StructuralViolation(
            tree.id, tree.type, None, frozenset(), INVALID_ROOT,
            f"Root block must be <mjml>, got <{tree.type.value}>",
        ))
    elif not any(child.type is BlockType.BODY for child in tree.child_list):
        violations.append(StructuralViolation(
            tree.id, tree.type, None, allowed_children(tree.type), MISSING_BODY,
            "Document has no <mj-body>",
        ))

    violations.extend(validate_tree(tree))

    id_counts = Counter(block.id for block in tree.depth_first())
    reported = set()
    breakpoints = 0
    for block, parent in iter_with_parents(tree):
        parent_type = parent.type if parent is not None else None
        if id_counts[block.id] > 1 and block.id not in reported:
            reported.add(block.id)
            violations.append(StructuralViolation(
                block.id, block.type, parent_type, frozenset(), DUPLICATE_ID,
                f"Id {block.id!r} is used by {id_counts[block.id]} blocks",
            ))
        if block.type is BlockType.BREAKPOINT:
            breakpoints += 1
            if breakpoints > 1:
                violations.append(StructuralViolation(
                    block.id, block.type, parent_type, frozenset(), DUPLICATE_BREAKPOINT,
                    "Only one <mj-breakpoint> is allowed per document",
                ))
        if block.content is not None and not is_content_type(block.type):
            violations.append(StructuralViolation(
                block.id, block.type, parent_type, frozenset(), UNEXPECTED_CONTENT,
                f"<{block.type.value}> blocks cannot carry content",
            ))
    return violations
