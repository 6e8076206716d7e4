from __future__ import annotations

"""Exception classes for the MJML toolkit core.

Only genuinely exceptional conditions raise: malformed markup handed to the
parser, malformed JSON trees, and explicit validation requests. Ordinary
editing refusals (missing ids, illegal drops) are reported as
``OperationResult`` values by the editing service instead.
"""

from typing import List, Optional

__all__ = [
    "MjmlToolkitError",
    "MjmlImportError",
    "MarkupSyntaxError",
    "InvalidRootError",
    "BlockFormatError",
    "StructureValidationError",
]


class MjmlToolkitError(Exception):
    """Base exception for all toolkit errors."""


class MjmlImportError(MjmlToolkitError):
    """Raised when MJML markup cannot be turned into a block tree.

    Carries the offending source (when known) and the underlying parser error.
    """

    def __init__(self, message: str, source: Optional[str] = None, cause: Optional[Exception] = None):
        self.source = source
        self.cause = cause
        super().__init__(message)


class MarkupSyntaxError(MjmlImportError):
    """Markup is not well-formed even after preprocessing (unclosed tags, bad nesting)."""

    def __init__(self, message: str, source: Optional[str] = None, cause: Optional[Exception] = None,
                 line: Optional[int] = None, column: Optional[int] = None):
        self.line = line
        self.column = column
        super().__init__(message, source, cause)


class InvalidRootError(MjmlImportError):
    """Markup is well-formed but its root element is not ``<mjml>``."""

    def __init__(self, root_tag: str, source: Optional[str] = None):
        self.root_tag = root_tag
        super().__init__(f"Root element must be <mjml>, got <{root_tag}>", source)


class BlockFormatError(MjmlToolkitError):
    """A JSON/dict tree does not describe a valid block (unknown type, bad shape)."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(f"{message} (at {path})" if path else message)


class StructureValidationError(MjmlToolkitError):
    """Raised when a caller explicitly requires a structurally valid tree."""

    def __init__(self, message: str, violations: Optional[List] = None):
        super().__init__(message)
        self.violations = list(violations or [])

    def __str__(self) -> str:
        base = super().__str__()
        if not self.violations:
            return base
        return f"{base} ({len(self.violations)} violation(s))"
