"""Top-level package for the MJML toolkit.

This package hosts a GUI-agnostic implementation of an MJML email document
model: a block tree, a recovering MJML parser, pure tree edits and an
undo/redo history. Front-ends (editor canvas, AI tool handlers, CLI) should
only depend on the public API exposed here rather than importing internal
modules directly.
"""

from .core.models import EmailBlock
from .core.registry import BlockType
from .core.parser import parse_mjml
from .core.generators import build_mjml
from .core.validator import validate_document, validate_tree
from .controllers import EditorController

__all__: list[str] = [
    "EmailBlock",
    "BlockType",
    "parse_mjml",
    "build_mjml",
    "validate_tree",
    "validate_document",
    "EditorController",
]
