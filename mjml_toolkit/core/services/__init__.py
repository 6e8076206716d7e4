from __future__ import annotations

"""Editing services operating on immutable block trees.

The tree editing service reports refusals as values; the history service
keeps undo/redo snapshots and the active selection.
"""

from .tree_editing_service import OperationResult, TreeEditingService  # noqa: F401
from .history_service import HistoryService  # noqa: F401

__all__: list[str] = [
    "OperationResult",
    "TreeEditingService",
    "HistoryService",
]
