from __future__ import annotations

"""Undo/redo history over immutable block trees.

This service is UI-agnostic and keeps a linear list of tree snapshots with a
cursor pointing at the current one.

Design principles
-----------------
- No UI imports and no I/O (filesystem/console).
- Trees are immutable, so snapshots are plain references; nothing is copied
  or serialized.
- Recording a new tree discards every "future" entry beyond the cursor.
- Memory usage controlled by a max_history policy (trim oldest).
- The active selection is tracked beside the history and is cleared when an
  undo/redo restores a tree that no longer contains the selected block.

"""

from typing import List, Optional

from mjml_toolkit.config import ConfigManager
from mjml_toolkit.core.models import EmailBlock
from mjml_toolkit.core.tree import find_block

__all__ = ["HistoryService"]


class HistoryService:
    """Linear undo/redo history for one editing session.

    Parameters
    ----------
    initial_tree : EmailBlock
        The document as loaded; it is entry 0 of the history.
    max_history : int, optional
        Maximum number of entries kept, the current one included. Oldest
        entries are discarded when the capacity is exceeded. Defaults to
        ``history.max_entries`` from ``editor.yml``; values below 1 are
        coerced to 1.

    Examples
    --------
    >>> history = HistoryService(t0)
    >>> history.record(t1)
    >>> history.undo() is t0
    True
    >>> history.redo() is t1
    True
    """

    def __init__(self, initial_tree: EmailBlock, max_history: Optional[int] = None) -> None:
        if max_history is None:
            max_history = int(ConfigManager().get("history", "max_entries", 100))
        self._max_history: int = max(1, int(max_history))
        self._entries: List[EmailBlock] = [initial_tree]
        self._cursor: int = 0
        self._selected_block_id: Optional[str] = None

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    @property
    def current(self) -> EmailBlock:
        return self._entries[self._cursor]

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, tree: EmailBlock) -> None:
        """Make *tree* the current entry, dropping any redo entries.

        Recording the current tree again is ignored.
        """
        if tree is self.current:
            return
        del self._entries[self._cursor + 1:]
        self._entries.append(tree)
        if len(self._entries) > self._max_history:
            overflow = len(self._entries) - self._max_history
            del self._entries[:overflow]
        self._cursor = len(self._entries) - 1

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def undo(self) -> Optional[EmailBlock]:
        """Step back and return the restored tree, or None at the oldest entry."""
        if not self.can_undo():
            return None
        self._cursor -= 1
        self._drop_stale_selection()
        return self.current

    def redo(self) -> Optional[EmailBlock]:
        """Step forward and return the restored tree, or None at the newest entry."""
        if not self.can_redo():
            return None
        self._cursor += 1
        self._drop_stale_selection()
        return self.current

    def clear(self, tree: Optional[EmailBlock] = None) -> None:
        """Forget all history; *tree* (default: the current one) becomes entry 0."""
        self._entries = [tree if tree is not None else self.current]
        self._cursor = 0
        self._drop_stale_selection()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    @property
    def selected_block_id(self) -> Optional[str]:
        return self._selected_block_id

    def select(self, block_id: Optional[str]) -> bool:
        """Select *block_id* in the current tree; unknown ids clear the selection."""
        if block_id is not None and find_block(self.current, block_id) is None:
            self._selected_block_id = None
            return False
        self._selected_block_id = block_id
        return True

    def _drop_stale_selection(self) -> None:
        if self._selected_block_id is None:
            return
        if find_block(self.current, self._selected_block_id) is None:
            self._selected_block_id = None
