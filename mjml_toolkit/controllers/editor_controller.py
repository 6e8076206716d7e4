from __future__ import annotations

import logging
from typing import Any, Callable, List, Mapping, Optional

from mjml_toolkit.core.generators import build_mjml
from mjml_toolkit.core.models import EmailBlock
from mjml_toolkit.core.parser import parse_mjml
from mjml_toolkit.core.services import HistoryService, OperationResult, TreeEditingService
from mjml_toolkit.core.validator import StructuralViolation, validate_document

__all__ = ["EditorController"]

logger = logging.getLogger(__name__)

_UNSET: Any = object()

TreeListener = Callable[[EmailBlock], None]


class EditorController:
    """Coordinates one editing session: current tree, edits and history.

    This controller is the single sanctioned entry point for mutating a
    document. It delegates every edit to :class:`TreeEditingService`, records
    successful results in :class:`HistoryService` and notifies listeners
    (canvas, preview, AI tool handlers) whenever the current tree changes.

    Parameters
    ----------
    tree : EmailBlock
        The document to edit.
    editing_service : TreeEditingService, optional
        Service that performs structural editing operations.
    history : HistoryService, optional
        History seeded with *tree*; created on demand.

    Notes
    -----
    - Refusals are returned as ``OperationResult(success=False)`` and logged
      at INFO; nothing here raises for routine invalid actions.
    - Calls are applied in the order they arrive; callers debounce rapid
      content edits themselves.
    """

    def __init__(
        self,
        tree: EmailBlock,
        editing_service: Optional[TreeEditingService] = None,
        history: Optional[HistoryService] = None,
    ) -> None:
        self.editing_service: TreeEditingService = editing_service or TreeEditingService()
        self.history: HistoryService = history or HistoryService(tree)
        self._listeners: List[TreeListener] = []

    @classmethod
    def from_mjml(cls, markup: str) -> "EditorController":
        """Start a session from MJML markup (raises on malformed input)."""
        return cls(parse_mjml(markup))

    # ---------------------------------------------------------------------------------
    # State
    # ---------------------------------------------------------------------------------

    @property
    def tree(self) -> EmailBlock:
        return self.history.current

    @property
    def selected_block_id(self) -> Optional[str]:
        return self.history.selected_block_id

    def select(self, block_id: Optional[str]) -> bool:
        return self.history.select(block_id)

    def add_listener(self, listener: TreeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: TreeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ---------------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------------

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.tree)

    def _recorded_edit(self, mutate: Callable[[EmailBlock], OperationResult]) -> OperationResult:
        """Run *mutate* on the current tree and record a changed result."""
        result = mutate(self.tree)
        if not result.success:
            logger.info("Edit refused: %s", result.message)
            return result
        if result.tree is not None and result.tree is not self.tree:
            self.history.record(result.tree)
            self._notify()
        return result

    # ---------------------------------------------------------------------------------
    # Mutation API
    # ---------------------------------------------------------------------------------

    def insert(self, parent_id: str, block: EmailBlock, position: Optional[int] = None) -> OperationResult:
        return self._recorded_edit(lambda t: self.editing_service.insert(t, parent_id, block, position))

    def remove(self, block_id: str) -> OperationResult:
        return self._recorded_edit(lambda t: self.editing_service.remove(t, block_id))

    def move(self, block_id: str, new_parent_id: str, position: Optional[int] = None) -> OperationResult:
        return self._recorded_edit(
            lambda t: self.editing_service.move(t, block_id, new_parent_id, position)
        )

    def clone(self, block_id: str) -> OperationResult:
        return self._recorded_edit(lambda t: self.editing_service.clone(t, block_id))

    def update_attributes(self, block_id: str, attributes: Optional[Mapping[str, Any]] = None,
                          content: Any = _UNSET) -> OperationResult:
        if content is _UNSET:
            return self._recorded_edit(
                lambda t: self.editing_service.update_attributes(t, block_id, attributes)
            )
        return self._recorded_edit(
            lambda t: self.editing_service.update_attributes(t, block_id, attributes, content)
        )

    def add_block(self, parent_id: str, block_type, position: Optional[int] = None,
                  attributes: Optional[Mapping[str, Any]] = None) -> OperationResult:
        result = self._recorded_edit(
            lambda t: self.editing_service.add_block(t, parent_id, block_type, position, attributes)
        )
        if result.success and result.details:
            self.history.select(result.details.get("block_id"))
        return result

    def insert_saved_block(self, parent_id: str, saved_block: EmailBlock,
                           position: Optional[int] = None) -> OperationResult:
        return self._recorded_edit(
            lambda t: self.editing_service.insert_saved_block(t, parent_id, saved_block, position)
        )

    def replace_tree(self, candidate: EmailBlock) -> OperationResult:
        return self._recorded_edit(lambda t: self.editing_service.replace_tree(t, candidate))

    # ---------------------------------------------------------------------------------
    # History
    # ---------------------------------------------------------------------------------

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def undo(self) -> bool:
        """Restore the previous tree. Returns False when there is nothing to undo."""
        if self.history.undo() is None:
            logger.info("Edit noop: undo at oldest entry")
            return False
        self._notify()
        return True

    def redo(self) -> bool:
        """Restore the next tree. Returns False when there is nothing to redo."""
        if self.history.redo() is None:
            logger.info("Edit noop: redo at newest entry")
            return False
        self._notify()
        return True

    # ---------------------------------------------------------------------------------
    # Import / export
    # ---------------------------------------------------------------------------------

    def validate(self) -> List[StructuralViolation]:
        return validate_document(self.tree)

    def load_mjml(self, markup: str) -> OperationResult:
        """Parse *markup* and replace the document with it.

        Malformed markup raises :class:`~mjml_toolkit.core.exceptions.MjmlImportError`
        so the caller can show an actionable message.
        """
        return self.replace_tree(parse_mjml(markup))

    def export_mjml(self, pretty: bool = True) -> str:
        return build_mjml(self.tree, pretty=pretty)
