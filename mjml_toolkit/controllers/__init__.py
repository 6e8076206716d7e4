"""Session-level controllers coordinating services for editor front-ends."""

from .editor_controller import EditorController

__all__ = ["EditorController"]
