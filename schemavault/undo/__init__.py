"""Undo/redo history and its reset on diagram switches."""

from .lib import HistoryAction, HistoryCoordinator, UndoRedoStack

__all__ = ["HistoryAction", "HistoryCoordinator", "UndoRedoStack"]
