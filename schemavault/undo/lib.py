"""Undo/redo history for the editing session.

The history belongs to whichever diagram is active. Switching diagrams
must wipe it first, so that no entry recorded against one diagram can be
replayed against another.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryAction:
    """One undoable edit.

    Attributes:
        action: Edit kind, e.g. "add_table".
        undo_data: Data needed to revert the edit.
        redo_data: Data needed to apply the edit again.
    """

    action: str
    undo_data: dict[str, Any] = field(default_factory=dict)
    redo_data: dict[str, Any] = field(default_factory=dict)


class UndoRedoStack:
    """Paired undo and redo stacks."""

    def __init__(self) -> None:
        self._undo: list[HistoryAction] = []
        self._redo: list[HistoryAction] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_stack(self) -> tuple[HistoryAction, ...]:
        return tuple(self._undo)

    @property
    def redo_stack(self) -> tuple[HistoryAction, ...]:
        return tuple(self._redo)

    def push(self, action: HistoryAction) -> None:
        """Record a new edit. A new edit invalidates everything redoable."""
        self._undo.append(action)
        self._redo.clear()

    def undo(self) -> HistoryAction | None:
        """Pop the latest edit onto the redo stack and return it."""
        if not self._undo:
            return None
        action = self._undo.pop()
        self._redo.append(action)
        return action

    def redo(self) -> HistoryAction | None:
        """Pop the latest undone edit back onto the undo stack and return it."""
        if not self._redo:
            return None
        action = self._redo.pop()
        self._undo.append(action)
        return action

    def reset_undo_stack(self) -> None:
        self._undo.clear()

    def reset_redo_stack(self) -> None:
        self._redo.clear()


class HistoryCoordinator:
    """Clears the undo/redo history once per diagram switch.

    Args:
        stack: History of the editing session.
    """

    def __init__(self, stack: UndoRedoStack | None = None):
        self.stack = stack or UndoRedoStack()
        self.reset_count = 0

    def reset_before_switch(self) -> None:
        """Clear both stacks ahead of installing another diagram."""
        self.stack.reset_redo_stack()
        self.stack.reset_undo_stack()
        self.reset_count += 1
        logger.debug(f"Reset undo/redo history (switch #{self.reset_count})")


__all__ = ["HistoryAction", "UndoRedoStack", "HistoryCoordinator"]
