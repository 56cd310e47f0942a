"""Tests for undo/redo history."""

import pytest

from .lib import HistoryAction, HistoryCoordinator, UndoRedoStack


@pytest.fixture
def stack():
    """A stack with two recorded edits."""
    stack = UndoRedoStack()
    stack.push(HistoryAction("add_table", undo_data={"id": "t1"}))
    stack.push(HistoryAction("rename_table", redo_data={"name": "orders"}))
    return stack


class TestUndoRedoStack:
    """Tests for UndoRedoStack."""

    @pytest.mark.unit
    def test_empty_stack(self):
        """A new stack has nothing to undo or redo."""
        stack = UndoRedoStack()
        assert not stack.can_undo
        assert not stack.can_redo
        assert stack.undo() is None
        assert stack.redo() is None

    @pytest.mark.unit
    def test_undo_then_redo(self, stack):
        """Undo moves the latest edit to the redo stack and back."""
        undone = stack.undo()
        assert undone.action == "rename_table"
        assert stack.can_redo

        redone = stack.redo()
        assert redone == undone
        assert not stack.can_redo
        assert len(stack.undo_stack) == 2

    @pytest.mark.unit
    def test_push_clears_redo(self, stack):
        """A new edit drops everything redoable."""
        stack.undo()
        stack.push(HistoryAction("add_area"))
        assert not stack.can_redo
        assert [a.action for a in stack.undo_stack] == ["add_table", "add_area"]


class TestHistoryCoordinator:
    """Tests for HistoryCoordinator."""

    @pytest.mark.unit
    def test_reset_clears_both_stacks(self, stack):
        """reset_before_switch empties undo and redo."""
        stack.undo()
        coordinator = HistoryCoordinator(stack)

        coordinator.reset_before_switch()

        assert stack.undo_stack == ()
        assert stack.redo_stack == ()
        assert coordinator.reset_count == 1

    @pytest.mark.unit
    def test_counts_each_reset(self):
        """Every switch is counted."""
        coordinator = HistoryCoordinator()
        coordinator.reset_before_switch()
        coordinator.reset_before_switch()
        assert coordinator.reset_count == 2
