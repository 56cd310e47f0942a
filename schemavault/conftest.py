"""Shared fixtures for resolver and session tests.

This module provides recording stand-ins for the editor collaborators.
Every fake appends to one shared ``events`` list so tests can assert the
order in which the resolver touched them.
"""

from __future__ import annotations

import asyncio

import pytest

from schemavault.loader import ActiveDiagram
from schemavault.routing import MemoryRouter
from schemavault.storage import Diagram, MemoryStorage, SnapshotOptions, StorageError
from schemavault.undo import HistoryCoordinator

# =============================================================================
# Recording Collaborators
# =============================================================================


class TrackedStorage(MemoryStorage):
    """MemoryStorage that records loads and can block or fail them."""

    def __init__(self, events: list):
        super().__init__()
        self.events = events
        self.get_calls: list[str] = []
        self.gates: dict[str, asyncio.Event] = {}
        self.fail_with: StorageError | None = None
        self.add_calls: list[str] = []
        self.add_gate: asyncio.Event | None = None

    async def get_diagram(
        self,
        diagram_id: str,
        options: SnapshotOptions = SnapshotOptions(),
    ) -> Diagram | None:
        self.get_calls.append(diagram_id)
        self.events.append(("load", diagram_id))
        if self.fail_with is not None:
            raise self.fail_with
        gate = self.gates.get(diagram_id)
        if gate is not None:
            await gate.wait()
        return await super().get_diagram(diagram_id, options)

    async def add_diagram(self, diagram: Diagram) -> None:
        self.add_calls.append(diagram.id)
        if self.add_gate is not None:
            await self.add_gate.wait()
        await super().add_diagram(diagram)
        self.events.append(("add", diagram.id))


class RecordingRouter(MemoryRouter):
    """MemoryRouter that records navigation and fragment clearing."""

    def __init__(self, events: list, url: str = "/"):
        super().__init__(url)
        self.events = events

    def navigate(self, path: str) -> None:
        super().navigate(path)
        self.events.append(("navigate", path))

    def clear_fragment(self) -> None:
        super().clear_fragment()
        self.events.append(("clear_fragment",))


class RecordingPrompts:
    """PromptHost that records which dialog was opened."""

    def __init__(self, events: list):
        self.events = events
        self.calls: list[tuple] = []

    def open_open_diagram_dialog(self, can_close: bool) -> None:
        self.calls.append(("open", can_close))
        self.events.append(("prompt_open", can_close))

    def open_create_diagram_dialog(self) -> None:
        self.calls.append(("create",))
        self.events.append(("prompt_create",))


class RecordingDisplay:
    """LoaderDisplay that records show/hide calls."""

    def __init__(self, events: list):
        self.events = events
        self.visible = False

    def show_loader(self) -> None:
        self.visible = True
        self.events.append(("show_loader",))

    def hide_loader(self) -> None:
        self.visible = False
        self.events.append(("hide_loader",))


class RecordingHistory(HistoryCoordinator):
    """HistoryCoordinator that records resets."""

    def __init__(self, events: list):
        super().__init__()
        self.events = events

    def reset_before_switch(self) -> None:
        super().reset_before_switch()
        self.events.append(("reset_history",))


class RecordingActive(ActiveDiagram):
    """ActiveDiagram that records installs."""

    def __init__(self, events: list):
        super().__init__()
        self.events = events

    def install(self, diagram: Diagram) -> None:
        super().install(diagram)
        self.events.append(("install", diagram.id))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def events() -> list:
    """Shared, ordered log of collaborator calls."""
    return []


@pytest.fixture
def tracked_storage(events) -> TrackedStorage:
    return TrackedStorage(events)


@pytest.fixture
def router(events) -> RecordingRouter:
    return RecordingRouter(events)


@pytest.fixture
def prompts(events) -> RecordingPrompts:
    return RecordingPrompts(events)


@pytest.fixture
def display(events) -> RecordingDisplay:
    return RecordingDisplay(events)


@pytest.fixture
def history(events) -> RecordingHistory:
    return RecordingHistory(events)


@pytest.fixture
def active(events) -> RecordingActive:
    return RecordingActive(events)
