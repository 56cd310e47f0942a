"""Data models and collaborator interfaces for diagram load resolution."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from schemavault.routing import RouteState
from schemavault.storage import Diagram, StorageError

logger = logging.getLogger(__name__)


class ResolutionState(str, Enum):
    """State of the load resolver."""

    IDLE = "idle"  # Nothing evaluated yet
    IMPORTING_SHARE = "importing_share"  # Importing a #share= payload
    LOADING_BY_ID = "loading_by_id"  # Loading the diagram named by the route
    LOADING_DEFAULT = "loading_default"  # Checking the configured default
    AWAITING_OPEN_CHOICE = "awaiting_open_choice"  # User must pick a diagram
    AWAITING_CREATE_CHOICE = "awaiting_create_choice"  # User must create one
    RESOLVED = "resolved"  # Active diagram matches the route


@dataclass(frozen=True)
class ResolutionOutcome:
    """Result of one resolver evaluation.

    Attributes:
        state: Resolver state after the evaluation.
        target_key: Key of the route that was evaluated.
        diagram: Diagram installed or imported, if any.
        navigated_to: Path the resolver navigated to, if any.
        skipped: True when the evaluation did nothing (guard or no config).
        stale: True when the route changed while storage was busy and the
            result was discarded.
        error: Storage failure that aborted the evaluation.
    """

    state: ResolutionState
    target_key: str
    diagram: Diagram | None = None
    navigated_to: str | None = None
    skipped: bool = False
    stale: bool = False
    error: StorageError | None = None


class ActiveDiagram:
    """Holder of the diagram currently shown in the editor."""

    def __init__(self) -> None:
        self.current: Diagram | None = None

    @property
    def id(self) -> str | None:
        return self.current.id if self.current else None

    def install(self, diagram: Diagram) -> None:
        """Make ``diagram`` the active diagram."""
        self.current = diagram
        logger.info(f"Active diagram is now {diagram.id} ({diagram.name!r})")


class Navigator(Protocol):
    """Router interface used by the resolver."""

    def current(self) -> RouteState:
        """Current route."""
        ...

    def navigate(self, path: str) -> None:
        """Go to ``path``."""
        ...

    def clear_fragment(self) -> None:
        """Drop the URL fragment without navigating."""
        ...


class PromptHost(Protocol):
    """Dialogs the resolver can open when it has nothing to show."""

    def open_open_diagram_dialog(self, can_close: bool) -> None:
        """Ask the user to pick an existing diagram."""
        ...

    def open_create_diagram_dialog(self) -> None:
        """Ask the user to create a diagram."""
        ...


class LoaderDisplay(Protocol):
    """Full-screen loading indicator."""

    def show_loader(self) -> None: ...

    def hide_loader(self) -> None: ...


__all__ = [
    "ResolutionState",
    "ResolutionOutcome",
    "ActiveDiagram",
    "Navigator",
    "PromptHost",
    "LoaderDisplay",
]
