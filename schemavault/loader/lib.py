"""Load resolver for the editor.

Decides which diagram a session shows by reconciling the route diagram id,
a ``#share=`` fragment, the configured default diagram and the diagrams in
storage. Evaluations are re-entrant: the caller may evaluate on every state
change, and the resolver only does work when the target actually changed.
"""

import logging

from schemavault.config import AppConfig
from schemavault.document import DocumentImportError, diagram_from_json
from schemavault.routing import RouteState, diagram_path
from schemavault.share import decode_share_payload, is_share_fragment
from schemavault.storage import DiagramStorage, SnapshotOptions, StorageError
from schemavault.undo import HistoryCoordinator

from .guard import LoadGuard
from .models import (
    ActiveDiagram,
    LoaderDisplay,
    Navigator,
    PromptHost,
    ResolutionOutcome,
    ResolutionState,
)

logger = logging.getLogger(__name__)


class LoadResolver:
    """State machine resolving the route into an active diagram.

    Resolution order for a route that does not already match the active
    diagram:

    1. No route id and a ``#share=`` fragment: import the shared diagram,
       clear the fragment, navigate to it.
    2. Route id: reset history, load it, install it or ask the user to pick
       another diagram.
    3. No route id and a configured default that exists: navigate to it.
    4. Otherwise ask the user to open or create a diagram.

    Args:
        storage: Diagram storage.
        active: Holder of the active diagram.
        navigator: Router to read and change the route.
        prompts: Dialog host for open/create prompts.
        history: Undo/redo coordinator reset before every switch.
        display: Optional full-screen loader.
    """

    def __init__(
        self,
        storage: DiagramStorage,
        active: ActiveDiagram,
        navigator: Navigator,
        prompts: PromptHost,
        history: HistoryCoordinator,
        display: LoaderDisplay | None = None,
    ):
        self._storage = storage
        self._active = active
        self._navigator = navigator
        self._prompts = prompts
        self._history = history
        self._display = display

        self.state = ResolutionState.IDLE
        self.guard = LoadGuard()
        # Bumped by every evaluation that is not skipped; a result whose
        # ticket is no longer current belongs to a superseded target.
        self._ticket = 0

    async def evaluate(
        self,
        route: RouteState,
        config: AppConfig | None,
    ) -> ResolutionOutcome:
        """Evaluate the route and run at most one resolution path.

        Args:
            route: Current route.
            config: Application configuration; None while it is not loaded.

        Returns:
            What the evaluation did.
        """
        key = route.target_key

        if config is None:
            logger.debug("Configuration not loaded, skipping resolution")
            return ResolutionOutcome(self.state, key, skipped=True)

        current = self._active.current
        if current is not None and current.id == route.diagram_id:
            self._ticket += 1
            self.guard.enter(key)
            self.state = ResolutionState.RESOLVED
            # A superseded load may have left the loader up
            if self._display is not None:
                self._display.hide_loader()
            return ResolutionOutcome(self.state, key, diagram=current)

        if self.guard.should_skip(key):
            logger.debug(f"Resolution for {key!r} already handled, skipping")
            return ResolutionOutcome(self.state, key, skipped=True)

        self.guard.enter(key)
        self._ticket += 1
        ticket = self._ticket
        previous = self.state

        try:
            return await self._resolve(route, config, ticket)
        except StorageError as e:
            if self._is_stale(ticket):
                return self._discard(key)
            logger.warning(f"Resolution for {key!r} failed: {e}")
            self.state = previous
            self.guard.release(key)
            return ResolutionOutcome(self.state, key, error=e)
        except Exception:
            # Leave the key evaluable again before propagating
            if not self._is_stale(ticket):
                self.state = previous
                self.guard.release(key)
            raise
        finally:
            if self._display is not None and not self._is_stale(ticket):
                self._display.hide_loader()

    # =========================================================================
    # Resolution Paths
    # =========================================================================

    async def _resolve(
        self,
        route: RouteState,
        config: AppConfig,
        ticket: int,
    ) -> ResolutionOutcome:
        key = route.target_key

        if route.diagram_id is None and is_share_fragment(route.fragment):
            outcome = await self._import_share(route, ticket)
            if outcome is not None:
                return outcome

        if route.diagram_id is not None:
            return await self._load_by_id(route.diagram_id, ticket)

        if config.default_diagram_id:
            self.state = ResolutionState.LOADING_DEFAULT
            default = await self._storage.get_diagram(config.default_diagram_id)
            if self._is_stale(ticket):
                return self._discard(key)
            if default is not None:
                path = diagram_path(default.id)
                self._navigator.navigate(path)
                return ResolutionOutcome(self.state, key, navigated_to=path)
            logger.info(f"Default diagram {config.default_diagram_id} not found")

        diagrams = await self._storage.list_diagrams()
        if self._is_stale(ticket):
            return self._discard(key)
        return self._prompt(key, has_diagrams=bool(diagrams))

    async def _import_share(
        self,
        route: RouteState,
        ticket: int,
    ) -> ResolutionOutcome | None:
        """Import the diagram in the share fragment.

        Returns None when the payload is unusable, so resolution falls
        through to the next path.
        """
        key = route.target_key
        self.state = ResolutionState.IMPORTING_SHARE

        text = decode_share_payload(route.fragment)
        if text is None:
            logger.info("Share fragment is not a valid payload, ignoring it")
            return None
        try:
            diagram = diagram_from_json(text)
        except DocumentImportError as e:
            logger.info(f"Share payload is not a diagram, ignoring it: {e}")
            return None

        await self._storage.add_diagram(diagram)
        if self._is_stale(ticket):
            # Nothing will navigate to the copy, so drop it
            await self._storage.delete_diagram(diagram.id)
            logger.debug(f"Removed superseded shared import {diagram.id}")
            return self._discard(key)

        self._navigator.clear_fragment()
        path = diagram_path(diagram.id)
        self._navigator.navigate(path)

        logger.info(f"Imported shared diagram {diagram.name!r} as {diagram.id}")
        return ResolutionOutcome(self.state, key, diagram=diagram, navigated_to=path)

    async def _load_by_id(self, diagram_id: str, ticket: int) -> ResolutionOutcome:
        self.state = ResolutionState.LOADING_BY_ID
        if self._display is not None:
            self._display.show_loader()
        self._history.reset_before_switch()

        diagram = await self._storage.get_diagram(diagram_id, SnapshotOptions.full())
        if self._is_stale(ticket):
            return self._discard(diagram_id)

        if diagram is None:
            logger.info(f"Diagram {diagram_id} not found")
            self.state = ResolutionState.AWAITING_OPEN_CHOICE
            self._prompts.open_open_diagram_dialog(can_close=False)
            return ResolutionOutcome(self.state, diagram_id)

        self._active.install(diagram)
        self.state = ResolutionState.RESOLVED
        return ResolutionOutcome(self.state, diagram_id, diagram=diagram)

    def _prompt(self, key: str, has_diagrams: bool) -> ResolutionOutcome:
        if has_diagrams:
            self.state = ResolutionState.AWAITING_OPEN_CHOICE
            self._prompts.open_open_diagram_dialog(can_close=False)
        else:
            self.state = ResolutionState.AWAITING_CREATE_CHOICE
            self._prompts.open_create_diagram_dialog()
        return ResolutionOutcome(self.state, key)

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _is_stale(self, ticket: int) -> bool:
        return ticket != self._ticket

    def _discard(self, key: str) -> ResolutionOutcome:
        logger.debug(f"Discarding stale result for {key!r}")
        return ResolutionOutcome(self.state, key, stale=True)


__all__ = ["LoadResolver"]
