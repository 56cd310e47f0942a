"""Editor session.

Wires the router, the load resolver, the active diagram and version restore
together. The host application calls ``sync()`` whenever the route or the
configuration may have changed.
"""

from pathlib import Path

from dotenv import load_dotenv

from schemavault.config import AppConfig, EnvVar, get_app_config, get_environment
from schemavault.core import get_logger, setup_logging
from schemavault.loader import (
    ActiveDiagram,
    LoaderDisplay,
    LoadResolver,
    PromptHost,
    ResolutionOutcome,
)
from schemavault.routing import MemoryRouter, diagram_path
from schemavault.share import ClipboardWriter, build_share_link, copy_share_link
from schemavault.storage import (
    Diagram,
    DiagramStorage,
    DiagramVersion,
    NotFoundError,
    create_storage,
)
from schemavault.undo import HistoryCoordinator
from schemavault.versions import VersionManager

logger = get_logger("schemavault.session")


class EditorSession:
    """One editor window: a router, an active diagram and its history.

    Example:
        >>> session = EditorSession(storage, MemoryRouter("/"), prompts, AppConfig())
        >>> await session.sync()
        >>> version = await session.create_version("checkpoint")
        >>> restored = await session.restore_version(version)

    Args:
        storage: Initialized diagram storage.
        router: Router holding the current location.
        prompts: Dialog host for open/create prompts.
        config: Application configuration; None until it is loaded.
        history: Undo/redo coordinator (created when omitted).
        display: Optional full-screen loader.
        active: Active-diagram holder (created when omitted).
        max_redirects: Navigations one sync() follows; defaults to
            SCHEMAVAULT_MAX_REDIRECTS.
    """

    def __init__(
        self,
        storage: DiagramStorage,
        router: MemoryRouter,
        prompts: PromptHost,
        config: AppConfig | None,
        history: HistoryCoordinator | None = None,
        display: LoaderDisplay | None = None,
        active: ActiveDiagram | None = None,
        max_redirects: int | None = None,
    ):
        self.storage = storage
        self.router = router
        self.config = config
        self.history = history or HistoryCoordinator()
        self.active = active or ActiveDiagram()
        self.versions = VersionManager(storage)
        self.max_redirects = get_environment(
            EnvVar.MAX_REDIRECTS, override=max_redirects
        )
        self.resolver = LoadResolver(
            storage, self.active, router, prompts, self.history, display
        )

    async def sync(self) -> ResolutionOutcome:
        """Resolve the current route, following resolver navigations.

        Returns:
            Outcome of the last evaluation.
        """
        outcome = await self.resolver.evaluate(self.router.current(), self.config)

        redirects = 0
        while outcome.navigated_to is not None:
            if redirects >= self.max_redirects:
                logger.warning(
                    f"Stopped following navigations after {redirects} redirects"
                )
                break
            redirects += 1
            outcome = await self.resolver.evaluate(self.router.current(), self.config)
        return outcome

    async def configure(self, config: AppConfig) -> ResolutionOutcome:
        """Install the loaded configuration and resolve the route."""
        self.config = config
        return await self.sync()

    async def open_diagram(self, diagram_id: str) -> ResolutionOutcome:
        """Navigate to a diagram and resolve it."""
        self.router.navigate(diagram_path(diagram_id))
        return await self.sync()

    # =========================================================================
    # Versions
    # =========================================================================

    def _require_active(self) -> Diagram:
        if self.active.current is None:
            raise NotFoundError("No active diagram")
        return self.active.current

    async def create_version(self, name: str | None = None) -> DiagramVersion:
        """Snapshot the active diagram.

        Raises:
            NotFoundError: If no diagram is active.
        """
        return await self.versions.create_version(self._require_active().id, name)

    async def list_versions(self) -> list[DiagramVersion]:
        """Versions of the active diagram, oldest first."""
        if self.active.current is None:
            return []
        return await self.versions.list_versions(self.active.current.id)

    async def delete_version(self, version_id: str) -> bool:
        """Delete a version of the active diagram."""
        diagram = self._require_active()
        return await self.versions.delete_version(diagram.id, version_id)

    async def restore_version(self, version: DiagramVersion) -> Diagram:
        """Restore a version as a new diagram and switch to it.

        History is reset once here; the resolver sees the restored diagram
        already active and does not reset it again.

        Returns:
            The restored diagram.
        """
        restored = await self.versions.restore(version)

        self.history.reset_before_switch()
        self.active.install(restored)
        self.router.navigate(diagram_path(restored.id))
        await self.sync()

        logger.info(f"Restored version {version.name!r} as diagram {restored.id}")
        return restored

    # =========================================================================
    # Sharing
    # =========================================================================

    def share_link(self, base_url: str | None = None) -> str:
        """Share link for the active diagram.

        Args:
            base_url: Page URL; defaults to SCHEMAVAULT_SHARE_BASE_URL.

        Raises:
            NotFoundError: If no diagram is active.
        """
        diagram = self._require_active()
        base_url = get_environment(EnvVar.SHARE_BASE_URL, override=base_url)
        return build_share_link(diagram, base_url)

    async def copy_share_link(
        self,
        writer: ClipboardWriter,
        base_url: str | None = None,
    ) -> bool:
        """Copy the active diagram's share link to the clipboard.

        Returns:
            True if the link was copied, False otherwise.
        """
        if self.active.current is None:
            logger.info("Nothing to share, no diagram is active")
            return False
        return await copy_share_link(self.share_link(base_url), writer)


async def open_session(
    prompts: PromptHost,
    router: MemoryRouter | None = None,
    display: LoaderDisplay | None = None,
    backend: str | None = None,
    db_path: Path | str | None = None,
    purge_orphans: bool | None = None,
) -> EditorSession:
    """Create a session from the environment and resolve its first route.

    Variables from a .env file in the working directory are loaded first and
    logging is configured from SCHEMAVAULT_LOG_LEVEL.

    Args:
        prompts: Dialog host for open/create prompts.
        router: Router; starts at "/" when omitted.
        display: Optional full-screen loader.
        backend: Storage backend override.
        db_path: SQLite path override.
        purge_orphans: Delete versions of deleted diagrams before the first
            sync; defaults to SCHEMAVAULT_PURGE_ORPHANS_ON_OPEN.

    Returns:
        A synced EditorSession. Close ``session.storage`` when done.
    """
    load_dotenv()
    setup_logging(get_environment(EnvVar.LOG_LEVEL))

    storage = create_storage(backend, db_path)
    await storage.initialize()

    session = EditorSession(
        storage,
        router or MemoryRouter(),
        prompts,
        get_app_config(),
        display=display,
    )
    if get_environment(EnvVar.PURGE_ORPHANS_ON_OPEN, override=purge_orphans):
        await session.versions.purge_orphan_versions()

    outcome = await session.sync()
    logger.info(f"Opened session on {type(storage).__name__}: {outcome.state.value}")
    return session


__all__ = ["EditorSession", "open_session"]
