"""Named, immutable snapshots of diagrams.

Provides version creation, listing, deletion, non-destructive restore and
lazy purging of versions whose diagram has been deleted.
"""

import logging
from datetime import datetime

from schemavault.document import clone_diagram
from schemavault.storage import (
    Diagram,
    DiagramStorage,
    DiagramVersion,
    NotFoundError,
    SnapshotOptions,
)

logger = logging.getLogger(__name__)

# Locale date and time, e.g. "10/19/26, 14:05:09"
VERSION_NAME_FORMAT = "%x, %X"


def format_version_timestamp(moment: datetime | None = None) -> str:
    """Render a timestamp as a default version name.

    Uses local time in the current locale's date and time representation.

    Args:
        moment: Time to render; defaults to now.

    Returns:
        Text that ``datetime.strptime(text, VERSION_NAME_FORMAT)`` parses.
    """
    moment = moment or datetime.now()
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.strftime(VERSION_NAME_FORMAT)


class VersionManager:
    """Manager for diagram versions.

    Example:
        >>> manager = VersionManager(storage)
        >>> version = await manager.create_version(diagram.id, "before refactor")
        >>> restored = await manager.restore(version)
        >>> restored.id != diagram.id
        True

    Args:
        storage: Storage backend holding diagrams and versions.
    """

    def __init__(self, storage: DiagramStorage):
        self._storage = storage

    async def create_version(
        self,
        diagram_id: str,
        name: str | None = None,
    ) -> DiagramVersion:
        """Snapshot a diagram under a new version.

        Args:
            diagram_id: Diagram to snapshot.
            name: Human label; blank names become the current timestamp.

        Returns:
            The stored version.

        Raises:
            NotFoundError: If the diagram does not exist.
        """
        snapshot = await self._storage.get_diagram(diagram_id, SnapshotOptions.full())
        if snapshot is None:
            raise NotFoundError(f"Diagram {diagram_id} not found")

        label = (name or "").strip() or format_version_timestamp()
        version = DiagramVersion.create(diagram_id, label, snapshot)
        await self._storage.add_diagram_version(diagram_id, version)

        logger.info(f"Created version {version.id} ({label!r}) of diagram {diagram_id}")
        return version

    async def list_versions(self, diagram_id: str) -> list[DiagramVersion]:
        """List versions of a diagram in creation order.

        Unknown diagrams have no versions; this never raises NotFoundError.
        """
        return await self._storage.list_diagram_versions(diagram_id)

    async def get_version(self, diagram_id: str, version_id: str) -> DiagramVersion | None:
        """Get one version of a diagram, or None if absent."""
        for version in await self.list_versions(diagram_id):
            if version.id == version_id:
                return version
        return None

    async def delete_version(self, diagram_id: str, version_id: str) -> bool:
        """Delete one version.

        Returns:
            True if deleted, False if it did not exist.
        """
        deleted = await self._storage.delete_diagram_version(diagram_id, version_id)
        if deleted:
            logger.info(f"Deleted version {version_id} of diagram {diagram_id}")
        else:
            logger.debug(f"Version {version_id} of diagram {diagram_id} already gone")
        return deleted

    async def restore(self, version: DiagramVersion) -> Diagram:
        """Restore a version as a brand-new diagram.

        The original diagram and its versions are not touched. Activating
        the returned diagram is up to the caller.

        Returns:
            The inserted diagram, with a new id and fresh timestamps.
        """
        restored = clone_diagram(version.snapshot)
        await self._storage.add_diagram(restored)

        logger.info(
            f"Restored version {version.id} of diagram {version.diagram_id} "
            f"as diagram {restored.id}"
        )
        return restored

    async def purge_orphan_versions(self) -> int:
        """Delete versions whose diagram no longer exists.

        Returns:
            Number of versions deleted.
        """
        existing = {summary.id for summary in await self._storage.list_diagrams()}
        purged = 0
        for version in await self._storage.list_all_versions():
            if version.diagram_id in existing:
                continue
            if await self._storage.delete_diagram_version(version.diagram_id, version.id):
                purged += 1

        if purged:
            logger.info(f"Purged {purged} orphaned versions")
        return purged


__all__ = [
    "VERSION_NAME_FORMAT",
    "format_version_timestamp",
    "VersionManager",
]
