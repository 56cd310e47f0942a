"""In-memory storage backend.

Keeps diagrams and versions in dicts. Every value is deep-copied on the
way in and on the way out so callers never share state with the store.
Used by tests and by sessions that do not need persistence.
"""

import copy
import logging

from .models import Diagram, DiagramSummary, DiagramVersion, SnapshotOptions
from .protocol import StorageError

logger = logging.getLogger(__name__)


class MemoryStorage:
    """Dict-backed implementation of DiagramStorage."""

    def __init__(self) -> None:
        self._diagrams: dict[str, Diagram] = {}
        # Insertion-ordered: version id -> version
        self._versions: dict[str, DiagramVersion] = {}

    async def initialize(self) -> None:
        """Nothing to prepare for the in-memory store."""
        logger.debug("Initialized in-memory storage")

    async def close(self) -> None:
        """Drop all stored records."""
        self._diagrams.clear()
        self._versions.clear()

    # =========================================================================
    # Diagram Operations
    # =========================================================================

    async def list_diagrams(self) -> list[DiagramSummary]:
        diagrams = sorted(
            self._diagrams.values(), key=lambda d: d.updated_at, reverse=True
        )
        return [diagram.summary() for diagram in diagrams]

    async def get_diagram(
        self,
        diagram_id: str,
        options: SnapshotOptions = SnapshotOptions(),
    ) -> Diagram | None:
        diagram = self._diagrams.get(diagram_id)
        if diagram is None:
            return None
        return diagram.filtered(options)

    async def add_diagram(self, diagram: Diagram) -> None:
        if diagram.id in self._diagrams:
            raise StorageError(f"Diagram {diagram.id} already exists")
        self._diagrams[diagram.id] = copy.deepcopy(diagram)

    async def delete_diagram(self, diagram_id: str) -> bool:
        return self._diagrams.pop(diagram_id, None) is not None

    # =========================================================================
    # Version Operations
    # =========================================================================

    async def add_diagram_version(
        self,
        diagram_id: str,
        version: DiagramVersion,
    ) -> None:
        if version.diagram_id != diagram_id:
            raise StorageError(
                f"Version {version.id} belongs to {version.diagram_id}, not {diagram_id}"
            )
        if version.id in self._versions:
            raise StorageError(f"Version {version.id} already exists")
        self._versions[version.id] = copy.deepcopy(version)

    async def list_diagram_versions(self, diagram_id: str) -> list[DiagramVersion]:
        return [
            copy.deepcopy(version)
            for version in self._versions.values()
            if version.diagram_id == diagram_id
        ]

    async def delete_diagram_version(self, diagram_id: str, version_id: str) -> bool:
        version = self._versions.get(version_id)
        if version is None or version.diagram_id != diagram_id:
            return False
        del self._versions[version_id]
        return True

    async def list_all_versions(self) -> list[DiagramVersion]:
        return [copy.deepcopy(version) for version in self._versions.values()]


__all__ = ["MemoryStorage"]
