"""Storage protocol for diagram persistence.

Defines the interface that all storage backends must implement, and the
errors they raise.
"""

from typing import Protocol

from .models import Diagram, DiagramSummary, DiagramVersion, SnapshotOptions


class StorageError(Exception):
    """Underlying persistence failure."""


class NotFoundError(StorageError):
    """A diagram or version required by an operation does not exist."""


class DiagramStorage(Protocol):
    """Protocol defining the storage interface for diagrams and versions.

    All operations are coroutines; they are the only points where the
    resolver and the version manager yield control.
    """

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def initialize(self) -> None:
        """Initialize storage (create tables, indexes, etc.)."""
        ...

    async def close(self) -> None:
        """Close storage connections and clean up resources."""
        ...

    # =========================================================================
    # Diagram Operations
    # =========================================================================

    async def list_diagrams(self) -> list[DiagramSummary]:
        """List all diagrams.

        Returns:
            Summaries ordered by updated_at descending.
        """
        ...

    async def get_diagram(
        self,
        diagram_id: str,
        options: SnapshotOptions = SnapshotOptions(),
    ) -> Diagram | None:
        """Get a diagram by ID.

        Args:
            diagram_id: Diagram identifier.
            options: Content sections to include.

        Returns:
            Diagram if found, None otherwise.
        """
        ...

    async def add_diagram(self, diagram: Diagram) -> None:
        """Insert a new diagram.

        Args:
            diagram: Diagram to store. Its id must not exist yet.
        """
        ...

    async def delete_diagram(self, diagram_id: str) -> bool:
        """Delete a diagram. Its versions are left in place.

        Args:
            diagram_id: Diagram to delete.

        Returns:
            True if deleted, False if not found.
        """
        ...

    # =========================================================================
    # Version Operations
    # =========================================================================

    async def add_diagram_version(
        self,
        diagram_id: str,
        version: DiagramVersion,
    ) -> None:
        """Store a new version of a diagram.

        Args:
            diagram_id: Owning diagram.
            version: Version to store.
        """
        ...

    async def list_diagram_versions(self, diagram_id: str) -> list[DiagramVersion]:
        """List versions of a diagram.

        Args:
            diagram_id: Owning diagram.

        Returns:
            Versions in creation order, empty if there are none.
        """
        ...

    async def delete_diagram_version(self, diagram_id: str, version_id: str) -> bool:
        """Delete one version.

        Args:
            diagram_id: Owning diagram.
            version_id: Version to delete.

        Returns:
            True if deleted, False if not found.
        """
        ...

    async def list_all_versions(self) -> list[DiagramVersion]:
        """List every stored version regardless of owner.

        Returns:
            Versions in creation order.
        """
        ...


__all__ = ["DiagramStorage", "StorageError", "NotFoundError"]
