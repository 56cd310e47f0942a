"""Storage backend selection."""

import logging
from pathlib import Path

from schemavault.config import EnvVar, get_environment

from .memory import MemoryStorage
from .protocol import DiagramStorage
from .sqlite import SQLiteStorage

logger = logging.getLogger(__name__)

BACKENDS = ("sqlite", "memory")


def create_storage(
    backend: str | None = None,
    db_path: Path | str | None = None,
) -> DiagramStorage:
    """Create the configured storage backend (not yet initialized).

    Resolution: arguments > SCHEMAVAULT_STORAGE_BACKEND / SCHEMAVAULT_DB_PATH
    > defaults.

    Args:
        backend: "sqlite" or "memory".
        db_path: SQLite database path (ignored by the memory backend).

    Returns:
        Storage backend instance. Call ``initialize()`` before use.

    Raises:
        ValueError: If the backend name is unknown.
    """
    name = get_environment(EnvVar.STORAGE_BACKEND, override=backend).lower()
    if name not in BACKENDS:
        raise ValueError(f"Unknown storage backend {name!r}, expected one of {BACKENDS}")

    if name == "memory":
        logger.debug("Using in-memory storage")
        return MemoryStorage()

    path = get_environment(EnvVar.DB_PATH, override=db_path)
    return SQLiteStorage(path)


__all__ = ["BACKENDS", "create_storage"]
