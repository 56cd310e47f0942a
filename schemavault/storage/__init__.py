"""Storage backends for diagram persistence.

This module provides the repository protocol and its implementations for
persisting diagrams and their named versions.

Available backends:
- SQLiteStorage: File-based SQLite database (recommended for local use)
- MemoryStorage: In-memory storage for tests and throwaway sessions
"""

from .lib import BACKENDS, create_storage
from .memory import MemoryStorage
from .models import (
    SECTION_NAMES,
    Diagram,
    DiagramSummary,
    DiagramVersion,
    SnapshotOptions,
    generate_id,
    utc_now,
)
from .protocol import DiagramStorage, NotFoundError, StorageError
from .sqlite import SQLiteStorage

__all__ = [
    # Protocol and errors
    "DiagramStorage",
    "StorageError",
    "NotFoundError",
    # Backends
    "MemoryStorage",
    "SQLiteStorage",
    "BACKENDS",
    "create_storage",
    # Models
    "SECTION_NAMES",
    "Diagram",
    "DiagramSummary",
    "DiagramVersion",
    "SnapshotOptions",
    "generate_id",
    "utc_now",
]
