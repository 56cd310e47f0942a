"""schemavault: diagram persistence, versioning and load resolution."""

from schemavault.loader import LoadGuard, LoadResolver, ResolutionState
from schemavault.session import ActiveDiagram, EditorSession
from schemavault.share import decode_share_payload, encode_share_payload
from schemavault.storage import (
    Diagram,
    DiagramStorage,
    DiagramVersion,
    MemoryStorage,
    NotFoundError,
    SQLiteStorage,
    StorageError,
)
from schemavault.undo import HistoryCoordinator
from schemavault.versions import VersionManager

__all__ = [
    # Storage
    "Diagram",
    "DiagramVersion",
    "DiagramStorage",
    "MemoryStorage",
    "SQLiteStorage",
    "StorageError",
    "NotFoundError",
    # Share
    "encode_share_payload",
    "decode_share_payload",
    # Versions
    "VersionManager",
    # Loading
    "LoadGuard",
    "LoadResolver",
    "ResolutionState",
    "HistoryCoordinator",
    "ActiveDiagram",
    "EditorSession",
]
