"""SQLite storage backend for diagrams and versions.

Blocking sqlite3 calls run in a worker thread through ``asyncio.to_thread``;
an ``asyncio.Lock`` keeps them one at a time on the shared connection.
"""

import asyncio
import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, TypeVar

from .models import (
    SECTION_NAMES,
    Diagram,
    DiagramSummary,
    DiagramVersion,
    SnapshotOptions,
)
from .protocol import StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# SQL Schema
SCHEMA_SQL = """
-- Diagrams table
CREATE TABLE IF NOT EXISTS diagrams (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL DEFAULT '',
    database_type TEXT NOT NULL DEFAULT 'generic',
    tables TEXT NOT NULL DEFAULT '[]',  -- JSON array
    relationships TEXT NOT NULL DEFAULT '[]',  -- JSON array
    dependencies TEXT NOT NULL DEFAULT '[]',  -- JSON array
    areas TEXT NOT NULL DEFAULT '[]',  -- JSON array
    custom_types TEXT NOT NULL DEFAULT '[]',  -- JSON array
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

-- Versions table; no foreign key, versions outlive their diagram
-- until purged.
CREATE TABLE IF NOT EXISTS diagram_versions (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    diagram_id TEXT NOT NULL,
    name TEXT NOT NULL,
    snapshot TEXT NOT NULL,  -- JSON
    created_at TEXT NOT NULL
);

-- Indexes for common queries
CREATE INDEX IF NOT EXISTS idx_diagrams_updated ON diagrams(updated_at);
CREATE INDEX IF NOT EXISTS idx_versions_diagram ON diagram_versions(diagram_id);
"""


class SQLiteStorage:
    """SQLite-based implementation of DiagramStorage.

    Args:
        db_path: Path to SQLite database file, or ":memory:".
    """

    def __init__(self, db_path: Path | str):
        self.db_path = db_path if db_path == ":memory:" else Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._lock = asyncio.Lock()

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection."""
        if self._conn is None:
            raise RuntimeError("Storage not initialized. Call initialize() first.")
        return self._conn

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking storage call off the event loop."""
        async with self._lock:
            try:
                return await asyncio.to_thread(func, *args)
            except sqlite3.Error as e:
                raise StorageError(f"SQLite operation failed: {e}") from e

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def initialize(self) -> None:
        """Initialize storage (create database file and tables)."""
        await self._run(self._initialize)
        logger.info(f"Initialized SQLite storage at {self.db_path}")

    def _initialize(self) -> None:
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        if isinstance(self.db_path, Path):
            self._conn.execute("PRAGMA journal_mode = WAL")

        self._conn.executescript(SCHEMA_SQL)
        self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        async with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None

    # =========================================================================
    # Diagram Operations
    # =========================================================================

    async def list_diagrams(self) -> list[DiagramSummary]:
        return await self._run(self._list_diagrams)

    def _list_diagrams(self) -> list[DiagramSummary]:
        rows = (
            self._get_conn()
            .execute(
                """
                SELECT id, name, database_type, created_at, updated_at
                FROM diagrams ORDER BY updated_at DESC
                """
            )
            .fetchall()
        )
        return [
            DiagramSummary(
                id=row["id"],
                name=row["name"],
                database_type=row["database_type"],
                created_at=datetime.fromisoformat(row["created_at"]),
                updated_at=datetime.fromisoformat(row["updated_at"]),
            )
            for row in rows
        ]

    async def get_diagram(
        self,
        diagram_id: str,
        options: SnapshotOptions = SnapshotOptions(),
    ) -> Diagram | None:
        return await self._run(self._get_diagram, diagram_id, options)

    def _get_diagram(self, diagram_id: str, options: SnapshotOptions) -> Diagram | None:
        row = (
            self._get_conn()
            .execute("SELECT * FROM diagrams WHERE id = ?", (diagram_id,))
            .fetchone()
        )
        if row is None:
            return None
        return self._row_to_diagram(row, options)

    async def add_diagram(self, diagram: Diagram) -> None:
        await self._run(self._add_diagram, diagram)

    def _add_diagram(self, diagram: Diagram) -> None:
        conn = self._get_conn()
        conn.execute(
            """
            INSERT INTO diagrams (id, name, database_type, tables, relationships,
                                  dependencies, areas, custom_types,
                                  created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                diagram.id,
                diagram.name,
                diagram.database_type,
                *(_dumps(getattr(diagram, name)) for name in SECTION_NAMES),
                diagram.created_at.isoformat(),
                diagram.updated_at.isoformat(),
            ),
        )
        conn.commit()

    async def delete_diagram(self, diagram_id: str) -> bool:
        return await self._run(self._delete_diagram, diagram_id)

    def _delete_diagram(self, diagram_id: str) -> bool:
        conn = self._get_conn()
        cursor = conn.execute("DELETE FROM diagrams WHERE id = ?", (diagram_id,))
        conn.commit()
        return cursor.rowcount > 0

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
        await self._run(self._add_diagram_version, version)

    def _add_diagram_version(self, version: DiagramVersion) -> None:
        conn = self._get_conn()
        conn.execute(
            """
            INSERT INTO diagram_versions (id, diagram_id, name, snapshot, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                version.id,
                version.diagram_id,
                version.name,
                _dumps(self._diagram_to_dict(version.snapshot)),
                version.created_at.isoformat(),
            ),
        )
        conn.commit()

    async def list_diagram_versions(self, diagram_id: str) -> list[DiagramVersion]:
        return await self._run(self._list_versions, diagram_id)

    async def list_all_versions(self) -> list[DiagramVersion]:
        return await self._run(self._list_versions, None)

    def _list_versions(self, diagram_id: str | None) -> list[DiagramVersion]:
        query = "SELECT * FROM diagram_versions"
        params: list[Any] = []
        if diagram_id is not None:
            query += " WHERE diagram_id = ?"
            params.append(diagram_id)
        query += " ORDER BY seq ASC"

        rows = self._get_conn().execute(query, params).fetchall()
        return [self._row_to_version(row) for row in rows]

    async def delete_diagram_version(self, diagram_id: str, version_id: str) -> bool:
        return await self._run(self._delete_diagram_version, diagram_id, version_id)

    def _delete_diagram_version(self, diagram_id: str, version_id: str) -> bool:
        conn = self._get_conn()
        cursor = conn.execute(
            "DELETE FROM diagram_versions WHERE id = ? AND diagram_id = ?",
            (version_id, diagram_id),
        )
        conn.commit()
        return cursor.rowcount > 0

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _row_to_diagram(self, row: sqlite3.Row, options: SnapshotOptions) -> Diagram:
        """Convert database row to Diagram."""
        return Diagram(
            id=row["id"],
            name=row["name"],
            database_type=row["database_type"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            **{
                name: json.loads(row[name]) if options.includes(name) else []
                for name in SECTION_NAMES
            },
        )

    def _row_to_version(self, row: sqlite3.Row) -> DiagramVersion:
        """Convert database row to DiagramVersion."""
        return DiagramVersion(
            id=row["id"],
            diagram_id=row["diagram_id"],
            name=row["name"],
            snapshot=self._dict_to_diagram(json.loads(row["snapshot"])),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _diagram_to_dict(self, diagram: Diagram) -> dict[str, Any]:
        """Convert Diagram to a JSON-serializable dict."""
        return {
            "id": diagram.id,
            "name": diagram.name,
            "database_type": diagram.database_type,
            **{name: getattr(diagram, name) for name in SECTION_NAMES},
            "created_at": diagram.created_at.isoformat(),
            "updated_at": diagram.updated_at.isoformat(),
        }

    def _dict_to_diagram(self, data: dict[str, Any]) -> Diagram:
        """Convert stored dict back to Diagram."""
        return Diagram(
            id=data["id"],
            name=data.get("name", ""),
            database_type=data.get("database_type", "generic"),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            **{name: data.get(name, []) for name in SECTION_NAMES},
        )


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


__all__ = ["SQLiteStorage"]
