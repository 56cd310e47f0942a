"""Tests for diagram storage backends.

Tests cover:
- Data models and snapshot options
- Diagram CRUD on every backend
- Version ordering, deletion and value-copy isolation
- Backend selection and error wrapping
"""

import sqlite3
from datetime import datetime

import pytest
import pytest_asyncio

from .lib import create_storage
from .memory import MemoryStorage
from .models import Diagram, DiagramVersion, SnapshotOptions
from .protocol import StorageError
from .sqlite import SQLiteStorage

# =============================================================================
# Fixtures
# =============================================================================


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def storage(request, tmp_path):
    """Initialized storage, once per backend."""
    if request.param == "memory":
        backend = MemoryStorage()
    else:
        backend = SQLiteStorage(tmp_path / "diagrams.db")
    await backend.initialize()
    yield backend
    await backend.close()


@pytest.fixture
def sample_diagram():
    """A diagram with every content section filled and non-ASCII names."""
    return Diagram.create(
        name="Inventário",
        database_type="postgresql",
        tables=[
            {"id": "t1", "name": "produtos", "fields": [{"name": "preço"}]},
            {"id": "t2", "name": "注文", "fields": [{"name": "数量"}]},
        ],
        relationships=[{"id": "r1", "source": "t1", "target": "t2"}],
        dependencies=[{"id": "dep1", "table": "t2", "dependent": "t1"}],
        areas=[{"id": "a1", "name": "Sales"}],
        custom_types=[{"id": "ct1", "name": "mood", "kind": "enum"}],
    )


# =============================================================================
# Model Tests
# =============================================================================


class TestModels:
    """Tests for data models."""

    @pytest.mark.unit
    def test_diagram_creation_via_factory(self, sample_diagram):
        """Factory generates an id and UTC timestamps."""
        assert sample_diagram.id
        assert sample_diagram.created_at.tzinfo is not None
        assert len(sample_diagram.tables) == 2

    @pytest.mark.unit
    def test_diagram_factory_rejects_unknown_sections(self):
        """Unknown content sections are a programming error."""
        with pytest.raises(ValueError):
            Diagram.create(name="x", widgets=[])

    @pytest.mark.unit
    def test_snapshot_options_full(self):
        """full() includes every section."""
        options = SnapshotOptions.full()
        assert options.is_full
        assert not SnapshotOptions().is_full
        assert not SnapshotOptions(include_tables=True).is_full

    @pytest.mark.unit
    def test_filtered_drops_unrequested_sections(self, sample_diagram):
        """filtered() keeps only requested sections."""
        partial = sample_diagram.filtered(SnapshotOptions(include_tables=True))
        assert partial.tables == sample_diagram.tables
        assert partial.relationships == []
        assert partial.areas == []

    @pytest.mark.unit
    def test_version_factory_copies_snapshot(self, sample_diagram):
        """A new version does not alias the diagram it was taken from."""
        version = DiagramVersion.create(sample_diagram.id, "v1", sample_diagram)
        sample_diagram.tables[0]["name"] = "renamed"
        assert version.snapshot.tables[0]["name"] == "produtos"


# =============================================================================
# Diagram Operations
# =============================================================================


class TestDiagramOperations:
    """Diagram CRUD shared by all backends."""

    @pytest.mark.asyncio
    async def test_add_and_get_full(self, storage, sample_diagram):
        """A full load returns every section unchanged."""
        await storage.add_diagram(sample_diagram)
        loaded = await storage.get_diagram(sample_diagram.id, SnapshotOptions.full())
        assert loaded == sample_diagram

    @pytest.mark.asyncio
    async def test_get_without_options_omits_content(self, storage, sample_diagram):
        """Default options load only the diagram header."""
        await storage.add_diagram(sample_diagram)
        loaded = await storage.get_diagram(sample_diagram.id)
        assert loaded is not None
        assert loaded.name == "Inventário"
        assert loaded.tables == []

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, storage):
        """Unknown ids load as None."""
        assert await storage.get_diagram("missing") is None

    @pytest.mark.asyncio
    async def test_duplicate_id_is_storage_error(self, storage, sample_diagram):
        """Inserting the same id twice fails with StorageError."""
        await storage.add_diagram(sample_diagram)
        with pytest.raises(StorageError):
            await storage.add_diagram(sample_diagram)

    @pytest.mark.asyncio
    async def test_list_diagrams(self, storage):
        """Listing returns summaries, most recently updated first."""
        older = Diagram.create(name="older")
        newer = Diagram.create(name="newer")
        older.updated_at = datetime(2024, 1, 1, tzinfo=older.updated_at.tzinfo)
        await storage.add_diagram(older)
        await storage.add_diagram(newer)

        summaries = await storage.list_diagrams()
        assert [s.name for s in summaries] == ["newer", "older"]

    @pytest.mark.asyncio
    async def test_list_diagrams_empty(self, storage):
        """An empty store lists nothing."""
        assert await storage.list_diagrams() == []

    @pytest.mark.asyncio
    async def test_delete_diagram(self, storage, sample_diagram):
        """Delete reports whether a record was removed."""
        await storage.add_diagram(sample_diagram)
        assert await storage.delete_diagram(sample_diagram.id) is True
        assert await storage.delete_diagram(sample_diagram.id) is False
        assert await storage.get_diagram(sample_diagram.id) is None

    @pytest.mark.asyncio
    async def test_stored_diagram_is_isolated(self, storage, sample_diagram):
        """Mutating the caller's object does not change the stored record."""
        await storage.add_diagram(sample_diagram)
        sample_diagram.tables.clear()
        loaded = await storage.get_diagram(sample_diagram.id, SnapshotOptions.full())
        assert len(loaded.tables) == 2


# =============================================================================
# Version Operations
# =============================================================================


class TestVersionOperations:
    """Version storage shared by all backends."""

    @pytest.mark.asyncio
    async def test_versions_listed_in_creation_order(self, storage, sample_diagram):
        """Versions come back in insertion order."""
        await storage.add_diagram(sample_diagram)
        names = ["first", "second", "third"]
        for name in names:
            version = DiagramVersion.create(sample_diagram.id, name, sample_diagram)
            await storage.add_diagram_version(sample_diagram.id, version)

        versions = await storage.list_diagram_versions(sample_diagram.id)
        assert [v.name for v in versions] == names

    @pytest.mark.asyncio
    async def test_snapshot_round_trips(self, storage, sample_diagram):
        """A stored snapshot equals the diagram it was taken from."""
        version = DiagramVersion.create(sample_diagram.id, "v1", sample_diagram)
        await storage.add_diagram_version(sample_diagram.id, version)

        (stored,) = await storage.list_diagram_versions(sample_diagram.id)
        assert stored == version
        assert stored.snapshot == sample_diagram

    @pytest.mark.asyncio
    async def test_list_versions_unknown_diagram(self, storage):
        """Unknown diagrams have no versions."""
        assert await storage.list_diagram_versions("missing") == []

    @pytest.mark.asyncio
    async def test_delete_version(self, storage, sample_diagram):
        """Delete removes exactly one version."""
        keep = DiagramVersion.create(sample_diagram.id, "keep", sample_diagram)
        drop = DiagramVersion.create(sample_diagram.id, "drop", sample_diagram)
        await storage.add_diagram_version(sample_diagram.id, keep)
        await storage.add_diagram_version(sample_diagram.id, drop)

        assert await storage.delete_diagram_version(sample_diagram.id, drop.id)
        assert not await storage.delete_diagram_version(sample_diagram.id, drop.id)

        versions = await storage.list_diagram_versions(sample_diagram.id)
        assert versions == [keep]

    @pytest.mark.asyncio
    async def test_delete_version_scoped_to_diagram(self, storage, sample_diagram):
        """A version id under the wrong diagram is not deleted."""
        version = DiagramVersion.create(sample_diagram.id, "v1", sample_diagram)
        await storage.add_diagram_version(sample_diagram.id, version)
        assert not await storage.delete_diagram_version("other", version.id)
        assert len(await storage.list_diagram_versions(sample_diagram.id)) == 1

    @pytest.mark.asyncio
    async def test_mismatched_owner_rejected(self, storage, sample_diagram):
        """A version can only be filed under its own diagram."""
        version = DiagramVersion.create(sample_diagram.id, "v1", sample_diagram)
        with pytest.raises(StorageError):
            await storage.add_diagram_version("other", version)

    @pytest.mark.asyncio
    async def test_versions_survive_diagram_delete(self, storage, sample_diagram):
        """Deleting a diagram leaves its versions in place."""
        await storage.add_diagram(sample_diagram)
        version = DiagramVersion.create(sample_diagram.id, "v1", sample_diagram)
        await storage.add_diagram_version(sample_diagram.id, version)

        await storage.delete_diagram(sample_diagram.id)
        assert await storage.list_all_versions() == [version]

    @pytest.mark.asyncio
    async def test_returned_snapshot_is_isolated(self, storage, sample_diagram):
        """Mutating a listed version does not change the stored one."""
        version = DiagramVersion.create(sample_diagram.id, "v1", sample_diagram)
        await storage.add_diagram_version(sample_diagram.id, version)

        (listed,) = await storage.list_diagram_versions(sample_diagram.id)
        listed.snapshot.tables.clear()

        (again,) = await storage.list_diagram_versions(sample_diagram.id)
        assert len(again.snapshot.tables) == 2


# =============================================================================
# SQLite-specific Tests
# =============================================================================


class TestSQLiteStorage:
    """Behavior specific to the SQLite backend."""

    @pytest.mark.asyncio
    async def test_persists_across_connections(self, tmp_path, sample_diagram):
        """Records survive closing and reopening the database."""
        db_path = tmp_path / "nested" / "diagrams.db"
        first = SQLiteStorage(db_path)
        await first.initialize()
        await first.add_diagram(sample_diagram)
        await first.close()

        second = SQLiteStorage(db_path)
        await second.initialize()
        loaded = await second.get_diagram(sample_diagram.id, SnapshotOptions.full())
        await second.close()

        assert loaded == sample_diagram

    @pytest.mark.asyncio
    async def test_uninitialized_raises(self, tmp_path):
        """Using storage before initialize() is a programming error."""
        storage = SQLiteStorage(tmp_path / "diagrams.db")
        with pytest.raises(RuntimeError):
            await storage.list_diagrams()

    @pytest.mark.asyncio
    async def test_sqlite_errors_are_wrapped(self, tmp_path, monkeypatch):
        """sqlite3 failures surface as StorageError."""
        storage = SQLiteStorage(tmp_path / "diagrams.db")
        await storage.initialize()

        def broken(*args):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(storage, "_list_diagrams", broken)
        with pytest.raises(StorageError):
            await storage.list_diagrams()
        await storage.close()


# =============================================================================
# Backend Selection
# =============================================================================


class TestCreateStorage:
    """Tests for create_storage."""

    @pytest.mark.unit
    def test_memory_backend(self):
        """"memory" selects MemoryStorage."""
        assert isinstance(create_storage("memory"), MemoryStorage)

    @pytest.mark.unit
    def test_sqlite_backend_from_environment(self, monkeypatch, tmp_path):
        """The environment picks the backend and path."""
        monkeypatch.setenv("SCHEMAVAULT_STORAGE_BACKEND", "sqlite")
        monkeypatch.setenv("SCHEMAVAULT_DB_PATH", str(tmp_path / "x.db"))
        storage = create_storage()
        assert isinstance(storage, SQLiteStorage)
        assert storage.db_path == tmp_path / "x.db"

    @pytest.mark.unit
    def test_unknown_backend(self):
        """Unknown names are rejected."""
        with pytest.raises(ValueError):
            create_storage("postgres")
