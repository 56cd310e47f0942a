"""Tests for diagram versions.

Tests cover:
- Version creation, default names and snapshot immutability
- Listing order and deletion
- Non-destructive restore
- Orphan purging
"""

from datetime import datetime

import pytest
import pytest_asyncio

from schemavault.storage import (
    Diagram,
    MemoryStorage,
    NotFoundError,
    SnapshotOptions,
    SQLiteStorage,
)

from .lib import VERSION_NAME_FORMAT, VersionManager, format_version_timestamp

# =============================================================================
# Fixtures
# =============================================================================


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def storage(request, tmp_path):
    """Initialized storage, once per backend."""
    if request.param == "memory":
        backend = MemoryStorage()
    else:
        backend = SQLiteStorage(tmp_path / "versions.db")
    await backend.initialize()
    yield backend
    await backend.close()


@pytest.fixture
def manager(storage):
    """VersionManager over the test storage."""
    return VersionManager(storage)


@pytest_asyncio.fixture
async def diagram(storage):
    """A stored diagram with every section filled."""
    diagram = Diagram.create(
        name="Billing",
        database_type="postgresql",
        tables=[{"id": "t1", "name": "invoices"}, {"id": "t2", "name": "clientes"}],
        relationships=[{"id": "r1", "source": "t1", "target": "t2"}],
        dependencies=[{"id": "d1", "table": "t1"}],
        areas=[{"id": "a1", "name": "Finance"}],
        custom_types=[{"id": "c1", "name": "currency"}],
    )
    await storage.add_diagram(diagram)
    return diagram


# =============================================================================
# Naming
# =============================================================================


class TestVersionNames:
    """Tests for default version names."""

    @pytest.mark.unit
    def test_timestamp_parses_back(self):
        """The default name is a parseable timestamp."""
        moment = datetime(2026, 10, 19, 14, 5, 9)
        text = format_version_timestamp(moment)
        assert datetime.strptime(text, VERSION_NAME_FORMAT) == moment

    @pytest.mark.asyncio
    async def test_blank_name_defaults_to_timestamp(self, manager, diagram):
        """An empty name becomes the current timestamp."""
        version = await manager.create_version(diagram.id, "")
        assert version.name
        datetime.strptime(version.name, VERSION_NAME_FORMAT)

    @pytest.mark.asyncio
    async def test_whitespace_name_defaults_to_timestamp(self, manager, diagram):
        """Whitespace-only names count as blank."""
        version = await manager.create_version(diagram.id, "   ")
        datetime.strptime(version.name, VERSION_NAME_FORMAT)

    @pytest.mark.asyncio
    async def test_name_is_trimmed(self, manager, diagram):
        """Given names are stored trimmed."""
        version = await manager.create_version(diagram.id, "  before refactor ")
        assert version.name == "before refactor"


# =============================================================================
# Creation
# =============================================================================


class TestCreateVersion:
    """Tests for create_version."""

    @pytest.mark.asyncio
    async def test_snapshot_is_full(self, manager, diagram):
        """The snapshot carries every content section."""
        version = await manager.create_version(diagram.id, "v1")
        assert version.diagram_id == diagram.id
        assert version.snapshot.content() == diagram.content()

    @pytest.mark.asyncio
    async def test_missing_diagram_raises(self, manager):
        """Snapshotting an unknown diagram raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await manager.create_version("missing", "v1")

    @pytest.mark.asyncio
    async def test_fresh_ids(self, manager, diagram):
        """Every version gets its own id."""
        first = await manager.create_version(diagram.id, "a")
        second = await manager.create_version(diagram.id, "b")
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_snapshot_unaffected_by_later_edits(self, storage, manager, diagram):
        """Edits to the diagram after versioning do not reach the snapshot."""
        version = await manager.create_version(diagram.id, "v1")

        await storage.delete_diagram(diagram.id)
        edited = Diagram(
            id=diagram.id,
            name="Billing v2",
            tables=[{"id": "t9", "name": "ledger"}],
        )
        await storage.add_diagram(edited)

        (stored,) = await manager.list_versions(diagram.id)
        assert stored.snapshot.name == "Billing"
        assert [t["name"] for t in stored.snapshot.tables] == ["invoices", "clientes"]
        assert stored == version


# =============================================================================
# Listing and Deletion
# =============================================================================


class TestListAndDelete:
    """Tests for list_versions, get_version and delete_version."""

    @pytest.mark.asyncio
    async def test_list_in_creation_order(self, manager, diagram):
        """Versions are listed oldest first."""
        created = [await manager.create_version(diagram.id, n) for n in "abc"]
        assert await manager.list_versions(diagram.id) == created

    @pytest.mark.asyncio
    async def test_list_unknown_diagram_is_empty(self, manager):
        """Unknown diagrams list no versions."""
        assert await manager.list_versions("missing") == []

    @pytest.mark.asyncio
    async def test_delete_keeps_others(self, manager, diagram):
        """Deleting one version leaves the rest unchanged and in order."""
        a, b, c = [await manager.create_version(diagram.id, n) for n in "abc"]

        assert await manager.delete_version(diagram.id, b.id) is True
        assert await manager.list_versions(diagram.id) == [a, c]

    @pytest.mark.asyncio
    async def test_delete_absent_is_noop(self, manager, diagram):
        """Deleting an unknown version is not an error."""
        assert await manager.delete_version(diagram.id, "missing") is False

    @pytest.mark.asyncio
    async def test_get_version(self, manager, diagram):
        """get_version finds by id within the diagram."""
        version = await manager.create_version(diagram.id, "v1")
        assert await manager.get_version(diagram.id, version.id) == version
        assert await manager.get_version(diagram.id, "missing") is None


# =============================================================================
# Restore
# =============================================================================


class TestRestore:
    """Tests for non-destructive restore."""

    @pytest.mark.asyncio
    async def test_restore_creates_new_diagram(self, storage, manager, diagram):
        """Restore inserts a new diagram with the snapshot's content."""
        version = await manager.create_version(diagram.id, "v1")
        restored = await manager.restore(version)

        assert restored.id != diagram.id
        assert restored.id != version.diagram_id
        assert restored.content() == version.snapshot.content()

        stored = await storage.get_diagram(restored.id, SnapshotOptions.full())
        assert stored == restored

    @pytest.mark.asyncio
    async def test_restore_id_is_unique(self, storage, manager, diagram):
        """The restored id collides with no existing diagram."""
        version = await manager.create_version(diagram.id, "v1")
        existing = {s.id for s in await storage.list_diagrams()}
        restored = await manager.restore(version)
        assert restored.id not in existing

    @pytest.mark.asyncio
    async def test_restore_fresh_timestamps(self, manager, diagram):
        """The restored diagram has new creation and update times."""
        version = await manager.create_version(diagram.id, "v1")
        restored = await manager.restore(version)
        assert restored.created_at >= version.created_at
        assert restored.updated_at == restored.created_at

    @pytest.mark.asyncio
    async def test_restore_leaves_original_untouched(self, storage, manager, diagram):
        """The source diagram and its versions are unchanged."""
        version = await manager.create_version(diagram.id, "v1")
        before = await storage.get_diagram(diagram.id, SnapshotOptions.full())

        await manager.restore(version)

        after = await storage.get_diagram(diagram.id, SnapshotOptions.full())
        assert after == before
        assert await manager.list_versions(diagram.id) == [version]

    @pytest.mark.asyncio
    async def test_restore_twice_gives_two_diagrams(self, storage, manager, diagram):
        """Each restore creates its own record."""
        version = await manager.create_version(diagram.id, "v1")
        first = await manager.restore(version)
        second = await manager.restore(version)
        assert first.id != second.id
        assert len(await storage.list_diagrams()) == 3


# =============================================================================
# Orphans
# =============================================================================


class TestPurgeOrphans:
    """Tests for purge_orphan_versions."""

    @pytest.mark.asyncio
    async def test_purges_only_orphans(self, storage, manager, diagram):
        """Versions of deleted diagrams are removed, others kept."""
        other = Diagram.create(name="Other")
        await storage.add_diagram(other)
        kept = await manager.create_version(diagram.id, "keep")
        await manager.create_version(other.id, "orphan-1")
        await manager.create_version(other.id, "orphan-2")

        await storage.delete_diagram(other.id)

        assert await manager.purge_orphan_versions() == 2
        assert await storage.list_all_versions() == [kept]

    @pytest.mark.asyncio
    async def test_nothing_to_purge(self, manager, diagram):
        """Without orphans nothing is deleted."""
        await manager.create_version(diagram.id, "v1")
        assert await manager.purge_orphan_versions() == 0
