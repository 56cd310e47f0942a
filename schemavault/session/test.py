"""Tests for editor sessions.

Tests cover:
- Following resolver navigations in sync()
- Restoring versions with exactly one history reset
- Share links end to end
- Building a session from the environment
"""

import logging

import pytest

from schemavault.config import AppConfig
from schemavault.document import diagram_to_json
from schemavault.loader import ResolutionState
from schemavault.routing import MemoryRouter, diagram_path
from schemavault.share import SHARE_PREFIX, decode_share_payload
from schemavault.storage import Diagram, MemoryStorage, NotFoundError, SnapshotOptions

from .lib import EditorSession, open_session

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def session(tracked_storage, router, prompts, history, display, active):
    """Session over recording collaborators with a loaded configuration."""
    return EditorSession(
        tracked_storage,
        router,
        prompts,
        AppConfig(),
        history=history,
        display=display,
        active=active,
    )


@pytest.fixture
def diagram():
    return Diagram.create(
        name="Library",
        database_type="sqlite",
        tables=[{"id": "t1", "name": "books"}, {"id": "t2", "name": "autores"}],
        relationships=[{"id": "r1", "source": "t1", "target": "t2"}],
    )


# =============================================================================
# Sync
# =============================================================================


class TestSync:
    """Tests for route resolution through the session."""

    @pytest.mark.asyncio
    async def test_follows_default_navigation(self, session, tracked_storage, diagram):
        """The default diagram is reached and installed in one sync."""
        await tracked_storage.add_diagram(diagram)
        session.config = AppConfig(default_diagram_id=diagram.id)

        outcome = await session.sync()

        assert outcome.state == ResolutionState.RESOLVED
        assert session.active.id == diagram.id
        assert session.router.location == diagram_path(diagram.id)

    @pytest.mark.asyncio
    async def test_waits_for_configuration(self, session, prompts):
        """Nothing resolves until configure() supplies the configuration."""
        session.config = None

        outcome = await session.sync()
        assert outcome.skipped
        assert prompts.calls == []

        outcome = await session.configure(AppConfig())
        assert outcome.state == ResolutionState.AWAITING_CREATE_CHOICE
        assert prompts.calls == [("create",)]

    @pytest.mark.asyncio
    async def test_repeated_sync_is_idempotent(
        self, session, tracked_storage, history, diagram
    ):
        """Syncing an unchanged route does no further work."""
        await tracked_storage.add_diagram(diagram)
        await session.open_diagram(diagram.id)
        await session.sync()
        await session.sync()

        assert tracked_storage.get_calls == [diagram.id]
        assert history.reset_count == 1

    @pytest.mark.asyncio
    async def test_open_diagram_switches(self, session, tracked_storage, diagram):
        """open_diagram navigates and installs."""
        other = Diagram.create(name="Other")
        await tracked_storage.add_diagram(diagram)
        await tracked_storage.add_diagram(other)

        await session.open_diagram(diagram.id)
        assert session.active.id == diagram.id

        await session.open_diagram(other.id)
        assert session.active.id == other.id
        assert session.router.history[-1] == diagram_path(other.id)

    @pytest.mark.asyncio
    async def test_redirect_limit_stops_following(
        self, tracked_storage, router, prompts, active, diagram
    ):
        """With no redirects allowed, sync stops after the first navigation."""
        await tracked_storage.add_diagram(diagram)
        session = EditorSession(
            tracked_storage,
            router,
            prompts,
            AppConfig(default_diagram_id=diagram.id),
            active=active,
            max_redirects=0,
        )

        outcome = await session.sync()

        assert outcome.navigated_to == diagram_path(diagram.id)
        assert session.active.current is None
        assert tracked_storage.get_calls == [diagram.id]

    @pytest.mark.unit
    def test_redirect_limit_from_environment(
        self, tracked_storage, router, prompts, monkeypatch
    ):
        """SCHEMAVAULT_MAX_REDIRECTS sets the limit when no argument is given."""
        monkeypatch.setenv("SCHEMAVAULT_MAX_REDIRECTS", "2")
        session = EditorSession(tracked_storage, router, prompts, AppConfig())
        assert session.max_redirects == 2

        monkeypatch.delenv("SCHEMAVAULT_MAX_REDIRECTS")
        session = EditorSession(tracked_storage, router, prompts, AppConfig())
        assert session.max_redirects == 4


# =============================================================================
# Versions
# =============================================================================


class TestSessionVersions:
    """Tests for version operations on the active diagram."""

    @pytest.mark.asyncio
    async def test_create_version_needs_active_diagram(self, session):
        """Without an active diagram there is nothing to snapshot."""
        with pytest.raises(NotFoundError):
            await session.create_version("v1")
        assert await session.list_versions() == []

    @pytest.mark.asyncio
    async def test_create_and_list(self, session, tracked_storage, diagram):
        """Versions are taken of the active diagram."""
        await tracked_storage.add_diagram(diagram)
        await session.open_diagram(diagram.id)

        version = await session.create_version("  first  ")

        assert version.name == "first"
        assert version.diagram_id == diagram.id
        assert await session.list_versions() == [version]
        assert await session.delete_version(version.id)
        assert await session.list_versions() == []

    @pytest.mark.asyncio
    async def test_restore_switches_with_one_reset(
        self, session, tracked_storage, history, events, diagram
    ):
        """Restore installs a new diagram and resets history once."""
        await tracked_storage.add_diagram(diagram)
        await session.open_diagram(diagram.id)
        version = await session.create_version("v1")
        assert history.reset_count == 1

        restored = await session.restore_version(version)

        assert restored.id != diagram.id
        assert session.active.id == restored.id
        assert session.router.location == diagram_path(restored.id)
        assert session.resolver.state == ResolutionState.RESOLVED
        assert history.reset_count == 2
        assert restored.id not in tracked_storage.get_calls
        resets = [i for i, event in enumerate(events) if event == ("reset_history",)]
        assert resets[-1] < events.index(("install", restored.id))

    @pytest.mark.asyncio
    async def test_restore_keeps_source(self, session, tracked_storage, diagram):
        """The source diagram and its versions stay as they were."""
        await tracked_storage.add_diagram(diagram)
        await session.open_diagram(diagram.id)
        version = await session.create_version("v1")

        await session.restore_version(version)

        source = await tracked_storage.get_diagram(diagram.id, SnapshotOptions.full())
        assert source == diagram
        assert await session.versions.list_versions(diagram.id) == [version]
        assert await session.list_versions() == []


# =============================================================================
# Sharing
# =============================================================================


class TestSessionSharing:
    """Tests for share links of the active diagram."""

    @pytest.mark.unit
    def test_share_link_needs_active_diagram(self, session):
        """No active diagram, no link."""
        with pytest.raises(NotFoundError):
            session.share_link("https://erd.example/")

    @pytest.mark.asyncio
    async def test_share_link_base_from_environment(
        self, session, tracked_storage, diagram, monkeypatch
    ):
        """The base URL defaults to SCHEMAVAULT_SHARE_BASE_URL."""
        monkeypatch.setenv("SCHEMAVAULT_SHARE_BASE_URL", "https://erd.example/app")
        await tracked_storage.add_diagram(diagram)
        await session.open_diagram(diagram.id)

        link = session.share_link()

        base, fragment = link.split("#", 1)
        assert base == "https://erd.example/app"
        assert decode_share_payload("#" + fragment) == diagram_to_json(diagram)

    @pytest.mark.asyncio
    async def test_shared_link_opens_copy(
        self, session, tracked_storage, prompts, diagram
    ):
        """Opening a share link in another session imports a copy."""
        await tracked_storage.add_diagram(diagram)
        await session.open_diagram(diagram.id)
        link = session.share_link("https://erd.example/")

        storage = MemoryStorage()
        receiver = EditorSession(storage, MemoryRouter(link), prompts, AppConfig())
        assert receiver.router.current().fragment.startswith(SHARE_PREFIX)

        outcome = await receiver.sync()

        assert outcome.state == ResolutionState.RESOLVED
        assert receiver.active.id != diagram.id
        assert receiver.active.current.content() == diagram.content()
        assert receiver.router.current().fragment == ""
        assert len(await storage.list_diagrams()) == 1

    @pytest.mark.asyncio
    async def test_copy_share_link(self, session, tracked_storage, diagram):
        """The link of the active diagram reaches the clipboard."""
        copied = []

        async def writer(text):
            copied.append(text)

        assert await session.copy_share_link(writer) is False

        await tracked_storage.add_diagram(diagram)
        await session.open_diagram(diagram.id)

        assert await session.copy_share_link(writer, "https://erd.example/")
        assert copied == [session.share_link("https://erd.example/")]


# =============================================================================
# Environment
# =============================================================================


class TestOpenSession:
    """Tests for open_session."""

    @pytest.mark.asyncio
    async def test_memory_backend_prompts_create(self, prompts, monkeypatch):
        """A fresh store asks the user to create a diagram."""
        monkeypatch.delenv("SCHEMAVAULT_DEFAULT_DIAGRAM_ID", raising=False)

        session = await open_session(prompts, backend="memory")

        assert isinstance(session.storage, MemoryStorage)
        assert session.resolver.state == ResolutionState.AWAITING_CREATE_CHOICE
        assert prompts.calls == [("create",)]
        await session.storage.close()

    @pytest.mark.asyncio
    async def test_sqlite_backend_with_default(self, prompts, monkeypatch, tmp_path):
        """The configured default diagram opens from a SQLite store."""
        monkeypatch.delenv("SCHEMAVAULT_DEFAULT_DIAGRAM_ID", raising=False)
        db_path = tmp_path / "diagrams.db"
        seeded = await open_session(prompts, backend="sqlite", db_path=db_path)
        diagram = Diagram.create(name="Seed")
        await seeded.storage.add_diagram(diagram)
        await seeded.storage.close()

        monkeypatch.setenv("SCHEMAVAULT_DEFAULT_DIAGRAM_ID", diagram.id)
        session = await open_session(prompts, backend="sqlite", db_path=db_path)

        assert session.active.id == diagram.id
        assert session.router.location == diagram_path(diagram.id)
        await session.storage.close()

    @pytest.mark.asyncio
    async def test_purges_orphaned_versions(self, prompts, monkeypatch, tmp_path):
        """Versions of deleted diagrams are removed when a session opens."""
        monkeypatch.delenv("SCHEMAVAULT_DEFAULT_DIAGRAM_ID", raising=False)
        monkeypatch.delenv("SCHEMAVAULT_PURGE_ORPHANS_ON_OPEN", raising=False)
        db_path = tmp_path / "diagrams.db"
        seeded = await open_session(prompts, backend="sqlite", db_path=db_path)
        diagram = Diagram.create(name="Gone")
        await seeded.storage.add_diagram(diagram)
        await seeded.versions.create_version(diagram.id, "v1")
        await seeded.storage.delete_diagram(diagram.id)
        await seeded.storage.close()

        session = await open_session(prompts, backend="sqlite", db_path=db_path)

        assert await session.storage.list_all_versions() == []
        await session.storage.close()

    @pytest.mark.asyncio
    async def test_purge_disabled_from_environment(
        self, prompts, monkeypatch, tmp_path
    ):
        """SCHEMAVAULT_PURGE_ORPHANS_ON_OPEN=false keeps orphaned versions."""
        monkeypatch.delenv("SCHEMAVAULT_DEFAULT_DIAGRAM_ID", raising=False)
        monkeypatch.setenv("SCHEMAVAULT_PURGE_ORPHANS_ON_OPEN", "false")
        db_path = tmp_path / "diagrams.db"
        seeded = await open_session(prompts, backend="sqlite", db_path=db_path)
        diagram = Diagram.create(name="Gone")
        await seeded.storage.add_diagram(diagram)
        version = await seeded.versions.create_version(diagram.id, "v1")
        await seeded.storage.delete_diagram(diagram.id)
        await seeded.storage.close()

        session = await open_session(prompts, backend="sqlite", db_path=db_path)

        remaining = await session.storage.list_all_versions()
        assert [v.id for v in remaining] == [version.id]
        await session.storage.close()

    @pytest.mark.asyncio
    async def test_logs_opened_session(self, prompts, monkeypatch, caplog):
        """Opening a session is logged under the session logger."""
        monkeypatch.delenv("SCHEMAVAULT_DEFAULT_DIAGRAM_ID", raising=False)

        with caplog.at_level(logging.INFO, logger="schemavault.session"):
            session = await open_session(prompts, backend="memory")

        records = [r for r in caplog.records if r.name == "schemavault.session"]
        assert any("MemoryStorage" in r.getMessage() for r in records)
        await session.storage.close()
