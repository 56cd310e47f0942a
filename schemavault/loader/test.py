"""Tests for load resolution.

Tests cover:
- The re-entrancy guard
- Each resolution path: default, share import, open/create prompts, by id
- Skipping repeated evaluations and discarding superseded results
- Storage failures leaving the resolver retryable
"""

import asyncio

import pytest

from schemavault.config import AppConfig
from schemavault.routing import RouteState, diagram_path
from schemavault.share import SHARE_PREFIX, encode_diagram, encode_share_payload
from schemavault.storage import Diagram, SnapshotOptions, StorageError

from .guard import LoadGuard
from .lib import LoadResolver
from .models import ResolutionState

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def config():
    """Loaded configuration without a default diagram."""
    return AppConfig()


@pytest.fixture
def resolver(tracked_storage, active, router, prompts, history, display):
    """Resolver wired to recording collaborators."""
    return LoadResolver(tracked_storage, active, router, prompts, history, display)


def make_diagram(diagram_id: str, name: str = "") -> Diagram:
    return Diagram(
        id=diagram_id,
        name=name or diagram_id,
        tables=[{"id": "t1", "name": f"{diagram_id}_table"}],
    )


async def wait_for_load(storage, diagram_id: str) -> None:
    """Yield to the loop until ``diagram_id`` has been requested."""
    while diagram_id not in storage.get_calls:
        await asyncio.sleep(0)


# =============================================================================
# LoadGuard
# =============================================================================


class TestLoadGuard:
    """Tests for the compare-and-skip slot."""

    @pytest.mark.unit
    def test_empty_slot_never_skips(self):
        """Nothing is skipped before the first evaluation."""
        guard = LoadGuard()
        assert guard.last_key is None
        assert not guard.should_skip("")
        assert not guard.should_skip("D1")

    @pytest.mark.unit
    def test_same_key_skips(self):
        """A repeated key is skipped, a new one is not."""
        guard = LoadGuard()
        guard.enter("D1")
        assert guard.should_skip("D1")
        assert not guard.should_skip("D2")

    @pytest.mark.unit
    def test_empty_key_is_a_key(self):
        """The no-route key "" is remembered like any other."""
        guard = LoadGuard()
        guard.enter("")
        assert guard.should_skip("")

    @pytest.mark.unit
    def test_release(self):
        """Releasing empties the slot."""
        guard = LoadGuard()
        guard.enter("D1")
        guard.release()
        assert not guard.should_skip("D1")

    @pytest.mark.unit
    def test_release_ignores_other_key(self):
        """A keyed release does not clear a newer key."""
        guard = LoadGuard()
        guard.enter("D2")
        guard.release("D1")
        assert guard.last_key == "D2"


# =============================================================================
# Resolution Paths
# =============================================================================


class TestDefaultDiagram:
    """No route id with a configured default."""

    @pytest.mark.asyncio
    async def test_navigates_then_loads_default(
        self, resolver, tracked_storage, router, active
    ):
        """The default is reached by navigation, then loaded by id."""
        await tracked_storage.add_diagram(make_diagram("D1"))
        config = AppConfig(default_diagram_id="D1")

        outcome = await resolver.evaluate(router.current(), config)

        assert outcome.navigated_to == "/diagrams/D1"
        assert outcome.state == ResolutionState.LOADING_DEFAULT
        assert router.current().diagram_id == "D1"
        assert active.current is None

        outcome = await resolver.evaluate(router.current(), config)

        assert outcome.state == ResolutionState.RESOLVED
        assert active.id == "D1"
        assert active.current.tables == [{"id": "t1", "name": "D1_table"}]

    @pytest.mark.asyncio
    async def test_missing_default_falls_through(
        self, resolver, tracked_storage, router, prompts
    ):
        """A configured default that does not exist leads to the prompts."""
        await tracked_storage.add_diagram(make_diagram("other"))
        config = AppConfig(default_diagram_id="gone")

        outcome = await resolver.evaluate(router.current(), config)

        assert outcome.navigated_to is None
        assert prompts.calls == [("open", False)]
        assert router.history == ["/"]


class TestShareImport:
    """No route id with a #share= fragment."""

    @pytest.mark.asyncio
    async def test_imports_and_navigates(
        self, resolver, tracked_storage, router, events, config
    ):
        """The payload becomes a new diagram and the route points at it."""
        shared = make_diagram("X", name="Shared")
        router.set_fragment(SHARE_PREFIX + encode_diagram(shared))

        outcome = await resolver.evaluate(router.current(), config)

        imported = outcome.diagram
        assert imported.id != "X"
        assert imported.name == "Shared"
        assert outcome.navigated_to == diagram_path(imported.id)

        stored = await tracked_storage.get_diagram(imported.id, SnapshotOptions.full())
        assert stored.content() == shared.content()

        assert router.current() == RouteState(diagram_id=imported.id)
        assert events == [
            ("add", imported.id),
            ("clear_fragment",),
            ("navigate", diagram_path(imported.id)),
            ("hide_loader",),
        ]

    @pytest.mark.asyncio
    async def test_fragment_cleared_before_navigation(
        self, resolver, router, events, config
    ):
        """The fragment is gone before the route changes."""
        router.set_fragment(SHARE_PREFIX + encode_diagram(make_diagram("X")))

        await resolver.evaluate(router.current(), config)

        names = [event[0] for event in events]
        assert names.index("clear_fragment") < names.index("navigate")

    @pytest.mark.asyncio
    async def test_import_then_load_installs(
        self, resolver, router, active, config
    ):
        """Following the navigation installs the imported diagram."""
        router.set_fragment(SHARE_PREFIX + encode_diagram(make_diagram("X")))

        imported = (await resolver.evaluate(router.current(), config)).diagram
        outcome = await resolver.evaluate(router.current(), config)

        assert outcome.state == ResolutionState.RESOLVED
        assert active.id == imported.id

    @pytest.mark.asyncio
    async def test_malformed_payload_falls_through(
        self, resolver, tracked_storage, router, prompts, config
    ):
        """Undecodable payloads are ignored and the user is prompted."""
        await tracked_storage.add_diagram(make_diagram("D1"))
        router.set_fragment("#share=!!!garbage!!!")

        outcome = await resolver.evaluate(router.current(), config)

        assert outcome.diagram is None
        assert prompts.calls == [("open", False)]
        assert len(await tracked_storage.list_diagrams()) == 1

    @pytest.mark.asyncio
    async def test_non_diagram_json_falls_through(
        self, resolver, tracked_storage, router, prompts, config
    ):
        """Valid JSON that is not a diagram is ignored too."""
        router.set_fragment(SHARE_PREFIX + encode_share_payload("[1, 2, 3]"))

        await resolver.evaluate(router.current(), config)

        assert prompts.calls == [("create",)]
        assert await tracked_storage.list_diagrams() == []

    @pytest.mark.asyncio
    async def test_share_ignored_when_route_has_id(
        self, resolver, tracked_storage, router, active, config
    ):
        """A route id wins over a share fragment."""
        await tracked_storage.add_diagram(make_diagram("D1"))
        router.navigate("/diagrams/D1")
        router.set_fragment(SHARE_PREFIX + encode_diagram(make_diagram("X")))

        await resolver.evaluate(router.current(), config)

        assert active.id == "D1"
        assert len(await tracked_storage.list_diagrams()) == 1


class TestPrompts:
    """No route id, no share, no usable default."""

    @pytest.mark.asyncio
    async def test_open_prompt_when_diagrams_exist(
        self, resolver, tracked_storage, router, prompts, config
    ):
        """Existing diagrams lead to a non-closable open dialog."""
        await tracked_storage.add_diagram(make_diagram("D1"))

        outcome = await resolver.evaluate(router.current(), config)

        assert outcome.state == ResolutionState.AWAITING_OPEN_CHOICE
        assert prompts.calls == [("open", False)]

    @pytest.mark.asyncio
    async def test_create_prompt_when_empty(self, resolver, router, prompts, config):
        """An empty store leads to the create dialog."""
        outcome = await resolver.evaluate(router.current(), config)

        assert outcome.state == ResolutionState.AWAITING_CREATE_CHOICE
        assert prompts.calls == [("create",)]

    @pytest.mark.asyncio
    async def test_prompt_only_once(self, resolver, router, prompts, config):
        """Re-evaluating the same empty route does not prompt again."""
        await resolver.evaluate(router.current(), config)
        outcome = await resolver.evaluate(router.current(), config)

        assert outcome.skipped
        assert prompts.calls == [("create",)]


class TestLoadById:
    """Route with a diagram id."""

    @pytest.mark.asyncio
    async def test_installs_full_diagram(
        self, resolver, tracked_storage, active, display, config
    ):
        """The diagram is loaded with every section and installed."""
        diagram = Diagram.create(
            name="Full",
            tables=[{"id": "t1"}],
            relationships=[{"id": "r1"}],
            dependencies=[{"id": "d1"}],
            areas=[{"id": "a1"}],
            custom_types=[{"id": "c1"}],
        )
        await tracked_storage.add_diagram(diagram)

        outcome = await resolver.evaluate(RouteState(diagram.id), config)

        assert outcome.state == ResolutionState.RESOLVED
        assert active.current == diagram
        assert not display.visible

    @pytest.mark.asyncio
    async def test_history_reset_before_install(
        self, resolver, tracked_storage, events, config
    ):
        """History is cleared before the new diagram is installed."""
        await tracked_storage.add_diagram(make_diagram("D1"))

        await resolver.evaluate(RouteState("D1"), config)

        names = [event[0] for event in events if event[0] != "add"]
        assert names == [
            "show_loader",
            "reset_history",
            "load",
            "install",
            "hide_loader",
        ]

    @pytest.mark.asyncio
    async def test_missing_id_prompts_open(
        self, resolver, active, prompts, history, events, config
    ):
        """An unknown id resets history and asks the user to pick."""
        outcome = await resolver.evaluate(RouteState("missing"), config)

        assert outcome.state == ResolutionState.AWAITING_OPEN_CHOICE
        assert prompts.calls == [("open", False)]
        assert active.current is None
        assert history.reset_count == 1
        assert events.index(("reset_history",)) < events.index(("load", "missing"))

    @pytest.mark.asyncio
    async def test_switching_diagrams(
        self, resolver, tracked_storage, active, history, config
    ):
        """A new route id replaces the active diagram."""
        await tracked_storage.add_diagram(make_diagram("D1"))
        await tracked_storage.add_diagram(make_diagram("D2"))

        await resolver.evaluate(RouteState("D1"), config)
        await resolver.evaluate(RouteState("D2"), config)

        assert active.id == "D2"
        assert history.reset_count == 2


# =============================================================================
# Re-entrancy
# =============================================================================


class TestReentrancy:
    """Skipping, short-circuiting and discarding."""

    @pytest.mark.asyncio
    async def test_no_config_does_nothing(self, resolver, tracked_storage, prompts):
        """Nothing happens until the configuration is loaded."""
        outcome = await resolver.evaluate(RouteState("D1"), None)

        assert outcome.skipped
        assert outcome.state == ResolutionState.IDLE
        assert tracked_storage.get_calls == []
        assert prompts.calls == []
        assert resolver.guard.last_key is None

    @pytest.mark.asyncio
    async def test_active_diagram_short_circuits(
        self, resolver, tracked_storage, active, history, config
    ):
        """A route that matches the active diagram loads nothing."""
        active.install(make_diagram("D1"))

        outcome = await resolver.evaluate(RouteState("D1"), config)

        assert outcome.state == ResolutionState.RESOLVED
        assert outcome.diagram.id == "D1"
        assert tracked_storage.get_calls == []
        assert history.reset_count == 0

    @pytest.mark.asyncio
    async def test_duplicate_evaluations_load_once(
        self, resolver, tracked_storage, active, config
    ):
        """Two evaluations of the same key issue one storage load."""
        await tracked_storage.add_diagram(make_diagram("D1"))
        gate = tracked_storage.gates["D1"] = asyncio.Event()

        first = asyncio.create_task(resolver.evaluate(RouteState("D1"), config))
        await wait_for_load(tracked_storage, "D1")

        second = await resolver.evaluate(RouteState("D1"), config)
        gate.set()
        first = await first

        assert second.skipped
        assert first.state == ResolutionState.RESOLVED
        assert tracked_storage.get_calls == ["D1"]
        assert active.id == "D1"

    @pytest.mark.asyncio
    async def test_superseded_load_is_discarded(
        self, resolver, tracked_storage, active, display, config
    ):
        """A load that finishes after the route moved on is not installed."""
        await tracked_storage.add_diagram(make_diagram("A"))
        await tracked_storage.add_diagram(make_diagram("B"))
        gate = tracked_storage.gates["A"] = asyncio.Event()

        slow = asyncio.create_task(resolver.evaluate(RouteState("A"), config))
        await wait_for_load(tracked_storage, "A")

        fast = await resolver.evaluate(RouteState("B"), config)
        assert fast.state == ResolutionState.RESOLVED
        assert active.id == "B"

        gate.set()
        slow = await slow

        assert slow.stale
        assert active.id == "B"
        assert resolver.state == ResolutionState.RESOLVED
        assert not display.visible

    @pytest.mark.asyncio
    async def test_return_to_first_route_while_loading(
        self, resolver, tracked_storage, active, config
    ):
        """A to B to A: only the latest A evaluation installs."""
        await tracked_storage.add_diagram(make_diagram("A"))
        await tracked_storage.add_diagram(make_diagram("B"))
        gate = tracked_storage.gates["A"] = asyncio.Event()

        first_a = asyncio.create_task(resolver.evaluate(RouteState("A"), config))
        await wait_for_load(tracked_storage, "A")
        await resolver.evaluate(RouteState("B"), config)

        second_a = asyncio.create_task(resolver.evaluate(RouteState("A"), config))
        while tracked_storage.get_calls.count("A") < 2:
            await asyncio.sleep(0)

        gate.set()
        first_a, second_a = await first_a, await second_a

        assert first_a.stale
        assert second_a.state == ResolutionState.RESOLVED
        assert active.id == "A"

    @pytest.mark.asyncio
    async def test_short_circuit_supersedes_pending_load(
        self, resolver, tracked_storage, active, display, config
    ):
        """Returning to the active diagram discards a pending load."""
        await tracked_storage.add_diagram(make_diagram("A"))
        await tracked_storage.add_diagram(make_diagram("B"))
        await resolver.evaluate(RouteState("A"), config)
        gate = tracked_storage.gates["B"] = asyncio.Event()

        pending = asyncio.create_task(resolver.evaluate(RouteState("B"), config))
        await wait_for_load(tracked_storage, "B")

        back = await resolver.evaluate(RouteState("A"), config)
        gate.set()
        pending = await pending

        assert back.state == ResolutionState.RESOLVED
        assert pending.stale
        assert active.id == "A"
        assert not display.visible


# =============================================================================
# Failures
# =============================================================================


class TestStorageFailures:
    """Storage errors abort the evaluation without changing state."""

    @pytest.mark.asyncio
    async def test_failure_keeps_state_and_allows_retry(
        self, resolver, tracked_storage, active, display, config
    ):
        """After a failure the same route can be evaluated again."""
        tracked_storage.fail_with = StorageError("database is locked")

        outcome = await resolver.evaluate(RouteState("D1"), config)

        assert isinstance(outcome.error, StorageError)
        assert outcome.state == ResolutionState.IDLE
        assert resolver.guard.last_key is None
        assert active.current is None
        assert not display.visible

        tracked_storage.fail_with = None
        await tracked_storage.add_diagram(make_diagram("D1"))

        outcome = await resolver.evaluate(RouteState("D1"), config)

        assert outcome.error is None
        assert outcome.state == ResolutionState.RESOLVED
        assert active.id == "D1"

    @pytest.mark.asyncio
    async def test_failed_share_import_is_retryable(
        self, resolver, tracked_storage, router, prompts, config
    ):
        """A failed insert leaves the fragment in place and prompts nothing."""
        shared = make_diagram("X")
        router.set_fragment(SHARE_PREFIX + encode_diagram(shared))

        async def failing_add(diagram):
            raise StorageError("disk full")

        original_add = tracked_storage.add_diagram
        tracked_storage.add_diagram = failing_add

        outcome = await resolver.evaluate(router.current(), config)

        assert outcome.error is not None
        assert router.current().fragment.startswith(SHARE_PREFIX)
        assert prompts.calls == []

        tracked_storage.add_diagram = original_add
        outcome = await resolver.evaluate(router.current(), config)

        assert outcome.navigated_to is not None
        assert router.current().fragment == ""

    @pytest.mark.asyncio
    async def test_unexpected_error_leaves_route_evaluable(
        self, resolver, tracked_storage, router, prompts, display, config
    ):
        """A non-storage error propagates but does not lock the route."""
        original_list = tracked_storage.list_diagrams

        async def broken_list():
            raise RuntimeError("listing exploded")

        tracked_storage.list_diagrams = broken_list

        with pytest.raises(RuntimeError):
            await resolver.evaluate(router.current(), config)

        assert resolver.state == ResolutionState.IDLE
        assert resolver.guard.last_key is None
        assert not display.visible

        tracked_storage.list_diagrams = original_list
        outcome = await resolver.evaluate(router.current(), config)

        assert outcome.state == ResolutionState.AWAITING_CREATE_CHOICE
        assert prompts.calls == [("create",)]

    @pytest.mark.asyncio
    async def test_deeply_nested_share_falls_through(
        self, resolver, router, prompts, config
    ):
        """A share payload too deep to parse is ignored like any bad payload."""
        nested = "[" * 50000 + "]" * 50000
        router.set_fragment(SHARE_PREFIX + encode_share_payload(nested))

        outcome = await resolver.evaluate(router.current(), config)

        assert outcome.state == ResolutionState.AWAITING_CREATE_CHOICE
        assert prompts.calls == [("create",)]


class TestSupersededShareImport:
    """Share imports overtaken by a route change."""

    @pytest.mark.asyncio
    async def test_superseded_import_is_removed(
        self, resolver, tracked_storage, router, active, events, config
    ):
        """The stored copy of a discarded import does not linger."""
        await tracked_storage.add_diagram(make_diagram("D1"))
        tracked_storage.add_gate = asyncio.Event()
        router.set_fragment(SHARE_PREFIX + encode_diagram(make_diagram("X")))

        pending = asyncio.create_task(resolver.evaluate(router.current(), config))
        while len(tracked_storage.add_calls) < 2:
            await asyncio.sleep(0)

        await resolver.evaluate(RouteState("D1"), config)
        tracked_storage.add_gate.set()
        pending = await pending

        assert pending.stale
        assert active.id == "D1"
        assert [s.id for s in await tracked_storage.list_diagrams()] == ["D1"]
        assert ("clear_fragment",) not in events
