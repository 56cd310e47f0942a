"""Tests for editor routes."""

import pytest

from .lib import MemoryRouter, RouteState, diagram_path, parse_route


class TestParseRoute:
    """Tests for parse_route and diagram_path."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("/", RouteState()),
            ("/diagrams/D1", RouteState("D1")),
            ("/diagrams/D1/", RouteState("D1")),
            ("/diagrams/", RouteState()),
            ("/settings/D1", RouteState()),
            ("https://app.example/diagrams/D1#share=e30=", RouteState("D1", "#share=e30=")),
            ("https://app.example/#share=e30=", RouteState(None, "#share=e30=")),
        ],
    )
    def test_parse(self, url, expected):
        """Paths and full URLs parse to the same route state."""
        assert parse_route(url) == expected

    @pytest.mark.unit
    def test_path_round_trip(self):
        """Ids with reserved characters survive diagram_path/parse_route."""
        diagram_id = "a b/c"
        assert parse_route(diagram_path(diagram_id)).diagram_id == diagram_id

    @pytest.mark.unit
    def test_target_key(self):
        """Absent ids key as the empty string."""
        assert RouteState().target_key == ""
        assert RouteState("D1").target_key == "D1"


class TestMemoryRouter:
    """Tests for MemoryRouter."""

    @pytest.mark.unit
    def test_navigate_records_history(self):
        """Navigation updates the route and the history."""
        router = MemoryRouter()
        router.navigate("/diagrams/D1")
        assert router.current() == RouteState("D1")
        assert router.history == ["/", "/diagrams/D1"]

    @pytest.mark.unit
    def test_clear_fragment(self):
        """Clearing the fragment keeps the path and adds no history."""
        router = MemoryRouter("/#share=e30=")
        router.clear_fragment()
        assert router.current() == RouteState()
        assert router.history == ["/#share=e30="]

    @pytest.mark.unit
    def test_set_fragment_adds_hash(self):
        """Fragments are normalized to start with '#'."""
        router = MemoryRouter("/diagrams/D1")
        router.set_fragment("share=abc")
        assert router.location == "/diagrams/D1#share=abc"
