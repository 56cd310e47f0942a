"""Editor routes.

The route path ``/diagrams/<id>`` names the diagram to show; the URL
fragment may carry a ``#share=`` payload for one-time import.
"""

import logging
from dataclasses import dataclass, replace
from urllib.parse import quote, unquote, urlsplit

logger = logging.getLogger(__name__)

DIAGRAMS_SEGMENT = "diagrams"


@dataclass(frozen=True)
class RouteState:
    """Route inputs seen by the resolver.

    Attributes:
        diagram_id: Diagram id from the path, None when absent.
        fragment: URL fragment including the leading "#", or "".
    """

    diagram_id: str | None = None
    fragment: str = ""

    @property
    def target_key(self) -> str:
        """Identity token for this route: the diagram id or ""."""
        return self.diagram_id or ""

    @property
    def path(self) -> str:
        return diagram_path(self.diagram_id) if self.diagram_id else "/"


def diagram_path(diagram_id: str) -> str:
    """Route path of a diagram."""
    return f"/{DIAGRAMS_SEGMENT}/{quote(diagram_id, safe='')}"


def parse_route(url: str) -> RouteState:
    """Extract the diagram id and fragment from a path or full URL.

    Example:
        >>> parse_route("https://app.example/diagrams/abc#share=e30=")
        RouteState(diagram_id='abc', fragment='#share=e30=')
    """
    parts = urlsplit(url)
    segments = [s for s in parts.path.split("/") if s]

    diagram_id = None
    if len(segments) >= 2 and segments[0] == DIAGRAMS_SEGMENT:
        diagram_id = unquote(segments[1]) or None

    fragment = f"#{parts.fragment}" if parts.fragment else ""
    return RouteState(diagram_id=diagram_id, fragment=fragment)


class MemoryRouter:
    """In-process router holding the current location.

    Args:
        url: Initial location.
    """

    def __init__(self, url: str = "/"):
        self._route = parse_route(url)
        self.history: list[str] = [self.location]

    @property
    def location(self) -> str:
        """Current path plus fragment."""
        return self._route.path + self._route.fragment

    def current(self) -> RouteState:
        return self._route

    def navigate(self, path: str) -> None:
        """Go to a new location, recording it in history."""
        self._route = parse_route(path)
        self.history.append(self.location)
        logger.debug(f"Navigated to {self.location}")

    def set_fragment(self, fragment: str) -> None:
        """Replace the fragment in place, without a history entry."""
        if fragment and not fragment.startswith("#"):
            fragment = f"#{fragment}"
        self._route = replace(self._route, fragment=fragment)

    def clear_fragment(self) -> None:
        self.set_fragment("")


__all__ = [
    "DIAGRAMS_SEGMENT",
    "RouteState",
    "diagram_path",
    "parse_route",
    "MemoryRouter",
]
