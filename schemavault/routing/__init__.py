"""Editor routes and an in-process router."""

from .lib import DIAGRAMS_SEGMENT, MemoryRouter, RouteState, diagram_path, parse_route

__all__ = [
    "DIAGRAMS_SEGMENT",
    "RouteState",
    "diagram_path",
    "parse_route",
    "MemoryRouter",
]
