"""Diagram load resolution.

Example:
    >>> from schemavault.loader import ActiveDiagram, LoadResolver
    >>> resolver = LoadResolver(storage, ActiveDiagram(), router, prompts, history)
    >>> outcome = await resolver.evaluate(router.current(), config)
    >>> outcome.state
    <ResolutionState.RESOLVED: 'resolved'>
"""

from .guard import LoadGuard
from .lib import LoadResolver
from .models import (
    ActiveDiagram,
    LoaderDisplay,
    Navigator,
    PromptHost,
    ResolutionOutcome,
    ResolutionState,
)

__all__ = [
    "LoadGuard",
    "LoadResolver",
    "ActiveDiagram",
    "LoaderDisplay",
    "Navigator",
    "PromptHost",
    "ResolutionOutcome",
    "ResolutionState",
]
