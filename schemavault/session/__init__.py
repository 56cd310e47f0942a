"""Editor sessions.

Example:
    >>> from schemavault.session import open_session
    >>> session = await open_session(prompts)
    >>> session.active.id
    'a3c1...'
"""

from schemavault.loader import ActiveDiagram

from .lib import EditorSession, open_session

__all__ = [
    "ActiveDiagram",
    "EditorSession",
    "open_session",
]
