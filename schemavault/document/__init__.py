"""Diagram JSON documents.

Example:
    >>> from schemavault.document import diagram_from_json, diagram_to_json
    >>> text = diagram_to_json(diagram)
    >>> copy = diagram_from_json(text)  # new id, same content
"""

from .lib import (
    DiagramDocument,
    DocumentImportError,
    clone_diagram,
    diagram_from_json,
    diagram_to_json,
    parse_diagram_document,
)

__all__ = [
    "DiagramDocument",
    "DocumentImportError",
    "diagram_to_json",
    "parse_diagram_document",
    "diagram_from_json",
    "clone_diagram",
]
