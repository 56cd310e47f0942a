"""Canonical JSON export and import of diagrams.

The JSON document is the form a diagram takes when it leaves storage, for
example inside a share link. Export is deterministic (sorted keys, non-ASCII
kept as-is) so the same diagram always produces the same text.
"""

import copy
import json
import logging
from dataclasses import replace
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from schemavault.storage.models import Diagram, generate_id, utc_now

logger = logging.getLogger(__name__)


class DocumentImportError(ValueError):
    """Raised when JSON text is not a valid diagram document."""


class DiagramDocument(BaseModel):
    """Pydantic model of the exported diagram JSON.

    Field names are camelCase on the wire. Unknown keys are ignored and
    missing content sections default to empty lists, so documents written
    by other releases load on a best-effort basis.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = Field(None, description="Identifier at export time")
    name: str = Field("", description="Diagram name")
    database_type: str = Field("generic", alias="databaseType")

    tables: list[dict[str, Any]] = Field(default_factory=list)
    relationships: list[dict[str, Any]] = Field(default_factory=list)
    dependencies: list[dict[str, Any]] = Field(default_factory=list)
    areas: list[dict[str, Any]] = Field(default_factory=list)
    custom_types: list[dict[str, Any]] = Field(
        default_factory=list, alias="customTypes"
    )

    created_at: datetime | None = Field(None, alias="createdAt")
    updated_at: datetime | None = Field(None, alias="updatedAt")

    @classmethod
    def from_diagram(cls, diagram: Diagram) -> "DiagramDocument":
        """Build a document from a stored diagram."""
        return cls(
            id=diagram.id,
            name=diagram.name,
            database_type=diagram.database_type,
            created_at=diagram.created_at,
            updated_at=diagram.updated_at,
            **diagram.content(),
        )

    def to_diagram(self) -> Diagram:
        """Build a new Diagram with a fresh id and timestamps."""
        now = utc_now()
        return Diagram(
            id=generate_id(),
            name=self.name,
            database_type=self.database_type,
            tables=copy.deepcopy(self.tables),
            relationships=copy.deepcopy(self.relationships),
            dependencies=copy.deepcopy(self.dependencies),
            areas=copy.deepcopy(self.areas),
            custom_types=copy.deepcopy(self.custom_types),
            created_at=now,
            updated_at=now,
        )


def diagram_to_json(diagram: Diagram) -> str:
    """Serialize a diagram to its canonical JSON text.

    Args:
        diagram: Diagram to export; every content section is written.

    Returns:
        JSON text with sorted keys and unescaped non-ASCII characters.
    """
    data = DiagramDocument.from_diagram(diagram).model_dump(mode="json", by_alias=True)
    return json.dumps(data, sort_keys=True, ensure_ascii=False)


def parse_diagram_document(text: str) -> DiagramDocument:
    """Parse and validate diagram JSON.

    Raises:
        DocumentImportError: If the text is not JSON or does not match the
            document schema.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DocumentImportError(f"Invalid diagram JSON: {e}") from e

    try:
        return DiagramDocument.model_validate(data)
    except ValidationError as e:
        raise DocumentImportError(
            f"Diagram JSON does not match schema ({e.error_count()} errors)"
        ) from e


def diagram_from_json(text: str) -> Diagram:
    """Import diagram JSON as a brand-new diagram.

    The imported diagram always gets a fresh id and fresh timestamps so it
    can be inserted next to the diagram it was exported from.

    Raises:
        DocumentImportError: If the text is not a valid diagram document.
    """
    diagram = parse_diagram_document(text).to_diagram()
    logger.debug(f"Parsed diagram document {diagram.name!r} as {diagram.id}")
    return diagram


def clone_diagram(diagram: Diagram) -> Diagram:
    """Deep copy a diagram under a new id with fresh timestamps."""
    now = utc_now()
    return replace(
        copy.deepcopy(diagram),
        id=generate_id(),
        created_at=now,
        updated_at=now,
    )


__all__ = [
    "DocumentImportError",
    "DiagramDocument",
    "diagram_to_json",
    "parse_diagram_document",
    "diagram_from_json",
    "clone_diagram",
]
