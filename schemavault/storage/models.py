"""Data models for diagram persistence.

This module defines the diagram record, its list summary, the snapshot
options used when loading a diagram, and the immutable version record.
"""

import copy
from dataclasses import dataclass, field, fields, replace
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

# Content sections of a diagram, in the order they are stored and exported.
SECTION_NAMES = ("tables", "relationships", "dependencies", "areas", "custom_types")


def generate_id() -> str:
    """Generate a fresh record identifier."""
    return str(uuid4())


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class SnapshotOptions:
    """Which content sections a diagram load should fill in.

    Sections left out come back as empty lists. Version creation only
    accepts ``SnapshotOptions.full()``.
    """

    include_tables: bool = False
    include_relationships: bool = False
    include_dependencies: bool = False
    include_areas: bool = False
    include_custom_types: bool = False

    @classmethod
    def full(cls) -> "SnapshotOptions":
        """Options that include every content section."""
        return cls(**{f.name: True for f in fields(cls)})

    @property
    def is_full(self) -> bool:
        """True when every section is included."""
        return all(getattr(self, f.name) for f in fields(self))

    def includes(self, section: str) -> bool:
        """Whether the named content section is requested."""
        return getattr(self, f"include_{section}")


@dataclass
class Diagram:
    """A persisted database schema design.

    The content sections are opaque JSON-compatible dicts; this package
    copies and stores them but never interprets them.

    Attributes:
        id: Unique, stable identifier.
        name: Human-readable diagram name.
        database_type: Target database dialect hint.
        tables: Table definitions.
        relationships: Relationships between tables.
        dependencies: View/table dependencies.
        areas: Canvas areas grouping tables.
        custom_types: User-defined column types.
        created_at: Creation timestamp.
        updated_at: Last modification timestamp.
    """

    id: str
    name: str = ""
    database_type: str = "generic"

    tables: list[dict[str, Any]] = field(default_factory=list)
    relationships: list[dict[str, Any]] = field(default_factory=list)
    dependencies: list[dict[str, Any]] = field(default_factory=list)
    areas: list[dict[str, Any]] = field(default_factory=list)
    custom_types: list[dict[str, Any]] = field(default_factory=list)

    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @classmethod
    def create(
        cls,
        name: str = "",
        database_type: str = "generic",
        **sections: list[dict[str, Any]],
    ) -> "Diagram":
        """Factory method to create a new diagram with generated ID."""
        unknown = set(sections) - set(SECTION_NAMES)
        if unknown:
            raise ValueError(f"Unknown diagram sections: {sorted(unknown)}")
        return cls(
            id=generate_id(),
            name=name,
            database_type=database_type,
            **{name: copy.deepcopy(value) for name, value in sections.items()},
        )

    def content(self) -> dict[str, list[dict[str, Any]]]:
        """Deep copy of the content sections keyed by section name."""
        return {name: copy.deepcopy(getattr(self, name)) for name in SECTION_NAMES}

    def filtered(self, options: SnapshotOptions) -> "Diagram":
        """Deep copy keeping only the sections the options request."""
        return replace(
            self,
            **{
                name: copy.deepcopy(getattr(self, name))
                if options.includes(name)
                else []
                for name in SECTION_NAMES
            },
        )

    def summary(self) -> "DiagramSummary":
        """Content-free summary used by diagram listings."""
        return DiagramSummary(
            id=self.id,
            name=self.name,
            database_type=self.database_type,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def touch(self) -> None:
        """Update updated_at timestamp."""
        self.updated_at = utc_now()


@dataclass(frozen=True)
class DiagramSummary:
    """A diagram without its content, as returned by listings."""

    id: str
    name: str
    database_type: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class DiagramVersion:
    """A named, immutable snapshot of one diagram.

    The snapshot is a value copy taken at creation time. Storage backends
    copy it again on every write and read, so later edits to the owning
    diagram (or to a returned object) never reach the stored version.

    Attributes:
        id: Unique version identifier.
        diagram_id: Diagram the snapshot was taken from.
        name: Human label.
        snapshot: Full copy of the diagram at creation time.
        created_at: Creation timestamp.
    """

    id: str
    diagram_id: str
    name: str
    snapshot: Diagram
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def create(cls, diagram_id: str, name: str, snapshot: Diagram) -> "DiagramVersion":
        """Factory method to create a new version with generated ID."""
        return cls(
            id=generate_id(),
            diagram_id=diagram_id,
            name=name,
            snapshot=copy.deepcopy(snapshot),
        )


__all__ = [
    "SECTION_NAMES",
    "generate_id",
    "utc_now",
    "SnapshotOptions",
    "Diagram",
    "DiagramSummary",
    "DiagramVersion",
]
