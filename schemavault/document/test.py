"""Tests for diagram JSON documents."""

import json

import pytest

from schemavault.storage.models import Diagram

from .lib import (
    DocumentImportError,
    clone_diagram,
    diagram_from_json,
    diagram_to_json,
    parse_diagram_document,
)


@pytest.fixture
def diagram():
    """A diagram with unicode names in several sections."""
    return Diagram.create(
        name="Café ☕",
        database_type="mysql",
        tables=[{"id": "t1", "name": "usuários", "fields": [{"name": "é"}]}],
        relationships=[{"id": "r1", "name": "𝔣𝔨_users"}],
        custom_types=[{"id": "ct1", "name": "статус"}],
    )


class TestExport:
    """Tests for diagram_to_json."""

    @pytest.mark.unit
    def test_uses_camel_case_keys(self, diagram):
        """Wire format is camelCase."""
        data = json.loads(diagram_to_json(diagram))
        assert data["databaseType"] == "mysql"
        assert data["customTypes"] == [{"id": "ct1", "name": "статус"}]
        assert "database_type" not in data

    @pytest.mark.unit
    def test_is_deterministic(self, diagram):
        """The same diagram always exports to the same text."""
        assert diagram_to_json(diagram) == diagram_to_json(diagram)

    @pytest.mark.unit
    def test_keeps_non_ascii_unescaped(self, diagram):
        """Non-ASCII characters are written literally."""
        text = diagram_to_json(diagram)
        assert "usuários" in text
        assert "\\u" not in text


class TestImport:
    """Tests for diagram_from_json and parse_diagram_document."""

    @pytest.mark.unit
    def test_round_trip_preserves_content(self, diagram):
        """Export then import keeps name and every section."""
        imported = diagram_from_json(diagram_to_json(diagram))
        assert imported.name == diagram.name
        assert imported.database_type == diagram.database_type
        assert imported.content() == diagram.content()

    @pytest.mark.unit
    def test_import_gets_fresh_identity(self, diagram):
        """Imported diagrams never reuse the exported id."""
        imported = diagram_from_json(diagram_to_json(diagram))
        assert imported.id != diagram.id
        assert imported.created_at >= diagram.created_at

    @pytest.mark.unit
    def test_missing_sections_default_to_empty(self):
        """Minimal documents load with empty sections."""
        imported = diagram_from_json('{"name": "bare"}')
        assert imported.name == "bare"
        assert imported.tables == []
        assert imported.database_type == "generic"

    @pytest.mark.unit
    def test_unknown_keys_ignored(self):
        """Keys from other releases are ignored."""
        doc = parse_diagram_document('{"name": "x", "schemaVersion": 7}')
        assert doc.name == "x"

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "text",
        [
            "not json",
            "[1, 2, 3]",
            '{"tables": "not-a-list"}',
            '{"name": 42}',
            "",
        ],
    )
    def test_invalid_documents_raise(self, text):
        """Malformed input raises DocumentImportError."""
        with pytest.raises(DocumentImportError):
            diagram_from_json(text)

    @pytest.mark.unit
    def test_import_error_is_value_error(self):
        """DocumentImportError can be handled as ValueError."""
        with pytest.raises(ValueError):
            diagram_from_json("{")


class TestClone:
    """Tests for clone_diagram."""

    @pytest.mark.unit
    def test_clone_is_deep_and_renamed(self, diagram):
        """Clones get a new id and share no nested state."""
        clone = clone_diagram(diagram)
        assert clone.id != diagram.id
        assert clone.content() == diagram.content()

        clone.tables[0]["name"] = "changed"
        assert diagram.tables[0]["name"] == "usuários"
