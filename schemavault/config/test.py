"""Tests for configuration management."""

from pathlib import Path

import pytest

from .lib import (
    AppConfig,
    EnvConfig,
    EnvVar,
    get_app_config,
    get_environment,
    get_environment_info,
    list_environment_variables,
)

# =============================================================================
# Tests for get_environment (main interface)
# =============================================================================


class TestGetEnvironment:
    """Tests for the unified get_environment interface."""

    @pytest.mark.unit
    def test_returns_default_when_not_set(self, monkeypatch):
        """Returns default value when env var is not set."""
        monkeypatch.delenv("SCHEMAVAULT_STORAGE_BACKEND", raising=False)
        assert get_environment(EnvVar.STORAGE_BACKEND) == "sqlite"

    @pytest.mark.unit
    def test_override_takes_priority(self, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("SCHEMAVAULT_STORAGE_BACKEND", "sqlite")
        result = get_environment(EnvVar.STORAGE_BACKEND, override="memory")
        assert result == "memory"

    @pytest.mark.unit
    def test_env_var_overrides_default(self, monkeypatch):
        """Environment variable overrides default value."""
        monkeypatch.setenv("SCHEMAVAULT_LOG_LEVEL", "DEBUG")
        assert get_environment(EnvVar.LOG_LEVEL) == "DEBUG"

    @pytest.mark.unit
    def test_path_type_conversion(self, monkeypatch):
        """Path type conversion from string."""
        monkeypatch.setenv("SCHEMAVAULT_DB_PATH", "/tmp/diagrams.db")
        result = get_environment(EnvVar.DB_PATH)
        assert result == Path("/tmp/diagrams.db")
        assert isinstance(result, Path)

    @pytest.mark.unit
    def test_blank_string_counts_as_unset(self, monkeypatch):
        """Whitespace-only values fall back to the default."""
        monkeypatch.setenv("SCHEMAVAULT_DEFAULT_DIAGRAM_ID", "   ")
        assert get_environment(EnvVar.DEFAULT_DIAGRAM_ID) is None

    @pytest.mark.unit
    def test_int_type_conversion(self, monkeypatch):
        """Integer type conversion from string."""
        monkeypatch.setenv("SCHEMAVAULT_MAX_REDIRECTS", "7")
        result = get_environment(EnvVar.MAX_REDIRECTS)
        assert result == 7
        assert isinstance(result, int)

    @pytest.mark.unit
    def test_invalid_int_falls_back_to_default(self, monkeypatch):
        """Non-numeric values use the default."""
        monkeypatch.setenv("SCHEMAVAULT_MAX_REDIRECTS", "many")
        assert get_environment(EnvVar.MAX_REDIRECTS) == 4

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("true", True),
            ("YES", True),
            ("1", True),
            ("false", False),
            ("No", False),
            ("0", False),
        ],
    )
    def test_bool_type_conversion(self, monkeypatch, raw, expected):
        """Boolean parsing accepts true/false, yes/no and 1/0."""
        monkeypatch.setenv("SCHEMAVAULT_PURGE_ORPHANS_ON_OPEN", raw)
        assert get_environment(EnvVar.PURGE_ORPHANS_ON_OPEN) is expected

    @pytest.mark.unit
    def test_unrecognized_bool_falls_back_to_default(self, monkeypatch):
        """Values that are not a boolean use the default."""
        monkeypatch.setenv("SCHEMAVAULT_PURGE_ORPHANS_ON_OPEN", "sometimes")
        assert get_environment(EnvVar.PURGE_ORPHANS_ON_OPEN) is True

    @pytest.mark.unit
    def test_bool_override(self, monkeypatch):
        """A False override wins over the environment."""
        monkeypatch.setenv("SCHEMAVAULT_PURGE_ORPHANS_ON_OPEN", "true")
        assert get_environment(EnvVar.PURGE_ORPHANS_ON_OPEN, override=False) is False


class TestEnvironmentInfo:
    """Tests for metadata and introspection helpers."""

    @pytest.mark.unit
    def test_get_environment_info(self):
        """Metadata is exposed as EnvConfig."""
        info = get_environment_info(EnvVar.DB_PATH)
        assert isinstance(info, EnvConfig)
        assert info.name == "SCHEMAVAULT_DB_PATH"
        assert info.var_type is Path

    @pytest.mark.unit
    def test_list_by_category(self):
        """Category filter narrows the list."""
        storage_vars = list_environment_variables("storage")
        assert EnvVar.DB_PATH in storage_vars
        assert EnvVar.LOG_LEVEL not in storage_vars

    @pytest.mark.unit
    def test_list_all(self):
        """No category returns every variable."""
        assert len(list_environment_variables()) == len(EnvVar)

    @pytest.mark.unit
    def test_all_names_are_prefixed(self):
        """Every variable lives under the SCHEMAVAULT_ prefix."""
        for var in EnvVar:
            assert var.value.name.startswith("SCHEMAVAULT_")


class TestAppConfig:
    """Tests for the application config builder."""

    @pytest.mark.unit
    def test_default_diagram_from_environment(self, monkeypatch):
        """The default diagram id is read from the environment."""
        monkeypatch.setenv("SCHEMAVAULT_DEFAULT_DIAGRAM_ID", "D1")
        assert get_app_config() == AppConfig(default_diagram_id="D1")

    @pytest.mark.unit
    def test_argument_overrides_environment(self, monkeypatch):
        """An explicit id wins over the environment."""
        monkeypatch.setenv("SCHEMAVAULT_DEFAULT_DIAGRAM_ID", "D1")
        assert get_app_config("D2").default_diagram_id == "D2"

    @pytest.mark.unit
    def test_no_default(self, monkeypatch):
        """Without configuration there is no default diagram."""
        monkeypatch.delenv("SCHEMAVAULT_DEFAULT_DIAGRAM_ID", raising=False)
        assert get_app_config().default_diagram_id is None
