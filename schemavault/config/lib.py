"""Centralized environment configuration management for schemavault.

Provides a unified interface for all environment variables with:
- Single `get_environment()` function for all configuration
- Type-safe enum with metadata (default, type, description)
- Consistent resolution: override > environment > default

Example:
    >>> from schemavault.config import EnvVar, get_environment
    >>>
    >>> db_path = get_environment(EnvVar.DB_PATH)  # Returns Path
    >>> backend = get_environment(EnvVar.STORAGE_BACKEND, override="memory")
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, overload

# =============================================================================
# Environment Variable Configuration
# =============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """Metadata for an environment variable.

    Attributes:
        name: Environment variable name (e.g., "SCHEMAVAULT_DB_PATH").
        default: Default value if not set in environment.
        var_type: Python type for value conversion (str, int, bool, Path).
        description: Human-readable description.
        category: Grouping category for documentation.
    """

    name: str
    default: Any
    var_type: type
    description: str = ""
    category: str = "general"


class EnvVar(Enum):
    """All environment variables used by schemavault.

    Categories:
        - storage: Persistence backend and location
        - editor: Diagram selection and sharing
        - logging: Log output
    """

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------
    DB_PATH = EnvConfig(
        name="SCHEMAVAULT_DB_PATH",
        default=Path("data/schemavault/diagrams.db"),
        var_type=Path,
        description="SQLite database file for diagrams and versions",
        category="storage",
    )
    STORAGE_BACKEND = EnvConfig(
        name="SCHEMAVAULT_STORAGE_BACKEND",
        default="sqlite",
        var_type=str,
        description="Storage backend: 'sqlite' (file) or 'memory'",
        category="storage",
    )
    PURGE_ORPHANS_ON_OPEN = EnvConfig(
        name="SCHEMAVAULT_PURGE_ORPHANS_ON_OPEN",
        default=True,
        var_type=bool,
        description="Delete versions of deleted diagrams when a session opens",
        category="storage",
    )

    # -------------------------------------------------------------------------
    # Editor
    # -------------------------------------------------------------------------
    DEFAULT_DIAGRAM_ID = EnvConfig(
        name="SCHEMAVAULT_DEFAULT_DIAGRAM_ID",
        default=None,
        var_type=str,
        description="Diagram opened when the route names none",
        category="editor",
    )
    SHARE_BASE_URL = EnvConfig(
        name="SCHEMAVAULT_SHARE_BASE_URL",
        default="http://localhost:5173/",
        var_type=str,
        description="Base URL that share links are built on",
        category="editor",
    )
    MAX_REDIRECTS = EnvConfig(
        name="SCHEMAVAULT_MAX_REDIRECTS",
        default=4,
        var_type=int,
        description="Resolver navigations followed by one session sync",
        category="editor",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    LOG_LEVEL = EnvConfig(
        name="SCHEMAVAULT_LOG_LEVEL",
        default="INFO",
        var_type=str,
        description="Log level name (DEBUG, INFO, WARNING, ERROR)",
        category="logging",
    )


# =============================================================================
# Type Conversion Helpers
# =============================================================================


def _parse_bool(value: str) -> bool | None:
    """Parse string to boolean.

    Recognizes: true/false, 1/0, yes/no (case-insensitive).
    Returns None for unrecognized values.
    """
    normalized = value.lower().strip()
    if normalized in ("true", "1", "yes"):
        return True
    if normalized in ("false", "0", "no"):
        return False
    return None


def _convert_value(value: str | None, var_type: type, default: Any) -> Any:
    """Convert string value to target type.

    Args:
        value: Raw string value from environment (or None).
        var_type: Target Python type.
        default: Default value if conversion fails or value is None.

    Returns:
        Converted value or default.
    """
    if value is None:
        return default

    if var_type is str:
        # Blank values count as unset
        return value if value.strip() else default

    if var_type is int:
        try:
            return int(value)
        except ValueError:
            return default

    if var_type is bool:
        result = _parse_bool(value)
        return result if result is not None else default

    if var_type is Path:
        return Path(value)

    return value


# =============================================================================
# Main Interface
# =============================================================================


@overload
def get_environment(env_var: EnvVar, override: int) -> int: ...
@overload
def get_environment(env_var: EnvVar, override: str) -> str: ...
@overload
def get_environment(env_var: EnvVar, override: bool) -> bool: ...
@overload
def get_environment(env_var: EnvVar, override: Path) -> Path: ...
@overload
def get_environment(env_var: EnvVar, override: None = None) -> Any: ...


def get_environment(env_var: EnvVar, override: Any = None) -> Any:
    """Get environment variable value with type conversion.

    Resolution priority:
        1. Explicit override parameter (highest)
        2. Environment variable value
        3. Default from EnvConfig (lowest)

    Args:
        env_var: Environment variable enum member.
        override: Optional override value (bypasses env lookup).

    Returns:
        Value converted to the appropriate type (str, int, bool, or Path).
    """
    config: EnvConfig = env_var.value

    if override is not None:
        return override

    raw_value = os.environ.get(config.name)
    return _convert_value(raw_value, config.var_type, config.default)


def get_environment_info(env_var: EnvVar) -> EnvConfig:
    """Get metadata for an environment variable."""
    return env_var.value


def list_environment_variables(category: str | None = None) -> list[EnvVar]:
    """List all environment variables, optionally filtered by category.

    Args:
        category: Filter by category (storage, editor, logging).
                 None returns all variables.

    Returns:
        List of EnvVar enum members.
    """
    if category is None:
        return list(EnvVar)

    return [var for var in EnvVar if var.value.category == category]


# =============================================================================
# Application Configuration
# =============================================================================


@dataclass(frozen=True)
class AppConfig:
    """Application settings consulted when resolving which diagram to open.

    Attributes:
        default_diagram_id: Diagram to open when the route names none.
    """

    default_diagram_id: str | None = None


def get_app_config(default_diagram_id: str | None = None) -> AppConfig:
    """Build the application configuration from the environment.

    Resolution: default_diagram_id argument > SCHEMAVAULT_DEFAULT_DIAGRAM_ID.
    """
    return AppConfig(
        default_diagram_id=get_environment(
            EnvVar.DEFAULT_DIAGRAM_ID, override=default_diagram_id
        )
    )


__all__ = [
    # Core types
    "EnvConfig",
    "EnvVar",
    "AppConfig",
    # Main interface
    "get_environment",
    "get_environment_info",
    "get_app_config",
    # Introspection
    "list_environment_variables",
]
