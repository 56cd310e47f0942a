"""Centralized configuration management for schemavault.

Provides unified access to all configuration via the `get_environment()` function.

Example:
    >>> from schemavault.config import EnvVar, get_app_config, get_environment
    >>>
    >>> backend = get_environment(EnvVar.STORAGE_BACKEND)  # "sqlite"
    >>> config = get_app_config()
    >>> config.default_diagram_id
    None

Environment Variable Categories:
    storage: Persistence backend and database location
    editor: Default diagram and share link base URL
    logging: Log level
"""

from .lib import (
    # Core types
    AppConfig,
    EnvConfig,
    EnvVar,
    # Main interface
    get_app_config,
    get_environment,
    get_environment_info,
    # Introspection
    list_environment_variables,
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
