"""Diagram versions for schemavault.

Example:
    >>> from schemavault.versions import VersionManager
    >>> manager = VersionManager(storage)
    >>> version = await manager.create_version(diagram.id)
    >>> [v.name for v in await manager.list_versions(diagram.id)]
    ['10/19/26, 14:05:09']
"""

from .lib import VERSION_NAME_FORMAT, VersionManager, format_version_timestamp

__all__ = [
    "VERSION_NAME_FORMAT",
    "VersionManager",
    "format_version_timestamp",
]
