"""Root pytest configuration.

This module provides:
- Environment setup (loads .env)
- Test tier markers
"""

from __future__ import annotations

import pytest
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]):
    """Tag file-system tests as integration tests.

    Tests that request ``tmp_path`` touch the disk (SQLite databases) and
    are marked ``integration`` unless already marked ``unit``.
    """
    integration = pytest.mark.integration

    for item in items:
        if "unit" in item.keywords:
            continue
        if "tmp_path" in getattr(item, "fixturenames", ()):
            item.add_marker(integration)
