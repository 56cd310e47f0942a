"""Re-entrancy guard for load resolution."""

import logging

logger = logging.getLogger(__name__)


class LoadGuard:
    """Single slot holding the target key of the last evaluation.

    An evaluation whose key equals the slot is a repeat triggered by some
    unrelated update and is skipped. A different key is a real route change
    and goes through. This is a compare-and-skip slot, not a lock: nothing
    waits on it.
    """

    def __init__(self) -> None:
        self._last_key: str | None = None

    @property
    def last_key(self) -> str | None:
        return self._last_key

    def should_skip(self, key: str) -> bool:
        """Whether an evaluation for ``key`` repeats the last one."""
        return self._last_key is not None and self._last_key == key

    def enter(self, key: str) -> None:
        """Record ``key`` as the one being handled."""
        self._last_key = key

    def release(self, key: str | None = None) -> None:
        """Empty the slot so the next evaluation runs.

        Args:
            key: Only release if the slot still holds this key.
        """
        if key is None or self._last_key == key:
            self._last_key = None


__all__ = ["LoadGuard"]
