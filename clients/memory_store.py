"""
In-process key-value store.

Same get/set/delete surface as ValkeyClient, held in a dict. Used when no
Valkey URL is configured and by the test suite. Behaves like browser local
storage: synchronous, string values, last write wins.
"""

import logging

logger = logging.getLogger(__name__)


class MemoryStore:
    """Dict-backed string store."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def ping(self) -> bool:
        return True

    def get(self, key: str) -> str | None:
        """Returns None if key doesn't exist (not an error)."""
        return self._data.get(key)

    def set(self, key: str, value: str) -> bool:
        if not isinstance(value, str):
            raise TypeError(f"MemoryStore values must be str, got {type(value).__name__}")
        self._data[key] = value
        return True

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def exists(self, key: str) -> bool:
        return key in self._data

    def close(self) -> None:
        logger.debug("MemoryStore closed")
