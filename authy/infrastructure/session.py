"""
Session adapters.

DictSession implements the Session port on top of any mutable mapping,
which covers Starlette's request.session as well as plain dicts in tests.
"""

from collections.abc import MutableMapping
from typing import Any


class DictSession:
    """Session port backed by a mutable mapping."""

    def __init__(self, data: MutableMapping[str, Any] | None = None):
        self._data: MutableMapping[str, Any] = data if data is not None else {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def keys(self) -> list[str]:
        """Keys currently stored (for inspection)."""
        return list(self._data.keys())
