"""
Port definitions (interfaces) for the OAuth2 engine.

The engine depends on these contracts, not on a web framework.
Infrastructure adapters implement them (see authy/infrastructure).
"""

from typing import Protocol


class Session(Protocol):
    """
    Port (interface) for per-user session storage.

    Scoped to one caller; the engine never shares a session across flows.
    Values are plain strings so no runtime type assertion is needed when
    reading them back.
    """

    def get(self, key: str) -> str | None:
        """
        Read a value.

        Args:
            key: Session key

        Returns:
            The stored string, or None if absent
        """
        ...

    def set(self, key: str, value: str) -> None:
        """Store a value under key, replacing any previous one."""
        ...

    def delete(self, key: str) -> None:
        """Remove key. Removing an absent key is not an error."""
        ...
