"""Port describing the persistent key-value store used by the blocker."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Async key-value namespace.

    Reads always supply explicit defaults because a fresh store returns
    nothing. Implementations raise on failure; callers translate the
    exception into :class:`~buddyblock.services.errors.StorageError`.
    """

    async def get(self, defaults: Mapping[str, Any]) -> dict[str, Any]:
        """Return the stored value for each key in ``defaults`` or its default."""

    async def set(self, items: Mapping[str, Any]) -> None:
        """Durably write every item before returning."""

    async def clear(self) -> None:
        """Remove every key in the namespace."""


__all__ = ["KeyValueStore"]
