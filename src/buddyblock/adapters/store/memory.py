"""In-process key-value namespace used by tests and ephemeral sessions."""

from __future__ import annotations

import copy
from typing import Any, Dict, Mapping


class MemoryKeyValueStore:
    """Dictionary-backed store; values are deep-copied on the way in and out."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._data: Dict[str, Any] = copy.deepcopy(dict(initial or {}))

    async def get(self, defaults: Mapping[str, Any]) -> dict[str, Any]:
        return {key: copy.deepcopy(self._data.get(key, default)) for key, default in defaults.items()}

    async def set(self, items: Mapping[str, Any]) -> None:
        for key, value in items.items():
            self._data[key] = copy.deepcopy(value)

    async def clear(self) -> None:
        self._data.clear()

    def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)
