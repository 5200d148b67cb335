"""File-backed key-value namespace persisted as a single JSON document."""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Mapping

import anyio

_log = logging.getLogger("buddyblock.store.json")


class JsonFileKeyValueStore:
    """Persist one namespace in ``path``.

    Blocking IO runs in a worker thread; writes go to a temporary file that
    replaces the target so readers never observe a half-written document.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = anyio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        if not isinstance(data, dict):
            raise ValueError(f"{self._path} does not contain a JSON object")
        return data

    def _save(self, payload: Dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, ensure_ascii=False, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise

    def _remove(self) -> None:
        try:
            self._path.unlink()
        except FileNotFoundError:
            return

    async def get(self, defaults: Mapping[str, Any]) -> dict[str, Any]:
        data = await anyio.to_thread.run_sync(self._load)
        return {key: data.get(key, default) for key, default in defaults.items()}

    async def set(self, items: Mapping[str, Any]) -> None:
        async with self._lock:
            def _merge() -> None:
                data = self._load()
                data.update(items)
                self._save(data)

            await anyio.to_thread.run_sync(_merge)
        _log.debug("store write path=%s keys=%s", self._path, sorted(items))

    async def clear(self) -> None:
        async with self._lock:
            await anyio.to_thread.run_sync(self._remove)
        _log.debug("store cleared path=%s", self._path)
