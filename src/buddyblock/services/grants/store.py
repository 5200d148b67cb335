"""Durable per-device mapping from blocked domain to grant expiry."""

from __future__ import annotations

import logging
from typing import Dict

from buddyblock.config.const import KEY_GRANTS
from buddyblock.ports.store import KeyValueStore
from buddyblock.services.errors import storage_operation

_log = logging.getLogger("buddyblock.grants")


def _coerce_table(raw: object) -> Dict[str, int]:
    if not isinstance(raw, dict):
        return {}
    table: Dict[str, int] = {}
    for domain, expiry in raw.items():
        try:
            table[str(domain)] = int(expiry)
        except (TypeError, ValueError):
            continue
    return table


class GrantStore:
    """Grant Table in the ``local`` namespace.

    Entries expire lazily: a stored expiry at or before ``now`` means no
    grant, so readers always compare against the current time.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def _table(self) -> Dict[str, int]:
        with storage_operation("read_grants"):
            raw = await self._store.get({KEY_GRANTS: {}})
        return _coerce_table(raw.get(KEY_GRANTS))

    async def get(self, domain: str) -> int | None:
        return (await self._table()).get(domain)

    async def set(self, domain: str, expires_at_ms: int) -> None:
        """Overwrite the expiry for ``domain``; returns only once durable."""

        table = await self._table()
        table[domain] = int(expires_at_ms)
        with storage_operation("write_grant"):
            await self._store.set({KEY_GRANTS: table})
        _log.info("grant recorded domain=%s expires_at=%d", domain, expires_at_ms)

    async def is_active(self, domain: str, now_ms: int) -> bool:
        expiry = await self.get(domain)
        return expiry is not None and expiry > now_ms

    async def active(self, now_ms: int) -> Dict[str, int]:
        return {d: e for d, e in (await self._table()).items() if e > now_ms}

    async def purge_expired(self, now_ms: int) -> int:
        table = await self._table()
        alive = {d: e for d, e in table.items() if e > now_ms}
        removed = len(table) - len(alive)
        if removed:
            with storage_operation("purge_grants"):
                await self._store.set({KEY_GRANTS: alive})
            _log.debug("purged expired grants count=%d", removed)
        return removed

    async def revoke_all(self) -> None:
        """Clear the whole table; idempotent."""

        with storage_operation("revoke_grants", stage="grants"):
            await self._store.clear()
        _log.info("all grants revoked")
