"""Typed access to the synchronized policy configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from buddyblock.config.const import KEY_BLOCKED_DOMAINS, KEY_ENROLLED, KEY_ENROLLED_AT, KEY_SECRET
from buddyblock.ports.store import KeyValueStore
from buddyblock.services.errors import ConfigurationError, storage_operation
from buddyblock.services.otp import decode_secret

_log = logging.getLogger("buddyblock.policy")

_DEFAULTS: Mapping[str, Any] = {
    KEY_ENROLLED: False,
    KEY_SECRET: None,
    KEY_BLOCKED_DOMAINS: [],
    KEY_ENROLLED_AT: None,
}


@dataclass(slots=True)
class PolicyConfig:
    enrolled: bool = False
    secret: str | None = None
    blocked_domains: list[str] = field(default_factory=list)
    enrolled_at: int | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PolicyConfig":
        domains = data.get(KEY_BLOCKED_DOMAINS) or []
        if not isinstance(domains, list):
            domains = []
        try:
            enrolled_at = int(data[KEY_ENROLLED_AT])
        except (KeyError, TypeError, ValueError):
            enrolled_at = None
        return cls(
            enrolled=bool(data.get(KEY_ENROLLED, False)),
            secret=data.get(KEY_SECRET) or None,
            blocked_domains=[str(d) for d in domains if d],
            enrolled_at=enrolled_at,
        )

    @property
    def corrupted(self) -> bool:
        if not self.enrolled:
            return False
        try:
            decode_secret(self.secret)
        except ConfigurationError:
            return True
        return False


class PolicyRepository:
    """Reads and writes Policy Configuration in the ``sync`` namespace."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def load(self) -> PolicyConfig:
        with storage_operation("load_policy"):
            raw = await self._store.get(_DEFAULTS)
        return PolicyConfig.from_mapping(raw)

    async def require_secret(self) -> str:
        """Return the enrolled secret or raise :class:`ConfigurationError`."""

        config = await self.load()
        if not config.enrolled:
            raise ConfigurationError("One-time code not set up. Complete setup first.")
        if config.corrupted:
            raise ConfigurationError(
                "One-time code configuration is corrupted.",
                hint="Reset and set up again.",
            )
        return config.secret  # type: ignore[return-value]

    async def blocked_domains(self) -> list[str]:
        return (await self.load()).blocked_domains

    async def save_enrollment(self, secret: str, *, enrolled_at: int) -> None:
        # secret and flag go out in one write so a reader never sees only one of them
        with storage_operation("save_enrollment"):
            await self._store.set({KEY_SECRET: secret, KEY_ENROLLED: True, KEY_ENROLLED_AT: enrolled_at})
        _log.info("enrollment persisted")

    async def save_blocked_domains(self, domains: list[str]) -> None:
        with storage_operation("save_blocked_domains"):
            await self._store.set({KEY_BLOCKED_DOMAINS: list(domains)})
        _log.info("blocklist saved count=%d", len(domains))

    async def mark_unenrolled(self) -> None:
        with storage_operation("mark_unenrolled"):
            await self._store.set({KEY_ENROLLED: False})
        _log.warning("enrollment flag cleared; setup required")

    async def wipe(self) -> None:
        with storage_operation("wipe_policy", stage="policy"):
            await self._store.clear()


__all__ = ["PolicyConfig", "PolicyRepository"]
