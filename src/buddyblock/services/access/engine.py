"""Access decisions for the navigation interceptor and the in-page monitor."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union
from urllib.parse import parse_qs, urlencode, urlsplit

from buddyblock.config.const import DEFAULT_CHALLENGE_SURFACE
from buddyblock.services.clock import Clock, now_ms
from buddyblock.services.errors import InputValidationError
from buddyblock.services.grants import GrantStore
from buddyblock.services.policy import PolicyRepository, is_governed, normalize_hostname

_log = logging.getLogger("buddyblock.access")

_NAVIGABLE_SCHEMES = ("http", "https")
TOP_LEVEL_FRAME = 0


@dataclass(frozen=True, slots=True)
class Allow:
    reason: str


@dataclass(frozen=True, slots=True)
class Redirect:
    site: str
    target: str


NavigationDecision = Union[Allow, Redirect]


@dataclass(frozen=True, slots=True)
class Active:
    remaining_ms: int
    expires_at: int


@dataclass(frozen=True, slots=True)
class Expired:
    site: str


AccessState = Union[Active, Expired]


def challenge_url(site: str, *, surface: str = DEFAULT_CHALLENGE_SURFACE) -> str:
    return f"{surface}?{urlencode({'site': site})}"


def site_from_challenge_url(url: str) -> str:
    """Extract the ``site`` parameter of a challenge URL."""

    values = parse_qs(urlsplit(url).query).get("site") or []
    site = values[0].strip() if values else ""
    if not site:
        raise InputValidationError("Error: Domain not found. Please try visiting the site again.")
    return site


def destination_for(site: str) -> str:
    return f"https://{site}"


class AccessDecisionEngine:
    def __init__(
        self,
        *,
        policy: PolicyRepository,
        grants: GrantStore,
        clock: Clock | None = None,
        challenge_surface: str = DEFAULT_CHALLENGE_SURFACE,
    ) -> None:
        self._policy = policy
        self._grants = grants
        self._clock = clock or now_ms
        self.challenge_surface = challenge_surface

    def challenge_url(self, site: str) -> str:
        return challenge_url(site, surface=self.challenge_surface)

    async def is_governed(self, hostname: str) -> bool:
        return is_governed(hostname, await self._policy.blocked_domains())

    async def decide_navigation(self, url: str, *, frame_id: int = TOP_LEVEL_FRAME) -> NavigationDecision:
        if frame_id != TOP_LEVEL_FRAME:
            return Allow("subframe")
        parts = urlsplit(url)
        if parts.scheme.lower() not in _NAVIGABLE_SCHEMES or not parts.hostname:
            return Allow("not_navigable")
        host = normalize_hostname(parts.hostname)

        expiry = await self._grants.get(host)
        if expiry is not None and expiry > self._clock():
            return Allow("granted")

        if not await self.is_governed(host):
            return Allow("not_governed")

        target = self.challenge_url(host)
        _log.debug("navigation redirected site=%s", host)
        return Redirect(site=host, target=target)

    async def decide_continued_access(self, hostname: str) -> AccessState:
        host = normalize_hostname(hostname)
        expiry = await self._grants.get(host)
        now = self._clock()
        if expiry is None or expiry <= now:
            return Expired(site=host)
        return Active(remaining_ms=expiry - now, expires_at=expiry)


__all__ = [
    "AccessDecisionEngine",
    "AccessState",
    "Active",
    "Allow",
    "Expired",
    "NavigationDecision",
    "Redirect",
    "TOP_LEVEL_FRAME",
    "challenge_url",
    "destination_for",
    "site_from_challenge_url",
]
