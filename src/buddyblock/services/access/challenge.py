"""Code-entry flow shown in place of a blocked page."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from buddyblock.config.const import GRANT_DURATION_MS
from buddyblock.services import otp
from buddyblock.services.clock import Clock, now_ms
from buddyblock.services.enums import ChallengeState
from buddyblock.services.errors import BlockerError, InputValidationError, VerificationFailure
from buddyblock.services.grants import GrantStore
from buddyblock.services.policy import PolicyRepository, normalize_hostname

from .engine import destination_for, site_from_challenge_url

_log = logging.getLogger("buddyblock.challenge")


@dataclass(frozen=True, slots=True)
class ChallengeResult:
    site: str
    expires_at: int
    redirect_to: str


class ChallengeFlow:
    """``IDLE -> AWAITING_CODE -> GRANTED | REJECTED (-> AWAITING_CODE)``.

    There is deliberately no attempt counter here; the only throttle is the
    validity window of the codes themselves.
    """

    def __init__(
        self,
        *,
        site: str | None,
        policy: PolicyRepository,
        grants: GrantStore,
        clock: Clock | None = None,
    ) -> None:
        self.site = normalize_hostname(site) if site else None
        self._policy = policy
        self._grants = grants
        self._clock = clock or now_ms
        self.state = ChallengeState.IDLE
        self.last_error: BlockerError | None = None

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        policy: PolicyRepository,
        grants: GrantStore,
        clock: Clock | None = None,
    ) -> "ChallengeFlow":
        try:
            site = site_from_challenge_url(url)
        except InputValidationError:
            site = None
        return cls(site=site, policy=policy, grants=grants, clock=clock)

    def request_access(self) -> None:
        if self.state is ChallengeState.IDLE:
            self.state = ChallengeState.AWAITING_CODE

    async def submit(self, candidate: str | None) -> ChallengeResult:
        self.request_access()
        self.last_error = None
        try:
            return await self._submit(candidate)
        except BlockerError as exc:
            self.last_error = exc
            raise

    async def _submit(self, candidate: str | None) -> ChallengeResult:
        if self.state is ChallengeState.GRANTED:
            raise InputValidationError("Access has already been granted for this site.")
        if not self.site:
            raise InputValidationError("Error: Domain not found. Please try visiting the site again.")
        code = otp.normalize_code(candidate)
        secret = await self._policy.require_secret()

        now = self._clock()
        offset = otp.verify(secret, code, at=now / 1000)
        if offset is None:
            self.state = ChallengeState.REJECTED
            _log.info("challenge rejected site=%s", self.site)
            self.state = ChallengeState.AWAITING_CODE
            raise VerificationFailure()

        expires_at = now + GRANT_DURATION_MS
        # redirect target is only handed out once the grant is durable
        await self._grants.set(self.site, expires_at)
        self.state = ChallengeState.GRANTED
        _log.info("challenge granted site=%s offset=%d", self.site, offset)
        return ChallengeResult(site=self.site, expires_at=expires_at, redirect_to=destination_for(self.site))


__all__ = ["ChallengeFlow", "ChallengeResult"]
