"""Settings-UI operations: blocklist editing, guarded removal and reset."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from buddyblock.config.const import DEFAULT_ISSUER, DEFAULT_LABEL, RESET_CONFIRM_WINDOW_MS
from buddyblock.ports.host import MessageSender
from buddyblock.services import otp
from buddyblock.services.access import ResetGuard, wipe_all
from buddyblock.services.clock import Clock, now_ms
from buddyblock.services.enrollment import EnrollmentTicket
from buddyblock.services.errors import ConfigurationError, InputValidationError, VerificationFailure
from buddyblock.services.grants import GrantStore
from buddyblock.services.policy import PolicyRepository, normalize_domain

_log = logging.getLogger("buddyblock.options")

UPDATE_RULES = {"action": "updateRules"}


@dataclass(slots=True)
class OptionsStatus:
    enrolled: bool
    corrupted: bool
    blocked_domains: List[str] = field(default_factory=list)
    active_grants: dict[str, int] = field(default_factory=dict)
    failed_attempts: int = 0
    lockout_remaining_ms: int = 0


class OptionsService:
    """One instance per settings session; owns that session's :class:`ResetGuard`."""

    def __init__(
        self,
        *,
        policy: PolicyRepository,
        grants: GrantStore,
        clock: Clock | None = None,
        notify: MessageSender | None = None,
        guard: ResetGuard | None = None,
        issuer: str = DEFAULT_ISSUER,
        label: str = DEFAULT_LABEL,
    ) -> None:
        self._policy = policy
        self._grants = grants
        self._clock = clock or now_ms
        self._notify = notify
        self.guard = guard or ResetGuard(clock=self._clock)
        self.issuer = issuer
        self.label = label
        self._reset_authorized_at: int | None = None

    async def status(self) -> OptionsStatus:
        config = await self._policy.load()
        now = self._clock()
        return OptionsStatus(
            enrolled=config.enrolled,
            corrupted=config.corrupted,
            blocked_domains=list(config.blocked_domains),
            active_grants=await self._grants.active(now),
            failed_attempts=self.guard.failed_attempts,
            lockout_remaining_ms=max(0, self.guard.lockout_until_ms - now),
        )

    async def add_domain(self, raw: str) -> str:
        config = await self._policy.load()
        if not config.enrolled or config.corrupted:
            raise ConfigurationError("Please complete the initial setup before adding sites.")
        if not (raw or "").strip():
            raise InputValidationError("Please enter a website URL.")
        domain = normalize_domain(raw)
        if not domain:
            raise InputValidationError(f"'{raw}' is not a valid website.")
        if domain in config.blocked_domains:
            raise InputValidationError("This site is already blocked.")
        await self._policy.save_blocked_domains([*config.blocked_domains, domain])
        _log.info("site added domain=%s", domain)
        await self._announce()
        return domain

    async def remove_domain(self, raw: str, code: str | None = None) -> list[str]:
        domain = normalize_domain(raw)
        config = await self._policy.load()
        if not domain or domain not in config.blocked_domains:
            raise InputValidationError("Invalid removal request.")
        if config.enrolled:
            secret = await self._policy.require_secret()
            self.guard.verify(secret, code)

        # re-read after verification; another context may have edited the list
        domains = [d for d in await self._policy.blocked_domains() if d != domain]
        await self._policy.save_blocked_domains(domains)
        _log.info("site removed domain=%s", domain)
        await self._announce()
        return domains

    async def authorize_reset(self, code: str | None) -> None:
        """Verify a code for a later :meth:`complete_reset` in this session."""

        config = await self._policy.load()
        if not config.enrolled:
            raise ConfigurationError("One-time code not set up; use the direct reset instead.")
        secret = await self._policy.require_secret()
        self.guard.verify(secret, code)
        self._reset_authorized_at = self._clock()

    def cancel_reset(self) -> None:
        self._reset_authorized_at = None

    async def complete_reset(self) -> None:
        """Wipe everything; only within a minute of a successful :meth:`authorize_reset`."""

        authorized_at, self._reset_authorized_at = self._reset_authorized_at, None
        if authorized_at is None or self._clock() - authorized_at > RESET_CONFIRM_WINDOW_MS:
            raise ConfigurationError("Error: one-time code verification required for reset.")
        await self._wipe()

    async def reset(self, code: str | None) -> None:
        """Guarded full reset, available once a secret has been enrolled."""

        await self.authorize_reset(code)
        await self.complete_reset()

    async def direct_reset(self) -> None:
        """Unguarded reset, allowed only while nothing is protected yet."""

        config = await self._policy.load()
        if config.enrolled and not config.corrupted:
            raise ConfigurationError("Error: one-time code verification required for reset.")
        await self._wipe()

    async def reveal_setup(self, code: str | None) -> EnrollmentTicket:
        """Return the enrollment URI again so another authenticator can be added."""

        candidate = otp.normalize_code(code)
        secret = await self._policy.require_secret()
        if otp.verify(secret, candidate, at=self._clock() / 1000) is None:
            raise VerificationFailure("Invalid code. Please try again.")
        return EnrollmentTicket(
            secret=secret,
            uri=otp.enrollment_uri(secret, issuer=self.issuer, label=self.label),
        )

    async def _wipe(self) -> None:
        await wipe_all(policy=self._policy, grants=self._grants)
        self.guard.reset_counters()
        self._reset_authorized_at = None
        await self._announce()

    async def _announce(self) -> None:
        if self._notify is None:
            return
        try:
            response = await self._notify(UPDATE_RULES)
        except Exception:
            _log.warning("interceptor not reachable for rule update", exc_info=True)
            return
        if not response or not response.get("success"):
            _log.warning("interceptor failed to update rules: %s", (response or {}).get("error"))


__all__ = ["OptionsService", "OptionsStatus", "UPDATE_RULES"]
