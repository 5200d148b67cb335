"""One-time enrollment of the shared one-time-code secret."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from buddyblock.config.const import DEFAULT_ISSUER, DEFAULT_LABEL
from buddyblock.services import otp
from buddyblock.services.clock import Clock, now_ms
from buddyblock.services.errors import ConfigurationError, InputValidationError, VerificationFailure
from buddyblock.services.policy import PolicyRepository

_log = logging.getLogger("buddyblock.enrollment")


@dataclass(frozen=True, slots=True)
class EnrollmentTicket:
    secret: str
    uri: str


class EnrollmentFlow:
    """Generate a secret, then persist it only after a code made from it verifies.

    The ticket lives in memory until :meth:`confirm` succeeds; an unverified
    secret is never written to the policy store.
    """

    def __init__(
        self,
        *,
        policy: PolicyRepository,
        clock: Clock | None = None,
        issuer: str = DEFAULT_ISSUER,
        label: str = DEFAULT_LABEL,
    ) -> None:
        self._policy = policy
        self._clock = clock or now_ms
        self.issuer = issuer
        self.label = label
        self.ticket: EnrollmentTicket | None = None
        self.completed = False

    async def begin(self) -> EnrollmentTicket:
        config = await self._policy.load()
        if config.enrolled and not config.corrupted:
            raise ConfigurationError("Setup has already been completed.", hint="Use a guarded reset to start over.")
        secret = otp.generate_secret()
        self.ticket = EnrollmentTicket(
            secret=secret,
            uri=otp.enrollment_uri(secret, issuer=self.issuer, label=self.label),
        )
        self.completed = False
        _log.info("enrollment started")
        return self.ticket

    async def confirm(self, candidate: str | None) -> EnrollmentTicket:
        if self.ticket is None:
            raise InputValidationError("Setup not initialized. Start setup again.")
        code = otp.normalize_code(candidate)
        now = self._clock()
        if otp.verify(self.ticket.secret, code, at=now / 1000) is None:
            _log.info("enrollment code rejected")
            raise VerificationFailure("Invalid code. Please check your authenticator app and try again.")
        await self._policy.save_enrollment(self.ticket.secret, enrolled_at=now)
        self.completed = True
        _log.info("enrollment completed")
        return self.ticket


__all__ = ["EnrollmentFlow", "EnrollmentTicket"]
