"""Rate-limited verification gate for destructive settings operations."""

from __future__ import annotations

import logging

from buddyblock.config.const import GUARD_LOCKOUT_MS, GUARD_MAX_ATTEMPTS
from buddyblock.services import otp
from buddyblock.services.clock import Clock, now_ms
from buddyblock.services.enums import GuardState
from buddyblock.services.errors import LockoutError, StorageError, VerificationFailure
from buddyblock.services.grants import GrantStore
from buddyblock.services.policy import PolicyRepository

_log = logging.getLogger("buddyblock.guard")


class ResetGuard:
    """Session-scoped state machine guarding full reset and site removal.

    ``READY -> VERIFYING -> READY | LOCKED`` and ``LOCKED -> READY`` once the
    lockout window has elapsed. One instance is created per settings session
    and handed to the handlers that need it.
    """

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        max_attempts: int = GUARD_MAX_ATTEMPTS,
        lockout_ms: int = GUARD_LOCKOUT_MS,
    ) -> None:
        self._clock = clock or now_ms
        self.max_attempts = max_attempts
        self.lockout_ms = lockout_ms
        self.failed_attempts = 0
        self.lockout_until_ms = 0
        self._verifying = False

    @property
    def state(self) -> GuardState:
        if self._verifying:
            return GuardState.VERIFYING
        if self.lockout_until_ms and self._clock() < self.lockout_until_ms:
            return GuardState.LOCKED
        return GuardState.READY

    @property
    def remaining_attempts(self) -> int:
        return max(0, self.max_attempts - self.failed_attempts)

    def _enforce_lockout(self) -> None:
        if not self.lockout_until_ms:
            return
        now = self._clock()
        if now < self.lockout_until_ms:
            # recomputed on every attempt; refused attempts are not counted
            raise LockoutError(self.lockout_until_ms - now)
        _log.info("guard lockout elapsed; counters cleared")
        self.reset_counters()

    def reset_counters(self) -> None:
        self.failed_attempts = 0
        self.lockout_until_ms = 0

    def verify(self, secret: str, candidate: str | None) -> int:
        """Verify ``candidate`` and return the matched step offset.

        Raises :class:`LockoutError` while locked (or on the failure that
        triggers the lockout), :class:`VerificationFailure` with the number of
        remaining attempts otherwise. Malformed input and configuration errors
        propagate without consuming an attempt.
        """

        self._enforce_lockout()
        code = otp.normalize_code(candidate)
        now = self._clock()
        self._verifying = True
        try:
            offset = otp.verify(secret, code, at=now / 1000)
        finally:
            self._verifying = False

        if offset is not None:
            self.reset_counters()
            _log.info("guard verification succeeded")
            return offset

        self.failed_attempts += 1
        if self.failed_attempts >= self.max_attempts:
            self.lockout_until_ms = now + self.lockout_ms
            _log.warning("guard locked after %d failed attempts", self.failed_attempts)
            raise LockoutError(self.lockout_ms)
        _log.info("guard verification failed attempts=%d", self.failed_attempts)
        raise VerificationFailure(remaining_attempts=self.remaining_attempts)


async def wipe_all(*, policy: PolicyRepository, grants: GrantStore) -> None:
    """Clear grants, then policy configuration.

    Grants go first: if the policy wipe fails afterwards the blocklist and
    enrollment are still intact, and re-running the wipe is safe because each
    stage is idempotent.
    """

    await grants.revoke_all()
    try:
        await policy.wipe()
    except StorageError:
        _log.error("reset incomplete: grants cleared, policy configuration not cleared")
        raise
    _log.warning("policy configuration and grants wiped")


__all__ = ["ResetGuard", "wipe_all"]
