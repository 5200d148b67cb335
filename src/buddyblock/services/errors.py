"""Error taxonomy shared by the blocker services."""

from __future__ import annotations

import math
from contextlib import contextmanager
from typing import Any, Iterator

__all__ = [
    "BlockerError",
    "ConfigurationError",
    "VerificationFailure",
    "InputValidationError",
    "LockoutError",
    "StorageError",
    "storage_operation",
]


class BlockerError(RuntimeError):
    """Base error carrying a stable machine-readable code."""

    code: str = "blocker_error"

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.hint is not None:
            data["hint"] = self.hint
        return data


class ConfigurationError(BlockerError):
    """Raised when the enrolled secret is missing or malformed.

    Not retryable in place; the only recovery is re-enrollment.
    """

    code = "configuration_error"


class VerificationFailure(BlockerError):
    """Raised when a well-formed code matches no step in the window."""

    code = "invalid_code"

    def __init__(self, message: str = "Invalid code.", *, remaining_attempts: int | None = None) -> None:
        if remaining_attempts is not None:
            noun = "attempt" if remaining_attempts == 1 else "attempts"
            message = f"{message} {remaining_attempts} {noun} remaining."
        super().__init__(message)
        self.remaining_attempts = remaining_attempts

    def as_dict(self) -> dict[str, Any]:
        data = super().as_dict()
        if self.remaining_attempts is not None:
            data["remaining_attempts"] = self.remaining_attempts
        return data


class InputValidationError(BlockerError):
    """Raised before any verification when user input is unusable."""

    code = "invalid_input"


class LockoutError(BlockerError):
    """Raised while the guard refuses attempts after repeated failures."""

    code = "locked_out"

    def __init__(self, remaining_ms: int) -> None:
        self.retry_after = max(1, math.ceil(remaining_ms / 1000))
        super().__init__(f"Too many attempts. Try again in {self.retry_after} seconds.")

    def as_dict(self) -> dict[str, Any]:
        data = super().as_dict()
        data["retry_after"] = self.retry_after
        return data


class StorageError(BlockerError):
    """Raised when a durable read or write could not be confirmed."""

    code = "storage_error"

    def __init__(self, operation: str, *, stage: str | None = None) -> None:
        self.operation = operation
        self.stage = stage
        message = f"Storage operation '{operation}' failed"
        if stage:
            message += f" at stage '{stage}'"
        super().__init__(message, hint="The operation did not complete; it is safe to retry.")


@contextmanager
def storage_operation(operation: str, *, stage: str | None = None) -> Iterator[None]:
    """Translate store failures inside the block into :class:`StorageError`."""

    try:
        yield
    except BlockerError:
        raise
    except Exception as exc:
        raise StorageError(operation, stage=stage) from exc
