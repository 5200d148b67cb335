"""Enumerations describing the states of the access-control state machines."""
from __future__ import annotations

from enum import Enum

__all__ = [
    "ChallengeState",
    "GuardState",
    "MonitorState",
]


class _StrEnum(str, Enum):
    """Simple ``str``-backed enum compatible with Python 3.10."""

    def __str__(self) -> str:  # pragma: no cover - convenience for logging only
        return str(self.value)


class ChallengeState(_StrEnum):
    IDLE = "idle"
    AWAITING_CODE = "awaiting_code"
    GRANTED = "granted"
    REJECTED = "rejected"


class GuardState(_StrEnum):
    READY = "ready"
    VERIFYING = "verifying"
    LOCKED = "locked"


class MonitorState(_StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    EXPIRED = "expired"
    STOPPED = "stopped"
