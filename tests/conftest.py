from __future__ import annotations

import pytest

from buddyblock.adapters.store import MemoryKeyValueStore
from buddyblock.services import otp
from buddyblock.services.grants import GrantStore
from buddyblock.services.policy import PolicyRepository

# RFC 6238 appendix B secret ("12345678901234567890")
RFC_SECRET = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"

# 2009-02-13T23:31:30Z; step 41152263
T0_MS = 1_234_567_890_000


class FakeClock:
    def __init__(self, now_ms: int = T0_MS) -> None:
        self.now = now_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def code_at(ms: int, secret: str = RFC_SECRET) -> str:
    return otp.generate(secret, at=ms / 1000)


def wrong_code(ms: int, secret: str = RFC_SECRET) -> str:
    """A well-formed code that matches none of the accepted steps around ``ms``."""

    accepted = {otp.generate(secret, at=ms / 1000 + shift) for shift in (-30, 0, 30)}
    for n in range(1_000_000):
        candidate = f"{n:06d}"
        if candidate not in accepted:
            return candidate
    raise AssertionError("unreachable")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sync_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def local_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def policy(sync_store) -> PolicyRepository:
    return PolicyRepository(sync_store)


@pytest.fixture
def grants(local_store) -> GrantStore:
    return GrantStore(local_store)


@pytest.fixture
def enrolled_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore(
        {"enrolled": True, "secret": RFC_SECRET, "blockedDomains": ["example.com"], "enrolledAt": T0_MS}
    )


class FailingStore:
    """Store whose every call raises, as an unavailable backend would."""

    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc or OSError("disk unavailable")

    async def get(self, defaults):
        raise self.exc

    async def set(self, items):
        raise self.exc

    async def clear(self):
        raise self.exc
