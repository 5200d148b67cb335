from __future__ import annotations

import pytest

from buddyblock.adapters.store import MemoryKeyValueStore
from buddyblock.services import otp
from buddyblock.services.access import AccessDecisionEngine, Redirect, ResetGuard
from buddyblock.services.errors import (
    ConfigurationError,
    InputValidationError,
    LockoutError,
    VerificationFailure,
)
from buddyblock.services.enrollment import EnrollmentFlow
from buddyblock.services.options import UPDATE_RULES, OptionsService
from buddyblock.services.policy import PolicyRepository

from conftest import RFC_SECRET, T0_MS, code_at, wrong_code


class Recorder:
    def __init__(self, response=None, exc: Exception | None = None) -> None:
        self.messages = []
        self.response = {"success": True} if response is None else response
        self.exc = exc

    async def __call__(self, message):
        self.messages.append(dict(message))
        if self.exc is not None:
            raise self.exc
        return self.response


@pytest.fixture
def notify():
    return Recorder()


@pytest.fixture
def options(enrolled_store, grants, clock, notify):
    return OptionsService(policy=PolicyRepository(enrolled_store), grants=grants, clock=clock, notify=notify)


@pytest.mark.anyio
async def test_fresh_enrollment_then_block(policy, grants, clock, notify):
    flow = EnrollmentFlow(policy=policy, clock=clock)
    ticket = await flow.begin()
    assert ticket.uri.startswith("otpauth://totp/AccountabilityPartner?secret=" + ticket.secret)
    assert (await policy.load()).enrolled is False

    await flow.confirm(otp.generate(ticket.secret, at=clock.now / 1000))
    config = await policy.load()
    assert config.enrolled and config.secret == ticket.secret and config.enrolled_at == T0_MS

    service = OptionsService(policy=policy, grants=grants, clock=clock, notify=notify)
    assert await service.add_domain("https://www.Example.com/feed") == "example.com"
    assert notify.messages == [UPDATE_RULES]

    engine = AccessDecisionEngine(policy=policy, grants=grants, clock=clock)
    assert isinstance(await engine.decide_navigation("https://example.com/"), Redirect)


@pytest.mark.anyio
async def test_enrollment_rejects_wrong_code(policy, clock):
    flow = EnrollmentFlow(policy=policy, clock=clock)
    ticket = await flow.begin()
    with pytest.raises(VerificationFailure):
        await flow.confirm(wrong_code(clock.now, ticket.secret))
    assert (await policy.load()).enrolled is False
    assert not flow.completed


@pytest.mark.anyio
async def test_confirm_without_begin(policy, clock):
    with pytest.raises(InputValidationError):
        await EnrollmentFlow(policy=policy, clock=clock).confirm("123456")


@pytest.mark.anyio
async def test_begin_refused_when_already_enrolled(enrolled_store, clock):
    with pytest.raises(ConfigurationError):
        await EnrollmentFlow(policy=PolicyRepository(enrolled_store), clock=clock).begin()


@pytest.mark.anyio
async def test_add_domain_requires_setup(policy, grants, clock):
    service = OptionsService(policy=policy, grants=grants, clock=clock)
    with pytest.raises(ConfigurationError):
        await service.add_domain("example.com")


@pytest.mark.anyio
@pytest.mark.parametrize("raw", ["", "   ", "example.com", "https://www.example.com/"])
async def test_add_domain_rejects_empty_and_duplicates(options, raw):
    with pytest.raises(InputValidationError):
        await options.add_domain(raw)


@pytest.mark.anyio
async def test_remove_domain_needs_valid_code(options, enrolled_store, notify):
    with pytest.raises(VerificationFailure):
        await options.remove_domain("example.com", wrong_code(T0_MS))
    assert enrolled_store.snapshot()["blockedDomains"] == ["example.com"]
    assert notify.messages == []

    assert await options.remove_domain("example.com", code_at(T0_MS)) == []
    assert enrolled_store.snapshot()["blockedDomains"] == []
    assert notify.messages == [UPDATE_RULES]


@pytest.mark.anyio
async def test_remove_unknown_domain(options):
    with pytest.raises(InputValidationError):
        await options.remove_domain("unknown.org", code_at(T0_MS))


@pytest.mark.anyio
async def test_remove_without_enrollment_needs_no_code(grants, clock):
    store = MemoryKeyValueStore({"blockedDomains": ["a.com", "b.com"]})
    service = OptionsService(policy=PolicyRepository(store), grants=grants, clock=clock)
    assert await service.remove_domain("a.com") == ["b.com"]


@pytest.mark.anyio
async def test_guarded_reset_wipes_everything(options, enrolled_store, grants, local_store, notify):
    await grants.set("example.com", T0_MS + 1000)
    await options.reset(code_at(T0_MS))
    assert enrolled_store.snapshot() == {}
    assert local_store.snapshot() == {}
    assert notify.messages == [UPDATE_RULES]


@pytest.mark.anyio
async def test_reset_shares_guard_with_removal(options, clock, enrolled_store):
    bad = wrong_code(T0_MS)
    with pytest.raises(VerificationFailure):
        await options.remove_domain("example.com", bad)
    with pytest.raises(VerificationFailure):
        await options.reset(bad)
    with pytest.raises(LockoutError):
        await options.reset(bad)
    with pytest.raises(LockoutError):
        await options.reset(code_at(clock.now))
    assert enrolled_store.snapshot()["enrolled"] is True

    status = await options.status()
    assert status.failed_attempts == 3
    assert status.lockout_remaining_ms == 30_000


@pytest.mark.anyio
async def test_complete_reset_requires_authorization(options, enrolled_store):
    with pytest.raises(ConfigurationError):
        await options.complete_reset()
    await options.authorize_reset(code_at(T0_MS))
    await options.complete_reset()
    assert enrolled_store.snapshot() == {}
    with pytest.raises(ConfigurationError):
        await options.complete_reset()


@pytest.mark.anyio
async def test_guarded_reset_before_setup(policy, grants, clock):
    service = OptionsService(policy=policy, grants=grants, clock=clock)
    with pytest.raises(ConfigurationError):
        await service.reset("123456")


@pytest.mark.anyio
async def test_direct_reset_only_without_protection(options, grants, clock):
    with pytest.raises(ConfigurationError):
        await options.direct_reset()

    corrupted = MemoryKeyValueStore({"enrolled": True, "secret": "???", "blockedDomains": ["a.com"]})
    service = OptionsService(policy=PolicyRepository(corrupted), grants=grants, clock=clock)
    await service.direct_reset()
    assert corrupted.snapshot() == {}


@pytest.mark.anyio
async def test_reveal_setup_returns_existing_secret(options):
    ticket = await options.reveal_setup(code_at(T0_MS))
    assert ticket.secret == RFC_SECRET
    assert "secret=" + RFC_SECRET in ticket.uri
    with pytest.raises(VerificationFailure):
        await options.reveal_setup(wrong_code(T0_MS))


@pytest.mark.anyio
async def test_reveal_setup_does_not_touch_guard(options):
    for _ in range(4):
        with pytest.raises(VerificationFailure):
            await options.reveal_setup(wrong_code(T0_MS))
    assert options.guard.failed_attempts == 0


@pytest.mark.anyio
async def test_notification_failure_is_not_fatal(enrolled_store, grants, clock):
    notify = Recorder(exc=RuntimeError("no receiver"))
    service = OptionsService(policy=PolicyRepository(enrolled_store), grants=grants, clock=clock, notify=notify)
    await service.add_domain("other.org")
    assert enrolled_store.snapshot()["blockedDomains"] == ["example.com", "other.org"]
    assert len(notify.messages) == 1


@pytest.mark.anyio
async def test_each_session_has_its_own_guard(enrolled_store, grants, clock):
    first = OptionsService(policy=PolicyRepository(enrolled_store), grants=grants, clock=clock)
    second = OptionsService(policy=PolicyRepository(enrolled_store), grants=grants, clock=clock)
    with pytest.raises(VerificationFailure):
        await first.reset(wrong_code(T0_MS))
    assert second.guard.failed_attempts == 0
    assert isinstance(first.guard, ResetGuard)


@pytest.mark.anyio
async def test_reset_authorization_expires(options, clock, enrolled_store):
    await options.authorize_reset(code_at(T0_MS))
    clock.advance(60_001)
    with pytest.raises(ConfigurationError):
        await options.complete_reset()
    assert enrolled_store.snapshot()["enrolled"] is True


@pytest.mark.anyio
async def test_cancelled_reset_needs_new_code(options, enrolled_store):
    await options.authorize_reset(code_at(T0_MS))
    options.cancel_reset()
    with pytest.raises(ConfigurationError):
        await options.complete_reset()
    assert enrolled_store.snapshot()["enrolled"] is True
