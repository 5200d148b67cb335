from __future__ import annotations

import asyncio

import anyio
import pytest

from buddyblock.adapters.store import MemoryKeyValueStore
from buddyblock.services.access import AccessDecisionEngine, CountdownMonitor, countdown_view, format_remaining
from buddyblock.services.enums import MonitorState
from buddyblock.services.grants import GrantStore
from buddyblock.services.policy import PolicyRepository

from conftest import T0_MS


class FakeNavigator:
    def __init__(self) -> None:
        self.urls = []

    async def navigate(self, url: str) -> None:
        self.urls.append(url)


class FlakyStore(MemoryKeyValueStore):
    fail = False

    async def get(self, defaults):
        if self.fail:
            raise OSError("transient")
        return await super().get(defaults)


@pytest.fixture
def local_store():
    return FlakyStore()


@pytest.fixture
def engine(enrolled_store, grants, clock):
    return AccessDecisionEngine(policy=PolicyRepository(enrolled_store), grants=grants, clock=clock)


def _monitor(engine, clock, navigator, views=None, hostname="example.com"):
    return CountdownMonitor(
        hostname=hostname,
        engine=engine,
        navigator=navigator,
        render=(views.append if views is not None else None),
        clock=clock,
        tick_seconds=0.01,
        revalidate_seconds=0.02,
        expired_delay_seconds=0.01,
    )


def test_format_remaining():
    assert format_remaining(29 * 60_000 + 59_999) == "29:59"
    assert format_remaining(61_000) == "01:01"
    assert format_remaining(-5) == "00:00"


def test_warning_threshold():
    assert not countdown_view(5 * 60_000).warning
    assert countdown_view(5 * 60_000 - 1).warning
    assert countdown_view(0).expired


@pytest.mark.anyio
async def test_ungoverned_page_is_left_alone(engine, clock):
    navigator = FakeNavigator()
    monitor = _monitor(engine, clock, navigator, hostname="other.org")
    assert await monitor.start() is MonitorState.IDLE
    assert navigator.urls == []


@pytest.mark.anyio
async def test_missing_grant_navigates_immediately(engine, clock):
    navigator = FakeNavigator()
    monitor = _monitor(engine, clock, navigator)
    assert await monitor.start() is MonitorState.EXPIRED
    assert navigator.urls == ["buddyblock://blocked?site=example.com"]


@pytest.mark.anyio
async def test_tick_reaching_zero_navigates_once(engine, grants, clock):
    await grants.set("example.com", T0_MS + 60_000)
    navigator = FakeNavigator()
    views = []
    monitor = _monitor(engine, clock, navigator, views)
    assert await monitor.start() is MonitorState.RUNNING
    assert views[0].text == "01:00"

    clock.advance(60_000)
    with anyio.fail_after(2):
        await monitor.wait()
    await monitor.stop()

    assert monitor.state is MonitorState.EXPIRED
    assert navigator.urls == ["buddyblock://blocked?site=example.com"]
    assert views[-1].expired


@pytest.mark.anyio
async def test_revocation_is_picked_up(engine, grants, clock):
    await grants.set("example.com", T0_MS + 600_000)
    navigator = FakeNavigator()
    monitor = _monitor(engine, clock, navigator)
    await monitor.start()

    await grants.revoke_all()
    with anyio.fail_after(2):
        await monitor.wait()

    assert monitor.state is MonitorState.EXPIRED
    assert len(navigator.urls) == 1


@pytest.mark.anyio
async def test_extension_is_picked_up(engine, grants, clock):
    await grants.set("example.com", T0_MS + 60_000)
    monitor = _monitor(engine, clock, FakeNavigator())
    await monitor.start()
    await grants.set("example.com", T0_MS + 120_000)
    await asyncio.sleep(0.1)
    try:
        assert monitor.expires_at == T0_MS + 120_000
        assert monitor.view().text == "02:00"
    finally:
        await monitor.stop()


@pytest.mark.anyio
async def test_storage_errors_do_not_stop_the_monitor(engine, grants, local_store, clock):
    await grants.set("example.com", T0_MS + 60_000)
    navigator = FakeNavigator()
    monitor = _monitor(engine, clock, navigator)
    await monitor.start()

    local_store.fail = True
    await asyncio.sleep(0.1)
    assert monitor.state is MonitorState.RUNNING
    assert navigator.urls == []

    local_store.fail = False
    await monitor.stop()
    assert monitor.state is MonitorState.STOPPED


@pytest.mark.anyio
async def test_stop_cancels_timers(engine, grants, clock):
    await grants.set("example.com", T0_MS + 60_000)
    navigator = FakeNavigator()
    monitor = _monitor(engine, clock, navigator)
    await monitor.start()
    await monitor.stop()

    clock.advance(120_000)
    await asyncio.sleep(0.05)
    assert navigator.urls == []
    assert monitor.state is MonitorState.STOPPED
