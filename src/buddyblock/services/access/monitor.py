from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List

from buddyblock.config.const import (
    MONITOR_EXPIRED_DELAY_SECONDS,
    MONITOR_REVALIDATE_SECONDS,
    MONITOR_TICK_SECONDS,
    MONITOR_WARNING_MS,
)
from buddyblock.ports.host import PageNavigator
from buddyblock.services.clock import Clock, now_ms
from buddyblock.services.enums import MonitorState
from buddyblock.services.errors import StorageError
from buddyblock.services.policy import normalize_hostname

from .engine import AccessDecisionEngine, Expired

_log = logging.getLogger("buddyblock.monitor")


@dataclass(frozen=True, slots=True)
class CountdownView:
    remaining_ms: int
    text: str
    warning: bool
    expired: bool


def format_remaining(remaining_ms: int) -> str:
    remaining_ms = max(0, remaining_ms)
    minutes, rest = divmod(remaining_ms, 60_000)
    return f"{minutes:02d}:{rest // 1000:02d}"


def countdown_view(remaining_ms: int) -> CountdownView:
    expired = remaining_ms <= 0
    return CountdownView(
        remaining_ms=max(0, remaining_ms),
        text=format_remaining(remaining_ms),
        warning=expired or remaining_ms < MONITOR_WARNING_MS,
        expired=expired,
    )


class CountdownMonitor:
    """
    Polling loop running inside a page that was allowed to load:
      * a 1s tick recomputes the remaining time from the last known expiry;
      * a 5s re-validation reads the Grant Store again, so revocations and
        extensions made by other contexts are picked up.

    Storage is authoritative; the local tick only drives the indicator and an
    early redirect once it reaches zero. ``stop()`` cancels both timers and is
    what the hosting page calls on unload.
    """

    def __init__(
        self,
        *,
        hostname: str,
        engine: AccessDecisionEngine,
        navigator: PageNavigator,
        render: Callable[[CountdownView], None] | None = None,
        clock: Clock | None = None,
        tick_seconds: float = MONITOR_TICK_SECONDS,
        revalidate_seconds: float = MONITOR_REVALIDATE_SECONDS,
        expired_delay_seconds: float = MONITOR_EXPIRED_DELAY_SECONDS,
    ) -> None:
        self.hostname = normalize_hostname(hostname)
        self._engine = engine
        self._navigator = navigator
        self._render = render or (lambda view: None)
        self._clock = clock or now_ms
        self.tick_seconds = tick_seconds
        self.revalidate_seconds = revalidate_seconds
        self.expired_delay_seconds = expired_delay_seconds
        self.state = MonitorState.IDLE
        self.expires_at: int | None = None
        self._tasks: List[asyncio.Task] = []
        self._navigated = False

    async def start(self) -> MonitorState:
        if self._tasks:
            return self.state
        if not await self._engine.is_governed(self.hostname):
            _log.debug("monitor not needed site=%s", self.hostname)
            return self.state

        access = await self._engine.decide_continued_access(self.hostname)
        if isinstance(access, Expired):
            await self._leave()
            return self.state

        self.expires_at = access.expires_at
        self.state = MonitorState.RUNNING
        self._render(self.view())
        self._tasks = [
            asyncio.create_task(self._tick_loop(), name=f"buddyblock-countdown-{self.hostname}"),
            asyncio.create_task(self._revalidate_loop(), name=f"buddyblock-revalidate-{self.hostname}"),
        ]
        _log.info("monitor started site=%s expires_at=%d", self.hostname, self.expires_at)
        return self.state

    def view(self) -> CountdownView:
        if self.expires_at is None:
            return countdown_view(0)
        return countdown_view(self.expires_at - self._clock())

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self.state is MonitorState.RUNNING:
            self.state = MonitorState.STOPPED
        _log.debug("monitor stopped site=%s", self.hostname)

    async def wait(self) -> None:
        """Block until the monitor has navigated away or been stopped."""

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.tick_seconds)
            view = self.view()
            self._render(view)
            if view.expired:
                await asyncio.sleep(self.expired_delay_seconds)
                await self._leave()
                return

    async def _revalidate_loop(self) -> None:
        while True:
            await asyncio.sleep(self.revalidate_seconds)
            try:
                access = await self._engine.decide_continued_access(self.hostname)
            except StorageError:
                _log.warning("monitor could not re-validate site=%s; retrying next cycle", self.hostname, exc_info=True)
                continue
            if isinstance(access, Expired):
                self._render(countdown_view(0))
                await self._leave()
                return
            if access.expires_at != self.expires_at:
                _log.debug("monitor picked up new expiry site=%s expires_at=%d", self.hostname, access.expires_at)
                self.expires_at = access.expires_at

    async def _leave(self) -> None:
        if self._navigated:
            return
        self._navigated = True
        self.state = MonitorState.EXPIRED
        current = asyncio.current_task()
        for task in self._tasks:
            if task is not current:
                task.cancel()
        _log.info("grant expired; returning to challenge site=%s", self.hostname)
        await self._navigator.navigate(self._engine.challenge_url(self.hostname))


__all__ = ["CountdownMonitor", "CountdownView", "countdown_view", "format_remaining"]
