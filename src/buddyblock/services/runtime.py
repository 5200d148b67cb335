"""Wiring of stores and services into one context per process."""

from __future__ import annotations

from dataclasses import dataclass

from buddyblock.adapters.store import JsonFileKeyValueStore
from buddyblock.ports.host import PageNavigator, TabOpener
from buddyblock.ports.store import KeyValueStore
from buddyblock.services.access import AccessDecisionEngine, ChallengeFlow, CountdownMonitor
from buddyblock.services.blocker_config import BlockerSettings
from buddyblock.services.clock import Clock, now_ms
from buddyblock.services.enrollment import EnrollmentFlow
from buddyblock.services.grants import GrantStore
from buddyblock.services.interceptor import NavigationInterceptor
from buddyblock.services.options import OptionsService
from buddyblock.services.policy import PolicyRepository


@dataclass(slots=True)
class BlockerContext:
    settings: BlockerSettings
    sync_store: KeyValueStore
    local_store: KeyValueStore
    policy: PolicyRepository
    grants: GrantStore
    engine: AccessDecisionEngine
    interceptor: NavigationInterceptor
    clock: Clock

    def enrollment(self) -> EnrollmentFlow:
        return EnrollmentFlow(
            policy=self.policy,
            clock=self.clock,
            issuer=self.settings.issuer,
            label=self.settings.label,
        )

    def challenge(self, site: str | None) -> ChallengeFlow:
        return ChallengeFlow(site=site, policy=self.policy, grants=self.grants, clock=self.clock)

    def options(self) -> OptionsService:
        """Start a settings session; each session gets its own reset guard."""

        return OptionsService(
            policy=self.policy,
            grants=self.grants,
            clock=self.clock,
            notify=self.interceptor.on_message,
            issuer=self.settings.issuer,
            label=self.settings.label,
        )

    def monitor(self, hostname: str, navigator: PageNavigator, **kwargs) -> CountdownMonitor:
        return CountdownMonitor(hostname=hostname, engine=self.engine, navigator=navigator, clock=self.clock, **kwargs)


def build_context(
    settings: BlockerSettings,
    *,
    sync_store: KeyValueStore | None = None,
    local_store: KeyValueStore | None = None,
    clock: Clock | None = None,
    tabs: TabOpener | None = None,
) -> BlockerContext:
    clock = clock or now_ms
    sync_store = sync_store or JsonFileKeyValueStore(settings.sync_store_path())
    local_store = local_store or JsonFileKeyValueStore(settings.local_store_path())
    policy = PolicyRepository(sync_store)
    grants = GrantStore(local_store)
    engine = AccessDecisionEngine(
        policy=policy,
        grants=grants,
        clock=clock,
        challenge_surface=settings.challenge_surface,
    )
    interceptor = NavigationInterceptor(
        engine=engine,
        policy=policy,
        tabs=tabs,
        setup_surface=settings.setup_surface,
    )
    return BlockerContext(
        settings=settings,
        sync_store=sync_store,
        local_store=local_store,
        policy=policy,
        grants=grants,
        engine=engine,
        interceptor=interceptor,
        clock=clock,
    )


__all__ = ["BlockerContext", "build_context"]
