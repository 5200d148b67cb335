"""Binds access decisions to host navigation events and lifecycle hooks."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from buddyblock.config.const import DEFAULT_SETUP_SURFACE
from buddyblock.ports.host import TabOpener
from buddyblock.services.access import AccessDecisionEngine
from buddyblock.services.access.engine import TOP_LEVEL_FRAME, NavigationDecision, Redirect
from buddyblock.services.policy import PolicyRepository

_log = logging.getLogger("buddyblock.interceptor")

INSTALL = "install"
UPDATE = "update"


class NavigationInterceptor:
    def __init__(
        self,
        *,
        engine: AccessDecisionEngine,
        policy: PolicyRepository,
        tabs: TabOpener | None = None,
        setup_surface: str = DEFAULT_SETUP_SURFACE,
    ) -> None:
        self._engine = engine
        self._policy = policy
        self._tabs = tabs
        self.setup_surface = setup_surface

    async def before_navigate(self, url: str, *, frame_id: int = TOP_LEVEL_FRAME) -> NavigationDecision:
        decision = await self._engine.decide_navigation(url, frame_id=frame_id)
        if isinstance(decision, Redirect):
            _log.info("blocked navigation site=%s", decision.site)
        return decision

    async def on_message(self, message: Mapping[str, Any]) -> dict[str, Any]:
        action = message.get("action") if isinstance(message, Mapping) else None
        if action == "updateRules":
            # every decision reads storage directly; nothing to rebuild
            return {"success": True}
        if action == "setupComplete":
            _log.info("setup completed")
            return {"success": True}
        _log.debug("unknown message action=%r", action)
        return {"success": False, "error": "unknown_action"}

    async def on_installed(self, reason: str) -> bool:
        """Handle install/update; return True when the setup surface was opened."""

        config = await self._policy.load()
        if reason == INSTALL and not config.enrolled:
            await self._open_setup()
            return True
        if reason == UPDATE and config.corrupted:
            _log.warning("setup data corrupted; resetting setup state")
            await self._policy.mark_unenrolled()
            await self._open_setup()
            return True
        return False

    async def _open_setup(self) -> None:
        if self._tabs is not None:
            await self._tabs.open_tab(self.setup_surface)


__all__ = ["NavigationInterceptor", "INSTALL", "UPDATE"]
