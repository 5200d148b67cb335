"""Ports to the hosting runtime (tabs, page navigation, cross-context messages)."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping, Protocol

Message = Mapping[str, Any]
MessageSender = Callable[[Message], Awaitable[Mapping[str, Any]]]


class PageNavigator(Protocol):
    """Replaces the location of the page hosting a component."""

    async def navigate(self, url: str) -> None: ...


class TabOpener(Protocol):
    """Opens a new browsing context, e.g. the enrollment surface."""

    async def open_tab(self, url: str) -> None: ...


__all__ = ["Message", "MessageSender", "PageNavigator", "TabOpener"]
