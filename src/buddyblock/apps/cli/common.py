"""Shared helpers for the BuddyBlock CLI commands."""

from __future__ import annotations

import asyncio
import os
import traceback
from pathlib import Path
from typing import Awaitable, Callable, TypeVar

import typer

from buddyblock.adapters.qr import QrCodeRenderer
from buddyblock.ports.qr import QrRenderer
from buddyblock.services import otp
from buddyblock.services.blocker_config import load_settings
from buddyblock.services.errors import BlockerError, InputValidationError, LockoutError, VerificationFailure
from buddyblock.services.logging import setup_logging
from buddyblock.services.runtime import BlockerContext, build_context

T = TypeVar("T")

_CTX: BlockerContext | None = None


class ConsoleHost:
    """Stands in for the browser host: navigation and new tabs are printed."""

    def __init__(self) -> None:
        self.visited: list[str] = []

    async def navigate(self, url: str) -> None:
        self.visited.append(url)
        typer.secho(f"-> {url}", fg=typer.colors.CYAN)

    async def open_tab(self, url: str) -> None:
        self.visited.append(url)
        typer.secho(f"open {url}", fg=typer.colors.CYAN)


def init_ctx(home: Path | None = None, *, log_level: str | None = None) -> BlockerContext:
    global _CTX
    settings = load_settings(home)
    if log_level:
        settings = settings.with_overrides(log_level=log_level)
    setup_logging(settings.log_level, log_file=settings.log_path())
    _CTX = build_context(settings, tabs=ConsoleHost())
    return _CTX


def get_ctx() -> BlockerContext:
    if _CTX is None:
        return init_ctx()
    return _CTX


def run(coro_fn: Callable[[], Awaitable[T]]) -> T:
    """Run an async command body and turn blocker errors into a clean exit."""

    try:
        return asyncio.run(coro_fn())
    except BlockerError as exc:
        if os.getenv("BUDDYBLOCK_CLI_DEBUG") == "1":
            traceback.print_exc()
        typer.secho(exc.message, fg=typer.colors.RED, err=True)
        if exc.hint:
            typer.secho(exc.hint, fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(1)


def print_qr(uri: str, qr_file: Path | None, renderer: QrRenderer | None = None) -> None:
    renderer = renderer or QrCodeRenderer()
    typer.echo(renderer.render_text(uri))
    if qr_file is not None:
        path = renderer.render_file(uri, qr_file)
        typer.echo(f"QR code saved to {path}. Keep this file secure.")


def prompt_code(code: str | None, label: str = "One-time code") -> str:
    return code if code is not None else typer.prompt(label)


async def verify_with_retries(
    attempt: Callable[[str], Awaitable[T]],
    code: str | None,
    label: str = "One-time code",
) -> T:
    """Run ``attempt`` with a code, prompting again after rejected codes.

    With ``--code`` there is a single attempt. Interactively the same session
    keeps going, so the guard's lockout and its remaining time stay visible.
    """

    while True:
        try:
            candidate = otp.normalize_code(prompt_code(code, label))
        except InputValidationError as exc:
            if code is not None:
                raise
            typer.secho(exc.message, fg=typer.colors.RED)
            continue
        try:
            return await attempt(candidate)
        except (VerificationFailure, LockoutError) as exc:
            if code is not None:
                raise
            typer.secho(exc.message, fg=typer.colors.RED)
