"""Navigation checks, unlocking and the countdown monitor."""

from __future__ import annotations

import asyncio

import typer

from buddyblock.apps.cli.common import ConsoleHost, get_ctx, prompt_code, run
from buddyblock.services.access import CountdownView, Redirect, format_remaining, site_from_challenge_url


def cmd_status():
    """Show enrollment state, blocked sites and running grants."""

    async def body() -> None:
        ctx = get_ctx()
        status = await ctx.options().status()
        if status.corrupted:
            typer.secho("setup: corrupted, run `buddyblock reset-direct`", fg=typer.colors.RED)
        else:
            typer.echo(f"setup: {'complete' if status.enrolled else 'not completed'}")
        typer.echo(f"blocked sites: {len(status.blocked_domains)}")
        now = ctx.clock()
        for domain, expires_at in sorted(status.active_grants.items()):
            typer.echo(f"  {domain}: {format_remaining(expires_at - now)} left")

    run(body)


def cmd_check(
    url: str,
    frame_id: int = typer.Option(0, "--frame-id", help="0 for the top-level page"),
):
    """Show what the interceptor would do with a navigation to URL."""

    async def body() -> None:
        decision = await get_ctx().interceptor.before_navigate(url, frame_id=frame_id)
        if isinstance(decision, Redirect):
            typer.echo(f"redirect {decision.target}")
        else:
            typer.echo(f"allow ({decision.reason})")

    run(body)


def cmd_unlock(
    site: str | None = typer.Argument(None, help="Blocked hostname"),
    url: str | None = typer.Option(None, "--url", help="Challenge URL carrying ?site=..."),
    code: str | None = typer.Option(None, "--code", help="Current one-time code"),
):
    """Grant 30 minutes of access to a blocked site."""

    async def body() -> None:
        ctx = get_ctx()
        target = site or (site_from_challenge_url(url) if url else None)
        flow = ctx.challenge(target)
        result = await flow.submit(prompt_code(code, "Enter the 6-digit code"))
        typer.secho(f"Access granted until {result.expires_at}", fg=typer.colors.GREEN)
        await ConsoleHost().navigate(result.redirect_to)

    run(body)


def _render(view: CountdownView) -> None:
    color = typer.colors.RED if view.warning else typer.colors.BLUE
    typer.secho(f"\r{view.text}", fg=color, nl=False)


def cmd_monitor(site: str):
    """Show the remaining access time for SITE until it expires."""

    async def body() -> None:
        host = ConsoleHost()
        monitor = get_ctx().monitor(site, host, render=_render)
        await monitor.start()
        try:
            await monitor.wait()
        except asyncio.CancelledError:
            pass
        finally:
            await monitor.stop()
        typer.echo("")

    try:
        run(body)
    except KeyboardInterrupt:
        raise typer.Exit(130)


__all__ = ["cmd_status", "cmd_check", "cmd_unlock", "cmd_monitor"]
