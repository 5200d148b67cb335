"""Reset commands."""

from __future__ import annotations

import typer

from buddyblock.apps.cli.common import get_ctx, run, verify_with_retries


def cmd_reset(
    code: str | None = typer.Option(None, "--code", help="Current one-time code"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the final confirmation"),
):
    """Delete blocked sites, the one-time code secret and all grants."""

    async def body() -> None:
        options = get_ctx().options()
        await verify_with_retries(options.authorize_reset, code)
        if not yes and not typer.confirm("Code verified. This permanently deletes all settings. Continue?"):
            options.cancel_reset()
            typer.echo("Reset cancelled")
            return
        await options.complete_reset()
        typer.secho("All settings have been reset.", fg=typer.colors.GREEN)

    run(body)


def cmd_direct(yes: bool = typer.Option(False, "--yes", "-y")):
    """Reset without a code; only possible before setup is completed."""

    async def body() -> None:
        if not yes and not typer.confirm("Remove all blocked sites?"):
            return
        await get_ctx().options().direct_reset()
        typer.secho("All settings have been reset.", fg=typer.colors.GREEN)

    run(body)


__all__ = ["cmd_reset", "cmd_direct"]
