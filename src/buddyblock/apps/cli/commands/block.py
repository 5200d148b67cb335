"""Blocklist management commands."""

from __future__ import annotations

import typer

from buddyblock.apps.cli.common import get_ctx, run, verify_with_retries

app = typer.Typer(help="Manage blocked sites")


@app.command("add")
def cmd_add(site: str):
    async def body() -> None:
        domain = await get_ctx().options().add_domain(site)
        typer.secho(f"Site added: {domain}", fg=typer.colors.GREEN)

    run(body)


@app.command("list")
def cmd_list():
    async def body() -> None:
        domains = await get_ctx().policy.blocked_domains()
        if not domains:
            typer.echo("No blocked sites yet")
            return
        for domain in domains:
            typer.echo(domain)

    run(body)


@app.command("remove")
def cmd_remove(
    site: str,
    code: str | None = typer.Option(None, "--code", help="Current one-time code"),
):
    """Unblock a site; requires a one-time code once setup is complete."""

    async def body() -> None:
        ctx = get_ctx()
        options = ctx.options()
        config = await ctx.policy.load()
        if config.enrolled:
            await verify_with_retries(lambda candidate: options.remove_domain(site, candidate), code)
        else:
            await options.remove_domain(site)
        typer.secho(f'Site "{site}" removed successfully', fg=typer.colors.GREEN)

    run(body)


__all__ = ["app"]
