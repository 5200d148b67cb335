"""Enrollment commands."""

from __future__ import annotations

from pathlib import Path

import typer

from buddyblock.apps.cli.common import get_ctx, print_qr, prompt_code, run, verify_with_retries


def cmd_setup(
    code: str | None = typer.Option(None, "--code", help="Code to confirm with; prompts when omitted"),
    qr_file: Path | None = typer.Option(None, "--qr-file", help="Also save the QR code as an image"),
):
    """Generate a secret, show it as a QR code and confirm it with a valid code."""

    async def body() -> None:
        ctx = get_ctx()
        flow = ctx.enrollment()
        ticket = await flow.begin()
        typer.echo("Scan this QR code with your authenticator app:")
        print_qr(ticket.uri, qr_file)
        typer.echo(f"Manual entry code: {ticket.secret}")
        await verify_with_retries(flow.confirm, code, "Enter the 6-digit code")
        await ctx.interceptor.on_message({"action": "setupComplete"})
        typer.secho("Setup completed successfully.", fg=typer.colors.GREEN)

    run(body)


def cmd_show(
    code: str | None = typer.Option(None, "--code", help="Current one-time code"),
    qr_file: Path | None = typer.Option(None, "--qr-file", help="Also save the QR code as an image"),
):
    """Show the enrollment QR code again, e.g. to add a second device."""

    async def body() -> None:
        ticket = await get_ctx().options().reveal_setup(prompt_code(code))
        typer.echo("Code verified. Scan this QR code with your new device:")
        print_qr(ticket.uri, qr_file)

    run(body)


__all__ = ["cmd_setup", "cmd_show"]
