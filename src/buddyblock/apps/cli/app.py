"""Entry point of the ``buddyblock`` command."""

from __future__ import annotations

from pathlib import Path

import typer

from buddyblock import __version__
from buddyblock.apps.cli.common import init_ctx
from buddyblock.apps.cli.commands import access, block, reset, setup

app = typer.Typer(help="BuddyBlock: site blocking unlocked by your accountability partner's one-time codes")


def _version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def _root(
    home: Path | None = typer.Option(None, "--home", envvar="BUDDYBLOCK_HOME", help="Settings and state directory"),
    log_level: str | None = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR"),
    version: bool = typer.Option(False, "--version", callback=_version, is_eager=True),
):
    init_ctx(home, log_level=log_level)


app.command("setup")(setup.cmd_setup)
app.command("show-setup")(setup.cmd_show)
app.command("status")(access.cmd_status)
app.command("check")(access.cmd_check)
app.command("unlock")(access.cmd_unlock)
app.command("monitor")(access.cmd_monitor)
app.command("reset")(reset.cmd_reset)
app.command("reset-direct")(reset.cmd_direct)
app.add_typer(block.app, name="block")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
