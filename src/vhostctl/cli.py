"""Root Typer application for vhostctl."""

from __future__ import annotations

import logging

import typer

from vhostctl.commands import auth, vhost

app = typer.Typer(
    name="vhostctl",
    help="Declare nginx virtual hosts and template their config fragments.",
    no_args_is_help=True,
)

app.add_typer(vhost.app, name="vhost", help="Plan, apply and inspect vhost fragments.")
app.add_typer(auth.app, name="auth", help="HTTP Basic Auth user files.")


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="DEBUG, INFO, WARNING or ERROR"),
) -> None:
    level = getattr(logging, log_level.strip().upper(), None)
    if not isinstance(level, int):
        raise typer.BadParameter("--log-level must be one of: DEBUG, INFO, WARNING, ERROR")
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


if __name__ == "__main__":
    app()
