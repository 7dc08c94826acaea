"""HTTP Basic Auth user files for vhosts."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from vhostctl.audit import audit
from vhostctl.config import get_config
from vhostctl.services import htpasswd

app = typer.Typer(no_args_is_help=True)
console = Console()


@app.command()
def add(
    name: str = typer.Option(..., help="Vhost the user file belongs to"),
    user: str = typer.Option(..., help="Username"),
    password: str = typer.Option(..., prompt=True, hide_input=True, help="Password"),
) -> None:
    """Add or update a user in a vhost's htpasswd file."""
    cfg = get_config()
    auth_file = cfg.auth_dir / f"{name.replace(' ', '_')}.htpasswd"

    with audit("auth.add", target=name, user=user) as event:
        try:
            htpasswd.set_user(auth_file, user, password)
        except ValueError as exc:
            console.print(f"[red]Error:[/red] {exc}")
            raise typer.Exit(1)
        event.changed = [str(auth_file)]

    console.print(f"[green]User {user} set in {auth_file}[/green]")
    console.print(f"Apply the vhost with: --auth-basic-user-file {auth_file}")


@app.command()
def remove(
    name: str = typer.Option(..., help="Vhost the user file belongs to"),
    user: str = typer.Option(..., help="Username"),
) -> None:
    """Remove a user from a vhost's htpasswd file."""
    cfg = get_config()
    auth_file = cfg.auth_dir / f"{name.replace(' ', '_')}.htpasswd"

    with audit("auth.remove", target=name, user=user) as event:
        if not htpasswd.remove_user(auth_file, user):
            console.print(f"[yellow]{user} not found in {auth_file}[/yellow]")
            return
        event.changed = [str(auth_file)]
    console.print(f"[green]Removed {user} from {auth_file}[/green]")


@app.command(name="list")
def list_auth() -> None:
    """List htpasswd files and their users."""
    cfg = get_config()
    if not cfg.auth_dir.exists():
        console.print("No auth directory found.")
        return

    table = Table(title="HTTP Basic Auth")
    table.add_column("Vhost", style="cyan")
    table.add_column("Users", style="green")
    for f in sorted(cfg.auth_dir.glob("*.htpasswd")):
        table.add_row(f.stem, ", ".join(htpasswd.read_htpasswd_users(f)))
    console.print(table)
