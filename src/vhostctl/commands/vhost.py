"""Declare, apply and inspect NGINX vhost fragments."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from vhostctl.audit import audit
from vhostctl.config import get_config
from vhostctl.errors import VhostctlError
from vhostctl.services import composer, converge, fragments, nginx
from vhostctl.services.composer import RenderedFragment
from vhostctl_common import VhostctlConfig, VhostSpec
from vhostctl_common.models import sanitize_name

app = typer.Typer(no_args_is_help=True)
console = Console()

_SPECS = TypeAdapter(List[VhostSpec])


def _load_spec_file(path: Path) -> list[VhostSpec]:
    """Read one vhost object or a list of them from a JSON file."""
    raw = path.read_text()
    if raw.lstrip().startswith("{"):
        raw = f"[{raw}]"
    return _SPECS.validate_json(raw)


def _fail(exc: Exception) -> typer.Exit:
    console.print(f"[red]Error:[/red] {escape(str(exc))}")
    return typer.Exit(getattr(exc, "exit_code", 1))


def _print_plan(cfg: VhostctlConfig, spec: VhostSpec) -> None:
    validated = composer.validate(spec, cfg)
    table = Table(title=f"{spec.name} ({spec.ensure})")
    table.add_column("Kind", style="cyan", no_wrap=True)
    table.add_column("Path", overflow="fold")
    table.add_column("Content", style="yellow")
    table.add_column("Notify", style="green")

    for descriptor in composer.plan(validated, cfg):
        expanded = (
            composer.plan_location(descriptor.location, cfg)
            if descriptor.location is not None
            else [descriptor]
        )
        for d in expanded:
            content = d.template or str(d.source or "")
            table.add_row(d.kind, str(d.path), content, "yes" if d.notify else "no")

    console.print(table)
    if validated.ssl_only:
        console.print("  ssl_only: plain listener folded into the SSL server block")
    for warning in validated.warnings:
        console.print(f"  [yellow]warning:[/yellow] {warning}")


@app.command()
def apply(
    name: Optional[str] = typer.Argument(None, help="Vhost name (default server_name)"),
    spec_file: Optional[Path] = typer.Option(None, "--spec-file", "-f", help="JSON file with one vhost or a list"),
    ensure: str = typer.Option("present", help="present or absent"),
    listen_ip: str = typer.Option("*", help="Listen address"),
    listen_port: str = typer.Option("80", help="Plain listener port"),
    listen_options: Optional[str] = typer.Option(None, help="Extra listen options (e.g. default_server)"),
    ipv6: bool = typer.Option(False, "--ipv6", help="Also listen on IPv6"),
    ipv6_listen_ip: str = typer.Option("::", help="IPv6 listen address"),
    ipv6_listen_port: str = typer.Option("80", help="IPv6 listener port"),
    ssl: bool = typer.Option(False, "--ssl", help="Add an SSL server block"),
    ssl_cert: Optional[str] = typer.Option(None, help="Certificate to install for the vhost"),
    ssl_key: Optional[str] = typer.Option(None, help="Private key to install for the vhost"),
    ssl_port: str = typer.Option("443", help="SSL listener port"),
    server_name: Optional[List[str]] = typer.Option(None, help="server_name entry (repeatable)"),
    www_root: Optional[str] = typer.Option(None, help="Serve static files from this root"),
    proxy: Optional[str] = typer.Option(None, help="Reverse-proxy target URL"),
    proxy_read_timeout: Optional[str] = typer.Option(None, help="proxy_read_timeout for the proxy target"),
    fastcgi: Optional[str] = typer.Option(None, help="FastCGI target (host:port or unix socket)"),
    fastcgi_script: Optional[str] = typer.Option(None, help="SCRIPT_FILENAME for FastCGI"),
    try_files: Optional[List[str]] = typer.Option(None, help="try_files entry (repeatable)"),
    auth_basic: Optional[str] = typer.Option(None, help="Basic auth realm"),
    auth_basic_user_file: Optional[str] = typer.Option(None, help="htpasswd file for basic auth"),
    rewrite_to_https: bool = typer.Option(False, "--rewrite-to-https", help="Redirect plain HTTP to HTTPS"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the fragment plan and write nothing"),
    no_reload: bool = typer.Option(False, "--no-reload", help="Write fragments but do not reload NGINX"),
    no_test: bool = typer.Option(False, "--no-test", help="Reload without running the NGINX config test"),
) -> None:
    """Write the fragments for one or more vhosts, then reload NGINX if anything changed."""
    cfg = get_config()

    try:
        if spec_file is not None:
            specs = _load_spec_file(spec_file)
        elif name:
            specs = [
                VhostSpec(
                    name=name,
                    ensure=ensure,
                    listen_ip=listen_ip,
                    listen_port=listen_port,
                    listen_options=listen_options,
                    ipv6_enable=ipv6,
                    ipv6_listen_ip=ipv6_listen_ip,
                    ipv6_listen_port=ipv6_listen_port,
                    ssl=ssl,
                    ssl_cert=ssl_cert,
                    ssl_key=ssl_key,
                    ssl_port=ssl_port,
                    server_name=server_name or None,
                    www_root=www_root,
                    proxy=proxy,
                    proxy_read_timeout=proxy_read_timeout,
                    fastcgi=fastcgi,
                    fastcgi_script=fastcgi_script,
                    try_files=try_files or [],
                    auth_basic=auth_basic,
                    auth_basic_user_file=auth_basic_user_file,
                    rewrite_to_https=rewrite_to_https,
                )
            ]
        else:
            console.print("[red]Error:[/red] NAME or --spec-file required")
            raise typer.Exit(1)
    except (ValidationError, OSError) as exc:
        raise _fail(exc)

    if dry_run:
        try:
            converge.check_unique(specs)
            for spec in specs:
                _print_plan(cfg, spec)
        except VhostctlError as exc:
            raise _fail(exc)
        return

    target = ", ".join(s.name for s in specs)
    try:
        with audit("vhost.apply", target=target, count=len(specs)) as event:
            result = converge.converge(specs, cfg, reload=not no_reload, test=not no_test)
            event.changed = [str(p) for p in result.changed]
            event.reloaded = result.reloaded
    except VhostctlError as exc:
        raise _fail(exc)

    for path in result.changed:
        console.print(f"  changed: {path}")
    if not result.changed:
        console.print("[green]Already up to date.[/green]")
    elif result.reloaded:
        console.print("[green]Fragments written and NGINX reloaded.[/green]")
    else:
        console.print("[green]Fragments written.[/green]")


@app.command()
def remove(
    name: str = typer.Argument(help="Vhost to remove"),
    keep_cert: bool = typer.Option(False, "--keep-cert", help="Leave the installed .crt/.key in place"),
    no_reload: bool = typer.Option(False, "--no-reload", help="Do not reload NGINX afterwards"),
) -> None:
    """Remove every fragment (and installed cert/key) of a vhost."""
    cfg = get_config()
    paths = fragments.find_fragments(cfg.fragment_dir, name)
    if not keep_cert:
        sanitized = sanitize_name(name)
        paths += [cfg.conf_dir / f"{sanitized}.crt", cfg.conf_dir / f"{sanitized}.key"]

    absent = [
        RenderedFragment(kind="stale", path=p, ensure="absent", content=b"", notify=True)
        for p in paths
    ]
    try:
        with audit("vhost.remove", target=name) as event:
            result = fragments.write_fragments(absent)
            event.changed = [str(p) for p in result.changed]
            if result.notify and not no_reload:
                nginx.reload(cfg)
                event.reloaded = True
    except VhostctlError as exc:
        raise _fail(exc)

    if not result.changed:
        console.print(f"No fragments found for {name}.")
        return
    for path in result.changed:
        console.print(f"  removed: {path}")
    console.print(f"[green]{name} removed.[/green]")


@app.command(name="list")
def list_vhosts() -> None:
    """List vhosts with fragments in the fragment directory."""
    cfg = get_config()
    names = fragments.list_vhosts(cfg.fragment_dir)
    if not names:
        console.print(f"No fragments found in {cfg.fragment_dir}.")
        return

    table = Table(title=f"Vhosts in {cfg.fragment_dir}")
    table.add_column("Vhost", style="cyan", no_wrap=True)
    table.add_column("Fragments", style="green")
    table.add_column("SSL", style="yellow")
    for vhost in names:
        found = fragments.find_fragments(cfg.fragment_dir, vhost)
        has_ssl = any(p.name.endswith("-ssl") for p in found)
        table.add_row(vhost, str(len(found)), "yes" if has_ssl else "no")
    console.print(table)


@app.command()
def show(
    name: str = typer.Argument(help="Vhost to show fragments for"),
) -> None:
    """Display each fragment of a vhost in concatenation order."""
    cfg = get_config()
    found = fragments.find_fragments(cfg.fragment_dir, name)
    if not found:
        console.print(f"[red]No fragments found for {name}[/red]")
        raise typer.Exit(1)

    for path in found:
        console.rule(path.name)
        console.print(Syntax(path.read_text(), "nginx", theme="monokai"))
