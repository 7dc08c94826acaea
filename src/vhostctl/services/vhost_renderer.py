"""Jinja2-based NGINX fragment renderer."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError, select_autoescape

from vhostctl.errors import TemplateRenderError

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

HEADER = "vhost/header.conf.j2"
FOOTER = "vhost/footer.conf.j2"
SSL_HEADER = "vhost/ssl_header.conf.j2"
LOCATION_TEMPLATES = {
    "www_root": "vhost/location_directory.conf.j2",
    "proxy": "vhost/location_proxy.conf.j2",
    "fastcgi": "vhost/location_fastcgi.conf.j2",
}


def _directive_value(value: str | list[str]) -> str:
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return str(value)


@lru_cache(maxsize=1)
def _get_env() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATE_DIR)),
        autoescape=select_autoescape([]),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["directive_value"] = _directive_value
    return env


def render_template(template_id: str, context: dict[str, Any]) -> bytes:
    """Render a fragment template. Same context in, same bytes out."""
    try:
        template = _get_env().get_template(template_id)
        return template.render(**context).encode()
    except TemplateError as exc:
        raise TemplateRenderError(f"Failed to render {template_id}: {exc}") from exc
