"""Expand a VhostSpec into its ordered set of nginx config fragments.

The composer is pure: it validates a declaration, plans the fragment
descriptors in stage order and renders their content into memory. Writing
files and reloading nginx is left to the caller (see ``fragments`` and
``nginx``), so an invalid declaration never leaves a partial fragment set
behind.

Stage layout inside ``<temp_dir>/nginx.d``::

    <name>-001                  header            (listen_port != ssl_port)
    <name>-500-<name>-default   default location  (not ssl_only)
    <name>-699                  footer            (listen_port != ssl_port)
    <name>-700-ssl              ssl header        (ssl)
    <name>-800-<name>-default-ssl  ssl location   (ssl)
    <name>-999-ssl              ssl footer        (ssl)

plus ``<conf_dir>/<name>.crt`` and ``.key`` copied from the declared
certificate and key when ssl is enabled.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from vhostctl.errors import (
    FragmentWriteError,
    IncompatibleListenerWarning,
    InvalidVhostName,
    MissingContentSource,
    MissingSslMaterial,
    VhostctlError,
)
from vhostctl.services import network, vhost_renderer
from vhostctl_common import VhostctlConfig
from vhostctl_common.constants import (
    FRAGMENT_MODE,
    STAGE_FOOTER,
    STAGE_HEADER,
    STAGE_LOCATION,
    STAGE_SSL_FOOTER,
    STAGE_SSL_HEADER,
    STAGE_SSL_LOCATION,
)
from vhostctl_common.models.vhost import Ensure, LocationSpec, VhostSpec

log = logging.getLogger(__name__)

FragmentKind = Literal[
    "header",
    "default-location",
    "location",
    "ssl-location",
    "footer",
    "ssl-header",
    "ssl-footer",
    "ssl-cert-file",
    "ssl-key-file",
    "stale",
]


class ValidatedVhost(BaseModel):
    """A VhostSpec that passed validation, with defaults filled in."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    spec: VhostSpec
    ssl_only: bool
    ipv6_enable: bool
    warnings: list[IncompatibleListenerWarning] = Field(default_factory=list)


class FragmentDescriptor(BaseModel):
    """One file the plan wants present or absent.

    Templated descriptors carry ``template`` and ``context``; file copies
    carry ``source``. The default-location descriptor carries ``location``
    and is expanded into its own fragments by ``plan_location``.
    """

    model_config = ConfigDict(frozen=True)

    kind: FragmentKind
    path: Optional[Path] = None
    ensure: Ensure = "present"
    template: Optional[str] = None
    context: dict[str, Any] = Field(default_factory=dict)
    source: Optional[Path] = None
    location: Optional[LocationSpec] = None
    notify: bool = True
    mode: int = FRAGMENT_MODE
    owner: Optional[str] = None
    group: Optional[str] = None


class RenderedFragment(BaseModel):
    """A descriptor with its content resolved, ready to be written."""

    model_config = ConfigDict(frozen=True)

    kind: FragmentKind
    path: Path
    ensure: Ensure
    content: bytes
    notify: bool
    mode: int = FRAGMENT_MODE
    owner: Optional[str] = None
    group: Optional[str] = None


def validate(
    spec: VhostSpec,
    cfg: VhostctlConfig,
    *,
    ipv6_capable: bool | None = None,
) -> ValidatedVhost:
    """Check a declaration and fill in its derived values.

    Raises a ConfigError subclass on fatal problems. A missing IPv6 stack
    is only recorded as an IncompatibleListenerWarning.
    """
    if not spec.name or "/" in spec.name:
        raise InvalidVhostName(f"Invalid vhost name: {spec.name!r}")

    if spec.ssl and (not spec.ssl_cert or not spec.ssl_key):
        raise MissingSslMaterial(
            f"{spec.name}: ssl_cert and ssl_key must both be set when ssl is enabled"
        )

    sources = spec.content_sources
    if spec.ensure == "present" and not sources:
        raise MissingContentSource(
            f"{spec.name}: one of www_root, proxy or fastcgi must be set"
        )
    if len(sources) > 1:
        log.warning("%s: several content sources set (%s), using %s", spec.name, ", ".join(sources), sources[0])
    if not spec.ssl and spec.listen_port == spec.ssl_port:
        log.warning("%s: listen_port equals ssl_port without ssl, no server block is emitted", spec.name)

    warnings: list[IncompatibleListenerWarning] = []
    ipv6_enable = spec.ipv6_enable
    if ipv6_enable:
        capable = ipv6_capable if ipv6_capable is not None else network.ipv6_capable(cfg)
        if not capable:
            warning = IncompatibleListenerWarning(
                f"{spec.name}: IPv6 requested but not available on this host, skipping IPv6 listeners"
            )
            log.warning("%s", warning)
            warnings.append(warning)
            ipv6_enable = False

    spec = spec.model_copy(
        update={
            "server_name": spec.server_name or [spec.name],
            "proxy_read_timeout": spec.proxy_read_timeout or cfg.proxy_read_timeout,
            "access_log": spec.access_log or str(cfg.nginx_log_dir / f"{spec.name}.access.log"),
            "error_log": spec.error_log or str(cfg.nginx_log_dir / f"{spec.name}.error.log"),
        }
    )
    return ValidatedVhost(spec=spec, ssl_only=spec.ssl_only, ipv6_enable=ipv6_enable, warnings=warnings)


def fragment_path(cfg: VhostctlConfig, vhost: str, stage: str, suffix: str = "") -> Path:
    """Path of a fragment: ``<fragment_dir>/<vhost>-<stage>[-suffix]``."""
    name = f"{vhost}-{stage}"
    if suffix:
        name = f"{name}-{suffix}"
    return cfg.fragment_dir / name


def default_location(validated: ValidatedVhost) -> LocationSpec:
    """The implicit ``<name>-default`` location serving ``/``."""
    spec = validated.spec
    return LocationSpec(
        name=f"{spec.name}-default",
        vhost=spec.name,
        ensure=spec.ensure,
        location="/",
        ssl=spec.ssl,
        ssl_only=validated.ssl_only,
        www_root=spec.www_root,
        index_files=spec.index_files,
        proxy=spec.proxy,
        proxy_read_timeout=spec.proxy_read_timeout,
        proxy_cache=spec.proxy_cache,
        proxy_cache_valid=spec.proxy_cache_valid,
        fastcgi=spec.fastcgi,
        fastcgi_params=spec.fastcgi_params,
        fastcgi_script=spec.fastcgi_script,
        try_files=spec.try_files,
        location_cfg_prepend=spec.location_cfg_prepend,
        location_cfg_append=spec.location_cfg_append,
    )


def _vhost_context(validated: ValidatedVhost, cfg: VhostctlConfig) -> dict[str, Any]:
    spec = validated.spec
    context = spec.model_dump()
    context.update(
        ssl_only=validated.ssl_only,
        ipv6_enable=validated.ipv6_enable,
        ssl_cert_path=str(cfg.conf_dir / f"{spec.sanitized_name}.crt"),
        ssl_key_path=str(cfg.conf_dir / f"{spec.sanitized_name}.key"),
        ssl_protocols=cfg.ssl_protocols,
        ssl_ciphers=cfg.ssl_ciphers,
    )
    return context


def plan(
    validated: ValidatedVhost,
    cfg: VhostctlConfig,
    *,
    footer_notifies: bool | None = None,
) -> list[FragmentDescriptor]:
    """Return the vhost's fragment descriptors in stage order."""
    spec = validated.spec
    context = _vhost_context(validated, cfg)
    if footer_notifies is None:
        footer_notifies = cfg.footer_notifies
    common: dict[str, Any] = {
        "ensure": spec.ensure,
        "owner": cfg.fragment_owner,
        "group": cfg.fragment_group,
    }

    # One listener block is enough when both listeners share a port
    plain_listener = spec.listen_port != spec.ssl_port

    descriptors: list[FragmentDescriptor] = []
    if plain_listener:
        descriptors.append(
            FragmentDescriptor(
                kind="header",
                path=fragment_path(cfg, spec.name, STAGE_HEADER),
                template=vhost_renderer.HEADER,
                context=context,
                **common,
            )
        )

    descriptors.append(
        FragmentDescriptor(kind="default-location", location=default_location(validated), **common)
    )

    if plain_listener:
        descriptors.append(
            FragmentDescriptor(
                kind="footer",
                path=fragment_path(cfg, spec.name, STAGE_FOOTER),
                template=vhost_renderer.FOOTER,
                context=context,
                notify=footer_notifies,
                **common,
            )
        )

    if spec.ssl:
        descriptors.append(
            FragmentDescriptor(
                kind="ssl-header",
                path=fragment_path(cfg, spec.name, STAGE_SSL_HEADER, "ssl"),
                template=vhost_renderer.SSL_HEADER,
                context=context,
                **common,
            )
        )
        descriptors.append(
            FragmentDescriptor(
                kind="ssl-footer",
                path=fragment_path(cfg, spec.name, STAGE_SSL_FOOTER, "ssl"),
                template=vhost_renderer.FOOTER,
                context=context,
                **common,
            )
        )
        descriptors.append(
            FragmentDescriptor(
                kind="ssl-cert-file",
                path=Path(context["ssl_cert_path"]),
                source=Path(spec.ssl_cert),
                **common,
            )
        )
        descriptors.append(
            FragmentDescriptor(
                kind="ssl-key-file",
                path=Path(context["ssl_key_path"]),
                source=Path(spec.ssl_key),
                **common,
            )
        )
    return descriptors


def plan_location(location: LocationSpec, cfg: VhostctlConfig) -> list[FragmentDescriptor]:
    """Fragments for a location block: a plain copy and an SSL copy."""
    source = location.content_source
    template = vhost_renderer.LOCATION_TEMPLATES[source] if source else None
    context = location.model_dump()
    common: dict[str, Any] = {
        "ensure": location.ensure,
        "template": template,
        "context": context,
        "owner": cfg.fragment_owner,
        "group": cfg.fragment_group,
    }

    descriptors: list[FragmentDescriptor] = []
    if not location.ssl_only:
        descriptors.append(
            FragmentDescriptor(
                kind="location",
                path=fragment_path(cfg, location.vhost, STAGE_LOCATION, location.name),
                **common,
            )
        )
    if location.ssl:
        descriptors.append(
            FragmentDescriptor(
                kind="ssl-location",
                path=fragment_path(cfg, location.vhost, STAGE_SSL_LOCATION, f"{location.name}-ssl"),
                **common,
            )
        )
    return descriptors


def render(descriptor: FragmentDescriptor) -> bytes:
    """Resolve a descriptor's content. Absent fragments have none."""
    if descriptor.ensure == "absent":
        return b""
    if descriptor.source is not None:
        try:
            return descriptor.source.read_bytes()
        except OSError as exc:
            raise FragmentWriteError(
                f"Cannot read source for {descriptor.path} ({exc.strerror})", path=descriptor.source
            ) from exc
    if descriptor.template is None:
        raise MissingContentSource(f"No template for {descriptor.kind} fragment {descriptor.path}")
    return vhost_renderer.render_template(descriptor.template, descriptor.context)


def _rendered(descriptor: FragmentDescriptor) -> RenderedFragment:
    if descriptor.path is None:
        raise VhostctlError(f"{descriptor.kind} descriptor has no target path; expand it with plan_location")
    return RenderedFragment(
        kind=descriptor.kind,
        path=descriptor.path,
        ensure=descriptor.ensure,
        content=render(descriptor),
        notify=descriptor.notify,
        mode=descriptor.mode,
        owner=descriptor.owner,
        group=descriptor.group,
    )


def compose(
    spec: VhostSpec,
    cfg: VhostctlConfig,
    *,
    footer_notifies: bool | None = None,
    ipv6_capable: bool | None = None,
) -> list[RenderedFragment]:
    """Validate, plan and render every fragment of a vhost into memory."""
    validated = validate(spec, cfg, ipv6_capable=ipv6_capable)
    fragments: list[RenderedFragment] = []
    for descriptor in plan(validated, cfg, footer_notifies=footer_notifies):
        if descriptor.location is not None:
            fragments.extend(_rendered(d) for d in plan_location(descriptor.location, cfg))
        else:
            fragments.append(_rendered(descriptor))
    return fragments
