"""Vhost and location resource models."""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, Field, field_validator

from vhostctl_common.constants import DEFAULT_FASTCGI_PARAMS, DEFAULT_INDEX_FILES

Ensure = Literal["present", "absent"]

# Ordered directive -> value mapping, rendered as "key value;" lines
Directives = dict[str, Union[str, list[str]]]

# Content sources in precedence order
CONTENT_SOURCES = ("www_root", "proxy", "fastcgi")


def sanitize_name(name: str) -> str:
    """File-safe form of a vhost name, used for the installed cert and key."""
    return name.replace(" ", "_")


def _port(value: object) -> object:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class LocationSpec(BaseModel):
    """A location block attached to a vhost."""

    name: str
    vhost: str
    ensure: Ensure = "present"
    location: str = "/"
    ssl: bool = False
    ssl_only: bool = False
    www_root: str | None = None
    index_files: list[str] = Field(default_factory=lambda: list(DEFAULT_INDEX_FILES))
    proxy: str | None = None
    proxy_read_timeout: str | None = None
    proxy_cache: str | None = None
    proxy_cache_valid: str | None = None
    fastcgi: str | None = None
    fastcgi_params: str = DEFAULT_FASTCGI_PARAMS
    fastcgi_script: str | None = None
    try_files: list[str] = Field(default_factory=list)
    location_cfg_prepend: Directives = Field(default_factory=dict)
    location_cfg_append: Directives = Field(default_factory=dict)

    @property
    def content_source(self) -> str | None:
        """The effective content source: www_root, then proxy, then fastcgi."""
        for source in CONTENT_SOURCES:
            if getattr(self, source):
                return source
        return None


class VhostSpec(BaseModel):
    """A declared nginx virtual host."""

    name: str
    ensure: Ensure = "present"
    listen_ip: str = "*"
    listen_port: str = "80"
    listen_options: str | None = None
    ipv6_enable: bool = False
    ipv6_listen_ip: str = "::"
    ipv6_listen_port: str = "80"
    ipv6_listen_options: str | None = "default"
    ssl: bool = False
    ssl_cert: str | None = None
    ssl_key: str | None = None
    ssl_port: str = "443"
    server_name: list[str] | None = None
    www_root: str | None = None
    index_files: list[str] = Field(default_factory=lambda: list(DEFAULT_INDEX_FILES))
    proxy: str | None = None
    proxy_read_timeout: str | None = None
    proxy_cache: str | None = None
    proxy_cache_valid: str | None = None
    fastcgi: str | None = None
    fastcgi_params: str = DEFAULT_FASTCGI_PARAMS
    fastcgi_script: str | None = None
    try_files: list[str] = Field(default_factory=list)
    location_cfg_prepend: Directives = Field(default_factory=dict)
    location_cfg_append: Directives = Field(default_factory=dict)
    auth_basic: str | None = None
    auth_basic_user_file: str | None = None
    vhost_cfg_append: Directives = Field(default_factory=dict)
    rewrite_to_https: bool = False
    access_log: str | None = None
    error_log: str | None = None

    @field_validator("listen_port", "ipv6_listen_port", "ssl_port", mode="before")
    @classmethod
    def _coerce_port(cls, value: object) -> object:
        return _port(value)

    @property
    def ssl_only(self) -> bool:
        """True when the SSL listener is the only listener."""
        return self.ssl and self.ssl_port == self.listen_port

    @property
    def content_sources(self) -> list[str]:
        return [source for source in CONTENT_SOURCES if getattr(self, source)]

    @property
    def sanitized_name(self) -> str:
        return sanitize_name(self.name)
