"""Central configuration for vhostctl."""

from __future__ import annotations

import os
import shlex
from pathlib import Path

from pydantic import BaseModel, Field

from vhostctl_common.constants import (
    AUDIT_DB_NAME,
    AUDIT_JSONL_NAME,
    CONF_DIR,
    DEFAULT_PROXY_READ_TIMEOUT,
    DEFAULT_RELOAD_COMMAND,
    DEFAULT_SSL_CIPHERS,
    DEFAULT_SSL_PROTOCOLS,
    DEFAULT_TEST_COMMAND,
    FRAGMENT_GROUP,
    FRAGMENT_OWNER,
    FRAGMENT_SET_NAME,
    LOG_DIR,
    NGINX_LOG_DIR,
    TEMP_DIR,
)


def _env_path(name: str, default: Path) -> Path:
    env = os.environ.get(name)
    return Path(env) if env else default


def _env_command(name: str, default: tuple[str, ...]) -> list[str]:
    env = os.environ.get(name)
    return shlex.split(env) if env else list(default)


def _env_flag(name: str) -> bool | None:
    """Tri-state flag: unset means autodetect."""
    env = os.environ.get(name)
    if env is None or env == "":
        return None
    return env.strip().lower() in ("1", "true", "yes", "on")


class VhostctlConfig(BaseModel):
    """Runtime configuration resolved once at startup."""

    temp_dir: Path = Field(default_factory=lambda: _env_path("VHOSTCTL_TEMP_DIR", TEMP_DIR))
    conf_dir: Path = Field(default_factory=lambda: _env_path("VHOSTCTL_CONF_DIR", CONF_DIR))
    nginx_log_dir: Path = Field(default_factory=lambda: _env_path("VHOSTCTL_NGINX_LOG_DIR", NGINX_LOG_DIR))
    fragment_set: str = FRAGMENT_SET_NAME
    proxy_read_timeout: str = Field(
        default_factory=lambda: os.environ.get("VHOSTCTL_PROXY_READ_TIMEOUT", DEFAULT_PROXY_READ_TIMEOUT)
    )
    ssl_protocols: str = DEFAULT_SSL_PROTOCOLS
    ssl_ciphers: str = DEFAULT_SSL_CIPHERS
    reload_command: list[str] = Field(
        default_factory=lambda: _env_command("VHOSTCTL_RELOAD_COMMAND", DEFAULT_RELOAD_COMMAND)
    )
    test_command: list[str] = Field(
        default_factory=lambda: _env_command("VHOSTCTL_TEST_COMMAND", DEFAULT_TEST_COMMAND)
    )
    # None leaves ownership untouched (e.g. when not running as root)
    fragment_owner: str | None = FRAGMENT_OWNER
    fragment_group: str | None = FRAGMENT_GROUP
    ipv6: bool | None = Field(default_factory=lambda: _env_flag("VHOSTCTL_IPV6"))
    footer_notifies: bool = Field(default_factory=lambda: bool(_env_flag("VHOSTCTL_FOOTER_NOTIFIES")))
    log_dir: Path = Field(default_factory=lambda: _env_path("VHOSTCTL_LOG_DIR", LOG_DIR))
    audit_jsonl_path: Path = Field(default_factory=lambda data: data["log_dir"] / AUDIT_JSONL_NAME)
    audit_db_path: Path = Field(default_factory=lambda data: data["log_dir"] / AUDIT_DB_NAME)

    @property
    def fragment_dir(self) -> Path:
        return self.temp_dir / self.fragment_set

    @property
    def auth_dir(self) -> Path:
        return self.conf_dir / "auth"
