"""Custom exceptions for vhostctl."""

from __future__ import annotations

from pathlib import Path


class VhostctlError(Exception):
    """Base exception for all vhostctl operations."""

    def __init__(self, message: str, *, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigError(VhostctlError):
    """A vhost declaration is invalid. Nothing is written for it."""


class MissingSslMaterial(ConfigError):
    """SSL is enabled but the certificate or key path is unset."""


class MissingContentSource(ConfigError):
    """No www_root, proxy or fastcgi target was given."""


class InvalidVhostName(ConfigError):
    """The vhost name cannot be used as a fragment filename."""


class DuplicateVhostError(VhostctlError):
    """Two declarations in one run share a vhost name."""


class TemplateRenderError(VhostctlError):
    """A fragment template failed to render."""


class FragmentWriteError(VhostctlError):
    """Writing, copying or removing a fragment file failed."""

    def __init__(self, message: str, *, path: Path, exit_code: int = 1):
        super().__init__(f"{message}: {path}", exit_code=exit_code)
        self.path = path


class NginxServiceError(VhostctlError):
    """nginx config test or reload failed."""


class IncompatibleListenerWarning(UserWarning):
    """IPv6 was requested on a host without IPv6. Never raised, only recorded."""
