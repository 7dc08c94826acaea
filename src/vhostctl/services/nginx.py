"""NGINX config validation and reload."""

from __future__ import annotations

import logging
import subprocess

from vhostctl.errors import NginxServiceError
from vhostctl_common import VhostctlConfig

log = logging.getLogger(__name__)


def _run(cmd: list[str], *, check: bool = True) -> subprocess.CompletedProcess[str]:
    try:
        return subprocess.run(cmd, check=check, capture_output=True, text=True)
    except subprocess.CalledProcessError as exc:
        raise NginxServiceError(
            f"Command failed: {' '.join(cmd)}\nstderr: {exc.stderr}"
        ) from exc
    except FileNotFoundError as exc:
        raise NginxServiceError(f"Command not found: {cmd[0]}") from exc


def validate_config(cfg: VhostctlConfig) -> None:
    """Run the nginx config test. Raises NginxServiceError on failure."""
    result = _run(cfg.test_command, check=False)
    if result.returncode != 0:
        raise NginxServiceError(f"NGINX config test failed:\n{result.stderr}")


def reload(cfg: VhostctlConfig, *, test: bool = True) -> None:
    """Validate config (unless told not to), then reload NGINX."""
    if test:
        validate_config(cfg)
    log.info("reloading nginx: %s", " ".join(cfg.reload_command))
    _run(cfg.reload_command)
