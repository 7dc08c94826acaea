"""CLI configuration: singleton VhostctlConfig resolved at startup."""

from __future__ import annotations

from functools import lru_cache

from vhostctl_common import VhostctlConfig


@lru_cache(maxsize=1)
def get_config() -> VhostctlConfig:
    """Return the global VhostctlConfig (resolved once, cached)."""
    return VhostctlConfig()
