"""Host network capability checks."""

from __future__ import annotations

import socket
from functools import lru_cache

from vhostctl_common import VhostctlConfig


@lru_cache(maxsize=1)
def host_has_ipv6() -> bool:
    """Return True if the host can bind an IPv6 loopback socket."""
    if not socket.has_ipv6:
        return False
    try:
        with socket.socket(socket.AF_INET6, socket.SOCK_STREAM) as sock:
            sock.bind(("::1", 0))
    except OSError:
        return False
    return True


def ipv6_capable(cfg: VhostctlConfig) -> bool:
    """Config override first, probe the host otherwise."""
    if cfg.ipv6 is not None:
        return cfg.ipv6
    return host_has_ipv6()
