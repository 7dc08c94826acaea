"""Converge a run of vhost declarations onto the filesystem."""

from __future__ import annotations

import logging
from collections import Counter

from pydantic import BaseModel, Field

from vhostctl.errors import DuplicateVhostError
from vhostctl.services import composer, fragments, nginx
from vhostctl_common import VhostctlConfig, VhostSpec

log = logging.getLogger(__name__)


class ConvergeResult(fragments.ApplyResult):
    """Outcome of one run."""

    vhosts: list[str] = Field(default_factory=list)
    reloaded: bool = False


def check_unique(specs: list[VhostSpec]) -> None:
    """Reject a run where two declarations share a name."""
    dupes = sorted(name for name, count in Counter(s.name for s in specs).items() if count > 1)
    if dupes:
        raise DuplicateVhostError(f"Duplicate vhost declaration: {', '.join(dupes)}")


def converge(
    specs: list[VhostSpec],
    cfg: VhostctlConfig,
    *,
    reload: bool = True,
    test: bool = True,
) -> ConvergeResult:
    """Compose and write each vhost in turn, then reload nginx once if notified.

    Each vhost is fully rendered before any of its files are written, so a
    failing declaration leaves no fragments behind. Vhosts converged before
    the failure stay converged. Fragments of a vhost that its current shape
    no longer produces (e.g. ssl turned off) are removed.
    """
    check_unique(specs)
    result = ConvergeResult()
    for spec in specs:
        rendered = composer.compose(spec, cfg)
        rendered += fragments.stale_fragments(cfg.fragment_dir, spec.name, rendered)
        result.merge(fragments.write_fragments(rendered))
        result.vhosts.append(spec.name)

    if result.notify and reload:
        nginx.reload(cfg, test=test)
        result.reloaded = True
    elif result.notify:
        log.info("reload skipped, %d fragment(s) changed", len(result.changed))
    return result
