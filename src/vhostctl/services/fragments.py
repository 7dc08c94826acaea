"""Write rendered fragments to disk."""

from __future__ import annotations

import logging
import os
import re
import shutil
from pathlib import Path

from pydantic import BaseModel, Field

from vhostctl.errors import FragmentWriteError
from vhostctl.services.composer import RenderedFragment
from vhostctl_common.constants import (
    STAGE_FOOTER,
    STAGE_HEADER,
    STAGE_LOCATION,
    STAGE_SSL_FOOTER,
    STAGE_SSL_HEADER,
    STAGE_SSL_LOCATION,
)

log = logging.getLogger(__name__)


class ApplyResult(BaseModel):
    """Paths touched by one apply and whether nginx must reload."""

    changed: list[Path] = Field(default_factory=list)
    notify: bool = False

    def merge(self, other: ApplyResult) -> None:
        self.changed.extend(other.changed)
        self.notify = self.notify or other.notify


def _set_ownership(path: Path, owner: str | None, group: str | None) -> None:
    # Only root can hand files to another owner
    if (owner is None and group is None) or os.geteuid() != 0:
        return
    shutil.chown(path, user=owner, group=group)


def _write(fragment: RenderedFragment) -> bool:
    path = fragment.path
    if path.is_file() and path.read_bytes() == fragment.content:
        if (path.stat().st_mode & 0o777) == fragment.mode:
            return False
        path.chmod(fragment.mode)
        return True

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        tmp.write_bytes(fragment.content)
        tmp.chmod(fragment.mode)
        _set_ownership(tmp, fragment.owner, fragment.group)
        os.replace(tmp, path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
    return True


def _remove(fragment: RenderedFragment) -> bool:
    if not fragment.path.exists():
        return False
    fragment.path.unlink()
    return True


def write_fragments(fragments: list[RenderedFragment]) -> ApplyResult:
    """Bring each fragment file to its ensure-state.

    A fragment counts as changed when it is created, removed, or its content
    or mode differs. ``notify`` is set if any changed fragment notifies.
    """
    result = ApplyResult()
    for fragment in fragments:
        try:
            changed = _write(fragment) if fragment.ensure == "present" else _remove(fragment)
        except OSError as exc:
            raise FragmentWriteError(f"Cannot update fragment ({exc.strerror})", path=fragment.path) from exc
        if changed:
            log.info("%s %s", "wrote" if fragment.ensure == "present" else "removed", fragment.path)
            result.changed.append(fragment.path)
            result.notify = result.notify or fragment.notify
    return result


def _fragment_re(vhost: str) -> re.Pattern[str]:
    """Match exactly the stage names one vhost can own."""
    name = re.escape(vhost)
    stages = "|".join(
        [
            STAGE_HEADER,
            STAGE_FOOTER,
            f"{STAGE_SSL_HEADER}-ssl",
            f"{STAGE_SSL_FOOTER}-ssl",
            rf"{STAGE_LOCATION}-{name}-.+",
            rf"{STAGE_SSL_LOCATION}-{name}-.+-ssl",
        ]
    )
    return re.compile(rf"^{name}-(?:{stages})$")


def find_fragments(fragment_dir: Path, vhost: str) -> list[Path]:
    """Fragment files of one vhost, in concatenation order."""
    if not fragment_dir.is_dir():
        return []
    pattern = _fragment_re(vhost)
    return sorted(p for p in fragment_dir.iterdir() if p.is_file() and pattern.match(p.name))


def list_vhosts(fragment_dir: Path) -> list[str]:
    """Names of vhosts that have a header or ssl-header fragment."""
    if not fragment_dir.is_dir():
        return []
    names = set()
    for p in fragment_dir.iterdir():
        for suffix in ("-001", "-700-ssl"):
            if p.is_file() and p.name.endswith(suffix):
                names.add(p.name[: -len(suffix)])
    return sorted(names)


def stale_fragments(fragment_dir: Path, vhost: str, planned: list[RenderedFragment]) -> list[RenderedFragment]:
    """Removals for fragments of ``vhost`` on disk that the plan no longer produces."""
    keep = {f.path for f in planned}
    return [
        RenderedFragment(kind="stale", path=p, ensure="absent", content=b"", notify=True)
        for p in find_fragments(fragment_dir, vhost)
        if p not in keep
    ]
