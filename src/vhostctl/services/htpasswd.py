"""bcrypt htpasswd files for auth_basic_user_file."""

from __future__ import annotations

from pathlib import Path

import bcrypt

from vhostctl_common.constants import FRAGMENT_MODE


def hash_password(password: str) -> str:
    """Generate a bcrypt hash nginx accepts in htpasswd files."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def read_htpasswd(path: Path) -> dict[str, str]:
    """Return user -> hash, in file order. Missing file means no users."""
    if not path.exists():
        return {}
    entries: dict[str, str] = {}
    for line in path.read_text().splitlines():
        line = line.strip()
        if line and not line.startswith("#") and ":" in line:
            user, hashed = line.split(":", 1)
            entries[user] = hashed
    return entries


def read_htpasswd_users(path: Path) -> list[str]:
    return list(read_htpasswd(path))


def set_user(path: Path, username: str, password: str) -> None:
    """Add or replace one user, keeping the others."""
    if ":" in username:
        raise ValueError(f"Username may not contain ':': {username!r}")
    entries = read_htpasswd(path)
    entries[username] = hash_password(password)
    _write(path, entries)


def remove_user(path: Path, username: str) -> bool:
    """Drop a user. Returns False if it was not there."""
    entries = read_htpasswd(path)
    if entries.pop(username, None) is None:
        return False
    _write(path, entries)
    return True


def _write(path: Path, entries: dict[str, str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"{user}:{hashed}\n" for user, hashed in entries.items()))
    path.chmod(FRAGMENT_MODE)
