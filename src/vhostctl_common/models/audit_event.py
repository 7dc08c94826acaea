"""Audit event model for fragment changes."""

from __future__ import annotations

import socket
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class AuditEvent(BaseModel):
    """One mutating vhostctl command and what it changed on disk."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    hostname: str = Field(default_factory=socket.gethostname)
    actor: str = ""
    action: str = ""
    target: str = ""
    params: dict[str, Any] = Field(default_factory=dict)
    changed: list[str] = Field(default_factory=list)
    reloaded: bool = False
    result: str = "success"
    error: str | None = None
    duration_ms: int | None = None

    def to_jsonl(self) -> str:
        return self.model_dump_json()
