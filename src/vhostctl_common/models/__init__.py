"""Shared Pydantic models."""

from vhostctl_common.models.audit_event import AuditEvent
from vhostctl_common.models.vhost import CONTENT_SOURCES, Directives, Ensure, LocationSpec, VhostSpec, sanitize_name

__all__ = ["AuditEvent", "CONTENT_SOURCES", "Directives", "Ensure", "LocationSpec", "VhostSpec", "sanitize_name"]
