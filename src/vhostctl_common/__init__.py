"""vhostctl common: shared models, constants and configuration."""

from vhostctl_common.constants import (
    AUDIT_DB_NAME,
    AUDIT_JSONL_NAME,
    CONF_DIR,
    DEFAULT_PROXY_READ_TIMEOUT,
    FRAGMENT_MODE,
    FRAGMENT_SET_NAME,
    LOG_DIR,
    STAGE_FOOTER,
    STAGE_HEADER,
    STAGE_LOCATION,
    STAGE_SSL_FOOTER,
    STAGE_SSL_HEADER,
    STAGE_SSL_LOCATION,
    TEMP_DIR,
)
from vhostctl_common.config import VhostctlConfig
from vhostctl_common.models.audit_event import AuditEvent
from vhostctl_common.models.vhost import LocationSpec, VhostSpec

__all__ = [
    "AUDIT_DB_NAME",
    "AUDIT_JSONL_NAME",
    "AuditEvent",
    "CONF_DIR",
    "DEFAULT_PROXY_READ_TIMEOUT",
    "FRAGMENT_MODE",
    "FRAGMENT_SET_NAME",
    "LOG_DIR",
    "LocationSpec",
    "STAGE_FOOTER",
    "STAGE_HEADER",
    "STAGE_LOCATION",
    "STAGE_SSL_FOOTER",
    "STAGE_SSL_HEADER",
    "STAGE_SSL_LOCATION",
    "TEMP_DIR",
    "VhostSpec",
    "VhostctlConfig",
]
