"""Shared constants for vhostctl."""

from pathlib import Path

# Default paths (overridable via VhostctlConfig / env vars)
TEMP_DIR = Path("/tmp")
CONF_DIR = Path("/etc/nginx")
NGINX_LOG_DIR = Path("/var/log/nginx")

# Fragment directory under TEMP_DIR shared by every vhost of a run
FRAGMENT_SET_NAME = "nginx.d"

# Fragment stages, concatenated in ascending order by the assembler
STAGE_HEADER = "001"
STAGE_LOCATION = "500"
STAGE_FOOTER = "699"
STAGE_SSL_HEADER = "700"
STAGE_SSL_LOCATION = "800"
STAGE_SSL_FOOTER = "999"

# File attributes for every managed fragment
FRAGMENT_MODE = 0o644
FRAGMENT_OWNER = "root"
FRAGMENT_GROUP = "root"

# NGINX defaults
DEFAULT_PROXY_READ_TIMEOUT = "90"
DEFAULT_FASTCGI_PARAMS = "/etc/nginx/fastcgi_params"
DEFAULT_INDEX_FILES = ("index.html", "index.htm", "index.php")
DEFAULT_SSL_PROTOCOLS = "TLSv1.2 TLSv1.3"
DEFAULT_SSL_CIPHERS = "HIGH:!aNULL:!MD5"
DEFAULT_RELOAD_COMMAND = ("nginx", "-s", "reload")
DEFAULT_TEST_COMMAND = ("nginx", "-t")

# Audit / logging
LOG_DIR = Path("/var/log/vhostctl")
AUDIT_JSONL_NAME = "audit.jsonl"
AUDIT_DB_NAME = "audit.db"
