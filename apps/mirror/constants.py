"""Mirror Constants

Centralized constants for the mirror to avoid duplication and ensure consistency.
"""

# Upstream registry defaults
DEFAULT_UPSTREAM_INDEX_URL = "https://pypi.org/simple"
DEFAULT_UPSTREAM_FILES_URL = "https://files.pythonhosted.org/packages"

# Externally visible address of this mirror
DEFAULT_PUBLIC_URL = "http://localhost:9000"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9000

DEFAULT_REDIS_URL = "redis://127.0.0.1:6379/0"
DEFAULT_CACHE_DIR = "cache"

# httpx per-operation timeout and the coordinator's total fetch budget
DEFAULT_UPSTREAM_TIMEOUT_SECONDS = 30.0
DEFAULT_FETCH_TIMEOUT_SECONDS = 300.0

# Route prefixes
INDEX_ROUTE_PREFIX = "/pypi/web/simple"
PACKAGES_ROUTE_PREFIX = "/pypi/packages"

# dir1/dir2/dir3/filename
ARTIFACT_KEY_SEGMENTS = 4

CACHE_STATUS_HEADER = "X-Cache"
REQUEST_ID_HEADER = "X-Request-ID"

USER_AGENT = "pypi-mirror/0.1.0"
