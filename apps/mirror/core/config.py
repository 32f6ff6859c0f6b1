"""Mirror configuration.

MirrorSettings is read once from the environment at startup and passed
explicitly to every component that needs it.
"""

import os
from dataclasses import asdict, dataclass
from typing import Any

from apps.mirror.constants import (
    DEFAULT_CACHE_DIR,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_PUBLIC_URL,
    DEFAULT_REDIS_URL,
    DEFAULT_UPSTREAM_FILES_URL,
    DEFAULT_UPSTREAM_INDEX_URL,
    DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
    PACKAGES_ROUTE_PREFIX,
)


def _positive_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _port(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
    if not 0 < value < 65536:
        raise ValueError(f"{name} out of range: {value}")
    return value


@dataclass(frozen=True)
class MirrorSettings:
    """Runtime configuration for the mirror."""

    upstream_index_url: str = DEFAULT_UPSTREAM_INDEX_URL
    upstream_files_url: str = DEFAULT_UPSTREAM_FILES_URL
    public_url: str = DEFAULT_PUBLIC_URL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    redis_url: str = DEFAULT_REDIS_URL
    redis_key_prefix: str = ""
    cache_dir: str = DEFAULT_CACHE_DIR
    upstream_timeout_seconds: float = DEFAULT_UPSTREAM_TIMEOUT_SECONDS
    fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    environment: str = "development"

    @property
    def mirror_files_url(self) -> str:
        """Base URL that replaces the upstream file host in index pages."""
        return f"{self.public_url.rstrip('/')}{PACKAGES_ROUTE_PREFIX}"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls) -> "MirrorSettings":
        """Build settings from MIRROR_* environment variables.

        Raises:
            ValueError: If a numeric variable is not a valid value
        """
        return cls(
            upstream_index_url=os.getenv("MIRROR_UPSTREAM_INDEX_URL", DEFAULT_UPSTREAM_INDEX_URL).rstrip("/"),
            upstream_files_url=os.getenv("MIRROR_UPSTREAM_FILES_URL", DEFAULT_UPSTREAM_FILES_URL).rstrip("/"),
            public_url=os.getenv("MIRROR_PUBLIC_URL", DEFAULT_PUBLIC_URL).rstrip("/"),
            host=os.getenv("MIRROR_HOST", DEFAULT_HOST),
            port=_port("MIRROR_PORT", DEFAULT_PORT),
            redis_url=os.getenv("MIRROR_REDIS_URL", DEFAULT_REDIS_URL),
            redis_key_prefix=os.getenv("MIRROR_REDIS_KEY_PREFIX", ""),
            cache_dir=os.getenv("MIRROR_CACHE_DIR", DEFAULT_CACHE_DIR),
            upstream_timeout_seconds=_positive_float(
                "MIRROR_UPSTREAM_TIMEOUT_SECONDS", DEFAULT_UPSTREAM_TIMEOUT_SECONDS
            ),
            fetch_timeout_seconds=_positive_float(
                "MIRROR_FETCH_TIMEOUT_SECONDS", DEFAULT_FETCH_TIMEOUT_SECONDS
            ),
            environment=os.getenv("ENVIRONMENT", "development"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for startup logging."""
        return asdict(self)
