"""Core contract module for the mirror.

This module provides:
- MirrorSettings: Environment-driven configuration
- Error classification: ErrorCategory and the MirrorError hierarchy

MirrorContext lives in .context and is imported from there directly, since
it depends on the storage and service layers.
"""

from .config import MirrorSettings
from .errors import (
    CacheUnavailable,
    ErrorCategory,
    MalformedKey,
    MirrorError,
    StorageFailure,
    UpstreamError,
    UpstreamNotFound,
    UpstreamProtocolError,
    UpstreamUnavailable,
)

__all__ = [
    "MirrorSettings",
    "ErrorCategory",
    "MirrorError",
    "MalformedKey",
    "UpstreamError",
    "UpstreamUnavailable",
    "UpstreamNotFound",
    "UpstreamProtocolError",
    "CacheUnavailable",
    "StorageFailure",
]
