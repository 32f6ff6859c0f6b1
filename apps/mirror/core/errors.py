"""Error classification for mirror requests.

ErrorCategory determines how a failure is reported:
- RETRYABLE: Temporary failures, the client may retry the same request
- NON_RETRYABLE: Permanent failures, no retry will help
- VALIDATION_FAIL: The client sent an invalid request

Every fallible store or upstream call raises a MirrorError subclass so the
coordinator and the HTTP layer never deal with library exceptions directly.
"""

from enum import Enum

from fastapi import status


class ErrorCategory(str, Enum):
    """Classification of mirror errors."""

    RETRYABLE = "retryable"
    NON_RETRYABLE = "non_retryable"
    VALIDATION_FAIL = "validation_fail"


class MirrorError(Exception):
    """Base exception for mirror operations."""

    category: ErrorCategory = ErrorCategory.NON_RETRYABLE
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.message = message
        self.key = key

    def __repr__(self) -> str:
        cls_name = self.__class__.__name__
        return f"<{cls_name}(key={self.key}, cat={self.category.value}, msg={self.message})>"

    def is_retryable(self) -> bool:
        """Check if the client may retry."""
        return self.category == ErrorCategory.RETRYABLE


class MalformedKey(MirrorError):
    """Client-supplied artifact path failed structural validation."""

    category = ErrorCategory.VALIDATION_FAIL
    http_status = status.HTTP_400_BAD_REQUEST


class UpstreamError(MirrorError):
    """Base class for failures talking to the upstream registry."""

    http_status = status.HTTP_502_BAD_GATEWAY


class UpstreamUnavailable(UpstreamError):
    """Transport failure or timeout reaching upstream."""

    category = ErrorCategory.RETRYABLE


class UpstreamNotFound(UpstreamError):
    """Upstream answered 404/410 for the requested resource."""

    def __init__(self, message: str, key: str | None = None, status_code: int = 404):
        super().__init__(message, key)
        self.status_code = status_code


class UpstreamProtocolError(UpstreamError):
    """Upstream answered with a non-2xx status or a malformed response."""

    def __init__(self, message: str, key: str | None = None, status_code: int | None = None):
        super().__init__(message, key)
        self.status_code = status_code


class CacheUnavailable(MirrorError):
    """Metadata store is unreachable."""

    category = ErrorCategory.RETRYABLE
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE


class StorageFailure(MirrorError):
    """Blob read/write I/O error other than "not found"."""

    category = ErrorCategory.RETRYABLE
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
