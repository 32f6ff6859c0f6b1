"""Upstream registry client.

Performs a single GET per call against the upstream index host
(https://pypi.org/simple) or file host (https://files.pythonhosted.org/packages).
No retries: every failure is raised as a typed UpstreamError.
"""

import logging

import httpx

from apps.mirror.constants import (
    DEFAULT_UPSTREAM_FILES_URL,
    DEFAULT_UPSTREAM_INDEX_URL,
    DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
    USER_AGENT,
)
from apps.mirror.core.errors import (
    UpstreamNotFound,
    UpstreamProtocolError,
    UpstreamUnavailable,
)
from apps.mirror.storage.schemas import ArtifactKey

logger = logging.getLogger(__name__)

NOT_FOUND_STATUSES = frozenset([404, 410])


class FetchClient:
    """HTTP GET client for upstream index pages and artifacts."""

    def __init__(
        self,
        index_url: str = DEFAULT_UPSTREAM_INDEX_URL,
        files_url: str = DEFAULT_UPSTREAM_FILES_URL,
        timeout: float = DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
    ):
        """Initialize the client.

        Args:
            index_url: Base URL of the simple index
            files_url: Base URL of the artifact file host
            timeout: httpx timeout applied to connect/read/write/pool
        """
        self.index_url = index_url.rstrip("/")
        self.files_url = files_url.rstrip("/")
        self.timeout = timeout

    def _get_headers(self) -> dict[str, str]:
        return {"User-Agent": USER_AGENT}

    def index_url_for(self, package_name: str) -> str:
        return f"{self.index_url}/{package_name}/"

    def artifact_url_for(self, key: ArtifactKey) -> str:
        return f"{self.files_url}/{key.path}"

    async def _get(self, url: str, key: str) -> httpx.Response:
        """GET a URL, mapping transport failures and non-2xx statuses.

        Raises:
            UpstreamUnavailable: Transport error or timeout
            UpstreamNotFound: 404/410
            UpstreamProtocolError: Any other non-2xx
        """
        logger.info(f"GET {url}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(url, headers=self._get_headers())
        except httpx.TimeoutException as e:
            raise UpstreamUnavailable(f"Upstream timed out: {url}", key=key) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"Upstream unreachable: {url} ({e})", key=key) from e

        if response.status_code in NOT_FOUND_STATUSES:
            raise UpstreamNotFound(
                f"Upstream has no resource at {url}",
                key=key,
                status_code=response.status_code,
            )
        if not 200 <= response.status_code < 300:
            raise UpstreamProtocolError(
                f"Upstream returned {response.status_code} for {url}",
                key=key,
                status_code=response.status_code,
            )
        return response

    async def fetch_index(self, package_name: str) -> str:
        """Fetch the simple-index HTML for a package.

        Raises:
            UpstreamError: See _get()
        """
        response = await self._get(self.index_url_for(package_name), key=package_name)
        return response.text

    async def fetch_artifact(self, key: ArtifactKey) -> bytes:
        """Fetch artifact bytes.

        The response must declare a Content-Length and, unless the body was
        content-encoded, the received body must match it.

        Raises:
            UpstreamError: See _get()
            UpstreamProtocolError: Missing Content-Length or truncated body
        """
        url = self.artifact_url_for(key)
        response = await self._get(url, key=key.path)

        content_length = response.headers.get("content-length")
        if content_length is None:
            raise UpstreamProtocolError(f"Upstream response has no Content-Length: {url}", key=key.path)
        try:
            expected = int(content_length)
        except ValueError as e:
            raise UpstreamProtocolError(
                f"Upstream response has invalid Content-Length {content_length!r}: {url}",
                key=key.path,
            ) from e

        content = response.content
        encoding = response.headers.get("content-encoding", "identity").lower()
        if encoding == "identity" and len(content) != expected:
            raise UpstreamProtocolError(
                f"Truncated upstream body for {url}: expected {expected} bytes, got {len(content)}",
                key=key.path,
            )

        logger.info(f"fetched {url} ({len(content)} bytes)")
        return content
