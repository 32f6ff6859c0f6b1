"""Cache-aside coordinator for artifact requests.

Per request:

    LOOKUP -> HIT                          (valid entry, non-empty blob)
    LOOKUP -> MISS -> FETCH -> STORE -> RECORD

- LOOKUP failures (metadata store down) fail the request; upstream is never
  contacted.
- A valid entry whose blob is missing, empty or unreadable is a dangling
  record and falls through to MISS.
- MISS runs under single-flight per key: concurrent requests share one
  upstream fetch and one blob write.
- STORE must succeed before RECORD; a RECORD failure is logged and the
  fetched bytes are still returned.
"""

import asyncio
import time
from dataclasses import dataclass

from apps.mirror.constants import DEFAULT_FETCH_TIMEOUT_SECONDS
from apps.mirror.core.errors import MirrorError, StorageFailure, UpstreamUnavailable
from apps.mirror.observability.logger import get_logger, set_context
from apps.mirror.storage.blob_store import BlobStore
from apps.mirror.storage.metadata_store import MetadataStore
from apps.mirror.storage.schemas import ArtifactKey, CacheEntry

from .single_flight import SingleFlight
from .upstream import FetchClient

logger = get_logger(__name__)


@dataclass
class CachedArtifact:
    """Artifact bytes plus how they were obtained."""

    key: ArtifactKey
    content: bytes
    hit: bool
    shared: bool = False

    @property
    def cache_status(self) -> str:
        return "HIT" if self.hit else "MISS"


class CacheAsideCoordinator:
    """Serves artifacts from the cache, fetching and persisting on miss."""

    def __init__(
        self,
        metadata_store: MetadataStore,
        blob_store: BlobStore,
        fetch_client: FetchClient,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        flights: SingleFlight | None = None,
    ):
        """Initialize coordinator.

        Args:
            metadata_store: Source of truth for "is it cached"
            blob_store: Source of truth for the bytes
            fetch_client: Upstream client
            fetch_timeout: Total seconds allowed for one upstream fetch
            flights: Single-flight broker (one per event loop)
        """
        self.metadata_store = metadata_store
        self.blob_store = blob_store
        self.fetch_client = fetch_client
        self.fetch_timeout = fetch_timeout
        self.flights = flights or SingleFlight()

    async def get_artifact(self, key: ArtifactKey | str) -> CachedArtifact:
        """Return artifact bytes for a key.

        Raises:
            MalformedKey: If a string key is not a valid four-segment path
            CacheUnavailable: If the metadata store is unreachable
            UpstreamError: If the artifact could not be fetched
            StorageFailure: If fetched bytes could not be stored
        """
        if isinstance(key, str):
            key = ArtifactKey.parse(key)
        set_context(artifact_key=key.path)

        content = await self._lookup(key)
        if content is not None:
            return CachedArtifact(key=key, content=content, hit=True)

        (content, hit), shared = await self.flights.do(key.path, lambda: self._resolve_miss(key))
        return CachedArtifact(key=key, content=content, hit=hit, shared=shared)

    async def _lookup(self, key: ArtifactKey) -> bytes | None:
        """LOOKUP + HIT. Returns None on any kind of miss."""
        entry = await self.metadata_store.get(key)
        if entry is None:
            logger.cache_miss(key.path, "no entry")
            return None
        if not entry.is_servable():
            logger.cache_miss(key.path, "entry not valid")
            return None

        try:
            content = await self.blob_store.read(entry.path)
        except StorageFailure as e:
            logger.dangling_entry(key.path, entry.path, error=str(e))
            return None
        if content is None:
            logger.dangling_entry(key.path, entry.path)
            return None

        logger.cache_hit(key.path, len(content))
        return content

    async def _resolve_miss(self, key: ArtifactKey) -> tuple[bytes, bool]:
        """FETCH -> STORE -> RECORD, run once per key at a time.

        Returns:
            (content, hit): hit is True if a flight that finished just before
            this one had already populated the cache
        """
        content = await self._lookup(key)
        if content is not None:
            return content, True

        content = await self._fetch(key)
        await self.blob_store.write(key.path, content)
        await self._record(key)
        return content, False

    async def _fetch(self, key: ArtifactKey) -> bytes:
        started = time.monotonic()
        try:
            content = await asyncio.wait_for(
                self.fetch_client.fetch_artifact(key),
                timeout=self.fetch_timeout,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamUnavailable(
                f"Upstream fetch exceeded {self.fetch_timeout}s",
                key=key.path,
            ) from e

        latency_ms = int((time.monotonic() - started) * 1000)
        logger.upstream_fetch(key.path, size_bytes=len(content), latency_ms=latency_ms)
        return content

    async def _record(self, key: ArtifactKey) -> None:
        entry = CacheEntry.for_key(key)
        try:
            await self.metadata_store.set(key, entry)
        except MirrorError as e:
            logger.warning(
                f"failed to record cache entry for {key.path}: {e}",
                extra_data={"event": "record_failed", "key": key.path, "error": repr(e)},
            )
            return
        logger.cache_recorded(key.path, entry.path)
