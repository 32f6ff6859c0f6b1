"""Redis-backed metadata store for cache entries.

One Redis hash per artifact key:

    HGETALL <prefix><dir1/dir2/dir3/filename>
    -> {"valid": "1", "path": "dir1/dir2/dir3/filename", "created_at": "..."}

A down store is never treated as a cache miss: every Redis failure is
raised as CacheUnavailable so the request fails instead of hammering the
upstream registry.
"""

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from apps.mirror.core.errors import CacheUnavailable

from .schemas import ArtifactKey, CacheEntry

logger = logging.getLogger(__name__)


class MetadataStore:
    """Cache entry lookups and writes against Redis."""

    def __init__(
        self,
        url: str | None = None,
        key_prefix: str = "",
        client: redis.Redis | None = None,
    ):
        """Initialize the store.

        Args:
            url: Redis connection URL, e.g. redis://127.0.0.1:6379/0
            key_prefix: Prefix for every key (empty keeps keys verbatim)
            client: Pre-built client (tests, shared pools)
        """
        if client is None and url is None:
            raise ValueError("Either url or client is required")
        self.url = url
        self.key_prefix = key_prefix
        self._client = client

    @property
    def client(self) -> redis.Redis:
        """Lazy initialization of the Redis client."""
        if self._client is None:
            self._client = redis.Redis.from_url(self.url, decode_responses=True)
        return self._client

    def _redis_key(self, key: ArtifactKey | str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: ArtifactKey | str) -> CacheEntry | None:
        """Read the cache entry for a key.

        Returns:
            CacheEntry, or None if no record exists

        Raises:
            CacheUnavailable: If Redis cannot be reached
        """
        redis_key = self._redis_key(key)
        try:
            fields = await self.client.hgetall(redis_key)
        except RedisError as e:
            raise CacheUnavailable(f"Metadata store unavailable: {e}", key=str(key)) from e

        entry = CacheEntry.from_redis_fields(_decode_fields(fields))
        logger.debug(f"[HGETALL] {redis_key} -> {entry}")
        return entry

    async def set(self, key: ArtifactKey | str, entry: CacheEntry) -> None:
        """Replace the cache entry for a key.

        The old hash is deleted in the same transaction so fields from a
        previous record never leak into the new one.

        Raises:
            CacheUnavailable: If Redis cannot be reached
        """
        redis_key = self._redis_key(key)
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.delete(redis_key)
                pipe.hset(redis_key, mapping=entry.to_redis_fields())
                await pipe.execute()
        except RedisError as e:
            raise CacheUnavailable(f"Metadata store unavailable: {e}", key=str(key)) from e

        logger.debug(f"[HSET] {redis_key} -> {entry}")

    async def ping(self) -> bool:
        """Check connectivity; never raises."""
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.warning(f"Metadata store ping failed: {e}")
            return False

    async def close(self) -> None:
        """Release the connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _decode_fields(fields: dict) -> dict[str, str]:
    """Normalize a hash to str keys/values (clients without decode_responses)."""
    decoded: dict[str, str] = {}
    for name, value in fields.items():
        if isinstance(name, bytes):
            name = name.decode("utf-8", errors="replace")
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        decoded[name] = value
    return decoded
