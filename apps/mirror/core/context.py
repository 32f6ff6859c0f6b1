"""Mirror context.

MirrorContext bundles the settings and the components built from them. One
instance is created per application and handed to request handlers
explicitly; there is no process-wide client.
"""

from dataclasses import dataclass

from fastapi import Request

from apps.mirror.services.coordinator import CacheAsideCoordinator
from apps.mirror.services.index_rewriter import IndexRewriter
from apps.mirror.services.upstream import FetchClient
from apps.mirror.storage.blob_store import BlobStore
from apps.mirror.storage.metadata_store import MetadataStore

from .config import MirrorSettings


@dataclass
class MirrorContext:
    """Runtime components shared by request handlers."""

    settings: MirrorSettings
    metadata_store: MetadataStore
    blob_store: BlobStore
    fetch_client: FetchClient
    index_rewriter: IndexRewriter
    coordinator: CacheAsideCoordinator

    @classmethod
    def from_settings(cls, settings: MirrorSettings) -> "MirrorContext":
        """Build all components from settings."""
        metadata_store = MetadataStore(
            url=settings.redis_url,
            key_prefix=settings.redis_key_prefix,
        )
        blob_store = BlobStore(settings.cache_dir)
        fetch_client = FetchClient(
            index_url=settings.upstream_index_url,
            files_url=settings.upstream_files_url,
            timeout=settings.upstream_timeout_seconds,
        )
        index_rewriter = IndexRewriter(
            mirror_base_url=settings.mirror_files_url,
            upstream_base_url=settings.upstream_files_url,
        )
        coordinator = CacheAsideCoordinator(
            metadata_store=metadata_store,
            blob_store=blob_store,
            fetch_client=fetch_client,
            fetch_timeout=settings.fetch_timeout_seconds,
        )
        return cls(
            settings=settings,
            metadata_store=metadata_store,
            blob_store=blob_store,
            fetch_client=fetch_client,
            index_rewriter=index_rewriter,
            coordinator=coordinator,
        )

    async def close(self) -> None:
        await self.metadata_store.close()


def get_mirror_context(request: Request) -> MirrorContext:
    """FastAPI dependency returning the application's MirrorContext."""
    context = getattr(request.app.state, "mirror", None)
    if context is None:
        raise RuntimeError("MirrorContext not initialized")
    return context
