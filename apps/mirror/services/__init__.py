"""Mirror services.

This module provides:
- FetchClient: Upstream index/artifact HTTP client
- IndexRewriter: Simple-index link rewriting
- SingleFlight: Per-key deduplication of in-flight work
- CacheAsideCoordinator: Cache hit/miss orchestration
"""

from .coordinator import CacheAsideCoordinator, CachedArtifact
from .index_rewriter import IndexRewriter, rewrite_index
from .single_flight import SingleFlight
from .upstream import FetchClient

__all__ = [
    "FetchClient",
    "IndexRewriter",
    "rewrite_index",
    "SingleFlight",
    "CacheAsideCoordinator",
    "CachedArtifact",
]
