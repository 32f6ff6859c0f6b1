"""Storage module for cached artifacts.

This module provides:
- ArtifactKey / CacheEntry: Artifact identity and metadata record
- MetadataStore: Redis-backed cache entry store
- BlobStore: Filesystem artifact bytes with atomic writes
"""

from .blob_store import BlobStore
from .metadata_store import MetadataStore
from .schemas import ArtifactKey, CacheEntry, validate_project_name

__all__ = [
    "ArtifactKey",
    "CacheEntry",
    "MetadataStore",
    "BlobStore",
    "validate_project_name",
]
