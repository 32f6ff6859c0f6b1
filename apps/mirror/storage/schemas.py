"""Storage schemas for cached artifacts.

ArtifactKey identifies an artifact on the upstream file host and doubles as
its relative path under the cache root. CacheEntry is the metadata record
that says whether (and where) the artifact is cached.
"""

import re
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from apps.mirror.constants import ARTIFACT_KEY_SEGMENTS
from apps.mirror.core.errors import MalformedKey

FORBIDDEN_SEGMENT_CHARS = re.compile(r"[/\\\0\r\n]")


def _validate_segment(value: str, position: int) -> None:
    """Validate one path segment.

    Raises:
        MalformedKey: If the segment is empty or could escape the cache root
    """
    if not value:
        raise MalformedKey(f"Empty path segment at position {position}")
    if value in (".", ".."):
        raise MalformedKey(f"Invalid path segment at position {position}: {value!r}")
    if FORBIDDEN_SEGMENT_CHARS.search(value):
        raise MalformedKey(f"Invalid path segment at position {position}: contains forbidden character")


def validate_project_name(name: str) -> str:
    """Validate a simple-index project name as a single safe URL segment.

    Raises:
        MalformedKey: If the name is empty, "." or "..", or contains a
            separator or control character
    """
    _validate_segment(name, 0)
    return name


class ArtifactKey(BaseModel):
    """Four-segment upstream path: dir1/dir2/dir3/filename.

    Segments are opaque; only their structure is validated.
    """

    model_config = ConfigDict(frozen=True)

    segments: tuple[str, str, str, str]

    @classmethod
    def from_segments(cls, *segments: str) -> "ArtifactKey":
        """Build a key from individual segments.

        Raises:
            MalformedKey: If the segment count or any segment is invalid
        """
        if len(segments) != ARTIFACT_KEY_SEGMENTS:
            raise MalformedKey(
                f"Expected {ARTIFACT_KEY_SEGMENTS} path segments, got {len(segments)}"
            )
        for position, segment in enumerate(segments):
            _validate_segment(segment, position)
        return cls(segments=tuple(segments))

    @classmethod
    def parse(cls, path: str) -> "ArtifactKey":
        """Parse "dir1/dir2/dir3/filename".

        Raises:
            MalformedKey: If the path does not have exactly four valid segments
        """
        return cls.from_segments(*path.split("/"))

    @property
    def path(self) -> str:
        return "/".join(self.segments)

    @property
    def filename(self) -> str:
        return self.segments[-1]

    def __str__(self) -> str:
        return self.path


class CacheEntry(BaseModel):
    """Metadata record for a cached artifact.

    Stored as a Redis hash: valid ("1"/"0"), path, created_at (ISO-8601).
    Records are replaced wholesale, never partially updated.
    """

    valid: bool = Field(
        default=False,
        description="Soft invalidation flag; False means treat as absent",
    )
    path: str = Field(
        default="",
        description="Relative path under the blob store root",
    )
    created_at: datetime | None = Field(
        default=None,
        description="When the entry was recorded (absent on legacy records)",
    )

    @classmethod
    def for_key(cls, key: ArtifactKey) -> "CacheEntry":
        """Create a valid entry pointing at the key's own path."""
        return cls(valid=True, path=key.path, created_at=datetime.now(timezone.utc))

    @classmethod
    def from_redis_fields(cls, fields: dict[str, str]) -> "CacheEntry | None":
        """Decode a Redis hash, applying defaults for missing fields.

        Returns None for an empty hash (no record).
        """
        if not fields:
            return None

        valid_raw = fields.get("valid", "0")
        created_at = None
        created_raw = fields.get("created_at")
        if created_raw:
            try:
                created_at = datetime.fromisoformat(created_raw)
            except ValueError:
                created_at = None

        return cls(
            valid=valid_raw != "0",
            path=fields.get("path", ""),
            created_at=created_at,
        )

    def to_redis_fields(self) -> dict[str, str]:
        """Encode for HSET."""
        fields = {
            "valid": "1" if self.valid else "0",
            "path": self.path,
        }
        if self.created_at is not None:
            fields["created_at"] = self.created_at.isoformat()
        return fields

    def is_servable(self) -> bool:
        """Check if the entry may be used to serve a cache hit."""
        return self.valid and bool(self.path)
