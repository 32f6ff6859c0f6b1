"""Filesystem blob store for artifact bytes.

Path convention: {cache_root}/{dir1}/{dir2}/{dir3}/{filename}

Writes go to a temporary file in the destination directory and are moved
into place with os.replace, so a concurrent reader sees either no file or
the complete file, never a partial one. Blocking file I/O runs in a worker
thread.
"""

import asyncio
import contextlib
import logging
import os
import tempfile
from pathlib import Path

from apps.mirror.core.errors import StorageFailure

logger = logging.getLogger(__name__)

TMP_PREFIX = ".tmp-"


class BlobStore:
    """Artifact bytes persisted under a cache root directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def resolve(self, path: str) -> Path:
        """Resolve a relative path under the cache root.

        Raises:
            StorageFailure: If the path is empty, unrepresentable on this
                filesystem (e.g. embedded NUL) or escapes the root
        """
        if not path:
            raise StorageFailure("Empty blob path")
        if "\0" in path:
            raise StorageFailure(f"Invalid blob path {path!r}: embedded null byte")
        root = self.root.resolve()
        try:
            candidate = root.joinpath(*path.split("/")).resolve(strict=False)
        except (OSError, ValueError) as e:
            raise StorageFailure(f"Invalid blob path {path!r}: {e}") from e
        if candidate == root or root not in candidate.parents:
            logger.warning(f"Blob path escapes cache root: {path[:100]}")
            raise StorageFailure(f"Invalid blob path: {path}")
        return candidate

    async def read(self, path: str) -> bytes | None:
        """Read blob bytes.

        Returns:
            Bytes, or None if the file is missing or empty

        Raises:
            StorageFailure: On I/O errors other than "not found"
        """
        target = self.resolve(path)
        return await asyncio.to_thread(self._read_sync, target)

    async def write(self, path: str, data: bytes) -> None:
        """Atomically write blob bytes, creating parent directories.

        Raises:
            StorageFailure: If the bytes could not be durably written
        """
        target = self.resolve(path)
        await asyncio.to_thread(self._write_sync, target, data)

    async def exists(self, path: str) -> bool:
        """Check that a non-empty blob exists."""
        target = self.resolve(path)
        return await asyncio.to_thread(_is_non_empty_file, target)

    def is_writable(self) -> bool:
        """Check that the cache root exists (creating it) and is writable."""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return os.access(self.root, os.W_OK)

    @staticmethod
    def _read_sync(target: Path) -> bytes | None:
        try:
            data = target.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageFailure(f"Failed to read blob {target}: {e}") from e
        if not data:
            return None
        return data

    @staticmethod
    def _write_sync(target: Path, data: bytes) -> None:
        tmp_path: Path | None = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(target.parent), prefix=f"{TMP_PREFIX}{target.name}."
            )
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, target)
            tmp_path = None
        except OSError as e:
            raise StorageFailure(f"Failed to write blob {target}: {e}") from e
        finally:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    tmp_path.unlink()


def _is_non_empty_file(target: Path) -> bool:
    try:
        return target.is_file() and target.stat().st_size > 0
    except OSError:
        return False
