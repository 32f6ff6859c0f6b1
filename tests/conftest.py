"""Pytest configuration and fixtures for tests."""

import asyncio
import os
import sys
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


ARTIFACT_PATH = "ab/cd/0123456789abcdef/example_pkg-1.0.0-py3-none-any.whl"
ARTIFACT_BYTES = b"PK\x03\x04" + b"wheel-content" * 64


class FakePipeline:
    """Transactional pipeline over FakeRedis."""

    def __init__(self, redis: "FakeRedis"):
        self._redis = redis
        self._ops: list[tuple[Any, ...]] = []

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, *exc_info: Any) -> bool:
        return False

    def delete(self, key: str) -> "FakePipeline":
        self._ops.append(("delete", key))
        return self

    def hset(self, key: str, mapping: dict[str, str]) -> "FakePipeline":
        self._ops.append(("hset", key, dict(mapping)))
        return self

    async def execute(self) -> list[Any]:
        self._redis._check()
        for op in self._ops:
            if op[0] == "delete":
                self._redis.hashes.pop(op[1], None)
            else:
                self._redis.hashes.setdefault(op[1], {}).update(op[2])
        self._redis.set_calls += 1
        return [True] * len(self._ops)


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis (hash commands only)."""

    def __init__(self) -> None:
        self.hashes: dict[str, dict[str, str]] = {}
        self.down = False
        self.get_calls = 0
        self.set_calls = 0

    def _check(self) -> None:
        if self.down:
            raise RedisConnectionError("Connection refused")

    async def hgetall(self, key: str) -> dict[str, str]:
        self.get_calls += 1
        self._check()
        return dict(self.hashes.get(key, {}))

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    async def ping(self) -> bool:
        self._check()
        return True

    async def aclose(self) -> None:
        return None


class GatedFetchClient:
    """Fetch client whose artifact fetch blocks until the gate opens."""

    def __init__(self, content: bytes = ARTIFACT_BYTES, gated: bool = False):
        self.content = content
        self.calls = 0
        self.gate = asyncio.Event()
        if not gated:
            self.gate.set()
        self.fetch_index = AsyncMock(return_value="")

    async def fetch_artifact(self, key: Any) -> bytes:
        self.calls += 1
        await self.gate.wait()
        return self.content


@pytest.fixture
def artifact_path():
    """Test artifact key path."""
    return ARTIFACT_PATH


@pytest.fixture
def artifact_bytes():
    """Test artifact content."""
    return ARTIFACT_BYTES


@pytest.fixture
def fake_redis():
    """In-memory Redis for MetadataStore tests."""
    return FakeRedis()


@pytest.fixture
def metadata_store(fake_redis):
    """MetadataStore backed by FakeRedis."""
    from apps.mirror.storage.metadata_store import MetadataStore

    return MetadataStore(client=fake_redis)


@pytest.fixture
def blob_store(tmp_path):
    """BlobStore rooted in a temporary directory."""
    from apps.mirror.storage.blob_store import BlobStore

    return BlobStore(tmp_path / "cache")


@pytest.fixture
def fetch_client():
    """Ungated fake fetch client returning ARTIFACT_BYTES."""
    return GatedFetchClient()


@pytest.fixture
def gated_fetch_client():
    """Fake fetch client that blocks until its gate is set."""
    return GatedFetchClient(gated=True)


@pytest.fixture
def coordinator(metadata_store, blob_store, fetch_client):
    """Coordinator wired to fakes."""
    from apps.mirror.services.coordinator import CacheAsideCoordinator

    return CacheAsideCoordinator(
        metadata_store=metadata_store,
        blob_store=blob_store,
        fetch_client=fetch_client,
        fetch_timeout=5.0,
    )


@pytest.fixture
def mirror_settings(tmp_path):
    """Settings pointing at a temporary cache dir."""
    from apps.mirror.core.config import MirrorSettings

    return MirrorSettings(
        public_url="http://mirror.test:9000",
        cache_dir=str(tmp_path / "cache"),
        environment="test",
    )


@pytest.fixture
def mock_fetch_client():
    """MagicMock FetchClient with async fetch methods."""
    client = MagicMock()
    client.fetch_index = AsyncMock(return_value="<html></html>")
    client.fetch_artifact = AsyncMock(return_value=ARTIFACT_BYTES)
    return client


# Environment configuration
def pytest_configure(config):
    """Configure pytest environment."""
    config.addinivalue_line("markers", "slow: mark test as slow (may take > 30s)")
    config.addinivalue_line("markers", "integration: mark test as integration test")

    os.environ.setdefault("ENVIRONMENT", "test")
    os.environ.setdefault("MIRROR_CACHE_DIR", str(PROJECT_ROOT / ".pytest_cache" / "mirror"))
