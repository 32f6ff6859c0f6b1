"""Tests for mirror context."""

from unittest.mock import MagicMock

import pytest

from apps.mirror.core.config import MirrorSettings
from apps.mirror.core.context import MirrorContext, get_mirror_context


class TestMirrorContext:
    """Tests for MirrorContext."""

    def test_from_settings_wires_components(self, tmp_path) -> None:
        """Test components are built from one settings object."""
        settings = MirrorSettings(
            upstream_index_url="https://index.test/simple",
            upstream_files_url="https://files.test/packages",
            public_url="http://mirror.test:8080",
            redis_url="redis://localhost:6379/3",
            redis_key_prefix="pypi:",
            cache_dir=str(tmp_path),
            upstream_timeout_seconds=7.0,
            fetch_timeout_seconds=60.0,
        )

        ctx = MirrorContext.from_settings(settings)

        assert ctx.settings is settings
        assert ctx.metadata_store.url == "redis://localhost:6379/3"
        assert ctx.metadata_store.key_prefix == "pypi:"
        assert ctx.blob_store.root == tmp_path
        assert ctx.fetch_client.index_url == "https://index.test/simple"
        assert ctx.fetch_client.timeout == 7.0
        assert ctx.index_rewriter.upstream_base_url == "https://files.test/packages"
        assert ctx.index_rewriter.mirror_base_url == "http://mirror.test:8080/pypi/packages"
        assert ctx.coordinator.metadata_store is ctx.metadata_store
        assert ctx.coordinator.blob_store is ctx.blob_store
        assert ctx.coordinator.fetch_timeout == 60.0

    def test_separate_contexts_share_nothing(self, mirror_settings) -> None:
        """Test two contexts get independent components."""
        ctx1 = MirrorContext.from_settings(mirror_settings)
        ctx2 = MirrorContext.from_settings(mirror_settings)

        assert ctx1.metadata_store is not ctx2.metadata_store
        assert ctx1.coordinator.flights is not ctx2.coordinator.flights

    @pytest.mark.asyncio
    async def test_close_without_connection(self, mirror_settings) -> None:
        """Test closing before any Redis use is a no-op."""
        ctx = MirrorContext.from_settings(mirror_settings)
        await ctx.close()
        assert ctx.metadata_store._client is None


class TestGetMirrorContext:
    """Tests for the request dependency."""

    def test_returns_app_context(self, mirror_settings) -> None:
        """Test the dependency reads app.state.mirror."""
        ctx = MirrorContext.from_settings(mirror_settings)
        request = MagicMock()
        request.app.state.mirror = ctx

        assert get_mirror_context(request) is ctx

    def test_uninitialized_raises(self) -> None:
        """Test a missing context is an error."""
        request = MagicMock()
        request.app.state.mirror = None

        with pytest.raises(RuntimeError, match="not initialized"):
            get_mirror_context(request)
