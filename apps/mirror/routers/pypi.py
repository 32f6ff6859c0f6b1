"""PyPI mirror router.

Handles the simple-index and artifact download endpoints.
"""

import logging

from fastapi import APIRouter, Depends, Response
from fastapi.responses import HTMLResponse

from apps.mirror.constants import (
    CACHE_STATUS_HEADER,
    INDEX_ROUTE_PREFIX,
    PACKAGES_ROUTE_PREFIX,
)
from apps.mirror.core.context import MirrorContext, get_mirror_context
from apps.mirror.storage.schemas import ArtifactKey, validate_project_name

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pypi"])


# =============================================================================
# Endpoints
# =============================================================================


@router.get(INDEX_ROUTE_PREFIX + "/{package_name}", response_class=HTMLResponse)
@router.get(INDEX_ROUTE_PREFIX + "/{package_name}/", response_class=HTMLResponse, include_in_schema=False)
async def get_index(
    package_name: str,
    ctx: MirrorContext = Depends(get_mirror_context),
) -> HTMLResponse:
    """Serve the upstream simple index with download links pointing here."""
    validate_project_name(package_name)
    html = await ctx.fetch_client.fetch_index(package_name)
    return HTMLResponse(content=ctx.index_rewriter.rewrite(html))


@router.get(PACKAGES_ROUTE_PREFIX + "/{seg1}/{seg2}/{seg3}/{filename}")
async def get_package(
    seg1: str,
    seg2: str,
    seg3: str,
    filename: str,
    ctx: MirrorContext = Depends(get_mirror_context),
) -> Response:
    """Serve an artifact from the cache, fetching it from upstream on miss."""
    key = ArtifactKey.from_segments(seg1, seg2, seg3, filename)
    artifact = await ctx.coordinator.get_artifact(key)
    return Response(
        content=artifact.content,
        media_type="application/octet-stream",
        headers={CACHE_STATUS_HEADER: artifact.cache_status},
    )
