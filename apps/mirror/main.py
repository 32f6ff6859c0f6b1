"""FastAPI application entry point.

PyPI caching mirror with endpoints for:
- Simple index pages (download links rewritten to this mirror)
- Artifact downloads (served from cache, fetched once from upstream)
- Health checks
"""

import logging
import os
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from apps.mirror.constants import REQUEST_ID_HEADER
from apps.mirror.core.config import MirrorSettings
from apps.mirror.core.context import MirrorContext
from apps.mirror.core.errors import MirrorError
from apps.mirror.observability.logger import clear_context, get_request_id, set_context
from apps.mirror.routers import health, pypi

# Configure logging
logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Application Factory
# =============================================================================


def create_app(
    settings: MirrorSettings | None = None,
    context: MirrorContext | None = None,
) -> FastAPI:
    """Create the mirror application.

    Args:
        settings: Configuration (default: read from environment)
        context: Pre-built components; when given, the lifespan neither
            builds nor closes them

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = context.settings if context is not None else MirrorSettings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        logger.info("=" * 60)
        logger.info("PyPI Mirror - Server Starting")
        logger.info("=" * 60)
        logger.info(f"Environment: {settings.environment}")
        logger.info(f"Upstream index: {settings.upstream_index_url}")
        logger.info(f"Upstream files: {settings.upstream_files_url}")
        logger.info(f"Public URL: {settings.public_url}")
        logger.info(f"Cache dir: {os.path.abspath(settings.cache_dir)}")

        owns_context = app.state.mirror is None
        if owns_context:
            app.state.mirror = MirrorContext.from_settings(settings)
            logger.info("Mirror components initialized (MetadataStore, BlobStore, FetchClient)")

        yield

        if owns_context:
            await app.state.mirror.close()
            app.state.mirror = None
            logger.info("Metadata store connections closed")

        logger.info("Mirror shutting down...")

    app = FastAPI(
        title="PyPI Mirror",
        description="Transparent caching mirror for the Python package index",
        version=health.VERSION,
        lifespan=lifespan,
    )
    app.state.mirror = context

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        """Tag logs with the request id and echo it back."""
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())[:8]
        clear_context()
        set_context(request_id=request_id)
        try:
            response = await call_next(request)
        except Exception as exc:
            # ServerErrorMiddleware runs outside this middleware, after the
            # context is cleared.
            response = await global_exception_handler(request, exc)
        finally:
            clear_context()
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    # =========================================================================
    # Error Handlers
    # =========================================================================

    @app.exception_handler(MirrorError)
    async def mirror_error_handler(request: Request, exc: MirrorError) -> JSONResponse:
        """Map typed mirror errors to coarse HTTP status classes."""
        request_id = get_request_id() or request.headers.get(REQUEST_ID_HEADER)
        log = logger.warning if exc.http_status < 500 else logger.error
        log(
            f"{type(exc).__name__} [request_id={request_id}]: {exc.message}",
            extra={"request_id": request_id, "path": request.url.path, "key": exc.key},
        )
        return JSONResponse(
            status_code=exc.http_status,
            content={
                "detail": exc.message,
                "category": exc.category.value,
                "request_id": request_id,
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler with request correlation."""
        request_id = get_request_id() or request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())[:8]

        logger.error(
            f"Unhandled exception [request_id={request_id}]: {exc}",
            exc_info=True,
            extra={
                "request_id": request_id,
                "path": request.url.path,
                "method": request.method,
            },
        )

        if settings.is_development:
            return JSONResponse(
                status_code=500,
                content={
                    "detail": str(exc),
                    "type": type(exc).__name__,
                    "request_id": request_id,
                },
            )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "request_id": request_id,
            },
        )

    app.include_router(health.router)
    app.include_router(pypi.router)

    return app


app = create_app()


# =============================================================================
# Main Entry Point
# =============================================================================


def run() -> None:
    """Run the mirror with uvicorn."""
    import uvicorn

    settings = MirrorSettings.from_env()
    uvicorn.run(
        "apps.mirror.main:app",
        host=settings.host,
        port=settings.port,
        reload=os.getenv("MIRROR_RELOAD", "false").lower() == "true",
    )


if __name__ == "__main__":
    run()
