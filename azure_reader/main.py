"""
FastAPI application entry point.

The app is the host pipeline for one or more blob readers. Using an
application factory (create_app) because:
- Tests can build apps with their own readers and settings
- Several readers can be mounted under different prefixes
- Initialization order is explicit

For local development:
    AZURE_MOCK_MODE=true uvicorn azure_reader.main:app --reload
"""

import logging
from collections.abc import Sequence
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse

from .api.dependencies import create_reader
from .api.routes import health
from .api.routes.blobs import create_blob_router
from .config.settings import Settings, get_settings
from .core.blobs import BlobReader, PostRewriteEvent, PostRewriteHooks, RedirectSink
from .infrastructure.metrics import CompositeReadMetrics, LoggingReadMetrics, ReadStatistics

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)

# Methods the redirect shortcut may answer. Anything else goes through.
REDIRECTABLE_METHODS = frozenset({"GET", "HEAD"})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Install readers on startup, tear them down on shutdown.

    A ConfigurationError from install propagates and stops startup; the
    app never serves with a reader that can't reach storage. Readers
    installed before the failing one are uninstalled again.
    """
    hooks: PostRewriteHooks = app.state.post_rewrite_hooks
    readers: list[BlobReader] = app.state.readers
    installed: list[BlobReader] = []

    try:
        for reader in readers:
            reader.install(hooks)
            installed.append(reader)

        logger.info(
            "Blob reader API started",
            extra={
                "version": app.version,
                "prefixes": [reader.prefix for reader in installed],
            }
        )

        yield
    finally:
        for reader in installed:
            reader.uninstall(hooks)
            await reader.aclose()

        logger.info("Blob reader API shutting down")


def create_app(
    settings: Optional[Settings] = None,
    readers: Optional[Sequence[BlobReader]] = None,
) -> FastAPI:
    """
    Application factory.

    Without explicit readers, one reader is built from settings. Readers
    are installed by the lifespan handler, not here.
    """
    settings = settings or get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    statistics = ReadStatistics()

    if readers is None:
        metrics = CompositeReadMetrics(LoggingReadMetrics(), statistics)
        readers = [create_reader(settings, metrics=metrics)]

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Serves Azure Blob Storage objects as virtual files.

        `GET {prefix}/{container}/{blob}` returns a blob. Requests without
        processing directives in the query string are redirected straight
        to blob storage when redirects are enabled.
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.readers = list(readers)
    app.state.post_rewrite_hooks = PostRewriteHooks()
    app.state.read_statistics = statistics

    @app.middleware("http")
    async def post_rewrite(request: Request, call_next):
        """
        Fire the post-rewrite hook before the request is served.

        A subscriber that redirects ends the request here.
        """
        if request.method in REDIRECTABLE_METHODS:
            sink = RedirectSink()
            request.app.state.post_rewrite_hooks.fire(PostRewriteEvent(
                virtual_path=request.url.path,
                query=request.query_params,
                response=sink,
            ))
            if sink.redirected:
                return RedirectResponse(sink.location, status_code=302)

        return await call_next(request)

    # Include routers
    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    for reader in readers:
        app.include_router(
            create_blob_router(reader),
            prefix=reader.prefix,
            tags=["Blobs"],
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """
        Catch-all exception handler.

        We log the full error server-side but return a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error. Please contact support if this persists."
            }
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
            "prefixes": [reader.prefix for reader in readers],
        }
    )

    return app


# Create the application instance
# This is what uvicorn imports
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "azure_reader.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
