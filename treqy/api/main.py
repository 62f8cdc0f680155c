"""
FastAPI application factory.

Creates and configures the main application instance.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from treqy.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from treqy.api.middleware.error_handler import setup_exception_handlers
from treqy.api.routes import catalog_router, health_router, submissions_router
from treqy.config import configure_logging, get_logger, get_settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan handler.

    Applies migrations and opens the connection pool on startup, closes
    the pool on shutdown.
    """
    configure_logging()
    settings = get_settings()

    logger.info(
        "application_starting",
        host=settings.api.host,
        port=settings.api.port,
        debug=settings.api.debug,
    )

    from treqy.infrastructure.storage.sqlite import close_pool, get_pool
    from treqy.infrastructure.storage.sqlite.migrations import run_migrations

    results = await run_migrations()
    failed = [r for r in results if not r.success]
    if failed:
        logger.error("database_init_failed", versions=[r.version for r in failed])
        raise RuntimeError(f"Migration v{failed[0].version} failed: {failed[0].error}")
    logger.info("database_initialized", applied=len(results))

    await get_pool()
    logger.info("connection_pool_ready")

    if not settings.llm.api_key:
        logger.warning("extraction_api_key_missing")

    logger.info("application_started")

    yield

    logger.info("application_stopping")
    await close_pool()
    logger.info("application_stopped")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Material extraction from architectural finish schedules",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Add middleware
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LoggingMiddleware)

    # CORS
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    setup_exception_handlers(app)

    # Register routers
    app.include_router(health_router)
    app.include_router(submissions_router)
    app.include_router(catalog_router)

    # Stored documents are served read-only under their public URLs
    public_base = settings.storage.public_base_url.rstrip("/")
    if public_base.startswith("/"):
        objects_dir = settings.storage.objects_dir
        objects_dir.mkdir(parents=True, exist_ok=True)
        app.mount(public_base, StaticFiles(directory=str(objects_dir)), name="files")

    @app.get("/health")
    async def root_health() -> dict[str, str]:
        """Simple health check at root level."""
        return {
            "status": "healthy",
            "version": settings.app_version,
        }

    return app


# Create app instance
app = create_app()


def run() -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "treqy.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )


if __name__ == "__main__":
    run()
