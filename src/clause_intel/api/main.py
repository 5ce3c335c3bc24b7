"""
FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clause_intel import __version__
from clause_intel.config import get_settings
from clause_intel.storage.sql import get_corpus_store

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    logger.info("application_starting")

    settings = get_settings()
    logger.info(
        "configuration_loaded",
        environment=settings.environment,
        debug=settings.debug,
    )

    yield

    # Shutdown
    logger.info("application_shutting_down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Clause Intel API",
        description="Clustering, outlier detection and insights over agreement clause embeddings",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if settings.debug else None,
            },
        )

    # Include routers
    from clause_intel.api.routes import analysis, corpus, search

    app.include_router(analysis.router, prefix="/api/v1/analysis", tags=["analysis"])
    app.include_router(corpus.router, prefix="/api/v1/corpus", tags=["corpus"])
    app.include_router(search.router, prefix="/api/v1/search", tags=["search"])

    # Health check
    @app.get("/health")
    def health_check() -> dict:
        """Health check endpoint."""
        database_status = get_corpus_store().health_check()

        return {
            "status": "healthy" if database_status else "degraded",
            "services": {
                "database": database_status,
            },
        }

    # Root endpoint
    @app.get("/")
    def root() -> dict:
        """Root endpoint."""
        return {
            "name": "Clause Intel API",
            "version": __version__,
            "docs": "/docs",
        }

    return app


# Create default app instance
app = create_app()
