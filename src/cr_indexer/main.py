"""
Indexer Service Entry Point

This module defines the FastAPI application instance, registers all routers,
configures logging and global exception handling, and provides a
test-friendly application factory.
"""

from __future__ import annotations

import logging
from fastapi import FastAPI

from .config import settings
from .core.errors import (
    IndexBackendError,
    index_backend_exception_handler,
    unhandled_exception_handler,
)

from .api import (
    health_routes,
    index_routes,
    node_routes,
    workspace_routes,
)


logger = logging.getLogger("cr_indexer.app")


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    configure_logging()

    app = FastAPI(
        title="cr-indexer",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # --------------------------------------------------------------
    # Global Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(IndexBackendError, index_backend_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(node_routes.router)
    app.include_router(workspace_routes.router)
    app.include_router(index_routes.router)

    @app.on_event("startup")
    async def _startup() -> None:
        logger.info(
            "Starting cr-indexer (max_tree_depth=%d, reindex_max_workers=%d)",
            settings.max_tree_depth,
            settings.reindex_max_workers,
        )

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        logger.info("Shutting down cr-indexer")

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn/Gunicorn)
# ---------------------------------------------------------------------

app = create_app()
