"""
Indexer Errors and Global Error Handling

This module defines the exception hierarchy shared by the indexing engine,
its backends and configuration loaders, plus the exception handlers that the
HTTP surface registers.

Design Goals
------------
- One root class (`IndexerError`) so callers can catch engine failures
  without catching programming errors
- Backend failures wrap the original exception (`raise ... from exc`)
- Never leak internal exception details to HTTP clients
- Log full stack traces internally for debugging
"""

from __future__ import annotations

import logging
from typing import Dict, Any

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("cr_indexer.errors")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class IndexerError(RuntimeError):
    """Base error for all indexing failures."""


class MalformedTreeError(IndexerError):
    """Raised when an ancestry walk exceeds the configured tree depth."""


class IndexBackendError(IndexerError):
    """Raised when the index storage backend fails to read or write."""


class NodeTypeConfigError(IndexerError):
    """Raised when node type definitions cannot be loaded."""


class DimensionConfigError(IndexerError):
    """Raised when content dimension presets cannot be loaded."""


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def index_backend_exception_handler(
    request: Request,
    exc: IndexBackendError,
) -> JSONResponse:
    """
    Report an unavailable or failing index backend as 502.

    The engine performs no retry; the caller decides whether to resend the
    change notification.
    """
    logger.error(
        "Index backend failure during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    return JSONResponse(
        status_code=502,
        content={
            "error": "index_backend_error",
            "detail": "Index backend unavailable",
        },
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Behavior
    --------
    - Logs the full exception stack trace for internal diagnostics.
    - Returns a generic 500 error to the client with no internal details.

    Parameters
    ----------
    request : Request
        The incoming HTTP request that triggered the exception.

    exc : Exception
        The uncaught exception instance.

    Returns
    -------
    JSONResponse
        A JSON 500 response with a minimal error payload.
    """
    logger.exception(
        "Unhandled indexer exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )
