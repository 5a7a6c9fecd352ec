"""Exception handlers: every error leaves the API as ``{"detail": ...}`` JSON."""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from questline.errors import ProgressError

logger = structlog.get_logger()

_INTERNAL_ERROR = "Internal server error"


def _error_response(status_code: int, detail: Any, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail, **extra})


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(ProgressError)
    async def progress_error_handler(_request: Request, exc: ProgressError) -> JSONResponse:
        # Server-side failures never leak their message to the client.
        if exc.status_code >= 500:
            logger.error("progress_error", error=exc.message, error_type=type(exc).__name__)
            return _error_response(500, _INTERNAL_ERROR)

        logger.info("progress_rejected", error=exc.message, error_type=type(exc).__name__)
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error_response(exc.status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(422, "Validation error", errors=exc.errors())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
        """Last resort: log with traceback, answer with a generic 500."""
        logger.error("unhandled_exception", error=str(exc), exc_info=exc)
        return _error_response(500, _INTERNAL_ERROR)
