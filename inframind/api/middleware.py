"""API middleware: CORS, request logging, and error handling.

Starlette runs middleware as a stack, last added first.  main.py adds
``ErrorHandlingMiddleware`` before ``RequestLoggingMiddleware``, so a
request flows

    Client → RequestLogging → ErrorHandling → route handler

and the logged status code is the one the client finally receives, even
when ErrorHandling replaced an exception with a JSON error body.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from inframind.api.schemas import ErrorResponse
from inframind.utils.errors import InfraMindError
from inframind.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware; all origins are allowed unless *allowed_origins* is given."""
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=response.status_code if response else 500,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn uncaught ``InfraMindError``s into a 500 :class:`ErrorResponse`.

    Only the error class name and message reach the client; the provider
    name and path are logged server-side.  Routes translate the errors
    they expect (unknown job, failed generation) into specific status
    codes before they get here.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except InfraMindError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            body = ErrorResponse(error=type(exc).__name__, detail=exc.message)
            return JSONResponse(status_code=500, content=body.model_dump())
