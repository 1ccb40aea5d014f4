"""InfraMind API layer: routes, schemas, WebSocket, and middleware."""

from inframind.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from inframind.api.routes import router
from inframind.api.schemas import (
    ErrorResponse,
    HealthResponse,
    JobResponse,
    QueryRequest,
    QueryResponse,
)
from inframind.api.websocket import websocket_job_progress

__all__ = [
    "ErrorHandlingMiddleware",
    "ErrorResponse",
    "HealthResponse",
    "JobResponse",
    "QueryRequest",
    "QueryResponse",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "websocket_job_progress",
]
