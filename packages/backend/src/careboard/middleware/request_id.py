"""Request ID middleware — unique ID per HTTP request for log correlation.

Learn: Every request gets a UUID, either from the incoming X-Request-ID
header or auto-generated. The ID, method and path are bound to structlog's
contextvars, so the hub's notify_* log lines carry the request that
triggered them. WebSocket upgrades pass straight through: a connection is
logged by its connection_id instead.
"""

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Generate and propagate a unique request ID."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        response: Response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
