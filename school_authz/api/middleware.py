"""
Correlation ID middleware.

Propagates or generates X-Request-ID and stores it in the logging
ContextVar, so every authorization log line emitted while handling the
request carries the same correlation_id.
"""

from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from school_authz.logging_config import reset_correlation_id, set_correlation_id


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        token = set_correlation_id(request_id)
        try:
            response = await call_next(request)
        finally:
            reset_correlation_id(token)

        response.headers["X-Request-ID"] = request_id
        return response
