"""
trade_journal.observability.middleware

HTTP middleware for request-scoped logging context and access logs.

Responsibilities:
- Generate/propagate request IDs.
- Bind request metadata (id, path, method, client ip) into structlog contextvars.
- Emit one structured access event per request with status and latency.
"""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from trade_journal.observability.logging import get_logger

log = get_logger(__name__)

_CLIENT_IP_HEADERS = ("x-forwarded-for", "x-real-ip")


def client_ip(request: Request) -> str | None:
    for header in _CLIENT_IP_HEADERS:
        value = request.headers.get(header)
        if value:
            # x-forwarded-for may carry a proxy chain; the first hop is the caller.
            return value.split(",")[0].strip()
    return request.client.host if request.client else None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    - Ensures every request has a request id
    - Binds request-scoped contextvars for structured logs
    - Logs an `http_request` access event
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
            method=request.method,
        )
        started = time.perf_counter()
        status_code = 500
        try:
            response: Response = await call_next(request)
            status_code = response.status_code
        finally:
            log.info(
                "http_request",
                status=status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                client=client_ip(request),
            )
            # Avoid leaking context across requests under async concurrency.
            structlog.contextvars.clear_contextvars()

        response.headers["x-request-id"] = request_id
        return response


# --- Module Notes -----------------------------------------------------------
# `client` is logged for access auditing; audit rows store the same value through
# `services.audit.RequestMeta.from_request`.
