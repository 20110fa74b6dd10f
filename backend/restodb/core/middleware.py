"""Request middleware."""

import logging
import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from restodb.core.metrics import metrics

logger = logging.getLogger(__name__)

_NUMERIC_SEGMENT = re.compile(r"/\d+(?=/|$)")
_ENTITY_SEGMENT = re.compile(r"^/data-entry/[^/]+")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add request ID to request state and response headers."""

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Collect HTTP request metrics for Prometheus."""

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        # Skip metrics endpoint itself
        if request.url.path in ("/api/metrics", "/metrics"):
            return await call_next(request)

        start_time = time.time()
        method = request.method
        endpoint = normalize_endpoint(request.url.path)
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            duration = time.time() - start_time
            metrics.record_http_request(method, endpoint, status_code, duration)

        return response


def normalize_endpoint(path: str) -> str:
    """Collapse a request path into a low-cardinality metrics label."""
    if path.startswith("/api/"):
        path = path[4:]
    path = _ENTITY_SEGMENT.sub("/data-entry/{entity}", path)
    # /connections/7/tables -> /connections/{id}/tables
    return _NUMERIC_SEGMENT.sub("/{id}", path)
