"""
Prometheus metrics middleware for HTTP request tracking.

Records request duration, status codes and in-progress requests through
the prometheus_metrics module.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..monitoring.prometheus_metrics import prometheus_metrics


def _endpoint_label(raw_path: str) -> str:
    """Collapse ULIDs and numeric ids so the endpoint label stays low-cardinality."""
    segments = []
    for segment in raw_path.split("/"):
        if segment.isdigit() or (len(segment) == 26 and segment.isalnum() and segment.isupper()):
            segments.append(":id")
        elif segment.startswith("session_"):
            segments.append(":session_id")
        else:
            segments.append(segment)
    return "/".join(segments)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for HTTP requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Skip the scrape endpoint itself
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        path = _endpoint_label(request.url.path)

        prometheus_metrics.track_http_request_start(method, path)
        start_time = time.time()

        try:
            response = await call_next(request)
            duration = time.time() - start_time

            prometheus_metrics.record_http_request(
                method=method, endpoint=path, duration=duration, status_code=response.status_code
            )

            return response

        finally:
            prometheus_metrics.track_http_request_end(method, path)
