"""Request audit logging and HTTP metrics."""

from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from s3_api.metrics import HTTP_REQUEST_DURATION, HTTP_REQUESTS_TOTAL

logger = logging.getLogger(__name__)

# Control character pattern for log injection prevention.
_CONTROL_CHAR_RE = re.compile(r"[\x00-\x08\x0a-\x1f\x7f]")

UNMATCHED_ROUTE = "unmatched"


def _sanitize_log_value(value: str) -> str:
    """Replace control characters (newlines, tabs, etc.) to prevent log injection."""
    return _CONTROL_CHAR_RE.sub("_", value)


def route_label(request: Request) -> str:
    """Label metrics by handler name so path parameters don't explode cardinality."""
    endpoint = request.scope.get("endpoint")
    if endpoint is None:
        return UNMATCHED_ROUTE
    return getattr(endpoint, "__name__", UNMATCHED_ROUTE)


def _client_ip(request: Request) -> str:
    if request.client:
        return _sanitize_log_value(request.client.host)
    return "unknown"


class AuditMiddleware(BaseHTTPMiddleware):
    """Log ``REQUEST_START``/``REQUEST_END`` lines and record request metrics.

    The auth token header is never logged.
    """

    EXEMPT_PATHS = frozenset({"/v1/s3/ping", "/v1/s3/metrics"})

    def __init__(self, app: Callable, enabled: bool = True) -> None:
        super().__init__(app)
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.enabled or request.url.path in self.EXEMPT_PATHS:
            return await call_next(request)

        request_id = _sanitize_log_value(request.headers.get("x-request-id", str(uuid.uuid4())))
        start_time = time.perf_counter()
        safe_path = _sanitize_log_value(request.url.path)

        logger.info(
            "REQUEST_START request_id=%s method=%s path=%s client_ip=%s",
            request_id,
            request.method,
            safe_path,
            _client_ip(request),
        )

        error_message: str | None = None
        status_code: int = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Request-Id"] = request_id
            return response

        except Exception as e:
            error_message = _sanitize_log_value(str(e))
            raise

        finally:
            duration = time.perf_counter() - start_time
            route = route_label(request)
            HTTP_REQUESTS_TOTAL.labels(
                method=request.method, route=route, status=str(status_code)
            ).inc()
            HTTP_REQUEST_DURATION.labels(method=request.method, route=route).observe(duration)

            if error_message:
                logger.error(
                    "REQUEST_END request_id=%s method=%s path=%s status=%s duration_ms=%d error=%s",
                    request_id,
                    request.method,
                    safe_path,
                    status_code,
                    int(duration * 1000),
                    error_message,
                )
            else:
                logger.info(
                    "REQUEST_END request_id=%s method=%s path=%s status=%s duration_ms=%d",
                    request_id,
                    request.method,
                    safe_path,
                    status_code,
                    int(duration * 1000),
                )
