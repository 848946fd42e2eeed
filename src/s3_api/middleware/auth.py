"""Pre-shared token authentication."""

from __future__ import annotations

import hmac
import logging
from typing import Any, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = logging.getLogger(__name__)

AUTH_HEADER = "x-auth-token"

PUBLIC_PATHS = frozenset(
    {
        "/v1/s3/ping",
        "/v1/s3/version",
        "/v1/s3/metrics",
    }
)


def _unauthorized(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"error": "Unauthorized", "message": message},
    )


class TokenAuthMiddleware(BaseHTTPMiddleware):
    """Compare the ``X-Auth-Token`` header against the configured token.

    Public paths and CORS preflight requests pass through unauthenticated.
    """

    EXEMPT_PATHS = PUBLIC_PATHS

    def __init__(
        self,
        app: Any,
        token: str,
        exempt_paths: tuple[str, ...] = (),
    ) -> None:
        super().__init__(app)
        if not token:
            raise RuntimeError("an auth token is required")
        self._token = token.encode("utf-8")
        self.exempt_paths = self.EXEMPT_PATHS | set(exempt_paths)

    def is_authorized(self, presented: str | None) -> bool:
        if not presented:
            return False
        return hmac.compare_digest(presented.encode("utf-8"), self._token)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method == "OPTIONS" or request.url.path in self.exempt_paths:
            return await call_next(request)

        presented = request.headers.get(AUTH_HEADER)
        if presented is None:
            logger.warning("missing auth token for %s %s", request.method, request.url.path)
            return _unauthorized("X-Auth-Token header required")
        if not self.is_authorized(presented):
            logger.warning("bad auth token for %s %s", request.method, request.url.path)
            return _unauthorized("invalid auth token")

        return await call_next(request)
