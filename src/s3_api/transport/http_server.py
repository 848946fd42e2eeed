"""Starlette HTTP server assembly."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import Response

from s3_api.api.responses import error_response
from s3_api.api.routes import build_routes
from s3_api.apierror import ApiError
from s3_api.config import Settings, load_settings
from s3_api.gateways.base import clear_client_cache
from s3_api.gateways.registry import AccountServices, build_service_registry
from s3_api.middleware import AuditMiddleware, RequestDeadlineMiddleware, TokenAuthMiddleware
from s3_api.orchestration.cleaner import build_cleaners

logger = logging.getLogger(__name__)


async def api_error_handler(request: Request, exc: Any) -> Response:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return error_response(exc)


def create_http_app(
    settings: Settings | None = None,
    services: dict[str, AccountServices] | None = None,
) -> Starlette:
    """Create the API application.

    ``services`` defaults to gateways built from ``settings``; tests pass
    their own bundles.
    """
    if settings is None:
        settings = load_settings()
    if services is None:
        services = build_service_registry(settings)

    # Order: Audit -> TokenAuth -> Deadline, with CORS outermost so that
    # preflight requests get CORS headers before auth can reject them.
    middleware: list[Middleware] = [
        Middleware(AuditMiddleware),
        Middleware(TokenAuthMiddleware, token=settings.token),
        Middleware(RequestDeadlineMiddleware, timeout_seconds=settings.request_timeout_seconds),
    ]
    if settings.cors_allowed_origins:
        middleware.insert(
            0,
            Middleware(
                CORSMiddleware,
                allow_origins=list(settings.cors_allowed_origins),
                allow_methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
                allow_headers=["Content-Type", "Accept", "X-Auth-Token"],
            ),
        )

    cleaners = build_cleaners(services)

    @asynccontextmanager
    async def lifespan(app: Starlette):
        logger.info(
            "starting s3-api version %s (%s) with %d account(s)",
            settings.version.full_version,
            settings.version.githash or "unknown",
            len(services),
        )
        for cleaner in cleaners:
            cleaner.start()
        try:
            yield
        finally:
            logger.info("stopping s3-api...")
            for cleaner in cleaners:
                await cleaner.stop()
            clear_client_cache()

    app = Starlette(
        routes=build_routes(),
        middleware=middleware,
        exception_handlers={ApiError: api_error_handler},
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.services = services
    return app
