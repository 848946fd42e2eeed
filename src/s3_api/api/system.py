"""Public endpoints: liveness, version and metrics."""

from __future__ import annotations

from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from s3_api.api.responses import ApiJSONResponse
from s3_api.metrics import render_latest


async def ping(request: Request) -> Response:
    return PlainTextResponse("pong")


async def version(request: Request) -> Response:
    info = request.app.state.settings.version
    return ApiJSONResponse(
        {
            "version": info.full_version,
            "githash": info.githash,
            "buildstamp": info.buildstamp,
        }
    )


async def metrics(request: Request) -> Response:
    body, content_type = render_latest()
    return Response(body, media_type=content_type)
