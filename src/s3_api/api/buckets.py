"""Bucket route handlers."""

from __future__ import annotations

import logging

from starlette.requests import Request
from starlette.responses import Response

from s3_api.api.common import api_handler, get_services, path_param, read_json
from s3_api.api.responses import ApiJSONResponse
from s3_api.api.schemas import BucketCreateRequest, TagsUpdateRequest
from s3_api.orchestration import buckets

logger = logging.getLogger(__name__)


@api_handler
async def bucket_list(request: Request) -> Response:
    services = get_services(request)
    return ApiJSONResponse(await buckets.list_buckets(services))


@api_handler
async def bucket_create(request: Request) -> Response:
    services = get_services(request)
    body = await read_json(request, BucketCreateRequest)
    result = await buckets.create_bucket(
        services,
        body.bucket_input.bucket,
        body.provider_tags(),
        **body.bucket_input.create_args(),
    )
    return ApiJSONResponse(result)


@api_handler
async def bucket_head(request: Request) -> Response:
    services = get_services(request)
    bucket = path_param(request, "bucket", "website")
    if await buckets.bucket_exists(services, bucket):
        return Response(status_code=200, media_type="application/json")
    return Response(status_code=404)


@api_handler
async def bucket_show(request: Request) -> Response:
    services = get_services(request)
    bucket = path_param(request, "bucket")
    return ApiJSONResponse(await buckets.show_bucket(services, bucket))


@api_handler
async def bucket_update(request: Request) -> Response:
    services = get_services(request)
    bucket = path_param(request, "bucket")
    body = await read_json(request, TagsUpdateRequest)
    tags = await buckets.update_bucket_tags(services, bucket, body.provider_tags())
    return ApiJSONResponse({"Tags": tags})


@api_handler
async def bucket_delete(request: Request) -> Response:
    services = get_services(request)
    bucket = path_param(request, "bucket")
    result = await buckets.delete_bucket(services, bucket)
    if result.get("Errors"):
        logger.warning("bucket %s deleted with cleanup errors: %s", bucket, result["Errors"])
    return ApiJSONResponse(result)
