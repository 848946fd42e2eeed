"""Bucket user handlers, mounted under both buckets and websites."""

from __future__ import annotations

from starlette.requests import Request
from starlette.responses import Response

from s3_api.api.common import api_handler, get_services, path_param, read_json
from s3_api.api.responses import ApiJSONResponse
from s3_api.api.schemas import UserCreateRequest
from s3_api.orchestration import users

_RESOURCE_PARAMS = ("bucket", "website")


@api_handler
async def user_create(request: Request) -> Response:
    services = get_services(request)
    bucket = path_param(request, *_RESOURCE_PARAMS)
    body = await read_json(request, UserCreateRequest)
    result = await users.create_user(
        services,
        bucket,
        body.user.user_name,
        groups=body.groups,
        path=body.user.path,
    )
    return ApiJSONResponse(result)


@api_handler
async def user_list(request: Request) -> Response:
    services = get_services(request)
    bucket = path_param(request, *_RESOURCE_PARAMS)
    return ApiJSONResponse(await users.list_users(services, bucket))


@api_handler
async def user_show(request: Request) -> Response:
    services = get_services(request)
    bucket = path_param(request, *_RESOURCE_PARAMS)
    user = path_param(request, "user")
    return ApiJSONResponse(await users.show_user(services, bucket, user))


@api_handler
async def user_reset_keys(request: Request) -> Response:
    services = get_services(request)
    bucket = path_param(request, *_RESOURCE_PARAMS)
    user = path_param(request, "user")
    return ApiJSONResponse(await users.reset_user_keys(services, bucket, user))


@api_handler
async def user_delete(request: Request) -> Response:
    services = get_services(request)
    bucket = path_param(request, *_RESOURCE_PARAMS)
    user = path_param(request, "user")
    return ApiJSONResponse(await users.delete_user(services, bucket, user))
