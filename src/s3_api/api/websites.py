"""Website route handlers.

Existence checks reuse the bucket handler; everything else goes through
the website workflows, which also touch the CDN and DNS.
"""

from __future__ import annotations

import logging

from starlette.requests import Request
from starlette.responses import Response

from s3_api.api.common import api_handler, get_services, path_param, read_json
from s3_api.api.responses import ApiJSONResponse
from s3_api.api.schemas import TagsUpdateRequest, WebsiteCreateRequest, WebsitePatchRequest
from s3_api.orchestration import websites

logger = logging.getLogger(__name__)


@api_handler
async def website_create(request: Request) -> Response:
    services = get_services(request)
    body = await read_json(request, WebsiteCreateRequest)
    result = await websites.create_website(
        services,
        body.bucket_input.bucket,
        body.provider_tags(),
        body.website_configuration,
        **body.bucket_input.create_args(),
    )
    return ApiJSONResponse(result)


@api_handler
async def website_show(request: Request) -> Response:
    services = get_services(request)
    website = path_param(request, "website")
    return ApiJSONResponse(await websites.show_website(services, website))


@api_handler
async def website_update(request: Request) -> Response:
    services = get_services(request)
    website = path_param(request, "website")
    body = await read_json(request, TagsUpdateRequest)
    tags = await websites.update_website_tags(services, website, body.provider_tags())
    return ApiJSONResponse({"Tags": tags})


@api_handler
async def website_partial_update(request: Request) -> Response:
    services = get_services(request)
    website = path_param(request, "website")
    body = await read_json(request, WebsitePatchRequest)
    invalidation = await websites.invalidate_website_cache(
        services, website, body.cache_invalidation
    )
    return ApiJSONResponse(invalidation)


@api_handler
async def website_delete(request: Request) -> Response:
    services = get_services(request)
    website = path_param(request, "website")
    result = await websites.delete_website(services, website)
    if result.get("Errors"):
        logger.warning("website %s deleted with cleanup errors: %s", website, result["Errors"])
    return ApiJSONResponse(result)
