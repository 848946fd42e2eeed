"""URL table for the ``/v1/s3`` API."""

from __future__ import annotations

from starlette.routing import Mount, Route

from s3_api.api import buckets, system, users, websites

API_PREFIX = "/v1/s3"


def _user_routes(resource: str) -> list[Route]:
    base = f"/{{account}}/{resource}s/{{{resource}}}/users"
    return [
        Route(base, endpoint=users.user_list, methods=["GET"]),
        Route(base, endpoint=users.user_create, methods=["POST"]),
        Route(f"{base}/{{user}}", endpoint=users.user_show, methods=["GET"]),
        Route(f"{base}/{{user}}", endpoint=users.user_reset_keys, methods=["PUT"]),
        Route(f"{base}/{{user}}", endpoint=users.user_delete, methods=["DELETE"]),
    ]


def build_routes() -> list[Mount]:
    # HEAD must precede GET on the same path; Starlette adds HEAD to GET routes.
    api_routes = [
        Route("/ping", endpoint=system.ping, methods=["GET"]),
        Route("/version", endpoint=system.version, methods=["GET"]),
        Route("/metrics", endpoint=system.metrics, methods=["GET"]),
        Route("/{account}/buckets", endpoint=buckets.bucket_list, methods=["GET"]),
        Route("/{account}/buckets", endpoint=buckets.bucket_create, methods=["POST"]),
        Route("/{account}/buckets/{bucket}", endpoint=buckets.bucket_head, methods=["HEAD"]),
        Route("/{account}/buckets/{bucket}", endpoint=buckets.bucket_show, methods=["GET"]),
        Route("/{account}/buckets/{bucket}", endpoint=buckets.bucket_update, methods=["PUT"]),
        Route("/{account}/buckets/{bucket}", endpoint=buckets.bucket_delete, methods=["DELETE"]),
        *_user_routes("bucket"),
        Route("/{account}/websites", endpoint=websites.website_create, methods=["POST"]),
        Route("/{account}/websites/{website}", endpoint=buckets.bucket_head, methods=["HEAD"]),
        Route("/{account}/websites/{website}", endpoint=websites.website_show, methods=["GET"]),
        Route("/{account}/websites/{website}", endpoint=websites.website_update, methods=["PUT"]),
        Route(
            "/{account}/websites/{website}",
            endpoint=websites.website_partial_update,
            methods=["PATCH"],
        ),
        Route(
            "/{account}/websites/{website}",
            endpoint=websites.website_delete,
            methods=["DELETE"],
        ),
        *_user_routes("website"),
    ]
    return [Mount(API_PREFIX, routes=api_routes)]
