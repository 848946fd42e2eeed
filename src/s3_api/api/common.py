"""Helpers shared by the route handlers."""

from __future__ import annotations

import functools
import json
import logging
from typing import Awaitable, Callable, TypeVar

from pydantic import BaseModel, ValidationError
from starlette.requests import Request
from starlette.responses import Response

from s3_api.apierror import ApiError, ErrorKind
from s3_api.gateways.registry import AccountServices

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
Handler = Callable[[Request], Awaitable[Response]]


def get_services(request: Request) -> AccountServices:
    """Resolve the ``{account}`` path parameter to its gateway bundle."""
    account = request.path_params.get("account", "")
    services = request.app.state.services.get(account)
    if services is None:
        raise ApiError(ErrorKind.NOT_FOUND, f"account not found: {account}")
    return services


def path_param(request: Request, *names: str) -> str:
    """Return the first of ``names`` present in the path.

    Bucket and website routes share handlers; the resource is named
    ``{bucket}`` on one and ``{website}`` on the other.
    """
    for name in names:
        value = request.path_params.get(name)
        if value:
            return value
    raise ApiError(ErrorKind.BAD_REQUEST, f"missing path parameter: {names[0]}")


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "body"
        problems.append(f"{location}: {error.get('msg', 'invalid')}")
    return "; ".join(problems)


async def read_json(request: Request, model: type[ModelT]) -> ModelT:
    """Decode the request body into ``model`` or raise BadRequest."""
    body = await request.body()
    try:
        payload = json.loads(body) if body else {}
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ApiError(ErrorKind.BAD_REQUEST, "cannot decode body into json", exc) from exc

    if not isinstance(payload, dict):
        raise ApiError(ErrorKind.BAD_REQUEST, "request body must be a json object")

    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ApiError(
            ErrorKind.BAD_REQUEST,
            f"invalid request: {_format_validation_error(exc)}",
            exc,
        ) from exc


def api_handler(func: Handler) -> Handler:
    """Turn unexpected failures in ``func`` into a logged InternalError.

    ``ApiError`` propagates to the app's exception handler untouched.
    """

    @functools.wraps(func)
    async def wrapper(request: Request) -> Response:
        try:
            return await func(request)
        except ApiError:
            raise
        except Exception as exc:
            logger.exception("unhandled error in %s %s", request.method, request.url.path)
            raise ApiError(ErrorKind.INTERNAL_ERROR, "unknown error occurred", exc) from exc

    return wrapper
