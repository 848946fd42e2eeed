"""JSON responses that understand SDK values."""

from __future__ import annotations

from typing import Any

from starlette.responses import JSONResponse

from s3_api.apierror import ApiError
from s3_api.utils.serialization import dumps


class ApiJSONResponse(JSONResponse):
    """``JSONResponse`` that serializes datetimes and other SDK values."""

    def render(self, content: Any) -> bytes:
        return dumps(content).encode("utf-8")


def error_response(error: ApiError) -> ApiJSONResponse:
    return ApiJSONResponse(error.to_dict(), status_code=error.status_code)
