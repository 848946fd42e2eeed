"""JSON serialization utilities."""

from __future__ import annotations

import base64
import datetime
import decimal
import json
from typing import Any


def json_default(obj: object) -> object:
    """JSON serializer for SDK values not serializable by default json code."""
    if isinstance(obj, (datetime.date, datetime.datetime)):
        return obj.isoformat()
    if isinstance(obj, decimal.Decimal):
        if obj == obj.to_integral_value():
            return int(obj)
        return float(obj)
    if isinstance(obj, bytes):
        try:
            return obj.decode("utf-8")
        except UnicodeDecodeError:
            return base64.b64encode(obj).decode("utf-8")
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    return str(obj)


def dumps(content: Any) -> str:
    return json.dumps(content, default=json_default, ensure_ascii=False, separators=(",", ":"))


def strip_response_metadata(response: dict[str, Any]) -> dict[str, Any]:
    """Drop the SDK's transport bookkeeping from an API response."""
    return {key: value for key, value in response.items() if key != "ResponseMetadata"}
