"""SDK client factory and the shared call path used by every gateway."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from s3_api.apierror import ApiError
from s3_api.config import Account
from s3_api.gateways.errors import Service, classify
from s3_api.utils.serialization import strip_response_metadata

logger = logging.getLogger(__name__)

ClientCacheKey = tuple[str, ...]

_CLIENT_CACHE: OrderedDict[ClientCacheKey, tuple[object, float]] = OrderedDict()
_CLIENT_CACHE_LOCK = threading.Lock()
_CLIENT_TTL_SECONDS = 3600
_CLIENT_CACHE_MAX_SIZE = 64

SDK_TIMEOUT_SECONDS = 15
SDK_MAX_ATTEMPTS = 3

# Global services sign against us-east-1.
_GLOBAL_SERVICES = frozenset({Service.IDENTITY.value, Service.CDN.value, Service.DNS.value})


def _get_cached_client(
    key: ClientCacheKey,
    build_client: Callable[[], object],
) -> object:
    now = time.monotonic()
    with _CLIENT_CACHE_LOCK:
        cached = _CLIENT_CACHE.get(key)
        if cached is not None:
            client, created_at = cached
            if now - created_at < _CLIENT_TTL_SECONDS:
                _CLIENT_CACHE.move_to_end(key)
                return client
            del _CLIENT_CACHE[key]
        client = build_client()
        _CLIENT_CACHE[key] = (client, now)
        while len(_CLIENT_CACHE) > _CLIENT_CACHE_MAX_SIZE:
            _CLIENT_CACHE.popitem(last=False)
        return client


def clear_client_cache() -> None:
    with _CLIENT_CACHE_LOCK:
        _CLIENT_CACHE.clear()


def _credential_fingerprint(access_key_id: str, secret_access_key: str) -> str:
    material = "\x1f".join((access_key_id, secret_access_key))
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def _client_cache_key(account_name: str, service: str, account: Account) -> ClientCacheKey:
    return (
        account_name,
        service,
        account.region,
        account.endpoint or "",
        _credential_fingerprint(account.akid, account.secret),
    )


def _get_service_config(service: str) -> Config:
    base: dict[str, object] = {
        "read_timeout": SDK_TIMEOUT_SECONDS,
        "connect_timeout": SDK_TIMEOUT_SECONDS,
        "retries": {"max_attempts": SDK_MAX_ATTEMPTS, "mode": "standard"},
    }
    if service == Service.OBJECT.value:
        base["request_checksum_calculation"] = "when_required"
        base["response_checksum_validation"] = "when_required"
    return Config(**base)


def _create_client(service: str, account: Account):
    session = boto3.Session(
        aws_access_key_id=account.akid or None,
        aws_secret_access_key=account.secret or None,
        region_name=account.region,
    )
    kwargs: dict[str, Any] = {"config": _get_service_config(service)}
    if account.endpoint:
        kwargs["endpoint_url"] = account.endpoint
    elif service in _GLOBAL_SERVICES:
        kwargs["region_name"] = "us-east-1"
    return session.client(service, **kwargs)


def get_client(account_name: str, service: Service | str, account: Account):
    """Return a cached SDK client for ``service`` bound to ``account``."""
    service_name = service.value if isinstance(service, Service) else service
    key = _client_cache_key(account_name, service_name, account)
    return _get_cached_client(key, lambda: _create_client(service_name, account))


class Gateway:
    """Base class for the per-service adapters.

    Subclasses set ``service``; every SDK call goes through :meth:`_call`,
    which runs the blocking client method on a worker thread and turns
    provider failures into :class:`ApiError`.
    """

    service: Service

    def __init__(self, client: Any, *, cdn_not_found_as_bad_request: bool = True) -> None:
        self.client = client
        self.cdn_not_found_as_bad_request = cdn_not_found_as_bad_request

    def _classify(self, context: str, exc: BaseException) -> ApiError:
        return classify(
            self.service,
            context,
            exc,
            cdn_not_found_as_bad_request=self.cdn_not_found_as_bad_request,
        )

    async def _call(self, context: str, method_name: str, **kwargs: Any) -> dict[str, Any]:
        method = getattr(self.client, method_name)
        try:
            response = await asyncio.to_thread(method, **kwargs)
        except (ClientError, BotoCoreError) as exc:
            logger.debug("%s %s failed: %s", self.service.value, method_name, exc)
            raise self._classify(context, exc) from exc
        if isinstance(response, dict):
            return strip_response_metadata(response)
        return {"result": response}

    async def _paginate(
        self,
        context: str,
        method_name: str,
        result_key: str,
        **kwargs: Any,
    ) -> list[Any]:
        def _collect() -> list[Any]:
            paginator = self.client.get_paginator(method_name)
            items: list[Any] = []
            for page in paginator.paginate(**kwargs):
                items.extend(page.get(result_key, []))
            return items

        try:
            return await asyncio.to_thread(_collect)
        except (ClientError, BotoCoreError) as exc:
            logger.debug("%s %s pagination failed: %s", self.service.value, method_name, exc)
            raise self._classify(context, exc) from exc
