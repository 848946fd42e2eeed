"""Object storage gateway."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from s3_api.apierror import ApiError, ErrorKind
from s3_api.gateways.base import Gateway
from s3_api.gateways.errors import Service, provider_error_code

logger = logging.getLogger(__name__)

DEFAULT_INDEX_SUFFIX = "index.html"
DEFAULT_ENCRYPTION = {
    "Rules": [{"ApplyServerSideEncryptionByDefault": {"SSEAlgorithm": "AES256"}}]
}

_ABSENT_CODES = frozenset({"404", "NoSuchBucket", "NotFound"})
_FORBIDDEN_CODES = frozenset({"403", "Forbidden"})

ObjectPredicate = Callable[[dict[str, Any]], Awaitable[bool]]


def canonical_log_prefix(bucket: str, prefix: str | None) -> str:
    """Return ``<prefix>/<bucket>/``, or ``<bucket>/`` without a prefix."""
    prefix = (prefix or "").strip("/")
    if prefix:
        return f"{prefix}/{bucket}/"
    return f"{bucket}/"


def _require(name: str, what: str = "bucket name") -> None:
    if not name:
        raise ApiError(ErrorKind.BAD_REQUEST, f"invalid input: empty {what}")


class ObjectGateway(Gateway):
    service = Service.OBJECT

    def __init__(self, client: Any, region: str = "us-east-1") -> None:
        super().__init__(client)
        self.region = region

    async def bucket_exists(self, name: str) -> bool:
        """Return whether the bucket is visible; raise Forbidden when it is not ours."""
        _require(name)
        try:
            await self._call(f"failed to check bucket {name}", "head_bucket", Bucket=name)
        except ApiError as exc:
            code = provider_error_code(exc.cause) if exc.cause is not None else None
            if code in _ABSENT_CODES:
                return False
            if code in _FORBIDDEN_CODES:
                raise ApiError(
                    ErrorKind.FORBIDDEN, f"access to bucket {name} is forbidden", exc.cause
                ) from exc
            raise
        return True

    async def create_bucket(self, name: str, region: str | None = None, **extra: Any) -> str:
        """Create the bucket and return its location.

        ``CreateBucket`` in us-east-1 succeeds silently for a bucket we
        already own, so existence is checked first. A forbidden check means
        another account owns the name.
        """
        _require(name)
        logger.info("creating bucket: %s", name)
        try:
            exists = await self.bucket_exists(name)
        except ApiError as exc:
            if exc.kind is ErrorKind.FORBIDDEN:
                raise ApiError(ErrorKind.CONFLICT, f"bucket {name} exists", exc) from exc
            raise ApiError(
                ErrorKind.INTERNAL_ERROR, f"failed to check for existing bucket {name}", exc
            ) from exc
        if exists:
            raise ApiError(ErrorKind.CONFLICT, f"bucket {name} exists")

        region = region or self.region
        params: dict[str, Any] = {"Bucket": name, **extra}
        if region and region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}
        output = await self._call(f"failed to create bucket {name}", "create_bucket", **params)
        return output.get("Location") or f"/{name}"

    async def delete_empty_bucket(self, name: str) -> None:
        _require(name)
        logger.info("deleting bucket: %s", name)
        await self._call(f"failed to delete bucket {name}", "delete_bucket", Bucket=name)

    async def list_buckets(self) -> list[dict[str, Any]]:
        output = await self._call("failed to list buckets", "list_buckets")
        return [
            {"Name": bucket.get("Name"), "CreationDate": bucket.get("CreationDate")}
            for bucket in output.get("Buckets", [])
        ]

    async def get_bucket_tags(self, name: str) -> list[dict[str, str]]:
        _require(name)
        try:
            output = await self._call(
                f"failed to get tags for bucket {name}", "get_bucket_tagging", Bucket=name
            )
        except ApiError as exc:
            if exc.cause is not None and provider_error_code(exc.cause) == "NoSuchTagSet":
                return []
            raise
        return list(output.get("TagSet", []))

    async def put_bucket_tags(self, name: str, tags: list[dict[str, str]]) -> None:
        _require(name)
        logger.info("tagging bucket %s with %d tags", name, len(tags))
        await self._call(
            f"failed to tag bucket {name}",
            "put_bucket_tagging",
            Bucket=name,
            Tagging={"TagSet": tags},
        )

    async def put_website_config(
        self,
        name: str,
        config: dict[str, Any] | None = None,
    ) -> None:
        """Apply a website configuration, injecting ``index.html`` when no index is given."""
        _require(name)
        website = dict(config or {})
        if not (website.get("IndexDocument") or {}).get("Suffix"):
            logger.debug("index document not set for %s, using %s", name, DEFAULT_INDEX_SUFFIX)
            website["IndexDocument"] = {"Suffix": DEFAULT_INDEX_SUFFIX}
        await self._call(
            f"failed to configure website for bucket {name}",
            "put_bucket_website",
            Bucket=name,
            WebsiteConfiguration=website,
        )

    async def put_bucket_policy(self, name: str, policy: str) -> None:
        _require(name)
        await self._call(
            f"failed to set policy on bucket {name}",
            "put_bucket_policy",
            Bucket=name,
            Policy=policy,
        )

    async def put_bucket_encryption(
        self,
        name: str,
        config: dict[str, Any] | None = None,
    ) -> None:
        _require(name)
        await self._call(
            f"failed to set encryption on bucket {name}",
            "put_bucket_encryption",
            Bucket=name,
            ServerSideEncryptionConfiguration=config or DEFAULT_ENCRYPTION,
        )

    async def put_bucket_logging(
        self,
        name: str,
        log_bucket: str,
        prefix: str | None = None,
    ) -> None:
        _require(name)
        _require(log_bucket, "log bucket name")
        target_prefix = canonical_log_prefix(name, prefix)
        logger.info("enabling access logging for %s to %s/%s", name, log_bucket, target_prefix)
        await self._call(
            f"failed to enable logging for bucket {name}",
            "put_bucket_logging",
            Bucket=name,
            BucketLoggingStatus={
                "LoggingEnabled": {"TargetBucket": log_bucket, "TargetPrefix": target_prefix}
            },
        )

    async def get_bucket_logging(self, name: str) -> dict[str, Any] | None:
        _require(name)
        output = await self._call(
            f"failed to get logging for bucket {name}", "get_bucket_logging", Bucket=name
        )
        return output.get("LoggingEnabled")

    async def bucket_empty(self, name: str, max_keys: int = 1) -> bool:
        _require(name)
        logger.info("checking if bucket %s is empty", name)
        output = await self._call(
            f"failed to list objects in bucket {name}",
            "list_objects_v2",
            Bucket=name,
            MaxKeys=max_keys,
        )
        return int(output.get("KeyCount", 0)) == 0

    async def bucket_empty_with_filter(
        self,
        name: str,
        max_keys: int,
        counts: ObjectPredicate,
    ) -> bool:
        """Return whether no listed object satisfies ``counts``.

        Only the first ``max_keys`` objects are considered, so callers pass
        one more than the number of objects they expect to ignore.
        """
        _require(name)
        output = await self._call(
            f"failed to list objects in bucket {name}",
            "list_objects_v2",
            Bucket=name,
            MaxKeys=max_keys,
        )
        for item in output.get("Contents", []):
            if await counts(item):
                return False
        return True

    async def put_object(
        self,
        name: str,
        key: str,
        body: bytes | str,
        **extra: Any,
    ) -> dict[str, Any]:
        _require(name)
        _require(key, "object key")
        if isinstance(body, str):
            body = body.encode("utf-8")
        return await self._call(
            f"failed to create object {key} in bucket {name}",
            "put_object",
            Bucket=name,
            Key=key,
            Body=body,
            **extra,
        )

    async def delete_object(self, name: str, key: str) -> None:
        _require(name)
        _require(key, "object key")
        await self._call(
            f"failed to delete object {key} from bucket {name}",
            "delete_object",
            Bucket=name,
            Key=key,
        )

    async def get_object_tagging(self, name: str, key: str) -> list[dict[str, str]]:
        _require(name)
        _require(key, "object key")
        output = await self._call(
            f"failed to get tags for object {key} in bucket {name}",
            "get_object_tagging",
            Bucket=name,
            Key=key,
        )
        return list(output.get("TagSet", []))

    async def put_public_access_block(self, name: str, block_public_policy: bool = False) -> None:
        _require(name)
        await self._call(
            f"failed to set public access block on bucket {name}",
            "put_public_access_block",
            Bucket=name,
            PublicAccessBlockConfiguration={"BlockPublicPolicy": block_public_policy},
        )
