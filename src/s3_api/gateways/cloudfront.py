"""Content distribution gateway."""

from __future__ import annotations

import inspect
import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import Any, Union

from s3_api.apierror import ApiError, ErrorKind
from s3_api.config import Domain
from s3_api.gateways.base import Gateway
from s3_api.gateways.errors import Service

logger = logging.getLogger(__name__)

LIST_PAGE_SIZE = "100"

DistributionFilter = Callable[[dict[str, Any]], Union[bool, Awaitable[bool]]]


def s3_tags_to_cdn_tags(tags: list[dict[str, str]]) -> dict[str, Any]:
    """Convert an S3 ``TagSet`` into the CloudFront ``Tags`` shape."""
    return {"Items": [{"Key": tag["Key"], "Value": tag.get("Value", "")} for tag in tags]}


class CDNGateway(Gateway):
    service = Service.CDN

    def __init__(
        self,
        client: Any,
        *,
        domains: dict[str, Domain] | None = None,
        region: str = "us-east-1",
        not_found_as_bad_request: bool = True,
    ) -> None:
        super().__init__(client, cdn_not_found_as_bad_request=not_found_as_bad_request)
        self.domains = dict(domains or {})
        self.region = region

    @property
    def website_endpoint(self) -> str:
        return f"s3-website-{self.region}.amazonaws.com"

    def website_domain(self, name: str) -> Domain:
        """Resolve the registered parent domain for a website name.

        The name is split once at the first dot; the remainder must be a
        configured domain since certificates are issued per parent domain.
        """
        logger.info("validating website name %s", name)
        if not name:
            raise ApiError(ErrorKind.BAD_REQUEST, "website cannot be empty")
        _, sep, parent = name.partition(".")
        if not sep or not parent:
            raise ApiError(ErrorKind.BAD_REQUEST, "invalid website length, not enough parts")
        domain = self.domains.get(parent)
        if domain is None:
            raise ApiError(ErrorKind.BAD_REQUEST, f"domain not found for website {name}")
        return domain

    def default_website_distribution_config(self, name: str) -> dict[str, Any]:
        domain = self.website_domain(name)
        config = {
            "Aliases": {"Quantity": 1, "Items": [name]},
            "DefaultCacheBehavior": {
                "ForwardedValues": {
                    "Cookies": {"Forward": "none"},
                    "QueryString": False,
                },
                "MinTTL": 0,
                "DefaultTTL": 3600,
                "TargetOriginId": name,
                "TrustedSigners": {"Enabled": False, "Quantity": 0},
                "ViewerProtocolPolicy": "redirect-to-https",
            },
            "CallerReference": str(uuid.uuid4()),
            "Comment": name,
            "DefaultRootObject": "index.html",
            "Enabled": True,
            "HttpVersion": "http2",
            "IsIPV6Enabled": True,
            "Origins": {
                "Quantity": 1,
                "Items": [
                    {
                        "Id": name,
                        "DomainName": f"{name}.{self.website_endpoint}",
                        "CustomOriginConfig": {
                            "HTTPPort": 80,
                            "HTTPSPort": 443,
                            "OriginProtocolPolicy": "http-only",
                        },
                    }
                ],
            },
            "PriceClass": "PriceClass_100",
            "ViewerCertificate": {
                "ACMCertificateArn": domain.cert_arn,
                "MinimumProtocolVersion": "TLSv1.1_2016",
                "SSLSupportMethod": "sni-only",
            },
        }
        logger.debug("generated distribution config for %s: %s", name, config)
        return config

    async def create_distribution(
        self,
        config: dict[str, Any],
        tags: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        logger.info("creating cloudfront distribution for %s", config.get("Comment"))
        output = await self._call(
            "failed to create cloudfront distribution",
            "create_distribution_with_tags",
            DistributionConfigWithTags={
                "DistributionConfig": config,
                "Tags": tags or {"Items": []},
            },
        )
        return output["Distribution"]

    async def get_distribution_config(self, distribution_id: str) -> tuple[dict[str, Any], str]:
        """Return the current config and its version tag."""
        if not distribution_id:
            raise ApiError(ErrorKind.BAD_REQUEST, "invalid input: empty distribution id")
        output = await self._call(
            f"failed to get details about cloudfront distribution Id: {distribution_id}",
            "get_distribution_config",
            Id=distribution_id,
        )
        return output["DistributionConfig"], output["ETag"]

    async def disable_distribution(self, distribution_id: str) -> dict[str, Any]:
        logger.info("disabling cloudfront distribution Id: %s", distribution_id)
        config, etag = await self.get_distribution_config(distribution_id)
        config["Enabled"] = False
        output = await self._call(
            f"failed to disable cloudfront distribution Id: {distribution_id}",
            "update_distribution",
            Id=distribution_id,
            IfMatch=etag,
            DistributionConfig=config,
        )
        return output["Distribution"]

    async def delete_distribution(self, distribution_id: str) -> None:
        """Delete a distribution; the provider refuses until it is disabled and deployed."""
        logger.info("deleting cloudfront distribution Id: %s", distribution_id)
        _, etag = await self.get_distribution_config(distribution_id)
        await self._call(
            f"failed to delete cloudfront distribution Id: {distribution_id}",
            "delete_distribution",
            Id=distribution_id,
            IfMatch=etag,
        )

    async def tag_distribution(self, arn: str, tags: dict[str, Any]) -> None:
        if not arn:
            raise ApiError(ErrorKind.BAD_REQUEST, "invalid input: empty distribution arn")
        logger.info("tagging cloudfront distribution ARN: %s", arn)
        await self._call(
            f"failed to tag cloudfront distribution ARN: {arn}",
            "tag_resource",
            Resource=arn,
            Tags=tags,
        )

    async def list_distributions(self) -> list[dict[str, Any]]:
        return await self.list_distributions_with_filter(lambda _: True)

    async def list_distributions_with_filter(
        self,
        keep: DistributionFilter,
    ) -> list[dict[str, Any]]:
        """List every distribution summary for which ``keep`` is true.

        ``keep`` may be a plain or an async callable.
        """
        logger.info("listing cloudfront distributions")
        distributions: list[dict[str, Any]] = []
        params: dict[str, Any] = {"MaxItems": LIST_PAGE_SIZE}
        while True:
            output = await self._call(
                "failed to list cloudfront distributions", "list_distributions", **params
            )
            page = output.get("DistributionList", {})
            for item in page.get("Items", []):
                verdict = keep(item)
                if inspect.isawaitable(verdict):
                    verdict = await verdict
                if verdict:
                    distributions.append(item)
            if not page.get("IsTruncated"):
                break
            params["Marker"] = page.get("NextMarker", "")
        return distributions

    async def get_distribution_by_name(self, name: str) -> dict[str, Any]:
        logger.info("searching for cloudfront distribution %s", name)
        params: dict[str, Any] = {"MaxItems": LIST_PAGE_SIZE}
        while True:
            output = await self._call(
                "failed to list cloudfront distributions", "list_distributions", **params
            )
            page = output.get("DistributionList", {})
            for item in page.get("Items", []):
                if name in item.get("Aliases", {}).get("Items", []):
                    return item
            if not page.get("IsTruncated"):
                break
            params["Marker"] = page.get("NextMarker", "")
        raise ApiError(
            ErrorKind.NOT_FOUND, f"cloudfront distribution not found with name {name}"
        )

    async def invalidate_cache(self, distribution_id: str, paths: list[str]) -> dict[str, Any]:
        if not distribution_id or not paths:
            raise ApiError(
                ErrorKind.BAD_REQUEST, "invalid input: distribution id and paths are required"
            )
        logger.info(
            "invalidating paths %s for cloudfront distribution Id: %s",
            ",".join(paths),
            distribution_id,
        )
        return await self._call(
            "failed to invalidate cloudfront distribution cache",
            "create_invalidation",
            DistributionId=distribution_id,
            InvalidationBatch={
                "CallerReference": str(uuid.uuid4()),
                "Paths": {"Quantity": len(paths), "Items": list(paths)},
            },
        )

    async def list_tags(self, arn: str) -> list[dict[str, str]]:
        if not arn:
            raise ApiError(ErrorKind.BAD_REQUEST, "invalid input: empty distribution arn")
        output = await self._call(
            f"failed to list tags for cloudfront resource {arn}",
            "list_tags_for_resource",
            Resource=arn,
        )
        return list(output.get("Tags", {}).get("Items", []))
