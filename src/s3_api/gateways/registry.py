"""Per-account gateway bundles, built once at startup."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from s3_api.config import Account, Settings
from s3_api.gateways.base import get_client
from s3_api.gateways.cloudfront import CDNGateway
from s3_api.gateways.errors import Service
from s3_api.gateways.iam import IdentityGateway
from s3_api.gateways.route53 import DNSGateway
from s3_api.gateways.s3 import ObjectGateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountServices:
    """Read-only handles for one account, shared by all requests."""

    name: str
    account: Account
    s3: ObjectGateway
    iam: IdentityGateway
    cloudfront: CDNGateway
    route53: DNSGateway
    org: str
    rollback_timeout_seconds: float = 120.0


def build_account_services(name: str, account: Account, settings: Settings) -> AccountServices:
    logger.info(
        "creating aws clients for account %s with key id %s in region %s",
        name,
        account.akid,
        account.region,
    )
    return AccountServices(
        name=name,
        account=account,
        s3=ObjectGateway(get_client(name, Service.OBJECT, account), region=account.region),
        iam=IdentityGateway(
            get_client(name, Service.IDENTITY, account),
            bucket_actions=account.default_s3_bucket_actions,
            object_actions=account.default_s3_object_actions,
            distribution_actions=account.default_cloudfront_distribution_actions,
        ),
        cloudfront=CDNGateway(
            get_client(name, Service.CDN, account),
            domains=account.domains,
            region=account.region,
            not_found_as_bad_request=settings.cdn_not_found_as_bad_request,
        ),
        route53=DNSGateway(get_client(name, Service.DNS, account)),
        org=settings.org,
        rollback_timeout_seconds=settings.rollback_timeout_seconds,
    )


def build_service_registry(settings: Settings) -> dict[str, AccountServices]:
    return {
        name: build_account_services(name, account, settings)
        for name, account in settings.accounts.items()
    }
