from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from s3_api.config import Settings, parse_settings, reset_settings_cache
from s3_api.gateways.base import clear_client_cache
from s3_api.gateways.cloudfront import CDNGateway
from s3_api.gateways.iam import IdentityGateway
from s3_api.gateways.registry import AccountServices
from s3_api.gateways.route53 import DNSGateway
from s3_api.gateways.s3 import ObjectGateway
from s3_api.orchestration import saga

TOKEN = "test-token"
CERT_ARN = "arn:aws:acm:us-east-1:123456789012:certificate/abc"
ZONE_ID = "Z123EXAMPLE"


def raw_config(**overrides: Any) -> dict[str, Any]:
    config: dict[str, Any] = {
        "listenAddress": ":8080",
        "token": TOKEN,
        "org": "testorg",
        "logLevel": "debug",
        "accounts": {
            "provider1": {
                "region": "us-east-1",
                "akid": "AKIDEXAMPLE",
                "secret": "secret-example",
                "defaultS3BucketActions": ["s3:ListBucket"],
                "defaultS3ObjectActions": ["s3:GetObject", "s3:PutObject"],
                "defaultCloudfrontDistributionActions": ["cloudfront:CreateInvalidation"],
                "domains": {
                    "example.com": {"certArn": CERT_ARN, "hostedZoneID": ZONE_ID},
                },
                "accessLog": {"bucket": "access-logs", "prefix": "s3"},
            }
        },
    }
    config.update(overrides)
    return config


@pytest.fixture(autouse=True)
def _isolate_state(monkeypatch: pytest.MonkeyPatch) -> None:
    reset_settings_cache()
    clear_client_cache()
    monkeypatch.setattr(saga, "RETRY_SLEEP_SECONDS", 0.0)
    yield
    reset_settings_cache()
    clear_client_cache()


@pytest.fixture
def settings() -> Settings:
    return parse_settings(raw_config())


def make_services(settings: Settings, name: str = "provider1") -> AccountServices:
    """Account bundle whose gateways are mocks; async methods are ``AsyncMock``."""
    account = settings.accounts[name]
    real_iam = IdentityGateway(
        MagicMock(),
        bucket_actions=account.default_s3_bucket_actions,
        object_actions=account.default_s3_object_actions,
        distribution_actions=account.default_cloudfront_distribution_actions,
    )
    real_cdn = CDNGateway(MagicMock(), domains=account.domains, region=account.region)

    s3 = MagicMock(spec=ObjectGateway)
    s3.create_bucket.side_effect = lambda bucket, *args, **kwargs: f"/{bucket}"
    s3.bucket_exists.return_value = True
    s3.get_bucket_tags.return_value = []
    s3.get_bucket_logging.return_value = None
    s3.bucket_empty.return_value = True
    s3.bucket_empty_with_filter.return_value = True

    iam = MagicMock(spec=IdentityGateway)
    iam.default_bucket_admin_policy.side_effect = real_iam.default_bucket_admin_policy
    iam.default_web_admin_policy.side_effect = real_iam.default_web_admin_policy
    iam.default_website_access_policy.side_effect = real_iam.default_website_access_policy
    iam.create_policy.side_effect = lambda name, document, **kwargs: {
        "PolicyName": name,
        "Arn": f"arn:aws:iam::123456789012:policy/{name}",
    }
    iam.create_group.side_effect = lambda name, *args: {"GroupName": name}
    iam.create_user.side_effect = lambda name, *args: {"UserName": name}
    iam.get_user.side_effect = lambda name: {"UserName": name}
    iam.get_group.side_effect = lambda name: {"GroupName": name}
    iam.create_access_key.return_value = {"AccessKeyId": "AKNEW", "SecretAccessKey": "s"}
    iam.list_access_keys.return_value = []
    iam.list_user_groups.return_value = []
    iam.list_attached_user_policies.return_value = []
    iam.list_group_users.return_value = []
    iam.list_attached_group_policies.return_value = []

    cloudfront = MagicMock(spec=CDNGateway)
    cloudfront.website_domain.side_effect = real_cdn.website_domain
    cloudfront.default_website_distribution_config.side_effect = (
        real_cdn.default_website_distribution_config
    )
    cloudfront.create_distribution.return_value = {
        "Id": "EDFDVBD6EXAMPLE",
        "ARN": "arn:aws:cloudfront::123456789012:distribution/EDFDVBD6EXAMPLE",
        "DomainName": "d111111abcdef8.cloudfront.net",
    }

    route53 = MagicMock(spec=DNSGateway)
    route53.create_record.return_value = {"Id": "/change/C1", "Status": "PENDING"}
    route53.delete_record.return_value = {"Id": "/change/C2", "Status": "PENDING"}

    return AccountServices(
        name=name,
        account=account,
        s3=s3,
        iam=iam,
        cloudfront=cloudfront,
        route53=route53,
        org=settings.org,
        rollback_timeout_seconds=settings.rollback_timeout_seconds,
    )


@pytest.fixture
def services(settings: Settings) -> AccountServices:
    return make_services(settings)
