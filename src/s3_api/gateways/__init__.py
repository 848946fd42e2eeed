"""Adapters over the cloud provider's control-plane services."""

from s3_api.gateways.cloudfront import CDNGateway
from s3_api.gateways.iam import IdentityGateway
from s3_api.gateways.registry import AccountServices, build_service_registry
from s3_api.gateways.route53 import DNSGateway
from s3_api.gateways.s3 import ObjectGateway

__all__ = [
    "AccountServices",
    "CDNGateway",
    "DNSGateway",
    "IdentityGateway",
    "ObjectGateway",
    "build_service_registry",
]
