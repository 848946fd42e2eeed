"""Static website workflows: a bucket fronted by a distribution and a DNS alias."""

from __future__ import annotations

import logging
from functools import partial
from typing import Any

from s3_api.apierror import ApiError, ErrorKind
from s3_api.gateways.cloudfront import s3_tags_to_cdn_tags
from s3_api.gateways.registry import AccountServices
from s3_api.gateways.route53 import website_alias_record
from s3_api.orchestration.buckets import (
    BUCKET_ADMIN_GROUP,
    WEB_ADMIN_GROUP,
    cleanup_groups,
    enable_access_logging,
    group_name,
    provision_admin_group,
    tag_bucket,
    wait_for_bucket,
    with_org_tag,
)
from s3_api.orchestration.saga import Saga

logger = logging.getLogger(__name__)

INDEX_KEY = "index.html"
SPINUP_OBJECT_TAG = "yale:spinup=true"
_SPINUP_TAG = {"Key": "yale:spinup", "Value": "true"}


def web_admin_policy_name(website: str) -> str:
    return f"{website}-WebAdmPlc"


async def _counts_as_content(services: AccountServices, website: str, item: dict[str, Any]) -> bool:
    """Every object counts except the default index page written at creation."""
    key = item.get("Key", "")
    logger.debug("checking if object %s is the default %s", key, INDEX_KEY)
    if key != INDEX_KEY:
        return True
    try:
        tags = await services.s3.get_object_tagging(website, key)
    except ApiError as exc:
        logger.warning("failed to read tags of %s in %s: %s", key, website, exc.message)
        return True
    return _SPINUP_TAG not in tags


async def website_empty(services: AccountServices, website: str) -> bool:
    return await services.s3.bucket_empty_with_filter(
        website, 2, partial(_counts_as_content, services, website)
    )


async def create_website(
    services: AccountServices,
    website: str,
    tags: list[dict[str, str]] | None = None,
    website_config: dict[str, Any] | None = None,
    **create_args: Any,
) -> dict[str, Any]:
    """Provision the bucket, policies, groups, distribution and DNS alias for a website."""
    s3 = services.s3
    iam = services.iam
    cloudfront = services.cloudfront

    # The domain must resolve before anything is created.
    domain = cloudfront.website_domain(website)
    tags = with_org_tag(tags, services.org)

    async with Saga("website-create", services.rollback_timeout_seconds) as saga:
        location = await s3.create_bucket(website, services.account.region, **create_args)
        saga.push(f"delete bucket {website}", partial(s3.delete_empty_bucket, website))

        await s3.put_public_access_block(website, block_public_policy=False)
        await wait_for_bucket(s3, website)
        await tag_bucket(s3, website, tags)
        await s3.put_bucket_encryption(website)
        await enable_access_logging(services, website)

        await s3.put_website_config(website, website_config)
        await s3.put_bucket_policy(website, iam.default_website_access_policy(website))

        bucket_policy, bucket_group = await provision_admin_group(services, saga, website)

        distribution = await cloudfront.create_distribution(
            cloudfront.default_website_distribution_config(website),
            s3_tags_to_cdn_tags(tags),
        )
        distribution_id = distribution["Id"]
        saga.push(
            f"disable distribution {distribution_id}",
            partial(cloudfront.disable_distribution, distribution_id),
        )

        web_policy = await iam.create_policy(
            web_admin_policy_name(website),
            iam.default_web_admin_policy(distribution["ARN"]),
            description=f"Admin policy for {website} web distribution",
        )
        web_policy_arn = web_policy["Arn"]
        saga.push(f"delete policy {web_policy_arn}", partial(iam.delete_policy, web_policy_arn))

        web_group_name = group_name(website, WEB_ADMIN_GROUP)
        web_group = await iam.create_group(web_group_name)
        saga.push(f"delete group {web_group_name}", partial(iam.delete_group, web_group_name))

        await iam.attach_group_policy(web_group_name, web_policy_arn)
        saga.push(
            f"detach policy {web_policy_arn} from group {web_group_name}",
            partial(iam.detach_group_policy, web_group_name, web_policy_arn),
        )

        record = website_alias_record(website, distribution["DomainName"])
        dns_change = await services.route53.create_record(domain.hosted_zone_id, record)
        saga.push(
            f"delete dns record {website}",
            partial(services.route53.delete_record, domain.hosted_zone_id, record),
        )

        await s3.put_object(
            website,
            INDEX_KEY,
            f"Hello, {website}!",
            ContentType="text/html",
            Tagging=SPINUP_OBJECT_TAG,
        )

    return {
        "Bucket": location,
        "Policy": bucket_policy,
        "Group": bucket_group,
        "Policies": [bucket_policy, web_policy],
        "Groups": [bucket_group, web_group],
        "Distribution": distribution,
        "DnsChange": dns_change,
    }


async def show_website(services: AccountServices, website: str) -> dict[str, Any]:
    s3 = services.s3
    tags = await s3.get_bucket_tags(website)
    empty = await website_empty(services, website)
    logging_config = await s3.get_bucket_logging(website)
    domain = services.cloudfront.website_domain(website)
    record = await services.route53.get_record(domain.hosted_zone_id, website, "A")
    distribution = await services.cloudfront.get_distribution_by_name(website)
    return {
        "Tags": tags,
        "Logging": logging_config,
        "Empty": empty,
        "DNSRecord": record,
        "Distribution": distribution,
    }


async def update_website_tags(
    services: AccountServices,
    website: str,
    tags: list[dict[str, str]] | None,
) -> list[dict[str, str]]:
    tags = with_org_tag(tags, services.org)
    distribution = await services.cloudfront.get_distribution_by_name(website)
    await services.s3.put_bucket_tags(website, tags)
    await services.cloudfront.tag_distribution(distribution["ARN"], s3_tags_to_cdn_tags(tags))
    return tags


async def invalidate_website_cache(
    services: AccountServices,
    website: str,
    paths: list[str],
) -> dict[str, Any]:
    distribution = await services.cloudfront.get_distribution_by_name(website)
    return await services.cloudfront.invalidate_cache(distribution["Id"], paths)


async def delete_website(services: AccountServices, website: str) -> dict[str, Any]:
    """Tear down a website.

    Fails without side effects when the domain is unknown or the bucket
    holds anything besides the default index page. Once the bucket is
    gone, the remaining failures are reported in ``Errors``.
    """
    s3 = services.s3
    domain = services.cloudfront.website_domain(website)

    if not await website_empty(services, website):
        raise ApiError(ErrorKind.CONFLICT, f"website bucket {website} is not empty")

    try:
        await s3.delete_object(website, INDEX_KEY)
    except ApiError as exc:
        logger.warning("error trying to delete default %s: %s", INDEX_KEY, exc.message)

    await s3.delete_empty_bucket(website)

    summary = await cleanup_groups(services, website, (BUCKET_ADMIN_GROUP, WEB_ADMIN_GROUP))
    result: dict[str, Any] = {
        "Website": website,
        "Users": summary["Users"],
        "Policies": summary["Policies"],
        "Groups": summary["Groups"],
        "DNSRecord": None,
        "DnsChange": None,
        "Distribution": None,
        "Errors": summary["Errors"],
    }

    def _record(message: str) -> None:
        logger.warning("%s when deleting website %s", message, website)
        result["Errors"].append(message)

    summary_distribution = None
    try:
        summary_distribution = await services.cloudfront.get_distribution_by_name(website)
    except ApiError as exc:
        _record(f"failed to find distribution: {exc.message}")

    try:
        record = await services.route53.get_record(domain.hosted_zone_id, website, "A")
    except ApiError as exc:
        _record(f"failed to find dns record: {exc.message}")
    else:
        result["DNSRecord"] = record
        try:
            result["DnsChange"] = await services.route53.delete_record(
                domain.hosted_zone_id, record
            )
        except ApiError as exc:
            _record(f"failed to delete route53 alias record: {exc.message}")

    if summary_distribution is None:
        return result

    try:
        result["Distribution"] = await services.cloudfront.disable_distribution(
            summary_distribution["Id"]
        )
    except ApiError as exc:
        _record(f"failed to disable cloudfront distribution: {exc.message}")

    return result
