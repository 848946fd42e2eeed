"""Bucket workflows and the admin group/policy plumbing shared with websites and users."""

from __future__ import annotations

import logging
from functools import partial
from typing import Any

from s3_api.apierror import ApiError, ErrorKind
from s3_api.gateways.registry import AccountServices
from s3_api.gateways.s3 import ObjectGateway
from s3_api.orchestration.saga import Saga, retry

logger = logging.getLogger(__name__)

ORG_TAG_KEY = "spinup:org"
BUCKET_ADMIN_GROUP = "BktAdmGrp"
WEB_ADMIN_GROUP = "WebAdmGrp"


def group_name(bucket: str, kind: str = BUCKET_ADMIN_GROUP) -> str:
    return f"{bucket}-{kind}"


def admin_policy_name(bucket: str) -> str:
    return f"{bucket}-BktAdmPlc"


def with_org_tag(tags: list[dict[str, str]] | None, org: str) -> list[dict[str, str]]:
    """Return ``tags`` with the org tag appended, replacing any caller-supplied one."""
    merged = [tag for tag in (tags or []) if tag.get("Key") != ORG_TAG_KEY]
    merged.append({"Key": ORG_TAG_KEY, "Value": org})
    return merged


async def wait_for_bucket(s3: ObjectGateway, bucket: str) -> None:
    async def _exists() -> None:
        logger.info("checking if bucket exists before continuing: %s", bucket)
        if not await s3.bucket_exists(bucket):
            raise ApiError(ErrorKind.NOT_FOUND, f"s3 bucket ({bucket}) doesn't exist")
        logger.info("bucket %s exists", bucket)

    try:
        await retry(_exists, description=f"waiting for bucket {bucket}")
    except ApiError as exc:
        raise ApiError(
            ErrorKind.INTERNAL_ERROR,
            f"failed to create bucket {bucket}, timeout waiting for create: {exc.message}",
            exc,
        ) from exc


async def tag_bucket(s3: ObjectGateway, bucket: str, tags: list[dict[str, str]]) -> None:
    await retry(partial(s3.put_bucket_tags, bucket, tags), description=f"tagging bucket {bucket}")


async def enable_access_logging(services: AccountServices, bucket: str) -> None:
    access_log = services.account.access_log
    if not access_log.bucket:
        return
    await services.s3.put_bucket_logging(bucket, access_log.bucket, access_log.prefix)


async def provision_admin_group(
    services: AccountServices,
    saga: Saga,
    bucket: str,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Create ``<bucket>-BktAdmPlc`` and ``<bucket>-BktAdmGrp`` and attach one to the other."""
    iam = services.iam
    policy = await iam.create_policy(
        admin_policy_name(bucket),
        iam.default_bucket_admin_policy(bucket),
        description=f"Admin policy for {bucket} bucket",
    )
    policy_arn = policy["Arn"]
    saga.push(f"delete policy {policy_arn}", partial(iam.delete_policy, policy_arn))

    name = group_name(bucket)
    group = await iam.create_group(name)
    saga.push(f"delete group {name}", partial(iam.delete_group, name))

    await iam.attach_group_policy(name, policy_arn)
    saga.push(
        f"detach policy {policy_arn} from group {name}",
        partial(iam.detach_group_policy, name, policy_arn),
    )
    return policy, group


async def cleanup_groups(
    services: AccountServices,
    bucket: str,
    kinds: tuple[str, ...] = (BUCKET_ADMIN_GROUP,),
) -> dict[str, list[str]]:
    """Tear down the bucket's groups after the bucket itself is gone.

    Every failure is logged and collected instead of raised.
    """
    iam = services.iam
    summary: dict[str, list[str]] = {"Users": [], "Policies": [], "Groups": [], "Errors": []}

    def _record(message: str) -> None:
        logger.warning("%s when deleting bucket %s", message, bucket)
        summary["Errors"].append(message)

    for kind in kinds:
        name = group_name(bucket, kind)
        try:
            policies = await iam.list_attached_group_policies(name)
        except ApiError as exc:
            _record(f"failed to list group policies for {name}: {exc.message}")
            continue

        for policy in policies:
            arn = policy.get("PolicyArn", "")
            try:
                await iam.detach_group_policy(name, arn)
            except ApiError as exc:
                _record(f"failed to detach policy {arn} from group {name}: {exc.message}")
            if policy.get("PolicyName", "").startswith(f"{bucket}-"):
                try:
                    await iam.delete_policy(arn)
                except ApiError as exc:
                    _record(f"failed to delete group policy {arn}: {exc.message}")
                else:
                    summary["Policies"].append(policy.get("PolicyName", arn))

        try:
            users = await iam.list_group_users(name)
        except ApiError as exc:
            _record(f"failed to list users of group {name}: {exc.message}")
            continue

        for user in users:
            user_name = user.get("UserName", "")
            try:
                await iam.remove_user_from_group(user_name, name)
            except ApiError as exc:
                _record(f"failed to remove user {user_name} from group {name}: {exc.message}")
            else:
                summary["Users"].append(user_name)

        try:
            await iam.delete_group(name)
        except ApiError as exc:
            _record(f"failed to delete group {name}: {exc.message}")
        else:
            summary["Groups"].append(name)

    return summary


async def create_bucket(
    services: AccountServices,
    bucket: str,
    tags: list[dict[str, str]] | None = None,
    **create_args: Any,
) -> dict[str, Any]:
    """Create a bucket with its admin policy and group, unwinding on failure."""
    s3 = services.s3
    tags = with_org_tag(tags, services.org)

    async with Saga("bucket-create", services.rollback_timeout_seconds) as saga:
        location = await s3.create_bucket(bucket, services.account.region, **create_args)
        saga.push(f"delete bucket {bucket}", partial(s3.delete_empty_bucket, bucket))

        await wait_for_bucket(s3, bucket)
        await tag_bucket(s3, bucket, tags)
        await s3.put_bucket_encryption(bucket)
        await enable_access_logging(services, bucket)

        policy, group = await provision_admin_group(services, saga, bucket)

    return {"Bucket": location, "Policy": policy, "Group": group}


async def list_buckets(services: AccountServices) -> list[str]:
    return [bucket["Name"] for bucket in await services.s3.list_buckets()]


async def bucket_exists(services: AccountServices, bucket: str) -> bool:
    logger.info("checking if bucket exists: %s", bucket)
    return await services.s3.bucket_exists(bucket)


async def show_bucket(services: AccountServices, bucket: str) -> dict[str, Any]:
    s3 = services.s3
    return {
        "Tags": await s3.get_bucket_tags(bucket),
        "Logging": await s3.get_bucket_logging(bucket),
        "Empty": await s3.bucket_empty(bucket),
    }


async def update_bucket_tags(
    services: AccountServices,
    bucket: str,
    tags: list[dict[str, str]] | None,
) -> list[dict[str, str]]:
    tags = with_org_tag(tags, services.org)
    await services.s3.put_bucket_tags(bucket, tags)
    return tags


async def delete_bucket(services: AccountServices, bucket: str) -> dict[str, Any]:
    """Delete an empty bucket, then best-effort remove its admin group and policy.

    A non-empty bucket fails with Conflict before anything else is touched.
    """
    await services.s3.delete_empty_bucket(bucket)
    summary = await cleanup_groups(services, bucket)
    return {"Bucket": bucket, **summary}
