"""Bucket user workflows: create, list, show, rotate keys and delete."""

from __future__ import annotations

import logging
from functools import partial
from typing import Any

from s3_api.apierror import ApiError, ErrorKind, is_not_found
from s3_api.gateways.registry import AccountServices
from s3_api.orchestration.buckets import BUCKET_ADMIN_GROUP, group_name, provision_admin_group
from s3_api.orchestration.saga import Saga, retry

logger = logging.getLogger(__name__)

SUPPORTED_GROUPS = frozenset({BUCKET_ADMIN_GROUP})


def _owned_policy(bucket: str, policy_name: str) -> bool:
    return policy_name == bucket or policy_name.startswith(f"{bucket}-")


async def create_user(
    services: AccountServices,
    bucket: str,
    user_name: str,
    groups: list[str] | None = None,
    path: str | None = None,
) -> dict[str, Any]:
    """Create a user with a fresh access key and add it to the bucket's groups."""
    iam = services.iam
    groups = list(groups) if groups else [BUCKET_ADMIN_GROUP]
    for group in groups:
        if group not in SUPPORTED_GROUPS:
            raise ApiError(ErrorKind.BAD_REQUEST, f"invalid group name: {group}")

    async with Saga("user-create", services.rollback_timeout_seconds) as saga:
        user = await iam.create_user(user_name, path)
        saga.push(f"delete user {user_name}", partial(iam.delete_user, user_name))

        try:
            await retry(
                partial(iam.get_user, user_name), description=f"waiting for user {user_name}"
            )
        except ApiError as exc:
            raise exc.wrap(
                f"failed to create user {user_name} for bucket {bucket}: "
                "timeout waiting for create"
            ) from exc

        access_key = await iam.create_access_key(user_name)
        key_id = access_key["AccessKeyId"]
        saga.push(
            f"delete access key {key_id}", partial(iam.delete_access_key, user_name, key_id)
        )

        for group in groups:
            name = group_name(bucket, group)
            try:
                await iam.get_group(name)
            except ApiError as exc:
                if not is_not_found(exc):
                    raise
                logger.info("group %s not found, creating it for bucket %s", name, bucket)
                await provision_admin_group(services, saga, bucket)

            await iam.add_user_to_group(user_name, name)
            saga.push(
                f"remove user {user_name} from group {name}",
                partial(iam.remove_user_from_group, user_name, name),
            )

    return {"User": user, "AccessKey": access_key}


async def _bucket_users(services: AccountServices, bucket: str) -> list[dict[str, Any]]:
    users: list[dict[str, Any]] = []
    seen: set[str] = set()

    def _add(user: dict[str, Any]) -> None:
        name = user.get("UserName", "")
        if name and name not in seen:
            seen.add(name)
            users.append(user)

    name = group_name(bucket)
    try:
        for user in await services.iam.list_group_users(name):
            _add(user)
    except ApiError as exc:
        logger.warning("error listing bucket %s group %s users: %s", bucket, name, exc.message)

    # Buckets provisioned before admin groups existed have a same-named user.
    try:
        _add(await services.iam.get_user(bucket))
    except ApiError as exc:
        if not is_not_found(exc):
            raise

    return users


async def list_users(services: AccountServices, bucket: str) -> list[dict[str, Any]]:
    return await _bucket_users(services, bucket)


async def show_user(services: AccountServices, bucket: str, user_name: str) -> dict[str, Any]:
    iam = services.iam
    for user in await _bucket_users(services, bucket):
        if user.get("UserName") != user_name:
            continue
        return {
            "User": user,
            "AccessKeys": await iam.list_access_keys(user_name),
            "Groups": await iam.list_user_groups(user_name),
            "Policies": await iam.list_attached_user_policies(user_name),
        }
    raise ApiError(ErrorKind.NOT_FOUND, f"user {user_name} not found for bucket {bucket}")


async def reset_user_keys(services: AccountServices, bucket: str, user_name: str) -> dict[str, Any]:
    """Issue a new access key for the user, then delete every previous key."""
    iam = services.iam
    logger.info("resetting access keys for user %s of bucket %s", user_name, bucket)

    async with Saga("user-key-reset", services.rollback_timeout_seconds) as saga:
        previous = await iam.list_access_keys(user_name)

        access_key = await iam.create_access_key(user_name)
        key_id = access_key["AccessKeyId"]
        saga.push(
            f"delete access key {key_id}", partial(iam.delete_access_key, user_name, key_id)
        )

        deleted: list[str] = []
        for key in previous:
            await iam.delete_access_key(user_name, key["AccessKeyId"])
            deleted.append(key["AccessKeyId"])

    return {"DeletedKeyIds": deleted, "AccessKey": access_key}


async def delete_user(services: AccountServices, bucket: str, user_name: str) -> dict[str, Any]:
    """Remove a user's keys, memberships and bucket policies, then the user."""
    iam = services.iam
    logger.info("deleting user %s of bucket %s", user_name, bucket)

    deleted_keys: list[str] = []
    for key in await iam.list_access_keys(user_name):
        await iam.delete_access_key(user_name, key["AccessKeyId"])
        deleted_keys.append(key["AccessKeyId"])

    left_groups: list[str] = []
    for group in await iam.list_user_groups(user_name):
        await iam.remove_user_from_group(user_name, group["GroupName"])
        left_groups.append(group["GroupName"])

    deleted_policies: list[str] = []
    for policy in await iam.list_attached_user_policies(user_name):
        await iam.detach_user_policy(user_name, policy["PolicyArn"])
        if _owned_policy(bucket, policy.get("PolicyName", "")):
            await iam.delete_policy(policy["PolicyArn"])
            deleted_policies.append(policy["PolicyName"])

    await iam.delete_user(user_name)
    return {
        "User": user_name,
        "DeletedKeyIds": deleted_keys,
        "Groups": left_groups,
        "Policies": deleted_policies,
    }
