"""Identity and access management gateway."""

from __future__ import annotations

import json
import logging
from typing import Any

from s3_api.apierror import ApiError, ErrorKind
from s3_api.gateways.base import Gateway
from s3_api.gateways.errors import Service

logger = logging.getLogger(__name__)

POLICY_VERSION = "2012-10-17"


def _require(value: str, what: str) -> None:
    if not value:
        raise ApiError(ErrorKind.BAD_REQUEST, f"invalid input: empty {what}")


def _render(statements: list[dict[str, Any]]) -> str:
    return json.dumps({"Version": POLICY_VERSION, "Statement": statements})


class IdentityGateway(Gateway):
    """IAM users, access keys, groups and managed policies.

    The ``default_*`` helpers render policy documents from the account's
    configured action lists.
    """

    service = Service.IDENTITY

    def __init__(
        self,
        client: Any,
        *,
        bucket_actions: list[str] | None = None,
        object_actions: list[str] | None = None,
        distribution_actions: list[str] | None = None,
    ) -> None:
        super().__init__(client)
        self.bucket_actions = list(bucket_actions or [])
        self.object_actions = list(object_actions or [])
        self.distribution_actions = list(distribution_actions or [])

    # policy documents

    def default_bucket_admin_policy(self, bucket: str) -> str:
        logger.debug("generating default bucket admin policy for %s", bucket)
        return _render(
            [
                {
                    "Effect": "Allow",
                    "Action": self.bucket_actions,
                    "Resource": [f"arn:aws:s3:::{bucket}"],
                },
                {
                    "Effect": "Allow",
                    "Action": self.object_actions,
                    "Resource": [f"arn:aws:s3:::{bucket}/*"],
                },
            ]
        )

    def default_web_admin_policy(self, distribution_arn: str) -> str:
        logger.debug("generating default web admin policy for %s", distribution_arn)
        return _render(
            [
                {
                    "Effect": "Allow",
                    "Action": self.distribution_actions,
                    "Resource": [distribution_arn],
                }
            ]
        )

    def default_website_access_policy(self, bucket: str) -> str:
        logger.debug("generating default website access policy for %s", bucket)
        return _render(
            [
                {
                    "Effect": "Allow",
                    "Principal": "*",
                    "Action": ["s3:GetObject"],
                    "Resource": [f"arn:aws:s3:::{bucket}/*"],
                }
            ]
        )

    # users

    async def create_user(self, name: str, path: str | None = None) -> dict[str, Any]:
        _require(name, "user name")
        logger.info("creating iam user %s", name)
        params: dict[str, Any] = {"UserName": name}
        if path:
            params["Path"] = path
        output = await self._call(f"failed to create user {name}", "create_user", **params)
        return output["User"]

    async def delete_user(self, name: str) -> None:
        _require(name, "user name")
        logger.info("deleting iam user %s", name)
        await self._call(f"failed to delete user {name}", "delete_user", UserName=name)

    async def get_user(self, name: str) -> dict[str, Any]:
        _require(name, "user name")
        output = await self._call(f"failed to get user {name}", "get_user", UserName=name)
        return output["User"]

    async def create_access_key(self, user: str) -> dict[str, Any]:
        _require(user, "user name")
        logger.info("creating access key for user %s", user)
        output = await self._call(
            f"failed to create access key for user {user}", "create_access_key", UserName=user
        )
        return output["AccessKey"]

    async def delete_access_key(self, user: str, key_id: str) -> None:
        _require(user, "user name")
        _require(key_id, "access key id")
        logger.info("deleting access key %s for user %s", key_id, user)
        await self._call(
            f"failed to delete access key {key_id} for user {user}",
            "delete_access_key",
            UserName=user,
            AccessKeyId=key_id,
        )

    async def list_access_keys(self, user: str) -> list[dict[str, Any]]:
        _require(user, "user name")
        return await self._paginate(
            f"failed to list access keys for user {user}",
            "list_access_keys",
            "AccessKeyMetadata",
            UserName=user,
        )

    async def list_user_groups(self, user: str) -> list[dict[str, Any]]:
        _require(user, "user name")
        return await self._paginate(
            f"failed to list groups for user {user}",
            "list_groups_for_user",
            "Groups",
            UserName=user,
        )

    async def list_attached_user_policies(self, user: str) -> list[dict[str, Any]]:
        _require(user, "user name")
        return await self._paginate(
            f"failed to list policies for user {user}",
            "list_attached_user_policies",
            "AttachedPolicies",
            UserName=user,
        )

    async def attach_user_policy(self, user: str, policy_arn: str) -> None:
        _require(user, "user name")
        _require(policy_arn, "policy arn")
        await self._call(
            f"failed to attach policy {policy_arn} to user {user}",
            "attach_user_policy",
            UserName=user,
            PolicyArn=policy_arn,
        )

    async def detach_user_policy(self, user: str, policy_arn: str) -> None:
        _require(user, "user name")
        _require(policy_arn, "policy arn")
        logger.info("detaching policy %s from user %s", policy_arn, user)
        await self._call(
            f"failed to detach policy {policy_arn} from user {user}",
            "detach_user_policy",
            UserName=user,
            PolicyArn=policy_arn,
        )

    async def add_user_to_group(self, user: str, group: str) -> None:
        _require(user, "user name")
        _require(group, "group name")
        logger.info("adding user %s to group %s", user, group)
        await self._call(
            f"failed to add user {user} to group {group}",
            "add_user_to_group",
            UserName=user,
            GroupName=group,
        )

    async def remove_user_from_group(self, user: str, group: str) -> None:
        _require(user, "user name")
        _require(group, "group name")
        logger.info("removing user %s from group %s", user, group)
        await self._call(
            f"failed to remove user {user} from group {group}",
            "remove_user_from_group",
            UserName=user,
            GroupName=group,
        )

    # groups

    async def create_group(self, name: str, path: str | None = None) -> dict[str, Any]:
        _require(name, "group name")
        logger.info("creating iam group %s", name)
        params: dict[str, Any] = {"GroupName": name}
        if path:
            params["Path"] = path
        output = await self._call(f"failed to create group {name}", "create_group", **params)
        return output["Group"]

    async def get_group(self, name: str) -> dict[str, Any]:
        _require(name, "group name")
        output = await self._call(
            f"failed to get group {name}", "get_group", GroupName=name, MaxItems=1
        )
        return output["Group"]

    async def delete_group(self, name: str) -> None:
        _require(name, "group name")
        logger.info("deleting iam group %s", name)
        await self._call(f"failed to delete group {name}", "delete_group", GroupName=name)

    async def list_group_users(self, group: str) -> list[dict[str, Any]]:
        _require(group, "group name")
        return await self._paginate(
            f"failed to list users in group {group}", "get_group", "Users", GroupName=group
        )

    async def list_attached_group_policies(self, group: str) -> list[dict[str, Any]]:
        _require(group, "group name")
        return await self._paginate(
            f"failed to list policies for group {group}",
            "list_attached_group_policies",
            "AttachedPolicies",
            GroupName=group,
        )

    async def attach_group_policy(self, group: str, policy_arn: str) -> None:
        _require(group, "group name")
        _require(policy_arn, "policy arn")
        logger.info("attaching policy %s to group %s", policy_arn, group)
        await self._call(
            f"failed to attach policy {policy_arn} to group {group}",
            "attach_group_policy",
            GroupName=group,
            PolicyArn=policy_arn,
        )

    async def detach_group_policy(self, group: str, policy_arn: str) -> None:
        _require(group, "group name")
        _require(policy_arn, "policy arn")
        logger.info("detaching policy %s from group %s", policy_arn, group)
        await self._call(
            f"failed to detach policy {policy_arn} from group {group}",
            "detach_group_policy",
            GroupName=group,
            PolicyArn=policy_arn,
        )

    # policies

    async def create_policy(
        self,
        name: str,
        document: str,
        description: str | None = None,
        path: str | None = None,
    ) -> dict[str, Any]:
        _require(name, "policy name")
        _require(document, "policy document")
        logger.info("creating iam policy %s", name)
        params: dict[str, Any] = {"PolicyName": name, "PolicyDocument": document}
        if description:
            params["Description"] = description
        if path:
            params["Path"] = path
        output = await self._call(f"failed to create policy {name}", "create_policy", **params)
        return output["Policy"]

    async def delete_policy(self, policy_arn: str) -> None:
        _require(policy_arn, "policy arn")
        logger.info("deleting iam policy %s", policy_arn)
        await self._call(
            f"failed to delete policy {policy_arn}", "delete_policy", PolicyArn=policy_arn
        )
