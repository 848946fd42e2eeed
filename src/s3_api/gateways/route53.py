"""Authoritative DNS gateway."""

from __future__ import annotations

import logging
from typing import Any

from s3_api.apierror import ApiError, ErrorKind
from s3_api.gateways.base import Gateway
from s3_api.gateways.errors import Service

logger = logging.getLogger(__name__)

CHANGE_COMMENT = "Created by s3-api"
CLOUDFRONT_HOSTED_ZONE_ID = "Z2FDTNDATAQYW2"
LIST_PAGE_SIZE = "100"


def fqdn(host: str) -> str:
    return host if host.endswith(".") else f"{host}."


def website_alias_record(name: str, distribution_domain: str) -> dict[str, Any]:
    """Build the ``A`` alias pointing a website name at its distribution."""
    return {
        "Name": fqdn(name),
        "Type": "A",
        "AliasTarget": {
            "DNSName": distribution_domain,
            "HostedZoneId": CLOUDFRONT_HOSTED_ZONE_ID,
            "EvaluateTargetHealth": False,
        },
    }


class DNSGateway(Gateway):
    service = Service.DNS

    async def _change(self, action: str, zone_id: str, record: dict[str, Any]) -> dict[str, Any]:
        if not zone_id or not record:
            raise ApiError(ErrorKind.BAD_REQUEST, "invalid input: zone id and record are required")
        logger.info(
            "%s route53 %s record %s in zone %s",
            action.lower(),
            record.get("Type"),
            record.get("Name"),
            zone_id,
        )
        output = await self._call(
            f"failed to {action.lower()} route53 record",
            "change_resource_record_sets",
            HostedZoneId=zone_id,
            ChangeBatch={
                "Comment": CHANGE_COMMENT,
                "Changes": [{"Action": action, "ResourceRecordSet": record}],
            },
        )
        return output["ChangeInfo"]

    async def create_record(self, zone_id: str, record: dict[str, Any]) -> dict[str, Any]:
        return await self._change("CREATE", zone_id, record)

    async def delete_record(self, zone_id: str, record: dict[str, Any]) -> dict[str, Any]:
        return await self._change("DELETE", zone_id, record)

    async def list_records(self, zone_id: str) -> list[dict[str, Any]]:
        if not zone_id:
            raise ApiError(ErrorKind.BAD_REQUEST, "invalid input: empty zone id")
        logger.info("listing route53 records for zone ID %s", zone_id)
        records: list[dict[str, Any]] = []
        params: dict[str, Any] = {"HostedZoneId": zone_id, "MaxItems": LIST_PAGE_SIZE}
        while True:
            output = await self._call(
                "failed to list route53 resource record sets",
                "list_resource_record_sets",
                **params,
            )
            records.extend(output.get("ResourceRecordSets", []))
            if not output.get("IsTruncated"):
                break
            params["StartRecordName"] = output["NextRecordName"]
            params["StartRecordType"] = output["NextRecordType"]
            if output.get("NextRecordIdentifier"):
                params["StartRecordIdentifier"] = output["NextRecordIdentifier"]
            else:
                params.pop("StartRecordIdentifier", None)
        return records

    async def get_record(self, zone_id: str, host: str, record_type: str) -> dict[str, Any]:
        logger.info("getting route53 record for zone ID %s, host %s", zone_id, host)
        name = fqdn(host)
        for record in await self.list_records(zone_id):
            if record.get("Name") == name and record.get("Type") == record_type:
                return record
        raise ApiError(
            ErrorKind.NOT_FOUND,
            f"route53 record not found in zone {zone_id} with name {name} and type {record_type}",
        )
