from __future__ import annotations

import datetime

import boto3
import pytest
from botocore.stub import ANY, Stubber

from s3_api.apierror import ApiError, ErrorKind
from s3_api.gateways.route53 import (
    CLOUDFRONT_HOSTED_ZONE_ID,
    DNSGateway,
    fqdn,
    website_alias_record,
)

ZONE = "Z123EXAMPLE"
CHANGE_INFO = {
    "Id": "/change/C1",
    "Status": "PENDING",
    "SubmittedAt": datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc),
}


@pytest.fixture
def stubbed():
    client = boto3.client(
        "route53",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    with Stubber(client) as stubber:
        yield DNSGateway(client), stubber
        stubber.assert_no_pending_responses()


def test_fqdn() -> None:
    assert fqdn("site.example.com") == "site.example.com."
    assert fqdn("site.example.com.") == "site.example.com."


def test_website_alias_record() -> None:
    record = website_alias_record("site.example.com", "d1.cloudfront.net")

    assert record == {
        "Name": "site.example.com.",
        "Type": "A",
        "AliasTarget": {
            "DNSName": "d1.cloudfront.net",
            "HostedZoneId": CLOUDFRONT_HOSTED_ZONE_ID,
            "EvaluateTargetHealth": False,
        },
    }


@pytest.mark.asyncio
async def test_create_record(stubbed) -> None:
    gateway, stubber = stubbed
    record = website_alias_record("site.example.com", "d1.cloudfront.net")
    stubber.add_response(
        "change_resource_record_sets",
        {"ChangeInfo": CHANGE_INFO},
        {
            "HostedZoneId": ZONE,
            "ChangeBatch": {
                "Comment": "Created by s3-api",
                "Changes": [{"Action": "CREATE", "ResourceRecordSet": record}],
            },
        },
    )

    change = await gateway.create_record(ZONE, record)
    assert change["Id"] == "/change/C1"


@pytest.mark.asyncio
async def test_delete_record_invalid_change_batch(stubbed) -> None:
    gateway, stubber = stubbed
    stubber.add_client_error(
        "change_resource_record_sets", service_error_code="InvalidChangeBatch"
    )

    with pytest.raises(ApiError) as excinfo:
        await gateway.delete_record(ZONE, {"Name": "x.example.com.", "Type": "A"})
    assert excinfo.value.kind is ErrorKind.BAD_REQUEST


@pytest.mark.asyncio
async def test_get_record_follows_cursor(stubbed) -> None:
    gateway, stubber = stubbed
    stubber.add_response(
        "list_resource_record_sets",
        {
            "ResourceRecordSets": [
                {
                    "Name": "example.com.",
                    "Type": "NS",
                    "TTL": 60,
                    "ResourceRecords": [{"Value": "ns-1.awsdns-01.org."}],
                }
            ],
            "IsTruncated": True,
            "NextRecordName": "site.example.com.",
            "NextRecordType": "A",
            "MaxItems": "100",
        },
        {"HostedZoneId": ZONE, "MaxItems": "100"},
    )
    stubber.add_response(
        "list_resource_record_sets",
        {
            "ResourceRecordSets": [
                {
                    "Name": "site.example.com.",
                    "Type": "A",
                    "AliasTarget": {
                        "HostedZoneId": CLOUDFRONT_HOSTED_ZONE_ID,
                        "DNSName": "d1.cloudfront.net.",
                        "EvaluateTargetHealth": False,
                    },
                }
            ],
            "IsTruncated": False,
            "MaxItems": "100",
        },
        {
            "HostedZoneId": ZONE,
            "MaxItems": "100",
            "StartRecordName": "site.example.com.",
            "StartRecordType": "A",
        },
    )

    record = await gateway.get_record(ZONE, "site.example.com", "A")
    assert record["AliasTarget"]["DNSName"] == "d1.cloudfront.net."


@pytest.mark.asyncio
async def test_get_record_not_found(stubbed) -> None:
    gateway, stubber = stubbed
    stubber.add_response(
        "list_resource_record_sets",
        {"ResourceRecordSets": [], "IsTruncated": False, "MaxItems": "100"},
        {"HostedZoneId": ANY, "MaxItems": "100"},
    )

    with pytest.raises(ApiError) as excinfo:
        await gateway.get_record(ZONE, "missing.example.com", "A")
    assert excinfo.value.kind is ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_change_requires_zone() -> None:
    gateway = DNSGateway(client=None)
    with pytest.raises(ApiError) as excinfo:
        await gateway.create_record("", {"Name": "a.", "Type": "A"})
    assert excinfo.value.kind is ErrorKind.BAD_REQUEST
