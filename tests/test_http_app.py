from __future__ import annotations

import datetime
from unittest.mock import patch

import pytest
from starlette.testclient import TestClient

from conftest import TOKEN, raw_config
from s3_api.apierror import ApiError, ErrorKind
from s3_api.config import parse_settings
from s3_api.transport.http_server import create_http_app

AUTH = {"X-Auth-Token": TOKEN}
SITE = "site.example.com"


@pytest.fixture
def client(settings, services) -> TestClient:
    return TestClient(create_http_app(settings, {"provider1": services}))


def test_ping_is_public(client: TestClient) -> None:
    response = client.get("/v1/s3/ping")

    assert response.status_code == 200
    assert response.text == "pong"


def test_version(client: TestClient) -> None:
    response = client.get("/v1/s3/version")

    assert response.status_code == 200
    assert response.json() == {"version": "1.0.0", "githash": "", "buildstamp": ""}


def test_metrics(client: TestClient) -> None:
    client.get("/v1/s3/provider1/buckets", headers=AUTH)

    response = client.get("/v1/s3/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert 'route="bucket_list"' in response.text
    assert "s3_api_rollbacks_total" in response.text


def test_requests_without_token_are_rejected(client: TestClient, services) -> None:
    response = client.get("/v1/s3/provider1/buckets")

    assert response.status_code == 401
    assert response.json()["error"] == "Unauthorized"
    services.s3.list_buckets.assert_not_awaited()


def test_cors_preflight_skips_auth(client: TestClient) -> None:
    response = client.options(
        "/v1/s3/provider1/buckets",
        headers={
            "Origin": "https://console.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "X-Auth-Token",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_cors_can_be_disabled(services) -> None:
    settings = parse_settings(raw_config(corsAllowedOrigins=[]))
    client = TestClient(create_http_app(settings, {"provider1": services}))

    response = client.get("/v1/s3/ping", headers={"Origin": "https://console.example.com"})

    assert "access-control-allow-origin" not in response.headers


def test_responses_carry_request_id(client: TestClient) -> None:
    response = client.get("/v1/s3/provider1/buckets", headers={**AUTH, "X-Request-Id": "r-1"})

    assert response.headers["x-request-id"] == "r-1"


def test_unknown_account_is_not_found(client: TestClient) -> None:
    response = client.get("/v1/s3/nope/buckets", headers=AUTH)

    assert response.status_code == 404
    assert response.json() == {"error": "NotFound", "message": "account not found: nope"}


def test_bucket_list(client: TestClient, services) -> None:
    services.s3.list_buckets.return_value = [{"Name": "b1"}, {"Name": "b2"}]

    response = client.get("/v1/s3/provider1/buckets", headers=AUTH)

    assert response.status_code == 200
    assert response.json() == ["b1", "b2"]


def test_bucket_create(client: TestClient, services) -> None:
    response = client.post(
        "/v1/s3/provider1/buckets",
        headers=AUTH,
        json={
            "Tags": [{"Key": "App", "Value": "X"}],
            "BucketInput": {"Bucket": "b1", "ACL": "private"},
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["Bucket"] == "/b1"
    assert body["Policy"]["PolicyName"] == "b1-BktAdmPlc"
    assert body["Group"]["GroupName"] == "b1-BktAdmGrp"
    services.s3.create_bucket.assert_awaited_once_with("b1", "us-east-1", ACL="private")


def test_bucket_create_conflict(client: TestClient, services) -> None:
    services.s3.create_bucket.side_effect = ApiError(
        ErrorKind.CONFLICT, "failed to create bucket b1: BucketAlreadyOwnedByYou: owned"
    )

    response = client.post(
        "/v1/s3/provider1/buckets", headers=AUTH, json={"BucketInput": {"Bucket": "b1"}}
    )

    assert response.status_code == 409
    assert response.json() == {
        "error": "Conflict",
        "message": "failed to create bucket b1: BucketAlreadyOwnedByYou: owned",
    }


def test_bucket_create_rejects_bad_json(client: TestClient, services) -> None:
    response = client.post(
        "/v1/s3/provider1/buckets",
        headers={**AUTH, "Content-Type": "application/json"},
        content=b"{not json",
    )

    assert response.status_code == 400
    assert response.json() == {"error": "BadRequest", "message": "cannot decode body into json"}
    services.s3.create_bucket.assert_not_awaited()


def test_bucket_create_requires_bucket_input(client: TestClient) -> None:
    response = client.post("/v1/s3/provider1/buckets", headers=AUTH, json={"Tags": []})

    assert response.status_code == 400
    assert response.json()["message"].startswith("invalid request: BucketInput")


def test_unexpected_errors_are_internal(client: TestClient, services) -> None:
    services.s3.list_buckets.side_effect = RuntimeError("kaboom")

    response = client.get("/v1/s3/provider1/buckets", headers=AUTH)

    assert response.status_code == 500
    assert response.json() == {"error": "InternalError", "message": "unknown error occurred"}


def test_bucket_head(client: TestClient, services) -> None:
    found = client.head("/v1/s3/provider1/buckets/b1", headers=AUTH)
    assert found.status_code == 200
    assert found.headers["content-type"] == "application/json"

    services.s3.bucket_exists.return_value = False
    response = client.head("/v1/s3/provider1/buckets/b1", headers=AUTH)

    assert response.status_code == 404
    assert response.content == b""
    services.s3.bucket_exists.assert_awaited_with("b1")


def test_website_head_checks_bucket(client: TestClient, services) -> None:
    response = client.head(f"/v1/s3/provider1/websites/{SITE}", headers=AUTH)

    assert response.status_code == 200
    services.s3.bucket_exists.assert_awaited_once_with(SITE)


def test_bucket_show_serializes_sdk_values(client: TestClient, services) -> None:
    services.s3.get_bucket_logging.return_value = {
        "TargetBucket": "access-logs",
        "Checked": datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc),
    }

    response = client.get("/v1/s3/provider1/buckets/b1", headers=AUTH)

    assert response.status_code == 200
    assert response.json()["Logging"]["Checked"] == "2024-01-01T00:00:00+00:00"


def test_bucket_update_returns_tags(client: TestClient) -> None:
    response = client.put(
        "/v1/s3/provider1/buckets/b1",
        headers=AUTH,
        json={"Tags": [{"Key": "App", "Value": "Y"}]},
    )

    assert response.status_code == 200
    assert response.json() == {
        "Tags": [{"Key": "App", "Value": "Y"}, {"Key": "spinup:org", "Value": "testorg"}]
    }


def test_bucket_delete_not_empty(client: TestClient, services) -> None:
    services.s3.delete_empty_bucket.side_effect = ApiError(ErrorKind.CONFLICT, "not empty")

    response = client.delete("/v1/s3/provider1/buckets/b1", headers=AUTH)

    assert response.status_code == 409


def test_bucket_delete(client: TestClient) -> None:
    response = client.delete("/v1/s3/provider1/buckets/b1", headers=AUTH)

    assert response.status_code == 200
    assert response.json()["Groups"] == ["b1-BktAdmGrp"]


def test_website_create_unknown_domain(client: TestClient, services) -> None:
    response = client.post(
        "/v1/s3/provider1/websites",
        headers=AUTH,
        json={"BucketInput": {"Bucket": "site.unknown.tld"}},
    )

    assert response.status_code == 400
    services.s3.create_bucket.assert_not_awaited()


def test_website_create(client: TestClient, services) -> None:
    response = client.post(
        "/v1/s3/provider1/websites",
        headers=AUTH,
        json={
            "BucketInput": {"Bucket": SITE},
            "WebsiteConfiguration": {"ErrorDocument": {"Key": "404.html"}},
        },
    )

    assert response.status_code == 200
    assert response.json()["Distribution"]["Id"] == "EDFDVBD6EXAMPLE"
    services.s3.put_website_config.assert_awaited_once_with(
        SITE, {"ErrorDocument": {"Key": "404.html"}}
    )


def test_website_cache_invalidation(client: TestClient, services) -> None:
    services.cloudfront.get_distribution_by_name.return_value = {"Id": "EDFDVBD6EXAMPLE"}
    services.cloudfront.invalidate_cache.return_value = {"Invalidation": {"Id": "I1"}}

    response = client.patch(
        f"/v1/s3/provider1/websites/{SITE}",
        headers=AUTH,
        json={"CacheInvalidation": ["/*"]},
    )

    assert response.status_code == 200
    assert response.json() == {"Invalidation": {"Id": "I1"}}
    services.cloudfront.invalidate_cache.assert_awaited_once_with("EDFDVBD6EXAMPLE", ["/*"])


def test_user_create_under_website(client: TestClient, services) -> None:
    response = client.post(
        f"/v1/s3/provider1/websites/{SITE}/users",
        headers=AUTH,
        json={"User": {"UserName": "u1"}, "Groups": ["BktAdmGrp"]},
    )

    assert response.status_code == 200
    assert response.json()["AccessKey"]["AccessKeyId"] == "AKNEW"
    services.iam.add_user_to_group.assert_awaited_once_with("u1", f"{SITE}-BktAdmGrp")


def test_user_create_invalid_group(client: TestClient) -> None:
    response = client.post(
        "/v1/s3/provider1/buckets/b1/users",
        headers=AUTH,
        json={"User": {"UserName": "u1"}, "Groups": ["Admins"]},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "invalid group name: Admins"


def test_user_reset_keys(client: TestClient, services) -> None:
    services.iam.list_access_keys.return_value = [{"AccessKeyId": "K1"}, {"AccessKeyId": "K2"}]

    response = client.put("/v1/s3/provider1/buckets/b1/users/u1", headers=AUTH)

    assert response.status_code == 200
    assert response.json()["DeletedKeyIds"] == ["K1", "K2"]


def test_user_show_not_found(client: TestClient) -> None:
    response = client.get("/v1/s3/provider1/buckets/b1/users/ghost", headers=AUTH)

    assert response.status_code == 404


@patch("s3_api.transport.http_server.clear_client_cache")
def test_shutdown_releases_cached_clients(mock_clear, settings, services) -> None:
    with TestClient(create_http_app(settings, {"provider1": services})) as client:
        assert client.get("/v1/s3/ping").status_code == 200
        mock_clear.assert_not_called()

    mock_clear.assert_called_once_with()
