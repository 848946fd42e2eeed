from __future__ import annotations

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from s3_api.apierror import ApiError, ErrorKind, is_not_found
from s3_api.gateways.errors import Service, classify, kind_for_code, provider_error_code


def _client_error(code: str, message: str = "provider says no") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, "Operation")


@pytest.mark.parametrize(
    ("service", "code", "kind"),
    [
        (Service.OBJECT, "BucketNotEmpty", ErrorKind.CONFLICT),
        (Service.OBJECT, "BucketAlreadyOwnedByYou", ErrorKind.CONFLICT),
        (Service.OBJECT, "NoSuchBucket", ErrorKind.NOT_FOUND),
        (Service.OBJECT, "AccessDenied", ErrorKind.FORBIDDEN),
        (Service.OBJECT, "InvalidBucketName", ErrorKind.BAD_REQUEST),
        (Service.OBJECT, "SlowDown", ErrorKind.LIMIT_EXCEEDED),
        (Service.OBJECT, "InternalError", ErrorKind.SERVICE_UNAVAILABLE),
        (Service.IDENTITY, "NoSuchEntity", ErrorKind.NOT_FOUND),
        (Service.IDENTITY, "EntityAlreadyExists", ErrorKind.CONFLICT),
        (Service.IDENTITY, "DeleteConflict", ErrorKind.CONFLICT),
        (Service.IDENTITY, "LimitExceeded", ErrorKind.LIMIT_EXCEEDED),
        (Service.IDENTITY, "MalformedPolicyDocument", ErrorKind.BAD_REQUEST),
        (Service.IDENTITY, "ServiceFailure", ErrorKind.SERVICE_UNAVAILABLE),
        (Service.CDN, "CNAMEAlreadyExists", ErrorKind.CONFLICT),
        (Service.CDN, "TooManyDistributions", ErrorKind.LIMIT_EXCEEDED),
        (Service.CDN, "DistributionNotDisabled", ErrorKind.BAD_REQUEST),
        (Service.DNS, "NoSuchHostedZone", ErrorKind.NOT_FOUND),
        (Service.DNS, "InvalidChangeBatch", ErrorKind.BAD_REQUEST),
        (Service.DNS, "Throttling", ErrorKind.LIMIT_EXCEEDED),
    ],
)
def test_kind_for_code(service: Service, code: str, kind: ErrorKind) -> None:
    assert kind_for_code(service, code) is kind


def test_kind_for_unmapped_code_is_none() -> None:
    assert kind_for_code(Service.IDENTITY, "SomethingNew") is None


def test_cdn_missing_resource_is_bad_request_by_default() -> None:
    assert kind_for_code(Service.CDN, "NoSuchDistribution") is ErrorKind.BAD_REQUEST
    assert (
        kind_for_code(Service.CDN, "NoSuchDistribution", cdn_not_found_as_bad_request=False)
        is ErrorKind.NOT_FOUND
    )


def test_classify_mapped_code_keeps_code_in_message() -> None:
    error = classify(Service.OBJECT, "failed to delete bucket b1", _client_error("BucketNotEmpty"))

    assert error.kind is ErrorKind.CONFLICT
    assert error.status_code == 409
    assert error.message == "failed to delete bucket b1: BucketNotEmpty: provider says no"
    assert isinstance(error.cause, ClientError)


def test_classify_unmapped_code_is_bad_request() -> None:
    error = classify(Service.IDENTITY, "failed to create user u", _client_error("Weird", "odd"))

    assert error.kind is ErrorKind.BAD_REQUEST
    assert error.message == "failed to create user u: odd"


def test_classify_sdk_error_is_internal() -> None:
    exc = EndpointConnectionError(endpoint_url="https://s3.example.com")
    error = classify(Service.OBJECT, "failed to list buckets", exc)

    assert error.kind is ErrorKind.INTERNAL_ERROR
    assert error.message.startswith("failed to list buckets: ")


def test_classify_unknown_exception_is_internal() -> None:
    error = classify(Service.DNS, "failed to list records", RuntimeError("boom"))

    assert error.kind is ErrorKind.INTERNAL_ERROR
    assert error.message == "failed to list records: unknown error occurred"


def test_classify_passes_api_error_through() -> None:
    original = ApiError(ErrorKind.NOT_FOUND, "gone")
    assert classify(Service.CDN, "ctx", original) is original


def test_provider_error_code() -> None:
    assert provider_error_code(_client_error("NoSuchKey")) == "NoSuchKey"
    assert provider_error_code(RuntimeError("x")) is None


def test_api_error_wrap_and_dict() -> None:
    error = ApiError(ErrorKind.NOT_FOUND, "user not found")
    wrapped = error.wrap("failed to show user")

    assert wrapped.kind is ErrorKind.NOT_FOUND
    assert wrapped.message == "failed to show user: user not found"
    assert wrapped.to_dict() == {
        "error": "NotFound",
        "message": "failed to show user: user not found",
    }
    assert is_not_found(wrapped)
    assert not is_not_found(RuntimeError("x"))


@pytest.mark.parametrize(
    ("kind", "status"),
    [
        (ErrorKind.BAD_REQUEST, 400),
        (ErrorKind.FORBIDDEN, 403),
        (ErrorKind.NOT_FOUND, 404),
        (ErrorKind.CONFLICT, 409),
        (ErrorKind.LIMIT_EXCEEDED, 429),
        (ErrorKind.SERVICE_UNAVAILABLE, 503),
        (ErrorKind.INTERNAL_ERROR, 500),
    ],
)
def test_status_codes(kind: ErrorKind, status: int) -> None:
    assert ApiError(kind, "x").status_code == status
