from datetime import datetime, timezone
from decimal import Decimal

from s3_api.utils.masking import is_sensitive_key, redact_sensitive_fields
from s3_api.utils.serialization import dumps, json_default, strip_response_metadata


def test_json_default():
    assert json_default(datetime(2024, 1, 1, tzinfo=timezone.utc)) == "2024-01-01T00:00:00+00:00"
    assert json_default(Decimal("10")) == 10
    assert json_default(Decimal("1.5")) == 1.5
    assert json_default(b"abc") == "abc"
    assert json_default(b"\xff") == "/w=="
    assert json_default({"x"}) == ["x"]
    assert json_default(object()).startswith("<object")


def test_dumps_is_compact():
    assert dumps({"a": [1, "é"]}) == '{"a":[1,"é"]}'


def test_strip_response_metadata():
    assert strip_response_metadata({"Owner": {}, "ResponseMetadata": {"RequestId": "1"}}) == {
        "Owner": {}
    }


def test_is_sensitive_key():
    assert is_sensitive_key("akid")
    assert is_sensitive_key("SecretAccessKey")
    assert is_sensitive_key("X-Auth-Token")
    assert not is_sensitive_key("region")
    assert not is_sensitive_key("certArn")


def test_redact_sensitive_fields():
    redacted = redact_sensitive_fields(
        {
            "token": "t",
            "accounts": {"provider1": {"akid": "AK", "secret": "S", "region": "us-east-1"}},
            "list": [{"secret": "p"}, "plain"],
        }
    )
    assert redacted == {
        "token": "***",
        "accounts": {"provider1": {"akid": "***", "secret": "***", "region": "us-east-1"}},
        "list": [{"secret": "***"}, "plain"],
    }


def test_redact_sensitive_fields_depth_limit():
    nested = {"a": {"b": {"c": "deep"}}}
    assert redact_sensitive_fields(nested, max_depth=2) == {"a": {"b": "***"}}
