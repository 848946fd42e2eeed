"""Configuration management for the S3 provisioning API."""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from s3_api import __version__

_config_logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/config.json"
DEFAULT_LISTEN_ADDRESS = ":8080"

_LOG_LEVELS = frozenset({"debug", "info", "warn", "warning", "error", "critical"})

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: Any) -> float:
    """Return seconds for a number or a duration string such as ``"1h30m"``."""
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    try:
        return float(text)
    except ValueError:
        pass
    parts = _DURATION_PART.findall(text)
    if not parts or "".join(number + unit for number, unit in parts) != text:
        raise ValueError(f"invalid duration: {value!r}")
    return sum(float(number) * _DURATION_UNITS[unit] for number, unit in parts)


class _ConfigModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Domain(_ConfigModel):
    """TLS certificate and hosted zone registered for a parent domain."""

    cert_arn: str = Field(alias="certArn")
    hosted_zone_id: str = Field(alias="hostedZoneID")


class AccessLog(_ConfigModel):
    bucket: str = Field(default="")
    prefix: str = Field(default="")


class CleanerSettings(_ConfigModel):
    interval: float = Field(default=3600.0, gt=0, description="Base interval in seconds")
    max_splay: float = Field(default=300.0, ge=0, alias="maxSplay")

    @field_validator("interval", "max_splay", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> float:
        return parse_duration(value)


class Account(_ConfigModel):
    region: str = Field(default="us-east-1")
    akid: str = Field(default="")
    secret: str = Field(default="", repr=False)
    endpoint: str | None = Field(default=None)
    default_s3_bucket_actions: list[str] = Field(
        default_factory=list, alias="defaultS3BucketActions"
    )
    default_s3_object_actions: list[str] = Field(
        default_factory=list, alias="defaultS3ObjectActions"
    )
    default_cloudfront_distribution_actions: list[str] = Field(
        default_factory=list, alias="defaultCloudfrontDistributionActions"
    )
    domains: dict[str, Domain] = Field(default_factory=dict)
    access_log: AccessLog = Field(default_factory=AccessLog, alias="accessLog")
    cleaner: CleanerSettings | None = Field(default=None)

    @property
    def website_endpoint(self) -> str:
        return f"s3-website-{self.region}.amazonaws.com"


class VersionInfo(_ConfigModel):
    version: str = Field(default=__version__)
    prerelease: str = Field(default="")
    githash: str = Field(default="")
    buildstamp: str = Field(default="")

    @property
    def full_version(self) -> str:
        return f"{self.version}{self.prerelease}"


class Settings(_ConfigModel):
    listen_address: str = Field(default=DEFAULT_LISTEN_ADDRESS, alias="listenAddress")
    token: str = Field(min_length=1, repr=False)
    org: str = Field(min_length=1)
    log_level: str = Field(default="info", alias="logLevel")
    log_file: str | None = Field(default=None, alias="logFile")
    accounts: dict[str, Account] = Field(default_factory=dict)
    request_timeout_seconds: float = Field(default=15.0, gt=0, alias="requestTimeoutSeconds")
    rollback_timeout_seconds: float = Field(default=120.0, gt=0, alias="rollbackTimeoutSeconds")
    cdn_not_found_as_bad_request: bool = Field(
        default=True,
        alias="cdnNotFoundAsBadRequest",
        description=(
            "Map CloudFront NoSuch* error codes to BadRequest instead of NotFound."
        ),
    )
    cors_allowed_origins: list[str] = Field(
        default_factory=lambda: ["*"], alias="corsAllowedOrigins"
    )
    version: VersionInfo = Field(default_factory=VersionInfo)

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = (value or "info").strip().lower()
        if normalized not in _LOG_LEVELS:
            raise ValueError(f"unsupported log level: {value!r}")
        return normalized

    @field_validator("listen_address")
    @classmethod
    def _validate_listen_address(cls, value: str) -> str:
        value = (value or "").strip() or DEFAULT_LISTEN_ADDRESS
        split_listen_address(value)
        return value

    def listen_host_port(self) -> tuple[str, int]:
        return split_listen_address(self.listen_address)


ENV_KEYS = {
    "config_path": "S3_API_CONFIG",
    "listen_address": "S3_API_LISTEN_ADDRESS",
    "token": "S3_API_TOKEN",
    "log_level": "LOG_LEVEL",
    "log_file": "LOG_FILE",
    "githash": "S3_API_GITHASH",
    "buildstamp": "S3_API_BUILDSTAMP",
}


def split_listen_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``:port``) into a bindable pair."""
    host, sep, port_text = address.rpartition(":")
    if not sep:
        raise ValueError(f"listen address must be host:port, got {address!r}")
    try:
        port = int(port_text)
    except ValueError as exc:
        raise ValueError(f"invalid port in listen address {address!r}") from exc
    if not 0 < port < 65536:
        raise ValueError(f"port out of range in listen address {address!r}")
    return host.strip("[]") or "0.0.0.0", port


def _project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _resolve_path(path: str) -> Path:
    candidate = Path(path)
    if candidate.is_absolute():
        return candidate
    return _project_root() / candidate


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    data = dict(raw)
    for key, alias in (
        ("listen_address", "listenAddress"),
        ("token", "token"),
        ("log_level", "logLevel"),
        ("log_file", "logFile"),
    ):
        value = os.getenv(ENV_KEYS[key])
        if value:
            data[alias] = value

    version = dict(data.get("version") or {})
    for key in ("githash", "buildstamp"):
        value = os.getenv(ENV_KEYS[key])
        if value:
            version[key] = value
    if version:
        data["version"] = version
    return data


def parse_settings(raw: Mapping[str, Any]) -> Settings:
    """Validate a decoded configuration object."""
    try:
        return Settings.model_validate(dict(raw))
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration: {exc}") from exc


def read_config_file(path: str | Path) -> dict[str, Any]:
    config_path = Path(path)
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
    except OSError as exc:
        raise RuntimeError(f"Unable to open config file {config_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"Unable to read configuration from {config_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise RuntimeError(f"Configuration in {config_path} must be a JSON object")
    return raw


def load_settings() -> Settings:
    """Load configuration and cache the result."""

    return _load_settings_cached()


def reset_settings_cache() -> None:
    _load_settings_cached.cache_clear()


@lru_cache(maxsize=1)
def _load_settings_cached() -> Settings:
    load_dotenv(dotenv_path=_project_root() / ".env")
    config_path = _resolve_path(os.getenv(ENV_KEYS["config_path"], DEFAULT_CONFIG_PATH))
    _config_logger.debug("Reading configuration from %s", config_path)
    raw = read_config_file(config_path)
    return parse_settings(_apply_env_overrides(raw))
