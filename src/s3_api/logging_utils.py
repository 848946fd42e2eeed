"""Logging helpers for the S3 provisioning API."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from s3_api.config import Settings, load_settings

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_LEVEL_ALIASES = {"warn": "WARNING"}

_logger = logging.getLogger(__name__)


def resolve_level(name: str) -> int:
    normalized = _LEVEL_ALIASES.get(name.lower(), name.upper())
    return getattr(logging, normalized, logging.INFO)


def configure_logging(settings: Settings | None = None) -> None:
    """Configure process-wide logging from the service settings."""
    if settings is None:
        settings = load_settings()
    level = resolve_level(settings.log_level)

    handlers: list[logging.Handler] = []

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
    handlers.append(stream_handler)

    if settings.log_file:
        try:
            Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(settings.log_file)
            file_handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
            handlers.append(file_handler)
        except OSError as exc:
            _logger.warning("Failed to open log file %s: %s", settings.log_file, exc)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    # botocore is chatty at DEBUG and would echo signed request headers.
    if level <= logging.DEBUG:
        logging.getLogger("botocore").setLevel(logging.INFO)
