"""Entrypoint for the S3 provisioning API."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

if __package__ in (None, ""):
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))  # pragma: no cover

from s3_api import __version__
from s3_api.config import ENV_KEYS, load_settings, reset_settings_cache
from s3_api.logging_utils import configure_logging
from s3_api.utils.masking import redact_sensitive_fields

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="s3-api", description="S3 provisioning API")
    parser.add_argument("--config", help="path to the JSON configuration file")
    parser.add_argument(
        "--version", action="store_true", help="print the version and exit"
    )
    return parser.parse_args(argv)


def run_entrypoint(argv: list[str] | None = None) -> None:
    """Load configuration, configure logging and serve HTTP until stopped."""
    args = _parse_args(argv)
    if args.config:
        os.environ[ENV_KEYS["config_path"]] = args.config
        reset_settings_cache()

    settings = load_settings()
    if args.version:
        print(
            f"s3-api version: {settings.version.full_version} "
            f"({settings.version.githash or 'unknown'}) "
            f"built at {settings.version.buildstamp or 'unknown'}"
        )
        return

    configure_logging(settings)
    logger.info("Initializing s3-api v%s", __version__)
    logger.debug(
        "loaded configuration: %s",
        redact_sensitive_fields(settings.model_dump(mode="json", by_alias=True)),
    )

    import uvicorn

    from s3_api.transport.http_server import create_http_app

    app = create_http_app(settings)
    host, port = settings.listen_host_port()
    logger.info("starting listener on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port, ws="none", log_config=None)


if __name__ == "__main__":  # pragma: no cover
    run_entrypoint()
