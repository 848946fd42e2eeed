"""Credential masking for configuration dumps."""

from __future__ import annotations

_MAX_REDACT_DEPTH = 20

# Config keys carrying credentials: the API token and account key pairs.
SENSITIVE_KEY_MARKERS = ("token", "akid", "secret")


def is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in SENSITIVE_KEY_MARKERS)


def redact_sensitive_fields(
    value: object,
    *,
    mask: str = "***",
    depth: int = 0,
    max_depth: int = _MAX_REDACT_DEPTH,
) -> object:
    """Return ``value`` with credential values under dict keys replaced by ``mask``.

    Anything nested deeper than ``max_depth`` is masked whole.
    """
    if depth >= max_depth:
        return mask
    if isinstance(value, dict):
        return {
            key: (
                mask
                if isinstance(key, str) and is_sensitive_key(key)
                else redact_sensitive_fields(val, mask=mask, depth=depth + 1, max_depth=max_depth)
            )
            for key, val in value.items()
        }
    if isinstance(value, list):
        return [
            redact_sensitive_fields(item, mask=mask, depth=depth + 1, max_depth=max_depth)
            for item in value
        ]
    return value
