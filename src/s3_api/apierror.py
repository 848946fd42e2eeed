"""Error taxonomy shared by the gateways, workflows and HTTP layer."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    BAD_REQUEST = "BadRequest"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    LIMIT_EXCEEDED = "LimitExceeded"
    SERVICE_UNAVAILABLE = "ServiceUnavailable"
    INTERNAL_ERROR = "InternalError"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.LIMIT_EXCEEDED: 429,
    ErrorKind.SERVICE_UNAVAILABLE: 503,
    ErrorKind.INTERNAL_ERROR: 500,
}


class ApiError(Exception):
    """A classified failure with a machine tag, a message and an optional cause."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def wrap(self, context: str) -> ApiError:
        """Return a copy of this error with ``context`` prefixed to the message."""
        return ApiError(self.kind, f"{context}: {self.message}", self.cause or self)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.kind.value, "message": self.message}

    def __repr__(self) -> str:
        return f"ApiError(kind={self.kind.value}, message={self.message!r})"


def is_not_found(exc: BaseException) -> bool:
    return isinstance(exc, ApiError) and exc.kind is ErrorKind.NOT_FOUND
