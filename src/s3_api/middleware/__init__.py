"""Token auth, audit and deadline middleware for the HTTP shell."""

from .audit import AuditMiddleware
from .auth import TokenAuthMiddleware
from .deadline import RequestDeadlineMiddleware

__all__ = ["AuditMiddleware", "RequestDeadlineMiddleware", "TokenAuthMiddleware"]
