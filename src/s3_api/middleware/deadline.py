"""Per-request deadline.

A plain ASGI middleware so that expiry cancels the task running the
handler: the cancellation reaches the in-flight cloud call and unwinds
any open saga before the 504 is written.
"""

from __future__ import annotations

import asyncio
import logging

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class RequestDeadlineMiddleware:
    def __init__(self, app: ASGIApp, timeout_seconds: float = 15.0) -> None:
        self.app = app
        self.timeout_seconds = timeout_seconds

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await asyncio.wait_for(
                self.app(scope, receive, send_wrapper), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.error(
                "request %s %s timed out after %s seconds",
                scope.get("method"),
                scope.get("path"),
                self.timeout_seconds,
            )
            if response_started:
                return
            response = JSONResponse(
                status_code=504,
                content={
                    "error": "RequestTimeout",
                    "message": f"Request timed out after {self.timeout_seconds} seconds",
                },
            )
            await response(scope, receive, send)
