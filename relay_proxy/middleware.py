from __future__ import annotations

import logging
from typing import List

from fastapi import status
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger("relay-proxy.middleware")


class BodySizeLimitMiddleware:
    """
    Reject request bodies larger than ``max_body_bytes`` with 413.

    The bytes actually received are counted, so chunked bodies without a
    Content-Length are limited too. Accepted bodies are buffered and replayed
    to the application unchanged.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = dict(scope.get("headers") or []).get(b"content-length", b"")
        if declared.isdigit() and int(declared) > self.max_body_bytes:
            await self._reject(scope, receive, send, int(declared))
            return

        buffered: List[Message] = []
        received = 0
        more_body = True
        while more_body:
            message = await receive()
            buffered.append(message)
            if message["type"] != "http.request":
                break
            received += len(message.get("body", b""))
            if received > self.max_body_bytes:
                await self._reject(scope, receive, send, received)
                return
            more_body = message.get("more_body", False)

        async def replay() -> Message:
            if buffered:
                return buffered.pop(0)
            return await receive()

        await self.app(scope, replay, send)

    async def _reject(self, scope: Scope, receive: Receive, send: Send, size: int) -> None:
        logger.warning("rejected oversized request", extra={"path": scope.get("path"), "body_bytes": size})
        response = JSONResponse(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            content={"error": "Payload too large", "details": f"Request body exceeds {self.max_body_bytes} bytes"},
        )
        await response(scope, receive, send)
