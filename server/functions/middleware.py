"""ASGI middleware that caps the size of request bodies."""

from fastapi import HTTPException
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from functions.logging_config import get_logger

logger = get_logger("middleware")

BODY_TOO_LARGE_ERROR = "Request body too large."


class RequestBodyTooLarge(HTTPException):
    """Raised from receive() once a streamed body passes the limit."""

    def __init__(self):
        super().__init__(status_code=413, detail=BODY_TOO_LARGE_ERROR)


class BodySizeLimitMiddleware:
    """
    Reject request bodies larger than max_body_bytes with a 413.

    A declared Content-Length is checked up front. Bodies without one
    (chunked transfer encoding) are counted as they are received.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int):
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit():
            if int(content_length) > self.max_body_bytes:
                logger.warning(f"Rejected request body of {content_length} bytes")
                await self._reject(scope, receive, send)
                return
            await self.app(scope, receive, send)
            return

        received = 0
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    logger.warning(f"Rejected streamed request body after {received} bytes")
                    raise RequestBodyTooLarge()
            return message

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, tracking_send)
        except RequestBodyTooLarge:
            if response_started:
                raise
            await self._reject(scope, receive, send)

    async def _reject(self, scope: Scope, receive: Receive, send: Send) -> None:
        response = JSONResponse(status_code=413, content={"error": BODY_TOO_LARGE_ERROR})
        await response(scope, receive, send)
