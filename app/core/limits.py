from typing import Callable

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .errors import RequestBodyTooLarge, too_large_response


class BodySizeLimitMiddleware:
    """Reject request bodies above a ceiling.

    A declared Content-Length over the limit is answered with 413 before the
    route runs. Bodies without a usable Content-Length are counted while they
    stream in; crossing the limit raises RequestBodyTooLarge from ``receive``
    so the registered exception handler builds the same 413 envelope.
    """

    def __init__(self, app: ASGIApp, limit: Callable[[], int]):
        self.app = app
        self.limit = limit

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = self.limit()
        declared = None
        for name, value in scope.get("headers", []):
            if name == b"content-length":
                try:
                    declared = int(value)
                except ValueError:
                    declared = None
                break

        if declared is not None and declared > limit:
            response = too_large_response(RequestBodyTooLarge(limit, declared))
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    raise RequestBodyTooLarge(limit)
            return message

        await self.app(scope, limited_receive, send)
