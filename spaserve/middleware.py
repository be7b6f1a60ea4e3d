"""ASGI middleware bounding how long a request may take to read and answer."""

import asyncio
import logging
from typing import Optional

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class TimeoutMiddleware:
    """Apply read and write deadlines to HTTP requests.

    ``read_timeout`` bounds each wait for request body data, ``write_timeout``
    bounds the whole application call including writing the response.  A
    timeout is logged and re-raised so the server drops the connection.
    Zero or ``None`` disables the corresponding deadline.
    """

    def __init__(
        self,
        app: ASGIApp,
        read_timeout: Optional[float] = None,
        write_timeout: Optional[float] = None,
    ):
        self.app = app
        self.read_timeout = read_timeout or None
        self.write_timeout = write_timeout or None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        read_timed_out = False

        async def timed_receive() -> Message:
            nonlocal read_timed_out
            try:
                return await asyncio.wait_for(receive(), self.read_timeout)
            except asyncio.TimeoutError:
                read_timed_out = True
                logger.warning(f"Read timeout after {self.read_timeout}s. path: {path}")
                raise

        try:
            await asyncio.wait_for(self.app(scope, timed_receive, send), self.write_timeout)
        except asyncio.TimeoutError:
            if not read_timed_out:
                logger.warning(f"Write timeout after {self.write_timeout}s. path: {path}")
            raise
