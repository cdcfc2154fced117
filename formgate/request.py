"""
Request - ASGI request wrapper used by the form parser.

Provides:
- Typed access to the ASGI scope (method, path, query string, headers)
- Content-Type / Content-Length helpers
- One-shot streaming of the request body with disconnect detection
"""

from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Awaitable, Callable, Mapping, Optional

from ._datastructures import Headers, ParsedContentType


class ClientDisconnect(Exception):
    """The client went away before the body was fully received."""


class Request:
    """
    Request object wrapping an ASGI scope and receive channel.

    The body is a stream: it can be iterated exactly once.
    """

    def __init__(
        self,
        scope: Mapping[str, Any],
        receive: Callable[..., Awaitable[dict]],
    ):
        self.scope = scope
        self._receive = receive
        self._headers: Optional[Headers] = None
        self._body_consumed = False
        self._disconnected = False

    # ========================================================================
    # Basic Properties
    # ========================================================================

    @property
    def method(self) -> str:
        return self.scope.get("method", "GET")

    @property
    def path(self) -> str:
        return self.scope.get("path", "/")

    @property
    def query_string(self) -> str:
        """Raw query string. Never consulted by the body decoders."""
        return self.scope.get("query_string", b"").decode("latin-1")

    @property
    def headers(self) -> Headers:
        """Get parsed headers."""
        if self._headers is None:
            self._headers = Headers(raw=list(self.scope.get("headers", [])))
        return self._headers

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name, default)

    # ========================================================================
    # Content Helpers
    # ========================================================================

    def content_type(self) -> str:
        """Get Content-Type header, empty string when absent."""
        return self.header("content-type", "") or ""

    def parsed_content_type(self) -> Optional[ParsedContentType]:
        return ParsedContentType.parse(self.content_type())

    def content_length(self) -> Optional[int]:
        """
        Content-Length header as int.

        Informational only; body limits are enforced while reading.
        """
        length = self.header("content-length")
        if length:
            try:
                return int(length)
            except ValueError:
                return None
        return None

    # ========================================================================
    # Body Streaming
    # ========================================================================

    async def _receive_message(self) -> dict:
        try:
            message = await self._receive()
        except asyncio.CancelledError:
            self._disconnected = True
            raise
        if message["type"] == "http.disconnect":
            self._disconnected = True
            raise ClientDisconnect("Client disconnected")
        return message

    def is_disconnected(self) -> bool:
        return self._disconnected

    @property
    def body_consumed(self) -> bool:
        return self._body_consumed

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        """
        Stream request body in chunks, as the server delivers them.

        Raises:
            ClientDisconnect: If client disconnects during streaming
            RuntimeError: If the body was already consumed
        """
        if self._body_consumed:
            raise RuntimeError("Request body already consumed")
        self._body_consumed = True

        while True:
            message = await self._receive_message()

            if message["type"] == "http.request":
                chunk = message.get("body", b"")
                if chunk:
                    yield chunk

                if not message.get("more_body", False):
                    break
