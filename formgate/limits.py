"""
Body size limits.

``BoundedReader`` wraps the request body stream and counts bytes as they
are read. Reading past the ceiling raises :class:`BodyLimitExceeded`;
``Content-Length`` is never trusted.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterable, AsyncIterator, Optional

from .config import FormConfig
from .negotiation import ContentKind

logger = logging.getLogger("formgate.limits")


class BodyLimitExceeded(Exception):
    """The request body crossed its configured ceiling."""

    def __init__(self, limit: int, received: int):
        super().__init__(f"Request body exceeds {limit} bytes")
        self.limit = limit
        self.received = received


def ceiling_for(kind: ContentKind, config: FormConfig) -> int:
    """Byte ceiling for a content kind: file-carrying bodies get the larger one."""
    if kind.can_carry_files:
        return config.max_form_with_files_size
    return config.max_form_size


class BoundedReader:
    """
    Size-limited view over an async stream of body chunks.

    ``sink`` is the outgoing response (anything with a mutable
    ``headers`` mapping). When the ceiling is crossed it is marked
    ``Connection: close`` so the transport stops reading the body.
    """

    def __init__(self, source: AsyncIterable[bytes], limit: int, sink: Optional[Any] = None):
        if limit < 0:
            raise ValueError("limit must not be negative")
        self._source = source
        self.limit = limit
        self.sink = sink
        self.bytes_read = 0
        self.exceeded = False

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        if self.exceeded:
            raise BodyLimitExceeded(self.limit, self.bytes_read)

        async for chunk in self._source:
            self.bytes_read += len(chunk)
            if self.bytes_read > self.limit:
                self._trip()
            yield chunk

    async def read(self) -> bytes:
        """Read the remaining body into memory."""
        return b"".join([chunk async for chunk in self])

    def _trip(self) -> None:
        self.exceeded = True
        logger.debug("Body exceeded %d bytes (read %d)", self.limit, self.bytes_read)
        if self.sink is not None:
            headers = getattr(self.sink, "headers", None)
            if headers is not None:
                headers["connection"] = "close"
        raise BodyLimitExceeded(self.limit, self.bytes_read)
