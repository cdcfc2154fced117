"""
Shared body-reading helpers for the decoders.
"""

from __future__ import annotations

from ..faults import BadRequest, PayloadTooLarge
from ..limits import BodyLimitExceeded, BoundedReader
from ..request import ClientDisconnect

CLIENT_DISCONNECTED = "Client disconnected before the request body was complete"
BODY_TOO_LARGE = "Request body too large"


async def read_body(reader: BoundedReader) -> bytes:
    """
    Read a whole bounded body.

    Raises:
        PayloadTooLarge: the body crossed the reader's ceiling
        BadRequest: the client disconnected mid-body
    """
    try:
        return await reader.read()
    except BodyLimitExceeded as exc:
        raise PayloadTooLarge(BODY_TOO_LARGE, limit=exc.limit) from exc
    except ClientDisconnect as exc:
        raise BadRequest(CLIENT_DISCONNECTED) from exc
