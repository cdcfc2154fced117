"""
Error responses - render a ParseError for the client.

The HTTP layer owns the response; these helpers give it the status,
headers and JSON body implied by a parse error, and can send them over
a raw ASGI ``send`` channel.
"""

from __future__ import annotations

import json as stdlib_json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Tuple

from .faults import ParseError


@dataclass
class ErrorResponse:
    """HTTP response representation."""
    status_code: int
    body: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)

    def render(self) -> bytes:
        return stdlib_json.dumps(self.body, default=str).encode("utf-8")

    def raw_headers(self, content_length: int) -> List[Tuple[bytes, bytes]]:
        headers = dict(self.headers)
        headers["content-length"] = str(content_length)
        return [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in headers.items()]


def error_response(error: ParseError) -> ErrorResponse:
    """
    Map a parse error to an HTTP response.

    Body shape::

        {"error": {"code": ..., "message": ..., "status": ...}}

    Field-level metadata is included when the error names a field.
    """
    body: Dict[str, Any] = {
        "error": {
            "code": error.code,
            "message": error.message if error.public else "Internal server error",
            "status": error.status,
        }
    }
    if error.public and "field" in error.metadata:
        body["error"]["field"] = error.metadata["field"]

    headers = {"content-type": "application/json"}
    if error.status == 413:
        headers["connection"] = "close"

    return ErrorResponse(status_code=error.status, body=body, headers=headers)


async def send_error(send: Callable[[dict], Awaitable[None]], error: ParseError) -> None:
    """Send ``error`` as a complete HTTP response over an ASGI channel."""
    response = error_response(error)
    payload = response.render()
    await send({
        "type": "http.response.start",
        "status": response.status_code,
        "headers": response.raw_headers(len(payload)),
    })
    await send({"type": "http.response.body", "body": payload, "more_body": False})
