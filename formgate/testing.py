"""
Test helpers for code that parses forms with formgate.

Builds ASGI scopes, receive channels and multipart bodies so a
:class:`~formgate.request.Request` can be constructed without a server.
"""

from __future__ import annotations

import uuid
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .request import Request

FieldItems = Union[Mapping[str, str], Sequence[Tuple[str, str]]]


def make_scope(
    method: str = "POST",
    path: str = "/",
    query_string: Union[str, bytes] = b"",
    headers: Optional[Iterable[Tuple[Union[str, bytes], Union[str, bytes]]]] = None,
) -> dict:
    """Build a minimal ASGI HTTP scope."""
    raw_headers = []
    for name, value in headers or []:
        raw_headers.append((
            name.encode("latin-1") if isinstance(name, str) else name,
            value.encode("latin-1") if isinstance(value, str) else value,
        ))
    if isinstance(query_string, str):
        query_string = query_string.encode("latin-1")
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "path": path,
        "query_string": query_string,
        "headers": raw_headers,
    }


def make_receive(body: bytes = b"", chunk_size: Optional[int] = None, disconnect_after: Optional[int] = None):
    """
    Build an ASGI receive callable delivering ``body``.

    Args:
        chunk_size: split the body into messages of this size
        disconnect_after: send ``http.disconnect`` after this many
            body messages instead of finishing the body
    """
    size = chunk_size or max(len(body), 1)
    chunks = [body[i:i + size] for i in range(0, len(body), size)] or [b""]
    messages: List[dict] = [
        {"type": "http.request", "body": chunk, "more_body": i < len(chunks) - 1}
        for i, chunk in enumerate(chunks)
    ]
    if disconnect_after is not None:
        messages = messages[:disconnect_after]
        for message in messages:
            message["more_body"] = True
        messages.append({"type": "http.disconnect"})

    async def receive() -> dict:
        if messages:
            return messages.pop(0)
        return {"type": "http.disconnect"}

    return receive


def make_request(
    body: bytes = b"",
    content_type: Optional[str] = None,
    *,
    query_string: Union[str, bytes] = b"",
    chunk_size: Optional[int] = None,
    disconnect_after: Optional[int] = None,
    headers: Optional[Iterable[Tuple[str, str]]] = None,
) -> Request:
    """Build a :class:`Request` carrying ``body``."""
    all_headers: List[Tuple[Any, Any]] = list(headers or [])
    if content_type is not None:
        all_headers.append(("content-type", content_type))
    all_headers.append(("content-length", str(len(body))))
    return Request(
        make_scope(query_string=query_string, headers=all_headers),
        make_receive(body, chunk_size=chunk_size, disconnect_after=disconnect_after),
    )


def build_multipart(
    fields: FieldItems = (),
    files: Sequence[Tuple[str, str, bytes, str]] = (),
    boundary: Optional[str] = None,
) -> Tuple[bytes, str]:
    """
    Build a multipart/form-data body.

    Args:
        fields: ``{name: value}`` or ``[(name, value), ...]`` for repeats
        files: ``[(field_name, filename, content, content_type), ...]``

    Returns:
        ``(body_bytes, content_type_header)``
    """
    boundary = boundary or f"----FormgateBoundary{uuid.uuid4().hex[:16]}"
    items = fields.items() if isinstance(fields, Mapping) else fields
    parts: List[bytes] = []

    for name, value in items:
        parts.append(
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="{name}"\r\n\r\n'
            f"{value}\r\n".encode("utf-8")
        )

    for field_name, filename, content, content_type in files:
        parts.append(
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="{field_name}"; filename="{filename}"\r\n'
            f"Content-Type: {content_type}\r\n\r\n".encode("utf-8")
            + content
            + b"\r\n"
        )

    parts.append(f"--{boundary}--\r\n".encode("utf-8"))
    return b"".join(parts), f"multipart/form-data; boundary={boundary}"
