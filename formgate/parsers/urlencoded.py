"""
application/x-www-form-urlencoded decoder.
"""

from __future__ import annotations

import re
from typing import Tuple
from urllib.parse import parse_qsl

from .._datastructures import MultiDict
from .._uploads import FormFiles
from ..config import FormConfig
from ..faults import BadRequest
from ..limits import BoundedReader
from ..reducer import reduce_unanswered_fields
from ._io import read_body

INVALID_FORM = "Invalid URL encoded form"
TOO_MANY_FIELDS = "Too many form fields"

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def parse_urlencoded(body: bytes, max_fields: int) -> MultiDict:
    """
    Split an encoded body into a MultiDict.

    Raises:
        BadRequest: invalid percent escapes, ``;`` separators, bad UTF-8
            or more than ``max_fields`` pairs
    """
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError:
        raise BadRequest(INVALID_FORM, reason="body is not valid UTF-8")

    if ";" in text:
        raise BadRequest(INVALID_FORM, reason="semicolon separator")

    match = _BAD_ESCAPE.search(text)
    if match:
        raise BadRequest(INVALID_FORM, reason="invalid percent escape", position=match.start())

    try:
        pairs = parse_qsl(text, keep_blank_values=True, errors="strict")
    except ValueError:
        raise BadRequest(INVALID_FORM, reason="escaped bytes are not valid UTF-8")

    if len(pairs) > max_fields:
        raise BadRequest(TOO_MANY_FIELDS, max_allowed=max_fields, actual=len(pairs))

    return MultiDict((key, value) for key, value in pairs if key)


async def decode_urlencoded(reader: BoundedReader, config: FormConfig) -> Tuple[MultiDict, FormFiles]:
    """Decode the body into values; unanswered fields are dropped."""
    body = await read_body(reader)
    values = parse_urlencoded(body, config.max_fields)
    return reduce_unanswered_fields(values), FormFiles()
