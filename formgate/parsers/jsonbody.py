"""
application/json decoder with a strict schema.

The body must be exactly one JSON object whose values are non-empty
strings or non-empty arrays of strings, the same shape the browser
encodings produce. Anything else is rejected instead of coerced, and
empty values are errors here rather than being dropped.
"""

from __future__ import annotations

import json as stdlib_json
import re
from typing import Any, Dict, Tuple

from .._datastructures import MultiDict
from .._uploads import FormFiles
from ..faults import BadRequest
from ..limits import BoundedReader
from ._io import read_body

_WHITESPACE = re.compile(r"[ \t\n\r]*")
_LONE_SURROGATE = re.compile("[\ud800-\udfff]")

MALFORMED = "Request body contains malformed JSON"
EMPTY_BODY = "Request body must not be empty"
NOT_AN_OBJECT = "Request body must contain a JSON object"
TRAILING_DATA = "Request body must only contain a single JSON object"
NO_FIELDS = "JSON object contains no fields"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


_decoder = stdlib_json.JSONDecoder(parse_constant=_reject_constant)


def _replace_surrogates(text: str) -> str:
    # \u escapes for unpaired surrogates decode to code points UTF-8 cannot encode
    return _LONE_SURROGATE.sub("\ufffd", text)


def load_single_object(text: str) -> Dict[str, Any]:
    """
    Decode exactly one JSON object from ``text``.

    Raises:
        BadRequest: empty body, malformed JSON, a non-object top-level
            value, or trailing content after the object
    """
    start = _WHITESPACE.match(text, 0).end()
    if start == len(text):
        raise BadRequest(EMPTY_BODY)

    try:
        document, end = _decoder.raw_decode(text, start)
    except stdlib_json.JSONDecodeError as exc:
        # unterminated strings are reported at their opening quote
        if exc.pos >= len(text) or exc.msg.startswith("Unterminated string"):
            raise BadRequest(MALFORMED)
        raise BadRequest(f"{MALFORMED} (at position {exc.pos})", position=exc.pos)
    except (ValueError, RecursionError):
        raise BadRequest(MALFORMED)

    if not isinstance(document, dict):
        raise BadRequest(NOT_AN_OBJECT, found=type(document).__name__)

    if _WHITESPACE.match(text, end).end() != len(text):
        raise BadRequest(TRAILING_DATA)

    return document


def narrow_fields(document: Dict[str, Any]) -> MultiDict:
    """
    Narrow a decoded object to string / array-of-string fields.

    Raises:
        BadRequest: naming the first field that does not fit
    """
    if not document:
        raise BadRequest(NO_FIELDS)

    values = MultiDict()
    for name, value in document.items():
        name = _replace_surrogates(name)
        if isinstance(value, str):
            if value == "":
                raise BadRequest(
                    f'JSON object contains invalid value for field "{name}", cannot use an empty string',
                    field=name,
                )
            values[name] = [_replace_surrogates(value)]

        elif isinstance(value, list):
            if not value:
                raise BadRequest(
                    f'JSON object contains invalid value for field "{name}", cannot use an empty array',
                    field=name,
                )
            if not all(isinstance(item, str) for item in value):
                raise BadRequest(
                    f'JSON object contains invalid array for field "{name}", '
                    f"array values must be exclusively strings",
                    field=name,
                )
            values[name] = [_replace_surrogates(item) for item in value]

        else:
            raise BadRequest(
                f'JSON object contains invalid value for field "{name}", '
                f"values must be string or array of string types",
                field=name,
            )

    return values


async def decode_json(reader: BoundedReader) -> Tuple[MultiDict, FormFiles]:
    """Decode a JSON body. Field reduction is not applied."""
    body = await read_body(reader)
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise BadRequest(f"{MALFORMED} (invalid UTF-8 at byte {exc.start})", position=exc.start)
    return narrow_fields(load_single_object(text)), FormFiles()
