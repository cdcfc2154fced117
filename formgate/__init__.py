"""
formgate - request body normalizer for ASGI applications.

Turns URL-encoded, multipart and JSON submissions into one shape:
field name -> list of strings, plus field name -> list of uploaded
files, with size ceilings and structured parse errors.

Usage:
    ```python
    from formgate import Request, parse_form

    request = Request(scope, receive)
    values, files, error = await parse_form(request)
    ```
"""

from ._datastructures import Headers, MultiDict, ParsedContentType
from ._uploads import FormFiles, UploadFile
from .config import FormConfig
from .faults import (
    BadRequest,
    ConfigInvalidFault,
    Fault,
    InternalFailure,
    ParseError,
    PayloadTooLarge,
    UnsupportedMediaType,
)
from .handler import FormParser, ParseOutcome, parse_form, parse_form_with_config
from .limits import BodyLimitExceeded, BoundedReader
from .negotiation import ContentKind, select_decoder
from .reducer import reduce_unanswered_fields
from .request import ClientDisconnect, Request
from .responses import ErrorResponse, error_response, send_error

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "parse_form",
    "parse_form_with_config",
    "FormParser",
    "ParseOutcome",
    "FormConfig",

    # Request & data
    "Request",
    "ClientDisconnect",
    "Headers",
    "MultiDict",
    "ParsedContentType",
    "FormFiles",
    "UploadFile",

    # Building blocks
    "ContentKind",
    "select_decoder",
    "BoundedReader",
    "BodyLimitExceeded",
    "reduce_unanswered_fields",

    # Errors
    "Fault",
    "ParseError",
    "UnsupportedMediaType",
    "BadRequest",
    "PayloadTooLarge",
    "InternalFailure",
    "ConfigInvalidFault",

    # Responses
    "ErrorResponse",
    "error_response",
    "send_error",
]
