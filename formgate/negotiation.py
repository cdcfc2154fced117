"""
Content negotiation - pick a body decoder from the Content-Type header.
"""

from __future__ import annotations

from enum import Enum

from .faults import UnsupportedMediaType

FORM_URLENCODED = "application/x-www-form-urlencoded"
APPLICATION_JSON = "application/json"
MULTIPART_FORM_DATA = "multipart/form-data"


class ContentKind(str, Enum):
    """Body encodings the form parser understands."""
    JSON = APPLICATION_JSON
    URLENCODED = FORM_URLENCODED
    MULTIPART = MULTIPART_FORM_DATA

    @property
    def can_carry_files(self) -> bool:
        return self is ContentKind.MULTIPART


def is_multipart_form(content_type: str) -> bool:
    # The header carries a boundary parameter, so match the prefix only.
    return content_type.startswith(MULTIPART_FORM_DATA)


def select_decoder(content_type: str) -> ContentKind:
    """
    Map a raw Content-Type header value to a :class:`ContentKind`.

    JSON and URL-encoded bodies are matched exactly, multipart by prefix.

    Raises:
        UnsupportedMediaType: header missing or not one of the three kinds
    """
    if not content_type:
        raise UnsupportedMediaType("Content-Type header is required")
    if content_type == APPLICATION_JSON:
        return ContentKind.JSON
    if content_type == FORM_URLENCODED:
        return ContentKind.URLENCODED
    if is_multipart_form(content_type):
        return ContentKind.MULTIPART
    raise UnsupportedMediaType(
        f"Content-Type header {content_type} is unsupported",
        content_type=content_type,
    )
