"""
multipart/form-data decoder.

Streams the bounded body through python-multipart's callback parser.
File parts are buffered in memory while the per-request ``max_memory``
budget lasts; a file part that would overrun it is spilled to a named
temporary file that the caller later releases through ``FormFiles``.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Optional, Tuple

from python_multipart import MultipartParser
from python_multipart.exceptions import FormParserError
from python_multipart.multipart import parse_options_header

from .._datastructures import MultiDict, ParsedContentType
from .._uploads import FormFiles, UploadWriter
from ..config import FormConfig
from ..faults import BadRequest, InternalFailure, PayloadTooLarge
from ..limits import BodyLimitExceeded, BoundedReader
from ..reducer import reduce_unanswered_fields
from ..request import ClientDisconnect
from ._io import BODY_TOO_LARGE, CLIENT_DISCONNECTED

logger = logging.getLogger("formgate.multipart")

INVALID_FORM = "Invalid multipart form"
TOO_MANY_FIELDS = "Too many form fields"
DEFAULT_FILE_TYPE = "application/octet-stream"

_FILENAME_PARAM = re.compile(
    r';\s*filename\s*=\s*(?:"((?:[^"\\]|\\.)*)"|([^;\s]*))',
    re.IGNORECASE,
)


def raw_filename(disposition: str) -> Optional[bytes]:
    """
    The ``filename`` parameter of a Content-Disposition value, as sent.

    Only an escaped quote is unescaped; backslashes and path separators
    are kept. Returns None when the parameter is absent.
    """
    match = _FILENAME_PARAM.search(disposition)
    if match is None:
        return None
    if match.group(1) is not None:
        return match.group(1).replace('\\"', '"').encode("latin-1")
    return match.group(2).encode("latin-1")


def _utf8_or_reject(raw: bytes, what: str, name: Optional[str] = None) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        metadata = {"reason": f"{what} is not valid UTF-8"}
        if name is not None:
            metadata["field"] = name
        raise BadRequest(INVALID_FORM, **metadata) from exc


class _PartCollector:
    """Parser callbacks that sort parts into values and files."""

    def __init__(self, config: FormConfig):
        self.config = config
        self.values = MultiDict()
        self.files = FormFiles()
        self.memory_left = config.max_memory
        self.part_count = 0
        self.finished = False

        self._headers: Dict[str, str] = {}
        self._header_field = bytearray()
        self._header_value = bytearray()
        self._name: Optional[str] = None
        self._value = bytearray()
        self._writer: Optional[UploadWriter] = None

    def callbacks(self) -> dict:
        return {
            "on_part_begin": self.on_part_begin,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_headers_finished": self.on_headers_finished,
            "on_end": self.on_end,
        }

    def on_part_begin(self) -> None:
        self.part_count += 1
        if self.part_count > self.config.max_fields:
            raise BadRequest(
                TOO_MANY_FIELDS,
                max_allowed=self.config.max_fields,
                actual=self.part_count,
            )
        self._headers = {}
        self._header_field = bytearray()
        self._header_value = bytearray()
        self._name = None
        self._value = bytearray()
        self._writer = None

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field.extend(data[start:end])

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value.extend(data[start:end])

    def on_header_end(self) -> None:
        if self._header_field:
            # latin-1 keeps the raw bytes so UTF-8 names survive the round trip
            name = self._header_field.decode("latin-1").lower()
            self._headers[name] = self._header_value.decode("latin-1")
        self._header_field = bytearray()
        self._header_value = bytearray()

    def on_headers_finished(self) -> None:
        disposition = self._headers.get("content-disposition", "")
        _, options = parse_options_header(disposition)

        name = options.get(b"name")
        self._name = _utf8_or_reject(name, "field name") if name else None

        # parse_options_header strips Windows paths; the client value is kept as is
        filename = raw_filename(disposition)
        if filename is None:
            filename = options.get(b"filename")
        if filename:
            self._writer = UploadWriter(
                filename=filename.decode("utf-8", errors="replace"),
                content_type=self._headers.get("content-type") or DEFAULT_FILE_TYPE,
            )

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        chunk = data[start:end]
        writer = self._writer
        if writer is None:
            self._value.extend(chunk)
            return

        if not writer.spilled and writer.size + len(chunk) > self.memory_left:
            path = writer.spill(self.config.upload_dir)
            logger.debug("Spilled upload %r for field %r to %s", writer.filename, self._name, path)
        writer.write(chunk)

    def on_part_end(self) -> None:
        writer, self._writer = self._writer, None

        if not self._name:
            if writer is not None:
                writer.abort()
            return

        if writer is None:
            self.values.add(self._name, _utf8_or_reject(bytes(self._value), "value", self._name))
            return

        upload = writer.finish()
        if upload.in_memory:
            self.memory_left -= upload.size
        self.files.add(self._name, upload)

    def on_end(self) -> None:
        self.finished = True

    def discard(self) -> None:
        """Remove every temporary file created so far."""
        if self._writer is not None:
            self._writer.abort()
            self._writer = None
        self.files.release()


async def _feed(parser: MultipartParser, reader: BoundedReader, collector: _PartCollector) -> None:
    try:
        async for chunk in reader:
            parser.write(chunk)
        parser.finalize()
    except BodyLimitExceeded as exc:
        raise PayloadTooLarge(BODY_TOO_LARGE, limit=exc.limit) from exc
    except ClientDisconnect as exc:
        raise BadRequest(CLIENT_DISCONNECTED) from exc
    except FormParserError as exc:
        raise BadRequest(INVALID_FORM, reason=str(exc)) from exc
    except OSError as exc:
        raise InternalFailure("Uploaded file could not be stored", reason=str(exc)) from exc

    if not collector.finished:
        raise BadRequest(INVALID_FORM, reason="missing closing boundary")


async def decode_multipart(
    reader: BoundedReader,
    content_type: str,
    config: FormConfig,
) -> Tuple[MultiDict, FormFiles]:
    """
    Decode a multipart body into values and files.

    On failure every temporary file is removed before the error
    propagates; on success the caller owns the returned files.
    """
    parsed = ParsedContentType.parse(content_type)
    boundary = parsed.boundary if parsed else None
    if not boundary:
        raise BadRequest(INVALID_FORM, reason="missing boundary")

    collector = _PartCollector(config)
    parser = MultipartParser(boundary.encode("latin-1"), collector.callbacks())

    try:
        await _feed(parser, reader, collector)
    except BaseException:
        collector.discard()
        raise

    return reduce_unanswered_fields(collector.values), collector.files
