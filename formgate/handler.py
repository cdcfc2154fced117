"""
Form handler - the entry point that turns a request body into form data.

``parse_form`` negotiates the decoder from the Content-Type header,
bounds the body, decodes it and hands back a :class:`ParseOutcome`.
Parse errors are returned, never raised.

Example:
    ```python
    async def contact(scope, receive, send):
        request = Request(scope, receive)
        async with await parse_form(request) as outcome:
            values, files, error = outcome
            if error:
                await send_error(send, error)
                return
            ...
    ```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterator, Optional

from ._datastructures import MultiDict
from ._uploads import FormFiles
from .config import DEFAULT_CONFIG, FormConfig
from .faults import InternalFailure, ParseError
from .limits import BoundedReader, ceiling_for
from .negotiation import ContentKind, select_decoder
from .parsers import decode_json, decode_multipart, decode_urlencoded
from .request import Request

logger = logging.getLogger("formgate.handler")


@dataclass
class ParseOutcome:
    """
    Result of parsing one request body.

    Unpacks as ``values, files, error``. When ``error`` is set, values
    and files are empty. Used as a context manager it releases every
    spilled upload on exit, whatever happened inside the block.
    """

    values: MultiDict = field(default_factory=MultiDict)
    files: FormFiles = field(default_factory=FormFiles)
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __iter__(self) -> Iterator[Any]:
        yield self.values
        yield self.files
        yield self.error

    def release(self) -> None:
        self.files.release()

    async def cleanup(self) -> None:
        await self.files.cleanup()

    def __enter__(self) -> "ParseOutcome":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()

    async def __aenter__(self) -> "ParseOutcome":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.cleanup()


class FormParser:
    """
    Configured form parser.

    Holds no per-request state, so one instance can serve concurrent
    requests.
    """

    def __init__(self, config: Optional[FormConfig] = None):
        self.config = config or DEFAULT_CONFIG

    def __repr__(self) -> str:
        return f"FormParser({self.config!r})"

    async def parse(self, request: Request, response: Optional[Any] = None) -> ParseOutcome:
        """
        Parse the request body.

        Args:
            request: the request whose body is read (once)
            response: optional response sink told to close the
                connection when a size ceiling is crossed

        Returns:
            ParseOutcome with values and files, or with the error
        """
        try:
            values, files = await self._decode(request, response)
        except ParseError as error:
            logger.debug("Rejected %s body: %s", request.content_type() or "untyped", error)
            return ParseOutcome(error=error)
        return ParseOutcome(values=values, files=files)

    __call__ = parse

    async def _decode(self, request: Request, response: Optional[Any]):
        if request.body_consumed:
            raise InternalFailure("Request body was already consumed")
        content_type = request.content_type()
        kind = select_decoder(content_type)
        reader = BoundedReader(request.iter_bytes(), ceiling_for(kind, self.config), sink=response)
        logger.debug("Decoding %s body (limit %d bytes)", kind.value, reader.limit)

        if kind is ContentKind.JSON:
            return await decode_json(reader)
        if kind is ContentKind.URLENCODED:
            return await decode_urlencoded(reader, self.config)
        return await decode_multipart(reader, content_type, self.config)


_default_parser = FormParser(DEFAULT_CONFIG)


async def parse_form(request: Request, response: Optional[Any] = None) -> ParseOutcome:
    """
    Parse a request body with the default limits.

    JSON and URL-encoded bodies are capped at 1 MiB, multipart bodies
    at 10 MiB, and up to 10 MiB of file data is held in memory.
    """
    return await _default_parser.parse(request, response)


def parse_form_with_config(
    max_form_size: int = DEFAULT_CONFIG.max_form_size,
    max_form_with_files_size: int = DEFAULT_CONFIG.max_form_with_files_size,
    max_memory: int = DEFAULT_CONFIG.max_memory,
    **options: Any,
) -> Callable[..., Awaitable[ParseOutcome]]:
    """
    Build a ``parse_form``-shaped coroutine function with custom limits.

    Args:
        max_form_size: ceiling in bytes for JSON and URL-encoded bodies
        max_form_with_files_size: ceiling in bytes for multipart bodies
        max_memory: file bytes held in memory before spilling to disk
        **options: ``max_fields`` and ``upload_dir``

    Raises:
        ConfigInvalidFault: for invalid or unknown options
    """
    config = DEFAULT_CONFIG.with_overrides(
        max_form_size=max_form_size,
        max_form_with_files_size=max_form_with_files_size,
        max_memory=max_memory,
        **options,
    )
    return FormParser(config).parse
