"""
formgate faults - domain-specific fault types.

Provides concrete fault classes for:
- CONFIG faults (invalid parser configuration)
- IO faults (request body parse errors, one class per HTTP status family)
"""

from typing import Any, Optional

from .core import Fault, FaultDomain, Severity


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigFault(Fault):
    """Base class for configuration faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.CONFIG,
            severity=Severity.FATAL,
            retryable=False,
            public=False,
            metadata=metadata,
        )


class ConfigInvalidFault(ConfigFault):
    """Configuration value is invalid."""

    def __init__(self, key: str, reason: str, **kwargs):
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Configuration key '{key}' is invalid: {reason}",
            metadata={"key": key, "reason": reason, **kwargs.get("metadata", {})},
        )


# ============================================================================
# IO Faults - request body parse errors
# ============================================================================

class ParseError(Fault):
    """
    Base class for request body parse errors.

    ``status`` is the HTTP status the caller should answer with and
    ``kind`` the abstract error kind. Instances are created where the
    failure is detected and handed to the caller unchanged.
    """
    domain = FaultDomain.IO
    status = 500
    kind = "InternalFailure"
    code = "PARSE_ERROR"
    message = "Request body could not be parsed"

    def __init__(self, message: str = None, **metadata):
        super().__init__(
            code=self.code,
            message=message or self.message,
            domain=self.domain,
            public=True,
            metadata=metadata,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(status={self.status}, message={self.message!r})"

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["status"] = self.status
        data["kind"] = self.kind
        return data


class UnsupportedMediaType(ParseError):
    """Content-Type missing or unrecognized (415)."""
    status = 415
    kind = "UnsupportedMediaType"
    code = "UNSUPPORTED_MEDIA_TYPE"
    message = "Unsupported media type"


class BadRequest(ParseError):
    """Malformed body, schema violation or trailing data (400)."""
    status = 400
    kind = "BadRequest"
    code = "BAD_REQUEST"
    message = "Bad request"


class PayloadTooLarge(ParseError):
    """Body exceeded the configured ceiling (413)."""
    status = 413
    kind = "PayloadTooLarge"
    code = "PAYLOAD_TOO_LARGE"
    message = "Request body too large"


class InternalFailure(ParseError):
    """Unclassified decode failure (500)."""
    status = 500
    kind = "InternalFailure"
    code = "INTERNAL_FAILURE"
    message = "Request body could not be parsed"
    severity = Severity.ERROR
