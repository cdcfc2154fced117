"""
formgate faults - structured errors.

Parse errors are not bare exceptions: each one is a typed fault with a
stable code, a public message, an HTTP status and metadata. Decoders
raise them; ``parse_form`` returns them to the caller as values.

Core exports:
- Fault: Base fault class
- FaultDomain: Domain taxonomy
- Severity: Severity levels
- ParseError and its kinds: UnsupportedMediaType, BadRequest,
  PayloadTooLarge, InternalFailure
"""

from .core import (
    Fault,
    FaultDomain,
    Severity,
)

from .domains import (
    ConfigFault,
    ConfigInvalidFault,
    ParseError,
    UnsupportedMediaType,
    BadRequest,
    PayloadTooLarge,
    InternalFailure,
)

__all__ = [
    # Core types
    "Fault",
    "FaultDomain",
    "Severity",

    # Config faults
    "ConfigFault",
    "ConfigInvalidFault",

    # Parse errors
    "ParseError",
    "UnsupportedMediaType",
    "BadRequest",
    "PayloadTooLarge",
    "InternalFailure",
]
