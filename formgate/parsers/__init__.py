"""
Body decoders.

Each decoder consumes a :class:`~formgate.limits.BoundedReader` and
returns ``(values, files)`` or raises a
:class:`~formgate.faults.ParseError`.
"""

from .jsonbody import decode_json
from .multipart import decode_multipart
from .urlencoded import decode_urlencoded

__all__ = [
    "decode_json",
    "decode_multipart",
    "decode_urlencoded",
]
