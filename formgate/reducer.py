"""
Field reduction for browser-native encodings.

Unanswered optional inputs arrive either as an empty string or not at
all, depending on the encoding. Removing the empty ones leaves a single
"key exists" test for presence.
"""

from __future__ import annotations

from typing import List, MutableMapping, TypeVar

M = TypeVar("M", bound=MutableMapping[str, List[str]])


def is_unanswered(values: List[str]) -> bool:
    return not values or (len(values) == 1 and values[0] == "")


def reduce_unanswered_fields(values: M) -> M:
    """Delete, in place, every field whose values are ``[]`` or ``[""]``."""
    for name in [name for name, field_values in values.items() if is_unanswered(field_values)]:
        del values[name]
    return values
