"""
Containers shared by the request wrapper and the decoders.

- MultiDict: field name -> ordered values (what the decoders return)
- Headers: read-only, case-insensitive view over raw ASGI headers
- ParsedContentType: media type plus parameters of a Content-Type value
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import (
    Dict, Iterable, Iterator, List, Mapping, MutableMapping,
    Optional, Tuple, Union
)

from python_multipart.multipart import parse_options_header

FieldSource = Union[Iterable[Tuple[str, str]], Mapping[str, Union[str, List[str]]]]


# ============================================================================
# MultiDict
# ============================================================================

class MultiDict(MutableMapping[str, List[str]]):
    """
    Form values: each field maps to the list of strings submitted for it.

    Fields are ordered by first appearance and each list keeps the order
    the values arrived in. ``md[name]`` is the whole list; ``get`` gives
    the first value, which is what single-valued inputs want.
    """

    def __init__(self, items: Optional[FieldSource] = None):
        self._fields: Dict[str, List[str]] = {}
        if not items:
            return
        if isinstance(items, Mapping):
            for name, value in items.items():
                self[name] = list(value) if isinstance(value, list) else value
        else:
            for name, value in items:
                self.add(name, value)

    def __getitem__(self, name: str) -> List[str]:
        return self._fields[name]

    def __setitem__(self, name: str, value: Union[str, List[str]]) -> None:
        self._fields[name] = value if isinstance(value, list) else [value]

    def __delitem__(self, name: str) -> None:
        del self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"MultiDict({self._fields!r})"

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value submitted for ``name``."""
        submitted = self._fields.get(name)
        if not submitted:
            return default
        return submitted[0]

    def get_all(self, name: str) -> List[str]:
        """Copy of every value submitted for ``name`` (empty if absent)."""
        return self._fields.get(name, [])[:]

    def add(self, name: str, value: str) -> None:
        if name in self._fields:
            self._fields[name].append(value)
        else:
            self._fields[name] = [value]

    def items_list(self) -> List[Tuple[str, str]]:
        """Flatten to ``(name, value)`` pairs, grouped by field."""
        pairs: List[Tuple[str, str]] = []
        for name, submitted in self._fields.items():
            pairs.extend((name, value) for value in submitted)
        return pairs

    def to_dict(self, multi: bool = True) -> Dict[str, Union[str, List[str]]]:
        """
        Plain dict copy.

        ``multi=False`` keeps only the first value of each field.
        """
        if not multi:
            return {name: submitted[0] for name, submitted in self._fields.items() if submitted}
        return {name: submitted[:] for name, submitted in self._fields.items()}


# ============================================================================
# Headers
# ============================================================================

@dataclass
class Headers:
    """Case-insensitive lookup over the ``(name, value)`` byte pairs of a scope."""

    raw: List[Tuple[bytes, bytes]] = field(default_factory=list)
    _by_name: Dict[str, List[str]] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        by_name: Dict[str, List[str]] = {}
        for raw_name, raw_value in self.raw:
            key = raw_name.decode("latin-1").lower()
            by_name.setdefault(key, []).append(raw_value.decode("latin-1"))
        self._by_name = by_name

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        found = self._by_name.get(name.lower())
        return found[0] if found else default

    def get_all(self, name: str) -> List[str]:
        return list(self._by_name.get(name.lower(), ()))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._by_name

    def __repr__(self) -> str:
        pairs = [(n.decode("latin-1"), v.decode("latin-1")) for n, v in self.raw]
        return f"Headers({pairs})"


# ============================================================================
# ParsedContentType
# ============================================================================

@dataclass
class ParsedContentType:
    """A Content-Type value split into media type and lower-cased parameter names."""

    media_type: str
    params: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def parse(cls, content_type: Optional[str]) -> Optional["ParsedContentType"]:
        if not content_type:
            return None
        media_type, options = parse_options_header(content_type)
        params = {
            key.decode("latin-1").lower(): value.decode("latin-1")
            for key, value in options.items()
        }
        return cls(media_type=media_type.decode("latin-1").strip().lower(), params=params)

    @property
    def charset(self) -> str:
        return self.params.get("charset", "utf-8")

    @property
    def boundary(self) -> Optional[str]:
        return self.params.get("boundary")
