"""
Config - typed parser configuration.

Values come from keyword arguments or from the environment, with an
optional ``.env`` file loaded first:

    FORMGATE_MAX_FORM_SIZE=1MiB
    FORMGATE_MAX_FORM_WITH_FILES_SIZE=10MiB
    FORMGATE_MAX_MEMORY=10MiB
    FORMGATE_MAX_FIELDS=1000
    FORMGATE_UPLOAD_DIR=/var/tmp/uploads
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from dotenv import dotenv_values

from .faults import ConfigInvalidFault

MEGABYTE = 1_048_576

_SIZE_UNITS = {
    "": 1,
    "b": 1,
    "k": 1024,
    "kb": 1024,
    "kib": 1024,
    "m": MEGABYTE,
    "mb": MEGABYTE,
    "mib": MEGABYTE,
    "g": 1024 * MEGABYTE,
    "gb": 1024 * MEGABYTE,
    "gib": 1024 * MEGABYTE,
}
_SIZE_RE = re.compile(r"^\s*(\d+)\s*([a-zA-Z]*)\s*$")


def parse_size(value: Union[int, str], key: str = "size") -> int:
    """
    Parse a byte count like ``1048576``, ``512KiB`` or ``10MB``.

    Units are binary: ``1MB == 1MiB == 1048576``.
    """
    if isinstance(value, bool):
        raise ConfigInvalidFault(key, "expected a byte count")
    if isinstance(value, int):
        return value
    match = _SIZE_RE.match(str(value))
    if not match:
        raise ConfigInvalidFault(key, f"cannot parse {value!r} as a byte count")
    number, unit = match.groups()
    multiplier = _SIZE_UNITS.get(unit.lower())
    if multiplier is None:
        raise ConfigInvalidFault(key, f"unknown size unit {unit!r}")
    return int(number) * multiplier


@dataclass(frozen=True)
class FormConfig:
    """
    Limits applied while parsing a request body.

    Attributes:
        max_form_size: ceiling for bodies that cannot carry files
            (JSON and URL-encoded)
        max_form_with_files_size: ceiling for multipart bodies
        max_memory: file bytes kept in memory per request before
            further file parts spill to temporary files
        max_fields: maximum number of fields / parts in one form
        upload_dir: directory for spilled files (system temp dir if None)
    """

    max_form_size: int = MEGABYTE
    max_form_with_files_size: int = 10 * MEGABYTE
    max_memory: int = 10 * MEGABYTE
    max_fields: int = 1000
    upload_dir: Optional[Path] = None

    def __post_init__(self):
        for name in ("max_form_size", "max_form_with_files_size", "max_fields"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ConfigInvalidFault(name, f"must be a positive integer, got {value!r}")
        if not isinstance(self.max_memory, int) or isinstance(self.max_memory, bool) or self.max_memory < 0:
            raise ConfigInvalidFault("max_memory", f"must be a non-negative integer, got {self.max_memory!r}")
        if self.upload_dir is not None and not isinstance(self.upload_dir, Path):
            object.__setattr__(self, "upload_dir", Path(self.upload_dir))

    def with_overrides(self, **overrides: Any) -> "FormConfig":
        """Return a copy with the given fields replaced."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigInvalidFault(sorted(unknown)[0], "unknown configuration key")
        return replace(self, **overrides)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "FormConfig":
        """Build a config from a plain mapping of (possibly string) values."""
        values: Dict[str, Any] = {}
        for name in ("max_form_size", "max_form_with_files_size", "max_memory"):
            if data.get(name) not in (None, ""):
                values[name] = parse_size(data[name], name)
        if data.get("max_fields") not in (None, ""):
            try:
                values["max_fields"] = int(data["max_fields"])
            except (TypeError, ValueError):
                raise ConfigInvalidFault("max_fields", f"cannot parse {data['max_fields']!r} as an integer")
        if data.get("upload_dir"):
            values["upload_dir"] = Path(data["upload_dir"])
        return cls(**values)

    @classmethod
    def from_env(
        cls,
        prefix: str = "FORMGATE_",
        env_file: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "FormConfig":
        """
        Load configuration from environment variables.

        Precedence: process environment > ``env_file`` > defaults.
        """
        merged: Dict[str, Any] = {}
        if env_file is not None and Path(env_file).exists():
            merged.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
        merged.update(os.environ if environ is None else environ)

        data = {
            f.name: merged.get(f"{prefix}{f.name.upper()}")
            for f in fields(cls)
        }
        return cls.from_mapping(data)


DEFAULT_CONFIG = FormConfig()
