"""YAML read profiles.

A profile describes a record shape and the read options for one kind of
import file, so that a sheet can be read without writing a dataclass::

    name: Person
    sheet: 0
    skip_rows: 1
    fields:
      name: A
      age: {column: B, type: int, default: 0}
      joined: {column: C, type: date}

Each field entry is either a column (letter or 0-based index) or a mapping with
``column`` plus optional ``type`` (default ``str``) and ``default``.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

import yaml

from .errors import ConfigError, MappingError
from .filters import skip_rows
from .mapping import column
from .reader import SheetReader

FIELD_TYPES: Mapping[str, type] = {
    "str": str,
    "int": int,
    "float": float,
    "decimal": Decimal,
    "bool": bool,
    "date": date,
    "datetime": datetime,
    "time": time,
}


@dataclass(frozen=True)
class ReadProfile:
    """Read options and generated record shape loaded from YAML."""

    name: str
    shape: Type[Any]
    sheet: int = 0
    skip_rows: int = 0

    def reader(self) -> SheetReader[Any]:
        """Build a SheetReader honouring the profile's sheet and header rows."""

        reader = SheetReader.of(self.shape).sheet(self.sheet)
        if self.skip_rows:
            reader = reader.row_filter(skip_rows(self.skip_rows))
        return reader


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Profile not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ConfigError("Profile YAML must be a mapping")
    return data


def _non_negative_int(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f"Profile key '{key}' must be a non-negative integer")
    return value


def _field_spec(name: str, spec: Any) -> Tuple[str, type, Any]:
    if isinstance(spec, (str, int)) and not isinstance(spec, bool):
        spec = {"column": spec}
    if not isinstance(spec, Mapping) or "column" not in spec:
        raise ConfigError(f"Field '{name}' must be a column or a mapping with 'column'")
    type_name = str(spec.get("type", "str")).lower()
    if type_name not in FIELD_TYPES:
        raise ConfigError(
            f"Field '{name}' has unknown type '{type_name}' "
            f"(expected one of: {', '.join(FIELD_TYPES)})"
        )
    field_type = FIELD_TYPES[type_name]
    try:
        declared = column(spec["column"], default=spec.get("default"))
    except MappingError as exc:
        raise ConfigError(f"Field '{name}': {exc}") from exc
    return name, Optional[field_type], declared


def load_profile(path: str | Path) -> ReadProfile:
    """Load a read profile and generate its record dataclass."""

    data = _load_yaml(Path(path))
    fields_node = data.get("fields")
    if not isinstance(fields_node, Mapping) or not fields_node:
        raise ConfigError("Profile must define a non-empty 'fields' mapping")

    name = str(data.get("name") or "Record")
    specs: List[Tuple[str, type, Any]] = []
    for field_name, spec in fields_node.items():
        field_name = str(field_name)
        if not field_name.isidentifier():
            raise ConfigError(f"Field name is not a valid identifier: {field_name!r}")
        specs.append(_field_spec(field_name, spec))

    try:
        shape = dataclasses.make_dataclass(name, specs, frozen=True)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Cannot build record type '{name}': {exc}") from exc

    return ReadProfile(
        name=name,
        shape=shape,
        sheet=_non_negative_int(data, "sheet"),
        skip_rows=_non_negative_int(data, "skip_rows"),
    )


__all__ = ["FIELD_TYPES", "ReadProfile", "load_profile"]
