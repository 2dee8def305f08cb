"""`sheetstream` top-level package exports the streaming sheet reader and its building blocks."""

# Module responsibilities:
# - Re-export the reader, mapping declarations, filters and errors so consumers have a stable API surface.
# - Provide the package version.

from __future__ import annotations

from .config import ReadProfile, load_profile
from .dispatch import resolve_source, sniff_container
from .errors import (
    CoercionError,
    ConfigError,
    HandlerError,
    MappingError,
    OpenError,
    ParseError,
    PredicateError,
    ReadError,
    RecordError,
    SheetStreamError,
)
from .filters import FilterPipeline, all_of, non_empty, skip_rows
from .mapping import BindingTable, FieldBinding, RecordMapper, column
from .reader import SheetReader
from .schema import ContainerFormat, RawRow

__all__ = [
    "SheetReader",
    "column",
    "BindingTable",
    "FieldBinding",
    "RecordMapper",
    "FilterPipeline",
    "skip_rows",
    "non_empty",
    "all_of",
    "ContainerFormat",
    "RawRow",
    "resolve_source",
    "sniff_container",
    "ReadProfile",
    "load_profile",
    "SheetStreamError",
    "ConfigError",
    "MappingError",
    "CoercionError",
    "ReadError",
    "OpenError",
    "ParseError",
    "PredicateError",
    "HandlerError",
    "RecordError",
]

__version__ = "0.1.0"
