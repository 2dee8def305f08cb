"""Shared data structures for the decode pipeline."""

# Module responsibilities:
# - Define the container format tag used to dispatch between decoders.
# - Provide the RawRow value handed from decoders to filters and the mapper.
# - Describe a resolved byte source ready for its decoder.

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, Iterator, Optional, Tuple


class ContainerFormat(str, Enum):
    """Spreadsheet container families understood by the decoders."""

    XLSX = "xlsx"
    XLS = "xls"


@dataclass(frozen=True)
class RawRow:
    """One physical sheet row as sparse ``(column_index, text)`` pairs.

    ``index`` is the 0-based physical row number within the sheet. Column
    indices are 0-based, unique and ascending; empty cells are simply absent.
    """

    index: int
    cells: Tuple[Tuple[int, str], ...] = ()

    def __iter__(self) -> Iterator[Tuple[int, str]]:
        return iter(self.cells)

    def __len__(self) -> int:
        return len(self.cells)

    @property
    def is_empty(self) -> bool:
        return not self.cells

    def get(self, column: int, default: Optional[str] = None) -> Optional[str]:
        for idx, text in self.cells:
            if idx == column:
                return text
        return default

    def as_dict(self) -> Dict[int, str]:
        return dict(self.cells)


RowPredicate = Callable[[RawRow], bool]
RecordPredicate = Callable[[Any], bool]
RecordHandler = Callable[[Any], None]


@dataclass(frozen=True)
class ResolvedSource:
    """A byte source tagged with the container decoder that must read it."""

    container: ContainerFormat
    label: str
    path: Optional[Path] = None
    stream: Optional[BinaryIO] = None
