"""Streaming sheet reader: the public entry point of sheetstream."""

# Module responsibilities:
# - Hold immutable read configuration (record shape bindings, sheet index, filters, container).
# - Drive dispatch -> sheet selection -> row decoding -> filtering -> mapping -> sink for one call.
# - Offer materializing (read), streaming (read_then) and DataFrame (read_frame) consumption.

from __future__ import annotations

import dataclasses
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Generic, List, Mapping, Optional, Type, TypeVar, Union

import pandas as pd

from .dispatch import Source, open_sheet_rows, resolve_source
from .errors import ConfigError, ReadError
from .filters import FilterPipeline
from .mapping import BindingTable, ColumnRef, RecordMapper
from .schema import ContainerFormat, RowPredicate
from .sink import ConsumptionSink, HandlerSink, ListSink
from .utils.log import get_logger

logger = get_logger("reader")

T = TypeVar("T")

DEFAULT_SHEET_INDEX = 0


def _check_sheet_index(index: object) -> int:
    if isinstance(index, bool) or not isinstance(index, int) or index < 0:
        raise ConfigError(f"Sheet index must be a non-negative integer, got {index!r}")
    return index


@dataclass(frozen=True)
class SheetReader(Generic[T]):
    """Decode one sheet of a workbook into records of a dataclass shape.

    Readers are immutable; every configuration method returns a new reader, and
    a reader keeps no state between calls, so one reader may serve concurrent
    calls on distinct sources.

    Example::

        reader = SheetReader.of(Person).sheet(0).row_filter(skip_rows(1))
        people = reader.read("people.xlsx")
    """

    table: BindingTable[T]
    sheet_index: int = DEFAULT_SHEET_INDEX
    filters: FilterPipeline[T] = field(default_factory=FilterPipeline)
    container_format: Optional[ContainerFormat] = None

    def __post_init__(self) -> None:
        _check_sheet_index(self.sheet_index)

    @classmethod
    def of(
        cls,
        shape: Type[T],
        overrides: Optional[Mapping[str, ColumnRef]] = None,
    ) -> "SheetReader[T]":
        """Create a reader for ``shape``, building its binding table once."""

        return cls(table=BindingTable.for_shape(shape, overrides))

    @property
    def shape(self) -> Type[T]:
        return self.table.shape

    def sheet(self, index: int) -> "SheetReader[T]":
        return replace(self, sheet_index=_check_sheet_index(index))

    def row_filter(self, predicate: RowPredicate) -> "SheetReader[T]":
        return replace(self, filters=replace(self.filters, row_filter=predicate))

    def record_filter(self, predicate: Callable[[T], bool]) -> "SheetReader[T]":
        return replace(self, filters=replace(self.filters, record_filter=predicate))

    def container(self, container: Union[ContainerFormat, str]) -> "SheetReader[T]":
        """Skip detection and read sources as the given container family."""

        try:
            container = ContainerFormat(container)
        except ValueError as exc:
            raise ConfigError(f"Unknown container format: {container!r}") from exc
        return replace(self, container_format=container)

    def bindings(self, table: BindingTable[T]) -> "SheetReader[T]":
        return replace(self, table=table)

    def read(self, source: Source) -> List[T]:
        """Decode the configured sheet and return every surviving record in row order.

        Raises:
            ReadError: When the workbook cannot be opened or decoded, or a filter fails.
        """

        sink: ListSink[T] = ListSink()
        self._run(source, sink)
        return sink.records

    def read_then(self, source: Source, handler: Callable[[T], None]) -> None:
        """Decode the configured sheet, handing each surviving record to ``handler``.

        The handler runs synchronously in row order; nothing is retained.

        Raises:
            ReadError: As :meth:`read`, or when the handler itself fails.
        """

        self._run(source, HandlerSink(handler))

    def read_frame(self, source: Source) -> pd.DataFrame:
        """Decode the configured sheet into a DataFrame, one column per record field."""

        records = self.read(source)
        columns = [fld.name for fld in dataclasses.fields(self.shape)]
        return pd.DataFrame([dataclasses.asdict(record) for record in records], columns=columns)

    def _run(self, source: Source, sink: ConsumptionSink[T]) -> None:
        started = time.perf_counter()
        mapper: RecordMapper[T] = RecordMapper(self.table)
        label = str(source) if not isinstance(source, (bytes, bytearray, memoryview)) else "<bytes>"
        rows_seen = 0
        records = 0
        try:
            resolved = resolve_source(source, self.container_format)
            label = resolved.label
            logger.info(
                "Reading sheet",
                extra={
                    "source": label,
                    "container": resolved.container.value,
                    "sheet": self.sheet_index,
                    "shape": self.shape.__name__,
                },
            )
            with open_sheet_rows(resolved, self.sheet_index) as rows:
                for row in rows:
                    rows_seen += 1
                    if not self.filters.accepts_row(row):
                        continue
                    record = mapper.map(row)
                    if not self.filters.accepts_record(record, row.index):
                        continue
                    sink.accept(record, row.index)
                    records += 1
        except ReadError as exc:
            logger.error(
                "Sheet read failed",
                extra={"source": label, "sheet": self.sheet_index, "error": str(exc)},
            )
            raise

        logger.info(
            "Sheet read complete",
            extra={
                "source": label,
                "sheet": self.sheet_index,
                "rows": rows_seen,
                "records": records,
                "elapsed_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
