"""Row- and record-level filtering."""

# Module responsibilities:
# - Hold the caller's row and record predicates, defaulting to accept-everything.
# - Turn predicate failures into PredicateError so the read call aborts with the cause attached.
# - Offer stock row predicates for common import layouts (header rows, blank rows).

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from .errors import PredicateError
from .schema import RawRow, RowPredicate

T = TypeVar("T")


def accept_all(_: Any) -> bool:
    return True


@dataclass(frozen=True)
class FilterPipeline(Generic[T]):
    """Row predicate applied before mapping, record predicate applied after."""

    row_filter: RowPredicate = accept_all
    record_filter: Callable[[T], bool] = accept_all

    def accepts_row(self, row: RawRow) -> bool:
        try:
            return bool(self.row_filter(row))
        except Exception as exc:  # noqa: BLE001
            raise PredicateError(f"Row filter failed on row {row.index}: {exc}") from exc

    def accepts_record(self, record: T, row_index: int) -> bool:
        try:
            return bool(self.record_filter(record))
        except Exception as exc:  # noqa: BLE001
            raise PredicateError(f"Record filter failed on row {row_index}: {exc}") from exc


def skip_rows(count: int) -> RowPredicate:
    """Reject the first ``count`` physical rows (typically headers)."""

    def predicate(row: RawRow) -> bool:
        return row.index >= count

    return predicate


def non_empty(row: RawRow) -> bool:
    """Reject rows without any cell."""

    return not row.is_empty


def all_of(*predicates: RowPredicate) -> RowPredicate:
    """Combine row predicates; a row passes when every predicate accepts it."""

    def predicate(row: RawRow) -> bool:
        return all(check(row) for check in predicates)

    return predicate
