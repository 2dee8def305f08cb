"""Legacy binary (OLE2/BIFF) container decoding backed by xlrd."""

# Module responsibilities:
# - Open the book on demand so only the selected sheet is ever loaded.
# - Render xlrd cells to display text with the book's number formats and datemode.
# - Expose the same open_sheet_rows() interface as the zip-XML decoder.

from __future__ import annotations

from contextlib import contextmanager
from datetime import timedelta
from typing import Iterator, Optional

import xlrd
from xlrd.biffh import (
    XL_CELL_BLANK,
    XL_CELL_BOOLEAN,
    XL_CELL_DATE,
    XL_CELL_EMPTY,
    XL_CELL_ERROR,
    XL_CELL_NUMBER,
    XL_CELL_TEXT,
    error_text_from_code,
)
from xlrd.xldate import XLDateError, xldate_as_datetime

from .errors import OpenError, ParseError
from .formatting import GENERAL, is_elapsed_format, render
from .schema import RawRow, ResolvedSource
from .selector import select_sheet
from .utils.log import get_logger

logger = get_logger("xls_reader")


def _open_book(source: ResolvedSource) -> xlrd.book.Book:
    try:
        if source.path is not None:
            return xlrd.open_workbook(
                filename=str(source.path), on_demand=True, formatting_info=True
            )
        return xlrd.open_workbook(
            file_contents=source.stream.read(), on_demand=True, formatting_info=True
        )
    except Exception as exc:  # noqa: BLE001
        raise OpenError(f"Cannot open legacy workbook {source.label}: {exc}") from exc


def _number_format(book: xlrd.book.Book, xf_index: Optional[int]) -> str:
    if xf_index is None or not book.xf_list:
        return GENERAL
    xf = book.xf_list[xf_index]
    fmt = book.format_map.get(xf.format_key)
    return fmt.format_str if fmt is not None else GENERAL


def cell_text(book: xlrd.book.Book, cell: xlrd.sheet.Cell) -> Optional[str]:
    """Return the display text of an xlrd cell, or ``None`` for empty cells."""

    ctype = cell.ctype
    if ctype in (XL_CELL_EMPTY, XL_CELL_BLANK):
        return None
    if ctype == XL_CELL_TEXT:
        return cell.value
    if ctype == XL_CELL_BOOLEAN:
        return render(bool(cell.value))
    if ctype == XL_CELL_ERROR:
        return error_text_from_code.get(cell.value, "#ERR!")
    number_format = _number_format(book, cell.xf_index)
    if ctype in (XL_CELL_DATE, XL_CELL_NUMBER) and is_elapsed_format(number_format):
        return render(timedelta(days=cell.value), number_format)
    if ctype == XL_CELL_DATE:
        try:
            return render(xldate_as_datetime(cell.value, book.datemode), number_format)
        except XLDateError:
            return render(cell.value, GENERAL)
    return render(cell.value, number_format)


def iter_rows(book: xlrd.book.Book, sheet: xlrd.sheet.Sheet, label: str = "<workbook>") -> Iterator[RawRow]:
    """Yield one RawRow per physical row of a loaded xlrd sheet."""

    try:
        for row_index in range(sheet.nrows):
            entries = []
            for column_index, cell in enumerate(sheet.row(row_index)):
                text = cell_text(book, cell)
                if text is not None:
                    entries.append((column_index, text))
            yield RawRow(index=row_index, cells=tuple(entries))
    except Exception as exc:  # noqa: BLE001
        raise ParseError(f"Malformed sheet data in {label}: {exc}") from exc


@contextmanager
def open_sheet_rows(source: ResolvedSource, sheet_index: int) -> Iterator[Iterator[RawRow]]:
    """Open ``source`` and yield the row iterator of sheet ``sheet_index``.

    Yields an empty iterator when the book has no such sheet.
    """

    book = _open_book(source)
    try:
        position = select_sheet(range(book.nsheets), sheet_index)
        if position is None:
            logger.info(
                "Sheet index beyond sheet count",
                extra={"source": source.label, "sheet": sheet_index},
            )
            yield iter(())
            return
        try:
            sheet = book.sheet_by_index(position)
        except Exception as exc:  # noqa: BLE001
            raise ParseError(f"Cannot load sheet {position} of {source.label}: {exc}") from exc
        try:
            yield iter_rows(book, sheet, source.label)
        finally:
            book.unload_sheet(position)
    finally:
        book.release_resources()
