"""Zip-XML container decoding backed by openpyxl read-only workbooks."""

# Module responsibilities:
# - Open the package in read-only mode so sheet XML is parsed only while rows are iterated.
# - Select the target worksheet and turn its row/cell events into RawRows of display text.
# - Close the workbook and the underlying file on every exit path.

from __future__ import annotations

from contextlib import ExitStack, contextmanager
from typing import Iterable, Iterator

from openpyxl import load_workbook
from openpyxl.workbook.workbook import Workbook

from .errors import OpenError, ParseError
from .formatting import GENERAL, render
from .schema import RawRow, ResolvedSource
from .selector import select_sheet
from .utils.log import get_logger

logger = get_logger("xlsx_reader")


def _open_workbook(source: ResolvedSource, stack: ExitStack) -> Workbook:
    try:
        if source.path is not None:
            # A handle skips openpyxl's suffix check; sniffing already vouched for the zip.
            handle = stack.enter_context(source.path.open("rb"))
        else:
            handle = source.stream
        workbook = load_workbook(handle, read_only=True, data_only=True, keep_links=False)
    except Exception as exc:  # noqa: BLE001
        raise OpenError(f"Cannot open workbook {source.label}: {exc}") from exc
    stack.callback(workbook.close)
    return workbook


def _cell_entries(cells: Iterable[object]) -> Iterator[tuple[int, str]]:
    for column_index, cell in enumerate(cells):
        value = getattr(cell, "value", None)
        if value is None:
            continue
        text = render(value, getattr(cell, "number_format", None) or GENERAL)
        if text is not None:
            yield column_index, text


def iter_rows(worksheet, label: str = "<workbook>") -> Iterator[RawRow]:
    """Yield one RawRow per physical row of a read-only worksheet.

    Rows missing between populated rows come back as empty RawRows.
    """

    # Declared dimensions are unreliable in files written by other tools.
    worksheet.reset_dimensions()
    try:
        for index, cells in enumerate(worksheet.iter_rows(min_row=1)):
            yield RawRow(index=index, cells=tuple(_cell_entries(cells)))
    except Exception as exc:  # noqa: BLE001
        raise ParseError(f"Malformed sheet data in {label}: {exc}") from exc


@contextmanager
def open_sheet_rows(source: ResolvedSource, sheet_index: int) -> Iterator[Iterator[RawRow]]:
    """Open ``source`` and yield the row iterator of sheet ``sheet_index``.

    Yields an empty iterator when the workbook has no such sheet.
    """

    with ExitStack() as stack:
        workbook = _open_workbook(source, stack)
        worksheet = select_sheet(workbook.worksheets, sheet_index)
        if worksheet is None:
            logger.info(
                "Sheet index beyond sheet count",
                extra={"source": source.label, "sheet": sheet_index},
            )
            yield iter(())
            return
        logger.debug(
            "Sheet selected",
            extra={"source": source.label, "sheet": sheet_index, "title": worksheet.title},
        )
        yield iter_rows(worksheet, source.label)
