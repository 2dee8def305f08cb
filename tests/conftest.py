from __future__ import annotations

import faulthandler
import sys
import threading
import traceback
from datetime import date, datetime
from pathlib import Path
from types import FrameType
from typing import Dict, Iterable, Mapping, Sequence

import pytest
import xlwt
from openpyxl import Workbook

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

faulthandler.enable()  # Ensure crashes emit tracebacks.

DATE_FORMAT = "yyyy-mm-dd"

PEOPLE_ROWS: Sequence[Sequence[object]] = (
    ("name", "age", "joined", "active", "score"),
    ("Alice", 30, date(2020, 1, 15), True, 12.5),
    ("Bob", "n/a", date(2021, 6, 1), False, 7),
    (),
    ("Carol", 41, None, True, 99.25),
)
OTHER_ROWS: Sequence[Sequence[object]] = (
    ("code",),
    ("x-1",),
    ("x-2",),
)
WORKBOOK_SHEETS: Mapping[str, Sequence[Sequence[object]]] = {
    "People": PEOPLE_ROWS,
    "Other": OTHER_ROWS,
}


def build_xlsx(path: Path, sheets: Mapping[str, Iterable[Sequence[object]]]) -> Path:
    wb = Workbook()
    for position, (title, rows) in enumerate(sheets.items()):
        ws = wb.active if position == 0 else wb.create_sheet()
        ws.title = title
        for row in rows:
            ws.append(list(row))
            if not row:
                continue
            for cell in ws[ws.max_row]:
                if isinstance(cell.value, (date, datetime)):
                    cell.number_format = DATE_FORMAT
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path


def build_xls(path: Path, sheets: Mapping[str, Iterable[Sequence[object]]]) -> Path:
    book = xlwt.Workbook()
    date_style = xlwt.easyxf(num_format_str=DATE_FORMAT)
    for title, rows in sheets.items():
        sheet = book.add_sheet(title)
        for row_idx, row in enumerate(rows):
            for col_idx, value in enumerate(row):
                if value is None:
                    continue
                if isinstance(value, (date, datetime)):
                    sheet.write(row_idx, col_idx, value, date_style)
                else:
                    sheet.write(row_idx, col_idx, value)
    path.parent.mkdir(parents=True, exist_ok=True)
    book.save(str(path))
    return path


@pytest.fixture()
def people_xlsx(tmp_path: Path) -> Path:
    return build_xlsx(tmp_path / "people.xlsx", WORKBOOK_SHEETS)


@pytest.fixture()
def people_xls(tmp_path: Path) -> Path:
    return build_xls(tmp_path / "people.xls", WORKBOOK_SHEETS)


def _snapshot_thread_stacks() -> Dict[int, str]:
    frames: Dict[int, FrameType] = sys._current_frames()  # type: ignore[attr-defined]
    stacks: Dict[int, str] = {}
    for ident, frame in frames.items():
        stacks[ident] = "".join(traceback.format_stack(frame))
    return stacks


@pytest.fixture(autouse=True, scope="session")
def _thread_diagnostics() -> None:
    """Dump live non-daemon threads at the end of the test session."""

    yield

    stacks = _snapshot_thread_stacks()
    lingering: list[threading.Thread] = []
    for thread in threading.enumerate():
        if thread.daemon or thread is threading.current_thread():
            continue
        thread.join(timeout=2)
        if thread.is_alive():
            lingering.append(thread)

    if lingering:
        print("\n[pytest] lingering threads detected:", file=sys.stderr)
        for thread in lingering:
            stack = stacks.get(thread.ident, "<no stack>\n")
            print(
                f"- Thread {thread.name} (ident={thread.ident}) still alive after tests", file=sys.stderr
            )
            print(stack, file=sys.stderr)
