"""Tests for the legacy binary (xls) decoding path."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pytest
import xlrd
import xlwt
from openpyxl import Workbook

from conftest import build_xls
from sheetstream import ContainerFormat, OpenError, PredicateError, SheetReader, column, skip_rows
from sheetstream.dispatch import resolve_source


@dataclass(frozen=True)
class Person:
    name: Optional[str] = column("A")
    age: int = column("B", default=0)
    joined: Optional[date] = column("C")
    active: bool = column("D", default=False)
    score: Optional[Decimal] = column("E")


@dataclass(frozen=True)
class Code:
    code: Optional[str] = column("A")


def test_xls_and_xlsx_fixtures_map_identically(people_xls: Path, people_xlsx: Path) -> None:
    reader = SheetReader.of(Person).row_filter(skip_rows(1))

    legacy = reader.read(people_xls)
    modern = reader.read(people_xlsx)

    assert legacy == modern
    assert legacy[0] == Person("Alice", 30, date(2020, 1, 15), True, Decimal("12.5"))


def test_xls_suffix_dispatches_without_sniffing(people_xls: Path) -> None:
    resolved = resolve_source(people_xls)

    assert resolved.container is ContainerFormat.XLS
    assert resolved.path == people_xls


def test_ole2_stream_is_detected(people_xls: Path) -> None:
    with people_xls.open("rb") as fh:
        received = []
        SheetReader.of(Code).sheet(1).read_then(fh, received.append)

    assert [item.code for item in received] == ["code", "x-1", "x-2"]


def test_xls_empty_row_kept_in_sequence(people_xls: Path) -> None:
    indices = []

    def spy(row) -> bool:
        indices.append((row.index, len(row)))
        return True

    SheetReader.of(Person).row_filter(spy).read(people_xls)

    assert indices == [(0, 5), (1, 5), (2, 5), (3, 0), (4, 4)]


def test_xls_sheet_index_beyond_count(people_xls: Path) -> None:
    assert SheetReader.of(Person).sheet(2).read(people_xls) == []


def test_explicit_container_overrides_detection(people_xls: Path) -> None:
    payload = people_xls.read_bytes()

    records = SheetReader.of(Code).sheet(1).container("xls").read(payload)

    assert [item.code for item in records] == ["code", "x-1", "x-2"]


def test_xls_suffix_on_non_ole_file_raises_open_error(tmp_path: Path) -> None:
    bogus = tmp_path / "report.xls"
    bogus.write_text("not really a workbook", encoding="utf-8")

    with pytest.raises(OpenError):
        SheetReader.of(Person).read(bogus)


@dataclass(frozen=True)
class Span:
    span: Optional[str] = column("A")


ELAPSED_FORMAT = "[h]:mm:ss"


def test_elapsed_time_maps_identically_across_containers(tmp_path: Path) -> None:
    modern = tmp_path / "spans.xlsx"
    wb = Workbook()
    ws = wb.active
    ws.append(["span"])
    ws.append([timedelta(hours=26)])
    ws["A2"].number_format = ELAPSED_FORMAT
    wb.save(modern)

    legacy = tmp_path / "spans.xls"
    book = xlwt.Workbook()
    sheet = book.add_sheet("Spans")
    sheet.write(0, 0, "span")
    sheet.write(1, 0, 26 / 24, xlwt.easyxf(num_format_str=ELAPSED_FORMAT))
    book.save(str(legacy))

    reader = SheetReader.of(Span).row_filter(skip_rows(1))

    assert reader.read(legacy) == reader.read(modern) == [Span("26:00:00")]


@pytest.fixture()
def released(monkeypatch: pytest.MonkeyPatch) -> list:
    calls = []
    original = xlrd.book.Book.release_resources

    def release_resources(self) -> None:
        calls.append("xls")
        original(self)

    monkeypatch.setattr(xlrd.book.Book, "release_resources", release_resources)
    return calls


def _boom(row) -> bool:
    raise ZeroDivisionError("boom")


@pytest.mark.parametrize(
    ("sheet", "row_filter", "error"),
    [(0, None, None), (5, None, None), (0, _boom, PredicateError)],
    ids=["success", "beyond-sheet-count", "predicate-failure"],
)
def test_book_released_on_every_exit_path(people_xls: Path, released: list, sheet, row_filter, error) -> None:
    reader = SheetReader.of(Person).sheet(sheet)
    if row_filter is not None:
        reader = reader.row_filter(row_filter)

    if error is None:
        reader.read(people_xls)
    else:
        with pytest.raises(error):
            reader.read(people_xls)

    assert released == ["xls"]


def test_only_the_selected_sheet_is_loaded(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = build_xls(tmp_path / "three.xls", {"A": [("a",)], "B": [("b",)], "C": [("c",)]})
    loaded = []
    original = xlrd.book.Book.get_sheet

    def get_sheet(self, sh_number, *args, **kwargs):
        loaded.append(sh_number)
        return original(self, sh_number, *args, **kwargs)

    monkeypatch.setattr(xlrd.book.Book, "get_sheet", get_sheet)

    records = SheetReader.of(Code).sheet(1).read(path)

    assert records == [Code("b")]
    assert loaded == [1]
