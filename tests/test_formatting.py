from __future__ import annotations

from datetime import date, datetime, time, timedelta

import pytest

from sheetstream.formatting import is_elapsed_format, render, render_general


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (30, "30"),
        (30.0, "30"),
        (-4.0, "-4"),
        (12.5, "12.5"),
        (0.1 + 0.2, "0.3"),
        (1234567.891, "1234567.891"),
        (1e20, "1E+20"),
        (0.00001, "1E-05"),
    ],
)
def test_general_numbers(value, expected) -> None:
    assert render_general(value) == expected
    assert render(value, "General") == expected


@pytest.mark.parametrize(
    ("value", "fmt", "expected"),
    [
        (1234.5, "0.00", "1234.50"),
        (1234.5, "#,##0.00", "1,234.50"),
        (1234.5, "#,##0", "1,235"),
        (2.5, "0", "3"),
        (-1234.5, "#,##0.00", "-1,234.50"),
        (-1234.5, "#,##0.00;(#,##0.00)", "(1,234.50)"),
        (0.125, "0%", "13%"),
        (0.125, "0.0%", "12.5%"),
        (42, "00000", "00042"),
        (1.5, "0.##", "1.5"),
        (123456, "0.00E+00", "1.23E+05"),
        (19.9, '"$"#,##0.00', "$19.90"),
        (19.9, '#,##0.00 "USD"', "19.90 USD"),
        (5, "[Red]0.0", "5.0"),
        (5, "@", "5"),
    ],
)
def test_formatted_numbers(value, fmt, expected) -> None:
    assert render(value, fmt) == expected


@pytest.mark.parametrize(
    ("value", "fmt", "expected"),
    [
        (datetime(2020, 1, 15), "yyyy-mm-dd", "2020-01-15"),
        (datetime(2020, 1, 5), "m/d/yy", "1/5/20"),
        (datetime(2020, 1, 5), "mm-dd-yy", "01-05-20"),
        (datetime(2020, 1, 5), "d-mmm-yy", "5-Jan-20"),
        (datetime(2020, 1, 5), "dddd, mmmm d, yyyy", "Sunday, January 5, 2020"),
        (datetime(2020, 1, 5, 14, 7, 9), "yyyy-mm-dd hh:mm:ss", "2020-01-05 14:07:09"),
        (datetime(2020, 1, 5, 14, 7), "h:mm AM/PM", "2:07 PM"),
        (datetime(2020, 1, 5, 0, 7), "h:mm AM/PM", "12:07 AM"),
        (datetime(2020, 1, 5, 14, 7, 9), "mm:ss", "07:09"),
        (datetime(2020, 1, 5), 'yyyy"年"m"月"d"日"', "2020年1月5日"),
        (datetime(2020, 1, 5), "[$-409]yyyy/mm/dd", "2020/01/05"),
        (date(2020, 1, 5), "yyyy-mm-dd", "2020-01-05"),
        (time(9, 30), "hh:mm", "09:30"),
    ],
)
def test_formatted_dates(value, fmt, expected) -> None:
    assert render(value, fmt) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (datetime(2020, 1, 15), "2020-01-15"),
        (datetime(2020, 1, 15, 8, 30), "2020-01-15 08:30:00"),
        (date(2020, 1, 15), "2020-01-15"),
        (time(8, 30), "08:30:00"),
    ],
)
def test_dates_without_date_format_render_iso(value, expected) -> None:
    assert render(value, "General") == expected
    assert render(value, None) == expected


def test_other_values() -> None:
    assert render(None) is None
    assert render("text", "0.00") == "text"
    assert render(True) == "TRUE"
    assert render(False, "0") == "FALSE"
    assert render(timedelta(hours=26, minutes=3, seconds=4)) == "26:03:04"


@pytest.mark.parametrize(
    ("fmt", "expected"),
    [
        ("[h]:mm:ss", True),
        ("[HH]:MM", True),
        ("[mm]:ss", True),
        ("[s]", True),
        ("h:mm:ss", False),
        ("[Red]0.00", False),
        ('"[h]"0', False),
        ("General", False),
        (None, False),
    ],
)
def test_elapsed_format_detection(fmt, expected) -> None:
    assert is_elapsed_format(fmt) is expected


def test_duration_rounds_to_whole_seconds() -> None:
    assert render(timedelta(days=26 / 24)) == "26:00:00"
    assert render(timedelta(seconds=59.6)) == "0:01:00"
