"""Best-effort display text for typed cell values."""

# Module responsibilities:
# - Render numbers, booleans, dates and durations the way the cell's number format asks.
# - Stay tolerant: unknown format features degrade to General rendering, never raise.

from __future__ import annotations

import calendar
import math
import re
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from numbers import Number
from typing import List, Optional, Tuple

GENERAL = "General"

_SECTION_SPLIT = re.compile(r';(?=(?:[^"]*"[^"]*")*[^"]*$)')

_DATE_SCAN = re.compile(
    r'"(?P<quoted>[^"]*)"'
    r"|\\(?P<escaped>.)"
    r"|\[(?P<bracket>[^\]]*)\]"
    r"|(?P<token>yyyy|yy|mmmmm|mmmm|mmm|mm|m|dddd|ddd|dd|d|hh|h|ss|s|am/pm|a/p)"
    r"|(?P<other>.)",
    re.IGNORECASE | re.DOTALL,
)

_NUMBER_SCAN = re.compile(
    r'"(?P<quoted>[^"]*)"'
    r"|\\(?P<escaped>.)"
    r"|_(?P<pad>.)"
    r"|\*(?P<fill>.)"
    r"|\[(?P<bracket>[^\]]*)\]"
    r"|(?P<core>[0#?][0#?,]*(?:\.[0#?]*)?(?:[eE][+-][0#]+)?|\.[0#?]+(?:[eE][+-][0#]+)?)"
    r"|(?P<other>.)",
    re.DOTALL,
)

_ELAPSED = {"h", "hh", "m", "mm", "s", "ss"}
_ELAPSED_TOKEN = re.compile(r"\[(?:h+|m+|s+)\]", re.IGNORECASE)
_QUOTED = re.compile(r'"[^"]*"')

Piece = Tuple[str, str]


def render(value: object, number_format: Optional[str] = GENERAL) -> Optional[str]:
    """Render a typed cell value as display text.

    Args:
        value: Value decoded from the cell (``str``, number, ``bool``, temporal).
        number_format: The cell's number format code; ``None`` means General.

    Returns:
        Display text, or ``None`` when the cell carries no value.
    """

    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    fmt = number_format or GENERAL
    if isinstance(value, (datetime, date, time)):
        return _render_temporal(value, fmt)
    if isinstance(value, timedelta):
        return _render_duration(value)
    if isinstance(value, Number):
        return _render_number(value, fmt)
    return str(value)


def _is_general(fmt: str) -> bool:
    return fmt.strip().lower() in ("", "general", "@")


def _sections(fmt: str) -> List[str]:
    return _SECTION_SPLIT.split(fmt)


def is_elapsed_format(number_format: Optional[str]) -> bool:
    """Return True when the format shows a duration (``[h]:mm:ss``, ``[mm]:ss``)."""

    if not number_format:
        return False
    section = _QUOTED.sub("", _sections(number_format)[0])
    return _ELAPSED_TOKEN.search(section) is not None


# Numbers ---------------------------------------------------------------------


def render_general(value: Number) -> str:
    """Render a number the way the General format shows it."""

    if isinstance(value, int):
        return str(value)
    number = float(value)
    if math.isnan(number) or math.isinf(number):
        return str(number)
    if number.is_integer() and abs(number) < 1e15:
        return str(int(number))
    text = format(number, ".11G")
    if "E" in text:
        mantissa, _, exponent = text.partition("E")
        if "." in mantissa:
            mantissa = mantissa.rstrip("0").rstrip(".")
        text = f"{mantissa}E{exponent}"
    return text


def _render_number(value: Number, fmt: str) -> str:
    sections = _sections(fmt)
    negative = value < 0
    section = sections[0]
    signed = negative
    if negative and len(sections) > 1 and sections[1].strip():
        section = sections[1]
        signed = False
    elif value == 0 and len(sections) > 2 and sections[2].strip():
        section = sections[2]
    if _is_general(section):
        return render_general(value)

    pieces: List[str] = []
    core_done = False
    percent = 0
    for match in _NUMBER_SCAN.finditer(section):
        kind = match.lastgroup
        text = match.group(kind)
        if kind in ("quoted", "escaped"):
            pieces.append(text)
        elif kind == "pad":
            pieces.append(" ")
        elif kind in ("fill", "bracket"):
            continue
        elif kind == "core" and not core_done:
            pieces.append("\0")
            core = text
            core_done = True
        else:
            if text == "%":
                percent += 1
            pieces.append(text)

    if not core_done:
        return render_general(value)

    magnitude = abs(float(value)) * (100 ** percent)
    number_text = _format_core(magnitude, core)
    if signed:
        number_text = f"-{number_text}"
    return "".join(number_text if piece == "\0" else piece for piece in pieces)


def _format_core(magnitude: float, core: str) -> str:
    mantissa, exp_marker, _ = _split_exponent(core)
    int_part, _, frac_part = mantissa.partition(".")
    required = frac_part.count("0")
    optional = len(frac_part) - required

    if exp_marker:
        return format(magnitude, f".{required + optional}E")

    thousands = "," in int_part.strip(",")
    decimals = required + optional
    try:
        quantized = Decimal(repr(magnitude)).quantize(
            Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP
        )
    except InvalidOperation:
        return render_general(magnitude)
    text = format(quantized, ",f" if thousands else "f")
    whole, _, fraction = text.partition(".")
    if optional and fraction:
        keep = len(fraction.rstrip("0"))
        fraction = fraction[: max(keep, required)]
    min_digits = int_part.count("0")
    if not thousands and len(whole) < min_digits:
        whole = whole.zfill(min_digits)
    if min_digits == 0 and whole == "0":
        whole = ""
    return f"{whole}.{fraction}" if fraction else whole


def _split_exponent(core: str) -> Tuple[str, str, str]:
    match = re.search(r"[eE][+-]", core)
    if match is None:
        return core, "", ""
    return core[: match.start()], match.group(0), core[match.end():]


# Dates and durations ---------------------------------------------------------


def _render_duration(value: timedelta) -> str:
    total = round(value.total_seconds())
    sign = "-" if total < 0 else ""
    hours, rest = divmod(abs(total), 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{sign}{hours}:{minutes:02d}:{seconds:02d}"


def _as_datetime(value: object) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime(1899, 12, 31, value.hour, value.minute, value.second, value.microsecond)


def _render_iso(value: object) -> str:
    if isinstance(value, datetime):
        if value.time() == time(0):
            return value.date().isoformat()
        return value.isoformat(sep=" ", timespec="seconds")
    if isinstance(value, date):
        return value.isoformat()
    return value.isoformat(timespec="seconds")


def _tokenize_date(section: str) -> List[Piece]:
    pieces: List[Piece] = []
    for match in _DATE_SCAN.finditer(section):
        kind = match.lastgroup
        text = match.group(kind)
        if kind == "token":
            pieces.append(("tok", text.lower()))
        elif kind == "bracket":
            if text.lower() in _ELAPSED:
                pieces.append(("tok", text.lower()))
        else:
            pieces.append(("lit", text))
    return _resolve_minutes(pieces)


def _resolve_minutes(pieces: List[Piece]) -> List[Piece]:
    tokens = [idx for idx, (kind, _) in enumerate(pieces) if kind == "tok"]
    resolved = list(pieces)
    for position, idx in enumerate(tokens):
        token = pieces[idx][1]
        if token not in ("m", "mm"):
            continue
        previous = pieces[tokens[position - 1]][1] if position > 0 else ""
        following = pieces[tokens[position + 1]][1] if position + 1 < len(tokens) else ""
        if previous in ("h", "hh") or following in ("s", "ss"):
            resolved[idx] = ("tok", "minute2" if token == "mm" else "minute")
    return resolved


def _render_temporal(value: object, fmt: str) -> str:
    section = _sections(fmt)[0]
    if _is_general(section):
        return _render_iso(value)
    pieces = _tokenize_date(section)
    if not any(kind == "tok" for kind, _ in pieces):
        return _render_iso(value)

    moment = _as_datetime(value)
    twelve_hour = any(text in ("am/pm", "a/p") for kind, text in pieces if kind == "tok")
    hour = moment.hour
    if twelve_hour:
        hour = hour % 12 or 12

    out: List[str] = []
    for kind, text in pieces:
        if kind == "lit":
            out.append(text)
            continue
        out.append(_date_token(text, moment, hour))
    return "".join(out)


def _date_token(token: str, moment: datetime, hour: int) -> str:
    if token == "yyyy":
        return f"{moment.year:04d}"
    if token == "yy":
        return f"{moment.year % 100:02d}"
    if token == "mmmmm":
        return calendar.month_name[moment.month][:1]
    if token == "mmmm":
        return calendar.month_name[moment.month]
    if token == "mmm":
        return calendar.month_abbr[moment.month]
    if token == "mm":
        return f"{moment.month:02d}"
    if token == "m":
        return str(moment.month)
    if token == "dddd":
        return calendar.day_name[moment.weekday()]
    if token == "ddd":
        return calendar.day_abbr[moment.weekday()]
    if token == "dd":
        return f"{moment.day:02d}"
    if token == "d":
        return str(moment.day)
    if token == "hh":
        return f"{hour:02d}"
    if token == "h":
        return str(hour)
    if token == "minute2":
        return f"{moment.minute:02d}"
    if token == "minute":
        return str(moment.minute)
    if token == "ss":
        return f"{moment.second:02d}"
    if token == "s":
        return str(moment.second)
    if token == "am/pm":
        return "AM" if moment.hour < 12 else "PM"
    if token == "a/p":
        return "A" if moment.hour < 12 else "P"
    return token
