"""
Cell value normalization: every value reaching the search path is a str.
"""
from __future__ import annotations

import calendar
import datetime as dt
import math
import re
from typing import Any, Iterable, Mapping

import numpy as np
import pandas as pd

from vehicle_lookup.data.schemas import Record


# ---------------------------------------------------------------------------
# Single values
# ---------------------------------------------------------------------------

def _is_missing(value: Any) -> bool:
    if value is None or value is pd.NaT or value is pd.NA:
        return True
    if isinstance(value, (float, np.floating)):
        return math.isnan(value)
    return False


def normalize(value: Any) -> str:
    """Coerce an arbitrary spreadsheet cell into text. Never raises."""
    try:
        if _is_missing(value):
            return ""
        if isinstance(value, str):
            return value
        if isinstance(value, (bool, np.bool_)):
            return "true" if value else "false"
        if isinstance(value, (float, np.floating)):
            if math.isinf(value):
                return "Infinity" if value > 0 else "-Infinity"
            # 1234.0 -> "1234", as the sheet displays it
            if float(value).is_integer():
                return str(int(value))
            return repr(float(value))
        if isinstance(value, (int, np.integer)):
            return str(int(value))
        if isinstance(value, pd.Timestamp):
            return value.isoformat()
        if isinstance(value, (dt.datetime, dt.date, dt.time)):
            return value.isoformat()
        return str(value)
    except Exception:
        return ""




# ---------------------------------------------------------------------------
# Workbook display text (what the sheet shows for a cell's number format)
# ---------------------------------------------------------------------------

_NUMBER_PARTS = re.compile(r'"([^"]*)"|\\(.)|(\[[^\]]*\])|([#0,]*[#0](?:\.[#0]+)?)|(.)', re.S)
_DATE_PARTS = re.compile(
    r'"([^"]*)"|\\(.)|(\[[^\]]*\])'
    r'|(yyyy|yy|mmmmm|mmmm|mmm|mm|m|dddd|ddd|dd|d|hh|h|ss|s|am/pm|a/p|\.0+)'
    r'|(.)',
    re.S | re.I,
)
_DATE_FIELDS = {"yyyy", "yy", "mmmmm", "mmmm", "mmm", "mm", "m", "dddd", "ddd", "dd", "d",
                "hh", "h", "ss", "s"}


def _first_section(fmt: str) -> str:
    # Sections are positive;negative;zero;text. Only the positive one is rendered.
    return fmt.split(";")[0]


def _render_number(value: float, fmt: str) -> str | None:
    pieces: list[str | None] = []
    placeholder = None
    percent = False
    for quoted, escaped, bracket, digits, other in _NUMBER_PARTS.findall(_first_section(fmt)):
        if bracket:
            continue
        if digits and placeholder is None:
            placeholder = digits
            pieces.append(None)
        elif quoted or escaped:
            pieces.append(quoted or escaped)
        elif other in ("?", "E", "e", "/"):
            # fractions and scientific notation
            return None
        else:
            percent = percent or other == "%"
            pieces.append(other or digits)
    if placeholder is None:
        return None

    whole_spec, _, frac_spec = placeholder.partition(".")
    fixed, optional = frac_spec.count("0"), frac_spec.count("#")
    grouping = "," in whole_spec
    number = abs(value) * (100 if percent else 1)
    text = f"{number:{',' if grouping else ''}.{fixed + optional}f}"
    whole, _, frac = text.partition(".")
    if optional:
        frac = frac[:fixed] + frac[fixed:].rstrip("0")
    if not grouping:
        whole = whole.zfill(whole_spec.count("0"))
    body = whole + ("." + frac if frac else "")
    sign = "-" if value < 0 and body.strip("0.,") else ""
    return sign + "".join(body if p is None else p for p in pieces)


def _render_date(value: Any, fmt: str) -> str:
    parts = _DATE_PARTS.findall(_first_section(fmt))
    tokens = [token.lower() for _, _, _, token, _ in parts]
    fields = [(i, t) for i, t in enumerate(tokens) if t in _DATE_FIELDS]
    twelve_hour = any(t in ("am/pm", "a/p") for t in tokens)

    year = getattr(value, "year", 1900)
    month = getattr(value, "month", 1)
    day = getattr(value, "day", 1)
    hour = getattr(value, "hour", 0)
    minute = getattr(value, "minute", 0)
    second = getattr(value, "second", 0)
    micro = getattr(value, "microsecond", 0)
    shown_hour = (hour % 12 or 12) if twelve_hour else hour

    def is_minute(index: int) -> bool:
        before = [t for i, t in fields if i < index]
        after = [t for i, t in fields if i > index]
        return bool(before and before[-1] in ("h", "hh")) or bool(after and after[0] in ("s", "ss"))

    out = []
    for index, (quoted, escaped, bracket, token, other) in enumerate(parts):
        low = token.lower()
        if bracket:
            continue
        if quoted or escaped:
            out.append(quoted or escaped)
        elif not token:
            out.append(other)
        elif low == "yyyy":
            out.append(f"{year:04d}")
        elif low == "yy":
            out.append(f"{year % 100:02d}")
        elif low in ("mm", "m") and is_minute(index):
            out.append(f"{minute:02d}" if low == "mm" else str(minute))
        elif low == "mmmmm":
            out.append(calendar.month_name[month][:1])
        elif low == "mmmm":
            out.append(calendar.month_name[month])
        elif low == "mmm":
            out.append(calendar.month_abbr[month])
        elif low == "mm":
            out.append(f"{month:02d}")
        elif low == "m":
            out.append(str(month))
        elif low == "dddd":
            out.append(calendar.day_name[value.weekday()] if hasattr(value, "weekday") else "")
        elif low == "ddd":
            out.append(calendar.day_abbr[value.weekday()] if hasattr(value, "weekday") else "")
        elif low == "dd":
            out.append(f"{day:02d}")
        elif low == "d":
            out.append(str(day))
        elif low == "hh":
            out.append(f"{shown_hour:02d}")
        elif low == "h":
            out.append(str(shown_hour))
        elif low == "ss":
            out.append(f"{second:02d}")
        elif low == "s":
            out.append(str(second))
        elif low == "am/pm":
            out.append("AM" if hour < 12 else "PM")
        elif low == "a/p":
            out.append("A" if hour < 12 else "P")
        else:
            out.append("." + f"{micro:06d}"[:len(token) - 1])
    return "".join(out)


def display_text(value: Any, number_format: str | None = "General", is_date: bool = False) -> str:
    """Text a spreadsheet shows for `value` under `number_format`.

    Covers date/time codes and the common numeric ones (zero padding,
    fixed decimals, thousands separators, percent, quoted literals).
    Anything else falls back to `normalize`.
    """
    fmt = number_format or "General"
    if fmt == "General" or fmt == "@" or value is None or isinstance(value, (str, bool)):
        return normalize(value)
    try:
        if is_date or isinstance(value, (dt.date, dt.time)):
            if isinstance(value, (dt.date, dt.time)):
                return _render_date(value, fmt)
            return normalize(value)
        if isinstance(value, (int, float)) and not _is_missing(value) and not math.isinf(value):
            text = _render_number(value, fmt)
            if text is not None:
                return text
    except (ValueError, TypeError, IndexError) as exc:
        print(f"  Warning: could not apply format {fmt!r} to {value!r}: {exc}")
    return normalize(value)

# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------

def normalize_record(row: Mapping[Any, Any]) -> Record:
    """Normalize keys and values of one row; blank header names are dropped."""
    record: Record = {}
    for key, value in row.items():
        name = normalize(key).strip()
        if not name:
            continue
        record[name] = normalize(value)
    return record


def normalize_records(rows: Iterable[Any]) -> list[Record]:
    """Normalize rows in source order, dropping rows with no usable text."""
    records: list[Record] = []
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        record = normalize_record(row)
        if any(v.strip() for v in record.values()):
            records.append(record)
    return records


def normalize_frame(df: pd.DataFrame) -> list[Record]:
    """Turn a sheet DataFrame (header row = columns) into records."""
    if df.empty:
        return []
    df = df.astype(object).where(pd.notna(df), "")
    return normalize_records(df.to_dict(orient="records"))
