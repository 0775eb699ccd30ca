"""
Parsers for the handful of numbers and dates scraped off seller pages.

Every parser raises ParseError on text it cannot make sense of. Callers decide
beforehand what a missing element means; by the time text reaches these
functions it is expected to be well-formed.
"""
from __future__ import annotations

import math
import re
from datetime import datetime, timezone

from dateutil import parser as dateparser

from .errors import ParseError

_LEADING_INT_RE = re.compile(r"^\s*(\d[\d,]*)")
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


def _drop_separators(text: str) -> str:
    return text.replace(",", "")


def parse_int(text: str | None) -> int:
    value = _drop_separators((text or "").strip())
    if not value.isdigit():
        raise ParseError("integer", text)
    return int(value)


def parse_leading_int(text: str | None) -> int:
    """Leading integer of a descriptive label: "1,234 sold" -> 1234."""
    m = _LEADING_INT_RE.match(text or "")
    if not m:
        raise ParseError("leading integer", text)
    return int(_drop_separators(m.group(1)))


def parse_price(text: str | None) -> float:
    # "£12.99", "£1,020.00", "£3.00 to £5.00" (ranges take the lower bound)
    m = _NUMBER_RE.search(_drop_separators(text or ""))
    if not m:
        raise ParseError("price", text)
    return float(m.group(0))


def parse_trailing_percentage(text: str | None) -> float:
    words = (text or "").split()
    if not words:
        raise ParseError("percentage", text)

    token = words[-1]
    if token.endswith("%"):
        token = token[:-1]
    try:
        value = float(token)
    except ValueError:
        raise ParseError("percentage", text) from None
    if not math.isfinite(value):
        raise ParseError("percentage", text)
    return value


def parse_date(text: str | None) -> datetime:
    value = (text or "").strip()
    if not value:
        raise ParseError("date", text)
    try:
        dt = dateparser.parse(value)
    except (ValueError, OverflowError):
        raise ParseError("date", text) from None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
