"""Serial day numbers to calendar dates.

Spreadsheet dates are stored as a count of days since an epoch near the
start of 1900. The format inherited a bug from Lotus 1-2-3 that treats 1900
as a leap year, so serial 60 is the non-existent 1900-02-29 and every
serial below it is one day behind the real calendar.
"""

from __future__ import annotations

import math
import re
from typing import Optional

# Added to styled serials that carry a time-of-day fraction; matches the
# difference between the 1900 and 1904 date systems.
DATE_TIME_OFFSET_DAYS = 1462.0

# Serial 0 sits on Julian day 2415019 (1899-12-30 after the leap-day fix).
JULIAN_DAY_EPOCH_OFFSET = 2415019

# Shifts the Julian day so the Fliegel-Van Flandern integer conversion
# starts from March 1, 4800 BC.
JULIAN_DAY_BASE = 68569

PHANTOM_LEAP_DAY = 60

# Plain ASCII decimal, optional sign and exponent; no whitespace or "_"
_SERIAL_RE = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


def decode_serial_date(serial_text: str, offset: Optional[float] = None) -> str:
    """Decode a serial day number into ``YYYY-MM-DD``.

    The fractional part (time of day) is discarded. Text that is not a
    plain decimal number is returned unchanged so one bad cell does not
    fail the whole document.
    """
    if not isinstance(serial_text, str) or not _SERIAL_RE.fullmatch(serial_text):
        return serial_text
    days = float(serial_text)
    if not math.isfinite(days):
        return serial_text

    if offset is not None:
        days += offset

    if days == PHANTOM_LEAP_DAY:
        return "1900-02-29"
    if days < PHANTOM_LEAP_DAY:
        days += 1

    year, month, day = julian_day_to_date(int(days) + JULIAN_DAY_EPOCH_OFFSET)
    return f"{year}-{month:02d}-{day:02d}"


def _tdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero (``//`` floors)."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def julian_day_to_date(julian_day: int):
    """Convert a Julian day number to a (year, month, day) tuple.

    Divisions truncate toward zero, so Julian days below zero give the same
    (nonsensical) components other readers of the format produce.
    """
    rest = julian_day + JULIAN_DAY_BASE
    n = _tdiv(4 * rest, 146097)
    rest = rest - _tdiv(146097 * n + 3, 4)
    i = _tdiv(4000 * (rest + 1), 1461001)
    rest = rest - _tdiv(1461 * i, 4) + 31
    j = _tdiv(80 * rest, 2447)
    day = rest - _tdiv(2447 * j, 80)
    rest = _tdiv(j, 11)
    month = j + 2 - 12 * rest
    year = 100 * (n - 49) + i + rest
    return year, month, day
