"""Decoding of spreadsheet date and time cells.

Spreadsheet exports mix serial numbers (days since 1899-12-30, with the time
as a fraction of a day), text such as ``"08:30"`` or ``"10/01/2024"`` and,
when read through openpyxl, native ``datetime``/``time`` objects. Everything
is reduced to a :class:`TimeOfDay` or an ISO ``YYYY-MM-DD`` string.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..models.domain import MIDNIGHT, SECONDS_PER_DAY, TimeOfDay

SPREADSHEET_EPOCH = date(1899, 12, 30)
DEFAULT_ROLLOVER_THRESHOLD = 12 * 3600

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%Y%m%d",
    "%d %B %Y",
    "%B %d, %Y",
    "%b %d %Y",
)


def parse_number(value: object) -> Optional[float]:
    """Locale-tolerant float parsing; None when the cell is not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace("\u00a0", "").replace(" ", "")
        # With a dot present, commas are thousands separators; otherwise a comma is the decimal mark.
        text = text.replace(",", "") if "." in text else text.replace(",", ".")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _serial_clock_seconds(serial: float) -> int:
    """Seconds encoded in the fractional part of an absolute serial."""
    fraction = serial - math.floor(serial)
    return int(round(fraction * SECONDS_PER_DAY)) % SECONDS_PER_DAY


def decode_time(value: object) -> TimeOfDay:
    """Decode a time cell into seconds since midnight; unreadable cells give 00:00."""
    if value is None or isinstance(value, bool):
        return MIDNIGHT
    if isinstance(value, datetime):
        return TimeOfDay.from_hms(value.hour, value.minute, value.second)
    if isinstance(value, time):
        return TimeOfDay.from_hms(value.hour, value.minute, value.second)
    if isinstance(value, timedelta):
        return TimeOfDay(int(round(value.total_seconds())))
    if isinstance(value, (int, float)):
        return _decode_serial_time(float(value))

    text = str(value).strip()
    if not text:
        return MIDNIGHT
    if ":" not in text:
        number = parse_number(text)
        return _decode_serial_time(number) if number is not None else MIDNIGHT

    # "2024-01-10 08:30:00" -> keep the clock part only.
    clock = next((token for token in reversed(text.split()) if ":" in token), text)
    parts = clock.split(":")
    if len(parts) < 2:
        return MIDNIGHT
    components = [parse_number(part) or 0.0 for part in parts[:3]]
    while len(components) < 3:
        components.append(0.0)
    hours, minutes, seconds = components
    return TimeOfDay.from_hms(hours, minutes, seconds)


def _decode_serial_time(number: float) -> TimeOfDay:
    if math.isnan(number) or math.isinf(number):
        return MIDNIGHT
    if number > 1:
        # An absolute date-time serial typed into a time column.
        clock = _serial_clock_seconds(number)
        if clock:
            return TimeOfDay(clock)
    return TimeOfDay(int(round(number * SECONDS_PER_DAY)))


def decode_date(value: object) -> str:
    """Decode a date cell into ``YYYY-MM-DD``; unreadable cells give ``""``."""
    if value is None or isinstance(value, bool) or value == "":
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float)):
        return _decode_serial_date(float(value))

    text = str(value).strip()
    if not text:
        return ""
    if "/" in text:
        parts = text.split(" ")[0].split("/")
        if len(parts) == 3:
            try:
                day, month, year = (int(part) for part in parts)
                return date(year, month, day).isoformat()
            except ValueError:
                return ""
        return _parse_generic_date(text)
    number = parse_number(text)
    if number is not None and "-" not in text:
        return _decode_serial_date(number)
    return _parse_generic_date(text)


def _decode_serial_date(number: float) -> str:
    if math.isnan(number) or math.isinf(number) or number <= 1:
        return ""
    try:
        return (SPREADSHEET_EPOCH + timedelta(days=int(math.floor(number)))).isoformat()
    except OverflowError:
        return ""


def _parse_generic_date(text: str) -> str:
    try:
        return datetime.fromisoformat(text).date().isoformat()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue
    return ""


def apply_overnight_rollover(
    closure: TimeOfDay,
    realized_arrival: TimeOfDay,
    tour_start: TimeOfDay,
    threshold_seconds: int = DEFAULT_ROLLOVER_THRESHOLD,
) -> tuple[TimeOfDay, TimeOfDay]:
    """Push a task onto the next day when it closed long before its tour began.

    A tour starting late in the evening records its deliveries after midnight
    with small clock values; when the closure falls more than
    ``threshold_seconds`` before the tour start, one day is added to both the
    closure and the realized arrival. Re-applying is a no-op because the
    corrected closure no longer satisfies the predicate.
    """
    if not tour_start:
        return closure, realized_arrival
    if closure.seconds < tour_start.seconds - threshold_seconds:
        return closure.rolled_over(), realized_arrival.rolled_over()
    return closure, realized_arrival
