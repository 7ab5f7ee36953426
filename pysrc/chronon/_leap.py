"""Parsing of the leap second data set

The data set follows the layout of the IERS ``Leap_Second.dat`` file:
one row per change of TAI-UTC, giving the Modified Julian Date, the civil
date (day month year) from which the new value applies, and the new
cumulative value of TAI-UTC in seconds. Comment lines start with ``#``;
one of them states when the file expires.
"""

from __future__ import annotations

import logging
import re
from datetime import date as _date
from importlib.resources import files
from typing import NamedTuple

__all__ = ["DataError", "LeapSecondData", "parse", "read_embedded"]

_LOGGER = logging.getLogger("chronon")

_RESOURCE = "leap_seconds.dat"
_MJD_EPOCH = _date(1858, 11, 17).toordinal()
# Month names are matched literally: calendar.month_name depends on the locale
_MONTHS = {
    name: number
    for number, name in enumerate(
        "January February March April May June July "
        "August September October November December".split(),
        start=1,
    )
}

_match_row = re.compile(
    r"\s*(\d+)(?:\.0*)?\s+(\d{1,2})\s+(\d{1,2})\s+(\d{4})\s+(-?\d+)\s*",
    re.ASCII,
).fullmatch
_search_expiry = re.compile(
    r"File expires on\s+(\d{1,2})\s+([A-Za-z]+)\s+(\d{4})", re.ASCII
).search


class DataError(ValueError):
    """The leap second data set failed its consistency checks"""


class LeapSecondData(NamedTuple):
    expires: _date
    # (date from which the offset applies, cumulative TAI-UTC in seconds)
    rows: tuple[tuple[_date, int], ...]


def read_embedded() -> LeapSecondData:
    """Read the data set bundled with the package"""
    data = parse(
        files("chronon").joinpath(_RESOURCE).read_text(encoding="ascii")
    )
    _LOGGER.debug(
        "Loaded %d leap second records (list expires %s)",
        len(data.rows),
        data.expires.isoformat(),
    )
    return data


def parse(text: str) -> LeapSecondData:
    expires = None
    rows: list[tuple[_date, int]] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped:
            continue
        elif stripped.startswith("#"):
            if match := _search_expiry(stripped):
                expires = _parse_expiry(match, lineno)
            continue

        if (match := _match_row(line)) is None:
            raise DataError(f"Line {lineno}: unrecognized row {line!r}")
        mjd, day, month, year, offset = map(int, match.groups())
        try:
            d = _date(year, month, day)
        except ValueError:
            raise DataError(f"Line {lineno}: invalid date in {line!r}")
        if d.toordinal() - _MJD_EPOCH != mjd:
            raise DataError(
                f"Line {lineno}: MJD {mjd} does not match {d.isoformat()}"
            )
        rows.append((d, offset))

    if expires is None:
        raise DataError("Leap second data has no expiration date")
    if not rows:
        raise DataError("Leap second data has no records")
    _check_rows(rows)
    return LeapSecondData(expires, tuple(rows))


def _parse_expiry(match: re.Match[str], lineno: int) -> _date:
    day, month_name, year = match.groups()
    try:
        return _date(int(year), _MONTHS[month_name.capitalize()], int(day))
    except (KeyError, ValueError):
        raise DataError(f"Line {lineno}: invalid expiration date")


def _check_rows(rows: list[tuple[_date, int]]) -> None:
    if rows[0][1] <= 0:
        raise DataError("The initial TAI-UTC offset must be positive")
    for (prev_day, prev_offset), (day, offset) in zip(rows, rows[1:]):
        if day == prev_day:
            raise DataError(f"Duplicate leap second at {day.isoformat()}")
        elif day < prev_day:
            raise DataError(
                f"Leap seconds are not sorted: {day.isoformat()} "
                f"follows {prev_day.isoformat()}"
            )
        elif abs(offset - prev_offset) != 1:
            raise DataError(
                f"TAI-UTC changes by {offset - prev_offset}s "
                f"at {day.isoformat()}, expected one second"
            )
