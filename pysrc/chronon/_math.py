"""Date and calendar arithmetic helpers."""

from datetime import date as _date, timedelta as _timedelta
from typing import Literal

# How to handle a day-of-month that doesn't exist in the target month
# (e.g. January 31st plus one month).
# - "clamp": use the last day of the target month
# - "rollover": carry the excess days into the following month
Overflow = Literal["clamp", "rollover"]


def is_leap(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


# 1-indexed days per month
_MONTHDAYS = [0, 31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]


def days_in_month(year: int, month: int) -> int:
    return _MONTHDAYS[month] + (month == 2 and is_leap(year))


def add_months(d: _date, months: int, overflow: Overflow = "clamp") -> _date:
    year_delta, month0_new = divmod(d.month - 1 + months, 12)
    year_new = d.year + year_delta
    month_new = month0_new + 1
    try:
        return d.replace(year=year_new, month=month_new)
    except ValueError:
        # Either the year is out of range, or the target month is shorter.
        # Let the former propagate.
        if not 1 <= year_new <= 9999:
            raise
    last = days_in_month(year_new, month_new)
    if overflow == "clamp":
        return d.replace(year=year_new, month=month_new, day=last)
    elif overflow == "rollover":
        return d.replace(year=year_new, month=month_new, day=last) + _timedelta(
            d.day - last
        )
    raise ValueError(f"Invalid overflow setting: {overflow!r}")


def add_days(d: _date, days: int) -> _date:
    return d + _timedelta(days)
