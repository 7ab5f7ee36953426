from datetime import (
    datetime as _datetime,
    timedelta as _timedelta,
    timezone as _timezone,
)
from functools import lru_cache

UTC = _timezone.utc
UNIX_EPOCH = _datetime(1970, 1, 1, tzinfo=UTC)
MICROS_PER_SECOND = 1_000_000


# One shared tzinfo per offset
@lru_cache
def mk_fixed_tzinfo(secs: int, /) -> _timezone:
    if not secs:
        return UTC
    return _timezone(_timedelta(seconds=secs))


def check_utc_bounds(dt: _datetime) -> _datetime:
    try:
        dt.astimezone(UTC)
    except (OverflowError, ValueError):
        raise ValueError("datetime out of range for UTC")
    return dt


def total_micros(td: _timedelta, /) -> int:
    return (
        td.days * 86_400 + td.seconds
    ) * MICROS_PER_SECOND + td.microseconds
