# The MIT License (MIT)
#
# Copyright (c) The chronon contributors
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

# Maintainer's notes:
#
# - All the public types live in this one file. They 'know' about each other
#   (a DateTime creates TimePeriods, which consult the LeapSeconds table,
#   which holds DateTimes), so splitting them up would create circular imports.
# - Every class is immutable. "Mutating" methods return new instances.
# - DateTime wraps an aware standard library datetime. Its tzinfo is
#   a ZoneInfo if the DateTime has a named time zone, and a fixed
#   datetime.timezone if it only has an offset.
from __future__ import annotations

__version__ = "0.1.0"

import enum
import re
import threading
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import (
    date as _date,
    datetime as _datetime,
    time as _time,
    timedelta as _timedelta,
    timezone as _timezone,
    tzinfo as _tzinfo,
)
from time import time_ns
from typing import (
    TYPE_CHECKING,
    ClassVar,
    Literal,
    Mapping,
    no_type_check,
    overload,
)
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from . import _leap
from ._common import (
    MICROS_PER_SECOND,
    UNIX_EPOCH as _UNIX_EPOCH,
    UTC as _UTC,
    check_utc_bounds,
    mk_fixed_tzinfo,
    total_micros,
)
from ._leap import DataError
from ._math import Overflow, add_days, add_months

__all__ = [
    # Points and spans of time
    "DateTime",
    "TimePeriod",
    "TimePeriods",
    "TimeEpoch",
    # Durations and offsets
    "TimeUnit",
    "TimeOffset",
    "TimeZone",
    # Leap seconds
    "LeapSecond",
    "LeapSeconds",
    # Exceptions
    "InvalidArgument",
    "UnknownZone",
    "InvalidOffset",
    "SkippedTime",
    "RepeatedTime",
    "DomainError",
    "DataError",
]

# Helpers that pre-compute/lookup as much as possible
_object_new = object.__new__
_MAX_OFFSET_SECS = 18 * 3_600


class _ImmutableBase:
    __slots__ = ()

    # Immutable classes don't need to be copied
    @no_type_check
    def __copy__(self):
        return self

    @no_type_check
    def __deepcopy__(self, _):
        return self


if TYPE_CHECKING:
    from typing import final
else:

    def final(cls):

        def init_subclass_not_allowed(cls, **kwargs):  # pragma: no cover
            raise TypeError("Subclassing not allowed")

        cls.__init_subclass__ = init_subclass_not_allowed
        return cls


def _as_micros(value: float, factor: int) -> int:
    # Integers are exact. Floats are rounded to avoid e.g. 0.29 seconds
    # becoming 289_999 microseconds.
    if isinstance(value, int):
        return value * factor
    elif isinstance(value, float):
        return round(value * factor)
    raise TypeError(f"Expected int or float, got {type(value)!r}")


@final
class TimeUnit(_ImmutableBase):
    """A signed duration with microsecond precision.

    The inputs are normalized, so 90 minutes becomes 1 hour and 30 minutes,
    for example. The sign applies to the duration as a whole.

    Example
    -------
    >>> d = TimeUnit(hours=1, minutes=30)
    TimeUnit(01:30:00)
    >>> d.in_minutes()
    90.0
    >>> TimeUnit.seconds(3) + TimeUnit.milliseconds(500)
    TimeUnit(00:00:03.5)
    """

    __slots__ = ("_total_us",)

    ZERO: ClassVar[TimeUnit]
    """A duration of zero"""

    def __init__(
        self,
        *,
        days: float = 0,
        hours: float = 0,
        minutes: float = 0,
        seconds: float = 0,
        milliseconds: float = 0,
        microseconds: float = 0,
    ) -> None:
        self._total_us = (
            _as_micros(days, 86_400_000_000)
            + _as_micros(hours, 3_600_000_000)
            + _as_micros(minutes, 60_000_000)
            + _as_micros(seconds, 1_000_000)
            + _as_micros(milliseconds, 1_000)
            + _as_micros(microseconds, 1)
        )

    @classmethod
    def days(cls, n: float, /) -> TimeUnit:
        """A duration of ``n`` days of exactly 24 hours"""
        return cls(days=n)

    @classmethod
    def hours(cls, n: float, /) -> TimeUnit:
        return cls(hours=n)

    @classmethod
    def minutes(cls, n: float, /) -> TimeUnit:
        return cls(minutes=n)

    @classmethod
    def seconds(cls, n: float, /) -> TimeUnit:
        return cls(seconds=n)

    @classmethod
    def milliseconds(cls, n: float, /) -> TimeUnit:
        return cls(milliseconds=n)

    @classmethod
    def microseconds(cls, n: int, /) -> TimeUnit:
        return cls(microseconds=n)

    @classmethod
    def precise(cls, seconds: float, /) -> TimeUnit:
        """Create from a (fractional) number of seconds

        Example
        -------
        >>> TimeUnit.precise(-1.25)
        TimeUnit(-00:00:01.25)
        """
        return cls(seconds=seconds)

    @classmethod
    def positive(cls, seconds: int, microsecond: int = 0, /) -> TimeUnit:
        """Create a non-negative duration from whole seconds and a
        microsecond fraction

        Example
        -------
        >>> TimeUnit.positive(3, 500_000)
        TimeUnit(00:00:03.5)
        """
        return cls._from_us_unchecked(_check_parts(seconds, microsecond))

    @classmethod
    def negative(cls, seconds: int, microsecond: int = 0, /) -> TimeUnit:
        """Create a negative duration from the whole seconds and the
        microsecond fraction of its magnitude

        Example
        -------
        >>> TimeUnit.negative(3, 500_000)
        TimeUnit(-00:00:03.5)
        """
        return cls._from_us_unchecked(-_check_parts(seconds, microsecond))

    @property
    def microsecond(self) -> int:
        """The microsecond fraction of the magnitude, in ``[0, 1_000_000)``

        Example
        -------
        >>> TimeUnit.precise(-1.25).microsecond
        250000
        """
        return abs(self._total_us) % MICROS_PER_SECOND

    def in_seconds(self) -> int:
        """The whole seconds, truncated towards zero

        Example
        -------
        >>> TimeUnit.precise(-1.25).in_seconds()
        -1
        """
        secs = abs(self._total_us) // MICROS_PER_SECOND
        return -secs if self._total_us < 0 else secs

    def in_seconds_precise(self) -> float:
        return self._total_us / MICROS_PER_SECOND

    def in_milliseconds(self) -> float:
        return self._total_us / 1_000

    def in_microseconds(self) -> int:
        return self._total_us

    def in_minutes(self) -> float:
        return self._total_us / 60_000_000

    def in_hours(self) -> float:
        return self._total_us / 3_600_000_000

    def in_days(self) -> float:
        """The total size in days of exactly 24 hours"""
        return self._total_us / 86_400_000_000

    def microsecond_string(self) -> str:
        """The microsecond fraction, zero-padded to six digits"""
        return f"{self.microsecond:06d}"

    def is_positive(self) -> bool:
        """Whether the duration is zero or larger"""
        return self._total_us >= 0

    def is_negative(self) -> bool:
        return self._total_us < 0

    def is_zero(self) -> bool:
        return not self._total_us

    def add(self, other: TimeUnit, /) -> TimeUnit:
        return self + other

    def sub(self, other: TimeUnit, /) -> TimeUnit:
        return self - other

    def multiply(self, factor: float, /) -> TimeUnit:
        return self * factor

    def divide(self, divisor: float, /) -> TimeUnit:
        return self / divisor  # type: ignore[return-value]

    def mod(self, other: TimeUnit, /) -> TimeUnit:
        return self % other

    def absolute(self) -> TimeUnit:
        return abs(self)

    def to_negative(self) -> TimeUnit:
        """The negative of the magnitude, regardless of the current sign"""
        return TimeUnit._from_us_unchecked(-abs(self._total_us))

    def invert(self) -> TimeUnit:
        return -self

    def is_equal(self, other: TimeUnit, /) -> bool:
        return self._total_us == _check_unit(other)._total_us

    def is_greater(self, other: TimeUnit, /) -> bool:
        return self._total_us > _check_unit(other)._total_us

    def is_greater_or_equal(self, other: TimeUnit, /) -> bool:
        return self._total_us >= _check_unit(other)._total_us

    def is_less(self, other: TimeUnit, /) -> bool:
        return self._total_us < _check_unit(other)._total_us

    def is_less_or_equal(self, other: TimeUnit, /) -> bool:
        return self._total_us <= _check_unit(other)._total_us

    def py_timedelta(self) -> _timedelta:
        """Convert to a :class:`~datetime.timedelta`

        Inverse of :meth:`from_py_timedelta`
        """
        return _timedelta(microseconds=self._total_us)

    @classmethod
    def from_py_timedelta(cls, td: _timedelta, /) -> TimeUnit:
        """Create from a :class:`~datetime.timedelta`

        Inverse of :meth:`py_timedelta`
        """
        if not isinstance(td, _timedelta):
            raise TypeError(f"Expected timedelta, got {type(td)!r}")
        return cls._from_us_unchecked(total_micros(td))

    def format_iso(self) -> str:
        """Format as an ISO 8601 duration with time components only

        Example
        -------
        >>> TimeUnit(hours=1, minutes=30).format_iso()
        'PT1H30M'
        >>> TimeUnit.precise(-0.5).format_iso()
        '-PT0.5S'
        """
        hrs, rem = divmod(abs(self._total_us), 3_600_000_000)
        mins, rem = divmod(rem, 60_000_000)
        secs, us = divmod(rem, MICROS_PER_SECOND)
        seconds = f"{secs}.{us:06d}".rstrip("0") if us else str(secs)
        return f"{(self._total_us < 0) * '-'}PT" + (
            (
                f"{hrs}H" * bool(hrs)
                + f"{mins}M" * bool(mins)
                + f"{seconds}S" * bool(secs or us)
            )
            or "0S"
        )

    __str__ = format_iso

    def __add__(self, other: TimeUnit) -> TimeUnit:
        if not isinstance(other, TimeUnit):
            return NotImplemented
        return TimeUnit._from_us_unchecked(self._total_us + other._total_us)

    def __sub__(self, other: TimeUnit) -> TimeUnit:
        if not isinstance(other, TimeUnit):
            return NotImplemented
        return TimeUnit._from_us_unchecked(self._total_us - other._total_us)

    def __mul__(self, other: float) -> TimeUnit:
        if isinstance(other, int):
            return TimeUnit._from_us_unchecked(self._total_us * other)
        elif isinstance(other, float):
            return TimeUnit._from_us_unchecked(round(self._total_us * other))
        return NotImplemented

    def __rmul__(self, other: float) -> TimeUnit:
        return self * other

    @overload
    def __truediv__(self, other: float) -> TimeUnit: ...

    @overload
    def __truediv__(self, other: TimeUnit) -> float: ...

    def __truediv__(self, other: float | TimeUnit) -> TimeUnit | float:
        """Divide by a number or another duration

        Example
        -------
        >>> TimeUnit.minutes(90) / 2
        TimeUnit(00:45:00)
        >>> TimeUnit.minutes(90) / TimeUnit.minutes(30)
        3.0
        """
        if isinstance(other, TimeUnit):
            return self._total_us / other._total_us
        elif isinstance(other, (int, float)):
            return TimeUnit._from_us_unchecked(round(self._total_us / other))
        return NotImplemented

    def __mod__(self, other: TimeUnit) -> TimeUnit:
        """The remainder of dividing by another duration.
        Like :func:`math.fmod`, the result has the sign of ``self``.

        Example
        -------
        >>> TimeUnit.seconds(-7) % TimeUnit.seconds(3)
        TimeUnit(-00:00:01)
        """
        if not isinstance(other, TimeUnit):
            return NotImplemented
        rem = abs(self._total_us) % abs(other._total_us)
        return TimeUnit._from_us_unchecked(-rem if self._total_us < 0 else rem)

    def __neg__(self) -> TimeUnit:
        return TimeUnit._from_us_unchecked(-self._total_us)

    def __pos__(self) -> TimeUnit:
        return self

    def __abs__(self) -> TimeUnit:
        return TimeUnit._from_us_unchecked(abs(self._total_us))

    def __bool__(self) -> bool:
        """True if the value is non-zero"""
        return bool(self._total_us)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeUnit):
            return NotImplemented
        return self._total_us == other._total_us

    def __hash__(self) -> int:
        return hash(self._total_us)

    def __lt__(self, other: TimeUnit) -> bool:
        if not isinstance(other, TimeUnit):
            return NotImplemented
        return self._total_us < other._total_us

    def __le__(self, other: TimeUnit) -> bool:
        if not isinstance(other, TimeUnit):
            return NotImplemented
        return self._total_us <= other._total_us

    def __gt__(self, other: TimeUnit) -> bool:
        if not isinstance(other, TimeUnit):
            return NotImplemented
        return self._total_us > other._total_us

    def __ge__(self, other: TimeUnit) -> bool:
        if not isinstance(other, TimeUnit):
            return NotImplemented
        return self._total_us >= other._total_us

    def __repr__(self) -> str:
        hrs, rem = divmod(abs(self._total_us), 3_600_000_000)
        mins, rem = divmod(rem, 60_000_000)
        secs, us = divmod(rem, MICROS_PER_SECOND)
        sign = "-" * (self._total_us < 0)
        return (
            f"TimeUnit({sign}{hrs:02}:{mins:02}:{secs:02}"
            + f".{us:06d}".rstrip("0") * bool(us)
            + ")"
        )

    @classmethod
    def _from_us_unchecked(cls, us: int) -> TimeUnit:
        new = _object_new(cls)
        new._total_us = us
        return new


TimeUnit.ZERO = TimeUnit()


def _check_parts(seconds: int, microsecond: int) -> int:
    if type(seconds) is not int or type(microsecond) is not int:
        raise TypeError("seconds and microsecond must be integers")
    if seconds < 0:
        raise InvalidArgument("seconds must be non-negative")
    if not 0 <= microsecond < MICROS_PER_SECOND:
        raise InvalidArgument(f"microsecond out of range: {microsecond}")
    return seconds * MICROS_PER_SECOND + microsecond


def _check_unit(value: object) -> TimeUnit:
    if not isinstance(value, TimeUnit):
        raise TypeError(f"Expected TimeUnit, got {type(value)!r}")
    return value


@final
class TimeOffset(_ImmutableBase):
    """A fixed offset from UTC, independent of any named time zone

    Example
    -------
    >>> TimeOffset(hours=2)
    TimeOffset(+02:00)
    >>> TimeOffset.from_string("-05:30").in_seconds()
    -19800
    """

    __slots__ = ("_secs",)

    UTC: ClassVar[TimeOffset]
    """The zero offset"""

    def __init__(
        self, hours: int = 0, minutes: int = 0, seconds: int = 0
    ) -> None:
        if not all(type(x) is int for x in (hours, minutes, seconds)):
            raise TypeError("Offset components must be integers")
        self._secs = _check_offset(hours * 3_600 + minutes * 60 + seconds)

    @classmethod
    def from_seconds(cls, secs: int, /) -> TimeOffset:
        return cls(seconds=secs)

    @classmethod
    def from_time_unit(cls, unit: TimeUnit, /) -> TimeOffset:
        """Create from a duration of whole seconds"""
        if _check_unit(unit).microsecond:
            raise InvalidArgument("Offset must be a whole number of seconds")
        return cls(seconds=unit.in_seconds())

    @classmethod
    def from_string(cls, s: str, /) -> TimeOffset:
        """Parse ``±HH``, ``±HH:MM``, ``±HHMM``, ``±HH:MM:SS`` or ``Z``

        Example
        -------
        >>> TimeOffset.from_string("+0200")
        TimeOffset(+02:00)
        """
        if not isinstance(s, str):
            raise TypeError(f"Expected str, got {type(s)!r}")
        if s in ("Z", "z"):
            return cls.UTC
        if (match := _match_offset(s)) is None:
            raise InvalidArgument(f"Invalid offset format: {s!r}")
        sign, hrs, mins, secs = match.groups()
        total = int(hrs) * 3_600 + int(mins or 0) * 60 + int(secs or 0)
        return cls._from_secs_unchecked(
            _check_offset(-total if sign == "-" else total)
        )

    def in_seconds(self) -> int:
        return self._secs

    def is_utc(self) -> bool:
        return not self._secs

    def to_time_unit(self) -> TimeUnit:
        return TimeUnit._from_us_unchecked(self._secs * MICROS_PER_SECOND)

    def to_string(self) -> str:
        """Format as ``±HH:MM`` (or ``±HH:MM:SS`` for sub-minute offsets)

        Example
        -------
        >>> TimeOffset(hours=-3, minutes=-30).to_string()
        '-03:30'
        """
        hrs, rem = divmod(abs(self._secs), 3_600)
        mins, secs = divmod(rem, 60)
        return (
            f"{'-' if self._secs < 0 else '+'}{hrs:02}:{mins:02}"
            + f":{secs:02}" * bool(secs)
        )

    __str__ = to_string

    def py_timezone(self) -> _timezone:
        """The equivalent standard library :class:`~datetime.timezone`"""
        return mk_fixed_tzinfo(self._secs)

    def is_equal(self, other: TimeOffset, /) -> bool:
        """Compare with another offset, for example one resolved from a
        named zone with :meth:`TimeZone.time_offset`
        """
        if not isinstance(other, TimeOffset):
            raise TypeError(f"Expected TimeOffset, got {type(other)!r}")
        return self._secs == other._secs

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeOffset):
            return NotImplemented
        return self._secs == other._secs

    def __hash__(self) -> int:
        return hash(self._secs)

    def __lt__(self, other: TimeOffset) -> bool:
        if not isinstance(other, TimeOffset):
            return NotImplemented
        return self._secs < other._secs

    def __le__(self, other: TimeOffset) -> bool:
        if not isinstance(other, TimeOffset):
            return NotImplemented
        return self._secs <= other._secs

    def __gt__(self, other: TimeOffset) -> bool:
        if not isinstance(other, TimeOffset):
            return NotImplemented
        return self._secs > other._secs

    def __ge__(self, other: TimeOffset) -> bool:
        if not isinstance(other, TimeOffset):
            return NotImplemented
        return self._secs >= other._secs

    def __repr__(self) -> str:
        return f"TimeOffset({self.to_string()})"

    @classmethod
    def _from_secs_unchecked(cls, secs: int) -> TimeOffset:
        new = _object_new(cls)
        new._secs = secs
        return new

    @classmethod
    def _from_py(cls, td: _timedelta | None) -> TimeOffset:
        assert td is not None
        return cls._from_secs_unchecked(td.days * 86_400 + td.seconds)


_match_offset = re.compile(
    r"([+-])(\d{2})(?::?(\d{2})(?::?(\d{2}))?)?", re.ASCII
).fullmatch


def _check_offset(secs: int) -> int:
    if abs(secs) > _MAX_OFFSET_SECS:
        raise InvalidArgument(
            f"Offset out of range: {secs}s exceeds ±18:00"
        )
    return secs


TimeOffset.UTC = TimeOffset()


def _coerce_offset(value: TimeOffset | TimeUnit | int | str) -> TimeOffset:
    if isinstance(value, TimeOffset):
        return value
    elif isinstance(value, bool):
        raise TypeError("offset must not be a bool")
    elif isinstance(value, int):
        return TimeOffset(hours=value)
    elif isinstance(value, str):
        return TimeOffset.from_string(value)
    elif isinstance(value, TimeUnit):
        return TimeOffset.from_time_unit(value)
    raise TypeError(
        "offset must be a TimeOffset, TimeUnit, int (hours) or str, "
        f"got {type(value)!r}"
    )


@final
class TimeZone(_ImmutableBase):
    """A named time zone from the IANA database

    Example
    -------
    >>> warsaw = TimeZone("Europe/Warsaw")
    >>> warsaw.time_offset(DateTime.create(2020, 7, 1, 12, 0, 0))
    TimeOffset(+02:00)

    Raises
    ------
    UnknownZone
        If the name can't be found in the time zone database.
    """

    __slots__ = ("_zone",)

    UTC: ClassVar[TimeZone]

    def __init__(self, name: str) -> None:
        self._zone = _load_zone(name)

    @property
    def name(self) -> str:
        return self._zone.key

    @classmethod
    def is_valid(cls, name: str) -> bool:
        try:
            _load_zone(name)
        except UnknownZone:
            return False
        return True

    def time_offset(self, dt: DateTime, /) -> TimeOffset:
        """The offset of this zone at the absolute instant of ``dt``"""
        if not isinstance(dt, DateTime):
            raise TypeError(f"Expected DateTime, got {type(dt)!r}")
        try:
            local = dt._py_dt.astimezone(self._zone)
        except OverflowError:
            raise InvalidArgument("Result out of range") from None
        return TimeOffset._from_py(local.utcoffset())

    def py_zoneinfo(self) -> ZoneInfo:
        return self._zone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeZone):
            return NotImplemented
        return self._zone.key == other._zone.key

    def __hash__(self) -> int:
        return hash(self._zone.key)

    def __str__(self) -> str:
        return self._zone.key

    def __repr__(self) -> str:
        return f"TimeZone({self._zone.key})"

    @classmethod
    def _from_zoneinfo(cls, zone: ZoneInfo) -> TimeZone:
        new = _object_new(cls)
        new._zone = zone
        return new


def _load_zone(name: str) -> ZoneInfo:
    if not isinstance(name, str):
        raise TypeError(f"Time zone name must be a str, got {type(name)!r}")
    try:
        return ZoneInfo(name)
    # Several exceptions amount to "can't find the key":
    # path traversal or empty keys raise ValueError,
    # and some platforms raise OSError for directories.
    except (ZoneInfoNotFoundError, ValueError, OSError):
        raise UnknownZone.for_key(name) from None


def _coerce_zone(value: TimeZone | str) -> ZoneInfo:
    if isinstance(value, TimeZone):
        return value._zone
    return _load_zone(value)


TimeZone.UTC = TimeZone("UTC")


Disambiguate = Literal["compatible", "earlier", "later", "raise"]
Unit = Literal[
    "years",
    "months",
    "weeks",
    "days",
    "hours",
    "minutes",
    "seconds",
    "microseconds",
]
_TIME_UNIT_MICROS: Mapping[str, int] = {
    "hours": 3_600_000_000,
    "minutes": 60_000_000,
    "seconds": 1_000_000,
    "microseconds": 1,
}
_OVERFLOW_SETTINGS = ("clamp", "rollover")


@final
class DateTime(_ImmutableBase):
    """A point in time: a date and time-of-day on the proleptic Gregorian
    calendar, with a UTC offset and optionally a named time zone.

    The zone and offset arguments combine as follows:

    - only ``tz``: the offset is resolved from the zone at that date and time.
    - only ``offset``: the datetime has a fixed offset and no named zone.
    - both: the offset must be one the zone actually uses at that date and
      time. For repeated times (e.g. when clocks go back) it selects which
      of the two occurrences is meant.
    - neither: the offset is UTC, and there is no named zone.

    Example
    -------
    >>> DateTime(2020, 8, 15, hour=23, tz="Europe/Warsaw")
    DateTime(2020-08-15 23:00:00+02:00[Europe/Warsaw])
    >>> DateTime(2020, 8, 15, hour=23, offset="-04:00")
    DateTime(2020-08-15 23:00:00-04:00)

    Important
    ---------
    Some wall-clock times don't exist in a zone (clocks skip forward), and
    some exist twice (clocks go back). Use ``disambiguate`` to choose how
    these are resolved: ``"compatible"`` (the default) moves skipped times
    forward and picks the earlier of repeated times, ``"earlier"`` and
    ``"later"`` pick the corresponding side, and ``"raise"`` raises
    :class:`SkippedTime` or :class:`RepeatedTime`.
    """

    __slots__ = ("_py_dt",)

    def __init__(
        self,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
        microsecond: int = 0,
        *,
        tz: TimeZone | str | None = None,
        offset: TimeOffset | TimeUnit | int | str | None = None,
        disambiguate: Disambiguate = "compatible",
    ) -> None:
        try:
            local = _datetime(
                year, month, day, hour, minute, second, microsecond
            )
        except (ValueError, OverflowError) as e:
            raise InvalidArgument(str(e)) from e
        self._py_dt = _attach(local, tz, offset, disambiguate)

    @classmethod
    def create(
        cls,
        year: int,
        month: int,
        day: int,
        hour: int,
        minute: int,
        second: int,
        microsecond: int = 0,
        timezone: TimeZone | str = "UTC",
    ) -> DateTime:
        """Create a datetime in a named time zone (UTC by default)

        Example
        -------
        >>> DateTime.create(2020, 1, 1, 0, 0, 0)
        DateTime(2020-01-01 00:00:00+00:00[UTC])
        """
        return cls(
            year,
            month,
            day,
            hour,
            minute,
            second,
            microsecond,
            tz=timezone,
        )

    @classmethod
    def now(cls, timezone: TimeZone | str = "UTC") -> DateTime:
        """The current time in the given time zone"""
        secs, nanos = divmod(time_ns(), 1_000_000_000)
        return cls._from_py_unchecked(
            _datetime.fromtimestamp(secs, _coerce_zone(timezone)).replace(
                microsecond=nanos // 1_000
            )
        )

    @classmethod
    def from_timestamp_unix(cls, timestamp: int | TimeUnit, /) -> DateTime:
        """Create a UTC datetime from a UNIX timestamp.
        Inverse of :meth:`timestamp_unix`.

        Example
        -------
        >>> DateTime.from_timestamp_unix(1_577_836_800)
        DateTime(2020-01-01 00:00:00+00:00[UTC])
        """
        if isinstance(timestamp, TimeUnit):
            us = timestamp._total_us
        elif isinstance(timestamp, int) and not isinstance(timestamp, bool):
            us = timestamp * MICROS_PER_SECOND
        else:
            raise TypeError(
                f"Expected int or TimeUnit, got {type(timestamp)!r}"
            )
        try:
            return cls._from_py_unchecked(
                (_UNIX_EPOCH + _timedelta(microseconds=us)).astimezone(
                    TimeZone.UTC._zone
                )
            )
        except OverflowError:
            raise InvalidArgument("Timestamp out of range") from None

    @classmethod
    def from_py_datetime(cls, d: _datetime, /) -> DateTime:
        """Create from an aware standard library datetime.
        A :class:`~zoneinfo.ZoneInfo` tzinfo becomes the named time zone;
        any other tzinfo only contributes its offset.
        """
        if not isinstance(d, _datetime):
            raise TypeError(f"Expected datetime, got {type(d)!r}")
        offset = d.utcoffset()
        if offset is None:
            raise InvalidArgument("Datetime must be aware (have a UTC offset)")
        if not isinstance(d.tzinfo, ZoneInfo):
            secs = _check_offset(total_micros(offset) // MICROS_PER_SECOND)
            d = d.replace(tzinfo=mk_fixed_tzinfo(secs))
        else:
            # Skipped times are disambiguated according to the fold
            d = d.astimezone(_UTC).astimezone(d.tzinfo)
        return cls._from_py_unchecked(_strip_subclasses(d))

    @classmethod
    def from_string(cls, s: str, /) -> DateTime:
        """Parse an ISO 8601 date and time

        Accepted forms are ``YYYY-MM-DD[THH:MM[:SS[.ffffff]]]``
        followed by an optional offset (``Z``, ``±HH:MM``, ``±HHMM``, ``±HH``)
        and an optional RFC 9557 time zone suffix (``[Europe/Warsaw]``).
        Without offset and zone, the datetime is read as UTC.
        A space is also accepted as date-time separator.

        Parses the output of :meth:`format_iso`

        Example
        -------
        >>> DateTime.from_string("2020-08-15T23:12:00+02:00")
        DateTime(2020-08-15 23:12:00+02:00)
        >>> DateTime.from_string("2020-08-15T23:12:00+02:00[Europe/Warsaw]")
        DateTime(2020-08-15 23:12:00+02:00[Europe/Warsaw])
        """
        if not isinstance(s, str):
            raise TypeError(f"Expected str, got {type(s)!r}")
        if (match := _match_datetime(s)) is None:
            raise InvalidArgument(f"Invalid format: {s!r}")
        year, month, day, hour, minute, second, fraction = match.groups()[:7]
        offset, zone = match[8] or None, match[9]
        return cls(
            int(year),
            int(month),
            int(day),
            int(hour or 0),
            int(minute or 0),
            int(second or 0),
            int(fraction.ljust(6, "0")) if fraction else 0,
            tz=zone,
            offset=offset,
        )

    @property
    def year(self) -> int:
        return self._py_dt.year

    @property
    def month(self) -> int:
        return self._py_dt.month

    @property
    def day(self) -> int:
        return self._py_dt.day

    @property
    def hour(self) -> int:
        return self._py_dt.hour

    @property
    def minute(self) -> int:
        return self._py_dt.minute

    @property
    def second(self) -> int:
        return self._py_dt.second

    @property
    def microsecond(self) -> int:
        return self._py_dt.microsecond

    def date(self) -> _date:
        """The calendar date, as a standard library :class:`~datetime.date`"""
        return self._py_dt.date()

    def time(self) -> _time:
        """The time of day, as a standard library :class:`~datetime.time`"""
        return self._py_dt.time()

    def time_zone(self) -> TimeZone | None:
        """The named time zone, if any. Datetimes created with
        only an offset don't have one.
        """
        tzinfo = self._py_dt.tzinfo
        if isinstance(tzinfo, ZoneInfo):
            return TimeZone._from_zoneinfo(tzinfo)
        return None

    def time_offset(self) -> TimeOffset:
        return TimeOffset._from_py(self._py_dt.utcoffset())

    def is_daylight(self) -> bool:
        """Whether daylight saving time is in effect"""
        return bool(self._py_dt.dst())

    def is_saving_time(self) -> bool:
        """Whether standard time is in effect. The inverse of
        :meth:`is_daylight`.
        """
        return not self._py_dt.dst()

    def py_datetime(self) -> _datetime:
        """Convert to an aware standard library :class:`~datetime.datetime`"""
        return self._py_dt

    def to_time_zone(self, zone: TimeZone | str, /) -> DateTime:
        """Express the same moment in time in another time zone

        Example
        -------
        >>> d = DateTime.create(2020, 8, 15, 12, 0, 0)
        >>> d.to_time_zone("Asia/Tokyo")
        DateTime(2020-08-15 21:00:00+09:00[Asia/Tokyo])
        """
        try:
            return self._from_py_unchecked(
                self._py_dt.astimezone(_coerce_zone(zone))
            )
        except OverflowError:
            raise InvalidArgument("Result out of range") from None

    def to_atomic_time(
        self, *, leap_seconds: LeapSeconds | None = None
    ) -> DateTime:
        """Shift by the TAI-UTC offset in force at this moment,
        giving the reading of an atomic (TAI) clock
        """
        return self.add(_leap_table(leap_seconds).until(self).offset_tai())

    def to_gps_time(
        self, *, leap_seconds: LeapSeconds | None = None
    ) -> DateTime:
        """Shift by the number of leap seconds inserted since the GPS epoch,
        giving the reading of a GPS clock
        """
        count = (
            _leap_table(leap_seconds)
            .since(TimeEpoch.GPS.date())
            .until(self)
            .count()
        )
        return self.add(TimeUnit.seconds(count))

    def timestamp_unix(self) -> TimeUnit:
        """Time elapsed since the UNIX epoch (1970-01-01T00:00:00Z),
        not counting leap seconds. Negative before the epoch.

        Example
        -------
        >>> DateTime.create(2020, 1, 1, 0, 0, 0).timestamp_unix()
        TimeUnit(438288:00:00)
        >>> DateTime.create(1969, 12, 31, 23, 59, 59, 500_000).timestamp_unix()
        TimeUnit(-00:00:00.5)
        """
        return TimeUnit._from_us_unchecked(
            total_micros(self._py_dt - _UNIX_EPOCH)
        )

    def timestamp(
        self, epoch: TimeEpoch, /, *, leap_seconds: LeapSeconds | None = None
    ) -> TimeUnit:
        """Time elapsed since the given epoch.

        For ``UNIX`` and ``POSIX`` this equals :meth:`timestamp_unix`.
        ``UTC`` and ``GPS`` timestamps also count the leap seconds inserted
        up to this moment (for GPS: only those after its epoch).
        ``TAI`` timestamps count every elapsed SI second since 1958.

        Raises
        ------
        DomainError
            If the epoch started after this moment.

        Example
        -------
        >>> d = DateTime.create(2020, 1, 1, 0, 0, 0)
        >>> d.timestamp(TimeEpoch.GPS).in_seconds()
        1261872018
        """
        if not isinstance(epoch, TimeEpoch):
            raise TypeError(f"Expected TimeEpoch, got {type(epoch)!r}")
        anchor = epoch.date()
        if self < anchor:
            raise DomainError(
                f"Epoch {epoch.name} started at {anchor} "
                f"which is after {self}"
            )
        table = _leap_table(leap_seconds)

        if epoch is TimeEpoch.UTC:
            return (
                self.timestamp_unix()
                - TimeEpoch.UNIX.distance_to(epoch)
                + table.until(self).offset_tai()
            )
        elif epoch is TimeEpoch.GPS:
            return (
                self.timestamp_unix()
                - TimeEpoch.UNIX.distance_to(epoch)
                + (
                    table.until(self).offset_tai()
                    - table.until(anchor).offset_tai()
                )
            )
        elif epoch is TimeEpoch.TAI:
            period = anchor.until(self)
            return (
                period.distance()
                + period.leap_seconds(leap_seconds=table).offset_tai()
            )
        else:
            return self.timestamp_unix()

    def add(self, unit: TimeUnit, /) -> DateTime:
        """Add an exact amount of elapsed time. The offset is resolved
        again for the new moment, so DST transitions are taken into account.

        Example
        -------
        >>> d = DateTime(2023, 3, 26, 1, 30, tz="Europe/Warsaw")
        >>> d.add(TimeUnit.hours(1))
        DateTime(2023-03-26 03:30:00+02:00[Europe/Warsaw])
        """
        return self._shift_exact(_check_unit(unit)._total_us)

    def sub(self, unit: TimeUnit, /) -> DateTime:
        return self._shift_exact(-_check_unit(unit)._total_us)

    def modify(
        self, count: int, unit: Unit, /, *, overflow: Overflow = "clamp"
    ) -> DateTime:
        """Shift by a signed number of calendar or time units.

        Calendar units (years, months, weeks, days) move the wall clock:
        the time of day stays the same and the offset is resolved again for
        the new date. Time units (hours and smaller) are exact elapsed time.

        ``overflow`` determines what happens when the day of the month
        doesn't exist in the target month: ``"clamp"`` uses the month's
        last day, ``"rollover"`` carries the excess days into the next month.

        Example
        -------
        >>> d = DateTime.create(2020, 1, 31, 10, 0, 0)
        >>> d.modify(1, "months")
        DateTime(2020-02-29 10:00:00+00:00[UTC])
        >>> d.modify(1, "months", overflow="rollover")
        DateTime(2020-03-02 10:00:00+00:00[UTC])
        """
        if type(count) is not int:
            raise TypeError("count must be an integer")
        if overflow not in _OVERFLOW_SETTINGS:
            raise InvalidArgument(f"Invalid overflow setting: {overflow!r}")

        if unit == "years":
            return self._shift_date(months=12 * count, overflow=overflow)
        elif unit == "months":
            return self._shift_date(months=count, overflow=overflow)
        elif unit == "weeks":
            return self._shift_date(days=7 * count)
        elif unit == "days":
            return self._shift_date(days=count)
        try:
            return self._shift_exact(count * _TIME_UNIT_MICROS[unit])
        except KeyError:
            raise InvalidArgument(f"Invalid unit: {unit!r}") from None

    def add_hour(self) -> DateTime:
        return self.modify(1, "hours")

    def sub_hour(self) -> DateTime:
        return self.modify(-1, "hours")

    def add_hours(self, hours: int, /) -> DateTime:
        return self.modify(hours, "hours")

    def sub_hours(self, hours: int, /) -> DateTime:
        return self.modify(-hours, "hours")

    def add_minute(self) -> DateTime:
        return self.modify(1, "minutes")

    def sub_minute(self) -> DateTime:
        return self.modify(-1, "minutes")

    def add_minutes(self, minutes: int, /) -> DateTime:
        return self.modify(minutes, "minutes")

    def sub_minutes(self, minutes: int, /) -> DateTime:
        return self.modify(-minutes, "minutes")

    def add_second(self) -> DateTime:
        return self.modify(1, "seconds")

    def sub_second(self) -> DateTime:
        return self.modify(-1, "seconds")

    def add_seconds(self, seconds: int, /) -> DateTime:
        return self.modify(seconds, "seconds")

    def sub_seconds(self, seconds: int, /) -> DateTime:
        return self.modify(-seconds, "seconds")

    def add_day(self) -> DateTime:
        """The same wall-clock time on the next day"""
        return self.modify(1, "days")

    def sub_day(self) -> DateTime:
        return self.modify(-1, "days")

    def add_days(self, days: int, /) -> DateTime:
        return self.modify(days, "days")

    def sub_days(self, days: int, /) -> DateTime:
        return self.modify(-days, "days")

    def add_week(self) -> DateTime:
        return self.modify(1, "weeks")

    def sub_week(self) -> DateTime:
        return self.modify(-1, "weeks")

    def add_weeks(self, weeks: int, /) -> DateTime:
        return self.modify(weeks, "weeks")

    def sub_weeks(self, weeks: int, /) -> DateTime:
        return self.modify(-weeks, "weeks")

    def add_month(self) -> DateTime:
        """The same day and time in the next month,
        clamped to the end of the month if needed

        Example
        -------
        >>> DateTime.create(2020, 1, 31, 10, 0, 0).add_month()
        DateTime(2020-02-29 10:00:00+00:00[UTC])
        """
        return self.modify(1, "months")

    def sub_month(self) -> DateTime:
        return self.modify(-1, "months")

    def add_months(self, months: int, /) -> DateTime:
        return self.modify(months, "months")

    def sub_months(self, months: int, /) -> DateTime:
        return self.modify(-months, "months")

    def add_year(self) -> DateTime:
        return self.modify(1, "years")

    def sub_year(self) -> DateTime:
        return self.modify(-1, "years")

    def add_years(self, years: int, /) -> DateTime:
        return self.modify(years, "years")

    def sub_years(self, years: int, /) -> DateTime:
        return self.modify(-years, "years")

    def midnight(self) -> DateTime:
        """The start of the day, in the same zone or offset.

        This is almost always at 00:00, but may be later
        for zones which transition at (and thus skip over) midnight.
        """
        return self._replace_time(_time())

    def noon(self) -> DateTime:
        return self._replace_time(_time(12))

    def end_of_day(self) -> DateTime:
        """The last microsecond of the day"""
        return self._replace_time(_time(23, 59, 59, 999_999))

    def is_equal(self, other: DateTime, /) -> bool:
        """Whether both represent the same moment in time,
        regardless of zone or offset

        Example
        -------
        >>> DateTime(2020, 8, 15, hour=23, offset=1).is_equal(
        ...     DateTime(2020, 8, 15, hour=18, tz="America/New_York")
        ... )
        True
        """
        return self._utc() == _check_datetime(other)._utc()

    def is_before(self, other: DateTime, /) -> bool:
        return self._utc() < _check_datetime(other)._utc()

    def is_before_or_equal(self, other: DateTime, /) -> bool:
        return self._utc() <= _check_datetime(other)._utc()

    def is_after(self, other: DateTime, /) -> bool:
        return self._utc() > _check_datetime(other)._utc()

    def is_after_or_equal(self, other: DateTime, /) -> bool:
        return self._utc() >= _check_datetime(other)._utc()

    def exact_eq(self, other: DateTime, /) -> bool:
        """Compare by value (date, time, offset and zone)
        instead of whether they represent the same moment in time.

        Example
        -------
        >>> a = DateTime(2020, 8, 15, hour=12, offset=1)
        >>> b = DateTime(2020, 8, 15, hour=13, offset=2)
        >>> a == b
        True  # same moment in time
        >>> a.exact_eq(b)
        False  # different values (hour and offset)
        """
        _check_datetime(other)
        return (
            self._py_dt.replace(tzinfo=None),
            self._py_dt.utcoffset(),
            self.time_zone(),
        ) == (
            other._py_dt.replace(tzinfo=None),
            other._py_dt.utcoffset(),
            other.time_zone(),
        )

    def until(self, other: DateTime, /) -> TimePeriod:
        """The period from this moment to another"""
        return TimePeriod(self, other)

    def since(self, other: DateTime, /) -> TimePeriod:
        """The period from another moment to this one"""
        return TimePeriod(other, self)

    def distance_until(self, other: DateTime, /) -> TimeUnit:
        return self.until(other).distance()

    def distance_since(self, other: DateTime, /) -> TimeUnit:
        return self.since(other).distance()

    def iterate(
        self, point_in_time: DateTime, by: TimeUnit, /
    ) -> TimePeriods:
        """Step from this moment towards another, forward or backward
        depending on which one comes first. The other moment itself is
        never included.

        Example
        -------
        >>> start = DateTime.create(2020, 1, 1, 0, 0, 0)
        >>> steps = start.iterate(start.add_hours(3), TimeUnit.hours(1))
        >>> [d.hour for d in steps]
        [0, 1, 2]
        """
        return (
            self.since(point_in_time).iterate_backward(by)
            if _check_datetime(point_in_time).is_before(self)
            else self.until(point_in_time).iterate(by)
        )

    def format_iso(self) -> str:
        """Format as ``YYYY-MM-DDTHH:MM:SS±HH:MM``.
        A fractional part is added only if there are microseconds.

        Inverse of :meth:`from_string`

        Example
        -------
        >>> d = DateTime(2020, 8, 15, 23, 12, tz="Europe/Warsaw")
        >>> d.format_iso()
        '2020-08-15T23:12:00+02:00'
        """
        return self._py_dt.isoformat()

    __str__ = format_iso

    def __repr__(self) -> str:
        zone = self.time_zone()
        return (
            f"DateTime({self._py_dt.isoformat(' ')}"
            + (f"[{zone.name}]" if zone else "")
            + ")"
        )

    def __eq__(self, other: object) -> bool:
        """Check if two datetimes represent the same moment in time

        ``a == b`` is equivalent to ``a.is_equal(b)``. To compare the
        values themselves, use :meth:`exact_eq`.
        """
        if not isinstance(other, DateTime):
            return NotImplemented
        # We can't rely on simple equality, because it isn't equal
        # between two datetimes with different timezones if one of the
        # datetimes needs fold to disambiguate it.
        # See peps.python.org/pep-0495/#aware-datetime-equality-comparison.
        # We want to avoid this legacy edge case, so we normalize to UTC.
        return self._utc() == other._utc()

    def __hash__(self) -> int:
        return hash(self._utc())

    def __lt__(self, other: DateTime) -> bool:
        if not isinstance(other, DateTime):
            return NotImplemented
        return self._utc() < other._utc()

    def __le__(self, other: DateTime) -> bool:
        if not isinstance(other, DateTime):
            return NotImplemented
        return self._utc() <= other._utc()

    def __gt__(self, other: DateTime) -> bool:
        if not isinstance(other, DateTime):
            return NotImplemented
        return self._utc() > other._utc()

    def __ge__(self, other: DateTime) -> bool:
        if not isinstance(other, DateTime):
            return NotImplemented
        return self._utc() >= other._utc()

    def __add__(self, unit: TimeUnit) -> DateTime:
        if not isinstance(unit, TimeUnit):
            return NotImplemented
        return self._shift_exact(unit._total_us)

    @overload
    def __sub__(self, other: DateTime) -> TimeUnit: ...

    @overload
    def __sub__(self, other: TimeUnit) -> DateTime: ...

    def __sub__(self, other: DateTime | TimeUnit) -> TimeUnit | DateTime:
        """Subtract a duration, or calculate the (signed) elapsed time
        between two datetimes

        Example
        -------
        >>> a = DateTime.create(2020, 1, 1, 1, 0, 0)
        >>> a - DateTime.create(2020, 1, 1, 0, 0, 0)
        TimeUnit(01:00:00)
        """
        if isinstance(other, DateTime):
            return TimeUnit._from_us_unchecked(
                total_micros(self._utc() - other._utc())
            )
        elif isinstance(other, TimeUnit):
            return self._shift_exact(-other._total_us)
        return NotImplemented

    def _utc(self) -> _datetime:
        return self._py_dt.astimezone(_UTC)

    def _shift_exact(self, us: int) -> DateTime:
        try:
            return self._from_py_unchecked(
                (self._utc() + _timedelta(microseconds=us)).astimezone(
                    self._py_dt.tzinfo
                )
            )
        except OverflowError:
            raise InvalidArgument("Result out of range") from None

    def _shift_date(
        self, *, months: int = 0, days: int = 0, overflow: Overflow = "clamp"
    ) -> DateTime:
        try:
            new_date = add_days(
                add_months(self._py_dt.date(), months, overflow), days
            )
        except (ValueError, OverflowError):
            raise InvalidArgument("Result out of range") from None
        return self._replace_local(
            _datetime.combine(new_date, self._py_dt.time()),
            self._py_dt.utcoffset(),
        )

    def _replace_time(self, t: _time) -> DateTime:
        return self._replace_local(
            _datetime.combine(self._py_dt.date(), t), None
        )

    def _replace_local(
        self, local: _datetime, prev_offset: _timedelta | None
    ) -> DateTime:
        tzinfo = self._py_dt.tzinfo
        dt = local.replace(tzinfo=tzinfo)
        try:
            if isinstance(tzinfo, ZoneInfo):
                if prev_offset is None:
                    dt = _resolve_ambiguity(dt, tzinfo, "compatible")
                else:
                    dt = _resolve_ambiguity_using_prev_offset(dt, prev_offset)
            return self._from_py_unchecked(check_utc_bounds(dt))
        except (ValueError, OverflowError):
            raise InvalidArgument("Result out of range") from None

    @classmethod
    def _from_py_unchecked(cls, d: _datetime, /) -> DateTime:
        assert d.tzinfo is not None
        self = _object_new(cls)
        self._py_dt = d
        return self


def _check_datetime(value: object) -> DateTime:
    if not isinstance(value, DateTime):
        raise TypeError(f"Expected DateTime, got {type(value)!r}")
    return value


def _attach(
    local: _datetime,
    tz: TimeZone | str | None,
    offset: TimeOffset | TimeUnit | int | str | None,
    disambiguate: Disambiguate,
) -> _datetime:
    if tz is None:
        tzinfo: _tzinfo = (
            _UTC if offset is None else _coerce_offset(offset).py_timezone()
        )
        try:
            return check_utc_bounds(local.replace(tzinfo=tzinfo))
        except ValueError as e:
            raise InvalidArgument(str(e)) from None

    zone = _coerce_zone(tz)
    try:
        if offset is None:
            dt = _resolve_ambiguity(
                local.replace(tzinfo=zone), zone, disambiguate
            )
        else:
            dt = _adjust_fold_to_offset(
                local.replace(tzinfo=zone), _coerce_offset(offset), zone
            )
    # the UTC roundtrip fails at the edges of the supported range
    except OverflowError:
        raise InvalidArgument("datetime out of range for UTC") from None
    try:
        return check_utc_bounds(dt)
    except ValueError as e:
        raise InvalidArgument(str(e)) from None


_disambiguate_to_fold: Mapping[str, Literal[0, 1]] = {
    "compatible": 0,
    "earlier": 0,
    "later": 1,
    "raise": 0,
}


def _as_fold(s: str) -> Literal[0, 1]:
    try:
        return _disambiguate_to_fold[s]
    except KeyError:
        raise InvalidArgument(
            f"Invalid disambiguate setting: {s!r}"
        ) from None


def _resolve_ambiguity(
    dt: _datetime, zone: ZoneInfo, disambiguate: Disambiguate
) -> _datetime:
    dt = dt.replace(fold=_as_fold(disambiguate))
    dt_utc = dt.astimezone(_UTC)
    # Non-existent times: they don't survive a UTC roundtrip
    if dt_utc.astimezone(zone) != dt:
        if disambiguate == "raise":
            raise SkippedTime._for_tz(dt, zone)
        elif disambiguate != "compatible":  # i.e. "earlier" or "later"
            # In gaps, the relationship between
            # fold and earlier/later is reversed
            dt = dt.replace(fold=not dt.fold)
        # Perform the normalisation, shifting away from non-existent times
        dt = dt.astimezone(_UTC).astimezone(zone)
    # Ambiguous times: they're never equal to other timezones
    elif disambiguate == "raise" and dt_utc != dt:
        raise RepeatedTime._for_tz(dt, zone)
    return dt


def _resolve_ambiguity_using_prev_offset(
    dt: _datetime,
    prev_offset: _timedelta,
) -> _datetime:
    if prev_offset == dt.utcoffset():
        pass
    elif prev_offset == dt.replace(fold=not dt.fold).utcoffset():
        dt = dt.replace(fold=not dt.fold)
    else:
        # No offset match. Setting fold=0 adopts the 'compatible' strategy
        dt = dt.replace(fold=0)

    # This roundtrip ensures skipped times are shifted
    return dt.astimezone(_UTC).astimezone(dt.tzinfo)


def _adjust_fold_to_offset(
    dt: _datetime, offset: TimeOffset, zone: ZoneInfo
) -> _datetime:
    expected = _timedelta(seconds=offset._secs)
    if expected != dt.utcoffset():  # offset/zone mismatch: try other fold
        dt = dt.replace(fold=1)
        if dt.utcoffset() != expected:
            raise InvalidOffset(
                f"TimeOffset {offset} does not match TimeZone {zone.key} "
                f"at {dt.replace(tzinfo=None).isoformat()}"
            )
    # Skipped times have an offset on either side of the gap,
    # but don't survive a UTC roundtrip
    if dt.astimezone(_UTC).astimezone(zone).replace(fold=dt.fold) != dt:
        raise SkippedTime._for_tz(dt, zone)
    return dt


# Use this to strip any incoming datetime classes down to instances
# of the datetime.datetime class exactly.
def _strip_subclasses(dt: _datetime) -> _datetime:
    if type(dt) is _datetime:
        return dt
    else:
        return _datetime(
            dt.year,
            dt.month,
            dt.day,
            dt.hour,
            dt.minute,
            dt.second,
            dt.microsecond,
            dt.tzinfo,
            fold=dt.fold,
        )


_match_datetime = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})"
    r"(?:[Tt ](\d{2}):(\d{2})(?::(\d{2})(?:[.,](\d{1,6}))?)?)?"
    r"((?:[Zz]|[+-]\d{2}(?::?\d{2}(?::?\d{2})?)?)?)"
    r"(?:\[([^\]]{1,255})\])?",
    re.ASCII,
).fullmatch


@final
class LeapSecond(_ImmutableBase):
    """A change of the TAI-UTC offset.

    ``date_time`` is the UTC moment from which the new offset applies:
    the inserted second itself is the last second before it (23:59:60).
    ``offset_tai`` is the cumulative TAI-UTC offset from then on, and
    ``correction`` the change with respect to the previous record.
    """

    __slots__ = ("_date_time", "_offset_tai", "_correction")

    def __init__(
        self, date_time: DateTime, offset_tai: TimeUnit, correction: TimeUnit
    ) -> None:
        self._date_time = _check_datetime(date_time)
        self._offset_tai = _check_unit(offset_tai)
        self._correction = _check_unit(correction)

    @property
    def date_time(self) -> DateTime:
        return self._date_time

    @property
    def offset_tai(self) -> TimeUnit:
        return self._offset_tai

    @property
    def correction(self) -> TimeUnit:
        return self._correction

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LeapSecond):
            return NotImplemented
        return (self._date_time, self._offset_tai, self._correction) == (
            other._date_time,
            other._offset_tai,
            other._correction,
        )

    def __hash__(self) -> int:
        return hash((self._date_time, self._offset_tai, self._correction))

    def __repr__(self) -> str:
        return (
            f"LeapSecond({self._date_time.date().isoformat()}, "
            f"TAI-UTC={self._offset_tai.in_seconds()}s)"
        )


# The process-wide default table. Loaded at most once, on first use.
_DEFAULT_TABLE: LeapSeconds | None = None
_DEFAULT_TABLE_LOCK = threading.Lock()


@final
class LeapSeconds(_ImmutableBase):
    """A table of historical leap seconds, ordered by date.

    Use :meth:`load` to get the table bundled with the package. Filtering
    methods like :meth:`until` and :meth:`since` return new tables.

    Example
    -------
    >>> table = LeapSeconds.load()
    >>> table.until(DateTime.create(2000, 1, 1, 0, 0, 0)).offset_tai()
    TimeUnit(00:00:32)
    >>> table.since(TimeEpoch.GPS.date()).count()
    18
    """

    __slots__ = ("_records", "_expires")

    def __init__(self, records: Iterable[LeapSecond], expires: _date) -> None:
        records = tuple(records)
        for prev, record in zip(records, records[1:]):
            if record.date_time <= prev.date_time:
                raise DataError(
                    "Leap seconds must be sorted and unique, "
                    f"got {record.date_time} after {prev.date_time}"
                )
        if not isinstance(expires, _date):
            raise TypeError(f"Expected date, got {type(expires)!r}")
        self._records = records
        self._expires = expires

    @classmethod
    def load(cls) -> LeapSeconds:
        """The process-wide table, loaded from the bundled data set
        on first use

        Raises
        ------
        DataError
            If the bundled data set is inconsistent.
        """
        global _DEFAULT_TABLE
        table = _DEFAULT_TABLE
        if table is None:
            with _DEFAULT_TABLE_LOCK:
                if _DEFAULT_TABLE is None:
                    _DEFAULT_TABLE = cls._from_data(_leap.read_embedded())
                table = _DEFAULT_TABLE
        return table

    @classmethod
    def parse(cls, text: str, /) -> LeapSeconds:
        """Create a table from text in the IERS ``Leap_Second.dat`` layout"""
        return cls._from_data(_leap.parse(text))

    @classmethod
    @contextmanager
    def override(cls, table: LeapSeconds, /) -> Iterator[LeapSeconds]:
        """Replace the process-wide table within a ``with`` block
        (for testing purposes)
        """
        global _DEFAULT_TABLE
        if not isinstance(table, LeapSeconds):
            raise TypeError(f"Expected LeapSeconds, got {type(table)!r}")
        with _DEFAULT_TABLE_LOCK:
            previous, _DEFAULT_TABLE = _DEFAULT_TABLE, table
        try:
            yield table
        finally:
            with _DEFAULT_TABLE_LOCK:
                _DEFAULT_TABLE = previous

    def until(self, dt: DateTime, /) -> LeapSeconds:
        """The leap seconds in force at ``dt``: those at or before it"""
        _check_datetime(dt)
        return self._view(r for r in self._records if r.date_time <= dt)

    def since(self, dt: DateTime, /) -> LeapSeconds:
        """The leap seconds that came into force after ``dt``.

        Together with :meth:`until` this splits the table in two,
        so their offsets add up to that of the whole table.
        """
        _check_datetime(dt)
        return self._view(r for r in self._records if r.date_time > dt)

    def between(self, period: TimePeriod, /) -> LeapSeconds:
        """The leap seconds that came into force during the period,
        regardless of its direction
        """
        if not isinstance(period, TimePeriod):
            raise TypeError(f"Expected TimePeriod, got {type(period)!r}")
        earliest, latest = period._bounds()
        return self.since(earliest).until(latest)

    def offset_tai(self) -> TimeUnit:
        """The total TAI-UTC offset contributed by the leap seconds
        in this table
        """
        return TimeUnit._from_us_unchecked(
            sum(r._correction._total_us for r in self._records)
        )

    def count(self) -> int:
        return len(self._records)

    def all(self) -> tuple[LeapSecond, ...]:
        return self._records

    def expiration_date(self) -> _date:
        """The date until which the data set is known to be complete"""
        return self._expires

    def is_expired(self, at: DateTime | None = None, /) -> bool:
        """Whether new leap seconds may have been announced since
        the data set was published. Defaults to the current time.
        """
        at = DateTime.now() if at is None else _check_datetime(at)
        return at._utc().date() > self._expires

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[LeapSecond]:
        return iter(self._records)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LeapSeconds):
            return NotImplemented
        return (self._records, self._expires) == (
            other._records,
            other._expires,
        )

    def __hash__(self) -> int:
        return hash((self._records, self._expires))

    def __repr__(self) -> str:
        return (
            f"LeapSeconds({len(self._records)} records, "
            f"expires {self._expires.isoformat()})"
        )

    def _view(self, records: Iterable[LeapSecond]) -> LeapSeconds:
        new = _object_new(LeapSeconds)
        new._records = tuple(records)
        new._expires = self._expires
        return new

    @classmethod
    def _from_data(cls, data: _leap.LeapSecondData) -> LeapSeconds:
        records = []
        previous = 0
        for day, offset in data.rows:
            records.append(
                LeapSecond(
                    DateTime(day.year, day.month, day.day, tz=TimeZone.UTC),
                    TimeUnit.seconds(offset),
                    TimeUnit.seconds(offset - previous),
                )
            )
            previous = offset
        return cls(records, data.expires)


def _leap_table(table: LeapSeconds | None) -> LeapSeconds:
    if table is None:
        return LeapSeconds.load()
    elif isinstance(table, LeapSeconds):
        return table
    raise TypeError(f"Expected LeapSeconds, got {type(table)!r}")


class TimeEpoch(enum.Enum):
    """Reference moments from which timestamps are counted"""

    UNIX = "unix"
    """1970-01-01T00:00:00Z. Timestamps don't count leap seconds."""
    POSIX = "posix"
    """Same as :attr:`UNIX`"""
    UTC = "utc"
    """1972-01-01T00:00:00Z, the start of the leap second era"""
    GPS = "gps"
    """1980-01-06T00:00:00Z, the start of GPS time"""
    TAI = "tai"
    """1958-01-01T00:00:00Z, the reference of International Atomic Time"""

    def date(self) -> DateTime:
        """The moment this epoch starts"""
        return _EPOCH_ANCHORS[self]

    def distance_to(self, other: TimeEpoch, /) -> TimeUnit:
        """The (signed) time between the starts of both epochs,
        not counting leap seconds

        Example
        -------
        >>> TimeEpoch.UNIX.distance_to(TimeEpoch.GPS).in_seconds()
        315964800
        """
        if not isinstance(other, TimeEpoch):
            raise TypeError(f"Expected TimeEpoch, got {type(other)!r}")
        return other.date() - self.date()


_EPOCH_ANCHORS: Mapping[TimeEpoch, DateTime] = {
    TimeEpoch.UNIX: DateTime(1970, 1, 1, tz=TimeZone.UTC),
    TimeEpoch.POSIX: DateTime(1970, 1, 1, tz=TimeZone.UTC),
    TimeEpoch.UTC: DateTime(1972, 1, 1, tz=TimeZone.UTC),
    TimeEpoch.GPS: DateTime(1980, 1, 6, tz=TimeZone.UTC),
    TimeEpoch.TAI: DateTime(1958, 1, 1, tz=TimeZone.UTC),
}


@final
class TimePeriod(_ImmutableBase):
    """The span between two moments in time.
    The start may come after the end, in which case the period is backward.

    Example
    -------
    >>> p = TimePeriod(
    ...     DateTime.create(2020, 1, 1, 0, 0, 0),
    ...     DateTime.create(2020, 1, 1, 0, 0, 10),
    ... )
    >>> p.distance()
    TimeUnit(00:00:10)
    >>> len(p.iterate(TimeUnit.seconds(3)))
    4
    """

    __slots__ = ("_start", "_end")

    def __init__(self, start: DateTime, end: DateTime) -> None:
        self._start = _check_datetime(start)
        self._end = _check_datetime(end)

    @property
    def start(self) -> DateTime:
        return self._start

    @property
    def end(self) -> DateTime:
        return self._end

    def distance(self) -> TimeUnit:
        """The elapsed time between start and end, regardless of direction"""
        return abs(self._end - self._start)

    def leap_seconds(
        self, *, leap_seconds: LeapSeconds | None = None
    ) -> LeapSeconds:
        """The leap seconds inserted during this period"""
        return _leap_table(leap_seconds).between(self)

    def is_forward(self) -> bool:
        return self._start < self._end

    def is_backward(self) -> bool:
        return self._start > self._end

    def revert(self) -> TimePeriod:
        """The same period, in the opposite direction"""
        return TimePeriod(self._end, self._start)

    def contains(self, other: TimePeriod, /) -> bool:
        lo, hi = self._bounds()
        other_lo, other_hi = _check_period(other)._bounds()
        return lo <= other_lo and other_hi <= hi

    def overlaps(self, other: TimePeriod, /) -> bool:
        """Whether both periods share some time. Periods which only
        touch at an endpoint don't overlap; see :meth:`abuts`.
        """
        lo, hi = self._bounds()
        other_lo, other_hi = _check_period(other)._bounds()
        return lo < other_hi and other_lo < hi

    def abuts(self, other: TimePeriod, /) -> bool:
        lo, hi = self._bounds()
        other_lo, other_hi = _check_period(other)._bounds()
        return hi == other_lo or other_hi == lo

    def merge(self, other: TimePeriod, /) -> TimePeriod:
        """The forward period covering both periods

        Raises
        ------
        InvalidArgument
            If the periods neither overlap nor abut.
        """
        if not (self.overlaps(other) or self.abuts(other)):
            raise InvalidArgument(
                "Can't merge periods which neither overlap nor abut"
            )
        lo, hi = self._bounds()
        other_lo, other_hi = other._bounds()
        return TimePeriod(min(lo, other_lo), max(hi, other_hi))

    def iterate(self, by: TimeUnit, /) -> TimePeriods:
        """Step from the start towards the end (excluded)"""
        return TimePeriods(self._start, self._end, by)

    def iterate_backward(self, by: TimeUnit, /) -> TimePeriods:
        """Step from the end towards the start (excluded)"""
        return TimePeriods(self._end, self._start, by)

    def is_equal(self, other: TimePeriod, /) -> bool:
        return self == _check_period(other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimePeriod):
            return NotImplemented
        return (self._start, self._end) == (other._start, other._end)

    def __hash__(self) -> int:
        return hash((self._start, self._end))

    def __repr__(self) -> str:
        return f"TimePeriod({self._start} -> {self._end})"

    def _bounds(self) -> tuple[DateTime, DateTime]:
        if self._end < self._start:
            return self._end, self._start
        return self._start, self._end


def _check_period(value: object) -> TimePeriod:
    if not isinstance(value, TimePeriod):
        raise TypeError(f"Expected TimePeriod, got {type(value)!r}")
    return value


@final
class TimePeriods(_ImmutableBase, Sequence):
    """The moments obtained by stepping from an origin towards a target,
    which itself is never included.

    Each element is computed directly from its index, so the sequence
    can be indexed, iterated repeatedly, and reversed.

    Example
    -------
    >>> start = DateTime.create(2020, 1, 1, 0, 0, 0)
    >>> steps = TimePeriods(start, start.add_seconds(10), TimeUnit.seconds(3))
    >>> [d.second for d in steps]
    [0, 3, 6, 9]
    >>> steps[-1]
    DateTime(2020-01-01 00:00:09+00:00[UTC])

    Raises
    ------
    InvalidArgument
        If the step is zero. The sign of the step is ignored:
        the direction follows from the origin and target.
    """

    __slots__ = ("_origin", "_target", "_step_us", "_len")

    def __init__(
        self, origin: DateTime, target: DateTime, by: TimeUnit
    ) -> None:
        self._origin = _check_datetime(origin)
        self._target = _check_datetime(target)
        if _check_unit(by).is_zero():
            raise InvalidArgument("Can't iterate with a zero step")
        step_us = abs(by._total_us)
        distance_us = (target - origin)._total_us
        self._step_us = step_us if distance_us >= 0 else -step_us
        # ceiling division: the target itself is excluded
        self._len = -(-abs(distance_us) // step_us)

    @property
    def origin(self) -> DateTime:
        return self._origin

    @property
    def target(self) -> DateTime:
        return self._target

    @property
    def step(self) -> TimeUnit:
        """The signed step between elements"""
        return TimeUnit._from_us_unchecked(self._step_us)

    def is_forward(self) -> bool:
        return self._step_us > 0

    def periods(self) -> list[TimePeriod]:
        """The consecutive periods between the elements,
        the last one ending at the target
        """
        points = [*self, self._target]
        return [TimePeriod(a, b) for a, b in zip(points, points[1:])]

    def __len__(self) -> int:
        return self._len

    @overload
    def __getitem__(self, index: int) -> DateTime: ...

    @overload
    def __getitem__(self, index: slice) -> list[DateTime]: ...

    def __getitem__(self, index: int | slice) -> DateTime | list[DateTime]:
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(self._len))]
        if index < 0:
            index += self._len
        if not 0 <= index < self._len:
            raise IndexError("TimePeriods index out of range")
        return self._origin._shift_exact(index * self._step_us)

    def __iter__(self) -> Iterator[DateTime]:
        for i in range(self._len):
            yield self._origin._shift_exact(i * self._step_us)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimePeriods):
            return NotImplemented
        return (self._origin, self._target, self._step_us) == (
            other._origin,
            other._target,
            other._step_us,
        )

    def __hash__(self) -> int:
        return hash((self._origin, self._target, self._step_us))

    def __repr__(self) -> str:
        return (
            f"TimePeriods({self._origin} -> {self._target}, "
            f"step={self.step!r}, {self._len} elements)"
        )


class InvalidArgument(ValueError):
    """Invalid input to a constructor or operation"""


class UnknownZone(InvalidArgument):
    """A time zone with the given name was not found"""

    @classmethod
    def for_key(cls, key: str) -> UnknownZone:
        return cls(f"No time zone found for key: {key!r}")


class InvalidOffset(InvalidArgument):
    """An explicit offset doesn't match the time zone"""


class SkippedTime(InvalidArgument):
    """A wall-clock time is skipped in a time zone, e.g. because of DST"""

    @classmethod
    def _for_tz(cls, d: _datetime, tz: ZoneInfo) -> SkippedTime:
        return cls(
            f"{d.replace(tzinfo=None)} is skipped in timezone {tz.key!r}"
        )


class RepeatedTime(InvalidArgument):
    """A wall-clock time is repeated in a time zone, e.g. because of DST"""

    @classmethod
    def _for_tz(cls, d: _datetime, tz: ZoneInfo) -> RepeatedTime:
        return cls(
            f"{d.replace(tzinfo=None)} is repeated in timezone {tz.key!r}"
        )


class DomainError(ValueError):
    """A timestamp was requested relative to an epoch that hadn't
    started yet"""


# We expose the public members in the root of the module.
# For clarity, we remove the "_core" part from the names,
# since this is an implementation detail.
for name in __all__:
    member = locals()[name]
    if getattr(member, "__module__", None) in (__name__, _leap.__name__):
        member.__module__ = "chronon"

# clear up loop variables so they don't leak into the namespace
del name
del member

# disable further subclassing
final(_ImmutableBase)
